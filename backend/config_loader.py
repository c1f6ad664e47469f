#!/usr/bin/env python3
"""
Central Configuration Loader
Chain registry and explorer settings all come from config.json
"""
import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Environment overrides (.env in backend/ or the process environment)
load_dotenv(Path(__file__).parent / '.env')

DEFAULT_BECH32_PREFIX = 'cosmos'
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'config.json'


def resolve_config_path(config_path: Union[str, Path, None] = None) -> Path:
    """Explicit path, then EXPLORER_CONFIG, then config.json in the project root"""
    return Path(config_path or os.getenv('EXPLORER_CONFIG') or DEFAULT_CONFIG_PATH)


class ConfigLoader:
    """Process-wide view of the chain registry; every ConfigLoader() is the same object"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._config = {}
            instance.load_config()
            cls._instance = instance
        return cls._instance

    def load_config(self, config_path: Union[str, Path, None] = None):
        """Read the registry; the previous one stays in place if the file is missing or malformed"""
        path = resolve_config_path(config_path)
        try:
            registry = json.loads(path.read_text())
        except FileNotFoundError:
            logger.error(f"No chain registry at {path}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Chain registry {path} is not valid JSON: {e}")
            raise

        self._config = registry
        chains = registry.get('chains', {})
        logger.info(f"Loaded {len(chains)} chains from {path}")

    def get_all_chain_ids(self) -> List[str]:
        """Get all configured chain IDs"""
        if not self._config:
            return []
        return list(self._config.get('chains', {}).keys())

    def get_chain_config(self, chain_id: str) -> Dict:
        """
        Get configuration for a chain ID

        Unknown chains get a default config (no bech32 prefix, 6 decimals)
        """
        chains = self._config.get('chains', {}) if self._config else {}
        chain = chains.get(chain_id)
        if chain:
            return chain

        logger.warning(f"Chain ID {chain_id} not found in config, using defaults")
        return {
            'name': f"Chain {chain_id}",
            'features': {'evm': False, 'ibc': True, 'wasm': False},
            'native_denom': 'unknown',
            'native_symbol': 'UNKNOWN',
            'decimals': 6,
        }

    def has_chain_feature(self, chain_id: str, feature: str) -> bool:
        """Check if a chain has a feature (evm, ibc, wasm, custom_modules)"""
        features = self.get_chain_config(chain_id).get('features', {})
        if feature == 'custom_modules':
            return bool(features.get('custom_modules'))
        return bool(features.get(feature, False))

    def get_chain_prefixes(self) -> Dict[str, str]:
        """Get chain ID -> bech32 prefix for every chain that declares one"""
        if not self._config:
            return {}
        return {
            chain_id: chain['bech32_prefix']
            for chain_id, chain in self._config.get('chains', {}).items()
            if chain.get('bech32_prefix')
        }

    def get_default_chain_id(self) -> Optional[str]:
        return self._config.get('default_chain_id') if self._config else None

    def get_settings(self) -> Dict:
        """Get global settings"""
        return self._config.get('settings', {}) if self._config else {}

    def get_rest_endpoint(self) -> Optional[str]:
        """REST (LCD) endpoint used for chain detection"""
        env = os.getenv('EXPLORER_REST_ENDPOINT')
        if env:
            return env
        endpoint = self.get_settings().get('rest_endpoint')
        if endpoint:
            return endpoint
        default_chain = self.get_default_chain_id()
        if default_chain:
            return self.get_chain_config(default_chain).get('rest_endpoint')
        return None

    def get_evm_rpc_endpoint(self) -> Optional[str]:
        """EVM JSON-RPC endpoint, if the explorer should look up contracts and balances"""
        return os.getenv('EXPLORER_EVM_RPC') or self.get_settings().get('evm_rpc_endpoint')

    def get_request_timeout(self) -> float:
        return float(self.get_settings().get('request_timeout', 15))

    def get_rate_limit(self, name: str, default: str = "100/hour") -> str:
        """Get a slowapi rate limit string by name"""
        return self.get_settings().get('rate_limits', {}).get(name, default)


# Global config instance
config = ConfigLoader()
