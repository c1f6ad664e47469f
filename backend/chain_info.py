#!/usr/bin/env python3
"""
Chain Info
Detects the active chain (ID, denom, decimals, bech32 prefix) from the node and caches it

The address converter never reads this module; request handlers ask for the
prefix here and pass it in explicitly.
"""
import asyncio
import aiohttp
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, Optional

from config_loader import config, DEFAULT_BECH32_PREFIX

logger = logging.getLogger(__name__)

LATEST_BLOCK_PATH = "/cosmos/base/tendermint/v1beta1/blocks/latest"
TXS_PATH = "/cosmos/tx/v1beta1/txs"
BECH32_PREFIX_PATH = "/cosmos/auth/v1beta1/bech32"


@dataclass
class ChainInfo:
    """Active chain metadata"""
    chain_id: str
    chain_name: str
    base_denom: str
    display_denom: str
    decimals: int
    bech32_prefix: str
    features: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return asdict(self)


def default_chain_info() -> ChainInfo:
    """Fallback used when detection fails"""
    return ChainInfo(
        chain_id='unknown',
        chain_name='Unknown Network',
        base_denom='unknown',
        display_denom='UNKNOWN',
        decimals=6,
        bech32_prefix=DEFAULT_BECH32_PREFIX,
        features={'evm': False, 'ibc': True, 'wasm': False},
    )


def auto_detect_display_denom(base_denom: str) -> str:
    """'arai' -> 'RAI', 'uatom' -> 'ATOM'"""
    if base_denom.startswith('a') or base_denom.startswith('u'):
        return base_denom[1:].upper()
    return base_denom.upper()


def auto_detect_decimals(base_denom: str) -> int:
    if base_denom.startswith('a'):
        return 18  # atto
    if base_denom.startswith('u'):
        return 6   # micro
    return 0


class ChainInfoService:
    """
    Process-wide cache of the active chain's metadata

    USAGE:
    service = ChainInfoService('https://rest.example.org')
    info = await service.get()
    prefix = service.get_bech32_prefix()
    """

    def __init__(self, rest_endpoint: Optional[str] = None, timeout: Optional[float] = None):
        self.rest_endpoint = (rest_endpoint or config.get_rest_endpoint() or '').rstrip('/')
        self.timeout = timeout if timeout is not None else config.get_request_timeout()
        self._cached: Optional[ChainInfo] = None
        self._lock = asyncio.Lock()

    async def get(self) -> ChainInfo:
        """Return cached chain info, detecting it on first use"""
        if self._cached:
            return self._cached

        async with self._lock:
            if self._cached:
                return self._cached
            try:
                info = await self._detect()
            except Exception as e:
                logger.error(f"Failed to detect chain info: {e}")
                return default_chain_info()

            self._cached = info
            logger.info(f"Detected chain {info.chain_id} (prefix {info.bech32_prefix}, denom {info.base_denom})")
            return info

    @property
    def is_loaded(self) -> bool:
        return self._cached is not None

    def get_bech32_prefix(self) -> str:
        """Cached bech32 prefix, or 'cosmos' if chain info has not loaded yet"""
        if self._cached and self._cached.bech32_prefix:
            return self._cached.bech32_prefix
        return DEFAULT_BECH32_PREFIX

    def invalidate(self):
        """Drop cached chain info (chain switch, tests)"""
        self._cached = None

    async def _detect(self) -> ChainInfo:
        if not self.rest_endpoint:
            raise RuntimeError("No REST endpoint configured")

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={'User-Agent': 'RaiExplorer-ChainInfo/1.0'}
        ) as session:
            latest = await self._fetch_json(session, LATEST_BLOCK_PATH)
            if latest is None:
                raise RuntimeError("Could not fetch latest block")

            header = (latest.get('block') or latest.get('sdk_block') or {}).get('header', {})
            chain_id = header.get('chain_id') or header.get('chainId') or 'unknown'
            chain_config = config.get_chain_config(chain_id)

            base_denom = chain_config.get('native_denom')
            detected_denom = await self._detect_fee_denom(session)
            if detected_denom:
                base_denom = detected_denom

            prefix = chain_config.get('bech32_prefix')
            if not prefix:
                prefix = await self._detect_bech32_prefix(session)

        return ChainInfo(
            chain_id=chain_id,
            chain_name=chain_config.get('name', f"Chain {chain_id}"),
            base_denom=base_denom,
            display_denom=chain_config.get('native_symbol') or auto_detect_display_denom(base_denom),
            decimals=chain_config.get('decimals') or auto_detect_decimals(base_denom),
            bech32_prefix=prefix or DEFAULT_BECH32_PREFIX,
            features=chain_config.get('features', {}),
        )

    async def _detect_fee_denom(self, session: aiohttp.ClientSession) -> Optional[str]:
        """Denom of the first fee in the most recent transaction, if any"""
        data = await self._fetch_json(session, TXS_PATH, params={
            'query': 'tx.height>0',
            'pagination.limit': '1',
            'order_by': 'ORDER_BY_DESC',
        })
        if not data:
            return None
        try:
            return data['txs'][0]['auth_info']['fee']['amount'][0]['denom']
        except (KeyError, IndexError, TypeError):
            return None

    async def _detect_bech32_prefix(self, session: aiohttp.ClientSession) -> Optional[str]:
        data = await self._fetch_json(session, BECH32_PREFIX_PATH)
        if not data:
            return None
        return data.get('bech32_prefix')

    async def _fetch_json(self, session: aiohttp.ClientSession, path: str, params: Optional[Dict] = None) -> Optional[Dict]:
        """GET a REST path, returning parsed JSON or None"""
        url = f"{self.rest_endpoint}{path}"
        try:
            async with session.get(url, params=params) as response:
                if response.status == 200:
                    return await response.json()
                logger.warning(f"REST API error {response.status} for {url}")
                return None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to fetch {url}: {e}")
            return None
