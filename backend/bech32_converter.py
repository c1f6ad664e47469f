#!/usr/bin/env python3
"""
Bech32 Address Converter
Converts between EVM hex addresses and bech32 addresses of the same account key

The prefix (HRP) is always passed in by the caller; nothing in here reads
chain state.
"""
import logging
from dataclasses import dataclass, asdict
from typing import Dict, Optional

import bech32_codec
from bech32_codec import Bech32Error, InvalidInput, InvalidLength
from address_classifier import (
    ADDRESS_LENGTH,
    get_address_type,
    is_cosmos_address,
    is_evm_address,
)

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = 'rai'
VALOPER_SUFFIX = 'valoper'


@dataclass
class ParsedAddress:
    """Both representations of one account, as shown on address pages"""
    type: str                      # 'evm', 'cosmos' or 'unknown'
    evm_address: Optional[str]     # 0x + 40 lowercase hex
    cosmos_address: Optional[str]  # bech32, lowercase
    is_validator: bool             # HRP carries the valoper suffix

    def to_dict(self) -> Dict:
        return asdict(self)


def account_prefix(hrp: str) -> str:
    """Strip the valoper suffix from an HRP ('raivaloper' -> 'rai')"""
    if hrp.endswith(VALOPER_SUFFIX) and len(hrp) > len(VALOPER_SUFFIX):
        return hrp[:-len(VALOPER_SUFFIX)]
    return hrp


def evm_to_cosmos_address(evm_address: str, prefix: str = DEFAULT_PREFIX) -> str:
    """
    Convert an EVM hex address to bech32 under the given prefix

    Raises:
        InvalidInput: not a 0x + 40 hex address
        InvalidHrp: unusable prefix
    """
    if not is_evm_address(evm_address):
        raise InvalidInput(f"Invalid EVM address: {evm_address}")

    address_bytes = bytes.fromhex(evm_address[2:])
    return bech32_codec.encode(prefix, address_bytes)


def cosmos_to_evm_address(cosmos_address: str) -> str:
    """
    Convert a bech32 address to 0x-prefixed lowercase hex

    Raises:
        InvalidInput: not a checksum-valid bech32 address with a 20-byte payload
    """
    if not is_cosmos_address(cosmos_address):
        raise InvalidInput(f"Invalid Cosmos address: {cosmos_address}")

    _, address_bytes = bech32_codec.decode(cosmos_address)
    return '0x' + address_bytes.hex()


def evm_to_validator_address(evm_address: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Convert an EVM hex address to the validator operator form (prefix + 'valoper')"""
    return evm_to_cosmos_address(evm_address, f"{prefix}{VALOPER_SUFFIX}")


def parse_address(address: str, prefix: str = DEFAULT_PREFIX) -> ParsedAddress:
    """
    Detect the address type and return both representations

    Never raises; anything unrecognised comes back as type 'unknown'.
    """
    try:
        if is_evm_address(address):
            return ParsedAddress(
                type='evm',
                evm_address=address.lower(),
                cosmos_address=evm_to_cosmos_address(address, prefix),
                is_validator=False,
            )

        if is_cosmos_address(address):
            hrp, _ = bech32_codec.decode(address)
            return ParsedAddress(
                type='cosmos',
                evm_address=cosmos_to_evm_address(address),
                cosmos_address=address.lower(),
                is_validator=VALOPER_SUFFIX in hrp,
            )
    except Bech32Error as e:
        logger.debug(f"Could not parse address {address!r}: {e}")

    return ParsedAddress(type='unknown', evm_address=None, cosmos_address=None, is_validator=False)


def get_alternate_address(address: str, prefix: str = DEFAULT_PREFIX) -> Optional[str]:
    """
    Get the other representation of an address (hex <-> bech32)

    Uses the format-only classifier; returns None when the conversion fails.
    """
    address_type = get_address_type(address)
    try:
        if address_type == 'cosmos':
            return cosmos_to_evm_address(address)
        if address_type == 'evm':
            return evm_to_cosmos_address(address, prefix)
    except Bech32Error as e:
        logger.debug(f"No alternate address for {address}: {e}")
    return None


def truncate_address(address: str, start_chars: int = 6, end_chars: int = 4) -> str:
    """Shorten an address for display ('rai1qy...x7k2')"""
    if not address:
        return ''
    if len(address) <= start_chars + end_chars + 3:
        return address
    return f"{address[:start_chars]}...{address[-end_chars:]}"


class Bech32Converter:
    """Re-encode the same 20-byte account under other bech32 prefixes"""

    @staticmethod
    def decode_address(address: str) -> bytes:
        """
        Decode a bech32 address to its 20 raw bytes

        Raises:
            Bech32Error: checksum / format failure, or InvalidLength for a non-20-byte payload
        """
        _, data = bech32_codec.decode(address)
        if len(data) != ADDRESS_LENGTH:
            raise InvalidLength(f"Expected {ADDRESS_LENGTH}-byte payload, got {len(data)} in {address}")
        return data

    @classmethod
    def convert_address(cls, address: str, new_prefix: str) -> str:
        """
        Convert an address to a different chain prefix

        Example:
            convert_address('cosmos1abc...', 'osmo') -> 'osmo1abc...'
        """
        data = cls.decode_address(address)
        return bech32_codec.encode(new_prefix, data)

    @classmethod
    def get_all_chain_addresses(cls, address: str, chain_prefixes: Dict[str, str]) -> Dict[str, str]:
        """
        Render an address under every given chain prefix

        Args:
            address: bech32 or EVM hex address
            chain_prefixes: chain ID -> bech32 prefix

        Returns:
            chain ID -> converted address; empty if the address is not valid
        """
        try:
            if is_evm_address(address):
                data = bytes.fromhex(address[2:])
            else:
                data = cls.decode_address(address)
        except Bech32Error as e:
            logger.error(f"Could not decode address {address}: {e}")
            return {}

        all_addresses = {}
        for chain_id, prefix in chain_prefixes.items():
            try:
                all_addresses[chain_id] = bech32_codec.encode(prefix, data)
                logger.debug(f"Converted to {chain_id}: {all_addresses[chain_id]}")
            except Bech32Error as e:
                logger.warning(f"Failed to convert address to {chain_id}: {e}")

        return all_addresses

    @staticmethod
    def detect_chain(address: str, chain_prefixes: Dict[str, str]) -> Optional[str]:
        """Find the chain ID whose prefix (account or valoper) matches the address HRP"""
        try:
            hrp, _ = bech32_codec.decode(address)
        except Bech32Error:
            return None

        base = account_prefix(hrp)
        for chain_id, prefix in chain_prefixes.items():
            if base == prefix:
                return chain_id
        return None
