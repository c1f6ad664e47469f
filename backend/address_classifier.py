#!/usr/bin/env python3
"""
Address Classifier
Decides what kind of address / hash / block reference a string is

Everything here is lenient: garbage input returns False / None / UNKNOWN,
never an exception, so it is safe to call straight from request handlers.
"""
import logging
import re
from enum import Enum
from typing import Optional

import bech32_codec
from bech32_codec import Bech32Error

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 20  # bytes in an account / validator key hash

EVM_ADDRESS_RE = re.compile(r'^0x[a-fA-F0-9]{40}$')
EVM_TX_HASH_RE = re.compile(r'^0x[a-fA-F0-9]{64}$')
TX_HASH_RE = re.compile(r'^[a-fA-F0-9]{64}$')
BLOCK_HEIGHT_RE = re.compile(r'^[0-9]+$')

# 32 data chars + 6 checksum chars for a 20-byte payload
BECH32_FORMAT_RE = re.compile(r'^[a-z]+1[' + bech32_codec.CHARSET + r']{38,}$')

# Format only, no checksum; used where a quick decision is enough
COSMOS_SHAPE_RE = re.compile(r'^[a-z]+1[a-z0-9]{38,}$')


class SearchInputType(str, Enum):
    """What a search box query looks like"""
    BLOCK_HEIGHT = 'block_height'
    EVM_TX_HASH = 'evm_tx_hash'
    EVM_ADDRESS = 'evm_address'
    TX_HASH = 'tx_hash'
    BECH32_ADDRESS = 'bech32_address'
    UNKNOWN = 'unknown'


def is_evm_address(address: str) -> bool:
    """Check if a string is a 0x-prefixed 20-byte hex address (no EIP-55 check)"""
    if not address or not isinstance(address, str):
        return False
    return EVM_ADDRESS_RE.fullmatch(address) is not None


def is_cosmos_address(address: str, expected_prefix: Optional[str] = None) -> bool:
    """
    Check if a string is a checksum-valid bech32 address with a 20-byte payload

    Args:
        address: candidate bech32 string
        expected_prefix: if given, the HRP must match exactly
    """
    if not address or not isinstance(address, str):
        return False
    try:
        hrp, payload = bech32_codec.decode(address)
    except Bech32Error as e:
        logger.debug(f"Not a bech32 address {address!r}: {e}")
        return False

    if expected_prefix and hrp != expected_prefix:
        return False
    return len(payload) == ADDRESS_LENGTH


def is_valid_bech32_address(address: str) -> bool:
    """
    Validate untrusted bech32 input with full checksum verification

    A regex pre-filter rejects obviously malformed strings before the
    checksum is evaluated. No bit unpacking is done.
    """
    if not address or not isinstance(address, str):
        return False
    if address.lower() != address and address.upper() != address:
        return False

    lower = address.lower()
    if not BECH32_FORMAT_RE.fullmatch(lower):
        return False

    try:
        hrp, values = bech32_codec.split_address(lower)
    except Bech32Error:
        return False
    return bech32_codec.bech32_verify_checksum(hrp, values)


def is_valid_address(address: str) -> bool:
    """EVM hex address or checksum-valid bech32 address"""
    return is_evm_address(address) or is_valid_bech32_address(address)


def get_address_type(address: str) -> Optional[str]:
    """
    Quick 'cosmos' / 'evm' / None classification from format alone

    Does not verify the bech32 checksum, so a well-formed but corrupted
    address still comes back as 'cosmos'.
    """
    if not address or not isinstance(address, str):
        return None
    if COSMOS_SHAPE_RE.fullmatch(address):
        return 'cosmos'
    if EVM_ADDRESS_RE.fullmatch(address):
        return 'evm'
    return None


def is_block_height(value: str) -> bool:
    return bool(BLOCK_HEIGHT_RE.fullmatch(value)) and value.strip('0') != ''


def is_valid_tx_hash(value: str) -> bool:
    return bool(TX_HASH_RE.fullmatch(value))


def is_valid_evm_tx_hash(value: str) -> bool:
    return bool(EVM_TX_HASH_RE.fullmatch(value))


def detect_search_input_type(query: str) -> SearchInputType:
    """
    Detect the type of a search query

    Order matters: block height > EVM tx hash > EVM address > tx hash >
    bech32 address. A 0x + 64 hex string must hit the tx hash check before
    the address check, and a bare 64 hex string is only a Cosmos tx hash
    once the 0x forms are ruled out.
    """
    if not query:
        return SearchInputType.UNKNOWN
    trimmed = query.strip()

    if is_block_height(trimmed):
        return SearchInputType.BLOCK_HEIGHT
    if is_valid_evm_tx_hash(trimmed):
        return SearchInputType.EVM_TX_HASH
    if is_evm_address(trimmed):
        return SearchInputType.EVM_ADDRESS
    if is_valid_tx_hash(trimmed):
        return SearchInputType.TX_HASH
    if is_valid_bech32_address(trimmed):
        return SearchInputType.BECH32_ADDRESS

    return SearchInputType.UNKNOWN
