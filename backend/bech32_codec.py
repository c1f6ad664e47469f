#!/usr/bin/env python3
"""
Bech32 Codec
Encodes and decodes bech32 strings (BIP-173 checksum, Cosmos-SDK style addresses)

The checksum and bit regrouping come from the `bech32` package; this module
adds the address-level checks and turns its None results into typed errors.
The classifier and the converter both go through here.
"""
from typing import Iterable, List, Tuple

from bech32 import CHARSET, bech32_encode, bech32_verify_checksum
from bech32 import convertbits as _convertbits

CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}
SEPARATOR = "1"
CHECKSUM_LENGTH = 6


class Bech32Error(ValueError):
    """Base class for every bech32 / address conversion failure"""


class InvalidCharset(Bech32Error):
    """Character outside the 32-symbol alphabet (or mixed case)"""


class InvalidSeparator(Bech32Error):
    """Missing or misplaced '1' separator"""


class InvalidChecksum(Bech32Error):
    """Polymod residue is not 1"""


class InvalidPadding(Bech32Error):
    """Bit regrouping left nonzero or excess padding bits"""


class InvalidLength(Bech32Error):
    """Decoded payload has the wrong length for an address"""


class InvalidHrp(Bech32Error):
    """Bad human-readable part, or not the expected one"""


class InvalidInput(Bech32Error):
    """Malformed input on the EVM (hex) side"""


def convertbits(data: Iterable[int], frombits: int, tobits: int, pad: bool = True) -> List[int]:
    """
    General power-of-2 base conversion

    Raises:
        InvalidCharset: an input value does not fit in frombits
        InvalidPadding: pad is False and the leftover bits are not clean zero padding
    """
    data = list(data)
    for value in data:
        if value < 0 or (value >> frombits):
            raise InvalidCharset(f"Value {value} does not fit in {frombits} bits")

    converted = _convertbits(data, frombits, tobits, pad)
    if converted is None:
        raise InvalidPadding(f"Invalid padding when converting {frombits}-bit groups to {tobits}-bit groups")
    return converted


def _check_hrp(hrp: str) -> None:
    if not hrp:
        raise InvalidHrp("Empty human-readable part")
    if any(ord(c) < 33 or ord(c) > 126 for c in hrp):
        raise InvalidHrp(f"Human-readable part has characters out of range: {hrp!r}")
    if hrp.lower() != hrp and hrp.upper() != hrp:
        raise InvalidHrp(f"Mixed-case human-readable part: {hrp!r}")


def split_address(address: str) -> Tuple[str, List[int]]:
    """
    Split a bech32 string into its HRP and 5-bit values (checksum included)

    Mixed-case strings are rejected; an all-uppercase string is normalised to
    lowercase. The checksum is not verified and no bits are unpacked.
    """
    if address.lower() != address and address.upper() != address:
        raise InvalidCharset(f"Mixed-case bech32 string: {address}")
    address = address.lower()

    pos = address.rfind(SEPARATOR)
    if pos == -1:
        raise InvalidSeparator(f"No separator character in {address}")
    if pos == 0:
        raise InvalidSeparator(f"Empty human-readable part in {address}")
    if pos + CHECKSUM_LENGTH + 1 > len(address):
        raise InvalidSeparator(f"Too short checksum in {address}")

    hrp = address[:pos]
    _check_hrp(hrp)

    values = []
    for char in address[pos + 1:]:
        if char not in CHARSET_REV:
            raise InvalidCharset(f"Invalid data character {char!r} in {address}")
        values.append(CHARSET_REV[char])
    return hrp, values


def encode(hrp: str, payload: bytes) -> str:
    """
    Encode a byte payload under a human-readable part

    Example:
        encode('cosmos', bytes(20)) -> 'cosmos1qqqq...'
    """
    _check_hrp(hrp)
    hrp = hrp.lower()
    return bech32_encode(hrp, convertbits(payload, 8, 5, True))


def decode(address: str) -> Tuple[str, bytes]:
    """
    Decode a bech32 string to (hrp, payload)

    The payload length is not checked; callers that need a 20-byte account
    identity check it themselves.
    """
    hrp, values = split_address(address)
    if not bech32_verify_checksum(hrp, values):
        raise InvalidChecksum(f"Invalid checksum for {address}")
    payload = convertbits(values[:-CHECKSUM_LENGTH], 5, 8, False)
    return hrp, bytes(payload)
