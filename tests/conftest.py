import pytest

from bech32_codec import encode

ACCOUNT_BYTES = bytes.fromhex("9f2c7b6a1e4d3c2b1a0918273645546372819a0b")


@pytest.fixture
def account_bytes():
    return ACCOUNT_BYTES


@pytest.fixture
def evm_address():
    return "0x" + ACCOUNT_BYTES.hex()


@pytest.fixture
def rai_address():
    return encode("rai", ACCOUNT_BYTES)


@pytest.fixture
def raivaloper_address():
    return encode("raivaloper", ACCOUNT_BYTES)


@pytest.fixture
def corrupted_rai_address(rai_address):
    """Well-formed but with the last checksum character changed"""
    last = rai_address[-1]
    replacement = 'q' if last != 'q' else 'p'
    return rai_address[:-1] + replacement
