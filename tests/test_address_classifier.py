import pytest

from bech32_codec import encode
from address_classifier import (
    SearchInputType,
    detect_search_input_type,
    get_address_type,
    is_block_height,
    is_cosmos_address,
    is_evm_address,
    is_valid_address,
    is_valid_bech32_address,
)


class TestIsEvmAddress:

    def test_lowercase(self, evm_address):
        assert is_evm_address(evm_address)

    def test_mixed_case_accepted_without_eip55(self):
        assert is_evm_address("0x" + "aBcDeF0123" * 4)

    @pytest.mark.parametrize("address", [
        "0x" + "a" * 39,
        "0x" + "a" * 41,
        "0X" + "a" * 40,
        "a" * 42,
        "0x" + "g" * 40,
        "0x" + "a" * 40 + "\n",
        " 0x" + "a" * 40,
        "",
        None,
    ])
    def test_rejects(self, address):
        assert not is_evm_address(address)


class TestIsCosmosAddress:

    def test_valid(self, rai_address):
        assert is_cosmos_address(rai_address)

    def test_expected_prefix(self, rai_address):
        assert is_cosmos_address(rai_address, "rai")
        assert not is_cosmos_address(rai_address, "cosmos")

    def test_validator_prefix(self, raivaloper_address):
        assert is_cosmos_address(raivaloper_address)
        assert is_cosmos_address(raivaloper_address, "raivaloper")

    def test_bad_checksum(self, corrupted_rai_address):
        assert not is_cosmos_address(corrupted_rai_address)

    def test_wrong_payload_length(self):
        assert not is_cosmos_address(encode("rai", bytes(32)))
        assert not is_cosmos_address(encode("rai", bytes(19)))

    @pytest.mark.parametrize("address", ["", None, "pzry9x0s0muk", "hello world", "A12UEL5L"])
    def test_garbage(self, address):
        assert not is_cosmos_address(address)


class TestIsValidBech32Address:

    def test_valid(self, rai_address):
        assert is_valid_bech32_address(rai_address)

    def test_uppercase_accepted(self, rai_address):
        assert is_valid_bech32_address(rai_address.upper())

    def test_mixed_case_rejected(self, rai_address):
        assert not is_valid_bech32_address(rai_address[:5] + rai_address[5:].upper())

    def test_bad_checksum(self, corrupted_rai_address):
        assert not is_valid_bech32_address(corrupted_rai_address)

    def test_too_short_for_an_address(self):
        assert not is_valid_bech32_address("a12uel5l")

    def test_digits_in_hrp_fail_format_filter(self):
        assert not is_valid_bech32_address(encode("rai2", bytes(20)))

    def test_character_outside_charset(self, rai_address):
        assert not is_valid_bech32_address(rai_address[:-1] + "b")


def test_is_valid_address(evm_address, rai_address, corrupted_rai_address):
    assert is_valid_address(evm_address)
    assert is_valid_address(rai_address)
    assert not is_valid_address(corrupted_rai_address)


class TestGetAddressType:

    def test_cosmos(self, rai_address):
        assert get_address_type(rai_address) == 'cosmos'

    def test_evm(self, evm_address):
        assert get_address_type(evm_address) == 'evm'

    @pytest.mark.parametrize("address", ["", None, "123", "0x" + "a" * 64])
    def test_none(self, address):
        assert get_address_type(address) is None

    def test_lighter_than_checksum_validation(self, corrupted_rai_address):
        assert get_address_type(corrupted_rai_address) == 'cosmos'
        assert not is_valid_bech32_address(corrupted_rai_address)


class TestDetectSearchInputType:

    def test_block_height(self):
        assert detect_search_input_type("123456") == SearchInputType.BLOCK_HEIGHT

    def test_block_height_is_trimmed(self):
        assert detect_search_input_type("  42 \n") == SearchInputType.BLOCK_HEIGHT

    def test_zero_is_not_a_block(self):
        assert detect_search_input_type("0") == SearchInputType.UNKNOWN

    def test_evm_tx_hash(self):
        assert detect_search_input_type("0x" + "a" * 64) == SearchInputType.EVM_TX_HASH

    def test_evm_address(self):
        assert detect_search_input_type("0x" + "a" * 40) == SearchInputType.EVM_ADDRESS

    def test_cosmos_tx_hash(self):
        assert detect_search_input_type("A" * 64) == SearchInputType.TX_HASH
        assert detect_search_input_type("0123456789abcdef" * 4) == SearchInputType.TX_HASH

    def test_all_digit_hash_is_a_block_height(self):
        assert detect_search_input_type("1" * 64) == SearchInputType.BLOCK_HEIGHT

    def test_very_long_digit_string(self):
        assert detect_search_input_type("1" * 5000) == SearchInputType.BLOCK_HEIGHT
        assert detect_search_input_type("0" * 5000) == SearchInputType.UNKNOWN

    def test_bech32_address(self, rai_address):
        assert detect_search_input_type(rai_address) == SearchInputType.BECH32_ADDRESS

    def test_corrupted_bech32(self, corrupted_rai_address):
        assert detect_search_input_type(corrupted_rai_address) == SearchInputType.UNKNOWN

    @pytest.mark.parametrize("query", ["", "   ", "hello", "0x" + "a" * 63])
    def test_unknown(self, query):
        assert detect_search_input_type(query) == SearchInputType.UNKNOWN

    def test_values_are_plain_strings(self):
        assert SearchInputType.EVM_ADDRESS == 'evm_address'


def test_is_block_height():
    assert is_block_height("1")
    assert not is_block_height("0")
    assert not is_block_height("-1")
    assert not is_block_height("1.5")
    assert is_block_height("007")
    assert not is_block_height("000")
