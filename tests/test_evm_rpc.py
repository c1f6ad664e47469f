import asyncio

import pytest

from evm_rpc import EvmRpcClient, EvmRpcError


def make_client(result=None, error=None):
    client = EvmRpcClient("http://evm.test")
    client.requests = []

    async def fake_call(method, params):
        client.requests.append((method, params))
        if error:
            raise error
        return result

    client.call = fake_call
    return client


@pytest.mark.parametrize("code, expected", [
    ('0x', False),
    ('0x0', False),
    (None, False),
    ('0x6080604052', True),
])
def test_is_contract(evm_address, code, expected):
    client = make_client(result=code)
    assert asyncio.run(client.is_contract(evm_address)) is expected
    assert client.requests == [('eth_getCode', [evm_address, 'latest'])]


def test_is_contract_rpc_failure(evm_address):
    client = make_client(error=EvmRpcError("boom"))
    assert asyncio.run(client.is_contract(evm_address)) is False


def test_is_contract_skips_invalid_address():
    client = make_client(result='0x6080')
    assert asyncio.run(client.is_contract("rai1xyz")) is False
    assert client.requests == []


def test_get_balance(evm_address):
    client = make_client(result='0x10')
    assert asyncio.run(client.get_balance(evm_address)) == 16


@pytest.mark.parametrize("result, error", [
    (None, None),
    ('not-hex', None),
    (None, EvmRpcError("down")),
])
def test_get_balance_failures(evm_address, result, error):
    client = make_client(result=result, error=error)
    assert asyncio.run(client.get_balance(evm_address)) is None
