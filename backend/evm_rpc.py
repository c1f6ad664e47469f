#!/usr/bin/env python3
"""
EVM JSON-RPC Client
Minimal eth_* calls the explorer needs: contract detection and native balance
"""
import asyncio
import aiohttp
import logging
from typing import Any, List, Optional

from address_classifier import is_evm_address

logger = logging.getLogger(__name__)

EMPTY_CODE = {None, '', '0x', '0x0'}


class EvmRpcError(Exception):
    """JSON-RPC call returned an error object or a bad response"""


class EvmRpcClient:
    """
    Async JSON-RPC client

    USAGE:
    async with EvmRpcClient('https://evm.example.org') as rpc:
        contract = await rpc.is_contract('0x...')
    """

    def __init__(self, rpc_url: str, timeout: float = 15.0):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.session = None  # aiohttp session (lazy loaded)
        self._request_id = 0

    async def __aenter__(self):
        """Async context manager entry"""
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={'Content-Type': 'application/json'}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        if self.session:
            await self.session.close()

    async def call(self, method: str, params: List[Any]) -> Any:
        """
        Send one JSON-RPC request and return its result

        Raises:
            EvmRpcError: HTTP failure, malformed response, or an RPC error object
        """
        self._request_id += 1
        payload = {'jsonrpc': '2.0', 'method': method, 'params': params, 'id': self._request_id}

        try:
            async with self.session.post(self.rpc_url, json=payload) as response:
                if response.status != 200:
                    raise EvmRpcError(f"{method} failed with HTTP {response.status}")
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EvmRpcError(f"{method} request failed: {e}") from e

        if not isinstance(data, dict):
            raise EvmRpcError(f"{method} returned a non-object response")
        if data.get('error'):
            raise EvmRpcError(f"{method} error: {data['error']}")
        return data.get('result')

    async def get_code(self, address: str) -> Optional[str]:
        return await self.call('eth_getCode', [address, 'latest'])

    async def is_contract(self, address: str) -> bool:
        """True if the address has deployed code; any failure counts as an EOA"""
        if not is_evm_address(address):
            return False
        try:
            code = await self.get_code(address)
        except EvmRpcError as e:
            logger.warning(f"Contract check failed for {address}: {e}")
            return False
        return code not in EMPTY_CODE

    async def get_balance(self, address: str) -> Optional[int]:
        """Native balance in base units, or None if it could not be fetched"""
        if not is_evm_address(address):
            return None
        try:
            result = await self.call('eth_getBalance', [address, 'latest'])
        except EvmRpcError as e:
            logger.warning(f"Balance lookup failed for {address}: {e}")
            return None
        if not result:
            return None
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            logger.warning(f"Unparseable balance {result!r} for {address}")
            return None
