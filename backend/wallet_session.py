#!/usr/bin/env python3
"""
Wallet Session
Derives the counterpart address for a connected wallet

An EVM wallet (MetaMask etc.) hands us a hex address, a Keplr-style wallet
hands us a bech32 address. The explorer shows and links both, so whichever one
we get, the other is computed from the same 20 bytes.
"""
import logging
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from bech32_codec import InvalidHrp, InvalidInput
from address_classifier import is_cosmos_address
from bech32_converter import cosmos_to_evm_address, evm_to_cosmos_address
from evm_rpc import EvmRpcClient

logger = logging.getLogger(__name__)

WALLET_TYPES = ('evm', 'keplr')


@dataclass
class WalletSession:
    """A connected wallet with both of its address forms"""
    wallet_type: str          # 'evm' or 'keplr'
    evm_address: str          # 0x + 40 lowercase hex
    cosmos_address: str       # bech32 under the active prefix
    balance: Optional[int] = None  # native balance in base units, if fetched

    def to_dict(self) -> Dict:
        return asdict(self)


def connect_wallet(address: str, wallet_type: str, prefix: str) -> WalletSession:
    """
    Build a session from the wallet's native address

    Raises:
        InvalidInput: unknown wallet type, or an address the wallet type cannot have
        InvalidHrp: Keplr address under a different prefix than the active chain
    """
    if wallet_type not in WALLET_TYPES:
        raise InvalidInput(f"Unknown wallet type: {wallet_type}")

    address = address.strip()
    if wallet_type == 'evm':
        session = WalletSession(
            wallet_type='evm',
            evm_address=address.lower(),
            cosmos_address=evm_to_cosmos_address(address, prefix),
        )
    else:
        if is_cosmos_address(address) and not is_cosmos_address(address, prefix):
            hrp = address.lower().rsplit('1', 1)[0]
            raise InvalidHrp(f"Invalid address prefix. Expected {prefix}, got {hrp}")
        session = WalletSession(
            wallet_type='keplr',
            evm_address=cosmos_to_evm_address(address),
            cosmos_address=address.lower(),
        )

    logger.info(f"Wallet connected ({wallet_type}): {session.cosmos_address}")
    return session


async def refresh_balance(session: WalletSession, rpc: EvmRpcClient) -> WalletSession:
    """Fetch the native balance through EVM JSON-RPC using the hex address"""
    session.balance = await rpc.get_balance(session.evm_address)
    return session
