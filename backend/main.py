#!/usr/bin/env python3
"""
Rai Explorer Backend
FastAPI server for address resolution, search classification and chain info
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, validator
from typing import Dict, Optional
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

# Import our modules
import bech32_codec
from bech32_codec import Bech32Error
from address_classifier import SearchInputType, detect_search_input_type, get_address_type
from bech32_converter import (
    VALOPER_SUFFIX,
    Bech32Converter,
    account_prefix,
    evm_to_cosmos_address,
    evm_to_validator_address,
    get_alternate_address,
    parse_address,
    truncate_address,
)
from chain_info import ChainInfoService
from evm_rpc import EvmRpcClient
from wallet_session import WALLET_TYPES, connect_wallet, refresh_balance
from config_loader import config

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[config.get_rate_limit('default')],
    storage_uri="memory://"
)

# Initialize FastAPI
app = FastAPI(
    title="Rai Explorer API",
    description="Address resolution and search for a Cosmos/EVM block explorer",
    version="1.0.0"
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global chain info cache (holds the active bech32 prefix)
chain_service = ChainInfoService()


class WalletConnectRequest(BaseModel):
    """Wallet connection request"""
    address: str
    wallet_type: str

    @validator('wallet_type')
    def validate_wallet_type(cls, v):
        if v not in WALLET_TYPES:
            raise ValueError(f"wallet_type must be one of: {', '.join(WALLET_TYPES)}")
        return v

    @validator('address')
    def validate_address_length(cls, v):
        v = v.strip()
        if not v or len(v) > 128:
            raise ValueError('Invalid address length.')
        return v


async def get_active_prefix() -> str:
    """Bech32 prefix of the active chain"""
    info = await chain_service.get()
    return info.bech32_prefix


def search_route(query: str, input_type: SearchInputType) -> Optional[str]:
    """Frontend route to open for a classified search query"""
    if input_type == SearchInputType.BLOCK_HEIGHT:
        return f"/blocks/{query.lstrip('0')}"
    if input_type in (SearchInputType.TX_HASH, SearchInputType.EVM_TX_HASH):
        return f"/transactions/{query}"
    if input_type == SearchInputType.EVM_ADDRESS:
        return f"/addr/{query.lower()}"
    if input_type == SearchInputType.BECH32_ADDRESS:
        address = query.lower()
        hrp = address.rsplit('1', 1)[0]
        if VALOPER_SUFFIX in hrp:
            return f"/validators/{address}"
        return f"/addr/{address}"
    return None


@app.get("/")
async def root():
    return {"service": "rai-explorer", "docs": "/docs"}


@app.get("/api/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "chain_loaded": chain_service.is_loaded,
        "bech32_prefix": chain_service.get_bech32_prefix(),
    }


@app.get("/api/chain")
async def get_chain():
    """Active chain metadata"""
    info = await chain_service.get()
    return info.to_dict()


@app.post("/api/chain/refresh")
@limiter.limit(config.get_rate_limit('chain_refresh', '5/minute'))
async def refresh_chain(request: Request):
    """Drop cached chain info and detect it again"""
    chain_service.invalidate()
    info = await chain_service.get()
    logger.info(f"Chain info refreshed: {info.chain_id}")
    return info.to_dict()


@app.get("/api/search")
@limiter.limit(config.get_rate_limit('search', '120/minute'))
async def search(q: str, request: Request):
    """Classify a search query and tell the frontend where to go"""
    query = q.strip()
    input_type = detect_search_input_type(query)
    return {
        "query": query,
        "type": input_type.value,
        "route": search_route(query, input_type),
    }


@app.get("/api/address/{address}")
@limiter.limit(config.get_rate_limit('address', '120/minute'))
async def get_address(address: str, request: Request):
    """Both representations of an address plus display helpers"""
    prefix = await get_active_prefix()
    parsed = parse_address(address.strip(), prefix)
    if parsed.type == 'unknown':
        raise HTTPException(status_code=404, detail=f"Not a valid address: {address}")

    result: Dict = parsed.to_dict()
    result["entry_format"] = get_address_type(address.strip())
    result["alternate_address"] = get_alternate_address(address.strip(), prefix)
    result["truncated"] = {
        "evm": truncate_address(parsed.evm_address, 10, 6),
        "cosmos": truncate_address(parsed.cosmos_address, 10, 6),
    }

    result["account_address"] = None
    if parsed.is_validator:
        try:
            hrp, _ = bech32_codec.decode(parsed.cosmos_address)
            base = account_prefix(hrp)
            if base != hrp:
                result["account_address"] = Bech32Converter.convert_address(parsed.cosmos_address, base)
        except Bech32Error as e:
            logger.debug(f"No account address for {parsed.cosmos_address}: {e}")

    result["is_contract"] = None
    rpc_url = config.get_evm_rpc_endpoint()
    if rpc_url and not parsed.is_validator:
        async with EvmRpcClient(rpc_url, timeout=config.get_request_timeout()) as rpc:
            result["is_contract"] = await rpc.is_contract(parsed.evm_address)

    return result


@app.get("/api/address/{address}/chains")
@limiter.limit(config.get_rate_limit('address', '120/minute'))
async def get_address_chains(address: str, request: Request):
    """The same account rendered under every configured chain prefix"""
    addresses = Bech32Converter.get_all_chain_addresses(address.strip(), config.get_chain_prefixes())
    if not addresses:
        raise HTTPException(status_code=404, detail=f"Not a valid address: {address}")
    return {"address": address.strip(), "chains": addresses}


@app.get("/api/validator/{evm_address}")
@limiter.limit(config.get_rate_limit('address', '120/minute'))
async def get_validator_address(evm_address: str, request: Request):
    """Validator operator address for an EVM address"""
    prefix = await get_active_prefix()
    try:
        return {
            "evm_address": evm_address.lower(),
            "account_address": evm_to_cosmos_address(evm_address, prefix),
            "operator_address": evm_to_validator_address(evm_address, prefix),
        }
    except Bech32Error as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/convert")
@limiter.limit(config.get_rate_limit('address', '120/minute'))
async def convert(address: str, prefix: str, request: Request):
    """Re-encode a bech32 address under another prefix"""
    try:
        converted = Bech32Converter.convert_address(address.strip(), prefix.strip())
    except Bech32Error as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"address": address.strip(), "prefix": prefix.strip(), "converted": converted}


@app.post("/api/wallet/connect")
@limiter.limit(config.get_rate_limit('wallet', '30/minute'))
async def wallet_connect(req: WalletConnectRequest, request: Request):
    """Derive the counterpart address for a connected wallet"""
    prefix = await get_active_prefix()
    try:
        session = connect_wallet(req.address, req.wallet_type, prefix)
    except Bech32Error as e:
        logger.warning(f"Wallet connect rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    rpc_url = config.get_evm_rpc_endpoint()
    if rpc_url:
        async with EvmRpcClient(rpc_url, timeout=config.get_request_timeout()) as rpc:
            await refresh_balance(session, rpc)

    return session.to_dict()


@app.on_event("startup")
async def startup_event():
    """Run on startup"""
    logger.info("🚀 Starting Rai Explorer API...")
    info = await chain_service.get()
    logger.info(f"✅ Active chain: {info.chain_name} ({info.chain_id}), prefix '{info.bech32_prefix}'")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on shutdown"""
    logger.info("👋 Shutting down Rai Explorer API...")


if __name__ == "__main__":
    import uvicorn
    import os
    # Use PORT from environment or default to 8000
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
