from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3

from gauge_unstaker.core.config import get_rpc_urls, get_wallet_rpc_url


def _default_rpc_headers() -> dict[str, str]:
    return AsyncHTTPProvider.get_request_headers()


def _get_rpcs_for_chain_id(chain_id: int) -> list:
    mapping = get_rpc_urls()
    rpcs = mapping.get(str(chain_id))
    if rpcs is None:
        rpcs = mapping.get(chain_id)  # allow int keys
    if rpcs is None:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    if isinstance(rpcs, str):
        return [rpcs]
    return rpcs


def _get_web3(rpc: str) -> AsyncWeb3:
    provider = AsyncHTTPProvider(
        rpc, request_kwargs={"headers": _default_rpc_headers()}
    )
    return AsyncWeb3(provider)


def get_transaction_chain_id(transaction: dict) -> int:
    if "chainId" not in transaction:
        raise ValueError("Transaction does not contain chainId")
    return int(transaction["chainId"])


def get_web3s_from_chain_id(chain_id: int) -> list[AsyncWeb3]:
    rpcs = _get_rpcs_for_chain_id(chain_id)
    return [_get_web3(rpc) for rpc in rpcs]


@asynccontextmanager
async def web3s_from_chain_id(chain_id: int):
    web3s = get_web3s_from_chain_id(chain_id)
    try:
        yield web3s
    finally:
        for web3 in web3s:
            await web3.provider.disconnect()


@asynccontextmanager
async def web3_from_chain_id(chain_id: int):
    web3s = get_web3s_from_chain_id(chain_id)
    try:
        yield web3s[0]
    finally:
        await web3s[0].provider.disconnect()


@asynccontextmanager
async def wallet_web3(rpc_url: str | None = None):
    """Client for an external wallet that signs and sends on our behalf."""
    url = rpc_url or get_wallet_rpc_url()
    if not url:
        raise ValueError("No wallet RPC URL configured")
    logger.debug(f"Connecting to wallet RPC {url}")
    web3 = _get_web3(url)
    try:
        yield web3
    finally:
        await web3.provider.disconnect()


async def rpc_request(web3: AsyncWeb3, method: str, params: list[Any]) -> Any:
    return await web3.manager.coro_request(method, params)
