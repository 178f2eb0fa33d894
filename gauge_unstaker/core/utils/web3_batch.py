from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

Web3CallFactory = Callable[[], Awaitable[Any]]


async def batch_web3_calls(
    web3: AsyncWeb3,
    *call_factories: Web3CallFactory,
    fallback_to_gather: bool = True,
) -> tuple[Any, ...]:
    """
    Execute several contract reads as one JSON-RPC batch when the RPC supports it.

    Usage:
        earned, uri = await batch_web3_calls(
            web3,
            lambda: gauge.functions.earned(depositor, token_id).call(),
            lambda: nfpm.functions.tokenURI(token_id).call(),
        )

    Results come back in factory order. If batching fails the reads are
    re-issued concurrently with ``asyncio.gather``.
    """

    if not call_factories:
        return ()

    batch = None
    try:
        batch = web3.batch_requests()
        for factory in call_factories:
            batch.add(factory())
        results = await batch.async_execute()
        return tuple(results)
    except Exception as batch_exc:
        if batch is not None:
            try:
                batch.cancel()
            except Exception:
                pass

        if not fallback_to_gather:
            raise

        logger.debug(f"JSON-RPC batch failed ({batch_exc}); falling back to gather")
        try:
            results = await asyncio.gather(*(factory() for factory in call_factories))
            return tuple(results)
        except Exception as gather_exc:
            raise gather_exc from batch_exc
