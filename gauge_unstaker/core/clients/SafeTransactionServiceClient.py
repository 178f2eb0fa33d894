from __future__ import annotations

import time
from typing import Any

import httpx
from eth_utils import to_checksum_address
from loguru import logger

from gauge_unstaker.core.config import get_safe_tx_service_url
from gauge_unstaker.core.constants.base import DEFAULT_HTTP_TIMEOUT
from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM, SAFE_TX_SERVICE_URLS


class SafeTransactionServiceClient:
    def __init__(
        self,
        *,
        base_url: str | None = None,
        chain_id: int = CHAIN_ID_OPTIMISM,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        url = base_url or get_safe_tx_service_url() or SAFE_TX_SERVICE_URLS.get(chain_id)
        if not url:
            raise ValueError(f"No Safe transaction service known for chain {chain_id}")
        self.base_url = str(url).rstrip("/")
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT)
        )
        self.headers = {"Content-Type": "application/json"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug(f"Making {method} request to {url}")
        start_time = time.time()
        resp = await self.client.request(method, url, headers=self.headers, **kwargs)

        elapsed = time.time() - start_time
        if resp.status_code >= 400:
            logger.warning(
                f"HTTP {resp.status_code} response for {method} {url} after {elapsed:.2f}s: {resp.text}"
            )
        else:
            logger.debug(
                f"HTTP {resp.status_code} response for {method} {url} after {elapsed:.2f}s"
            )

        resp.raise_for_status()
        return resp

    async def get_safe_info(self, safe_address: str) -> dict[str, Any]:
        safe = to_checksum_address(safe_address)
        resp = await self._request("GET", f"{self.base_url}/api/v1/safes/{safe}/")
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError("Safe transaction service returned unexpected response type")
        return data

    async def propose_transaction(
        self, safe_address: str, payload: dict[str, Any]
    ) -> None:
        safe = to_checksum_address(safe_address)
        await self._request(
            "POST",
            f"{self.base_url}/api/v1/safes/{safe}/multisig-transactions/",
            json=payload,
        )

    async def close(self) -> None:
        await self.client.aclose()
