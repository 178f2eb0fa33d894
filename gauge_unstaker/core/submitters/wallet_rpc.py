from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from eth_utils import to_checksum_address

from gauge_unstaker.core.constants.base import (
    DEFAULT_CALLS_STATUS_POLL_INTERVAL,
    DEFAULT_TRANSACTION_TIMEOUT,
)
from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM
from gauge_unstaker.core.errors import SubmissionFailed
from gauge_unstaker.core.submitters.base import Submitter, SubmitterCapability
from gauge_unstaker.core.types import Batch, TransactionIntent
from gauge_unstaker.core.utils.web3 import rpc_request, wallet_web3

WALLET_SEND_CALLS_VERSION = "2.0.0"

# EIP-5792 wallet_getCallsStatus codes
CALLS_STATUS_PENDING = 100
CALLS_STATUS_CONFIRMED = 200
CALLS_STATUS_FAILED_FLOOR = 400

_ATOMIC_STATUSES = ("supported", "ready")


def supports_atomic(capabilities: Any, chain_id: int) -> bool:
    """Read ``wallet_getCapabilities`` output for atomic batch support on ``chain_id``.

    Understands both the current ``atomic.status`` shape and the older
    ``atomicBatch.supported`` flag. ``0x0`` entries apply to every chain.
    """
    if not isinstance(capabilities, dict):
        return False

    for key in (hex(chain_id), str(chain_id), "0x0"):
        entry = capabilities.get(key)
        if not isinstance(entry, dict):
            continue
        atomic = entry.get("atomic")
        if isinstance(atomic, dict) and atomic.get("status") in _ATOMIC_STATUSES:
            return True
        legacy = entry.get("atomicBatch")
        if isinstance(legacy, dict) and legacy.get("supported") is True:
            return True
    return False


def _calls_status_code(status: Any) -> int:
    if isinstance(status, int):
        return status
    # Pre-2.0 wallets report strings.
    if status == "CONFIRMED":
        return CALLS_STATUS_CONFIRMED
    if status == "PENDING":
        return CALLS_STATUS_PENDING
    raise SubmissionFailed(f"Unknown wallet_getCallsStatus status: {status!r}")


class WalletRpcSubmitter(Submitter):
    """Delegates signing to an external wallet reachable over JSON-RPC."""

    def __init__(
        self,
        address: str,
        *,
        chain_id: int = CHAIN_ID_OPTIMISM,
        rpc_url: str | None = None,
        web3: Any | None = None,
        poll_interval: float = DEFAULT_CALLS_STATUS_POLL_INTERVAL,
        status_timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
    ) -> None:
        super().__init__(chain_id=chain_id)
        self._address = to_checksum_address(address)
        self.rpc_url = rpc_url
        self.web3 = web3
        self.poll_interval = poll_interval
        self.status_timeout = status_timeout

    @property
    def address(self) -> str:
        return self._address

    @asynccontextmanager
    async def _wallet(self) -> AsyncIterator[Any]:
        if self.web3 is not None:
            yield self.web3
            return
        async with wallet_web3(self.rpc_url) as web3:
            yield web3

    async def capability(self) -> SubmitterCapability:
        async with self._wallet() as web3:
            try:
                capabilities = await rpc_request(
                    web3, "wallet_getCapabilities", [self.address, [hex(self.chain_id)]]
                )
            except Exception as exc:
                self.logger.info(
                    f"wallet_getCapabilities unavailable ({exc}); sending sequentially"
                )
                return SubmitterCapability.SEQUENTIAL

        if supports_atomic(capabilities, self.chain_id):
            return SubmitterCapability.ATOMIC
        return SubmitterCapability.SEQUENTIAL

    async def send_batch(self, batch: Batch) -> str:
        params = {
            "version": WALLET_SEND_CALLS_VERSION,
            "chainId": hex(self.chain_id),
            "from": self.address,
            "atomicRequired": True,
            "calls": [intent.as_call() for intent in batch],
        }
        async with self._wallet() as web3:
            response = await rpc_request(web3, "wallet_sendCalls", [params])
            calls_id = response.get("id") if isinstance(response, dict) else response
            if not calls_id:
                raise SubmissionFailed(f"wallet_sendCalls returned no id: {response!r}")
            self.logger.info(f"Submitted {len(batch)} call(s) as bundle {calls_id}")
            return await self._wait_for_calls(web3, str(calls_id))

    async def _wait_for_calls(self, web3: Any, calls_id: str) -> str:
        """Poll until the bundle settles; return its transaction hash."""
        deadline = time.monotonic() + self.status_timeout
        while True:
            status = await rpc_request(web3, "wallet_getCallsStatus", [calls_id])
            code = _calls_status_code(status.get("status"))
            if code >= CALLS_STATUS_FAILED_FLOOR:
                raise SubmissionFailed(
                    f"Call bundle {calls_id} failed with status {code}"
                )
            if code == CALLS_STATUS_CONFIRMED:
                receipts = status.get("receipts") or []
                for receipt in receipts:
                    tx_hash = receipt.get("transactionHash")
                    if tx_hash:
                        return str(tx_hash)
                return calls_id
            if time.monotonic() >= deadline:
                raise SubmissionFailed(
                    f"Call bundle {calls_id} still pending after {self.status_timeout}s"
                )
            await asyncio.sleep(self.poll_interval)

    async def send_intent(
        self, intent: TransactionIntent, *, nonce: int | None = None
    ) -> str:
        tx: dict[str, Any] = {
            "from": self.address,
            "to": to_checksum_address(intent.target),
            "data": intent.calldata,
            "value": hex(intent.value),
            "chainId": hex(self.chain_id),
        }
        if nonce is not None:
            tx["nonce"] = hex(nonce)
        async with self._wallet() as web3:
            tx_hash = await rpc_request(web3, "eth_sendTransaction", [tx])
        tx_hash = str(tx_hash)
        self.logger.info(f"Wallet sent {intent.action or 'call'} as {tx_hash}")
        return tx_hash
