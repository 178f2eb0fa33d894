from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any

from eth_utils import to_checksum_address
from hexbytes import HexBytes

from gauge_unstaker.adapters.multisend_adapter.adapter import (
    OPERATION_DELEGATE_CALL,
    MultiSendAdapter,
)
from gauge_unstaker.core.adapters.BaseAdapter import BaseAdapter, require_wallet
from gauge_unstaker.core.adapters.models import SafeProposal, SafeTransaction
from gauge_unstaker.core.clients.SafeTransactionServiceClient import (
    SafeTransactionServiceClient,
)
from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM
from gauge_unstaker.core.constants.contracts import ZERO_ADDRESS
from gauge_unstaker.core.constants.safe_abi import SAFE_ABI
from gauge_unstaker.core.errors import NoSigner
from gauge_unstaker.core.types import TransactionIntent
from gauge_unstaker.core.utils.web3 import web3_from_chain_id

SAFE_PROPOSAL_ORIGIN = "gauge-unstaker"


class SafeAdapter(BaseAdapter):
    adapter_type = "SAFE"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        safe_address: str,
        chain_id: int = CHAIN_ID_OPTIMISM,
        owner_address: str | None = None,
        sign_hash_callback: Callable[[bytes], Awaitable[bytes]] | None = None,
        multisend: MultiSendAdapter | None = None,
        tx_service: SafeTransactionServiceClient | None = None,
        web3: Any | None = None,
    ) -> None:
        super().__init__("safe_adapter", config)
        self.safe_address = to_checksum_address(safe_address)
        self.chain_id = int(chain_id)
        self.wallet_address: str | None = (
            to_checksum_address(owner_address) if owner_address else None
        )
        self.sign_hash_callback = sign_hash_callback
        self.multisend = multisend or MultiSendAdapter(config)
        self._tx_service = tx_service
        self.web3 = web3

    @property
    def tx_service(self) -> SafeTransactionServiceClient:
        if self._tx_service is None:
            self._tx_service = SafeTransactionServiceClient(chain_id=self.chain_id)
        return self._tx_service

    @asynccontextmanager
    async def _safe_contract(self) -> AsyncIterator[Any]:
        if self.web3 is not None:
            yield self.web3.eth.contract(address=self.safe_address, abi=SAFE_ABI)
            return
        async with web3_from_chain_id(self.chain_id) as web3:
            yield web3.eth.contract(address=self.safe_address, abi=SAFE_ABI)

    async def threshold(self) -> int:
        async with self._safe_contract() as safe:
            return int(await safe.functions.getThreshold().call())

    async def nonce(self) -> int:
        async with self._safe_contract() as safe:
            return int(await safe.functions.nonce().call())

    async def owners(self) -> list[str]:
        async with self._safe_contract() as safe:
            return [
                to_checksum_address(o) for o in await safe.functions.getOwners().call()
            ]

    async def is_owner(self, address: str) -> bool:
        async with self._safe_contract() as safe:
            return bool(
                await safe.functions.isOwner(to_checksum_address(address)).call()
            )

    def build_safe_transaction(
        self, intents: Sequence[TransactionIntent], *, nonce: int
    ) -> SafeTransaction:
        """Wrap every intent in one DELEGATECALL to MultiSendCallOnly."""
        return SafeTransaction(
            to=self.multisend.address,
            value=0,
            data=self.multisend.encode_multisend(intents),
            operation=OPERATION_DELEGATE_CALL,
            gas_token=ZERO_ADDRESS,
            refund_receiver=ZERO_ADDRESS,
            nonce=int(nonce),
        )

    @require_wallet
    async def propose_batch(
        self,
        intents: Sequence[TransactionIntent],
        *,
        nonce: int | None = None,
        origin: str | None = SAFE_PROPOSAL_ORIGIN,
    ) -> SafeProposal:
        if self.sign_hash_callback is None:
            raise NoSigner("No hash signer configured for Safe owner")
        owner = self.wallet_address

        async with self._safe_contract() as safe:
            threshold, onchain_nonce, is_owner = await asyncio.gather(
                safe.functions.getThreshold().call(),
                safe.functions.nonce().call(),
                safe.functions.isOwner(owner).call(),
            )
            if not is_owner:
                raise NoSigner(f"{owner} is not an owner of Safe {self.safe_address}")

            safe_tx = self.build_safe_transaction(
                intents, nonce=onchain_nonce if nonce is None else nonce
            )
            tx_args = safe_tx.hash_args()
            tx_args[2] = HexBytes(safe_tx.data)
            safe_tx_hash = HexBytes(
                await safe.functions.getTransactionHash(*tx_args).call()
            )

        signature = await self.sign_hash_callback(bytes(safe_tx_hash))
        proposal = SafeProposal(
            safe_address=self.safe_address,
            safe_tx_hash=safe_tx_hash.to_0x_hex(),
            sender=owner,
            signature="0x" + bytes(signature).hex(),
            threshold=int(threshold),
            transaction=safe_tx,
        )

        self.logger.info(
            f"Proposing Safe tx {proposal.safe_tx_hash} ({len(intents)} call(s), "
            f"nonce={safe_tx.nonce}, threshold={proposal.threshold})"
        )
        await self.tx_service.propose_transaction(
            self.safe_address, proposal.service_payload(origin=origin)
        )
        return proposal

    async def close(self) -> None:
        if self._tx_service is not None:
            await self._tx_service.close()
