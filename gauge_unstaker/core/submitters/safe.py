from __future__ import annotations

from gauge_unstaker.adapters.safe_adapter.adapter import SafeAdapter
from gauge_unstaker.core.adapters.models import SafeProposal
from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM
from gauge_unstaker.core.errors import NoSigner
from gauge_unstaker.core.submitters.base import Submitter, SubmitterCapability
from gauge_unstaker.core.types import Batch
from gauge_unstaker.core.utils.wallets import LocalSigner


class SafeSubmitter(Submitter):
    """Proposes the whole batch to a Safe as one MultiSend transaction."""

    def __init__(
        self,
        safe_address: str,
        *,
        signer: LocalSigner | None = None,
        chain_id: int = CHAIN_ID_OPTIMISM,
        adapter: SafeAdapter | None = None,
    ) -> None:
        super().__init__(chain_id=chain_id)
        self.signer = signer
        self.adapter = adapter or SafeAdapter(
            safe_address=safe_address,
            chain_id=chain_id,
            owner_address=signer.address if signer else None,
            sign_hash_callback=signer.sign_hash if signer else None,
        )

    @property
    def address(self) -> str:
        return self.adapter.safe_address

    async def capability(self) -> SubmitterCapability:
        return SubmitterCapability.MULTISIG

    async def propose_batch(self, batch: Batch) -> SafeProposal:
        if self.adapter.wallet_address is None:
            raise NoSigner(f"No owner key configured for Safe {self.address}")
        return await self.adapter.propose_batch(batch.intents)

    async def close(self) -> None:
        await self.adapter.close()
