from __future__ import annotations

from gauge_unstaker.core.config import get_wallet_private_key
from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM
from gauge_unstaker.core.errors import NoSigner
from gauge_unstaker.core.submitters.base import Submitter, SubmitterCapability
from gauge_unstaker.core.types import TransactionIntent
from gauge_unstaker.core.utils.transaction import get_pending_nonce, send_transaction
from gauge_unstaker.core.utils.wallets import LocalSigner, make_local_signer


class LocalAccountSubmitter(Submitter):
    """Signs with a local private key and broadcasts one transaction per intent."""

    def __init__(
        self,
        signer: LocalSigner,
        *,
        chain_id: int = CHAIN_ID_OPTIMISM,
        wait_for_receipt: bool = True,
    ) -> None:
        super().__init__(chain_id=chain_id)
        self.signer = signer
        self.wait_for_receipt = wait_for_receipt

    @classmethod
    def from_private_key(
        cls, private_key: str | None = None, **kwargs
    ) -> LocalAccountSubmitter:
        key = private_key or get_wallet_private_key()
        if not key:
            raise NoSigner("No private key configured for the local account")
        return cls(make_local_signer(key), **kwargs)

    @property
    def address(self) -> str:
        return self.signer.address

    async def capability(self) -> SubmitterCapability:
        return SubmitterCapability.SEQUENTIAL

    async def reserve_nonces(self, count: int) -> int:
        base = await get_pending_nonce(self.chain_id, self.address)
        self.logger.debug(f"Reserved nonces {base}..{base + count - 1}")
        return base

    async def send_intent(
        self, intent: TransactionIntent, *, nonce: int | None = None
    ) -> str:
        transaction = intent.as_transaction(self.address, self.chain_id)
        return await send_transaction(
            transaction,
            self.signer.sign_transaction,
            wait_for_receipt=self.wait_for_receipt,
            nonce=nonce,
        )
