from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from loguru import logger

from gauge_unstaker.core.adapters.models import SafeProposal
from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM
from gauge_unstaker.core.errors import SubmissionFailed
from gauge_unstaker.core.types import Batch, TransactionIntent


class SubmitterCapability(str, Enum):
    ATOMIC = "ATOMIC"
    SEQUENTIAL = "SEQUENTIAL"
    MULTISIG = "MULTISIG"


class Submitter(ABC):
    """Something that can get a :class:`Batch` on chain.

    Exactly one of ``send_batch``, ``send_intent`` or ``propose_batch`` is used
    for a given batch, chosen by what :meth:`capability` reports.
    """

    def __init__(self, *, chain_id: int = CHAIN_ID_OPTIMISM) -> None:
        self.chain_id = int(chain_id)
        self.logger = logger.bind(submitter=self.__class__.__name__)

    @property
    @abstractmethod
    def address(self) -> str | None: ...

    @abstractmethod
    async def capability(self) -> SubmitterCapability: ...

    @property
    def cache_key(self) -> str:
        return f"{self.__class__.__name__}:{self.chain_id}:{self.address}"

    async def send_batch(self, batch: Batch) -> str:
        raise SubmissionFailed(f"{self.__class__.__name__} cannot send atomic batches")

    async def reserve_nonces(self, count: int) -> int | None:
        """First nonce of ``count`` consecutive ones, or None if the signer manages nonces."""
        return None

    async def send_intent(
        self, intent: TransactionIntent, *, nonce: int | None = None
    ) -> str:
        raise SubmissionFailed(
            f"{self.__class__.__name__} cannot send individual transactions"
        )

    async def propose_batch(self, batch: Batch) -> SafeProposal:
        raise SubmissionFailed(f"{self.__class__.__name__} cannot propose to a Safe")

    async def close(self) -> None:
        pass
