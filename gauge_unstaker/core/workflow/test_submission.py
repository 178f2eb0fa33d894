from __future__ import annotations

import pytest

from gauge_unstaker.adapters.gauge_adapter.adapter import GaugeAdapter
from gauge_unstaker.core.adapters.models import SafeProposal, SafeTransaction
from gauge_unstaker.core.constants.contracts import ZERO_ADDRESS
from gauge_unstaker.core.errors import ErrorKind, NoSigner, SubmissionFailed
from gauge_unstaker.core.submitters.base import Submitter, SubmitterCapability
from gauge_unstaker.core.types import Batch, StakedPosition
from gauge_unstaker.core.utils.transaction import TransactionNotMinedError
from gauge_unstaker.core.workflow.results import SubmissionPath, SubmissionState
from gauge_unstaker.core.workflow.submission import submit

DEPOSITOR = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


class _RecordingSubmitter(Submitter):
    def __init__(
        self,
        capability: SubmitterCapability,
        *,
        fail_indices: set[int] | None = None,
        base_nonce: int | None = None,
        error: Exception | None = None,
    ):
        super().__init__()
        self._capability = capability
        self.fail_indices = fail_indices or set()
        self.base_nonce = base_nonce
        self.error = error
        self.sent: list[tuple[str, int | None]] = []
        self.batches: list[Batch] = []
        self.capability_calls = 0

    @property
    def address(self) -> str:
        return DEPOSITOR

    async def capability(self) -> SubmitterCapability:
        self.capability_calls += 1
        return self._capability

    async def reserve_nonces(self, count: int) -> int | None:
        return self.base_nonce

    async def send_batch(self, batch: Batch) -> str:
        if self.error:
            raise self.error
        self.batches.append(batch)
        return "0xbundle"

    async def send_intent(self, intent, *, nonce=None) -> str:
        index = len(self.sent)
        self.sent.append((intent.calldata, nonce))
        if index in self.fail_indices:
            raise RuntimeError(f"rejected #{index}")
        return f"0xtx{index}"

    async def propose_batch(self, batch: Batch) -> SafeProposal:
        if self.error:
            raise self.error
        self.batches.append(batch)
        return SafeProposal(
            safe_address=DEPOSITOR,
            safe_tx_hash="0xsafe",
            sender=DEPOSITOR,
            signature="0x",
            threshold=2,
            transaction=SafeTransaction(
                to=ZERO_ADDRESS,
                data="0x",
                gas_token=ZERO_ADDRESS,
                refund_receiver=ZERO_ADDRESS,
                nonce=0,
            ),
        )


@pytest.fixture
def batch() -> Batch:
    return GaugeAdapter().compile(
        [
            StakedPosition(token_id=5, earned_rewards=100),
            StakedPosition(token_id=9, earned_rewards=0),
        ],
        depositor=DEPOSITOR,
    )


@pytest.mark.asyncio
class TestSubmit:
    @pytest.mark.parametrize("capability", list(SubmitterCapability))
    async def test_empty_batch_sends_nothing(self, capability):
        submitter = _RecordingSubmitter(capability)
        result = await submit(Batch(depositor=DEPOSITOR, chain_id=10), submitter)

        assert result.state == SubmissionState.DONE
        assert result.identifiers == ()
        assert submitter.sent == [] and submitter.batches == []
        assert submitter.capability_calls == 0

    async def test_atomic_sends_whole_batch_once(self, batch):
        submitter = _RecordingSubmitter(SubmitterCapability.ATOMIC)
        result = await submit(batch, submitter)

        assert result.ok
        assert result.path == SubmissionPath.ATOMIC
        assert result.identifiers == ("0xbundle",)
        assert submitter.batches == [batch]
        assert submitter.sent == []

    async def test_atomic_failure(self, batch):
        submitter = _RecordingSubmitter(
            SubmitterCapability.ATOMIC, error=RuntimeError("user rejected")
        )
        result = await submit(batch, submitter)

        assert result.state == SubmissionState.FAILED
        assert result.error_kind == ErrorKind.SUBMISSION_FAILED
        assert "user rejected" in result.error.message
        assert result.identifiers == ()

    async def test_sequential_one_hash_per_intent(self, batch):
        submitter = _RecordingSubmitter(SubmitterCapability.SEQUENTIAL)
        result = await submit(batch, submitter)

        assert result.ok
        assert result.path == SubmissionPath.SEQUENTIAL
        assert result.identifiers == ("0xtx0", "0xtx1", "0xtx2", "0xtx3")
        assert result.per_intent == result.identifiers
        assert [calldata for calldata, _ in submitter.sent] == [
            i.calldata for i in batch
        ]

    async def test_sequential_reserves_consecutive_nonces(self, batch):
        submitter = _RecordingSubmitter(SubmitterCapability.SEQUENTIAL, base_nonce=40)
        await submit(batch, submitter)
        assert [nonce for _, nonce in submitter.sent] == [40, 41, 42, 43]

    async def test_sequential_partial_failure_keeps_successes(self, batch):
        submitter = _RecordingSubmitter(
            SubmitterCapability.SEQUENTIAL, fail_indices={1}
        )
        result = await submit(batch, submitter)

        assert result.state == SubmissionState.FAILED
        assert result.identifiers == ("0xtx0", "0xtx2", "0xtx3")
        assert result.per_intent == ("0xtx0", None, "0xtx2", "0xtx3")
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert (failure.index, failure.token_id, failure.action) == (1, 5, "withdraw")
        assert "rejected #1" in failure.error
        assert result.error_kind == ErrorKind.SUBMISSION_FAILED

    async def test_sequential_separates_unmined_from_unsent(self, batch):
        class _GapSubmitter(_RecordingSubmitter):
            async def send_intent(self, intent, *, nonce=None):
                index = len(self.sent)
                self.sent.append((intent.calldata, nonce))
                if index == 1:
                    raise RuntimeError("insufficient funds")
                if index > 1:
                    raise TransactionNotMinedError(f"0xtx{index}", "receipt timeout")
                return f"0xtx{index}"

        result = await submit(
            batch, _GapSubmitter(SubmitterCapability.SEQUENTIAL, base_nonce=7)
        )

        assert result.state == SubmissionState.FAILED
        assert result.identifiers == ("0xtx0",)
        assert [(f.index, f.tx_hash, f.pending) for f in result.failures] == [
            (1, None, False),
            (2, "0xtx2", True),
            (3, "0xtx3", True),
        ]
        assert "2 broadcast, still pending" in result.error.message

    async def test_sequential_without_signer(self, batch):
        class _NoKey(_RecordingSubmitter):
            async def send_intent(self, intent, *, nonce=None):
                raise NoSigner("locked")

        result = await submit(batch, _NoKey(SubmitterCapability.SEQUENTIAL))

        assert result.state == SubmissionState.FAILED
        assert result.error_kind == ErrorKind.NO_SIGNER
        assert result.identifiers == ()
        assert len(result.failures) == len(batch)

    async def test_multisig_reports_safe_hash_and_threshold(self, batch):
        submitter = _RecordingSubmitter(SubmitterCapability.MULTISIG)
        result = await submit(batch, submitter)

        assert result.ok
        assert result.is_proposal
        assert result.identifiers == ("0xsafe",)
        assert result.threshold == 2
        assert submitter.batches == [batch]

    async def test_multisig_not_an_owner(self, batch):
        submitter = _RecordingSubmitter(
            SubmitterCapability.MULTISIG, error=NoSigner("not an owner")
        )
        result = await submit(batch, submitter)

        assert result.state == SubmissionState.FAILED
        assert result.path == SubmissionPath.MULTISIG
        assert result.error_kind == ErrorKind.NO_SIGNER

    async def test_given_capability_skips_query(self, batch):
        submitter = _RecordingSubmitter(SubmitterCapability.ATOMIC)
        result = await submit(
            batch, submitter, capability=SubmitterCapability.SEQUENTIAL
        )
        assert result.path == SubmissionPath.SEQUENTIAL
        assert submitter.capability_calls == 0

    async def test_capability_failure(self, batch):
        class _Broken(_RecordingSubmitter):
            async def capability(self):
                raise SubmissionFailed("wallet offline")

        result = await submit(batch, _Broken(SubmitterCapability.ATOMIC))
        assert result.state == SubmissionState.FAILED
        assert result.path is None
        assert result.error.message == "wallet offline"
