from __future__ import annotations

import asyncio

from loguru import logger

from gauge_unstaker.core.errors import (
    NoSigner,
    SubmissionFailed,
    WorkflowError,
    as_workflow_error,
)
from gauge_unstaker.core.submitters.base import Submitter, SubmitterCapability
from gauge_unstaker.core.types import Batch
from gauge_unstaker.core.utils.transaction import TransactionNotMinedError
from gauge_unstaker.core.workflow.results import (
    IntentFailure,
    SubmissionPath,
    SubmissionResult,
    SubmissionState,
)

_SUBMIT_STATES = {
    SubmissionPath.ATOMIC: SubmissionState.ATOMIC_SUBMIT,
    SubmissionPath.SEQUENTIAL: SubmissionState.SEQUENTIAL_SUBMIT,
    SubmissionPath.MULTISIG: SubmissionState.MULTISIG_SUBMIT,
}

_log = logger.bind(workflow="submission")


def _failed(
    error: WorkflowError, *, path: SubmissionPath | None = None
) -> SubmissionResult:
    _log.error(f"Submission FAILED via {path.value if path else 'n/a'}: {error!r}")
    return SubmissionResult(state=SubmissionState.FAILED, path=path, error=error)


async def submit(
    batch: Batch,
    submitter: Submitter,
    *,
    capability: SubmitterCapability | None = None,
) -> SubmissionResult:
    """Drive ``batch`` through ``INIT -> *_SUBMIT -> DONE | FAILED``.

    ``capability`` is what the submitter reported earlier; when omitted it is
    asked for here. Nothing is retried.
    """
    if batch.is_empty:
        _log.info("Empty batch; nothing to submit")
        return SubmissionResult(state=SubmissionState.DONE)

    if capability is None:
        try:
            capability = await submitter.capability()
        except Exception as exc:
            return _failed(as_workflow_error(exc, SubmissionFailed))

    path = SubmissionPath(capability.value)
    _log.info(
        f"INIT -> {_SUBMIT_STATES[path].value}: {len(batch)} intent(s) "
        f"for {len(batch.token_ids)} position(s) via {submitter.__class__.__name__}"
    )

    if path == SubmissionPath.ATOMIC:
        return await _submit_atomic(batch, submitter)
    if path == SubmissionPath.MULTISIG:
        return await _submit_multisig(batch, submitter)
    return await _submit_sequential(batch, submitter)


async def _submit_atomic(batch: Batch, submitter: Submitter) -> SubmissionResult:
    path = SubmissionPath.ATOMIC
    try:
        identifier = await submitter.send_batch(batch)
    except Exception as exc:
        return _failed(as_workflow_error(exc, SubmissionFailed), path=path)

    _log.info(f"ATOMIC_SUBMIT -> DONE: {identifier}")
    return SubmissionResult(
        state=SubmissionState.DONE, path=path, identifiers=(identifier,)
    )


async def _submit_multisig(batch: Batch, submitter: Submitter) -> SubmissionResult:
    path = SubmissionPath.MULTISIG
    try:
        proposal = await submitter.propose_batch(batch)
    except Exception as exc:
        return _failed(as_workflow_error(exc, SubmissionFailed), path=path)

    _log.info(
        f"MULTISIG_SUBMIT -> DONE: proposed {proposal.safe_tx_hash} "
        f"(threshold {proposal.threshold})"
    )
    return SubmissionResult(
        state=SubmissionState.DONE,
        path=path,
        identifiers=(proposal.safe_tx_hash,),
        threshold=proposal.threshold,
    )


async def _submit_sequential(batch: Batch, submitter: Submitter) -> SubmissionResult:
    path = SubmissionPath.SEQUENTIAL
    try:
        base_nonce = await submitter.reserve_nonces(len(batch))
    except Exception as exc:
        return _failed(as_workflow_error(exc, SubmissionFailed), path=path)

    outcomes = await asyncio.gather(
        *[
            submitter.send_intent(
                intent, nonce=None if base_nonce is None else base_nonce + index
            )
            for index, intent in enumerate(batch)
        ],
        return_exceptions=True,
    )

    per_intent: list[str | None] = []
    failures: list[IntentFailure] = []
    errors: list[BaseException] = []
    for index, (intent, outcome) in enumerate(zip(batch, outcomes, strict=True)):
        if isinstance(outcome, BaseException):
            per_intent.append(None)
            errors.append(outcome)
            failures.append(
                IntentFailure(
                    index=index,
                    token_id=intent.token_id,
                    action=intent.action,
                    error=str(outcome) or outcome.__class__.__name__,
                    tx_hash=getattr(outcome, "txn_hash", None),
                    pending=isinstance(outcome, TransactionNotMinedError),
                )
            )
            if failures[-1].pending:
                _log.warning(
                    f"Intent {index} ({intent.action} #{intent.token_id}) broadcast "
                    f"as {failures[-1].tx_hash} but not mined; it stays queued"
                )
            else:
                _log.warning(
                    f"Intent {index} ({intent.action} #{intent.token_id}) failed: "
                    f"{outcome!r}"
                )
        else:
            per_intent.append(str(outcome))

    identifiers = tuple(h for h in per_intent if h is not None)
    if not failures:
        _log.info(f"SEQUENTIAL_SUBMIT -> DONE: {len(identifiers)} transaction(s)")
        return SubmissionResult(
            state=SubmissionState.DONE,
            path=path,
            identifiers=identifiers,
            per_intent=tuple(per_intent),
        )

    if all(isinstance(e, NoSigner) for e in errors):
        error: WorkflowError = errors[0]
    else:
        pending = sum(1 for f in failures if f.pending)
        error = SubmissionFailed(
            f"{len(failures)} of {len(batch)} transaction(s) failed"
            + (f" ({pending} broadcast, still pending)" if pending else "")
            + f"; first: {failures[0].error}"
        )
    _log.error(
        f"SEQUENTIAL_SUBMIT -> FAILED: {len(identifiers)} sent, {len(failures)} failed"
    )
    return SubmissionResult(
        state=SubmissionState.FAILED,
        path=path,
        identifiers=identifiers,
        failures=tuple(failures),
        error=error,
        per_intent=tuple(per_intent),
    )
