from gauge_unstaker.core.errors import (
    AggregationFailed,
    ErrorKind,
    NoSigner,
    SubmissionFailed,
    WorkflowError,
    as_workflow_error,
)
from gauge_unstaker.core.workflow.results import (
    StageResult,
    SubmissionPath,
    SubmissionResult,
    SubmissionState,
)


def test_stage_result_unpacks_like_status_tuple():
    ok, value = StageResult.success([1, 2])
    assert ok is True and value == [1, 2]

    error = NoSigner("no key")
    ok, err = StageResult.failure(error)
    assert ok is False and err is error


def test_stage_result_error_kind():
    assert StageResult.success(1).error_kind is None
    assert StageResult.failure(AggregationFailed("x")).error_kind == (
        ErrorKind.AGGREGATION_FAILED
    )


def test_submission_result_flags():
    done = SubmissionResult(
        state=SubmissionState.DONE,
        path=SubmissionPath.MULTISIG,
        identifiers=("0xsafe",),
        threshold=2,
    )
    assert done.ok and done.is_proposal and done.error_kind is None

    failed = SubmissionResult(
        state=SubmissionState.FAILED, error=SubmissionFailed("boom")
    )
    assert not failed.ok
    assert failed.error_kind == ErrorKind.SUBMISSION_FAILED


def test_as_workflow_error_keeps_typed_errors():
    typed = AggregationFailed("bad read", token_id=9)
    assert as_workflow_error(typed, SubmissionFailed) is typed

    wrapped = as_workflow_error(TimeoutError(), SubmissionFailed)
    assert isinstance(wrapped, SubmissionFailed)
    assert wrapped.message == "TimeoutError"
    assert isinstance(wrapped, WorkflowError)
    assert "SUBMISSION_FAILED" in repr(wrapped)
