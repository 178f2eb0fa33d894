from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NO_SIGNER = "NO_SIGNER"
    DISCOVERY_FAILED = "DISCOVERY_FAILED"
    AGGREGATION_FAILED = "AGGREGATION_FAILED"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"


class WorkflowError(RuntimeError):
    kind: ErrorKind = ErrorKind.SUBMISSION_FAILED

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value}, message={self.message!r})"


class NoSigner(WorkflowError):
    kind = ErrorKind.NO_SIGNER


class DiscoveryFailed(WorkflowError):
    kind = ErrorKind.DISCOVERY_FAILED


class AggregationFailed(WorkflowError):
    kind = ErrorKind.AGGREGATION_FAILED

    def __init__(self, message: str, *, token_id: int | None = None):
        self.token_id = token_id
        super().__init__(message)


class SubmissionFailed(WorkflowError):
    kind = ErrorKind.SUBMISSION_FAILED


def as_workflow_error(exc: BaseException, default: type[WorkflowError]) -> WorkflowError:
    """Return ``exc`` if it is already typed, otherwise wrap it in ``default``."""
    if isinstance(exc, WorkflowError):
        return exc
    return default(str(exc) or exc.__class__.__name__)
