from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from gauge_unstaker.core.errors import ErrorKind, WorkflowError


class SubmissionState(str, Enum):
    INIT = "INIT"
    ATOMIC_SUBMIT = "ATOMIC_SUBMIT"
    SEQUENTIAL_SUBMIT = "SEQUENTIAL_SUBMIT"
    MULTISIG_SUBMIT = "MULTISIG_SUBMIT"
    DONE = "DONE"
    FAILED = "FAILED"


class SubmissionPath(str, Enum):
    ATOMIC = "ATOMIC"
    SEQUENTIAL = "SEQUENTIAL"
    MULTISIG = "MULTISIG"


T = TypeVar("T")


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Success/failure tag for one workflow stage.

    Unpacks like a status tuple: ``ok, value = result`` where ``value`` is the
    stage output on success and the :class:`WorkflowError` on failure.
    """

    ok: bool
    value: T | None = None
    error: WorkflowError | None = None

    @classmethod
    def success(cls, value: T) -> StageResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: WorkflowError) -> StageResult[T]:
        return cls(ok=False, error=error)

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    def __iter__(self) -> Iterator[Any]:
        yield self.ok
        yield self.value if self.ok else self.error


@dataclass(frozen=True)
class IntentFailure:
    index: int
    token_id: int | None
    action: str | None
    error: str
    # Set when the transaction reached the network before failing.
    tx_hash: str | None = None
    # Broadcast but not mined: it can still execute later.
    pending: bool = False


@dataclass(frozen=True)
class SubmissionResult:
    state: SubmissionState
    path: SubmissionPath | None = None
    identifiers: tuple[str, ...] = ()
    failures: tuple[IntentFailure, ...] = ()
    error: WorkflowError | None = None
    threshold: int | None = None
    # Sequential path only: one slot per intent, None where that intent failed.
    per_intent: tuple[str | None, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return self.state == SubmissionState.DONE

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    @property
    def is_proposal(self) -> bool:
        return self.path == SubmissionPath.MULTISIG
