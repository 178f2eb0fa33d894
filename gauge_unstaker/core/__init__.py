from gauge_unstaker.core.adapters.BaseAdapter import BaseAdapter
from gauge_unstaker.core.errors import (
    AggregationFailed,
    DiscoveryFailed,
    ErrorKind,
    NoSigner,
    SubmissionFailed,
    WorkflowError,
)
from gauge_unstaker.core.types import Batch, StakedPosition, TransactionIntent
from gauge_unstaker.core.workflow.results import (
    StageResult,
    SubmissionPath,
    SubmissionResult,
    SubmissionState,
)

__all__ = [
    "AggregationFailed",
    "BaseAdapter",
    "Batch",
    "DiscoveryFailed",
    "ErrorKind",
    "NoSigner",
    "StageResult",
    "StakedPosition",
    "SubmissionFailed",
    "SubmissionPath",
    "SubmissionResult",
    "SubmissionState",
    "TransactionIntent",
    "WorkflowError",
]
