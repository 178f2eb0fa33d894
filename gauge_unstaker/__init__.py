__version__ = "0.1.0"

from gauge_unstaker.core import (
    Batch,
    ErrorKind,
    StageResult,
    StakedPosition,
    SubmissionResult,
    TransactionIntent,
    WorkflowError,
)
from gauge_unstaker.core.workflow.context import WorkflowContext
from gauge_unstaker.core.workflow.pipeline import UnstakeWorkflow

__all__ = [
    "__version__",
    "Batch",
    "ErrorKind",
    "StageResult",
    "StakedPosition",
    "SubmissionResult",
    "TransactionIntent",
    "UnstakeWorkflow",
    "WorkflowContext",
    "WorkflowError",
]
