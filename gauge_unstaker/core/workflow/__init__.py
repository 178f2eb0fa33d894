from gauge_unstaker.core.workflow.results import (
    IntentFailure,
    StageResult,
    SubmissionPath,
    SubmissionResult,
    SubmissionState,
)

__all__ = [
    "IntentFailure",
    "StageResult",
    "SubmissionPath",
    "SubmissionResult",
    "SubmissionState",
]
