from __future__ import annotations

from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

from gauge_unstaker.core.errors import WorkflowError, as_workflow_error
from gauge_unstaker.core.workflow.results import StageResult

T = TypeVar("T")


def stage_result(
    error_type: type[WorkflowError],
) -> Callable[
    [Callable[..., Coroutine[Any, Any, T]]],
    Callable[..., Coroutine[Any, Any, StageResult[T]]],
]:
    """Wrap an async stage to return ``StageResult.success`` or ``StageResult.failure``.

    The decorated function should perform its work and return the result directly.
    Exceptions are caught, logged via ``self.logger``, and converted to
    ``error_type`` unless they already are a :class:`WorkflowError`.
    """

    def decorator(
        fn: Callable[..., Coroutine[Any, Any, T]],
    ) -> Callable[..., Coroutine[Any, Any, StageResult[T]]]:
        @wraps(fn)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> StageResult[T]:
            try:
                result = await fn(self, *args, **kwargs)
                return StageResult.success(result)
            except Exception as exc:
                error = as_workflow_error(exc, error_type)
                self.logger.error(f"Error in {fn.__name__}: {error!r}")
                return StageResult.failure(error)

        return wrapper

    return decorator
