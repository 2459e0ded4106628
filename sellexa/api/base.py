from typing import Awaitable, Callable, TypeVar

from sellexa.data.supabase.errors import BackendError
from sellexa.utils.logger import get_current_logger
from sellexa.utils.response_format import ApiResult, create_api_error, create_api_result
from sellexa.utils.status import Status

T = TypeVar("T")


def status_for(error: Exception) -> Status:
    """Map a backend failure onto an envelope status."""
    if isinstance(error, BackendError):
        if error.status_code == 401:
            return Status.UNAUTHENTICATED
        if error.status_code == 404 or error.code == "PGRST116":
            return Status.NOT_FOUND
        return Status.FAILURE
    return Status.UNKNOWN_ERROR


async def run_api_call(action: str, call: Callable[[], Awaitable[T]]) -> ApiResult[T]:
    """
    Await ``call`` and wrap its outcome in an :class:`ApiResult`.

    Args:
        action: Human readable description used in logs and the fallback
            error message (e.g. "fetch conversations")
        call: Zero-argument coroutine function doing the actual work

    Returns:
        ``ApiResult(success=True, data=...)`` or, on any exception,
        ``ApiResult(success=False, error=...)``
    """
    try:
        return create_api_result(await call())
    except Exception as e:
        get_current_logger().error(f"Error trying to {action}: {e}")
        return create_api_error(str(e) or f"Failed to {action}", status_for(e))
