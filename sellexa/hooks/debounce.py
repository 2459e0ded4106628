import asyncio
from typing import Any, Awaitable, Callable, Optional

from sellexa.utils.logger import get_current_logger


class Debouncer:
    """
    Delay an async call until no new call arrived for ``delay`` seconds.

    Each call cancels the pending one; only the last arguments are used.
    """

    def __init__(self, delay: float, fn: Callable[..., Awaitable[Any]]) -> None:
        self.delay = delay
        self.fn = fn
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def __call__(self, *args: Any, **kwargs: Any) -> asyncio.Task:
        self.cancel()
        self._task = asyncio.create_task(self._run(*args, **kwargs))
        return self._task

    async def _run(self, *args: Any, **kwargs: Any) -> None:
        await asyncio.sleep(self.delay)
        try:
            await self.fn(*args, **kwargs)
        except Exception as e:
            get_current_logger().error(f"Debounced call {getattr(self.fn, '__name__', self.fn)} failed: {e}")

    def cancel(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the pending call, if any, to finish."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def aclose(self) -> None:
        """Cancel the pending call and wait for the cancellation to land."""
        task = self._task
        self.cancel()
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
