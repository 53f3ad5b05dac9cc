"""
Cancellable delayed calls on the running event loop.

Used for the import status auto-reset and the editor's debounced preview.
"""
import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class DelayedCall:
    """Run ``callback`` once after ``delay`` seconds unless cancelled first.

    ``callback`` may be a plain function or a coroutine function. ``cancel()``
    is idempotent and safe to call after the call has already fired.
    """

    def __init__(self, delay: float, callback: Callable[[], Any], name: Optional[str] = None):
        self.delay = delay
        self._callback = callback
        self._task: asyncio.Task = asyncio.get_running_loop().create_task(self._run(), name=name)

    async def _run(self):
        await asyncio.sleep(self.delay)
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Delayed call {self._task.get_name()} failed: {e}")

    @property
    def pending(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the call to finish or be cancelled."""
        try:
            await self._task
        except asyncio.CancelledError:
            pass
