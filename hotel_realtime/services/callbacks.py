import asyncio
import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class CallbackSet:
    """Listeners that are called in registration order.

    A listener may be a plain function or a coroutine function; coroutines are
    scheduled as tasks on the running loop. A failing listener is logged and
    does not stop the others.
    """

    def __init__(self, name: str):
        self.name = name
        self._callbacks: list[Callable[..., Any]] = []
        self._tasks: set[asyncio.Task] = set()

    def add(self, callback: Callable[..., Any]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def __len__(self) -> int:
        return len(self._callbacks)

    def fire(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            try:
                result = callback(*args)
            except Exception:
                logger.exception("%s listener %r failed", self.name, callback)
                continue
            if inspect.isawaitable(result):
                try:
                    asyncio.get_running_loop()
                except RuntimeError:
                    # Fired from synchronous code with no loop to run it on.
                    if inspect.iscoroutine(result):
                        result.close()
                    logger.debug("%s listener %r skipped: no running event loop", self.name, callback)
                    continue
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s listener task failed: %s", self.name, exc, exc_info=exc)
