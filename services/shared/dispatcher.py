"""Fire-and-forget task dispatch for work that must not block a request."""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class TaskDispatcher:
    """Runs background tasks on a thread pool and logs their failures.

    Callers get the ``Future`` back but are not expected to wait on it:
    an exception raised by a task is logged here and goes no further.
    """

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "notify"):
        """Initialize the dispatcher.

        Args:
            max_workers: Number of worker threads
            thread_name_prefix: Prefix of worker thread names
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )

    def submit(
        self, task: Callable[..., Any], *args: Any, **kwargs: Any
    ) -> concurrent.futures.Future:
        """Schedule ``task(*args, **kwargs)`` and return immediately."""
        task_name = getattr(task, "__qualname__", repr(task))
        future = self.executor.submit(task, *args, **kwargs)
        future.add_done_callback(lambda f: self._log_failure(f, task_name))
        return future

    @staticmethod
    def _log_failure(future: concurrent.futures.Future, task_name: str) -> None:
        if future.cancelled():
            logger.warning(f"Background task {task_name} was cancelled")
            return
        error = future.exception()
        if error is not None:
            logger.error(
                f"Background task {task_name} failed: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks; optionally wait for queued ones to finish."""
        self.executor.shutdown(wait=wait)
