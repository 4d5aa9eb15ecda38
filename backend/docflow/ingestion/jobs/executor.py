"""
Fire-and-forget execution of ingestion jobs.

trigger and retry_job hand job execution to a JobExecutor and return
immediately. Inside the API process the coroutine becomes a task on the
running event loop; from synchronous code (scripts, workers) it runs on a
daemon thread with its own loop. That thread starts inside submit(), so the
job may already be PROCESSING when submit() returns; callers read back any
state they want to return before submitting. Threaded jobs should use a
session_factory rather than the caller's session.

There is no cancellation: submitted jobs run to completion or failure.
drain() lets application shutdown wait for in-flight jobs.
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class JobExecutor:
    """Runs job coroutines in the background and tracks them until done."""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self._threads: Set[threading.Thread] = set()
        self._lock = threading.Lock()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._tasks) + len(self._threads)

    def submit(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> None:
        """
        Schedule a coroutine without waiting for it.

        Args:
            coro: Coroutine to run (exceptions are logged, never raised)
            name: Optional label used in logs and task names
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(self._guard(coro, name), name=name)
            with self._lock:
                self._tasks.add(task)
            task.add_done_callback(self._discard_task)
            return

        thread = threading.Thread(
            target=self._run_in_thread,
            args=(coro, name),
            name=name or "ingestion-job",
            daemon=True,
        )
        with self._lock:
            self._threads.add(thread)
        thread.start()

    async def drain(self, timeout: float = 30.0) -> None:
        """Wait for in-flight jobs, up to timeout seconds."""
        with self._lock:
            tasks = list(self._tasks)
            threads = list(self._threads)

        if tasks:
            done, pending = await asyncio.wait(tasks, timeout=timeout)
            if pending:
                logger.warning(
                    "ingestion.executor_drain_timeout",
                    extra={"pending_tasks": len(pending), "timeout": timeout},
                )

        loop = asyncio.get_running_loop()
        for thread in threads:
            await loop.run_in_executor(None, thread.join, timeout)

    def _discard_task(self, task: asyncio.Task) -> None:
        with self._lock:
            self._tasks.discard(task)

    def _run_in_thread(self, coro: Coroutine[Any, Any, Any], name: Optional[str]) -> None:
        try:
            asyncio.run(self._guard(coro, name))
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

    async def _guard(self, coro: Coroutine[Any, Any, Any], name: Optional[str]) -> None:
        try:
            await coro
        except Exception as e:
            logger.error(
                "ingestion.executor_unhandled_error",
                extra={"task": name, "error": str(e)},
                exc_info=True,
            )


_executor: Optional[JobExecutor] = None


def get_job_executor() -> JobExecutor:
    """Get the process-wide JobExecutor."""
    global _executor
    if _executor is None:
        _executor = JobExecutor()
    return _executor
