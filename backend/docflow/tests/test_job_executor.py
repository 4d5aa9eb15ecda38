"""
Tests for JobExecutor fire-and-forget execution.
"""

import asyncio
import threading

import pytest

from docflow.ingestion.jobs.executor import JobExecutor, get_job_executor


class TestJobExecutorOnLoop:
    """Submissions from inside a running event loop."""

    @pytest.mark.asyncio
    async def test_submit_returns_before_job_runs(self):
        """submit schedules the coroutine and returns immediately."""
        executor = JobExecutor()
        started = asyncio.Event()
        release = asyncio.Event()

        async def job():
            started.set()
            await release.wait()

        executor.submit(job(), name="slow-job")
        assert executor.pending_count == 1
        assert not started.is_set()

        release.set()
        await executor.drain(timeout=1)

        assert started.is_set()
        assert executor.pending_count == 0

    @pytest.mark.asyncio
    async def test_exceptions_are_logged_not_raised(self, caplog):
        executor = JobExecutor()

        async def broken():
            raise RuntimeError("boom")

        executor.submit(broken(), name="broken-job")
        await executor.drain(timeout=1)

        assert executor.pending_count == 0
        assert any(
            record.getMessage() == "ingestion.executor_unhandled_error"
            for record in caplog.records
        )

    @pytest.mark.asyncio
    async def test_drain_times_out_on_stuck_job(self):
        executor = JobExecutor()
        never = asyncio.Event()

        executor.submit(never.wait(), name="stuck-job")
        await executor.drain(timeout=0.05)

        assert executor.pending_count == 1
        never.set()
        await executor.drain(timeout=1)


class TestJobExecutorWithoutLoop:
    """Submissions from synchronous code run on a daemon thread."""

    def test_runs_on_background_thread(self):
        executor = JobExecutor()
        done = threading.Event()
        seen = {}

        async def job():
            seen["thread"] = threading.current_thread().name
            done.set()

        executor.submit(job(), name="threaded-job")

        assert done.wait(timeout=2)
        assert seen["thread"] == "threaded-job"

    def test_drain_waits_for_threads(self):
        executor = JobExecutor()
        results = []

        async def job():
            await asyncio.sleep(0.05)
            results.append("done")

        executor.submit(job())
        asyncio.run(executor.drain(timeout=2))

        assert results == ["done"]
        assert executor.pending_count == 0


def test_process_wide_executor_is_shared():
    assert get_job_executor() is get_job_executor()
