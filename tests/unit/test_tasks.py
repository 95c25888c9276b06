"""Unit tests for PeriodicTask scheduling and cancellation."""

import asyncio
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from reviewgen.tasks import PeriodicTask


class TestPeriodicTask:
    """Test PeriodicTask lifecycle."""

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="interval must be positive"):
            PeriodicTask("t", 0, lambda: None)

    def test_start_requires_running_loop(self) -> None:
        task = PeriodicTask("t", 1, lambda: None)

        with pytest.raises(RuntimeError):
            task.start()

    @pytest.mark.asyncio
    async def test_callback_runs_repeatedly(self) -> None:
        calls = []
        task = PeriodicTask("t", 0.01, lambda: calls.append(1))

        task.start()
        await asyncio.sleep(0.06)
        await task.stop()

        assert len(calls) >= 2
        assert task.running is False

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self) -> None:
        task = PeriodicTask("t", 10, lambda: None)

        task.start()
        first = task._task
        task.start()

        assert task._task is first
        await task.stop()

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_running(self) -> None:
        calls = []

        def flaky() -> None:
            calls.append(1)
            raise RuntimeError("sweep failed")

        task = PeriodicTask("t", 0.01, flaky)
        task.start()
        await asyncio.sleep(0.06)

        assert task.running is True
        await task.stop()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_stop_prevents_further_calls(self) -> None:
        calls = []
        task = PeriodicTask("t", 0.01, lambda: calls.append(1))

        task.start()
        await task.stop()
        await asyncio.sleep(0.03)

        assert calls == []
