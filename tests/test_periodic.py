"""Tests for the periodic background task."""

import threading
import time

import pytest


class TestPeriodicTask:
    """Test cases for PeriodicTask."""

    def test_runs_immediately_and_repeats(self):
        """Test the function runs at start and again after the interval."""
        from face_kiosk.periodic import PeriodicTask

        calls = []
        done = threading.Event()

        def tick():
            calls.append(time.monotonic())
            if len(calls) >= 3:
                done.set()

        task = PeriodicTask(tick, interval=0.01).start()
        try:
            assert done.wait(timeout=5)
        finally:
            task.stop()

        assert len(calls) >= 3

    def test_stop_ends_thread(self):
        """Test stop() ends the thread without waiting a full interval."""
        from face_kiosk.periodic import PeriodicTask

        started = threading.Event()
        task = PeriodicTask(started.set, interval=60).start()
        assert started.wait(timeout=5)

        begin = time.monotonic()
        task.stop(timeout=5)

        assert not task.is_running
        assert time.monotonic() - begin < 5

    def test_survives_exceptions(self):
        """Test a failing run does not stop the schedule."""
        from face_kiosk.periodic import PeriodicTask

        calls = []
        done = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) >= 2:
                done.set()
            raise RuntimeError("boom")

        task = PeriodicTask(flaky, interval=0.01).start()
        try:
            assert done.wait(timeout=5)
        finally:
            task.stop()

    def test_runs_never_overlap(self):
        """Test a slow run delays the next instead of overlapping it."""
        from face_kiosk.periodic import PeriodicTask

        active = []
        overlaps = []
        runs = []
        done = threading.Event()

        def slow():
            if active:
                overlaps.append(1)
            active.append(1)
            time.sleep(0.03)
            active.pop()
            runs.append(1)
            if len(runs) >= 3:
                done.set()

        task = PeriodicTask(slow, interval=0.001).start()
        try:
            assert done.wait(timeout=5)
        finally:
            task.stop()

        assert overlaps == []

    def test_run_once_reports_outcome(self):
        """Test run_once returns whether the call succeeded."""
        from face_kiosk.periodic import PeriodicTask

        def fail():
            raise ValueError("bad")

        assert PeriodicTask(lambda: None, interval=1).run_once() is True
        assert PeriodicTask(fail, interval=1).run_once() is False

    def test_invalid_interval(self):
        """Test a non-positive interval is rejected."""
        from face_kiosk.periodic import PeriodicTask

        with pytest.raises(ValueError):
            PeriodicTask(lambda: None, interval=0)
