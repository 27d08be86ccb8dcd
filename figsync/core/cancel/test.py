"""Tests for cancellation token."""

import threading
import time

import pytest

from .lib import CancellationToken, OperationCancelled, check, run_cancellable


class TestCancellationToken:
    """Tests for CancellationToken."""

    @pytest.mark.unit
    def test_not_cancelled_by_default(self):
        token = CancellationToken()
        assert token.cancelled is False
        token.raise_if_cancelled()

    @pytest.mark.unit
    def test_cancel_raises(self):
        """Cancelled token raises on check."""
        token = CancellationToken()
        token.cancel()
        assert token.cancelled is True
        with pytest.raises(OperationCancelled):
            token.raise_if_cancelled()

    @pytest.mark.unit
    def test_cancel_from_other_thread(self):
        """Cancellation is visible across threads."""
        token = CancellationToken()
        worker = threading.Thread(target=token.cancel)
        worker.start()
        worker.join()
        assert token.wait(timeout=1.0) is True

    @pytest.mark.unit
    def test_check_accepts_none(self):
        check(None)
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            check(token)


class TestRunCancellable:
    """Tests for abandoning blocking calls on cancellation."""

    @pytest.mark.unit
    def test_returns_result(self):
        assert run_cancellable(lambda: 42, CancellationToken()) == 42
        assert run_cancellable(lambda: 42, None) == 42

    @pytest.mark.unit
    def test_propagates_call_errors(self):
        def fail():
            raise TimeoutError("request timed out")

        with pytest.raises(TimeoutError, match="timed out"):
            run_cancellable(fail, CancellationToken())

    @pytest.mark.unit
    def test_already_cancelled_never_starts_call(self):
        token = CancellationToken()
        token.cancel()
        calls = []
        with pytest.raises(OperationCancelled):
            run_cancellable(lambda: calls.append(1), token)
        assert calls == []

    @pytest.mark.unit
    def test_abandons_blocked_call(self):
        """A cancel during a slow call returns within a poll interval."""
        token = CancellationToken()
        release = threading.Event()
        aborted = []
        timer = threading.Timer(0.1, token.cancel)
        timer.start()

        started = time.monotonic()
        try:
            with pytest.raises(OperationCancelled):
                run_cancellable(
                    lambda: release.wait(5.0),
                    token,
                    on_cancel=lambda: aborted.append(True),
                )
            elapsed = time.monotonic() - started
        finally:
            release.set()
            timer.cancel()

        assert elapsed < 0.5
        assert aborted == [True]
