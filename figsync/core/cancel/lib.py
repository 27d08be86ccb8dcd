"""Cancellation token checked between node visits.

Traversals are resumable only at node granularity: callers check the
token before visiting a node, never in the middle of one. Blocking calls
made during a visit (external classifier requests) go through
`run_cancellable`, which gives up on them within one poll interval.
"""

import logging
import threading
from typing import Callable, TypeVar

__all__ = [
    "CancellationToken",
    "OperationCancelled",
    "POLL_INTERVAL",
    "check",
    "run_cancellable",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Seconds between cancellation checks while a blocking call is in flight
POLL_INTERVAL = 0.05


class OperationCancelled(Exception):
    """Raised when a traversal observes a cancelled token."""


class CancellationToken:
    """Thread-safe cancellation flag.

    Example:
        >>> token = CancellationToken()
        >>> token.raise_if_cancelled()  # no-op
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or timeout elapses.

        Returns:
            True if the token was cancelled.
        """
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled")


def check(token: CancellationToken | None) -> None:
    """Raise if an optional token has been cancelled."""
    if token is not None:
        token.raise_if_cancelled()


def run_cancellable(
    call: Callable[[], T],
    cancel: CancellationToken | None,
    *,
    on_cancel: Callable[[], None] | None = None,
    poll_interval: float = POLL_INTERVAL,
) -> T:
    """Run a blocking call, abandoning it as soon as the token fires.

    The call runs on a daemon thread while the caller polls the token. On
    cancellation `on_cancel` is invoked (to abort the call, e.g. by closing
    its client) and OperationCancelled is raised without waiting for the
    call to return. Exceptions raised by the call propagate unchanged.

    Without a token the call simply runs on the caller's thread.

    Raises:
        OperationCancelled: If the token is or becomes cancelled.
    """
    if cancel is None:
        return call()
    cancel.raise_if_cancelled()

    finished = threading.Event()
    outcome: dict[str, object] = {}

    def target() -> None:
        try:
            outcome["result"] = call()
        except Exception as e:
            outcome["error"] = e
        finally:
            finished.set()

    threading.Thread(target=target, name="cancellable-call", daemon=True).start()
    while not finished.wait(poll_interval):
        if cancel.cancelled:
            if on_cancel is not None:
                try:
                    on_cancel()
                except Exception as e:
                    logger.warning(f"Abort hook failed after cancellation: {e}")
            raise OperationCancelled("Operation was cancelled")

    if "error" in outcome:
        raise outcome["error"]
    return outcome["result"]
