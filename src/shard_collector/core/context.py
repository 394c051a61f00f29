"""
context.py
- Cancellation and deadline carrier passed through a collection cycle.
- The driver owns a root context that is cancelled on SIGINT/SIGTERM; each
  export cycle derives a child bounded by the reader's timeout.
- Thread-safe: the gauge callback runs on the metric reader's thread.
"""

import threading
import time

from shard_collector.core.errors import ContextCancelled, DeadlineExceeded


class CycleContext:
    def __init__(self, timeout=None, parent=None):
        self._cancelled = threading.Event()
        self._parent = parent
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def with_timeout(self, seconds):
        """Return a child context that expires after `seconds` or when this one is done."""
        return CycleContext(timeout=seconds, parent=self)

    def cancel(self):
        self._cancelled.set()

    def deadline(self):
        """Earliest monotonic deadline along the parent chain, or None."""
        deadlines = []
        ctx = self
        while ctx is not None:
            if ctx._deadline is not None:
                deadlines.append(ctx._deadline)
            ctx = ctx._parent
        return min(deadlines) if deadlines else None

    def remaining(self):
        """Seconds left before the deadline (never negative), or None without one."""
        deadline = self.deadline()
        if deadline is None:
            return None
        return max(deadline - time.monotonic(), 0.0)

    def err(self):
        ctx = self
        while ctx is not None:
            if ctx._cancelled.is_set():
                return ContextCancelled()
            ctx = ctx._parent
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            return DeadlineExceeded()
        return None

    def done(self):
        return self.err() is not None

    def raise_if_done(self):
        error = self.err()
        if error is not None:
            raise error

    def wait(self, timeout=None):
        """
        Block until this context is cancelled or `timeout` seconds pass.

        Only the context's own cancel flag is awaited; parents are re-checked
        on return. Returns True when the context is done.
        """
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._cancelled.wait(timeout)
        return self.done()


def background():
    """Root context with no deadline, cancelled only explicitly."""
    return CycleContext()
