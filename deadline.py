"""
Global run deadline.

A single Deadline is created when a run starts and shared by the browser
session and the fetcher. Every blocking operation caps its own timeout with
remaining() and calls check() before starting.
"""
import time

from errors import DeadlineExceeded


class Deadline:
    """A fixed point in (monotonic) time after which work must stop."""

    def __init__(self, timeout, clock=time.monotonic):
        """
        Args:
            timeout (float): Seconds from now until the deadline
            clock (callable): Monotonic clock, replaceable in tests
        """
        self.timeout = float(timeout)
        self._clock = clock
        self.expires_at = clock() + self.timeout

    def remaining(self):
        """Seconds left, never negative."""
        return max(0.0, self.expires_at - self._clock())

    def expired(self):
        return self._clock() >= self.expires_at

    def check(self, step=None):
        """Raise DeadlineExceeded if the deadline has elapsed."""
        if self.expired():
            raise DeadlineExceeded(step)

    def cap(self, timeout=None):
        """Return timeout limited to the time left; None means no limit of its own."""
        remaining = self.remaining()
        if timeout is None:
            return remaining
        return min(float(timeout), remaining)
