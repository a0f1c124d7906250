"""Retry policies consulted by the drain worker after a failed attempt."""

from obsrvus.queue import LogEntry


class RetryPolicy:
    def should_continue(self, entry: LogEntry) -> bool:
        raise NotImplementedError


class RetryForever(RetryPolicy):
    """Keep draining no matter how often an entry fails.

    There is no delay between attempts, so an entry that can never be
    delivered keeps the worker spinning until the process exits.
    """

    def should_continue(self, entry: LogEntry) -> bool:
        return True


class BoundedRetry(RetryPolicy):
    """End the drain session once an entry has failed max_attempts times.

    The entry stays queued; the next log() call starts a fresh worker that
    retries it.
    """

    def __init__(self, max_attempts: int):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    def should_continue(self, entry: LogEntry) -> bool:
        return entry.attempts < self.max_attempts
