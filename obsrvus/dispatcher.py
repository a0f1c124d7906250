"""Single-flight background delivery.

A Dispatcher owns the retry queue, the retry policy and at most one daemon
drain thread. submit() may be called from any thread; whichever caller wins
DeliveryQueue.claim_worker() starts the thread, everyone else just appends.
"""

import threading
from typing import Callable

from loguru import logger

from obsrvus import transport
from obsrvus.policy import RetryForever, RetryPolicy
from obsrvus.queue import DeliveryQueue, LogEntry

DeliverFn = Callable[[str, str, object, bool], bool]


class Dispatcher:
    def __init__(self, deliver: DeliverFn | None = None,
                 policy: RetryPolicy | None = None,
                 queue: DeliveryQueue | None = None):
        self._deliver = deliver or transport.deliver
        self.policy = policy or RetryForever()
        self.queue = queue if queue is not None else DeliveryQueue()
        self.workers_started = 0
        self._thread: threading.Thread | None = None
        self._thread_lock = threading.Lock()

    @property
    def worker_active(self) -> bool:
        return self.queue.worker_active

    def submit(self, entry: LogEntry) -> None:
        self.queue.append(entry)
        if self.queue.claim_worker():
            self._start_worker()

    def _start_worker(self) -> None:
        thread = threading.Thread(target=self.drain, name="obsrvus-drain", daemon=True)
        with self._thread_lock:
            self.workers_started += 1
            self._thread = thread
        logger.debug(f"Starting drain worker #{self.workers_started}")
        try:
            thread.start()
        except RuntimeError:
            # Could not spawn a thread; let a later submit try again
            self.queue.release_worker(force=True)
            raise

    def drain(self) -> None:
        """Deliver queued entries until none are pending. Runs on the worker thread.

        Callers must have won claim_worker() first. An exception from a
        raise_on_failure entry ends the worker after the active flag has been
        released; the entry stays queued for the next worker.
        """
        try:
            while True:
                entry = self.queue.next_pending()
                if entry is None:
                    if self.queue.release_worker():
                        logger.debug("Drain worker finished, queue empty")
                        return
                    # Something was appended during the final scan
                    continue

                entry.attempts += 1
                if self._deliver(entry.application_key, entry.system_key,
                                 entry.payload, entry.raise_on_failure):
                    self.queue.mark_delivered(entry)
                elif not self.policy.should_continue(entry):
                    logger.warning(
                        f"Giving up drain session after {entry.attempts} failed "
                        f"attempts; {self.queue.pending_count()} entries still queued"
                    )
                    self.queue.release_worker(force=True)
                    return
        except BaseException:
            self.queue.release_worker(force=True)
            raise

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the current worker thread. Returns True if no worker is running."""
        with self._thread_lock:
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        return not self.worker_active
