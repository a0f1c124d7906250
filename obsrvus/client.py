"""Logger facade: validate the call, then send now or queue for the worker."""

from __future__ import annotations

import threading

from obsrvus import transport
from obsrvus.config import ObsrvusConfig
from obsrvus.dispatcher import Dispatcher
from obsrvus.queue import LogEntry


class ArgumentError(ValueError):
    """A required argument was not a string, or was empty or whitespace-only."""

    def __init__(self, argument: str, message: str = "Cannot be null or blank."):
        super().__init__(f"{argument}: {message}")
        self.argument = argument


_dispatcher: Dispatcher | None = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> Dispatcher:
    global _dispatcher
    with _dispatcher_lock:
        if _dispatcher is None:
            _dispatcher = Dispatcher()
        return _dispatcher


def set_dispatcher(dispatcher: Dispatcher | None) -> None:
    """Swap the process-wide dispatcher. None resets to a fresh default on next use."""
    global _dispatcher
    with _dispatcher_lock:
        _dispatcher = dispatcher


def _require(value: str | None, argument: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ArgumentError(argument)


def log(application_key: str, system_key: str, payload,
        use_background: bool = True, raise_on_failure: bool = False) -> bool | None:
    """Log a payload.

    Synchronous mode returns the result of the delivery attempt. Background
    mode queues the payload and returns None; the outcome is not known yet.
    A None payload is ignored in both modes.
    """
    _require(application_key, "application_key")
    _require(system_key, "system_key")

    # Nothing worth sending
    if payload is None:
        return None

    if use_background:
        get_dispatcher().submit(LogEntry(
            application_key=application_key,
            system_key=system_key,
            payload=payload,
            raise_on_failure=raise_on_failure,
        ))
        return None

    return transport.deliver(application_key, system_key, payload, raise_on_failure)


class Obsrvus:
    """Logger bound to one application/system pair."""

    def __init__(self, application_key: str, system_key: str,
                 use_background: bool = True, raise_on_failure: bool = False):
        self.application_key = application_key
        self.system_key = system_key
        self.use_background = use_background
        self.raise_on_failure = raise_on_failure

    @classmethod
    def from_env(cls) -> Obsrvus:
        config = ObsrvusConfig.from_env()
        return cls(
            config.application_key,
            config.system_key,
            use_background=config.use_background,
            raise_on_failure=config.raise_on_failure,
        )

    @property
    def worker_active(self) -> bool:
        return get_dispatcher().worker_active

    def log(self, payload) -> bool | None:
        return log(
            self.application_key,
            self.system_key,
            payload,
            use_background=self.use_background,
            raise_on_failure=self.raise_on_failure,
        )
