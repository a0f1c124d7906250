"""Forward application payloads to the Obsrv.us logging endpoint."""

from loguru import logger

from obsrvus.client import ArgumentError, Obsrvus, get_dispatcher, log, set_dispatcher
from obsrvus.config import ObsrvusConfig
from obsrvus.dispatcher import Dispatcher
from obsrvus.policy import BoundedRetry, RetryForever, RetryPolicy
from obsrvus.queue import DeliveryQueue, LogEntry
from obsrvus.transport import DeliveryResult

# Library code stays quiet unless the application opts in
logger.disable("obsrvus")

__all__ = [
    "ArgumentError",
    "BoundedRetry",
    "DeliveryQueue",
    "DeliveryResult",
    "Dispatcher",
    "LogEntry",
    "Obsrvus",
    "ObsrvusConfig",
    "RetryForever",
    "RetryPolicy",
    "get_dispatcher",
    "log",
    "set_dispatcher",
]
