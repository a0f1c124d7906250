"""One delivery attempt: serialize a payload and POST it to the log endpoint.

`send` never raises; it reports the outcome as a DeliveryResult. `deliver`
is the boundary used by the facade and the drain worker, and re-raises the
original failure only when the caller asked for it.
"""

import dataclasses
import datetime
import decimal
import enum
import json
import os
import threading
import uuid
from dataclasses import dataclass

import httpx
from loguru import logger

LOG_URL = os.environ.get("OBSRVUS_URL", "https://obsrv.us/api/v1/log")
TIMEOUT = float(os.environ.get("OBSRVUS_TIMEOUT", "5.0"))

_client: httpx.Client | None = None
_client_lock = threading.Lock()


def _get_client() -> httpx.Client:
    global _client
    with _client_lock:
        if _client is None:
            _client = httpx.Client(timeout=TIMEOUT)
        return _client


@dataclass
class DeliveryResult:
    ok: bool
    status_code: int | None = None
    error: Exception | None = None


def _default(obj):
    """json.dumps fallback for values the json module can't encode itself."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (datetime.datetime, datetime.date, datetime.time)):
        return obj.isoformat()
    if isinstance(obj, (uuid.UUID, decimal.Decimal)):
        return str(obj)
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj).decode("utf-8", errors="replace")
    for method in ("model_dump", "to_dict"):
        if callable(getattr(obj, method, None)):
            return getattr(obj, method)()
    if hasattr(obj, "__dict__"):
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def to_json(payload) -> str:
    """Serialize an arbitrary object graph. Raises on unsupported or cyclic values."""
    return json.dumps(payload, default=_default, ensure_ascii=False)


def send(application_key: str, system_key: str, payload) -> DeliveryResult:
    """POST one payload. A completed request/response cycle counts as success."""
    try:
        body = to_json(payload).encode("utf-8")
    except Exception as exc:
        # Includes RecursionError and whatever a to_dict/model_dump hook raises
        logger.warning(f"Could not serialize payload: {type(exc).__name__}: {exc}")
        return DeliveryResult(ok=False, error=exc)

    try:
        response = _get_client().post(
            LOG_URL,
            content=body,
            headers={
                "Content-Type": "application/json",
                "ApplicationKey": application_key,
                "SystemKey": system_key,
            },
        )
        # Body is discarded, but drain it so the connection completes cleanly
        response.read()
    except (httpx.HTTPError, httpx.StreamError, httpx.InvalidURL, UnicodeEncodeError) as exc:
        logger.warning(f"Delivery to {LOG_URL} failed: {type(exc).__name__}: {exc}")
        return DeliveryResult(ok=False, error=exc)
    except Exception as exc:
        # Unexpected error from the client (bad header values, etc.)
        logger.warning(f"Unexpected delivery error: {type(exc).__name__}: {exc}")
        return DeliveryResult(ok=False, error=exc)

    logger.debug(f"Delivered payload for {application_key}/{system_key} "
                 f"(status={response.status_code})")
    return DeliveryResult(ok=True, status_code=response.status_code)


def deliver(application_key: str, system_key: str, payload,
            raise_on_failure: bool = False) -> bool:
    """Attempt delivery once. Re-raises the original failure if asked to."""
    result = send(application_key, system_key, payload)
    if not result.ok and raise_on_failure and result.error is not None:
        raise result.error
    return result.ok
