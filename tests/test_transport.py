import dataclasses
import datetime
import enum
import json
import uuid
from decimal import Decimal

import httpx
import pytest

from obsrvus import transport
from obsrvus.transport import deliver, send, to_json

LOG_URL = "https://obsrv.us/api/v1/log"


@pytest.fixture(autouse=True)
def _reset_client(monkeypatch):
    """Reset module-level httpx client between tests."""
    monkeypatch.setattr(transport, "LOG_URL", LOG_URL)
    transport._client = None
    yield
    transport._client = None


def test_send_posts_json_with_key_headers(httpx_mock):
    httpx_mock.add_response(url=LOG_URL, method="POST", json={"ok": True})

    result = send("app-123", "sys-456", {"event": "deploy", "build": 42})

    assert result.ok
    assert result.status_code == 200
    assert result.error is None
    request = httpx_mock.get_requests()[0]
    assert request.method == "POST"
    assert request.headers["ApplicationKey"] == "app-123"
    assert request.headers["SystemKey"] == "sys-456"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"event": "deploy", "build": 42}


def test_send_encodes_utf8(httpx_mock):
    httpx_mock.add_response(url=LOG_URL)
    send("app", "sys", {"msg": "héllo wörld ✓"})
    request = httpx_mock.get_requests()[0]
    assert "héllo wörld ✓".encode("utf-8") in request.content


def test_status_code_is_not_interpreted(httpx_mock):
    """A completed cycle is success even when the server answers 500."""
    httpx_mock.add_response(url=LOG_URL, status_code=500, text="boom")
    result = send("app", "sys", {"a": 1})
    assert result.ok
    assert result.status_code == 500


def test_transport_failure_returns_false(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectError("Connection refused"), url=LOG_URL)
    result = send("app", "sys", {"a": 1})
    assert not result.ok
    assert isinstance(result.error, httpx.ConnectError)


def test_deliver_swallows_failure_by_default(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectError("Connection refused"), url=LOG_URL)
    assert deliver("app", "sys", {"a": 1}) is False


def test_deliver_reraises_original_failure(httpx_mock):
    httpx_mock.add_exception(httpx.ReadTimeout("too slow"), url=LOG_URL)
    with pytest.raises(httpx.ReadTimeout, match="too slow"):
        deliver("app", "sys", {"a": 1}, raise_on_failure=True)


def test_deliver_success(httpx_mock):
    httpx_mock.add_response(url=LOG_URL)
    assert deliver("app", "sys", "plain string payload", raise_on_failure=True) is True


def test_serialization_failure_makes_no_request(httpx_mock):
    payload = {"handle": object()}
    result = send("app", "sys", payload)
    assert not result.ok
    assert isinstance(result.error, TypeError)
    assert httpx_mock.get_requests() == []


def test_serialization_failure_reraised(httpx_mock):
    cyclic = []
    cyclic.append(cyclic)
    with pytest.raises(ValueError, match="Circular"):
        deliver("app", "sys", cyclic, raise_on_failure=True)
    assert httpx_mock.get_requests() == []


# -- Serializer ----------------------------------------------------------------


class Color(enum.Enum):
    RED = "red"


@dataclasses.dataclass
class Deploy:
    service: str
    version: int


class Plain:
    def __init__(self):
        self.name = "worker"
        self.tags = {"a"}
        self._secret = "hidden"


class Model:
    def model_dump(self):
        return {"kind": "model"}


def test_to_json_handles_object_graphs():
    payload = {
        "deploy": Deploy("api", 3),
        "when": datetime.datetime(2024, 5, 1, 12, 30, tzinfo=datetime.timezone.utc),
        "day": datetime.date(2024, 5, 1),
        "id": uuid.UUID("12345678-1234-5678-1234-567812345678"),
        "amount": Decimal("9.99"),
        "color": Color.RED,
        "tuple": (1, 2),
        "raw": b"bytes",
        "plain": Plain(),
        "model": Model(),
    }
    decoded = json.loads(to_json(payload))
    assert decoded == {
        "deploy": {"service": "api", "version": 3},
        "when": "2024-05-01T12:30:00+00:00",
        "day": "2024-05-01",
        "id": "12345678-1234-5678-1234-567812345678",
        "amount": "9.99",
        "color": "red",
        "tuple": [1, 2],
        "raw": "bytes",
        "plain": {"name": "worker", "tags": ["a"]},
        "model": {"kind": "model"},
    }


def test_to_json_keeps_non_ascii():
    assert to_json("ü") == '"ü"'


# -- Failures inside serialization hooks ---------------------------------------


class BrokenDict:
    def to_dict(self):
        raise KeyError("missing")


@dataclasses.dataclass
class Node:
    name: str
    children: list = dataclasses.field(default_factory=list)


def test_throwing_to_dict_returns_false(httpx_mock):
    result = send("app", "sys", BrokenDict())
    assert not result.ok
    assert isinstance(result.error, KeyError)
    assert deliver("app", "sys", BrokenDict()) is False
    assert httpx_mock.get_requests() == []


def test_throwing_to_dict_reraised_when_asked():
    with pytest.raises(KeyError, match="missing"):
        deliver("app", "sys", BrokenDict(), raise_on_failure=True)


def test_cyclic_dataclass_returns_false(httpx_mock):
    root = Node("root")
    root.children.append(root)
    result = send("app", "sys", root)
    assert not result.ok
    assert isinstance(result.error, RecursionError)
    assert httpx_mock.get_requests() == []


def test_deep_nesting_returns_false(httpx_mock):
    payload = []
    for _ in range(100_000):
        payload = [payload]
    assert deliver("app", "sys", payload) is False
    assert httpx_mock.get_requests() == []


def test_concurrent_get_client_builds_one_client(monkeypatch):
    import threading
    import time

    created = []

    class SlowClient(httpx.Client):
        def __init__(self, *args, **kwargs):
            time.sleep(0.01)
            created.append(self)
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(transport.httpx, "Client", SlowClient)
    barrier = threading.Barrier(10)
    seen = []

    def worker():
        barrier.wait()
        seen.append(transport._get_client())

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(created) == 1
    assert all(c is created[0] for c in seen)
