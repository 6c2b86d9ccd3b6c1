"""
Pytest configuration and shared fixtures.
"""
import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from wire_driver.driver import DriverConfig, WebDriver

SESSION_ID = "abc123"
SESSION_PATH = f"/wd/hub/session/{SESSION_ID}"

Reply = Union[Dict[str, Any], str, httpx.Response, Callable[[httpx.Request], Any]]


def ok(value: Any = None, **extra: Any) -> Dict[str, Any]:
    """A successful wire protocol body."""
    body = {"status": 0, "value": value}
    body.update(extra)
    return body


def ref(id: str) -> Dict[str, str]:
    return {"ELEMENT": id}


class FakeWireServer:
    """
    In-process WebDriver server behind ``httpx.MockTransport``.

    Routes map ``(method, path)`` to one or more replies. With several replies
    they are served in order and the last one repeats. Unrouted commands get
    the protocol's "unknown command" status.
    """

    def __init__(self):
        self.requests: List[Tuple[str, str, Any]] = []
        self.routes: Dict[Tuple[str, str], List[Reply]] = {}
        self.on("POST", "/wd/hub/session", ok({}, sessionId=SESSION_ID))
        self.on("POST", f"{SESSION_PATH}/timeouts", ok())
        self.on("DELETE", SESSION_PATH, ok())

    def on(self, method: str, path: str, *replies: Reply) -> None:
        self.routes[(method, path)] = list(replies)

    def on_session(self, method: str, path: str, *replies: Reply) -> None:
        self.on(method, SESSION_PATH + path, *replies)

    def sent(self, method: Optional[str] = None, path: Optional[str] = None) -> List[Tuple[str, str, Any]]:
        """Recorded requests, optionally filtered by method and session-relative path."""
        return [
            r for r in self.requests
            if (method is None or r[0] == method)
            and (path is None or r[1] == SESSION_PATH + path)
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, payload))

        replies = self.routes.get((request.method, request.url.path))
        if not replies:
            return httpx.Response(404, json={"status": 9, "value": {"message": "unknown command"}})
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if callable(reply):
            reply = reply(request)
        if isinstance(reply, httpx.Response):
            return reply
        if isinstance(reply, str):
            return httpx.Response(200, text=reply)
        return httpx.Response(200, json=reply)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def server():
    """Fake server that accepts session creation and timeouts."""
    return FakeWireServer()


@pytest.fixture
def config():
    return DriverConfig()


@pytest.fixture
async def driver(server, config):
    """Create a driver with an initialized session."""
    d = WebDriver(config, transport=server.transport)
    await d.init()
    yield d
    await d.aclose()


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires a WebDriver server)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    # Add markers based on test names or locations
    for item in items:
        if "integration" in item.nodeid.lower():
            item.add_marker(pytest.mark.integration)
        if "slow" in item.nodeid.lower():
            item.add_marker(pytest.mark.slow)
