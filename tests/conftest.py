# tests/conftest.py
from __future__ import annotations

import json
from typing import Any, Callable, List, Optional

import pytest
import requests

from clinic_console.clients import make_backend
from clinic_console.core.token_store import MemoryTokenStore
from clinic_console.services.notifications import Notifier


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text
        self.content = text.encode("utf-8")

    def json(self):
        if not self.text:
            raise ValueError("no body")
        return json.loads(self.text)


class FakeSession:
    """
    Stand-in for requests.Session. Routes are matched on (METHOD, url suffix);
    a route may be a FakeResponse, an exception instance, or a callable.
    """

    def __init__(self) -> None:
        self.routes: dict = {}
        self.calls: List[dict] = []

    def add(self, method: str, path: str, response: Any) -> None:
        self.routes[(method.upper(), path)] = response

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        call = {"method": method, "url": url, "params": params, "json": json,
                "headers": headers or {}, "timeout": timeout}
        self.calls.append(call)
        path = url.split("/api", 1)[-1]
        route = self.routes.get((method.upper(), path))
        if route is None:
            return FakeResponse(404, {"message": f"no route for {method} {path}"})
        if isinstance(route, BaseException):
            raise route
        if callable(route):
            return route(call)
        return route

    def calls_to(self, method: str, path: str) -> List[dict]:
        return [c for c in self.calls
                if c["method"] == method and c["url"].endswith(path)]


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def backend(session):
    return make_backend("http://backend.test/api", token_store=MemoryTokenStore("tok-123"),
                        session=session)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def token_file(tmp_path) -> str:
    return str(tmp_path / "auth.json")


@pytest.fixture
def connection_refused() -> Callable[[], Exception]:
    return lambda: requests.ConnectionError("connection refused")
