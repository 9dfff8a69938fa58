"""Pytest shared fixtures for the DSpace connector tests."""
import json
import pathlib
import sys
import threading
import time
from http import HTTPStatus
from types import SimpleNamespace
from typing import Optional
from unittest.mock import Mock

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from dspace_provisioning.core.dspace.auth import TokenManager
from dspace_provisioning.core.dspace.client import DSpaceClient
from dspace_provisioning.core.dspace.endpoints import (
    AUTHN_LOGIN,
    AUTHN_LOGOUT,
    AUTHN_STATUS,
    CSRF_RESPONSE_HEADER,
)
from dspace_provisioning.core.dspace.session import Credentials

BASE_URL = "https://dspace.example.org"
CSRF_TOKEN = "csrf-token"


def make_response(
    status_code: int = 200,
    body=None,
    headers: Optional[dict] = None,
    cookies: Optional[dict] = None,
    text: Optional[str] = None,
    url: str = BASE_URL,
) -> requests.Response:
    """Build a real ``requests.Response`` without touching the network."""
    resp = requests.Response()
    resp.status_code = status_code
    if text is not None:
        resp._content = text.encode("utf-8")
    elif body is not None:
        resp._content = json.dumps(body).encode("utf-8")
    else:
        resp._content = b""
    resp.encoding = "utf-8"
    resp.url = url
    resp.headers.update(headers or {})
    for name, value in (cookies or {}).items():
        resp.cookies.set(name, value)
    try:
        resp.reason = HTTPStatus(status_code).phrase
    except ValueError:
        resp.reason = "Unknown"
    return resp


class FakeDSpace:
    """Stand-in DSpace server behind ``requests.Session.request``.

    Handshake endpoints answer on their own (each login issues ``token-<n>``);
    every other call pops the next queued response (or raises it when it is
    an exception).
    """

    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.counters = SimpleNamespace(status=0, login=0, logout=0)
        self.login_delay = 0.0
        self.login_requests = []
        self.logout_requests = []
        self.api_calls = []
        self._responses = []
        self._lock = threading.Lock()

    def queue(self, *responses):
        self._responses.extend(responses)

    def __call__(self, method, url, **kwargs):
        path = url[len(self.base_url):]
        if path == AUTHN_STATUS:
            with self._lock:
                self.counters.status += 1
            return make_response(
                200,
                {"okay": True, "authenticated": False},
                headers={CSRF_RESPONSE_HEADER: CSRF_TOKEN},
            )
        if path == AUTHN_LOGIN:
            if self.login_delay:
                time.sleep(self.login_delay)
            with self._lock:
                self.counters.login += 1
                number = self.counters.login
                self.login_requests.append(kwargs)
            return make_response(200, headers={"Authorization": f"Bearer token-{number}"})
        if path == AUTHN_LOGOUT:
            with self._lock:
                self.counters.logout += 1
                self.logout_requests.append(kwargs)
            return make_response(204)

        with self._lock:
            self.api_calls.append(SimpleNamespace(method=method, path=path, **kwargs))
            if not self._responses:
                raise AssertionError(f"unexpected call {method} {path}")
            outcome = self._responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_dspace():
    return FakeDSpace()


@pytest.fixture
def transport(fake_dspace):
    """A real ``requests.Session`` whose ``request`` is routed to ``fake_dspace``."""
    session = requests.Session()
    session.request = Mock(side_effect=fake_dspace)
    yield session
    session.close()


@pytest.fixture
def credentials():
    return Credentials("admin@example.org", "s3cret")


@pytest.fixture
def token_manager(transport, credentials):
    return TokenManager(BASE_URL, credentials, transport)


@pytest.fixture
def client(token_manager, transport):
    return DSpaceClient(token_manager, transport)
