"""Session and token management for the DSpace REST API.

DSpace authenticates in two steps:
1. ``GET /server/api/authn/status`` hands out a CSRF token (cookie
   ``DSPACE-XSRF-COOKIE`` and/or header ``DSPACE-XSRF-TOKEN``).
2. ``POST /server/api/authn/login`` with the credentials and the CSRF token
   in ``X-XSRF-TOKEN`` returns the bearer token in the ``Authorization``
   response header.

The server does not report an expiry, so a fixed (configurable) session
lifetime is assumed.
"""
from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Type

import requests

from .endpoints import (
    AUTHN_LOGIN,
    AUTHN_LOGOUT,
    AUTHN_STATUS,
    CSRF_COOKIE,
    CSRF_REQUEST_HEADER,
    CSRF_RESPONSE_HEADER,
)
from .exceptions import (
    AuthenticationError,
    DSpaceAPIError,
    MalformedResponseError,
    RequestTimeoutError,
    TransportError,
    error_for_status,
)
from .session import EMPTY_SESSION, Credentials, Session

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
DEFAULT_SESSION_LIFETIME = timedelta(hours=1)
DEFAULT_SAFETY_MARGIN = timedelta(seconds=10)
DEFAULT_TIMEOUT: Tuple[float, float] = (10.0, 30.0)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def token_fingerprint(token: str) -> str:
    """Short SHA-256 digest of a token, safe to put in log lines."""
    return hashlib.sha256(token.encode()).hexdigest()[:12]


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class TokenManager:
    """Owner of the DSpace session with single-flight renewal.

    Features:
    - Lazy login: the handshake runs on the first ``get_valid_token()``
    - Double-checked locking so concurrent callers share one handshake
    - Targeted invalidation after the server rejects a token

    Usage:
        manager = TokenManager("https://dspace.example.org", creds, requests.Session())
        token = manager.get_valid_token()
    """

    def __init__(
        self,
        base_url: str,
        credentials: Credentials,
        transport: requests.Session,
        session_lifetime: timedelta = DEFAULT_SESSION_LIFETIME,
        safety_margin: timedelta = DEFAULT_SAFETY_MARGIN,
        timeout: Tuple[float, float] = DEFAULT_TIMEOUT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the token manager.

        Args:
            base_url: DSpace base URL (e.g. https://dspace.example.org)
            credentials: Login credentials
            transport: Shared HTTP session, owned by the caller
            session_lifetime: Assumed validity of a bearer token
            safety_margin: Subtracted from the lifetime so a token never expires mid-request
            timeout: (connect, read) timeout in seconds for handshake calls
            clock: Source of the current time (timezone-aware)

        Raises:
            ValueError: If the lifetime is not positive or the margin does not fit in it
        """
        if session_lifetime <= timedelta(0):
            raise ValueError("session_lifetime must be positive")
        if safety_margin < timedelta(0) or safety_margin >= session_lifetime:
            raise ValueError("safety_margin must be non-negative and shorter than session_lifetime")

        self.base_url = base_url.rstrip("/")
        self._credentials = credentials
        self._transport = transport
        self._lifetime = session_lifetime
        self._margin = safety_margin
        self._timeout = timeout
        self._clock = clock
        self._session: Session = EMPTY_SESSION
        self._lock = threading.Lock()

    # ─────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────

    def get_valid_token(self) -> str:
        """Return a bearer token that is valid right now.

        Renews the session when it is empty or stale. When several threads
        find the session stale at once, only the first one to take the lock
        performs the handshake; the others re-check after it releases the
        lock and reuse its token.

        Raises:
            AuthenticationError: If the handshake fails
            RequestTimeoutError: If a handshake call times out
        """
        session = self._session
        if not session.is_stale(self._clock()):
            return session.bearer_token

        with self._lock:
            session = self._session
            if not session.is_stale(self._clock()):
                return session.bearer_token
            self._session = self._renew()
            return self._session.bearer_token

    def authenticate(self) -> str:
        """Make sure a valid session exists and return its bearer token."""
        return self.get_valid_token()

    def invalidate(self, token: Optional[str] = None) -> None:
        """Force the next ``get_valid_token()`` to log in again.

        Args:
            token: The token the server just rejected. When given, the session
                is only dropped if it still holds that token, so a burst of
                rejections for one token causes a single renewal.
        """
        with self._lock:
            current = self._session
            if token is not None and current.bearer_token != token:
                logger.debug("[auth] Ignoring invalidation of an already replaced token")
                return
            if current.bearer_token:
                logger.info(f"[auth] Session invalidated (token={token_fingerprint(current.bearer_token)})")
            self._session = EMPTY_SESSION

    def is_authenticated(self) -> bool:
        """Return True when a non-stale session is held."""
        return not self._session.is_stale(self._clock())

    @property
    def csrf_token(self) -> str:
        """CSRF token of the current session (empty before the first login)."""
        return self._session.csrf_token

    def update_csrf_token(self, csrf_token: Optional[str]) -> None:
        """Store a CSRF token rotated by the server on a regular response."""
        if not csrf_token:
            return
        with self._lock:
            if self._session.bearer_token and self._session.csrf_token != csrf_token:
                self._session = replace(self._session, csrf_token=csrf_token)

    def logout(self) -> None:
        """Terminate the server-side session and forget the local one.

        The local session is cleared even when the logout call fails; the
        failure is still raised.
        """
        with self._lock:
            session = self._session
            self._session = EMPTY_SESSION
        if not session.bearer_token:
            return

        headers = {"Authorization": f"{BEARER_PREFIX}{session.bearer_token}"}
        if session.csrf_token:
            headers[CSRF_REQUEST_HEADER] = session.csrf_token
        resp = self._send("POST", AUTHN_LOGOUT, TransportError, headers=headers)
        if not _is_success(resp.status_code):
            raise error_for_status(resp.status_code, "logout failed", self._url(AUTHN_LOGOUT), resp.text)
        logger.info(f"[auth] Logged out (token={token_fingerprint(session.bearer_token)})")

    def check_status(self) -> Dict[str, Any]:
        """Call the status endpoint without credentials (connection test).

        Returns:
            The decoded status document (``okay``, ``authenticated``, ...)

        Raises:
            DSpaceAPIError: If the server answers with a non-2xx status
            MalformedResponseError: If the body is not a JSON object
        """
        endpoint = self._url(AUTHN_STATUS)
        resp = self._send("GET", AUTHN_STATUS, TransportError)
        if not _is_success(resp.status_code):
            raise error_for_status(resp.status_code, "status check failed", endpoint, resp.text)
        try:
            document = resp.json()
        except ValueError as exc:
            raise MalformedResponseError("status response is not valid JSON", endpoint) from exc
        if not isinstance(document, dict):
            raise MalformedResponseError("status response is not a JSON object", endpoint)
        return document

    # ─────────────────────────────────────────────────────────────────────
    # Handshake
    # ─────────────────────────────────────────────────────────────────────

    def _renew(self) -> Session:
        """Run the status + login handshake and build a fresh session.

        Must be called with ``self._lock`` held. Nothing is assigned here, so
        a failed handshake leaves the previous session in place.
        """
        logger.info(f"[auth] Starting login handshake against {self.base_url}")
        csrf_token = self._fetch_csrf_token()

        endpoint = self._url(AUTHN_LOGIN)
        resp = self._send(
            "POST",
            AUTHN_LOGIN,
            AuthenticationError,
            data=self._credentials.as_form(),
            headers={CSRF_REQUEST_HEADER: csrf_token},
        )
        if not _is_success(resp.status_code):
            logger.warning(f"[auth] Login rejected with status {resp.status_code}")
            raise AuthenticationError("login rejected", resp.status_code, endpoint, resp.text)

        header = resp.headers.get("Authorization", "")
        bearer_token = header[len(BEARER_PREFIX):].strip() if header.startswith(BEARER_PREFIX) else ""
        if not bearer_token:
            raise AuthenticationError("authorization header missing", resp.status_code, endpoint)

        session = Session(
            csrf_token=self._extract_csrf_token(resp) or csrf_token,
            bearer_token=bearer_token,
            expires_at=self._clock() + self._lifetime - self._margin,
        )
        logger.info(
            f"[auth] Login succeeded (token={token_fingerprint(bearer_token)}, "
            f"expires_at={session.expires_at.isoformat()})"
        )
        return session

    def _fetch_csrf_token(self) -> str:
        endpoint = self._url(AUTHN_STATUS)
        resp = self._send("GET", AUTHN_STATUS, AuthenticationError)
        if not _is_success(resp.status_code):
            raise AuthenticationError("csrf token missing", resp.status_code, endpoint, resp.text)
        csrf_token = self._extract_csrf_token(resp)
        if not csrf_token:
            raise AuthenticationError("csrf token missing", resp.status_code, endpoint)
        return csrf_token

    def _extract_csrf_token(self, resp: requests.Response) -> str:
        """Return the CSRF token carried by a response, newest source first."""
        header = resp.headers.get(CSRF_RESPONSE_HEADER)
        if header:
            return header
        for jar in (resp.cookies, self._transport.cookies):
            for cookie in jar:
                if cookie.name == CSRF_COOKIE and cookie.value:
                    return cookie.value
        return ""

    def _send(
        self,
        method: str,
        path: str,
        on_error: Type[DSpaceAPIError],
        **kwargs: Any,
    ) -> requests.Response:
        """Send an unauthenticated request, mapping transport failures.

        Args:
            method: HTTP method
            path: API path relative to the base URL
            on_error: Exception type for connection-level failures
            **kwargs: Passed to ``requests.Session.request``
        """
        url = self._url(path)
        try:
            return self._transport.request(method, url, timeout=self._timeout, **kwargs)
        except requests.Timeout as exc:
            logger.warning(f"[auth] {method} {url} timed out")
            raise RequestTimeoutError(f"request timed out: {exc}", endpoint=url) from exc
        except requests.RequestException as exc:
            logger.error(f"[auth] {method} {url} failed: {exc}")
            raise on_error(f"request failed: {exc}", endpoint=url) from exc

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"
