"""Low-level HTTP client for the DSpace REST API.

Handles authentication headers, status classification and the single
re-authentication retry.
"""
from __future__ import annotations

import json as jsonlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import requests
from requests.structures import CaseInsensitiveDict

from .auth import BEARER_PREFIX, DEFAULT_TIMEOUT, TokenManager
from .endpoints import CSRF_REQUEST_HEADER, CSRF_RESPONSE_HEADER
from .exceptions import (
    ErrorKind,
    MalformedResponseError,
    RequestTimeoutError,
    TransportError,
    classify_status,
)

logger = logging.getLogger(__name__)

Body = Union[Mapping[str, Any], list, str, None]

JSON_CONTENT_TYPE = "application/json"
URI_LIST_CONTENT_TYPE = "text/uri-list"


@dataclass(frozen=True)
class HttpOutcome:
    """Successful result of an executed request."""

    status_code: int
    body: str
    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            MalformedResponseError: If the body is empty or not valid JSON
        """
        if not self.body:
            raise MalformedResponseError("empty response body", self.path)
        try:
            return jsonlib.loads(self.body)
        except ValueError as exc:
            raise MalformedResponseError(f"invalid JSON: {exc}", self.path) from exc


class DSpaceClient:
    """HTTP client for the DSpace REST API with automatic authentication.

    Features:
    - Bearer token (and CSRF token) attached to every request
    - Status codes mapped onto the typed exceptions in ``exceptions.py``
    - One renew-and-retry cycle when the server rejects the token

    Usage:
        client = DSpaceClient(token_manager, transport)
        outcome = client.get("/server/api/eperson/epersons")
    """

    def __init__(
        self,
        token_manager: TokenManager,
        transport: requests.Session,
        timeout: Tuple[float, float] = DEFAULT_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            token_manager: Source of bearer tokens (shared, not owned)
            transport: Shared HTTP session (shared, not owned)
            timeout: (connect, read) timeout in seconds
        """
        self.token_manager = token_manager
        self.base_url = token_manager.base_url
        self._transport = transport
        self._timeout = timeout

    def execute(
        self,
        method: str,
        path: str,
        body: Body = None,
        params: Optional[Mapping[str, Any]] = None,
        content_type: Optional[str] = None,
    ) -> HttpOutcome:
        """Execute one authenticated request.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            path: API path relative to the base URL, may carry a query string
            body: JSON-serializable payload, or a pre-encoded string
            params: Extra query parameters
            content_type: Overrides the Content-Type of a string body

        Returns:
            HttpOutcome for a 2xx response

        Raises:
            AuthenticationError: If the retried request is rejected again, or renewal fails
            ValidationError, NotFoundError, ConflictError, PreconditionFailedError:
                For the matching status codes
            RequestTimeoutError: On connect/read timeout or a 408
            TransportError: On connection failures and any other status
        """
        method = method.upper()
        token = self.token_manager.get_valid_token()
        resp = self._send(method, path, token, body, params, content_type)

        if classify_status(resp.status_code) is ErrorKind.AUTHENTICATION:
            logger.warning(f"{method} {path} rejected with {resp.status_code}; renewing session and retrying once")
            self.token_manager.invalidate(token)
            token = self.token_manager.get_valid_token()
            resp = self._send(method, path, token, body, params, content_type)

        return self._handle_response(method, path, resp)

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> HttpOutcome:
        """Execute GET request with automatic authentication."""
        return self.execute("GET", path, params=params)

    def post(
        self,
        path: str,
        body: Body = None,
        params: Optional[Mapping[str, Any]] = None,
        content_type: Optional[str] = None,
    ) -> HttpOutcome:
        """Execute POST request with automatic authentication."""
        return self.execute("POST", path, body, params, content_type)

    def put(self, path: str, body: Body = None, params: Optional[Mapping[str, Any]] = None) -> HttpOutcome:
        """Execute PUT request with automatic authentication."""
        return self.execute("PUT", path, body, params)

    def patch(self, path: str, body: Body = None) -> HttpOutcome:
        """Execute PATCH request (JSON Patch body) with automatic authentication."""
        return self.execute("PATCH", path, body, content_type=JSON_CONTENT_TYPE)

    def delete(self, path: str) -> HttpOutcome:
        """Execute DELETE request with automatic authentication."""
        return self.execute("DELETE", path)

    def _send(
        self,
        method: str,
        path: str,
        token: str,
        body: Body,
        params: Optional[Mapping[str, Any]],
        content_type: Optional[str],
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {
            "Authorization": f"{BEARER_PREFIX}{token}",
            "Accept": JSON_CONTENT_TYPE,
        }
        csrf_token = self.token_manager.csrf_token
        if csrf_token:
            headers[CSRF_REQUEST_HEADER] = csrf_token

        data: Optional[str] = None
        if isinstance(body, str):
            data = body
            headers["Content-Type"] = content_type or JSON_CONTENT_TYPE
        elif body is not None:
            data = jsonlib.dumps(body)
            headers["Content-Type"] = content_type or JSON_CONTENT_TYPE

        logger.debug(f"{method} {url}")
        try:
            resp = self._transport.request(
                method,
                url,
                params=dict(params) if params else None,
                data=data,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            logger.warning(f"{method} {url} timed out")
            raise RequestTimeoutError(f"request timed out: {exc}", endpoint=path) from exc
        except requests.RequestException as exc:
            logger.error(f"{method} {url} failed: {exc}")
            raise TransportError(f"request failed: {exc}", endpoint=path) from exc

        self.token_manager.update_csrf_token(resp.headers.get(CSRF_RESPONSE_HEADER))
        return resp

    def _handle_response(self, method: str, path: str, resp: requests.Response) -> HttpOutcome:
        """Centralized status handling.

        Raises:
            DSpaceAPIError subclass: If the status is not 2xx
        """
        body = resp.text
        kind = classify_status(resp.status_code)
        if kind is None:
            logger.debug(f"{method} {path} -> {resp.status_code}")
            return HttpOutcome(
                status_code=resp.status_code,
                body=body,
                method=method,
                path=path,
                headers=CaseInsensitiveDict(resp.headers),
            )

        reason = resp.reason or "HTTP error"
        message = f"{method} failed: {reason}"
        if kind is ErrorKind.AUTHENTICATION:
            message = f"{method} rejected after re-authentication: {reason}"
        logger.error(f"{method} {path} -> {resp.status_code} ({kind.value})")
        raise kind.exception_class(message, status_code=resp.status_code, endpoint=path, body=body)


__all__ = [
    "DSpaceClient",
    "HttpOutcome",
    "JSON_CONTENT_TYPE",
    "URI_LIST_CONTENT_TYPE",
]
