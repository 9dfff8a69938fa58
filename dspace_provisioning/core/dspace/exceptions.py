"""DSpace-specific exceptions for error handling."""
from __future__ import annotations

from enum import Enum
from typing import Optional, Type


class DSpaceError(Exception):
    """Base exception for all DSpace operations."""
    pass


class ConfigurationError(DSpaceError, ValueError):
    """Connector configuration is missing or invalid."""
    pass


class MalformedResponseError(DSpaceError):
    """Response body does not have the expected JSON shape.

    Attributes:
        message: What was missing or unparsable
        endpoint: API endpoint that produced the body (may be empty)
    """

    def __init__(self, message: str, endpoint: str = ""):
        self.message = message
        self.endpoint = endpoint
        prefix = f"{endpoint}: " if endpoint else ""
        super().__init__(f"{prefix}{message}")


class DSpaceAPIError(DSpaceError):
    """HTTP error from the DSpace REST API.

    Attributes:
        status_code: HTTP status code (None when no response was received)
        message: Error message
        endpoint: API endpoint that failed
        body: Raw response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: str = "",
        body: str = "",
    ):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.body = body
        status = f"[{status_code}] " if status_code is not None else ""
        location = f"{endpoint}: " if endpoint else ""
        super().__init__(f"{status}{location}{message}")


class ValidationError(DSpaceAPIError):
    """Request rejected as invalid (400/405/406) or bad caller input."""
    pass


class AuthenticationError(DSpaceAPIError):
    """Login handshake failed or the server refused the session token."""
    pass


class NotFoundError(DSpaceAPIError):
    """Resource does not exist (404/410)."""
    pass


class RequestTimeoutError(DSpaceAPIError, TimeoutError):
    """Connect/read timeout, or the server answered 408."""
    pass


class ConflictError(DSpaceAPIError):
    """Resource already exists (409)."""
    pass


class PreconditionFailedError(DSpaceAPIError):
    """Conditional request failed (412)."""
    pass


class TransportError(DSpaceAPIError):
    """Any other HTTP failure or a connection-level error."""
    pass


class ErrorKind(Enum):
    """Classification of a non-successful HTTP outcome."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    CONFLICT = "conflict"
    PRECONDITION_FAILED = "precondition_failed"
    TRANSPORT = "transport"

    @property
    def exception_class(self) -> Type[DSpaceAPIError]:
        return _EXCEPTION_BY_KIND[self]


_EXCEPTION_BY_KIND = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.TIMEOUT: RequestTimeoutError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.PRECONDITION_FAILED: PreconditionFailedError,
    ErrorKind.TRANSPORT: TransportError,
}

_KIND_BY_STATUS = {
    400: ErrorKind.VALIDATION,
    405: ErrorKind.VALIDATION,
    406: ErrorKind.VALIDATION,
    401: ErrorKind.AUTHENTICATION,
    402: ErrorKind.AUTHENTICATION,
    403: ErrorKind.AUTHENTICATION,
    407: ErrorKind.AUTHENTICATION,
    404: ErrorKind.NOT_FOUND,
    410: ErrorKind.NOT_FOUND,
    408: ErrorKind.TIMEOUT,
    409: ErrorKind.CONFLICT,
    412: ErrorKind.PRECONDITION_FAILED,
}


def classify_status(status_code: int) -> Optional[ErrorKind]:
    """Map an HTTP status code to an error kind.

    Returns:
        None for 2xx, otherwise the matching ErrorKind (TRANSPORT for any
        status without a dedicated kind)
    """
    if 200 <= status_code < 300:
        return None
    return _KIND_BY_STATUS.get(status_code, ErrorKind.TRANSPORT)


def error_for_status(status_code: int, message: str, endpoint: str = "", body: str = "") -> DSpaceAPIError:
    """Build the typed exception for a non-2xx status code."""
    kind = classify_status(status_code) or ErrorKind.TRANSPORT
    return kind.exception_class(message, status_code=status_code, endpoint=endpoint, body=body)
