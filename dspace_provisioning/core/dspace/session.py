"""Login credentials and the authenticated session value."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Credentials:
    """Username/password pair used for the login handshake.

    The password is excluded from ``repr`` so it cannot leak into logs.
    """

    username: str
    password: str = field(repr=False)

    def as_form(self) -> dict:
        """Return the form fields expected by the login endpoint."""
        return {"user": self.username, "password": self.password}


@dataclass(frozen=True)
class Session:
    """CSRF token, bearer token and expiry of the current login.

    Instances are replaced as a whole on renewal; a partially renewed
    session never exists.
    """

    csrf_token: str = ""
    bearer_token: str = field(default="", repr=False)
    expires_at: Optional[datetime] = None

    def is_stale(self, now: datetime) -> bool:
        """Return True when the session must not be used for a request.

        A token that expires exactly ``now`` is already stale.
        """
        if not self.bearer_token or self.expires_at is None:
            return True
        return now >= self.expires_at


EMPTY_SESSION = Session()
