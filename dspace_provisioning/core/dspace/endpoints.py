"""REST paths of the DSpace server API, relative to the configured base URL."""
from __future__ import annotations

from urllib.parse import quote

AUTHN_STATUS = "/server/api/authn/status"
AUTHN_LOGIN = "/server/api/authn/login"
AUTHN_LOGOUT = "/server/api/authn/logout"

EPERSONS = "/server/api/eperson/epersons"
GROUPS = "/server/api/eperson/groups"
ITEMS = "/server/api/core/items"

# Cookie and headers used by the CSRF protection
CSRF_COOKIE = "DSPACE-XSRF-COOKIE"
CSRF_RESPONSE_HEADER = "DSPACE-XSRF-TOKEN"
CSRF_REQUEST_HEADER = "X-XSRF-TOKEN"


def resource_path(collection: str, resource_id: str) -> str:
    """Return the path of a single resource inside a collection (id escaped)."""
    return f"{collection}/{quote(str(resource_id), safe='')}"


def search_path(collection: str, method: str) -> str:
    """Return the path of a named search endpoint (e.g. ``byEmail``)."""
    return f"{collection}/search/{method}"


def group_members_path(group_id: str) -> str:
    """Return the path listing the epersons that belong to a group."""
    return f"{GROUPS}/{quote(str(group_id), safe='')}/epersons"
