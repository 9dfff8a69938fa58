"""DSpace REST API client library.

This package provides a modular, testable interface to the DSpace 7+ server API
for identity provisioning (epersons, groups, items).

Architecture:
- session.py: Credentials and the immutable session value
- auth.py: CSRF + login handshake with single-flight renewal
- client.py: HTTP client with authentication headers and one re-auth retry
- codec.py: DSpace JSON ↔ Resource transformations
- filters.py: Equality filter → query string translation
- resources.py: Generic CRUD/search over one collection
- epersons.py, groups.py, items.py: Per-collection services
- exceptions.py: Typed exceptions for error handling

Usage:
    from dspace_provisioning.core.dspace import (
        Credentials, DSpaceClient, EPersonService, TokenManager,
    )

    transport = requests.Session()
    tokens = TokenManager("https://dspace.example.org", Credentials("admin@example.org", "pw"), transport)
    client = DSpaceClient(tokens, transport)

    people = EPersonService(client)
    person = people.get_by_email("ana@example.org")
"""
from .exceptions import (
    DSpaceError,
    DSpaceAPIError,
    ConfigurationError,
    MalformedResponseError,
    ValidationError,
    AuthenticationError,
    NotFoundError,
    RequestTimeoutError,
    ConflictError,
    PreconditionFailedError,
    TransportError,
    ErrorKind,
    classify_status,
    error_for_status,
)
from .session import (
    Credentials,
    Session,
    EMPTY_SESSION,
)
from .models import (
    Resource,
    Page,
    ResourceType,
    SearchField,
    EPERSON,
    GROUP,
    ITEM,
)
from .codec import ResourceCodec
from .filters import (
    EqualsFilter,
    FilterTranslator,
    DEFAULT_FILTER_FIELDS,
)
from .auth import (
    TokenManager,
    token_fingerprint,
    DEFAULT_SESSION_LIFETIME,
    DEFAULT_SAFETY_MARGIN,
    DEFAULT_TIMEOUT,
)
from .client import (
    DSpaceClient,
    HttpOutcome,
    JSON_CONTENT_TYPE,
    URI_LIST_CONTENT_TYPE,
)
from .resources import (
    ResourceService,
    DEFAULT_PAGE_SIZE,
)
from .epersons import EPersonService
from .groups import GroupService
from .items import ItemService

__all__ = [
    # Exceptions
    "DSpaceError",
    "DSpaceAPIError",
    "ConfigurationError",
    "MalformedResponseError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "RequestTimeoutError",
    "ConflictError",
    "PreconditionFailedError",
    "TransportError",
    "ErrorKind",
    "classify_status",
    "error_for_status",

    # Session
    "Credentials",
    "Session",
    "EMPTY_SESSION",
    "TokenManager",
    "token_fingerprint",
    "DEFAULT_SESSION_LIFETIME",
    "DEFAULT_SAFETY_MARGIN",
    "DEFAULT_TIMEOUT",

    # Client
    "DSpaceClient",
    "HttpOutcome",
    "JSON_CONTENT_TYPE",
    "URI_LIST_CONTENT_TYPE",

    # Data model
    "Resource",
    "Page",
    "ResourceType",
    "SearchField",
    "EPERSON",
    "GROUP",
    "ITEM",
    "ResourceCodec",
    "EqualsFilter",
    "FilterTranslator",
    "DEFAULT_FILTER_FIELDS",

    # Services
    "ResourceService",
    "EPersonService",
    "GroupService",
    "ItemService",
    "DEFAULT_PAGE_SIZE",
]
