"""DSpace connector facade.

Wires configuration, the shared HTTP transport, the token manager, the
client and the per-collection services together, once per connector.

Usage:
    from dspace_provisioning.config import load_settings

    with DSpaceConnector(load_settings()) as connector:
        connector.test()
        person = connector.epersons.get_by_email("ana@example.org")
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from dspace_provisioning.config.settings import ConnectorConfig
from dspace_provisioning.core.dspace.auth import TokenManager
from dspace_provisioning.core.dspace.client import Body, DSpaceClient, HttpOutcome
from dspace_provisioning.core.dspace.epersons import EPersonService
from dspace_provisioning.core.dspace.filters import EqualsFilter, FilterTranslator
from dspace_provisioning.core.dspace.groups import GroupService
from dspace_provisioning.core.dspace.items import ItemService

logger = logging.getLogger(__name__)


class DSpaceConnector:
    """Scoped owner of one DSpace connection.

    The HTTP transport is created once (or injected) and shared by the token
    manager and the client. ``close()`` releases it only when the connector
    created it.
    """

    def __init__(self, config: ConnectorConfig, transport: Optional[requests.Session] = None):
        """Initialize the connector.

        Args:
            config: Connector settings (validated here)
            transport: Shared HTTP session; a new one is created when omitted

        Raises:
            ConfigurationError: If the settings are invalid
        """
        self.config = config.validate()
        self._owns_transport = transport is None
        self.transport = transport if transport is not None else requests.Session()
        if config.trust_all_certificates:
            self.transport.verify = False
            urllib3.disable_warnings(InsecureRequestWarning)
            logger.warning(f"TLS certificate verification disabled for {config.base_url}")

        self.token_manager = TokenManager(
            config.base_url,
            config.credentials,
            self.transport,
            session_lifetime=config.session_lifetime,
            safety_margin=config.safety_margin,
            timeout=config.timeout,
        )
        self.client = DSpaceClient(self.token_manager, self.transport, timeout=config.timeout)
        self.filters = FilterTranslator()

        self.epersons = EPersonService(self.client)
        self.groups = GroupService(self.client)
        self.items = ItemService(self.client)
        self._closed = False

    def authenticate(self) -> str:
        """Log in (if needed) and return the bearer token."""
        return self.token_manager.authenticate()

    def execute(
        self,
        method: str,
        path: str,
        body: Body = None,
        params: Optional[Mapping[str, Any]] = None,
        content_type: Optional[str] = None,
    ) -> HttpOutcome:
        """Execute an authenticated request against a raw API path.

        ``content_type`` applies to string bodies (e.g. ``text/uri-list``).
        """
        return self.client.execute(method, path, body, params, content_type)

    def translate_filter(self, filter: Optional[EqualsFilter]) -> str:
        """Translate an equality filter into a query string (``""`` for none)."""
        return self.filters.translate(filter)

    def test(self) -> Dict[str, Any]:
        """Check connectivity and credentials.

        Calls the status endpoint, then lists one eperson with a valid
        session.

        Returns:
            The server status document

        Raises:
            DSpaceAPIError: If the server is unreachable or rejects the credentials
        """
        status = self.token_manager.check_status()
        self.epersons.list_page(size=1)
        logger.info(f"Connection test against {self.config.base_url} succeeded")
        return status

    def logout(self) -> None:
        self.token_manager.logout()

    def close(self) -> None:
        """Release the transport if this connector created it."""
        if self._closed:
            return
        self._closed = True
        self.token_manager.invalidate()
        if self._owns_transport:
            self.transport.close()
            logger.debug("DSpace connector transport closed")

    def __enter__(self) -> "DSpaceConnector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
