"""DSpace group management operations."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .client import URI_LIST_CONTENT_TYPE
from .codec import ResourceCodec
from .endpoints import EPERSONS, group_members_path, resource_path
from .exceptions import ValidationError
from .models import EPERSON, GROUP, Page, Resource
from .resources import DEFAULT_PAGE_SIZE, ResourceService, require_id

logger = logging.getLogger(__name__)


class GroupService(ResourceService):
    """Service for managing DSpace groups and their members."""

    resource_type = GROUP

    def create(self, resource: Resource, params: Optional[Mapping[str, Any]] = None) -> Resource:
        """Create a group; its name comes from ``display_name`` or the ``name`` attribute.

        Raises:
            ValidationError: If the group has no name
            ConflictError: If a group with this name already exists
        """
        name = (resource.display_name or str(resource.get("name") or "")).strip()
        if not name:
            raise ValidationError("Group name cannot be null or empty")

        attributes = {key: values for key, values in resource.attributes.items() if key != "name"}
        return super().create(Resource(id=resource.id, display_name=name, attributes=attributes), params)

    def add_member(self, group_id: str, eperson_id: str) -> None:
        """Add an eperson to a group.

        DSpace expects the eperson as a ``text/uri-list`` body.
        """
        group_id = require_id(group_id, "Group")
        eperson_id = require_id(eperson_id, "EPerson")
        uri = f"{self.client.base_url}{resource_path(EPERSONS, eperson_id)}"
        self.client.post(group_members_path(group_id), uri, content_type=URI_LIST_CONTENT_TYPE)
        logger.info(f"EPerson {eperson_id} added to group {group_id}")

    def remove_member(self, group_id: str, eperson_id: str) -> None:
        """Remove an eperson from a group.

        Raises:
            NotFoundError: If the group or the membership does not exist
        """
        group_id = require_id(group_id, "Group")
        eperson_id = require_id(eperson_id, "EPerson")
        self.client.delete(resource_path(group_members_path(group_id), eperson_id))
        logger.info(f"EPerson {eperson_id} removed from group {group_id}")

    def list_members(self, group_id: str, page: int = 0, size: int = DEFAULT_PAGE_SIZE) -> Page:
        """Return one page of the epersons that belong to a group."""
        group_id = require_id(group_id, "Group")
        outcome = self.client.get(group_members_path(group_id), params={"page": page, "size": size})
        return ResourceCodec(EPERSON).decode_collection(outcome.json(), endpoint=outcome.path)
