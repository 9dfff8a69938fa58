"""DSpace item operations."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from .models import ITEM, Resource
from .resources import ResourceService, require_id


class ItemService(ResourceService):
    """Service for managing DSpace items."""

    resource_type = ITEM

    def create(
        self,
        resource: Resource,
        params: Optional[Mapping[str, Any]] = None,
        owning_collection: Optional[str] = None,
    ) -> Resource:
        """Create an item inside a collection.

        Args:
            resource: Item to create
            params: Extra query parameters
            owning_collection: UUID of the collection that will own the item
                (may also be given as ``params["owningCollection"]``)

        Raises:
            ValidationError: If no owning collection is given
        """
        query = dict(params or {})
        if owning_collection is not None:
            query["owningCollection"] = owning_collection
        query["owningCollection"] = require_id(query.get("owningCollection"), "Owning collection")
        return super().create(resource, query)
