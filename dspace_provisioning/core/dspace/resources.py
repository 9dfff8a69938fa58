"""Generic CRUD and search over one DSpace collection."""
from __future__ import annotations

import logging
from typing import Any, Collection, Iterator, Mapping, Optional, Union

from .client import DSpaceClient, HttpOutcome
from .codec import EMBEDDED_KEY, ResourceCodec
from .endpoints import resource_path, search_path
from .exceptions import NotFoundError, ValidationError
from .filters import EqualsFilter, FilterTranslator
from .models import Page, Resource, ResourceType

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def require_id(resource_id: Optional[str], kind: str = "Resource") -> str:
    """Reject empty identifiers before they turn into a collection URL."""
    if resource_id is None or not str(resource_id).strip():
        raise ValidationError(f"{kind} ID cannot be null or empty")
    return str(resource_id).strip()


class ResourceService:
    """Service for one DSpace collection (epersons, groups or items)."""

    resource_type: ResourceType

    def __init__(self, client: DSpaceClient, resource_type: Optional[ResourceType] = None):
        """Initialize the service.

        Args:
            client: Authenticated DSpace client
            resource_type: Collection description (defaults to the class attribute)
        """
        self.client = client
        if resource_type is not None:
            self.resource_type = resource_type
        self.codec = ResourceCodec(self.resource_type)
        self.filters = FilterTranslator.for_resource_type(self.resource_type)

    @property
    def kind(self) -> str:
        return self.resource_type.name.capitalize()

    def create(self, resource: Resource, params: Optional[Mapping[str, Any]] = None) -> Resource:
        """Create a resource and return the server's representation of it.

        Raises:
            ConflictError: If the resource already exists
            ValidationError: If the server rejects the payload
        """
        outcome = self.client.post(self.resource_type.path, self.codec.encode(resource), params=params)
        created = self.codec.decode_one(outcome.json(), outcome.path)
        logger.info(f"{self.kind} created (id={created.id})")
        return created

    def get(self, resource_id: str) -> Resource:
        """Fetch one resource by identifier.

        Raises:
            NotFoundError: If no resource has this identifier
        """
        resource_id = require_id(resource_id, self.kind)
        outcome = self.client.get(resource_path(self.resource_type.path, resource_id))
        return self.codec.decode_one(outcome.json(), outcome.path)

    def list_page(self, page: int = 0, size: int = DEFAULT_PAGE_SIZE) -> Page:
        """Fetch one page of the collection."""
        outcome = self.client.get(self.resource_type.path, params={"page": page, "size": size})
        return self.codec.decode_collection(outcome.json(), endpoint=outcome.path)

    def iter_all(self, size: int = DEFAULT_PAGE_SIZE) -> Iterator[Resource]:
        """Yield every resource of the collection, fetching page after page."""
        number = 0
        while True:
            current = self.list_page(number, size)
            yield from current.items
            if not current.has_more or not current.items:
                return
            number += 1

    def search(
        self,
        filter: Optional[EqualsFilter],
        page: int = 0,
        size: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        """Find resources matching an equality filter.

        Identifier filters become a direct lookup (no match = empty page);
        other recognised attributes go through the collection's search
        endpoints; ``None`` lists the collection.

        Raises:
            ValidationError: If the filter attribute cannot be searched
        """
        if filter is None:
            return self.list_page(page, size)

        if filter.field in self.resource_type.id_fields:
            try:
                found = self.get(filter.value)
            except NotFoundError:
                return Page(size=size, total_elements=0)
            return Page(items=[found], size=size, total_elements=1)

        query = self.filters.translate(filter)
        method = self.filters.search_method(filter)
        if method is None:
            raise ValidationError(f"{self.kind} cannot be searched by '{filter.field}'")
        outcome = self.client.get(
            search_path(self.resource_type.path, method) + query,
            params={"page": page, "size": size},
        )
        return self._decode_search(outcome, size)

    def update(self, resource: Resource, only: Optional[Collection[str]] = None) -> Resource:
        """Replace a resource with a PUT of its full representation."""
        resource_id = require_id(resource.id, self.kind)
        outcome = self.client.put(
            resource_path(self.resource_type.path, resource_id),
            self.codec.encode(resource, only=only),
        )
        logger.info(f"{self.kind} updated (id={resource_id})")
        if outcome.body:
            return self.codec.decode_one(outcome.json(), outcome.path)
        return self.get(resource_id)

    def patch(
        self,
        resource_id: str,
        changes: Union[Resource, Mapping[str, Any]],
        only: Optional[Collection[str]] = None,
    ) -> Resource:
        """Replace selected attributes with a JSON Patch request.

        Args:
            resource_id: Identifier of the resource to modify
            changes: Attributes to replace (an empty value list removes a metadata field)
            only: Restrict the patch to these attribute names

        Raises:
            ValidationError: If there is nothing to change
        """
        resource_id = require_id(resource_id, self.kind)
        if not isinstance(changes, Resource):
            changes = Resource.from_mapping(changes)
        operations = self.codec.patch_operations(changes, only=only)
        if not operations:
            raise ValidationError(f"No attributes to update for {self.kind} {resource_id}")

        outcome = self.client.patch(resource_path(self.resource_type.path, resource_id), operations)
        logger.info(f"{self.kind} patched (id={resource_id}, operations={len(operations)})")
        if outcome.body:
            return self.codec.decode_one(outcome.json(), outcome.path)
        return self.get(resource_id)

    def delete(self, resource_id: str) -> None:
        """Delete a resource.

        Raises:
            NotFoundError: If the resource does not exist
        """
        resource_id = require_id(resource_id, self.kind)
        self.client.delete(resource_path(self.resource_type.path, resource_id))
        logger.info(f"{self.kind} deleted (id={resource_id})")

    def _decode_search(self, outcome: HttpOutcome, size: int) -> Page:
        """Search endpoints answer with a collection, a single object, or nothing."""
        if outcome.status_code == 204 or not outcome.body:
            return Page(size=size, total_elements=0)
        payload = outcome.json()
        if isinstance(payload, Mapping) and EMBEDDED_KEY not in payload and "page" not in payload:
            return Page(items=[self.codec.decode_one(payload, outcome.path)], size=size, total_elements=1)
        return self.codec.decode_collection(payload, endpoint=outcome.path)
