"""DSpace JSON ↔ Resource transformations.

This module is the only place that knows the DSpace wire shapes:

- single objects carry an ``id`` (or ``uuid``), a few plain top-level fields
  and a ``metadata`` map where every key holds an ordered list of
  ``{"value": ...}`` wrappers;
- collections wrap their objects in ``_embedded.<plural name>`` next to a
  ``page`` block and ``_links``.

Usage:
    codec = ResourceCodec(EPERSON)
    person = codec.decode_one(outcome.json())
    payload = codec.encode(person)
"""
from __future__ import annotations

from typing import Any, Collection, Dict, List, Mapping, Optional

from .exceptions import MalformedResponseError
from .models import Page, Resource, ResourceType

METADATA_KEY = "metadata"
EMBEDDED_KEY = "_embedded"


class ResourceCodec:
    """Bidirectional mapping between DSpace JSON and ``Resource``.

    Without a ``ResourceType`` the codec is schema-less: every attribute is
    treated as a metadata field and names are kept as-is.
    """

    def __init__(self, resource_type: Optional[ResourceType] = None):
        self.resource_type = resource_type

    # ─────────────────────────────────────────────────────────────────────
    # Wire → Resource
    # ─────────────────────────────────────────────────────────────────────

    def decode_one(self, payload: Any, endpoint: str = "") -> Resource:
        """Convert one DSpace object into a Resource.

        Args:
            payload: Decoded JSON object
            endpoint: Origin of the payload, used in error messages

        Returns:
            Resource with top-level fields first, then metadata fields in wire order

        Raises:
            MalformedResponseError: If the identifier is missing or the metadata map is malformed

        Example:
            >>> codec = ResourceCodec(EPERSON)
            >>> person = codec.decode_one({
            ...     "id": "0a1b",
            ...     "email": "ana@example.org",
            ...     "metadata": {"eperson.firstname": [{"value": "Ana"}]},
            ... })
            >>> person.get("firstname")
            'Ana'
        """
        if not isinstance(payload, Mapping):
            raise MalformedResponseError("expected a JSON object", endpoint)

        resource_id = self._extract_id(payload)
        if not resource_id:
            raise MalformedResponseError("missing identifier field 'id'", endpoint)

        attributes: Dict[str, List[Any]] = {}
        for name in self._top_level_fields():
            value = payload.get(name)
            if value is not None:
                attributes[name] = list(value) if isinstance(value, list) else [value]

        metadata = payload.get(METADATA_KEY, {})
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, Mapping):
            raise MalformedResponseError("'metadata' is not a JSON object", endpoint)

        for key, entries in metadata.items():
            attributes[self._attribute_name(key)] = self._metadata_values(key, entries, endpoint)

        display_name = payload.get("name") or payload.get("email") or resource_id
        return Resource(id=resource_id, display_name=str(display_name), attributes=attributes)

    def decode_collection(
        self,
        payload: Any,
        embedded_key: Optional[str] = None,
        endpoint: str = "",
    ) -> Page:
        """Convert a collection envelope into a Page.

        Args:
            payload: Decoded JSON object
            embedded_key: Name of the list inside ``_embedded`` (defaults to the resource type's)
            endpoint: Origin of the payload, used in error messages

        Raises:
            MalformedResponseError: If the envelope or the embedded list is missing
        """
        key = embedded_key or (self.resource_type.embedded_key if self.resource_type else None)
        if not key:
            raise ValueError("embedded_key is required for a codec without resource type")
        if not isinstance(payload, Mapping):
            raise MalformedResponseError("expected a JSON object", endpoint)

        page_info = payload.get("page") or {}
        if not isinstance(page_info, Mapping):
            raise MalformedResponseError("'page' is not a JSON object", endpoint)

        embedded = payload.get(EMBEDDED_KEY)
        if embedded is None and page_info.get("totalElements") == 0:
            # DSpace omits _embedded entirely for empty search results
            embedded = {key: []}
        if not isinstance(embedded, Mapping):
            raise MalformedResponseError(f"missing '{EMBEDDED_KEY}' envelope", endpoint)

        raw_items = embedded.get(key)
        if not isinstance(raw_items, list):
            raise MalformedResponseError(f"missing '{EMBEDDED_KEY}.{key}' list", endpoint)

        items = [self.decode_one(item, endpoint) for item in raw_items]

        number = int(page_info.get("number", 0))
        total_pages = page_info.get("totalPages")
        links = payload.get("_links") or {}
        has_more = "next" in links or (total_pages is not None and number + 1 < int(total_pages))

        return Page(
            items=items,
            has_more=has_more,
            number=number,
            size=int(page_info.get("size", len(items))),
            total_elements=page_info.get("totalElements"),
        )

    # ─────────────────────────────────────────────────────────────────────
    # Resource → Wire
    # ─────────────────────────────────────────────────────────────────────

    def encode(self, resource: Resource, only: Optional[Collection[str]] = None) -> Dict[str, Any]:
        """Convert a Resource into a DSpace JSON object.

        Args:
            resource: Resource to serialize
            only: Restrict the output to these attribute names (None = all)

        Returns:
            JSON-serializable dict; unknown attribute names become metadata keys unchanged

        Example:
            >>> codec = ResourceCodec()
            >>> codec.encode(Resource.from_mapping({"roles": ["admin", "staff"]}))
            {'metadata': {'roles': [{'value': 'admin'}, {'value': 'staff'}]}}
        """
        payload: Dict[str, Any] = {}
        if resource.id:
            payload["id"] = resource.id
        if self.resource_type:
            payload["type"] = self.resource_type.name
        if resource.display_name:
            payload["name"] = resource.display_name

        top_level = self._top_level_fields()
        metadata: Dict[str, List[Dict[str, Any]]] = {}
        for name, values in resource.attributes.items():
            if only is not None and name not in only:
                continue
            if name in top_level:
                payload[name] = _collapse(values)
            else:
                metadata[self._metadata_key(name)] = [{"value": value} for value in values]

        payload[METADATA_KEY] = metadata
        return payload

    def patch_operations(self, resource: Resource, only: Optional[Collection[str]] = None) -> List[Dict[str, Any]]:
        """Build a JSON Patch that replaces the given attributes on the server.

        Empty metadata attributes produce a ``remove`` operation.
        """
        patch_paths = self.resource_type.patch_paths if self.resource_type else {}
        top_level = self._top_level_fields()
        operations: List[Dict[str, Any]] = []
        for name, values in resource.attributes.items():
            if only is not None and name not in only:
                continue
            if name in top_level:
                path = patch_paths.get(name, f"/{name}")
                operations.append({"op": "replace", "path": path, "value": _collapse(values)})
            elif values:
                operations.append({
                    "op": "replace",
                    "path": f"/{METADATA_KEY}/{self._metadata_key(name)}",
                    "value": [{"value": value} for value in values],
                })
            else:
                operations.append({"op": "remove", "path": f"/{METADATA_KEY}/{self._metadata_key(name)}"})
        return operations

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────

    def _extract_id(self, payload: Mapping[str, Any]) -> str:
        id_fields = self.resource_type.id_fields if self.resource_type else ("id", "uuid")
        for name in id_fields:
            value = payload.get(name)
            if value not in (None, ""):
                return str(value)
        return ""

    def _top_level_fields(self) -> tuple:
        return self.resource_type.top_level_fields if self.resource_type else ()

    def _metadata_key(self, attribute: str) -> str:
        return self.resource_type.metadata_key(attribute) if self.resource_type else attribute

    def _attribute_name(self, metadata_key: str) -> str:
        return self.resource_type.attribute_name(metadata_key) if self.resource_type else metadata_key

    @staticmethod
    def _metadata_values(key: str, entries: Any, endpoint: str) -> List[Any]:
        if not isinstance(entries, list):
            raise MalformedResponseError(f"metadata field '{key}' is not a list", endpoint)
        values = []
        for entry in entries:
            if not isinstance(entry, Mapping) or "value" not in entry:
                raise MalformedResponseError(f"metadata field '{key}' has an entry without 'value'", endpoint)
            values.append(entry["value"])
        return values


def _collapse(values: List[Any]) -> Any:
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return list(values)
