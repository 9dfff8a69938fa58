"""Resource records exchanged with the DSpace REST API."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from . import endpoints


def _as_values(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass
class Resource:
    """An eperson, group or item with a flat attribute map.

    Every attribute holds an ordered list of values. Scalars given to
    ``from_mapping``/``set`` are stored as one-element lists; ``get`` collapses
    them back for callers.
    """

    id: str = ""
    display_name: str = ""
    attributes: Dict[str, List[Any]] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        attributes: Mapping[str, Any],
        id: str = "",
        display_name: str = "",
    ) -> "Resource":
        """Build a resource from a mapping of scalars and/or sequences."""
        return cls(
            id=id,
            display_name=display_name,
            attributes={name: _as_values(value) for name, value in attributes.items()},
        )

    def get(self, name: str, default: Any = None) -> Any:
        """Return a single value as a scalar, several values as a list."""
        values = self.attributes.get(name)
        if not values:
            return default
        if len(values) == 1:
            return values[0]
        return list(values)

    def values(self, name: str) -> List[Any]:
        """Return all values of an attribute (empty list when absent)."""
        return list(self.attributes.get(name, []))

    def set(self, name: str, value: Any) -> None:
        self.attributes[name] = _as_values(value)

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing view with single values collapsed."""
        return {name: self.get(name) for name in self.attributes}


@dataclass
class Page:
    """One page of a collection response."""

    items: List[Resource] = field(default_factory=list)
    has_more: bool = False
    number: int = 0
    size: int = 0
    total_elements: Optional[int] = None

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class SearchField:
    """A filterable attribute: the search endpoint and its query parameter."""

    method: str
    param: str


@dataclass(frozen=True)
class ResourceType:
    """Wire description of one DSpace collection.

    Attributes:
        name: Singular wire type (``eperson``, ``group``, ``item``)
        path: Collection path relative to the base URL
        embedded_key: Key of the list inside ``_embedded``
        top_level_fields: Attributes serialized as plain top-level JSON fields
        metadata_aliases: Attribute name -> metadata key (e.g. firstname -> eperson.firstname)
        search_fields: Filterable attribute -> SearchField
        id_fields: Attribute names that identify a resource directly
        patch_paths: JSON Patch path overrides for top-level fields
    """

    name: str
    path: str
    embedded_key: str
    top_level_fields: Tuple[str, ...] = ()
    metadata_aliases: Mapping[str, str] = field(default_factory=dict)
    search_fields: Mapping[str, SearchField] = field(default_factory=dict)
    id_fields: Tuple[str, ...] = ("id", "uuid")
    patch_paths: Mapping[str, str] = field(default_factory=dict)

    def metadata_key(self, attribute: str) -> str:
        return self.metadata_aliases.get(attribute, attribute)

    def attribute_name(self, metadata_key: str) -> str:
        for attribute, key in self.metadata_aliases.items():
            if key == metadata_key:
                return attribute
        return metadata_key

    def filterable(self) -> Iterable[str]:
        return tuple(self.id_fields) + tuple(self.search_fields)


_BY_METADATA = "byMetadata"

EPERSON = ResourceType(
    name="eperson",
    path=endpoints.EPERSONS,
    embedded_key="epersons",
    top_level_fields=("email", "netid", "canLogIn", "requireCertificate", "selfRegistered", "lastActive"),
    metadata_aliases={
        "firstname": "eperson.firstname",
        "lastname": "eperson.lastname",
        "phone": "eperson.phone",
        "language": "eperson.language",
    },
    search_fields={
        "email": SearchField("byEmail", "email"),
        "name": SearchField(_BY_METADATA, "query"),
        "firstname": SearchField(_BY_METADATA, "query"),
        "lastname": SearchField(_BY_METADATA, "query"),
    },
    patch_paths={"canLogIn": "/canLogin"},
)

GROUP = ResourceType(
    name="group",
    path=endpoints.GROUPS,
    embedded_key="groups",
    top_level_fields=("permanent",),
    metadata_aliases={"description": "dc.description"},
    search_fields={"name": SearchField(_BY_METADATA, "query")},
)

ITEM = ResourceType(
    name="item",
    path=endpoints.ITEMS,
    embedded_key="items",
    top_level_fields=("handle", "inArchive", "discoverable", "withdrawn", "lastModified", "entityType"),
    metadata_aliases={"title": "dc.title"},
)
