"""Translation of equality filters into DSpace query strings.

Only single-attribute equality filters are supported. A filter on an
attribute the collection cannot search is rejected with ``ValidationError``
instead of silently listing everything.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from .exceptions import ValidationError
from .models import ResourceType, SearchField

DEFAULT_FILTER_FIELDS: Mapping[str, str] = {
    "id": "id",
    "name": "name",
    "email": "email",
}


@dataclass(frozen=True)
class EqualsFilter:
    """``field == value``."""

    field: str
    value: Any


class FilterTranslator:
    """Turns an ``EqualsFilter`` into ``?<param>=<value>``.

    Usage:
        translator = FilterTranslator.for_resource_type(EPERSON)
        translator.translate(EqualsFilter("email", "a@x.com"))  # '?email=a%40x.com'
    """

    def __init__(
        self,
        fields: Mapping[str, str] = DEFAULT_FILTER_FIELDS,
        search_methods: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the translator.

        Args:
            fields: Recognised attribute name -> query parameter name
            search_methods: Attribute name -> DSpace search endpoint suffix
        """
        self._fields = dict(fields)
        self._search_methods = dict(search_methods or {})

    @classmethod
    def for_resource_type(cls, resource_type: ResourceType) -> "FilterTranslator":
        """Translator recognising the searchable attributes of a collection."""
        search_fields: Mapping[str, SearchField] = resource_type.search_fields
        return cls(
            fields={name: spec.param for name, spec in search_fields.items()},
            search_methods={name: spec.method for name, spec in search_fields.items()},
        )

    def is_supported(self, field: str) -> bool:
        return field in self._fields

    def translate(self, filter: Optional[EqualsFilter]) -> str:
        """Return the query string for a filter.

        Args:
            filter: Equality filter, or None to list everything

        Returns:
            ``""`` for no filter, otherwise ``?<param>=<url-encoded value>``

        Raises:
            ValidationError: If the field is not recognised or the value is empty
        """
        if filter is None:
            return ""
        param = self._fields.get(filter.field)
        if param is None:
            supported = ", ".join(sorted(self._fields)) or "none"
            raise ValidationError(f"unsupported filter attribute '{filter.field}' (supported: {supported})")
        if filter.value is None or str(filter.value) == "":
            raise ValidationError(f"filter value for '{filter.field}' cannot be empty")
        return "?" + urlencode({param: str(filter.value)})

    def search_method(self, filter: EqualsFilter) -> Optional[str]:
        """Return the search endpoint suffix (e.g. ``byEmail``) for a filter, if any."""
        return self._search_methods.get(filter.field)
