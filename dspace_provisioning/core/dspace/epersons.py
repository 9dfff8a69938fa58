"""DSpace eperson (account) operations."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

from dspace_provisioning.core.validators import validate_email, validate_name

from .exceptions import ValidationError
from .filters import EqualsFilter
from .models import EPERSON, Resource
from .resources import ResourceService


class EPersonService(ResourceService):
    """Service for managing DSpace epersons."""

    resource_type = EPERSON

    def create(self, resource: Resource, params: Optional[Mapping[str, Any]] = None) -> Resource:
        """Create an eperson after validating email and names.

        First and last name may hold several values; each one is validated
        and all of them are sent. ``canLogIn`` and ``requireCertificate``
        default to False when absent.

        Raises:
            ValidationError: If email, first name or last name is missing or invalid
            ConflictError: If an eperson with this email already exists
        """
        emails = resource.values("email")
        if len(emails) > 1:
            raise ValidationError("An eperson has exactly one email address")
        try:
            email = validate_email(emails[0] if emails else "")
            first = _validate_names(resource.values("firstname"), "First name")
            last = _validate_names(resource.values("lastname"), "Last name")
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        payload = Resource(
            id=resource.id,
            display_name=resource.display_name or email,
            attributes=dict(resource.attributes),
        )
        payload.set("email", email)
        payload.set("firstname", first)
        payload.set("lastname", last)
        payload.attributes.setdefault("canLogIn", [False])
        payload.attributes.setdefault("requireCertificate", [False])
        return super().create(payload, params)

    def get_by_email(self, email: str) -> Optional[Resource]:
        """Return the eperson registered with this email, or None."""
        try:
            email = validate_email(email)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        page = self.search(EqualsFilter("email", email))
        return page.items[0] if page.items else None


def _validate_names(values: List[Any], field: str) -> List[str]:
    """Validate every value of a name attribute; at least one is required."""
    if not values:
        raise ValueError(f"{field} is required")
    return [validate_name(str(value) if value is not None else "", field) for value in values]
