"""Input validation helpers for connector settings and eperson data."""
from __future__ import annotations

import unicodedata
from urllib.parse import urlparse


def validate_base_url(raw: str) -> str:
    """Validate the DSpace base address.

    Args:
        raw: Base URL as configured (e.g. https://dspace.example.org/)

    Returns:
        URL without surrounding whitespace or trailing slash

    Raises:
        ValueError: If the URL is empty, not http(s), or has no host
    """
    url = (raw or "").strip()
    if not url:
        raise ValueError("Base URL cannot be empty")
    if not url.startswith(("http://", "https://")):
        raise ValueError("Base URL must start with 'http://' or 'https://'")
    if not urlparse(url).netloc:
        raise ValueError("Base URL must include a host")
    return url.rstrip("/")


def validate_email(email: str) -> str:
    """Validate email address.

    Args:
        email: Email address to validate

    Returns:
        Normalized email address

    Raises:
        ValueError: If email is invalid
    """
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValueError("Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain or "." not in domain:
        raise ValueError("Invalid email format")
    if len(email) > 254:
        raise ValueError("Email exceeds maximum length")

    return email


def validate_name(name: str, field: str) -> str:
    """Validate first/last name fields.

    Args:
        name: Name to validate
        field: Field name for error messages (e.g., "First name")

    Returns:
        Trimmed name

    Raises:
        ValueError: If name is invalid
    """
    name = (name or "").strip()
    if not name:
        raise ValueError(f"{field} is required")
    if len(name) > 128:
        raise ValueError(f"{field} exceeds maximum length")

    # Control characters only; punctuation such as apostrophes is valid
    if any(unicodedata.category(char) == "Cc" for char in name):
        raise ValueError(f"{field} contains control characters")

    return name


def validate_timeout(value: float, field: str) -> float:
    """Validate a timeout in seconds (must be a positive number)."""
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field} must be a number") from exc
    if seconds <= 0:
        raise ValueError(f"{field} must be positive")
    return seconds
