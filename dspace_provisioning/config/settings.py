"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional, Tuple

from dspace_provisioning.core.dspace.exceptions import ConfigurationError
from dspace_provisioning.core.dspace.session import Credentials
from dspace_provisioning.core.validators import validate_base_url, validate_timeout

logger = logging.getLogger(__name__)

SECRETS_DIR = Path("/run/secrets")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
        except OSError as exc:
            logger.warning(f"[settings] Failed to read {secret_file}: {exc}")
        else:
            if secret_value:
                logger.info(f"[settings] Loaded {secret_name} from {SECRETS_DIR}")
                return secret_value

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.info(f"[settings] Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


@dataclass
class ConnectorConfig:
    """DSpace connector configuration container."""
    base_url: str
    username: str
    password: str = field(default="", repr=False)

    # Transport
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    trust_all_certificates: bool = False

    # Session
    session_lifetime_seconds: float = 3600.0
    token_safety_margin_seconds: float = 10.0

    def validate(self) -> "ConnectorConfig":
        """Check every field and normalize the base URL.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: On the first missing or invalid value
        """
        try:
            self.base_url = validate_base_url(self.base_url)
            self.connect_timeout = validate_timeout(self.connect_timeout, "connect_timeout")
            self.read_timeout = validate_timeout(self.read_timeout, "read_timeout")
            self.session_lifetime_seconds = validate_timeout(
                self.session_lifetime_seconds, "session_lifetime_seconds"
            )
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        if not (self.username or "").strip():
            raise ConfigurationError("username is required")
        if not self.password:
            raise ConfigurationError("password is required")
        if self.token_safety_margin_seconds < 0:
            raise ConfigurationError("token_safety_margin_seconds must not be negative")
        if self.token_safety_margin_seconds >= self.session_lifetime_seconds:
            raise ConfigurationError("token_safety_margin_seconds must be shorter than session_lifetime_seconds")
        return self

    @property
    def credentials(self) -> Credentials:
        return Credentials(self.username.strip(), self.password)

    @property
    def timeout(self) -> Tuple[float, float]:
        """(connect, read) timeout tuple as accepted by requests."""
        return (self.connect_timeout, self.read_timeout)

    @property
    def session_lifetime(self) -> timedelta:
        return timedelta(seconds=self.session_lifetime_seconds)

    @property
    def safety_margin(self) -> timedelta:
        return timedelta(seconds=self.token_safety_margin_seconds)


def _get_required(var_name: str) -> str:
    """Get a required environment variable."""
    value = os.environ.get(var_name, "").strip()
    if not value:
        raise ConfigurationError(f"Environment variable {var_name} is required.")
    return value


def _get_float(var_name: str, default: float) -> float:
    raw = os.environ.get(var_name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {var_name} must be a number, got {raw!r}") from exc


def _get_bool(var_name: str, default: bool = False) -> bool:
    raw = os.environ.get(var_name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Environment variable {var_name} must be a boolean, got {raw!r}")


def load_settings(password: Optional[str] = None) -> ConnectorConfig:
    """Load connector settings from environment and /run/secrets.

    Variables:
        DSPACE_BASE_URL, DSPACE_USERNAME (required)
        DSPACE_PASSWORD, or /run/secrets/dspace_password (takes priority)
        DSPACE_CONNECT_TIMEOUT, DSPACE_READ_TIMEOUT (seconds)
        DSPACE_TRUST_ALL_CERTIFICATES (true/false)
        DSPACE_SESSION_LIFETIME_SECONDS, DSPACE_TOKEN_SAFETY_MARGIN_SECONDS

    Args:
        password: Explicit password, bypassing secrets and environment

    Raises:
        ConfigurationError: If a value is missing or invalid
    """
    password = password or _load_secret_from_file("dspace_password", "DSPACE_PASSWORD")
    if not password:
        raise ConfigurationError(
            "DSPACE_PASSWORD not found. Provide it via /run/secrets/dspace_password or the environment."
        )

    config = ConnectorConfig(
        base_url=_get_required("DSPACE_BASE_URL"),
        username=_get_required("DSPACE_USERNAME"),
        password=password,
        connect_timeout=_get_float("DSPACE_CONNECT_TIMEOUT", 10.0),
        read_timeout=_get_float("DSPACE_READ_TIMEOUT", 30.0),
        trust_all_certificates=_get_bool("DSPACE_TRUST_ALL_CERTIFICATES"),
        session_lifetime_seconds=_get_float("DSPACE_SESSION_LIFETIME_SECONDS", 3600.0),
        token_safety_margin_seconds=_get_float("DSPACE_TOKEN_SAFETY_MARGIN_SECONDS", 10.0),
    )
    config.validate()

    if config.trust_all_certificates:
        logger.warning("[settings] TLS certificate verification is disabled (DSPACE_TRUST_ALL_CERTIFICATES)")
    logger.info(f"[settings] DSpace connector configured for {config.base_url} as {config.username}")
    return config
