"""Configuration module for the DSpace connector."""
from .settings import ConnectorConfig, load_settings

__all__ = ["ConnectorConfig", "load_settings"]
