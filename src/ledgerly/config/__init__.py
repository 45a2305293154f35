"""Configuration module for the Ledgerly assistant."""

from ledgerly.config.logging import configure_logging, redact_secrets
from ledgerly.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "configure_logging", "redact_secrets"]
