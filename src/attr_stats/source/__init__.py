"""Attribute sources."""

from __future__ import annotations

from ..config import SourceConfig
from ..errors import ConfigurationError
from .base import AttributeSource, Connection
from .jolokia import JolokiaSource
from .local import LocalSource

__all__ = [
    "AttributeSource",
    "Connection",
    "JolokiaSource",
    "LocalSource",
    "create_source",
]


def create_source(config: SourceConfig) -> AttributeSource:
    """Pick the source implementation for the configured endpoint."""
    endpoint = (config.endpoint or "").strip()
    if endpoint == "local":
        return LocalSource()
    if endpoint.startswith(("http://", "https://")):
        return JolokiaSource(
            endpoint,
            username=config.username or None,
            password=config.password or None,
            timeout=config.timeout_seconds,
        )
    raise ConfigurationError(f"Service URL incorrect: {endpoint!r}")
