"""Base interface for attribute sources."""

from __future__ import annotations

import abc
from typing import Any


class Connection(abc.ABC):
    """An open connection that reads attribute values."""

    @abc.abstractmethod
    def fetch(self, resource_id: str, attribute_name: str) -> Any:
        """Read one attribute of a resource. Raises :class:`FetchError`."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the connection."""


class AttributeSource(abc.ABC):
    """Abstract base class for places attribute values are read from."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Source name used in log output."""

    @abc.abstractmethod
    def connect(self) -> Connection:
        """Open a connection. Raises :class:`SourceConnectionError`."""

    def validate_resource(self, resource_id: str) -> None:
        """Raise :class:`ConfigurationError` if *resource_id* is malformed."""
