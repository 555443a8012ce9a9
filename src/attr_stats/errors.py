"""Error types raised while configuring, connecting and sampling."""

from __future__ import annotations


class StatsError(Exception):
    """Base class for all attr_stats failures."""

    exit_code = 1


class ConfigurationError(StatsError):
    """Malformed resource identifier, endpoint address or option value."""

    exit_code = 2


class SourceConnectionError(StatsError, ConnectionError):
    """The endpoint is unreachable or rejected the credentials."""

    exit_code = 3


class FetchError(StatsError):
    """A single attribute read failed."""

    exit_code = 4

    def __init__(self, resource_id: str, attribute_name: str, reason: str) -> None:
        super().__init__(f"Cannot read {attribute_name!r} from {resource_id!r}: {reason}")
        self.resource_id = resource_id
        self.attribute_name = attribute_name
        self.reason = reason
