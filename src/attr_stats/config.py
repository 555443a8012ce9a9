"""Configuration loading and validation for attr_stats."""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# The minimum time between two rows in milliseconds.
MINIMUM_INTERVAL_MS = 250


class TimestampMode(enum.Enum):
    """What, if anything, goes into the leading ``time`` column."""

    NONE = "none"
    ELAPSED = "elapsed"
    EPOCH = "epoch"


@dataclass
class SourceConfig:
    """Where attribute values are read from."""

    endpoint: str = "local"
    username: str = ""
    password: str = ""
    timeout_seconds: float = 5.0


@dataclass
class SamplerConfig:
    """What to sample and how often."""

    resource: str = ""
    attributes: list[str] | str = field(default_factory=list)
    interval_ms: int = MINIMUM_INTERVAL_MS
    lines_heading: int = 0
    timestamp: bool = False
    unix_time: bool = False


@dataclass
class ConverterConfig:
    """Separators used when rendering mapping values."""

    key_value_separator: str = "="
    entry_separator: str = ","


@dataclass
class OutputConfig:
    """Destination of the sample table."""

    path: str = "-"


@dataclass
class AttrStatsConfig:
    """Top-level attr_stats configuration."""

    source: SourceConfig = field(default_factory=SourceConfig)
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    converter: ConverterConfig = field(default_factory=ConverterConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


@dataclass(frozen=True)
class SampleRequest:
    """Validated, immutable description of one sampling run."""

    resource: str
    attribute_names: tuple[str, ...]
    interval_ms: int = MINIMUM_INTERVAL_MS
    header_repeat: int = 0
    timestamp_mode: TimestampMode = TimestampMode.NONE

    @property
    def one_shot(self) -> bool:
        return self.interval_ms == 0


def _merge_dict(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_dict(target[key], value)
        else:
            target[key] = value
    return target


_ENV_MAP = {
    "ATTR_STATS_ENDPOINT": ("source", "endpoint"),
    "ATTR_STATS_USERNAME": ("source", "username"),
    "ATTR_STATS_PASSWORD": ("source", "password"),
    "ATTR_STATS_RESOURCE": ("sampler", "resource"),
    "ATTR_STATS_ATTRIBUTES": ("sampler", "attributes"),
    "ATTR_STATS_INTERVAL_MS": ("sampler", "interval_ms"),
    "ATTR_STATS_LINES_HEADING": ("sampler", "lines_heading"),
}

_INT_KEYS = {"interval_ms", "lines_heading"}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using the ATTR_STATS_ prefix."""
    for env_key, path in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        obj = data
        for part in path[:-1]:
            obj = obj.setdefault(part, {})
        final_key = path[-1]
        if final_key in _INT_KEYS:
            try:
                obj[final_key] = int(value)
            except ValueError:
                raise ConfigurationError(f"{env_key} must be an integer, got {value!r}") from None
        else:
            obj[final_key] = value
    return data


def _section(cls: type, data: Any, name: str) -> Any:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config section {name!r} must be a mapping")
    unknown = sorted(k for k in data if k not in cls.__dataclass_fields__)
    if unknown:
        logger.warning("Ignoring unknown keys in %r section: %s", name, ", ".join(unknown))
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _dict_to_config(data: dict[str, Any]) -> AttrStatsConfig:
    """Convert a raw dictionary to an AttrStatsConfig dataclass."""
    return AttrStatsConfig(
        source=_section(SourceConfig, data.get("source"), "source"),
        sampler=_section(SamplerConfig, data.get("sampler"), "sampler"),
        converter=_section(ConverterConfig, data.get("converter"), "converter"),
        output=_section(OutputConfig, data.get("output"), "output"),
    )


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AttrStatsConfig:
    """Load configuration from a YAML file, the environment and *overrides*.

    Looks for ``attr_stats.yaml`` in the current directory if *path* is None.
    Precedence, lowest first: file, ``ATTR_STATS_*`` environment variables,
    *overrides* (usually command-line options, nested like the file).
    """
    data: dict[str, Any] = {}
    explicit = path is not None
    path = Path(path) if explicit else Path("attr_stats.yaml")

    if path.exists():
        try:
            with open(path, encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse {path}: {exc}") from exc
        if isinstance(loaded, dict):
            data = loaded
        elif loaded is not None:
            raise ConfigurationError(f"{path} must contain a mapping at the top level")
    elif explicit:
        logger.warning("Config file %s not found, using defaults", path)

    data = _apply_env_overrides(data)
    if overrides:
        _merge_dict(data, overrides)
    return _dict_to_config(data)


def split_attribute_names(attributes: list[str] | str) -> tuple[str, ...]:
    """Split a comma-separated attribute list, dropping blank entries."""
    if attributes is None:
        return ()
    if isinstance(attributes, str):
        attributes = attributes.split(",")
    elif not isinstance(attributes, (list, tuple)):
        raise ConfigurationError(
            f"Attributes must be a name or a list of names, got {type(attributes).__name__}"
        )
    for name in attributes:
        if name is not None and not isinstance(name, str):
            raise ConfigurationError(f"Attribute name must be text, got {name!r}")
    return tuple(name.strip() for name in attributes if name and name.strip())


def clamp_interval(interval_ms: int) -> int:
    """Raise positive intervals below the floor to the floor.

    Zero is kept as is and selects one-shot mode.
    """
    if interval_ms == 0:
        return 0
    if interval_ms < MINIMUM_INTERVAL_MS:
        logger.warning(
            "Interval %d ms too small, setting to %d ms", interval_ms, MINIMUM_INTERVAL_MS
        )
        return MINIMUM_INTERVAL_MS
    return interval_ms


def build_request(config: AttrStatsConfig) -> SampleRequest:
    """Validate the sampler section and turn it into a :class:`SampleRequest`."""
    sampler = config.sampler
    if sampler.resource is not None and not isinstance(sampler.resource, str):
        raise ConfigurationError(f"Resource identifier must be text, got {sampler.resource!r}")
    resource = (sampler.resource or "").strip()
    if not resource:
        raise ConfigurationError("No resource identifier given")

    names = split_attribute_names(sampler.attributes)
    if not names:
        raise ConfigurationError("No attribute names given")

    try:
        interval_ms = clamp_interval(int(sampler.interval_ms))
        lines_heading = int(sampler.lines_heading)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid numeric sampler option: {exc}") from exc

    if lines_heading < 0:
        logger.warning("Lines value %d too small, setting to 0", lines_heading)
        lines_heading = 0

    if not sampler.timestamp:
        if sampler.unix_time:
            logger.info("unix_time has no effect without timestamp")
        mode = TimestampMode.NONE
    elif sampler.unix_time:
        mode = TimestampMode.EPOCH
    else:
        mode = TimestampMode.ELAPSED

    return SampleRequest(
        resource=resource,
        attribute_names=names,
        interval_ms=interval_ms,
        header_repeat=lines_heading,
        timestamp_mode=mode,
    )
