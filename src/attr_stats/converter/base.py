"""Base interface for attribute value converters."""

from __future__ import annotations

import abc
import datetime
import enum
import numbers
from collections.abc import Mapping
from typing import Any


class ValueShape(enum.Enum):
    """Coarse shape of an attribute value, used to pick a converter."""

    ABSENT = "absent"
    SCALAR = "scalar"
    ASSOCIATIVE = "associative"
    OTHER = "other"


_SCALAR_TYPES = (
    str,
    bytes,
    bool,
    numbers.Number,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    enum.Enum,
)


def is_namedtuple(value: Any) -> bool:
    """Return True for instances of ``collections.namedtuple`` classes."""
    return isinstance(value, tuple) and hasattr(value, "_asdict") and hasattr(value, "_fields")


def shape_of(value: Any) -> ValueShape:
    """Classify *value* into a :class:`ValueShape`."""
    if value is None:
        return ValueShape.ABSENT
    if isinstance(value, Mapping) or is_namedtuple(value):
        return ValueShape.ASSOCIATIVE
    if isinstance(value, _SCALAR_TYPES):
        return ValueShape.SCALAR
    return ValueShape.OTHER


class ValueConverter(abc.ABC):
    """Abstract base class for converters that render a value to text."""

    @abc.abstractmethod
    def can_handle(self, shape: ValueShape) -> bool:
        """Whether this converter renders values of the given shape."""

    @abc.abstractmethod
    def render(self, value: Any) -> str:
        """Render *value* to a single text cell."""

    def convert(self, value: Any) -> str:
        return self.render(value)
