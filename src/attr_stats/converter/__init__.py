"""Attribute value converters."""

from __future__ import annotations

from .base import ValueConverter, ValueShape, shape_of
from .default import DefaultConverter
from .delegating import DelegatingConverter
from .mapping import MapConverter

__all__ = [
    "DefaultConverter",
    "DelegatingConverter",
    "MapConverter",
    "ValueConverter",
    "ValueShape",
    "default_converter",
    "shape_of",
]


def default_converter(
    key_value_separator: str = "=",
    entry_separator: str = ",",
) -> DelegatingConverter:
    """Build the standard chain: mappings first, then everything else.

    The map converter renders keys and values with the chain itself, so
    mappings nested at any depth are expanded.
    """
    chain = DelegatingConverter()
    chain.register(MapConverter(chain, chain, key_value_separator, entry_separator))
    chain.register(DefaultConverter())
    return chain
