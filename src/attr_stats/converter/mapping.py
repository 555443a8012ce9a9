"""Converter for associative values (mappings and named tuples)."""

from __future__ import annotations

from typing import Any

from .base import ValueConverter, ValueShape, is_namedtuple


class MapConverter(ValueConverter):
    """Renders a mapping as ``[k1=v1,k2=v2]``.

    Keys and values are rendered by *key_converter* and *value_converter*,
    which are usually full converter chains so nested mappings work. Entries
    keep the iteration order of the source mapping.
    """

    def __init__(
        self,
        key_converter: ValueConverter,
        value_converter: ValueConverter,
        key_value_separator: str = "=",
        entry_separator: str = ",",
    ) -> None:
        self._key_converter = key_converter
        self._value_converter = value_converter
        self.key_value_separator = key_value_separator
        self.entry_separator = entry_separator

    def can_handle(self, shape: ValueShape) -> bool:
        return shape is ValueShape.ASSOCIATIVE

    def render(self, value: Any) -> str:
        if is_namedtuple(value):
            value = value._asdict()
        entries = [
            self._key_converter.convert(key)
            + self.key_value_separator
            + self._value_converter.convert(item)
            for key, item in value.items()
        ]
        return "[" + self.entry_separator.join(entries) + "]"
