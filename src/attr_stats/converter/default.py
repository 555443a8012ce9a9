"""Catch-all converter."""

from __future__ import annotations

from typing import Any

from .base import ValueConverter, ValueShape


class DefaultConverter(ValueConverter):
    """Renders any value with ``str()``."""

    def can_handle(self, shape: ValueShape) -> bool:
        return True

    def render(self, value: Any) -> str:
        return str(value)
