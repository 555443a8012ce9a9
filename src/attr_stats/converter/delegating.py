"""Converter that delegates to an ordered chain of converters."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from .base import ValueConverter, ValueShape, shape_of

logger = logging.getLogger(__name__)


def fallback_text(value: Any) -> str:
    """Generic text for *value*, used when no converter produced one."""
    try:
        return str(value)
    except Exception:
        logger.debug("str() failed for %s, using repr()", type(value).__name__, exc_info=True)
    try:
        return repr(value)
    except Exception:
        return object.__repr__(value)


class DelegatingConverter(ValueConverter):
    """Delegates to the first registered converter that can handle a value.

    Converters are consulted in registration order, so specialised converters
    must be registered ahead of catch-all ones. ``None`` always renders as an
    empty string and values no converter accepts fall back to ``str()``.

    :meth:`convert` never raises: a converter that fails is logged and the
    value is rendered with :func:`fallback_text` instead.
    """

    def __init__(self, converters: Iterable[ValueConverter] = ()) -> None:
        self._converters: list[ValueConverter] = list(converters)

    @property
    def converters(self) -> list[ValueConverter]:
        return list(self._converters)

    def register(self, converter: ValueConverter) -> None:
        """Append *converter* to the end of the chain."""
        self._converters.append(converter)

    def can_handle(self, shape: ValueShape) -> bool:
        return True

    def render(self, value: Any) -> str:
        shape = shape_of(value)
        for converter in self._converters:
            if converter.can_handle(shape):
                return converter.render(value)
        return fallback_text(value)

    def convert(self, value: Any) -> str:
        if value is None:
            return ""
        try:
            return self.render(value)
        except Exception:
            logger.warning(
                "Converting %s value failed, using its plain text form",
                type(value).__name__,
                exc_info=True,
            )
            return fallback_text(value)
