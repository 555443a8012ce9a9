"""Attribute source that reads host and process metrics through psutil."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import psutil

from ..errors import ConfigurationError, FetchError
from .base import AttributeSource, Connection

logger = logging.getLogger(__name__)

SYSTEM_RESOURCE = "system"
PROCESS_PREFIX = "process:"

# Process methods that change state or block; never called as attributes.
_DENIED = frozenset({
    "kill",
    "terminate",
    "suspend",
    "resume",
    "send_signal",
    "wait",
    "children",
    "parent",
    "parents",
    "as_dict",
    "oneshot",
})


def parse_pid(resource_id: str) -> int | None:
    """Return the pid for ``process:<pid>``, or None for ``system``."""
    if resource_id == SYSTEM_RESOURCE:
        return None
    if resource_id.startswith(PROCESS_PREFIX):
        pid_text = resource_id[len(PROCESS_PREFIX):]
        if pid_text.isdigit():
            return int(pid_text)
    raise ConfigurationError(
        f"Resource must be {SYSTEM_RESOURCE!r} or '{PROCESS_PREFIX}<pid>', got {resource_id!r}"
    )


class LocalConnection(Connection):
    """Calls psutil functions by name.

    ``psutil.Process`` handles are cached per pid so that rate style
    attributes like ``cpu_percent`` measure the time since the previous tick.
    """

    def __init__(self) -> None:
        self._processes: dict[int, psutil.Process] = {}

    def _process(self, pid: int) -> psutil.Process:
        if pid not in self._processes:
            self._processes[pid] = psutil.Process(pid)
        return self._processes[pid]

    def fetch(self, resource_id: str, attribute_name: str) -> Any:
        if attribute_name.startswith("_") or attribute_name in _DENIED:
            raise FetchError(resource_id, attribute_name, "attribute not readable")
        try:
            pid = parse_pid(resource_id)
        except ConfigurationError as exc:
            raise FetchError(resource_id, attribute_name, str(exc)) from exc
        try:
            target = psutil if pid is None else self._process(pid)
            func = getattr(target, attribute_name, None)
            if not callable(func) or isinstance(func, type):
                raise FetchError(resource_id, attribute_name, "no such attribute")
            result = func()
        except psutil.Error as exc:
            self._processes.pop(pid, None)
            raise FetchError(resource_id, attribute_name, str(exc)) from exc
        except (TypeError, NotImplementedError) as exc:
            raise FetchError(resource_id, attribute_name, str(exc)) from exc
        if isinstance(result, Iterator):
            # process_iter() and friends stream objects rather than a value
            raise FetchError(resource_id, attribute_name, "attribute yields an iterator, not a value")
        return result

    def close(self) -> None:
        self._processes.clear()


class LocalSource(AttributeSource):
    """Reads attributes of the local host or one of its processes.

    Resource identifiers are ``system`` (attribute names are psutil
    functions, e.g. ``virtual_memory``) or ``process:<pid>`` (attribute
    names are ``psutil.Process`` methods, e.g. ``memory_info``).
    """

    @property
    def name(self) -> str:
        return "local"

    def validate_resource(self, resource_id: str) -> None:
        parse_pid(resource_id)

    def connect(self) -> LocalConnection:
        logger.info("Opened local psutil connection")
        return LocalConnection()
