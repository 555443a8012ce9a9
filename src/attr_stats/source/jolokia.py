"""Attribute source for a Jolokia agent (JMX over HTTP)."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import requests

from ..errors import ConfigurationError, FetchError, SourceConnectionError
from .base import AttributeSource, Connection

logger = logging.getLogger(__name__)

_KEY_FORBIDDEN = frozenset(":=,*?\"\n")
_VALUE_FORBIDDEN = frozenset(":=,\"\n")


def split_key_properties(properties: str) -> list[str]:
    """Split a key property list on commas that are not inside quotes."""
    items: list[str] = []
    current: list[str] = []
    quoted = escaped = False
    for ch in properties:
        if escaped:
            escaped = False
        elif quoted:
            if ch == "\\":
                escaped = True
            elif ch == '"':
                quoted = False
        elif ch == '"':
            quoted = True
        elif ch == ",":
            items.append("".join(current))
            current = []
            continue
        current.append(ch)
    if quoted:
        raise ValueError("unterminated quoted value")
    items.append("".join(current))
    return items


def _check_property(item: str, seen: set[str]) -> None:
    key, sep, value = item.partition("=")
    if not sep or not key or _KEY_FORBIDDEN & set(key):
        raise ValueError(f"invalid key property {item!r}")
    if key in seen:
        raise ValueError(f"duplicate key {key!r}")
    seen.add(key)
    if value.startswith('"'):
        if len(value) < 2 or not value.endswith('"'):
            raise ValueError(f"invalid quoted value in {item!r}")
    elif not value or _VALUE_FORBIDDEN & set(value):
        raise ValueError(f"invalid value in {item!r}")


def validate_object_name(object_name: str) -> None:
    """Check *object_name* against the JMX ``domain:key=value,...`` syntax.

    Quoted values may contain commas, and a ``*`` element makes the name a
    property list pattern.
    """
    domain, sep, properties = object_name.partition(":")
    try:
        if not sep or "\n" in domain:
            raise ValueError("missing domain separator")
        items = split_key_properties(properties)
        seen: set[str] = set()
        wildcards = 0
        for item in items:
            if item == "*":
                wildcards += 1
            else:
                _check_property(item, seen)
        if wildcards > 1:
            raise ValueError("more than one property list wildcard")
    except ValueError as exc:
        raise ConfigurationError(f"Object name incorrect: {object_name!r} ({exc})") from None


def validate_endpoint(endpoint: str) -> None:
    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"Service URL incorrect: {endpoint!r}")


class JolokiaConnection(Connection):
    """A :class:`requests.Session` bound to one Jolokia endpoint."""

    def __init__(self, endpoint: str, session: requests.Session, timeout: float) -> None:
        self._endpoint = endpoint
        self._session = session
        self._timeout = timeout

    def request(self, payload: dict[str, Any]) -> requests.Response:
        return self._session.post(self._endpoint, json=payload, timeout=self._timeout)

    def fetch(self, resource_id: str, attribute_name: str) -> Any:
        payload = {"type": "read", "mbean": resource_id, "attribute": attribute_name}
        try:
            response = self.request(payload)
        except requests.exceptions.RequestException as exc:
            raise FetchError(resource_id, attribute_name, str(exc)) from exc
        if response.status_code != 200:
            raise FetchError(resource_id, attribute_name, f"HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise FetchError(resource_id, attribute_name, "response is not JSON") from exc
        if not isinstance(body, dict):
            raise FetchError(resource_id, attribute_name, "unexpected response body")
        status = body.get("status")
        if status != 200:
            reason = body.get("error") or f"status {status}"
            raise FetchError(resource_id, attribute_name, str(reason))
        return body.get("value")

    def close(self) -> None:
        self._session.close()


class JolokiaSource(AttributeSource):
    """Reads MBean attributes through a Jolokia agent.

    Resource identifiers are JMX object names such as
    ``java.lang:type=Memory``. Composite attribute values arrive as JSON
    objects and are rendered like any other mapping.
    """

    def __init__(
        self,
        endpoint: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 5.0,
    ) -> None:
        validate_endpoint(endpoint)
        self._endpoint = endpoint
        self._username = username
        self._password = password
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "jolokia"

    def validate_resource(self, resource_id: str) -> None:
        validate_object_name(resource_id)

    def _new_session(self) -> requests.Session:
        return requests.Session()

    def connect(self) -> JolokiaConnection:
        session = self._new_session()
        if self._username and self._password:
            session.auth = (self._username, self._password)
        connection = JolokiaConnection(self._endpoint, session, self._timeout)
        try:
            response = connection.request({"type": "version"})
        except requests.exceptions.RequestException as exc:
            session.close()
            raise SourceConnectionError(f"Cannot connect to {self._endpoint}: {exc}") from exc
        if response.status_code in (401, 403):
            session.close()
            raise SourceConnectionError(
                f"Authentication rejected by {self._endpoint} (HTTP {response.status_code})"
            )
        if response.status_code != 200:
            session.close()
            raise SourceConnectionError(
                f"Unexpected response from {self._endpoint}: HTTP {response.status_code}"
            )
        logger.info("Opened connection to %s", self._endpoint)
        return connection
