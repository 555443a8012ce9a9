"""Sampling loop: fetch, convert and write one row per tick."""

from __future__ import annotations

import enum
import logging
import time
from typing import Any, Callable

from .config import MINIMUM_INTERVAL_MS, SampleRequest, TimestampMode
from .converter import ValueConverter, default_converter
from .output import SEPARATOR, RowWriter
from .source.base import AttributeSource, Connection

logger = logging.getLogger(__name__)

TIME_COLUMN = "time"

# Longest single sleep between stop checks while waiting for the next tick.
STOP_POLL_MS = 100


class SamplerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


def current_millis() -> int:
    """Wall-clock time in whole milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def sleep_duration(interval_ms: int, spent_ms: int) -> int:
    """Milliseconds to wait after a tick that took *spent_ms*.

    Never less than :data:`MINIMUM_INTERVAL_MS`, so slow fetches still leave
    an idle gap between ticks.
    """
    return max(interval_ms - spent_ms, MINIMUM_INTERVAL_MS)


class Sampler:
    """Samples the attributes of a :class:`SampleRequest` until stopped.

    The sampler runs on the calling thread. :meth:`stop` only sets a flag, so
    it is safe to call from a signal handler or another thread. The flag is
    checked at the start of each tick, before sleeping, and between the short
    slices the sleep is split into. An in-flight fetch is never interrupted.

    The connection is opened on the transition into ``RUNNING``, before the
    header is written, and closed exactly once while draining.
    """

    def __init__(
        self,
        request: SampleRequest,
        source: AttributeSource,
        writer: RowWriter,
        converter: ValueConverter | None = None,
        clock: Callable[[], int] = current_millis,
        sleep: Callable[[float], None] = time.sleep,
        poll_ms: int = STOP_POLL_MS,
    ) -> None:
        self._request = request
        self._source = source
        self._writer = writer
        self._converter = converter if converter is not None else default_converter()
        self._clock = clock
        self._sleep = sleep
        self._poll_ms = poll_ms
        self._stop_requested = False
        self._connection: Connection | None = None
        self._header: str | None = None
        self._start_ms: int | None = None
        self._rows_since_header = 0
        self.rows_written = 0
        self.state = SamplerState.IDLE

    @property
    def stopping(self) -> bool:
        return self._stop_requested

    def stop(self) -> None:
        """Ask the loop to drain at the next checkpoint."""
        self._stop_requested = True

    def _pause(self, wait_ms: int) -> None:
        deadline = self._clock() + wait_ms
        while not self._stop_requested:
            remaining = deadline - self._clock()
            if remaining <= 0:
                return
            self._sleep(min(remaining, self._poll_ms) / 1000)

    def _get_connection(self) -> Connection:
        if self._connection is None:
            self._connection = self._source.connect()
        return self._connection

    def header(self) -> str:
        if self._header is None:
            columns = list(self._request.attribute_names)
            if self._request.timestamp_mode is not TimestampMode.NONE:
                columns.insert(0, TIME_COLUMN)
            self._header = SEPARATOR.join(columns)
        return self._header

    def _write_header(self) -> None:
        self._writer.write_line(self.header())

    def fetch(self) -> list[Any]:
        """Read every requested attribute, in request order."""
        connection = self._get_connection()
        return [
            connection.fetch(self._request.resource, name)
            for name in self._request.attribute_names
        ]

    def format_row(self, values: list[Any], tick_ms: int, elapsed_ms: int) -> list[str]:
        cells: list[str] = []
        mode = self._request.timestamp_mode
        if mode is TimestampMode.EPOCH:
            cells.append(str(tick_ms))
        elif mode is TimestampMode.ELAPSED:
            cells.append(str(elapsed_ms))
        cells.extend(self._converter.convert(value) for value in values)
        return cells

    def tick(self) -> int:
        """Run one tick and return the milliseconds it took."""
        tick_ms = self._clock()
        if self._start_ms is None:
            self._start_ms = tick_ms
        elapsed_ms = tick_ms - self._start_ms

        if not self._request.one_shot and self._request.header_repeat > 0:
            # A period of 1 repeats the header before every row after the first.
            if self._rows_since_header >= self._request.header_repeat:
                self._write_header()
                self._rows_since_header = 0

        values = self.fetch()
        self._writer.write_row(self.format_row(values, tick_ms, elapsed_ms))
        self._rows_since_header += 1
        self.rows_written += 1
        return self._clock() - tick_ms

    def run(self) -> None:
        """Write the header, then sample until stopped.

        A :class:`FetchError` ends the loop; the sampler still drains before
        the error propagates, and the failed tick writes no row.
        """
        if self.state is not SamplerState.IDLE:
            raise RuntimeError(f"Sampler already {self.state.value}")
        try:
            self._get_connection()
        except Exception:
            self.state = SamplerState.STOPPED
            raise
        self.state = SamplerState.RUNNING
        logger.info(
            "Sampling %d attribute(s) of %s from %s (interval=%d ms)",
            len(self._request.attribute_names),
            self._request.resource,
            self._source.name,
            self._request.interval_ms,
        )
        try:
            self._write_header()
            if self._request.one_shot:
                self.tick()
                return
            while not self.stopping:
                spent_ms = self.tick()
                if self.stopping:
                    break
                wait_ms = sleep_duration(self._request.interval_ms, spent_ms)
                logger.debug("Tick took %d ms, sleeping %d ms", spent_ms, wait_ms)
                self._pause(wait_ms)
        finally:
            self._drain()

    def _drain(self) -> None:
        self.state = SamplerState.DRAINING
        try:
            if self._connection is not None:
                self._connection.close()
                logger.info("Closed connection to %s", self._source.name)
                self._connection = None
        finally:
            self._writer.write_line("")
            self.state = SamplerState.STOPPED
            logger.info("Sampler stopped after %d row(s)", self.rows_written)
