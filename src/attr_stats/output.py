"""Line-oriented output of header and data rows."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import IO, Sequence

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SEPARATOR = "\t"


class RowWriter:
    """Writes tab-separated rows, one line each, to a text stream.

    Nothing is buffered beyond what the stream itself does. Use
    :meth:`open` to write to a file; the writer then owns the file handle
    and closes it when used as a context manager.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._owns_stream = False

    @classmethod
    def open(cls, path: str | Path) -> RowWriter:
        """Writer for *path*; ``-`` selects standard output."""
        if str(path) == "-":
            return cls()
        target = Path(str(path))
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            stream = open(target, "a", encoding="utf-8")  # noqa: SIM115
        except OSError as exc:
            raise ConfigurationError(f"Cannot open output {target}: {exc}") from exc
        writer = cls(stream)
        writer._owns_stream = True
        logger.info("Writing samples to %s", target)
        return writer

    def write_line(self, text: str) -> None:
        self._stream.write(text + "\n")
        self._stream.flush()

    def write_row(self, cells: Sequence[str]) -> None:
        """Join *cells* with a tab and write them as one line."""
        self.write_line(SEPARATOR.join(cells))

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()
            self._owns_stream = False

    def __enter__(self) -> RowWriter:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
