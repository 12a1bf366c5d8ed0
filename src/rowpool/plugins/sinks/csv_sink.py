"""CSV row sink for rowpool.

Buffered csv.writer over a text stream. Rows accumulate in the stream's
buffer until flush() is called; the pipeline flushes every batch of results
and once more at shutdown.
"""

from __future__ import annotations

import csv
import io
import os
from collections.abc import Sequence
from pathlib import Path
from typing import IO

from rowpool.contracts.errors import SetupError


class CSVRowSink:
    """Write rows to a CSV stream.

    Written only by the result aggregator thread; no locking.

    Attributes:
        name: Sink label used in logs and events ("success", "failure")
        rows_written: Rows handed to the csv writer without error
        flush_count: Completed flush() calls
    """

    def __init__(self, stream: IO[str], *, name: str, delimiter: str = ",", owns_stream: bool = True) -> None:
        self.name = name
        self.rows_written = 0
        self.flush_count = 0
        self._stream: IO[str] | None = stream
        self._owns_stream = owns_stream
        self._writer = csv.writer(stream, delimiter=delimiter)

    @classmethod
    def open(cls, path: Path, *, name: str, delimiter: str = ",", encoding: str = "utf-8") -> CSVRowSink:
        """Create (or truncate) a CSV file as a sink.

        Raises:
            SetupError: If the file cannot be created.
        """
        try:
            stream = open(path, "w", encoding=encoding, newline="")  # noqa: SIM115 - closed in close()
        except OSError as e:
            raise SetupError(f"error creating {name} output file {path}: {e}", path=str(path)) from e
        return cls(stream, name=name, delimiter=delimiter)

    def write_row(self, row: Sequence[str]) -> None:
        """Buffer one row.

        Raises:
            ValueError: If the sink has been closed.
            OSError, csv.Error: If the row cannot be written.
        """
        if self._stream is None:
            raise ValueError(f"write to closed sink '{self.name}'")
        self._writer.writerow(row)
        self.rows_written += 1

    def flush(self) -> None:
        """Flush buffered rows to disk with fsync for durability."""
        if self._stream is None:
            return
        self._stream.flush()
        try:
            fd = self._stream.fileno()
        except (AttributeError, io.UnsupportedOperation):
            # In-memory stream, nothing to sync
            fd = None
        if fd is not None:
            os.fsync(fd)
        self.flush_count += 1

    def close(self) -> None:
        """Close the stream if this sink owns it. Idempotent."""
        if self._stream is None:
            return
        stream = self._stream
        self._stream = None
        if self._owns_stream:
            stream.close()

    def __enter__(self) -> CSVRowSink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
