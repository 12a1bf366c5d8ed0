"""Row source and row sink protocols.

These protocols define what the pipeline needs from its input and outputs.
They're used for type checking; the CSV implementations live in
plugins/sources and plugins/sinks, and tests substitute in-memory ones.
"""

from collections.abc import Iterator, Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class RowSourceProtocol(Protocol):
    """Protocol for row sources.

    Lifecycle:
    1. read_header() - optional, only when the run declares a header
    2. records() - yields the remaining raw records in input order
    """

    @property
    def line_number(self) -> int:
        """Physical line of the most recently read record (0 before any read)."""
        ...

    def read_header(self) -> list[str]:
        """Read the first record as the header.

        Raises:
            SourceReadError: If the input is empty or cannot be parsed.
        """
        ...

    def records(self) -> Iterator[list[str]]:
        """Yield raw records until end of stream.

        Raises:
            SourceReadError: On I/O failure or malformed encoding (fatal).
        """
        ...


@runtime_checkable
class RowSinkProtocol(Protocol):
    """Protocol for row sinks.

    Sinks are written by a single thread (the result aggregator), so
    implementations need no locking.
    """

    name: str

    def write_row(self, row: Sequence[str]) -> None:
        """Buffer one row for output."""
        ...

    def flush(self) -> None:
        """Push buffered rows to backing storage."""
        ...

    def close(self) -> None:
        """Release resources. Must be idempotent."""
        ...
