"""CSV row source for rowpool.

Reads records from a text stream using csv.reader for proper multiline
quoted field support. Records are yielded as raw field lists; validation
against the processor happens in the pipeline's reader stage.

Unlike a quarantining source, every read failure here is fatal: a
malformed record raises SourceReadError and the run stops. Parsing is
strict (unterminated quotes are errors) and, by default, every record must
have as many fields as the first one.
"""

from __future__ import annotations

import csv
from collections.abc import Iterator
from pathlib import Path
from typing import IO

from rowpool.contracts.errors import SetupError, SourceReadError


class CSVRowSource:
    """Read raw records from a CSV stream.

    The stream must be opened with newline="" so embedded newlines in
    quoted fields are handled by the csv module.

    Config options:
        delimiter: Field delimiter (default: ",")
        enforce_field_count: Reject records whose field count differs from
            the first record's (default: True)

    Example:
        with CSVRowSource.open(Path("users.csv")) as source:
            header = source.read_header()
            for record in source.records():
                ...
    """

    def __init__(
        self,
        stream: IO[str],
        *,
        delimiter: str = ",",
        enforce_field_count: bool = True,
        name: str = "<stream>",
    ) -> None:
        self._stream = stream
        self._name = name
        self._enforce_field_count = enforce_field_count
        self._expected_fields: int | None = None
        self._reader = csv.reader(stream, delimiter=delimiter, strict=True)

    @classmethod
    def open(
        cls,
        path: Path,
        *,
        delimiter: str = ",",
        encoding: str = "utf-8",
        enforce_field_count: bool = True,
    ) -> CSVRowSource:
        """Open a CSV file as a row source.

        Raises:
            SetupError: If the file cannot be opened.
        """
        try:
            # newline='' required for embedded newline handling
            stream = open(path, encoding=encoding, newline="")  # noqa: SIM115 - closed in close()
        except OSError as e:
            raise SetupError(f"error opening input file {path}: {e}", path=str(path)) from e
        return cls(stream, delimiter=delimiter, enforce_field_count=enforce_field_count, name=str(path))

    @property
    def name(self) -> str:
        return self._name

    @property
    def line_number(self) -> int:
        """Physical line of the most recently read record."""
        return self._reader.line_num

    def read_header(self) -> list[str]:
        """Read the first record as the header.

        Raises:
            SourceReadError: If the input is empty or the header can't be parsed.
        """
        header = self._next_record()
        if header is None:
            raise SourceReadError(f"error reading header from {self._name}: input is empty", line_number=0)
        return header

    def records(self) -> Iterator[list[str]]:
        """Yield records until end of stream.

        Raises:
            SourceReadError: On parse or I/O failure, or a field count mismatch.
        """
        while True:
            values = self._next_record()
            if values is None:
                return
            yield values

    def _next_record(self) -> list[str] | None:
        """Read one non-blank record, or None at end of stream."""
        while True:
            try:
                values = next(self._reader)
            except StopIteration:
                return None
            except (csv.Error, OSError, UnicodeDecodeError) as e:
                raise SourceReadError(
                    f"CSV read error in {self._name} at line {self._reader.line_num}: {e}",
                    line_number=self._reader.line_num,
                ) from e

            # csv.reader returns [] for blank lines
            if values:
                break

        if self._enforce_field_count:
            if self._expected_fields is None:
                self._expected_fields = len(values)
            elif len(values) != self._expected_fields:
                raise SourceReadError(
                    f"CSV read error in {self._name} at line {self._reader.line_num}: "
                    f"expected {self._expected_fields} fields, got {len(values)}",
                    line_number=self._reader.line_num,
                )
        return values

    def close(self) -> None:
        """Close the underlying stream."""
        self._stream.close()

    def __enter__(self) -> CSVRowSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
