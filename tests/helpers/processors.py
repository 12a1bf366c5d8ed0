"""Test processors, sinks and CSV builders.

The processors here are deterministic and driven by the record contents,
so the same input always yields the same counts whatever the pool size:

    id,action
    1,ok        -> success sink
    2,fail      -> failure sink (error "record 2 failed")
    3,drop      -> silent drop
    4,invalid   -> rejected by validate() (fatal)
    5,crash     -> process() raises (fatal)
"""

from __future__ import annotations

import io
import threading
import time
from collections.abc import Iterable, Sequence

from rowpool.contracts import BaseProcessor, Identifier, Input, Output


class ScriptedProcessor(BaseProcessor):
    """Processor whose behaviour is chosen by the record's second field."""

    def __init__(self, *, delay: float = 0.0) -> None:
        super().__init__()
        self._delay = delay
        self._lock = threading.Lock()
        self.processed_ids: list[int] = []
        self.validated: list[list[str]] = []
        self.credential_calls = 0

    def validate(self, record: Sequence[str]) -> None:
        with self._lock:
            self.validated.append(list(record))
        if len(record) < 2:
            raise ValueError("expected at least 2 fields")
        if record[1] == "invalid":
            raise ValueError(f"record {record[0]} is invalid")

    def identify(self, item: Input) -> Identifier:
        return Identifier("record id", int(item.line[0]))

    def process(self, item: Input) -> Output:
        if self._delay:
            time.sleep(self._delay)
        record_id = int(item.line[0])
        with self._lock:
            self.processed_ids.append(record_id)

        action = item.line[1]
        if action == "crash":
            raise RuntimeError(f"processor bug on record {record_id}")
        if action == "fail":
            return Output.failed(ValueError(f"record {record_id} failed"), item.line)
        if action == "drop":
            return Output.dropped(item.line)
        return Output.ok(item.line)

    def set_credential(self, token: str) -> None:
        super().set_credential(token)
        self.credential_calls += 1


class MemorySink:
    """In-memory RowSinkProtocol implementation.

    Tracks rows as written and as flushed, so tests can see exactly what
    reached "backing storage" at each flush.
    """

    def __init__(self, name: str, *, fail_when: str | None = None) -> None:
        self.name = name
        self.rows: list[list[str]] = []
        self.flushed_rows: list[list[str]] = []
        self.flush_count = 0
        self.flush_sizes: list[int] = []
        self.closed = False
        self._fail_when = fail_when

    def write_row(self, row: Sequence[str]) -> None:
        if self._fail_when is not None and self._fail_when in row:
            raise OSError(f"disk full while writing {list(row)!r}")
        self.rows.append(list(row))

    def flush(self) -> None:
        self.flushed_rows = [list(r) for r in self.rows]
        self.flush_count += 1
        self.flush_sizes.append(len(self.rows))

    def close(self) -> None:
        self.closed = True


def csv_text(rows: Iterable[Sequence[str]]) -> str:
    """Render rows as CSV text with \\r\\n line endings."""
    return "".join(",".join(row) + "\r\n" for row in rows)


def csv_stream(rows: Iterable[Sequence[str]]) -> io.StringIO:
    """CSV text in a stream suitable for CSVRowSource."""
    return io.StringIO(csv_text(rows), newline="")


def numbered_rows(count: int, action: str = "ok", *, start: int = 1) -> list[list[str]]:
    """Rows ``[str(i), action]`` for i in start..start+count-1."""
    return [[str(i), action] for i in range(start, start + count)]
