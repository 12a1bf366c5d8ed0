"""Record types that flow through the pipeline.

These types answer: "What is being processed, and what came out?"

IMPORTANT:
- Input and Output are immutable once created
- Output.success implies Output.error is None
- An unsuccessful Output without an error is a silent drop: it is counted
  but written to neither sink
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import NamedTuple


@dataclass(frozen=True, slots=True)
class Input:
    """One admitted record's ordered field values, pre-processing."""

    line: tuple[str, ...]

    @classmethod
    def from_record(cls, record: Sequence[str]) -> Input:
        """Create an Input from a raw record as produced by the row source."""
        return cls(line=tuple(record))


@dataclass(frozen=True, slots=True)
class Output:
    """Processed result of one Input.

    Use the factory methods to create instances.

    Attributes:
        line: Transformed (or echoed) record fields
        error: Reportable processing failure, None otherwise
        success: True when the record should go to the success sink
    """

    line: tuple[str, ...] = ()
    error: Exception | str | None = None
    success: bool = False

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError(
                "Output with success=True cannot carry an error. "
                "Use Output.failed(error) to report a processing failure."
            )

    @classmethod
    def ok(cls, line: Sequence[str] = ()) -> Output:
        """Create a successful output."""
        return cls(line=tuple(line), error=None, success=True)

    @classmethod
    def failed(cls, error: Exception | str, line: Sequence[str] = ()) -> Output:
        """Create a reportable failure routed to the failure sink."""
        if error is None:
            raise ValueError("Output.failed() requires an error; use Output.dropped() to drop a record")
        return cls(line=tuple(line), error=error, success=False)

    @classmethod
    def dropped(cls, line: Sequence[str] = ()) -> Output:
        """Create a silently dropped output (counted, never written)."""
        return cls(line=tuple(line), error=None, success=False)

    @property
    def is_failure(self) -> bool:
        """True if this output is a reportable processing failure."""
        return not self.success and self.error is not None

    @property
    def is_dropped(self) -> bool:
        """True if this output is a silent drop."""
        return not self.success and self.error is None

    @property
    def error_description(self) -> str:
        """Stringified error for the failure sink's description column."""
        return "" if self.error is None else str(self.error)


@dataclass(frozen=True, slots=True)
class Result:
    """An Input paired with the Output it produced."""

    input: Input
    output: Output


class Identifier(NamedTuple):
    """Human-readable handle for a record, used for progress and error logs only."""

    description: str
    id: int


@dataclass(slots=True)
class RunCounters:
    """Running totals for one pipeline run.

    Owned by the result aggregator thread; never shared, so no locking.
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    dropped: int = 0
