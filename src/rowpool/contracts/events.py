"""Observability events for pipeline execution.

These domain events provide visibility into a run: the effective
configuration, per-record progress, non-fatal sink failures, and the final
summary. Events are emitted by the pipeline and consumed by CLI formatters
for human-readable or structured output.
"""

from dataclasses import dataclass
from enum import StrEnum


class RunCompletionStatus(StrEnum):
    """Final status for RunSummary events."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PipelineStarted:
    """Emitted once before any record is read (the configuration banner).

    Attributes:
        input_path: Source of records
        output_path: Success sink destination
        failure_path: Failure sink destination
        threads: Worker pool size
        has_header: Whether the first record is passed through
        credential_supplied: Whether a credential was handed to the processor
    """

    input_path: str
    output_path: str
    failure_path: str
    threads: int
    has_header: bool
    credential_supplied: bool


@dataclass(frozen=True, slots=True)
class RecordProcessed:
    """Emitted by the aggregator once per result, regardless of routing.

    Attributes:
        count: Monotonically increasing number of results handled so far
        failed: True if the record produced a reportable processing error
        description: Identifier description from the processor
        record_id: Numeric identifier from the processor
    """

    count: int
    failed: bool
    description: str
    record_id: int


@dataclass(frozen=True, slots=True)
class SinkWriteFailed:
    """Emitted when writing one record to a sink fails (non-fatal)."""

    sink: str
    record_id: int
    error: BaseException

    @property
    def error_message(self) -> str:
        """Human-readable error message for formatting."""
        return str(self.error)


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Summary emitted when the aggregator drains.

    Attributes:
        total: Results handled (including silent drops)
        succeeded: Records written to the success sink
        failed: Records written to the failure sink
        dropped: Unsuccessful records without an error, written nowhere
        duration_seconds: Wall-clock time from worker start to drain
        status: Completion status
    """

    total: int
    succeeded: int
    failed: int
    dropped: int
    duration_seconds: float
    status: RunCompletionStatus = RunCompletionStatus.COMPLETED


@dataclass(frozen=True, slots=True)
class PipelineFailed:
    """Emitted when a fatal error aborts the run.

    Stores the full exception object to preserve traceback and chained causes.
    """

    error: BaseException
    duration_seconds: float

    @property
    def error_message(self) -> str:
        """Human-readable error message for formatting."""
        return str(self.error)
