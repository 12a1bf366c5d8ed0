"""Error taxonomy for pipeline runs.

Fatal errors propagate out of the pipeline to a single top-level driver
(the CLI), which decides the process exit status. Non-fatal errors
(processing failures, sink write failures) never become exceptions; they
are recovered where they happen.
"""

from __future__ import annotations

from collections.abc import Sequence


class RowpoolError(Exception):
    """Base class for all rowpool errors."""


class ConfigurationError(RowpoolError):
    """Raised when required configuration is missing or invalid.

    Reported before any I/O happens.
    """


class ProcessorLoadError(ConfigurationError):
    """Raised when a processor import path cannot be resolved."""


class SetupError(RowpoolError):
    """Raised when the input cannot be opened or a sink cannot be created."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class SourceReadError(RowpoolError):
    """Raised when the input stream cannot be read or is malformed.

    Attributes:
        line_number: Physical line in the input where reading failed, if known
    """

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


class RecordValidationError(RowpoolError):
    """Raised when the processor rejects a record.

    Validation failures abort the whole run; they are not per-record skips.

    Attributes:
        record: The rejected record
        line_number: Physical line of the record in the input
    """

    def __init__(self, record: Sequence[str], cause: BaseException, *, line_number: int | None = None) -> None:
        location = f" at line {line_number}" if line_number is not None else ""
        super().__init__(f"Record {list(record)!r}{location} failed validation: {cause}")
        self.record = list(record)
        self.line_number = line_number
        self.cause = cause


class ProcessorCrashedError(RowpoolError):
    """Raised when processor code raises instead of returning an Output.

    A reportable failure must be returned as Output.failed(); an exception
    escaping process() or identify() is a bug in the processor.
    """

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"Processor {operation}() raised {type(cause).__name__}: {cause}")
        self.operation = operation
        self.cause = cause


class ChannelClosedError(RowpoolError):
    """Raised when putting to a channel that has already been closed."""
