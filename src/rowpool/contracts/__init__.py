"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.

Import patterns:
    # Contracts (lightweight, no heavy dependencies)
    from rowpool.contracts import Input, Output, ProcessorProtocol

    # Settings classes (from core, pulls in pydantic/dynaconf)
    from rowpool.core.config import PipelineSettings
"""

from rowpool.contracts.errors import (
    ChannelClosedError,
    ConfigurationError,
    ProcessorCrashedError,
    ProcessorLoadError,
    RecordValidationError,
    RowpoolError,
    SetupError,
    SourceReadError,
)
from rowpool.contracts.events import (
    PipelineFailed,
    PipelineStarted,
    RecordProcessed,
    RunCompletionStatus,
    RunSummary,
    SinkWriteFailed,
)
from rowpool.contracts.processor import BaseProcessor, ProcessorProtocol
from rowpool.contracts.records import Identifier, Input, Output, Result, RunCounters

__all__ = [
    "BaseProcessor",
    "ChannelClosedError",
    "ConfigurationError",
    "Identifier",
    "Input",
    "Output",
    "PipelineFailed",
    "PipelineStarted",
    "ProcessorCrashedError",
    "ProcessorLoadError",
    "ProcessorProtocol",
    "RecordProcessed",
    "RecordValidationError",
    "Result",
    "RowpoolError",
    "RunCompletionStatus",
    "RunCounters",
    "RunSummary",
    "SetupError",
    "SinkWriteFailed",
    "SourceReadError",
]
