"""CLI event formatter factories for pipeline output.

Provides factory functions that return event handler maps for console
(human-readable) and JSON (structured) output formats. Each factory
returns a dict mapping event types to handler callables, suitable for
subscribing to an EventBus.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import typer

from rowpool.contracts.events import (
    PipelineFailed,
    PipelineStarted,
    RecordProcessed,
    RunSummary,
    SinkWriteFailed,
)
from rowpool.core.events import EventBusProtocol

_RULE = "-" * 63
_MASK = "********"


def _format_duration(seconds: float) -> str:
    return f"{seconds:.3f}s" if seconds < 60 else f"{seconds / 60:.1f}m"


def create_console_formatters() -> dict[type, Callable[..., None]]:
    """Create console formatters for human-readable CLI output."""

    def _format_started(event: PipelineStarted) -> None:
        typer.echo(_RULE)
        typer.echo("Process started")
        typer.echo(_RULE)
        typer.echo(f"input file path: {event.input_path}")
        typer.echo(f"output file path: {event.output_path}")
        typer.echo(f"failure file path: {event.failure_path}")
        typer.echo(f"number of parallel executions: {event.threads}")
        typer.echo(f"header presence: {str(event.has_header).lower()}")
        if event.credential_supplied:
            typer.echo(f"token: {_MASK}")
        typer.echo(_RULE)
        typer.echo()

    def _format_record(event: RecordProcessed) -> None:
        typer.echo(
            f" {event.count} processed. failure: {str(event.failed).lower()}\t{event.description}: {event.record_id}"
        )

    def _format_sink_write_failed(event: SinkWriteFailed) -> None:
        typer.echo(
            f"error writing item to {event.sink} output with id: {event.record_id} ({event.error_message})",
            err=True,
        )

    def _format_summary(event: RunSummary) -> None:
        typer.echo()
        typer.echo(f"Total: {event.total}")
        typer.echo(f"Succeeded inputs: {event.succeeded}")
        typer.echo(f"Failed: {event.failed}")
        if event.dropped:
            typer.echo(f"Dropped: {event.dropped}")
        typer.echo(f"Took {_format_duration(event.duration_seconds)} to run.")

    def _format_failed(event: PipelineFailed) -> None:
        typer.secho(
            f"Pipeline aborted after {_format_duration(event.duration_seconds)}: {event.error_message}",
            fg=typer.colors.RED,
            err=True,
        )

    return {
        PipelineStarted: _format_started,
        RecordProcessed: _format_record,
        SinkWriteFailed: _format_sink_write_failed,
        RunSummary: _format_summary,
        PipelineFailed: _format_failed,
    }


def create_json_formatters() -> dict[type, Callable[..., None]]:
    """Create JSON formatters for structured CLI output (one object per line)."""

    def _format_started_json(event: PipelineStarted) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "pipeline_started",
                    "input_path": event.input_path,
                    "output_path": event.output_path,
                    "failure_path": event.failure_path,
                    "threads": event.threads,
                    "has_header": event.has_header,
                    "credential_supplied": event.credential_supplied,
                }
            )
        )

    def _format_record_json(event: RecordProcessed) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "record_processed",
                    "count": event.count,
                    "failed": event.failed,
                    "description": event.description,
                    "record_id": event.record_id,
                }
            )
        )

    def _format_sink_write_failed_json(event: SinkWriteFailed) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "sink_write_failed",
                    "sink": event.sink,
                    "record_id": event.record_id,
                    "error": event.error_message,
                }
            ),
            err=True,
        )

    def _format_summary_json(event: RunSummary) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "run_completed",
                    "status": event.status.value,
                    "total": event.total,
                    "succeeded": event.succeeded,
                    "failed": event.failed,
                    "dropped": event.dropped,
                    "duration_seconds": event.duration_seconds,
                }
            )
        )

    def _format_failed_json(event: PipelineFailed) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "run_failed",
                    "error": event.error_message,
                    "error_type": type(event.error).__name__,
                    "duration_seconds": event.duration_seconds,
                }
            ),
            err=True,
        )

    return {
        PipelineStarted: _format_started_json,
        RecordProcessed: _format_record_json,
        SinkWriteFailed: _format_sink_write_failed_json,
        RunSummary: _format_summary_json,
        PipelineFailed: _format_failed_json,
    }


def subscribe_formatters(
    event_bus: EventBusProtocol,
    formatters: dict[type, Callable[..., None]],
) -> None:
    """Subscribe all formatters to the event bus."""
    for event_type, handler in formatters.items():
        event_bus.subscribe(event_type, handler)
