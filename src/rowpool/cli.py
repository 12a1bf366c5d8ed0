"""rowpool Command Line Interface.

Two ways in:

- ``rowpool run --processor package.module:Factory ...`` loads a processor
  by import path.
- ``rowpool.cli.process(processor)`` embeds the same ``run`` options around
  an in-process processor, for callers that ship their own entry point.

Exit status: 0 on success, 2 for missing or invalid configuration (before
any I/O), 1 for fatal run errors (setup I/O, read, validation, processor
crash).
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

import typer
from click.core import ParameterSource
from pydantic import ValidationError

from rowpool import __version__
from rowpool.contracts.errors import (
    ConfigurationError,
    ProcessorCrashedError,
    RecordValidationError,
    SetupError,
    SourceReadError,
)
from rowpool.contracts.processor import ProcessorProtocol
from rowpool.core.config import PipelineSettings, load_processor, load_settings

__all__ = [
    "EXIT_CONFIG_ERROR",
    "EXIT_FATAL",
    "app",
    "make_app",
    "process",
]

EXIT_FATAL = 1
EXIT_CONFIG_ERROR = 2


class OutputFormat(StrEnum):
    CONSOLE = "console"
    JSON = "json"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"rowpool version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables (e.g. ROWPOOL_TOKEN) from a .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(EXIT_CONFIG_ERROR)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


def _report_settings_errors(error: ValidationError) -> None:
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"])
        if item["type"] == "missing":
            typer.echo(f"missing required argument --{loc.replace('_', '-')}", err=True)
        else:
            typer.echo(f"  - {loc}: {item['msg']}", err=True)


def _resolve_settings(config_path: Path | None, overrides: dict[str, Any]) -> PipelineSettings:
    try:
        return load_settings(config_path, overrides)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {config_path}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        _report_settings_errors(e)
        raise typer.Exit(EXIT_CONFIG_ERROR) from None


def _resolve_processor(bound: ProcessorProtocol | None, settings: PipelineSettings) -> ProcessorProtocol:
    if bound is not None:
        return bound
    if settings.processor is None:
        typer.echo("missing required argument --processor", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR)
    try:
        return load_processor(settings.processor)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR) from None


def _execute(
    bound: ProcessorProtocol | None,
    config_path: Path | None,
    overrides: dict[str, Any],
    output_format: OutputFormat,
    verbose: bool,
    json_logs: bool,
) -> None:
    from rowpool.cli_formatters import (
        create_console_formatters,
        create_json_formatters,
        subscribe_formatters,
    )
    from rowpool.core.events import EventBus
    from rowpool.core.logging import configure_logging
    from rowpool.engine.runner import run_pipeline

    # Configure logging before anything can log
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "WARNING")

    settings = _resolve_settings(config_path, overrides)
    processor = _resolve_processor(bound, settings)

    event_bus = EventBus()
    formatters = create_json_formatters() if output_format == OutputFormat.JSON else create_console_formatters()
    subscribe_formatters(event_bus, formatters)

    try:
        run_pipeline(settings, processor, event_bus=event_bus)
    except SetupError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_FATAL) from None
    except (SourceReadError, RecordValidationError, ProcessorCrashedError):
        # Already reported through the PipelineFailed event
        raise typer.Exit(EXIT_FATAL) from None


def _given(ctx: typer.Context, name: str, value: Any) -> Any:
    """Return value only if the flag was passed on the command line.

    Flag defaults must not mask values from the settings file or environment.
    """
    return value if ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE else None


def _register_run(app: typer.Typer, bound: ProcessorProtocol | None) -> None:
    @app.command("run")
    def run(
        ctx: typer.Context,
        input_path: Path | None = typer.Option(None, "--input-path", "-i", help="Input CSV file path."),
        output_path: Path | None = typer.Option(None, "--output-path", "-o", help="Success output CSV file path."),
        threads: int | None = typer.Option(None, "--threads", "-t", min=1, help="Number of parallel workers [default: 25]."),
        has_header: bool = typer.Option(
            True,
            "--has-header/--no-header",
            help="Treat the first record as a header and pass it through.",
        ),
        token: str | None = typer.Option(None, "--token", help="Access token handed to the processor."),
        show_description: bool = typer.Option(
            False,
            "--show-description/--hide-description",
            help="Append an error_description column to failures.csv.",
        ),
        processor: str | None = typer.Option(
            None,
            "--processor",
            "-p",
            help="Processor import path 'package.module:Factory' (ignored when a processor is embedded).",
        ),
        settings: Path | None = typer.Option(None, "--settings", "-s", help="Path to settings YAML file."),
        output_format: OutputFormat = typer.Option(
            OutputFormat.CONSOLE,
            "--format",
            "-f",
            help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
        ),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose/debug logging."),
        json_logs: bool = typer.Option(False, "--json-logs", help="Output structured JSON logs."),
    ) -> None:
        """Process an input CSV through the worker pool.

        Successful records go to --output-path, failures to failures.csv in
        the working directory.
        """
        overrides: dict[str, Any] = {
            "input_path": input_path,
            "output_path": output_path,
            "threads": threads,
            "has_header": _given(ctx, "has_header", has_header),
            "token": token,
            "show_description": _given(ctx, "show_description", show_description),
            "processor": processor,
        }
        config_path = settings.expanduser() if settings is not None else None
        _execute(bound, config_path, overrides, output_format, verbose, json_logs)


def make_app(processor: ProcessorProtocol | None = None) -> typer.Typer:
    """Build the CLI application.

    Args:
        processor: Processor to embed. When given, the app is a single
            command (the ``run`` options at top level) bound to it. When
            None, the app is the full ``rowpool`` CLI with a ``run``
            subcommand that loads the processor by import path.
    """
    if processor is not None:
        embedded = typer.Typer(add_completion=False)
        _register_run(embedded, processor)
        return embedded

    cli = typer.Typer(
        name="rowpool",
        help="rowpool: concurrent worker-pool pipelines for CSV records.",
        no_args_is_help=True,
    )

    @cli.callback()
    def main(
        version: bool | None = typer.Option(
            None,
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
        no_dotenv: bool = typer.Option(False, "--no-dotenv", help="Skip loading .env file."),
        env_file: Path | None = typer.Option(
            None,
            "--env-file",
            help="Path to .env file (skips automatic search).",
        ),
    ) -> None:
        """rowpool: concurrent worker-pool pipelines for CSV records."""
        if not no_dotenv:
            _load_dotenv(env_file=env_file)
        elif env_file is not None:
            typer.secho("Warning: --env-file ignored because --no-dotenv is set.", fg=typer.colors.YELLOW, err=True)

    _register_run(cli, None)
    return cli


app = make_app()


def process(processor: ProcessorProtocol, args: list[str] | None = None) -> None:
    """Run the embedded CLI around ``processor`` and exit.

    Intended as the body of a caller's ``main()``:

        if __name__ == "__main__":
            process(MyProcessor())

    Args:
        processor: The caller's processor.
        args: Command-line arguments; defaults to sys.argv[1:].
    """
    if processor is None:
        raise ValueError("processor cannot be None")
    _load_dotenv()
    make_app(processor)(args=args, prog_name="rowpool")
