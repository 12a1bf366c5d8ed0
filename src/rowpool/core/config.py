"""
Configuration schema and loading for rowpool runs.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import importlib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from rowpool.contracts.errors import ProcessorLoadError
from rowpool.contracts.processor import ProcessorProtocol

DEFAULT_THREADS = 25

# Failure sink location, fixed relative to the working directory.
FAILURE_SINK_FILENAME = "failures.csv"

# Trailing failure-sink column added when show_description is enabled.
ERROR_DESCRIPTION_COLUMN = "error_description"

_DYNACONF_INTERNAL_KEYS = frozenset({"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES", "MERGE_ENABLED"})


class PipelineSettings(BaseModel):
    """Top-level configuration for one pipeline run.

    Example YAML:
        input_path: data/users.csv
        output_path: out/users_ok.csv
        threads: 8
        has_header: true
        show_description: true
        processor: myproject.processors:UserProcessor
    """

    model_config = {"frozen": True}

    input_path: Path = Field(description="Source of records")
    output_path: Path = Field(description="Destination of the success sink")
    threads: int = Field(default=DEFAULT_THREADS, ge=1, description="Worker pool size")
    has_header: bool = Field(default=True, description="Pass the first record through unchanged")
    token: str = Field(default="", description="Credential handed to the processor when non-empty")
    show_description: bool = Field(
        default=False,
        description=f"Append an '{ERROR_DESCRIPTION_COLUMN}' column to the failure sink",
    )
    processor: str | None = Field(
        default=None,
        description="Processor import path ('package.module:Factory')",
    )

    @field_validator("token", mode="before")
    @classmethod
    def _coerce_token(cls, v: Any) -> Any:
        """Environment values are TOML-parsed by Dynaconf; numeric tokens arrive as ints."""
        if v is None:
            return ""
        if isinstance(v, int | float):
            return str(v)
        return v

    @field_validator("input_path", "output_path", mode="after")
    @classmethod
    def _expand_user(cls, v: Path) -> Path:
        return v.expanduser()

    @property
    def failure_path(self) -> Path:
        """Failure sink path (working directory, not configurable)."""
        return Path.cwd() / FAILURE_SINK_FILENAME

    @property
    def has_credential(self) -> bool:
        return self.token != ""


def load_settings(config_path: Path | None = None, overrides: dict[str, Any] | None = None) -> PipelineSettings:
    """Load settings from an optional YAML file, environment and overrides.

    Precedence (highest first):
    1. ``overrides`` (CLI options that were explicitly given)
    2. Environment variables (ROWPOOL_*)
    3. Config file
    4. Defaults from the Pydantic schema

    Args:
        config_path: Path to a YAML settings file, or None for env/overrides only
        overrides: Values that take precedence over file and environment.
            Keys with a None value are ignored.

    Returns:
        Validated PipelineSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="ROWPOOL",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in _DYNACONF_INTERNAL_KEYS}
    if overrides:
        raw_config.update({k: v for k, v in overrides.items() if v is not None})

    return PipelineSettings(**raw_config)


def load_processor(import_path: str) -> ProcessorProtocol:
    """Resolve a processor from a ``module:attribute`` import path.

    The attribute may be a processor instance, a class, or a zero-argument
    factory returning a processor.

    Raises:
        ProcessorLoadError: If the path is malformed, the module or attribute
            is missing, or the result does not implement ProcessorProtocol.
    """
    module_name, sep, attr_path = import_path.partition(":")
    if not sep or not module_name or not attr_path:
        raise ProcessorLoadError(f"Processor path must look like 'package.module:Factory', got {import_path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ProcessorLoadError(f"Cannot import processor module {module_name!r}: {e}") from e

    target: Any = module
    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ProcessorLoadError(f"Module {module_name!r} has no attribute {attr_path!r}") from e

    # Classes pass the runtime protocol check too, so test for them first
    if isinstance(target, type) or (callable(target) and not isinstance(target, ProcessorProtocol)):
        processor = target()
    else:
        processor = target
    if not isinstance(processor, ProcessorProtocol):
        raise ProcessorLoadError(
            f"{import_path!r} resolved to {type(processor).__name__}, which does not implement "
            "validate/identify/process/set_credential"
        )
    return processor
