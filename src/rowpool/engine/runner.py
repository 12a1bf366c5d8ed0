"""File-level driver: settings + processor -> files on disk + summary."""

from __future__ import annotations

from contextlib import ExitStack

import structlog

from rowpool.contracts.events import PipelineStarted, RunSummary
from rowpool.contracts.processor import ProcessorProtocol
from rowpool.core.config import PipelineSettings
from rowpool.core.events import EventBusProtocol, NullEventBus
from rowpool.engine.config import PoolConfig
from rowpool.engine.pipeline import Pipeline
from rowpool.plugins.sinks.csv_sink import CSVRowSink
from rowpool.plugins.sources.csv_source import CSVRowSource

logger = structlog.get_logger(__name__)


def run_pipeline(
    settings: PipelineSettings,
    processor: ProcessorProtocol,
    *,
    event_bus: EventBusProtocol | None = None,
) -> RunSummary:
    """Run one pipeline over the files named in settings.

    Steps:
    1. Hand the credential to the processor (once, only if non-empty)
    2. Open the input, create the success and failure sinks
    3. Emit PipelineStarted (the configuration banner)
    4. Run the pipeline; every file is closed on the way out

    Raises:
        SetupError: If the input can't be opened or a sink can't be created.
        SourceReadError, RecordValidationError, ProcessorCrashedError:
            Fatal errors from the run itself.
    """
    bus: EventBusProtocol = event_bus if event_bus is not None else NullEventBus()

    if settings.has_credential:
        processor.set_credential(settings.token)

    failure_path = settings.failure_path
    with ExitStack() as stack:
        source = stack.enter_context(CSVRowSource.open(settings.input_path))
        success_sink = stack.enter_context(CSVRowSink.open(settings.output_path, name="success"))
        failure_sink = stack.enter_context(CSVRowSink.open(failure_path, name="failure"))

        bus.emit(
            PipelineStarted(
                input_path=str(settings.input_path),
                output_path=str(settings.output_path),
                failure_path=str(failure_path),
                threads=settings.threads,
                has_header=settings.has_header,
                credential_supplied=settings.has_credential,
            )
        )
        logger.info(
            "Pipeline starting",
            input_path=str(settings.input_path),
            output_path=str(settings.output_path),
            threads=settings.threads,
        )

        pipeline = Pipeline(
            processor,
            pool_config=PoolConfig(pool_size=settings.threads),
            has_header=settings.has_header,
            show_description=settings.show_description,
            event_bus=bus,
        )
        return pipeline.run(source, success_sink, failure_sink)
