"""Pipeline: wires reader, worker pool and aggregator for one run.

Scheduling model:
    reader thread --[inputs: bounded]--> N worker threads --[results: bounded]--> aggregator

- The reader validates each record and closes the input channel at end of
  stream (or on a fatal error).
- Workers exit once the input channel is closed and drained; the pool
  coordinator then closes the result channel exactly once.
- The aggregator runs in the calling thread and returns when the result
  channel closes; the summary is computed from its counters.

Fatal errors never terminate the process from inside the pipeline. The
first one trips the shared AbortSignal, every stage unwinds by draining,
and run() re-raises it after all threads have exited.
"""

from __future__ import annotations

import time

import structlog

from rowpool.contracts.errors import SetupError
from rowpool.contracts.events import PipelineFailed, RunCompletionStatus, RunSummary
from rowpool.contracts.processor import ProcessorProtocol
from rowpool.contracts.records import Input, Result
from rowpool.core.config import ERROR_DESCRIPTION_COLUMN
from rowpool.core.events import EventBusProtocol, NullEventBus
from rowpool.engine.abort import AbortSignal
from rowpool.engine.aggregator import ResultAggregator
from rowpool.engine.channel import BoundedChannel
from rowpool.engine.config import PoolConfig
from rowpool.engine.pool import WorkerPool
from rowpool.engine.reader import SourceReader
from rowpool.plugins.protocols import RowSinkProtocol, RowSourceProtocol

logger = structlog.get_logger(__name__)


class Pipeline:
    """Concurrent record pipeline for a single processor.

    A Pipeline holds configuration only; each run() builds fresh channels,
    threads and counters, so one instance can run several sources in turn.

    Example:
        pipeline = Pipeline(processor, pool_config=PoolConfig(pool_size=8))
        summary = pipeline.run(source, success_sink, failure_sink)
    """

    def __init__(
        self,
        processor: ProcessorProtocol,
        *,
        pool_config: PoolConfig | None = None,
        has_header: bool = True,
        show_description: bool = False,
        event_bus: EventBusProtocol | None = None,
    ) -> None:
        if processor is None:
            raise ValueError("processor cannot be None")
        self._processor = processor
        self._config = pool_config if pool_config is not None else PoolConfig()
        self._has_header = has_header
        self._show_description = show_description
        self._event_bus: EventBusProtocol = event_bus if event_bus is not None else NullEventBus()

    @property
    def config(self) -> PoolConfig:
        return self._config

    def run(
        self,
        source: RowSourceProtocol,
        success_sink: RowSinkProtocol,
        failure_sink: RowSinkProtocol,
    ) -> RunSummary:
        """Process every record from source into the two sinks.

        Sinks are flushed but not closed; the caller owns them.

        Returns:
            RunSummary with final counts and wall-clock duration.

        Raises:
            SourceReadError: If the source cannot be read.
            RecordValidationError: If the processor rejects a record.
            ProcessorCrashedError: If process() or identify() raises.
            SetupError: If the header cannot be written.
        """
        start = time.perf_counter()
        try:
            if self._has_header:
                self._pass_header_through(source, success_sink, failure_sink)
            summary = self._run_stages(source, success_sink, failure_sink, start)
        except Exception as e:
            duration = time.perf_counter() - start
            logger.error("Pipeline aborted", error=str(e), error_type=type(e).__name__, duration_seconds=duration)
            self._event_bus.emit(PipelineFailed(error=e, duration_seconds=duration))
            raise

        self._event_bus.emit(summary)
        return summary

    def _pass_header_through(
        self,
        source: RowSourceProtocol,
        success_sink: RowSinkProtocol,
        failure_sink: RowSinkProtocol,
    ) -> None:
        header = source.read_header()
        failure_header = [*header, ERROR_DESCRIPTION_COLUMN] if self._show_description else list(header)
        try:
            success_sink.write_row(list(header))
            failure_sink.write_row(failure_header)
        except (OSError, ValueError) as e:
            raise SetupError(f"error writing header to output file: {e}") from e
        logger.debug("Header passed through", columns=len(header))

    def _run_stages(
        self,
        source: RowSourceProtocol,
        success_sink: RowSinkProtocol,
        failure_sink: RowSinkProtocol,
        start: float,
    ) -> RunSummary:
        abort = AbortSignal()
        inputs: BoundedChannel[Input] = BoundedChannel(self._config.queue_capacity, name="inputs")
        results: BoundedChannel[Result] = BoundedChannel(self._config.queue_capacity, name="results")

        pool = WorkerPool(self._processor, inputs, results, size=self._config.pool_size, abort=abort)
        reader = SourceReader(source, self._processor, inputs, abort)
        aggregator = ResultAggregator(
            self._processor,
            success_sink,
            failure_sink,
            show_description=self._show_description,
            flush_interval=self._config.flush_interval,
            event_bus=self._event_bus,
            abort=abort,
        )

        pool.start()
        reader.start()
        try:
            counters = aggregator.drain(results)
        except BaseException as e:
            # Event handler or sink bug in this thread: unwind the other stages first
            abort.trip(e)
            results.drain()
            raise
        finally:
            reader.join()
            pool.join()

        if abort.error is not None:
            raise abort.error

        duration = time.perf_counter() - start
        logger.info(
            "Pipeline completed",
            admitted=reader.admitted,
            total=counters.total,
            succeeded=counters.succeeded,
            failed=counters.failed,
            dropped=counters.dropped,
            write_failures=aggregator.write_failures,
            duration_seconds=duration,
            **pool.get_stats(),
        )
        return RunSummary(
            total=counters.total,
            succeeded=counters.succeeded,
            failed=counters.failed,
            dropped=counters.dropped,
            duration_seconds=duration,
            status=RunCompletionStatus.COMPLETED,
        )
