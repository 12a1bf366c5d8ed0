"""Result aggregator: the single consumer of the result channel.

Routes each Result:
- success        -> success sink (input line)
- failure        -> failure sink (input line, plus error text if show_description)
- silent drop    -> neither sink (counted in total only)

Both sinks are flushed every flush_interval results and once more when the
channel closes. A sink write failure is logged with the record identifier
and does not stop the run; counters still increment.

Thread Safety:
    Runs in exactly one thread. Counters and sinks are owned by it, so
    nothing here is locked.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable

import structlog

from rowpool.contracts.errors import ProcessorCrashedError
from rowpool.contracts.events import RecordProcessed, SinkWriteFailed
from rowpool.contracts.processor import ProcessorProtocol
from rowpool.contracts.records import Identifier, Result, RunCounters
from rowpool.core.events import EventBusProtocol, NullEventBus
from rowpool.engine.abort import AbortSignal
from rowpool.engine.config import DEFAULT_FLUSH_INTERVAL
from rowpool.plugins.protocols import RowSinkProtocol

logger = structlog.get_logger(__name__)

# Errors a sink may raise for one row without the run being lost.
_SINK_WRITE_ERRORS: tuple[type[Exception], ...] = (OSError, csv.Error, ValueError)


class ResultAggregator:
    """Drain results into the success and failure sinks.

    Example:
        aggregator = ResultAggregator(processor, success_sink, failure_sink)
        counters = aggregator.drain(results_channel)
    """

    def __init__(
        self,
        processor: ProcessorProtocol,
        success_sink: RowSinkProtocol,
        failure_sink: RowSinkProtocol,
        *,
        show_description: bool = False,
        flush_interval: int = DEFAULT_FLUSH_INTERVAL,
        event_bus: EventBusProtocol | None = None,
        abort: AbortSignal | None = None,
    ) -> None:
        if flush_interval < 1:
            raise ValueError(f"flush_interval must be >= 1, got {flush_interval}")
        self._processor = processor
        self._success_sink = success_sink
        self._failure_sink = failure_sink
        self._show_description = show_description
        self._flush_interval = flush_interval
        self._event_bus: EventBusProtocol = event_bus if event_bus is not None else NullEventBus()
        self._abort = abort if abort is not None else AbortSignal()
        self.counters = RunCounters()
        self.write_failures = 0

    def drain(self, results: Iterable[Result]) -> RunCounters:
        """Consume results until the iterable is exhausted (channel closed).

        Once the run is aborted, remaining results are discarded without
        writing, and the final flush is skipped.

        Returns:
            The final counters.
        """
        for result in results:
            if self._abort.is_set():
                continue
            self._handle(result)

        if not self._abort.is_set():
            self._flush_sinks()
        return self.counters

    def _handle(self, result: Result) -> None:
        identifier = self._identify(result)
        if identifier is None:
            return

        output = result.output
        if output.success:
            self._write(self._success_sink, list(result.input.line), identifier)
            self.counters.succeeded += 1
        elif output.error is not None:
            row = list(result.input.line)
            if self._show_description:
                row.append(output.error_description)
            self._write(self._failure_sink, row, identifier)
            self.counters.failed += 1
        else:
            self.counters.dropped += 1
            logger.debug("Record dropped", record_id=identifier.id, description=identifier.description)

        self.counters.total += 1
        if self.counters.total % self._flush_interval == 0:
            self._flush_sinks()

        self._event_bus.emit(
            RecordProcessed(
                count=self.counters.total,
                failed=output.error is not None,
                description=identifier.description,
                record_id=identifier.id,
            )
        )

    def _identify(self, result: Result) -> Identifier | None:
        try:
            description, record_id = self._processor.identify(result.input)
        except Exception as e:
            self._abort.trip(ProcessorCrashedError("identify", e))
            logger.error("Processor identify() crashed", error=str(e), error_type=type(e).__name__)
            return None
        return Identifier(description, record_id)

    def _write(self, sink: RowSinkProtocol, row: list[str], identifier: Identifier) -> None:
        try:
            sink.write_row(row)
        except _SINK_WRITE_ERRORS as e:
            self.write_failures += 1
            logger.warning(
                "error writing item to output",
                sink=sink.name,
                record_id=identifier.id,
                description=identifier.description,
                error=str(e),
            )
            self._event_bus.emit(SinkWriteFailed(sink=sink.name, record_id=identifier.id, error=e))

    def _flush_sinks(self) -> None:
        for sink in (self._success_sink, self._failure_sink):
            try:
                sink.flush()
            except OSError as e:
                logger.error("Sink flush failed", sink=sink.name, error=str(e))
