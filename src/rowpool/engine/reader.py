"""Reader stage: feeds validated records into the input channel.

Runs in its own thread. Every data record is checked with the processor's
validate() before admission; a rejection is fatal for the whole run
(fail-fast), as is any read error from the source.
"""

from __future__ import annotations

import threading

import structlog

from rowpool.contracts.errors import RecordValidationError, SourceReadError
from rowpool.contracts.processor import ProcessorProtocol
from rowpool.contracts.records import Input
from rowpool.engine.abort import AbortSignal
from rowpool.engine.channel import BoundedChannel
from rowpool.plugins.protocols import RowSourceProtocol

logger = structlog.get_logger(__name__)


class SourceReader:
    """Single producer for the input channel.

    The input channel is closed when the reader exits, whatever the reason,
    so workers always terminate.
    """

    def __init__(
        self,
        source: RowSourceProtocol,
        processor: ProcessorProtocol,
        inputs: BoundedChannel[Input],
        abort: AbortSignal,
    ) -> None:
        self._source = source
        self._processor = processor
        self._inputs = inputs
        self._abort = abort
        self._admitted = 0
        self._thread = threading.Thread(target=self._run, name="rowpool-reader", daemon=True)

    @property
    def admitted(self) -> int:
        """Records put on the input channel. Stable once join() returns."""
        return self._admitted

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def _run(self) -> None:
        logger.debug("Reader started", channel=self._inputs.name)
        try:
            self._feed()
        except SourceReadError as e:
            logger.error("Source read failed", error=str(e), line_number=e.line_number)
            self._abort.trip(e)
        except RecordValidationError as e:
            logger.error("Record failed validation", error=str(e), line_number=e.line_number)
            self._abort.trip(e)
        except Exception as e:
            # Source or channel bug: still fatal, still surfaced to the caller
            logger.exception("Reader crashed")
            self._abort.trip(e)
        finally:
            self._inputs.close()
            logger.debug("Reader finished", admitted=self._admitted)

    def _feed(self) -> None:
        for record in self._source.records():
            if self._abort.is_set():
                return
            try:
                self._processor.validate(record)
            except Exception as e:
                raise RecordValidationError(record, e, line_number=self._source.line_number) from e
            self._inputs.put(Input.from_record(record))
            self._admitted += 1
