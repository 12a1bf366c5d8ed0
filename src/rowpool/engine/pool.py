"""Worker pool: N threads draining the input channel through process().

Each worker repeatedly:
1. Takes one Input from the bounded input channel
2. Calls processor.process() synchronously
3. Puts Result(input, output) on the bounded result channel

A coordinator thread joins every worker and only then closes the result
channel, so the channel is closed exactly once and never while a worker
could still put to it.

Ordering:
    Results from a single worker follow the order that worker received its
    inputs. Across workers there is no ordering guarantee.

Thread Safety:
    The processor instance is shared by every worker and is NOT locked.
    Pool statistics are protected by _stats_lock.
"""

from __future__ import annotations

import threading
from typing import Any

import structlog

from rowpool.contracts.errors import ProcessorCrashedError
from rowpool.contracts.processor import ProcessorProtocol
from rowpool.contracts.records import Input, Output, Result
from rowpool.engine.abort import AbortSignal
from rowpool.engine.channel import BoundedChannel

logger = structlog.get_logger(__name__)


class WorkerPool:
    """Fixed-size pool of worker threads.

    Usage:
        pool = WorkerPool(processor, inputs, results, size=25, abort=abort)
        pool.start()
        ...  # producer fills `inputs` then closes it
        for result in results:  # ends once every worker has exited
            ...
        pool.join()
    """

    def __init__(
        self,
        processor: ProcessorProtocol,
        inputs: BoundedChannel[Input],
        outputs: BoundedChannel[Result],
        *,
        size: int,
        abort: AbortSignal,
    ) -> None:
        if size < 1:
            raise ValueError(f"Pool size must be >= 1, got {size}")
        self._processor = processor
        self._inputs = inputs
        self._outputs = outputs
        self._size = size
        self._abort = abort

        self._workers = [
            threading.Thread(target=self._work, args=(worker_id,), name=f"rowpool-worker-{worker_id}", daemon=True)
            for worker_id in range(1, size + 1)
        ]
        self._coordinator = threading.Thread(target=self._coordinate, name="rowpool-coordinator", daemon=True)

        self._stats_lock = threading.Lock()
        self._active_workers = 0
        self._max_concurrent = 0
        self._results_produced = 0
        self._inputs_discarded = 0

    @property
    def size(self) -> int:
        """Number of worker threads."""
        return self._size

    def start(self) -> None:
        """Start every worker, then the coordinator."""
        for worker in self._workers:
            worker.start()
        self._coordinator.start()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the coordinator (and therefore every worker) to finish."""
        self._coordinator.join(timeout)

    def get_stats(self) -> dict[str, Any]:
        """Pool statistics. Stable once join() returns."""
        with self._stats_lock:
            return {
                "pool_size": self._size,
                "max_concurrent_reached": self._max_concurrent,
                "results_produced": self._results_produced,
                "inputs_discarded": self._inputs_discarded,
            }

    def _enter_process(self) -> None:
        with self._stats_lock:
            self._active_workers += 1
            if self._active_workers > self._max_concurrent:
                self._max_concurrent = self._active_workers

    def _exit_process(self, produced: bool) -> None:
        with self._stats_lock:
            self._active_workers -= 1
            if produced:
                self._results_produced += 1

    def _work(self, worker_id: int) -> None:
        logger.debug("Worker started", worker_id=worker_id)
        for item in self._inputs:
            if self._abort.is_set():
                # Keep draining so the reader never blocks on a full channel
                with self._stats_lock:
                    self._inputs_discarded += 1
                continue

            self._enter_process()
            try:
                output = self._processor.process(item)
            except Exception as e:
                self._exit_process(produced=False)
                self._abort.trip(ProcessorCrashedError("process", e))
                logger.error("Processor crashed", worker_id=worker_id, error=str(e), error_type=type(e).__name__)
                continue
            self._exit_process(produced=isinstance(output, Output))

            if not isinstance(output, Output):
                self._abort.trip(
                    ProcessorCrashedError("process", TypeError(f"expected Output, got {type(output).__name__}"))
                )
                continue
            self._outputs.put(Result(input=item, output=output))
        logger.debug("Worker finished", worker_id=worker_id)

    def _coordinate(self) -> None:
        for worker in self._workers:
            worker.join()
        self._outputs.close()
        logger.debug("All workers finished, result channel closed", **self.get_stats())
