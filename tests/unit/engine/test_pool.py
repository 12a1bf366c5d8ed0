"""Tests for WorkerPool dispatch and shutdown protocol."""

from __future__ import annotations

import threading

import pytest

from rowpool.contracts import Identifier, Input, Output, ProcessorCrashedError, Result
from rowpool.engine.abort import AbortSignal
from rowpool.engine.channel import BoundedChannel
from rowpool.engine.pool import WorkerPool
from tests.helpers.processors import ScriptedProcessor


def _run_pool(processor: object, records: list[list[str]], size: int) -> tuple[list[Result], WorkerPool, AbortSignal]:
    abort = AbortSignal()
    inputs: BoundedChannel[Input] = BoundedChannel(capacity=4, name="inputs")
    outputs: BoundedChannel[Result] = BoundedChannel(capacity=4, name="results")
    pool = WorkerPool(processor, inputs, outputs, size=size, abort=abort)  # type: ignore[arg-type]
    pool.start()

    def feed() -> None:
        for record in records:
            inputs.put(Input.from_record(record))
        inputs.close()

    feeder = threading.Thread(target=feed, daemon=True)
    feeder.start()

    results = list(outputs)
    feeder.join(timeout=5.0)
    pool.join(timeout=5.0)
    return results, pool, abort


class TestWorkerPool:
    def test_one_result_per_input(self) -> None:
        processor = ScriptedProcessor()
        records = [[str(i), "ok"] for i in range(1, 51)]

        results, _, abort = _run_pool(processor, records, size=5)

        assert not abort.is_set()
        assert sorted(int(r.input.line[0]) for r in results) == list(range(1, 51))
        assert all(r.output.success for r in results)

    def test_single_worker_preserves_order(self) -> None:
        processor = ScriptedProcessor()
        records = [[str(i), "ok"] for i in range(1, 31)]

        results, _, _ = _run_pool(processor, records, size=1)

        assert [int(r.input.line[0]) for r in results] == list(range(1, 31))

    def test_result_channel_closed_after_all_workers(self) -> None:
        """Iterating the result channel terminates, so it was closed exactly when workers finished."""
        processor = ScriptedProcessor(delay=0.01)
        records = [[str(i), "ok"] for i in range(1, 21)]

        results, pool, _ = _run_pool(processor, records, size=3)

        assert len(results) == 20
        assert pool.get_stats()["results_produced"] == 20

    def test_workers_run_concurrently(self) -> None:
        barrier = threading.Barrier(3, timeout=5.0)

        class _Rendezvous(ScriptedProcessor):
            def process(self, item: Input) -> Output:
                barrier.wait()
                return Output.ok(item.line)

        results, pool, _ = _run_pool(_Rendezvous(), [[str(i), "ok"] for i in range(1, 4)], size=3)

        assert len(results) == 3
        assert pool.get_stats()["max_concurrent_reached"] == 3

    def test_failures_and_drops_are_results(self) -> None:
        records = [["1", "ok"], ["2", "fail"], ["3", "drop"]]

        results, _, abort = _run_pool(ScriptedProcessor(), records, size=2)

        by_id = {int(r.input.line[0]): r.output for r in results}
        assert not abort.is_set()
        assert by_id[1].success
        assert by_id[2].is_failure
        assert by_id[3].is_dropped

    def test_processor_crash_trips_abort_and_pool_still_terminates(self) -> None:
        records = [[str(i), "ok"] for i in range(1, 10)] + [["10", "crash"]] + [[str(i), "ok"] for i in range(11, 40)]

        results, _, abort = _run_pool(ScriptedProcessor(), records, size=4)

        assert isinstance(abort.error, ProcessorCrashedError)
        assert abort.error.operation == "process"
        assert isinstance(abort.error.cause, RuntimeError)
        assert all(r.input.line[1] != "crash" for r in results)

    def test_non_output_return_is_a_crash(self) -> None:
        class _ReturnsNone(ScriptedProcessor):
            def identify(self, item: Input) -> Identifier:
                return Identifier("row", 0)

            def process(self, item: Input) -> Output:
                return None  # type: ignore[return-value]

        _, _, abort = _run_pool(_ReturnsNone(), [["1", "ok"]], size=1)

        assert isinstance(abort.error, ProcessorCrashedError)
        assert "expected Output" in str(abort.error)

    def test_invalid_size_rejected(self) -> None:
        inputs: BoundedChannel[Input] = BoundedChannel(capacity=1)
        outputs: BoundedChannel[Result] = BoundedChannel(capacity=1)
        with pytest.raises(ValueError, match="Pool size"):
            WorkerPool(ScriptedProcessor(), inputs, outputs, size=0, abort=AbortSignal())
