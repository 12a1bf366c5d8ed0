"""Tests for run_pipeline: files on disk, credential hand-off, banner event."""

from __future__ import annotations

import csv
from pathlib import Path

import pytest

from rowpool.contracts import PipelineStarted, RecordValidationError, SetupError
from rowpool.core.config import PipelineSettings
from rowpool.core.events import EventBus
from rowpool.engine import run_pipeline
from tests.helpers.processors import ScriptedProcessor, csv_text


def _read_csv(path: Path) -> list[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _settings(workdir: Path, rows: list[list[str]], **kwargs: object) -> PipelineSettings:
    input_path = workdir / "in.csv"
    input_path.write_text(csv_text(rows), encoding="utf-8", newline="")
    return PipelineSettings(input_path=input_path, output_path=workdir / "out.csv", **kwargs)


class TestRunPipeline:
    def test_writes_success_and_failure_files(self, workdir: Path) -> None:
        settings = _settings(workdir, [["id", "action"], ["1", "ok"], ["2", "fail"], ["3", "drop"]], threads=2)

        summary = run_pipeline(settings, ScriptedProcessor())

        assert (summary.total, summary.succeeded, summary.failed, summary.dropped) == (3, 1, 1, 1)
        assert _read_csv(workdir / "out.csv") == [["id", "action"], ["1", "ok"]]
        assert _read_csv(workdir / "failures.csv") == [["id", "action"], ["2", "fail"]]

    def test_failure_file_includes_description(self, workdir: Path) -> None:
        settings = _settings(workdir, [["id", "action"], ["2", "fail"]], show_description=True)

        run_pipeline(settings, ScriptedProcessor())

        assert _read_csv(workdir / "failures.csv") == [
            ["id", "action", "error_description"],
            ["2", "fail", "record 2 failed"],
        ]

    def test_credential_handed_over_once(self, workdir: Path) -> None:
        processor = ScriptedProcessor()
        settings = _settings(workdir, [["id", "action"], ["1", "ok"]], token="s3cret")

        run_pipeline(settings, processor)

        assert processor.credential_calls == 1
        assert processor.credential == "s3cret"

    def test_empty_token_is_not_handed_over(self, workdir: Path) -> None:
        processor = ScriptedProcessor()
        settings = _settings(workdir, [["id", "action"], ["1", "ok"]])

        run_pipeline(settings, processor)

        assert processor.credential_calls == 0
        assert processor.credential is None

    def test_banner_event_describes_configuration(self, workdir: Path) -> None:
        bus = EventBus()
        started: list[PipelineStarted] = []
        bus.subscribe(PipelineStarted, started.append)
        settings = _settings(workdir, [["id", "action"], ["1", "ok"]], threads=7, token="t")

        run_pipeline(settings, ScriptedProcessor(), event_bus=bus)

        assert len(started) == 1
        event = started[0]
        assert event.threads == 7
        assert event.has_header is True
        assert event.credential_supplied is True
        assert event.failure_path == str(workdir / "failures.csv")

    def test_missing_input_is_setup_error(self, workdir: Path) -> None:
        settings = PipelineSettings(input_path=workdir / "missing.csv", output_path=workdir / "out.csv")

        with pytest.raises(SetupError, match="error opening input file"):
            run_pipeline(settings, ScriptedProcessor())

        assert not (workdir / "out.csv").exists()

    def test_uncreatable_output_is_setup_error(self, workdir: Path) -> None:
        settings = _settings(workdir, [["id", "action"]])
        settings = settings.model_copy(update={"output_path": workdir / "no_such_dir" / "out.csv"})

        with pytest.raises(SetupError, match="success output file"):
            run_pipeline(settings, ScriptedProcessor())

    def test_files_flushed_before_fatal_error_propagates(self, workdir: Path) -> None:
        settings = _settings(workdir, [["id", "action"], ["1", "invalid"]])

        with pytest.raises(RecordValidationError):
            run_pipeline(settings, ScriptedProcessor())

        # Header was written and the files were closed on the way out
        assert _read_csv(workdir / "out.csv") == [["id", "action"]]
