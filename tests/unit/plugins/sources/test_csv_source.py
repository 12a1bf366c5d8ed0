"""Tests for CSVRowSource."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from rowpool.contracts import SetupError, SourceReadError
from rowpool.plugins.protocols import RowSourceProtocol
from rowpool.plugins.sources.csv_source import CSVRowSource


def _source(text: str, **kwargs: object) -> CSVRowSource:
    return CSVRowSource(io.StringIO(text, newline=""), **kwargs)  # type: ignore[arg-type]


class TestCSVRowSource:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(_source(""), RowSourceProtocol)

    def test_header_then_records(self) -> None:
        source = _source("id,name\r\n1,alice\r\n2,bob\r\n")

        assert source.read_header() == ["id", "name"]
        assert list(source.records()) == [["1", "alice"], ["2", "bob"]]

    def test_quoted_field_with_embedded_newline(self) -> None:
        source = _source('id,note\n1,"line one\nline two"\n2,plain\n')
        source.read_header()

        records = list(source.records())

        assert records == [["1", "line one\nline two"], ["2", "plain"]]
        # line_number counts physical lines, not records
        assert source.line_number == 4

    def test_blank_lines_are_skipped(self) -> None:
        source = _source("1,a\n\n2,b\n\n")

        assert list(source.records()) == [["1", "a"], ["2", "b"]]

    def test_empty_input_has_no_header(self) -> None:
        with pytest.raises(SourceReadError, match="input is empty") as exc_info:
            _source("").read_header()

        assert exc_info.value.line_number == 0

    def test_empty_input_has_no_records(self) -> None:
        assert list(_source("").records()) == []

    def test_field_count_mismatch_is_fatal(self) -> None:
        source = _source("id,name\n1,alice\n2\n")
        source.read_header()
        records = source.records()

        assert next(records) == ["1", "alice"]
        with pytest.raises(SourceReadError, match="expected 2 fields, got 1") as exc_info:
            next(records)
        assert exc_info.value.line_number == 3

    def test_field_count_not_enforced_when_disabled(self) -> None:
        source = _source("a,b\n1\n1,2,3\n", enforce_field_count=False)

        assert list(source.records()) == [["a", "b"], ["1"], ["1", "2", "3"]]

    def test_unterminated_quote_is_fatal(self) -> None:
        source = _source('id,name\n1,"unterminated\n')
        source.read_header()

        with pytest.raises(SourceReadError, match="CSV read error"):
            list(source.records())

    def test_custom_delimiter(self) -> None:
        source = _source("1;a\n2;b\n", delimiter=";")

        assert list(source.records()) == [["1", "a"], ["2", "b"]]

    def test_open_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SetupError, match="error opening input file") as exc_info:
            CSVRowSource.open(tmp_path / "nope.csv")

        assert exc_info.value.path == str(tmp_path / "nope.csv")

    def test_open_reads_file_and_closes(self, tmp_path: Path) -> None:
        path = tmp_path / "in.csv"
        path.write_text("id\n1\n2\n", encoding="utf-8")

        with CSVRowSource.open(path) as source:
            assert source.name == str(path)
            assert source.read_header() == ["id"]
            assert list(source.records()) == [["1"], ["2"]]

    def test_invalid_utf8_is_read_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        path.write_bytes(b"id\n\xff\xfe\n")

        with CSVRowSource.open(path) as source, pytest.raises(SourceReadError):
            source.read_header()
            list(source.records())
