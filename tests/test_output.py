"""Tests for the row writer."""

import io

import pytest

from attr_stats.errors import ConfigurationError
from attr_stats.output import SEPARATOR, RowWriter


def test_write_row_joins_with_tab():
    stream = io.StringIO()
    writer = RowWriter(stream)
    writer.write_row(["time", "a", "b"])
    writer.write_row(["0", "", "[x=1]"])
    assert stream.getvalue() == "time\ta\tb\n0\t\t[x=1]\n"
    assert SEPARATOR == "\t"


def test_write_line_and_blank_line():
    stream = io.StringIO()
    writer = RowWriter(stream)
    writer.write_line("header")
    writer.write_line("")
    assert stream.getvalue() == "header\n\n"


def test_single_cell_has_no_separator():
    stream = io.StringIO()
    RowWriter(stream).write_row(["42"])
    assert stream.getvalue() == "42\n"


def test_open_dash_is_stdout(capsys):
    with RowWriter.open("-") as writer:
        writer.write_row(["a", "b"])
    assert capsys.readouterr().out == "a\tb\n"


def test_open_path_appends_and_closes(tmp_path):
    target = tmp_path / "out" / "stats.tsv"
    with RowWriter.open(target) as writer:
        writer.write_line("a")
    with RowWriter.open(target) as writer:
        writer.write_line("b")
    assert target.read_text(encoding="utf-8") == "a\nb\n"


def test_open_unusable_path_is_a_configuration_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        RowWriter.open(blocker / "stats.tsv")
    with pytest.raises(ConfigurationError):
        RowWriter.open(tmp_path)
