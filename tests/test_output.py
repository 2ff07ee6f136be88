"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_document in every mode and with an output file
- print_table in all three modes
- The logging bridge
- Global instance management
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from specgraph import output as output_module
from specgraph.output import (
    DiagnosticsHandler,
    OutputFormat,
    OutputManager,
    _should_disable_color,
    configure_logging,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("specgraph.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("specgraph.output._is_tty", lambda: True)


@pytest.fixture()
def engine_logger():
    """Restore the ``specgraph`` logger after a test reconfigures it."""
    logger = logging.getLogger("specgraph")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN

    def test_explicit_formats_kept(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON
        assert OutputManager(format=OutputFormat.RICH).format == OutputFormat.RICH


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_data("hello world")
        captured = capfd.readouterr()
        assert "hello world" in captured.out
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("diagnostic text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diagnostic text" in captured.err

    def test_prefixes_without_color(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.error("broken")
        mgr.warning("careful")
        mgr.suggest("try again")
        err = capfd.readouterr().err
        assert "Error: broken" in err
        assert "Warning: careful" in err
        assert "→ try again" in err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_success_suggest(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("info")
        mgr.success("success")
        mgr.suggest("suggest")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_errors_and_data(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.error("still shown")
        mgr.print_data("payload")
        captured = capfd.readouterr()
        assert "still shown" in captured.err
        assert "payload" in captured.out

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("hidden")
        assert capfd.readouterr().err == ""

    def test_debug_prefix_when_verbose(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.debug("visible")
        assert "[debug] visible" in capfd.readouterr().err
        assert mgr.is_verbose is True


# ------------------------------------------------------------------ #
# Documents
# ------------------------------------------------------------------ #


class TestFormatDocument:
    def test_json_mode_prints_indented_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_document({"a": [1, 2]})
        out = capfd.readouterr().out
        assert json.loads(out) == {"a": [1, 2]}
        assert '\n  "a"' in out

    def test_plain_mode_is_parseable(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_document({"name": "Pet"})
        assert json.loads(capfd.readouterr().out) == {"name": "Pet"}

    def test_rich_mode_produces_output(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_document({"name": "Pet"})
        assert "Pet" in capfd.readouterr().out

    def test_unicode_kept(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_document({"t": "Ünïcode"})
        assert "Ünïcode" in capfd.readouterr().out

    def test_output_file(self, capfd, non_tty, tmp_path: Path):
        target = tmp_path / "export.json"
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True, output_file=str(target))
        mgr.format_document({"k": "v"})
        assert capfd.readouterr().out == ""
        text = target.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text) == {"k": "v"}

    def test_output_file_truncated_once_per_manager(self, capfd, non_tty, tmp_path: Path):
        target = tmp_path / "rows.tsv"
        target.write_text("stale\n", encoding="utf-8")
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, output_file=str(target))
        mgr.print_data("first")
        mgr.print_data("second\n")
        assert target.read_text(encoding="utf-8") == "first\nsecond\n"
        assert capfd.readouterr().out == ""


# ------------------------------------------------------------------ #
# Tables
# ------------------------------------------------------------------ #


class TestPrintTable:
    headers = ["Schema", "Type"]
    rows = [["Pet", "object"], ["Tag", "object"]]

    def test_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_table(self.headers, self.rows)
        data = json.loads(capfd.readouterr().out)
        assert data == [{"Schema": "Pet", "Type": "object"}, {"Schema": "Tag", "Type": "object"}]

    def test_plain_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_table(self.headers, self.rows)
        lines = capfd.readouterr().out.splitlines()
        assert lines == ["Schema\tType", "Pet\tobject", "Tag\tobject"]

    def test_rich_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(self.headers, self.rows, title="Schemas")
        out = capfd.readouterr().out
        assert "Schema" in out
        assert "Pet" in out

    def test_rich_mode_keeps_brackets(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(["Returns"], [["Pet[]"]])
        assert "Pet[]" in capfd.readouterr().out

    def test_empty_rows(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_table(self.headers, [])
        assert json.loads(capfd.readouterr().out) == []


# ------------------------------------------------------------------ #
# Logging bridge
# ------------------------------------------------------------------ #


class TestLoggingBridge:
    def test_debug_records_shown_when_verbose(self, capfd, non_tty, engine_logger):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True))
        configure_logging(verbose=True)
        logging.getLogger("specgraph.parser.refs").debug("leaving $ref in place")
        assert "[debug] specgraph.parser.refs: leaving $ref in place" in capfd.readouterr().err

    def test_debug_records_dropped_when_not_verbose(self, capfd, non_tty, engine_logger):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        configure_logging(verbose=False)
        logging.getLogger("specgraph.resolution.types").debug("noise")
        assert capfd.readouterr().err == ""

    def test_warnings_always_forwarded(self, capfd, non_tty, engine_logger):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True))
        configure_logging(verbose=False)
        logging.getLogger("specgraph").warning("odd document")
        assert "Warning: specgraph: odd document" in capfd.readouterr().err

    def test_reconfiguring_keeps_one_handler(self, engine_logger):
        configure_logging(verbose=False)
        configure_logging(verbose=True)
        handlers = [h for h in engine_logger.handlers if isinstance(h, DiagnosticsHandler)]
        assert len(handlers) == 1
        assert engine_logger.level == logging.DEBUG
        assert engine_logger.propagate is False


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_lazy_default(self, non_tty):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("data line")
        output_module.info("info line")
        captured = capfd.readouterr()
        assert "data line" in captured.out
        assert "info line" in captured.err
