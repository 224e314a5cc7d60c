"""Tests for the output channel state machine.

Suites:
  - TestTerminalText: buffer appends and separators
  - TestIterations: begin/end markers, regions, eval delivery
  - TestStyleStack: push/pop discipline and style application order
  - TestOutputProtocolErrors: unknown commands and mismatches fail the connection

Run: python -m pytest tests/test_output.py -v
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hexwire._codec import encode_frame
from hexwire._errors import ProtocolError, StyleMismatchError, UnknownCommandError
from hexwire._output import EvalResult, OutputChannel
from hexwire._protocol import Channel, OutputCommand as C
from hexwire._transport import Connection


def _setup(**kwargs):
    out = OutputChannel(**kwargs)
    conn = Connection(Channel.OUTPUT, handler=out)
    return out, conn


def _f(command, text=""):
    return encode_frame(command, text.encode("utf-8"))


# ─── Terminal text ────────────────────────────────────────────────────────────

class TestTerminalText:
    def test_appends_to_buffer(self):
        out, conn = _setup()
        conn.feed(_f(C.TERMINAL_TEXT, "hello\n") + _f(C.TERMINAL_TEXT, "world\n"))
        assert out.buffer.text == "hello\nworld\n"

    def test_nul_stripped_text(self):
        out, conn = _setup()
        conn.feed(b"\x04\x00\x04hi\x00")
        assert out.buffer.text == "hi"

    def test_separator_once_per_iteration(self):
        out, conn = _setup()
        conn.feed(_f(C.TERMINAL_TEXT, "abc"))
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.TERMINAL_TEXT, "def") + _f(C.TERMINAL_TEXT, "ghi"))
        assert out.buffer.text == "abc\ndefghi"
        assert out.iteration.separator_emitted

    def test_no_separator_after_newline(self):
        out, conn = _setup()
        conn.feed(_f(C.TERMINAL_TEXT, "abc\n"))
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.TERMINAL_TEXT, "def"))
        assert out.buffer.text == "abc\ndef"

    def test_no_separator_on_empty_buffer(self):
        out, conn = _setup()
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.TERMINAL_TEXT, "x"))
        assert out.buffer.text == "x"

    def test_invalid_utf8_replaced(self):
        out, conn = _setup()
        conn.feed(encode_frame(C.TERMINAL_TEXT, b"a\xffb"))
        assert out.buffer.text == "a\ufffdb"


# ─── Iterations ───────────────────────────────────────────────────────────────

class TestIterations:
    def test_begin_records_start(self):
        out, conn = _setup()
        conn.feed(_f(C.TERMINAL_TEXT, "prompt> "))
        conn.feed(_f(C.ITERATION_BEGIN))
        assert out.iteration.start == len("prompt> ")

    def test_end_marks_region(self):
        out, conn = _setup()
        conn.feed(_f(C.TERMINAL_TEXT, "old\n"))
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.TERMINAL_TEXT, "new\n") + _f(C.ITERATION_END))
        assert out.buffer.last_region == (4, 8)
        assert out.buffer.region_text(out.buffer.last_region) == "new\n"

    def test_eval_delivered_to_consumer(self):
        results = []
        out, conn = _setup(result_consumer=results.append)
        conn.feed(
            _f(C.ITERATION_BEGIN)
            + _f(C.EVAL_TEXT, "0x")
            + _f(C.EVAL_TEXT, "2a")
            + _f(C.ITERATION_END)
        )
        assert results == [EvalResult("0x2a", (), False)]
        assert out.buffer.text == ""

    def test_begin_resets_eval_accumulator(self):
        results = []
        out, conn = _setup(result_consumer=results.append)
        conn.feed(_f(C.EVAL_TEXT, "stale"))
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.EVAL_TEXT, "fresh") + _f(C.ITERATION_END))
        assert results[-1].text == "fresh"

    def test_end_resets_for_next_iteration(self):
        results = []
        out, conn = _setup(result_consumer=results.append)
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.EVAL_TEXT, "1") + _f(C.ITERATION_END))
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.ITERATION_END))
        assert [r.text for r in results] == ["1", ""]
        assert not out.iteration.separator_emitted

    def test_error_text_flags_result(self):
        results = []
        out, conn = _setup(result_consumer=results.append)
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.ERROR_TEXT, "no such symbol") + _f(C.ITERATION_END))
        assert results[0].error
        assert results[0].text == "no such symbol"

    def test_fallback_sink_without_consumer(self):
        sink = []
        out, conn = _setup(fallback_sink=sink.append)
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.EVAL_TEXT, "42") + _f(C.ERROR_TEXT, "!"))
        assert sink == ["42", "!"]
        conn.feed(_f(C.ITERATION_END))
        assert out.last_result.text == "42!"

    def test_fallback_sink_unused_with_consumer(self):
        sink = []
        out, conn = _setup(result_consumer=lambda r: None, fallback_sink=sink.append)
        conn.feed(_f(C.EVAL_TEXT, "42"))
        assert sink == []

    def test_default_sink_logs(self, caplog):
        out, conn = _setup()
        with caplog.at_level("INFO", logger="hexwire"):
            conn.feed(_f(C.EVAL_TEXT, "value\n"))
        assert "value" in caplog.text


# ─── Style stack ──────────────────────────────────────────────────────────────

class TestStyleStack:
    def test_styles_applied_innermost_first(self):
        out, conn = _setup()
        conn.feed(
            _f(C.STYLE_BEGIN, "a")
            + _f(C.STYLE_BEGIN, "b")
            + _f(C.TERMINAL_TEXT, "xy")
            + _f(C.STYLE_END, "b")
            + _f(C.TERMINAL_TEXT, "z")
            + _f(C.STYLE_END, "a")
            + _f(C.TERMINAL_TEXT, "!")
        )
        runs = out.buffer.runs
        assert [(r.start, r.end, r.styles) for r in runs] == [
            (0, 2, ("b", "a")),
            (2, 3, ("a",)),
        ]
        assert out.buffer.styles_at(3) == ()
        assert out.style_stack == []

    def test_eval_text_styled(self):
        results = []
        out, conn = _setup(result_consumer=results.append)
        conn.feed(
            _f(C.ITERATION_BEGIN)
            + _f(C.EVAL_TEXT, "n = ")
            + _f(C.STYLE_BEGIN, "number")
            + _f(C.EVAL_TEXT, "42")
            + _f(C.STYLE_END, "number")
            + _f(C.ITERATION_END)
        )
        (run,) = results[0].runs
        assert (run.start, run.end, run.styles) == (4, 6, ("number",))

    def test_mismatched_pop_keeps_stack(self):
        out = OutputChannel()
        out.push_style("a")
        out.push_style("b")
        with pytest.raises(StyleMismatchError):
            out.pop_style("a")
        assert out.style_stack == ["a", "b"]

    def test_pop_on_empty_stack(self):
        out = OutputChannel()
        with pytest.raises(StyleMismatchError) as exc:
            out.pop_style("a")
        assert exc.value.expected is None

    def test_unbalanced_style_leaks_into_next_iteration(self):
        # No implicit reset at iteration boundaries; kept as-is on purpose.
        out, conn = _setup()
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.STYLE_BEGIN, "warn") + _f(C.ITERATION_END))
        conn.feed(_f(C.ITERATION_BEGIN) + _f(C.TERMINAL_TEXT, "later"))
        assert out.style_stack == ["warn"]
        assert out.buffer.styles_at(0) == ("warn",)


# ─── Protocol errors ──────────────────────────────────────────────────────────

class TestOutputProtocolErrors:
    def test_unknown_command(self):
        out, conn = _setup()
        with pytest.raises(UnknownCommandError) as exc:
            conn.feed(encode_frame(0xFF, b"") + _f(C.TERMINAL_TEXT, "lost"))
        assert exc.value.command == 0xFF
        assert conn.failed
        assert conn.decoder.pending == 0
        assert out.buffer.text == ""

    def test_failed_connection_rejects_dispatch(self):
        out, conn = _setup()
        with pytest.raises(UnknownCommandError):
            conn.feed(encode_frame(0xFF))
        with pytest.raises(ProtocolError):
            out.dispatch(conn, C.TERMINAL_TEXT, b"x")
        with pytest.raises(ProtocolError):
            conn.feed(_f(C.TERMINAL_TEXT, "x"))
        assert out.buffer.text == ""

    def test_style_mismatch_fails_connection(self):
        out, conn = _setup()
        conn.feed(_f(C.STYLE_BEGIN, "a") + _f(C.STYLE_BEGIN, "b"))
        with pytest.raises(StyleMismatchError):
            conn.feed(_f(C.STYLE_END, "a"))
        assert out.style_stack == ["a", "b"]
        assert conn.failed

    def test_dispatch_without_connection(self):
        out = OutputChannel()
        with pytest.raises(UnknownCommandError):
            out.dispatch(None, 0x7F, b"")
        out.dispatch(None, C.TERMINAL_TEXT, b"ok")
        assert out.buffer.text == "ok"
