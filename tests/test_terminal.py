"""Tests for pi.render.terminal -- scoped sessions and ProcessTerminal."""

from __future__ import annotations

import asyncio
import io

import pytest

from pi.render.input import KeyboardEnhancementReport, KeyEvent
from pi.render.terminal import ProcessTerminal, session

from .virtual_terminal import VirtualTerminal


class Boom(Exception):
    pass


# ---------------------------------------------------------------------------
# session()
# ---------------------------------------------------------------------------


class TestSession:
    """The session context manager restores terminal state on every exit path."""

    def test_inline_session(self) -> None:
        term = VirtualTerminal()
        with session(term, lambda event: None):
            assert term.started
            assert not term.cursor_visible
            assert not term.alternate_screen
            assert not term.mouse_capture
        assert not term.started
        assert term.cursor_visible
        assert term.stop_count == 1

    def test_fullscreen_session(self) -> None:
        term = VirtualTerminal()
        with session(term, lambda event: None, fullscreen=True):
            assert term.alternate_screen
            assert term.mouse_capture
        assert not term.alternate_screen
        assert not term.mouse_capture
        assert "\x1b[?1006l\x1b[?1002l\x1b[?1000l\x1b[?1049l" in term.output
        assert term.output.endswith("\x1b[?1049l\x1b[?25h")

    def test_restores_when_body_raises(self) -> None:
        term = VirtualTerminal()
        with pytest.raises(Boom):
            with session(term, lambda event: None, fullscreen=True):
                raise Boom()
        assert not term.alternate_screen
        assert term.cursor_visible
        assert term.stop_count == 1

    def test_events_reach_handler_during_session(self) -> None:
        term = VirtualTerminal()
        received = []
        with session(term, received.append):
            term.simulate_key("q")
        assert received == [KeyEvent("q")]


# ---------------------------------------------------------------------------
# ProcessTerminal without a tty
# ---------------------------------------------------------------------------


class TestProcessTerminal:
    def test_not_a_tty(self) -> None:
        term = ProcessTerminal(stdin=io.StringIO(), stdout=io.StringIO())
        assert not term.is_tty
        assert not term.supports_synchronized_update

    def test_size_falls_back_without_tty(self) -> None:
        term = ProcessTerminal(stdin=io.StringIO(), stdout=io.StringIO())
        assert (term.columns, term.rows) == (80, 24)

    def test_synchronized_update_override(self) -> None:
        term = ProcessTerminal(stdin=io.StringIO(), stdout=io.StringIO(), synchronized_update=True)
        assert term.supports_synchronized_update

    def test_write_goes_to_stdout_and_log(self, tmp_path) -> None:
        out = io.StringIO()
        log = tmp_path / "writes.log"
        term = ProcessTerminal(stdin=io.StringIO(), stdout=out, write_log=str(log))
        term.write("hello")
        term.flush()
        assert out.getvalue() == "hello"
        assert log.read_text() == "hello"

    @pytest.mark.asyncio
    async def test_probe_times_out(self) -> None:
        out = io.StringIO()
        term = ProcessTerminal(stdin=io.StringIO(), stdout=out, write_log="")
        assert await term.probe_keyboard_enhancement(0.01) is False
        assert out.getvalue() == "\x1b[?u"
        assert not term.kitty_protocol_active

    @pytest.mark.asyncio
    async def test_probe_reply_enables_protocol(self) -> None:
        out = io.StringIO()
        term = ProcessTerminal(stdin=io.StringIO(), stdout=out, write_log="")
        loop = asyncio.get_running_loop()
        loop.call_soon(term._deliver, [KeyboardEnhancementReport(1)])
        assert await term.probe_keyboard_enhancement(1.0) is True
        assert out.getvalue() == "\x1b[?u\x1b[>1u"
        assert term.kitty_protocol_active

    def test_multibyte_character_split_across_reads(self) -> None:
        term = ProcessTerminal(stdin=io.StringIO(), stdout=io.StringIO(), write_log="")
        received = []
        term._on_event = received.append
        encoded = "é".encode()
        term._feed_bytes(encoded[:1])
        assert received == []
        term._feed_bytes(encoded[1:] + b"x")
        assert received == [KeyEvent("é"), KeyEvent("x")]

    def test_mouse_capture_sequences(self) -> None:
        out = io.StringIO()
        term = ProcessTerminal(stdin=io.StringIO(), stdout=out, write_log="")
        term.enable_mouse_capture()
        term.disable_mouse_capture()
        assert out.getvalue() == "\x1b[?1000h\x1b[?1002h\x1b[?1006h\x1b[?1006l\x1b[?1002l\x1b[?1000l"
