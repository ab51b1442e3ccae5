"""Terminal access for the render loop: raw input, output and screen modes.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that manages raw mode, bracketed paste, the kitty keyboard
protocol, the alternate screen, mouse capture, synchronized updates and
cursor visibility via ANSI escape sequences.  :func:`session` scopes all
of these so the terminal is restored however the render loop exits.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
import termios
import tty
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Callable, Protocol, TextIO

from pi.render.errors import TerminalError
from pi.render.input import Event, InputDecoder, KeyboardEnhancementReport, ResizeEvent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_KITTY_QUERY = "\x1b[?u"
_KITTY_ENABLE = "\x1b[>1u"
_KITTY_DISABLE = "\x1b[<u"

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_ALT_SCREEN_ENTER = "\x1b[?1049h"
_ALT_SCREEN_LEAVE = "\x1b[?1049l"
_SYNC_BEGIN = "\x1b[?2026h"
_SYNC_END = "\x1b[?2026l"
_MOUSE_ENABLE = "\x1b[?1000h\x1b[?1002h\x1b[?1006h"
_MOUSE_DISABLE = "\x1b[?1006l\x1b[?1002l\x1b[?1000l"

# Escape sequences split across reads are completed within this window
_ESCAPE_TIMEOUT = 0.01


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """What the render loop needs from a terminal."""

    @property
    def is_tty(self) -> bool: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    @property
    def supports_synchronized_update(self) -> bool: ...

    def start(self, on_event: Callable[[Event], None]) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    def flush(self) -> None: ...

    def enter_alternate_screen(self) -> None: ...

    def leave_alternate_screen(self) -> None: ...

    def enable_mouse_capture(self) -> None: ...

    def disable_mouse_capture(self) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def begin_synchronized_update(self) -> None: ...

    def end_synchronized_update(self) -> None: ...

    async def probe_keyboard_enhancement(self, timeout: float) -> bool: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """The process's own terminal, reached through ``sys.stdin``/``sys.stdout``.

    Manages raw mode via :mod:`tty` and :mod:`termios`, bracketed paste,
    the kitty keyboard protocol and SIGWINCH-based resize detection.
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        *,
        synchronized_update: bool | None = None,
        write_log: str | None = None,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._synchronized_update = synchronized_update
        self._write_log_path = (
            write_log if write_log is not None else os.environ.get("PI_RENDER_WRITE_LOG", "")
        )
        self._on_event: Callable[[Event], None] | None = None
        self._decoder = InputDecoder()
        # keeps a multibyte character split across reads until it completes
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._flush_handle: asyncio.TimerHandle | None = None
        self._reader_loop: asyncio.AbstractEventLoop | None = None
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._kitty_active = False
        self._probe: asyncio.Future[bool] | None = None

    # -- properties ---------------------------------------------------------

    @property
    def is_tty(self) -> bool:
        try:
            return self._stdout.isatty() and self._stdin.isatty()
        except (AttributeError, ValueError):
            return False

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    @property
    def supports_synchronized_update(self) -> bool:
        if self._synchronized_update is not None:
            return self._synchronized_update
        return self.is_tty

    @property
    def kitty_protocol_active(self) -> bool:
        return self._kitty_active

    # -- start / stop -------------------------------------------------------

    def start(self, on_event: Callable[[Event], None]) -> None:
        """Enable raw mode and bracketed paste, and begin reading stdin."""
        self._on_event = on_event
        fd = self._stdin.fileno()
        try:
            self._original_termios = termios.tcgetattr(fd)
            tty.setraw(fd)
        except termios.error as exc:
            raise TerminalError(f"cannot enable raw mode: {exc}") from exc

        self.write(_BRACKETED_PASTE_ENABLE)

        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)

        self._start_stdin_reader()

    def stop(self) -> None:
        """Undo everything :meth:`start` and the probe changed."""
        try:
            if self._kitty_active:
                self.write(_KITTY_DISABLE)
                self._kitty_active = False
            self.write(_BRACKETED_PASTE_DISABLE)
            self.flush()
        finally:
            self._cancel_flush()
            self._decoder.clear()
            self._utf8.reset()
            self._remove_stdin_reader()

            if self._prev_sigwinch_handler is not None:
                signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
                self._prev_sigwinch_handler = None

            if self._original_termios is not None:
                termios.tcsetattr(self._stdin.fileno(), termios.TCSADRAIN, self._original_termios)
                self._original_termios = None

            self._on_event = None

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write to stdout, mirroring into the write log when one is set."""
        try:
            self._stdout.write(data)
        except OSError as exc:
            raise TerminalError(f"terminal write failed: {exc}") from exc

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                logger.debug("cannot append to write log %s", self._write_log_path)

    def flush(self) -> None:
        try:
            self._stdout.flush()
        except OSError as exc:
            raise TerminalError(f"terminal flush failed: {exc}") from exc

    # -- modes ----------------------------------------------------------------

    def enter_alternate_screen(self) -> None:
        self.write(_ALT_SCREEN_ENTER)

    def leave_alternate_screen(self) -> None:
        self.write(_ALT_SCREEN_LEAVE)

    def enable_mouse_capture(self) -> None:
        """Ask for SGR mouse reports of presses, releases and drags."""
        self.write(_MOUSE_ENABLE)

    def disable_mouse_capture(self) -> None:
        self.write(_MOUSE_DISABLE)

    def hide_cursor(self) -> None:
        self.write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(_SHOW_CURSOR)

    def begin_synchronized_update(self) -> None:
        self.write(_SYNC_BEGIN)

    def end_synchronized_update(self) -> None:
        self.write(_SYNC_END)

    # -- kitty keyboard protocol ----------------------------------------------

    async def probe_keyboard_enhancement(self, timeout: float) -> bool:
        """Query kitty keyboard protocol support, enabling it if present.

        Gives up after *timeout* seconds and treats the terminal as
        unsupported.
        """
        loop = asyncio.get_running_loop()
        self._probe = loop.create_future()
        try:
            self.write(_KITTY_QUERY)
            self.flush()
            supported = await asyncio.wait_for(self._probe, timeout)
        except asyncio.TimeoutError:
            supported = False
        except TerminalError as exc:
            logger.warning("keyboard enhancement probe failed: %s", exc)
            supported = False
        finally:
            self._probe = None
        logger.debug("keyboard enhancement supported: %s", supported)
        if supported:
            self.write(_KITTY_ENABLE)
            self.flush()
            self._kitty_active = True
        return supported

    # -- private: stdin reading ---------------------------------------------

    def _start_stdin_reader(self) -> None:
        """Register an asyncio reader on stdin to feed the decoder."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # static use outside a loop: input is never read
            return
        loop.add_reader(self._stdin.fileno(), self._on_stdin_readable)
        self._reader_loop = loop

    def _remove_stdin_reader(self) -> None:
        if self._reader_loop is None:
            return
        try:
            self._reader_loop.remove_reader(self._stdin.fileno())
        except (RuntimeError, ValueError):
            pass
        self._reader_loop = None

    def _on_stdin_readable(self) -> None:
        """Decode whatever stdin has ready and deliver the events."""
        try:
            raw = os.read(self._stdin.fileno(), 4096)
        except OSError:
            return
        if raw:
            self._feed_bytes(raw)

    def _feed_bytes(self, raw: bytes) -> None:
        text = self._utf8.decode(raw)
        self._cancel_flush()
        if text:
            self._deliver(self._decoder.feed(text))
        if self._decoder.pending and self._reader_loop is not None:
            self._flush_handle = self._reader_loop.call_later(_ESCAPE_TIMEOUT, self._flush_timeout)

    def _flush_timeout(self) -> None:
        self._flush_handle = None
        self._deliver(self._decoder.flush())

    def _cancel_flush(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None

    def _deliver(self, events: list) -> None:
        for event in events:
            if isinstance(event, KeyboardEnhancementReport):
                if self._probe is not None and not self._probe.done():
                    self._probe.set_result(True)
                continue
            if self._on_event is not None:
                self._on_event(event)

    # -- private: SIGWINCH ----------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        """Turn SIGWINCH into a ResizeEvent on the event loop."""
        if self._on_event is None:
            return
        event = ResizeEvent(self.columns, self.rows)
        if self._reader_loop is not None:
            self._reader_loop.call_soon_threadsafe(self._deliver, [event])
        else:
            self._on_event(event)


# ---------------------------------------------------------------------------
# Scoped acquisition
# ---------------------------------------------------------------------------


@contextmanager
def session(
    terminal: Terminal,
    on_event: Callable[[Event], None],
    *,
    fullscreen: bool = False,
) -> Iterator[Terminal]:
    """Put *terminal* into raw mode for the duration of the block.

    The alternate screen and mouse capture (both only when *fullscreen*),
    the cursor and the original terminal mode are restored in ``finally``
    blocks, in reverse order.
    """
    terminal.start(on_event)
    try:
        if fullscreen:
            terminal.enter_alternate_screen()
            terminal.enable_mouse_capture()
        terminal.hide_cursor()
        terminal.flush()
        yield terminal
    finally:
        try:
            if fullscreen:
                terminal.disable_mouse_capture()
                terminal.leave_alternate_screen()
            terminal.show_cursor()
            terminal.flush()
        finally:
            terminal.stop()
