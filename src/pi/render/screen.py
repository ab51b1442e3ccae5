"""Output stage: commit frames to the terminal with minimal writes.

Three modes:

* ``inline``: the frame lives below the shell prompt.  The cursor is parked
  on the row after the frame; each commit moves up, rewrites only changed
  runs, grows with newlines or shrinks with an erase.  A frame taller than
  the viewport purges the screen and scrollback and is reprinted, so
  repeated commits never pile up a backlog of stale copies.
* ``fullscreen``: the alternate screen, addressed absolutely.
* ``plain``: the sink is not a terminal; only the final frame is written,
  as plain text, by :meth:`Screen.finish`.
"""

from __future__ import annotations

import logging
import sys
from typing import Literal, TextIO

from pi.render.canvas import Canvas
from pi.render.diff import diff_frames, encode_runs
from pi.render.terminal import Terminal

logger = logging.getLogger(__name__)

ScreenMode = Literal["inline", "fullscreen", "plain"]

_ERASE_BELOW = "\x1b[J"
_PURGE = "\x1b[2J\x1b[3J\x1b[H"
_CLEAR_HOME = "\x1b[H\x1b[2J"


class _Output:
    """Bytes of one commit, kept in order per destination stream."""

    def __init__(self) -> None:
        self.chunks: list[tuple[str, str]] = []

    def append(self, data: str, stream: str = "stdout") -> None:
        if not data:
            return
        if self.chunks and self.chunks[-1][0] == stream:
            self.chunks[-1] = (stream, self.chunks[-1][1] + data)
        else:
            self.chunks.append((stream, data))

    def __bool__(self) -> bool:
        return bool(self.chunks)


class Screen:
    """Owns the previous frame and the cursor bookkeeping for one terminal."""

    def __init__(self, terminal: Terminal, mode: ScreenMode, stderr: TextIO | None = None) -> None:
        self.terminal = terminal
        self.mode: ScreenMode = mode
        self._stderr = stderr or sys.stderr
        self._previous: Canvas | None = None
        self._previous_size: tuple[int, int] | None = None
        # inline: cursor row relative to the top of the region
        self._cursor_row = 0
        self._overflowed = False
        self._full = True
        self._last: Canvas | None = None
        self.deferred: list[tuple[str, str]] = []
        self.full_redraw_count = 0

    # -- state ----------------------------------------------------------------

    def invalidate(self) -> None:
        """Treat every cell as changed on the next commit."""
        self._full = True

    def set_mode(self, mode: ScreenMode) -> None:
        if mode != self.mode:
            self.mode = mode
            self._previous = None
            self._cursor_row = 0
            self.invalidate()

    @property
    def previous(self) -> Canvas | None:
        return self._previous

    # -- commit ---------------------------------------------------------------

    def commit(self, canvas: Canvas, messages: list[tuple[str, str]] | None = None) -> None:
        """Bring the terminal from the previous frame to *canvas*."""
        messages = messages or []
        self._last = canvas
        if self.mode == "plain":
            for stream, text in messages:
                self._print_plain(stream, text)
            return

        size = (self.terminal.columns, self.terminal.rows)
        if self._previous_size is not None and size != self._previous_size:
            logger.debug("viewport resized %s -> %s", self._previous_size, size)
            self._full = True
        width_changed = self._previous_size is not None and size[0] != self._previous_size[0]
        self._previous_size = size

        if self.mode == "fullscreen":
            self.deferred.extend(messages)
            out = _Output()
            out.append(self._fullscreen(canvas, size[1]))
        else:
            out = self._inline(canvas, size[1], messages, purge=width_changed)

        self._full = False
        self._previous = canvas
        if not out:
            return
        self._write(out)

    def _write(self, out: _Output) -> None:
        sync = self.terminal.supports_synchronized_update
        if sync:
            self.terminal.begin_synchronized_update()
        try:
            for stream, data in out.chunks:
                if stream == "stderr":
                    self.terminal.flush()
                    self._stderr.write(data)
                    self._stderr.flush()
                else:
                    self.terminal.write(data)
        finally:
            if sync:
                self.terminal.end_synchronized_update()
            self.terminal.flush()

    def _fullscreen(self, canvas: Canvas, rows: int) -> str:
        visible = _crop(canvas, rows)
        if self._full or self._previous is None:
            self.full_redraw_count += 1
            return _CLEAR_HOME + encode_runs(diff_frames(None, visible, full=True))
        return encode_runs(diff_frames(_crop(self._previous, rows), visible))

    def _inline(
        self,
        canvas: Canvas,
        rows: int,
        messages: list[tuple[str, str]],
        purge: bool,
    ) -> _Output:
        out = _Output()
        overflow = canvas.height >= rows
        if purge or overflow or self._overflowed:
            # the region is no longer addressable with relative moves
            self.full_redraw_count += 1
            out.append(_PURGE)
            self._cursor_row = 0
            self._append_messages(out, messages)
            self._append_rows(out, canvas, 0)
            self._overflowed = overflow
            return out

        if messages or self._full or self._previous is None:
            if self._full or self._previous is None:
                self.full_redraw_count += 1
            out.append(self._move(0, 0))
            out.append(_ERASE_BELOW)
            self._append_messages(out, messages)
            self._append_rows(out, canvas, 0)
            return out

        previous = self._previous
        prev_height = previous.height
        overlap = min(prev_height, canvas.height)
        runs = [run for run in diff_frames(previous, canvas) if run.y < overlap]
        if not runs and prev_height == canvas.height:
            return out

        out.append(encode_runs(runs, self._move))
        if canvas.height > prev_height:
            out.append(self._move(prev_height, 0))
            self._append_rows(out, canvas, prev_height)
        else:
            out.append(self._move(canvas.height, 0))
            if canvas.height < prev_height:
                out.append(_ERASE_BELOW)
        return out

    # -- inline helpers -------------------------------------------------------

    def _move(self, row: int, col: int) -> str:
        parts = []
        delta = row - self._cursor_row
        if delta < 0:
            parts.append(f"\x1b[{-delta}A")
        elif delta > 0:
            parts.append(f"\x1b[{delta}B")
        parts.append("\r")
        if col > 0:
            parts.append(f"\x1b[{col}C")
        self._cursor_row = row
        return "".join(parts)

    def _append_rows(self, out: _Output, canvas: Canvas, start: int) -> None:
        for y in range(start, canvas.height):
            out.append(canvas.ansi_row(y))
            out.append("\r\n")
        self._cursor_row = canvas.height

    def _append_messages(self, out: _Output, messages: list[tuple[str, str]]) -> None:
        for stream, text in messages:
            for line in text.split("\n"):
                out.append(line + "\r\n", stream)

    # -- plain ----------------------------------------------------------------

    def _print_plain(self, stream: str, text: str) -> None:
        if stream == "stderr":
            self._stderr.write(text + "\n")
            self._stderr.flush()
        else:
            self.terminal.write(text + "\n")
            self.terminal.flush()

    def finish(self) -> None:
        """Write what must outlive the loop: the plain-mode frame."""
        if self.mode == "plain" and self._last is not None:
            self.terminal.write(str(self._last))
            self.terminal.flush()

    def print_deferred(self) -> None:
        """Print messages held back while the alternate screen was active."""
        deferred, self.deferred = self.deferred, []
        for stream, text in deferred:
            self._print_plain(stream, text)


def _crop(canvas: Canvas, rows: int) -> Canvas:
    if canvas.height <= rows:
        return canvas
    cropped = Canvas(canvas.width, rows)
    cropped.rows = canvas.rows[:rows]
    return cropped
