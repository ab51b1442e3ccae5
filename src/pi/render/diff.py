"""Frame diffing: turn two canvases into the minimal list of cell runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from pi.render.canvas import EMPTY, Canvas, Cell, encode_cells


@dataclass(frozen=True)
class Run:
    """Contiguous changed cells of one row, starting at column ``x``."""

    y: int
    x: int
    cells: tuple[Cell, ...]

    @property
    def width(self) -> int:
        return len(self.cells)


def _row_cells(canvas: Canvas | None, y: int, width: int) -> list[Cell]:
    if canvas is None or y >= canvas.height:
        return [EMPTY] * width
    row = canvas.rows[y]
    if len(row) < width:
        return row + [EMPTY] * (width - len(row))
    return row[:width]


def diff_rows(prev: list[Cell], next_row: list[Cell], y: int) -> list[Run]:
    """Changed runs of one row; both rows must have the same length."""
    runs: list[Run] = []
    width = len(next_row)
    x = 0
    while x < width:
        if prev[x] == next_row[x]:
            x += 1
            continue
        start = x
        # a changed continuation column is redrawn through its lead glyph
        if next_row[start].glyph == "" and start > 0:
            start -= 1
        end = x + 1
        while end < width and prev[end] != next_row[end]:
            end += 1
        if next_row[end - 1].width == 2 and end < width:
            end += 1
        if runs and runs[-1].x + runs[-1].width >= start:
            last = runs.pop()
            start = last.x
        runs.append(Run(y, start, tuple(next_row[start:end])))
        x = end
    return runs


def diff_frames(prev: Canvas | None, next_frame: Canvas, full: bool = False) -> list[Run]:
    """Runs of cells in *next_frame* that differ from *prev*.

    Rows are compared whole before any per-cell work, so an unchanged frame
    costs one comparison per row and produces no runs.  With ``full=True``
    (or no previous frame) every row is emitted as a single run.
    """
    width = next_frame.width
    runs: list[Run] = []
    for y in range(next_frame.height):
        next_row = next_frame.rows[y]
        if full or prev is None:
            runs.append(Run(y, 0, tuple(next_row)))
            continue
        prev_row = _row_cells(prev, y, width)
        if prev_row == next_row:
            continue
        runs.extend(diff_rows(prev_row, next_row, y))
    return runs


def cursor_to(row: int, col: int) -> str:
    return f"\x1b[{row + 1};{col + 1}H"


def encode_runs(runs: list[Run], move: Callable[[int, int], str] = cursor_to) -> str:
    """Translate *runs* into cursor moves followed by styled glyphs.

    *move* returns the sequence that positions the cursor at ``(row, col)``;
    the default addresses the screen absolutely.
    """
    parts: list[str] = []
    for run in runs:
        parts.append(move(run.y, run.x))
        parts.append(encode_cells(run.cells))
    return "".join(parts)
