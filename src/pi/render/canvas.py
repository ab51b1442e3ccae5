"""The Frame: a grid of styled cells that components paint into.

Components never touch the grid directly; they receive a :class:`CanvasView`
whose coordinates are relative to their own box and whose writes are clipped
to the region inherited from their ancestors.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple, TextIO

from pi.render.style import PLAIN, SGR_RESET, CellStyle, sgr_for
from pi.render.text import grapheme_width, split_graphemes


class Rect(NamedTuple):
    """Integral, top-left-origin rectangle in cell units."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersect(self, other: Rect) -> Rect:
        x = max(self.x, other.x)
        y = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        return Rect(x, y, max(0, right - x), max(0, bottom - y))

    def union(self, other: Rect) -> Rect:
        x = min(self.x, other.x)
        y = min(self.y, other.y)
        return Rect(x, y, max(self.right, other.right) - x, max(self.bottom, other.bottom) - y)

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom


@dataclass(frozen=True)
class Cell:
    """One grid cell.

    ``glyph`` is ``None`` for a cell no text has been written to and ``""``
    for the second column of a double-width glyph.
    """

    glyph: str | None = None
    style: CellStyle = PLAIN
    width: int = 1

    @property
    def is_empty(self) -> bool:
        return self.glyph is None and self.style.background is None


EMPTY = Cell()

# clip height of a view onto a canvas that grows downwards
_UNBOUNDED = 1 << 30


class Canvas:
    """A ``width`` x ``height`` grid of :class:`Cell`.

    With ``height=None`` the canvas grows downwards as rows are written,
    which is how inline output is sized.
    """

    def __init__(self, width: int, height: int | None = None) -> None:
        self.width = max(0, width)
        self._fixed_height = height
        self.rows: list[list[Cell]] = []
        if height is not None:
            self.rows = [[EMPTY] * self.width for _ in range(max(0, height))]

    @property
    def height(self) -> int:
        return len(self.rows)

    def ensure_height(self, height: int) -> None:
        """Grow a growable canvas to at least *height* rows."""
        if self._fixed_height is not None:
            return
        while len(self.rows) < height:
            self.rows.append([EMPTY] * self.width)

    def _row(self, y: int) -> list[Cell] | None:
        if y < 0:
            return None
        if y >= len(self.rows):
            if self._fixed_height is not None:
                return None
            self.ensure_height(y + 1)
        return self.rows[y]

    # -- cell access ----------------------------------------------------------

    def get_cell(self, x: int, y: int) -> Cell:
        if 0 <= y < len(self.rows) and 0 <= x < self.width:
            return self.rows[y][x]
        return EMPTY

    def _blank_partner(self, row: list[Cell], x: int) -> None:
        """Break up a wide glyph that cell *x* is one half of."""
        cell = row[x]
        if cell.glyph == "" and x > 0 and row[x - 1].width == 2:
            lead = row[x - 1]
            row[x - 1] = Cell(" ", lead.style)
        elif cell.width == 2 and x + 1 < self.width and row[x + 1].glyph == "":
            row[x + 1] = Cell(" ", row[x + 1].style)

    def put(self, x: int, y: int, glyph: str, style: CellStyle, width: int = 1) -> bool:
        """Place one grapheme at absolute ``(x, y)``.

        A glyph that does not fit inside the canvas is not written.  A text
        style without a background keeps the background already in place.
        """
        if width <= 0 or x < 0 or x + width > self.width:
            return False
        row = self._row(y)
        if row is None:
            return False
        for col in range(x, x + width):
            self._blank_partner(row, col)
        background = style.background
        if background is None:
            background = row[x].style.background
            if background is not None:
                style = replace(style, background=background)
        row[x] = Cell(glyph, style, width)
        if width == 2:
            row[x + 1] = Cell("", style, 0)
        return True

    def set_background(self, rect: Rect, color: str | int) -> None:
        for y in range(rect.y, rect.bottom):
            row = self._row(y)
            if row is None:
                continue
            for x in range(max(0, rect.x), min(self.width, rect.right)):
                cell = row[x]
                row[x] = Cell(cell.glyph, replace(cell.style, background=color), cell.width)

    def clear_text(self, rect: Rect) -> None:
        """Drop the glyphs inside *rect*, keeping any background."""
        for y in range(rect.y, rect.bottom):
            row = self._row(y)
            if row is None:
                continue
            for x in range(max(0, rect.x), min(self.width, rect.right)):
                self._blank_partner(row, x)
                background = row[x].style.background
                row[x] = Cell(None, CellStyle(background=background)) if background is not None else EMPTY

    # -- views ----------------------------------------------------------------

    def view(
        self,
        x: int = 0,
        y: int = 0,
        width: int | None = None,
        height: int | None = None,
        clip: bool = True,
    ) -> CanvasView:
        """Return a view whose origin is ``(x, y)``.

        Without an explicit *height*, a growable canvas leaves the view open
        downwards so writes below the last row add rows.
        """
        rect = Rect(x, y, self.width if width is None else width, self.height if height is None else height)
        if not clip:
            return CanvasView(self, rect, None)
        region = rect
        if height is None and self._fixed_height is None:
            region = Rect(rect.x, rect.y, rect.width, _UNBOUNDED)
        return CanvasView(self, rect, region)

    # -- output ---------------------------------------------------------------

    def _content_end(self, row: list[Cell]) -> int:
        end = len(row)
        while end > 0 and row[end - 1].is_empty:
            end -= 1
        return end

    def to_lines(self) -> list[str]:
        """Plain text of every row, trailing unset cells trimmed."""
        lines = []
        for row in self.rows:
            end = self._content_end(row)
            lines.append("".join(" " if c.glyph is None else c.glyph for c in row[:end]))
        return lines

    def __str__(self) -> str:
        return "".join(line + "\n" for line in self.to_lines())

    def ansi_row(self, y: int) -> str:
        """One row with SGR sequences, trailing unset cells trimmed."""
        row = self.rows[y]
        end = self._content_end(row)
        return encode_cells(row[:end])

    def write_ansi(self, stream: TextIO) -> None:
        for y in range(len(self.rows)):
            stream.write(self.ansi_row(y))
            stream.write("\n")
        stream.flush()


def encode_cells(cells: list[Cell] | tuple[Cell, ...]) -> str:
    """Encode a run of cells as glyphs and the SGR changes between them."""
    parts: list[str] = []
    current = PLAIN
    for cell in cells:
        if cell.glyph == "":
            continue
        if cell.style != current:
            parts.append(sgr_for(cell.style))
            current = cell.style
        parts.append(" " if cell.glyph is None else cell.glyph)
    if current != PLAIN:
        parts.append(SGR_RESET)
    return "".join(parts)


class CanvasView:
    """A translated, clipped window onto a :class:`Canvas`.

    ``rect`` is the view's own box in canvas coordinates; ``clip`` is the
    absolute region writes are restricted to (``None`` means the canvas
    bounds only).
    """

    def __init__(self, canvas: Canvas, rect: Rect, clip: Rect | None) -> None:
        self.canvas = canvas
        self.rect = rect
        self.clip = clip

    @property
    def width(self) -> int:
        return self.rect.width

    @property
    def height(self) -> int:
        return self.rect.height

    def subview(self, rect: Rect, clip: bool = True) -> CanvasView:
        """View of *rect* (given in canvas coordinates) nested inside this one."""
        region = self.clip
        if clip:
            region = rect if region is None else region.intersect(rect)
        return CanvasView(self.canvas, rect, region)

    def _visible(self, x: int, y: int, width: int = 1) -> bool:
        if self.clip is None:
            return True
        return (
            self.clip.y <= y < self.clip.bottom
            and self.clip.x <= x
            and x + width <= self.clip.right
        )

    def _clipped(self, rect: Rect) -> Rect:
        if self.clip is None:
            return rect
        return rect.intersect(self.clip)

    def set_text(self, x: int, y: int, text: str, style: CellStyle = PLAIN) -> int:
        """Write *text* starting at view-relative ``(x, y)``.

        Returns the column after the last grapheme.  Graphemes outside the
        clip region are skipped; a double-width glyph straddling the clip
        edge is omitted rather than split.
        """
        ax = self.rect.x + x
        ay = self.rect.y + y
        for g in split_graphemes(text):
            w = grapheme_width(g)
            if w == 0:
                continue
            if self._visible(ax, ay, w):
                self.canvas.put(ax, ay, g, style, w)
            ax += w
        return ax - self.rect.x

    def set_background(self, x: int, y: int, width: int, height: int, color: str | int) -> None:
        rect = self._clipped(Rect(self.rect.x + x, self.rect.y + y, width, height))
        self.canvas.set_background(rect, color)

    def clear_text(self, x: int, y: int, width: int, height: int) -> None:
        rect = self._clipped(Rect(self.rect.x + x, self.rect.y + y, width, height))
        self.canvas.clear_text(rect)

    def get_cell(self, x: int, y: int) -> Cell:
        return self.canvas.get_cell(self.rect.x + x, self.rect.y + y)
