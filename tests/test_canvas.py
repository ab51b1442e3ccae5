"""Tests for pi.render.canvas -- the cell grid and clipped views."""

from __future__ import annotations

import io

from pi.render.canvas import EMPTY, Canvas, CanvasView, Cell, Rect
from pi.render.style import CellStyle


class TestRect:
    def test_intersect(self) -> None:
        assert Rect(0, 0, 10, 10).intersect(Rect(5, 5, 10, 10)) == Rect(5, 5, 5, 5)

    def test_disjoint_intersection_is_empty(self) -> None:
        r = Rect(0, 0, 2, 2).intersect(Rect(5, 5, 2, 2))
        assert r.width == 0 and r.height == 0

    def test_union(self) -> None:
        assert Rect(0, 0, 2, 2).union(Rect(3, 1, 2, 2)) == Rect(0, 0, 5, 3)


class TestCanvasText:
    """Plain text output of a canvas."""

    def test_each_row_ends_with_newline(self) -> None:
        canvas = Canvas(5)
        canvas.view().set_text(0, 0, "foo")
        canvas.view().set_text(0, 1, "bar")
        assert str(canvas) == "foo\nbar\n"

    def test_default_view_of_growable_canvas_is_open_downwards(self) -> None:
        canvas = Canvas(5)
        view = canvas.view()
        view.set_text(0, 0, "foo")
        view.set_text(0, 2, "baz")
        assert str(canvas) == "foo\n\nbaz\n"
        assert view.height == 0

    def test_trailing_unset_cells_trimmed(self) -> None:
        canvas = Canvas(10, 1)
        canvas.view().set_text(2, 0, "x")
        assert canvas.to_lines() == ["  x"]

    def test_growable_canvas_grows_on_write(self) -> None:
        canvas = Canvas(4)
        assert canvas.height == 0
        canvas.view(height=10).set_text(0, 2, "hi")
        assert canvas.height == 3

    def test_fixed_canvas_drops_rows_outside(self) -> None:
        canvas = Canvas(4, 1)
        canvas.view(clip=False).set_text(0, 3, "hi")
        assert canvas.height == 1
        assert str(canvas) == "\n"

    def test_glyph_past_right_edge_not_written(self) -> None:
        canvas = Canvas(3, 1)
        canvas.view(clip=False).set_text(1, 0, "abcd")
        assert canvas.to_lines() == [" ab"]

    def test_background_keeps_trailing_cells(self) -> None:
        canvas = Canvas(4, 1)
        canvas.set_background(Rect(0, 0, 4, 1), "blue")
        assert canvas.to_lines() == ["    "]


class TestWideGlyphs:
    """Double-width glyphs occupy two cells and are never split."""

    def test_wide_glyph_uses_continuation_cell(self) -> None:
        canvas = Canvas(4, 1)
        canvas.view().set_text(0, 0, "世")
        assert canvas.get_cell(0, 0).width == 2
        assert canvas.get_cell(1, 0).glyph == ""
        assert canvas.to_lines() == ["世"]

    def test_wide_glyph_at_clip_edge_is_omitted(self) -> None:
        canvas = Canvas(10, 1)
        view = CanvasView(canvas, Rect(0, 0, 10, 1), Rect(0, 0, 3, 1))
        view.set_text(0, 0, "a世世")
        assert canvas.to_lines() == ["a世"]
        assert canvas.get_cell(3, 0) == EMPTY

    def test_overwriting_half_blanks_the_other_half(self) -> None:
        canvas = Canvas(4, 1)
        canvas.view().set_text(0, 0, "世")
        canvas.view().set_text(1, 0, "x")
        assert canvas.to_lines() == [" x"]

    def test_overwriting_lead_blanks_continuation(self) -> None:
        canvas = Canvas(4, 1)
        canvas.view().set_text(1, 0, "世")
        canvas.view().set_text(1, 0, "x")
        assert canvas.get_cell(2, 0).glyph == " "


class TestBackground:
    def test_text_inherits_existing_background(self) -> None:
        canvas = Canvas(3, 1)
        canvas.set_background(Rect(0, 0, 3, 1), "red")
        canvas.view().set_text(0, 0, "a", CellStyle(color="green"))
        cell = canvas.get_cell(0, 0)
        assert cell.style.background == "red"
        assert cell.style.color == "green"

    def test_clear_text_keeps_background(self) -> None:
        canvas = Canvas(3, 1)
        canvas.set_background(Rect(0, 0, 3, 1), "red")
        canvas.view().set_text(0, 0, "abc")
        canvas.clear_text(Rect(0, 0, 2, 1))
        assert canvas.get_cell(0, 0) == Cell(None, CellStyle(background="red"))
        assert canvas.get_cell(2, 0).glyph == "c"


class TestCanvasView:
    """Views translate coordinates and clip writes."""

    def test_coordinates_are_relative(self) -> None:
        canvas = Canvas(10, 3)
        view = CanvasView(canvas, Rect(2, 1, 5, 1), None)
        view.set_text(1, 0, "x")
        assert canvas.get_cell(3, 1).glyph == "x"

    def test_subview_clip_intersects_parent(self) -> None:
        canvas = Canvas(10, 1)
        parent = CanvasView(canvas, Rect(0, 0, 4, 1), Rect(0, 0, 4, 1))
        child = parent.subview(Rect(2, 0, 6, 1))
        child.set_text(0, 0, "abcdef")
        assert canvas.to_lines() == ["  ab"]

    def test_unclipped_subview_inherits_parent_clip(self) -> None:
        canvas = Canvas(10, 1)
        parent = CanvasView(canvas, Rect(0, 0, 4, 1), Rect(0, 0, 4, 1))
        child = parent.subview(Rect(2, 0, 6, 1), clip=False)
        assert child.clip == Rect(0, 0, 4, 1)

    def test_set_text_returns_end_column(self) -> None:
        canvas = Canvas(10, 1)
        assert canvas.view().set_text(1, 0, "a世") == 4


class TestAnsiOutput:
    def test_plain_row_has_no_escapes(self) -> None:
        canvas = Canvas(5, 1)
        canvas.view().set_text(0, 0, "hi")
        assert canvas.ansi_row(0) == "hi"

    def test_styled_row_is_reset_at_end(self) -> None:
        canvas = Canvas(5, 1)
        canvas.view().set_text(0, 0, "hi", CellStyle(color="red"))
        assert canvas.ansi_row(0) == "\x1b[0;31mhi\x1b[0m"

    def test_write_ansi(self) -> None:
        canvas = Canvas(5, 1)
        canvas.view().set_text(0, 0, "a", CellStyle(weight="bold"))
        out = io.StringIO()
        canvas.write_ansi(out)
        assert out.getvalue() == "\x1b[0;1ma\x1b[0m\n"
