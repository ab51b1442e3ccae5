"""Tests for pi.render.diff -- minimal change sets between frames."""

from __future__ import annotations

from pi.render.canvas import Canvas
from pi.render.diff import Run, cursor_to, diff_frames, encode_runs


def frame(*lines: str, width: int = 10) -> Canvas:
    canvas = Canvas(width, len(lines))
    view = canvas.view()
    for y, line in enumerate(lines):
        view.set_text(0, y, line)
    return canvas


class TestDiffFrames:
    """Only changed cells are emitted."""

    def test_identical_frames_produce_no_runs(self) -> None:
        assert diff_frames(frame("hello", "world"), frame("hello", "world")) == []

    def test_single_changed_cell(self) -> None:
        runs = diff_frames(frame("hello"), frame("hallo"))
        assert [(r.y, r.x, r.width) for r in runs] == [(0, 1, 1)]

    def test_contiguous_changes_coalesce(self) -> None:
        runs = diff_frames(frame("abcdef"), frame("aXYZef"))
        assert [(r.y, r.x, r.width) for r in runs] == [(0, 1, 3)]

    def test_separate_changes_are_separate_runs(self) -> None:
        runs = diff_frames(frame("abcdef"), frame("Xbcdef".replace("f", "Y")))
        assert [(r.x, r.width) for r in runs] == [(0, 1), (5, 1)]

    def test_only_changed_rows(self) -> None:
        runs = diff_frames(frame("one", "two", "six"), frame("one", "tow", "six"))
        assert {r.y for r in runs} == {1}

    def test_cleared_text_is_a_change(self) -> None:
        runs = diff_frames(frame("abc"), frame("a"))
        assert [(r.x, r.width) for r in runs] == [(1, 2)]

    def test_full_emits_every_row(self) -> None:
        runs = diff_frames(frame("a", "b"), frame("a", "b"), full=True)
        assert [(r.y, r.x, r.width) for r in runs] == [(0, 0, 10), (1, 0, 10)]

    def test_no_previous_frame_is_full(self) -> None:
        runs = diff_frames(None, frame("a", "b"))
        assert len(runs) == 2

    def test_new_rows_are_emitted(self) -> None:
        runs = diff_frames(frame("a"), frame("a", "b"))
        assert [r.y for r in runs] == [1]


class TestWideGlyphDiff:
    """A run never starts or ends in the middle of a double-width glyph."""

    def test_changed_continuation_includes_lead(self) -> None:
        prev = frame("ab")
        nxt = frame("a世")
        runs = diff_frames(prev, nxt)
        assert runs[0].x == 1
        assert runs[0].cells[0].glyph == "世"

    def test_changed_lead_includes_continuation(self) -> None:
        prev = frame("世x")
        nxt = frame("界x")
        runs = diff_frames(prev, nxt)
        assert [(r.x, r.width) for r in runs] == [(0, 2)]

    def test_replacing_wide_glyph_with_narrow(self) -> None:
        prev = frame("世")
        nxt = frame("ab")
        runs = diff_frames(prev, nxt)
        assert encode_runs(runs) == "\x1b[1;1Hab"


class TestEncodeRuns:
    def test_absolute_addressing(self) -> None:
        canvas = frame("hi")
        runs = [Run(0, 0, tuple(canvas.rows[0][:2]))]
        assert encode_runs(runs) == "\x1b[1;1Hhi"

    def test_custom_move(self) -> None:
        canvas = frame("hi")
        runs = [Run(0, 1, tuple(canvas.rows[0][1:2]))]
        assert encode_runs(runs, lambda row, col: f"<{row},{col}>") == "<0,1>i"

    def test_cursor_to_is_one_based(self) -> None:
        assert cursor_to(0, 0) == "\x1b[1;1H"
        assert cursor_to(4, 9) == "\x1b[5;10H"
