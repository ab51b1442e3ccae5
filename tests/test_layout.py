"""Tests for pi.render.layout -- projecting instances into the solver."""

from __future__ import annotations

import pytest

from pi.render.canvas import Rect
from pi.render.components import Box, Fragment, Text
from pi.render.hooks import RenderContext, SystemContext
from pi.render.layout import (
    ROOT_ID,
    build_layout_tree,
    compute_layout,
    parse_size,
    round_rect,
)
from pi.render.reconciler import create_instance, render_instance

from .stack_solver import StackSolver


def mount(element):
    ctx = RenderContext()
    root = create_instance(Fragment(element), ctx)
    render_instance(root, Fragment(element), ctx, (SystemContext(),))
    return root


class TestParseSize:
    def test_auto(self) -> None:
        assert parse_size(None) == ("auto", None)
        assert parse_size("auto") == ("auto", None)

    def test_points(self) -> None:
        assert parse_size(12) == ("points", 12)

    def test_percent(self) -> None:
        assert parse_size("50%") == ("percent", 0.5)

    @pytest.mark.parametrize("bad", ["wide", "%", "10px", True])
    def test_invalid(self, bad) -> None:
        with pytest.raises(ValueError):
            parse_size(bad)


class TestLayoutProps:
    """Shorthands expand into four-sided values."""

    def test_padding_shorthand_with_override(self) -> None:
        style = Box(padding=1, padding_left=2).props.to_layout_style()
        assert style.padding == (1, 1, 1, 2)

    def test_margin_defaults_to_zero(self) -> None:
        assert Box().props.to_layout_style().margin == (0, 0, 0, 0)

    def test_gap_sets_both_axes(self) -> None:
        style = Box(gap=2, row_gap=1).props.to_layout_style()
        assert (style.column_gap, style.row_gap) == (2, 1)

    def test_border_thickness_from_style(self) -> None:
        style = Box.layout_style(Box(border_style="round").props)
        assert style.border == (1, 1, 1, 1)

    def test_border_edges_subset(self) -> None:
        props = Box(border_style="single", border_edges={"top", "bottom"}).props
        assert Box.layout_style(props).border == (1, 0, 1, 0)

    def test_overflow_defaults_to_clip(self) -> None:
        assert Box().props.to_layout_style().overflow == "clip"


class TestBuildLayoutTree:
    """Transparent instances contribute no node of their own."""

    def test_fragment_is_elided(self) -> None:
        root = mount(Box(Fragment(Text(content="a"), Text(content="b"))))
        tree = build_layout_tree(root, 20)
        (box,) = tree.children
        assert [child.instance.kind for child in box.children] == [Text, Text]

    def test_text_has_measure(self) -> None:
        root = mount(Text(content="hello world"))
        (text,) = build_layout_tree(root, 20).children
        assert text.measure is not None
        assert text.measure(None, "max-content") == (11, 1)
        assert text.measure(None, "min-content") == (5, 2)
        assert text.measure(None, 8) == (5, 2)
        assert text.measure(11, 4) == (11, 1)

    def test_box_has_no_measure(self) -> None:
        root = mount(Box())
        (box,) = build_layout_tree(root, 20).children
        assert box.measure is None

    def test_root_is_sized_to_viewport(self) -> None:
        tree = build_layout_tree(mount(Box()), 30, 5)
        assert (tree.style.width, tree.style.height) == (30, 5)
        assert tree.id == ROOT_ID


class TestComputeLayout:
    def test_rects_assigned_to_instances(self) -> None:
        root = mount(Box(Text(content="a")))
        viewport = compute_layout(root, 10, None, StackSolver())
        (box,) = root.children
        (text,) = box.children
        assert box.rect == Rect(0, 0, 10, 1)
        assert text.rect == Rect(0, 1, 10, 1)
        assert viewport == Rect(0, 0, 10, 2)

    def test_transparent_gets_union_of_children(self) -> None:
        root = mount(Fragment(Text(content="a"), Text(content="b")))
        compute_layout(root, 10, None, StackSolver())
        (fragment,) = root.children
        assert fragment.rect == Rect(0, 0, 10, 2)


class TestRoundRect:
    def test_adjacent_boxes_share_edges(self) -> None:
        left = round_rect(0, 0, 3.4, 1)
        right = round_rect(3.4, 0, 3.2, 1)
        assert left.right == right.x

    def test_integral_values_unchanged(self) -> None:
        assert round_rect(1, 2, 3, 4) == Rect(1, 2, 3, 4)
