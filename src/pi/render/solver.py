"""Geometry solvers consumed by the layout adapter.

The default solver hands the layout tree to ``stretchable``, the Python
bindings of the taffy flexbox engine, and reads back absolute border boxes.
"""

from __future__ import annotations

import math
from typing import Any, Protocol

from stretchable import Edge, Node
from stretchable.style import (
    AUTO,
    PCT,
    AlignContent,
    AlignItems,
    Display,
    FlexDirection,
    FlexWrap,
    JustifyContent,
    Position,
)
from stretchable.style.geometry.size import SizePoints

from pi.render.canvas import Rect
from pi.render.layout import AvailableWidth, LayoutNode, LayoutStyle, MeasureFunc, parse_size, round_rect


class GeometrySolver(Protocol):
    """Pure function of a layout tree to absolute rectangles by instance id."""

    def solve(self, root: LayoutNode) -> dict[int, Rect]: ...


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------

_FLEX_WRAP = {
    "nowrap": FlexWrap.NO_WRAP,
    "wrap": FlexWrap.WRAP,
    "wrap_reverse": FlexWrap.WRAP_REVERSE,
}


def _length(value: int | str | None, allow_auto: bool = True) -> Any:
    kind, amount = parse_size(value)
    if kind == "auto":
        return AUTO if allow_auto else 0
    if kind == "percent":
        # parse_size yields a fraction; stretchable percentages run 0..100
        return amount * 100 * PCT
    return amount


def _points(length: Any) -> int | None:
    """Read a definite cell count from a solver length, ``None`` if unknown."""
    if length is None:
        return None
    value = getattr(length, "value", length)
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return max(0, math.ceil(value - 1e-6))


def _available(length: Any) -> AvailableWidth:
    scale = getattr(getattr(length, "scale", None), "name", "")
    if scale == "MIN_CONTENT":
        return "min-content"
    if scale == "MAX_CONTENT":
        return "max-content"
    points = _points(length)
    return "max-content" if points is None else points


def _measure_adapter(measure: MeasureFunc):
    def measure_node(_node: Any, known_dimensions: Any, available_space: Any) -> SizePoints:
        known_width = _points(known_dimensions.width)
        known_height = _points(known_dimensions.height)
        width, height = measure(known_width, _available(available_space.width))
        return SizePoints(
            width=float(width if known_width is None else known_width),
            height=float(height if known_height is None else known_height),
        )

    return measure_node


def _style_args(style: LayoutStyle) -> dict[str, Any]:
    args: dict[str, Any] = {
        "display": Display.NONE if style.display == "none" else Display.FLEX,
        "position": Position.ABSOLUTE if style.position == "absolute" else Position.RELATIVE,
        "inset": tuple(_length(v) for v in style.inset),
        "size": (_length(style.width), _length(style.height)),
        "min_size": (_length(style.min_width), _length(style.min_height)),
        "max_size": (_length(style.max_width), _length(style.max_height)),
        "margin": tuple(_length(v) for v in style.margin),
        "padding": tuple(_length(v, allow_auto=False) for v in style.padding),
        "border": tuple(style.border),
        "flex_direction": FlexDirection[style.flex_direction.upper()],
        "flex_wrap": _FLEX_WRAP[style.flex_wrap],
        "flex_grow": style.flex_grow,
        "flex_shrink": style.flex_shrink,
        "flex_basis": _length(style.flex_basis),
        "gap": (_length(style.column_gap, allow_auto=False), _length(style.row_gap, allow_auto=False)),
    }
    if style.align_items is not None:
        args["align_items"] = AlignItems[style.align_items.upper()]
    if style.align_content is not None:
        args["align_content"] = AlignContent[style.align_content.upper()]
    if style.justify_content is not None:
        args["justify_content"] = JustifyContent[style.justify_content.upper()]
    return args


# ---------------------------------------------------------------------------
# stretchable
# ---------------------------------------------------------------------------


class StretchableSolver:
    """Default solver built on ``stretchable``."""

    def _build(self, layout_node: LayoutNode, nodes: dict[int, Node]) -> Node:
        children = [self._build(child, nodes) for child in layout_node.children]
        kwargs = _style_args(layout_node.style)
        if layout_node.measure is not None and not children:
            kwargs["measure"] = _measure_adapter(layout_node.measure)
        node = Node(*children, **kwargs)
        nodes[layout_node.id] = node
        return node

    def solve(self, root: LayoutNode) -> dict[int, Rect]:
        nodes: dict[int, Node] = {}
        top = self._build(root, nodes)
        top.compute_layout()
        rects: dict[int, Rect] = {}
        self._collect(root, nodes, rects)
        return rects

    def _collect(self, layout_node: LayoutNode, nodes: dict[int, Node], rects: dict[int, Rect]) -> None:
        # taffy leaves hidden subtrees without a layout
        if layout_node.style.display == "none":
            return
        box = nodes[layout_node.id].get_box(Edge.BORDER, relative=False)
        rects[layout_node.id] = round_rect(box.x, box.y, box.width, box.height)
        for child in layout_node.children:
            self._collect(child, nodes, rects)
