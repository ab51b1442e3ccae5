"""Layout adapter: project the instance tree into the geometry solver.

Boxed instances become :class:`LayoutNode` objects carrying a
:class:`LayoutStyle`; transparent instances are elided and their boxed
descendants are attached to the nearest boxed ancestor.  The solver returns
absolute rectangles which are stored on the instances.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Literal, Union

from pydantic import AfterValidator

from pi.render.canvas import Rect
from pi.render.element import Component, Props

if TYPE_CHECKING:
    from pi.render.reconciler import Instance
    from pi.render.solver import GeometrySolver

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Size values
# ---------------------------------------------------------------------------


def parse_size(value: int | str | None) -> tuple[str, float | None]:
    """Classify a size value.

    * ``None`` or ``"auto"`` -> ``("auto", None)``
    * ``int``                -> ``("points", value)``
    * ``"50%"``              -> ``("percent", 0.5)``
    """
    if value is None or value == "auto":
        return ("auto", None)
    if isinstance(value, bool):
        raise ValueError(f"invalid size: {value!r}")
    if isinstance(value, (int, float)):
        return ("points", value)
    if isinstance(value, str) and value.endswith("%"):
        try:
            pct = float(value[:-1])
        except ValueError:
            raise ValueError(f"invalid percentage: {value!r}") from None
        return ("percent", pct / 100)
    raise ValueError(f"invalid size: {value!r}")


def check_size(value: int | str) -> int | str:
    parse_size(value)
    return value


SizeValue = Annotated[Union[int, str], AfterValidator(check_size)]

Sides = tuple[Union[int, str, None], Union[int, str, None], Union[int, str, None], Union[int, str, None]]

Overflow = Literal["clip", "visible", "scroll"]
FlexDirection = Literal["row", "column", "row_reverse", "column_reverse"]
FlexWrap = Literal["nowrap", "wrap", "wrap_reverse"]
Alignment = Literal[
    "start",
    "end",
    "flex_start",
    "flex_end",
    "center",
    "stretch",
    "baseline",
    "space_between",
    "space_around",
    "space_evenly",
]

# ---------------------------------------------------------------------------
# Style record handed to the solver
# ---------------------------------------------------------------------------


@dataclass
class LayoutStyle:
    """Solver constraints for one box, in the solver's vocabulary.

    Four-sided values are ``(top, right, bottom, left)``.
    """

    display: Literal["flex", "none"] = "flex"
    position: Literal["relative", "absolute"] = "relative"
    inset: Sides = (None, None, None, None)
    width: int | str | None = None
    height: int | str | None = None
    min_width: int | str | None = None
    min_height: int | str | None = None
    max_width: int | str | None = None
    max_height: int | str | None = None
    margin: Sides = (0, 0, 0, 0)
    padding: Sides = (0, 0, 0, 0)
    border: tuple[int, int, int, int] = (0, 0, 0, 0)
    flex_direction: str = "row"
    flex_wrap: str = "nowrap"
    flex_grow: float = 0.0
    flex_shrink: float = 1.0
    flex_basis: int | str | None = None
    align_items: str | None = None
    align_content: str | None = None
    justify_content: str | None = None
    column_gap: int | str = 0
    row_gap: int | str = 0
    overflow: str = "clip"
    scroll_x: int = 0
    scroll_y: int = 0


# ---------------------------------------------------------------------------
# Props mixin for boxed kinds
# ---------------------------------------------------------------------------


class LayoutProps(Props):
    """Layout properties shared by boxed component kinds.

    ``padding`` and ``margin`` set all four sides; the per-side fields
    override them.
    """

    display: Literal["flex", "none"] = "flex"
    position: Literal["relative", "absolute"] = "relative"
    top: SizeValue | None = None
    right: SizeValue | None = None
    bottom: SizeValue | None = None
    left: SizeValue | None = None
    width: SizeValue | None = None
    height: SizeValue | None = None
    min_width: SizeValue | None = None
    min_height: SizeValue | None = None
    max_width: SizeValue | None = None
    max_height: SizeValue | None = None
    margin: SizeValue | None = None
    margin_top: SizeValue | None = None
    margin_right: SizeValue | None = None
    margin_bottom: SizeValue | None = None
    margin_left: SizeValue | None = None
    padding: SizeValue | None = None
    padding_top: SizeValue | None = None
    padding_right: SizeValue | None = None
    padding_bottom: SizeValue | None = None
    padding_left: SizeValue | None = None
    flex_direction: FlexDirection = "row"
    flex_wrap: FlexWrap = "nowrap"
    flex_grow: float = 0.0
    flex_shrink: float = 1.0
    flex_basis: SizeValue | None = None
    align_items: Alignment | None = None
    align_content: Alignment | None = None
    justify_content: Alignment | None = None
    gap: SizeValue | None = None
    column_gap: SizeValue | None = None
    row_gap: SizeValue | None = None
    overflow: Overflow = "clip"
    scroll_x: int = 0
    scroll_y: int = 0

    def _sides(self, prefix: str) -> Sides:
        base = getattr(self, prefix)
        values = []
        for side in ("top", "right", "bottom", "left"):
            specific = getattr(self, f"{prefix}_{side}")
            value = specific if specific is not None else base
            values.append(0 if value is None else value)
        return (values[0], values[1], values[2], values[3])

    def to_layout_style(self, border: tuple[int, int, int, int] = (0, 0, 0, 0)) -> LayoutStyle:
        gap = 0 if self.gap is None else self.gap
        return LayoutStyle(
            display=self.display,
            position=self.position,
            inset=(self.top, self.right, self.bottom, self.left),
            width=self.width,
            height=self.height,
            min_width=self.min_width,
            min_height=self.min_height,
            max_width=self.max_width,
            max_height=self.max_height,
            margin=self._sides("margin"),
            padding=self._sides("padding"),
            border=border,
            flex_direction=self.flex_direction,
            flex_wrap=self.flex_wrap,
            flex_grow=self.flex_grow,
            flex_shrink=self.flex_shrink,
            flex_basis=self.flex_basis,
            align_items=self.align_items,
            align_content=self.align_content,
            justify_content=self.justify_content,
            column_gap=gap if self.column_gap is None else self.column_gap,
            row_gap=gap if self.row_gap is None else self.row_gap,
            overflow=self.overflow,
            scroll_x=self.scroll_x,
            scroll_y=self.scroll_y,
        )


# ---------------------------------------------------------------------------
# Layout tree
# ---------------------------------------------------------------------------

AvailableWidth = Union[int, Literal["min-content", "max-content"]]
MeasureFunc = Callable[[Union[int, None], AvailableWidth], tuple[int, int]]

ROOT_ID = 0


@dataclass(eq=False)
class LayoutNode:
    """Geometry request for one boxed instance (``instance=None`` for the root)."""

    instance: Instance | None
    style: LayoutStyle
    measure: MeasureFunc | None = None
    children: list[LayoutNode] = field(default_factory=list)

    @property
    def id(self) -> int:
        return ROOT_ID if self.instance is None else self.instance.id


def _has_measure(kind: Component) -> bool:
    return type(kind).measure is not Component.measure


def _collect(instance: Instance) -> list[LayoutNode]:
    if instance.kind.transparent:
        nodes: list[LayoutNode] = []
        for child in instance.children:
            nodes.extend(_collect(child))
        return nodes

    kind = instance.kind
    props = instance.props
    style = kind.layout_style(props) or LayoutStyle()
    instance.style = style
    measure: MeasureFunc | None = None
    if _has_measure(kind):

        def measure(known: int | None, available: AvailableWidth) -> tuple[int, int]:
            return kind.measure(props, known, available) or (0, 0)

    children: list[LayoutNode] = []
    for child in instance.children:
        children.extend(_collect(child))
    return [LayoutNode(instance, style, measure, children)]


def build_layout_tree(root: Instance, width: int | None, height: int | None = None) -> LayoutNode:
    """Root node sized to the viewport, holding the boxed instances."""
    style = LayoutStyle(width=width, height=height, overflow="visible")
    return LayoutNode(None, style, None, _collect(root))


def _assign(instance: Instance, rects: dict[int, Rect]) -> Rect | None:
    bounds: Rect | None = None
    for child in instance.children:
        child_rect = _assign(child, rects)
        if child_rect is not None and instance.kind.transparent:
            bounds = child_rect if bounds is None else bounds.union(child_rect)
    if instance.kind.transparent:
        instance.rect = bounds
    else:
        instance.rect = rects.get(instance.id)
    return instance.rect


def compute_layout(
    root: Instance,
    width: int | None,
    height: int | None,
    solver: GeometrySolver,
) -> Rect:
    """Solve geometry for the tree under *root*; returns the viewport rect."""
    tree = build_layout_tree(root, width, height)
    rects = solver.solve(tree)
    _assign(root, rects)
    viewport = rects.get(ROOT_ID, Rect(0, 0, width or 0, height or 0))
    logger.debug("layout solved: %d boxes, viewport %s", len(rects), viewport)
    return viewport


def round_rect(x: float, y: float, width: float, height: float) -> Rect:
    """Snap a solver rectangle to whole cells without opening gaps."""
    left = math.floor(x + 0.5)
    top = math.floor(y + 0.5)
    right = math.floor(x + width + 0.5)
    bottom = math.floor(y + height + 0.5)
    return Rect(left, top, max(0, right - left), max(0, bottom - top))
