"""Box component - a flex container with optional border and background."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

from pi.render.canvas import CanvasView
from pi.render.element import Component
from pi.render.layout import LayoutProps, LayoutStyle
from pi.render.style import (
    ALL_EDGES,
    BorderCharacters,
    BorderStyleName,
    CellStyle,
    Color,
    Edge,
    border_characters,
)
from pi.render.text import align_offset, truncate_to_width, visible_width


class BorderTitle(BaseModel):
    """Label drawn centred on the top or bottom border."""

    model_config = ConfigDict(frozen=True)

    text: str
    position: Literal["top", "bottom"] = "top"
    color: Color | None = None


class BoxProps(LayoutProps):
    """Layout props plus border and background.

    ``border_edges`` defaults to all four edges; it only matters when
    ``border_style`` is not ``"none"``.
    """

    border_style: Union[BorderStyleName, BorderCharacters] = "none"
    border_color: Color | None = None
    border_edges: frozenset[Edge] | None = None
    border_title: Union[str, BorderTitle, None] = None
    background_color: Color | None = None

    def edges(self) -> frozenset[str]:
        if border_characters(self.border_style) is None:
            return frozenset()
        return ALL_EDGES if self.border_edges is None else frozenset(self.border_edges)


class BoxComponent(Component):
    """Box component - lays out its children and paints its own chrome."""

    props_type = BoxProps
    name = "Box"

    def layout_style(self, props: BoxProps) -> LayoutStyle:
        edges = props.edges()
        border = tuple(1 if side in edges else 0 for side in ("top", "right", "bottom", "left"))
        return props.to_layout_style(border)

    def draw(self, props: BoxProps, view: CanvasView, instance) -> None:
        width, height = view.width, view.height
        if width <= 0 or height <= 0:
            return

        if props.background_color is not None:
            view.clear_text(0, 0, width, height)
            view.set_background(0, 0, width, height, props.background_color)

        chars = border_characters(props.border_style)
        if chars is None:
            return
        _draw_border(view, chars, props.edges(), CellStyle(color=props.border_color))
        if props.border_title is not None:
            _draw_title(view, props)


def _draw_border(
    view: CanvasView,
    chars: BorderCharacters,
    edges: frozenset[str],
    style: CellStyle,
) -> None:
    width, height = view.width, view.height
    top, bottom = "top" in edges, "bottom" in edges
    left, right = "left" in edges, "right" in edges

    if top:
        row = chars.top * width
        if left:
            row = chars.top_left + row[1:]
        if right and width > 1:
            row = row[:-1] + chars.top_right
        view.set_text(0, 0, row, style)

    if bottom and (height > 1 or not top):
        row = chars.bottom * width
        if left:
            row = chars.bottom_left + row[1:]
        if right and width > 1:
            row = row[:-1] + chars.bottom_right
        view.set_text(0, height - 1, row, style)

    first = 1 if top else 0
    last = height - 1 if bottom else height
    for y in range(first, last):
        if left:
            view.set_text(0, y, chars.left, style)
        if right and (width > 1 or not left):
            view.set_text(width - 1, y, chars.right, style)


def _draw_title(view: CanvasView, props: BoxProps) -> None:
    title = props.border_title
    if isinstance(title, str):
        title = BorderTitle(text=title)
    edges = props.edges()
    if title.position not in edges:
        return

    inset_left = 1 if "left" in edges else 0
    inset_right = 1 if "right" in edges else 0
    room = view.width - inset_left - inset_right
    if room <= 0:
        return
    text = truncate_to_width(title.text, room)
    x = inset_left + align_offset(visible_width(text), room, "center")
    y = 0 if title.position == "top" else view.height - 1
    view.set_text(x, y, text, CellStyle(color=title.color or props.border_color))


Box = BoxComponent()
