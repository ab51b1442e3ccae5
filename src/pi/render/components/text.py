"""Text component - a leaf that wraps and aligns a single styled string."""

from __future__ import annotations

from pi.render.canvas import CanvasView
from pi.render.element import Component, Props
from pi.render.layout import AvailableWidth
from pi.render.style import CellStyle, Color, TextAlign, TextDecoration, TextWrap, Weight
from pi.render.text import align_offset, min_content_width, visible_width, wrap_text


class TextProps(Props):
    content: str = ""
    color: Color | None = None
    weight: Weight = "normal"
    wrap: TextWrap = "wrap"
    align: TextAlign = "left"
    decoration: TextDecoration = "none"
    italic: bool = False

    def cell_style(self) -> CellStyle:
        return CellStyle(
            color=self.color,
            weight=self.weight,
            underline=self.decoration == "underline",
            italic=self.italic,
        )


def measure_lines(lines: list[str]) -> tuple[int, int]:
    """``(width, height)`` of already wrapped lines; never less than one row."""
    width = max((visible_width(line) for line in lines), default=0)
    return width, max(1, len(lines))


def wrap_width(
    known_width: int | None,
    available_width: AvailableWidth,
    min_content: int,
) -> int | None:
    """Width to wrap at while measuring; ``None`` means unwrapped."""
    if known_width is not None:
        return known_width
    if available_width == "max-content":
        return None
    if available_width == "min-content":
        return max(1, min_content)
    return available_width


class TextComponent(Component):
    """Text component - displays wrapped, aligned text in its box."""

    props_type = TextProps
    name = "Text"

    def render(self, hooks, props):
        return None

    def measure(
        self,
        props: TextProps,
        known_width: int | None,
        available_width: AvailableWidth,
    ) -> tuple[int, int]:
        width = wrap_width(known_width, available_width, min_content_width(props.content))
        return measure_lines(wrap_text(props.content, width, props.wrap))

    def draw(self, props: TextProps, view: CanvasView, instance) -> None:
        style = props.cell_style()
        lines = wrap_text(props.content, view.width, props.wrap)
        for y, line in enumerate(lines[: view.height]):
            x = align_offset(visible_width(line), view.width, props.align)
            view.set_text(x, y, line, style)


Text = TextComponent()
