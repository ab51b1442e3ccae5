"""MixedText component - several styled segments wrapped as one paragraph."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from pi.render.canvas import CanvasView
from pi.render.components.text import measure_lines, wrap_width
from pi.render.element import Component, Props
from pi.render.layout import AvailableWidth
from pi.render.style import CellStyle, Color, TextAlign, TextDecoration, TextWrap, Weight
from pi.render.text import align_offset, min_content_width, visible_width, wrap_segments


class MixedTextContent(BaseModel):
    """One run of text and the style it is drawn with."""

    model_config = ConfigDict(frozen=True)

    text: str
    color: Color | None = None
    weight: Weight = "normal"
    decoration: TextDecoration = "none"
    italic: bool = False

    def cell_style(self) -> CellStyle:
        return CellStyle(
            color=self.color,
            weight=self.weight,
            underline=self.decoration == "underline",
            italic=self.italic,
        )


class MixedTextProps(Props):
    contents: tuple[MixedTextContent, ...] = ()
    wrap: TextWrap = "wrap"
    align: TextAlign = "left"

    def segments(self) -> list[tuple[str, CellStyle]]:
        return [(part.text, part.cell_style()) for part in self.contents]


def _line_text(line: list[tuple[str, CellStyle]]) -> str:
    return "".join(text for text, _ in line)


class MixedTextComponent(Component):
    """MixedText component - styled segments sharing line breaks and alignment."""

    props_type = MixedTextProps
    name = "MixedText"

    def render(self, hooks, props):
        return None

    def measure(
        self,
        props: MixedTextProps,
        known_width: int | None,
        available_width: AvailableWidth,
    ) -> tuple[int, int]:
        plain = "".join(part.text for part in props.contents)
        width = wrap_width(known_width, available_width, min_content_width(plain))
        lines = wrap_segments(props.segments(), width, props.wrap)
        return measure_lines([_line_text(line) for line in lines])

    def draw(self, props: MixedTextProps, view: CanvasView, instance) -> None:
        lines = wrap_segments(props.segments(), view.width, props.wrap)
        for y, line in enumerate(lines[: view.height]):
            x = align_offset(visible_width(_line_text(line)), view.width, props.align)
            for text, style in line:
                x = view.set_text(x, y, text, style)


MixedText = MixedTextComponent()
