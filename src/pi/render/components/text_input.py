"""TextInput component - an editable, single-style value fed by key presses."""

from __future__ import annotations

from typing import Any, Callable

from pi.render.canvas import CanvasView
from pi.render.element import Component, Props
from pi.render.input import Event, KeyEvent, PasteEvent
from pi.render.layout import AvailableWidth, LayoutStyle
from pi.render.style import CellStyle, Color
from pi.render.text import grapheme_width, split_graphemes, visible_width


class TextInputProps(Props):
    """The input is controlled: ``value`` is what is shown, and every edit
    made while ``has_focus`` is reported through ``on_change``.
    """

    value: str = ""
    has_focus: bool = False
    on_change: Callable[[str], Any] | None = None
    color: Color | None = None


def edit(value: str, event: Event) -> str:
    """Apply one input event to *value*; unrelated events leave it alone."""
    if isinstance(event, PasteEvent):
        return value + event.text
    if not isinstance(event, KeyEvent) or event.kind == "release":
        return value
    if event.ctrl or event.alt:
        return value
    if event.code == "backspace":
        return "".join(split_graphemes(value)[:-1])
    if event.code == "space":
        return value + " "
    if len(event.code) == 1:
        return value + event.code
    return value


def drop_columns(line: str, columns: int) -> str:
    """*line* without its first *columns* cells; a split wide glyph becomes a space."""
    if columns <= 0:
        return line
    skipped = 0
    graphemes = split_graphemes(line)
    for index, g in enumerate(graphemes):
        if skipped >= columns:
            return "".join(graphemes[index:])
        skipped += grapheme_width(g)
        if skipped > columns:
            return " " * (skipped - columns) + "".join(graphemes[index + 1 :])
    return ""


class TextInputComponent(Component):
    """TextInput component - fills its parent's width and keeps the end of
    the value in view when it does not fit.
    """

    props_type = TextInputProps
    name = "TextInput"

    def render(self, hooks, props: TextInputProps):
        # edits arriving before the next render build on each other
        pending = hooks.use_ref(props.value)
        pending.current = props.value

        def on_event(event: Event) -> None:
            if not props.has_focus:
                return
            value = edit(pending.current, event)
            if value == pending.current:
                return
            pending.current = value
            if props.on_change is not None:
                props.on_change(value)

        hooks.use_terminal_events(on_event)
        return None

    def layout_style(self, props: TextInputProps) -> LayoutStyle:
        return LayoutStyle(width="100%")

    def measure(
        self,
        props: TextInputProps,
        known_width: int | None,
        available_width: AvailableWidth,
    ) -> tuple[int, int]:
        lines = props.value.split("\n")
        width = max(visible_width(line) for line in lines)
        return (width if known_width is None else known_width), len(lines)

    def draw(self, props: TextInputProps, view: CanvasView, instance) -> None:
        if view.width <= 0 or view.height <= 0:
            return
        lines = props.value.split("\n")[-view.height :]
        overflow = max(visible_width(line) for line in lines) - view.width
        style = CellStyle(color=props.color)
        for y, line in enumerate(lines):
            view.set_text(0, y, drop_columns(line, overflow), style)


TextInput = TextInputComponent()
