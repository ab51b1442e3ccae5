"""Button component - calls a handler on Enter, Space or a mouse click."""

from __future__ import annotations

from typing import Any, Callable

from pi.render.element import Component, Props
from pi.render.input import Event, KeyEvent, MouseEvent

_TRIGGER_KEYS = ("enter", "space")


class ButtonProps(Props):
    """``handler`` runs on Enter or Space while ``has_focus``, or on a click.

    Clicks are only reported in fullscreen mode, where the mouse is captured.
    """

    handler: Callable[[], Any] | None = None
    has_focus: bool = False


class ButtonComponent(Component):
    """Button component - wraps its child and makes it clickable."""

    props_type = ButtonProps
    transparent = True
    name = "Button"

    def render(self, hooks, props: ButtonProps):
        area = hooks.use_component_rect()

        def on_event(event: Event) -> None:
            if props.handler is None:
                return
            if isinstance(event, MouseEvent):
                rect = area.current
                if event.kind == "press" and rect is not None and rect.contains(event.column, event.row):
                    props.handler()
            elif (
                isinstance(event, KeyEvent)
                and props.has_focus
                and event.kind != "release"
                and event.code in _TRIGGER_KEYS
                and not event.modifiers
            ):
                props.handler()

        hooks.use_terminal_events(on_event)
        return hooks.children


Button = ButtonComponent()
