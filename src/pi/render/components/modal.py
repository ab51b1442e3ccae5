"""Modal component - a popup box shown only while ``is_open``."""

from __future__ import annotations

from dataclasses import replace

from pi.render.element import Component
from pi.render.layout import LayoutProps, LayoutStyle


class ModalProps(LayoutProps):
    is_open: bool = False


class ModalComponent(Component):
    """Modal component - lays out its children like a Box but paints nothing
    of its own.  A closed modal unmounts its children and takes no space.

    Use ``position="absolute"`` with insets to float it over its siblings.
    """

    props_type = ModalProps
    name = "Modal"

    def render(self, hooks, props: ModalProps):
        return hooks.children if props.is_open else None

    def layout_style(self, props: ModalProps) -> LayoutStyle:
        style = props.to_layout_style()
        if not props.is_open:
            style = replace(style, display="none")
        return style


Modal = ModalComponent()
