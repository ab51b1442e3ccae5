"""Fragment and ContextProvider - transparent kinds that group or scope children."""

from __future__ import annotations

from typing import Any

from pi.render.element import Component, Props


class FragmentComponent(Component):
    """Groups children without adding a box of its own."""

    transparent = True
    name = "Fragment"


class ContextProviderProps(Props):
    value: Any = None


class ContextProviderComponent(Component):
    """Makes ``value`` visible to ``use_context`` anywhere below it.

    The nearest provider of a given type wins.
    """

    props_type = ContextProviderProps
    transparent = True
    name = "ContextProvider"

    def provides(self, props: ContextProviderProps) -> Any:
        return props.value


Fragment = FragmentComponent()
ContextProvider = ContextProviderComponent()
