"""Reconciliation: merge a fresh element tree into the live instance tree.

Siblings carrying a key are matched by key, regardless of position.
Siblings without one are matched by their ordinal among the unkeyed
siblings.  A matched instance of the same kind is reused, keeping its
state; a kind mismatch destroys the old instance and mounts a new one.
Unmatched instances are queued on the render context and destroyed only
after the whole new tree is built.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any

from pi.render.canvas import Rect
from pi.render.element import Component, Element, Props, normalize_children
from pi.render.errors import DuplicateKeyError
from pi.render.hooks import Hooks, RenderContext, StateCell
from pi.render.layout import LayoutStyle

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Instance:
    """Persistent runtime object for one mounted component."""

    id: int
    kind: Component
    key: Hashable | None
    props: Props
    cells: list[StateCell] = field(default_factory=list)
    children: list[Instance] = field(default_factory=list)
    element_children: tuple[Element, ...] = ()
    contexts: tuple[Any, ...] = ()
    rect: Rect | None = None
    style: LayoutStyle | None = None
    render_count: int = 0
    mounted: bool = False
    destroyed: bool = False

    def __repr__(self) -> str:
        key = f" key={self.key!r}" if self.key is not None else ""
        return f"<Instance #{self.id} {self.kind.name}{key}>"

    def walk(self):
        """Yield this instance and its descendants in document order."""
        yield self
        for child in self.children:
            yield from child.walk()


def create_instance(element: Element, ctx: RenderContext) -> Instance:
    return Instance(ctx.next_id(), element.kind, element.key, element.props)


def render_instance(
    instance: Instance,
    element: Element,
    ctx: RenderContext,
    contexts: tuple[Any, ...],
) -> None:
    """Render *instance* with *element*'s props, then reconcile its children."""
    instance.props = element.props
    instance.key = element.key
    instance.element_children = element.children
    instance.contexts = contexts
    hooks = Hooks(instance, ctx, contexts, element.children)
    output = instance.kind.render(hooks, element.props)
    hooks.finish()
    instance.render_count += 1
    child_contexts = contexts
    provided = getattr(instance.kind, "provides", None)
    if provided is not None:
        child_contexts = contexts + (provided(element.props),)
    reconcile_children(instance, normalize_children(output), ctx, child_contexts)


def reconcile_children(
    parent: Instance,
    elements: tuple[Element, ...],
    ctx: RenderContext,
    contexts: tuple[Any, ...],
) -> None:
    """Match *elements* against ``parent.children`` and render each child."""
    keyed: dict[Hashable, Instance] = {}
    unkeyed: list[Instance | None] = []
    for child in parent.children:
        if child.key is None:
            unkeyed.append(child)
        else:
            keyed[child.key] = child

    seen: set[Hashable] = set()
    new_children: list[Instance] = []
    unkeyed_index = 0
    for element in elements:
        previous: Instance | None
        if element.key is None:
            previous = unkeyed[unkeyed_index] if unkeyed_index < len(unkeyed) else None
            if previous is not None:
                unkeyed[unkeyed_index] = None
            unkeyed_index += 1
        else:
            if element.key in seen:
                raise DuplicateKeyError(
                    f"{parent.kind.name}: duplicate sibling key {element.key!r}"
                )
            seen.add(element.key)
            previous = keyed.pop(element.key, None)

        if previous is not None and previous.kind is not element.kind:
            logger.debug("kind changed at %r, remounting", previous)
            ctx.destroy_list.append(previous)
            previous = None

        instance = previous if previous is not None else create_instance(element, ctx)
        render_instance(instance, element, ctx, contexts)
        new_children.append(instance)

    ctx.destroy_list.extend(keyed.values())
    ctx.destroy_list.extend(child for child in unkeyed if child is not None)
    parent.children = new_children


def destroy_instance(instance: Instance) -> None:
    """Destroy *instance* and its subtree, children first, exactly once."""
    if instance.destroyed:
        return
    for child in instance.children:
        destroy_instance(child)
    instance.destroyed = True
    instance.mounted = False
    for cell in instance.cells:
        cell.destroy()
    instance.cells = []
    instance.children = []


def flush_destroy_list(ctx: RenderContext) -> int:
    """Destroy every queued instance; returns how many were queued."""
    queued, ctx.destroy_list = ctx.destroy_list, []
    for instance in queued:
        destroy_instance(instance)
    return len(queued)
