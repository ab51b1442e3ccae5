"""The live tree: one root element, its instances and one render cycle.

:meth:`Tree.render` runs the rendering, reconciling, laying-out and
painting phases back to back and returns the new frame; :meth:`Tree.commit`
finishes the cycle once the frame is on screen.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from pi.render.canvas import Canvas, CanvasView, Rect
from pi.render.element import Component, Element
from pi.render.hooks import Hooks, RenderContext, SubscriptionCell, SystemContext, run_effects, start_tasks
from pi.render.input import Event
from pi.render.layout import compute_layout
from pi.render.reconciler import Instance, destroy_instance, flush_destroy_list, render_instance
from pi.render.solver import GeometrySolver, StretchableSolver

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    RECONCILING = "reconciling"
    LAYING_OUT = "laying_out"
    PAINTING = "painting"
    COMMITTED = "committed"
    TERMINATED = "terminated"


class _Root(Component):
    transparent = True
    name = "Root"

    def render(self, hooks: Hooks, props: Any) -> Any:
        return hooks.children


_ROOT = _Root()


class Tree:
    """Owns the root element, the instance tree and the context stack."""

    def __init__(
        self,
        element: Element,
        ctx: RenderContext | None = None,
        solver: GeometrySolver | None = None,
    ) -> None:
        self.element = element
        self.ctx = ctx or RenderContext()
        self.solver = solver or StretchableSolver()
        self.system = SystemContext(lambda: self.ctx.request_render())
        self.root = Instance(self.ctx.next_id(), _ROOT, None, _ROOT.make_props({}))
        self.phase = Phase.IDLE
        self.render_count = 0

    # -- cycle ----------------------------------------------------------------

    def render(self, width: int | None, height: int | None = None) -> Canvas:
        """Render, reconcile, lay out and paint; returns the new frame.

        *height* fixes the frame height (fullscreen); ``None`` sizes it to
        the content.
        """
        if self.phase is Phase.TERMINATED:
            raise RuntimeError("tree has been unmounted")

        self.phase = Phase.RENDERING
        render_instance(self.root, _ROOT(self.element), self.ctx, (self.system,))

        self.phase = Phase.RECONCILING
        destroyed = flush_destroy_list(self.ctx)

        self.phase = Phase.LAYING_OUT
        viewport = compute_layout(self.root, width, height, self.solver)

        self.phase = Phase.PAINTING
        canvas = Canvas(viewport.width, height)
        canvas.ensure_height(viewport.height)
        root_view = CanvasView(canvas, Rect(0, 0, viewport.width, canvas.height), None)
        for child in self.root.children:
            _paint(child, root_view, 0, 0)

        self.render_count += 1
        logger.debug(
            "cycle %d rendered %dx%d, %d instance(s) destroyed",
            self.render_count,
            canvas.width,
            canvas.height,
            destroyed,
        )
        return canvas

    def commit(self) -> None:
        """Run queued effects and start queued tasks, after paint."""
        for instance in self.root.walk():
            instance.mounted = True
        self.phase = Phase.COMMITTED
        run_effects(self.ctx)
        start_tasks(self.ctx)
        self.phase = Phase.IDLE

    def take_output(self) -> list[tuple[str, str]]:
        output, self.ctx.output = self.ctx.output, []
        return output

    # -- events ---------------------------------------------------------------

    def dispatch(self, event: Event) -> None:
        """Deliver *event* to every subscribed instance, in document order."""
        for instance in list(self.root.walk()):
            if instance.destroyed:
                continue
            for cell in instance.cells:
                if isinstance(cell, SubscriptionCell) and cell.handler is not None:
                    cell.handler(event)

    # -- termination ------------------------------------------------------------

    @property
    def finished(self) -> bool:
        """Whether the root asked to stop, or rendered no content."""
        if self.system.should_exit:
            return True
        if self.render_count == 0 or not self.root.children:
            return False
        top = self.root.children[0]
        return top.kind.transparent and not top.children

    def unmount(self) -> None:
        """Destroy the whole live tree, running every cleanup once."""
        if self.phase is Phase.TERMINATED:
            return
        destroy_instance(self.root)
        flush_destroy_list(self.ctx)
        self.ctx.effects.clear()
        self.ctx.tasks.clear()
        self.phase = Phase.TERMINATED


def _paint(instance: Instance, view: CanvasView, dx: int, dy: int) -> None:
    """Paint *instance* and its subtree, parents before children."""
    if instance.kind.transparent:
        for child in instance.children:
            _paint(child, view, dx, dy)
        return

    style = instance.style
    if instance.rect is None or style is None or style.display == "none":
        return

    layout = instance.rect
    rect = Rect(layout.x + dx, layout.y + dy, layout.width, layout.height)
    instance.kind.draw(instance.props, view.subview(rect, clip=False), instance)

    if style.overflow == "visible":
        child_view = view
    else:
        top, right, bottom, left = style.border
        inner = Rect(
            rect.x + left,
            rect.y + top,
            max(0, rect.width - left - right),
            max(0, rect.height - top - bottom),
        )
        child_view = view.subview(inner, clip=True)

    if style.overflow == "scroll":
        dx -= max(0, style.scroll_x)
        dy -= max(0, style.scroll_y)

    for child in instance.children:
        _paint(child, child_view, dx, dy)
