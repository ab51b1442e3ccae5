"""Per-instance persistent state: cells addressed by call order.

Every render call receives a :class:`Hooks` object bound to exactly one
instance.  Each ``use_*`` call advances a cursor over the instance's cells:
the first render appends cells, later renders must find a cell of the same
kind at the same position.  Any deviation raises :class:`HookOrderError`.

Example::

    @component
    def Counter(hooks, props):
        count = hooks.use_state(0)
        hooks.use_interval(0.1, lambda: count.update(lambda n: n + 1))
        return Text(content=f"counter: {count.value}")
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Coroutine, Hashable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pi.render.errors import ContextNotFoundError, HookOrderError

if TYPE_CHECKING:
    from pi.render.canvas import Rect
    from pi.render.element import Element
    from pi.render.input import Event
    from pi.render.reconciler import Instance

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING: Any = object()

# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------


def _noop() -> None:
    pass


@dataclass
class RenderContext:
    """State shared by every render call of one tree.

    The queues are filled while rendering and drained by the tree's commit
    step, after paint.
    """

    request_render: Callable[[], None] = _noop
    static: bool = False
    task_errors_fatal: bool = False
    on_fatal: Callable[[BaseException], None] | None = None
    terminal_size: tuple[int, int] = (80, 24)
    effects: list[EffectCell] = field(default_factory=list)
    tasks: list[TaskCell] = field(default_factory=list)
    destroy_list: list[Instance] = field(default_factory=list)
    output: list[tuple[str, str]] = field(default_factory=list)
    ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def next_id(self) -> int:
        return next(self.ids)


class SystemContext:
    """Always at the bottom of the context stack."""

    def __init__(self, request_render: Callable[[], None] = _noop) -> None:
        self._request_render = request_render
        self.should_exit = False

    def exit(self) -> None:
        """Ask the render loop to stop at its next idle point."""
        self.should_exit = True
        self._request_render()


# ---------------------------------------------------------------------------
# Dependency keys
# ---------------------------------------------------------------------------

_SCALARS = (type(None), bool, int, float, complex, str, bytes)


def _same(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    if isinstance(a, _SCALARS):
        return a == b
    if type(a) is tuple:
        return len(a) == len(b) and all(_same(x, y) for x, y in zip(a, b))
    return False


def deps_changed(old: tuple | None, new: Sequence[Any] | None) -> bool:
    """Compare dependency keys element-wise.

    Objects compare by identity; immutable scalars and tuples of them by
    value.  ``None`` on either side counts as changed.
    """
    if old is None or new is None:
        return True
    if len(old) != len(new):
        return True
    return not all(_same(a, b) for a, b in zip(old, new))


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


class StateCell:
    tag = ""

    def destroy(self) -> None:
        pass


class ValueCell(StateCell):
    def __init__(self, tag: str, value: Any) -> None:
        self.tag = tag
        self.value = value


class MemoCell(StateCell):
    tag = "memo"

    def __init__(self) -> None:
        self.value: Any = None
        self.deps: tuple | None = None


class EffectCell(StateCell):
    tag = "effect"

    def __init__(self) -> None:
        self.deps: tuple | None = None
        self.pending: Callable[[], Any] | None = None
        self.cleanup: Callable[[], Any] | None = None
        self.destroyed = False

    def run(self) -> None:
        fn, self.pending = self.pending, None
        if fn is None or self.destroyed:
            return
        self._run_cleanup()
        result = fn()
        self.cleanup = result if callable(result) else None

    def _run_cleanup(self) -> None:
        cleanup, self.cleanup = self.cleanup, None
        if cleanup is not None:
            cleanup()

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        self.pending = None
        self._run_cleanup()


class TaskCell(StateCell):
    """Owns the asyncio tasks spawned by one hook of one instance."""

    tag = "task"

    def __init__(self, ctx: RenderContext, owner: str) -> None:
        self._ctx = ctx
        self._owner = owner
        self.factories: list[Callable[[], Coroutine[Any, Any, Any]]] = []
        self.tasks: set[asyncio.Task] = set()
        self.result: Any = None
        self.done = False
        self.destroyed = False
        self.callback: Any = None

    def schedule(self, factory: Callable[[], Coroutine[Any, Any, Any]]) -> None:
        """Queue *factory* to be started at the next commit."""
        if self._ctx.static or self.destroyed:
            return
        self.factories.append(factory)
        self._ctx.tasks.append(self)

    def start_pending(self) -> None:
        factories, self.factories = self.factories, []
        if self.destroyed or not factories:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running event loop; %s tasks not started", self._owner)
            return
        for factory in factories:
            self.spawn(loop, factory())

    def spawn(self, loop: asyncio.AbstractEventLoop, coro: Coroutine[Any, Any, Any]) -> None:
        task = loop.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self.tasks.discard(task)
        if task.cancelled() or self.destroyed:
            return
        exc = task.exception()
        if exc is not None:
            if self._ctx.task_errors_fatal and self._ctx.on_fatal is not None:
                self._ctx.on_fatal(exc)
                return
            logger.error("task owned by %s failed", self._owner, exc_info=exc)
            return
        self.result = task.result()
        self.done = True
        self._ctx.request_render()

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        self.factories = []
        for task in list(self.tasks):
            task.cancel()


class ContextCell(StateCell):
    tag = "context"


class SubscriptionCell(StateCell):
    tag = "events"

    def __init__(self) -> None:
        self.handler: Callable[[Event], Any] | None = None

    def destroy(self) -> None:
        self.handler = None


# ---------------------------------------------------------------------------
# Handles returned to components
# ---------------------------------------------------------------------------


class State(Generic[T]):
    """Handle to a persistent value; assigning schedules a re-render."""

    def __init__(self, cell: ValueCell, instance: Instance, ctx: RenderContext) -> None:
        self._cell = cell
        self._instance = instance
        self._ctx = ctx

    @property
    def value(self) -> T:
        return self._cell.value

    @value.setter
    def value(self, new: T) -> None:
        self.set(new)

    def set(self, new: T) -> None:
        if self._instance.destroyed:
            return
        if _same(self._cell.value, new):
            return
        self._cell.value = new
        self._ctx.request_render()

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._cell.value))

    def __repr__(self) -> str:
        return f"State({self._cell.value!r})"


class Ref(Generic[T]):
    """Mutable box that survives re-renders without triggering them."""

    def __init__(self, current: T) -> None:
        self.current = current


class ComponentRect:
    """Reads the owning instance's most recently resolved rectangle."""

    def __init__(self, instance: Instance) -> None:
        self._instance = instance

    @property
    def current(self) -> Rect | None:
        return self._instance.rect


class TaskHandle(Generic[T]):
    """Result view of a future started with :meth:`Hooks.use_future`."""

    def __init__(self, cell: TaskCell) -> None:
        self._cell = cell

    @property
    def done(self) -> bool:
        return self._cell.done

    @property
    def result(self) -> T | None:
        return self._cell.result


class OutputHandle:
    """Queues lines to print above the inline region at the next commit."""

    def __init__(self, stream: str, ctx: RenderContext) -> None:
        self._stream = stream
        self._ctx = ctx

    def println(self, message: object) -> None:
        self._ctx.output.append((self._stream, str(message)))
        self._ctx.request_render()


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class Hooks:
    """Cursor over one instance's cells for the duration of one render."""

    def __init__(
        self,
        instance: Instance,
        ctx: RenderContext,
        contexts: tuple[Any, ...],
        children: tuple[Element, ...] = (),
    ) -> None:
        self._instance = instance
        self._ctx = ctx
        self._contexts = contexts
        self._cursor = 0
        self._first = instance.render_count == 0
        self.children = children

    # -- cursor ------------------------------------------------------------

    def _cell(self, tag: str, create: Callable[[], StateCell]) -> Any:
        cells = self._instance.cells
        index = self._cursor
        if index < len(cells):
            cell = cells[index]
            if cell.tag != tag:
                raise HookOrderError(
                    f"{self._instance.kind.name}: hook #{index} was '{cell.tag}' on the "
                    f"previous render but is '{tag}' now"
                )
        elif self._first:
            cell = create()
            cells.append(cell)
        else:
            raise HookOrderError(
                f"{self._instance.kind.name}: more hook calls than on the previous render "
                f"({len(cells)})"
            )
        self._cursor += 1
        return cell

    def finish(self) -> None:
        """Check that this render consumed every cell."""
        if not self._first and self._cursor != len(self._instance.cells):
            raise HookOrderError(
                f"{self._instance.kind.name}: {self._cursor} hook calls, previous render "
                f"made {len(self._instance.cells)}"
            )

    # -- values ------------------------------------------------------------

    def use_state(self, initial: T | Callable[[], T]) -> State[T]:
        """Persistent value; a callable *initial* is invoked on first render only."""
        cell = self._cell("state", lambda: ValueCell("state", initial() if callable(initial) else initial))
        return State(cell, self._instance, self._ctx)

    def use_ref(self, initial: T = None) -> Ref[T]:
        cell = self._cell("ref", lambda: ValueCell("ref", Ref(initial)))
        return cell.value

    def use_memo(self, fn: Callable[[], T], deps: Sequence[Hashable]) -> T:
        cell: MemoCell = self._cell("memo", MemoCell)
        if deps_changed(cell.deps, deps):
            cell.value = fn()
            cell.deps = tuple(deps)
        return cell.value

    def use_const(self, factory: Callable[[], T]) -> T:
        return self.use_memo(factory, ())

    # -- effects -----------------------------------------------------------

    def use_effect(self, fn: Callable[[], Any], deps: Sequence[Hashable] | None = None) -> None:
        """Run *fn* after paint when *deps* changed.

        ``deps=None`` runs after every render, ``()`` once.  A callable
        returned by *fn* is its cleanup, run before the next invocation and
        on unmount.
        """
        cell: EffectCell = self._cell("effect", EffectCell)
        if self._ctx.static:
            return
        if deps is None or deps_changed(cell.deps, deps):
            cell.deps = None if deps is None else tuple(deps)
            cell.pending = fn
            self._ctx.effects.append(cell)

    # -- tasks -------------------------------------------------------------

    def _task_cell(self) -> TaskCell:
        return self._cell("task", lambda: TaskCell(self._ctx, self._instance.kind.name))

    def use_future(self, factory: Callable[[], Coroutine[Any, Any, T]]) -> TaskHandle[T]:
        """Start ``factory()`` once, after the first commit."""
        first = self._first
        cell = self._task_cell()
        if first:
            cell.schedule(factory)
        return TaskHandle(cell)

    def use_interval(self, seconds: float, fn: Callable[[], Any]) -> None:
        """Call *fn* every *seconds* while the instance is mounted."""
        first = self._first
        cell = self._task_cell()
        cell.callback = fn
        if not first:
            return

        async def tick() -> None:
            while True:
                await asyncio.sleep(seconds)
                cell.callback()
                self._ctx.request_render()

        cell.schedule(tick)

    def use_async_handler(
        self, fn: Callable[..., Coroutine[Any, Any, Any]]
    ) -> Callable[..., None]:
        """Wrap *fn* so each call spawns a task owned by this instance."""
        cell = self._task_cell()
        cell.callback = fn

        def handler(*args: Any) -> None:
            if cell.destroyed:
                return
            coro = cell.callback(*args)
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                coro.close()
                return
            cell.spawn(loop, coro)

        return handler

    # -- context -----------------------------------------------------------

    def use_context(self, kind: type[T], default: Any = _MISSING) -> T:
        """Nearest value of type *kind* provided by an ancestor."""
        self._cell("context", ContextCell)
        for value in reversed(self._contexts):
            if isinstance(value, kind):
                return value
        if default is not _MISSING:
            return default
        raise ContextNotFoundError(f"{self._instance.kind.name}: no {kind.__name__} in context")

    def use_system(self) -> SystemContext:
        return self.use_context(SystemContext)

    def use_terminal_size(self) -> tuple[int, int]:
        """``(columns, rows)`` of the viewport."""
        self._cell("context", ContextCell)
        return self._ctx.terminal_size

    def use_terminal_events(self, handler: Callable[[Event], Any]) -> None:
        """Deliver every input event to *handler* while mounted."""
        cell: SubscriptionCell = self._cell("events", SubscriptionCell)
        cell.handler = handler

    # -- output & geometry -------------------------------------------------

    def use_output(self) -> tuple[OutputHandle, OutputHandle]:
        """``(stdout, stderr)`` handles printing above the rendered output."""
        ctx = self._ctx
        cell = self._cell(
            "ref",
            lambda: ValueCell("ref", (OutputHandle("stdout", ctx), OutputHandle("stderr", ctx))),
        )
        return cell.value

    def use_component_rect(self) -> ComponentRect:
        instance = self._instance
        cell = self._cell("ref", lambda: ValueCell("ref", ComponentRect(instance)))
        return cell.value


# ---------------------------------------------------------------------------
# Commit helpers
# ---------------------------------------------------------------------------


def run_effects(ctx: RenderContext) -> None:
    effects, ctx.effects = ctx.effects, []
    for cell in effects:
        cell.run()


def start_tasks(ctx: RenderContext) -> None:
    cells, ctx.tasks = ctx.tasks, []
    for cell in cells:
        cell.start_pending()
