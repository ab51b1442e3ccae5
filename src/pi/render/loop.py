"""Render loop: schedule cycles and drive the terminal.

A single :class:`RenderLoop` is the only code that mutates the instance
tree.  Everything else (state setters, finished tasks, input events, timers)
calls :meth:`RenderLoop.request_render`, which only raises a pending flag.
The loop suspends only while idle, so any number of triggers arriving during
a cycle collapse into one more cycle.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, TextIO

from pi.render.config import RenderOptions
from pi.render.element import Element
from pi.render.hooks import RenderContext
from pi.render.input import Event, KeyEvent, ResizeEvent
from pi.render.screen import Screen, ScreenMode
from pi.render.solver import GeometrySolver
from pi.render.terminal import ProcessTerminal, Terminal, session
from pi.render.tree import Phase, Tree

logger = logging.getLogger(__name__)

__all__ = [
    "Phase",
    "RenderLoop",
    "print_element",
    "render_to_string",
    "run",
    "run_sync",
]


class RenderLoop:
    """Drives render, reconcile, layout, paint and commit for one tree."""

    def __init__(
        self,
        element: Element,
        *,
        terminal: Terminal | None = None,
        options: RenderOptions | None = None,
        solver: GeometrySolver | None = None,
    ) -> None:
        self.options = options or RenderOptions.from_env()
        self.terminal: Terminal = terminal or ProcessTerminal(
            synchronized_update=self.options.synchronized_update,
            write_log=self.options.write_log,
        )
        self.ctx = RenderContext(
            request_render=self.request_render,
            task_errors_fatal=self.options.task_errors_fatal,
            on_fatal=self._on_fatal,
        )
        self.tree = Tree(element, self.ctx, solver)
        self.screen: Screen | None = None
        self.cycles = 0
        self._pending = False
        self._stop_requested = False
        self._fatal: BaseException | None = None
        self._wake = asyncio.Event()

    @property
    def phase(self) -> Phase:
        return self.tree.phase

    # -- triggers ---------------------------------------------------------------

    def request_render(self) -> None:
        """Schedule a cycle; repeated calls before it runs coalesce."""
        self._pending = True
        self._wake.set()

    def stop(self) -> None:
        """Stop at the next idle point, unmounting the whole tree."""
        self._stop_requested = True
        self._wake.set()

    def _on_fatal(self, exc: BaseException) -> None:
        if self._fatal is None:
            self._fatal = exc
        self._wake.set()

    def _on_event(self, event: Event) -> None:
        if isinstance(event, ResizeEvent):
            if self.screen is not None:
                self.screen.invalidate()
            self.request_render()
        elif (
            isinstance(event, KeyEvent)
            and event.matches("ctrl+c")
            and not self.options.ignore_ctrl_c
        ):
            logger.debug("ctrl+c received, stopping")
            self.stop()
            return
        self.tree.dispatch(event)
        self.request_render()

    # -- running ----------------------------------------------------------------

    def _mode(self) -> ScreenMode:
        if not self.terminal.is_tty:
            return "plain"
        return "fullscreen" if self.options.fullscreen else "inline"

    async def run(self) -> None:
        """Render until the root finishes, :meth:`stop` is called or Ctrl-C.

        The terminal is restored before any error propagates.
        """
        mode = self._mode()
        self.screen = Screen(self.terminal, mode)
        if mode == "plain":
            await self._drive(self.screen)
            return

        with session(self.terminal, self._on_event, fullscreen=mode == "fullscreen"):
            await self.terminal.probe_keyboard_enhancement(self.options.probe_timeout)
            await self._drive(self.screen)
        self.screen.print_deferred()

    async def _drive(self, screen: Screen) -> None:
        self._pending = True
        try:
            while True:
                if self._fatal is not None:
                    raise self._fatal
                if self._stop_requested:
                    break
                if not self._pending:
                    self._wake.clear()
                    await self._wake.wait()
                    continue
                self._pending = False
                self._cycle(screen)
                if self.tree.finished:
                    if self.ctx.output:
                        # printed by effects of the last commit
                        self._cycle(screen)
                    break
        finally:
            self.tree.unmount()
            screen.finish()

    def _cycle(self, screen: Screen) -> None:
        columns, rows = self.terminal.columns, self.terminal.rows
        self.ctx.terminal_size = (columns, rows)
        height = rows if screen.mode == "fullscreen" else None
        canvas = self.tree.render(columns, height)
        screen.commit(canvas, self.tree.take_output())
        self.tree.commit()
        self.cycles += 1


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def render_to_string(element: Element, width: int | None = None) -> str:
    """Render *element* once, without effects or tasks, to plain text."""
    tree = Tree(element, RenderContext(static=True))
    try:
        canvas = tree.render(width)
    finally:
        tree.unmount()
    return str(canvas)


def print_element(element: Element, file: TextIO | None = None) -> None:
    """Render *element* once to *file*, styled when it is a terminal."""
    file = file or sys.stdout
    terminal = ProcessTerminal(stdout=file)
    tree = Tree(element, RenderContext(static=True))
    try:
        canvas = tree.render(terminal.columns)
    finally:
        tree.unmount()
    if file.isatty():
        canvas.write_ansi(file)
    else:
        file.write(str(canvas))
        file.flush()


async def run(
    element: Element,
    *,
    fullscreen: bool | None = None,
    terminal: Terminal | None = None,
    options: RenderOptions | None = None,
    solver: GeometrySolver | None = None,
) -> None:
    """Run the render loop for *element* until it finishes."""
    options = options or RenderOptions.from_env()
    if fullscreen is not None:
        options.fullscreen = fullscreen
    await RenderLoop(element, terminal=terminal, options=options, solver=solver).run()


def run_sync(element: Element, **kwargs: Any) -> None:
    """Blocking wrapper around :func:`run`."""
    asyncio.run(run(element, **kwargs))
