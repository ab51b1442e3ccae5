"""Tests for pi.render.loop -- scheduling, termination and the terminal session.

All loops run against a VirtualTerminal and the StackSolver, so only the
scheduler and the output stage are under test here.
"""

from __future__ import annotations

import asyncio
import io

import pytest

from pi.render.components import Fragment, Text
from pi.render.config import RenderOptions
from pi.render.element import component
from pi.render.input import KeyEvent
from pi.render.loop import RenderLoop, print_element, render_to_string, run
from pi.render.tree import Phase

from .stack_solver import StackSolver
from .virtual_terminal import VirtualTerminal


def make_loop(element, term: VirtualTerminal | None = None, **options) -> RenderLoop:
    return RenderLoop(
        element,
        terminal=term or VirtualTerminal(),
        options=RenderOptions(**options),
        solver=StackSolver(),
    )


async def wait_for_cycles(loop: RenderLoop, count: int = 1) -> None:
    for _ in range(200):
        if loop.cycles >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"loop ran {loop.cycles} cycle(s), expected {count}")


@component
def Quitter(hooks, props):
    system = hooks.use_system()
    hooks.use_effect(system.exit, ())
    return Text(content="bye")


@component
def Idle(hooks, props):
    return Text(content="idle")


# ---------------------------------------------------------------------------
# Termination
# ---------------------------------------------------------------------------


class TestTermination:
    """The loop ends on system exit, an empty root, stop() or Ctrl-C."""

    @pytest.mark.asyncio
    async def test_system_exit(self) -> None:
        term = VirtualTerminal()
        loop = make_loop(Quitter(), term)
        await loop.run()
        assert loop.cycles == 1
        assert "bye" in term.output
        assert loop.phase is Phase.TERMINATED

    @pytest.mark.asyncio
    async def test_empty_transparent_root_finishes(self) -> None:
        loop = make_loop(Fragment())
        await loop.run()
        assert loop.cycles == 1

    @pytest.mark.asyncio
    async def test_function_component_rendering_nothing_finishes(self) -> None:
        @component
        def Countdown(hooks, props):
            left = hooks.use_state(2)
            hooks.use_effect(lambda: left.update(lambda n: n - 1), (left.value,))
            if left.value == 0:
                return None
            return Text(content=str(left.value))

        loop = make_loop(Countdown())
        await loop.run()
        assert loop.cycles == 3

    @pytest.mark.asyncio
    async def test_stop_unmounts_and_cancels_tasks(self) -> None:
        log = []

        @component
        def Worker(hooks, props):
            async def forever():
                try:
                    await asyncio.Event().wait()
                finally:
                    log.append("cancelled")

            hooks.use_future(forever)
            hooks.use_effect(lambda: lambda: log.append("cleanup"), ())
            return Text(content="working")

        loop = make_loop(Worker())
        runner = asyncio.create_task(loop.run())
        await wait_for_cycles(loop)
        await asyncio.sleep(0)
        loop.stop()
        await runner
        for _ in range(3):
            await asyncio.sleep(0)
        assert log == ["cleanup", "cancelled"]
        assert loop.phase is Phase.TERMINATED

    @pytest.mark.asyncio
    async def test_ctrl_c_stops(self) -> None:
        cleanups = []

        @component
        def App(hooks, props):
            hooks.use_effect(lambda: lambda: cleanups.append("app"), ())
            return Text(content="running")

        term = VirtualTerminal()
        loop = make_loop(App(), term)
        runner = asyncio.create_task(loop.run())
        await wait_for_cycles(loop)
        term.simulate_key("c", "ctrl")
        await runner
        assert cleanups == ["app"]
        assert term.stop_count == 1

    @pytest.mark.asyncio
    async def test_ignore_ctrl_c_delivers_key(self) -> None:
        received = []

        @component
        def App(hooks, props):
            hooks.use_terminal_events(received.append)
            return Text(content="running")

        term = VirtualTerminal()
        loop = make_loop(App(), term, ignore_ctrl_c=True)
        runner = asyncio.create_task(loop.run())
        await wait_for_cycles(loop)
        term.simulate_key("c", "ctrl")
        await wait_for_cycles(loop, 2)
        assert not runner.done()
        assert received == [KeyEvent("c", frozenset({"ctrl"}))]
        loop.stop()
        await runner


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


class TestScheduling:
    @pytest.mark.asyncio
    async def test_state_updates_coalesce(self) -> None:
        @component
        def Burst(hooks, props):
            count = hooks.use_state(0)
            system = hooks.use_system()

            async def work():
                for i in range(1, 101):
                    count.set(i)
                system.exit()

            hooks.use_future(work)
            return Text(content=f"n={count.value}")

        loop = make_loop(Burst())
        await loop.run()
        assert loop.cycles == 2
        assert loop.screen.previous.to_lines() == ["n=100"]

    @pytest.mark.asyncio
    async def test_input_events_update_state(self) -> None:
        @component
        def Echo(hooks, props):
            typed = hooks.use_state("")
            system = hooks.use_system()

            def on_event(event):
                if not isinstance(event, KeyEvent):
                    return
                if event.matches("q"):
                    system.exit()
                else:
                    typed.update(lambda text: text + event.code)

            hooks.use_terminal_events(on_event)
            return Text(content=typed.value or "-")

        term = VirtualTerminal()
        loop = make_loop(Echo(), term)
        runner = asyncio.create_task(loop.run())
        await wait_for_cycles(loop)
        term.simulate_key("a")
        term.simulate_key("q")
        await runner
        assert loop.cycles == 2
        assert loop.screen.previous.to_lines() == ["a"]

    @pytest.mark.asyncio
    async def test_resize_redraws_with_new_size(self) -> None:
        @component
        def Size(hooks, props):
            columns, rows = hooks.use_terminal_size()
            return Text(content=f"{columns}x{rows}")

        term = VirtualTerminal(rows=10, columns=30)
        loop = make_loop(Size(), term)
        runner = asyncio.create_task(loop.run())
        await wait_for_cycles(loop)
        term.clear_buffer()
        term.simulate_resize(columns=20)
        await wait_for_cycles(loop, 2)
        loop.stop()
        await runner
        assert term.output.startswith("\x1b[2J\x1b[3J\x1b[H20x10")
        assert loop.screen.full_redraw_count == 2


# ---------------------------------------------------------------------------
# Errors and terminal state
# ---------------------------------------------------------------------------


class TestTerminalState:
    @pytest.mark.asyncio
    async def test_fatal_task_error_restores_terminal(self) -> None:
        @component
        def Failing(hooks, props):
            async def explode():
                raise RuntimeError("boom")

            hooks.use_future(explode)
            return Text(content="x")

        term = VirtualTerminal()
        loop = make_loop(Failing(), term, fullscreen=True, task_errors_fatal=True)
        with pytest.raises(RuntimeError, match="boom"):
            await loop.run()
        assert term.stop_count == 1
        assert term.cursor_visible
        assert not term.alternate_screen
        assert loop.phase is Phase.TERMINATED

    @pytest.mark.asyncio
    async def test_probe_timeout_passed_to_terminal(self) -> None:
        term = VirtualTerminal()
        await make_loop(Quitter(), term, probe_timeout=0.25).run()
        assert term.probe_timeouts == [0.25]

    @pytest.mark.asyncio
    async def test_fullscreen_defers_messages(self) -> None:
        @component
        def Announce(hooks, props):
            stdout, _ = hooks.use_output()
            system = hooks.use_system()

            def announce():
                stdout.println("hello")
                system.exit()

            hooks.use_effect(announce, ())
            return Text(content="x")

        term = VirtualTerminal()
        loop = make_loop(Announce(), term, fullscreen=True)
        await loop.run()
        assert term.output.endswith("\x1b[?1049l\x1b[?25hhello\n")

    @pytest.mark.asyncio
    async def test_plain_mode_writes_final_frame_only(self) -> None:
        term = VirtualTerminal(tty=False)
        await make_loop(Quitter(), term).run()
        assert term.output == "bye\n"
        assert term.start_count == 0

    @pytest.mark.asyncio
    async def test_run_entry_point(self) -> None:
        term = VirtualTerminal()
        await run(Quitter(), terminal=term, options=RenderOptions(), solver=StackSolver())
        assert "bye" in term.output
        assert term.stop_count == 1


# ---------------------------------------------------------------------------
# One-shot rendering
# ---------------------------------------------------------------------------


class TestOneShot:
    def test_render_to_string_runs_no_effects(self) -> None:
        ran = []

        @component
        def App(hooks, props):
            hooks.use_effect(lambda: ran.append(1), ())
            return Text(content="static")

        assert render_to_string(App()) == "static\n"
        assert ran == []

    def test_print_element_to_plain_file(self) -> None:
        out = io.StringIO()
        print_element(Idle(), file=out)
        assert out.getvalue() == "idle\n"
