"""Render loop options, with overrides read from ``PI_RENDER_*`` variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

_DEFAULT_PROBE_TIMEOUT = 0.1


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    return value == "1"


@dataclass
class RenderOptions:
    """Controls how :func:`pi.render.loop.run` drives the terminal."""

    fullscreen: bool = False
    ignore_ctrl_c: bool = False
    # None -> use the terminal's own capability report
    synchronized_update: bool | None = None
    probe_timeout: float = _DEFAULT_PROBE_TIMEOUT
    task_errors_fatal: bool = False
    write_log: str = ""

    @classmethod
    def from_env(cls, **overrides: object) -> RenderOptions:
        """Build options from the environment; keyword *overrides* win."""
        options = cls()

        fullscreen = _env_flag("PI_RENDER_FULLSCREEN")
        if fullscreen is not None:
            options.fullscreen = fullscreen

        ignore_ctrl_c = _env_flag("PI_RENDER_IGNORE_CTRL_C")
        if ignore_ctrl_c is not None:
            options.ignore_ctrl_c = ignore_ctrl_c

        options.synchronized_update = _env_flag("PI_RENDER_SYNC_UPDATE")

        timeout = os.environ.get("PI_RENDER_PROBE_TIMEOUT")
        if timeout:
            try:
                options.probe_timeout = max(0.0, float(timeout))
            except ValueError:
                pass

        fatal = _env_flag("PI_RENDER_TASK_ERRORS_FATAL")
        if fatal is not None:
            options.task_errors_fatal = fatal

        options.write_log = os.environ.get("PI_RENDER_WRITE_LOG", "")

        for name, value in overrides.items():
            if not hasattr(options, name):
                raise TypeError(f"unknown render option: {name}")
            setattr(options, name, value)
        return options
