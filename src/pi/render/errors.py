"""Exception hierarchy for the render engine.

Contract violations are programmer errors: the tree's invariants no longer
hold, so they propagate out of the render loop immediately.  Environment
errors come from the terminal layer and are raised after the terminal has
been restored.
"""

from __future__ import annotations


class RenderError(Exception):
    """Base class for every error raised by ``pi.render``."""


# ---------------------------------------------------------------------------
# Programmer-contract violations
# ---------------------------------------------------------------------------


class ContractViolation(RenderError):
    """A component broke one of the engine's usage rules."""


class HookOrderError(ContractViolation):
    """The sequence of hook calls changed between two renders of an instance."""


class DuplicateKeyError(ContractViolation):
    """Two sibling elements share the same key."""


class ReservedPropError(ContractViolation):
    """A props model or builder call used a reserved property name."""


class PropsError(ContractViolation):
    """Properties failed validation for their component kind."""


class RenderOutputError(ContractViolation):
    """A render function returned something that is not an element tree."""


class ContextNotFoundError(ContractViolation):
    """``use_context`` found no provider for the requested type."""


# ---------------------------------------------------------------------------
# Environment errors
# ---------------------------------------------------------------------------


class TerminalError(RenderError):
    """Querying or writing to the terminal failed."""
