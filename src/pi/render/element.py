"""Elements, props and component kinds.

An :class:`Element` is the immutable, per-render description of one node of
the desired UI.  Elements are built by calling a component kind::

    Box(
        Text(content="hello"),
        Text(content="world", color="green"),
        flex_direction="column",
        key="greeting",
    )

Positional arguments are children; keyword arguments are validated against
the kind's :class:`Props` model.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ConfigDict, ValidationError

from pi.render.errors import PropsError, RenderOutputError, ReservedPropError

if TYPE_CHECKING:
    from pi.render.canvas import CanvasView
    from pi.render.hooks import Hooks
    from pi.render.layout import AvailableWidth, LayoutStyle
    from pi.render.reconciler import Instance

RESERVED_PROPS = frozenset({"key", "children"})


class Props(BaseModel):
    """Base class for the closed property record of one component kind."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        reserved = RESERVED_PROPS.intersection(cls.model_fields)
        if reserved:
            raise ReservedPropError(
                f"{cls.__name__} declares reserved prop name(s): {', '.join(sorted(reserved))}"
            )


class NoProps(Props):
    """Props of a kind that accepts no properties."""


@dataclass(frozen=True, eq=False)
class Element:
    """Immutable description of one node: kind, props, children and key."""

    kind: Component
    props: Props
    children: tuple[Element, ...] = ()
    key: Hashable | None = None

    @property
    def name(self) -> str:
        return self.kind.name

    def __repr__(self) -> str:
        key = f" key={self.key!r}" if self.key is not None else ""
        return f"<Element {self.kind.name}{key} children={len(self.children)}>"


class Component:
    """A component kind.

    Subclasses override :meth:`render` to produce child elements and, for
    kinds that own a box, :meth:`layout_style`, :meth:`measure` and
    :meth:`draw`.  A kind is used through a single shared object; kind
    identity is object identity.
    """

    props_type: type[Props] = NoProps
    transparent: bool = False
    name: str = ""

    def __init__(self) -> None:
        if not self.name:
            self.name = type(self).__name__

    def __call__(self, *children: Any, key: Hashable | None = None, **props: Any) -> Element:
        if "children" in props:
            raise ReservedPropError(f"{self.name}: pass children positionally, not as children=")
        return Element(self, self.make_props(props), normalize_children(children), key)

    def __repr__(self) -> str:
        return f"<{self.name} component>"

    def make_props(self, values: dict[str, Any]) -> Props:
        try:
            return self.props_type(**values)
        except ValidationError as exc:
            raise PropsError(f"invalid props for {self.name}: {exc}") from exc

    # -- per-kind behaviour ----------------------------------------------------

    def render(self, hooks: Hooks, props: Props) -> Any:
        """Return the elements to reconcile as this instance's children."""
        return hooks.children

    def layout_style(self, props: Props) -> LayoutStyle | None:
        """Solver style for this kind's box; ``None`` means the defaults."""
        return None

    def measure(
        self,
        props: Props,
        known_width: int | None,
        available_width: AvailableWidth,
    ) -> tuple[int, int] | None:
        """Intrinsic ``(width, height)`` of a leaf, or ``None`` for containers."""
        return None

    def draw(self, props: Props, view: CanvasView, instance: Instance) -> None:
        """Paint this instance's own content into *view* (its resolved box)."""


class FunctionComponent(Component):
    """A transparent kind backed by a render function ``fn(hooks, props)``."""

    transparent = True

    def __init__(self, fn: Callable[[Hooks, Props], Any], props_type: type[Props] | None = None) -> None:
        self.fn = fn
        self.props_type = props_type or NoProps
        self.name = getattr(fn, "__name__", "") or "FunctionComponent"
        self.__doc__ = fn.__doc__
        super().__init__()

    def render(self, hooks: Hooks, props: Props) -> Any:
        return self.fn(hooks, props)


def component(
    fn: Callable[[Hooks, Props], Any] | None = None,
    *,
    props: type[Props] | None = None,
) -> Any:
    """Decorator turning a render function into a component kind.

    Usable bare (``@component``) or with a props model
    (``@component(props=CounterProps)``).
    """

    def wrap(f: Callable[[Hooks, Props], Any]) -> FunctionComponent:
        return FunctionComponent(f, props)

    if fn is not None:
        return wrap(fn)
    return wrap


def _flatten(value: Any, out: list[Element]) -> None:
    if value is None:
        return
    if isinstance(value, Element):
        out.append(value)
        return
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise RenderOutputError(
            f"expected an Element, an iterable of Elements or None, got {type(value).__name__}"
        )
    for item in value:
        _flatten(item, out)


def normalize_children(output: Any) -> tuple[Element, ...]:
    """Flatten render output into a tuple of elements, dropping ``None``."""
    result: list[Element] = []
    _flatten(output, result)
    return tuple(result)
