"""Style vocabulary: colours, text attributes, borders and SGR encoding.

Colours are plain values so they can live inside validated props models:

* a name such as ``"red"``, ``"bright_blue"`` or ``"reset"``
* a ``"#rrggbb"`` hex string (24-bit colour)
* an ``int`` in ``0..255`` (256-colour palette index)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Annotated, Literal, Union

from pydantic import AfterValidator

# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------

_NAMED_COLORS: dict[str, int] = {
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "white": 37,
    "grey": 90,
    "bright_black": 90,
    "bright_red": 91,
    "bright_green": 92,
    "bright_yellow": 93,
    "bright_blue": 94,
    "bright_magenta": 95,
    "bright_cyan": 96,
    "bright_white": 97,
}

_HEX_RE = re.compile(r"^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")


def check_color(value: str | int) -> str | int:
    """Validate a colour value, returning it unchanged.

    Raises ``ValueError`` for unknown names, malformed hex strings and
    palette indices outside ``0..255``.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid colour: {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= 255:
            raise ValueError(f"palette index out of range: {value}")
        return value
    if value == "reset" or value in _NAMED_COLORS or _HEX_RE.match(value):
        return value
    raise ValueError(f"unknown colour: {value!r}")


Color = Annotated[Union[str, int], AfterValidator(check_color)]


def _color_params(color: str | int, background: bool) -> str:
    if isinstance(color, int):
        return f"{48 if background else 38};5;{color}"
    if color == "reset":
        return "49" if background else "39"
    m = _HEX_RE.match(color)
    if m is not None:
        r, g, b = (int(part, 16) for part in m.groups())
        return f"{48 if background else 38};2;{r};{g};{b}"
    code = _NAMED_COLORS[color]
    return str(code + 10 if background else code)


# ---------------------------------------------------------------------------
# Text attributes
# ---------------------------------------------------------------------------

Weight = Literal["normal", "bold", "light"]
TextAlign = Literal["left", "center", "right"]
TextWrap = Literal["wrap", "nowrap"]
TextDecoration = Literal["none", "underline"]
Edge = Literal["top", "right", "bottom", "left"]

ALL_EDGES: frozenset[str] = frozenset({"top", "right", "bottom", "left"})


@dataclass(frozen=True)
class CellStyle:
    """Visual attributes of one grid cell."""

    color: str | int | None = None
    background: str | int | None = None
    weight: str = "normal"
    underline: bool = False
    italic: bool = False


PLAIN = CellStyle()


def sgr_for(style: CellStyle) -> str:
    """Return the SGR sequence that switches the terminal to *style*.

    The sequence always starts with a reset so the result does not depend
    on whatever attributes were active before.
    """
    params = ["0"]
    if style.weight == "bold":
        params.append("1")
    elif style.weight == "light":
        params.append("2")
    if style.italic:
        params.append("3")
    if style.underline:
        params.append("4")
    if style.color is not None:
        params.append(_color_params(style.color, background=False))
    if style.background is not None:
        params.append(_color_params(style.background, background=True))
    return f"\x1b[{';'.join(params)}m"


SGR_RESET = "\x1b[0m"

# ---------------------------------------------------------------------------
# Borders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BorderCharacters:
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    left: str
    right: str
    top: str
    bottom: str


BorderStyleName = Literal[
    "none",
    "single",
    "double",
    "round",
    "bold",
    "double_left_right",
    "double_top_bottom",
    "classic",
]

BORDER_CHARACTERS: dict[str, BorderCharacters] = {
    "single": BorderCharacters("┌", "┐", "└", "┘", "│", "│", "─", "─"),
    "double": BorderCharacters("╔", "╗", "╚", "╝", "║", "║", "═", "═"),
    "round": BorderCharacters("╭", "╮", "╰", "╯", "│", "│", "─", "─"),
    "bold": BorderCharacters("┏", "┓", "┗", "┛", "┃", "┃", "━", "━"),
    "double_left_right": BorderCharacters("╓", "╖", "╙", "╜", "║", "║", "─", "─"),
    "double_top_bottom": BorderCharacters("╒", "╕", "╘", "╛", "│", "│", "═", "═"),
    "classic": BorderCharacters("+", "+", "+", "+", "|", "|", "-", "-"),
}


def border_characters(
    border_style: str | BorderCharacters,
) -> BorderCharacters | None:
    """Resolve a border style name (or custom set) to its characters."""
    if isinstance(border_style, BorderCharacters):
        return border_style
    if border_style == "none":
        return None
    return BORDER_CHARACTERS[border_style]
