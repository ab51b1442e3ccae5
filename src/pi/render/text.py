"""Text measurement and wrapping.

Provides grapheme-cluster width measurement, visible-width calculation and
a word-wrapping algorithm that breaks at whitespace, falls back to grapheme
boundaries for runs that cannot fit on a line, and honours explicit line
breaks.  Wrapping is a pure function of ``(text, width)``.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

import grapheme
import wcwidth as _wcwidth

T = TypeVar("T")

# CSI, OSC 8 and APC sequences never occupy cells
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?]*[A-Za-z]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

_TAB = "   "

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------


def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Rules:
    1. Zero-width characters (control, combining marks, etc.) -> 0
    2. Emoji (multi-codepoint, contains VS16 U+FE0F, ZWJ sequences, etc.) -> 2
    3. Otherwise delegate to wcwidth for the first meaningful codepoint.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp == 0xFE0F:  # VS16
            return 2
        if cp == 0x200D:  # ZWJ
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF:  # skin tone modifiers
            return 2
        if 0x1F1E6 <= cp <= 0x1F1FF:  # regional indicators
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000:
        return 2
    if 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0

    return max(_wcwidth.wcwidth(g[0]), 0)


def strip_ansi(text: str) -> str:
    """Remove escape sequences that do not occupy terminal cells."""
    if "\x1b" not in text:
        return text
    return _STRIP_RE.sub("", text)


def split_graphemes(text: str) -> list[str]:
    """Split *text* into grapheme clusters, dropping escape sequences."""
    return list(grapheme.graphemes(strip_ansi(text).replace("\t", _TAB)))


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    Escape sequences are ignored, tabs count as three columns and pure
    printable-ASCII strings take a fast path.  Other results are cached.
    """
    if not text:
        return 0

    stripped = strip_ansi(text).replace("\t", _TAB)
    if not stripped:
        return 0

    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


def truncate_to_width(text: str, max_width: int) -> str:
    """Return the longest grapheme prefix of *text* within *max_width* columns."""
    if max_width <= 0:
        return ""
    result: list[str] = []
    cols = 0
    for g in split_graphemes(text):
        w = grapheme_width(g)
        if cols + w > max_width:
            break
        result.append(g)
        cols += w
    return "".join(result)


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Unit(Generic[T]):
    """One grapheme cluster tagged with the style of the run it came from."""

    text: str
    width: int
    tag: T

    @property
    def is_space(self) -> bool:
        return self.text.isspace()


def _rstrip(units: list[Unit[T]]) -> list[Unit[T]]:
    end = len(units)
    while end > 0 and units[end - 1].is_space:
        end -= 1
    return units[:end]


def _has_content(units: list[Unit[T]]) -> bool:
    return any(not u.is_space for u in units)


def _wrap_units(units: Sequence[Unit[T]], width: int) -> list[list[Unit[T]]]:
    """Greedy word wrap of one physical line of units."""
    lines: list[list[Unit[T]]] = []
    current: list[Unit[T]] = []
    current_w = 0

    def flush() -> None:
        nonlocal current, current_w
        if _has_content(current):
            lines.append(_rstrip(current))
        current = []
        current_w = 0

    i = 0
    n = len(units)
    while i < n:
        is_space = units[i].is_space
        j = i
        while j < n and units[j].is_space == is_space:
            j += 1
        token = list(units[i:j])
        token_w = sum(u.width for u in token)
        i = j

        if is_space:
            if current_w + token_w <= width:
                current.extend(token)
                current_w += token_w
            else:
                # the whitespace run is consumed by the line break
                flush()
            continue

        if current_w + token_w <= width:
            current.extend(token)
            current_w += token_w
            continue

        if token_w <= width:
            flush()
            current = token
            current_w = token_w
            continue

        # Unbreakable run wider than the line: split at grapheme boundaries
        flush()
        for unit in token:
            if current and current_w + unit.width > width:
                lines.append(current)
                current = []
                current_w = 0
            current.append(unit)
            current_w += unit.width

    if _has_content(current) or not lines:
        lines.append(_rstrip(current))
    return lines


def _to_units(text: str, tag: T) -> list[Unit[T]]:
    return [Unit(g, grapheme_width(g), tag) for g in split_graphemes(text)]


def wrap_segments(
    segments: Sequence[tuple[str, T]],
    width: int | None,
    wrap: str = "wrap",
) -> list[list[tuple[str, T]]]:
    """Wrap styled ``(text, tag)`` runs as one paragraph.

    Returns one list of runs per output line; adjacent graphemes sharing a
    tag are merged back into a single run.  ``width=None`` or
    ``wrap="nowrap"`` only splits at explicit newlines.
    """
    physical: list[list[Unit[T]]] = [[]]
    for text, tag in segments:
        parts = text.split("\n")
        for idx, part in enumerate(parts):
            if idx > 0:
                physical.append([])
            physical[-1].extend(_to_units(part, tag))

    result: list[list[tuple[str, T]]] = []
    for line_units in physical:
        if wrap == "nowrap" or width is None:
            wrapped = [_rstrip(line_units)]
        else:
            wrapped = _wrap_units(line_units, max(1, width))
        for units in wrapped:
            result.append(_merge_runs(units))
    return result


def _merge_runs(units: list[Unit[T]]) -> list[tuple[str, T]]:
    runs: list[tuple[str, T]] = []
    for unit in units:
        if runs and runs[-1][1] is unit.tag:
            runs[-1] = (runs[-1][0] + unit.text, unit.tag)
        else:
            runs.append((unit.text, unit.tag))
    return runs


def wrap_text(text: str, width: int | None, wrap: str = "wrap") -> list[str]:
    """Wrap plain *text* to *width* columns.

    >>> wrap_text("a wrapping example", 10)
    ['a wrapping', 'example']
    """
    return [
        "".join(run for run, _ in line)
        for line in wrap_segments([(text, None)], width, wrap)
    ]


def min_content_width(text: str) -> int:
    """Width of the widest unbreakable run in *text*."""
    widest = 0
    for line in text.split("\n"):
        for word in line.split():
            widest = max(widest, visible_width(word))
    return widest


def align_offset(line_width: int, width: int, align: str) -> int:
    """Column at which a line of *line_width* starts inside *width* columns."""
    if align == "right":
        return max(0, width - line_width)
    if align == "center":
        return max(0, (width - line_width) // 2)
    return 0
