"""Input decoding: raw terminal input to discrete events.

Stdin data can arrive in partial chunks, especially for escape sequences
like mouse reports.  :class:`InputDecoder` buffers incomplete sequences and
only turns complete ones into events.  Whatever is still incomplete when
:meth:`InputDecoder.flush` runs is dropped, except a lone ``ESC`` which is
the Escape key.  Unrecognised sequences are dropped as well; malformed input
never reaches a component.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Literal, Union

logger = logging.getLogger(__name__)

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

KeyKind = Literal["press", "repeat", "release"]

# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """A key press, repeat or release.

    ``code`` is either the character produced (``"a"``, ``"?"``) or a key
    name such as ``"enter"``, ``"up"``, ``"page_down"`` or ``"f5"``.
    """

    code: str
    modifiers: frozenset[str] = frozenset()
    kind: KeyKind = "press"

    @property
    def ctrl(self) -> bool:
        return "ctrl" in self.modifiers

    @property
    def alt(self) -> bool:
        return "alt" in self.modifiers

    @property
    def shift(self) -> bool:
        return "shift" in self.modifiers

    def matches(self, key_id: str) -> bool:
        """Match a ``"ctrl+shift+x"`` style identifier (press or repeat only)."""
        if self.kind == "release":
            return False
        *mods, code = key_id.lower().split("+")
        return code == self.code.lower() and frozenset(mods) == self.modifiers


MouseKind = Literal["press", "release", "drag", "move", "scroll_up", "scroll_down"]


@dataclass(frozen=True)
class MouseEvent:
    """SGR mouse report; ``column`` and ``row`` are zero-based."""

    kind: MouseKind
    button: Literal["left", "middle", "right", "none"]
    column: int
    row: int
    modifiers: frozenset[str] = frozenset()


@dataclass(frozen=True)
class PasteEvent:
    text: str


@dataclass(frozen=True)
class ResizeEvent:
    columns: int
    rows: int


@dataclass(frozen=True)
class KeyboardEnhancementReport:
    """Reply to the kitty keyboard protocol query; consumed by the terminal."""

    flags: int


Event = Union[KeyEvent, MouseEvent, PasteEvent, ResizeEvent]

# ---------------------------------------------------------------------------
# Sequence completeness
# ---------------------------------------------------------------------------

_SGR_MOUSE_RE = re.compile(r"^\x1b\[<(\d+);(\d+);(\d+)([Mm])$")


def _sequence_status(data: str) -> str:
    """Return ``"complete"``, ``"incomplete"`` or ``"not-escape"``."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]
    if after_esc[0] == "[":
        if after_esc.startswith("[M"):
            # X10 mouse: ESC [ M plus three bytes
            return "complete" if len(data) >= 6 else "incomplete"
        if len(data) < 3:
            return "incomplete"
        if 0x40 <= ord(data[-1]) <= 0x7E:
            return "complete"
        return "incomplete"
    if after_esc[0] in "]P_":
        if data.endswith(f"{ESC}\\") or (after_esc[0] == "]" and data.endswith("\x07")):
            return "complete"
        return "incomplete"
    if after_esc[0] == "O":
        return "complete" if len(after_esc) >= 2 else "incomplete"
    return "complete"


def _split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences and an incomplete remainder."""
    sequences: list[str] = []
    pos = 0
    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue
        end = pos + 1
        while True:
            if end > len(buffer):
                return sequences, buffer[pos:]
            status = _sequence_status(buffer[pos:end])
            if status == "incomplete":
                end += 1
                continue
            sequences.append(buffer[pos:end])
            pos = end
            break
    return sequences, ""


# ---------------------------------------------------------------------------
# Sequence decoding
# ---------------------------------------------------------------------------

_KITTY_CSI_U_RE = re.compile(r"^\x1b\[(\d+)(?::(\d*)(?::(\d+))?)?(?:;(\d*)(?::(\d+))?)?(?:;[\d:]*)?u$")
_KITTY_REPORT_RE = re.compile(r"^\x1b\[\?(\d+)u$")
_CSI_LETTER_RE = re.compile(r"^\x1b\[(?:1;(\d+)(?::(\d+))?)?([ABCDHFPQRS])$")
_CSI_TILDE_RE = re.compile(r"^\x1b\[(\d+)(?:;(\d+)(?::(\d+))?)?~$")
_SS3_RE = re.compile(r"^\x1bO(\d?)([ABCDHFPQRS])$")
_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")

_LETTER_KEYS = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

_TILDE_KEYS = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "page_up",
    6: "page_down",
    7: "home",
    8: "end",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

_CODEPOINT_KEYS = {
    9: "tab",
    13: "enter",
    27: "escape",
    32: "space",
    127: "backspace",
    57414: "enter",
}
_CODEPOINT_KEYS.update({57364 + i: f"f{i + 1}" for i in range(12)})

_EVENT_KINDS: dict[int, KeyKind] = {1: "press", 2: "repeat", 3: "release"}

# Caps lock and num lock bits are not modifiers
_LOCK_MASK = 64 + 128


def _modifiers(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    bits = (int(raw) - 1) & ~_LOCK_MASK
    mods = set()
    if bits & 1:
        mods.add("shift")
    if bits & 2:
        mods.add("alt")
    if bits & 4:
        mods.add("ctrl")
    if bits & 8:
        mods.add("super")
    return frozenset(mods)


def _kind(raw: str | None) -> KeyKind:
    if not raw:
        return "press"
    return _EVENT_KINDS.get(int(raw), "press")


def _char_key(ch: str, modifiers: frozenset[str] = frozenset()) -> KeyEvent | None:
    if ch in ("\r", "\n"):
        return KeyEvent("enter", modifiers)
    if ch == "\t":
        return KeyEvent("tab", modifiers)
    if ch in ("\x7f", "\x08"):
        return KeyEvent("backspace", modifiers)
    if ch == " ":
        return KeyEvent("space", modifiers)
    if ch == ESC:
        return KeyEvent("escape", modifiers)
    if ch == "\x00":
        return KeyEvent("space", modifiers | {"ctrl"})
    code = ord(ch)
    if 1 <= code <= 26:
        return KeyEvent(chr(code + ord("a") - 1), modifiers | {"ctrl"})
    if ch.isprintable():
        return KeyEvent(ch, modifiers)
    return None


def _decode_mouse(match: re.Match[str]) -> MouseEvent:
    code, col, row, final = int(match.group(1)), int(match.group(2)), int(match.group(3)), match.group(4)
    mods = set()
    if code & 4:
        mods.add("shift")
    if code & 8:
        mods.add("alt")
    if code & 16:
        mods.add("ctrl")
    buttons = ("left", "middle", "right", "none")
    button = buttons[code & 3]
    kind: MouseKind
    if code & 64:
        kind = "scroll_down" if code & 1 else "scroll_up"
        button = "none"
    elif code & 32:
        kind = "move" if button == "none" else "drag"
    else:
        kind = "release" if final == "m" else "press"
    return MouseEvent(kind, button, max(0, col - 1), max(0, row - 1), frozenset(mods))


def decode_sequence(seq: str) -> KeyEvent | MouseEvent | KeyboardEnhancementReport | None:
    """Decode one complete sequence; ``None`` if it is not recognised."""
    if not seq:
        return None
    if len(seq) == 1:
        return _char_key(seq)

    if seq == "\x1b[Z":
        return KeyEvent("tab", frozenset({"shift"}))

    m = _SGR_MOUSE_RE.match(seq)
    if m:
        return _decode_mouse(m)

    m = _KITTY_REPORT_RE.match(seq)
    if m:
        return KeyboardEnhancementReport(int(m.group(1)))

    m = _KITTY_CSI_U_RE.match(seq)
    if m:
        cp = int(m.group(1))
        mods = _modifiers(m.group(4))
        kind = _kind(m.group(5))
        name = _CODEPOINT_KEYS.get(cp)
        if name is not None:
            return KeyEvent(name, mods, kind)
        ch = chr(cp)
        if not ch.isprintable():
            return None
        return KeyEvent(ch, mods, kind)

    m = _MODIFY_OTHER_KEYS_RE.match(seq)
    if m:
        return _char_key(chr(int(m.group(2))), _modifiers(m.group(1)))

    m = _CSI_LETTER_RE.match(seq)
    if m:
        return KeyEvent(_LETTER_KEYS[m.group(3)], _modifiers(m.group(1)), _kind(m.group(2)))

    m = _CSI_TILDE_RE.match(seq)
    if m:
        name = _TILDE_KEYS.get(int(m.group(1)))
        if name is None:
            return None
        return KeyEvent(name, _modifiers(m.group(2)), _kind(m.group(3)))

    m = _SS3_RE.match(seq)
    if m:
        return KeyEvent(_LETTER_KEYS[m.group(2)], _modifiers(m.group(1)))

    # Alt + key: ESC prefix on a single character
    if len(seq) == 2 and seq[0] == ESC:
        key = _char_key(seq[1])
        if key is None:
            return None
        mods = key.modifiers | {"alt"}
        code = key.code
        if len(code) == 1 and code.isupper():
            code = code.lower()
            mods = mods | {"shift"}
        return KeyEvent(code, mods)

    return None


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

DecodedEvent = Union[Event, KeyboardEnhancementReport]


class InputDecoder:
    """Buffers raw input and decodes complete sequences into events."""

    def __init__(self) -> None:
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""

    @property
    def pending(self) -> bool:
        """Whether an incomplete sequence is waiting for more input."""
        return bool(self._buffer)

    def _decode_all(self, sequences: list[str], out: list[DecodedEvent]) -> None:
        for seq in sequences:
            event = decode_sequence(seq)
            if event is None:
                logger.debug("dropping unrecognised input %r", seq)
                continue
            out.append(event)

    def feed(self, data: str) -> list[DecodedEvent]:
        """Add *data* and return the events it completes."""
        events: list[DecodedEvent] = []
        self._feed(data, events)
        return events

    def _feed(self, data: str, events: list[DecodedEvent]) -> None:
        if self._paste_mode:
            self._paste_buffer += data
            end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
            if end_index == -1:
                return
            pasted = self._paste_buffer[:end_index]
            remaining = self._paste_buffer[end_index + len(BRACKETED_PASTE_END):]
            self._paste_mode = False
            self._paste_buffer = ""
            events.append(PasteEvent(pasted))
            if remaining:
                self._feed(remaining, events)
            return

        self._buffer += data
        start_index = self._buffer.find(BRACKETED_PASTE_START)
        if start_index != -1:
            before, _ = _split_sequences(self._buffer[:start_index])
            self._decode_all(before, events)
            rest = self._buffer[start_index + len(BRACKETED_PASTE_START):]
            self._buffer = ""
            self._paste_mode = True
            self._paste_buffer = ""
            self._feed(rest, events)
            return

        sequences, self._buffer = _split_sequences(self._buffer)
        self._decode_all(sequences, events)

    def flush(self) -> list[DecodedEvent]:
        """Resolve input left pending after the escape timeout.

        A lone ``ESC`` is the Escape key; any other partial sequence is
        dropped.
        """
        buffer, self._buffer = self._buffer, ""
        if buffer == ESC:
            return [KeyEvent("escape")]
        if buffer:
            logger.debug("dropping incomplete input %r", buffer)
        return []

    def clear(self) -> None:
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""
