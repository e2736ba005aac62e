"""Key decoding for raw terminal input.

``decode`` turns the bytes read from a raw-mode terminal into key and mouse
events. Escape sequences that have not fully arrived yet are handed back as
the remainder so the caller can prepend them to the next read.

Modifier state is kept on the event: ``ESC q`` is Alt+q, ``ESC[1;5A`` is
Ctrl+Up and ``\\x01`` is Ctrl+a. Bindings only ever match unmodified keys.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

ESC = "\x1b"

SHIFT = "shift"
ALT = "alt"
CTRL = "ctrl"
META = "meta"

NO_MODIFIERS: FrozenSet[str] = frozenset()

# Fixed key contract: action -> key codes.
KEY_BINDINGS: Dict[str, Tuple[str, ...]] = {
    "quit": ("esc", "q"),
    "down": ("down", "j"),
    "up": ("up", "k"),
    "select": ("enter",),
}

# Help bar labels, in the order they are displayed.
KEY_LABELS: Dict[str, Tuple[str, ...]] = {
    "up": ("Up", "k"),
    "down": ("Down", "j"),
    "select": ("Enter",),
    "quit": ("Esc", "q"),
}

_ARROWS = {"A": "up", "B": "down", "C": "right", "D": "left", "H": "home", "F": "end"}
_SS3_FUNCTION = {"P": "f1", "Q": "f2", "R": "f3", "S": "f4"}
_TILDE = {
    "1": "home",
    "2": "insert",
    "3": "delete",
    "4": "end",
    "5": "pageup",
    "6": "pagedown",
    "7": "home",
    "8": "end",
    "11": "f1",
    "12": "f2",
    "13": "f3",
    "14": "f4",
    "15": "f5",
    "17": "f6",
    "18": "f7",
    "19": "f8",
    "20": "f9",
    "21": "f10",
    "23": "f11",
    "24": "f12",
}
_CONTROL = {"\r": "enter", "\n": "enter", "\t": "tab", "\x7f": "backspace", "\x08": "backspace"}

# xterm modifier parameter: value - 1 is a bit mask.
_MODIFIER_BITS = ((1, SHIFT), (2, ALT), (4, CTRL), (8, META))

_SGR_MOUSE = re.compile(r"\x1b\[<\d+;\d+;\d+[Mm]")
_CSI = re.compile(r"\x1b\[([0-9;?]*)([\x40-\x7e])")
_SS3 = re.compile(r"\x1bO([A-Za-z])")


class KeyEventKind(enum.Enum):
    PRESS = "press"
    REPEAT = "repeat"
    RELEASE = "release"


@dataclass(frozen=True)
class KeyEvent:
    code: str
    kind: KeyEventKind = KeyEventKind.PRESS
    modifiers: FrozenSet[str] = NO_MODIFIERS


@dataclass(frozen=True)
class MouseEvent:
    raw: str


Event = Union[KeyEvent, MouseEvent]


def _csi_modifiers(params: str) -> FrozenSet[str]:
    parts = params.split(";")
    if len(parts) < 2 or not parts[1].isdigit() or int(parts[1]) < 1:
        return NO_MODIFIERS
    mask = int(parts[1]) - 1
    return frozenset(name for bit, name in _MODIFIER_BITS if mask & bit)


def _plain_key(char: str, modifiers: FrozenSet[str] = NO_MODIFIERS) -> Optional[KeyEvent]:
    """Key event for one unescaped character, or None if it is not a key."""
    if char in _CONTROL:
        return KeyEvent(_CONTROL[char], modifiers=modifiers)
    if "\x01" <= char <= "\x1a":
        return KeyEvent(chr(ord(char) + 0x60), modifiers=modifiers | {CTRL})
    if char.isprintable():
        return KeyEvent(char, modifiers=modifiers)
    return None


def is_partial(text: str) -> bool:
    """True when text is a prefix of an escape sequence that may still grow."""
    if not text.startswith(ESC):
        return False
    if text in (ESC, ESC + "[", ESC + "O"):
        return True
    if text.startswith(ESC + "[M"):
        return len(text) < 6
    if text.startswith(ESC + "["):
        return re.fullmatch(r"\x1b\[<?[0-9;?]*", text) is not None
    return False


def _decode_escape(text: str) -> Tuple[Event | None, int]:
    """Decode one sequence starting at text[0] == ESC; return (event, consumed)."""
    match = _SGR_MOUSE.match(text)
    if match:
        return MouseEvent(match.group(0)), match.end()
    if text.startswith(ESC + "[M") and len(text) >= 6:
        return MouseEvent(text[:6]), 6
    match = _CSI.match(text)
    if match:
        params, final = match.groups()
        if final == "~":
            head, _, rest = params.partition(";")
            name = _TILDE.get(head)
            modifiers = _csi_modifiers(params) if rest else NO_MODIFIERS
        else:
            name = _ARROWS.get(final)
            modifiers = _csi_modifiers(params)
        return (KeyEvent(name, modifiers=modifiers) if name else None), match.end()
    match = _SS3.match(text)
    if match:
        letter = match.group(1)
        name = _ARROWS.get(letter) or _SS3_FUNCTION.get(letter)
        return (KeyEvent(name) if name else None), match.end()
    if len(text) >= 2 and text[1] != ESC:
        # The terminal prefixes Alt+<key> with ESC.
        event = _plain_key(text[1], frozenset({ALT}))
        if event is not None:
            return event, 2
    return KeyEvent("esc"), 1


def _split_utf8_tail(data: bytes) -> Tuple[bytes, bytes]:
    """Split off an incomplete multi-byte UTF-8 character at the end of data."""
    for cut in range(1, min(3, len(data)) + 1):
        byte = data[-cut]
        if byte & 0xC0 == 0x80:
            continue
        if byte >= 0xC0:
            needed = 2 if byte < 0xE0 else 3 if byte < 0xF0 else 4
            if needed > cut:
                return data[:-cut], data[-cut:]
        break
    return data, b""


def ends_with_partial(data: bytes) -> bool:
    """True when data ends inside an escape sequence or a UTF-8 character."""
    complete, tail = _split_utf8_tail(data)
    if tail:
        return True
    text = complete.decode("utf-8", errors="ignore")
    start = text.rfind(ESC)
    return start != -1 and is_partial(text[start:])


def decode(data: bytes, final: bool = False) -> Tuple[List[Event], bytes]:
    """Decode raw input into events plus any undecoded trailing bytes.

    Unless final is set, an escape sequence cut off at the end of data is
    returned undecoded so it can be completed by the next read. With final,
    whatever is there is decoded as-is (a lone ESC becomes the Esc key).
    Bytes that are not keys (unknown sequences, stray control bytes) produce
    no event.
    """
    complete, tail = _split_utf8_tail(data)
    text = complete.decode("utf-8", errors="ignore")
    events: List[Event] = []
    pos = 0
    while pos < len(text):
        rest = text[pos:]
        char = rest[0]
        if char == ESC:
            if not final and is_partial(rest):
                return events, rest.encode("utf-8") + tail
            event, consumed = _decode_escape(rest)
            if event is not None:
                events.append(event)
            pos += consumed
            continue
        # CRLF is a single Enter.
        if char == "\r" and rest[1:2] == "\n":
            pos += 1
        event = _plain_key(char)
        if event is not None:
            events.append(event)
        pos += 1
    return events, tail
