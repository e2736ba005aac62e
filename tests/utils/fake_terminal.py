"""Test helper: scripted TerminalBackend.

FakeTerminal records every backend call in order, replays a script of input
events, and can be told to fail on any named operation:

    term = FakeTerminal(events=[KeyEvent("j"), KeyEvent("enter")])
    term.fail_on("disable_raw_mode", OSError("tcsetattr failed"))

``poll`` returns False when the script holds a ``None`` entry (a timeout),
``read`` returns None for an ``UNDECODED`` entry, and ``poll`` raises if
the script runs dry, so a loop that never quits fails the
test instead of hanging.
"""
from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional, Tuple

from rexit.terminal import TerminalBackend


class ScriptExhausted(AssertionError):
    pass


# Script entry for input that is ready but decodes to no event.
UNDECODED = object()


class FakeTerminal(TerminalBackend):
    def __init__(self, events: Iterable[Any] = (), width: int = 80, height: int = 24):
        self.calls: List[str] = []
        self.frames: List[Any] = []
        self.width = width
        self.height = height
        self._script: Deque[Any] = deque(events)
        self._failures: Dict[str, BaseException] = {}

    def fail_on(self, name: str, error: BaseException) -> "FakeTerminal":
        self._failures[name] = error
        return self

    def _record(self, name: str) -> None:
        self.calls.append(name)
        error = self._failures.get(name)
        if error is not None:
            raise error

    def enable_raw_mode(self) -> None:
        self._record("enable_raw_mode")

    def disable_raw_mode(self) -> None:
        self._record("disable_raw_mode")

    def enter_alternate_screen(self) -> None:
        self._record("enter_alternate_screen")

    def leave_alternate_screen(self) -> None:
        self._record("leave_alternate_screen")

    def enable_mouse_capture(self) -> None:
        self._record("enable_mouse_capture")

    def disable_mouse_capture(self) -> None:
        self._record("disable_mouse_capture")

    def hide_cursor(self) -> None:
        self._record("hide_cursor")

    def show_cursor(self) -> None:
        self._record("show_cursor")

    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def draw(self, renderable) -> None:
        self._record("draw")
        self.frames.append(renderable)

    def poll(self, timeout: float) -> bool:
        self._record("poll")
        if not self._script:
            raise ScriptExhausted("event script exhausted before the loop quit")
        if self._script[0] is None:
            self._script.popleft()
            return False
        return True

    def read(self):
        self._record("read")
        event = self._script.popleft()
        return None if event is UNDECODED else event

    def lifecycle_calls(self) -> List[str]:
        """Calls other than the per-frame draw/poll/read traffic."""
        return [c for c in self.calls if c not in ("draw", "poll", "read")]
