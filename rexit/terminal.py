"""Terminal ownership for the menu session.

``TerminalBackend`` is the set of low-level operations the menu needs from a
terminal. ``ConsoleBackend`` implements it on a POSIX tty with termios for
raw mode and a rich ``Console`` for the alternate screen and drawing.

``TerminalSession`` is the guard around a backend: entering it switches the
terminal into menu mode, leaving it puts everything back, whatever the
reason for leaving.
"""
from __future__ import annotations

import logging
import os
import select
import sys
import termios
import tty
from collections import deque
from typing import Any, Callable, Deque, List, Optional, TextIO, Tuple

from rich.console import Console, RenderableType

from rexit import keys
from rexit.errors import SetupError, TeardownError, TerminalError

logger = logging.getLogger(__name__)

# Wait this long for the rest of an escape sequence before treating a lone
# ESC as the Escape key.
ESC_SEQUENCE_TIMEOUT = 0.025

# X10, button-event, any-event, urxvt and SGR mouse reporting.
ENABLE_MOUSE_CAPTURE = "\x1b[?1000h\x1b[?1002h\x1b[?1003h\x1b[?1015h\x1b[?1006h"
DISABLE_MOUSE_CAPTURE = "\x1b[?1006l\x1b[?1015l\x1b[?1003l\x1b[?1002l\x1b[?1000l"


class TerminalBackend:
    """Interface for the terminal operations used by the session and loop."""

    def enable_raw_mode(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def disable_raw_mode(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def enter_alternate_screen(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def leave_alternate_screen(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def enable_mouse_capture(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def disable_mouse_capture(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def hide_cursor(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def show_cursor(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def size(self) -> Tuple[int, int]:  # pragma: no cover - interface
        """Return (width, height) of the viewport in cells."""
        raise NotImplementedError

    def draw(self, renderable: RenderableType) -> None:  # pragma: no cover - interface
        """Replace the whole screen with renderable."""
        raise NotImplementedError

    def poll(self, timeout: float) -> bool:  # pragma: no cover - interface
        """Wait up to timeout seconds; True if read() will not block."""
        raise NotImplementedError

    def read(self) -> Optional[keys.Event]:  # pragma: no cover - interface
        """Return the next event once poll() said input is ready.

        Returns None when the input read decodes to nothing (an unknown
        escape sequence, for example). Must not block past that read.
        """
        raise NotImplementedError


class ConsoleBackend(TerminalBackend):
    """TerminalBackend for a POSIX terminal on stdin/stdout."""

    def __init__(self, console: Optional[Console] = None, stdin: Optional[TextIO] = None):
        self.console = console or Console(highlight=False)
        self._stdin = stdin or sys.stdin
        self._saved_attrs: Optional[List[Any]] = None
        self._pending: Deque[keys.Event] = deque()
        self._buffer = b""

    def _fd(self) -> int:
        return self._stdin.fileno()

    def enable_raw_mode(self) -> None:
        try:
            fd = self._fd()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setraw(fd)
        except (OSError, ValueError, termios.error) as exc:
            raise SetupError(f"Failed to enable raw mode: {exc}") from exc

    def disable_raw_mode(self) -> None:
        if self._saved_attrs is None:
            return
        try:
            termios.tcsetattr(self._fd(), termios.TCSADRAIN, self._saved_attrs)
        except (OSError, ValueError, termios.error) as exc:
            raise TerminalError(f"Failed to disable raw mode: {exc}") from exc
        self._saved_attrs = None

    def enter_alternate_screen(self) -> None:
        if not self.console.set_alt_screen(True):
            raise SetupError("Failed to enter alternate screen: output is not a terminal")

    def leave_alternate_screen(self) -> None:
        try:
            self.console.set_alt_screen(False)
        except OSError as exc:
            raise TerminalError(f"Failed to leave alternate screen: {exc}") from exc

    def _write(self, sequence: str, what: str) -> None:
        try:
            self.console.file.write(sequence)
            self.console.file.flush()
        except OSError as exc:
            raise TerminalError(f"Failed to {what}: {exc}") from exc

    def enable_mouse_capture(self) -> None:
        self._write(ENABLE_MOUSE_CAPTURE, "enable mouse capture")

    def disable_mouse_capture(self) -> None:
        self._write(DISABLE_MOUSE_CAPTURE, "disable mouse capture")

    def hide_cursor(self) -> None:
        self.console.show_cursor(False)

    def show_cursor(self) -> None:
        try:
            self.console.show_cursor(True)
        except OSError as exc:
            raise TerminalError(f"Failed to show cursor: {exc}") from exc

    def size(self) -> Tuple[int, int]:
        width, height = self.console.size
        return width, height

    def draw(self, renderable: RenderableType) -> None:
        self.console.update_screen(renderable)

    def _readable(self, timeout: float) -> bool:
        ready, _, _ = select.select([self._fd()], [], [], timeout)
        return bool(ready)

    def _fill(self) -> None:
        chunk = os.read(self._fd(), 1024)
        if not chunk:
            raise EOFError("input closed")
        data = self._buffer + chunk
        while keys.ends_with_partial(data) and self._readable(ESC_SEQUENCE_TIMEOUT):
            data += os.read(self._fd(), 1024)
        # Nothing more arrived in time: a lone ESC is the Escape key.
        events, self._buffer = keys.decode(data, final=True)
        self._pending.extend(events)

    def poll(self, timeout: float) -> bool:
        if self._pending:
            return True
        try:
            return self._readable(timeout)
        except (OSError, ValueError) as exc:
            raise TerminalError(f"Failed to poll for input: {exc}") from exc

    def read(self) -> Optional[keys.Event]:
        if not self._pending:
            # One read only: poll() vouched for it, a second one could block.
            try:
                self._fill()
            except (OSError, ValueError, EOFError) as exc:
                raise TerminalError(f"Failed to read input: {exc}") from exc
        if not self._pending:
            return None
        return self._pending.popleft()


class TerminalSession:
    """Guard that owns raw mode, the alternate screen and mouse capture.

    Use it as a context manager around the event loop::

        with TerminalSession(backend):
            run_app(backend, state)

    Acquisition enables raw mode, the alternate screen and mouse capture in
    that order. Release undoes them in the same order, attempts every step
    even after an earlier one failed, and always ends by making the cursor
    visible again.
    """

    def __init__(self, backend: TerminalBackend, stderr: Optional[TextIO] = None):
        self.backend = backend
        self._stderr = stderr
        self._acquired: List[str] = []

    @property
    def active(self) -> bool:
        return bool(self._acquired)

    def _steps(self) -> List[Tuple[str, Callable[[], None], Callable[[], None]]]:
        b = self.backend
        return [
            ("raw mode", b.enable_raw_mode, b.disable_raw_mode),
            ("alternate screen", b.enter_alternate_screen, b.leave_alternate_screen),
            ("mouse capture", b.enable_mouse_capture, b.disable_mouse_capture),
        ]

    def acquire(self) -> "TerminalSession":
        for name, enable, _ in self._steps():
            try:
                enable()
            except Exception as exc:
                failures = self.release()
                message = str(exc) if isinstance(exc, SetupError) else f"Failed to enable {name}: {exc}"
                if failures:
                    message += " (restore also failed: " + "; ".join(failures) + ")"
                raise SetupError(message) from exc
            self._acquired.append(name)
            logger.debug("Enabled %s", name)
        try:
            self.backend.hide_cursor()
        except Exception as exc:
            # A visible cursor is cosmetic; keep the session.
            logger.warning("Failed to hide cursor: %s", exc)
        return self

    def release(self) -> List[str]:
        """Restore the terminal; return a description of every failed step."""
        failures: List[str] = []
        for name, _, disable in self._steps():
            if name not in self._acquired:
                continue
            try:
                disable()
            except Exception as exc:
                failures.append(f"{name}: {exc}")
                logger.error("Failed to restore %s: %s", name, exc)
            else:
                logger.debug("Restored %s", name)
        self._acquired.clear()
        try:
            self.backend.show_cursor()
        except Exception as exc:
            failures.append(f"cursor: {exc}")
            logger.error("Failed to show cursor: %s", exc)
        return failures

    def __enter__(self) -> "TerminalSession":
        return self.acquire()

    def __exit__(self, exc_type, exc, tb) -> bool:
        failures = self.release()
        if failures:
            if exc_type is None:
                raise TeardownError(failures)
            stream = self._stderr or sys.stderr
            for failure in failures:
                print(f"Error: Failed to restore terminal: {failure}", file=stream)
        return False
