"""The menu event loop."""
from __future__ import annotations

import logging
from typing import Optional

from rexit.animation import AnimationState
from rexit.config import Theme
from rexit.errors import TerminalError
from rexit.keys import KEY_BINDINGS, KeyEvent, KeyEventKind
from rexit.render import render
from rexit.state import MenuState
from rexit.terminal import TerminalBackend

logger = logging.getLogger(__name__)

POLL_TIMEOUT = 0.1


def dispatch_key(state: MenuState, event: KeyEvent) -> None:
    """Apply the transition bound to event's key; unbound keys are ignored.

    Bindings are exact: Alt+q, Ctrl+Up or Shift+Down match nothing.
    """
    if event.modifiers:
        return
    code = event.code
    if code in KEY_BINDINGS["quit"]:
        state.quit()
    elif code in KEY_BINDINGS["down"]:
        state.advance()
    elif code in KEY_BINDINGS["up"]:
        state.retreat()
    elif code in KEY_BINDINGS["select"]:
        logger.info("Confirmed %s", state.selected.value)
        state.confirm()


def run_app(
    backend: TerminalBackend,
    state: MenuState,
    theme: Optional[Theme] = None,
    poll_timeout: float = POLL_TIMEOUT,
    animation: Optional[AnimationState] = None,
) -> None:
    """Draw, wait for a key and dispatch it until state.should_quit is set.

    The poll timeout bounds how long a frame can go without a redraw, so a
    resized terminal is repainted without a separate timer. Errors from
    drawing, polling, reading or confirming end the loop immediately.
    The background animation advances on the same redraws.
    """
    theme = theme or Theme()
    if animation is None:
        animation = AnimationState(theme.animation)
    while True:
        width, height = backend.size()
        animation.update(width, height)
        frame = render(state, width, height, theme, animation)
        try:
            backend.draw(frame)
        except OSError as exc:
            raise TerminalError(f"Failed to draw frame: {exc}") from exc

        if state.should_quit:
            break

        if not backend.poll(poll_timeout):
            continue
        event = backend.read()
        # Some terminals report releases too; act on presses only.
        if isinstance(event, KeyEvent) and event.kind is KeyEventKind.PRESS:
            dispatch_key(state, event)
