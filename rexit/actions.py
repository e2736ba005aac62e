"""Power and session actions offered by the menu.

The set is closed: every ``Action`` member has an entry in ``_ACTIONS`` and
the lookups below are total.
"""
from __future__ import annotations

import enum
import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from rexit import spawn
from rexit.errors import ExecError

logger = logging.getLogger(__name__)


class Action(enum.Enum):
    SHUTDOWN = "shutdown"
    REBOOT = "reboot"
    SUSPEND = "suspend"
    LOCK = "lock"
    LOGOUT = "logout"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ActionSpec:
    """Display metadata and command line for one action."""

    label: str
    icon: str
    argv: Optional[Tuple[str, ...]] = None  # None = no-op


_ACTIONS: Dict[Action, ActionSpec] = {
    Action.SHUTDOWN: ActionSpec("Shutdown", "⏻", ("systemctl", "poweroff")),
    Action.REBOOT: ActionSpec("Reboot", "↻", ("systemctl", "reboot")),
    Action.SUSPEND: ActionSpec("Suspend", "⏾", ("systemctl", "suspend")),
    Action.LOCK: ActionSpec("Lock", "\U0001f512", ("hyprlock",)),
    Action.LOGOUT: ActionSpec("Logout", "⇥", ("hyprctl", "dispatch", "exit")),
    Action.CANCEL: ActionSpec("Cancel", "✕"),
}


def all_actions() -> Tuple[Action, ...]:
    """Return every action in presentation order."""
    return tuple(Action)


def label(action: Action) -> str:
    return _ACTIONS[action].label


def icon(action: Action) -> str:
    return _ACTIONS[action].icon


def display_text(action: Action) -> str:
    spec = _ACTIONS[action]
    return f"{spec.icon} {spec.label}"


def invocation(action: Action) -> Optional[Tuple[str, ...]]:
    """Return the argv spawned for action, or None if it does nothing."""
    return _ACTIONS[action].argv


def execute(action: Action) -> None:
    """Request the external command for action without waiting for it.

    Raises ExecError when the process cannot be spawned at all (missing
    binary, permission denied, resource exhaustion). The command's own exit
    status is never observed.
    """
    argv = invocation(action)
    if argv is None:
        logger.debug("%s is a no-op", action.value)
        return
    try:
        spawn.spawn(argv)
    except (OSError, subprocess.SubprocessError) as exc:
        raise ExecError(argv, exc) from exc
    logger.info("Spawned %s for %s", " ".join(argv), action.value)
