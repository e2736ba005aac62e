"""Menu selection state and its transitions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

from rexit import actions as registry
from rexit.actions import Action


@dataclass
class MenuState:
    """Ordered actions, the highlighted row and the termination flag.

    ``selected_index`` always stays within ``[0, len(actions))``; every
    navigation step wraps modulo the number of actions. ``should_quit``
    only ever goes from False to True.
    """

    actions: Sequence[Action] = field(default_factory=registry.all_actions)
    selected_index: int = 0
    should_quit: bool = False
    execute: Callable[[Action], None] = field(default=registry.execute, repr=False)

    def __post_init__(self) -> None:
        self.actions = tuple(self.actions)
        if not self.actions:
            raise ValueError("MenuState needs at least one action")
        if not 0 <= self.selected_index < len(self.actions):
            raise ValueError(
                f"selected_index {self.selected_index} out of range for {len(self.actions)} actions"
            )

    @property
    def selected(self) -> Action:
        return self.actions[self.selected_index]

    def advance(self) -> None:
        self.selected_index = (self.selected_index + 1) % len(self.actions)

    def retreat(self) -> None:
        self.selected_index = (self.selected_index - 1 + len(self.actions)) % len(self.actions)

    def quit(self) -> None:
        self.should_quit = True

    def confirm(self) -> None:
        """Execute the highlighted action and end the session.

        The session ends even when the spawn fails; the ExecError is still
        raised to the caller afterwards.
        """
        try:
            self.execute(self.selected)
        finally:
            self.should_quit = True
