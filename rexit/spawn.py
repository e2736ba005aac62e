"""Central, test-injectable process spawner used by the action registry.

This module exposes:
- spawn(argv): start argv through the current spawner and return immediately
- set_spawner(spawner): set a custom spawner for tests (callable taking argv)
- reset_spawner(): restore the default

The default spawner starts the program in its own session with stdin
detached, so it survives the terminal that launched the menu. Nothing waits
for the child; its exit status is never observed.
"""
from __future__ import annotations

import subprocess
from typing import Callable, Sequence


def _detached_popen(argv: Sequence[str]) -> subprocess.Popen:
    return subprocess.Popen(list(argv), stdin=subprocess.DEVNULL, start_new_session=True)


_spawner: Callable = _detached_popen


def spawn(argv: Sequence[str]):
    """Request that argv be started; returns whatever the spawner returns."""
    return _spawner(argv)


def set_spawner(spawner: Callable):
    """Set custom spawner for tests.

    spawner: callable(argv) -> any; raise OSError to simulate a failed spawn
    """
    global _spawner
    _spawner = spawner


def reset_spawner():
    """Reset spawner to the detached subprocess.Popen default."""
    global _spawner
    _spawner = _detached_popen
