"""rexit command line entry point.

Parses the (metadata-only) command line, sets up logging, loads the theme,
and runs the menu inside a terminal session. Every error is reported as a
single ``Error: ...`` line on stderr with a non-zero exit status.
"""
from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from typing import Iterable, Optional

from rich.console import Console
from rich.text import Text

from rexit import __author__, __version__
from rexit.app import run_app
from rexit.config import load_theme
from rexit.errors import RexitError
from rexit.state import MenuState
from rexit.terminal import ConsoleBackend, TerminalBackend, TerminalSession

logger = logging.getLogger(__name__)

LOG_FILE_ENV = "REXIT_LOG_FILE"
LOG_LEVEL_ENV = "REXIT_LOG_LEVEL"

DESCRIPTION = "A rice-ready TUI power menu for Linux, optimized for Hyprland"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rexit",
        description=DESCRIPTION,
        epilog=(
            f"Author: {__author__}. Keys: Up/k and Down/j to move, Enter to run the "
            "selected action, Esc/q to quit. The theme is read from "
            "$REXIT_CONFIG or ~/.config/rexit/config.yaml."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(environ: Optional[dict] = None) -> None:
    """Configure root logging from REXIT_LOG_LEVEL and REXIT_LOG_FILE.

    Logging to a file keeps messages out of the menu while it is on screen.
    """
    env = os.environ if environ is None else environ
    level_name = str(env.get(LOG_LEVEL_ENV) or "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    kwargs = {}
    if env.get(LOG_FILE_ENV):
        kwargs["filename"] = env[LOG_FILE_ENV]
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        **kwargs,
    )


def _install_signal_handlers() -> None:
    # Turn termination signals into SystemExit so the terminal session is
    # released on the way out.
    def handler(signum, frame):
        raise SystemExit(128 + signum)

    signal.signal(signal.SIGTERM, handler)
    signal.signal(signal.SIGHUP, handler)


def run(backend: TerminalBackend, state: MenuState, theme=None) -> None:
    """Run the menu with the terminal owned by a TerminalSession."""
    with TerminalSession(backend):
        run_app(backend, state, theme)


def main(argv: Iterable[str] | None = None, backend: Optional[TerminalBackend] = None) -> int:
    parser = build_parser()
    parser.parse_args(list(argv) if argv is not None else None)

    configure_logging()
    err_console = Console(stderr=True, highlight=False)

    theme = load_theme()
    state = MenuState()
    if backend is None:
        _install_signal_handlers()
        backend = ConsoleBackend()

    try:
        run(backend, state, theme)
    except RexitError as exc:
        logger.debug("Menu failed", exc_info=True)
        err_console.print(Text(f"Error: {exc}"), soft_wrap=True)
        return 1
    except Exception as exc:
        logger.exception("Unexpected error")
        err_console.print(Text(f"Error: {exc}"), soft_wrap=True)
        return 1
    logger.debug("Menu closed with %s highlighted", state.selected.value)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
