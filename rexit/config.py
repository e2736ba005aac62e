"""Theme configuration for the menu.

The theme only changes how the menu looks. Actions and key bindings are
fixed and are not read from the file. Every key is optional; missing keys
keep the defaults below.

Example ``~/.config/rexit/config.yaml``::

    title: " power "
    border:
      style: double
    colors:
      border: "#ff8800"
      selected_modifier: [bold, italic]
    layout:
      auto_scale: false
    animation:
      animation_type: snow
      color: white
      density: 30
"""
from __future__ import annotations

import functools
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml
from rich.style import Style

from rexit.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV = "REXIT_CONFIG"

# Names follow the 16-colour ANSI palette: "gray" is palette entry 7 and
# "white" is entry 15.
_NAMED_COLORS: Dict[str, str] = {
    "black": "black",
    "red": "red",
    "green": "green",
    "yellow": "yellow",
    "blue": "blue",
    "magenta": "magenta",
    "cyan": "cyan",
    "gray": "white",
    "grey": "white",
    "darkgray": "bright_black",
    "darkgrey": "bright_black",
    "lightred": "bright_red",
    "lightgreen": "bright_green",
    "lightyellow": "bright_yellow",
    "lightblue": "bright_blue",
    "lightmagenta": "bright_magenta",
    "lightcyan": "bright_cyan",
    "white": "bright_white",
}

_MODIFIERS: Dict[str, str] = {
    "bold": "bold",
    "italic": "italic",
    "underlined": "underline",
    "slowblink": "blink",
    "rapidblink": "blink2",
    "reversed": "reverse",
    "hidden": "conceal",
    "crossedout": "strike",
}


def _known_color(name: str) -> Optional[str]:
    key = str(name).strip().lower()
    if key in _NAMED_COLORS:
        return _NAMED_COLORS[key]
    if key.startswith("#") and len(key) == 7:
        try:
            int(key[1:], 16)
        except ValueError:
            return None
        return key
    return None


def is_color(name: str) -> bool:
    return _known_color(name) is not None


def parse_color(name: str) -> str:
    """Translate a theme colour name or #RRGGBB value to a rich colour."""
    color = _known_color(name)
    if color is None:
        logger.warning("Unknown color %r, using white", name)
        return _NAMED_COLORS["white"]
    return color


def parse_modifiers(names: Iterable[str]) -> Dict[str, bool]:
    """Return rich Style keyword flags for the given modifier names."""
    flags: Dict[str, bool] = {}
    for name in names:
        attr = _MODIFIERS.get(str(name).strip().lower())
        if attr is None:
            logger.debug("Ignoring unknown modifier %r", name)
            continue
        flags[attr] = True
    return flags


@functools.lru_cache(maxsize=256)
def cached_style(color: str, modifiers: Tuple[str, ...] = (), bgcolor: Optional[str] = None) -> Style:
    """Build the rich Style for a colour once; frames reuse it."""
    return Style(
        color=parse_color(color),
        bgcolor=parse_color(bgcolor) if bgcolor else None,
        **parse_modifiers(modifiers),
    )


@dataclass(frozen=True)
class BorderSettings:
    enabled: bool = True
    style: str = "rounded"  # plain, rounded, double, thick


@dataclass(frozen=True)
class Colors:
    foreground: str = "white"
    border: str = "cyan"
    selected_fg: str = "black"
    selected_bg: str = "white"
    selected_modifier: Tuple[str, ...] = ("bold",)
    help_fg: str = "gray"
    help_key_fg: str = "cyan"
    help_key_modifier: Tuple[str, ...] = ("bold",)


@dataclass(frozen=True)
class HelpSettings:
    enabled: bool = True
    separator: str = " | "


@dataclass(frozen=True)
class LayoutSettings:
    # auto_scale sizes the panel to its content; otherwise the margins are
    # percentages of the viewport on each side.
    auto_scale: bool = True
    vertical_margin: int = 30
    horizontal_margin: int = 30
    min_width: int = 30
    min_height: int = 10
    max_width: int = 60  # 0 = unlimited
    padding: int = 1


ANIMATION_TYPES = ("matrix", "rain", "thunder", "snow", "stars", "fireflies", "none")


@dataclass(frozen=True)
class AnimationSettings:
    """Background animation drawn around the menu panel."""

    enabled: bool = True
    animation_type: str = "matrix"  # one of ANIMATION_TYPES
    speed_ms: int = 80  # minimum time between animation steps
    color: str = "green"
    density: int = 50  # 0-100


@dataclass(frozen=True)
class Theme:
    """Resolved appearance settings used by the renderer."""

    title: str = " rexit "
    title_alignment: str = "center"  # left, center, right
    border: BorderSettings = field(default_factory=BorderSettings)
    colors: Colors = field(default_factory=Colors)
    help_text: HelpSettings = field(default_factory=HelpSettings)
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    animation: AnimationSettings = field(default_factory=AnimationSettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Theme":
        base = cls()
        values: Dict[str, Any] = _coerce_fields(base, data, "theme", skip=_SECTIONS)
        for name in _SECTIONS:
            section = data.get(name)
            if section is None:
                continue
            if not isinstance(section, Mapping):
                raise ConfigError(f"[{name}] must be a mapping")
            current = getattr(base, name)
            values[name] = replace(current, **_coerce_fields(current, section, name))
        theme = replace(base, **values)
        _check_values(theme)
        return theme

    @classmethod
    def from_file(cls, path: str | Path) -> "Theme":
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")
        return cls.from_mapping(data)

    def style(self, color: str, modifiers: Iterable[str] = (), bgcolor: Optional[str] = None) -> Style:
        return cached_style(color, tuple(modifiers), bgcolor)


_SECTIONS = ("border", "colors", "help_text", "layout", "animation")


def _coerce_fields(defaults: Any, data: Mapping[str, Any], section: str, skip: Tuple[str, ...] = ()) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for f in fields(defaults):
        if f.name in skip or f.name not in data:
            continue
        value = data[f.name]
        current = getattr(defaults, f.name)
        where = f"{section}.{f.name}"
        if isinstance(current, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"{where} must be true or false")
        elif isinstance(current, int):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"{where} must be a non-negative integer")
        elif isinstance(current, str):
            if not isinstance(value, str):
                raise ConfigError(f"{where} must be a string")
        elif isinstance(current, tuple):
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{where} must be a list of strings")
            value = tuple(value)
        values[f.name] = value
    return values


def _check_values(theme: Theme) -> None:
    """Reject values the renderer could only replace with a fallback."""
    for f in fields(theme.colors):
        value = getattr(theme.colors, f.name)
        if isinstance(value, str) and not is_color(value):
            raise ConfigError(f"colors.{f.name}: unknown color {value!r}")
    animation = theme.animation
    if not is_color(animation.color):
        raise ConfigError(f"animation.color: unknown color {animation.color!r}")
    if animation.animation_type not in ANIMATION_TYPES:
        raise ConfigError(
            f"animation.animation_type must be one of {', '.join(ANIMATION_TYPES)}"
        )
    if animation.density > 100:
        raise ConfigError("animation.density must be between 0 and 100")


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    if env.get(CONFIG_ENV):
        return Path(env[CONFIG_ENV]).expanduser()
    base = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "rexit" / "config.yaml"


def load_theme(path: str | Path | None = None, environ: Optional[Mapping[str, str]] = None) -> Theme:
    """Load the theme file, falling back to defaults on any problem.

    A missing file at the default location is normal and silent; a missing
    file that was asked for explicitly, or a broken one, is logged.
    """
    env = os.environ if environ is None else environ
    explicit = path is not None or bool(env.get(CONFIG_ENV))
    candidate = Path(path) if path is not None else default_config_path(env)
    try:
        found = candidate.exists()
    except OSError as exc:
        logger.warning("Cannot access config file %s: %s; using default theme", candidate, exc)
        return Theme()
    if not found:
        if explicit:
            logger.warning("Config file %s not found, using default theme", candidate)
        return Theme()
    try:
        theme = Theme.from_file(candidate)
    except ConfigError as exc:
        logger.warning("%s; using default theme", exc)
        return Theme()
    logger.debug("Loaded theme from %s", candidate)
    return theme
