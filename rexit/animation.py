"""Background animations drawn around the menu panel.

``AnimationState`` owns the particles of one animation type. The event loop
calls ``update`` before every frame; it advances the particles at most once
per ``speed_ms`` and sizes them to the viewport. ``cells`` is what the
renderer paints and never changes the state, so rendering stays pure.

Types: matrix (falling glyph columns with trails), rain, thunder (random
flashes and bolts), snow, stars (twinkling) and fireflies (drifting,
pulsing dots). ``none`` or ``enabled: false`` draws nothing.
"""
from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from rexit.config import ANIMATION_TYPES, AnimationSettings

logger = logging.getLogger(__name__)

MATRIX_CHARS = "ｱｲｳｴｵｶｷｸｹｺｻｼｽｾｿﾀﾁﾂﾃﾄ0123456789THEMATRIXﾊﾋﾌﾍﾎﾏﾐﾑﾒﾓ"
MATRIX_TRAIL = 5

FLASH_COLOR = "#f0f0ff"
GLOW_COLOR = "#1e1e28"

# (x, y) -> (glyph, colour)
Cells = Dict[Tuple[int, int], Tuple[str, str]]


@dataclass
class Particle:
    x: float
    y: float
    speed: float = 0.0
    dx: float = 0.0
    dy: float = 0.0
    size: int = 1  # rain drop length, snow flake size
    brightness: int = 255
    twinkle: float = 0.0
    phase: float = 0.0
    glyph: int = 0  # index into MATRIX_CHARS


def _hex(r: int, g: int, b: int) -> str:
    return "#%02x%02x%02x" % tuple(max(0, min(255, int(c))) for c in (r, g, b))


def _tint(base: str, intensity: int, table: Dict[str, Tuple[float, float, float]]) -> str:
    """Scale base's channel weights by intensity; other colours stay as they are."""
    weights = table.get(base.lower())
    if weights is None:
        return base
    return _hex(*(intensity * w for w in weights))


_MATRIX_TINT = {"green": (0, 1, 0), "blue": (0, 0, 1), "cyan": (0, 1, 1)}
_STAR_TINT = {"yellow": (1, 1, 0.5), "white": (1, 1, 1)}
_SNOW_TINT = {"white": (1, 1, 1)}


@dataclass
class AnimationState:
    """Particle state for the configured background animation."""

    settings: AnimationSettings = field(default_factory=AnimationSettings)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    rng: random.Random = field(default_factory=random.Random, repr=False)
    tick: int = 0
    particles: List[Particle] = field(default_factory=list)
    flash: int = 0
    bolt: List[Tuple[int, int, str]] = field(default_factory=list)
    glow: Optional[Tuple[int, int]] = None

    def __post_init__(self) -> None:
        self._last_update = float(self.clock())

    @property
    def kind(self) -> str:
        return self.settings.animation_type

    @property
    def active(self) -> bool:
        return self.settings.enabled and self.kind != "none" and self.kind in ANIMATION_TYPES

    def update(self, width: int, height: int) -> bool:
        """Advance one step if speed_ms has passed; True when it did."""
        if not self.active or width <= 0 or height <= 0:
            return False
        now = float(self.clock())
        if (now - self._last_update) * 1000 < self.settings.speed_ms:
            return False
        self._last_update = now
        self.tick += 1
        if not self.particles and self.settings.density > 0 and self.kind != "thunder":
            self.particles = [self._spawn(width, height) for _ in range(self._target(width, height))]
            logger.debug("Started %s animation with %d particles", self.kind, len(self.particles))
        getattr(self, "_step_" + self.kind)(width, height)
        return True

    def _target(self, width: int, height: int) -> int:
        density = self.settings.density
        if self.kind == "matrix":
            return max(1, width * density // 100)
        if self.kind == "rain":
            return max(5, width * density // 10)
        if self.kind == "snow":
            return max(10, width * height * density // 500)
        if self.kind == "stars":
            return max(5, width * height * density // 300)
        if self.kind == "fireflies":
            return max(3, width * height * density // 800)
        return 0

    def _spawn(self, width: int, height: int) -> Particle:
        rng = self.rng
        if self.kind == "matrix":
            return Particle(
                x=rng.randrange(width),
                y=rng.uniform(0, height),
                speed=rng.uniform(0.2, 1.5),
                glyph=rng.randrange(len(MATRIX_CHARS)),
            )
        if self.kind == "rain":
            return Particle(
                x=rng.randrange(width),
                y=rng.uniform(0, height),
                speed=rng.uniform(0.5, 2.5),
                size=rng.randint(2, 5),
            )
        if self.kind == "snow":
            return Particle(
                x=rng.uniform(0, width),
                y=rng.uniform(0, height),
                speed=rng.uniform(0.1, 0.5),
                size=rng.randint(1, 2),
            )
        if self.kind == "stars":
            return Particle(
                x=rng.randrange(width),
                y=rng.randrange(height),
                brightness=rng.randint(50, 254),
                twinkle=rng.uniform(0.05, 0.2),
                phase=rng.uniform(0, 2 * math.pi),
            )
        return Particle(
            x=rng.uniform(1, max(1, width - 2)),
            y=rng.uniform(1, max(1, height - 2)),
            dx=rng.uniform(-0.3, 0.3),
            dy=rng.uniform(-0.3, 0.3),
            brightness=rng.randint(100, 254),
        )

    def _top_up(self, width: int, height: int, **overrides) -> None:
        while len(self.particles) < self._target(width, height):
            particle = self._spawn(width, height)
            for name, value in overrides.items():
                setattr(particle, name, value() if callable(value) else value)
            self.particles.append(particle)

    def _step_matrix(self, width: int, height: int) -> None:
        rng = self.rng
        for p in self.particles:
            p.y += p.speed
            if p.y >= height:
                p.y = 0.0
                p.x = rng.randrange(width)
                p.speed = rng.uniform(0.2, 1.5)
            if self.tick % 3 == 0:
                p.glyph = rng.randrange(len(MATRIX_CHARS))
        self._top_up(width, height, y=0.0)

    def _step_rain(self, width: int, height: int) -> None:
        for p in self.particles:
            p.y += p.speed
            if p.y >= height + p.size:
                p.y = -float(p.size)
                p.x = self.rng.randrange(width)
        self._top_up(width, height, y=lambda: self.rng.uniform(-10, 0))

    def _step_thunder(self, width: int, height: int) -> None:
        rng = self.rng
        if self.flash > 0:
            self.flash -= 1
        elif rng.random() < 0.02:
            self.flash = rng.randint(2, 4)

        self.bolt = []
        if self.flash > 2:
            x = rng.randrange(5, width - 5) if width > 10 else width // 2
            for y in range(height):
                self.bolt.append((x, y, "│" if rng.random() < 0.5 else "╱"))
                if rng.random() < 0.3:
                    x = min(x + 1, width - 1)
                elif rng.random() < 0.3:
                    x = max(x - 1, 0)
        self.glow = None
        if self.flash == 0 and rng.random() < 0.05:
            self.glow = (rng.randrange(width), rng.randrange(max(1, height - 5)))

    def _step_snow(self, width: int, height: int) -> None:
        rng = self.rng
        for p in self.particles:
            p.y += p.speed
            p.x += rng.uniform(-0.3, 0.3)
            if p.y >= height:
                p.y = 0.0
                p.x = rng.uniform(0, width)
            if p.x < 0:
                p.x = width - 1.0
            elif p.x >= width:
                p.x = 0.0
        self._top_up(width, height)

    def _step_stars(self, width: int, height: int) -> None:
        for p in self.particles:
            twinkle = math.sin(self.tick * p.twinkle + p.phase)
            p.brightness = int((twinkle + 1.0) * 100.0 + 50.0)
        if self.tick % 60 == 0 and self.particles and self.rng.random() < 0.1:
            if len(self.particles) < self._target(width, height):
                self.particles.append(self._spawn(width, height))

    def _step_fireflies(self, width: int, height: int) -> None:
        hi_x = max(1.0, width - 2.0)
        hi_y = max(1.0, height - 2.0)
        pulse = math.sin(self.tick * 0.1)
        for p in self.particles:
            p.x += p.dx
            p.y += p.dy
            if p.x <= 1.0 or p.x >= hi_x:
                p.dx = -p.dx
                p.x = min(max(p.x, 1.0), hi_x)
            if p.y <= 1.0 or p.y >= hi_y:
                p.dy = -p.dy
                p.y = min(max(p.y, 1.0), hi_y)
            p.brightness = int((pulse + 1.0) * 75.0 + 50.0)

    def cells(self, width: int, height: int) -> Cells:
        """Glyphs to paint this frame, clipped to width x height."""
        if not self.active:
            return {}
        color = self.settings.color
        out: Cells = {}

        def put(x: float, y: float, glyph: str, tint: str) -> None:
            col, row = int(x), int(y)
            if 0 <= col < width and 0 <= row < height:
                out[(col, row)] = (glyph, tint)

        if self.kind == "matrix":
            for p in self.particles:
                for i in range(1, MATRIX_TRAIL + 1):
                    put(p.x, int(p.y) - i, "│", _tint(color, (MATRIX_TRAIL - i) * 40 + 20, _MATRIX_TINT))
            for p in self.particles:
                intensity = max(100, int(p.y / max(height, 1) * 255))
                put(p.x, p.y, MATRIX_CHARS[p.glyph], _tint(color, intensity, _MATRIX_TINT))
        elif self.kind == "rain":
            for p in self.particles:
                intensity = min(255, 100 + int(p.speed * 50))
                tint = {
                    "blue": _hex(100, 100, intensity),
                    "cyan": _hex(100, intensity, intensity),
                    "white": _hex(intensity, intensity, intensity + 50),
                }.get(color.lower(), color)
                put(p.x, p.y, "│" if p.speed > 1.5 else "┆", tint)
        elif self.kind == "thunder":
            for x, y, glyph in self.bolt:
                put(x, y, glyph, FLASH_COLOR)
            if self.glow is not None:
                put(self.glow[0], self.glow[1], "░", GLOW_COLOR)
        elif self.kind == "snow":
            for p in self.particles:
                glyph = {1: "·", 2: "•"}.get(p.size, "*")
                put(p.x, p.y, glyph, _tint(color, 150 + p.size * 30, _SNOW_TINT))
        elif self.kind == "stars":
            for p in self.particles:
                glyph = "★" if p.brightness > 200 else "☆"
                put(p.x, p.y, glyph, _tint(color, p.brightness, _STAR_TINT))
        elif self.kind == "fireflies":
            for p in self.particles:
                i = p.brightness
                tint = {"yellow": _hex(i, i, 0), "green": _hex(0, i, 0)}.get(color.lower(), _hex(i, i, i // 2))
                put(p.x, p.y, "●", tint)
        return out
