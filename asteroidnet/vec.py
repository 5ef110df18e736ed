"""Two-dimensional vectors and angle helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass


def lerp(a: float, b: float, t: float) -> float:
    """Linearly interpolate from ``a`` to ``b``, clamping ``t`` to [0, 1]."""
    if t <= 0:
        return a
    if t >= 1:
        return b
    return a + (b - a) * t


def rlerp(a: float, b: float, t: float) -> float:
    """Interpolate between two angles along the shorter arc."""
    x = lerp(math.cos(a), math.cos(b), t)
    y = lerp(math.sin(a), math.sin(b), t)
    return math.atan2(y, x)


def wrap_angle(angle: float) -> float:
    """Wrap an angle into the range [-pi, pi)."""
    wrapped = math.fmod(angle + math.pi, 2 * math.pi)
    if wrapped < 0:
        wrapped += 2 * math.pi
    return wrapped - math.pi


@dataclass(frozen=True, slots=True)
class Vec2:
    """An immutable two-dimensional vector."""

    x: float = 0.0
    y: float = 0.0

    def lerp(self, other: Vec2, t: float) -> Vec2:
        return Vec2(lerp(self.x, other.x, t), lerp(self.y, other.y, t))

    def add(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def sub(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def mul(self, factor: float) -> Vec2:
        return Vec2(self.x * factor, self.y * factor)

    def rotate(self, rotation: float) -> Vec2:
        cos = math.cos(rotation)
        sin = math.sin(rotation)
        # The y component is computed from the already rotated x component.
        x = cos * self.x - sin * self.y
        y = sin * x + cos * self.y
        return Vec2(x, y)

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def normalize(self) -> Vec2:
        if self.x == 0 and self.y == 0:
            return self
        length = self.magnitude()
        return Vec2(self.x / length, self.y / length)

    def __add__(self, other: Vec2) -> Vec2:
        return self.add(other)

    def __sub__(self, other: Vec2) -> Vec2:
        return self.sub(other)

    def __mul__(self, factor: float) -> Vec2:
        return self.mul(factor)


def head_vec2(angle: float) -> Vec2:
    """Return the unit vector pointing in direction ``angle``."""
    return Vec2(math.cos(angle), math.sin(angle))