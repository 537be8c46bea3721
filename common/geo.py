from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple
import math
import numpy as np

from common.errors import DegenerateGeometry


# Compass bearings are measured clockwise from this vector.
_NORTH = (0.0, 1.0)


# -------------------------
# Plane vectors
# -------------------------
@dataclass(frozen=True, slots=True)
class Position:
    """
    2-D point / vector in the simulator's map frame (x east, y north).

    Supports + and - with other Positions and scaling by a real number.
    """
    x: float
    y: float

    def __add__(self, other: "Position") -> "Position":
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Position") -> "Position":
        return Position(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> "Position":
        return Position(self.x * k, self.y * k)

    __rmul__ = __mul__

    def __neg__(self) -> "Position":
        return Position(-self.x, -self.y)

    def __iter__(self):
        yield self.x
        yield self.y

    @property
    def r(self) -> float:
        """Vector magnitude."""
        return math.hypot(self.x, self.y)

    def normalize(self) -> "Position":
        """
        Unit vector in the same direction. The zero vector yields NaN components;
        callers must not normalize it.
        """
        r = self.r
        if r == 0.0:
            return Position(float("nan"), float("nan"))
        return Position(self.x / r, self.y / r)

    def heading_to(self, other: "Position") -> float:
        return heading_between(self, other)

    def heading_from(self, other: "Position") -> float:
        return heading_between(other, self)


# -------------------------
# Bearings & distances
# -------------------------
def heading_between(origin: Position, to: Position) -> float:
    """
    Compass bearing from `origin` to `to` in degrees, [0, 360), clockwise from north.

    The arccos against north is two-valued; a negative x component of the
    delta selects the western half (360 - angle).
    """
    if origin == to:
        raise DegenerateGeometry(f"no bearing between coincident points {tuple(origin)}")
    delta = (to - origin).normalize()
    cos_a = float(np.clip(delta.x * _NORTH[0] + delta.y * _NORTH[1], -1.0, 1.0))
    angle = math.degrees(math.acos(cos_a))
    if delta.x < 0:
        return 360.0 - angle
    return angle


def distance(a: Position, b: Position) -> float:
    """Euclidean distance |a - b|."""
    return (a - b).r


def heading_vector(bearing_deg: float) -> Position:
    """Unit vector pointing along a compass bearing."""
    rad = math.radians(bearing_deg)
    return Position(math.sin(rad), math.cos(rad))


def compass_from_math_deg(angle_deg: float) -> float:
    """
    Convert an angle measured counter-clockwise from +x (the simulator's
    vehicle direction) into a compass bearing in [0, 360).
    """
    return (90.0 - angle_deg) % 360.0


def angle_diff_deg(a: float, b: float) -> float:
    """Signed smallest difference a - b, wrapped into [-180, 180)."""
    return (a - b + 180.0) % 360.0 - 180.0


def within_cone(bearing_deg: float, half_width_deg: float, center_deg: float = 0.0) -> bool:
    """True if a bearing lies in [center - half_width, center + half_width)."""
    d = angle_diff_deg(bearing_deg, center_deg)
    return -half_width_deg <= d < half_width_deg


def as_tuple(p: Position) -> Tuple[float, float]:
    return (float(p.x), float(p.y))
