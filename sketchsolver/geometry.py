"""Sketch entities consumed by the solver and small 2D vector helpers.

The solver only ever needs two capabilities from the scene model: a mutable
point with ``x``/``y`` attributes, and "something with a center and a
radius" for tangency. Both are expressed as protocols so that scene classes
from the host application can be passed in directly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Tuple, runtime_checkable

Vec2 = Tuple[float, float]


@runtime_checkable
class PointLike(Protocol):
    x: float
    y: float


@runtime_checkable
class CenteredRadial(Protocol):
    """Anything exposing a ``center`` point and a ``radius`` (circles, arcs)."""

    center: PointLike
    radius: float


@runtime_checkable
class SegmentLike(Protocol):
    p1: PointLike
    p2: PointLike


@dataclass(eq=False)
class Point:
    """Mutable 2D point.

    Equality is identity: two points at the same location are still distinct
    solver unknowns.
    """

    x: float = 0.0
    y: float = 0.0


@dataclass(eq=False)
class Segment:
    p1: Point
    p2: Point

    @property
    def length(self) -> float:
        return distance(self.p1, self.p2)


@dataclass(eq=False)
class Circle:
    center: Point
    radius: float


@dataclass(eq=False)
class Arc:
    """Circular arc; angles in radians, counter-clockwise from ``start_angle``."""

    center: Point
    radius: float
    start_angle: float = 0.0
    end_angle: float = math.pi


def delta(a: PointLike, b: PointLike) -> Vec2:
    return b.x - a.x, b.y - a.y


def distance(a: PointLike, b: PointLike) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def line_distance(point: PointLike, a: PointLike, b: PointLike) -> float:
    """Perpendicular distance from ``point`` to the infinite line through ``a`` and ``b``."""

    dx, dy = delta(a, b)
    length = math.hypot(dx, dy)
    if length <= 1e-12:
        return distance(point, a)
    return abs(dx * (point.y - a.y) - dy * (point.x - a.x)) / length
