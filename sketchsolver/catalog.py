"""Equations for each supported geometric constraint.

Every builder looks up the variables of the points it constrains and returns
``None`` without registering anything when one of them is unknown to the
registry.  Reference segments (parallel, perpendicular, angle) are read once,
at construction time: their direction becomes a constant of the equation, so
the constraint stays linear in the target segment's coordinates.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from .geometry import CenteredRadial, PointLike, Vec2, delta
from .linear import LinearConstraint, LinearEngine
from .logging_utils import apply_debug_logging
from .refine import NonlinearConstraint, RefinementEngine, VariableGradient
from .registry import PointRegistry

logger = logging.getLogger(__name__)


def horizontal(registry: PointRegistry, engine: LinearEngine, p1: PointLike, p2: PointLike) -> Optional[LinearConstraint]:
    v1, v2 = registry.lookup(p1), registry.lookup(p2)
    if v1 is None or v2 is None:
        return None
    return engine.add_equality(v1.y, v2.y)


def vertical(registry: PointRegistry, engine: LinearEngine, p1: PointLike, p2: PointLike) -> Optional[LinearConstraint]:
    v1, v2 = registry.lookup(p1), registry.lookup(p2)
    if v1 is None or v2 is None:
        return None
    return engine.add_equality(v1.x, v2.x)


def parallel(
    registry: PointRegistry,
    engine: LinearEngine,
    p1: PointLike,
    p2: PointLike,
    ref_p3: PointLike,
    ref_p4: PointLike,
) -> Optional[LinearConstraint]:
    """``(p2 - p1) x (ref_p4 - ref_p3) == 0``.

    A zero-length reference turns this into ``0 == 0``; callers are expected
    to reject such references beforehand.
    """

    v1, v2 = registry.lookup(p1), registry.lookup(p2)
    if v1 is None or v2 is None:
        return None
    ref_dx, ref_dy = delta(ref_p3, ref_p4)
    expr = (v2.y - v1.y) * ref_dx - (v2.x - v1.x) * ref_dy
    return engine.add_equality(expr, 0.0)


def perpendicular(
    registry: PointRegistry,
    engine: LinearEngine,
    p1: PointLike,
    p2: PointLike,
    ref_p3: PointLike,
    ref_p4: PointLike,
) -> Optional[LinearConstraint]:
    """``(p2 - p1) . (ref_p4 - ref_p3) == 0``."""

    v1, v2 = registry.lookup(p1), registry.lookup(p2)
    if v1 is None or v2 is None:
        return None
    ref_dx, ref_dy = delta(ref_p3, ref_p4)
    expr = (v2.y - v1.y) * ref_dy + (v2.x - v1.x) * ref_dx
    return engine.add_equality(expr, 0.0)


def angle(
    registry: PointRegistry,
    engine: LinearEngine,
    p1: PointLike,
    p2: PointLike,
    ref_p3: PointLike,
    ref_p4: PointLike,
    angle_degrees: float,
    epsilon: float = 1e-9,
) -> Optional[LinearConstraint]:
    """Keep ``p1 -> p2`` on the line rotated ``angle_degrees`` from the reference.

    The target segment is forced onto the normal form
    ``-sin(t) * dx + cos(t) * dy == 0``, so ``p1 -> p2`` may also point the
    opposite way (``t + 180``).
    """

    v1, v2 = registry.lookup(p1), registry.lookup(p2)
    if v1 is None or v2 is None:
        return None
    ref_dx, ref_dy = delta(ref_p3, ref_p4)
    if abs(ref_dx) < epsilon and abs(ref_dy) < epsilon:
        logger.debug("Angle constraint rejected: reference segment has zero length")
        return None

    target = math.atan2(ref_dy, ref_dx) + math.radians(angle_degrees)
    expr = (v2.x - v1.x) * -math.sin(target) + (v2.y - v1.y) * math.cos(target)
    return engine.add_equality(expr, 0.0)


def length(
    registry: PointRegistry,
    refiner: RefinementEngine,
    p1: PointLike,
    p2: PointLike,
    target: float,
    epsilon: float = 1e-9,
) -> Optional[NonlinearConstraint]:
    if p1 not in registry or p2 not in registry:
        return None

    def error() -> float:
        return math.hypot(p2.x - p1.x, p2.y - p1.y) - target

    def unit_from(other: PointLike):
        def grad(point: PointLike) -> Vec2:
            dx = point.x - other.x
            dy = point.y - other.y
            current = math.hypot(dx, dy)
            if current < epsilon:
                return 0.0, 0.0
            return dx / current, dy / current

        return grad

    return refiner.add_constraint(
        error,
        [VariableGradient(p1, unit_from(p2)), VariableGradient(p2, unit_from(p1))],
        label=f"length({target:.6g})",
    )


def circle_circle_tangent(
    registry: PointRegistry,
    refiner: RefinementEngine,
    first: CenteredRadial,
    second: CenteredRadial,
    epsilon: float = 1e-9,
) -> Optional[NonlinearConstraint]:
    """External tangency: the centers sit ``r1 + r2`` apart."""

    return length(registry, refiner, first.center, second.center, first.radius + second.radius, epsilon)


def line_circle_tangent(
    registry: PointRegistry,
    refiner: RefinementEngine,
    circle: CenteredRadial,
    p1: PointLike,
    p2: PointLike,
    epsilon: float = 1e-9,
) -> Optional[NonlinearConstraint]:
    """Tangency of the infinite line through ``p1``/``p2`` and a circle.

    With ``n`` the cross-product numerator of the point-to-line distance and
    ``L`` the segment length, the error is ``n**2 - r**2 * L**2``.  It avoids
    the square root and the division of the plain distance.  A zero-length
    segment contributes no error.
    """

    c = circle.center
    if c not in registry or p1 not in registry or p2 not in registry:
        return None
    r_sq = circle.radius * circle.radius

    def numerator() -> float:
        return (p1.y - p2.y) * c.x + (p2.x - p1.x) * c.y + p1.x * p2.y - p2.x * p1.y

    def error() -> float:
        dx = p2.x - p1.x
        dy = p2.y - p1.y
        den_sq = dx * dx + dy * dy
        if den_sq < epsilon:
            return 0.0
        n = numerator()
        return n * n - r_sq * den_sq

    def grad_center(_: PointLike) -> Vec2:
        n = numerator()
        return 2 * n * (p1.y - p2.y), 2 * n * (p2.x - p1.x)

    def grad_start(_: PointLike) -> Vec2:
        n = numerator()
        return (
            2 * n * (p2.y - c.y) + 2 * r_sq * (p2.x - p1.x),
            2 * n * (c.x - p2.x) + 2 * r_sq * (p2.y - p1.y),
        )

    def grad_end(_: PointLike) -> Vec2:
        n = numerator()
        return (
            2 * n * (c.y - p1.y) - 2 * r_sq * (p2.x - p1.x),
            2 * n * (p1.x - c.x) - 2 * r_sq * (p2.y - p1.y),
        )

    return refiner.add_constraint(
        error,
        [VariableGradient(c, grad_center), VariableGradient(p1, grad_start), VariableGradient(p2, grad_end)],
        label=f"tangent(line, r={circle.radius:.6g})",
    )


apply_debug_logging(globals(), logger=logger)
