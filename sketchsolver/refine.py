"""Iterative refinement of non-linear constraints over point coordinates.

Each constraint is an error function that is zero when satisfied plus, for
every point it involves, a function returning the partial derivatives of the
error with respect to that point's ``x`` and ``y``.  Error functions close over
the points themselves, so refinement mutates the host application's point
objects in place.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
from scipy.optimize import least_squares

from .geometry import PointLike, Vec2
from .logging_utils import apply_debug_logging

logger = logging.getLogger(__name__)

ErrorFunc = Callable[[], float]
GradientFunc = Callable[[PointLike], Vec2]

REFINEMENT_METHODS = ("gradient", "least_squares")


@dataclass(eq=False)
class VariableGradient:
    point: PointLike
    grad: GradientFunc


@dataclass(eq=False)
class NonlinearConstraint:
    error: ErrorFunc
    gradients: List[VariableGradient] = field(default_factory=list)
    label: str = "nonlinear"


@dataclass
class RefinementResult:
    method: str
    iterations: int
    total_error: float
    converged: bool


class RefinementEngine:
    """Drives registered error functions towards zero.

    ``"gradient"`` performs fixed-step sweeps: each constraint whose error is
    above ``tolerance`` moves every involved point by
    ``-learning_rate * error * gradient``.  Points are moved one after another,
    so later gradients of the same constraint see the earlier moves.
    ``"least_squares"`` hands the same errors and gradients to
    ``scipy.optimize.least_squares``.  Both stop after ``iterations`` steps
    whether or not they converged.
    """

    def __init__(
        self,
        iterations: int = 50,
        learning_rate: float = 0.1,
        tolerance: float = 1e-6,
        method: str = "gradient",
    ) -> None:
        if method not in REFINEMENT_METHODS:
            raise ValueError(f"unknown refinement method '{method}'")
        self.iterations = iterations
        self.learning_rate = learning_rate
        self.tolerance = tolerance
        self.method = method
        self._constraints: List[NonlinearConstraint] = []

    @property
    def constraint_count(self) -> int:
        return len(self._constraints)

    def add_constraint(
        self,
        error_func: ErrorFunc,
        gradients: Sequence[VariableGradient],
        label: Optional[str] = None,
    ) -> NonlinearConstraint:
        constraint = NonlinearConstraint(error_func, list(gradients), label or f"nonlinear#{len(self._constraints)}")
        self._constraints.append(constraint)
        return constraint

    def clear(self) -> None:
        self._constraints = []

    def total_error(self) -> float:
        return float(sum(abs(constraint.error()) for constraint in self._constraints))

    def solve(self) -> RefinementResult:
        if not self._constraints:
            return RefinementResult(self.method, 0, 0.0, True)
        if self.method == "least_squares":
            return self._solve_least_squares()
        return self._solve_gradient()

    def _involved_points(self) -> List[PointLike]:
        seen: Dict[int, PointLike] = {}
        for constraint in self._constraints:
            for var in constraint.gradients:
                seen.setdefault(id(var.point), var.point)
        return list(seen.values())

    @staticmethod
    def _restore(points: Sequence[PointLike], coords: Sequence[Vec2]) -> None:
        for point, (x, y) in zip(points, coords):
            point.x = x
            point.y = y

    def _solve_gradient(self) -> RefinementResult:
        """Fixed-step sweeps that never leave the points worse than they found them.

        The configuration with the lowest total error seen at a sweep boundary
        is remembered.  A non-finite error or step restores it at once, and so
        does finishing the sweeps at a higher total error.
        """

        points = self._involved_points()
        best_total = self.total_error()
        if not math.isfinite(best_total):
            logger.warning("Refinement skipped: non-finite error at the starting configuration")
            return RefinementResult("gradient", 0, math.inf, False)
        best = [(p.x, p.y) for p in points]

        rate = self.learning_rate
        total = best_total
        sweeps = 0
        for sweeps in range(1, self.iterations + 1):
            total = 0.0
            for constraint in self._constraints:
                error = float(constraint.error())
                if not math.isfinite(error):
                    reason = f"{constraint.label} produced a non-finite error"
                    return self._roll_back(points, best, best_total, sweeps, reason)
                total += abs(error)
                if abs(error) < self.tolerance:
                    continue
                for var in constraint.gradients:
                    dx, dy = var.grad(var.point)
                    step_x = rate * error * dx
                    step_y = rate * error * dy
                    if not (math.isfinite(step_x) and math.isfinite(step_y)):
                        return self._roll_back(points, best, best_total, sweeps, f"{constraint.label} diverged")
                    var.point.x -= step_x
                    var.point.y -= step_y
            if total < self.tolerance:
                break
            current = self.total_error()
            if not math.isfinite(current):
                return self._roll_back(points, best, best_total, sweeps, "total error overflowed")
            if current < best_total:
                best_total = current
                best = [(p.x, p.y) for p in points]

        if total >= self.tolerance:
            total = self.total_error()
            if total > best_total:
                logger.debug("Gradient refinement ended above its best total error; restoring %.3g", best_total)
                self._restore(points, best)
                total = best_total

        converged = total < self.tolerance
        logger.debug("Gradient refinement: sweeps=%d total_error=%.3g converged=%s", sweeps, total, converged)
        return RefinementResult("gradient", sweeps, total, converged)

    def _roll_back(
        self, points: Sequence[PointLike], best: Sequence[Vec2], best_total: float, sweeps: int, reason: str
    ) -> RefinementResult:
        logger.warning("Refinement stopped: %s; restored total_error=%.3g", reason, best_total)
        self._restore(points, best)
        return RefinementResult("gradient", sweeps, best_total, False)

    def _solve_least_squares(self) -> RefinementResult:
        points: List[PointLike] = []
        index: Dict[int, int] = {}
        for constraint in self._constraints:
            for var in constraint.gradients:
                if id(var.point) not in index:
                    index[id(var.point)] = len(points)
                    points.append(var.point)

        def assign(vec: np.ndarray) -> None:
            for i, point in enumerate(points):
                point.x = float(vec[2 * i])
                point.y = float(vec[2 * i + 1])

        def residuals(vec: np.ndarray) -> np.ndarray:
            assign(vec)
            return np.array([constraint.error() for constraint in self._constraints], dtype=float)

        def jacobian(vec: np.ndarray) -> np.ndarray:
            assign(vec)
            jac = np.zeros((len(self._constraints), 2 * len(points)))
            for row, constraint in enumerate(self._constraints):
                for var in constraint.gradients:
                    col = 2 * index[id(var.point)]
                    dx, dy = var.grad(var.point)
                    jac[row, col] += dx
                    jac[row, col + 1] += dy
            return jac

        x0 = np.array([coord for point in points for coord in (point.x, point.y)], dtype=float)
        initial = residuals(x0)
        if not np.isfinite(initial).all():
            logger.warning("Refinement skipped: non-finite error at the starting configuration")
            return RefinementResult("least_squares", 0, math.inf, False)
        if not points or float(np.sum(np.abs(initial))) < self.tolerance:
            return RefinementResult("least_squares", 0, float(np.sum(np.abs(initial))), True)

        result = least_squares(residuals, x0, jac=jacobian, method="trf", max_nfev=self.iterations)
        final = residuals(result.x)
        total = float(np.sum(np.abs(final)))
        logger.debug(
            "Least-squares refinement: nfev=%d status=%d total_error=%.3g", result.nfev, result.status, total
        )
        return RefinementResult("least_squares", int(result.nfev), total, total < self.tolerance)


apply_debug_logging(globals(), logger=logger, skip={"VariableGradient", "NonlinearConstraint"})
