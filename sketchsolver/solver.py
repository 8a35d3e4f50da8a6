"""Public entry point: a two-stage (linear, then non-linear) sketch solver."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from . import catalog
from .config import SolverConfig, get_solver_config
from .geometry import CenteredRadial, PointLike, SegmentLike
from .linear import LinearEngine
from .refine import RefinementEngine, RefinementResult
from .registry import PointRegistry

logger = logging.getLogger(__name__)


@dataclass
class SolveReport:
    refinement: RefinementResult
    linear_residual: float


class ConstraintSolver:
    """Keeps a set of host-owned points consistent with geometric constraints.

    Linear relationships (horizontal, vertical, parallel, perpendicular,
    angle) go to an incremental linear engine that supports dragging through
    edit variables.  Lengths and tangencies are refined iteratively afterwards,
    starting from the linear solution.  :meth:`solve` writes results straight
    into the registered point objects.

    Points are referenced, never owned: call :meth:`clear` before the host
    discards them.  ``config`` is read again on every :meth:`solve`, so edits
    to it apply to the next solve.
    """

    def __init__(self, config: Optional[SolverConfig] = None) -> None:
        self.config = config if config is not None else get_solver_config()
        self._registry = PointRegistry()
        self._linear = LinearEngine()
        self._refiner = RefinementEngine(method=self.config.refinement_method)
        self._apply_config()
        self.last_report: Optional[SolveReport] = None

    def _apply_config(self) -> None:
        config = self.config
        config.validate()
        self._refiner.iterations = config.iterations
        self._refiner.learning_rate = config.learning_rate
        self._refiner.tolerance = config.tolerance
        self._refiner.method = config.refinement_method

    @property
    def point_count(self) -> int:
        return len(self._registry)

    def is_registered(self, point: PointLike) -> bool:
        return point in self._registry

    def constraint_counts(self) -> Dict[str, int]:
        return {"linear": self._linear.constraint_count, "nonlinear": self._refiner.constraint_count}

    def add_point(self, point: PointLike) -> None:
        pair, created = self._registry.register(point)
        if created:
            self._linear.add_variable(pair.x)
            self._linear.add_variable(pair.y)

    def add_horizontal_constraint(self, p1: PointLike, p2: PointLike) -> None:
        catalog.horizontal(self._registry, self._linear, p1, p2)

    def add_vertical_constraint(self, p1: PointLike, p2: PointLike) -> None:
        catalog.vertical(self._registry, self._linear, p1, p2)

    def add_parallel_constraint(self, p1: PointLike, p2: PointLike, ref_p3: PointLike, ref_p4: PointLike) -> None:
        catalog.parallel(self._registry, self._linear, p1, p2, ref_p3, ref_p4)

    def add_perpendicular_constraint(
        self, p1: PointLike, p2: PointLike, ref_p3: PointLike, ref_p4: PointLike
    ) -> None:
        catalog.perpendicular(self._registry, self._linear, p1, p2, ref_p3, ref_p4)

    def add_angle_constraint(
        self, p1: PointLike, p2: PointLike, ref_p3: PointLike, ref_p4: PointLike, angle_degrees: float
    ) -> bool:
        constraint = catalog.angle(
            self._registry, self._linear, p1, p2, ref_p3, ref_p4, angle_degrees, self.config.degenerate_epsilon
        )
        return constraint is not None

    def add_length_constraint(self, p1: PointLike, p2: PointLike, length: float) -> bool:
        constraint = catalog.length(self._registry, self._refiner, p1, p2, length, self.config.degenerate_epsilon)
        return constraint is not None

    def add_tangent_constraint(
        self,
        entity_a: object,
        entity_b: Optional[object] = None,
        segment_a: Optional[SegmentLike] = None,
        segment_b: Optional[SegmentLike] = None,
    ) -> bool:
        """Make two circles, or a circle and a segment's line, tangent.

        ``segment_a``/``segment_b`` give the endpoints of ``entity_a``/
        ``entity_b`` when those are line-like.  Returns ``False`` when the
        arguments are not a circle pair or a circle with the other entity's
        segment.
        """

        eps = self.config.degenerate_epsilon
        a_round = isinstance(entity_a, CenteredRadial)
        b_round = entity_b is not None and isinstance(entity_b, CenteredRadial)
        if a_round and b_round:
            constraint = catalog.circle_circle_tangent(self._registry, self._refiner, entity_a, entity_b, eps)
        elif a_round and segment_b is not None:
            constraint = catalog.line_circle_tangent(
                self._registry, self._refiner, entity_a, segment_b.p1, segment_b.p2, eps
            )
        elif b_round and segment_a is not None:
            constraint = catalog.line_circle_tangent(
                self._registry, self._refiner, entity_b, segment_a.p1, segment_a.p2, eps
            )
        else:
            logger.debug("Tangent constraint rejected: unsupported entity combination")
            return False
        return constraint is not None

    def start_edit(self, point: PointLike) -> None:
        pair = self._registry.lookup(point)
        if pair is None:
            return
        self._linear.begin_edit(pair.x, self.config.edit_strength)
        self._linear.begin_edit(pair.y, self.config.edit_strength)

    def suggest_value(self, point: PointLike, coords: PointLike) -> None:
        pair = self._registry.lookup(point)
        if pair is None:
            return
        self._linear.suggest_value(pair.x, coords.x)
        self._linear.suggest_value(pair.y, coords.y)

    def end_edit(self, point: PointLike) -> None:
        pair = self._registry.lookup(point)
        if pair is None:
            return
        self._linear.end_edit(pair.x)
        self._linear.end_edit(pair.y)

    def clear(self) -> None:
        logger.info(
            "Clearing solver session: points=%d linear=%d nonlinear=%d",
            len(self._registry),
            self._linear.constraint_count,
            self._refiner.constraint_count,
        )
        self._linear = LinearEngine()
        self._refiner.clear()
        self._registry.clear()
        self.last_report = None

    def solve(self) -> None:
        """Solve linear constraints, write them to the points, then refine in place."""

        self._apply_config()
        self._linear.solve_linear()
        self._registry.write_points()
        refinement = self._refiner.solve()
        # The next linear solve stays anchored at the refined positions.
        self._registry.read_points()

        residuals = self._linear.residuals()
        self.last_report = SolveReport(
            refinement=refinement,
            linear_residual=max((abs(r) for r in residuals), default=0.0),
        )
        logger.debug(
            "Solve finished: points=%d linear_residual=%.3g refinement=%s",
            len(self._registry),
            self.last_report.linear_residual,
            refinement,
        )
