"""Tunable solver parameters and the process-wide default."""

from __future__ import annotations

import copy
from dataclasses import dataclass

from .linear import Strength
from .refine import REFINEMENT_METHODS


@dataclass
class SolverConfig:
    """Numeric knobs for a :class:`~sketchsolver.solver.ConstraintSolver`.

    The defaults are empirical: they keep interactive drags of a few dozen
    points well inside a frame budget.
    """

    iterations: int = 50
    learning_rate: float = 0.1
    tolerance: float = 1e-6
    degenerate_epsilon: float = 1e-9
    edit_strength: Strength = Strength.MEDIUM
    refinement_method: str = "gradient"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check and normalise the fields; raises ``ValueError`` on bad values."""

        if int(self.iterations) < 1:
            raise ValueError("iterations must be at least 1")
        if self.learning_rate <= 0.0:
            raise ValueError("learning_rate must be positive")
        if self.tolerance <= 0.0 or self.degenerate_epsilon <= 0.0:
            raise ValueError("tolerances must be positive")
        if self.refinement_method not in REFINEMENT_METHODS:
            raise ValueError(
                f"refinement_method must be one of {', '.join(REFINEMENT_METHODS)}; got '{self.refinement_method}'"
            )
        self.iterations = int(self.iterations)
        self.edit_strength = Strength(self.edit_strength)
        if self.edit_strength >= Strength.REQUIRED:
            raise ValueError("edit_strength cannot be REQUIRED")


_SOLVER_CONFIG = SolverConfig()


def get_solver_config() -> SolverConfig:
    return copy.deepcopy(_SOLVER_CONFIG)


def set_solver_config(config: SolverConfig) -> None:
    global _SOLVER_CONFIG
    _SOLVER_CONFIG = copy.deepcopy(config)
