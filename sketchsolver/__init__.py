from .config import SolverConfig, get_solver_config, set_solver_config
from .geometry import Arc, CenteredRadial, Circle, Point, PointLike, Segment, SegmentLike
from .linear import (
    LinearConstraint,
    LinearEngine,
    LinearEngineError,
    LinearExpression,
    NonlinearExpressionError,
    Strength,
    UnknownEditVariableError,
    Variable,
)
from .refine import NonlinearConstraint, RefinementEngine, RefinementResult, VariableGradient
from .registry import PointRegistry, VariablePair
from .solver import ConstraintSolver, SolveReport

__all__ = [
    'Arc',
    'CenteredRadial',
    'Circle',
    'ConstraintSolver',
    'LinearConstraint',
    'LinearEngine',
    'LinearEngineError',
    'LinearExpression',
    'NonlinearConstraint',
    'NonlinearExpressionError',
    'Point',
    'PointLike',
    'PointRegistry',
    'RefinementEngine',
    'RefinementResult',
    'Segment',
    'SegmentLike',
    'SolveReport',
    'SolverConfig',
    'Strength',
    'UnknownEditVariableError',
    'Variable',
    'VariableGradient',
    'VariablePair',
    'get_solver_config',
    'set_solver_config',
]
