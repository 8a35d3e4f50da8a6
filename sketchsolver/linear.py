"""Incremental solver for linear equality constraints with edit variables.

The engine keeps a Cassowary-style strength hierarchy but solves it as a
sequence of nested least-squares problems: REQUIRED equalities define an
affine solution space, and each weaker level is then satisfied as closely as
possible inside whatever freedom the stronger levels left over.  Every
variable carries an implicit WEAK "stay" at its current value, so unconstrained
unknowns do not move and underdetermined systems move as little as possible.

Factorisations depend only on the *structure* of the system (which variables,
equalities and edits exist).  They are rebuilt lazily after a structural change
and reused otherwise, so the drag loop of ``suggest_value`` followed by
``solve_linear`` costs a handful of matrix-vector products.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .logging_utils import apply_debug_logging

logger = logging.getLogger(__name__)

# Singular values below this fraction of the largest one are treated as zero.
_RANK_RCOND = 1e-12


class LinearEngineError(RuntimeError):
    """Base class for linear engine failures."""


class UnknownEditVariableError(LinearEngineError):
    """Raised when suggesting a value for a variable that is not being edited."""


class NonlinearExpressionError(TypeError):
    """Raised when an operation would produce a non-linear expression."""


class Strength(IntEnum):
    WEAK = 1
    MEDIUM = 2
    STRONG = 3
    REQUIRED = 4


class Variable:
    """Scalar unknown owned by a :class:`LinearEngine`.

    Hashing and equality are by identity; arithmetic builds
    :class:`LinearExpression` objects.
    """

    __slots__ = ("name", "value")

    def __init__(self, name: str = "", value: float = 0.0) -> None:
        self.name = name
        self.value = float(value)

    def __repr__(self) -> str:
        return f"Variable({self.name!r}, {self.value:.6g})"

    def _expr(self) -> "LinearExpression":
        return LinearExpression({self: 1.0})

    def __add__(self, other: "Operand") -> "LinearExpression":
        return self._expr() + other

    __radd__ = __add__

    def __sub__(self, other: "Operand") -> "LinearExpression":
        return self._expr() - other

    def __rsub__(self, other: "Operand") -> "LinearExpression":
        return LinearExpression.coerce(other) - self._expr()

    def __mul__(self, other: "Operand") -> "LinearExpression":
        return self._expr() * other

    __rmul__ = __mul__

    def __truediv__(self, other: "Operand") -> "LinearExpression":
        return self._expr() / other

    def __neg__(self) -> "LinearExpression":
        return -self._expr()


class LinearExpression:
    """``sum(coefficient * variable) + constant``."""

    __slots__ = ("terms", "constant")

    def __init__(self, terms: Optional[Dict[Variable, float]] = None, constant: float = 0.0) -> None:
        self.terms: Dict[Variable, float] = dict(terms or {})
        self.constant = float(constant)

    @classmethod
    def coerce(cls, value: "Operand") -> "LinearExpression":
        if isinstance(value, LinearExpression):
            return value
        if isinstance(value, Variable):
            return cls({value: 1.0})
        if isinstance(value, numbers.Real):
            return cls(constant=float(value))
        raise TypeError(f"cannot use {type(value).__name__} in a linear expression")

    @property
    def is_constant(self) -> bool:
        return not any(self.terms.values())

    def value(self) -> float:
        """Evaluate the expression at the variables' current values."""

        return self.constant + sum(coef * var.value for var, coef in self.terms.items())

    def _scaled(self, factor: float) -> "LinearExpression":
        return LinearExpression({var: coef * factor for var, coef in self.terms.items()}, self.constant * factor)

    def __add__(self, other: "Operand") -> "LinearExpression":
        rhs = LinearExpression.coerce(other)
        terms = dict(self.terms)
        for var, coef in rhs.terms.items():
            terms[var] = terms.get(var, 0.0) + coef
        return LinearExpression(terms, self.constant + rhs.constant)

    __radd__ = __add__

    def __sub__(self, other: "Operand") -> "LinearExpression":
        return self + (-LinearExpression.coerce(other))

    def __rsub__(self, other: "Operand") -> "LinearExpression":
        return LinearExpression.coerce(other) - self

    def __neg__(self) -> "LinearExpression":
        return self._scaled(-1.0)

    def __mul__(self, other: "Operand") -> "LinearExpression":
        if isinstance(other, numbers.Real):
            return self._scaled(float(other))
        rhs = LinearExpression.coerce(other)
        if rhs.is_constant:
            return self._scaled(rhs.constant)
        if self.is_constant:
            return rhs._scaled(self.constant)
        raise NonlinearExpressionError("product of two non-constant expressions is not linear")

    __rmul__ = __mul__

    def __truediv__(self, other: "Operand") -> "LinearExpression":
        divisor = LinearExpression.coerce(other)
        if not divisor.is_constant:
            raise NonlinearExpressionError("division by a non-constant expression is not linear")
        return self._scaled(1.0 / divisor.constant)

    def __repr__(self) -> str:
        parts = [f"{coef:+.6g}*{var.name or 'v'}" for var, coef in self.terms.items()]
        parts.append(f"{self.constant:+.6g}")
        return "LinearExpression(" + " ".join(parts) + ")"


Operand = Union[Variable, LinearExpression, float, int]


@dataclass(eq=False)
class LinearConstraint:
    """``expression == 0`` at the given strength."""

    expression: LinearExpression
    strength: Strength = Strength.REQUIRED

    def residual(self) -> float:
        return self.expression.value()


@dataclass(eq=False)
class _Edit:
    variable: Variable
    strength: Strength
    suggested: float


@dataclass
class _Level:
    matrix: np.ndarray
    gain: np.ndarray
    targets: List[Callable[[], float]]


@dataclass
class _Plan:
    base: np.ndarray
    levels: List[_Level] = field(default_factory=list)
    rank: int = 0


def _pinv_and_null_space(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray, int]:
    """Return ``(pinv(matrix), null-space basis, rank)`` from a single SVD."""

    rows, cols = matrix.shape
    if cols == 0:
        return np.zeros((0, rows)), np.zeros((0, 0)), 0
    u, s, vh = np.linalg.svd(matrix, full_matrices=True)
    cutoff = _RANK_RCOND * (s[0] if s.size else 0.0)
    rank = int(np.count_nonzero(s > cutoff)) if s.size and s[0] > 0.0 else 0
    pinv = (vh[:rank].T / s[:rank]) @ u[:, :rank].T
    return pinv, vh[rank:].T, rank


class LinearEngine:
    """Linear equality solver supporting repeated re-solves under edit suggestions."""

    def __init__(self) -> None:
        self._variables: List[Variable] = []
        self._index: Dict[Variable, int] = {}
        self._constraints: List[LinearConstraint] = []
        self._edits: Dict[Variable, _Edit] = {}
        self._plan: Optional[_Plan] = None

    @property
    def variable_count(self) -> int:
        return len(self._variables)

    @property
    def constraint_count(self) -> int:
        return len(self._constraints)

    def add_variable(self, variable: Variable) -> None:
        if variable in self._index:
            return
        self._index[variable] = len(self._variables)
        self._variables.append(variable)
        self._plan = None

    def add_equality(
        self, lhs: Operand, rhs: Operand = 0.0, strength: Strength = Strength.REQUIRED
    ) -> LinearConstraint:
        """Register ``lhs == rhs``; conflicting REQUIRED equalities are solved in the least-squares sense."""

        expression = LinearExpression.coerce(lhs) - rhs
        for var in expression.terms:
            self.add_variable(var)
        constraint = LinearConstraint(expression, Strength(strength))
        self._constraints.append(constraint)
        self._plan = None
        return constraint

    def has_edit(self, variable: Variable) -> bool:
        return variable in self._edits

    def begin_edit(self, variable: Variable, strength: Strength = Strength.MEDIUM) -> None:
        if strength >= Strength.REQUIRED:
            raise ValueError("edit variables cannot use REQUIRED strength")
        if variable in self._edits:
            return
        self.add_variable(variable)
        self._edits[variable] = _Edit(variable, Strength(strength), variable.value)
        self._plan = None

    def suggest_value(self, variable: Variable, value: float) -> None:
        """Steer an edited variable towards ``value`` and re-solve immediately."""

        edit = self._edits.get(variable)
        if edit is None:
            raise UnknownEditVariableError(f"{variable!r} is not being edited")
        edit.suggested = float(value)
        self.solve_linear()

    def end_edit(self, variable: Variable) -> None:
        if self._edits.pop(variable, None) is not None:
            self._plan = None

    def residuals(self) -> List[float]:
        return [constraint.residual() for constraint in self._constraints]

    def solve_linear(self) -> None:
        if not self._variables:
            return
        plan = self._ensure_plan()
        values = plan.base.copy()
        for level in plan.levels:
            targets = np.fromiter((target() for target in level.targets), dtype=float, count=len(level.targets))
            values = values + level.gain @ (targets - level.matrix @ values)
        if not np.isfinite(values).all():  # pragma: no cover - only with non-finite inputs
            logger.warning("Linear solve produced non-finite values; keeping previous solution")
            return
        for variable, value in zip(self._variables, values):
            variable.value = float(value)

    def _row(self, expression: LinearExpression) -> np.ndarray:
        row = np.zeros(len(self._variables))
        for var, coef in expression.terms.items():
            row[self._index[var]] += coef
        return row

    def _unit_row(self, variable: Variable) -> np.ndarray:
        row = np.zeros(len(self._variables))
        row[self._index[variable]] = 1.0
        return row

    def _soft_rows(self, strength: Strength) -> Tuple[List[np.ndarray], List[Callable[[], float]]]:
        rows: List[np.ndarray] = []
        targets: List[Callable[[], float]] = []
        for constraint in self._constraints:
            if constraint.strength == strength:
                rows.append(self._row(constraint.expression))
                targets.append(lambda c=constraint.expression.constant: -c)
        for edit in self._edits.values():
            if edit.strength == strength:
                rows.append(self._unit_row(edit.variable))
                targets.append(lambda e=edit: e.suggested)
        if strength == Strength.WEAK:
            for variable in self._variables:
                rows.append(self._unit_row(variable))
                targets.append(lambda v=variable: v.value)
        return rows, targets

    def _ensure_plan(self) -> _Plan:
        if self._plan is not None:
            return self._plan

        n = len(self._variables)
        required = [c for c in self._constraints if c.strength == Strength.REQUIRED]
        if required:
            matrix = np.vstack([self._row(c.expression) for c in required])
            rhs = np.array([-c.expression.constant for c in required])
            pinv, basis, rank = _pinv_and_null_space(matrix)
            base = pinv @ rhs
        else:
            base = np.zeros(n)
            basis = np.eye(n)
            rank = 0

        plan = _Plan(base=base, rank=rank)
        for strength in (Strength.STRONG, Strength.MEDIUM, Strength.WEAK):
            if basis.shape[1] == 0:
                break
            rows, targets = self._soft_rows(strength)
            if not rows:
                continue
            matrix = np.vstack(rows)
            pinv, null, _ = _pinv_and_null_space(matrix @ basis)
            plan.levels.append(_Level(matrix=matrix, gain=basis @ pinv, targets=targets))
            basis = basis @ null

        logger.debug(
            "Refactorised linear system: variables=%d equalities=%d edits=%d rank=%d levels=%d",
            n,
            len(self._constraints),
            len(self._edits),
            rank,
            len(plan.levels),
        )
        self._plan = plan
        return plan


apply_debug_logging(globals(), logger=logger, skip={"solve_linear", "Variable", "LinearExpression"})
