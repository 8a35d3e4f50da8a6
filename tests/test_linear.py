import math

import pytest

from sketchsolver.linear import (
    LinearEngine,
    LinearExpression,
    NonlinearExpressionError,
    Strength,
    UnknownEditVariableError,
    Variable,
)


def test_expression_arithmetic():
    x = Variable("x", 2.0)
    y = Variable("y", 5.0)

    expr = 2 * x + 3 - y
    assert expr.terms == {x: 2.0, y: -1.0}
    assert expr.constant == 3.0
    assert expr.value() == pytest.approx(2.0)

    scaled = (x - y) / 2
    assert scaled.terms == {x: 0.5, y: -0.5}
    assert (-scaled).terms == {x: -0.5, y: 0.5}
    assert (10 - x).value() == pytest.approx(8.0)
    assert (x * LinearExpression(constant=3.0)).terms == {x: 3.0}


def test_nonlinear_expressions_are_rejected():
    x = Variable("x")
    y = Variable("y")

    with pytest.raises(NonlinearExpressionError):
        _ = (x + 1) * y
    with pytest.raises(NonlinearExpressionError):
        _ = x / y
    with pytest.raises(TypeError):
        LinearExpression.coerce("x")


def test_variables_hash_by_identity():
    a = Variable("a", 1.0)
    b = Variable("a", 1.0)

    assert a is not b
    assert len({a, b}) == 2


def test_unconstrained_variables_keep_their_values():
    engine = LinearEngine()
    x = Variable("x", 3.5)
    engine.add_variable(x)
    engine.add_variable(x)

    engine.solve_linear()

    assert engine.variable_count == 1
    assert x.value == pytest.approx(3.5)


def test_equality_moves_variables_minimally():
    engine = LinearEngine()
    x = Variable("x", 2.0)
    y = Variable("y", 2.0)

    engine.add_equality(x + y, 10.0)
    engine.solve_linear()

    assert x.value == pytest.approx(5.0)
    assert y.value == pytest.approx(5.0)
    assert engine.residuals() == [pytest.approx(0.0, abs=1e-12)]


def test_equality_registers_unknown_variables():
    engine = LinearEngine()
    x = Variable("x", 1.0)
    y = Variable("y", 4.0)

    engine.add_equality(x, y)

    assert engine.variable_count == 2
    assert engine.constraint_count == 1


def test_infeasible_required_equalities_degrade_gracefully():
    engine = LinearEngine()
    x = Variable("x", 0.0)

    engine.add_equality(x, 1.0)
    engine.add_equality(x, 2.0)
    engine.solve_linear()

    assert math.isfinite(x.value)
    assert x.value == pytest.approx(1.5)


def test_redundant_equalities_are_tolerated():
    engine = LinearEngine()
    x = Variable("x", 0.0)
    y = Variable("y", 4.0)

    engine.add_equality(x, y)
    engine.add_equality(2 * x, 2 * y)
    engine.add_equality(x - y, 0.0)
    engine.solve_linear()

    assert x.value == pytest.approx(2.0)
    assert y.value == pytest.approx(2.0)


def test_stronger_levels_win_over_weaker_ones():
    engine = LinearEngine()
    x = Variable("x", 0.0)

    engine.add_equality(x, 5.0, Strength.WEAK)
    engine.add_equality(x, 1.0, Strength.STRONG)
    engine.solve_linear()

    assert x.value == pytest.approx(1.0)


def test_edit_variable_drives_dependent_variable():
    engine = LinearEngine()
    x = Variable("x", 1.0)
    y = Variable("y", 2.0)
    engine.add_equality(y, 2 * x)

    engine.begin_edit(x)
    engine.suggest_value(x, 3.0)

    assert x.value == pytest.approx(3.0)
    assert y.value == pytest.approx(6.0)

    engine.suggest_value(x, -1.0)
    assert y.value == pytest.approx(-2.0)


def test_edit_cannot_break_required_equalities():
    engine = LinearEngine()
    x = Variable("x", 0.0)
    engine.add_equality(x, 4.0)

    engine.begin_edit(x, Strength.STRONG)
    engine.suggest_value(x, 10.0)

    assert x.value == pytest.approx(4.0)


def test_suggest_reuses_factorisation():
    engine = LinearEngine()
    x = Variable("x", 0.0)
    y = Variable("y", 0.0)
    engine.add_equality(x, y)
    engine.begin_edit(x)
    engine.suggest_value(x, 1.0)
    plan = engine._plan

    engine.suggest_value(x, 2.0)
    engine.solve_linear()

    assert engine._plan is plan
    assert y.value == pytest.approx(2.0)


def test_end_edit_releases_variable_and_keeps_values():
    engine = LinearEngine()
    x = Variable("x", 0.0)
    engine.add_variable(x)
    engine.begin_edit(x)
    engine.begin_edit(x)
    engine.suggest_value(x, 7.0)

    engine.end_edit(x)
    engine.end_edit(x)
    engine.solve_linear()

    assert not engine.has_edit(x)
    assert x.value == pytest.approx(7.0)
    with pytest.raises(UnknownEditVariableError):
        engine.suggest_value(x, 1.0)


def test_edit_with_required_strength_is_rejected():
    engine = LinearEngine()
    x = Variable("x")

    with pytest.raises(ValueError):
        engine.begin_edit(x, Strength.REQUIRED)


def test_empty_engine_solves_quietly():
    engine = LinearEngine()

    engine.solve_linear()

    assert engine.residuals() == []
