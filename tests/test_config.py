import pytest

from sketchsolver import ConstraintSolver, Point, SolverConfig, Strength, get_solver_config, set_solver_config


def test_defaults_match_interactive_tuning():
    config = SolverConfig()

    assert config.iterations == 50
    assert config.learning_rate == 0.1
    assert config.tolerance == 1e-6
    assert config.edit_strength is Strength.MEDIUM
    assert config.refinement_method == "gradient"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"iterations": 0},
        {"learning_rate": 0.0},
        {"tolerance": -1.0},
        {"refinement_method": "newton"},
        {"edit_strength": Strength.REQUIRED},
    ],
)
def test_invalid_values_are_rejected(kwargs):
    with pytest.raises(ValueError):
        SolverConfig(**kwargs)


def test_module_default_is_copied():
    original = get_solver_config()
    try:
        set_solver_config(SolverConfig(iterations=7, refinement_method="least_squares"))
        config = get_solver_config()
        config.iterations = 99

        solver = ConstraintSolver()
        assert solver.config.iterations == 7
        assert solver._refiner.method == "least_squares"
    finally:
        set_solver_config(original)

    assert get_solver_config().iterations == original.iterations


def test_explicit_config_wins_over_default():
    solver = ConstraintSolver(SolverConfig(learning_rate=0.05, edit_strength=Strength.STRONG))

    assert solver._refiner.learning_rate == 0.05
    assert solver.config.edit_strength is Strength.STRONG


def test_config_edits_apply_on_next_solve():
    p1, p2 = Point(0.0, 0.0), Point(1.0, 0.0)
    solver = ConstraintSolver(SolverConfig())
    solver.add_point(p1)
    solver.add_point(p2)
    solver.add_length_constraint(p1, p2, 3.0)

    solver.config.iterations = 3
    solver.solve()
    assert solver.last_report.refinement.iterations == 3

    solver.config.refinement_method = "least_squares"
    solver.solve()
    assert solver.last_report.refinement.method == "least_squares"

    solver.config.refinement_method = "newton"
    with pytest.raises(ValueError):
        solver.solve()
