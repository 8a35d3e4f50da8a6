import argparse
import logging
from typing import Optional, Sequence

from . import Circle, ConstraintSolver, Point, Segment, SolverConfig
from .geometry import line_distance

DRAG_PATH = [(0.0, 0.0), (0.0, 2.0), (1.5, 4.0), (3.0, 5.0)]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _print_sketch(title: str, points, base: Segment, wheel: Circle) -> None:
    print(title)
    for name, point in points:
        print(f"  {name}: ({point.x:.4f}, {point.y:.4f})")
    gap = line_distance(wheel.center, base.p1, base.p2) - wheel.radius
    print(f"  |AB| = {base.length:.4f}, wheel gap = {gap:.4f}")


def run(method: str = "least_squares") -> None:
    solver = ConstraintSolver(SolverConfig(refinement_method=method))

    a, b, c = Point(0.0, 0.0), Point(9.0, 1.0), Point(1.0, 7.0)
    wheel = Circle(Point(5.0, 12.0), 2.0)
    for point in (a, b, c, wheel.center):
        solver.add_point(point)

    solver.add_horizontal_constraint(a, b)
    solver.add_vertical_constraint(a, c)
    solver.add_length_constraint(a, b, 10.0)
    solver.add_length_constraint(a, c, 6.0)
    base = Segment(a, b)
    solver.add_tangent_constraint(wheel, None, None, base)

    named = [("A", a), ("B", b), ("C", c), ("O", wheel.center)]
    solver.solve()
    _print_sketch("Initial solve", named, base, wheel)

    solver.start_edit(a)
    for x, y in DRAG_PATH:
        solver.suggest_value(a, Point(x, y))
        solver.solve()
        _print_sketch(f"Drag A -> ({x}, {y}); refinement={solver.last_report.refinement}", named, base, wheel)
    solver.end_edit(a)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Drag a vertex of a constrained sketch")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument(
        "--method",
        choices=("gradient", "least_squares"),
        default="least_squares",
        help="Non-linear refinement method (default: least_squares)",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    run(args.method)


if __name__ == "__main__":
    main()
