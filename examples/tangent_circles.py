"""Example: tangent circles and a line resting on a wheel."""

from sketchsolver import Arc, Circle, ConstraintSolver, Point, Segment, SolverConfig
from sketchsolver.geometry import distance, line_distance


def main() -> None:
    solver = ConstraintSolver(SolverConfig(refinement_method="least_squares"))

    hub = Circle(Point(0.0, 0.0), 4.0)
    gear = Arc(Point(12.0, 3.0), 2.5, 0.0, 3.0)
    ground = Segment(Point(-10.0, -6.0), Point(10.0, -5.0))

    for point in (hub.center, gear.center, ground.p1, ground.p2):
        solver.add_point(point)
    solver.add_horizontal_constraint(ground.p1, ground.p2)
    solver.add_tangent_constraint(hub, gear)
    solver.add_tangent_constraint(hub, None, None, ground)

    solver.solve()

    print("Center distance:", round(distance(hub.center, gear.center), 6), "target", hub.radius + gear.radius)
    print("Hub to ground:", round(line_distance(hub.center, ground.p1, ground.p2), 6), "target", hub.radius)
    print("Report:", solver.last_report)


if __name__ == "__main__":
    main()
