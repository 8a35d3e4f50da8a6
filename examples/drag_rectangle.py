"""Example: drag one corner of a constrained rectangle."""

from sketchsolver import ConstraintSolver, Point


def main() -> None:
    corners = [Point(0.0, 0.0), Point(8.0, 0.5), Point(8.5, 5.0), Point(-0.5, 4.5)]
    a, b, c, d = corners

    solver = ConstraintSolver()
    for corner in corners:
        solver.add_point(corner)
    solver.add_horizontal_constraint(a, b)
    solver.add_horizontal_constraint(d, c)
    solver.add_vertical_constraint(a, d)
    solver.add_vertical_constraint(b, c)
    solver.add_length_constraint(a, b, 8.0)

    solver.solve()
    print("Rectangle:", [(round(p.x, 3), round(p.y, 3)) for p in corners])

    solver.start_edit(c)
    for x, y in [(9.0, 6.0), (10.0, 7.0), (12.0, 3.0)]:
        solver.suggest_value(c, Point(x, y))
        solver.solve()
        print(f"C -> ({x}, {y}):", [(round(p.x, 3), round(p.y, 3)) for p in corners])
    solver.end_edit(c)


if __name__ == "__main__":
    main()
