import pytest

from sketchsolver.geometry import (
    Arc,
    CenteredRadial,
    Circle,
    Point,
    Segment,
    SegmentLike,
    distance,
    line_distance,
)


def test_points_compare_by_identity():
    a, b = Point(1.0, 2.0), Point(1.0, 2.0)

    assert a != b
    assert a == a
    assert len({a, b}) == 2


def test_circles_and_arcs_share_the_centered_radial_capability():
    assert isinstance(Circle(Point(), 1.0), CenteredRadial)
    assert isinstance(Arc(Point(), 1.0), CenteredRadial)
    assert not isinstance(Segment(Point(), Point(1.0, 0.0)), CenteredRadial)
    assert not isinstance(Point(), CenteredRadial)


def test_segment_capability_and_length():
    segment = Segment(Point(0.0, 0.0), Point(3.0, 4.0))

    assert isinstance(segment, SegmentLike)
    assert segment.length == pytest.approx(5.0)


def test_distance_helpers():
    a, b = Point(0.0, 0.0), Point(10.0, 0.0)

    assert distance(a, b) == pytest.approx(10.0)
    assert line_distance(Point(5.0, -3.0), a, b) == pytest.approx(3.0)
    assert line_distance(Point(3.0, 4.0), a, Point(0.0, 0.0)) == pytest.approx(5.0)
