from types import SimpleNamespace

from sketchsolver.geometry import Point
from sketchsolver.registry import PointRegistry


def test_register_is_idempotent():
    registry = PointRegistry()
    point = Point(1.0, 2.0)

    pair, created = registry.register(point)
    again, created_again = registry.register(point)

    assert created and not created_again
    assert pair is again
    assert (pair.x.value, pair.y.value) == (1.0, 2.0)
    assert len(registry) == 1


def test_lookup_is_identity_based():
    registry = PointRegistry()
    a, b = Point(0.0, 0.0), Point(0.0, 0.0)
    registry.register(a)

    assert a in registry
    assert b not in registry
    assert registry.lookup(b) is None


def test_write_and_read_points():
    registry = PointRegistry()
    point = SimpleNamespace(x=1.0, y=1.0)
    pair, _ = registry.register(point)

    pair.x.value, pair.y.value = 5.0, -3.0
    registry.write_points()
    assert (point.x, point.y) == (5.0, -3.0)

    point.x = 8.0
    registry.read_points()
    assert pair.x.value == 8.0


def test_clear_unbinds_points():
    registry = PointRegistry()
    point = Point(0.0, 0.0)
    registry.register(point)

    registry.clear()

    assert len(registry) == 0
    assert registry.lookup(point) is None
    assert point not in registry
