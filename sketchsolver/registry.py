"""Binding between externally owned points and linear solver variables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .geometry import PointLike
from .linear import Variable


@dataclass(frozen=True, eq=False)
class VariablePair:
    x: Variable
    y: Variable


class PointRegistry:
    """Identity-keyed, non-owning lookup table ``point -> (x, y)`` variables.

    Points are keyed by ``id()`` so value-equal points stay distinct and
    unhashable point classes work.  The registry keeps a reference to every
    point, which keeps the ids stable until :meth:`clear`.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, Tuple[PointLike, VariablePair]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, point: object) -> bool:
        return id(point) in self._entries

    def lookup(self, point: PointLike) -> Optional[VariablePair]:
        entry = self._entries.get(id(point))
        return entry[1] if entry is not None else None

    def register(self, point: PointLike) -> Tuple[VariablePair, bool]:
        """Return the variables bound to ``point`` and whether they were just created."""

        entry = self._entries.get(id(point))
        if entry is not None:
            return entry[1], False
        tag = f"p{len(self._entries)}"
        pair = VariablePair(Variable(f"{tag}.x", point.x), Variable(f"{tag}.y", point.y))
        self._entries[id(point)] = (point, pair)
        return pair, True

    def write_points(self) -> None:
        """Copy solved variable values into the bound points."""

        for point, pair in self._entries.values():
            point.x = pair.x.value
            point.y = pair.y.value

    def read_points(self) -> None:
        """Copy the points' current coordinates into their variables."""

        for point, pair in self._entries.values():
            pair.x.value = float(point.x)
            pair.y.value = float(point.y)

    def clear(self) -> None:
        self._entries.clear()
