"""
Geometric primitives for layout snapshots.
"""

from __future__ import annotations

import math


class Point:
    """2D point."""

    def __init__(self, x: float = 0.0, y: float = 0.0):
        self.x = x
        self.y = y

    def distance_to(self, other: Point) -> float:
        """Euclidean distance to another point."""
        return math.hypot(other.x - self.x, other.y - self.y)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __repr__(self) -> str:
        return f"Point({self.x:g}, {self.y:g})"


def span_center(values: list[float]) -> float:
    """
    Center of the span covered by a list of coordinates.

    Args:
        values: Non-empty list of coordinates

    Returns:
        (min + max) / 2
    """
    return (min(values) + max(values)) / 2
