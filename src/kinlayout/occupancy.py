"""
Occupancy index for collision avoidance.

Tracks which X coordinates are taken on each Y level, backed by
sortedcontainers.SortedList so that availability checks only compare
against the two nearest neighbours on a level.
"""

from __future__ import annotations

from typing import Iterator, Optional
from sortedcontainers import SortedList


# Probe rounds before find_nearest_available gives up
MAX_PROBE_ROUNDS = 10


class OccupancyIndex:
    """
    Map from Y level to the sorted multiset of occupied X coordinates.

    A coordinate is occupied iff some live position sits exactly there.
    The per-level list is a multiset: two best-effort placements at the
    same point each hold a mark, and unmarking one leaves the other.
    """

    def __init__(self):
        self._levels: dict[float, SortedList] = {}

    def mark_occupied(self, x: float, y: float) -> None:
        """Record a node at (x, y)."""
        level = self._levels.get(y)
        if level is None:
            level = self._levels[y] = SortedList()
        level.add(x)

    def unmark_occupied(self, x: float, y: float) -> None:
        """Release one mark at (x, y). Missing marks are ignored."""
        level = self._levels.get(y)
        if level is None:
            return
        level.discard(x)
        if not level:
            del self._levels[y]

    def is_occupied(self, x: float, y: float) -> bool:
        level = self._levels.get(y)
        return level is not None and x in level

    def is_available(self, x: float, y: float, min_spacing: float) -> bool:
        """
        Check that no occupied X on level y lies within min_spacing of x.

        Args:
            x: Candidate X
            y: Level
            min_spacing: Required clearance

        Returns:
            True if every occupied X at y is at least min_spacing away
        """
        level = self._levels.get(y)
        if not level:
            return True
        i = level.bisect_left(x)
        if i < len(level) and abs(level[i] - x) < min_spacing:
            return False
        if i > 0 and abs(level[i - 1] - x) < min_spacing:
            return False
        return True

    def find_nearest_available(
        self,
        near_x: float,
        y: float,
        min_spacing: float,
        prefer_left: Optional[bool] = None
    ) -> float:
        """
        Find a free X close to near_x on level y.

        Tries near_x, then probes outward in multiples of min_spacing for
        up to MAX_PROBE_ROUNDS rounds. Each round tries the right side
        before the left, unless prefer_left is True.

        Args:
            near_x: Preferred X
            y: Level
            min_spacing: Required clearance (also the probe step)
            prefer_left: Probe the left side first in each round

        Returns:
            The first free X found, or near_x unchanged if every probe
            failed (best effort, overlap is then possible)
        """
        if self.is_available(near_x, y, min_spacing):
            return near_x

        directions = (-1.0, 1.0) if prefer_left else (1.0, -1.0)
        offset = min_spacing
        for _ in range(MAX_PROBE_ROUNDS):
            for direction in directions:
                candidate = near_x + direction * offset
                if self.is_available(candidate, y, min_spacing):
                    return candidate
            offset += min_spacing

        return near_x

    def occupied_at(self, y: float) -> list[float]:
        """Occupied X coordinates on level y, ascending."""
        level = self._levels.get(y)
        return list(level) if level else []

    def levels(self) -> list[float]:
        """Y levels that have at least one mark, ascending."""
        return sorted(self._levels)

    def clear(self) -> None:
        self._levels.clear()

    def __contains__(self, point: tuple[float, float]) -> bool:
        x, y = point
        return self.is_occupied(x, y)

    def __len__(self) -> int:
        return sum(len(level) for level in self._levels.values())

    def __iter__(self) -> Iterator[tuple[float, float]]:
        for y in self.levels():
            for x in self._levels[y]:
                yield (x, y)
