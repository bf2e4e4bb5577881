"""
Minimum-gap separation of nodes along a row.

Given X positions already sorted left to right, find the closest
positions (least squares) that keep every pair of neighbours at least
``gap`` apart without changing their order. This is the one-dimensional
case of a separation-constraint projection: neighbours that would
overlap are merged into blocks that move together to the mean of their
desired positions.
"""

from __future__ import annotations

from typing import Optional

# Violations smaller than this are float noise
EPSILON = 1e-9


class Block:
    """A run of consecutive variables held exactly ``gap`` apart."""

    __slots__ = ('indices', 'total')

    def __init__(self, index: int, desired: float):
        self.indices = [index]
        self.total = desired

    @property
    def posn(self) -> float:
        """Optimal shared position (the mean of the members' desired values)."""
        return self.total / len(self.indices)

    def merge(self, other: Block) -> Block:
        self.indices.extend(other.indices)
        self.total += other.total
        return self

    def __len__(self) -> int:
        return len(self.indices)


def separate_chain(values: list[float], gap: float, lower: Optional[float] = None) -> list[float]:
    """
    Project sorted values onto the gap constraints.

    Args:
        values: Desired positions, ascending
        gap: Minimum distance between neighbours
        lower: Optional lower bound on the first value

    Returns:
        New positions in input order. Values that need no change are
        returned unchanged.
    """
    # x[i] - i*gap must be non-decreasing; pool adjacent violators
    blocks: list[Block] = []
    for i, value in enumerate(values):
        block = Block(i, value - i * gap)
        while blocks and blocks[-1].posn > block.posn + EPSILON:
            block = blocks.pop().merge(block)
        blocks.append(block)

    result = list(values)
    for block in blocks:
        posn = block.posn
        clamped = lower is not None and posn < lower - EPSILON
        if clamped:
            posn = lower
        if len(block) == 1 and not clamped:
            continue
        for i in block.indices:
            result[i] = posn + i * gap
    return result


def separate_row(xs: list[float], gap: float, fixed: Optional[int] = None) -> list[float]:
    """
    Separate a sorted row, optionally keeping one entry in place.

    Args:
        xs: X positions, ascending
        gap: Minimum distance between neighbours
        fixed: Index of an entry that must not move

    Returns:
        New X positions in input order
    """
    if fixed is None:
        return separate_chain(xs, gap)

    anchor = xs[fixed]
    right = separate_chain(xs[fixed + 1:], gap, lower=anchor + gap)
    # Mirror the left side so it becomes a lower-bounded chain too
    mirrored = [-x for x in reversed(xs[:fixed])]
    left = [-x for x in reversed(separate_chain(mirrored, gap, lower=gap - anchor))]
    return left + [anchor] + right
