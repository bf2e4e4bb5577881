"""
Short-lived state of one layout run.

A LayoutSession owns everything a layout call mutates: the placed
positions, the occupancy index and the incremental snapshots. It is
created per call and discarded afterwards, so concurrent layout runs
never share state.
"""

from __future__ import annotations

from typing import Iterable, Optional
import math

from .errors import RootNotFoundError
from .model import FamilyNode, LayoutConfig, NodePosition
from .occupancy import OccupancyIndex
from .oracle import RelationshipOracle
from .relations import RelationIndex


class LayoutSession:
    """
    Mutable state for a single layout computation.

    Args:
        nodes: Working node set
        root_id: ID of the root node
        oracle: Source of degrees and relationship kinds
        config: Spacing configuration

    Raises:
        DuplicateNodeError: If two nodes share an ID
        RootNotFoundError: If the root is not in ``nodes``
    """

    def __init__(
        self,
        nodes: Iterable[FamilyNode],
        root_id: str,
        oracle: RelationshipOracle,
        config: Optional[LayoutConfig] = None
    ):
        self.index = RelationIndex(nodes)
        if root_id not in self.index:
            raise RootNotFoundError(root_id)

        self.root_id = root_id
        self.oracle = oracle
        self.config = config or LayoutConfig.default()

        # Insertion order is placement order
        self.positions: dict[str, NodePosition] = {}
        self.occupancy = OccupancyIndex()
        self.snapshots: list[list[NodePosition]] = []

    @property
    def anchor_id(self) -> str:
        """Node whose position is immutable once placed."""
        return self.root_id

    def is_placed(self, node_id: str) -> bool:
        return node_id in self.positions

    def position(self, node_id: str) -> Optional[NodePosition]:
        return self.positions.get(node_id)

    def placed(self, node_ids: Iterable[str]) -> list[NodePosition]:
        """Positions of the placed nodes among ``node_ids``, in the given order."""
        return [self.positions[i] for i in node_ids if i in self.positions]

    def place(self, node_id: str, x: float, y: float, generation: int) -> NodePosition:
        """
        Record a placement and mark its point occupied.

        Returns:
            The new NodePosition
        """
        node = self.index.node(node_id)
        position = NodePosition(
            node_id, x, y, generation,
            relationship_kind=self.oracle.relationship_kind(node_id),
            metadata=node.metadata,
        )
        self.positions[node_id] = position
        self.occupancy.mark_occupied(position.x, position.y)
        return position

    def move(self, node_id: str, new_x: float) -> float:
        """
        Move a placed node horizontally, keeping occupancy in sync.

        Returns:
            Absolute distance moved
        """
        position = self.positions[node_id]
        old_x = position.x
        self.occupancy.unmark_occupied(old_x, position.y)
        position.x = float(new_x)
        self.occupancy.mark_occupied(position.x, position.y)
        return abs(position.x - old_x)

    def current_spacing(self) -> float:
        """Fallback spacing, growing logarithmically with placed count."""
        cfg = self.config
        placed = len(self.positions)
        multiplier = cfg.expansion_factor ** math.log10(placed / 10 + 1)
        return max(cfg.min_spacing, cfg.base_spacing * multiplier)

    def parent_ids(self, node_id: str) -> list[str]:
        """
        Placed parents of a node, sorted.

        When exactly one parent is placed, that parent's first placed
        spouse (in ID order) is added as co-parent, so children recorded
        against only one partner still group under the couple.
        """
        parents = [p for p in self.index.parents(node_id) if p in self.positions]
        if len(parents) == 1:
            for spouse in self.index.spouses(parents[0]):
                if spouse in self.positions and spouse != node_id:
                    parents.append(spouse)
                    break
        return sorted(parents)

    def snapshot(self) -> list[NodePosition]:
        """Independent copies of all positions, in placement order."""
        return [position.copy() for position in self.positions.values()]

    def record_snapshot(self) -> None:
        self.snapshots.append(self.snapshot())

    def layout(self) -> list[NodePosition]:
        """Live positions in placement order."""
        return list(self.positions.values())

    def __len__(self) -> int:
        return len(self.positions)
