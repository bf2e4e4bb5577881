"""
Diffs between successive graph states.

A transition lists which nodes appear, disappear and move, and which
connections appear and disappear, so a renderer can animate from one
layout to the next without recreating unchanged entities.
"""

from __future__ import annotations

from typing import Iterable, Optional
import logging

import numpy as np

from .connections import Connection, derive_connections
from .geom import Point
from .model import FamilyNode, NodePosition

logger = logging.getLogger(__name__)

# Minimum distance a node must travel to count as moved
MOVEMENT_THRESHOLD = 5.0


class GraphState:
    """
    Positions and connections at one point in time.

    Args:
        positions: Node positions; on duplicate IDs the last one wins
        connections: Connections between the positioned nodes
    """

    def __init__(
        self,
        positions: Iterable[NodePosition],
        connections: Optional[Iterable[Connection]] = None
    ):
        self.positions = list(positions)
        self.connections = list(connections or ())

    @classmethod
    def from_layout(
        cls,
        positions: Iterable[NodePosition],
        nodes: Iterable[FamilyNode]
    ) -> GraphState:
        """Build a state whose connections are derived from the positioned nodes."""
        positions = list(positions)
        visible = {p.node_id for p in positions}
        return cls(positions, derive_connections(nodes, visible_ids=visible))

    @property
    def position_map(self) -> dict[str, NodePosition]:
        result: dict[str, NodePosition] = {}
        for position in self.positions:
            result[position.node_id] = position
        return result

    @property
    def node_ids(self) -> set[str]:
        return set(self.position_map)

    @property
    def connection_map(self) -> dict[str, Connection]:
        return {c.id: c for c in self.connections}

    def __repr__(self) -> str:
        return f"GraphState(nodes={len(self.position_map)}, connections={len(self.connection_map)})"


class NodeMovement:
    """
    A node present in both states that moved.

    Attributes:
        node_id: Moved node
        position: Destination NodePosition
        from_point: Position in the current state
        to_point: Position in the destination state
        delta: Euclidean distance travelled
    """

    __slots__ = ('node_id', 'position', 'from_point', 'to_point', 'delta')

    def __init__(self, position: NodePosition, from_point: Point, to_point: Point, delta: float):
        self.node_id = position.node_id
        self.position = position
        self.from_point = from_point
        self.to_point = to_point
        self.delta = delta

    def __repr__(self) -> str:
        return f"NodeMovement({self.node_id!r}, {self.from_point} -> {self.to_point})"


class GraphTransition:
    """
    Changes between two graph states. Every list is sorted by ID.

    Attributes:
        nodes_to_appear: Destination positions of new nodes
        nodes_to_disappear: Current positions of removed nodes
        nodes_to_move: Movements of retained nodes past the threshold
        connections_to_appear: New connections
        connections_to_disappear: Removed connections
    """

    def __init__(
        self,
        nodes_to_appear: list[NodePosition],
        nodes_to_disappear: list[NodePosition],
        nodes_to_move: list[NodeMovement],
        connections_to_appear: list[Connection],
        connections_to_disappear: list[Connection]
    ):
        self.nodes_to_appear = nodes_to_appear
        self.nodes_to_disappear = nodes_to_disappear
        self.nodes_to_move = nodes_to_move
        self.connections_to_appear = connections_to_appear
        self.connections_to_disappear = connections_to_disappear

    @property
    def has_changes(self) -> bool:
        return bool(self.nodes_to_appear or self.nodes_to_disappear or self.nodes_to_move
                    or self.connections_to_appear or self.connections_to_disappear)

    def summary(self) -> str:
        """One-line count of every kind of change."""
        return (f"{len(self.nodes_to_appear)} nodes appear, "
                f"{len(self.nodes_to_disappear)} disappear, "
                f"{len(self.nodes_to_move)} move; "
                f"{len(self.connections_to_appear)} connections appear, "
                f"{len(self.connections_to_disappear)} disappear")

    def log(self, level: int = logging.DEBUG) -> None:
        """Write the transition to this module's logger."""
        if not logger.isEnabledFor(level):
            return
        logger.log(level, "graph transition: %s", self.summary())
        for position in self.nodes_to_appear:
            logger.log(level, "  + %s at (%g, %g)", position.node_id, position.x, position.y)
        for position in self.nodes_to_disappear:
            logger.log(level, "  - %s from (%g, %g)", position.node_id, position.x, position.y)
        for movement in self.nodes_to_move:
            logger.log(level, "  ~ %s (%g, %g) -> (%g, %g) [%.1f]", movement.node_id,
                       movement.from_point.x, movement.from_point.y,
                       movement.to_point.x, movement.to_point.y, movement.delta)
        for connection in self.connections_to_appear:
            logger.log(level, "  + %s", connection.id)
        for connection in self.connections_to_disappear:
            logger.log(level, "  - %s", connection.id)

    def __repr__(self) -> str:
        return f"GraphTransition({self.summary()})"


def compute_transition(
    current: GraphState,
    destination: GraphState,
    movement_threshold: float = MOVEMENT_THRESHOLD
) -> GraphTransition:
    """
    Compute the changes that turn one graph state into another.

    Args:
        current: State being shown
        destination: State to move to
        movement_threshold: A retained node counts as moved only when it
            travels strictly farther than this

    Returns:
        GraphTransition
    """
    before = current.position_map
    after = destination.position_map

    appear = [after[i] for i in sorted(after.keys() - before.keys())]
    disappear = [before[i] for i in sorted(before.keys() - after.keys())]

    kept = sorted(before.keys() & after.keys())
    moves: list[NodeMovement] = []
    if kept:
        start = np.array([(before[i].x, before[i].y) for i in kept], dtype=float)
        end = np.array([(after[i].x, after[i].y) for i in kept], dtype=float)
        distances = np.hypot(*(end - start).T)
        for k in np.flatnonzero(distances > movement_threshold):
            node_id = kept[k]
            moves.append(NodeMovement(
                after[node_id], before[node_id].point, after[node_id].point,
                float(distances[k])
            ))

    links_before = current.connection_map
    links_after = destination.connection_map
    links_appear = [links_after[i] for i in sorted(links_after.keys() - links_before.keys())]
    links_disappear = [links_before[i] for i in sorted(links_before.keys() - links_after.keys())]

    transition = GraphTransition(appear, disappear, moves, links_appear, links_disappear)
    logger.debug("transition: %s", transition.summary())
    return transition
