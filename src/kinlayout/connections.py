"""
Connections between positioned nodes and their animation lifecycle.

Connections are derived from node relations and identified by a
canonical ID, so the same edge keeps its identity (and animation state)
across successive layouts. Removal is two-step: a vanished connection is
first marked disappearing, then pruned once it has faded out.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional
import logging

from .model import FamilyNode
from .relations import RelationIndex

logger = logging.getLogger(__name__)

# Threshold for "fully" drawn or opaque
VISIBLE_THRESHOLD = 0.999

# Opacity at or below which a disappearing connection is pruned
PRUNE_EPSILON = 0.001


class ConnectionType(str, Enum):
    """Kind of edge, also the prefix of its ID."""
    spouse = "spouse"
    parent_child = "parentChild"


def connection_id(connection_type: ConnectionType, from_id: str, to_id: str) -> str:
    """
    Canonical connection ID.

    Spouse edges are undirected, so their endpoints are sorted; parent-child
    edges always read parent first.

    Node IDs must not contain "-": the endpoints are joined with it, so
    ("a-b", "c") and ("a", "b-c") would share an ID.
    """
    connection_type = ConnectionType(connection_type)
    if connection_type is ConnectionType.spouse:
        from_id, to_id = sorted((from_id, to_id))
    return f"{connection_type.value}-{from_id}-{to_id}"


class AnimationState:
    """
    Draw and fade progress of a connection.

    Attributes:
        opacity: 0.0 (transparent) to 1.0 (opaque)
        draw_progress: 0.0 (not drawn) to 1.0 (fully drawn)
        is_disappearing: Fading out; never reset once set
    """

    __slots__ = ('opacity', 'draw_progress', 'is_disappearing')

    def __init__(self, opacity: float = 0.0, draw_progress: float = 0.0, is_disappearing: bool = False):
        self.opacity = opacity
        self.draw_progress = draw_progress
        self.is_disappearing = is_disappearing

    def advance(self, amount: float) -> None:
        """Step toward fully visible, or toward transparent when disappearing."""
        if self.is_disappearing:
            self.opacity = max(0.0, self.opacity - amount)
        else:
            self.opacity = min(1.0, self.opacity + amount)
            self.draw_progress = min(1.0, self.draw_progress + amount)

    def __repr__(self) -> str:
        return (f"AnimationState(opacity={self.opacity:g}, draw_progress={self.draw_progress:g}, "
                f"is_disappearing={self.is_disappearing})")


class Connection:
    """
    Edge between two nodes with a persistent identity.

    Equality and hashing use the canonical ID only, so a connection and
    its re-derived counterpart compare equal whatever their animation
    state.

    Attributes:
        id: Canonical ID
        connection_type: Spouse or parent-child
        from_id: Source node (the parent for parent-child edges)
        to_id: Destination node
        animation: Draw and fade state
        is_highlighted: Both endpoints are on the highlighted path
    """

    def __init__(
        self,
        connection_type: ConnectionType,
        from_id: str,
        to_id: str,
        animation: Optional[AnimationState] = None,
        is_highlighted: bool = False
    ):
        self.connection_type = ConnectionType(connection_type)
        self.from_id = from_id
        self.to_id = to_id
        self.id = connection_id(self.connection_type, from_id, to_id)
        self.animation = animation or AnimationState()
        self.is_highlighted = is_highlighted

    @property
    def opacity(self) -> float:
        return self.animation.opacity

    @property
    def draw_progress(self) -> float:
        return self.animation.draw_progress

    @property
    def is_disappearing(self) -> bool:
        return self.animation.is_disappearing

    @property
    def is_fully_visible(self) -> bool:
        return (self.draw_progress >= VISIBLE_THRESHOLD
                and self.opacity >= VISIBLE_THRESHOLD
                and not self.is_disappearing)

    @property
    def needs_animation(self) -> bool:
        return not self.is_fully_visible

    def involves(self, node_id: str) -> bool:
        return node_id == self.from_id or node_id == self.to_id

    def mark_disappearing(self) -> None:
        self.animation.is_disappearing = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Connection):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        state = "disappearing" if self.is_disappearing else "visible"
        return f"Connection({self.id!r}, {state})"


def derive_connections(
    nodes: Iterable[FamilyNode],
    visible_ids: Optional[Iterable[str]] = None
) -> list[Connection]:
    """
    Derive the edges implied by node relations.

    Relations are read in both directions, so an edge recorded on only
    one endpoint is still found. Each edge appears once.

    Args:
        nodes: Nodes whose relations define the edges
        visible_ids: Restrict endpoints to these IDs (default: all nodes)

    Returns:
        Spouse connections, then parent-child connections, each in node
        input order
    """
    nodes = list(nodes)
    if visible_ids is not None:
        visible = set(visible_ids)
        nodes = [node for node in nodes if node.id in visible]
    index = RelationIndex(nodes)

    spouses: list[Connection] = []
    seen: set[str] = set()
    for node in nodes:
        for spouse_id in index.spouses(node.id):
            connection = Connection(ConnectionType.spouse, node.id, spouse_id)
            if connection.id not in seen:
                seen.add(connection.id)
                spouses.append(connection)

    parent_child: list[Connection] = []
    for node in nodes:
        for parent_id in index.parents(node.id):
            connection = Connection(ConnectionType.parent_child, parent_id, node.id)
            if connection.id not in seen:
                seen.add(connection.id)
                parent_child.append(connection)

    return spouses + parent_child


class ConnectionUpdateResult:
    """
    Outcome of a lifecycle update.

    Attributes:
        connections: Connections after the update
        new_connection_ids: IDs created in this update
        removed_connection_ids: IDs newly marked disappearing
    """

    def __init__(
        self,
        connections: list[Connection],
        new_connection_ids: set[str],
        removed_connection_ids: set[str]
    ):
        self.connections = connections
        self.new_connection_ids = new_connection_ids
        self.removed_connection_ids = removed_connection_ids

    @property
    def has_changes(self) -> bool:
        return bool(self.new_connection_ids or self.removed_connection_ids)

    def __repr__(self) -> str:
        return (f"ConnectionUpdateResult(connections={len(self.connections)}, "
                f"new={len(self.new_connection_ids)}, removed={len(self.removed_connection_ids)})")


def _highlighted(connection: Connection, highlighted_path: set[str]) -> bool:
    return connection.from_id in highlighted_path and connection.to_id in highlighted_path


def update_connections(
    current: list[Connection],
    desired: Iterable[Connection],
    highlighted_path: Optional[Iterable[str]] = None
) -> ConnectionUpdateResult:
    """
    Reconcile current connections with a freshly derived set.

    Surviving connections keep their animation state and only have their
    highlight recomputed. New connections start invisible. Vanished ones
    are marked disappearing rather than removed; a connection that is
    already disappearing stays so, even if it is desired again.

    Args:
        current: Connections from the previous update (mutated in place)
        desired: Connections that should exist now
        highlighted_path: Node IDs on the highlighted path

    Returns:
        ConnectionUpdateResult
    """
    path = set(highlighted_path or ())
    desired = list(desired)
    desired_ids = {c.id for c in desired}
    current_ids = {c.id for c in current}

    connections: list[Connection] = []
    new_ids: set[str] = set()
    removed_ids: set[str] = set()

    for connection in current:
        if connection.id in desired_ids:
            connection.is_highlighted = _highlighted(connection, path)
        elif not connection.is_disappearing:
            connection.mark_disappearing()
            removed_ids.add(connection.id)
        connections.append(connection)

    for candidate in desired:
        if candidate.id in current_ids or candidate.id in new_ids:
            continue
        connection = Connection(
            candidate.connection_type, candidate.from_id, candidate.to_id,
            is_highlighted=_highlighted(candidate, path),
        )
        new_ids.add(connection.id)
        connections.append(connection)

    logger.debug("connections: %d new, %d disappearing, %d total",
                 len(new_ids), len(removed_ids), len(connections))
    return ConnectionUpdateResult(connections, new_ids, removed_ids)


def prune_disappeared_connections(
    connections: list[Connection],
    epsilon: float = PRUNE_EPSILON
) -> list[Connection]:
    """Drop disappearing connections whose opacity has reached epsilon."""
    return [c for c in connections if not c.is_disappearing or c.opacity > epsilon]


class ConnectionLifecycleManager:
    """
    Holds the live connection list across successive layouts.

    Example:
        manager = ConnectionLifecycleManager()
        manager.update(nodes, visible_ids=shown, highlighted_path=path)
        manager.tick(0.1)
        manager.prune()
    """

    def __init__(self, epsilon: float = PRUNE_EPSILON):
        self.epsilon = epsilon
        self._connections: list[Connection] = []

    @property
    def connections(self) -> list[Connection]:
        return list(self._connections)

    def update(
        self,
        nodes: Iterable[FamilyNode],
        visible_ids: Optional[Iterable[str]] = None,
        highlighted_path: Optional[Iterable[str]] = None
    ) -> ConnectionUpdateResult:
        """Derive desired connections from nodes and reconcile."""
        desired = derive_connections(nodes, visible_ids)
        result = update_connections(self._connections, desired, highlighted_path)
        self._connections = result.connections
        return result

    def tick(self, amount: float) -> None:
        """Advance every connection's animation."""
        for connection in self._connections:
            connection.animation.advance(amount)

    def prune(self) -> list[Connection]:
        """
        Remove faded-out connections.

        Returns:
            The connections removed
        """
        kept = prune_disappeared_connections(self._connections, self.epsilon)
        kept_ids = {c.id for c in kept}
        removed = [c for c in self._connections if c.id not in kept_ids]
        self._connections = kept
        return removed

    def __len__(self) -> int:
        return len(self._connections)
