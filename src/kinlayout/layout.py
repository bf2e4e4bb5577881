"""
Layout entry points.

This module provides:
- compute_layout / compute_layout_incremental, the functional API
- TreeLayout, a fluent interface with start/tick/end events for callers
  that animate placement step by step
"""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Iterable, Optional, TypedDict, Union
import logging

from .components import degrees_from
from .connections import Connection, derive_connections
from .convergence import ConvergenceResult
from .errors import EmptyNodeListError, RootNotFoundError
from .model import FamilyNode, LayoutConfig, NodePosition
from .oracle import MappingOracle, RelationshipOracle
from .placement import PlacementEngine
from .session import LayoutSession
from .transition import GraphState

logger = logging.getLogger(__name__)

RootLike = Union[FamilyNode, str]


def _root_id(root: RootLike) -> str:
    return root.id if isinstance(root, FamilyNode) else root


def _prepare_session(
    nodes: Iterable[FamilyNode],
    root: RootLike,
    oracle: Optional[RelationshipOracle],
    config: Optional[LayoutConfig]
) -> LayoutSession:
    nodes = list(nodes)
    if not nodes:
        raise EmptyNodeListError()

    root_id = _root_id(root)
    if not any(node.id == root_id for node in nodes):
        raise RootNotFoundError(root_id)

    if oracle is None:
        oracle = MappingOracle(degrees_from(nodes, root_id))

    session = LayoutSession(nodes, root_id, oracle, config)
    logger.debug("layout of %d node(s) from root %r with %r", len(nodes), root_id, session.config)
    return session


def compute_layout(
    nodes: Iterable[FamilyNode],
    root: RootLike,
    oracle: Optional[RelationshipOracle] = None,
    config: Optional[LayoutConfig] = None
) -> list[NodePosition]:
    """
    Compute the final layout of a family graph.

    Args:
        nodes: Working node set
        root: Root node or its ID; always placed at (0, 0)
        oracle: Degrees of separation and relationship kinds (default:
            hop counts from the root)
        config: Spacing (default: LayoutConfig.default())

    Returns:
        Positions in placement order

    Raises:
        EmptyNodeListError: If nodes is empty
        RootNotFoundError: If the root is not among nodes
        DuplicateNodeError: If two nodes share an ID
    """
    session = _prepare_session(nodes, root, oracle, config)
    return PlacementEngine(session).run()


def compute_layout_incremental(
    nodes: Iterable[FamilyNode],
    root: RootLike,
    oracle: Optional[RelationshipOracle] = None,
    config: Optional[LayoutConfig] = None
) -> list[list[NodePosition]]:
    """
    Compute one layout snapshot per placed node.

    Snapshot k holds the first k+1 placed nodes. The last snapshot is
    the centered final layout, equal to compute_layout() on the same
    input.

    Args:
        nodes: Working node set
        root: Root node or its ID
        oracle: Degrees of separation and relationship kinds
        config: Spacing

    Returns:
        List of snapshots in placement order
    """
    session = _prepare_session(nodes, root, oracle, config)
    return PlacementEngine(session).run_incremental()


class EventType(IntEnum):
    """
    TreeLayout fires three events:
    - start: placement started
    - tick: fired once per placement snapshot during start_incremental()
    - end: layout finished and centered
    """
    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event dictionary passed to event listeners."""
    type: EventType
    step: int
    positions: list[NodePosition]
    convergence: Optional[ConvergenceResult]


class TreeLayout:
    """
    Fluent interface to family tree layout.

    Example:
        layout = (TreeLayout()
                  .nodes(family)
                  .root("me")
                  .config(LayoutConfig.compact())
                  .start())
        for position in layout.positions():
            ...
    """

    def __init__(self):
        self._nodes: list[FamilyNode] = []
        self._root_id: Optional[str] = None
        self._oracle: Optional[RelationshipOracle] = None
        self._config: LayoutConfig = LayoutConfig.default()
        self._positions: list[NodePosition] = []
        self._snapshots: list[list[NodePosition]] = []
        self._convergence: Optional[ConvergenceResult] = None

        # Event system - can be overridden by subclasses
        self.event: Optional[dict] = None

    def on(self, e: Union[EventType, str], listener: Callable[[Optional[Event]], None]) -> TreeLayout:
        """
        Subscribe a listener to an event.

        Args:
            e: Event type (EventType enum or string name)
            listener: Function to call when event fires

        Returns:
            self for method chaining
        """
        if self.event is None:
            self.event = {}
        event_type = EventType[e] if isinstance(e, str) else e
        self.event[event_type] = listener
        return self

    def trigger(self, e: Event) -> None:
        """Call the listener registered for the event's type, if any."""
        if self.event and e['type'] in self.event:
            self.event[e['type']](e)

    def nodes(self, v: Optional[Iterable[FamilyNode]] = None) -> Union[list[FamilyNode], TreeLayout]:
        """
        Get or set the node set.

        Args:
            v: Optional nodes to set

        Returns:
            Current nodes if v is None, otherwise self for chaining
        """
        if v is None:
            return self._nodes
        self._nodes = list(v)
        return self

    def root(self, v: Optional[RootLike] = None) -> Union[Optional[str], TreeLayout]:
        """Get the root ID, or set the root from a node or ID."""
        if v is None:
            return self._root_id
        self._root_id = _root_id(v)
        return self

    def oracle(self, v: Optional[RelationshipOracle] = None) -> Union[Optional[RelationshipOracle], TreeLayout]:
        """Get or set the relationship oracle (None means hop counts from the root)."""
        if v is None:
            return self._oracle
        self._oracle = v
        return self

    def config(self, v: Optional[LayoutConfig] = None) -> Union[LayoutConfig, TreeLayout]:
        """Get or set the spacing configuration."""
        if v is None:
            return self._config
        self._config = v
        return self

    def start(self) -> TreeLayout:
        """
        Compute the final layout.

        Returns:
            self for method chaining
        """
        engine = self._engine()
        self.trigger({'type': EventType.start, 'step': 0, 'positions': []})
        self._positions = engine.run()
        self._snapshots = []
        self._convergence = engine.convergence
        self.trigger({
            'type': EventType.end,
            'positions': self._positions,
            'convergence': self._convergence,
        })
        return self

    def start_incremental(self) -> TreeLayout:
        """
        Compute per-placement snapshots, firing a tick event for each.

        Returns:
            self for method chaining
        """
        engine = self._engine()
        self.trigger({'type': EventType.start, 'step': 0, 'positions': []})
        self._snapshots = engine.run_incremental()
        self._convergence = engine.convergence
        for step, snapshot in enumerate(self._snapshots):
            self.trigger({'type': EventType.tick, 'step': step, 'positions': snapshot})
        self._positions = list(self._snapshots[-1]) if self._snapshots else []
        self.trigger({
            'type': EventType.end,
            'positions': self._positions,
            'convergence': self._convergence,
        })
        return self

    def positions(self) -> list[NodePosition]:
        """Final positions from the last start call, in placement order."""
        return self._positions

    def snapshots(self) -> list[list[NodePosition]]:
        """Snapshots from the last start_incremental call."""
        return self._snapshots

    @property
    def convergence(self) -> Optional[ConvergenceResult]:
        return self._convergence

    def connections(self) -> list[Connection]:
        """Connections between the positioned nodes."""
        visible = {p.node_id for p in self._positions}
        return derive_connections(self._nodes, visible_ids=visible)

    def graph_state(self) -> GraphState:
        """Current positions and connections as a GraphState."""
        return GraphState.from_layout(self._positions, self._nodes)

    def _engine(self) -> PlacementEngine:
        if self._root_id is None:
            raise ValueError("root must be set before starting the layout")
        session = _prepare_session(self._nodes, self._root_id, self._oracle, self._config)
        return PlacementEngine(session)
