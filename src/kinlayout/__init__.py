"""
kinlayout: deterministic layout and transitions for family trees

Rule-based placement of pedigree graphs with collision avoidance and
parent centering, plus connection lifecycles and state diffs for
animated renderers.
"""

__version__ = "0.1.0"

from .components import degrees_from, filter_within_degree, reachable_from, separate_components
from .connections import (
    AnimationState,
    Connection,
    ConnectionLifecycleManager,
    ConnectionType,
    ConnectionUpdateResult,
    derive_connections,
    prune_disappeared_connections,
    update_connections,
)
from .convergence import ConvergenceAligner, ConvergenceResult, ConvergenceWarning
from .errors import (
    DuplicateNodeError,
    EmptyNodeListError,
    LayoutError,
    RootNotFoundError,
    RootNotPlacedError,
)
from .geom import Point
from .layout import EventType, TreeLayout, compute_layout, compute_layout_incremental
from .model import FamilyNode, LayoutConfig, NodePosition, Relation, RelationType
from .occupancy import OccupancyIndex
from .oracle import MappingOracle, RelationshipOracle
from .ordering import PriorityOrderer, SiblingAgeComparator, sort_by_age
from .placement import PlacementEngine
from .relations import RelationIndex
from .session import LayoutSession
from .transition import GraphState, GraphTransition, NodeMovement, compute_transition

__all__ = [
    "AnimationState",
    "Connection",
    "ConnectionLifecycleManager",
    "ConnectionType",
    "ConnectionUpdateResult",
    "ConvergenceAligner",
    "ConvergenceResult",
    "ConvergenceWarning",
    "DuplicateNodeError",
    "EmptyNodeListError",
    "EventType",
    "FamilyNode",
    "GraphState",
    "GraphTransition",
    "LayoutConfig",
    "LayoutError",
    "LayoutSession",
    "MappingOracle",
    "NodeMovement",
    "NodePosition",
    "OccupancyIndex",
    "PlacementEngine",
    "Point",
    "PriorityOrderer",
    "Relation",
    "RelationIndex",
    "RelationType",
    "RelationshipOracle",
    "RootNotFoundError",
    "RootNotPlacedError",
    "SiblingAgeComparator",
    "TreeLayout",
    "compute_layout",
    "compute_layout_incremental",
    "compute_transition",
    "degrees_from",
    "derive_connections",
    "filter_within_degree",
    "prune_disappeared_connections",
    "reachable_from",
    "separate_components",
    "sort_by_age",
    "update_connections",
]
