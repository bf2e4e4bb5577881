"""
Core data model for family layout.

This module defines the input graph (family nodes and their typed
relations), the positioned output of a layout run, and the spacing
configuration shared by every layout component.
"""

from __future__ import annotations

from datetime import date
from enum import IntEnum
from typing import Any, Mapping, Optional
import warnings

from .geom import Point


class RelationType(IntEnum):
    """
    Kind of relation stored on a node.

    Relations are directional as stored: a ``parent`` relation on node A
    pointing at B says "B is A's parent". Every lookup also checks the
    inverse direction on the other node.
    """
    parent = 0
    child = 1
    spouse = 2
    sibling = 3
    other = 4

    @property
    def inverse(self) -> RelationType:
        """Relation type seen from the other endpoint."""
        if self is RelationType.parent:
            return RelationType.child
        if self is RelationType.child:
            return RelationType.parent
        return self


class Relation:
    """
    Typed relation from the owning node to another node.

    Attributes:
        relation_type: Kind of relation
        target_id: ID of the related node
        label: Optional free-form label (e.g. "older brother")
    """

    def __init__(self, relation_type: RelationType, target_id: str, label: str = ""):
        self.relation_type = RelationType(relation_type)
        self.target_id = target_id
        self.label = label

    def __repr__(self) -> str:
        return f"Relation({self.relation_type.name}, {self.target_id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Relation):
            return NotImplemented
        return (self.relation_type == other.relation_type
                and self.target_id == other.target_id)

    def __hash__(self) -> int:
        return hash((self.relation_type, self.target_id))


class FamilyNode:
    """
    A person in the family graph.

    Attributes:
        id: Unique, stable identifier
        relations: Typed relations to other node IDs
        birth_date: Optional birth date used for age ordering
        metadata: Opaque caller data carried through to NodePosition
    """

    def __init__(
        self,
        id: str,
        relations: Optional[list[Relation]] = None,
        birth_date: Optional[date] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.id = id
        self.relations: list[Relation] = list(relations) if relations else []
        self.birth_date = birth_date
        self.metadata: dict[str, Any] = dict(metadata) if metadata else {}

    def add_relation(
        self,
        relation_type: RelationType,
        target_id: str,
        label: str = ""
    ) -> FamilyNode:
        """Append a relation and return self for chaining."""
        self.relations.append(Relation(relation_type, target_id, label))
        return self

    def relations_of_type(self, relation_type: RelationType) -> list[Relation]:
        """Relations of the given type, in stored order."""
        return [r for r in self.relations if r.relation_type == relation_type]

    def __repr__(self) -> str:
        return f"FamilyNode({self.id!r})"


class NodePosition:
    """
    Position of a node in a layout snapshot.

    Identity is the node ID: two positions are equal iff their node IDs
    are equal, regardless of coordinates. This lets snapshots be merged
    and deduplicated through sets and dicts.

    Attributes:
        node_id: ID of the positioned node
        x: Horizontal coordinate
        y: Vertical coordinate (negative above the root row)
        generation: Signed generation; 0 is the root row, negative are
            ancestors and positive are descendants
        relationship_kind: Opaque relationship label from the oracle
        metadata: Opaque caller data copied from the node
    """

    __slots__ = ('node_id', 'x', 'y', 'generation', 'relationship_kind', 'metadata')

    def __init__(
        self,
        node_id: str,
        x: float,
        y: float,
        generation: int,
        relationship_kind: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.node_id = node_id
        self.x = float(x)
        self.y = float(y)
        self.generation = generation
        self.relationship_kind = relationship_kind
        self.metadata: dict[str, Any] = metadata if metadata is not None else {}

    @property
    def point(self) -> Point:
        """Position as a Point."""
        return Point(self.x, self.y)

    def copy(self) -> NodePosition:
        """Independent copy (metadata dict is shared, it is never mutated)."""
        return NodePosition(
            self.node_id, self.x, self.y, self.generation,
            self.relationship_kind, self.metadata
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodePosition):
            return NotImplemented
        return self.node_id == other.node_id

    def __hash__(self) -> int:
        return hash(self.node_id)

    def __repr__(self) -> str:
        return (f"NodePosition({self.node_id!r}, x={self.x:g}, y={self.y:g}, "
                f"generation={self.generation})")


_CONFIG_FIELDS = (
    'base_spacing', 'spouse_spacing', 'vertical_spacing',
    'min_spacing', 'expansion_factor'
)

_CAMEL_CASE = {
    'baseSpacing': 'base_spacing',
    'spouseSpacing': 'spouse_spacing',
    'verticalSpacing': 'vertical_spacing',
    'minSpacing': 'min_spacing',
    'expansionFactor': 'expansion_factor',
}


class LayoutConfig:
    """
    Spacing configuration for a layout run.

    Attributes:
        base_spacing: Horizontal gap between unrelated nodes and siblings
        spouse_spacing: Horizontal gap between spouses
        vertical_spacing: Vertical gap between generations
        min_spacing: Minimum horizontal gap used for collision checks
        expansion_factor: Growth rate of the dynamic fallback spacing
    """

    def __init__(
        self,
        base_spacing: float = 150.0,
        spouse_spacing: float = 120.0,
        vertical_spacing: float = 200.0,
        min_spacing: float = 100.0,
        expansion_factor: float = 1.2,
    ):
        self.base_spacing = float(base_spacing)
        self.spouse_spacing = float(spouse_spacing)
        self.vertical_spacing = float(vertical_spacing)
        self.min_spacing = float(min_spacing)
        self.expansion_factor = float(expansion_factor)
        self._validate()

    def _validate(self) -> None:
        for name in _CONFIG_FIELDS:
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.min_spacing > self.base_spacing:
            warnings.warn(
                f"min_spacing ({self.min_spacing}) exceeds base_spacing "
                f"({self.base_spacing}); sibling rows may be resolved away "
                "from their preferred slots",
                UserWarning,
                stacklevel=3
            )

    @classmethod
    def default(cls) -> LayoutConfig:
        """Recommended spacing."""
        return cls()

    @classmethod
    def compact(cls) -> LayoutConfig:
        """Reduced spacing for dense trees."""
        return cls(120, 100, 150, 60, 1.1)

    @classmethod
    def spacious(cls) -> LayoutConfig:
        """Increased spacing for large displays."""
        return cls(240, 200, 250, 100, 1.2)

    @classmethod
    def from_dict(cls, values: Mapping[str, float]) -> LayoutConfig:
        """
        Build a config from a mapping.

        Keys may be snake_case (``base_spacing``) or camelCase
        (``baseSpacing``). Missing keys keep their defaults.

        Raises:
            ValueError: On unknown keys or non-positive values
        """
        kwargs = {}
        for key, value in values.items():
            name = _CAMEL_CASE.get(key, key)
            if name not in _CONFIG_FIELDS:
                raise ValueError(f"Unknown layout config key: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, float]:
        """Config as a snake_case dict."""
        return {name: getattr(self, name) for name in _CONFIG_FIELDS}

    def replace(self, **changes: float) -> LayoutConfig:
        """Copy with some fields changed."""
        values = self.to_dict()
        values.update(changes)
        return LayoutConfig(**values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LayoutConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        fields = ', '.join(f"{k}={v:g}" for k, v in self.to_dict().items())
        return f"LayoutConfig({fields})"
