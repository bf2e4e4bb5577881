"""
Canonical symmetric relation index.

Input relations are directional and often asymmetric: a parent may list
a child without the child listing the parent. This module normalizes
every relation into a symmetric adjacency structure built once per
layout call, so that each relationship query checks both directions in
O(1) instead of rescanning all nodes.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .errors import DuplicateNodeError
from .model import FamilyNode, RelationType


# Precedence used when two nodes are related in more than one way.
ROLE_PRECEDENCE = (
    RelationType.parent,
    RelationType.sibling,
    RelationType.spouse,
    RelationType.child,
    RelationType.other,
)


class RelationIndex:
    """
    Symmetric relation lookup over a fixed node set.

    ``links[a][t]`` holds the IDs that play role ``t`` for ``a``: for
    example ``links[a][parent]`` are a's parents, whether the relation was
    stored on ``a`` (parent -> p) or on ``p`` (child -> a). Relations to IDs
    outside the node set, and self relations, are ignored.
    """

    def __init__(self, nodes: Iterable[FamilyNode]):
        self.nodes: dict[str, FamilyNode] = {}
        for node in nodes:
            if node.id in self.nodes:
                raise DuplicateNodeError(node.id)
            self.nodes[node.id] = node

        self.links: dict[str, dict[RelationType, set[str]]] = {
            node_id: {t: set() for t in RelationType} for node_id in self.nodes
        }
        self._labels: dict[tuple[str, str], str] = {}

        for node in self.nodes.values():
            for relation in node.relations:
                target = relation.target_id
                if target == node.id or target not in self.nodes:
                    continue
                self.links[node.id][relation.relation_type].add(target)
                self.links[target][relation.relation_type.inverse].add(node.id)
                if relation.label and (node.id, target) not in self._labels:
                    self._labels[(node.id, target)] = relation.label

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: str) -> FamilyNode:
        return self.nodes[node_id]

    def related(self, node_id: str, relation_type: RelationType) -> list[str]:
        """IDs playing ``relation_type`` for ``node_id``, sorted."""
        return sorted(self.links[node_id][relation_type])

    def parents(self, node_id: str) -> list[str]:
        return self.related(node_id, RelationType.parent)

    def children(self, node_id: str) -> list[str]:
        return self.related(node_id, RelationType.child)

    def spouses(self, node_id: str) -> list[str]:
        return self.related(node_id, RelationType.spouse)

    def siblings(self, node_id: str) -> list[str]:
        return self.related(node_id, RelationType.sibling)

    def neighbours(self, node_id: str) -> list[str]:
        """All IDs related to ``node_id`` in any way, sorted."""
        result: set[str] = set()
        for ids in self.links[node_id].values():
            result |= ids
        return sorted(result)

    def are_related(self, a: str, b: str) -> bool:
        return any(b in ids for ids in self.links[a].values())

    def role(self, node_id: str, relative_to: str) -> Optional[RelationType]:
        """
        Role ``node_id`` plays for ``relative_to``.

        Returns:
            ``parent`` if node_id is a parent of relative_to, ``child`` if
            it is a child, and so on; None when the two are unrelated
        """
        links = self.links[relative_to]
        for relation_type in ROLE_PRECEDENCE:
            if node_id in links[relation_type]:
                return relation_type
        return None

    def label(self, from_id: str, to_id: str) -> str:
        """Label stored on ``from_id``'s relation to ``to_id``, or ''."""
        return self._labels.get((from_id, to_id), "")
