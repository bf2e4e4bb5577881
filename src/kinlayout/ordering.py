"""
Deterministic visitation order for placement.

Relatives of a focus node are visited parents first, then siblings,
spouses and children, each group oldest first with ID order as the final
tie-break. The multi-generation queue applies the same rule degree by
degree, so two runs over identical input always visit nodes in the same
order.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, Optional, TypeVar
import logging
import re

from .model import FamilyNode, RelationType
from .oracle import RelationshipOracle
from .relations import RelationIndex

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Bucket order for relatives of a focus node
BUCKET_ORDER = (
    RelationType.parent,
    RelationType.sibling,
    RelationType.spouse,
    RelationType.child,
    RelationType.other,
)

# Priority assigned to the first queue entry; later entries count down
BASE_PRIORITY = 10000.0

_OLDER_WORDS = frozenset({"older", "elder", "eldest", "oldest", "big", "bigger", "first", "1st"})
_YOUNGER_WORDS = frozenset({"younger", "youngest", "little", "small", "smaller", "baby"})


def age_key(node: FamilyNode) -> tuple:
    """Sort key: dated before undated, oldest first, then ID."""
    return (node.birth_date is None, node.birth_date or date.min, node.id)


def sort_by_age(
    items: list[T],
    birth_date: Callable[[T], Optional[date]],
    x: Callable[[T], float],
    item_id: Optional[Callable[[T], str]] = None
) -> list[T]:
    """
    Sort items oldest to youngest.

    Items with birth dates come first. Equal or missing dates keep
    their current left-to-right order, then fall back to ID.

    Args:
        items: Items to sort
        birth_date: Extracts an optional birth date
        x: Extracts the current X position
        item_id: Extracts a stable ID for the final tie-break

    Returns:
        New sorted list
    """
    def key(item: T) -> tuple:
        born = birth_date(item)
        tie = item_id(item) if item_id is not None else ""
        return (born is None, born or date.min, x(item), tie)

    return sorted(items, key=key)


class SiblingAgeComparator:
    """
    Decides whether a sibling is older than a reference node.

    Uses, in order: birth dates when both are known, age words in the
    relation labels between the two nodes, and finally ID order.
    """

    def __init__(self, index: RelationIndex):
        self.index = index

    def is_older(self, sibling_id: str, reference_id: str) -> bool:
        sibling = self.index.node(sibling_id)
        reference = self.index.node(reference_id)

        if sibling.birth_date is not None and reference.birth_date is not None:
            return sibling.birth_date < reference.birth_date

        # A label on the reference's relation describes the sibling
        verdict = _age_from_label(self.index.label(reference_id, sibling_id))
        if verdict is not None:
            return verdict

        # A label on the sibling's relation describes the reference
        verdict = _age_from_label(self.index.label(sibling_id, reference_id))
        if verdict is not None:
            return not verdict

        return sibling_id < reference_id


def _age_from_label(label: str) -> Optional[bool]:
    """True if the label marks its subject as older, False if younger."""
    if not label:
        return None
    words = set(re.findall(r"[a-z0-9]+", label.lower()))
    if words & _OLDER_WORDS:
        return True
    if words & _YOUNGER_WORDS:
        return False
    return None


class QueueEntry:
    """Node pending placement."""

    __slots__ = ('node_id', 'degree', 'priority')

    def __init__(self, node_id: str, degree: Optional[int], priority: float):
        self.node_id = node_id
        self.degree = degree
        self.priority = priority

    def __repr__(self) -> str:
        return f"QueueEntry({self.node_id!r}, degree={self.degree}, priority={self.priority:g})"


class PriorityOrderer:
    """
    Builds placement order from relationships and degrees of separation.

    Args:
        index: Relation index over the working node set
        oracle: Source of degrees of separation
    """

    def __init__(self, index: RelationIndex, oracle: RelationshipOracle):
        self.index = index
        self.oracle = oracle

    def order_relatives(self, focus_id: str, candidate_ids: list[str]) -> list[str]:
        """
        Order candidates relative to a focus node.

        Candidates are bucketed by the role they play for the focus:
        parents, siblings, spouses, children, then other relatives.
        Candidates unrelated to the focus are dropped.

        Args:
            focus_id: Reference node
            candidate_ids: Nodes to order

        Returns:
            Ordered candidate IDs
        """
        buckets: dict[RelationType, list[FamilyNode]] = {t: [] for t in BUCKET_ORDER}
        for candidate_id in candidate_ids:
            if candidate_id == focus_id:
                continue
            role = self.index.role(candidate_id, relative_to=focus_id)
            if role is not None:
                buckets[role].append(self.index.node(candidate_id))

        result = []
        for relation_type in BUCKET_ORDER:
            result.extend(node.id for node in sorted(buckets[relation_type], key=age_key))
        return result

    def build_queue(
        self,
        root_id: str,
        node_ids: Optional[Iterable[str]] = None
    ) -> list[QueueEntry]:
        """
        Build the placement queue for every non-root node.

        Degree-1 nodes are ordered relative to the root. Degree-N nodes
        are ordered relative to each degree N-1 node, visited in the
        order that node was itself enqueued; leftovers of a degree follow
        in ID order. Nodes with no known degree come last in ID order.

        Args:
            root_id: Root node ID
            node_ids: Nodes to enqueue (default: every indexed node)

        Returns:
            Entries with strictly decreasing priority
        """
        if node_ids is None:
            node_ids = self.index.nodes
        by_degree: dict[int, list[str]] = {}
        unlinked: list[str] = []
        for node_id in sorted(set(node_ids)):
            if node_id == root_id:
                continue
            degree = self.oracle.degree_of_separation(node_id)
            if degree is None:
                unlinked.append(node_id)
            else:
                by_degree.setdefault(degree, []).append(node_id)

        order: list[tuple[str, Optional[int]]] = []
        enqueued: dict[int, list[str]] = {0: [root_id]}

        for degree in sorted(by_degree):
            members = by_degree[degree]
            claimed: set[str] = set()
            placed_this_degree: list[str] = []

            for previous in enqueued.get(degree - 1, []):
                related = [
                    m for m in members
                    if m not in claimed and self.index.are_related(previous, m)
                ]
                for node_id in self.order_relatives(previous, related):
                    claimed.add(node_id)
                    placed_this_degree.append(node_id)

            placed_this_degree.extend(m for m in members if m not in claimed)
            enqueued.setdefault(degree, []).extend(placed_this_degree)
            order.extend((node_id, degree) for node_id in placed_this_degree)

        order.extend((node_id, None) for node_id in unlinked)
        if unlinked:
            logger.debug("%d node(s) without a degree appended last", len(unlinked))

        return [
            QueueEntry(node_id, degree, BASE_PRIORITY - i)
            for i, (node_id, degree) in enumerate(order)
        ]
