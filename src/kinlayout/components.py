"""
Connected components and scope filtering.

Layout only reaches nodes that have a relation path to the root. This
module provides the utilities callers use to drop disconnected nodes
beforehand and to restrict a graph to a degree-of-separation window.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable

from .errors import RootNotFoundError
from .model import FamilyNode
from .oracle import RelationshipOracle
from .relations import RelationIndex


def separate_components(nodes: list[FamilyNode]) -> list[list[FamilyNode]]:
    """
    Find connected components of a family graph.

    Relations are followed in both directions.

    Args:
        nodes: Nodes to partition

    Returns:
        List of components, each a list of nodes in input order.
        Components are ordered by their first node in the input.
    """
    index = RelationIndex(nodes)
    marks: dict[str, int] = {}
    clusters = 0

    def explore(start: str, cluster: int) -> None:
        stack = [start]
        while stack:
            node_id = stack.pop()
            if node_id in marks:
                continue
            marks[node_id] = cluster
            stack.extend(n for n in index.neighbours(node_id) if n not in marks)

    for node in nodes:
        if node.id not in marks:
            explore(node.id, clusters)
            clusters += 1

    graphs: list[list[FamilyNode]] = [[] for _ in range(clusters)]
    for node in nodes:
        graphs[marks[node.id]].append(node)
    return graphs


def degrees_from(nodes: list[FamilyNode], root_id: str) -> dict[str, int]:
    """
    Breadth-first hop counts from the root.

    Args:
        nodes: Node set
        root_id: Root node ID

    Returns:
        Dict of node ID to degree for every node reachable from the root

    Raises:
        RootNotFoundError: If the root is not in ``nodes``
    """
    index = RelationIndex(nodes)
    if root_id not in index:
        raise RootNotFoundError(root_id)

    degrees = {root_id: 0}
    queue = deque([root_id])
    while queue:
        current = queue.popleft()
        for neighbour in index.neighbours(current):
            if neighbour not in degrees:
                degrees[neighbour] = degrees[current] + 1
                queue.append(neighbour)
    return degrees


def reachable_from(nodes: list[FamilyNode], root_id: str) -> list[FamilyNode]:
    """Nodes in the root's component, in input order."""
    degrees = degrees_from(nodes, root_id)
    return [node for node in nodes if node.id in degrees]


def filter_within_degree(
    nodes: Iterable[FamilyNode],
    oracle: RelationshipOracle,
    max_degree: int
) -> list[FamilyNode]:
    """
    Keep nodes whose degree of separation is known and within range.

    Args:
        nodes: Candidate nodes
        oracle: Source of degrees
        max_degree: Inclusive upper bound

    Returns:
        Filtered nodes in input order
    """
    result = []
    for node in nodes:
        degree = oracle.degree_of_separation(node.id)
        if degree is not None and degree <= max_degree:
            result.append(node)
    return result
