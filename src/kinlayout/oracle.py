"""
Relationship oracle accessors.

The layout never classifies relationships itself. Degree of separation
and relationship kind labels come from an external oracle, accessed
through the small interface defined here.
"""

from typing import Mapping, Optional


class RelationshipOracle:
    """Base class for relationship oracles."""

    def degree_of_separation(self, node_id: str) -> Optional[int]:
        """
        Hop distance from the root to a node.

        Returns:
            Degree (0 for the root), or None if the node is unreachable
        """
        raise NotImplementedError

    def relationship_kind(self, node_id: str) -> Optional[str]:
        """Opaque relationship label for a node (e.g. "paternal uncle")."""
        return None


class MappingOracle(RelationshipOracle):
    """
    Oracle backed by precomputed dictionaries.

    Args:
        degrees: Node ID to degree of separation
        kinds: Optional node ID to relationship kind label
    """

    def __init__(
        self,
        degrees: Mapping[str, int],
        kinds: Optional[Mapping[str, str]] = None
    ):
        self.degrees = dict(degrees)
        self.kinds = dict(kinds) if kinds else {}

    def degree_of_separation(self, node_id: str) -> Optional[int]:
        return self.degrees.get(node_id)

    def relationship_kind(self, node_id: str) -> Optional[str]:
        return self.kinds.get(node_id)
