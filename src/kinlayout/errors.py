"""Exceptions raised by layout operations."""


class LayoutError(Exception):
    """Base class for layout errors."""


class EmptyNodeListError(LayoutError, ValueError):
    """Raised when a layout is requested for an empty node set."""

    def __init__(self):
        super().__init__("Cannot lay out tree: node list is empty")


class RootNotFoundError(LayoutError, KeyError):
    """Raised when the root ID is not part of the node set."""

    def __init__(self, root_id: str):
        self.root_id = root_id
        super().__init__(f"Root node {root_id!r} not found in node list")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateNodeError(LayoutError, ValueError):
    """Raised when two nodes share an ID."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Duplicate node id {node_id!r}")


class RootNotPlacedError(LayoutError, RuntimeError):
    """
    Raised when relative placement runs before the root is placed.

    This is a broken precondition in the caller, not a recoverable
    condition: placement order always starts at the root.
    """

    def __init__(self, root_id: str, node_id: str):
        self.root_id = root_id
        self.node_id = node_id
        super().__init__(
            f"Root {root_id!r} must be placed before placing {node_id!r}"
        )
