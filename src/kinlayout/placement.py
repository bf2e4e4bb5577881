"""
Rule-based placement of family nodes.

Nodes move from unplaced to placed one at a time in queue order. Each
node takes the position of the first rule that applies:

1. next to an already placed spouse
2. below placed parents
3. above placed children
4. beside placed siblings, ordered by age
5. near the closest placed relative, or the root

Positions are resolved against the session's occupancy index so that no
two nodes on a row land closer than the configured spacing, up to the
probe limit. After each placement the groups touching the new node are
re-centered locally, so every intermediate layout already looks like a
family tree and the final centering pass has little left to do.
"""

from __future__ import annotations

from typing import Optional
import logging

from .convergence import ConvergenceAligner, ConvergenceResult
from .errors import RootNotPlacedError
from .model import NodePosition, RelationType
from .ordering import PriorityOrderer, QueueEntry, SiblingAgeComparator
from .session import LayoutSession

logger = logging.getLogger(__name__)

# Graph distance of each relation type for the fallback rule
RELATION_WEIGHTS = {
    RelationType.parent: 1.0,
    RelationType.child: 1.0,
    RelationType.spouse: 1.5,
    RelationType.sibling: 2.0,
    RelationType.other: 3.0,
}

# Outward search steps when a sibling must stay on one side of the root
SIBLING_SEARCH_STEPS = 20

# Same-row tolerance
ROW_TOLERANCE = 1.0


class SpouseContext:
    """Spouses flanking the root on its row, if any."""

    __slots__ = ('left', 'right')

    def __init__(self, left: Optional[NodePosition] = None, right: Optional[NodePosition] = None):
        self.left = left
        self.right = right


class PlacementEngine:
    """
    Places every node of a session.

    Args:
        session: Fresh layout session
        orderer: Queue builder (default: PriorityOrderer over the session)
        realign: Re-center the groups around each node as it is placed
    """

    def __init__(
        self,
        session: LayoutSession,
        orderer: Optional[PriorityOrderer] = None,
        realign: bool = True
    ):
        self.session = session
        self.orderer = orderer or PriorityOrderer(session.index, session.oracle)
        self.comparator = SiblingAgeComparator(session.index)
        self.aligner = ConvergenceAligner(session)
        self.realign = realign
        self.convergence: Optional[ConvergenceResult] = None

    # ---- drivers ----

    def run(self) -> list[NodePosition]:
        """
        Place all nodes, then center parent groups.

        Returns:
            Positions in placement order
        """
        self.place_all()
        self.convergence = self.aligner.converge()
        return self.session.layout()

    def run_incremental(self) -> list[list[NodePosition]]:
        """
        Place all nodes, recording a snapshot after every placement.

        The last snapshot is replaced by the centered layout, so it
        matches the result of run().

        Returns:
            One snapshot per placed node
        """
        self.place_all(record=True)
        self.convergence = self.aligner.converge()
        snapshots = self.session.snapshots
        if snapshots:
            snapshots[-1] = self.session.snapshot()
        return snapshots

    def place_all(self, record: bool = False) -> None:
        """
        Place the root, its spouse, then every queued node.

        Args:
            record: Append a snapshot to the session after each placement
        """
        session = self.session
        queue = self.orderer.build_queue(session.root_id)

        self.place_root()
        if record:
            session.record_snapshot()

        spouse = self.place_root_spouse()
        if spouse is not None:
            self._settle(spouse.node_id, record)

        for entry in self.pending(queue):
            self.place_node(entry.node_id)
            self._settle(entry.node_id, record)

        logger.debug("placed %d node(s)", len(session))

    def _settle(self, node_id: str, record: bool) -> None:
        if self.realign:
            self.aligner.realign_around(node_id)
        if record:
            self.session.record_snapshot()

    def pending(self, queue: list[QueueEntry]) -> list[QueueEntry]:
        """Queue entries not yet placed, highest priority first."""
        ordered = sorted(queue, key=lambda e: e.priority, reverse=True)
        return [e for e in ordered if not self.session.is_placed(e.node_id)]

    # ---- fixed placements ----

    def place_root(self) -> NodePosition:
        """Place the root at the origin."""
        return self.session.place(self.session.root_id, 0.0, 0.0, 0)

    def place_root_spouse(self) -> Optional[NodePosition]:
        """Place the root's first unplaced spouse one spouse spacing to the right."""
        session = self.session
        for spouse_id in session.index.spouses(session.root_id):
            if not session.is_placed(spouse_id):
                return session.place(spouse_id, session.config.spouse_spacing, 0.0, 0)
        return None

    # ---- rules ----

    def place_node(self, node_id: str) -> NodePosition:
        """
        Place one node using the first applicable rule.

        Raises:
            RootNotPlacedError: If no rule applies and the root is not placed
        """
        x, y, generation, rule = self.best_position(node_id)
        logger.debug("placed %s by %s at (%g, %g)", node_id, rule, x, y)
        return self.session.place(node_id, x, y, generation)

    def best_position(self, node_id: str) -> tuple[float, float, int, str]:
        """
        Compute a position without placing the node.

        Returns:
            (x, y, generation, rule name)
        """
        session = self.session
        index = session.index

        spouses = session.placed(index.spouses(node_id))
        if spouses:
            return self.adjacent_to_spouse(spouses[0]) + ("spouse",)

        parent_ids = session.parent_ids(node_id)
        if parent_ids:
            parents = session.placed(parent_ids)
            siblings = self._placed_siblings(node_id)
            if (parents[0].generation + 1 == 0
                    and node_id in index.siblings(session.root_id)
                    and siblings):
                return self.with_siblings(node_id, siblings) + ("siblings",)
            return self.below_parents(node_id, parents) + ("parents",)

        children = session.placed(index.children(node_id))
        if children:
            return self.above_children(node_id, children) + ("children",)

        siblings = self._placed_siblings(node_id)
        if siblings:
            return self.with_siblings(node_id, siblings) + ("siblings",)

        return self.near_closest_relative(node_id) + ("fallback",)

    def adjacent_to_spouse(self, spouse: NodePosition) -> tuple[float, float, int]:
        """Beside a placed spouse, right side first."""
        occupancy = self.session.occupancy
        spacing = self.session.config.spouse_spacing

        preferred = spouse.x + spacing
        if occupancy.is_available(preferred, spouse.y, spacing):
            x = preferred
        else:
            x = spouse.x - spacing
        x = occupancy.find_nearest_available(x, spouse.y, spacing)
        return x, spouse.y, spouse.generation

    def below_parents(
        self,
        node_id: str,
        parents: list[NodePosition]
    ) -> tuple[float, float, int]:
        """Centered below placed parents, pulled toward own placed children."""
        session = self.session
        cfg = session.config

        y = parents[0].y + cfg.vertical_spacing
        generation = parents[0].generation + 1
        x = _mean([p.x for p in parents])

        children = session.placed(session.index.children(node_id))
        if children:
            x = (x + _mean([c.x for c in children])) / 2

        x = session.occupancy.find_nearest_available(x, y, cfg.min_spacing)
        return x, y, generation

    def above_children(
        self,
        node_id: str,
        children: list[NodePosition]
    ) -> tuple[float, float, int]:
        """
        Centered above placed children.

        If another parent of those children is already placed, mirror
        its offset from the children's center so the couple straddles
        the children.
        """
        session = self.session
        cfg = session.config
        occupancy = session.occupancy

        center = _mean([c.x for c in children])
        y = children[0].y - cfg.vertical_spacing
        generation = children[0].generation - 1

        co_parent = self._placed_co_parent(node_id, children)
        if co_parent is None:
            preferred = center
        else:
            offset = co_parent.x - center
            if abs(offset) < cfg.spouse_spacing / 2:
                preferred = center + cfg.spouse_spacing / 2
                if not occupancy.is_available(preferred, y, cfg.min_spacing):
                    preferred = center - cfg.spouse_spacing / 2
            else:
                preferred = center - offset

        x = occupancy.find_nearest_available(preferred, y, cfg.min_spacing)
        return x, y, generation

    def with_siblings(
        self,
        node_id: str,
        siblings: list[NodePosition]
    ) -> tuple[float, float, int]:
        """
        On the siblings' row, older to the left and younger to the right.

        On the root's row the side is relative to the root, and the node
        is kept past the root's spouse and already placed siblings on
        that side. On other rows it extends the sibling row outward.
        """
        session = self.session
        reference = siblings[0]
        y = reference.y
        generation = reference.generation

        root = session.position(session.root_id)
        if root is not None and abs(root.y - y) < ROW_TOLERANCE:
            x = self._sibling_x_on_root_row(node_id, siblings, root, y)
            return x, y, generation

        spacing = session.config.base_spacing
        older = self.comparator.is_older(node_id, reference.node_id)
        if older:
            preferred = min(s.x for s in siblings) - spacing
        else:
            preferred = max(s.x for s in siblings) + spacing
        x = session.occupancy.find_nearest_available(preferred, y, spacing, prefer_left=older)
        return x, y, generation

    def near_closest_relative(self, node_id: str) -> tuple[float, float, int]:
        """
        Beside the closest placed relative by relation weight.

        Falls back to the root when nothing placed is related.

        Raises:
            RootNotPlacedError: If the root has not been placed
        """
        session = self.session
        root = session.position(session.root_id)
        if root is None:
            raise RootNotPlacedError(session.root_id, node_id)

        reference: Optional[NodePosition] = None
        role: Optional[RelationType] = None
        best = float('inf')
        for placed_id, position in session.positions.items():
            relation = session.index.role(node_id, relative_to=placed_id)
            if relation is None:
                continue
            weight = RELATION_WEIGHTS[relation]
            if weight < best:
                best = weight
                reference = position
                role = relation

        if reference is None:
            reference = root

        cfg = session.config
        if role is RelationType.parent:
            generation, y = reference.generation - 1, reference.y - cfg.vertical_spacing
        elif role is RelationType.child:
            generation, y = reference.generation + 1, reference.y + cfg.vertical_spacing
        else:
            generation, y = reference.generation, reference.y

        spacing = session.current_spacing()
        x = session.occupancy.find_nearest_available(reference.x + spacing, y, spacing)
        return x, y, generation

    # ---- sibling helpers ----

    def _sibling_x_on_root_row(
        self,
        node_id: str,
        siblings: list[NodePosition],
        root: NodePosition,
        y: float
    ) -> float:
        older = self.comparator.is_older(node_id, root.node_id)
        spouse = self.spouse_context(y, root.x)
        preferred = self.preferred_sibling_x(older, root.x, siblings, spouse)
        resolved = self.resolve_sibling_x(preferred, older, root.x, y)
        return self.adjust_sibling_x(resolved, older, root.x)

    def spouse_context(self, y: float, root_x: float) -> SpouseContext:
        """Locate a spouse pair on row y relative to the root's X."""
        pair = self._spouse_pair_at(y)
        if pair is None:
            return SpouseContext()

        left, right = pair
        root_id = self.session.root_id
        if root_id in (left.node_id, right.node_id):
            other = right if left.node_id == root_id else left
            if other.x < root_x:
                return SpouseContext(left=other)
            return SpouseContext(right=other)

        context = SpouseContext(
            left=left if left.x < root_x else None,
            right=right if right.x > root_x else None,
        )
        if context.left is None and context.right is None:
            context = SpouseContext(left, right)
        return context

    def preferred_sibling_x(
        self,
        older: bool,
        root_x: float,
        siblings: list[NodePosition],
        spouse: SpouseContext
    ) -> float:
        """Slot just past the outermost same-side sibling, spouse or root."""
        spacing = self.session.config.base_spacing
        root_id = self.session.root_id

        if older:
            xs = [s.x for s in siblings
                  if s.x < root_x and self.comparator.is_older(s.node_id, root_id)]
            if xs:
                return min(xs) - spacing
            if spouse.left is not None:
                return spouse.left.x - spacing
            return root_x - spacing

        xs = [s.x for s in siblings
              if s.x > root_x and not self.comparator.is_older(s.node_id, root_id)]
        if xs:
            return max(xs) + spacing
        if spouse.right is not None:
            return spouse.right.x + spacing
        return root_x + spacing

    def resolve_sibling_x(self, preferred: float, older: bool, root_x: float, y: float) -> float:
        """Keep the preferred slot if free and on the right side, else search outward."""
        occupancy = self.session.occupancy
        spacing = self.session.config.base_spacing
        direction = -1.0 if older else 1.0

        on_side = preferred < root_x if older else preferred > root_x
        if on_side and occupancy.is_available(preferred, y, spacing):
            return preferred

        start = root_x + direction * spacing
        for step in range(SIBLING_SEARCH_STEPS):
            candidate = start + direction * step * spacing
            if occupancy.is_available(candidate, y, spacing):
                return candidate
        return start

    def adjust_sibling_x(self, x: float, older: bool, root_x: float) -> float:
        """Force the result onto the correct side of the root."""
        spacing = self.session.config.base_spacing
        if older and x >= root_x:
            return root_x - 2 * spacing
        if not older and x <= root_x:
            return root_x + 2 * spacing
        return x

    # ---- lookups ----

    def _placed_siblings(self, node_id: str) -> list[NodePosition]:
        session = self.session
        sibling_ids = set(session.index.siblings(node_id))
        return [p for i, p in session.positions.items() if i in sibling_ids]

    def _placed_co_parent(
        self,
        node_id: str,
        children: list[NodePosition]
    ) -> Optional[NodePosition]:
        session = self.session
        candidates: set[str] = set()
        for child in children:
            candidates.update(session.index.parents(child.node_id))
        candidates.discard(node_id)
        placed = session.placed(sorted(candidates))
        return placed[0] if placed else None

    def _spouse_pair_at(self, y: float) -> Optional[tuple[NodePosition, NodePosition]]:
        session = self.session
        row = sorted(
            (p for p in session.positions.values() if abs(p.y - y) < ROW_TOLERANCE),
            key=lambda p: (p.x, p.node_id)
        )
        for left, right in zip(row, row[1:]):
            if right.node_id in session.index.spouses(left.node_id):
                return left, right
        return None


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)
