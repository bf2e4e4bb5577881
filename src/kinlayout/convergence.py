"""
Iterative centering of parents over their children.

After placement, each sibling group is pulled under its parents and each
parent couple is centered over its children. Both moves feed back into
each other across generations, so passes repeat until no node ends a
pass more than the tolerance away from where it started, or the pass
cap is hit. Every pass finishes by separating crowded rows, so the
layout never holds two nodes closer than the minimum spacing.
"""

from __future__ import annotations

import logging
import warnings

from .geom import span_center
from .model import NodePosition
from .ordering import sort_by_age
from .separation import separate_row
from .session import LayoutSession

logger = logging.getLogger(__name__)

# Separator for parent-set grouping keys
KEY_SEPARATOR = "|||"

MAX_ITERATIONS = 10

# Moves at or below this distance are not adjustments
TOLERANCE = 1.0


class ConvergenceWarning(UserWarning):
    """Warning that centering stopped at the pass cap."""
    pass


class ConvergenceResult:
    """
    Outcome of a convergence loop.

    Attributes:
        iterations: Passes run
        converged: True if the last pass left every node within tolerance
        adjusted: IDs displaced by a pass, in any pass
    """

    def __init__(self, iterations: int, converged: bool, adjusted: set[str]):
        self.iterations = iterations
        self.converged = converged
        self.adjusted = adjusted

    def __repr__(self) -> str:
        return (f"ConvergenceResult(iterations={self.iterations}, "
                f"converged={self.converged}, adjusted={len(self.adjusted)})")


class ConvergenceAligner:
    """
    Centers parent groups over their children.

    The session's anchor node never moves. A group whose single parent
    is the anchor keeps that parent fixed; a couple containing the anchor
    only moves the partner. A married child carries its same-row spouses
    along when its row is re-laid.

    Args:
        session: Layout session with placed nodes
        max_iterations: Pass cap for converge()
    """

    def __init__(self, session: LayoutSession, max_iterations: int = MAX_ITERATIONS):
        self.session = session
        self.max_iterations = max_iterations

    def groups(self) -> list[tuple[str, list[NodePosition]]]:
        """
        Group placed nodes by their parent set.

        Returns:
            (key, children) pairs, ancestors' groups first. Children are
            listed in placement order.
        """
        session = self.session
        by_key: dict[str, list[NodePosition]] = {}
        for node_id, position in session.positions.items():
            parent_ids = session.parent_ids(node_id)
            if parent_ids:
                by_key.setdefault(KEY_SEPARATOR.join(parent_ids), []).append(position)

        def order(key: str) -> tuple:
            generations = [session.positions[p].generation for p in key.split(KEY_SEPARATOR)]
            return (min(generations), key)

        return [(key, by_key[key]) for key in sorted(by_key, key=order)]

    def single_pass(self) -> set[str]:
        """
        Run one centering pass over every group, then separate rows.

        A node moved by one group and moved back by a later one has not
        been displaced, so only the net change over the pass counts.

        Returns:
            IDs of nodes that ended the pass more than the tolerance
            from where they started it
        """
        before = self._xs()
        for key, children in self.groups():
            self._align_group(key, children)
        self.separate_rows()
        return self._displaced_since(before)

    def realign_around(self, node_id: str) -> set[str]:
        """
        Re-center only the groups touching one node, then separate rows.

        The touched groups are the node's own sibling group and every
        group it is a parent of. Run after each placement, this keeps
        intermediate layouts close to the final one.

        Returns:
            IDs displaced by more than the tolerance
        """
        before = self._xs()
        own_key = KEY_SEPARATOR.join(self.session.parent_ids(node_id))
        for key, children in self.groups():
            if key == own_key or node_id in key.split(KEY_SEPARATOR):
                self._align_group(key, children)
        self.separate_rows()
        return self._displaced_since(before)

    def converge(self) -> ConvergenceResult:
        """
        Repeat passes until one displaces nothing.

        Hitting the pass cap emits a ConvergenceWarning; the layout is
        still returned in its best state.

        Returns:
            ConvergenceResult
        """
        adjusted: set[str] = set()
        for iteration in range(1, self.max_iterations + 1):
            moved = self.single_pass()
            logger.debug("convergence pass %d displaced %d node(s)", iteration, len(moved))
            if not moved:
                return ConvergenceResult(iteration, True, adjusted)
            adjusted |= moved

        warnings.warn(
            f"Parent centering did not settle after {self.max_iterations} passes; "
            "layout may not be fully centered",
            ConvergenceWarning,
            stacklevel=2
        )
        return ConvergenceResult(self.max_iterations, False, adjusted)

    def separate_rows(self) -> None:
        """
        Push apart nodes closer than the minimum spacing on any row.

        Order along each row is kept, the anchor stays put and crowded
        runs move as little as possible.
        """
        session = self.session
        gap = session.config.min_spacing

        rows: dict[float, list[NodePosition]] = {}
        for position in session.positions.values():
            rows.setdefault(position.y, []).append(position)

        for row in rows.values():
            if len(row) < 2:
                continue
            row.sort(key=lambda p: (p.x, p.node_id))
            fixed = next((i for i, p in enumerate(row) if p.node_id == session.anchor_id), None)
            for position, new_x in zip(row, separate_row([p.x for p in row], gap, fixed)):
                if new_x != position.x:
                    session.move(position.node_id, new_x)

    def _xs(self) -> dict[str, float]:
        return {node_id: p.x for node_id, p in self.session.positions.items()}

    def _displaced_since(self, before: dict[str, float]) -> set[str]:
        return {
            node_id for node_id, p in self.session.positions.items()
            if abs(p.x - before.get(node_id, p.x)) > TOLERANCE
        }

    def _align_group(self, key: str, children: list[NodePosition]) -> None:
        session = self.session
        parents = [session.positions[p] for p in key.split(KEY_SEPARATOR)]

        ordered = sort_by_age(
            children,
            birth_date=lambda p: session.index.node(p.node_id).birth_date,
            x=lambda p: p.x,
            item_id=lambda p: p.node_id,
        )

        # Center parents over where the children are now
        children_center = span_center([c.x for c in ordered])
        self._align_parents(parents, children_center)

        # Re-lay children evenly under the parents, spouses in tow
        in_row = {c.node_id for c in ordered}
        for child, new_x in zip(ordered, self._row_targets(ordered, parents)):
            if child.node_id == session.anchor_id:
                continue
            if abs(child.x - new_x) > TOLERANCE:
                left, right = self._spouse_sides(child, in_row)
                session.move(child.node_id, new_x)
                self._follow(left, new_x, -1.0)
                self._follow(right, new_x, 1.0)

        # Nudge parents once more if the row shifted under them
        final_center = span_center([c.x for c in ordered])
        if abs(span_center([p.x for p in parents]) - final_center) > TOLERANCE:
            self._align_parents(parents, final_center)

    def _row_targets(
        self,
        ordered: list[NodePosition],
        parents: list[NodePosition]
    ) -> list[float]:
        """
        Target X for each child, spaced by base spacing.

        Room for one spouse spacing is reserved beside a child for each
        of its spouses on the same row. Without the anchor the row is
        centered under the parents; with the anchor the row is built
        outward from it.
        """
        session = self.session
        cfg = session.config
        in_row = {c.node_id for c in ordered}

        offsets = [0.0]
        for before, after in zip(ordered, ordered[1:]):
            _, right = self._spouse_sides(before, in_row)
            left, _ = self._spouse_sides(after, in_row)
            offsets.append(offsets[-1] + cfg.base_spacing + (len(right) + len(left)) * cfg.spouse_spacing)

        slot = next((i for i, c in enumerate(ordered) if c.node_id == session.anchor_id), None)
        if slot is None:
            start = span_center([p.x for p in parents]) - offsets[-1] / 2
        else:
            start = ordered[slot].x - offsets[slot]
        return [start + offset for offset in offsets]

    def _spouse_sides(
        self,
        child: NodePosition,
        in_row: set[str]
    ) -> tuple[list[NodePosition], list[NodePosition]]:
        """Placed same-row spouses of a child outside its row, nearest first on each side."""
        session = self.session
        spouses = [
            s for s in session.placed(session.index.spouses(child.node_id))
            if s.node_id not in in_row and abs(s.y - child.y) <= TOLERANCE
        ]
        here = (child.x, child.node_id)
        left = sorted((s for s in spouses if (s.x, s.node_id) < here), key=lambda s: -s.x)
        right = sorted((s for s in spouses if (s.x, s.node_id) > here), key=lambda s: s.x)
        return left, right

    def _follow(self, spouses: list[NodePosition], x: float, side: float) -> None:
        session = self.session
        spacing = session.config.spouse_spacing
        for k, spouse in enumerate(spouses, 1):
            if spouse.node_id == session.anchor_id:
                continue
            new_x = x + side * k * spacing
            if abs(spouse.x - new_x) > TOLERANCE:
                session.move(spouse.node_id, new_x)

    def _align_parents(self, parents: list[NodePosition], center: float) -> None:
        if len(parents) == 1:
            self._align_single_parent(parents[0], center)
        elif len(parents) == 2:
            self._align_parent_pair(parents, center)

    def _align_single_parent(self, parent: NodePosition, center: float) -> None:
        session = self.session
        if parent.node_id == session.anchor_id:
            return

        occupancy = session.occupancy
        occupancy.unmark_occupied(parent.x, parent.y)
        new_x = occupancy.find_nearest_available(center, parent.y, session.config.min_spacing)
        occupancy.mark_occupied(parent.x, parent.y)

        if abs(new_x - parent.x) > TOLERANCE:
            session.move(parent.node_id, new_x)

    def _align_parent_pair(self, parents: list[NodePosition], center: float) -> None:
        session = self.session
        spacing = session.config.spouse_spacing
        left, right = sorted(parents, key=lambda p: (p.x, p.node_id))

        if session.anchor_id in (left.node_id, right.node_id):
            if left.node_id == session.anchor_id:
                anchor, partner, side = left, right, 1.0
            else:
                anchor, partner, side = right, left, -1.0
            targets = [(partner, anchor.x + side * spacing)]
        else:
            targets = [(left, center - spacing / 2), (right, center + spacing / 2)]

        for parent, new_x in targets:
            if abs(parent.x - new_x) > TOLERANCE:
                session.move(parent.node_id, new_x)
