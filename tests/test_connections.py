"""Tests for connection derivation and lifecycle."""

import pytest
from kinlayout.connections import (
    AnimationState, Connection, ConnectionType, ConnectionLifecycleManager,
    connection_id, derive_connections, update_connections,
    prune_disappeared_connections
)
from kinlayout.model import FamilyNode, RelationType


def spouse_pair(first="a", second="b"):
    return [FamilyNode(first).add_relation(RelationType.spouse, second), FamilyNode(second)]


class TestConnectionId:
    """Test canonical connection IDs."""

    def test_spouse_sorted(self):
        """Test spouse IDs do not depend on endpoint order."""
        assert connection_id(ConnectionType.spouse, "b", "a") == "spouse-a-b"
        assert connection_id(ConnectionType.spouse, "a", "b") == "spouse-a-b"

    def test_parent_child_directed(self):
        """Test parent-child IDs read parent first."""
        assert connection_id(ConnectionType.parent_child, "dad", "me") == "parentChild-dad-me"

    def test_hyphenated_ids_share_an_id(self):
        """Test endpoints are joined with "-", so hyphenated node IDs are ambiguous."""
        joined = connection_id(ConnectionType.parent_child, "a-b", "c")
        assert joined == connection_id(ConnectionType.parent_child, "a", "b-c")
        assert joined == "parentChild-a-b-c"

    def test_type_values(self):
        """Test connection type values."""
        assert ConnectionType.spouse.value == "spouse"
        assert ConnectionType.parent_child.value == "parentChild"
        assert ConnectionType("parentChild") is ConnectionType.parent_child


class TestConnection:
    """Test Connection class."""

    def test_defaults_invisible(self):
        """Test new connections start invisible."""
        c = Connection(ConnectionType.spouse, "a", "b")
        assert c.opacity == 0.0
        assert c.draw_progress == 0.0
        assert not c.is_disappearing
        assert not c.is_highlighted
        assert c.needs_animation
        assert not c.is_fully_visible

    def test_fully_visible(self):
        """Test visibility thresholds."""
        c = Connection(ConnectionType.spouse, "a", "b", AnimationState(0.9995, 1.0))
        assert c.is_fully_visible
        assert not c.needs_animation
        c.mark_disappearing()
        assert not c.is_fully_visible
        assert c.needs_animation

    def test_equality_by_id(self):
        """Test connections compare by canonical ID."""
        a = Connection(ConnectionType.spouse, "a", "b", AnimationState(1.0, 1.0))
        b = Connection(ConnectionType.spouse, "b", "a")
        assert a == b
        assert len({a, b}) == 1

    def test_involves(self):
        """Test endpoint membership."""
        c = Connection(ConnectionType.parent_child, "dad", "me")
        assert c.involves("dad")
        assert c.involves("me")
        assert not c.involves("mom")


class TestAnimationState:
    """Test AnimationState.advance."""

    def test_appear(self):
        """Test appearing connections fill in and clamp at 1."""
        state = AnimationState()
        state.advance(0.6)
        state.advance(0.6)
        assert state.opacity == 1.0
        assert state.draw_progress == 1.0

    def test_disappear(self):
        """Test disappearing connections fade and clamp at 0."""
        state = AnimationState(1.0, 1.0, is_disappearing=True)
        state.advance(0.7)
        assert state.opacity == pytest.approx(0.3)
        state.advance(0.7)
        assert state.opacity == 0.0
        assert state.draw_progress == 1.0


class TestDeriveConnections:
    """Test derive_connections."""

    def test_spouse_pair_single_edge(self):
        """Test a spouse pair yields exactly one spouse connection."""
        nodes = [
            FamilyNode("a").add_relation(RelationType.spouse, "b"),
            FamilyNode("b").add_relation(RelationType.spouse, "a"),
        ]
        connections = derive_connections(nodes)
        assert [c.id for c in connections] == ["spouse-a-b"]
        assert not [c for c in connections if c.connection_type is ConnectionType.parent_child]

    def test_order_independent_ids(self):
        """Test the spouse ID is the same whichever node is listed first."""
        forward = derive_connections(spouse_pair("a", "b"))
        backward = derive_connections(list(reversed(spouse_pair("b", "a"))))
        assert [c.id for c in forward] == [c.id for c in backward] == ["spouse-a-b"]

    def test_parent_child_both_directions(self):
        """Test parent-child edges are found from either side."""
        nodes = [
            FamilyNode("me").add_relation(RelationType.parent, "dad"),
            FamilyNode("dad"),
            FamilyNode("mom").add_relation(RelationType.child, "me"),
        ]
        ids = [c.id for c in derive_connections(nodes)]
        assert ids == ["parentChild-dad-me", "parentChild-mom-me"]

    def test_no_duplicate_when_both_sides_record(self):
        """Test one edge when parent and child both record the relation."""
        nodes = [
            FamilyNode("me").add_relation(RelationType.parent, "dad"),
            FamilyNode("dad").add_relation(RelationType.child, "me"),
        ]
        assert [c.id for c in derive_connections(nodes)] == ["parentChild-dad-me"]

    def test_spouses_first(self):
        """Test spouse edges precede parent-child edges."""
        nodes = [
            FamilyNode("kid").add_relation(RelationType.parent, "a"),
            FamilyNode("a").add_relation(RelationType.spouse, "b"),
            FamilyNode("b"),
        ]
        types = [c.connection_type for c in derive_connections(nodes)]
        assert types == [ConnectionType.spouse, ConnectionType.parent_child]

    def test_visible_subset(self):
        """Test endpoints outside the visible set are ignored."""
        nodes = [
            FamilyNode("me").add_relation(RelationType.parent, "dad").add_relation(RelationType.spouse, "wife"),
            FamilyNode("dad"),
            FamilyNode("wife"),
        ]
        ids = [c.id for c in derive_connections(nodes, visible_ids={"me", "wife"})]
        assert ids == ["spouse-me-wife"]

    def test_other_relations_ignored(self):
        """Test sibling and other relations produce no edges."""
        nodes = [
            FamilyNode("a").add_relation(RelationType.sibling, "b").add_relation(RelationType.other, "c"),
            FamilyNode("b"),
            FamilyNode("c"),
        ]
        assert derive_connections(nodes) == []


class TestUpdateConnections:
    """Test the lifecycle update."""

    def test_new_connections_appear(self):
        """Test desired connections are created invisible."""
        desired = derive_connections(spouse_pair())
        result = update_connections([], desired, {"a", "b"})
        assert result.new_connection_ids == {"spouse-a-b"}
        assert result.removed_connection_ids == set()
        assert result.has_changes
        c = result.connections[0]
        assert c.draw_progress == 0.0
        assert c.opacity == 0.0
        assert c.is_highlighted

    def test_survivors_keep_state(self):
        """Test surviving connections keep their animation state."""
        current = [Connection(ConnectionType.spouse, "a", "b", AnimationState(1.0, 1.0))]
        result = update_connections(current, derive_connections(spouse_pair()), {"a"})
        assert not result.has_changes
        assert result.connections[0] is current[0]
        assert current[0].opacity == 1.0
        assert not current[0].is_highlighted

    def test_highlight_recomputed(self):
        """Test highlight needs both endpoints on the path."""
        current = [Connection(ConnectionType.spouse, "a", "b", is_highlighted=False)]
        update_connections(current, derive_connections(spouse_pair()), {"a", "b"})
        assert current[0].is_highlighted

    def test_vanished_marked_disappearing(self):
        """Test vanished connections are flagged, not removed."""
        current = [Connection(ConnectionType.spouse, "a", "b", AnimationState(1.0, 1.0))]
        result = update_connections(current, [], set())
        assert result.removed_connection_ids == {"spouse-a-b"}
        assert len(result.connections) == 1
        assert result.connections[0].is_disappearing

    def test_disappearing_passes_through(self):
        """Test an already disappearing connection is not reported again."""
        current = [Connection(ConnectionType.spouse, "a", "b", AnimationState(0.5, 1.0, True))]
        result = update_connections(current, [], set())
        assert result.removed_connection_ids == set()
        assert result.connections[0].is_disappearing

    def test_monotonic_disappearing(self):
        """Test a disappearing connection never returns, even if desired again."""
        current = [Connection(ConnectionType.spouse, "a", "b", AnimationState(0.5, 1.0, True))]
        for _ in range(3):
            result = update_connections(current, derive_connections(spouse_pair()), set())
            current = result.connections
            assert current[0].is_disappearing
            assert result.new_connection_ids == set()


class TestPrune:
    """Test prune_disappeared_connections."""

    def test_prune(self):
        """Test only faded-out disappearing connections are dropped."""
        faded = Connection(ConnectionType.spouse, "a", "b", AnimationState(0.0005, 1.0, True))
        fading = Connection(ConnectionType.spouse, "c", "d", AnimationState(0.5, 1.0, True))
        steady = Connection(ConnectionType.spouse, "e", "f", AnimationState(0.0, 0.0))
        kept = prune_disappeared_connections([faded, fading, steady])
        assert kept == [fading, steady]


class TestConnectionLifecycleManager:
    """Test the stateful lifecycle manager."""

    def test_full_cycle(self):
        """Test appear, animate, disappear and prune."""
        nodes = spouse_pair()
        manager = ConnectionLifecycleManager()

        result = manager.update(nodes)
        assert result.new_connection_ids == {"spouse-a-b"}
        manager.tick(1.0)
        assert manager.connections[0].is_fully_visible

        result = manager.update(nodes, visible_ids={"a"})
        assert result.removed_connection_ids == {"spouse-a-b"}
        assert manager.prune() == []
        assert len(manager) == 1

        manager.tick(1.0)
        removed = manager.prune()
        assert [c.id for c in removed] == ["spouse-a-b"]
        assert manager.connections == []

    def test_connections_is_copy(self):
        """Test the connections property returns a new list."""
        manager = ConnectionLifecycleManager()
        manager.update(spouse_pair())
        manager.connections.clear()
        assert len(manager) == 1
