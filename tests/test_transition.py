"""Tests for graph state transitions."""

import logging
import pytest
from kinlayout.connections import Connection, ConnectionType
from kinlayout.geom import Point
from kinlayout.model import FamilyNode, NodePosition, RelationType
from kinlayout.transition import GraphState, GraphTransition, compute_transition


def pos(node_id, x=0.0, y=0.0, generation=0):
    return NodePosition(node_id, x, y, generation)


class TestGraphState:
    """Test GraphState."""

    def test_last_occurrence_wins(self):
        """Test duplicate positions collapse to the last one."""
        state = GraphState([pos("a", 0), pos("b", 10), pos("a", 99)])
        assert state.position_map["a"].x == 99
        assert state.node_ids == {"a", "b"}

    def test_from_layout(self):
        """Test connections are derived for positioned nodes only."""
        nodes = [
            FamilyNode("me").add_relation(RelationType.parent, "dad").add_relation(RelationType.spouse, "wife"),
            FamilyNode("dad"),
            FamilyNode("wife"),
        ]
        state = GraphState.from_layout([pos("me"), pos("dad", 0, -200, -1)], nodes)
        assert set(state.connection_map) == {"parentChild-dad-me"}

    def test_repr(self):
        """Test repr counts unique entries."""
        state = GraphState([pos("a"), pos("a")])
        assert repr(state) == "GraphState(nodes=1, connections=0)"


class TestComputeTransition:
    """Test compute_transition."""

    def test_appear_and_disappear(self):
        """Test added and removed nodes, with no moves."""
        current = GraphState([pos("A", 0), pos("B", 100)])
        destination = GraphState([pos("B", 100), pos("C", 200)])
        transition = compute_transition(current, destination)
        assert [p.node_id for p in transition.nodes_to_appear] == ["C"]
        assert [p.node_id for p in transition.nodes_to_disappear] == ["A"]
        assert transition.nodes_to_move == []
        assert transition.has_changes

    def test_identical_states(self):
        """Test a state compared with itself has no changes."""
        state = GraphState(
            [pos("a", 0), pos("b", 120)],
            [Connection(ConnectionType.spouse, "a", "b")]
        )
        transition = compute_transition(state, state)
        assert not transition.has_changes
        assert transition.summary() == (
            "0 nodes appear, 0 disappear, 0 move; 0 connections appear, 0 disappear"
        )

    def test_threshold_is_strict(self):
        """Test a move of exactly the threshold does not count."""
        current = GraphState([pos("a", 0, 0), pos("b", 0, 0)])
        destination = GraphState([pos("a", 3, 4), pos("b", 5.1, 0)])
        transition = compute_transition(current, destination)
        assert [m.node_id for m in transition.nodes_to_move] == ["b"]
        movement = transition.nodes_to_move[0]
        assert movement.delta == pytest.approx(5.1)
        assert movement.from_point == Point(0, 0)
        assert movement.to_point == Point(5.1, 0)
        assert movement.position.x == 5.1

    def test_custom_threshold(self):
        """Test the movement threshold can be changed."""
        current = GraphState([pos("a", 0)])
        destination = GraphState([pos("a", 3)])
        assert compute_transition(current, destination, movement_threshold=1.0).nodes_to_move
        assert not compute_transition(current, destination).nodes_to_move

    def test_sorted_by_id(self):
        """Test every list is sorted by ID."""
        current = GraphState([pos("z", 0), pos("y", 0)])
        destination = GraphState([pos("z", 50), pos("y", 50), pos("c"), pos("a")])
        transition = compute_transition(current, destination)
        assert [p.node_id for p in transition.nodes_to_appear] == ["a", "c"]
        assert [m.node_id for m in transition.nodes_to_move] == ["y", "z"]

    def test_connection_diff(self):
        """Test connections are compared by canonical ID."""
        current = GraphState(
            [pos("a"), pos("b"), pos("c")],
            [Connection(ConnectionType.spouse, "b", "a"), Connection(ConnectionType.parent_child, "a", "c")]
        )
        destination = GraphState(
            [pos("a"), pos("b"), pos("c")],
            [Connection(ConnectionType.spouse, "a", "b"), Connection(ConnectionType.parent_child, "b", "c")]
        )
        transition = compute_transition(current, destination)
        assert [c.id for c in transition.connections_to_appear] == ["parentChild-b-c"]
        assert [c.id for c in transition.connections_to_disappear] == ["parentChild-a-c"]

    def test_empty_states(self):
        """Test empty states produce an empty transition."""
        assert not compute_transition(GraphState([]), GraphState([])).has_changes

    def test_log(self, caplog):
        """Test the transition is written to the logger."""
        transition = compute_transition(GraphState([pos("a")]), GraphState([pos("b")]))
        with caplog.at_level(logging.DEBUG, logger="kinlayout.transition"):
            transition.log()
        assert "1 nodes appear" in caplog.text
        assert "+ b" in caplog.text
        assert isinstance(transition, GraphTransition)
