#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Tests for reversible operations and the bounded undo/redo history.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest

from chainweaver.graph_core import (
    GraphEdge,
    GraphEditError,
    GraphNode,
    NoSnapshotError,
    OperationHistory,
    OperationState,
    ReversibleOperation,
)


class AddNode(ReversibleOperation):
    """Test operation: add one node linked to an existing node."""

    name = "add_node"

    def __init__(self, node_id, anchor=None):
        super().__init__(description=f"Add {node_id}")
        self.node_id = node_id
        self.anchor = anchor

    def apply(self, working):
        working.add_node(GraphNode(id=self.node_id, sequence="ACGT"))
        if self.anchor:
            working.add_edge(GraphEdge(self.anchor, self.node_id))


class FailHalfway(ReversibleOperation):
    """Test operation: mutate the working copy, then fail."""

    name = "fail_halfway"

    def apply(self, working):
        working.remove_node("A")
        raise GraphEditError("boom")


class TestReversibleOperation:
    """Test execute/undo/redo on a single operation."""

    def test_execute_returns_changes(self, overlap_graph):
        """Test that the change set lists added nodes and edges."""
        changes = AddNode("C", anchor="B").execute(overlap_graph)
        assert changes.nodes_added == ["C"]
        assert len(changes.edges_added) == 1
        assert not changes.nodes_removed
        assert "C" in overlap_graph

    def test_undo_restores_graph(self, overlap_graph):
        """Test that undo brings back the before-state."""
        before = overlap_graph.snapshot()
        operation = AddNode("C", anchor="B")
        operation.execute(overlap_graph)
        changes = operation.undo(overlap_graph)
        assert changes.nodes_removed == ["C"]
        assert overlap_graph.nodes == before.nodes
        assert overlap_graph.edges == before.edges
        assert operation.state == OperationState.UNDONE

    def test_redo_reapplies(self, overlap_graph):
        """Test that redo restores the after-state."""
        operation = AddNode("C")
        operation.execute(overlap_graph)
        operation.undo(overlap_graph)
        operation.redo(overlap_graph)
        assert "C" in overlap_graph
        assert operation.state == OperationState.EXECUTED

    def test_failed_apply_leaves_graph_untouched(self, overlap_graph):
        """Test that an exception during apply does not change the live graph."""
        before = overlap_graph.snapshot()
        operation = FailHalfway()
        with pytest.raises(GraphEditError):
            operation.execute(overlap_graph)
        assert overlap_graph.nodes == before.nodes
        assert overlap_graph.edges == before.edges
        assert operation.state == OperationState.FAILED

    def test_execute_twice_rejected(self, overlap_graph):
        """Test that an executed operation cannot run again."""
        operation = AddNode("C")
        operation.execute(overlap_graph)
        with pytest.raises(GraphEditError):
            operation.execute(overlap_graph)

    def test_undo_without_execute(self, overlap_graph):
        """Test that undoing a pending operation raises NoSnapshotError."""
        with pytest.raises(NoSnapshotError):
            AddNode("C").undo(overlap_graph)

    def test_summary(self, overlap_graph):
        """Test operation summary fields."""
        operation = AddNode("C")
        operation.execute(overlap_graph)
        summary = operation.summary()
        assert summary['name'] == "add_node"
        assert summary['state'] == "executed"
        assert summary['timestamp'] is not None


class TestOperationHistory:
    """Test the bounded undo/redo stacks."""

    def test_empty_history(self, overlap_graph):
        """Test that undo and redo on empty stacks raise NoSnapshotError."""
        history = OperationHistory()
        assert not history.can_undo
        with pytest.raises(NoSnapshotError):
            history.undo(overlap_graph)
        with pytest.raises(NoSnapshotError):
            history.redo(overlap_graph)

    def test_undo_redo_cycle(self, overlap_graph):
        """Test moving an operation between the stacks."""
        history = OperationHistory()
        operation = AddNode("C")
        operation.execute(overlap_graph)
        history.push(operation)

        undone, _ = history.undo(overlap_graph)
        assert undone is operation
        assert history.can_redo and not history.can_undo
        assert "C" not in overlap_graph

        redone, _ = history.redo(overlap_graph)
        assert redone is operation
        assert "C" in overlap_graph

    def test_push_clears_redo(self, overlap_graph):
        """Test that a new operation discards the redo stack."""
        history = OperationHistory()
        first = AddNode("C")
        first.execute(overlap_graph)
        history.push(first)
        history.undo(overlap_graph)

        second = AddNode("D")
        second.execute(overlap_graph)
        history.push(second)
        assert not history.can_redo

    def test_eviction(self, overlap_graph):
        """Test that the oldest entry is evicted beyond max_size."""
        history = OperationHistory(max_size=2)
        operations = []
        for node_id in ["C", "D", "E"]:
            operation = AddNode(node_id)
            operation.execute(overlap_graph)
            history.push(operation)
            operations.append(operation)

        assert len(history) == 2
        assert history.peek() is operations[-1]
        assert [s['description'] for s in history.summaries()] == ["Add D", "Add E"]

    def test_invalid_size(self):
        """Test that a non-positive size is rejected."""
        with pytest.raises(ValueError):
            OperationHistory(max_size=0)

    def test_clear(self, overlap_graph):
        """Test clearing both stacks."""
        history = OperationHistory()
        operation = AddNode("C")
        operation.execute(overlap_graph)
        history.push(operation)
        history.clear()
        assert len(history) == 0
        assert not history.can_undo and not history.can_redo

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
