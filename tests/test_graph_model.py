#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Tests for the oriented graph model: entities, physical ends and snapshots.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest

from chainweaver.graph_core import (
    AssemblyGraph,
    ContractionRecord,
    DuplicateNodeError,
    GraphEdge,
    GraphEditError,
    GraphNode,
    NodeEnd,
    NodeNotFoundError,
)


class TestGraphNode:
    """Test node normalisation."""

    def test_length_derived_from_sequence(self):
        """Test that length defaults to the sequence length."""
        node = GraphNode(id="n1", sequence="ACGTA")
        assert node.length == 5
        assert node.has_sequence

    def test_star_sequence_is_unknown(self):
        """Test that '*' is normalised to an unknown sequence."""
        node = GraphNode(id="n1", sequence="*", length=300)
        assert node.sequence is None
        assert not node.has_sequence
        assert node.length == 300

    def test_negative_length_rejected(self):
        """Test that negative lengths raise."""
        with pytest.raises(ValueError):
            GraphNode(id="n1", length=-1)

    def test_contracted_flag(self):
        """Test that only nodes with a contraction record are contracted."""
        record = ContractionRecord(member_ids=["a", "b"])
        assert GraphNode(id="m", contraction=record).is_contracted
        assert not GraphNode(id="a").is_contracted

    def test_contraction_record_needs_two_members(self):
        """Test that a single-member contraction record is rejected."""
        with pytest.raises(ValueError):
            ContractionRecord(member_ids=["a"])


class TestGraphEdge:
    """Test link orientation handling."""

    def test_invalid_orientation(self):
        """Test that orientations other than + and - are rejected."""
        with pytest.raises(ValueError):
            GraphEdge("A", "B", "+", "x")

    @pytest.mark.parametrize("source_ori,target_ori,source_end,target_end", [
        ('+', '+', NodeEnd.OUTGOING, NodeEnd.INCOMING),
        ('-', '+', NodeEnd.INCOMING, NodeEnd.INCOMING),
        ('+', '-', NodeEnd.OUTGOING, NodeEnd.OUTGOING),
        ('-', '-', NodeEnd.INCOMING, NodeEnd.OUTGOING),
    ])
    def test_physical_ends_oriented(self, source_ori, target_ori, source_end, target_end):
        """Test the orientation to physical end mapping in oriented graphs."""
        edge = GraphEdge("A", "B", source_ori, target_ori)
        assert edge.source_end(oriented=True) == source_end
        assert edge.target_end(oriented=True) == target_end

    def test_physical_ends_unoriented(self):
        """Test that unoriented graphs ignore declared orientations."""
        edge = GraphEdge("A", "B", '-', '-')
        assert edge.source_end(oriented=False) == NodeEnd.OUTGOING
        assert edge.target_end(oriented=False) == NodeEnd.INCOMING

    def test_reversed_reading(self):
        """Test that A+ -> B- reads as B+ -> A- with a reversed overlap."""
        edge = GraphEdge("A", "B", '+', '-', "10M2I5M")
        reverse = edge.reversed()
        assert (reverse.source, reverse.target) == ("B", "A")
        assert (reverse.source_orientation, reverse.target_orientation) == ('+', '-')
        assert reverse.overlap == "5M2D10M"

    def test_overlap_length(self):
        """Test overlap length of well-formed and malformed descriptors."""
        assert GraphEdge("A", "B", overlap="75M").overlap_length == 75
        assert GraphEdge("A", "B", overlap="bogus").overlap_length == 0


class TestAssemblyGraph:
    """Test graph container operations."""

    def test_duplicate_node(self):
        """Test that adding an existing id raises."""
        graph = AssemblyGraph()
        graph.add_node(GraphNode(id="A"))
        with pytest.raises(DuplicateNodeError):
            graph.add_node(GraphNode(id="A"))

    def test_edge_requires_endpoints(self):
        """Test that links to unknown nodes are rejected."""
        graph = AssemblyGraph()
        graph.add_node(GraphNode(id="A"))
        with pytest.raises(NodeNotFoundError):
            graph.add_edge(GraphEdge("A", "B"))

    def test_get_missing_node(self):
        """Test that NodeNotFoundError is both a GraphEditError and a KeyError."""
        graph = AssemblyGraph()
        with pytest.raises(GraphEditError):
            graph.get_node("missing")
        with pytest.raises(KeyError):
            graph.get_node("missing")

    def test_remove_node_cascades(self, overlap_graph):
        """Test that removing a node removes its links."""
        removed = overlap_graph.remove_node("A")
        assert len(removed) == 1
        assert overlap_graph.edges == []
        assert "A" not in overlap_graph

    def test_edges_between_either_direction(self, overlap_graph):
        """Test that link lookup honours both declared directions."""
        assert len(overlap_graph.edges_between("A", "B")) == 1
        assert len(overlap_graph.edges_between("B", "A")) == 1
        assert overlap_graph.has_edge_between("B", "A")

    def test_connections_by_physical_end(self, graph_builder):
        """Test that a '-' source orientation lands on the incoming end."""
        graph = graph_builder(
            [("A", "ACGT"), ("B", "GTAC"), ("C", "TTTT")],
            [("A", "-", "B", "+", "0M"), ("B", "+", "C", "+", "0M")],
        )
        a = graph.connections("A")
        assert len(a.incoming) == 1 and len(a.outgoing) == 0
        b = graph.connections("B")
        assert [c.neighbor_id for c in b.incoming] == ["A"]
        assert [c.neighbor_id for c in b.outgoing] == ["C"]
        assert graph.degree("B") == 2

    def test_connection_index_matches_connections(self, branching_chain_graph):
        """Test that the bulk index agrees with per-node queries."""
        index = branching_chain_graph.connection_index()
        for node_id in branching_chain_graph.nodes:
            single = branching_chain_graph.connections(node_id)
            assert index[node_id].degree == single.degree
        assert index["A"].degree == 3

    def test_snapshot_is_independent(self, overlap_graph):
        """Test that snapshots are not affected by later mutation."""
        snapshot = overlap_graph.snapshot()
        overlap_graph.get_node("A").depth = 99.0
        overlap_graph.remove_node("B")
        assert snapshot.nodes["A"].depth == 1.0
        assert snapshot.node_count == 2
        assert snapshot.edge_count == 1

    def test_restore(self, overlap_graph):
        """Test that restore brings back a deep-equal graph."""
        snapshot = overlap_graph.snapshot()
        overlap_graph.remove_node("A")
        overlap_graph.restore(snapshot)
        assert overlap_graph.nodes == snapshot.nodes
        assert overlap_graph.edges == snapshot.edges

    def test_copy(self, overlap_graph):
        """Test that a copy shares no node objects with the original."""
        duplicate = overlap_graph.copy()
        assert duplicate.nodes == overlap_graph.nodes
        assert duplicate.get_node("A") is not overlap_graph.get_node("A")

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
