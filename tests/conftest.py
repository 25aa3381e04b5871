#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Pytest configuration and shared fixtures.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest
from pathlib import Path
import tempfile
import shutil

from chainweaver.graph_core import AssemblyGraph, GraphEdge, GraphNode, NodeFormat


def build_graph(nodes, edges, oriented=True):
    """
    Build a graph from compact tuples.

    nodes: (id, sequence) or (id, sequence, length, depth)
    edges: (source, source_ori, target, target_ori, overlap)
    """
    node_format = NodeFormat.ORIENTED if oriented else NodeFormat.PLAIN
    graph = AssemblyGraph(oriented=oriented)
    for spec in nodes:
        node_id, sequence = spec[0], spec[1]
        length = spec[2] if len(spec) > 2 else 0
        depth = spec[3] if len(spec) > 3 else 1.0
        graph.add_node(GraphNode(id=node_id, sequence=sequence, length=length, depth=depth, format=node_format))
    for source, source_ori, target, target_ori, overlap in edges:
        graph.add_edge(GraphEdge(source, target, source_ori, target_ori, overlap))
    return graph


@pytest.fixture
def graph_builder():
    """The build_graph helper, for tests that need a custom graph."""
    return build_graph


@pytest.fixture
def temp_output_dir():
    """Create temporary output directory for tests."""
    temp_dir = tempfile.mkdtemp(prefix="chainweaver_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def overlap_graph():
    """A = ACGT, B = GTAC joined A+ -> B+ with a 2bp overlap."""
    return build_graph(
        [("A", "ACGT"), ("B", "GTAC")],
        [("A", "+", "B", "+", "2M")],
    )


@pytest.fixture
def mismatch_graph():
    """A = ACGT, B = CCCC joined A+ -> B+ with a 2bp overlap that does not match."""
    return build_graph(
        [("A", "ACGT"), ("B", "CCCC")],
        [("A", "+", "B", "+", "2M")],
    )


@pytest.fixture
def branching_chain_graph():
    """
    Oriented graph where A is a branch point followed by the linear run B, C.

        X1 \\
             A -> B -> C
        X2 /
    """
    return build_graph(
        [
            ("X1", "GGGTTT"),
            ("X2", "CCCAAA"),
            ("A", "AAACCG"),
            ("B", "CCGTTA"),
            ("C", "TTAGGG"),
        ],
        [
            ("X1", "+", "A", "+", "0M"),
            ("X2", "+", "A", "+", "0M"),
            ("A", "+", "B", "+", "3M"),
            ("B", "+", "C", "+", "3M"),
        ],
    )


@pytest.fixture
def linear_run_graph():
    """
    Unoriented graph with the run c1 -> c2 -> c3 between two branch points.

        P \\                     / T1
            H -> c1 -> c2 -> c3 -> J
        Q /                     \\ T2
    """
    return build_graph(
        [
            ("P", None, 100),
            ("Q", None, 100),
            ("H", None, 500, 10.0),
            ("c1", None, 1000, 20.0),
            ("c2", None, 2000, 30.0),
            ("c3", None, 3000, 40.0),
            ("J", None, 500, 10.0),
            ("T1", None, 100),
            ("T2", None, 100),
        ],
        [
            ("P", "+", "H", "+", None),
            ("Q", "+", "H", "+", None),
            ("H", "+", "c1", "+", None),
            ("c1", "+", "c2", "+", None),
            ("c2", "+", "c3", "+", None),
            ("c3", "+", "J", "+", None),
            ("J", "+", "T1", "+", None),
            ("J", "+", "T2", "+", None),
        ],
        oriented=False,
    )


@pytest.fixture
def branching_gfa_text():
    """GFA text of the branching chain graph with one declared path."""
    return "\n".join([
        "H\tVN:Z:1.0",
        "S\tX1\tGGGTTT",
        "S\tX2\tCCCAAA",
        "S\tA\tAAACCG",
        "S\tB\tCCGTTA",
        "S\tC\tTTAGGG",
        "L\tX1\t+\tA\t+\t0M",
        "L\tX2\t+\tA\t+\t0M",
        "L\tA\t+\tB\t+\t3M",
        "L\tB\t+\tC\t+\t3M",
        "P\tmain\tA+,B+,C+\t*",
    ]) + "\n"


@pytest.fixture
def simple_dot_text():
    """Small DOT graph with node attributes."""
    return """digraph assembly {
    node [shape=box];
    utg1 [length=1200, depth=15.5];
    utg2 [length=800, coverage=9];
    "utg 3" [seq="ACGTACGT"];
    utg1 -> utg2 [overlap="50M"];
    utg2 -> "utg 3";
    utg3b -- utg1;
}
"""

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
