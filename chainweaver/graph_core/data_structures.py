#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Oriented Graph Model — nodes, links, contraction provenance, physical-end
adjacency queries and whole-graph snapshots.

Nodes are a single entity type: ordinary segments and contracted nodes
differ only by the optional ContractionRecord they carry. Each node has two
physical ends ("incoming" and "outgoing"); in oriented graphs the declared
orientation of a link at each endpoint decides which end absorbs it:

    source '+' -> outgoing end        target '+' -> incoming end
    source '-' -> incoming end        target '-' -> outgoing end

Unoriented (logical) graphs use plain source -> outgoing, target -> incoming.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from chainweaver.utils.sequence_utils import (
    ORIENTATION_FORWARD,
    ORIENTATION_REVERSE,
    flip_orientation,
    overlap_length,
    reverse_cigar,
)

logger = logging.getLogger(__name__)

UNKNOWN_SEQUENCE = '*'
VALID_ORIENTATIONS = (ORIENTATION_FORWARD, ORIENTATION_REVERSE)


# ============================================================================
#                               ERRORS
# ============================================================================

class GraphEditError(Exception):
    """Base class for graph editing failures."""
    pass


class NodeNotFoundError(GraphEditError, KeyError):
    """Raised when a referenced node id is absent from the graph."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateNodeError(GraphEditError):
    """Raised when adding a node whose id already exists."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node already exists: {node_id}")


# ============================================================================
#                               ENTITIES
# ============================================================================

class NodeFormat(str, Enum):
    """Source format of a node."""
    PLAIN = "plain"        # DOT-style logical node
    ORIENTED = "oriented"  # GFA segment


class NodeEnd(str, Enum):
    """Physical end of a node."""
    INCOMING = "incoming"
    OUTGOING = "outgoing"


@dataclass
class GraphNode:
    """
    A node of the assembly graph.

    Args:
        id: Node identifier
        sequence: Nucleotide sequence, or None when unknown ('*' is accepted
            and normalised to None)
        length: Length in bases; derived from the sequence when not declared
        depth: Coverage estimate
        format: Source format tag
        contraction: Provenance record, present only on contracted nodes
        x, y: Layout position (not used by graph algorithms)
    """
    id: str
    sequence: Optional[str] = None
    length: int = 0
    depth: float = 1.0
    format: NodeFormat = NodeFormat.PLAIN
    contraction: Optional[ContractionRecord] = None
    x: float = 0.0
    y: float = 0.0

    def __post_init__(self):
        """Normalise sequence placeholder and derive length."""
        self.id = str(self.id)
        if self.sequence == UNKNOWN_SEQUENCE or self.sequence == '':
            self.sequence = None
        if self.sequence is not None and not self.length:
            self.length = len(self.sequence)
        if self.length < 0:
            raise ValueError(f"Node {self.id}: length must be >= 0, got {self.length}")
        if self.sequence is not None and self.length != len(self.sequence):
            logger.warning(
                f"Node {self.id}: declared length {self.length} != sequence length {len(self.sequence)}"
            )

    @property
    def is_contracted(self) -> bool:
        return self.contraction is not None

    @property
    def has_sequence(self) -> bool:
        return self.sequence is not None


@dataclass
class GraphEdge:
    """
    A link between two nodes.

    The link A x -> B y is also validly read as B flip(y) -> A flip(x) with
    the overlap descriptor reversed; see reversed().
    """
    source: str
    target: str
    source_orientation: str = ORIENTATION_FORWARD
    target_orientation: str = ORIENTATION_FORWARD
    overlap: Optional[str] = None

    def __post_init__(self):
        self.source = str(self.source)
        self.target = str(self.target)
        for orientation in (self.source_orientation, self.target_orientation):
            if orientation not in VALID_ORIENTATIONS:
                raise ValueError(
                    f"Edge {self.source}->{self.target}: invalid orientation {orientation!r}"
                )

    def source_end(self, oriented: bool = True) -> NodeEnd:
        """Physical end of the source node absorbing this link."""
        if oriented and self.source_orientation == ORIENTATION_REVERSE:
            return NodeEnd.INCOMING
        return NodeEnd.OUTGOING

    def target_end(self, oriented: bool = True) -> NodeEnd:
        """Physical end of the target node absorbing this link."""
        if oriented and self.target_orientation == ORIENTATION_REVERSE:
            return NodeEnd.OUTGOING
        return NodeEnd.INCOMING

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def connects(self, a: str, b: str) -> bool:
        """True if this link joins a and b, in either declared direction."""
        return (self.source == a and self.target == b) or (self.source == b and self.target == a)

    def other_end(self, node_id: str) -> str:
        return self.target if self.source == node_id else self.source

    def reversed(self) -> GraphEdge:
        """The equivalent link read from target to source."""
        return GraphEdge(
            source=self.target,
            target=self.source,
            source_orientation=flip_orientation(self.target_orientation),
            target_orientation=flip_orientation(self.source_orientation),
            overlap=reverse_cigar(self.overlap) if self.overlap is not None else None,
        )

    @property
    def overlap_length(self) -> int:
        """Overlap in bases; malformed descriptors count as 0."""
        return overlap_length(self.overlap)

    def describe(self) -> str:
        return (
            f"{self.source}{self.source_orientation} -> "
            f"{self.target}{self.target_orientation} ({self.overlap or '*'})"
        )


@dataclass
class ContractionRecord:
    """
    Provenance of a contracted node.

    Args:
        member_ids: Ordered ids of the contracted run (at least two)
        original_nodes: Deep copies of the member nodes, keyed by id
        original_edges: Deep copies of the links internal to the run
        label: Human-readable provenance label
    """
    member_ids: List[str]
    original_nodes: Dict[str, GraphNode] = field(default_factory=dict)
    original_edges: List[GraphEdge] = field(default_factory=list)
    label: str = ""

    def __post_init__(self):
        if len(self.member_ids) < 2:
            raise ValueError(
                f"A contracted node needs at least 2 members, got {len(self.member_ids)}"
            )
        missing = [m for m in self.member_ids if m not in self.original_nodes]
        if self.original_nodes and missing:
            raise ValueError(f"Contraction record missing member nodes: {missing}")


@dataclass(frozen=True)
class Connection:
    """One link as seen from one physical end of a node."""
    edge_index: int
    edge: GraphEdge
    neighbor_id: str
    role: str  # 'source' or 'target': the role this node plays in the link


@dataclass
class NodeConnections:
    """Links grouped by the physical end of a node that absorbs them."""
    incoming: List[Connection] = field(default_factory=list)
    outgoing: List[Connection] = field(default_factory=list)

    @property
    def degree(self) -> int:
        return len(self.incoming) + len(self.outgoing)

    def at(self, end: NodeEnd) -> List[Connection]:
        return self.incoming if end == NodeEnd.INCOMING else self.outgoing


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable deep copy of every node and link at a point in time."""
    nodes: Dict[str, GraphNode]
    edges: List[GraphEdge]
    oriented: bool

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


# ============================================================================
#                               GRAPH
# ============================================================================

class AssemblyGraph:
    """
    Arena of nodes indexed by id plus an ordered list of links.

    Mutating methods change the graph in place. The `nodes` and `edges`
    properties return shallow copies of the containers; node and edge
    objects obtained from them are the live ones.
    """

    def __init__(self, oriented: bool = False):
        self.oriented = oriented
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: List[GraphEdge] = []

    @classmethod
    def from_entities(
        cls,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge],
        oriented: bool = False,
    ) -> AssemblyGraph:
        """Build a graph from node and edge objects."""
        graph = cls(oriented=oriented)
        for node in nodes:
            graph.add_node(node)
        for edge in edges:
            graph.add_edge(edge)
        return graph

    # ------------------------------------------------------------------
    # Container access
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> Dict[str, GraphNode]:
        return dict(self._nodes)

    @property
    def edges(self) -> List[GraphEdge]:
        return list(self._edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> GraphNode:
        """
        Return the live node object for node_id.

        Raises:
            NodeNotFoundError: If the id is absent
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_node(self, node: GraphNode):
        """Add a node to the graph."""
        if node.id in self._nodes:
            raise DuplicateNodeError(node.id)
        self._nodes[node.id] = node

    def remove_node(self, node_id: str) -> List[GraphEdge]:
        """
        Remove a node and every link touching it.

        Returns:
            The links that were removed along with the node
        """
        if node_id not in self._nodes:
            raise NodeNotFoundError(node_id)
        removed = [e for e in self._edges if e.touches(node_id)]
        self._edges = [e for e in self._edges if not e.touches(node_id)]
        del self._nodes[node_id]
        return removed

    def add_edge(self, edge: GraphEdge) -> int:
        """
        Append a link; both endpoints must exist.

        Returns:
            Index of the new link
        """
        for endpoint in (edge.source, edge.target):
            if endpoint not in self._nodes:
                raise NodeNotFoundError(endpoint)
        self._edges.append(edge)
        return len(self._edges) - 1

    def remove_edge(self, edge: GraphEdge):
        """Remove the first link equal to `edge`."""
        for index, existing in enumerate(self._edges):
            if existing is edge or existing == edge:
                del self._edges[index]
                return
        raise GraphEditError(f"Edge not found: {edge.describe()}")

    def restore(self, snapshot: GraphSnapshot):
        """Replace the whole graph with a deep copy of the snapshot."""
        self._nodes = copy.deepcopy(snapshot.nodes)
        self._edges = copy.deepcopy(snapshot.edges)
        self.oriented = snapshot.oriented

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            nodes=copy.deepcopy(self._nodes),
            edges=copy.deepcopy(self._edges),
            oriented=self.oriented,
        )

    def copy(self) -> AssemblyGraph:
        """Independent deep copy of this graph."""
        duplicate = AssemblyGraph(oriented=self.oriented)
        duplicate.restore(self.snapshot())
        return duplicate

    # ------------------------------------------------------------------
    # Adjacency queries
    # ------------------------------------------------------------------

    def edges_touching(self, node_id: str) -> List[GraphEdge]:
        """Links with node_id at either endpoint (self-loops listed once)."""
        if node_id not in self._nodes:
            raise NodeNotFoundError(node_id)
        return [e for e in self._edges if e.touches(node_id)]

    def edges_between(self, a: str, b: str) -> List[GraphEdge]:
        """Links joining a and b, in either declared direction."""
        return [e for e in self._edges if e.connects(a, b)]

    def has_edge_between(self, a: str, b: str) -> bool:
        return any(e.connects(a, b) for e in self._edges)

    def connection_index(self) -> Dict[str, NodeConnections]:
        """
        Build the physical-end connection index for every node.

        Returns:
            node_id -> NodeConnections with incoming/outgoing link lists
        """
        index = {node_id: NodeConnections() for node_id in self._nodes}

        for edge_index, edge in enumerate(self._edges):
            src = index.get(edge.source)
            tgt = index.get(edge.target)
            if src is None or tgt is None:
                logger.warning(f"Skipping dangling edge {edge.describe()}")
                continue
            src.at(edge.source_end(self.oriented)).append(
                Connection(edge_index, edge, edge.target, 'source')
            )
            tgt.at(edge.target_end(self.oriented)).append(
                Connection(edge_index, edge, edge.source, 'target')
            )

        return index

    def connections(self, node_id: str) -> NodeConnections:
        """Physical-end connections of a single node."""
        if node_id not in self._nodes:
            raise NodeNotFoundError(node_id)
        result = NodeConnections()
        for edge_index, edge in enumerate(self._edges):
            if edge.source == node_id:
                result.at(edge.source_end(self.oriented)).append(
                    Connection(edge_index, edge, edge.target, 'source')
                )
            if edge.target == node_id:
                result.at(edge.target_end(self.oriented)).append(
                    Connection(edge_index, edge, edge.source, 'target')
                )
        return result

    def degree(self, node_id: str) -> int:
        """Total degree: connections over both physical ends."""
        return self.connections(node_id).degree

    def __repr__(self) -> str:
        kind = "oriented" if self.oriented else "unoriented"
        return f"AssemblyGraph({kind}, nodes={len(self._nodes)}, edges={len(self._edges)})"

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
