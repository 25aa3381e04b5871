#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Chain Contraction Engine — detects maximal linear runs of nodes and
contracts them into a single node while preserving external connectivity.

A node is linear when its total degree (both physical ends) is at most 2.
The run containing a start node is found by walking backward through
single incoming connections and forward through single outgoing
connections, stopping at branch points, non-linear neighbours and
revisited nodes.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from chainweaver.utils.sequence_utils import ORIENTATION_FORWARD, ORIENTATION_REVERSE

from .data_structures import (
    AssemblyGraph,
    ContractionRecord,
    GraphEdge,
    GraphEditError,
    GraphNode,
    NodeConnections,
    NodeEnd,
    NodeFormat,
    NodeNotFoundError,
)
from .operations import ChangeSet, OperationHistory, ReversibleOperation

logger = logging.getLogger(__name__)

ID_SCHEME_CONTENT = 'content'
ID_SCHEME_TIMESTAMP = 'timestamp'
ID_SCHEMES = (ID_SCHEME_CONTENT, ID_SCHEME_TIMESTAMP)

CHAIN_START = 'start'
CHAIN_END = 'end'


class NotLinearChainError(GraphEditError):
    """Raised when the run containing the start node has fewer than 2 members."""

    def __init__(self, node_id: str, run_length: int = 1):
        self.node_id = node_id
        self.run_length = run_length
        super().__init__(
            f"Node {node_id} is not part of a linear chain "
            f"(run length {run_length}, at least 2 required)"
        )


# ============================================================================
#                           CHAIN DETECTION
# ============================================================================

def find_linear_chain(
    graph: AssemblyGraph,
    start_node_id: str,
    index: Optional[Dict[str, NodeConnections]] = None,
) -> List[str]:
    """
    Find the maximal linear run containing a start node.

    Args:
        graph: Graph to search
        start_node_id: Node the run must contain
        index: Pre-built connection index (built from graph when omitted)

    Returns:
        Ordered node ids of the run; just [start_node_id] when the start
        node is itself a branch point or has no linear neighbours

    Raises:
        NodeNotFoundError: If the start node is absent
    """
    if not graph.has_node(start_node_id):
        raise NodeNotFoundError(start_node_id)

    if index is None:
        index = graph.connection_index()

    if index[start_node_id].degree > 2:
        logger.debug(f"Start node {start_node_id} is a branch point (degree {index[start_node_id].degree})")
        return [start_node_id]

    visited: Set[str] = {start_node_id}
    backward: List[str] = []
    forward: List[str] = []

    # Walk backward
    current = start_node_id
    while True:
        incoming = index[current].incoming
        if len(incoming) != 1:
            break
        previous = incoming[0].neighbor_id
        if previous in visited or index[previous].degree > 2:
            break
        backward.append(previous)
        visited.add(previous)
        current = previous

    # Walk forward
    current = start_node_id
    while True:
        outgoing = index[current].outgoing
        if len(outgoing) != 1:
            break
        following = outgoing[0].neighbor_id
        if following in visited or index[following].degree > 2:
            break
        forward.append(following)
        visited.add(following)
        current = following

    return list(reversed(backward)) + [start_node_id] + forward


def find_all_linear_chains(graph: AssemblyGraph) -> List[List[str]]:
    """
    Enumerate maximal linear runs of at least two nodes.

    Each node is reported in at most one run.
    """
    index = graph.connection_index()
    assigned: Set[str] = set()
    chains = []

    for node_id in graph.nodes:
        if node_id in assigned:
            continue
        chain = find_linear_chain(graph, node_id, index)
        if len(chain) < 2 or assigned.intersection(chain):
            continue
        assigned.update(chain)
        chains.append(chain)

    logger.info(f"Found {len(chains)} linear chains covering {len(assigned)} nodes")
    return chains


# ============================================================================
#                         EDGE CLASSIFICATION
# ============================================================================

@dataclass
class ExternalAttachment:
    """An external link and where it attaches to a run."""
    edge: GraphEdge
    run_node_id: str
    external_node_id: str
    role: str      # role of the run member in the link: 'source' or 'target'
    position: str  # CHAIN_START or CHAIN_END

    def rewired(self, merged_node_id: str) -> GraphEdge:
        """
        The link re-created against the contracted node.

        The contracted node keeps the role its member held and takes
        orientation '-' at the chain start and '+' at the chain end.
        """
        orientation = ORIENTATION_REVERSE if self.position == CHAIN_START else ORIENTATION_FORWARD
        if self.role == 'source':
            return GraphEdge(
                source=merged_node_id,
                target=self.edge.target,
                source_orientation=orientation,
                target_orientation=self.edge.target_orientation,
                overlap=self.edge.overlap,
            )
        return GraphEdge(
            source=self.edge.source,
            target=merged_node_id,
            source_orientation=self.edge.source_orientation,
            target_orientation=orientation,
            overlap=self.edge.overlap,
        )


def partition_chain_edges(
    graph: AssemblyGraph,
    chain: List[str],
) -> Tuple[List[GraphEdge], List[ExternalAttachment]]:
    """
    Split the links touching a run into internal links and external attachments.

    External links must attach at the first member's incoming end or the
    last member's outgoing end; anything else is logged and classified by
    the physical end it uses.

    Returns:
        (internal_edges, external_attachments)
    """
    members = set(chain)
    first, last = chain[0], chain[-1]
    internal: List[GraphEdge] = []
    external: List[ExternalAttachment] = []

    for edge in graph.edges:
        source_in = edge.source in members
        target_in = edge.target in members
        if not (source_in or target_in):
            continue
        if source_in and target_in:
            internal.append(edge)
            continue

        if source_in:
            run_node, role, end = edge.source, 'source', edge.source_end(graph.oriented)
        else:
            run_node, role, end = edge.target, 'target', edge.target_end(graph.oriented)

        if run_node == first and end == NodeEnd.INCOMING:
            position = CHAIN_START
        elif run_node == last and end == NodeEnd.OUTGOING:
            position = CHAIN_END
        else:
            position = CHAIN_START if end == NodeEnd.INCOMING else CHAIN_END
            logger.warning(
                f"External edge {edge.describe()} attaches to {run_node} ({end.value} end) "
                f"inside chain {first}..{last}; treating it as chain {position}"
            )

        external.append(ExternalAttachment(
            edge=edge,
            run_node_id=run_node,
            external_node_id=edge.other_end(run_node),
            role=role,
            position=position,
        ))

    return internal, external


# ============================================================================
#                          CONTRACTED NODES
# ============================================================================

def contracted_node_id(
    chain: List[str],
    scheme: str = ID_SCHEME_CONTENT,
    existing: Optional[Set[str]] = None,
) -> str:
    """
    Derive an id for the node replacing a run.

    The 'content' scheme hashes the sorted member ids, so contracting the
    same run twice yields the same id. The 'timestamp' scheme joins every
    member id and appends a wall-clock suffix.
    """
    if scheme == ID_SCHEME_CONTENT:
        digest = hashlib.sha1(",".join(sorted(chain)).encode('utf-8')).hexdigest()[:8]
        base = f"MERGED_{chain[0]}_{chain[-1]}_{digest}"
    elif scheme == ID_SCHEME_TIMESTAMP:
        suffix = str(int(time.time() * 1000))[-6:]
        base = f"MERGED_{'_'.join(chain)}_{suffix}"
    else:
        raise ValueError(f"Unknown id scheme: {scheme!r} (expected one of {ID_SCHEMES})")

    existing = existing or set()
    candidate, counter = base, 2
    while candidate in existing:
        candidate = f"{base}_{counter}"
        counter += 1
    return candidate


def build_contracted_node(
    graph: AssemblyGraph,
    chain: List[str],
    internal_edges: List[GraphEdge],
    id_scheme: str = ID_SCHEME_CONTENT,
) -> GraphNode:
    """
    Create the node replacing a run.

    Length is the sum of member lengths and depth the mean of member
    depths. The sequence is left unknown; it is reconstructed on demand
    from the stored members and internal links.
    """
    members = [graph.get_node(node_id) for node_id in chain]
    label = f"Linear Chain: {chain[0]} → {chain[-1]}"

    record = ContractionRecord(
        member_ids=list(chain),
        original_nodes={m.id: copy.deepcopy(m) for m in members},
        original_edges=copy.deepcopy(internal_edges),
        label=label,
    )

    return GraphNode(
        id=contracted_node_id(chain, id_scheme, set(graph.nodes)),
        sequence=None,
        length=sum(m.length for m in members),
        depth=sum(m.depth for m in members) / len(members),
        format=NodeFormat.ORIENTED if graph.oriented else NodeFormat.PLAIN,
        contraction=record,
        x=sum(m.x for m in members) / len(members),
        y=sum(m.y for m in members) / len(members),
    )


def contracted_node_info(node: GraphNode) -> Optional[Dict[str, Any]]:
    """Summary of a contracted node, or None for ordinary nodes."""
    if not node.is_contracted:
        return None
    record = node.contraction
    return {
        'id': node.id,
        'member_ids': list(record.member_ids),
        'member_count': len(record.member_ids),
        'total_length': node.length,
        'average_depth': node.depth,
        'label': record.label,
        'internal_edge_count': len(record.original_edges),
    }


# ============================================================================
#                          CONTRACTION OPERATION
# ============================================================================

class ChainContraction(ReversibleOperation):
    """Contract the maximal linear run containing a start node."""

    name = "chain_contraction"

    def __init__(self, start_node_id: str, id_scheme: str = ID_SCHEME_CONTENT):
        super().__init__(description=f"Contract linear chain containing {start_node_id}")
        if id_scheme not in ID_SCHEMES:
            raise ValueError(f"Unknown id scheme: {id_scheme!r}")
        self.start_node_id = start_node_id
        self.id_scheme = id_scheme
        self.chain: List[str] = []
        self.merged_node: Optional[GraphNode] = None
        self.internal_edge_count = 0
        self.external_edge_count = 0

    def apply(self, working: AssemblyGraph):
        chain = find_linear_chain(working, self.start_node_id)
        if len(chain) < 2:
            raise NotLinearChainError(self.start_node_id, len(chain))
        self.logger.info(f"Found linear chain of {len(chain)} nodes: {' -> '.join(chain)}")

        internal, attachments = partition_chain_edges(working, chain)
        merged = build_contracted_node(working, chain, internal, self.id_scheme)

        for node_id in chain:
            working.remove_node(node_id)
        working.add_node(merged)
        for attachment in attachments:
            working.add_edge(attachment.rewired(merged.id))

        self.chain = chain
        self.merged_node = merged
        self.internal_edge_count = len(internal)
        self.external_edge_count = len(attachments)
        self.logger.info(
            f"Contracted {len(chain)} nodes into {merged.id} "
            f"({len(internal)} internal edges stored, {len(attachments)} external edges rewired)"
        )

    def summary(self) -> Dict[str, Any]:
        info = super().summary()
        info.update({
            'start_node_id': self.start_node_id,
            'merged_node_id': self.merged_node.id if self.merged_node else None,
            'chain_length': len(self.chain),
            'external_edge_count': self.external_edge_count,
        })
        return info


@dataclass
class ContractionResult:
    """Outcome of a committed contraction."""
    merged_node: GraphNode
    external_edge_count: int
    removed_node_count: int
    original_node_ids: List[str]
    operation: ChainContraction
    changes: ChangeSet = field(default_factory=ChangeSet)
    rewritten_paths: List[Any] = field(default_factory=list)

    @property
    def merged_node_id(self) -> str:
        return self.merged_node.id

    @property
    def label(self) -> str:
        return self.merged_node.contraction.label


def contract(
    graph: AssemblyGraph,
    start_node_id: str,
    id_scheme: str = ID_SCHEME_CONTENT,
    history: Optional[OperationHistory] = None,
) -> ContractionResult:
    """
    Contract the linear run containing start_node_id.

    Args:
        graph: Graph to modify in place
        start_node_id: Any member of the run
        id_scheme: 'content' or 'timestamp'
        history: When given, the committed operation is pushed onto it

    Returns:
        ContractionResult describing the new node

    Raises:
        NodeNotFoundError: If start_node_id is absent
        NotLinearChainError: If the run has fewer than 2 members
    """
    operation = ChainContraction(start_node_id, id_scheme=id_scheme)
    changes = operation.execute(graph)
    if history is not None:
        history.push(operation)

    return ContractionResult(
        merged_node=graph.get_node(operation.merged_node.id),
        external_edge_count=operation.external_edge_count,
        removed_node_count=len(operation.chain),
        original_node_ids=list(operation.chain),
        operation=operation,
        changes=changes,
    )

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
