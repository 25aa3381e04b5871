#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Graph Records — GFA and DOT text parsed into plain node, link and path
records, and the conversion of those records into an AssemblyGraph.

Parsing anomalies (unknown record types, malformed lines, links to unknown
segments) are collected as warnings and never abort a load.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from chainweaver.graph_core.data_structures import (
    AssemblyGraph,
    GraphEdge,
    GraphNode,
    NodeFormat,
)

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_LENGTH = 1000
DEFAULT_DEPTH = 1.0

GFA_SUFFIXES = ('.gfa', '.gfa1', '.gfa2')
DOT_SUFFIXES = ('.dot', '.gv')


# ============================================================================
#                               RECORDS
# ============================================================================

@dataclass
class NodeRecord:
    """A node as produced by a parser."""
    id: str
    sequence: Optional[str] = None
    length: int = DEFAULT_SEGMENT_LENGTH
    depth: float = DEFAULT_DEPTH


@dataclass
class EdgeRecord:
    """A link as produced by a parser."""
    source_id: str
    target_id: str
    source_orientation: str = '+'
    target_orientation: str = '+'
    overlap: Optional[str] = None


@dataclass
class PathLineRecord:
    """A path declared in the graph file (GFA P line)."""
    name: str
    node_ids: List[str]
    orientations: List[str]


@dataclass
class GraphRecords:
    """Everything a parser extracted from one file."""
    nodes: List[NodeRecord] = field(default_factory=list)
    edges: List[EdgeRecord] = field(default_factory=list)
    paths: List[PathLineRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    oriented: bool = True
    version: Optional[str] = None

    def warn(self, message: str):
        self.warnings.append(message)
        logger.warning(message)

    def to_graph(self) -> AssemblyGraph:
        """
        Build an AssemblyGraph from the records.

        Duplicate node ids keep the first record; links to unknown nodes
        are skipped. Both are recorded as warnings.
        """
        node_format = NodeFormat.ORIENTED if self.oriented else NodeFormat.PLAIN
        graph = AssemblyGraph(oriented=self.oriented)

        for record in self.nodes:
            if graph.has_node(record.id):
                self.warn(f"Duplicate node {record.id}; keeping the first definition")
                continue
            graph.add_node(GraphNode(
                id=record.id,
                sequence=record.sequence,
                length=record.length,
                depth=record.depth,
                format=node_format,
            ))

        for record in self.edges:
            missing = [n for n in (record.source_id, record.target_id) if not graph.has_node(n)]
            if missing:
                self.warn(
                    f"Link {record.source_id} -> {record.target_id} references unknown node(s) "
                    f"{', '.join(missing)}; skipping"
                )
                continue
            graph.add_edge(GraphEdge(
                source=record.source_id,
                target=record.target_id,
                source_orientation=record.source_orientation,
                target_orientation=record.target_orientation,
                overlap=record.overlap,
            ))

        logger.info(f"Built graph: {len(graph)} nodes, {len(graph.edges)} edges")
        return graph


# ============================================================================
#                               GFA
# ============================================================================

def _parse_tags(fields: List[str]) -> Dict[str, str]:
    """Optional TAG:TYPE:VALUE fields as TAG -> VALUE."""
    tags = {}
    for item in fields:
        parts = item.split(':', 2)
        if len(parts) == 3:
            tags[parts[0]] = parts[2]
    return tags


def _segment_record(name: str, sequence: str, tags: Dict[str, str], records: GraphRecords,
                    line_no: int, declared_length: Optional[int] = None) -> NodeRecord:
    sequence_value = None if sequence in ('*', '') else sequence

    length = declared_length
    if 'LN' in tags:
        try:
            length = int(tags['LN'])
        except ValueError:
            records.warn(f"GFA line {line_no}: invalid LN tag {tags['LN']!r}")
    if length is None:
        length = len(sequence_value) if sequence_value is not None else DEFAULT_SEGMENT_LENGTH

    depth = DEFAULT_DEPTH
    try:
        if 'DP' in tags:
            depth = float(tags['DP'])
        elif 'KC' in tags and length:
            depth = float(tags['KC']) / length
        elif 'RC' in tags and length:
            depth = float(tags['RC']) / length
    except ValueError:
        records.warn(f"GFA line {line_no}: invalid depth tag on segment {name}")

    return NodeRecord(id=name, sequence=sequence_value, length=length, depth=depth)


def _split_signed(reference: str):
    """'12+' -> ('12', '+')."""
    if reference and reference[-1] in '+-':
        return reference[:-1], reference[-1]
    return reference, '+'


def parse_gfa_text(text: str) -> GraphRecords:
    """
    Parse GFA (v1, with GFA2 E lines) into records.

    Handles H, S, L, E and P records; comments and blank lines are skipped
    and every other record type is reported as a warning. Repeated links
    between the same source and target keep only the first.

    Args:
        text: GFA file contents

    Returns:
        GraphRecords with oriented=True
    """
    records = GraphRecords(oriented=True)
    seen_links = set()

    for line_no, raw_line in enumerate(text.splitlines(), 1):
        line = raw_line.rstrip('\r\n')
        if not line.strip() or line.startswith('#'):
            continue

        parts = line.split('\t')
        if len(parts) == 1:
            parts = line.split()
        record_type = parts[0]

        if record_type == 'H':
            tags = _parse_tags(parts[1:])
            records.version = tags.get('VN', records.version)

        elif record_type == 'S':
            is_gfa2 = bool(records.version and records.version.startswith('2'))
            if is_gfa2:
                # S <sid> <slen> <sequence> [tags]
                if len(parts) < 4:
                    records.warn(f"GFA line {line_no}: malformed S-line, skipping")
                    continue
                try:
                    declared = int(parts[2])
                except ValueError:
                    records.warn(f"GFA line {line_no}: invalid segment length {parts[2]!r}, skipping")
                    continue
                records.nodes.append(
                    _segment_record(parts[1], parts[3], _parse_tags(parts[4:]), records, line_no, declared)
                )
            else:
                # S <name> <sequence> [tags]
                if len(parts) < 3:
                    records.warn(f"GFA line {line_no}: malformed S-line, skipping")
                    continue
                records.nodes.append(
                    _segment_record(parts[1], parts[2], _parse_tags(parts[3:]), records, line_no)
                )

        elif record_type == 'L':
            # L <from> <from_orient> <to> <to_orient> [overlap]
            if len(parts) < 5 or parts[2] not in ('+', '-') or parts[4] not in ('+', '-'):
                records.warn(f"GFA line {line_no}: malformed L-line, skipping")
                continue
            key = (parts[1], parts[3])
            if key in seen_links:
                records.warn(f"GFA line {line_no}: duplicate link {parts[1]} -> {parts[3]}, skipping")
                continue
            seen_links.add(key)
            records.edges.append(EdgeRecord(
                source_id=parts[1],
                target_id=parts[3],
                source_orientation=parts[2],
                target_orientation=parts[4],
                overlap=parts[5] if len(parts) > 5 else '0M',
            ))

        elif record_type == 'E':
            # E <eid> <sid1><+|-> <sid2><+|-> <beg1> <end1> <beg2> <end2> <alignment>
            if len(parts) < 4:
                records.warn(f"GFA line {line_no}: malformed E-line, skipping")
                continue
            source, source_ori = _split_signed(parts[2])
            target, target_ori = _split_signed(parts[3])
            key = (source, target)
            if key in seen_links:
                records.warn(f"GFA line {line_no}: duplicate edge {source} -> {target}, skipping")
                continue
            seen_links.add(key)
            records.edges.append(EdgeRecord(
                source_id=source,
                target_id=target,
                source_orientation=source_ori,
                target_orientation=target_ori,
                overlap=parts[8] if len(parts) > 8 else '0M',
            ))

        elif record_type == 'P':
            # P <name> <seg1+,seg2-,...> [overlaps]
            if len(parts) < 3:
                records.warn(f"GFA line {line_no}: malformed P-line, skipping")
                continue
            node_ids, orientations = [], []
            for reference in parts[2].split(','):
                if not reference:
                    continue
                node_id, orientation = _split_signed(reference)
                node_ids.append(node_id)
                orientations.append(orientation)
            if node_ids:
                records.paths.append(PathLineRecord(parts[1], node_ids, orientations))

        else:
            records.warn(f"GFA line {line_no}: unsupported record type {record_type!r}, skipping")

    logger.info(
        f"Parsed GFA: {len(records.nodes)} segments, {len(records.edges)} links, "
        f"{len(records.paths)} paths, {len(records.warnings)} warnings"
    )
    return records


# ============================================================================
#                               DOT
# ============================================================================

_DOT_ID = r'(?:"([^"]+)"|([\w.:+-]+))'
_DOT_EDGE = re.compile(rf'^\s*{_DOT_ID}\s*(->|--)\s*{_DOT_ID}\s*(?:\[(.*)\])?\s*;?\s*$')
_DOT_NODE = re.compile(rf'^\s*{_DOT_ID}\s*(?:\[(.*)\])?\s*;?\s*$')
_DOT_ATTR = re.compile(r'(\w+)\s*=\s*(?:"([^"]*)"|([^,;\s\]]+))')
_DOT_SKIP = re.compile(r'^\s*(?:strict\s+)?(?:di)?graph\b|^\s*[{}]\s*;?\s*$|^\s*(?:node|edge|graph)\s*\[|^\s*\w+\s*=')


def _dot_attrs(text: Optional[str]) -> Dict[str, str]:
    if not text:
        return {}
    return {m.group(1).lower(): m.group(2) if m.group(2) is not None else m.group(3)
            for m in _DOT_ATTR.finditer(text)}


def parse_dot_text(text: str) -> GraphRecords:
    """
    Parse a DOT graph into records, one statement per line.

    Node attributes read: length, depth/coverage, seq/sequence. Edge
    attribute read: overlap. Nodes mentioned only in edges are created
    with default length and depth.

    Args:
        text: DOT file contents

    Returns:
        GraphRecords with oriented=False
    """
    records = GraphRecords(oriented=False)
    nodes: Dict[str, NodeRecord] = {}

    def ensure(node_id: str) -> NodeRecord:
        if node_id not in nodes:
            nodes[node_id] = NodeRecord(id=node_id)
        return nodes[node_id]

    for line_no, raw_line in enumerate(text.splitlines(), 1):
        line = raw_line.strip()
        if not line or line.startswith('//') or line.startswith('#') or _DOT_SKIP.match(line):
            continue

        edge_match = _DOT_EDGE.match(line)
        if edge_match:
            source = edge_match.group(1) or edge_match.group(2)
            target = edge_match.group(4) or edge_match.group(5)
            attrs = _dot_attrs(edge_match.group(6))
            ensure(source)
            ensure(target)
            records.edges.append(EdgeRecord(source_id=source, target_id=target, overlap=attrs.get('overlap')))
            continue

        node_match = _DOT_NODE.match(line)
        if node_match:
            node = ensure(node_match.group(1) or node_match.group(2))
            attrs = _dot_attrs(node_match.group(3))
            sequence = attrs.get('seq') or attrs.get('sequence')
            if sequence and sequence != '*':
                node.sequence = sequence
                node.length = len(sequence)
            try:
                if 'length' in attrs:
                    node.length = int(float(attrs['length']))
                depth = attrs.get('depth') or attrs.get('coverage')
                if depth is not None:
                    node.depth = float(depth)
            except ValueError:
                records.warn(f"DOT line {line_no}: invalid numeric attribute on node {node.id}")
            continue

        records.warn(f"DOT line {line_no}: unrecognised statement {line!r}, skipping")

    records.nodes = list(nodes.values())
    logger.info(
        f"Parsed DOT: {len(records.nodes)} nodes, {len(records.edges)} edges, "
        f"{len(records.warnings)} warnings"
    )
    return records


# ============================================================================
#                           FILE LOADING
# ============================================================================

def load_records(path: str | Path) -> GraphRecords:
    """
    Read a graph file into records, choosing the parser by suffix.

    Files with an unknown suffix are parsed as DOT when they start with a
    graph/digraph declaration and as GFA otherwise.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Graph file not found: {path}")

    logger.info(f"Loading graph records from {path}")
    text = path.read_text(encoding='utf-8')
    suffix = path.suffix.lower()

    if suffix in GFA_SUFFIXES:
        return parse_gfa_text(text)
    if suffix in DOT_SUFFIXES:
        return parse_dot_text(text)
    if re.match(r'^\s*(?:strict\s+)?(?:di)?graph\b', text):
        return parse_dot_text(text)
    return parse_gfa_text(text)


def load_graph(path: str | Path) -> AssemblyGraph:
    """Load a GFA or DOT file directly into an AssemblyGraph."""
    return load_records(path).to_graph()

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
