#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Assembly Export — GFA export of edited graphs, FASTA export of
reconstructed sequences, and text/JSON reconstruction reports.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from chainweaver.graph_core.data_structures import AssemblyGraph, GraphNode
from chainweaver.graph_core.path_registry import PathRecord
from chainweaver.graph_core.sequence_reconstruction_module import (
    ReconstructionResult,
    SequenceReconstructor,
)

logger = logging.getLogger(__name__)


# ============================================================================
#                       GFA EXPORT FUNCTIONS
# ============================================================================

@dataclass
class GFASegment:
    """Represents a GFA S-line (segment)."""
    name: str
    sequence: Optional[str]
    length: int
    depth: float
    members: Optional[List[str]] = None

    def to_gfa_line(self) -> str:
        """
        Convert to GFA S-line format.

        Format: S <name> <sequence|*> LN:i:<length> DP:f:<depth> [CN:Z:<members>]
        """
        fields = ["S", self.name, self.sequence or "*", f"LN:i:{self.length}", f"DP:f:{self.depth:g}"]
        if self.members:
            fields.append(f"CN:Z:{','.join(self.members)}")
        return "\t".join(fields)


@dataclass
class GFALink:
    """Represents a GFA L-line (link/edge)."""
    from_name: str
    from_orient: str
    to_name: str
    to_orient: str
    overlap: Optional[str]

    def to_gfa_line(self) -> str:
        """
        Convert to GFA L-line format.

        Format: L <from> <from_orient> <to> <to_orient> <overlap|*>
        """
        return f"L\t{self.from_name}\t{self.from_orient}\t{self.to_name}\t{self.to_orient}\t{self.overlap or '*'}"


@dataclass
class GFAPath:
    """Represents a GFA P-line (path)."""
    name: str
    steps: List[str]
    orientations: List[str]

    def to_gfa_line(self) -> str:
        """
        Convert to GFA P-line format.

        Format: P <name> <seg><orient>,... *
        """
        name = re.sub(r'\s+', '_', self.name.strip()) or "path"
        walk = ",".join(f"{step}{orient}" for step, orient in zip(self.steps, self.orientations))
        return f"P\t{name}\t{walk}\t*"


def _segment_for(node: GraphNode, reconstructor: Optional[SequenceReconstructor]) -> GFASegment:
    sequence = node.sequence
    members = None
    if node.is_contracted:
        members = list(node.contraction.member_ids)
        if reconstructor is not None:
            sequence = reconstructor.reconstruct_from(
                members,
                node.contraction.original_nodes,
                node.contraction.original_edges,
                path_name=node.contraction.label,
            ).sequence
    return GFASegment(
        name=node.id,
        sequence=sequence,
        length=len(sequence) if sequence is not None else node.length,
        depth=node.depth,
        members=members,
    )


def _path_for(
    record: PathRecord,
    graph: AssemblyGraph,
    reconstructor: Optional[SequenceReconstructor],
) -> GFAPath:
    """P-line for a path, step orientations resolved from the links it crosses."""
    result = (reconstructor or SequenceReconstructor()).reconstruct(
        record.node_ids, graph, path_name=record.name
    )
    return GFAPath(name=record.name, steps=list(record.node_ids), orientations=result.orientations)


def export_graph_to_gfa(
    graph: AssemblyGraph,
    output_path: str | Path,
    reconstructor: Optional[SequenceReconstructor] = None,
    paths: Optional[Iterable[PathRecord]] = None,
) -> Dict[str, int]:
    """
    Export an edited graph to GFA v1.

    Links keep their declared orientations and overlaps. Contracted nodes
    are written with a CN tag listing their members; their sequence is '*'
    unless a reconstructor is given to expand it. Paths are written as P
    lines with the orientations reconstruction resolves for each step.

    Args:
        graph: Graph to export
        output_path: Path to output GFA file
        reconstructor: Optional reconstructor for contracted-node sequences
        paths: Optional path records to write as P lines

    Returns:
        Dict with 'segments', 'links' and 'paths' counts
    """
    output_path = Path(output_path)
    logger.info(f"Exporting graph to GFA: {output_path}")

    segments = [_segment_for(node, reconstructor) for node in graph.nodes.values()]
    links = [
        GFALink(
            from_name=edge.source,
            from_orient=edge.source_orientation,
            to_name=edge.target,
            to_orient=edge.target_orientation,
            overlap=edge.overlap,
        )
        for edge in graph.edges
    ]
    path_lines = [_path_for(record, graph, reconstructor) for record in (paths or [])]

    with open(output_path, 'w') as f:
        f.write("H\tVN:Z:1.0\n")
        for seg in segments:
            f.write(seg.to_gfa_line() + "\n")
        for link in links:
            f.write(link.to_gfa_line() + "\n")
        for path_line in path_lines:
            f.write(path_line.to_gfa_line() + "\n")

    logger.info(
        f"GFA export complete: {len(segments)} segments, {len(links)} links, {len(path_lines)} paths"
    )
    return {'segments': len(segments), 'links': len(links), 'paths': len(path_lines)}


def validate_gfa_file(gfa_path: str | Path) -> Dict[str, Any]:
    """
    Count records of a GFA file.

    Returns:
        Dict with keys: 'segments', 'links', 'paths', 'version'
    """
    stats: Dict[str, Any] = {'segments': 0, 'links': 0, 'paths': 0, 'version': None}

    with open(gfa_path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith('H') and 'VN:Z:' in line:
                stats['version'] = line.split('VN:Z:')[1].split()[0]
            elif line.startswith('S'):
                stats['segments'] += 1
            elif line.startswith('L') or line.startswith('E'):
                stats['links'] += 1
            elif line.startswith('P'):
                stats['paths'] += 1

    return stats


# ============================================================================
#                       SEQUENCE & REPORT EXPORT
# ============================================================================

def write_sequence_fasta(
    result: ReconstructionResult,
    output_path: str | Path,
    line_width: int = 80,
) -> None:
    """
    Write a reconstructed sequence to FASTA.

    Args:
        result: Reconstruction result
        output_path: Path to output FASTA file
        line_width: Number of bases per line (0 = no wrapping)
    """
    output_path = Path(output_path)
    header = result.path_name.replace(' ', '_')
    sequence = result.sequence

    with open(output_path, 'w') as f:
        f.write(f">{header} nodes={','.join(result.node_ids)} length={len(sequence)}\n")
        if line_width > 0:
            for i in range(0, len(sequence), line_width):
                f.write(sequence[i:i + line_width] + "\n")
        else:
            f.write(sequence + "\n")

    logger.info(f"Wrote {len(sequence):,} bp for {result.path_name!r} to {output_path}")


def reconstruction_to_dict(result: ReconstructionResult) -> Dict[str, Any]:
    """JSON-serialisable view of a reconstruction."""
    diag = result.diagnostics
    return {
        'path_name': result.path_name,
        'node_ids': list(result.node_ids),
        'orientations': list(result.orientations),
        'length': result.length,
        'sequence': result.sequence,
        'diagnostics': {
            'total_steps': diag.total_steps,
            'links_found': diag.links_found,
            'direct_links': diag.direct_links,
            'bidirectional_links': diag.bidirectional_links,
            'perfect_overlaps': diag.perfect_overlaps,
            'fuzzy_overlaps': diag.fuzzy_overlaps,
            'gap_insertions': diag.gap_insertions,
            'concatenations': diag.concatenations,
            'malformed_overlaps': diag.malformed_overlaps,
            'intelligent_start': diag.intelligent_start,
            'success_rate': diag.success_rate,
            'steps': [step.message for step in diag.steps],
        },
        'segments': [
            {
                'node_id': seg.node_id,
                'orientation': seg.orientation,
                'start': seg.start,
                'end': seg.end,
                'method': seg.method.value,
                'contributed_length': seg.contributed_length,
                'overlap_length': seg.overlap_length,
                'similarity': seg.similarity,
                'is_contracted': seg.is_contracted,
                'marker': seg.marker,
            }
            for seg in result.segments
        ],
        'mismatch_markers': [marker.text for marker in result.markers],
    }


def format_reconstruction_report(result: ReconstructionResult) -> str:
    """Plain-text report of a reconstruction."""
    diag = result.diagnostics
    lines = [
        f"Sequence reconstruction report: {result.path_name}",
        f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "=" * 60,
        f"Path: {' -> '.join(f'{n}{o}' for n, o in zip(result.node_ids, result.orientations))}",
        f"Length: {result.length:,} bp",
        "",
        "Diagnostics:",
        f"  Steps: {diag.total_steps}",
        f"  Links found: {diag.links_found} ({diag.direct_links} direct, {diag.bidirectional_links} bidirectional)",
        f"  Perfect overlaps: {diag.perfect_overlaps}",
        f"  Fuzzy overlaps: {diag.fuzzy_overlaps}",
        f"  Gap insertions: {diag.gap_insertions}",
        f"  Concatenations: {diag.concatenations}",
        f"  Success rate: {diag.success_rate * 100:.1f}%",
        f"  Starting orientation: {'from first link' if diag.intelligent_start else 'default'}",
    ]
    if diag.malformed_overlaps:
        lines.append(f"  Malformed overlaps treated as 0: {diag.malformed_overlaps}")

    if diag.steps:
        lines.extend(["", "Steps:"])
        lines.extend(f"  {step.message}" for step in diag.steps)

    lines.extend(["", "Segments:", f"  {'node':<20} {'ori':<4} {'start':>8} {'end':>8}  method"])
    for seg in result.segments:
        similarity = f" ({seg.similarity * 100:.1f}%)" if seg.similarity is not None else ""
        contracted = " [contracted]" if seg.is_contracted else ""
        lines.append(
            f"  {seg.node_id:<20} {seg.orientation:<4} {seg.start:>8} {seg.end:>8}  "
            f"{seg.method.value}{similarity}{contracted}"
        )

    markers = result.markers
    if markers:
        lines.extend(["", "Mismatch markers:"])
        lines.extend(f"  at {m.position}: {m.text}" for m in markers)

    return "\n".join(lines) + "\n"


def write_reconstruction_report(
    result: ReconstructionResult,
    output_path: str | Path,
    report_format: str = 'text',
) -> None:
    """Write a reconstruction report as 'text' or 'json'."""
    if report_format not in ('text', 'json'):
        raise ValueError(f"Unknown report format: {report_format!r}")

    output_path = Path(output_path)
    with open(output_path, 'w') as f:
        if report_format == 'json':
            json.dump(reconstruction_to_dict(result), f, indent=2)
        else:
            f.write(format_reconstruction_report(result))
    logger.info(f"Reconstruction report written to {output_path}")

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
