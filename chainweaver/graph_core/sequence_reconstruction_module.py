#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Sequence Reconstruction Engine — splices one nucleotide sequence out of an
ordered path of nodes, resolving per-node orientation and overlap handling
from the declared link metadata.

Pipeline per transition A -> B:
1. Find every link joining A and B (either declared direction; a link
   B -> A is read as A -> B with orientations flipped and CIGAR reversed)
2. With a non-zero overlap, score orientation pairings by comparing the
   overlap-length suffix of A with the prefix of B
3. Splice: perfect and fuzzy overlaps are trimmed from B, poor overlaps
   get a parseable mismatch marker and B is appended whole, missing links
   and oversized overlaps are concatenated

Contracted nodes are expanded recursively from the member nodes and
internal links stored on them.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from chainweaver.utils.sequence_utils import (
    ORIENTATION_FORWARD,
    ORIENTATION_REVERSE,
    MalformedOverlapError,
    cigar_length,
    flip_orientation,
    orient_sequence,
    overlap_similarity,
)

from .data_structures import (
    AssemblyGraph,
    GraphEdge,
    GraphEditError,
    GraphNode,
    NodeNotFoundError,
)

logger = logging.getLogger(__name__)

ORIENTATION_PAIRINGS = [
    (ORIENTATION_FORWARD, ORIENTATION_FORWARD),
    (ORIENTATION_FORWARD, ORIENTATION_REVERSE),
    (ORIENTATION_REVERSE, ORIENTATION_FORWARD),
    (ORIENTATION_REVERSE, ORIENTATION_REVERSE),
]

MISMATCH_MARKER_PATTERN = re.compile(
    r'\[MISMATCH:(\d+)bp:(\d+(?:\.\d+)?)%:ORIENTATIONS:(.+?)([+-])-(.+?)([+-])\]'
)

LINK_DIRECT = 'direct'
LINK_BIDIRECTIONAL = 'bidirectional'
LINK_NONE = 'no_link'


class EmptyPathError(GraphEditError, ValueError):
    """Raised when reconstruction is asked for a path with no nodes."""
    pass


class SpliceMethod(str, Enum):
    """How a node's sequence was joined onto the running sequence."""
    SINGLE_NODE = "single_node"
    START = "intelligent_start"
    PERFECT = "perfect_overlap"
    FUZZY = "fuzzy_overlap"
    GAP = "gap_insertion"
    CONCATENATION = "concatenation"
    CONCATENATION_FALLBACK = "concatenation_fallback"


# ============================================================================
#                           RESULT TYPES
# ============================================================================

@dataclass
class OrientationTrial:
    """Similarity of one orientation pairing over the overlap region."""
    orientation_a: str
    orientation_b: str
    similarity: float
    valid: bool = True
    reason: Optional[str] = None


@dataclass
class LinkReading:
    """
    A link interpreted for one path transition, read from A towards B.

    similarity is None when the link declares no overlap.
    """
    found: bool
    orientation_a: str
    orientation_b: str
    overlap: str = '0M'
    overlap_length: int = 0
    similarity: Optional[float] = None
    direction: str = LINK_NONE
    edge: Optional[GraphEdge] = None
    trials: List[OrientationTrial] = field(default_factory=list)
    reoriented: bool = False
    malformed_overlap: bool = False


@dataclass
class Segment:
    """Contribution of one path node to the final sequence."""
    node_id: str
    orientation: str
    start: int
    end: int
    method: SpliceMethod
    contributed_length: int
    overlap_length: int = 0
    similarity: Optional[float] = None
    is_contracted: bool = False
    marker: Optional[str] = None
    link_direction: str = LINK_NONE


@dataclass
class StepLog:
    """Audit entry for one transition."""
    step: int
    from_node: str
    to_node: str
    orientation_a: str
    orientation_b: str
    method: SpliceMethod
    link_direction: str
    overlap: str
    similarity: Optional[float]
    reused_first_link: bool
    message: str


@dataclass
class ReconstructionDiagnostics:
    """Counters and per-step log describing a reconstruction."""
    total_steps: int = 0
    links_found: int = 0
    direct_links: int = 0
    bidirectional_links: int = 0
    perfect_overlaps: int = 0
    fuzzy_overlaps: int = 0
    gap_insertions: int = 0
    concatenations: int = 0
    malformed_overlaps: int = 0
    intelligent_start: bool = False
    steps: List[StepLog] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Fraction of transitions spliced on a perfect or fuzzy overlap."""
        if not self.total_steps:
            return 0.0
        return (self.perfect_overlaps + self.fuzzy_overlaps) / self.total_steps

    def record_method(self, method: SpliceMethod):
        if method == SpliceMethod.PERFECT:
            self.perfect_overlaps += 1
        elif method == SpliceMethod.FUZZY:
            self.fuzzy_overlaps += 1
        elif method == SpliceMethod.GAP:
            self.gap_insertions += 1
        elif method in (SpliceMethod.CONCATENATION, SpliceMethod.CONCATENATION_FALLBACK):
            self.concatenations += 1


@dataclass
class ReconstructionResult:
    """Spliced sequence of a path with its audit trail."""
    path_name: str
    node_ids: List[str]
    sequence: str
    segments: List[Segment]
    diagnostics: ReconstructionDiagnostics
    orientations: List[str] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.sequence)

    @property
    def markers(self) -> List['MismatchMarker']:
        return parse_mismatch_markers(self.sequence)


@dataclass
class MismatchMarker:
    """A poor-overlap marker recovered from a spliced sequence."""
    overlap_length: int
    similarity_percent: float
    node_a: str
    orientation_a: str
    node_b: str
    orientation_b: str
    position: int
    text: str


def format_mismatch_marker(
    overlap_length: int,
    similarity: float,
    node_a: str,
    orientation_a: str,
    node_b: str,
    orientation_b: str,
) -> str:
    """Literal marker inserted in place of a poor overlap."""
    return (
        f"[MISMATCH:{overlap_length}bp:{similarity * 100:.1f}%:"
        f"ORIENTATIONS:{node_a}{orientation_a}-{node_b}{orientation_b}]"
    )


def parse_mismatch_markers(sequence: str) -> List[MismatchMarker]:
    """Recover every mismatch marker embedded in a spliced sequence."""
    markers = []
    for match in MISMATCH_MARKER_PATTERN.finditer(sequence):
        markers.append(MismatchMarker(
            overlap_length=int(match.group(1)),
            similarity_percent=float(match.group(2)),
            node_a=match.group(3),
            orientation_a=match.group(4),
            node_b=match.group(5),
            orientation_b=match.group(6),
            position=match.start(),
            text=match.group(0),
        ))
    return markers


# ============================================================================
#                           RECONSTRUCTOR
# ============================================================================

class SequenceReconstructor:
    """
    Reconstruct spliced sequences for paths through an assembly graph.

    Reconstruction is read-only: the graph is never mutated and no state is
    kept between calls.

    Args:
        perfect_threshold: Minimum similarity for a perfect splice
        fuzzy_threshold: Minimum similarity for a fuzzy splice
        reorientation_threshold: Minimum similarity for an orientation
            pairing other than the declared one to be adopted
        placeholder_base: Base used for nodes without a known sequence
    """

    def __init__(
        self,
        perfect_threshold: float = 0.8,
        fuzzy_threshold: float = 0.5,
        reorientation_threshold: float = 0.8,
        placeholder_base: str = 'N',
    ):
        if not 0.0 <= fuzzy_threshold <= perfect_threshold <= 1.0:
            raise ValueError(
                f"Thresholds must satisfy 0 <= fuzzy ({fuzzy_threshold}) "
                f"<= perfect ({perfect_threshold}) <= 1"
            )
        if not 0.0 <= reorientation_threshold <= 1.0:
            raise ValueError(f"reorientation_threshold must be in [0, 1], got {reorientation_threshold}")
        if len(placeholder_base) != 1:
            raise ValueError(f"placeholder_base must be a single character, got {placeholder_base!r}")

        self.perfect_threshold = perfect_threshold
        self.fuzzy_threshold = fuzzy_threshold
        self.reorientation_threshold = reorientation_threshold
        self.placeholder_base = placeholder_base
        self.logger = logging.getLogger(f"{__name__}.SequenceReconstructor")

    @classmethod
    def from_config(cls, config: Dict) -> 'SequenceReconstructor':
        """Build from the 'reconstruction' section of a configuration dict."""
        section = config.get('reconstruction', {})
        return cls(
            perfect_threshold=section.get('perfect_threshold', 0.8),
            fuzzy_threshold=section.get('fuzzy_threshold', 0.5),
            reorientation_threshold=section.get('reorientation_threshold', 0.8),
            placeholder_base=section.get('placeholder_base', 'N'),
        )

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def reconstruct(
        self,
        node_ids: Sequence[str],
        graph: AssemblyGraph,
        path_name: str = "Reconstructed Path",
    ) -> ReconstructionResult:
        """
        Reconstruct the sequence of a path through `graph`.

        Args:
            node_ids: Ordered node ids of the path
            graph: Graph providing nodes and the link pool
            path_name: Name used in logs and reports

        Returns:
            ReconstructionResult with sequence, segments and diagnostics

        Raises:
            EmptyPathError: If node_ids is empty
            NodeNotFoundError: If a path node is absent from the graph
        """
        return self.reconstruct_from(node_ids, graph.nodes, graph.edges, path_name)

    def reconstruct_from(
        self,
        node_ids: Sequence[str],
        nodes: Dict[str, GraphNode],
        edges: List[GraphEdge],
        path_name: str = "Reconstructed Path",
        _expanded: Optional[Dict[str, str]] = None,
    ) -> ReconstructionResult:
        """Reconstruct against an explicit node map and link pool."""
        if not node_ids:
            raise EmptyPathError(f"Cannot reconstruct empty path {path_name!r}")

        expanded = {} if _expanded is None else _expanded
        path_nodes = []
        for node_id in node_ids:
            if node_id not in nodes:
                raise NodeNotFoundError(node_id)
            path_nodes.append(nodes[node_id])

        self.logger.info(f"Reconstructing {path_name!r}: {len(path_nodes)} nodes")
        diagnostics = ReconstructionDiagnostics(total_steps=len(path_nodes) - 1)

        if len(path_nodes) == 1:
            node = path_nodes[0]
            sequence = self._node_sequence(node, ORIENTATION_FORWARD, expanded)
            segment = Segment(
                node_id=node.id,
                orientation=ORIENTATION_FORWARD,
                start=0,
                end=len(sequence),
                method=SpliceMethod.SINGLE_NODE,
                contributed_length=len(sequence),
                is_contracted=node.is_contracted,
            )
            return ReconstructionResult(
                path_name=path_name,
                node_ids=list(node_ids),
                sequence=sequence,
                segments=[segment],
                diagnostics=diagnostics,
                orientations=[ORIENTATION_FORWARD],
            )

        # Starting orientation comes from the first link
        first_reading = self.read_link(path_nodes[0], path_nodes[1], edges, None, expanded)
        diagnostics.intelligent_start = first_reading.found

        current_orientation = first_reading.orientation_a
        current = self._node_sequence(path_nodes[0], current_orientation, expanded)
        segments = [Segment(
            node_id=path_nodes[0].id,
            orientation=current_orientation,
            start=0,
            end=len(current),
            method=SpliceMethod.START,
            contributed_length=len(current),
            is_contracted=path_nodes[0].is_contracted,
            link_direction=first_reading.direction,
        )]
        orientations = [current_orientation]

        for step in range(1, len(path_nodes)):
            node_a, node_b = path_nodes[step - 1], path_nodes[step]
            reused = step == 1
            if reused:
                reading = first_reading
            else:
                reading = self.read_link(node_a, node_b, edges, current_orientation, expanded)

            if reading.found:
                diagnostics.links_found += 1
                if reading.direction == LINK_DIRECT:
                    diagnostics.direct_links += 1
                else:
                    diagnostics.bidirectional_links += 1
            if reading.malformed_overlap:
                diagnostics.malformed_overlaps += 1

            seq_b = self._node_sequence(node_b, reading.orientation_b, expanded)
            current, segment = self._splice(current, seq_b, reading, node_a.id, current_orientation, node_b)
            diagnostics.record_method(segment.method)
            segments.append(segment)

            similarity_text = f" [{segment.similarity * 100:.1f}%]" if segment.similarity is not None else ""
            message = (
                f"Step {step}: added {node_b.id}{reading.orientation_b} "
                f"({len(seq_b)}bp -> {segment.contributed_length}bp, "
                f"{segment.method.value}, {reading.direction}){similarity_text}"
            )
            diagnostics.steps.append(StepLog(
                step=step,
                from_node=node_a.id,
                to_node=node_b.id,
                orientation_a=current_orientation,
                orientation_b=reading.orientation_b,
                method=segment.method,
                link_direction=reading.direction,
                overlap=reading.overlap,
                similarity=segment.similarity,
                reused_first_link=reused,
                message=message,
            ))
            self.logger.debug(message)

            current_orientation = reading.orientation_b
            orientations.append(current_orientation)

        self.logger.info(
            f"Reconstructed {path_name!r}: {len(current)}bp, "
            f"{diagnostics.perfect_overlaps} perfect, {diagnostics.fuzzy_overlaps} fuzzy, "
            f"{diagnostics.gap_insertions} gaps, {diagnostics.concatenations} concatenations"
        )

        return ReconstructionResult(
            path_name=path_name,
            node_ids=list(node_ids),
            sequence=current,
            segments=segments,
            diagnostics=diagnostics,
            orientations=orientations,
        )

    # ------------------------------------------------------------------
    # Node sequences
    # ------------------------------------------------------------------

    def _node_sequence(self, node: GraphNode, orientation: str, expanded: Dict[str, str]) -> str:
        """Node sequence in the given orientation, expanding contracted nodes."""
        if node.is_contracted:
            if node.id not in expanded:
                record = node.contraction
                inner = self.reconstruct_from(
                    record.member_ids,
                    record.original_nodes,
                    record.original_edges,
                    path_name=f"Merged: {record.label or node.id}",
                    _expanded=expanded,
                )
                expanded[node.id] = inner.sequence
            sequence = expanded[node.id]
        elif node.sequence is None:
            sequence = self.placeholder_base * node.length
        else:
            sequence = node.sequence
        return orient_sequence(sequence, orientation)

    # ------------------------------------------------------------------
    # Link interpretation
    # ------------------------------------------------------------------

    def read_link(
        self,
        node_a: GraphNode,
        node_b: GraphNode,
        edges: List[GraphEdge],
        fixed_orientation_a: Optional[str] = None,
        expanded: Optional[Dict[str, str]] = None,
    ) -> LinkReading:
        """
        Interpret the links joining A and B for the transition A -> B.

        Args:
            node_a: Preceding path node
            node_b: Following path node
            edges: Link pool
            fixed_orientation_a: A's orientation when already decided by the
                previous transition; None for the first transition
            expanded: Cache of expanded contracted-node sequences

        Returns:
            The best LinkReading; found=False when no link joins A and B
        """
        expanded = {} if expanded is None else expanded
        candidates = [e for e in edges if e.connects(node_a.id, node_b.id)]

        if not candidates:
            self.logger.warning(f"No link between {node_a.id} and {node_b.id}; concatenating")
            return LinkReading(
                found=False,
                orientation_a=fixed_orientation_a or ORIENTATION_FORWARD,
                orientation_b=ORIENTATION_FORWARD,
            )

        best: Optional[LinkReading] = None
        best_score = -1.0

        for edge in candidates:
            if edge.source == node_a.id and edge.target == node_b.id:
                reading_edge, direction = edge, LINK_DIRECT
            else:
                reading_edge, direction = edge.reversed(), LINK_BIDIRECTIONAL
            declared = (reading_edge.source_orientation, reading_edge.target_orientation)
            overlap = reading_edge.overlap or '0M'

            malformed = False
            try:
                length = cigar_length(edge.overlap)
            except MalformedOverlapError as e:
                self.logger.warning(f"{e} on link {edge.describe()}; treating overlap as 0")
                length, malformed = 0, True

            if length == 0:
                reading = LinkReading(
                    found=True,
                    orientation_a=fixed_orientation_a or declared[0],
                    orientation_b=declared[1],
                    overlap=overlap,
                    direction=direction,
                    edge=edge,
                    malformed_overlap=malformed,
                )
                score = 1.0
            else:
                trials = self._test_orientations(node_a, node_b, length, declared, fixed_orientation_a, expanded)
                chosen = self._choose_orientation(trials, node_a, node_b)
                reading = LinkReading(
                    found=True,
                    orientation_a=chosen.orientation_a,
                    orientation_b=chosen.orientation_b,
                    overlap=overlap,
                    overlap_length=length,
                    similarity=chosen.similarity,
                    direction=direction,
                    edge=edge,
                    trials=trials,
                    reoriented=chosen is not trials[0],
                )
                score = chosen.similarity

            if score > best_score:
                best, best_score = reading, score

        self.logger.debug(
            f"Link {node_a.id}{best.orientation_a} -> {node_b.id}{best.orientation_b} "
            f"({best.direction}, overlap {best.overlap})"
        )
        return best

    def _test_orientations(
        self,
        node_a: GraphNode,
        node_b: GraphNode,
        length: int,
        declared: Tuple[str, str],
        fixed_orientation_a: Optional[str],
        expanded: Dict[str, str],
    ) -> List[OrientationTrial]:
        """Score orientation pairings, declared pairing first."""
        if fixed_orientation_a is None:
            order = [declared] + [p for p in ORIENTATION_PAIRINGS if p != declared]
        else:
            order = [
                (fixed_orientation_a, declared[1]),
                (fixed_orientation_a, flip_orientation(declared[1])),
            ]

        trials = []
        for orientation_a, orientation_b in order:
            seq_a = self._node_sequence(node_a, orientation_a, expanded)
            seq_b = self._node_sequence(node_b, orientation_b, expanded)
            if len(seq_a) < length or len(seq_b) < length:
                trials.append(OrientationTrial(
                    orientation_a, orientation_b, 0.0, valid=False, reason='sequences_too_short'
                ))
                continue
            similarity = overlap_similarity(seq_a, seq_b, length)
            trials.append(OrientationTrial(orientation_a, orientation_b, similarity))
            self.logger.debug(
                f"  {node_a.id}{orientation_a} -> {node_b.id}{orientation_b}: "
                f"{similarity * 100:.1f}% over {length}bp"
            )
        return trials

    def _choose_orientation(
        self,
        trials: List[OrientationTrial],
        node_a: GraphNode,
        node_b: GraphNode,
    ) -> OrientationTrial:
        """
        Highest-similarity trial, ties to the first tested.

        A pairing other than the declared one (trials[0]) is only adopted
        when it reaches the reorientation threshold. Links touching a
        contracted node carry the sign of the end they were rewired to,
        not a recorded orientation, so they take the best pairing outright.
        """
        declared = trials[0]
        best = declared
        for trial in trials[1:]:
            if trial.similarity > best.similarity:
                best = trial
        if node_a.is_contracted or node_b.is_contracted:
            return best
        if best is not declared and best.similarity < self.reorientation_threshold:
            return declared
        return best

    # ------------------------------------------------------------------
    # Splicing
    # ------------------------------------------------------------------

    def _splice(
        self,
        current: str,
        seq_b: str,
        reading: LinkReading,
        node_a_id: str,
        orientation_a: str,
        node_b: GraphNode,
    ) -> Tuple[str, Segment]:
        """Join seq_b onto the running sequence according to the link reading."""
        length = reading.overlap_length
        start = len(current)

        def segment(method, seq_start, merged, overlap=0, similarity=None, marker=None):
            return merged, Segment(
                node_id=node_b.id,
                orientation=reading.orientation_b,
                start=seq_start,
                end=len(merged),
                method=method,
                contributed_length=len(merged) - start,
                overlap_length=overlap,
                similarity=similarity,
                is_contracted=node_b.is_contracted,
                marker=marker,
                link_direction=reading.direction,
            )

        if not reading.found or length == 0:
            return segment(SpliceMethod.CONCATENATION, start, current + seq_b)

        if length >= len(current) or length >= len(seq_b):
            self.logger.warning(
                f"Overlap {reading.overlap} ({length}bp) too large for {node_a_id} -> {node_b.id} "
                f"({len(current)}bp, {len(seq_b)}bp); concatenating"
            )
            return segment(SpliceMethod.CONCATENATION_FALLBACK, start, current + seq_b)

        similarity = reading.similarity
        if similarity >= self.fuzzy_threshold:
            method = SpliceMethod.PERFECT if similarity >= self.perfect_threshold else SpliceMethod.FUZZY
            return segment(
                method, start - length, current + seq_b[length:], overlap=length, similarity=similarity
            )

        marker = format_mismatch_marker(
            length, similarity, node_a_id, orientation_a, node_b.id, reading.orientation_b
        )
        self.logger.warning(
            f"Poor overlap {node_a_id}{orientation_a} -> {node_b.id}{reading.orientation_b}: "
            f"{similarity * 100:.1f}% over {length}bp; inserting mismatch marker"
        )
        return segment(SpliceMethod.GAP, start, current + marker + seq_b, similarity=similarity, marker=marker)


def reconstruct(
    node_ids: Sequence[str],
    graph: AssemblyGraph,
    path_name: str = "Reconstructed Path",
    reconstructor: Optional[SequenceReconstructor] = None,
) -> ReconstructionResult:
    """Reconstruct a path with default (or the given) reconstructor settings."""
    return (reconstructor or SequenceReconstructor()).reconstruct(node_ids, graph, path_name)

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
