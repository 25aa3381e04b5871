#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Path Registry & Path Rewriter — named ordered node sequences and the
rewriting applied to them after chain contraction or vertex splitting.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional, Sequence, Set, Union

from .data_structures import AssemblyGraph

logger = logging.getLogger(__name__)

PATH_COLORS = [
    '#FF6B6B', '#4ECDC4', '#45B7D1', '#96CEB4', '#FFEAA7',
    '#DFE6E9', '#74B9FF', '#A29BFE', '#00CEC9', '#FDCB6E',
]


def parse_node_list(node_ids: Union[str, Sequence[str]]) -> List[str]:
    """Accept 'A,B,C' or ['A', 'B', 'C']; blanks are dropped."""
    if isinstance(node_ids, str):
        items = node_ids.split(',')
    else:
        items = node_ids
    return [str(item).strip() for item in items if str(item).strip()]


@dataclass
class PathRecord:
    """
    A named ordered sequence of node ids.

    The set of traversed edge indices is derived from a graph on demand and
    cached until invalidate_edges() is called.
    """
    id: int
    name: str
    node_ids: List[str]
    color: str = PATH_COLORS[0]
    updated: bool = False
    update_reason: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None
    _edge_indices: Optional[Set[int]] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if not self.node_ids:
            raise ValueError(f"Path {self.name!r} must contain at least one node")

    def contains(self, node_id: str) -> bool:
        return node_id in self.node_ids

    def as_text(self) -> str:
        return ",".join(self.node_ids)

    def mark_updated(self, reason: str):
        self.updated = True
        self.update_reason = reason
        self.updated_at = datetime.now()
        self.invalidate_edges()

    def invalidate_edges(self):
        self._edge_indices = None

    def edge_indices(self, graph: AssemblyGraph) -> Set[int]:
        """Indices of graph links joining consecutive path nodes (either direction)."""
        if self._edge_indices is None:
            indices = set()
            edges = graph.edges
            for a, b in zip(self.node_ids, self.node_ids[1:]):
                for index, edge in enumerate(edges):
                    if edge.connects(a, b):
                        indices.add(index)
            self._edge_indices = indices
        return set(self._edge_indices)


@dataclass
class PathRewriteResult:
    """Outcome of rewriting paths after a vertex split."""
    paths: List[PathRecord]
    affected_count: int = 0
    updated_count: int = 0
    removed_count: int = 0
    unaffected_count: int = 0
    removed_names: List[str] = field(default_factory=list)
    original_node_id: str = ""

    @property
    def message(self) -> str:
        return (
            f"{self.affected_count} paths contained vertex {self.original_node_id}; "
            f"{self.updated_count} successfully updated; "
            f"{self.removed_count} removed; "
            f"{self.unaffected_count} unaffected"
        )


# ============================================================================
#                           PATH REWRITING
# ============================================================================

def collapse_consecutive(node_ids: List[str]) -> List[str]:
    """Drop ids equal to their predecessor."""
    collapsed: List[str] = []
    for node_id in node_ids:
        if not collapsed or collapsed[-1] != node_id:
            collapsed.append(node_id)
    return collapsed


def path_is_supported(node_ids: Sequence[str], graph: AssemblyGraph) -> bool:
    """True if every consecutive pair is joined by a link in either direction."""
    return all(graph.has_edge_between(a, b) for a, b in zip(node_ids, node_ids[1:]))


def rewrite_after_contraction(
    paths: List[PathRecord],
    merged_node_id: str,
    original_member_ids: Sequence[str],
) -> List[PathRecord]:
    """
    Replace contracted members with the new node in every affected path.

    Consecutive references to the new node collapse into one. Untouched
    paths are returned as the same objects; rewritten ones are copies.

    Args:
        paths: Current paths
        merged_node_id: Id of the contracted node
        original_member_ids: Ids of the contracted run

    Returns:
        The rewritten path list
    """
    members = set(original_member_ids)
    reason = f"Nodes merged: {', '.join(original_member_ids)} → {merged_node_id}"
    result = []
    rewritten = 0

    for path in paths:
        if not members.intersection(path.node_ids):
            result.append(path)
            continue
        updated = copy.copy(path)
        updated.node_ids = collapse_consecutive(
            [merged_node_id if node_id in members else node_id for node_id in path.node_ids]
        )
        updated.mark_updated(reason)
        result.append(updated)
        rewritten += 1
        logger.debug(f"Path {path.name!r}: {path.as_text()} -> {updated.as_text()}")

    if rewritten:
        logger.info(f"Rewrote {rewritten} paths after contraction into {merged_node_id}")
    return result


def rewrite_after_split(
    paths: List[PathRecord],
    original_node_id: str,
    candidate_ids: Sequence[str],
    graph: AssemblyGraph,
) -> PathRewriteResult:
    """
    Rewrite paths after a node was split into several copies.

    For each path containing the original node, the first candidate whose
    substitution leaves every consecutive pair supported by a link wins.
    Paths with no valid candidate are dropped and only counted.

    Args:
        paths: Current paths
        original_node_id: Id of the node that was split
        candidate_ids: Replacement ids, in order of preference
        graph: Graph after the split

    Returns:
        PathRewriteResult with the surviving paths and counts
    """
    result = PathRewriteResult(paths=[], original_node_id=original_node_id)

    for path in paths:
        if not path.contains(original_node_id):
            result.paths.append(path)
            result.unaffected_count += 1
            continue

        result.affected_count += 1
        replacement = None
        for candidate in candidate_ids:
            substituted = [candidate if n == original_node_id else n for n in path.node_ids]
            if path_is_supported(substituted, graph):
                replacement = (candidate, substituted)
                break

        if replacement is None:
            result.removed_count += 1
            result.removed_names.append(path.name)
            logger.warning(
                f"Path {path.name!r} has no valid replacement for vertex {original_node_id}; dropping it"
            )
            continue

        candidate, substituted = replacement
        updated = copy.copy(path)
        updated.node_ids = substituted
        updated.mark_updated(f"Vertex {original_node_id} resolved to {candidate}")
        result.paths.append(updated)
        result.updated_count += 1

    logger.info(result.message)
    return result


# ============================================================================
#                              REGISTRY
# ============================================================================

class PathRegistry:
    """
    Ordered collection of paths with unique names and cycling colours.

    Example:
        >>> registry = PathRegistry()
        >>> path = registry.add("A,B,C", name="contig_1")
        >>> path.node_ids
        ['A', 'B', 'C']
    """

    def __init__(self, paths: Optional[List[PathRecord]] = None):
        self._paths: List[PathRecord] = []
        self._next_id = 1
        self._color_index = 0
        for path in paths or []:
            self._paths.append(path)
            self._next_id = max(self._next_id, path.id + 1)

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[PathRecord]:
        return iter(list(self._paths))

    def all(self) -> List[PathRecord]:
        return list(self._paths)

    def replace_all(self, paths: List[PathRecord]):
        self._paths = list(paths)

    def next_color(self) -> str:
        color = PATH_COLORS[self._color_index % len(PATH_COLORS)]
        self._color_index += 1
        return color

    def unique_name(self, name: str) -> str:
        """Return name, or 'name (n)' for the first free n if it is taken."""
        taken = {p.name for p in self._paths}
        if name not in taken:
            return name
        counter = 1
        while f"{name} ({counter})" in taken:
            counter += 1
        return f"{name} ({counter})"

    def add(
        self,
        node_ids: Union[str, Sequence[str]],
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> PathRecord:
        """
        Create and register a path.

        Raises:
            ValueError: If no node ids are given
        """
        ids = parse_node_list(node_ids)
        if not ids:
            raise ValueError("A path must contain at least one node id")

        path_id = self._next_id
        path = PathRecord(
            id=path_id,
            name=self.unique_name(name or f"Path {path_id}"),
            node_ids=ids,
            color=color or self.next_color(),
        )
        self._next_id += 1
        self._paths.append(path)
        logger.debug(f"Added path {path.name!r} with {len(ids)} nodes")
        return path

    def get(self, path_id: int) -> Optional[PathRecord]:
        for path in self._paths:
            if path.id == path_id:
                return path
        return None

    def find_by_name(self, name: str) -> Optional[PathRecord]:
        for path in self._paths:
            if path.name == name:
                return path
        return None

    def remove(self, path_id: int) -> bool:
        before = len(self._paths)
        self._paths = [p for p in self._paths if p.id != path_id]
        return len(self._paths) < before

    def paths_containing(self, node_id: str) -> List[PathRecord]:
        return [p for p in self._paths if p.contains(node_id)]

    def apply_contraction(self, merged_node_id: str, original_member_ids: Sequence[str]) -> List[PathRecord]:
        """Rewrite stored paths after a contraction; returns the rewritten ones."""
        before_ids = {id(p) for p in self._paths}
        self._paths = rewrite_after_contraction(self._paths, merged_node_id, original_member_ids)
        return [p for p in self._paths if id(p) not in before_ids]

    def apply_split(
        self,
        original_node_id: str,
        candidate_ids: Sequence[str],
        graph: AssemblyGraph,
    ) -> PathRewriteResult:
        """Rewrite stored paths after a vertex split."""
        result = rewrite_after_split(self._paths, original_node_id, candidate_ids, graph)
        self._paths = list(result.paths)
        return result

    def snapshot(self) -> List[PathRecord]:
        return copy.deepcopy(self._paths)

    def restore(self, paths: List[PathRecord]):
        self._paths = copy.deepcopy(paths)

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
