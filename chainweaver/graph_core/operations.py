#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Reversible operations — snapshot-based execute/undo/redo commands and a
bounded operation history.

An operation computes its result on a working copy built from the
before-snapshot and commits it to the live graph with a single restore.
Undo restores the before-snapshot wholesale; any change made to the graph
between execute and undo is rolled back with it.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Tuple

from .data_structures import AssemblyGraph, GraphEdge, GraphEditError, GraphSnapshot

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 20


class NoSnapshotError(GraphEditError):
    """Raised when undo or redo is requested with nothing to restore."""
    pass


class OperationState(str, Enum):
    """Lifecycle state of a reversible operation."""
    PENDING = "pending"
    EXECUTED = "executed"
    UNDONE = "undone"
    FAILED = "failed"


@dataclass
class ChangeSet:
    """
    What a graph mutation changed.

    Returned by every committed operation so a presentation layer can decide
    what to re-render.
    """
    nodes_added: List[str] = field(default_factory=list)
    nodes_removed: List[str] = field(default_factory=list)
    edges_added: List[GraphEdge] = field(default_factory=list)
    edges_removed: List[GraphEdge] = field(default_factory=list)

    @classmethod
    def between(cls, before: GraphSnapshot, after: GraphSnapshot) -> 'ChangeSet':
        """Diff two snapshots by node id and link equality."""
        before_ids = set(before.nodes)
        after_ids = set(after.nodes)
        return cls(
            nodes_added=[nid for nid in after.nodes if nid not in before_ids],
            nodes_removed=[nid for nid in before.nodes if nid not in after_ids],
            edges_added=[e for e in after.edges if e not in before.edges],
            edges_removed=[e for e in before.edges if e not in after.edges],
        )

    @property
    def is_empty(self) -> bool:
        return not (self.nodes_added or self.nodes_removed or self.edges_added or self.edges_removed)

    def summary(self) -> str:
        return (
            f"+{len(self.nodes_added)}/-{len(self.nodes_removed)} nodes, "
            f"+{len(self.edges_added)}/-{len(self.edges_removed)} edges"
        )


class ReversibleOperation:
    """
    Base class for graph mutations with snapshot-based undo.

    Subclasses implement apply(), which mutates the working copy it is given.
    The live graph is only touched by the final commit in execute().
    """

    name = "operation"

    def __init__(self, description: str = ""):
        self.description = description
        self.state = OperationState.PENDING
        self.timestamp: Optional[datetime] = None
        self.before: Optional[GraphSnapshot] = None
        self.after: Optional[GraphSnapshot] = None
        self.logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    def apply(self, working: AssemblyGraph):
        """Compute the operation on a working copy of the graph."""
        raise NotImplementedError

    def execute(self, graph: AssemblyGraph) -> ChangeSet:
        """
        Run the operation and commit it to `graph`.

        Raises:
            GraphEditError: If the operation was already executed, or any
                error raised by apply(); the live graph is unchanged then
        """
        if self.state == OperationState.EXECUTED:
            raise GraphEditError(f"{self.name} has already been executed")

        before = graph.snapshot()
        working = AssemblyGraph(oriented=before.oriented)
        working.restore(before)

        try:
            self.apply(working)
        except Exception:
            self.state = OperationState.FAILED
            raise

        after = working.snapshot()
        graph.restore(after)

        self.before, self.after = before, after
        self.state = OperationState.EXECUTED
        self.timestamp = datetime.now()

        changes = ChangeSet.between(before, after)
        self.logger.debug(f"{self.name} committed: {changes.summary()}")
        return changes

    def undo(self, graph: AssemblyGraph) -> ChangeSet:
        """Restore the graph to its state before execute()."""
        if self.before is None or self.state != OperationState.EXECUTED:
            raise NoSnapshotError(f"{self.name} has no executed state to undo")
        graph.restore(self.before)
        self.state = OperationState.UNDONE
        return ChangeSet.between(self.after, self.before)

    def redo(self, graph: AssemblyGraph) -> ChangeSet:
        """Re-apply the committed result of an undone operation."""
        if self.after is None or self.state != OperationState.UNDONE:
            raise NoSnapshotError(f"{self.name} has no undone state to redo")
        graph.restore(self.after)
        self.state = OperationState.EXECUTED
        return ChangeSet.between(self.before, self.after)

    def summary(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'state': self.state.value,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(state={self.state.value}, description={self.description!r})"


class OperationHistory:
    """
    Bounded undo/redo stacks of executed operations.

    Pushing a new operation clears the redo stack; once more than max_size
    operations are held the oldest one is evicted.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self._undo_stack: Deque[ReversibleOperation] = deque()
        self._redo_stack: List[ReversibleOperation] = []

    def push(self, operation: ReversibleOperation):
        """Record an executed operation."""
        self._undo_stack.append(operation)
        self._redo_stack.clear()
        while len(self._undo_stack) > self.max_size:
            evicted = self._undo_stack.popleft()
            logger.debug(f"History full, evicting oldest entry: {evicted!r}")

    def undo(self, graph: AssemblyGraph) -> Tuple[ReversibleOperation, ChangeSet]:
        """
        Undo the most recent operation.

        Raises:
            NoSnapshotError: If the history is empty
        """
        if not self._undo_stack:
            raise NoSnapshotError("Nothing to undo")
        operation = self._undo_stack.pop()
        try:
            changes = operation.undo(graph)
        except Exception:
            self._undo_stack.append(operation)
            raise
        self._redo_stack.append(operation)
        return operation, changes

    def redo(self, graph: AssemblyGraph) -> Tuple[ReversibleOperation, ChangeSet]:
        """
        Redo the most recently undone operation.

        Raises:
            NoSnapshotError: If nothing has been undone
        """
        if not self._redo_stack:
            raise NoSnapshotError("Nothing to redo")
        operation = self._redo_stack.pop()
        try:
            changes = operation.redo(graph)
        except Exception:
            self._redo_stack.append(operation)
            raise
        self._undo_stack.append(operation)
        return operation, changes

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def peek(self) -> Optional[ReversibleOperation]:
        """Most recent undoable operation, without removing it."""
        return self._undo_stack[-1] if self._undo_stack else None

    def operations(self) -> List[ReversibleOperation]:
        """Undoable operations followed by redoable ones."""
        return list(self._undo_stack) + list(self._redo_stack)

    def summaries(self) -> List[Dict[str, Any]]:
        """Summaries of undoable operations, oldest first."""
        return [op.summary() for op in self._undo_stack]

    def clear(self):
        self._undo_stack.clear()
        self._redo_stack.clear()

    def __len__(self) -> int:
        return len(self._undo_stack)

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
