#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Graph Editor — editing session over one graph and its paths: chain
contraction with path rewriting, bounded undo/redo and path reconstruction.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .chain_contraction_module import (
    ID_SCHEME_CONTENT,
    ContractionResult,
    contract,
    find_all_linear_chains,
    find_linear_chain,
)
from .data_structures import AssemblyGraph
from .operations import DEFAULT_HISTORY_SIZE, ChangeSet, OperationHistory, ReversibleOperation
from .path_registry import PathRecord, PathRegistry, PathRewriteResult
from .sequence_reconstruction_module import ReconstructionResult, SequenceReconstructor

logger = logging.getLogger(__name__)


@dataclass
class HistoryStepResult:
    """Outcome of an undo or redo."""
    operation: ReversibleOperation
    changes: ChangeSet
    path_count: int


class GraphEditor:
    """
    Editing session binding a graph, its paths and an operation history.

    Every operation works on the graph and registry held by the session;
    nothing is read from module-level state.

    Args:
        graph: Graph to edit in place
        paths: Path registry (an empty one is created when omitted)
        history_size: Maximum number of undoable operations
        id_scheme: Contracted-node id scheme ('content' or 'timestamp')
        reconstructor: Sequence reconstructor used for paths

    Example:
        >>> editor = GraphEditor(graph)
        >>> result = editor.contract("B")
        >>> editor.undo_last_contraction()
    """

    def __init__(
        self,
        graph: AssemblyGraph,
        paths: Optional[PathRegistry] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        id_scheme: str = ID_SCHEME_CONTENT,
        reconstructor: Optional[SequenceReconstructor] = None,
    ):
        self.graph = graph
        self.paths = paths if paths is not None else PathRegistry()
        self.history = OperationHistory(max_size=history_size)
        self.id_scheme = id_scheme
        self.reconstructor = reconstructor or SequenceReconstructor()
        self.logger = logging.getLogger(f"{__name__}.GraphEditor")
        # id(operation) -> (paths before, paths after)
        self._path_states: Dict[int, Tuple[List[PathRecord], List[PathRecord]]] = {}

    @classmethod
    def from_config(
        cls,
        graph: AssemblyGraph,
        config: Dict[str, Any],
        paths: Optional[PathRegistry] = None,
    ) -> 'GraphEditor':
        """Build an editor from a loaded configuration dict."""
        return cls(
            graph,
            paths=paths,
            history_size=config.get('history', {}).get('max_size', DEFAULT_HISTORY_SIZE),
            id_scheme=config.get('contraction', {}).get('id_scheme', ID_SCHEME_CONTENT),
            reconstructor=SequenceReconstructor.from_config(config),
        )

    # ------------------------------------------------------------------
    # Contraction
    # ------------------------------------------------------------------

    def find_chain(self, node_id: str) -> List[str]:
        return find_linear_chain(self.graph, node_id)

    def chains(self) -> List[List[str]]:
        return find_all_linear_chains(self.graph)

    def contract(self, node_id: str) -> ContractionResult:
        """
        Contract the linear chain containing node_id and rewrite paths.

        Raises:
            NodeNotFoundError: If node_id is absent
            NotLinearChainError: If the chain has fewer than 2 members
        """
        paths_before = self.paths.snapshot()
        result = contract(self.graph, node_id, id_scheme=self.id_scheme, history=self.history)
        result.rewritten_paths = self.paths.apply_contraction(result.merged_node_id, result.original_node_ids)

        self._path_states[id(result.operation)] = (paths_before, self.paths.snapshot())
        self._prune_path_states()

        self.logger.info(
            f"Contracted {result.removed_node_count} nodes into {result.merged_node_id}; "
            f"{len(result.rewritten_paths)} paths rewritten"
        )
        return result

    def undo_last_contraction(self) -> HistoryStepResult:
        """
        Restore the graph and paths to their state before the last operation.

        Raises:
            NoSnapshotError: If there is nothing to undo
        """
        operation, changes = self.history.undo(self.graph)
        states = self._path_states.get(id(operation))
        if states is not None:
            self.paths.restore(states[0])
        self.logger.info(f"Undid {operation.name}: {changes.summary()}")
        return HistoryStepResult(operation, changes, len(self.paths))

    def redo(self) -> HistoryStepResult:
        """
        Re-apply the most recently undone operation.

        Raises:
            NoSnapshotError: If there is nothing to redo
        """
        operation, changes = self.history.redo(self.graph)
        states = self._path_states.get(id(operation))
        if states is not None:
            self.paths.restore(states[1])
        self.logger.info(f"Redid {operation.name}: {changes.summary()}")
        return HistoryStepResult(operation, changes, len(self.paths))

    def _prune_path_states(self):
        live = {id(op) for op in self.history.operations()}
        for key in [k for k in self._path_states if k not in live]:
            del self._path_states[key]

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def rewrite_after_split(self, original_node_id: str, candidate_ids: Sequence[str]) -> PathRewriteResult:
        """Rewrite stored paths after original_node_id was split into candidates."""
        return self.paths.apply_split(original_node_id, candidate_ids, self.graph)

    def reconstruct_path(
        self,
        path: Union[PathRecord, str, Sequence[str]],
        path_name: Optional[str] = None,
    ) -> ReconstructionResult:
        """
        Reconstruct the sequence of a path.

        Args:
            path: A PathRecord, the name of a stored path, or node ids

        Raises:
            KeyError: If a path name is given that is not stored
        """
        if isinstance(path, PathRecord):
            node_ids, name = path.node_ids, path.name
        elif isinstance(path, str):
            record = self.paths.find_by_name(path)
            if record is None:
                raise KeyError(f"No path named {path!r}")
            node_ids, name = record.node_ids, record.name
        else:
            node_ids, name = list(path), "Reconstructed Path"
        return self.reconstructor.reconstruct(node_ids, self.graph, path_name or name)

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
