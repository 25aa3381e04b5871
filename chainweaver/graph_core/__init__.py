"""
ChainWeaver v0.1.0

Graph core — oriented graph model, chain contraction, path rewriting and
sequence reconstruction.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from .data_structures import (
    AssemblyGraph,
    ContractionRecord,
    DuplicateNodeError,
    GraphEdge,
    GraphEditError,
    GraphNode,
    GraphSnapshot,
    NodeEnd,
    NodeFormat,
    NodeNotFoundError,
)
from .operations import (
    ChangeSet,
    NoSnapshotError,
    OperationHistory,
    OperationState,
    ReversibleOperation,
)
from .chain_contraction_module import (
    ChainContraction,
    ContractionResult,
    NotLinearChainError,
    contract,
    contracted_node_info,
    find_all_linear_chains,
    find_linear_chain,
)
from .path_registry import (
    PathRecord,
    PathRegistry,
    PathRewriteResult,
    path_is_supported,
    rewrite_after_contraction,
    rewrite_after_split,
)
from .sequence_reconstruction_module import (
    EmptyPathError,
    ReconstructionResult,
    SequenceReconstructor,
    SpliceMethod,
    parse_mismatch_markers,
    reconstruct,
)
from .graph_editor import GraphEditor

__all__ = [
    # Graph model
    'AssemblyGraph',
    'ContractionRecord',
    'GraphEdge',
    'GraphNode',
    'GraphSnapshot',
    'NodeEnd',
    'NodeFormat',
    # Errors
    'GraphEditError',
    'NodeNotFoundError',
    'DuplicateNodeError',
    'NoSnapshotError',
    'NotLinearChainError',
    'EmptyPathError',
    # Operations
    'ChangeSet',
    'OperationHistory',
    'OperationState',
    'ReversibleOperation',
    # Contraction
    'ChainContraction',
    'ContractionResult',
    'contract',
    'contracted_node_info',
    'find_all_linear_chains',
    'find_linear_chain',
    # Paths
    'PathRecord',
    'PathRegistry',
    'PathRewriteResult',
    'path_is_supported',
    'rewrite_after_contraction',
    'rewrite_after_split',
    # Reconstruction
    'ReconstructionResult',
    'SequenceReconstructor',
    'SpliceMethod',
    'parse_mismatch_markers',
    'reconstruct',
    # Session
    'GraphEditor',
]
