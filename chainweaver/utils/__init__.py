"""
ChainWeaver v0.1.0

Utility functions for ChainWeaver.
"""

from .sequence_utils import (
    MalformedOverlapError,
    cigar_length,
    flip_orientation,
    orient_sequence,
    overlap_length,
    overlap_similarity,
    parse_cigar,
    reverse_cigar,
    reverse_complement,
    sequence_similarity,
)

__all__ = [
    "MalformedOverlapError",
    "cigar_length",
    "flip_orientation",
    "orient_sequence",
    "overlap_length",
    "overlap_similarity",
    "parse_cigar",
    "reverse_cigar",
    "reverse_complement",
    "sequence_similarity",
]
