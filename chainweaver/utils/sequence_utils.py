#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChainWeaver v0.1.0

Sequence utility functions — reverse complement, CIGAR overlap parsing,
and overlap similarity scoring.

Author: ChainWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
import re
from typing import List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


# Operations that consume reference bases and therefore count towards overlap length
CIGAR_LENGTH_OPS = frozenset('MDN=X')
CIGAR_TOKEN_PATTERN = re.compile(r'(\d+)([MIDNSHPX=])')

ORIENTATION_FORWARD = '+'
ORIENTATION_REVERSE = '-'


class MalformedOverlapError(ValueError):
    """Raised when an overlap descriptor cannot be parsed as CIGAR."""

    def __init__(self, overlap: str):
        self.overlap = overlap
        super().__init__(f"Malformed overlap descriptor: {overlap!r}")


def reverse_complement(sequence: str) -> str:
    """
    Generate reverse complement of DNA sequence.

    Case is preserved; characters outside ACGTN pass through unchanged.

    Args:
        sequence: DNA sequence string

    Returns:
        Reverse complement sequence

    Example:
        >>> reverse_complement("ATCg")
        'cGAT'
    """
    complement_map = {
        'A': 'T', 'T': 'A',
        'G': 'C', 'C': 'G',
        'N': 'N',
        'a': 't', 't': 'a',
        'g': 'c', 'c': 'g',
        'n': 'n'
    }

    return ''.join(complement_map.get(base, base) for base in reversed(sequence))


def flip_orientation(orientation: str) -> str:
    """Return the opposite orientation ('+' <-> '-')."""
    return ORIENTATION_REVERSE if orientation == ORIENTATION_FORWARD else ORIENTATION_FORWARD


def orient_sequence(sequence: str, orientation: str) -> str:
    """Return the sequence as read in the given orientation."""
    if orientation == ORIENTATION_REVERSE:
        return reverse_complement(sequence)
    return sequence


def is_empty_overlap(overlap: Optional[str]) -> bool:
    """True for overlap descriptors that declare no shared bases."""
    return overlap is None or overlap.strip() in ('', '*', '0M')


def parse_cigar(overlap: Optional[str]) -> List[Tuple[int, str]]:
    """
    Parse a CIGAR overlap descriptor into (count, op) tokens.

    Args:
        overlap: CIGAR string such as '75M' or '10M2I5M'. '*', '0M',
            empty and None all mean "no overlap".

    Returns:
        Ordered list of (count, operation) tuples

    Raises:
        MalformedOverlapError: If the string contains anything other than
            well-formed <count><op> tokens

    Example:
        >>> parse_cigar("10M2I5M")
        [(10, 'M'), (2, 'I'), (5, 'M')]
    """
    if is_empty_overlap(overlap):
        return []

    text = overlap.strip()
    tokens = CIGAR_TOKEN_PATTERN.findall(text)

    # Every character must belong to a token
    if ''.join(count + op for count, op in tokens) != text:
        raise MalformedOverlapError(overlap)

    return [(int(count), op) for count, op in tokens]


def cigar_length(overlap: Optional[str]) -> int:
    """
    Sum of counts for operations consuming reference bases.

    Raises:
        MalformedOverlapError: If the descriptor is unparseable
    """
    return sum(count for count, op in parse_cigar(overlap) if op in CIGAR_LENGTH_OPS)


def overlap_length(overlap: Optional[str]) -> int:
    """
    Lenient overlap length: malformed descriptors are treated as zero.

    Args:
        overlap: CIGAR overlap descriptor

    Returns:
        Overlap length in bases (0 when absent or malformed)
    """
    try:
        return cigar_length(overlap)
    except MalformedOverlapError as e:
        logger.warning(f"{e}; treating overlap as 0")
        return 0


def reverse_cigar(overlap: Optional[str]) -> str:
    """
    Reverse an overlap descriptor for the opposite reading of a link.

    Token order is reversed and insertions/deletions swap roles.
    Malformed or empty descriptors are returned unchanged.

    Example:
        >>> reverse_cigar("10M2I5M")
        '5M2D10M'
    """
    if overlap is None:
        return '0M'
    try:
        tokens = parse_cigar(overlap)
    except MalformedOverlapError:
        return overlap
    if not tokens:
        return overlap

    swap = {'I': 'D', 'D': 'I'}
    return ''.join(f"{count}{swap.get(op, op)}" for count, op in reversed(tokens))


def sequence_similarity(left: str, right: str) -> float:
    """
    Fraction of identical positions between two equal-length strings.

    Args:
        left: First sequence
        right: Second sequence

    Returns:
        Similarity in [0, 1]; 0.0 for empty or mismatched-length input
    """
    if not left or len(left) != len(right):
        return 0.0

    # one code point per element
    a = np.frombuffer(left.encode('utf-32-le'), dtype=np.uint32)
    b = np.frombuffer(right.encode('utf-32-le'), dtype=np.uint32)
    return float(np.count_nonzero(a == b)) / len(left)


def overlap_similarity(seq_a: str, seq_b: str, length: int) -> float:
    """
    Compare the `length`-base suffix of seq_a with the prefix of seq_b.

    Returns:
        Similarity in [0, 1]; 0.0 when either sequence is shorter than length
    """
    if length <= 0 or len(seq_a) < length or len(seq_b) < length:
        return 0.0
    return sequence_similarity(seq_a[-length:], seq_b[:length])

# ChainWeaver v0.1.0
# Any usage is subject to this software's license.
