"""
Utilities module for ChromWeaver.

This module provides small helpers shared across the pipeline:
- Sequence manipulation (k-mers, reverse complement)
- Motif parsing and matching
"""

from .sequence_utils import (
    KMER_SIZE,
    all_kmers,
    reverse_complement,
)
from .motif import Motif, MotifError, all_bases, matches_any, parse_motifs

__all__ = [
    # Sequences
    "KMER_SIZE",
    "all_kmers",
    "reverse_complement",
    # Motifs
    "Motif",
    "MotifError",
    "all_bases",
    "matches_any",
    "parse_motifs",
]
