"""
ChromWeaver v0.1.0

Sequence utility functions for ChromWeaver.

Provides the k-mer and strand helpers shared by training and scoring.
"""

from itertools import product
from typing import List

KMER_SIZE = 6
BASES = "ACGT"


def reverse_complement(sequence: str) -> str:
    """
    Generate reverse complement of DNA sequence.

    Unknown characters are kept as-is.

    Example:
        >>> reverse_complement("ATCG")
        'CGAT'
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


def all_kmers(k: int = KMER_SIZE) -> List[str]:
    """
    Enumerate every DNA k-mer in lexicographic ACGT order.

    Example:
        >>> all_kmers(1)
        ['A', 'C', 'G', 'T']
    """
    return [''.join(bases) for bases in product(BASES, repeat=k)]


def is_valid_kmer(kmer: str, k: int = KMER_SIZE) -> bool:
    """True if kmer has length k and only uppercase ACGT bases."""
    return len(kmer) == k and all(base in BASES for base in kmer)


__all__ = [
    'KMER_SIZE',
    'BASES',
    'reverse_complement',
    'all_kmers',
    'is_valid_kmer',
]
