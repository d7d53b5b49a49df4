#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Genomic context of an aligned read: the reference window covering the read
span plus up to five bases of slop on either side, with 6-mer lookups by
genomic position.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..io.genome import Genome
from ..io.records import Eventalign
from ..utils.sequence_utils import KMER_SIZE, reverse_complement

logger = logging.getLogger(__name__)

MAX_SLOP = KMER_SIZE - 1


@dataclass
class Context:
    """
    Reference window for one read, in the read's sequencing orientation.

    Attributes:
        sequence: Fetched bases (reverse-complemented for minus-strand reads)
        read_start: 0-based start of the read span
        start_slop: Bases fetched before read_start (at most 5)
        end_slop: Bases of slop remaining after the fetched window
    """
    sequence: str
    read_start: int
    start_slop: int
    end_slop: int

    def __len__(self) -> int:
        return len(self.sequence)

    def _offset(self, pos: int) -> int:
        return pos - self.read_start + self.start_slop

    def kmer_at(self, pos: int) -> Optional[str]:
        """
        6-mer starting at genomic position pos.

        Returns None if the kmer would run past the fetched window, e.g. at
        the end of a chromosome.
        """
        offset = self._offset(pos)
        if offset < 0 or offset + KMER_SIZE > len(self.sequence):
            return None
        return self.sequence[offset:offset + KMER_SIZE]

    def surrounding_items(self, pos: int) -> List[Tuple[int, str]]:
        """
        Every (start position, kmer) pair whose kmer overlaps pos.

        Starts range over the five preceding bases up to and including pos;
        kmers running past the window are skipped.
        """
        offset = self._offset(pos)
        first = max(offset - MAX_SLOP, 0)
        items = []
        for base_offset in range(first, offset + 1):
            if base_offset + KMER_SIZE <= len(self.sequence):
                genomic_pos = pos - (offset - base_offset)
                items.append((genomic_pos, self.sequence[base_offset:base_offset + KMER_SIZE]))
        return items

    def surrounding(self, pos: int) -> List[str]:
        """All 6-mers overlapping pos, in positional order."""
        return [kmer for _, kmer in self.surrounding_items(pos)]


def context_window(start: int, length: int, chrom_len: int) -> Tuple[int, int, int, int]:
    """
    Compute the fetch window for a read span.

    Returns:
        (window_start, window_stop, start_slop, end_slop), window half-open
    """
    start_slop = min(start, MAX_SLOP)
    window_start = start - start_slop

    # Room for the last kmer starting inside the span.
    stop = start + length + MAX_SLOP
    if stop > chrom_len:
        end_slop = 0
        window_stop = chrom_len
    else:
        end_slop = min(MAX_SLOP, chrom_len - stop)
        window_stop = stop
    return window_start, window_stop, start_slop, end_slop


def resolve_context(read: Eventalign, genome: Genome) -> Context:
    """
    Fetch the reference context for a read.

    Raises:
        UnknownChromosomeError: If the read's chromosome is not in the genome
    """
    chrom_len = genome.chrom_length(read.chrom)
    window_start, window_stop, start_slop, end_slop = context_window(
        read.start, read.length, chrom_len
    )
    sequence = genome.fetch(read.chrom, window_start, window_stop)

    if read.strand.is_minus:
        sequence = reverse_complement(sequence)

    logger.debug(
        f"Context for {read.name}: {read.chrom}:{window_start}-{window_stop} "
        f"({read.strand.value}), slop {start_slop}/{end_slop}"
    )
    return Context(sequence, read.start, start_slop, end_slop)


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
