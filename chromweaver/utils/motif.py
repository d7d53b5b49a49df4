#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Motif definitions used to restrict training and scoring to k-mers that
start with a modification-bearing sequence.

Motifs are written ``[position]:[bases]``, where position is the 1-based
offset of the modified base inside the motif, e.g. ``2:GC`` for GpC
methyltransferase footprinting.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .sequence_utils import BASES


class MotifError(ValueError):
    """Raised when a motif string cannot be parsed."""
    pass


@dataclass(frozen=True)
class Motif:
    """
    A short DNA motif with the 1-based position of the modified base.

    Attributes:
        motif: Motif bases (uppercase ACGT)
        position: 1-based position of the modified base within the motif
    """
    motif: str
    position: int

    @classmethod
    def parse(cls, text: str) -> 'Motif':
        """
        Parse a motif from ``pos:bases`` notation.

        Raises:
            MotifError: If the text is malformed
        """
        parts = text.split(':')
        if len(parts) < 2:
            raise MotifError("Invalid format, should be in the form [pos]:[motif]")
        if len(parts) > 2:
            raise MotifError("Additional parts not expected. Invalid format")

        raw_pos, bases = parts
        if not raw_pos.isdigit():
            raise MotifError("Position must be positive integer")
        pos = int(raw_pos)

        if not bases or any(b not in BASES for b in bases):
            raise MotifError("Invalid base, should only be ACGT, uppercase only")
        if pos == 0:
            raise MotifError("Position is one-based.")
        if pos > len(bases):
            raise MotifError("Position should be less than the length of the motif given.")
        return cls(bases, pos)

    @property
    def position_0b(self) -> int:
        return self.position - 1

    def matches_start(self, kmer: str) -> bool:
        """True if kmer begins with this motif."""
        return kmer.startswith(self.motif)

    def within_kmer(self, kmer: str) -> bool:
        return self.motif in kmer

    def surrounding_idxs(self, pos: int) -> range:
        """Positions of every 6-mer start that covers the modified base."""
        end_idx = pos + self.position_0b
        return range(max(end_idx - 5, 0), end_idx + 1)

    def __str__(self) -> str:
        return f"{self.position}:{self.motif}"


def all_bases() -> List[Motif]:
    """Motifs matching every k-mer (one per base)."""
    return [Motif(base, 1) for base in BASES]


def parse_motifs(texts: Iterable[str]) -> List[Motif]:
    """Parse a collection of motif strings, preserving order."""
    return [Motif.parse(text) for text in texts]


def matches_any(kmer: str, motifs: Sequence[Motif]) -> bool:
    """True if kmer starts with at least one of motifs."""
    return any(m.matches_start(kmer) for m in motifs)


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
