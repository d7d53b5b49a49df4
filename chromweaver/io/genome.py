#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Reference genome access: half-open random-access fetches plus chromosome
lengths.

Two backends share one interface:
  1. IndexedGenome: samtools-faidx indexed FASTA via pysam, for real genomes.
  2. InMemoryGenome: whole FASTA parsed with Biopython, for small references
     and tests.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import logging
from pathlib import Path
from typing import Dict, List, Union

import pysam
from Bio import SeqIO

logger = logging.getLogger(__name__)


class UnknownChromosomeError(KeyError):
    """Raised when a chromosome is not present in the genome."""

    def __str__(self) -> str:
        return f"Chromosome not found in genome: {self.args[0]} (different genome used?)"


class Genome:
    """Interface for genome accessors."""

    def fetch(self, chrom: str, start: int, stop: int) -> str:
        """Return the uppercase bases of chrom in [start, stop)."""
        raise NotImplementedError

    def chrom_length(self, chrom: str) -> int:
        raise NotImplementedError

    @property
    def chromosomes(self) -> List[str]:
        raise NotImplementedError

    def chrom_lengths(self) -> Dict[str, int]:
        return {chrom: self.chrom_length(chrom) for chrom in self.chromosomes}

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class IndexedGenome(Genome):
    """
    FASTA genome backed by a .fai index.

    pysam builds the index next to the FASTA if it is missing and the
    directory is writable.
    """

    def __init__(self, fasta_path: Union[str, Path]):
        self.fasta_path = Path(fasta_path)
        if not self.fasta_path.exists():
            raise FileNotFoundError(f"Genome FASTA not found: {self.fasta_path}")
        self._fasta = pysam.FastaFile(str(self.fasta_path))
        self._lengths = dict(zip(self._fasta.references, self._fasta.lengths))
        logger.info(f"Opened genome {self.fasta_path} ({len(self._lengths)} sequences)")

    def _check(self, chrom: str):
        if chrom not in self._lengths:
            raise UnknownChromosomeError(chrom)

    def fetch(self, chrom: str, start: int, stop: int) -> str:
        self._check(chrom)
        return self._fasta.fetch(chrom, start, stop).upper()

    def chrom_length(self, chrom: str) -> int:
        self._check(chrom)
        return self._lengths[chrom]

    @property
    def chromosomes(self) -> List[str]:
        return list(self._fasta.references)

    def close(self):
        self._fasta.close()


class InMemoryGenome(Genome):
    """Genome held as a dict of chromosome name to sequence."""

    def __init__(self, sequences: Dict[str, str]):
        self._sequences = {name: seq.upper() for name, seq in sequences.items()}

    @classmethod
    def from_fasta(cls, fasta_path: Union[str, Path]) -> 'InMemoryGenome':
        """Load every record of a (small) FASTA file into memory."""
        sequences = {
            record.id: str(record.seq)
            for record in SeqIO.parse(str(fasta_path), "fasta")
        }
        logger.info(f"Loaded {len(sequences)} sequences from {fasta_path}")
        return cls(sequences)

    def fetch(self, chrom: str, start: int, stop: int) -> str:
        try:
            return self._sequences[chrom][start:stop]
        except KeyError:
            raise UnknownChromosomeError(chrom)

    def chrom_length(self, chrom: str) -> int:
        try:
            return len(self._sequences[chrom])
        except KeyError:
            raise UnknownChromosomeError(chrom)

    @property
    def chromosomes(self) -> List[str]:
        return list(self._sequences)


def open_genome(fasta_path: Union[str, Path], in_memory: bool = False) -> Genome:
    """Open a genome FASTA with the indexed or in-memory backend."""
    if in_memory:
        return InMemoryGenome.from_fasta(fasta_path)
    return IndexedGenome(fasta_path)


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
