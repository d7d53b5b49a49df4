#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Bounded-memory store of per-kmer signal observations.

Control datasets can hold far more signal than fits in memory, so
observations are spilled to a scratch SQLite database indexed by kmer and
later drawn back at random per kmer for model training. The store is
scratch space: opening a path replaces whatever file was there.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import logging
import math
import sqlite3
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from ..io.records import Eventalign
from ..utils.motif import Motif, matches_any

logger = logging.getLogger(__name__)

MIN_SIGNAL = 40.0
MAX_SIGNAL = 170.0


def plausible_signal(value: float) -> bool:
    """True for finite current values within [MIN_SIGNAL, MAX_SIGNAL] pA."""
    return math.isfinite(value) and MIN_SIGNAL <= value <= MAX_SIGNAL


class SampleStore:
    """
    Scratch SQLite store of (kmer, sample) rows.

    Example:
        with SampleStore.open(tmp_dir / "samples.db") as store:
            store.add_reads(reads, motifs)
            values = store.sample("GCATGC", 50000)
    """

    def __init__(self, path: Path, connection: sqlite3.Connection,
                 use_raw_samples: bool = False):
        self.path = path
        self.connection = connection
        self.use_raw_samples = use_raw_samples
        self.rows_added = 0

    @classmethod
    def open(cls, path: Union[str, Path], use_raw_samples: bool = False) -> 'SampleStore':
        """
        Create a fresh, empty store at path.

        Args:
            path: Database file; any existing file is deleted
            use_raw_samples: Store every raw sample instead of the signal mean
        """
        path = Path(path)
        if path.exists():
            logger.debug(f"Removing existing sample store {path}")
            path.unlink()
        path.parent.mkdir(parents=True, exist_ok=True)

        connection = sqlite3.connect(str(path))
        store = cls(path, connection, use_raw_samples=use_raw_samples)
        store._init_schema()
        return store

    def _init_schema(self):
        with self.connection:
            self.connection.execute(
                "CREATE TABLE data ("
                " id INTEGER PRIMARY KEY,"
                " kmer TEXT NOT NULL,"
                " sample REAL NOT NULL)"
            )
            self.connection.execute("CREATE INDEX kmer_idx ON data (kmer)")
        self.connection.execute("PRAGMA journal_mode=WAL")
        self.connection.execute("PRAGMA synchronous=NORMAL")
        self.connection.execute("PRAGMA cache_size=-64000")

    def _rows(self, reads: Iterable[Eventalign], motifs: Sequence[Motif]):
        for read in reads:
            logger.debug(f"Processing read: {read.name}")
            for signal in read.signals:
                if not matches_any(signal.kmer, motifs):
                    continue
                if self.use_raw_samples:
                    for sample in signal.samples:
                        if plausible_signal(sample):
                            yield signal.kmer, sample
                elif plausible_signal(signal.mean):
                    yield signal.kmer, signal.mean

    def add_reads(self, reads: Iterable[Eventalign], motifs: Sequence[Motif]) -> int:
        """
        Insert the signal of one batch of reads atomically.

        Signals whose kmer does not start with any motif, or whose value is
        non-finite or outside the plausible range, are dropped. If any
        insert fails the whole batch is rolled back.

        Returns:
            Number of rows inserted
        """
        rows = list(self._rows(reads, motifs))
        with self.connection:
            self.connection.executemany(
                "INSERT INTO data (kmer, sample) VALUES (?, ?)", rows
            )
        self.rows_added += len(rows)
        return len(rows)

    def sample(self, kmer: str, n: int) -> List[float]:
        """Up to n observations for kmer, chosen uniformly at random."""
        cursor = self.connection.execute(
            "SELECT sample FROM data WHERE kmer = :kmer ORDER BY RANDOM() LIMIT :n",
            {'kmer': kmer, 'n': n},
        )
        return [row[0] for row in cursor]

    def count(self, kmer: str) -> int:
        cursor = self.connection.execute(
            "SELECT COUNT(*) FROM data WHERE kmer = ?", (kmer,)
        )
        return cursor.fetchone()[0]

    def kmers(self) -> List[str]:
        """Distinct kmers with at least one observation."""
        cursor = self.connection.execute("SELECT DISTINCT kmer FROM data ORDER BY kmer")
        return [row[0] for row in cursor]

    def close(self):
        self.connection.close()

    def __enter__(self) -> 'SampleStore':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return f"SampleStore(path='{self.path}', rows={self.rows_added})"


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
