#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Core record module for ChromWeaver.

Consolidated module containing:
- Signal and read data structures (Signal, Strand, Eventalign)
- Scored read data structures (Score, ScoredRead)
- Batched JSON Lines reading and writing for both record types

Reads arrive here already collapsed from signal-alignment output: one
Signal per aligned reference position, with the mean and standard
deviation of its raw current samples.
"""

# =============================================================================
# SECTION 1: IMPORTS AND DEPENDENCIES
# =============================================================================

import gzip
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Tuple, Type, Union

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 2048


class RecordFormatError(ValueError):
    """Raised when a record line cannot be decoded."""
    pass


# =============================================================================
# SECTION 2: SIGNAL AND READ DATA STRUCTURES
# =============================================================================

class Strand(Enum):
    """Alignment strand of a read."""
    PLUS = "+"
    MINUS = "-"
    UNKNOWN = "."

    @classmethod
    def parse(cls, value: Union[str, 'Strand', None]) -> 'Strand':
        """Parse strand from '+', '-', '.', or plus/minus/unknown."""
        if isinstance(value, Strand):
            return value
        if value is None:
            return cls.UNKNOWN
        aliases = {
            '+': cls.PLUS, 'plus': cls.PLUS,
            '-': cls.MINUS, 'minus': cls.MINUS,
            '.': cls.UNKNOWN, 'unknown': cls.UNKNOWN, '': cls.UNKNOWN,
        }
        try:
            return aliases[str(value).lower()]
        except KeyError:
            raise RecordFormatError(f"Unknown strand: {value!r}")

    @property
    def is_minus(self) -> bool:
        return self is Strand.MINUS


@dataclass(frozen=True)
class Signal:
    """
    One ionic-current measurement event at a reference position.

    Attributes:
        pos: 0-based genomic position of the kmer start
        kmer: 6-mer reported by the signal aligner
        mean: Mean current (pA) of the raw samples
        stdv: Standard deviation of the raw samples
        samples: Raw current samples
    """
    pos: int
    kmer: str
    mean: float
    stdv: float = 0.0
    samples: Tuple[float, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pos': self.pos,
            'kmer': self.kmer,
            'mean': self.mean,
            'stdv': self.stdv,
            'samples': list(self.samples),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Signal':
        return cls(
            pos=int(data['pos']),
            kmer=data['kmer'],
            mean=float(data['mean']),
            stdv=float(data.get('stdv', 0.0)),
            samples=tuple(float(x) for x in data.get('samples', ())),
        )


@dataclass
class Eventalign:
    """
    A sequenced read aligned to the reference, with its signal data.

    Attributes:
        name: Read identifier
        chrom: Reference chromosome
        start: 0-based start of the aligned span
        length: Number of reference bases spanned
        strand: Alignment strand
        signals: Per-position signal measurements
    """
    name: str
    chrom: str
    start: int
    length: int
    strand: Strand = Strand.UNKNOWN
    signals: List[Signal] = field(default_factory=list)

    def __post_init__(self):
        self.strand = Strand.parse(self.strand)
        for signal in self.signals:
            if not self.start <= signal.pos < self.stop:
                raise ValueError(
                    f"Signal at {signal.pos} outside read {self.name} "
                    f"span [{self.start}, {self.stop})"
                )

    @property
    def stop(self) -> int:
        """Exclusive end of the aligned span."""
        return self.start + self.length

    def signal_map(self) -> Dict[int, Signal]:
        """Map of position to signal, used for per-position lookups."""
        return {signal.pos: signal for signal in self.signals}

    def positions(self) -> range:
        return range(self.start, self.stop)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'chrom': self.chrom,
            'start': self.start,
            'length': self.length,
            'strand': self.strand.value,
            'signals': [s.to_dict() for s in self.signals],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Eventalign':
        return cls(
            name=data['name'],
            chrom=data['chrom'],
            start=int(data['start']),
            length=int(data['length']),
            strand=Strand.parse(data.get('strand')),
            signals=[Signal.from_dict(s) for s in data.get('signals', [])],
        )

    def __len__(self) -> int:
        return self.length


# =============================================================================
# SECTION 3: SCORED READ DATA STRUCTURES
# =============================================================================

@dataclass
class Score:
    """
    Score for one genomic position of one read.

    Attributes:
        pos: 0-based genomic position
        kmer: 6-mer at this position in read orientation
        skipped: True if no signal score could be computed
        signal_score: Score from the signal likelihood test, if any
        skip_score: Score from the skip test, if any
        score: Final fused score
    """
    pos: int
    kmer: str
    skipped: bool
    signal_score: Optional[float]
    skip_score: Optional[float]
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pos': self.pos,
            'kmer': self.kmer,
            'skipped': self.skipped,
            'signal_score': self.signal_score,
            'skip_score': self.skip_score,
            'score': self.score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Score':
        return cls(
            pos=int(data['pos']),
            kmer=data['kmer'],
            skipped=bool(data['skipped']),
            signal_score=data.get('signal_score'),
            skip_score=data.get('skip_score'),
            score=float(data['score']),
        )


@dataclass
class ScoredRead:
    """Read metadata plus one Score per scored position."""
    name: str
    chrom: str
    start: int
    length: int
    strand: Strand = Strand.UNKNOWN
    scores: List[Score] = field(default_factory=list)

    def __post_init__(self):
        self.strand = Strand.parse(self.strand)

    @classmethod
    def from_read(cls, read: Eventalign, scores: List[Score]) -> 'ScoredRead':
        return cls(
            name=read.name,
            chrom=read.chrom,
            start=read.start,
            length=read.length,
            strand=read.strand,
            scores=scores,
        )

    @property
    def stop(self) -> int:
        return self.start + self.length

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'chrom': self.chrom,
            'start': self.start,
            'length': self.length,
            'strand': self.strand.value,
            'scores': [s.to_dict() for s in self.scores],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScoredRead':
        return cls(
            name=data['name'],
            chrom=data['chrom'],
            start=int(data['start']),
            length=int(data['length']),
            strand=Strand.parse(data.get('strand')),
            scores=[Score.from_dict(s) for s in data.get('scores', [])],
        )


# =============================================================================
# SECTION 4: JSON LINES I/O
# =============================================================================

Record = Union[Eventalign, ScoredRead]


def _open_text(path: Union[str, Path], mode: str = 'r') -> TextIO:
    """Open plain or gzip-compressed text file."""
    path = Path(path)
    if path.suffix == '.gz':
        return gzip.open(path, mode + 't')
    return open(path, mode)


def iter_records(path: Union[str, Path],
                 record_type: Type[Record] = Eventalign) -> Iterator[Record]:
    """
    Iterate over records stored one JSON object per line.

    Raises:
        RecordFormatError: On a line that is not a valid record
    """
    with _open_text(path, 'r') as handle:
        for line_no, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield record_type.from_dict(json.loads(line))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                raise RecordFormatError(f"{path}:{line_no}: invalid record ({e})") from e


def read_batches(path: Union[str, Path],
                 record_type: Type[Record] = Eventalign,
                 batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[List[Record]]:
    """
    Stream records in fixed-size batches, preserving file order.

    Args:
        path: JSONL (optionally .gz) file
        record_type: Eventalign or ScoredRead
        batch_size: Maximum records per batch

    Yields:
        Lists of at most batch_size records
    """
    if batch_size < 1:
        raise ValueError("batch_size must be positive")

    batch: List[Record] = []
    for record in iter_records(path, record_type):
        batch.append(record)
        if len(batch) >= batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


class RecordWriter:
    """
    Write records as JSON Lines, one batch at a time.

    Example:
        with RecordWriter(output) as writer:
            writer.write_batch(scored_reads)
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = _open_text(self.path, 'w')
        self.records_written = 0

    def write_batch(self, records: List[Record]):
        for record in records:
            self._handle.write(json.dumps(record.to_dict()) + '\n')
        self.records_written += len(records)

    def close(self):
        if not self._handle.closed:
            self._handle.close()
            logger.debug(f"Wrote {self.records_written} records to {self.path}")

    def __enter__(self) -> 'RecordWriter':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def write_records(path: Union[str, Path], records: List[Record]) -> int:
    """Write all records to path; returns number written."""
    with RecordWriter(path) as writer:
        writer.write_batch(records)
        return writer.records_written
