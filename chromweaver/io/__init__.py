"""
Record and genome I/O for ChromWeaver.

CONSOLIDATED MODULES:
- records.py: Signal/read/score data structures and JSONL batch I/O
- genome.py: Reference genome accessors (pysam indexed FASTA, in-memory)
- artifacts.py: Atomic pickle writes for trained artifacts
"""

from .records import (
    DEFAULT_BATCH_SIZE,
    Eventalign,
    RecordFormatError,
    RecordWriter,
    Score,
    ScoredRead,
    Signal,
    Strand,
    iter_records,
    read_batches,
    write_records,
)
from .genome import (
    Genome,
    IndexedGenome,
    InMemoryGenome,
    UnknownChromosomeError,
    open_genome,
)
from .artifacts import save_pickle

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "Eventalign",
    "RecordFormatError",
    "RecordWriter",
    "Score",
    "ScoredRead",
    "Signal",
    "Strand",
    "iter_records",
    "read_batches",
    "write_records",
    "Genome",
    "IndexedGenome",
    "InMemoryGenome",
    "UnknownChromosomeError",
    "open_genome",
    "save_pickle",
]
