#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Tests for read/score records and JSON Lines batch I/O.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import pytest

from chromweaver.io.records import (
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
from conftest import make_read


class TestStrand:

    @pytest.mark.parametrize("text, expected", [
        ("+", Strand.PLUS),
        ("-", Strand.MINUS),
        (".", Strand.UNKNOWN),
        ("minus", Strand.MINUS),
        (None, Strand.UNKNOWN),
    ])
    def test_parse(self, text, expected):
        assert Strand.parse(text) is expected

    def test_parse_invalid(self):
        with pytest.raises(RecordFormatError):
            Strand.parse("*")

    def test_is_minus(self):
        assert Strand.MINUS.is_minus
        assert not Strand.PLUS.is_minus


class TestEventalign:

    def test_span(self):
        read = make_read(start=10, length=10)
        assert read.stop == 20
        assert len(read) == 10
        assert list(read.positions()) == list(range(10, 20))
        assert set(read.signal_map()) == set(range(10, 20))

    def test_strand_from_string(self):
        read = Eventalign("r", "one", 0, 5, "-", [])
        assert read.strand is Strand.MINUS

    def test_signal_outside_span_rejected(self):
        with pytest.raises(ValueError):
            Eventalign("r", "one", 10, 5, Strand.PLUS, [Signal(15, "ATGCAT", 90.0)])

    def test_dict_round_trip(self):
        read = Eventalign("r", "one", 0, 5, Strand.PLUS,
                          [Signal(1, "TGCATG", 88.5, 1.5, (87.0, 90.0))])
        restored = Eventalign.from_dict(read.to_dict())
        assert restored == read


class TestJsonLines:

    def test_write_and_read(self, temp_output_dir):
        reads = [make_read(f"read{i}") for i in range(3)]
        path = temp_output_dir / "reads.jsonl"

        assert write_records(path, reads) == 3
        assert list(iter_records(path)) == reads

    def test_gzip(self, temp_output_dir):
        reads = [make_read("read0", skip={12})]
        path = temp_output_dir / "reads.jsonl.gz"
        write_records(path, reads)

        with open(path, 'rb') as f:
            assert f.read(2) == b'\x1f\x8b'
        assert list(iter_records(path)) == reads

    def test_batches_preserve_order(self, temp_output_dir):
        reads = [make_read(f"read{i}") for i in range(5)]
        path = temp_output_dir / "reads.jsonl"
        write_records(path, reads)

        batches = list(read_batches(path, Eventalign, batch_size=2))
        assert [len(b) for b in batches] == [2, 2, 1]
        assert [r.name for b in batches for r in b] == [r.name for r in reads]

    def test_batch_size_must_be_positive(self, temp_output_dir):
        path = temp_output_dir / "reads.jsonl"
        write_records(path, [make_read()])
        with pytest.raises(ValueError):
            list(read_batches(path, Eventalign, batch_size=0))

    def test_blank_lines_skipped(self, temp_output_dir):
        path = temp_output_dir / "reads.jsonl"
        write_records(path, [make_read()])
        with open(path, 'a') as f:
            f.write("\n\n")
        assert len(list(iter_records(path))) == 1

    def test_invalid_line(self, temp_output_dir):
        path = temp_output_dir / "bad.jsonl"
        path.write_text('{"name": "r"}\n')
        with pytest.raises(RecordFormatError, match=":1:"):
            list(iter_records(path))

    def test_scored_read_round_trip(self, temp_output_dir):
        scored = ScoredRead("r", "one", 10, 10, Strand.MINUS, [
            Score(10, "GCATGC", True, None, 0.8, 0.8),
            Score(11, "CATGCA", False, 0.7, None, 0.7),
        ])
        path = temp_output_dir / "scored.jsonl"
        with RecordWriter(path) as writer:
            writer.write_batch([scored])
            assert writer.records_written == 1

        restored = list(iter_records(path, ScoredRead))
        assert restored == [scored]
        assert restored[0].scores[0].signal_score is None

# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
