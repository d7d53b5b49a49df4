#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Tests for the SQLite-backed per-kmer sample store.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import math
import sqlite3

import pytest

from chromweaver.io.records import Eventalign, Signal, Strand
from chromweaver.training.sample_store import SampleStore, plausible_signal
from chromweaver.utils.motif import all_bases, parse_motifs


def read_with(signals):
    return Eventalign("r", "one", 0, 100, Strand.PLUS, signals)


@pytest.fixture
def store(temp_output_dir):
    with SampleStore.open(temp_output_dir / "samples.db") as s:
        yield s


class TestPlausibleSignal:

    @pytest.mark.parametrize("value, expected", [
        (40.0, True),
        (170.0, True),
        (95.5, True),
        (39.9, False),
        (170.1, False),
        (math.nan, False),
        (math.inf, False),
    ])
    def test_range(self, value, expected):
        assert plausible_signal(value) is expected


class TestSampleStore:

    def test_filters_range(self, store):
        read = read_with([
            Signal(0, "GCATGC", 100.0),
            Signal(1, "ATGCAT", 30.0),
            Signal(2, "TGCATG", math.nan),
            Signal(3, "CATGCA", 200.0),
        ])
        assert store.add_reads([read], all_bases()) == 1
        assert store.count("GCATGC") == 1
        assert store.count("ATGCAT") == 0
        assert store.kmers() == ["GCATGC"]

    def test_filters_motifs(self, store):
        read = read_with([
            Signal(0, "GCATGC", 100.0),
            Signal(1, "CGATGC", 100.0),
            Signal(2, "ATGCAT", 100.0),
        ])
        store.add_reads([read], parse_motifs(["2:GC", "1:CG"]))
        assert store.kmers() == ["CGATGC", "GCATGC"]

    def test_sample_limit(self, store):
        read = read_with([Signal(i, "GCATGC", 60.0 + i) for i in range(10)])
        store.add_reads([read], all_bases())

        values = store.sample("GCATGC", 3)
        assert len(values) == 3
        assert set(values) <= {60.0 + i for i in range(10)}
        assert len(store.sample("GCATGC", 100)) == 10
        assert store.sample("AAAAAA", 10) == []

    def test_raw_samples(self, temp_output_dir):
        read = read_with([Signal(0, "GCATGC", 100.0, 5.0, (50.0, 300.0, 60.0))])
        with SampleStore.open(temp_output_dir / "raw.db", use_raw_samples=True) as raw:
            assert raw.add_reads([read], all_bases()) == 2
            assert sorted(raw.sample("GCATGC", 10)) == [50.0, 60.0]

    def test_existing_file_replaced(self, temp_output_dir):
        path = temp_output_dir / "samples.db"
        with SampleStore.open(path) as first:
            first.add_reads([read_with([Signal(0, "GCATGC", 100.0)])], all_bases())

        with SampleStore.open(path) as second:
            assert second.count("GCATGC") == 0

    def test_failed_batch_rolls_back(self, store, monkeypatch):
        store.add_reads([read_with([Signal(0, "GCATGC", 100.0)])], all_bases())

        # Second batch fails on its last row; its first row must not persist
        monkeypatch.setattr(
            store, "_rows",
            lambda reads, motifs: iter([("ATGCAT", 90.0), (None, 91.0)]),
        )
        with pytest.raises(sqlite3.IntegrityError):
            store.add_reads([], all_bases())

        assert store.count("ATGCAT") == 0
        assert store.count("GCATGC") == 1

# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
