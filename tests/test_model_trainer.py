#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Tests for per-kmer mixture training and whole-cohort training.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import numpy as np
import pytest

from chromweaver.io.records import write_records
from chromweaver.scoring.context import resolve_context
from chromweaver.training.model_trainer import (
    AllModelsFailedError,
    InsufficientDataError,
    SkipCounter,
    TrainOptions,
    filter_outliers,
    train_all,
    train_file,
    train_kmer,
)
from chromweaver.utils.motif import parse_motifs
from conftest import ROTATIONS, make_cohort, make_read


@pytest.fixture
def bimodal():
    rng = np.random.default_rng(0)
    return np.concatenate([rng.normal(80.0, 1.0, 500), rng.normal(100.0, 1.0, 500)])


class TestTrainKmer:

    def test_two_components(self, bimodal):
        gmm = train_kmer(bimodal, TrainOptions(seed=0))
        assert gmm.n_components == 2
        assert sorted(gmm.means) == pytest.approx([80.0, 100.0], abs=0.5)
        assert gmm.weights.sum() == pytest.approx(1.0)

    def test_single_component(self, bimodal):
        gmm = train_kmer(bimodal, TrainOptions(single=True, seed=0))
        assert gmm.n_components == 1
        assert gmm.means[0] == pytest.approx(90.0, abs=0.5)

    def test_identical_values(self):
        with pytest.raises(InsufficientDataError):
            train_kmer([95.0] * 50, TrainOptions(seed=0))

    def test_too_few_values(self):
        with pytest.raises(InsufficientDataError):
            train_kmer([95.0], TrainOptions(seed=0))

    def test_non_finite_dropped(self):
        with pytest.raises(InsufficientDataError):
            train_kmer([95.0, np.nan, np.inf], TrainOptions(seed=0))

    def test_dbscan_collapse(self):
        # Only the three identical values form a cluster
        options = TrainOptions(dbscan=True, seed=0)
        with pytest.raises(InsufficientDataError):
            train_kmer([1.0, 1.0, 1.0, 5.0, 9.0], options)

    def test_filter_outliers(self):
        values = np.array([1.0, 1.0, 1.0, 50.0])
        np.testing.assert_array_equal(filter_outliers(values), [1.0, 1.0, 1.0])


class TestSkipCounter:

    def test_rates(self, genome):
        counter = SkipCounter()
        read = make_read(start=10, length=10, skip={12})
        counter.add_read(read, resolve_context(read, genome))

        rates = counter.rates()
        # ATGCAT starts at 12 and 16; only 12 is unmeasured
        assert rates["ATGCAT"] == pytest.approx(0.5)
        assert rates["GCATGC"] == 0.0
        assert set(rates) == set(ROTATIONS)

    def test_counts_accumulate(self, genome):
        counter = SkipCounter()
        for skip in ({12}, set()):
            read = make_read(start=10, length=10, skip=skip)
            counter.add_read(read, resolve_context(read, genome))
        assert counter.total["ATGCAT"] == 4
        assert counter.rates()["ATGCAT"] == pytest.approx(0.25)


class TestTrainAll:

    def test_trains_every_observed_kmer(self, genome, temp_output_dir):
        reads = make_cohort(90.0, skip={12})
        options = TrainOptions(single=True, n_init=1, seed=0,
                               db_path=temp_output_dir / "samples.db")
        model = train_all([reads[:10], reads[10:]], genome, options)

        assert set(model.gmms) == set(ROTATIONS)
        for gmm in model.gmms.values():
            assert gmm.means[0] == pytest.approx(90.0, abs=3.0)
        assert model.skip_rate("ATGCAT") == pytest.approx(0.5)
        assert model.skip_rate("TGCATG") == 0.0

    def test_motif_restriction(self, genome):
        options = TrainOptions(single=True, n_init=1, seed=0, motifs=parse_motifs(["2:GC"]))
        model = train_all([make_cohort(90.0)], genome, options)

        assert set(model.gmms) == {"GCATGC"}
        # Skip rates are counted for every kmer regardless of motif
        assert set(model.skips) == set(ROTATIONS)

    def test_all_kmers_fail(self, genome):
        reads = [make_read(f"read{i}") for i in range(5)]  # every mean is 90.0
        with pytest.raises(AllModelsFailedError):
            train_all([reads], genome, TrainOptions(single=True, n_init=1))

    def test_train_file(self, genome, temp_output_dir):
        path = temp_output_dir / "reads.jsonl"
        write_records(path, make_cohort(90.0))
        model = train_file(path, genome, TrainOptions(single=True, n_init=1, seed=0), batch_size=7)
        assert set(model.gmms) == set(ROTATIONS)

# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
