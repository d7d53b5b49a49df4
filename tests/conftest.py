#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Pytest configuration and shared fixtures.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import pytest
from pathlib import Path
import tempfile
import shutil

import numpy as np

from chromweaver.io.genome import InMemoryGenome
from chromweaver.io.records import Eventalign, Signal, Strand
from chromweaver.training.mixture import GaussianMixture1D, Model

# 66 bp of repeating ATGC; every 6-mer is one of four rotations
ONE_SEQUENCE = ("ATGC" * 17)[:66]
ROTATIONS = ["ATGCAT", "TGCATG", "GCATGC", "CATGCA"]


@pytest.fixture
def temp_output_dir():
    """Create temporary output directory for tests."""
    temp_dir = tempfile.mkdtemp(prefix="chromweaver_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def simple_fasta():
    """FASTA text for the 66 bp 'one' chromosome, wrapped at 30 columns."""
    return (
        ">one\n"
        f"{ONE_SEQUENCE[:30]}\n"
        f"{ONE_SEQUENCE[30:60]}\n"
        f"{ONE_SEQUENCE[60:]}\n"
    )


@pytest.fixture
def fasta_file(temp_output_dir, simple_fasta):
    path = temp_output_dir / "genome.fa"
    path.write_text(simple_fasta)
    return path


@pytest.fixture
def genome():
    return InMemoryGenome({"one": ONE_SEQUENCE})


def make_read(name="read1", start=10, length=10, strand=Strand.PLUS,
              means=None, skip=()):
    """
    Build a read on 'one' with a signal at every position except skip.

    means maps position to mean current; unspecified positions get 90.0.
    """
    means = means or {}
    signals = [
        Signal(pos, ONE_SEQUENCE[pos:pos + 6], means.get(pos, 90.0))
        for pos in range(start, start + length)
        if pos not in skip
    ]
    return Eventalign(name, "one", start, length, strand, signals)


def make_cohort(center, n_reads=20, spread=3.0, seed=0, skip=()):
    """Reads at 10..19 with signal means drawn around center."""
    rng = np.random.default_rng(seed)
    reads = []
    for i in range(n_reads):
        means = {pos: float(rng.normal(center, spread)) for pos in range(10, 20)}
        reads.append(make_read(f"read{i}", means=means, skip=skip))
    return reads


@pytest.fixture
def control_models():
    """
    Single-component models for the four rotations.

    Positive: N(100, 1), negative: N(80, 1). Skip rates 0.2 vs 0.8.
    """
    pos_model = Model()
    neg_model = Model()
    for kmer in ROTATIONS:
        pos_model.insert_gmm(kmer, GaussianMixture1D([1.0], [100.0], [1.0]))
        neg_model.insert_gmm(kmer, GaussianMixture1D([1.0], [80.0], [1.0]))
        pos_model.insert_skip(kmer, 0.2)
        neg_model.insert_skip(kmer, 0.8)
    return pos_model, neg_model

# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
