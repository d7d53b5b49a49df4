#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Tests for atomic artifact writes.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import pickle

import numpy as np
import pytest

from chromweaver.io import artifacts
from chromweaver.io.artifacts import save_pickle
from chromweaver.scoring.density import ScoreDensity
from chromweaver.scoring.kmer_ranker import save_ranks
from chromweaver.training.mixture import Model


def fail_dump(obj, f):
    f.write(b"partial")
    raise RuntimeError("disk full")


class TestSavePickle:

    def test_creates_parents(self, temp_output_dir):
        path = temp_output_dir / "a" / "b" / "x.pkl"
        assert save_pickle({"k": 1}, path) == path
        with open(path, 'rb') as f:
            assert pickle.load(f) == {"k": 1}
        assert [p.name for p in path.parent.iterdir()] == ["x.pkl"]

    def test_failed_write_keeps_previous_file(self, temp_output_dir, monkeypatch):
        path = temp_output_dir / "x.pkl"
        save_pickle({"k": 1}, path)

        monkeypatch.setattr(artifacts.pickle, "dump", fail_dump)
        with pytest.raises(RuntimeError):
            save_pickle({"k": 2}, path)

        with open(path, 'rb') as f:
            assert pickle.load(f) == {"k": 1}
        assert [p.name for p in temp_output_dir.iterdir()] == ["x.pkl"]

    def test_failed_write_leaves_nothing(self, temp_output_dir, monkeypatch):
        monkeypatch.setattr(artifacts.pickle, "dump", fail_dump)
        with pytest.raises(RuntimeError):
            save_pickle({"k": 2}, temp_output_dir / "x.pkl")
        assert list(temp_output_dir.iterdir()) == []


class TestArtifactSaves:
    """Every persisted artifact goes through the atomic writer."""

    def test_model(self, temp_output_dir, monkeypatch):
        path = temp_output_dir / "pos.model"
        model = Model()
        model.insert_skip("ATGCAT", 0.5)
        model.save(path)

        monkeypatch.setattr(artifacts.pickle, "dump", fail_dump)
        with pytest.raises(RuntimeError):
            Model().save(path)
        assert Model.load(path).skips == {"ATGCAT": 0.5}
        assert [p.name for p in temp_output_dir.iterdir()] == ["pos.model"]

    def test_ranks(self, temp_output_dir, monkeypatch):
        monkeypatch.setattr(artifacts.pickle, "dump", fail_dump)
        with pytest.raises(RuntimeError):
            save_ranks(temp_output_dir / "ranks.pkl", {"ATGCAT": 1.0})
        assert list(temp_output_dir.iterdir()) == []

    def test_density(self, temp_output_dir, monkeypatch):
        grid = np.linspace(0.0, 1.0, 11)
        monkeypatch.setattr(artifacts.pickle, "dump", fail_dump)
        with pytest.raises(RuntimeError):
            ScoreDensity(grid, grid.copy()).save(temp_output_dir / "pos.density")
        assert list(temp_output_dir.iterdir()) == []

# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
