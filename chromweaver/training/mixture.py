#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

One-dimensional Gaussian mixtures and the trained Model artifact.

A Model maps each trained 6-mer to a 1- or 2-component mixture over mean
signal current, and each observed 6-mer to its skip rate. Models are
persisted with pickle as plain Python containers so parameters round-trip
bit-for-bit.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import logging
import math
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
from scipy.special import logsumexp
from scipy.stats import norm

from ..io.artifacts import save_pickle

logger = logging.getLogger(__name__)

MODEL_FORMAT_VERSION = 1


@dataclass
class GaussianMixture1D:
    """
    Weighted sum of univariate Gaussians.

    Attributes:
        weights: Component weights (sum to 1)
        means: Component means
        variances: Component variances
    """
    weights: np.ndarray
    means: np.ndarray
    variances: np.ndarray

    def __post_init__(self):
        self.weights = np.asarray(self.weights, dtype=float)
        self.means = np.asarray(self.means, dtype=float)
        self.variances = np.asarray(self.variances, dtype=float)
        n = len(self.weights)
        if n not in (1, 2):
            raise ValueError(f"Mixture must have 1 or 2 components, got {n}")
        if len(self.means) != n or len(self.variances) != n:
            raise ValueError("Mixture parameter arrays must have equal length")
        if np.any(self.variances <= 0):
            raise ValueError("Mixture variances must be positive")

    @classmethod
    def from_sklearn(cls, gmm) -> 'GaussianMixture1D':
        """Convert a fitted sklearn GaussianMixture on 1-D data."""
        return cls(
            weights=gmm.weights_.ravel(),
            means=gmm.means_.ravel(),
            variances=gmm.covariances_.reshape(-1),
        )

    @property
    def n_components(self) -> int:
        return len(self.weights)

    @property
    def stds(self) -> np.ndarray:
        return np.sqrt(self.variances)

    def logpdf(self, x):
        """Log density at x (scalar or array)."""
        x = np.asarray(x, dtype=float)
        comp = norm.logpdf(x[..., None], loc=self.means, scale=self.stds)
        return logsumexp(comp + np.log(self.weights), axis=-1)

    def pdf(self, x):
        return np.exp(self.logpdf(x))

    def sample(self, n: int, rng: np.random.Generator) -> np.ndarray:
        """Draw n values from the mixture."""
        comps = rng.choice(self.n_components, size=n, p=self.weights)
        return rng.normal(self.means[comps], self.stds[comps])

    def component(self, idx: int) -> 'GaussianMixture1D':
        """Single component idx as its own unit-weight mixture."""
        return GaussianMixture1D([1.0], [self.means[idx]], [self.variances[idx]])

    def dominant_component(self) -> int:
        """Index of the highest-weight component (first on ties)."""
        return int(np.argmax(self.weights))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'weights': [float(w) for w in self.weights],
            'means': [float(m) for m in self.means],
            'variances': [float(v) for v in self.variances],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GaussianMixture1D':
        return cls(data['weights'], data['means'], data['variances'])

    def __eq__(self, other) -> bool:
        if not isinstance(other, GaussianMixture1D):
            return NotImplemented
        return (
            np.array_equal(self.weights, other.weights)
            and np.array_equal(self.means, other.means)
            and np.array_equal(self.variances, other.variances)
        )


def gaussian_kl(mean_p: float, var_p: float, mean_q: float, var_q: float) -> float:
    """Closed-form KL(P || Q) between univariate Gaussians."""
    return 0.5 * (
        math.log(var_q / var_p)
        + (var_p + (mean_p - mean_q) ** 2) / var_q
        - 1.0
    )


@dataclass
class Model:
    """
    Trained reference artifact for one labeled control.

    Attributes:
        gmms: kmer -> signal mixture
        skips: kmer -> fraction of reference occurrences without a measurement
    """
    gmms: Dict[str, GaussianMixture1D] = field(default_factory=dict)
    skips: Dict[str, float] = field(default_factory=dict)

    def insert_gmm(self, kmer: str, gmm: GaussianMixture1D):
        self.gmms[kmer] = gmm

    def insert_skip(self, kmer: str, rate: float):
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"Skip rate for {kmer} must be in [0, 1], got {rate}")
        self.skips[kmer] = rate

    def gmm(self, kmer: str) -> Optional[GaussianMixture1D]:
        return self.gmms.get(kmer)

    def skip_rate(self, kmer: str) -> Optional[float]:
        return self.skips.get(kmer)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': MODEL_FORMAT_VERSION,
            'gmms': {kmer: gmm.to_dict() for kmer, gmm in self.gmms.items()},
            'skips': dict(self.skips),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Model':
        model = cls(gmms={k: GaussianMixture1D.from_dict(v) for k, v in data['gmms'].items()})
        for kmer, rate in data['skips'].items():
            model.insert_skip(kmer, float(rate))
        return model

    def save(self, path: Union[str, Path]):
        """Save model to disk."""
        path = save_pickle(self.to_dict(), path)
        logger.info(f"Saved model ({len(self.gmms)} mixtures, {len(self.skips)} skip rates) to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'Model':
        """Load model from disk."""
        with open(path, 'rb') as f:
            data = pickle.load(f)
        if not isinstance(data, dict) or 'gmms' not in data or 'skips' not in data:
            raise ValueError(f"Not a ChromWeaver model file: {path}")
        model = cls.from_dict(data)
        logger.info(f"Loaded model from {path} ({len(model.gmms)} mixtures)")
        return model


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
