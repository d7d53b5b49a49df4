#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Kernel density calibration of raw position scores.

Raw scores from different kmers are not directly comparable, because the
separation of the positive and negative mixtures varies by kmer. Densities
of the raw scores from a scored positive-control and negative-control
cohort turn a raw score into a calibrated posterior probability.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import logging
import math
import pickle
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np
from scipy.stats import gaussian_kde

from ..io.artifacts import save_pickle
from ..io.records import ScoredRead, iter_records

logger = logging.getLogger(__name__)

DEFAULT_BINS = 1000
DEFAULT_MAX_SCORES = 1_000_000


@dataclass
class ScoreDensity:
    """
    Kernel density estimate tabulated on a fixed grid.

    Attributes:
        grid: Evenly spaced evaluation points
        density: Density at each grid point
        n_scores: Number of scores the estimate was fit on
    """
    grid: np.ndarray
    density: np.ndarray
    n_scores: int = 0

    def __call__(self, x):
        """Density at x, linearly interpolated; zero outside the grid."""
        return np.interp(x, self.grid, self.density, left=0.0, right=0.0)

    @property
    def bins(self) -> int:
        return len(self.grid)

    def save(self, path: Union[str, Path]):
        path = save_pickle({
            'grid': self.grid.tolist(),
            'density': self.density.tolist(),
            'n_scores': self.n_scores,
        }, path)
        logger.info(f"Saved score density ({self.bins} bins) to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ScoreDensity':
        with open(path, 'rb') as f:
            data = pickle.load(f)
        return cls(np.asarray(data['grid']), np.asarray(data['density']), data.get('n_scores', 0))


def fit_density(scores: Iterable[float], bins: int = DEFAULT_BINS) -> ScoreDensity:
    """
    Fit a Gaussian KDE over scores and tabulate it on bins grid points.

    The grid spans the observed score range padded by three bandwidths so
    the tails of the estimate are kept.

    Raises:
        ValueError: If fewer than two distinct finite scores are given
    """
    values = np.asarray(list(scores), dtype=float)
    values = values[np.isfinite(values)]
    if np.unique(values).size < 2:
        raise ValueError("Need at least two distinct scores to fit a density")
    if bins < 2:
        raise ValueError("bins must be at least 2")

    kde = gaussian_kde(values)
    pad = 3.0 * float(np.sqrt(kde.covariance[0, 0]))
    grid = np.linspace(values.min() - pad, values.max() + pad, bins)
    density = kde(grid)
    logger.info(f"Fit score density on {values.size} scores, bandwidth {pad / 3.0:.4g}")
    return ScoreDensity(grid, density, int(values.size))


def probability(raw_score: float, pos_density: ScoreDensity, neg_density: ScoreDensity) -> float:
    """
    Posterior probability of the positive condition for a raw score.

    Returns NaN when both densities are zero at raw_score.
    """
    p = float(pos_density(raw_score))
    q = float(neg_density(raw_score))
    if p + q <= 0.0:
        return math.nan
    return p / (p + q)


def collect_scores(scored_path: Union[str, Path]) -> np.ndarray:
    """Final scores of every position in a scored file."""
    return np.fromiter(
        (score.score for read in iter_records(scored_path, ScoredRead) for score in read.scores),
        dtype=float,
    )


def model_scores(scored_path: Union[str, Path], bins: int = DEFAULT_BINS,
                 max_scores: Optional[int] = DEFAULT_MAX_SCORES,
                 seed: int = 2456) -> ScoreDensity:
    """
    Fit the score density of one scored control cohort.

    Args:
        scored_path: JSONL file of ScoredRead records
        bins: Grid points of the tabulated density
        max_scores: Subsample to at most this many scores (None keeps all)
        seed: Seed for subsampling
    """
    scores = collect_scores(scored_path)
    logger.info(f"Collected {scores.size} scores from {scored_path}")
    if max_scores is not None and scores.size > max_scores:
        rng = np.random.default_rng(seed)
        scores = rng.choice(scores, size=max_scores, replace=False)
    return fit_density(scores, bins)


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
