#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Kmer ranking by Kullback-Leibler divergence between the positive- and
negative-control signal mixtures.

Kmers whose two mixtures differ the most carry the most information about
modification state, so the scorer prefers them when several overlapping
kmers have a measurement. Mixture KL has no closed form; it is estimated by
Monte Carlo with a fixed seed so repeated runs give identical ranks.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import logging
import pickle
from pathlib import Path
from typing import Dict, Union

import numpy as np

from ..io.artifacts import save_pickle
from ..training.mixture import GaussianMixture1D, Model, gaussian_kl

logger = logging.getLogger(__name__)

DEFAULT_SEED = 2456
DEFAULT_SAMPLES = 10_000


def monte_carlo_kl(p: GaussianMixture1D, q: GaussianMixture1D,
                   n_samples: int, rng: np.random.Generator) -> float:
    """Estimate KL(P || Q) as the mean log density ratio over draws from P."""
    xs = p.sample(n_samples, rng)
    return float(np.mean(p.logpdf(xs) - q.logpdf(xs)))


def kl_divergence(pos: GaussianMixture1D, neg: GaussianMixture1D,
                  seed: int = DEFAULT_SEED, n_samples: int = DEFAULT_SAMPLES) -> float:
    """
    Symmetrised KL divergence between two signal mixtures.

    Uses the closed form when both are single Gaussians, otherwise a Monte
    Carlo estimate from n_samples draws of each mixture. Negative estimates
    (sampling noise on near-identical mixtures) are clamped to zero.

    Args:
        pos: Positive control mixture
        neg: Negative control mixture
        seed: Seed for the sampling generator
        n_samples: Draws per mixture

    Returns:
        Non-negative divergence, inf for disjoint support, or NaN when the
        estimate is undefined
    """
    if pos.n_components == 1 and neg.n_components == 1:
        mp, vp = float(pos.means[0]), float(pos.variances[0])
        mn, vn = float(neg.means[0]), float(neg.variances[0])
        kl = 0.5 * (gaussian_kl(mp, vp, mn, vn) + gaussian_kl(mn, vn, mp, vp))
    else:
        rng = np.random.default_rng(seed)
        kl = 0.5 * (
            monte_carlo_kl(pos, neg, n_samples, rng)
            + monte_carlo_kl(neg, pos, n_samples, rng)
        )
    if np.isnan(kl):
        return float('nan')
    return max(kl, 0.0) if np.isfinite(kl) else float('inf')


def rank(pos_model: Model, neg_model: Model,
         seed: int = DEFAULT_SEED, n_samples: int = DEFAULT_SAMPLES) -> Dict[str, float]:
    """
    Rank every kmer trained in both models.

    Each kmer's estimate uses its own generator seeded with seed, so a
    kmer's rank does not depend on which other kmers are present.

    Returns:
        kmer -> divergence; kmers present in only one model or with an
        undefined divergence are omitted
    """
    shared = sorted(set(pos_model.gmms) & set(neg_model.gmms))
    only_one = len(set(pos_model.gmms) ^ set(neg_model.gmms))
    if only_one:
        logger.info(f"{only_one} kmers trained in only one model, not ranked")

    ranks = {}
    for kmer in shared:
        kl = kl_divergence(pos_model.gmms[kmer], neg_model.gmms[kmer], seed, n_samples)
        if np.isnan(kl):
            logger.warning(f"KL divergence for {kmer} is undefined, kmer not ranked")
            continue
        ranks[kmer] = kl
        logger.debug(f"{kmer}: {ranks[kmer]:.4f}")

    logger.info(f"Ranked {len(ranks)} kmers")
    return ranks


def save_ranks(path: Union[str, Path], ranks: Dict[str, float]):
    """Persist a rank table."""
    path = save_pickle({kmer: float(value) for kmer, value in ranks.items()}, path)
    logger.info(f"Saved {len(ranks)} kmer ranks to {path}")


def load_ranks(path: Union[str, Path]) -> Dict[str, float]:
    """Load a rank table saved with save_ranks."""
    with open(path, 'rb') as f:
        ranks = pickle.load(f)
    if not isinstance(ranks, dict):
        raise ValueError(f"Not a ChromWeaver rank file: {path}")
    return ranks


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
