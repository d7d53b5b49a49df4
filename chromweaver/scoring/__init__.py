"""
Scoring module for ChromWeaver.

This module provides everything downstream of model training:
- Genomic context resolution per read
- Kmer ranking by KL divergence
- Per-position signal/skip scoring
- Kernel density calibration and single-molecule calling
"""

from .context import Context, context_window, resolve_context
from .kmer_ranker import kl_divergence, load_ranks, rank, save_ranks
from .position_scorer import (
    Candidate,
    ScoringOptions,
    fuse_scores,
    score_file,
    score_read,
    score_signal,
    score_skips,
    select_best_candidate,
)
from .density import ScoreDensity, fit_density, model_scores, probability
from .sma import SmaOptions, run_sma

__all__ = [
    # Context
    "Context",
    "context_window",
    "resolve_context",
    # Ranking
    "kl_divergence",
    "load_ranks",
    "rank",
    "save_ranks",
    # Scoring
    "Candidate",
    "ScoringOptions",
    "fuse_scores",
    "score_file",
    "score_read",
    "score_signal",
    "score_skips",
    "select_best_candidate",
    # Calibration
    "ScoreDensity",
    "fit_density",
    "model_scores",
    "probability",
    "SmaOptions",
    "run_sma",
]
