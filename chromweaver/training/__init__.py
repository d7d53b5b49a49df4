"""
Training module for ChromWeaver.

Builds per-kmer signal models from labeled control reads:
- sample_store.py: bounded-memory SQLite store of per-kmer observations
- mixture.py: 1-D Gaussian mixtures and the Model artifact
- model_trainer.py: mixture fitting, skip-rate counting, whole-cohort training
"""

from .mixture import GaussianMixture1D, Model
from .sample_store import SampleStore
from .model_trainer import (
    AllModelsFailedError,
    InsufficientDataError,
    SkipCounter,
    TrainError,
    TrainOptions,
    train_all,
    train_file,
    train_kmer,
)

__all__ = [
    "GaussianMixture1D",
    "Model",
    "SampleStore",
    "AllModelsFailedError",
    "InsufficientDataError",
    "SkipCounter",
    "TrainError",
    "TrainOptions",
    "train_all",
    "train_file",
    "train_kmer",
]
