"""
Per-kmer signal model training from labeled control reads.

Training runs in two passes over one control cohort:
1. Stream read batches into a scratch SampleStore while counting, per kmer,
   how often a reference occurrence had no signal (skip rates)
2. For every kmer in the 4096-kmer space, draw a bounded random sample and
   fit a 1- or 2-component Gaussian mixture

Kmers that cannot be trained are logged and left out of the model; the run
only fails if no kmer trains at all.
"""

import logging
import tempfile
import warnings
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
from sklearn.cluster import DBSCAN
from sklearn.exceptions import ConvergenceWarning
from sklearn.mixture import GaussianMixture

from ..io.genome import Genome
from ..io.records import DEFAULT_BATCH_SIZE, Eventalign, read_batches
from ..scoring.context import Context, resolve_context
from ..utils.motif import Motif, all_bases
from ..utils.sequence_utils import all_kmers, is_valid_kmer
from .mixture import GaussianMixture1D, Model
from .sample_store import SampleStore

logger = logging.getLogger(__name__)


class TrainError(Exception):
    """Raised when a single kmer cannot be trained."""
    pass


class InsufficientDataError(TrainError):
    """Fewer than two usable observations for a kmer."""
    pass


class AllModelsFailedError(Exception):
    """Raised when no kmer could be trained."""
    pass


@dataclass
class TrainOptions:
    """
    Options for model training.

    Attributes:
        n_samples: Maximum observations drawn per kmer
        single: Fit one component instead of two
        dbscan: Drop low-density outliers before fitting
        dbscan_eps: DBSCAN neighbourhood radius (pA)
        dbscan_min_samples: DBSCAN core point threshold
        n_init: EM restarts, best log-likelihood kept
        tol: EM convergence tolerance
        seed: Random state for EM initialization
        motifs: Only kmers starting with one of these are sampled
        db_path: Sample store location; a temporary file when None
        use_raw_samples: Store raw samples instead of signal means
    """
    n_samples: int = 50000
    single: bool = False
    dbscan: bool = False
    dbscan_eps: float = 1e-3
    dbscan_min_samples: int = 3
    n_init: int = 10
    tol: float = 1e-4
    seed: Optional[int] = None
    motifs: List[Motif] = field(default_factory=all_bases)
    db_path: Optional[Path] = None
    use_raw_samples: bool = False

    @property
    def n_components(self) -> int:
        return 1 if self.single else 2


def _require_distinct(values: np.ndarray, stage: str):
    if np.unique(values).size < 2:
        raise InsufficientDataError(
            f"Not enough distinct values {stage} ({values.size} observations)"
        )


def filter_outliers(values: np.ndarray, eps: float = 1e-3, min_samples: int = 3) -> np.ndarray:
    """Drop values DBSCAN labels as noise."""
    labels = DBSCAN(eps=eps, min_samples=min_samples).fit_predict(values.reshape(-1, 1))
    return values[labels != -1]


def train_kmer(samples: Sequence[float], options: TrainOptions) -> GaussianMixture1D:
    """
    Fit a signal mixture to one kmer's observations.

    Args:
        samples: Observed signal values
        options: Training options

    Returns:
        Mixture with options.n_components components

    Raises:
        InsufficientDataError: Fewer than two distinct values before or after
            outlier filtering
        TrainError: If the mixture fit itself fails
    """
    values = np.asarray(samples, dtype=float)
    values = values[np.isfinite(values)]
    _require_distinct(values, "in observations")

    if options.dbscan:
        values = filter_outliers(values, options.dbscan_eps, options.dbscan_min_samples)
        if values.size < 2:
            raise InsufficientDataError("Not enough values after filtering")
        _require_distinct(values, "after filtering")

    gmm = GaussianMixture(
        n_components=options.n_components,
        n_init=options.n_init,
        tol=options.tol,
        random_state=options.seed,
    )
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=ConvergenceWarning)
            gmm.fit(values.reshape(-1, 1))
    except ValueError as e:
        raise TrainError(f"Mixture fit failed: {e}") from e

    return GaussianMixture1D.from_sklearn(gmm)


class SkipCounter:
    """
    Per-kmer tally of reference occurrences and skipped occurrences.

    An occurrence is skipped when the read covers the position but the
    signal aligner produced no measurement for it.
    """

    def __init__(self):
        self.total: Counter = Counter()
        self.skipped: Counter = Counter()

    def add_read(self, read: Eventalign, context: Context):
        measured = read.signal_map()
        for pos in read.positions():
            kmer = context.kmer_at(pos)
            if kmer is None or not is_valid_kmer(kmer):
                continue
            self.total[kmer] += 1
            if pos not in measured:
                self.skipped[kmer] += 1

    def rates(self) -> Dict[str, float]:
        return {kmer: self.skipped[kmer] / n for kmer, n in self.total.items() if n > 0}


def train_gmms(store: SampleStore, options: TrainOptions, model: Optional[Model] = None) -> Model:
    """
    Train a mixture for every kmer with observations in store.

    Raises:
        AllModelsFailedError: If no kmer trained successfully
    """
    model = model if model is not None else Model()
    failed = 0
    for kmer in all_kmers():
        samples = store.sample(kmer, options.n_samples)
        if not samples:
            continue
        logger.debug(f"Training on kmer {kmer} with {len(samples)} samples")
        try:
            model.insert_gmm(kmer, train_kmer(samples, options))
        except TrainError as e:
            failed += 1
            logger.warning(f"kmer {kmer} failed to train: {e}")

    logger.info(f"Trained {len(model.gmms)} kmer models ({failed} failed)")
    if not model.gmms:
        raise AllModelsFailedError("No kmer models trained, check logs for per-kmer errors")
    return model


def _train_with_store(batches: Iterable[List[Eventalign]], genome: Genome,
                      options: TrainOptions, db_path: Path) -> Model:
    counter = SkipCounter()
    with SampleStore.open(db_path, use_raw_samples=options.use_raw_samples) as store:
        n_reads = 0
        for batch in batches:
            store.add_reads(batch, options.motifs)
            for read in batch:
                counter.add_read(read, resolve_context(read, genome))
            n_reads += len(batch)
            logger.info(f"Loaded {n_reads} reads ({store.rows_added} observations)")

        model = Model()
        for kmer, rate in counter.rates().items():
            model.insert_skip(kmer, rate)
        return train_gmms(store, options, model)


def train_all(batches: Iterable[List[Eventalign]], genome: Genome,
              options: Optional[TrainOptions] = None) -> Model:
    """
    Train a Model from batches of control reads.

    Args:
        batches: Read batches from one labeled control cohort
        genome: Reference used to resolve per-read context for skip rates
        options: Training options

    Returns:
        Model with a mixture per trainable kmer and a skip rate per observed kmer
    """
    options = options or TrainOptions()
    logger.info(f"Training with {options}")

    if options.db_path is not None:
        return _train_with_store(batches, genome, options, Path(options.db_path))

    with tempfile.TemporaryDirectory(prefix="chromweaver_train_") as tmp_dir:
        return _train_with_store(batches, genome, options, Path(tmp_dir) / "samples.db")


def train_file(input_path: Union[str, Path], genome: Genome,
               options: Optional[TrainOptions] = None,
               batch_size: int = DEFAULT_BATCH_SIZE) -> Model:
    """Train from a JSONL file of control reads."""
    return train_all(read_batches(input_path, Eventalign, batch_size), genome, options)
