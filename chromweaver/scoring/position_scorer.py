#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Per-position scoring of aligned reads against positive- and negative-control
models.

Each position of a read gets up to two scores:
  1. Signal score: the best-ranked overlapping kmer with a measurement is
     scored by the ratio of its positive-control density to the summed
     densities (Wang et al., Genome Res. 29, 1329-1342, 2019).
  2. Skip score: the median, over all overlapping kmers, of how much more
     likely the observed presence or absence of a measurement is under the
     positive control.
The final score fuses both.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.special import expit

from ..io.genome import Genome
from ..io.records import (
    DEFAULT_BATCH_SIZE,
    Eventalign,
    RecordWriter,
    Score,
    ScoredRead,
    Signal,
    read_batches,
)
from ..training.mixture import GaussianMixture1D, Model, gaussian_kl
from ..utils.motif import Motif, matches_any
from .context import Context, resolve_context

logger = logging.getLogger(__name__)

FUSION_POLICIES = ('max', 'signal_first')


@dataclass
class ScoringOptions:
    """
    Options for read scoring.

    Attributes:
        cutoff: Signal scores are withheld when both log densities fall
            below -cutoff
        motifs: If given, only positions whose kmer starts with a motif are scored
        fusion: 'max' keeps the larger of signal and skip score;
            'signal_first' uses the skip score only without a signal score
        select_components: Score against the negative control's dominant
            component and the most distant positive component instead of the
            full mixtures
    """
    cutoff: float = 10.0
    motifs: Optional[List[Motif]] = None
    fusion: str = 'max'
    select_components: bool = False

    def __post_init__(self):
        if self.fusion not in FUSION_POLICIES:
            raise ValueError(f"Unknown fusion policy {self.fusion!r}, expected one of {FUSION_POLICIES}")


@dataclass(frozen=True)
class Candidate:
    """A measured kmer overlapping the scored position."""
    pos: int
    kmer: str
    mean: float


def select_best_candidate(candidates: Sequence[Candidate],
                          ranks: Mapping[str, float]) -> Optional[Candidate]:
    """
    Pick the most informative candidate by rank.

    Candidates are reduced pairwise in order: one without a rank always
    loses to the other, a strictly higher rank wins, and ties go to the
    later candidate.
    """
    best = None
    for candidate in candidates:
        if best is None:
            best = candidate
            continue
        best_rank = ranks.get(best.kmer)
        cand_rank = ranks.get(candidate.kmer)
        if best_rank is None:
            best = candidate
        elif cand_rank is None:
            continue
        elif not best_rank > cand_rank:
            best = candidate
    return best


def choose_components(pos_mix: GaussianMixture1D,
                      neg_mix: GaussianMixture1D) -> Tuple[GaussianMixture1D, GaussianMixture1D]:
    """
    Reduce each mixture to the component representing its condition.

    The negative control's highest-weight component is taken as the true
    unmodified distribution; the positive component most KL-distant from it
    is taken as the modified one.
    """
    neg = neg_mix.component(neg_mix.dominant_component())
    neg_mean, neg_var = float(neg.means[0]), float(neg.variances[0])

    best_idx, best_kl = 0, None
    for idx in range(pos_mix.n_components):
        kl = gaussian_kl(float(pos_mix.means[idx]), float(pos_mix.variances[idx]), neg_mean, neg_var)
        if best_kl is None or not best_kl > kl:
            best_idx, best_kl = idx, kl
    return pos_mix.component(best_idx), neg


def score_signal(x: float, pos_mix: GaussianMixture1D, neg_mix: GaussianMixture1D,
                 cutoff: float, select_components: bool = False) -> Optional[float]:
    """
    Likelihood-ratio score P_pos(x) / (P_pos(x) + P_neg(x)).

    Returns None when x is implausible under both models (both log
    densities below -cutoff).
    """
    if select_components:
        pos_mix, neg_mix = choose_components(pos_mix, neg_mix)

    pos_ln = float(pos_mix.logpdf(x))
    neg_ln = float(neg_mix.logpdf(x))
    if pos_ln < -cutoff and neg_ln < -cutoff:
        return None
    diff = pos_ln - neg_ln
    if np.isnan(diff):
        return None
    return float(expit(diff))


def score_skips(items: Iterable[Tuple[int, str]], measured: Mapping[int, Signal],
                pos_model: Model, neg_model: Model) -> Optional[float]:
    """
    Median presence/absence score over the kmers overlapping a position.

    For a kmer whose start position has a measurement the score is
    pos_rate / (pos_rate + neg_rate); without one it is
    (1 - pos_rate) / ((1 - pos_rate) + (1 - neg_rate)). Kmers lacking a skip
    rate in either model are ignored.

    Returns:
        Median score, or None if no kmer qualifies
    """
    scores = []
    for start, kmer in items:
        pos_rate = pos_model.skip_rate(kmer)
        neg_rate = neg_model.skip_rate(kmer)
        if pos_rate is None or neg_rate is None:
            continue
        if start in measured:
            num, den = pos_rate, pos_rate + neg_rate
        else:
            num, den = 1.0 - pos_rate, (1.0 - pos_rate) + (1.0 - neg_rate)
        if den > 0:
            scores.append(num / den)
    if not scores:
        return None
    return float(np.median(scores))


def fuse_scores(signal_score: Optional[float], skip_score: Optional[float],
                policy: str = 'max') -> Optional[float]:
    """Combine signal and skip scores into the final score."""
    if signal_score is None:
        return skip_score
    if skip_score is None or policy == 'signal_first':
        return signal_score
    return max(signal_score, skip_score)


def _signal_candidates(items: Iterable[Tuple[int, str]], measured: Mapping[int, Signal],
                       pos_model: Model, neg_model: Model) -> List[Candidate]:
    candidates = []
    for start, _ in items:
        signal = measured.get(start)
        if signal is None:
            continue
        if pos_model.gmm(signal.kmer) is None or neg_model.gmm(signal.kmer) is None:
            continue
        candidates.append(Candidate(start, signal.kmer, signal.mean))
    return candidates


def score_read(read: Eventalign, pos_model: Model, neg_model: Model,
               ranks: Mapping[str, float], context: Context,
               options: Optional[ScoringOptions] = None) -> ScoredRead:
    """
    Score every position of a read.

    Args:
        read: Aligned read with signal
        pos_model: Positive control model
        neg_model: Negative control model
        ranks: kmer -> divergence rank table
        context: Reference context resolved for this read
        options: Scoring options

    Returns:
        ScoredRead with one Score per scorable position, in position order
    """
    options = options or ScoringOptions()
    measured = read.signal_map()
    scores = []

    for pos in read.positions():
        kmer = context.kmer_at(pos)
        if kmer is None:
            continue
        if options.motifs and not matches_any(kmer, options.motifs):
            continue

        items = context.surrounding_items(pos)
        candidates = _signal_candidates(items, measured, pos_model, neg_model)
        best = select_best_candidate(candidates, ranks)

        signal_score = None
        if best is not None:
            signal_score = score_signal(
                best.mean,
                pos_model.gmms[best.kmer],
                neg_model.gmms[best.kmer],
                options.cutoff,
                options.select_components,
            )

        skip_score = score_skips(items, measured, pos_model, neg_model)
        final = fuse_scores(signal_score, skip_score, options.fusion)
        if final is None:
            logger.debug(f"{read.name}:{pos} has no usable model, left unscored")
            continue

        scores.append(Score(
            pos=pos,
            kmer=kmer,
            skipped=signal_score is None,
            signal_score=signal_score,
            skip_score=skip_score,
            score=final,
        ))

    return ScoredRead.from_read(read, scores)


def score_reads(reads: Iterable[Eventalign], pos_model: Model, neg_model: Model,
                ranks: Mapping[str, float], genome: Genome,
                options: Optional[ScoringOptions] = None) -> List[ScoredRead]:
    """Resolve context and score each read of a batch."""
    return [
        score_read(read, pos_model, neg_model, ranks, resolve_context(read, genome), options)
        for read in reads
    ]


def score_file(input_path: Union[str, Path], output_path: Union[str, Path],
               pos_model: Model, neg_model: Model, ranks: Mapping[str, float],
               genome: Genome, options: Optional[ScoringOptions] = None,
               batch_size: int = DEFAULT_BATCH_SIZE) -> int:
    """
    Score a JSONL file of reads batch by batch.

    The output file is removed if scoring fails part way.

    Returns:
        Number of reads scored
    """
    output_path = Path(output_path)
    n_reads = 0
    writer = RecordWriter(output_path)
    try:
        for batch in read_batches(input_path, Eventalign, batch_size):
            writer.write_batch(score_reads(batch, pos_model, neg_model, ranks, genome, options))
            n_reads += len(batch)
            logger.info(f"Scored {n_reads} reads")
    except BaseException:
        writer.close()
        output_path.unlink(missing_ok=True)
        raise
    writer.close()
    return n_reads


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
