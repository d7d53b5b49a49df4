"""
Single-molecule calling.

Calibrates every scored position of every read with the positive- and
negative-control score densities and writes one BED12 line per read, with a
1-bp block for each position called as modified.
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..io.records import ScoredRead, iter_records
from .density import ScoreDensity, probability

logger = logging.getLogger(__name__)

CALLED_RGB = {'+': "0,0,255", '-': "255,0,0", '.': "0,0,0"}


@dataclass
class SmaOptions:
    threshold: float = 0.5
    track_name: str = "chromweaver.sma"


def calibrate_read(read: ScoredRead, pos_density: ScoreDensity,
                   neg_density: ScoreDensity) -> List[Tuple[int, float]]:
    """(position, probability) for every position with a defined probability."""
    calls = []
    for score in read.scores:
        prob = probability(score.score, pos_density, neg_density)
        if not math.isnan(prob):
            calls.append((score.pos, prob))
    return calls


def bed12_line(read: ScoredRead, positions: List[int]) -> str:
    """BED12 line with one 1-bp block per called position."""
    positions = sorted(positions)
    chrom_start = positions[0]
    chrom_end = positions[-1] + 1
    strand = read.strand.value
    fields = [
        read.chrom,
        str(chrom_start),
        str(chrom_end),
        read.name,
        "0",
        strand,
        str(chrom_start),
        str(chrom_end),
        CALLED_RGB[strand],
        str(len(positions)),
        ",".join("1" for _ in positions),
        ",".join(str(p - chrom_start) for p in positions),
    ]
    return "\t".join(fields)


def run_sma(scored_path: Union[str, Path], pos_density: ScoreDensity,
            neg_density: ScoreDensity, output_path: Union[str, Path],
            options: Optional[SmaOptions] = None) -> int:
    """
    Call modified positions per read and write them as BED12.

    Returns:
        Number of reads written
    """
    options = options or SmaOptions()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    no_calls = 0
    with open(output_path, 'w') as out:
        out.write(f'track name="{options.track_name}" itemRgb="On" visibility=2\n')
        for read in iter_records(scored_path, ScoredRead):
            called = [
                pos for pos, prob in calibrate_read(read, pos_density, neg_density)
                if prob >= options.threshold
            ]
            if not called:
                no_calls += 1
                continue
            out.write(bed12_line(read, called) + "\n")
            written += 1

    logger.info(f"Wrote {written} reads to {output_path} ({no_calls} reads without calls)")
    return written
