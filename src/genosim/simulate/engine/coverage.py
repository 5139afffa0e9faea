"""
Read coverage sampler

Lays out read (or fragment) intervals along a sequence, pass after pass,
until the target coverage depth is reached.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

from .distributions import NormalDistribution
from .errors import ReadLongerThanSequenceError
from .rng import RandomSource

logger = logging.getLogger(__name__)


def build_fragment_pool(
    span_length: int,
    read_length: int,
    coverage: int,
    fragment_mean: float,
    fragment_st_dev: float,
    rng: RandomSource
) -> List[int]:
    """
    Fragment lengths for paired-end sampling.

    Draws ``(span_length // read_length) * coverage * 2`` lengths from a
    normal distribution; lengths shorter than a read are raised to the read
    length.
    """
    dist = NormalDistribution(fragment_mean, fragment_st_dev)
    count = max(1, (span_length // read_length) * coverage * 2)
    return [
        max(read_length, int(math.floor(dist.sample(rng) + 0.5)))
        for _ in range(count)
    ]


def cover_dataset(
    span_length: int,
    read_length: int,
    coverage: int,
    rng: RandomSource,
    fragment_pool: Optional[Sequence[int]] = None
) -> List[Tuple[int, int]]:
    """
    Half-open (start, end) intervals covering a sequence.

    Walks from 0, emitting an interval while it fits, then advances past it
    by a jitter drawn from [0, read_length // 4). When the next interval
    would run off the end, the pass is complete and the walk restarts at 0.

    Args:
        span_length: sequence length
        read_length: read length (interval length without a fragment pool)
        coverage: number of full passes
        rng: random source
        fragment_pool: optional fragment lengths, used in turn as interval lengths

    Returns:
        Intervals in emission order

    Raises:
        ReadLongerThanSequenceError: If a single read cannot fit
    """
    if read_length < 1:
        raise ValueError(f"read_length must be >= 1, got {read_length}")
    if read_length > span_length:
        raise ReadLongerThanSequenceError(read_length, span_length)
    if coverage < 1:
        return []

    pool = [max(read_length, int(n)) for n in fragment_pool] if fragment_pool else []
    max_jitter = read_length // 4
    intervals: List[Tuple[int, int]] = []
    passes = 0
    start = 0
    drawn = 0
    while passes < coverage:
        length = read_length
        if pool:
            length = pool[drawn % len(pool)]
            drawn += 1
        end = start + length
        if end > span_length:
            passes += 1
            start = 0
            continue
        intervals.append((start, end))
        start = end + rng.range_int(0, max_jitter)

    logger.debug(f"{len(intervals)} intervals over {span_length}bp at {coverage}x")
    return intervals
