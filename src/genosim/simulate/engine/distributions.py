"""
Sampling distributions driven by a RandomSource

- DiscreteDistribution: weighted index sampling by cumulative-sum bisection
- NormalDistribution: inverse-CDF sampling, used for fragment lengths
"""

import math
from statistics import NormalDist
from typing import List, Sequence

import numpy as np

from .errors import InvalidWeightsError
from .rng import RandomSource

# Keeps the inverse CDF finite when a draw lands exactly on 0
_MIN_UNIFORM = 1e-12


class DiscreteDistribution:
    """
    Immutable weighted sampler over indices ``0..len(weights)-1``.

    Index i is returned with probability ``weights[i] / sum(weights)``;
    zero-weight indices are never returned. A degenerate distribution
    always returns 0 and consumes no randomness.

    Weight vectors can be as long as a contig (one weight per position),
    so construction stays vectorized.
    """

    def __init__(self, weights: Sequence[float], degenerate: bool = False):
        self._degenerate = degenerate
        if degenerate:
            self._weights = np.ones(1)
            self._cumulative = np.ones(1)
            return

        values = np.asarray(weights, dtype=float).ravel()
        if values.size == 0:
            raise InvalidWeightsError("Weight vector is empty")
        if not np.all(np.isfinite(values)) or np.any(values < 0):
            raise InvalidWeightsError(f"Weights must be finite and non-negative, got {values.tolist()[:10]}")
        total = float(values.sum())
        if total <= 0:
            raise InvalidWeightsError("All weights are zero")

        self._weights = values
        cumulative = np.cumsum(values / total)
        # Rounding may leave the running sum short of 1.0; pin everything from
        # the last positive weight onward so a draw never falls off the end
        last = int(np.flatnonzero(values > 0)[-1])
        cumulative[last:] = 1.0
        self._cumulative = cumulative

    @property
    def degenerate(self) -> bool:
        return self._degenerate

    @property
    def weights(self) -> List[float]:
        return self._weights.tolist()

    @property
    def probabilities(self) -> List[float]:
        return (self._weights / self._weights.sum()).tolist()

    def __len__(self) -> int:
        return int(self._weights.size)

    def __repr__(self) -> str:
        return f"DiscreteDistribution({self._weights.tolist()})"

    def sample(self, rng: RandomSource) -> int:
        if self._degenerate:
            return 0
        r = rng.random()
        index = int(np.searchsorted(self._cumulative, r, side="left"))
        # r == 0.0 can land on a leading zero-weight slot
        while self._weights[index] == 0:
            index += 1
        return index


class NormalDistribution:
    """Normal distribution sampled through its inverse CDF."""

    def __init__(self, mean: float, std_dev: float):
        if math.isnan(mean) or math.isnan(std_dev) or std_dev <= 0:
            raise ValueError(f"Invalid normal parameters: mean={mean}, std_dev={std_dev}")
        self.mean = mean
        self.std_dev = std_dev
        self._dist = NormalDist(mean, std_dev)

    def inverse_cdf(self, x: float) -> float:
        return self._dist.inv_cdf(x)

    def sample(self, rng: RandomSource) -> float:
        x = min(max(rng.random(), _MIN_UNIFORM), 1.0 - _MIN_UNIFORM)
        return self._dist.inv_cdf(x)
