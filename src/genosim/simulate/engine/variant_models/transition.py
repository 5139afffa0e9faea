"""
Nucleotide transition matrix

One DiscreteDistribution per origin base (A, C, G, T) giving the relative
likelihood of substituting to each of the four bases. N has no row.
"""

from typing import List, Optional, Sequence

from ..distributions import DiscreteDistribution
from ..errors import InvalidBaseError, InvalidWeightsError, ModelFormatError
from ..models import Nuc
from ..rng import RandomSource

# Transitions (A<->G, C<->T) dominate transversions
DEFAULT_TRANSITION_WEIGHTS = [
    [0.0, 15.0, 70.0, 15.0],
    [15.0, 0.0, 15.0, 70.0],
    [70.0, 15.0, 0.0, 15.0],
    [15.0, 70.0, 15.0, 0.0],
]


class TransitionMatrix:
    """4x4 substitution weights, immutable after construction."""

    def __init__(self, weights: Optional[Sequence[Sequence[float]]] = None):
        if weights is None:
            weights = DEFAULT_TRANSITION_WEIGHTS
        if len(weights) != 4 or any(len(row) != 4 for row in weights):
            raise InvalidWeightsError(
                f"Transition matrix must be 4x4, got rows of lengths {[len(r) for r in weights]}"
            )
        self._weights = [[float(w) for w in row] for row in weights]
        self._rows = [DiscreteDistribution(row) for row in self._weights]

    @classmethod
    def default(cls) -> "TransitionMatrix":
        return cls()

    @classmethod
    def from_weights(cls, weights: Sequence[Sequence[float]]) -> "TransitionMatrix":
        return cls(weights)

    @property
    def weights(self) -> List[List[float]]:
        return [list(row) for row in self._weights]

    def row(self, base: Nuc) -> DiscreteDistribution:
        if base == Nuc.N:
            raise InvalidBaseError("N has no transition row")
        return self._rows[int(base)]

    def sample(self, base: Nuc, rng: RandomSource) -> Nuc:
        """Draw the replacement for ``base``."""
        return Nuc(self.row(base).sample(rng))

    def to_dict(self) -> dict:
        return {"weights": self.weights}

    @classmethod
    def from_dict(cls, d: dict) -> "TransitionMatrix":
        try:
            return cls(d["weights"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ModelFormatError(f"Malformed transition matrix: {exc}") from exc

    def __eq__(self, other) -> bool:
        if not isinstance(other, TransitionMatrix):
            return NotImplemented
        return self._weights == other._weights

    def __repr__(self) -> str:
        return f"TransitionMatrix({self._weights})"
