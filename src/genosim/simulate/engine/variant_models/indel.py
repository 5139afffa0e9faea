"""
Indel length model

Positive lengths are insertions, negative lengths deletions.
"""

from typing import Optional, Sequence, Tuple

from ..distributions import DiscreteDistribution
from ..errors import InvalidWeightsError, ModelFormatError
from ..models import CONCRETE_BASES, Nuc
from ..rng import RandomSource

DEFAULT_INSERTION_LENGTHS = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
DEFAULT_INSERTION_WEIGHTS = [10, 10, 20, 5, 5, 5, 5, 5, 5, 5]
DEFAULT_DELETION_LENGTHS = [1, 2, 3, 4, 5]
DEFAULT_DELETION_WEIGHTS = [3, 2, 2, 2, 1]


def _length_distribution(lengths: Sequence[int], weights: Sequence[float], label: str):
    if len(lengths) != len(weights):
        raise InvalidWeightsError(
            f"{label}: {len(lengths)} lengths but {len(weights)} weights"
        )
    if any(int(n) < 1 for n in lengths):
        raise InvalidWeightsError(f"{label}: lengths must be positive, got {list(lengths)}")
    return [int(n) for n in lengths], DiscreteDistribution(weights)


class IndelModel:
    """
    Args:
        insertion_probability: chance an indel is an insertion
        insertion_lengths / insertion_weights: candidate insertion sizes
        deletion_lengths / deletion_weights: candidate deletion sizes
        insertion_bias: optional A/C/G/T weights for inserted bases (uniform if None)
    """

    def __init__(
        self,
        insertion_probability: float = 0.6,
        insertion_lengths: Optional[Sequence[int]] = None,
        insertion_weights: Optional[Sequence[float]] = None,
        deletion_lengths: Optional[Sequence[int]] = None,
        deletion_weights: Optional[Sequence[float]] = None,
        insertion_bias: Optional[Sequence[float]] = None
    ):
        if not 0.0 <= insertion_probability <= 1.0:
            raise ValueError(f"insertion_probability must be within [0, 1], got {insertion_probability}")
        self.insertion_probability = insertion_probability

        if insertion_lengths is None:
            insertion_lengths = DEFAULT_INSERTION_LENGTHS
        if insertion_weights is None:
            insertion_weights = DEFAULT_INSERTION_WEIGHTS
        if deletion_lengths is None:
            deletion_lengths = DEFAULT_DELETION_LENGTHS
        if deletion_weights is None:
            deletion_weights = DEFAULT_DELETION_WEIGHTS
        self._ins_weights = list(insertion_weights)
        self._del_weights = list(deletion_weights)
        self.insertion_lengths, self._ins_dist = _length_distribution(
            insertion_lengths, self._ins_weights, "insertion"
        )
        self.deletion_lengths, self._del_dist = _length_distribution(
            deletion_lengths, self._del_weights, "deletion"
        )

        self._bias_weights = None
        self._bias = None
        if insertion_bias is not None:
            if len(insertion_bias) != 4:
                raise InvalidWeightsError(f"insertion_bias needs 4 weights, got {len(insertion_bias)}")
            self._bias_weights = [float(w) for w in insertion_bias]
            self._bias = DiscreteDistribution(self._bias_weights)

    @property
    def max_deletion(self) -> int:
        return max(self.deletion_lengths)

    def insertion_length(self, rng: RandomSource) -> int:
        return self.insertion_lengths[self._ins_dist.sample(rng)]

    def deletion_length(self, rng: RandomSource) -> int:
        return self.deletion_lengths[self._del_dist.sample(rng)]

    def generate_length(self, rng: RandomSource) -> int:
        if rng.gen_bool(self.insertion_probability):
            return self.insertion_length(rng)
        return -self.deletion_length(rng)

    def random_insertion(self, length: int, rng: RandomSource) -> Tuple[Nuc, ...]:
        """Inserted content; always concrete bases, never N."""
        if self._bias is not None:
            return tuple(CONCRETE_BASES[self._bias.sample(rng)] for _ in range(length))
        return tuple(CONCRETE_BASES[rng.range_int(0, 4)] for _ in range(length))

    def to_dict(self) -> dict:
        return {
            "insertion_probability": self.insertion_probability,
            "insertion_lengths": list(self.insertion_lengths),
            "insertion_weights": list(self._ins_weights),
            "deletion_lengths": list(self.deletion_lengths),
            "deletion_weights": list(self._del_weights),
            "insertion_bias": self._bias_weights,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "IndelModel":
        try:
            return cls(**d)
        except (TypeError, ValueError) as exc:
            raise ModelFormatError(f"Malformed indel model: {exc}") from exc

