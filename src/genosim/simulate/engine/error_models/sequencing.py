"""
Quality-aware sequencing error model

- Error probability per base follows its quality score: p = 10^(-q/10)
- Most errors are substitutions drawn from a base-error transition matrix
- A small fraction are short indels; the read keeps its length by reading
  into the downstream context
- N bases are never altered
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..distributions import DiscreteDistribution
from ..errors import InvalidWeightsError
from ..models import CONCRETE_BASES, Nuc
from ..rng import RandomSource
from ..seq_utils import NUC_DTYPE
from ..variant_models import TransitionMatrix
from .base import BaseErrorModel

DEFAULT_ERROR_TRANSITIONS = [
    [0.0, 0.4918, 0.3377, 0.1705],
    [0.5238, 0.0, 0.2661, 0.2101],
    [0.3754, 0.2355, 0.0, 0.389],
    [0.2505, 0.2552, 0.4942, 0.0],
]
DEFAULT_INDEL_LENGTHS = [-2, -1, 1, 2]
DEFAULT_INDEL_WEIGHTS = [0.001, 0.999, 0.999, 0.001]
DEFAULT_INDEL_FRACTION = 0.05


def error_probability(quality: int) -> float:
    """Phred quality to error probability."""
    return 10.0 ** (-quality / 10.0)


class SequencingErrorModel(BaseErrorModel):
    """Substitution and short indel errors driven by quality scores"""

    def __init__(
        self,
        transition_weights: Optional[Sequence[Sequence[float]]] = None,
        indel_fraction: float = DEFAULT_INDEL_FRACTION,
        indel_lengths: Optional[Sequence[int]] = None,
        indel_weights: Optional[Sequence[float]] = None,
        insertion_bias: Optional[Sequence[float]] = None
    ):
        """
        Args:
            transition_weights: 4x4 substitution weights for erroneous bases
            indel_fraction: share of errors that are indels rather than substitutions
            indel_lengths: signed indel sizes (positive inserts, negative deletes)
            indel_weights: weights for indel_lengths
            insertion_bias: A/C/G/T weights for inserted bases (uniform if None)
        """
        if not 0.0 <= indel_fraction <= 1.0:
            raise ValueError(f"indel_fraction must be within [0, 1], got {indel_fraction}")
        self.transition_matrix = TransitionMatrix(
            DEFAULT_ERROR_TRANSITIONS if transition_weights is None else transition_weights
        )
        self.indel_fraction = indel_fraction
        if indel_lengths is None:
            indel_lengths = DEFAULT_INDEL_LENGTHS
        self.indel_lengths: List[int] = [int(n) for n in indel_lengths]
        weights = DEFAULT_INDEL_WEIGHTS if indel_weights is None else indel_weights
        if len(weights) != len(self.indel_lengths) or 0 in self.indel_lengths:
            raise InvalidWeightsError(
                f"Indel lengths {self.indel_lengths} must be non-zero and match weights {list(weights)}"
            )
        self._indel_dist = DiscreteDistribution(weights)
        self._insertion_bias = DiscreteDistribution(
            [1.0, 1.0, 1.0, 1.0] if insertion_bias is None else insertion_bias
        )
        self.trailing_context = max(0, -min(self.indel_lengths)) * 4

    @property
    def name(self) -> str:
        return "sequencing"

    def _insert_bases(self, length: int, rng: RandomSource) -> List[int]:
        return [int(CONCRETE_BASES[self._insertion_bias.sample(rng)]) for _ in range(length)]

    def apply(
        self,
        window: np.ndarray,
        qualities: Sequence[int],
        rng: RandomSource
    ) -> Tuple[np.ndarray, int]:
        read_length = len(qualities)
        out: List[int] = []
        cursor = 0
        errors = 0
        while len(out) < read_length and cursor < len(window):
            base = int(window[cursor])
            draw = rng.random()
            if base == Nuc.N or draw >= error_probability(qualities[len(out)]):
                out.append(base)
                cursor += 1
                continue

            errors += 1
            if self.indel_fraction > 0 and rng.gen_bool(self.indel_fraction):
                length = self.indel_lengths[self._indel_dist.sample(rng)]
                out.append(base)
                if length > 0:
                    out.extend(self._insert_bases(length, rng))
                    cursor += 1
                else:
                    cursor += 1 - length
            else:
                out.append(int(self.transition_matrix.sample(Nuc(base), rng)))
                cursor += 1

        if len(out) < read_length:
            out.extend([Nuc.N.value] * (read_length - len(out)))
        return np.asarray(out[:read_length], dtype=NUC_DTYPE), errors
