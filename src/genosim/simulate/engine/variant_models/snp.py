"""
Trinucleotide-context SNP model

Sixteen context classes keyed on the (first, third) bases of a 3-base
window; the middle base is free, so each class covers four concrete
trinucleotides (ANA, ANC, ... TNT). Each class owns a TransitionMatrix.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from ..distributions import DiscreteDistribution
from ..errors import InvalidBaseError, InvalidWeightsError, ModelFormatError
from ..models import CONCRETE_BASES, Nuc
from ..rng import RandomSource
from .transition import TransitionMatrix

ContextKey = Tuple[Nuc, Nuc]

CONTEXT_KEYS: List[ContextKey] = [(first, third) for first in CONCRETE_BASES for third in CONCRETE_BASES]


def context_name(key: ContextKey) -> str:
    return f"{key[0].char}N{key[1].char}"


class SnpModel:
    """
    Args:
        trinuc_matrices: context class -> TransitionMatrix (default matrix for all)
        trinuc_bias: 16 weights over the context classes, in CONTEXT_KEYS order;
            kept for position biasing, never used to pick the new base
    """

    def __init__(
        self,
        trinuc_matrices: Optional[Dict[ContextKey, TransitionMatrix]] = None,
        trinuc_bias: Optional[Sequence[float]] = None
    ):
        if trinuc_matrices is None:
            default = TransitionMatrix.default()
            trinuc_matrices = {key: default for key in CONTEXT_KEYS}
        missing = [context_name(k) for k in CONTEXT_KEYS if k not in trinuc_matrices]
        if missing:
            raise ModelFormatError(f"SNP model is missing trinucleotide contexts: {missing}")
        self._matrices = {key: trinuc_matrices[key] for key in CONTEXT_KEYS}

        if trinuc_bias is None:
            trinuc_bias = [1.0] * len(CONTEXT_KEYS)
        if len(trinuc_bias) != len(CONTEXT_KEYS):
            raise InvalidWeightsError(
                f"Trinucleotide bias needs {len(CONTEXT_KEYS)} weights, got {len(trinuc_bias)}"
            )
        self._bias_weights = [float(w) for w in trinuc_bias]
        self.trinuc_bias = DiscreteDistribution(self._bias_weights)

    @staticmethod
    def context_index(first: Nuc, third: Nuc) -> int:
        if first == Nuc.N or third == Nuc.N:
            raise InvalidBaseError(
                f"Trinucleotide context {first.char}N{third.char} contains an unknown base"
            )
        return int(first) * 4 + int(third)

    def matrix_for(self, first: Nuc, third: Nuc) -> TransitionMatrix:
        return self._matrices[CONTEXT_KEYS[self.context_index(first, third)]]

    def sample_context(self, rng: RandomSource) -> ContextKey:
        return CONTEXT_KEYS[self.trinuc_bias.sample(rng)]

    def generate_snp(self, prev: Nuc, mid: Nuc, nxt: Nuc, rng: RandomSource) -> Nuc:
        """
        Replacement base for ``mid`` given its neighbours.

        Returns N unchanged when ``mid`` is N.

        Raises:
            InvalidBaseError: If ``prev`` or ``nxt`` is N
        """
        if mid == Nuc.N:
            return Nuc.N
        return self.matrix_for(prev, nxt).sample(mid, rng)

    def to_dict(self) -> dict:
        return {
            "trinuc_matrices": {
                context_name(key): matrix.weights for key, matrix in self._matrices.items()
            },
            "trinuc_bias": list(self._bias_weights),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SnpModel":
        try:
            matrices = None
            if "trinuc_matrices" in d:
                by_name = {context_name(k): k for k in CONTEXT_KEYS}
                matrices = {}
                for name, weights in d["trinuc_matrices"].items():
                    if name not in by_name:
                        raise ModelFormatError(f"Unknown trinucleotide context: {name}")
                    matrices[by_name[name]] = TransitionMatrix(weights)
            return cls(matrices, d.get("trinuc_bias"))
        except ModelFormatError:
            raise
        except (TypeError, AttributeError, ValueError) as exc:
            raise ModelFormatError(f"Malformed SNP model: {exc}") from exc
