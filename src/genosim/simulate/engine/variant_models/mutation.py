"""
Aggregate mutation model

Holds the per-run mutation parameters and the statistical sub-models. It
is read-only after construction; the random source is passed to every
call instead of being stored.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

from ..distributions import DiscreteDistribution
from ..errors import ModelFormatError
from ..rng import RandomSource
from .indel import IndelModel
from .snp import SnpModel
from .transition import TransitionMatrix

logger = logging.getLogger(__name__)


class MutationClass(Enum):
    """First-level choice made for every mutation"""
    SNP = "snp"
    INDEL = "indel"


class MutationModel:
    """
    Args:
        mutation_rate: expected mutations per base
        homozygous_frequency: chance a variant is homozygous
        snp_weight / indel_weight: relative odds of SNP vs indel (19:1)
        snp_model: trinucleotide context model
        indel_model: indel length model
        transition_matrix: context-free substitutions, used where no
            trinucleotide context exists (contig edges, next to N)
        minimum_mutations: floor on the per-contig mutation count
    """

    def __init__(
        self,
        mutation_rate: float = 0.001,
        homozygous_frequency: float = 0.01,
        snp_weight: float = 19.0,
        indel_weight: float = 1.0,
        snp_model: Optional[SnpModel] = None,
        indel_model: Optional[IndelModel] = None,
        transition_matrix: Optional[TransitionMatrix] = None,
        minimum_mutations: int = 1
    ):
        if not 0.0 <= mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be within [0, 1], got {mutation_rate}")
        if not 0.0 <= homozygous_frequency <= 1.0:
            raise ValueError(f"homozygous_frequency must be within [0, 1], got {homozygous_frequency}")
        if minimum_mutations < 0:
            raise ValueError(f"minimum_mutations must be >= 0, got {minimum_mutations}")

        self.mutation_rate = mutation_rate
        self.homozygous_frequency = homozygous_frequency
        self.snp_weight = float(snp_weight)
        self.indel_weight = float(indel_weight)
        self.minimum_mutations = minimum_mutations
        self.snp_model = snp_model if snp_model is not None else SnpModel()
        self.indel_model = indel_model if indel_model is not None else IndelModel()
        self.transition_matrix = (
            transition_matrix if transition_matrix is not None else TransitionMatrix.default()
        )
        self._class_dist = DiscreteDistribution([self.snp_weight, self.indel_weight])

    def generate_genotype(self, ploidy: int, rng: RandomSource) -> Tuple[int, ...]:
        """
        Homozygous: every slot carries the alternate. Heterozygous: the first
        ``ploidy // 2`` slots carry it and the rest are reference.
        """
        if ploidy < 1:
            raise ValueError(f"ploidy must be >= 1, got {ploidy}")
        if rng.gen_bool(self.homozygous_frequency):
            return (1,) * ploidy
        carriers = ploidy // 2
        return (1,) * carriers + (0,) * (ploidy - carriers)

    def choose_mutation_class(self, rng: RandomSource) -> MutationClass:
        if self._class_dist.sample(rng) == 0:
            return MutationClass.SNP
        return MutationClass.INDEL

    def to_dict(self) -> dict:
        return {
            "mutation_rate": self.mutation_rate,
            "homozygous_frequency": self.homozygous_frequency,
            "snp_weight": self.snp_weight,
            "indel_weight": self.indel_weight,
            "minimum_mutations": self.minimum_mutations,
            "snp_model": self.snp_model.to_dict(),
            "indel_model": self.indel_model.to_dict(),
            "transition_matrix": self.transition_matrix.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "MutationModel":
        try:
            params = dict(d)
            if "snp_model" in params:
                params["snp_model"] = SnpModel.from_dict(params["snp_model"])
            if "indel_model" in params:
                params["indel_model"] = IndelModel.from_dict(params["indel_model"])
            if "transition_matrix" in params:
                params["transition_matrix"] = TransitionMatrix.from_dict(params["transition_matrix"])
            return cls(**params)
        except ModelFormatError:
            raise
        except (TypeError, ValueError) as exc:
            raise ModelFormatError(f"Malformed mutation model: {exc}") from exc
