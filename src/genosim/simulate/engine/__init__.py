"""
Mutation and read simulation engine.

Mutates reference contigs with SNPs and indels drawn from statistical
models, then samples reads with Markov-chain quality scores and
sequencing errors.
"""

from .config import SimConfig, get_default_config
from .distributions import DiscreteDistribution, NormalDistribution
from .errors import (
    GenosimError,
    InvalidBaseError,
    InvalidVariantError,
    InvalidWeightsError,
    MismatchedWeightsError,
    ModelFormatError,
    ReadLongerThanSequenceError,
)
from .io_utils import parse_fasta, write_fasta, write_fastq, write_paired_fastq
from .models import ContigResult, Nuc, SimulatedRead, Variant, VariantType
from .mutate import apply_mutations, generate_variants, mutate_contig
from .quality import QualityScoreModel
from .rng import AleaRng, PhiloxRng, RandomSource, make_rng
from .variant_models import IndelModel, MutationModel, SnpModel, TransitionMatrix

__all__ = [
    'SimConfig',
    'get_default_config',
    'DiscreteDistribution',
    'NormalDistribution',
    'GenosimError',
    'InvalidBaseError',
    'InvalidVariantError',
    'InvalidWeightsError',
    'MismatchedWeightsError',
    'ModelFormatError',
    'ReadLongerThanSequenceError',
    'parse_fasta',
    'write_fasta',
    'write_fastq',
    'write_paired_fastq',
    'ContigResult',
    'Nuc',
    'SimulatedRead',
    'Variant',
    'VariantType',
    'apply_mutations',
    'generate_variants',
    'mutate_contig',
    'QualityScoreModel',
    'AleaRng',
    'PhiloxRng',
    'RandomSource',
    'make_rng',
    'IndelModel',
    'MutationModel',
    'SnpModel',
    'TransitionMatrix',
]
