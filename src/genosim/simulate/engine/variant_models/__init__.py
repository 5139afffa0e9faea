"""
Variant statistical models

Decide what a mutation looks like: which base an SNP produces, how long an
indel is and what it inserts, and whether the variant is homozygous.
"""

from .indel import IndelModel
from .mutation import MutationClass, MutationModel
from .snp import CONTEXT_KEYS, SnpModel, context_name
from .transition import DEFAULT_TRANSITION_WEIGHTS, TransitionMatrix

__all__ = [
    'CONTEXT_KEYS',
    'DEFAULT_TRANSITION_WEIGHTS',
    'IndelModel',
    'MutationClass',
    'MutationModel',
    'SnpModel',
    'TransitionMatrix',
    'context_name',
]
