"""
Mutation engine

- Choose how many mutations a contig receives and where they go
- Build one Variant per site from the statistical models
- Rewrite the reference into the mutated sequence

Variant tables are keyed by positions in the original (pre-mutation)
reference coordinates.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from .distributions import DiscreteDistribution
from .errors import InvalidBaseError, MismatchedWeightsError
from .models import ContigResult, Nuc, Variant, VariantType
from .rng import RandomSource
from .seq_utils import NUC_DTYPE, to_nuc_array
from .storage import as_nuc_array
from .variant_models import MutationClass, MutationModel

logger = logging.getLogger(__name__)

# Largest relative jitter applied to the expected mutation count
COUNT_JITTER = 0.10
# Chance the jitter lowers rather than raises the count
NEGATIVE_JITTER_PROBABILITY = 0.25
# Redraws allowed when a site was already used
MAX_SITE_RETRIES = 10


# =============================================================================
# Site selection
# =============================================================================

def target_mutation_count(
    sequence_length: int,
    mutation_rate: float,
    rng: RandomSource,
    minimum_mutations: int = 1
) -> int:
    """
    Number of mutations to place on a block.

    ``sequence_length * mutation_rate``, jittered by up to 10% (downward with
    probability 0.25), rounded, then raised to ``minimum_mutations``. A rate
    of zero disables mutation entirely.
    """
    if mutation_rate <= 0:
        return 0
    expected = sequence_length * mutation_rate
    factor = rng.random() * COUNT_JITTER
    sign = -1.0 if rng.gen_bool(NEGATIVE_JITTER_PROBABILITY) else 1.0
    count = int(math.floor(expected + sign * expected * factor + 0.5))
    return max(count, minimum_mutations)


def select_mutation_sites(
    sequence,
    count: int,
    rng: RandomSource,
    weights: Optional[Sequence[float]] = None
) -> List[int]:
    """
    Draw mutation positions.

    Args:
        sequence: reference bases (any sequence of Nuc)
        count: number of sites wanted
        rng: random source
        weights: optional per-position weights, same length as sequence

    Returns:
        Positions in draw order. N positions are never chosen. Repeats are
        avoided by redrawing; a repeat can survive only after
        MAX_SITE_RETRIES redraws.

    Raises:
        MismatchedWeightsError: If weights and sequence lengths differ
    """
    arr = as_nuc_array(sequence)
    known = arr != Nuc.N.value
    if weights is None:
        site_weights = known.astype(float)
    else:
        site_weights = np.asarray(weights, dtype=float)
        if site_weights.shape != (len(arr),):
            raise MismatchedWeightsError(
                f"Region weights length {site_weights.size} does not match sequence length {len(arr)}"
            )
        site_weights = np.where(known, site_weights, 0.0)

    if count <= 0:
        return []
    eligible = int(np.count_nonzero(site_weights > 0))
    if eligible == 0:
        logger.warning("No eligible (non-N, positively weighted) positions; no mutations placed")
        return []
    if count > eligible:
        logger.warning(f"Requested {count} mutations but only {eligible} eligible positions; clamping")
        count = eligible

    dist = DiscreteDistribution(site_weights)

    chosen = set()
    positions = []
    for _ in range(count):
        position = dist.sample(rng)
        retries = 0
        while position in chosen and retries < MAX_SITE_RETRIES:
            position = dist.sample(rng)
            retries += 1
        chosen.add(position)
        positions.append(position)
    return positions


# =============================================================================
# Variant generation
# =============================================================================

def _substitute(reference: np.ndarray, location: int, model: MutationModel, rng: RandomSource) -> Nuc:
    mid = Nuc(int(reference[location]))
    if 0 < location < len(reference) - 1:
        prev = Nuc(int(reference[location - 1]))
        nxt = Nuc(int(reference[location + 1]))
        if prev != Nuc.N and nxt != Nuc.N:
            return model.snp_model.generate_snp(prev, mid, nxt, rng)
    logger.debug(f"No trinucleotide context at {location}; using context-free transitions")
    return model.transition_matrix.sample(mid, rng)


def generate_variant(
    reference,
    location: int,
    ploidy: int,
    model: MutationModel,
    rng: RandomSource
) -> Variant:
    """
    Build the variant for one site.

    Draw order: genotype, SNP/indel class, then the allele content.
    Deletions are clamped to the bases left in the sequence and fall back
    to an SNP at the last base.

    Raises:
        InvalidBaseError: If the site itself is N
    """
    arr = as_nuc_array(reference)
    if not 0 <= location < len(arr):
        raise IndexError(f"Mutation site {location} outside sequence of length {len(arr)}")
    anchor = Nuc(int(arr[location]))
    if anchor == Nuc.N:
        raise InvalidBaseError(f"Cannot mutate an N base (position {location})")

    genotype = model.generate_genotype(ploidy, rng)

    if model.choose_mutation_class(rng) == MutationClass.INDEL:
        length = model.indel_model.generate_length(rng)
        if length > 0:
            inserted = model.indel_model.random_insertion(length, rng)
            return Variant(VariantType.INSERTION, (anchor,), (anchor,) + inserted, genotype)

        span = min(-length, len(arr) - location - 1)
        if span > 0:
            deleted = tuple(Nuc(int(b)) for b in arr[location:location + span + 1])
            return Variant(VariantType.DELETION, deleted, (anchor,), genotype)
        logger.debug(f"No room for a deletion at {location}; placing an SNP")

    return Variant.snp(anchor, _substitute(arr, location, model, rng), genotype)


def prune_overlapping(variants: Dict[int, Variant]) -> Dict[int, Variant]:
    """
    Drop variants that start inside an earlier deletion.

    Such variants are never reached when applying mutations, so keeping
    them would only put unreachable records in the truth set.
    """
    kept: Dict[int, Variant] = {}
    blocked_until = 0
    dropped = 0
    for position in sorted(variants):
        if position < blocked_until:
            dropped += 1
            continue
        variant = variants[position]
        kept[position] = variant
        blocked_until = position + len(variant.reference)
    if dropped:
        logger.debug(f"Dropped {dropped} variants overlapping deletions")
    return kept


def generate_variants(
    reference,
    model: MutationModel,
    ploidy: int,
    rng: RandomSource,
    weights: Optional[Sequence[float]] = None
) -> Dict[int, Variant]:
    """
    Variant table for one contig.

    Args:
        reference: reference bases
        model: mutation model
        ploidy: genotype length
        rng: random source
        weights: optional per-position site weights

    Returns:
        position -> Variant, sorted by position. Sites drawn twice keep the
        variant generated last.
    """
    arr = as_nuc_array(reference)
    if weights is not None and len(weights) != len(arr):
        raise MismatchedWeightsError(
            f"Region weights length {len(weights)} does not match sequence length {len(arr)}"
        )
    count = target_mutation_count(len(arr), model.mutation_rate, rng, model.minimum_mutations)
    if count <= 0:
        return {}

    variants: Dict[int, Variant] = {}
    for location in select_mutation_sites(arr, count, rng, weights):
        variants[location] = generate_variant(arr, location, ploidy, model, rng)
    return prune_overlapping(variants)


# =============================================================================
# Applying variants
# =============================================================================

def apply_mutations(reference, mutations: Dict[int, Variant]) -> np.ndarray:
    """
    Rewrite a reference with its variant table.

    Walks the reference left to right. An SNP emits its alternate; an
    insertion emits the anchor plus inserted bases and consumes one
    reference base; a deletion emits the anchor and skips the rest of its
    reference allele. Variants starting inside a skipped span are ignored.

    Returns:
        Mutated sequence as a Nuc code array
    """
    arr = as_nuc_array(reference)
    chunks = []
    cursor = 0
    for position in sorted(mutations):
        if position < cursor:
            continue
        if not 0 <= position < len(arr):
            raise IndexError(f"Variant position {position} outside sequence of length {len(arr)}")
        variant = mutations[position]
        chunks.append(arr[cursor:position])
        if variant.variant_type == VariantType.DELETION:
            chunks.append(arr[position:position + 1])
            cursor = position + len(variant.reference)
        else:
            chunks.append(to_nuc_array(variant.alternate))
            # SNPs consume their own length, insertions only the anchor
            cursor = position + (len(variant.reference) if variant.is_snp else 1)
    chunks.append(arr[cursor:])
    return np.concatenate(chunks).astype(NUC_DTYPE, copy=False)


def mutate_contig(
    name: str,
    reference,
    model: MutationModel,
    ploidy: int,
    rng: RandomSource,
    weights: Optional[Sequence[float]] = None
) -> ContigResult:
    """Generate and apply variants for one contig."""
    arr = as_nuc_array(reference)
    variants = generate_variants(arr, model, ploidy, rng, weights)
    mutated = apply_mutations(arr, variants)
    result = ContigResult(
        name=name,
        reference_length=len(arr),
        mutated=mutated,
        variants=variants,
    )
    counts = result.count_by_type()
    logger.info(
        f"{name}: {len(variants)} variants "
        f"(SNP={counts['SNP']}, ins={counts['Insertion']}, del={counts['Deletion']}), "
        f"length {len(arr)} -> {len(mutated)}"
    )
    return result
