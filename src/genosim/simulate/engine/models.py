"""
Core data structures

- Nuc: nucleotide encoding (A=0, C=1, G=2, T=3, N=4)
- Variant: one mutation event with its genotype
- SimulatedRead: a read ready for FASTQ output
- ContigResult: mutated contig plus its variant table
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidVariantError


# =============================================================================
# Nucleotides
# =============================================================================

class Nuc(IntEnum):
    """Nucleotide with its canonical integer code. N is always last."""
    A = 0
    C = 1
    G = 2
    T = 3
    N = 4

    @classmethod
    def from_char(cls, char: str) -> "Nuc":
        """Anything outside ACGT (either case) maps to N."""
        return _CHAR_TO_NUC.get(char, cls.N)

    @property
    def char(self) -> str:
        return "ACGTN"[self.value]

    @property
    def complement(self) -> "Nuc":
        if self is Nuc.N:
            return Nuc.N
        return Nuc(3 - self.value)


_CHAR_TO_NUC = {
    "A": Nuc.A, "C": Nuc.C, "G": Nuc.G, "T": Nuc.T,
    "a": Nuc.A, "c": Nuc.C, "g": Nuc.G, "t": Nuc.T,
}

# Bases a mutation or an insertion may produce
CONCRETE_BASES: Tuple[Nuc, ...] = (Nuc.A, Nuc.C, Nuc.G, Nuc.T)


def _as_nuc_tuple(bases: Iterable) -> Tuple[Nuc, ...]:
    result = []
    for base in bases:
        if isinstance(base, str):
            result.append(Nuc.from_char(base))
        else:
            result.append(Nuc(int(base)))
    return tuple(result)


# =============================================================================
# Variants
# =============================================================================

class VariantType(Enum):
    """Kind of mutation event"""
    SNP = "SNP"
    INSERTION = "Insertion"
    DELETION = "Deletion"


@dataclass(frozen=True)
class Variant:
    """
    One mutation event.

    Positions are not stored here; a variant table maps an original
    (pre-mutation) reference position to its Variant.

    Insertions carry the anchor base followed by the inserted content as
    the alternate allele. Deletions carry the anchor base followed by the
    deleted bases as the reference allele and the anchor alone as the
    alternate.
    """
    variant_type: VariantType
    reference: Tuple[Nuc, ...]
    alternate: Tuple[Nuc, ...]
    genotype: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "reference", _as_nuc_tuple(self.reference))
        object.__setattr__(self, "alternate", _as_nuc_tuple(self.alternate))
        object.__setattr__(self, "genotype", tuple(int(g) for g in self.genotype))
        self._validate()

    def _validate(self):
        ref_len = len(self.reference)
        alt_len = len(self.alternate)
        if ref_len == 0 or alt_len == 0:
            raise InvalidVariantError("Reference and alternate alleles must not be empty")
        if not self.genotype:
            raise InvalidVariantError("Genotype must have at least one ploidy slot")
        if any(g not in (0, 1) for g in self.genotype):
            raise InvalidVariantError(f"Genotype entries must be 0 or 1, got {self.genotype}")

        if self.variant_type == VariantType.SNP:
            if ref_len != alt_len:
                raise InvalidVariantError(
                    f"SNP alleles must have equal length (ref={ref_len}, alt={alt_len})"
                )
        elif ref_len == alt_len:
            raise InvalidVariantError(
                f"{self.variant_type.value} alleles must differ in length (both {ref_len})"
            )
        elif self.variant_type == VariantType.INSERTION and alt_len < ref_len:
            raise InvalidVariantError("Insertion must have the longer alternate allele")
        elif self.variant_type == VariantType.DELETION and ref_len < alt_len:
            raise InvalidVariantError("Deletion must have the longer reference allele")

    @classmethod
    def snp(cls, reference: Nuc, alternate: Nuc, genotype: Sequence[int]) -> "Variant":
        return cls(VariantType.SNP, (reference,), (alternate,), tuple(genotype))

    @classmethod
    def indel(
        cls,
        reference: Sequence,
        alternate: Sequence,
        genotype: Sequence[int]
    ) -> "Variant":
        """Build an insertion or a deletion, inferred from the allele lengths."""
        if len(alternate) > len(reference):
            variant_type = VariantType.INSERTION
        elif len(alternate) < len(reference):
            variant_type = VariantType.DELETION
        else:
            raise InvalidVariantError(
                f"Indel alleles must differ in length (both {len(reference)})"
            )
        return cls(variant_type, tuple(reference), tuple(alternate), tuple(genotype))

    @property
    def is_snp(self) -> bool:
        return self.variant_type == VariantType.SNP

    @property
    def is_insertion(self) -> bool:
        return self.variant_type == VariantType.INSERTION

    @property
    def is_deletion(self) -> bool:
        return self.variant_type == VariantType.DELETION

    @property
    def is_homozygous(self) -> bool:
        return all(g == 1 for g in self.genotype)

    @property
    def ploidy(self) -> int:
        return len(self.genotype)

    @property
    def length(self) -> int:
        """Bases changed: 1 for an SNP, inserted or deleted count for an indel."""
        if self.is_snp:
            return len(self.reference)
        return max(len(self.reference), len(self.alternate)) - 1

    @property
    def size_change(self) -> int:
        """Net change in sequence length when the variant is applied."""
        return len(self.alternate) - len(self.reference) if not self.is_snp else 0

    def contains(self, variant_position: int, query_position: int) -> bool:
        """Whether ``query_position`` falls in the reference span of this variant."""
        return variant_position <= query_position < variant_position + len(self.reference)

    @property
    def ref_string(self) -> str:
        return "".join(b.char for b in self.reference)

    @property
    def alt_string(self) -> str:
        return "".join(b.char for b in self.alternate)

    @property
    def genotype_string(self) -> str:
        return "/".join(str(g) for g in self.genotype)

    def to_dict(self) -> dict:
        return {
            "type": self.variant_type.value,
            "ref": self.ref_string,
            "alt": self.alt_string,
            "genotype": self.genotype_string,
            "homozygous": self.is_homozygous,
        }


# =============================================================================
# Reads
# =============================================================================

@dataclass
class SimulatedRead:
    """A simulated read with its per-base quality scores"""
    read_id: str
    contig: str
    start: int
    end: int
    sequence: str
    qualities: List[int] = field(default_factory=list)

    # Paired-end
    is_paired: bool = False
    read_number: int = 1           # 1 or 2
    is_reverse: bool = False
    errors_introduced: int = 0

    @property
    def quality_string(self) -> str:
        return "".join(chr(q + 33) for q in self.qualities)

    def to_fastq(self) -> str:
        qual = self.quality_string if self.qualities else "I" * len(self.sequence)
        return f"@{self.read_id}\n{self.sequence}\n+\n{qual}\n"


# =============================================================================
# Per-contig results
# =============================================================================

@dataclass
class ContigResult:
    """Outcome of the mutation stage for one contig"""
    name: str
    reference_length: int
    mutated: np.ndarray
    variants: Dict[int, Variant] = field(default_factory=dict)
    skipped_reason: Optional[str] = None

    @property
    def mutated_length(self) -> int:
        return len(self.mutated)

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None

    def count_by_type(self) -> Dict[str, int]:
        counts = {t.value: 0 for t in VariantType}
        for variant in self.variants.values():
            counts[variant.variant_type.value] += 1
        return counts
