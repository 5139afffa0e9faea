"""
Sequence utility functions

Sequences are handled as numpy uint8 arrays of Nuc codes inside the engine
and converted to strings only at the I/O boundary.
"""

from typing import Iterable, Sequence

import numpy as np

from .models import Nuc

NUC_DTYPE = np.uint8

# ASCII byte -> Nuc code, everything outside ACGTacgt becomes N
_ENCODE_TABLE = np.full(256, Nuc.N.value, dtype=NUC_DTYPE)
for _char, _code in (("A", 0), ("C", 1), ("G", 2), ("T", 3)):
    _ENCODE_TABLE[ord(_char)] = _code
    _ENCODE_TABLE[ord(_char.lower())] = _code

_DECODE_TABLE = np.frombuffer(b"ACGTN", dtype=NUC_DTYPE)
_COMPLEMENT_TABLE = np.array([3, 2, 1, 0, 4], dtype=NUC_DTYPE)


def string_to_nucs(seq: str) -> np.ndarray:
    """Encode a DNA string as an array of Nuc codes."""
    raw = np.frombuffer(seq.encode("ascii", errors="replace"), dtype=np.uint8)
    return _ENCODE_TABLE[raw]


def nucs_to_string(nucs: Sequence[int]) -> str:
    """Decode Nuc codes back to an uppercase string."""
    arr = np.asarray(nucs, dtype=NUC_DTYPE)
    if arr.size == 0:
        return ""
    if arr.max() > Nuc.N.value:
        raise ValueError(f"Invalid nucleotide code {int(arr.max())}")
    return _DECODE_TABLE[arr].tobytes().decode("ascii")


def to_nuc_array(bases: Iterable) -> np.ndarray:
    """Coerce Nuc values, ints or a string into a Nuc code array."""
    if isinstance(bases, str):
        return string_to_nucs(bases)
    if isinstance(bases, np.ndarray):
        return bases.astype(NUC_DTYPE, copy=False)
    return np.fromiter((int(b) for b in bases), dtype=NUC_DTYPE)


def complement(nucs: np.ndarray) -> np.ndarray:
    return _COMPLEMENT_TABLE[np.asarray(nucs, dtype=NUC_DTYPE)]


def reverse_complement(nucs: np.ndarray) -> np.ndarray:
    """Reverse complement of a Nuc code array; N stays N."""
    return complement(nucs)[::-1]


def reverse_complement_string(seq: str) -> str:
    """Reverse complement of a DNA string; non-ACGT characters become N."""
    return nucs_to_string(reverse_complement(string_to_nucs(seq)))


def quality_string(scores: Iterable[int], offset: int = 33) -> str:
    """Phred+33 encoding of integer quality scores."""
    return "".join(chr(int(q) + offset) for q in scores)
