"""
2-bit packed sequence storage

Four bases per byte plus a bit-packed N mask. The engine works on plain
Nuc code arrays; ``as_nuc_array`` lets any supported container stand in.
"""

from typing import Iterator, Sequence, Union

import numpy as np

from .models import Nuc
from .seq_utils import NUC_DTYPE, string_to_nucs, to_nuc_array


class PackedSequence:
    """Read-only DNA sequence packed at 2 bits per base."""

    def __init__(self, packed: np.ndarray, n_mask: np.ndarray, length: int):
        self._packed = packed
        self._n_mask = n_mask
        self._length = length

    @classmethod
    def from_array(cls, nucs: Sequence[int]) -> "PackedSequence":
        arr = to_nuc_array(nucs)
        length = len(arr)
        is_n = arr == Nuc.N.value
        codes = np.where(is_n, 0, arr).astype(NUC_DTYPE)

        padded = np.zeros(((length + 3) // 4) * 4, dtype=NUC_DTYPE)
        padded[:length] = codes
        quads = padded.reshape(-1, 4)
        packed = (quads[:, 0] << 6) | (quads[:, 1] << 4) | (quads[:, 2] << 2) | quads[:, 3]
        return cls(packed.astype(NUC_DTYPE), np.packbits(is_n), length)

    @classmethod
    def from_string(cls, seq: str) -> "PackedSequence":
        return cls.from_array(string_to_nucs(seq))

    @property
    def nbytes(self) -> int:
        return int(self._packed.nbytes + self._n_mask.nbytes)

    def __len__(self) -> int:
        return self._length

    def to_array(self) -> np.ndarray:
        """Unpack to a Nuc code array."""
        shifts = np.array([6, 4, 2, 0], dtype=NUC_DTYPE)
        codes = ((self._packed[:, None] >> shifts) & 0b11).reshape(-1)[:self._length]
        is_n = np.unpackbits(self._n_mask)[:self._length].astype(bool)
        out = codes.astype(NUC_DTYPE)
        out[is_n] = Nuc.N.value
        return out

    def _base_at(self, index: int) -> Nuc:
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError(f"Index {index} out of range for length {self._length}")
        if (self._n_mask[index // 8] >> (7 - index % 8)) & 1:
            return Nuc.N
        shift = 6 - 2 * (index % 4)
        return Nuc(int(self._packed[index // 4] >> shift) & 0b11)

    def __getitem__(self, key: Union[int, slice]):
        if isinstance(key, slice):
            return self.to_array()[key]
        return self._base_at(int(key))

    def __iter__(self) -> Iterator[Nuc]:
        for code in self.to_array():
            yield Nuc(int(code))

    def __eq__(self, other) -> bool:
        if isinstance(other, PackedSequence):
            return self._length == other._length and np.array_equal(self.to_array(), other.to_array())
        return NotImplemented

    def __repr__(self) -> str:
        return f"PackedSequence(length={self._length})"


def as_nuc_array(sequence) -> np.ndarray:
    """Accept a PackedSequence, numpy array, string or iterable of Nuc."""
    if isinstance(sequence, PackedSequence):
        return sequence.to_array()
    return to_nuc_array(sequence)
