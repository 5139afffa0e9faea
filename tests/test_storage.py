"""Tests for 2-bit packed sequence storage."""

import numpy as np
import pytest

from genosim.simulate.engine.models import Nuc
from genosim.simulate.engine.seq_utils import nucs_to_string, reverse_complement_string, string_to_nucs
from genosim.simulate.engine.storage import PackedSequence, as_nuc_array


class TestPackedSequence:
    """Test packing, unpacking and indexing."""

    def test_round_trip_with_n(self):
        seq = "ACGTNNACGTTGCAN"
        packed = PackedSequence.from_string(seq)
        assert len(packed) == len(seq)
        assert nucs_to_string(packed.to_array()) == seq

    def test_indexing(self):
        packed = PackedSequence.from_string("ACGTN")
        assert packed[0] == Nuc.A
        assert packed[3] == Nuc.T
        assert packed[4] == Nuc.N
        assert packed[-1] == Nuc.N
        assert packed[-5] == Nuc.A

    def test_slice(self):
        packed = PackedSequence.from_string("ACGTACGT")
        assert nucs_to_string(packed[2:6]) == "GTAC"

    @pytest.mark.parametrize("index", [5, -6])
    def test_index_out_of_range(self, index):
        with pytest.raises(IndexError):
            PackedSequence.from_string("ACGTN")[index]

    def test_iteration(self):
        assert list(PackedSequence.from_string("GAN")) == [Nuc.G, Nuc.A, Nuc.N]

    def test_equality(self):
        assert PackedSequence.from_string("ACGT") == PackedSequence.from_array(string_to_nucs("ACGT"))
        assert PackedSequence.from_string("ACGT") != PackedSequence.from_string("ACGA")
        assert PackedSequence.from_string("ACG") != PackedSequence.from_string("ACGA")

    def test_memory_footprint(self):
        """1000 bases take 250 bytes of codes plus 125 bytes of N mask."""
        packed = PackedSequence.from_string("ACGT" * 250)
        assert packed.nbytes == 375

    def test_empty(self):
        packed = PackedSequence.from_string("")
        assert len(packed) == 0
        assert packed.to_array().size == 0

    def test_as_nuc_array(self):
        expected = np.array([0, 1, 4], dtype=np.uint8)
        assert np.array_equal(as_nuc_array("ACN"), expected)
        assert np.array_equal(as_nuc_array(PackedSequence.from_string("ACN")), expected)
        assert np.array_equal(as_nuc_array([Nuc.A, Nuc.C, Nuc.N]), expected)


class TestNucEncoding:
    """Test nucleotide codes and string conversion."""

    def test_codes(self):
        assert [int(n) for n in (Nuc.A, Nuc.C, Nuc.G, Nuc.T, Nuc.N)] == [0, 1, 2, 3, 4]

    def test_from_char(self):
        assert Nuc.from_char("g") == Nuc.G
        assert Nuc.from_char("R") == Nuc.N

    def test_complement(self):
        assert [n.complement for n in (Nuc.A, Nuc.C, Nuc.G, Nuc.T, Nuc.N)] == [
            Nuc.T, Nuc.G, Nuc.C, Nuc.A, Nuc.N
        ]

    def test_reverse_complement_string(self):
        assert reverse_complement_string("AACGTN") == "NACGTT"

    def test_invalid_code(self):
        with pytest.raises(ValueError):
            nucs_to_string([0, 7])
