"""Tests for the SNP, indel and transition models."""

import pytest

from genosim.simulate.engine.errors import InvalidBaseError, InvalidWeightsError, ModelFormatError
from genosim.simulate.engine.models import CONCRETE_BASES, Nuc
from genosim.simulate.engine.rng import AleaRng
from genosim.simulate.engine.variant_models import (
    CONTEXT_KEYS,
    DEFAULT_TRANSITION_WEIGHTS,
    IndelModel,
    MutationClass,
    MutationModel,
    SnpModel,
    TransitionMatrix,
    context_name,
)


class TestTransitionMatrix:
    """Test the 4x4 substitution matrix."""

    def test_default_weights(self):
        assert TransitionMatrix.default().weights == DEFAULT_TRANSITION_WEIGHTS

    def test_never_samples_zero_diagonal(self):
        matrix = TransitionMatrix.default()
        rng = AleaRng(["matrix"])
        for base in CONCRETE_BASES:
            for _ in range(300):
                assert matrix.sample(base, rng) != base

    def test_custom_weights(self):
        weights = [[0, 0, 0, 1]] * 4
        matrix = TransitionMatrix.from_weights(weights)
        rng = AleaRng(["custom"])
        assert all(matrix.sample(Nuc.A, rng) == Nuc.T for _ in range(20))

    def test_n_has_no_row(self):
        with pytest.raises(InvalidBaseError):
            TransitionMatrix.default().row(Nuc.N)

    @pytest.mark.parametrize("weights", [
        [[0, 1, 1, 1]] * 3,
        [[0, 1, 1]] * 4,
    ])
    def test_shape_checked(self, weights):
        with pytest.raises(InvalidWeightsError):
            TransitionMatrix(weights)

    def test_dict_round_trip(self):
        matrix = TransitionMatrix([[0, 1, 2, 3], [1, 0, 1, 1], [5, 5, 0, 5], [1, 2, 3, 0]])
        assert TransitionMatrix.from_dict(matrix.to_dict()) == matrix

    @pytest.mark.parametrize("data", [
        {},
        {"weights": [[1, 1, 1, 1]]},
        {"weights": 5},
        {"weights": [["x", 1, 1, 1], [1, 0, 1, 1], [1, 1, 0, 1], [1, 1, 1, 0]]},
        {"weights": [[0, 0, 0, 0], [1, 0, 1, 1], [1, 1, 0, 1], [1, 1, 1, 0]]},
    ])
    def test_from_dict_malformed(self, data):
        with pytest.raises(ModelFormatError):
            TransitionMatrix.from_dict(data)


class TestSnpModel:
    """Test trinucleotide-context substitutions."""

    def test_sixteen_contexts(self):
        assert len(CONTEXT_KEYS) == 16
        assert context_name(CONTEXT_KEYS[0]) == "ANA"
        assert context_name(CONTEXT_KEYS[-1]) == "TNT"

    def test_context_index(self):
        assert SnpModel.context_index(Nuc.A, Nuc.A) == 0
        assert SnpModel.context_index(Nuc.A, Nuc.C) == 1
        assert SnpModel.context_index(Nuc.T, Nuc.T) == 15

    def test_generate_snp_changes_base(self):
        model = SnpModel()
        rng = AleaRng(["snp"])
        for _ in range(200):
            assert model.generate_snp(Nuc.A, Nuc.C, Nuc.G, rng) in (Nuc.A, Nuc.G, Nuc.T)

    def test_middle_n_short_circuits(self):
        rng = AleaRng(["n"])
        reference = AleaRng(["n"])
        assert SnpModel().generate_snp(Nuc.A, Nuc.N, Nuc.G, rng) == Nuc.N
        assert rng.random() == reference.random()

    @pytest.mark.parametrize("prev,nxt", [(Nuc.N, Nuc.A), (Nuc.A, Nuc.N)])
    def test_context_n_is_error(self, prev, nxt):
        with pytest.raises(InvalidBaseError):
            SnpModel().generate_snp(prev, Nuc.C, nxt, AleaRng())

    def test_context_specific_matrix(self):
        always_t = TransitionMatrix([[0, 0, 0, 1]] * 4)
        matrices = {key: TransitionMatrix.default() for key in CONTEXT_KEYS}
        matrices[(Nuc.C, Nuc.G)] = always_t
        model = SnpModel(matrices)
        rng = AleaRng(["ctx"])
        assert all(model.generate_snp(Nuc.C, Nuc.A, Nuc.G, rng) == Nuc.T for _ in range(20))

    def test_sample_context(self):
        bias = [0.0] * 16
        bias[5] = 1.0
        model = SnpModel(trinuc_bias=bias)
        assert model.sample_context(AleaRng(["bias"])) == CONTEXT_KEYS[5]

    def test_bad_bias_length(self):
        with pytest.raises(InvalidWeightsError):
            SnpModel(trinuc_bias=[1.0] * 4)

    def test_dict_round_trip(self):
        model = SnpModel()
        assert SnpModel.from_dict(model.to_dict()).to_dict() == model.to_dict()

    def test_from_dict_missing_contexts(self):
        with pytest.raises(ModelFormatError):
            SnpModel.from_dict({"trinuc_matrices": {"ANA": DEFAULT_TRANSITION_WEIGHTS}})

    def test_from_dict_unknown_context(self):
        with pytest.raises(ModelFormatError):
            SnpModel.from_dict({"trinuc_matrices": {"XNX": DEFAULT_TRANSITION_WEIGHTS}})

    def test_from_dict_non_numeric_cell(self):
        data = SnpModel().to_dict()
        data["trinuc_matrices"]["ANA"][0][1] = "x"
        with pytest.raises(ModelFormatError):
            SnpModel.from_dict(data)


class TestIndelModel:
    """Test indel length and content generation."""

    def test_lengths_from_configured_sets(self):
        model = IndelModel()
        rng = AleaRng(["lengths"])
        for _ in range(500):
            length = model.generate_length(rng)
            if length > 0:
                assert length in model.insertion_lengths
            else:
                assert -length in model.deletion_lengths

    def test_insertion_probability_extremes(self):
        rng = AleaRng(["ext"])
        always_ins = IndelModel(insertion_probability=1.0)
        never_ins = IndelModel(insertion_probability=0.0)
        assert all(always_ins.generate_length(rng) > 0 for _ in range(100))
        assert all(never_ins.generate_length(rng) < 0 for _ in range(100))

    def test_insertion_never_n(self):
        """Inserted content is restricted to A/C/G/T."""
        rng = AleaRng(["Hello", "Cruel", "World"])
        bases = IndelModel().random_insertion(10, rng)
        assert len(bases) == 10
        assert Nuc.N not in bases
        assert all(int(b) != 4 for b in bases)

    def test_insertion_bias(self):
        model = IndelModel(insertion_bias=[0, 0, 1, 0])
        assert model.random_insertion(8, AleaRng(["bias"])) == (Nuc.G,) * 8

    def test_max_deletion(self):
        assert IndelModel().max_deletion == 5
        assert IndelModel(deletion_lengths=[2, 9], deletion_weights=[1, 1]).max_deletion == 9

    def test_mismatched_lengths(self):
        with pytest.raises(InvalidWeightsError):
            IndelModel(insertion_lengths=[1, 2], insertion_weights=[1])

    def test_non_positive_lengths(self):
        with pytest.raises(InvalidWeightsError):
            IndelModel(deletion_lengths=[0, 1], deletion_weights=[1, 1])

    def test_bad_probability(self):
        with pytest.raises(ValueError):
            IndelModel(insertion_probability=1.5)

    def test_dict_round_trip(self):
        model = IndelModel(insertion_probability=0.3, insertion_bias=[1, 2, 3, 4])
        assert IndelModel.from_dict(model.to_dict()).to_dict() == model.to_dict()

    def test_from_dict_malformed(self):
        with pytest.raises(ModelFormatError):
            IndelModel.from_dict({"no_such_field": 1})

    @pytest.mark.parametrize("kwargs", [
        {"insertion_lengths": [], "insertion_weights": []},
        {"deletion_lengths": [], "deletion_weights": []},
        {"insertion_weights": []},
    ])
    def test_empty_lists_are_not_defaults(self, kwargs):
        with pytest.raises(InvalidWeightsError):
            IndelModel(**kwargs)


class TestMutationModel:
    """Test genotype and mutation class selection."""

    def test_homozygous(self):
        model = MutationModel(homozygous_frequency=1.0)
        assert model.generate_genotype(3, AleaRng()) == (1, 1, 1)

    @pytest.mark.parametrize("ploidy,expected", [
        (1, (0,)),
        (2, (1, 0)),
        (3, (1, 0, 0)),
        (4, (1, 1, 0, 0)),
    ])
    def test_heterozygous_first_half(self, ploidy, expected):
        model = MutationModel(homozygous_frequency=0.0)
        assert model.generate_genotype(ploidy, AleaRng(["het"])) == expected

    def test_bad_ploidy(self):
        with pytest.raises(ValueError):
            MutationModel().generate_genotype(0, AleaRng())

    def test_snp_only(self):
        model = MutationModel(indel_weight=0)
        rng = AleaRng(["class"])
        assert all(model.choose_mutation_class(rng) == MutationClass.SNP for _ in range(100))

    def test_class_ratio(self):
        model = MutationModel()
        rng = AleaRng(["ratio"])
        n = 10000
        indels = sum(model.choose_mutation_class(rng) == MutationClass.INDEL for _ in range(n))
        assert abs(indels / n - 0.05) < 0.01

    @pytest.mark.parametrize("kwargs", [
        {"mutation_rate": 1.5},
        {"homozygous_frequency": -0.1},
        {"minimum_mutations": -1},
    ])
    def test_bad_parameters(self, kwargs):
        with pytest.raises(ValueError):
            MutationModel(**kwargs)

    def test_dict_round_trip(self):
        model = MutationModel(mutation_rate=0.02, minimum_mutations=3,
                              indel_model=IndelModel(insertion_probability=0.4))
        restored = MutationModel.from_dict(model.to_dict())
        assert restored.to_dict() == model.to_dict()

    @pytest.mark.parametrize("data", [
        {"mutation_rate": 0.01, "bogus": True},
        {"mutation_rate": 2.0},
        {"homozygous_frequency": -1},
        {"snp_weight": "abc"},
        {"snp_weight": 0, "indel_weight": 0},
        {"indel_model": {"insertion_lengths": [], "insertion_weights": []}},
        None,
    ])
    def test_from_dict_malformed(self, data):
        with pytest.raises(ModelFormatError):
            MutationModel.from_dict(data)

    def test_nested_error_message_not_rewrapped(self):
        with pytest.raises(ModelFormatError, match="^Malformed SNP model"):
            MutationModel.from_dict({"snp_model": {"trinuc_bias": [0.0] * 16}})
