"""Tests for run configuration."""

import json
import logging
import os
import shutil
import tempfile

import pytest
import yaml

from genosim.simulate.engine.config import SimConfig, get_default_config


@pytest.fixture
def temp_dir():
    """Create a temporary directory for config files."""
    temp = tempfile.mkdtemp()
    yield temp
    shutil.rmtree(temp)


class TestSimConfigDefaults:
    """Test default values."""

    def test_defaults(self):
        config = get_default_config()
        assert config.reads.read_length == 150
        assert config.reads.coverage == 10
        assert not config.reads.paired_ended
        assert config.mutation.mutation_rate == 0.001
        assert config.mutation.ploidy == 2
        assert config.output.produce_fastq
        assert not config.output.produce_vcf
        assert config.rng_backend == "alea"
        assert config.rng_seed is None

    def test_defaults_validate(self):
        assert get_default_config().validate() == []


class TestSimConfigLoading:
    """Test dictionary and file loading."""

    def test_nested_dict(self):
        config = SimConfig.from_dict({
            "reads": {"read_length": 100, "coverage": 3},
            "mutation": {"ploidy": 4},
            "output": {"produce_vcf": True},
            "rng_seed": "a b",
        })
        assert config.reads.read_length == 100
        assert config.reads.coverage == 3
        assert config.mutation.ploidy == 4
        assert config.output.produce_vcf
        assert config.seed_list() == ["a", "b"]

    def test_flat_keys(self):
        config = SimConfig.from_dict({
            "read_len": 75,
            "mutation_rate": 0.01,
            "produce_fasta": True,
            "reference": "ref.fa",
        })
        assert config.reads.read_length == 75
        assert config.mutation.mutation_rate == 0.01
        assert config.output.produce_fasta
        assert config.reference == "ref.fa"

    def test_default_marker_keeps_default(self):
        config = SimConfig.from_dict({"read_len": ".", "reads": {"coverage": "."}})
        assert config.reads.read_length == 150
        assert config.reads.coverage == 10

    def test_ignored_key(self, caplog):
        caplog.set_level(logging.WARNING)
        config = SimConfig.from_dict({"produce_bam": True})
        assert config == SimConfig()
        assert "produce_bam" in caplog.text

    @pytest.mark.parametrize("data", [
        {"bogus": 1},
        {"reads": {"bogus": 1}},
        {"reads": 5},
    ])
    def test_unknown_or_malformed(self, data):
        with pytest.raises(ValueError):
            SimConfig.from_dict(data)

    def test_integer_seed_becomes_string(self):
        config = SimConfig.from_dict({"rng_seed": 1234})
        assert config.rng_seed == "1234"
        assert config.seed_list() == ["1234"]

    def test_empty(self):
        assert SimConfig.from_dict({}) == SimConfig()
        assert SimConfig.from_dict(None) == SimConfig()

    def test_yaml_round_trip(self, temp_dir):
        config = SimConfig.from_dict({"coverage": 7, "rng_seed": "x", "paired_ended": True,
                                      "fragment_mean": 300, "fragment_st_dev": 30})
        path = os.path.join(temp_dir, "config.yaml")
        config.to_yaml(path)
        assert SimConfig.load(path) == config
        with open(path) as f:
            assert yaml.safe_load(f)["reads"]["coverage"] == 7

    def test_json_round_trip(self, temp_dir):
        config = SimConfig.from_dict({"ploidy": 3, "compress": True})
        path = os.path.join(temp_dir, "config.json")
        config.to_json(path)
        assert SimConfig.load(path) == config
        with open(path) as f:
            assert json.load(f)["mutation"]["ploidy"] == 3

    def test_empty_yaml(self, temp_dir):
        path = os.path.join(temp_dir, "empty.yml")
        open(path, "w").close()
        assert SimConfig.load(path) == SimConfig()


class TestSimConfigValidation:
    """Test hard errors and soft warnings."""

    @pytest.mark.parametrize("data", [
        {"read_len": 0},
        {"coverage": 0},
        {"ploidy": 0},
        {"mutation_rate": 1.5},
        {"homozygous_frequency": -0.1},
        {"minimum_mutations": -1},
        {"rng_backend": "mt19937"},
        {"paired_ended": True},
        {"paired_ended": True, "fragment_mean": 300, "fragment_st_dev": 0},
    ])
    def test_hard_errors(self, data):
        with pytest.raises(ValueError):
            SimConfig.from_dict(data).validate()

    def test_short_fragment_warning(self):
        config = SimConfig.from_dict({"paired_ended": True, "fragment_mean": 100, "fragment_st_dev": 10})
        warnings = config.validate()
        assert any("fragment_mean" in w for w in warnings)

    def test_high_rate_warning(self):
        warnings = SimConfig.from_dict({"mutation_rate": 0.5}).validate()
        assert any("mutation_rate" in w for w in warnings)

    def test_no_outputs_warning(self):
        warnings = SimConfig.from_dict({"produce_fastq": False}).validate()
        assert any("No outputs" in w for w in warnings)

    def test_backend_case_insensitive(self):
        assert SimConfig.from_dict({"rng_backend": "PHILOX"}).validate() == []
