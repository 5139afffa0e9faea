"""End-to-end tests for the simulation runner."""

import os
import shutil
import tempfile

import pytest
import yaml

import genosim.simulate.runner as runner
from genosim.simulate import run_read_simulation
from genosim.simulate.engine.config import SimConfig
from genosim.simulate.engine.errors import InvalidBaseError
from genosim.simulate.engine.io_utils import iter_fastq, parse_fasta
from genosim.simulate.engine.rng import AleaRng
from genosim.simulate.engine.seq_utils import nucs_to_string


def random_dna(length, seed):
    rng = AleaRng([seed])
    return "".join("ACGT"[rng.range_int(0, 4)] for _ in range(length))


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp = tempfile.mkdtemp()
    yield temp
    shutil.rmtree(temp)


@pytest.fixture
def reference(temp_dir):
    """Two contigs long enough for reads plus one that is too short."""
    path = os.path.join(temp_dir, "ref.fa")
    with open(path, "w") as f:
        f.write(">chr1\n" + random_dna(2000, "chr1") + "\n")
        f.write(">chr2\n" + random_dna(1200, "chr2") + "\n")
        f.write(">tiny\nACGTACGTAC\n")
    return path


def make_config(reference, out_dir, **extra):
    data = {
        "reference": reference,
        "output_dir": out_dir,
        "output_prefix": "sim",
        "read_len": 50,
        "coverage": 2,
        "mutation_rate": 0.01,
        "rng_seed": "runner test",
        "produce_fasta": True,
        "produce_vcf": True,
        "produce_truth_table": True,
    }
    data.update(extra)
    return SimConfig.from_dict(data)


@pytest.mark.slow
class TestRunSimulation:
    """Test the full mutate-then-sequence pipeline."""

    def test_outputs_written(self, reference, temp_dir):
        out_dir = os.path.join(temp_dir, "out")
        summary = runner.run_simulation(make_config(reference, out_dir))
        for kind in ("fasta", "vcf", "truth_table", "fastq", "config"):
            assert kind in summary.outputs
            assert os.path.exists(summary.outputs[kind])
        assert summary.contigs == 3
        assert summary.variants > 0
        assert summary.reads > 0

    def test_mutated_fasta_keeps_contigs(self, reference, temp_dir):
        out_dir = os.path.join(temp_dir, "out")
        summary = runner.run_simulation(make_config(reference, out_dir))
        mutated = parse_fasta(summary.outputs["fasta"])
        assert list(mutated) == ["chr1", "chr2", "tiny"]

    def test_short_contig_has_no_reads(self, reference, temp_dir):
        summary = runner.run_simulation(make_config(reference, os.path.join(temp_dir, "out")))
        assert summary.skipped_contigs == ["tiny"]
        assert summary.library.contigs_skipped == ["tiny"]
        assert list(iter_fastq(summary.outputs["fastq"]))

    def test_same_seed_same_reads(self, reference, temp_dir):
        a = runner.run_simulation(make_config(reference, os.path.join(temp_dir, "a")))
        b = runner.run_simulation(make_config(reference, os.path.join(temp_dir, "b")))
        with open(a.outputs["fastq"]) as fa, open(b.outputs["fastq"]) as fb:
            assert fa.read() == fb.read()
        with open(a.outputs["fasta"]) as fa, open(b.outputs["fasta"]) as fb:
            assert fa.read() == fb.read()

    def test_different_seed_different_reads(self, reference, temp_dir):
        a = runner.run_simulation(make_config(reference, os.path.join(temp_dir, "a")))
        b = runner.run_simulation(make_config(reference, os.path.join(temp_dir, "b"), rng_seed="other"))
        with open(a.outputs["fastq"]) as fa, open(b.outputs["fastq"]) as fb:
            assert fa.read() != fb.read()

    def test_failed_contig_passes_through(self, reference, temp_dir, monkeypatch):
        real_mutate = runner.mutate_contig

        def failing_mutate(name, sequence, model, ploidy, rng):
            if name == "chr2":
                raise InvalidBaseError("forced failure")
            return real_mutate(name, sequence, model, ploidy, rng)

        monkeypatch.setattr(runner, "mutate_contig", failing_mutate)
        summary = runner.run_simulation(make_config(reference, os.path.join(temp_dir, "out")))
        assert summary.failed_contigs == ["chr2"]
        mutated = parse_fasta(summary.outputs["fasta"])
        original = parse_fasta(reference)
        assert nucs_to_string(mutated["chr2"]) == nucs_to_string(original["chr2"])

    def test_existing_outputs(self, reference, temp_dir):
        out_dir = os.path.join(temp_dir, "out")
        runner.run_simulation(make_config(reference, out_dir))
        with pytest.raises(FileExistsError):
            runner.run_simulation(make_config(reference, out_dir))
        summary = runner.run_simulation(make_config(reference, out_dir, overwrite_output=True))
        assert summary.reads > 0

    def test_paired_end(self, reference, temp_dir):
        config = make_config(reference, os.path.join(temp_dir, "out"),
                             paired_ended=True, fragment_mean=150, fragment_st_dev=15)
        summary = runner.run_simulation(config)
        r1 = list(iter_fastq(summary.outputs["fastq_r1"]))
        r2 = list(iter_fastq(summary.outputs["fastq_r2"]))
        assert len(r1) == len(r2) > 0
        for (id1, _, _), (id2, _, _) in zip(r1, r2):
            assert id1[:-2] == id2[:-2]
        assert summary.library.total_pairs == len(r1)

    def test_compressed_outputs(self, reference, temp_dir):
        summary = runner.run_simulation(make_config(reference, os.path.join(temp_dir, "out"), compress=True))
        assert summary.outputs["fastq"].endswith(".fastq.gz")
        assert summary.outputs["fasta"].endswith(".fasta.gz")
        assert list(parse_fasta(summary.outputs["fasta"])) == ["chr1", "chr2", "tiny"]

    def test_unseeded_run_records_seed(self, reference, temp_dir):
        config = make_config(reference, os.path.join(temp_dir, "out"), rng_seed=None)
        summary = runner.run_simulation(config)
        assert summary.seed
        with open(summary.outputs["config"]) as f:
            saved = yaml.safe_load(f)
        assert saved["rng_seed"] == summary.seed

    def test_saved_config_replays_run(self, reference, temp_dir):
        first = runner.run_simulation(make_config(reference, os.path.join(temp_dir, "a"), rng_seed=None))
        replay = SimConfig.load(first.outputs["config"])
        replay.output.output_dir = os.path.join(temp_dir, "b")
        second = runner.run_simulation(replay)
        with open(first.outputs["fastq"]) as fa, open(second.outputs["fastq"]) as fb:
            assert fa.read() == fb.read()

    def test_missing_reference(self, temp_dir):
        config = make_config(os.path.join(temp_dir, "missing.fa"), temp_dir)
        with pytest.raises(FileNotFoundError):
            runner.run_simulation(config)

    def test_no_reference(self, temp_dir):
        with pytest.raises(ValueError):
            runner.run_simulation(SimConfig.from_dict({"output_dir": temp_dir}))


@pytest.mark.slow
class TestMutationOnly:
    """Test the mutate-only entry points."""

    def test_only_fasta_and_vcf(self, reference, temp_dir):
        out_dir = os.path.join(temp_dir, "out")
        summary = runner.run_mutation_only(make_config(reference, out_dir))
        assert set(summary.outputs) == {"fasta", "vcf", "config"}
        assert summary.reads == 0
        assert sorted(os.listdir(out_dir)) == ["sim.fasta", "sim.vcf", "sim_config.yaml"]

    def test_generated_seed_reaches_caller_config(self, reference, temp_dir):
        config = make_config(reference, os.path.join(temp_dir, "a"), rng_seed=None)
        summary = runner.run_mutation_only(config)
        assert config.rng_seed == summary.seed
        assert config.output.produce_fastq

        config.output.output_dir = os.path.join(temp_dir, "b")
        replay = runner.run_mutation_only(config)
        with open(summary.outputs["fasta"]) as fa, open(replay.outputs["fasta"]) as fb:
            assert fa.read() == fb.read()

    def test_run_read_simulation_overrides(self, reference, temp_dir):
        out_dir = os.path.join(temp_dir, "out")
        summary = run_read_simulation(
            reference=reference, output_dir=out_dir, output_prefix="kw",
            read_len=40, coverage=1, rng_seed="kw", produce_vcf=True, ploidy=None,
        )
        assert os.path.exists(os.path.join(out_dir, "kw.fastq"))
        assert os.path.exists(os.path.join(out_dir, "kw.vcf"))
        assert summary.reads > 0

    def test_run_read_simulation_config_file(self, reference, temp_dir):
        out_dir = os.path.join(temp_dir, "out")
        config_path = os.path.join(temp_dir, "run.yaml")
        make_config(reference, out_dir).to_yaml(config_path)
        summary = run_read_simulation(config_path, mutate_only=True, output_prefix="file")
        assert set(summary.outputs) == {"fasta", "vcf", "config"}
        assert os.path.exists(os.path.join(out_dir, "file.vcf"))

    def test_unknown_override(self):
        with pytest.raises(ValueError):
            runner.load_config(None, {"not_a_key": 1})


class TestRunnerHelpers:
    """Test pipeline helpers."""

    def test_planned_outputs(self):
        config = SimConfig.from_dict({"output_dir": "out", "output_prefix": "p",
                                      "produce_vcf": True, "compress": True})
        outputs = runner.planned_outputs(config)
        assert str(outputs["fastq"]) == os.path.join("out", "p.fastq.gz")
        assert str(outputs["vcf"]) == os.path.join("out", "p.vcf.gz")
        assert str(outputs["config"]) == os.path.join("out", "p_config.yaml")
        assert "fasta" not in outputs

    def test_shuffle_keeps_pairs(self):
        from genosim.simulate.engine.models import SimulatedRead
        reads = []
        for i in range(20):
            reads.append(SimulatedRead(f"r{i}/1", "c", 0, 1, "A", [30], True, 1))
            reads.append(SimulatedRead(f"r{i}/2", "c", 0, 1, "A", [30], True, 2))
        shuffled = runner.shuffle_reads(reads, True, AleaRng(["pairs"]))
        assert len(shuffled) == 40
        for r1, r2 in zip(shuffled[::2], shuffled[1::2]):
            assert r1.read_number == 1 and r2.read_number == 2
            assert r1.read_id[:-2] == r2.read_id[:-2]

    def test_mutation_model_file(self, temp_dir):
        import json
        from genosim.simulate.engine.variant_models import MutationModel
        path = os.path.join(temp_dir, "model.json")
        with open(path, "w") as f:
            json.dump(MutationModel(mutation_rate=0.05).to_dict(), f)
        config = SimConfig.from_dict({"mutation_model": path, "mutation_rate": 0.2})
        assert runner.build_mutation_model(config).mutation_rate == 0.05

    def test_mutation_model_bad_json(self, temp_dir):
        from genosim.simulate.engine.errors import ModelFormatError
        path = os.path.join(temp_dir, "model.json")
        with open(path, "w") as f:
            f.write("{")
        with pytest.raises(ModelFormatError):
            runner.build_mutation_model(SimConfig.from_dict({"mutation_model": path}))
