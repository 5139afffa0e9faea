"""
Run a full simulation: mutate a reference, then sequence it.

Pipeline:
1. Config validation and output checks
2. Reference loading and RNG seeding
3. Mutation of every contig, in FASTA order
4. Mutated FASTA, VCF and truth table output
5. Read generation, shuffling and FASTQ output
6. Effective config saved next to the outputs
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from genosim.utils.validation import check_output_paths, validate_file_exists

from .engine.config import FLAT_KEYS, SimConfig, get_default_config
from .engine.error_models import BaseErrorModel, get_error_model
from .engine.errors import GenosimError, ModelFormatError, ReadLongerThanSequenceError
from .engine.io_utils import parse_fasta, write_fasta, write_fastq, write_paired_fastq
from .engine.library import LibraryStats, ReadLibraryGenerator
from .engine.models import ContigResult, SimulatedRead
from .engine.mutate import mutate_contig
from .engine.quality import QualityScoreModel
from .engine.rng import RandomSource, make_rng, random_seed_string
from .engine.storage import as_nuc_array
from .engine.truth import write_truth_table, write_vcf
from .engine.variant_models import IndelModel, MutationModel

logger = logging.getLogger(__name__)


@dataclass
class SimulationSummary:
    """What a run produced"""
    seed: str = ""
    rng_backend: str = "alea"
    contigs: int = 0
    variants: int = 0
    reads: int = 0
    failed_contigs: List[str] = field(default_factory=list)
    skipped_contigs: List[str] = field(default_factory=list)
    outputs: Dict[str, str] = field(default_factory=dict)
    library: Optional[LibraryStats] = None

    def summary(self) -> str:
        lines = [
            f"Seed: '{self.seed}' ({self.rng_backend})",
            f"Contigs: {self.contigs} ({len(self.failed_contigs)} left unmutated, "
            f"{len(self.skipped_contigs)} without reads)",
            f"Variants: {self.variants}",
            f"Reads: {self.reads}",
        ]
        if self.library is not None:
            lines.append(f"Library: {self.library.summary()}")
        if self.failed_contigs:
            lines.append(f"Unmutated contigs: {', '.join(self.failed_contigs)}")
        if self.skipped_contigs:
            lines.append(f"Contigs without reads: {', '.join(self.skipped_contigs)}")
        for kind, path in self.outputs.items():
            lines.append(f"  {kind}: {path}")
        return "\n".join(lines)


# =============================================================================
# Setup
# =============================================================================

def load_config(config_file: Optional[str] = None, overrides: Optional[Mapping] = None) -> SimConfig:
    """
    Load a config file and apply overrides on top of it.

    Args:
        config_file: YAML or JSON config (defaults if None)
        overrides: flat parameter name -> value; None values are skipped

    Returns:
        SimConfig
    """
    if config_file:
        validate_file_exists(config_file, "Config file")
        config = SimConfig.load(config_file)
        logger.info(f"Loaded config from {config_file}")
    else:
        config = get_default_config()

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key not in FLAT_KEYS:
            raise ValueError(f"Unknown config parameter: {key}")
        section, name = FLAT_KEYS[key]
        config.set_value(section, name, value)
    return config


def planned_outputs(config: SimConfig) -> Dict[str, Path]:
    """Output files a run will write, keyed by kind."""
    out_dir = config.output_dir
    prefix = config.output.output_prefix
    gz = ".gz" if config.output.compress else ""

    outputs: Dict[str, Path] = {}
    if config.output.produce_fasta:
        outputs["fasta"] = out_dir / f"{prefix}.fasta{gz}"
    if config.output.produce_vcf:
        outputs["vcf"] = out_dir / f"{prefix}.vcf{gz}"
    if config.output.produce_truth_table:
        outputs["truth_table"] = out_dir / f"{prefix}_truth.tsv"
    if config.output.produce_fastq:
        if config.reads.paired_ended:
            outputs["fastq_r1"] = out_dir / f"{prefix}_r1.fastq{gz}"
            outputs["fastq_r2"] = out_dir / f"{prefix}_r2.fastq{gz}"
        else:
            outputs["fastq"] = out_dir / f"{prefix}.fastq{gz}"
    outputs["config"] = out_dir / f"{prefix}_config.yaml"
    return outputs


def build_mutation_model(config: SimConfig) -> MutationModel:
    """Mutation model from a JSON file, or from the scalar config parameters."""
    params = config.mutation
    if params.mutation_model:
        validate_file_exists(params.mutation_model, "Mutation model")
        try:
            with open(params.mutation_model, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ModelFormatError(f"Mutation model {params.mutation_model} is not valid JSON: {exc}") from exc
        logger.info(f"Loaded mutation model from {params.mutation_model}")
        return MutationModel.from_dict(data)

    return MutationModel(
        mutation_rate=params.mutation_rate,
        homozygous_frequency=params.homozygous_frequency,
        snp_weight=params.snp_weight,
        indel_weight=params.indel_weight,
        indel_model=IndelModel(insertion_probability=params.insertion_probability),
        minimum_mutations=params.minimum_mutations,
    )


def build_quality_model(config: SimConfig) -> QualityScoreModel:
    path = config.reads.quality_model
    if path:
        validate_file_exists(path, "Quality model")
        return QualityScoreModel.from_json(path)
    return QualityScoreModel.default()


def build_error_model(config: SimConfig) -> BaseErrorModel:
    return get_error_model(config.reads.error_model)


def ensure_seed(config: SimConfig) -> str:
    """Store a freshly drawn seed on an unseeded config and return the seed."""
    if not config.seed_list():
        config.rng_seed = random_seed_string()
        logger.info(f"No seed given; using generated seed '{config.rng_seed}'")
    return config.rng_seed


def seed_rng(config: SimConfig) -> RandomSource:
    """
    RNG for the run.

    An unseeded run draws a fresh seed and stores it on the config, so the
    saved config replays the run.
    """
    ensure_seed(config)
    return make_rng(config.rng_backend, config.seed_list())


# =============================================================================
# Stages
# =============================================================================

def mutate_contigs(
    contigs: Mapping[str, object],
    model: MutationModel,
    ploidy: int,
    rng: RandomSource
) -> List[ContigResult]:
    """
    Mutate every contig in order.

    A contig whose mutation fails with a GenosimError is logged and passed
    through unmutated.
    """
    results = []
    for name, sequence in contigs.items():
        try:
            results.append(mutate_contig(name, sequence, model, ploidy, rng))
        except GenosimError as exc:
            logger.error(f"{name}: mutation failed, keeping reference sequence ({exc})")
            arr = as_nuc_array(sequence)
            results.append(ContigResult(
                name=name,
                reference_length=len(arr),
                mutated=arr,
                skipped_reason=str(exc),
            ))
    return results


def generate_reads(
    results: List[ContigResult],
    generator: ReadLibraryGenerator,
    coverage: int,
    rng: RandomSource
) -> Tuple[List[SimulatedRead], List[str]]:
    """
    Reads for every mutated contig.

    Returns:
        (reads, names of contigs too short to hold a read)
    """
    reads: List[SimulatedRead] = []
    skipped: List[str] = []
    for result in results:
        try:
            reads.extend(generator.generate(result.name, result.mutated, coverage, rng))
        except ReadLongerThanSequenceError as exc:
            logger.warning(f"{result.name}: no reads generated ({exc})")
            generator.stats.contigs_skipped.append(result.name)
            skipped.append(result.name)
    return reads, skipped


def shuffle_reads(reads: List[SimulatedRead], paired: bool, rng: RandomSource) -> List[SimulatedRead]:
    """Shuffle read order; mates stay together and keep R1 before R2."""
    if not paired:
        shuffled = list(reads)
        rng.shuffle(shuffled)
        return shuffled
    pairs = [reads[i:i + 2] for i in range(0, len(reads), 2)]
    rng.shuffle(pairs)
    return [read for pair in pairs for read in pair]


# =============================================================================
# Entry points
# =============================================================================

def run_simulation(config: SimConfig) -> SimulationSummary:
    """
    Run the full pipeline for one config.

    Args:
        config: run configuration (rng_seed is filled in when absent)

    Returns:
        SimulationSummary

    Raises:
        ValueError: On invalid parameters or a reference without sequences
        FileNotFoundError: If the reference or a model file is missing
        FileExistsError: If outputs exist and overwrite_output is False
    """
    for warning in config.validate():
        logger.warning(warning)
    if not config.reference:
        raise ValueError("No reference FASTA given")
    validate_file_exists(config.reference, "Reference FASTA")

    config.output_dir.mkdir(parents=True, exist_ok=True)
    outputs = planned_outputs(config)
    check_output_paths(outputs.values(), overwrite=config.output.overwrite_output)

    contigs = parse_fasta(config.reference, packed=config.packed_reference)
    if not contigs:
        raise ValueError(f"No sequences found in {config.reference}")
    rng = seed_rng(config)
    summary = SimulationSummary(seed=config.rng_seed, rng_backend=rng.name, contigs=len(contigs))

    # Mutation
    model = build_mutation_model(config)
    results = mutate_contigs(contigs, model, config.mutation.ploidy, rng)
    summary.failed_contigs = [r.name for r in results if r.skipped]
    summary.variants = sum(len(r.variants) for r in results)

    variants_by_contig = {r.name: r.variants for r in results}
    contig_lengths = {r.name: r.reference_length for r in results}
    if "fasta" in outputs:
        write_fasta({r.name: r.mutated for r in results}, outputs["fasta"])
        logger.info(f"Wrote mutated FASTA to {outputs['fasta']}")
    if "vcf" in outputs:
        write_vcf(variants_by_contig, contig_lengths, outputs["vcf"])
    if "truth_table" in outputs:
        write_truth_table(variants_by_contig, outputs["truth_table"])

    # Reads
    if config.output.produce_fastq:
        reads_cfg = config.reads
        generator = ReadLibraryGenerator(
            read_length=reads_cfg.read_length,
            quality_model=build_quality_model(config),
            error_model=build_error_model(config),
            paired_ended=reads_cfg.paired_ended,
            fragment_mean=reads_cfg.fragment_mean,
            fragment_st_dev=reads_cfg.fragment_st_dev,
            read_prefix=config.output.output_prefix,
        )
        reads, summary.skipped_contigs = generate_reads(results, generator, reads_cfg.coverage, rng)
        reads = shuffle_reads(reads, reads_cfg.paired_ended, rng)
        if reads_cfg.paired_ended:
            write_paired_fastq(reads, outputs["fastq_r1"], outputs["fastq_r2"])
        else:
            write_fastq(reads, outputs["fastq"])
        summary.reads = len(reads)
        summary.library = generator.stats
        logger.info(generator.stats.summary())

    config.to_yaml(outputs["config"])
    summary.outputs = {kind: str(path) for kind, path in outputs.items()}
    logger.info(f"Simulation complete: {summary.variants} variants, {summary.reads} reads")
    return summary


def run_mutation_only(config: SimConfig) -> SimulationSummary:
    """
    Mutate the reference and write only the mutated FASTA and VCF.

    The output switches are changed on a copy, but a generated seed is stored
    on the caller's config so it can replay the run.
    """
    ensure_seed(config)
    config = copy.deepcopy(config)
    config.output.produce_fasta = True
    config.output.produce_vcf = True
    config.output.produce_fastq = False
    config.output.produce_truth_table = False
    return run_simulation(config)


def run_read_simulation(
    config_file: Optional[Union[str, Path]] = None,
    mutate_only: bool = False,
    **overrides
) -> SimulationSummary:
    """
    Load a config, apply keyword overrides and run.

    Args:
        config_file: YAML/JSON config file (defaults if None)
        mutate_only: write only the mutated FASTA and VCF
        **overrides: flat parameter names (reference, read_len, coverage,
            rng_seed, output_dir, ...); None values keep the file's setting

    Returns:
        SimulationSummary
    """
    config = load_config(str(config_file) if config_file else None, overrides)
    logger.info("Genome mutation and read simulation")
    logger.info(f"Reference: {config.reference}")
    logger.info(f"Output: {config.output_dir / config.output.output_prefix}")
    if mutate_only:
        return run_mutation_only(config)
    return run_simulation(config)
