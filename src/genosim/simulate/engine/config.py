"""
Run configuration

Parameter groups:
A. Reads (7): read_length, coverage, paired_ended, fragment_mean,
   fragment_st_dev, quality_model, error_model
B. Mutations (8): mutation_rate, homozygous_frequency, snp_weight,
   indel_weight, insertion_probability, ploidy, minimum_mutations,
   mutation_model
C. Output (8): output_dir, output_prefix, overwrite_output, produce_fastq,
   produce_fasta, produce_vcf, produce_truth_table, compress
D. Run (4): reference, rng_seed, rng_backend, packed_reference

Config files may use the nested layout produced by ``to_dict`` or a flat
layout with one key per parameter. In either layout the value "." keeps
the default.
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from genosim.utils.validation import validate_positive_int, validate_probability

from .rng import RNG_BACKENDS, seed_from_string

logger = logging.getLogger(__name__)

# Placeholder meaning "use the default"
DEFAULT_MARKER = "."


@dataclass
class ReadParams:
    """A. Read simulation parameters"""
    read_length: int = 150
    coverage: int = 10
    paired_ended: bool = False
    fragment_mean: Optional[float] = None
    fragment_st_dev: Optional[float] = None
    quality_model: Optional[str] = None       # JSON QualityScoreModel
    error_model: str = "sequencing"           # identity | sequencing


@dataclass
class MutationParams:
    """B. Mutation parameters"""
    mutation_rate: float = 0.001
    homozygous_frequency: float = 0.01
    snp_weight: float = 19.0
    indel_weight: float = 1.0
    insertion_probability: float = 0.6
    ploidy: int = 2
    minimum_mutations: int = 1
    mutation_model: Optional[str] = None      # JSON MutationModel, overrides the above


@dataclass
class OutputParams:
    """C. Output selection"""
    output_dir: str = "."
    output_prefix: str = "genosim_out"
    overwrite_output: bool = False
    produce_fastq: bool = True
    produce_fasta: bool = False
    produce_vcf: bool = False
    produce_truth_table: bool = False
    compress: bool = False


# Flat key -> (section, field). Section None is a top-level field.
FLAT_KEYS: Dict[str, Tuple[Optional[str], str]] = {
    "reference": (None, "reference"),
    "rng_seed": (None, "rng_seed"),
    "rng_backend": (None, "rng_backend"),
    "packed_reference": (None, "packed_reference"),
    "read_len": ("reads", "read_length"),
    "read_length": ("reads", "read_length"),
    "coverage": ("reads", "coverage"),
    "paired_ended": ("reads", "paired_ended"),
    "fragment_mean": ("reads", "fragment_mean"),
    "fragment_st_dev": ("reads", "fragment_st_dev"),
    "quality_model": ("reads", "quality_model"),
    "error_model": ("reads", "error_model"),
    "mutation_rate": ("mutation", "mutation_rate"),
    "homozygous_frequency": ("mutation", "homozygous_frequency"),
    "snp_weight": ("mutation", "snp_weight"),
    "indel_weight": ("mutation", "indel_weight"),
    "insertion_probability": ("mutation", "insertion_probability"),
    "ploidy": ("mutation", "ploidy"),
    "minimum_mutations": ("mutation", "minimum_mutations"),
    "mutation_model": ("mutation", "mutation_model"),
    "output_dir": ("output", "output_dir"),
    "output_prefix": ("output", "output_prefix"),
    "overwrite_output": ("output", "overwrite_output"),
    "produce_fastq": ("output", "produce_fastq"),
    "produce_fasta": ("output", "produce_fasta"),
    "produce_vcf": ("output", "produce_vcf"),
    "produce_truth_table": ("output", "produce_truth_table"),
    "compress": ("output", "compress"),
}

# Accepted for compatibility, never acted on
IGNORED_KEYS = {"produce_bam"}

SECTIONS = ("reads", "mutation", "output")


def _is_default(value: Any) -> bool:
    return isinstance(value, str) and value.strip() == DEFAULT_MARKER


@dataclass
class SimConfig:
    """Complete run configuration"""
    reads: ReadParams = field(default_factory=ReadParams)
    mutation: MutationParams = field(default_factory=MutationParams)
    output: OutputParams = field(default_factory=OutputParams)

    reference: Optional[str] = None
    rng_seed: Optional[str] = None
    rng_backend: str = "alea"                 # alea | philox
    packed_reference: bool = False

    def seed_list(self) -> List[str]:
        """Seed strings for the RNG (whitespace-split rng_seed)."""
        return seed_from_string(self.rng_seed)

    @property
    def output_dir(self) -> Path:
        return Path(self.output.output_dir)

    def to_dict(self) -> dict:
        """Nested form, round-trips through from_dict."""
        return {
            "reads": asdict(self.reads),
            "mutation": asdict(self.mutation),
            "output": asdict(self.output),
            "reference": self.reference,
            "rng_seed": self.rng_seed,
            "rng_backend": self.rng_backend,
            "packed_reference": self.packed_reference,
        }

    def set_value(self, section: Optional[str], name: str, value: Any):
        target = self if section is None else getattr(self, section)
        if name not in {f.name for f in fields(target)}:
            raise ValueError(f"Unknown config parameter: {section + '.' if section else ''}{name}")
        if _is_default(value):
            return
        if name == "rng_seed" and value is not None:
            value = str(value)
        setattr(target, name, value)

    @classmethod
    def from_dict(cls, d: dict) -> 'SimConfig':
        """Build from a nested or flat dictionary."""
        config = cls()
        if not d:
            return config
        for key, value in d.items():
            if key in SECTIONS:
                if not isinstance(value, dict):
                    raise ValueError(f"Config section '{key}' must be a mapping")
                for name, sub_value in value.items():
                    config.set_value(key, name, sub_value)
            elif key in FLAT_KEYS:
                section, name = FLAT_KEYS[key]
                config.set_value(section, name, value)
            elif key in IGNORED_KEYS:
                logger.warning(f"Config key '{key}' is not supported and will be ignored")
            else:
                raise ValueError(f"Unknown config parameter: {key}")
        return config

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'SimConfig':
        with open(path, 'r') as f:
            return cls.from_dict(yaml.safe_load(f) or {})

    def to_yaml(self, path: Union[str, Path]):
        with open(path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'SimConfig':
        with open(path, 'r') as f:
            return cls.from_dict(json.load(f))

    def to_json(self, path: Union[str, Path]):
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'SimConfig':
        """Load YAML (.yaml/.yml) or JSON by file suffix."""
        if Path(path).suffix.lower() in ('.yaml', '.yml'):
            return cls.from_yaml(path)
        return cls.from_json(path)

    def validate(self) -> List[str]:
        """
        Check parameters.

        Returns:
            Soft warnings that do not stop a run

        Raises:
            ValueError: On settings a run cannot proceed with
        """
        reads, mutation, output = self.reads, self.mutation, self.output

        validate_positive_int(reads.read_length, "read_length")
        validate_positive_int(reads.coverage, "coverage")
        validate_positive_int(mutation.ploidy, "ploidy")
        validate_probability(mutation.mutation_rate, "mutation_rate")
        validate_probability(mutation.homozygous_frequency, "homozygous_frequency")
        if mutation.minimum_mutations < 0:
            raise ValueError(f"minimum_mutations must be >= 0, got {mutation.minimum_mutations}")
        if self.rng_backend.lower() not in RNG_BACKENDS:
            raise ValueError(f"Unknown rng_backend: {self.rng_backend}. Available: {list(RNG_BACKENDS)}")
        if reads.paired_ended:
            if reads.fragment_mean is None or reads.fragment_st_dev is None:
                raise ValueError("paired_ended requires fragment_mean and fragment_st_dev")
            if reads.fragment_st_dev <= 0:
                raise ValueError(f"fragment_st_dev must be > 0, got {reads.fragment_st_dev}")

        warnings = []
        if reads.paired_ended and reads.fragment_mean < reads.read_length:
            warnings.append(
                f"fragment_mean ({reads.fragment_mean}) is below read_length ({reads.read_length}); "
                f"fragments will be raised to the read length"
            )
        if mutation.mutation_rate > 0.3:
            warnings.append(f"mutation_rate={mutation.mutation_rate} is unusually high")
        if not (output.produce_fastq or output.produce_fasta or output.produce_vcf
                or output.produce_truth_table):
            warnings.append("No outputs selected; the run will only log a summary")
        return warnings


def get_default_config() -> SimConfig:
    """Default configuration"""
    return SimConfig()
