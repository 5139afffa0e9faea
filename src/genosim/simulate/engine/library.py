"""
Read library generation

- Lays out reads with the coverage sampler
- Paired-end: R1 is the fragment start, R2 the reverse complement of its end
- Per-read quality scores from the QualityScoreModel
- Sequencing errors from the configured error model
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .coverage import build_fragment_pool, cover_dataset
from .error_models import BaseErrorModel, IdentityErrorModel
from .errors import ReadLongerThanSequenceError
from .models import SimulatedRead
from .quality import QualityScoreModel
from .rng import RandomSource
from .seq_utils import nucs_to_string, reverse_complement
from .storage import as_nuc_array

logger = logging.getLogger(__name__)


@dataclass
class LibraryStats:
    """Read library statistics"""
    total_reads: int = 0
    total_pairs: int = 0
    total_bases: int = 0
    errors_introduced: int = 0
    contigs_covered: int = 0
    contigs_skipped: List[str] = field(default_factory=list)

    @property
    def error_rate(self) -> float:
        return self.errors_introduced / self.total_bases if self.total_bases else 0.0

    def summary(self) -> str:
        return (
            f"Reads: {self.total_reads} ({self.total_pairs} pairs), "
            f"Bases: {self.total_bases}, "
            f"Errors: {self.errors_introduced} ({self.error_rate:.4%}), "
            f"Contigs: {self.contigs_covered} covered, {len(self.contigs_skipped)} skipped"
        )


class ReadLibraryGenerator:
    """Simulated single or paired-end read library"""

    def __init__(
        self,
        read_length: int = 150,
        quality_model: Optional[QualityScoreModel] = None,
        error_model: Optional[BaseErrorModel] = None,
        paired_ended: bool = False,
        fragment_mean: Optional[float] = None,
        fragment_st_dev: Optional[float] = None,
        read_prefix: str = "genosim"
    ):
        if read_length < 1:
            raise ValueError(f"read_length must be >= 1, got {read_length}")
        if paired_ended and (fragment_mean is None or fragment_st_dev is None):
            raise ValueError("Paired-end reads need fragment_mean and fragment_st_dev")
        self.read_length = read_length
        self.quality_model = quality_model if quality_model is not None else QualityScoreModel.default()
        self.error_model = error_model if error_model is not None else IdentityErrorModel()
        self.paired_ended = paired_ended
        self.fragment_mean = fragment_mean
        self.fragment_st_dev = fragment_st_dev
        self.read_prefix = read_prefix
        self.stats = LibraryStats()
        self._read_counter = 0

    def _next_name(self) -> str:
        self._read_counter += 1
        return f"{self.read_prefix}_generated_{self._read_counter}"

    def _make_read(
        self,
        read_id: str,
        contig: str,
        start: int,
        end: int,
        window: np.ndarray,
        rng: RandomSource,
        read_number: int = 1,
        is_reverse: bool = False
    ) -> SimulatedRead:
        qualities = self.quality_model.generate_quality_scores(self.read_length, rng)
        bases, errors = self.error_model.apply(window, qualities, rng)
        self.stats.total_reads += 1
        self.stats.total_bases += len(bases)
        self.stats.errors_introduced += errors
        return SimulatedRead(
            read_id=read_id,
            contig=contig,
            start=start,
            end=end,
            sequence=nucs_to_string(bases),
            qualities=qualities,
            is_paired=self.paired_ended,
            read_number=read_number,
            is_reverse=is_reverse,
            errors_introduced=errors,
        )

    def generate(self, contig: str, sequence, coverage: int, rng: RandomSource) -> List[SimulatedRead]:
        """
        Reads for one (mutated) contig.

        Args:
            contig: contig name, recorded on every read
            sequence: contig bases
            coverage: number of coverage passes
            rng: random source

        Returns:
            Reads in layout order (R1 before R2 within a pair)

        Raises:
            ReadLongerThanSequenceError: If the contig is shorter than a read
        """
        arr = as_nuc_array(sequence)
        read_length = self.read_length
        context = self.error_model.trailing_context

        if read_length > len(arr):
            raise ReadLongerThanSequenceError(read_length, len(arr), contig)
        pool = None
        if self.paired_ended:
            pool = build_fragment_pool(
                len(arr), read_length, coverage, self.fragment_mean, self.fragment_st_dev, rng
            )
        intervals = cover_dataset(len(arr), read_length, coverage, rng, pool)

        reads: List[SimulatedRead] = []
        for start, end in intervals:
            name = self._next_name()
            if not self.paired_ended:
                window = arr[start:end + context]
                reads.append(self._make_read(name, contig, start, end, window, rng))
                continue

            window1 = arr[start:start + read_length + context]
            reads.append(self._make_read(
                f"{name}/1", contig, start, start + read_length, window1, rng, read_number=1
            ))
            # Read 2 runs backwards from the fragment end
            window2 = reverse_complement(arr[max(0, end - read_length - context):end])
            reads.append(self._make_read(
                f"{name}/2", contig, end - read_length, end, window2, rng,
                read_number=2, is_reverse=True
            ))
            self.stats.total_pairs += 1

        self.stats.contigs_covered += 1
        logger.info(f"{contig}: {len(reads)} reads from {len(intervals)} "
                    f"{'fragments' if self.paired_ended else 'intervals'}")
        return reads
