"""
Input/output helpers

- FASTA reading (gzip aware) into Nuc arrays or packed sequences
- FASTA writing for mutated contigs
- FASTQ writing, single and paired-end
"""

import gzip
import logging
from pathlib import Path
from typing import Dict, Generator, Iterable, List, Tuple, Union

from .models import SimulatedRead
from .seq_utils import nucs_to_string, string_to_nucs
from .storage import PackedSequence, as_nuc_array

logger = logging.getLogger(__name__)

VALID_BASES = set("ACGTN")


def _open_text(path: Path, mode: str):
    if path.suffix == ".gz":
        return gzip.open(path, mode + "t")
    return open(path, mode)


def _with_gz(path: Union[str, Path], compress: bool) -> Path:
    path = Path(path)
    if compress and path.suffix != ".gz":
        path = Path(str(path) + ".gz")
    return path


def validate_sequence(seq: str, seq_id: str) -> str:
    """
    Clean one sequence.

    Args:
        seq: sequence string
        seq_id: sequence ID (for warnings)

    Returns:
        Uppercase sequence with anything outside ACGTN replaced by N
    """
    seq = seq.upper().strip()
    invalid_chars = set(seq) - VALID_BASES
    if invalid_chars:
        logger.warning(
            f"Sequence '{seq_id}' contains non-standard bases: {sorted(invalid_chars)}. "
            f"These will be converted to 'N'."
        )
        seq = "".join(c if c in VALID_BASES else "N" for c in seq)
    return seq


def parse_fasta(path: Union[str, Path], packed: bool = False) -> Dict[str, object]:
    """
    Parse a FASTA file.

    Supports .fa, .fasta, .fa.gz, .fasta.gz

    Args:
        path: FASTA path
        packed: return PackedSequence values instead of Nuc arrays

    Returns:
        {contig name: sequence} in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a contig name repeats or a sequence line precedes any header
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"FASTA not found: {path}")

    contigs: Dict[str, object] = {}
    current_id = None
    current_seq: List[str] = []

    def flush():
        seq = validate_sequence("".join(current_seq), current_id)
        if not seq:
            logger.warning(f"Skipping empty sequence: {current_id}")
            return
        if current_id in contigs:
            raise ValueError(f"Duplicate contig name in {path.name}: {current_id}")
        nucs = string_to_nucs(seq)
        contigs[current_id] = PackedSequence.from_array(nucs) if packed else nucs

    with _open_text(path, "r") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith(">"):
                if current_id is not None:
                    flush()
                header = line[1:].split()
                current_id = header[0] if header else f"contig_{len(contigs) + 1}"
                current_seq = []
            elif current_id is None:
                raise ValueError(f"{path.name}: sequence data before the first FASTA header")
            else:
                current_seq.append(line)

    if current_id is not None:
        flush()

    if not contigs:
        logger.warning(f"No valid sequences found in {path}")
    else:
        total = sum(len(s) for s in contigs.values())
        logger.info(f"Loaded {len(contigs)} contigs ({total} bp) from {path.name}")
    return contigs


def write_fasta(
    contigs: Dict[str, object],
    path: Union[str, Path],
    line_width: int = 60,
    compress: bool = False
) -> Path:
    """
    Write contigs to FASTA.

    Args:
        contigs: {name: sequence}
        path: output path
        line_width: bases per line
        compress: gzip the output

    Returns:
        Path written
    """
    path = _with_gz(path, compress)
    with _open_text(path, "w") as f:
        for name, seq in contigs.items():
            f.write(f">{name}\n")
            text = nucs_to_string(as_nuc_array(seq))
            for i in range(0, len(text), line_width):
                f.write(text[i:i + line_width] + "\n")
    return path


def write_fastq(
    reads: Iterable[SimulatedRead],
    path: Union[str, Path],
    compress: bool = False
) -> Path:
    """
    Write reads to FASTQ.

    Args:
        reads: SimulatedRead iterable
        path: output path
        compress: gzip the output

    Returns:
        Path written
    """
    path = _with_gz(path, compress)
    with _open_text(path, "w") as f:
        for read in reads:
            f.write(read.to_fastq())
    return path


def write_paired_fastq(
    reads: List[SimulatedRead],
    path_r1: Union[str, Path],
    path_r2: Union[str, Path],
    compress: bool = False
) -> Tuple[Path, Path]:
    """
    Write paired-end FASTQ files.

    Read order is kept as given, so mates line up as long as each R1 and R2
    appear in the same relative order (the runner shuffles whole pairs).

    Args:
        reads: SimulatedRead list holding both mates
        path_r1: R1 output path
        path_r2: R2 output path
        compress: gzip the output

    Returns:
        (R1 path, R2 path)
    """
    r1_reads = [r for r in reads if r.read_number == 1]
    r2_reads = [r for r in reads if r.read_number == 2]
    if len(r1_reads) != len(r2_reads):
        raise ValueError(f"Unbalanced pairs: {len(r1_reads)} R1 vs {len(r2_reads)} R2")

    return (
        write_fastq(r1_reads, path_r1, compress),
        write_fastq(r2_reads, path_r2, compress),
    )


def iter_fastq(path: Union[str, Path]) -> Generator[Tuple[str, str, str], None, None]:
    """
    Iterate over a FASTQ file.

    Yields:
        (read_id, sequence, quality)
    """
    path = Path(path)
    with _open_text(path, "r") as f:
        while True:
            header = f.readline().strip()
            if not header:
                break
            seq = f.readline().strip()
            f.readline()  # +
            qual = f.readline().strip()
            yield header[1:].split()[0], seq, qual
