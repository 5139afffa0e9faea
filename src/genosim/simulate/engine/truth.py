"""
Truth outputs

- VCF 4.2 with one record per applied variant
- Variant truth table (TSV) built with pandas
"""

import gzip
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, TextIO, Union

import pandas as pd

from .models import Variant

logger = logging.getLogger(__name__)

TRUTH_COLUMNS = ["chrom", "pos", "type", "ref", "alt", "genotype", "homozygous"]

# Fixed QUAL reported for simulated records
VCF_QUAL = 37


class VcfWriter:
    """VCF writer for simulated variants"""

    def __init__(
        self,
        output_path: Union[str, Path],
        contig_lengths: Mapping[str, int],
        sample_name: str = "SAMPLE1",
        source: str = "genosim"
    ):
        """
        Args:
            output_path: output file (.vcf or .vcf.gz)
            contig_lengths: {contig: reference length}, in output order
            sample_name: genotype column name
            source: ##source header value
        """
        self.output_path = Path(output_path)
        self.contig_lengths = dict(contig_lengths)
        self.sample_name = sample_name
        self.source = source
        self._file: Optional[TextIO] = None
        self.records_written = 0

    def open(self):
        if self.output_path.suffix == ".gz":
            self._file = gzip.open(self.output_path, "wt")
        else:
            self._file = open(self.output_path, "w")
        self._write_header()

    def close(self):
        if self._file:
            self._file.close()
            self._file = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _write_header(self):
        lines = [
            "##fileformat=VCFv4.2",
            f"##source={self.source}",
        ]
        for name, length in self.contig_lengths.items():
            lines.append(f"##contig=<ID={name},length={length}>")
        lines.append('##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">')
        lines.append(
            "\t".join(["#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO", "FORMAT", self.sample_name])
        )
        self._file.write("\n".join(lines) + "\n")

    def write_record(self, contig: str, position: int, variant: Variant):
        """Write one record; ``position`` is 0-based in reference coordinates."""
        fields = [
            contig,
            str(position + 1),
            ".",
            variant.ref_string,
            variant.alt_string,
            str(VCF_QUAL),
            "PASS",
            ".",
            "GT",
            variant.genotype_string,
        ]
        self._file.write("\t".join(fields) + "\n")
        self.records_written += 1

    def write_contig(self, contig: str, variants: Mapping[int, Variant]):
        for position in sorted(variants):
            self.write_record(contig, position, variants[position])


def write_vcf(
    variants_by_contig: Mapping[str, Mapping[int, Variant]],
    contig_lengths: Mapping[str, int],
    path: Union[str, Path],
    sample_name: str = "SAMPLE1"
) -> Path:
    """
    Write all variant tables to one VCF, contigs in ``contig_lengths`` order.

    Returns:
        Path written
    """
    with VcfWriter(path, contig_lengths, sample_name=sample_name) as writer:
        for contig in contig_lengths:
            writer.write_contig(contig, variants_by_contig.get(contig, {}))
    logger.info(f"Wrote {writer.records_written} variants to {path}")
    return Path(path)


def variants_to_frame(variants_by_contig: Mapping[str, Mapping[int, Variant]]) -> pd.DataFrame:
    """
    Flatten variant tables into a DataFrame.

    ``pos`` is 1-based to match the VCF.
    """
    rows: List[Dict] = []
    for contig, variants in variants_by_contig.items():
        for position in sorted(variants):
            row = {"chrom": contig, "pos": position + 1}
            row.update(variants[position].to_dict())
            rows.append(row)
    return pd.DataFrame(rows, columns=TRUTH_COLUMNS)


def write_truth_table(
    variants_by_contig: Mapping[str, Mapping[int, Variant]],
    path: Union[str, Path]
) -> pd.DataFrame:
    """Write the variant truth table as TSV and return it."""
    df = variants_to_frame(variants_by_contig)
    df.to_csv(path, sep="\t", index=False)
    logger.info(f"Wrote truth table ({len(df)} rows) to {path}")
    return df
