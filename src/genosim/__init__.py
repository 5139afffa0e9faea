"""
genosim: statistical mutation and read simulation for genomics benchmarks.

This package provides tools for:
- Seeded, reproducible random number generation (mash/Alea and Philox backends)
- Trinucleotide-context SNP and length-weighted indel models
- Applying variants to reference contigs with a truth table (VCF/TSV)
- Markov-chain quality score models with read-length remapping
- Coverage-driven single and paired-end read simulation (FASTQ)
"""

__version__ = "0.3.0"
__author__ = "genosim Team"
