"""Simulation module for mutated genomes and sequencing reads."""

from genosim.simulate.runner import run_mutation_only, run_read_simulation, run_simulation

__all__ = [
    "run_mutation_only",
    "run_read_simulation",
    "run_simulation",
]
