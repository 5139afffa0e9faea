"""
genosim CLI - Command Line Interface for genome mutation and read simulation.

Usage:
    genosim <command> [options]

Each command is an independent tool.
"""

import click

from genosim import __version__

LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR"]

# Errors a run reports as a plain message instead of a traceback
USER_ERRORS = (FileNotFoundError, FileExistsError, ValueError)


@click.group()
@click.version_option(version=__version__, prog_name="genosim")
def main():
    """genosim - Mutate reference genomes and simulate sequencing reads.

    Use 'genosim <command> --help' for detailed usage of each command.
    """
    pass


def _setup_logging(log_level, log_file):
    from genosim.utils.logging_utils import setup_logger
    return setup_logger(log_file=log_file, level=log_level)


def _run(mutate_only, config_file, log_level, log_file, **overrides):
    logger = _setup_logging(log_level, log_file)

    from genosim.simulate.engine.errors import GenosimError
    from genosim.simulate.runner import run_read_simulation

    try:
        summary = run_read_simulation(config_file=config_file, mutate_only=mutate_only, **overrides)
    except (GenosimError,) + USER_ERRORS as e:
        raise click.ClickException(str(e))
    logger.info("Run summary:\n" + summary.summary())


# ============================================================================
# Simulation Commands
# ============================================================================

@main.command()
@click.option("-c", "--config", "config_file", help="Config file (YAML/JSON)")
@click.option("-r", "--reference", help="Reference genome FASTA")
@click.option("-o", "--output-dir", help="Output directory")
@click.option("-p", "--prefix", help="Output file prefix")
@click.option("-l", "--read-length", type=int, help="Read length")
@click.option("--coverage", type=int, help="Coverage depth")
@click.option("--mutation-rate", type=float, help="Mutations per base (0-1)")
@click.option("--ploidy", type=int, help="Genome ploidy")
@click.option("--paired/--single", default=None, help="Paired-end or single-end reads")
@click.option("--fragment-mean", type=float, help="Fragment length mean (paired-end)")
@click.option("--fragment-std", type=float, help="Fragment length standard deviation (paired-end)")
@click.option("--seed", help="Random seed (whitespace separates multiple seed strings)")
@click.option("--rng-backend", type=click.Choice(["alea", "philox"]), help="Random number generator")
@click.option("--quality-model", help="Quality score model JSON")
@click.option("--error-model", type=click.Choice(["identity", "sequencing"]), help="Sequencing error model")
@click.option("--fasta/--no-fasta", default=None, help="Write the mutated FASTA")
@click.option("--vcf/--no-vcf", default=None, help="Write the variant VCF")
@click.option("--fastq/--no-fastq", default=None, help="Write simulated reads")
@click.option("--truth-table/--no-truth-table", default=None, help="Write the variant truth table (TSV)")
@click.option("--compress", is_flag=True, help="Compress output (gzip)")
@click.option("--overwrite", is_flag=True, help="Replace existing output files")
@click.option("--log-level", type=click.Choice(LOG_LEVEL_CHOICES, case_sensitive=False),
              default="INFO", help="Logging level")
@click.option("--log-file", help="Also write the log to this file")
def run(config_file, reference, output_dir, prefix, read_length, coverage, mutation_rate,
        ploidy, paired, fragment_mean, fragment_std, seed, rng_backend, quality_model,
        error_model, fasta, vcf, fastq, truth_table, compress, overwrite, log_level, log_file):
    """Mutate a reference and simulate reads from it.

    Command-line options override the config file. Outputs land in the
    output directory as <prefix>.fasta, <prefix>.vcf, <prefix>_truth.tsv,
    <prefix>.fastq (or _r1/_r2 when paired) and <prefix>_config.yaml.
    """
    _run(
        False, config_file, log_level, log_file,
        reference=reference,
        output_dir=output_dir,
        output_prefix=prefix,
        read_len=read_length,
        coverage=coverage,
        mutation_rate=mutation_rate,
        ploidy=ploidy,
        paired_ended=paired,
        fragment_mean=fragment_mean,
        fragment_st_dev=fragment_std,
        rng_seed=seed,
        rng_backend=rng_backend,
        quality_model=quality_model,
        error_model=error_model,
        produce_fasta=fasta,
        produce_vcf=vcf,
        produce_fastq=fastq,
        produce_truth_table=truth_table,
        compress=compress or None,
        overwrite_output=overwrite or None,
    )


@main.command()
@click.option("-c", "--config", "config_file", help="Config file (YAML/JSON)")
@click.option("-r", "--reference", help="Reference genome FASTA")
@click.option("-o", "--output-dir", help="Output directory")
@click.option("-p", "--prefix", help="Output file prefix")
@click.option("--mutation-rate", type=float, help="Mutations per base (0-1)")
@click.option("--ploidy", type=int, help="Genome ploidy")
@click.option("--seed", help="Random seed")
@click.option("--rng-backend", type=click.Choice(["alea", "philox"]), help="Random number generator")
@click.option("--overwrite", is_flag=True, help="Replace existing output files")
@click.option("--log-level", type=click.Choice(LOG_LEVEL_CHOICES, case_sensitive=False),
              default="INFO", help="Logging level")
@click.option("--log-file", help="Also write the log to this file")
def mutate(config_file, reference, output_dir, prefix, mutation_rate, ploidy, seed,
           rng_backend, overwrite, log_level, log_file):
    """Mutate a reference; write only the mutated FASTA and VCF."""
    _run(
        True, config_file, log_level, log_file,
        reference=reference,
        output_dir=output_dir,
        output_prefix=prefix,
        mutation_rate=mutation_rate,
        ploidy=ploidy,
        rng_seed=seed,
        rng_backend=rng_backend,
        overwrite_output=overwrite or None,
    )


# ============================================================================
# Model Commands
# ============================================================================

@main.command("quality-model")
@click.option("-i", "--input", "input_file",
              help="Raw per-position statistics JSON (omit for the default model)")
@click.option("-o", "--output", help="Output model JSON")
def quality_model(input_file, output):
    """Build a quality score model JSON.

    The input holds quality_score_options, binned_scores,
    assumed_read_length, seed_weights and stats_from_one (frequencies,
    scaled x10000 into integer weights). Without input the default model
    is used. The model summary is always printed.
    """
    import json

    from genosim.simulate.engine.errors import GenosimError
    from genosim.simulate.engine.quality import QualityScoreModel

    try:
        if input_file:
            with open(input_file, "r") as f:
                stats = json.load(f)
            model = QualityScoreModel.from_raw_stats(
                quality_score_options=stats["quality_score_options"],
                binned_scores=stats["binned_scores"],
                assumed_read_length=stats["assumed_read_length"],
                seed_weights=stats["seed_weights"],
                stats_from_one=stats["stats_from_one"],
            )
        else:
            model = QualityScoreModel.default()
        if output:
            model.to_json(output)
    except KeyError as e:
        raise click.ClickException(f"Raw statistics missing field: {e}")
    except (GenosimError,) + USER_ERRORS as e:
        raise click.ClickException(str(e))

    click.echo(str(model), nl=False)
    if output:
        click.echo(f"Model written to {output}")


if __name__ == "__main__":
    main()
