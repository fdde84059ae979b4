"""Main CLI entry point for saturation-pipeline.

Provides command group with global options and subcommands for pipeline operations.
"""

import logging
from pathlib import Path

import click

from saturation_pipeline import __version__
from saturation_pipeline.config.loader import load_config
from saturation_pipeline.cli.run_cmd import run


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to pipeline configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """Saturation-pipeline: genomic saturation analysis of master regulator rankings.

    Measures how much of each sample's genomic alteration landscape is
    explained by the top-k regulators of a ranking, and selects the k at
    which the cohort curve saturates.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"Saturation Pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Thresholds:", bold=True))
        click.echo(f"  Activity p-value: {config.thresholds.activity_pvalue} ({config.thresholds.activity_tail})")
        click.echo(f"  CNV threshold:    {config.thresholds.cnv_threshold}")
        click.echo()

        coverage = config.coverage
        click.echo(click.style("Coverage:", bold=True))
        click.echo(f"  Top N:               {coverage.top_n if coverage.top_n is not None else 'all'}")
        click.echo(f"  Schedule:            {'custom' if coverage.schedule else 'adaptive'}")
        click.echo(f"  Memoization:         {coverage.memoization}")
        click.echo(f"  Max workers:         {coverage.max_workers}")
        click.echo(f"  Saturation fraction: {coverage.saturation_fraction}")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Data Directory:   {config.data_dir}")
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  DuckDB Path:      {config.duckdb_path}")
        click.echo()

        click.echo(click.style("Inputs:", bold=True))
        for name, path in config.inputs.model_dump().items():
            if path is None:
                continue
            resolved = config.resolve_input(path)
            status = "" if resolved.exists() else click.style(" (missing)", fg='yellow')
            click.echo(f"  {name}: {resolved}{status}")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


cli.add_command(run)


if __name__ == '__main__':
    cli()
