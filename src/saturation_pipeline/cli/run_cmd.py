"""Run command: compute the genomic saturation curve of a regulator ranking.

Commands for:
- Loading cohort inputs and checking cytoband mapping quality
- Computing per-sample coverage along the ranking
- Persisting coverage and the cohort curve to DuckDB
- Writing curve tables, provenance and plots
"""

import logging
import sys

import click

from saturation_pipeline.config.loader import load_config_with_overrides
from saturation_pipeline.coverage import (
    CURVE_TABLE,
    coverage_frame,
    load_to_duckdb,
    query_saturation_curve,
    run_saturation_analysis,
    saturation_frame,
    select_saturation_k,
)
from saturation_pipeline.errors import SaturationError
from saturation_pipeline.gene_mapping import MappingValidator
from saturation_pipeline.inputs.bundle import load_inputs
from saturation_pipeline.output import (
    generate_all_plots,
    write_coverage_records,
    write_saturation_output,
)
from saturation_pipeline.persistence import PipelineStore, ProvenanceTracker

logger = logging.getLogger(__name__)


def _format_k(selected_k):
    return str(selected_k) if selected_k is not None else "not reached"


def _echo_curve_summary(curve_df, selected_k, fraction):
    final = curve_df.sort("k").tail(1).to_dicts()[0] if curve_df.height else {}
    final_fraction = final.get("mean_fraction")

    click.echo(f"Curve points: {curve_df.height}")
    click.echo(f"Max k: {final.get('k', 'N/A')}")
    click.echo(
        "Final mean fraction: "
        + (f"{final_fraction:.4f}" if final_fraction is not None else "N/A")
    )
    click.echo(f"Final unique events: {final.get('unique_event_count', 'N/A')}")
    click.echo(f"Selected k ({fraction:.0%} of maximum): {_format_k(selected_k)}")


@click.command('run')
@click.option(
    '--force',
    is_flag=True,
    help='Re-run the analysis even if a saturation_curve checkpoint exists for this config'
)
@click.option(
    '--skip-plot',
    is_flag=True,
    help='Skip plot generation'
)
@click.option(
    '--top-n',
    type=int,
    default=None,
    help='Only use the top N regulators of the ranking (overrides coverage.top_n)'
)
@click.option(
    '--saturation-fraction',
    type=float,
    default=None,
    help='Fraction of the maximum coverage that defines saturation (overrides coverage.saturation_fraction)'
)
@click.pass_context
def run(ctx, force, skip_plot, top_n, saturation_fraction):
    """Compute the genomic saturation curve for the configured cohort.

    For every sample, walks the regulator ranking and records the fraction of
    the sample's mutations, amplified and deleted cytobands and fusions
    explained by the sample's active regulators among the top k. The cohort
    curve is the mean over samples; the selected k is the smallest k whose
    curve value reaches the configured fraction of its maximum.

    Supports checkpoint-restart: skips computation if a saturation_curve
    table produced with the same config exists (use --force to re-run).

    Examples:

        # First run
        saturation-pipeline run

        # Force re-run without plots
        saturation-pipeline run --force --skip-plot

        # Top 200 regulators, 90% saturation
        saturation-pipeline run --top-n 200 --saturation-fraction 0.9
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Genomic Saturation Analysis ===", bold=True))
    click.echo()

    store = None
    try:
        click.echo("Loading configuration...")
        config = load_config_with_overrides(config_path, {
            "coverage.top_n": top_n,
            "coverage.saturation_fraction": saturation_fraction,
        })
        config_hash = config.config_hash()
        fraction = config.coverage.saturation_fraction
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()

        click.echo("Initializing storage and provenance tracking...")
        store = PipelineStore.from_config(config)
        provenance = ProvenanceTracker.from_config(config)
        click.echo(click.style("  Storage initialized", fg='green'))
        click.echo()

        if store.has_checkpoint(CURVE_TABLE, config_hash=config_hash) and not force:
            click.echo(click.style(
                f"{CURVE_TABLE} checkpoint exists for this config. "
                "Skipping computation (use --force to re-run).",
                fg='yellow'
            ))
            click.echo()

            curve_df = query_saturation_curve(store)
            if curve_df is not None:
                selected_k = select_saturation_k(curve_df, fraction=fraction)
                click.echo(click.style("=== Summary ===", bold=True))
                _echo_curve_summary(curve_df, selected_k, fraction)
                click.echo()
                click.echo(f"DuckDB Path: {config.duckdb_path}")
                click.echo()
                click.echo(click.style("Analysis complete (used existing checkpoint)", fg='green'))
                return

        # Step 1: Load inputs
        click.echo(click.style("Step 1: Loading cohort inputs...", bold=True))
        inputs = load_inputs(config)
        click.echo(click.style(
            f"  {len(inputs.ranking)} ranked regulators, "
            f"{len(inputs.activity.samples)} activity samples, "
            f"{len(inputs.mutations.samples)} mutation samples, "
            f"{len(inputs.copy_number.samples)} copy-number samples",
            fg='green'
        ))
        if inputs.fusions is None:
            click.echo(click.style("  No fusion matrix; fusion coverage is skipped", fg='yellow'))
        click.echo()
        provenance.record_step('load_inputs', {
            'regulators': len(inputs.ranking),
            'activity_samples': len(inputs.activity.samples),
            'has_fusions': inputs.fusions is not None,
            'whitelist_size': len(inputs.whitelist) if inputs.whitelist is not None else None,
        })

        # Step 2: Cytoband mapping quality
        click.echo(click.style("Step 2: Checking cytoband mapping of copy-number hypotheses...", bold=True))
        validator = MappingValidator()
        mapping_rates = {}
        for event_type in ("amp", "del"):
            genes = inputs.hypotheses.for_type(event_type)
            _, report = inputs.location_map.translate_with_report(genes)
            result = validator.validate(report, label=f"{event_type} hypotheses")
            mapping_rates[event_type] = result.success_rate
            color = 'green' if result.passed else 'red'
            for message in result.messages:
                click.echo(click.style(f"  {message}", fg=color))
            if report.unmapped_ids:
                unmapped_path = config.output_dir / f"unmapped_{event_type}_hypotheses.txt"
                validator.save_unmapped_report(report, unmapped_path)
                click.echo(f"  Unmapped genes written to {unmapped_path}")
        click.echo()
        provenance.record_step('check_cytoband_mapping', {
            'success_rates': mapping_rates,
        })

        # Step 3: Coverage and curve
        click.echo(click.style("Step 3: Computing coverage along the ranking...", bold=True))
        result = run_saturation_analysis(inputs, config.thresholds, config.coverage)
        cohort = result.cohort
        click.echo(click.style(
            f"  {len(cohort.coverages)} samples analyzed, "
            f"{len(result.curve)} curve points",
            fg='green'
        ))
        if cohort.errors:
            click.echo(click.style(
                f"  {len(cohort.errors)} samples failed and were excluded:",
                fg='yellow'
            ))
            for sample, error in sorted(cohort.errors.items()):
                click.echo(click.style(f"    - {sample}: {error}", fg='yellow'))
        click.echo()
        provenance.record_step('compute_saturation', {
            'regulators': len(result.ranking),
            'samples': len(cohort.coverages),
            'failed_samples': len(cohort.errors),
            'event_types': list(result.interaction_map.event_types),
            'selected_k': result.selected_k,
        })

        # Step 4: Persist
        click.echo(click.style("Step 4: Persisting coverage to DuckDB...", bold=True))
        coverage_df = coverage_frame(cohort)
        curve_df = saturation_frame(result.curve)
        load_to_duckdb(coverage_df, curve_df, store, provenance, config_hash=config_hash)
        click.echo(click.style(
            f"  Saved coverage_records ({coverage_df.height} rows) and {CURVE_TABLE} ({curve_df.height} rows)",
            fg='green'
        ))
        click.echo()

        # Step 5: Output files
        click.echo(click.style("Step 5: Writing output files...", bold=True))
        output_dir = config.output_dir
        curve_paths = write_saturation_output(
            curve_df,
            output_dir,
            result.selected_k,
            saturation_fraction=fraction,
            failed_samples=cohort.errors,
        )
        record_paths = write_coverage_records(coverage_df, output_dir)
        for path in (*curve_paths.values(), *record_paths.values()):
            click.echo(click.style(f"  {path}", fg='green'))
        click.echo()

        # Step 6: Plots
        if not skip_plot:
            click.echo(click.style("Step 6: Generating plots...", bold=True))
            plots = generate_all_plots(curve_df, output_dir / "plots", selected_k=result.selected_k)
            for name, path in plots.items():
                click.echo(click.style(f"  {name}: {path}", fg='green'))
            provenance.record_step('generate_plots', {'plots': sorted(plots)})
        else:
            click.echo(click.style("Step 6: Skipping plots (--skip-plot)", fg='yellow'))
        click.echo()

        click.echo("Saving provenance metadata...")
        provenance.save_to_store(store)
        provenance_path = provenance.save_sidecar(output_dir / "saturation_run.json")
        click.echo(click.style(f"  Provenance saved: {provenance_path}", fg='green'))
        click.echo()

        click.echo(click.style("=== Final Summary ===", bold=True))
        click.echo(f"Regulators analyzed: {len(result.ranking)}")
        click.echo(f"Samples analyzed: {len(cohort.coverages)}")
        click.echo(f"Samples failed: {len(cohort.errors)}")
        _echo_curve_summary(curve_df, result.selected_k, fraction)
        click.echo()
        click.echo(f"DuckDB Path: {config.duckdb_path}")
        click.echo(f"Output Directory: {output_dir}")
        click.echo()
        click.echo(click.style("Saturation analysis complete!", fg='green', bold=True))

    except SaturationError as e:
        click.echo(click.style(f"Saturation analysis failed: {e}", fg='red'), err=True)
        logger.error(f"Saturation analysis failed: {e}")
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"Run command failed: {e}", fg='red'), err=True)
        logger.exception("Run command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
