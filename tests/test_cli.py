"""Integration tests for the CLI using CliRunner.

Tests:
- info with a valid and an invalid config
- Full run on the synthetic cohort
- Checkpoint reuse and --force
- --skip-plot
- Fatal configuration errors exit with status 1
"""

import polars as pl
import yaml
from click.testing import CliRunner

from saturation_pipeline.cli.main import cli
from saturation_pipeline.persistence import PipelineStore


def run_cli(config_path, *args):
    runner = CliRunner()
    return runner.invoke(cli, ["--config", str(config_path), *args])


def test_help():
    """Test that the command group lists its commands."""
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "info" in result.output
    assert "run" in result.output


def test_info(cohort_config_path):
    """Test that info shows thresholds and input paths."""
    result = run_cli(cohort_config_path, "info")

    assert result.exit_code == 0, result.output
    assert "Config Hash:" in result.output
    assert "two_sided" in result.output
    assert "Saturation fraction: 0.85" in result.output
    assert "ranking.tsv" in result.output
    assert "(missing)" not in result.output


def test_info_invalid_config(tmp_path):
    """Test that info exits 1 on an invalid config."""
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("data_dir: data\n")

    result = run_cli(config_path, "info")

    assert result.exit_code == 1
    assert "Error loading config" in result.output


def test_run_end_to_end(tmp_path, cohort_config_path):
    """Test a full run writes tables, provenance, plots and checkpoints."""
    result = run_cli(cohort_config_path, "run")

    assert result.exit_code == 0, result.output
    assert "Selected k (85% of maximum): 2" in result.output
    assert "Samples analyzed: 3" in result.output
    assert "Saturation analysis complete!" in result.output

    results_dir = tmp_path / "results"
    curve = pl.read_parquet(results_dir / "saturation_curve.parquet")
    assert curve["k"].to_list() == [1, 2, 3, 4]
    assert (results_dir / "saturation_curve.tsv").exists()
    assert (results_dir / "coverage_records.parquet").exists()
    assert (results_dir / "saturation_run.provenance.json").exists()
    assert (results_dir / "plots" / "saturation_curve.png").exists()

    with open(results_dir / "saturation_curve.provenance.yaml") as f:
        provenance = yaml.safe_load(f)
    assert provenance["statistics"]["selected_k"] == 2

    with PipelineStore(tmp_path / "saturation.duckdb") as store:
        assert store.has_checkpoint("saturation_curve")
        assert store.load_dataframe("coverage_records").height == 3 * 4
        assert store.execute_query("SELECT * FROM _provenance").height == 1


def test_run_uses_checkpoint(cohort_config_path):
    """Test that a second run reuses the checkpoint unless --force is given."""
    first = run_cli(cohort_config_path, "run", "--skip-plot")
    assert first.exit_code == 0, first.output

    second = run_cli(cohort_config_path, "run")
    assert second.exit_code == 0, second.output
    assert "checkpoint exists" in second.output
    assert "Selected k (85% of maximum): 2" in second.output
    assert "used existing checkpoint" in second.output

    forced = run_cli(cohort_config_path, "run", "--force", "--skip-plot")
    assert forced.exit_code == 0, forced.output
    assert "checkpoint exists" not in forced.output
    assert "Saturation analysis complete!" in forced.output


def test_run_checkpoint_invalidated_by_config_change(cohort_config_path):
    """Test that a checkpoint from a different config is not reused."""
    first = run_cli(cohort_config_path, "run", "--skip-plot")
    assert first.exit_code == 0, first.output

    text = cohort_config_path.read_text().replace("saturation_fraction: 0.85", "saturation_fraction: 0.95")
    cohort_config_path.write_text(text)

    second = run_cli(cohort_config_path, "run", "--skip-plot")
    assert second.exit_code == 0, second.output
    assert "checkpoint exists" not in second.output
    assert "Selected k (95% of maximum): 4" in second.output


def test_run_skip_plot(tmp_path, cohort_config_path):
    """Test that --skip-plot produces no plot files."""
    result = run_cli(cohort_config_path, "run", "--skip-plot")

    assert result.exit_code == 0, result.output
    assert "Skipping plots" in result.output
    assert not (tmp_path / "results" / "plots").exists()


def test_run_reports_mapping_quality(tmp_path, cohort_config_path, cohort_dir):
    """Test that unmapped copy-number hypothesis genes are reported."""
    with open(cohort_dir / "hypotheses.tsv", "a") as f:
        f.write("amp\t9999\n")

    result = run_cli(cohort_config_path, "run", "--skip-plot")

    assert result.exit_code == 0, result.output
    assert "amp hypotheses cytoband mapping rate 50.0%" in result.output
    unmapped = tmp_path / "results" / "unmapped_amp_hypotheses.txt"
    assert unmapped.read_text().splitlines()[-1] == "9999"


def test_run_configuration_error_exits(cohort_config_path, cohort_dir):
    """Test that a fatal configuration error exits with status 1."""
    (cohort_dir / "hypotheses.tsv").write_text("event_type\tgene_id\namp\t2064\ndel\t1029\n")

    result = run_cli(cohort_config_path, "run", "--skip-plot")

    assert result.exit_code == 1
    assert "Saturation analysis failed" in result.output
    assert "mutation hypotheses" in result.output


def test_run_missing_input_exits(cohort_config_path, cohort_dir):
    """Test that a missing input table exits with status 1."""
    (cohort_dir / "activity.tsv").unlink()

    result = run_cli(cohort_config_path, "run")

    assert result.exit_code == 1
    assert "Run command failed" in result.output


def test_run_command_line_overrides(cohort_config_path):
    """Test that --top-n and --saturation-fraction override the config file."""
    result = run_cli(
        cohort_config_path, "run", "--skip-plot", "--top-n", "2", "--saturation-fraction", "0.95",
    )

    assert result.exit_code == 0, result.output
    assert "Max k: 2" in result.output
    assert "Selected k (95% of maximum): 2" in result.output


def test_run_invalid_override_exits(cohort_config_path):
    """Test that an out-of-range override fails config validation."""
    result = run_cli(cohort_config_path, "run", "--saturation-fraction", "1.5")

    assert result.exit_code == 1
    assert "Run command failed" in result.output
