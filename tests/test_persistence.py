"""Tests for persistence layer (DuckDB store, provenance tracking, coverage tables)."""

import json

import polars as pl
import pytest

from saturation_pipeline.config.loader import load_config
from saturation_pipeline.coverage import (
    COVERAGE_TABLE,
    CURVE_TABLE,
    load_to_duckdb,
    query_sample_coverage,
    query_saturation_curve,
)
from saturation_pipeline.persistence import PipelineStore, ProvenanceTracker


@pytest.fixture
def test_config(cohort_config_path):
    return load_config(cohort_config_path)


@pytest.fixture
def curve_df():
    return pl.DataFrame(
        {
            "k": [1, 2, 3],
            "mean_fraction": [0.2, None, 0.9],
            "mean_event_count": [1.0, 2.0, 3.0],
            "unique_event_count": [2, 4, 5],
            "n_defined": [2, 0, 2],
        },
        schema={
            "k": pl.Int64,
            "mean_fraction": pl.Float64,
            "mean_event_count": pl.Float64,
            "unique_event_count": pl.Int64,
            "n_defined": pl.Int64,
        },
    )


@pytest.fixture
def coverage_df():
    return pl.DataFrame({
        "sample": ["S1", "S1", "S2", "S2"],
        "k": [1, 2, 1, 2],
        "n_active": [1, 1, 0, 1],
        "total_covered": [1, 1, 0, 2],
        "total_frac": [0.5, 0.5, None, 1.0],
    })


# ============================================================================
# DuckDB Store Tests
# ============================================================================

def test_store_creates_database(tmp_path):
    """Test that PipelineStore creates .duckdb file at specified path."""
    db_path = tmp_path / "nested" / "test.duckdb"
    assert not db_path.exists()

    store = PipelineStore(db_path)
    store.close()

    assert db_path.exists()


def test_save_and_load_polars(tmp_path, curve_df):
    """Test saving and loading a polars DataFrame keeps nulls."""
    store = PipelineStore(tmp_path / "test.duckdb")

    store.save_dataframe(curve_df, "saturation_curve", description="curve")
    loaded = store.load_dataframe("saturation_curve")

    assert loaded.shape == curve_df.shape
    assert loaded["k"].to_list() == [1, 2, 3]
    assert loaded["mean_fraction"].to_list() == [0.2, None, 0.9]

    store.close()


def test_save_rejects_non_polars(tmp_path):
    """Test that only polars DataFrames are accepted."""
    store = PipelineStore(tmp_path / "test.duckdb")

    with pytest.raises(ValueError, match="polars"):
        store.save_dataframe({"k": [1]}, "bad")

    store.close()


def test_invalid_table_name(tmp_path, curve_df):
    """Test that table names must be plain identifiers."""
    store = PipelineStore(tmp_path / "test.duckdb")

    with pytest.raises(ValueError, match="Invalid table name"):
        store.save_dataframe(curve_df, "curve; DROP TABLE _checkpoints")
    with pytest.raises(ValueError, match="Invalid table name"):
        store.load_dataframe("1curve")

    store.close()


def test_checkpoint_lifecycle(tmp_path, curve_df):
    """Test save -> has -> delete -> not has."""
    store = PipelineStore(tmp_path / "test.duckdb")

    assert not store.has_checkpoint("saturation_curve")

    store.save_dataframe(curve_df, "saturation_curve")
    assert store.has_checkpoint("saturation_curve")

    store.delete_checkpoint("saturation_curve")
    assert not store.has_checkpoint("saturation_curve")
    assert store.load_dataframe("saturation_curve") is None

    store.close()


def test_checkpoint_config_hash(tmp_path, curve_df):
    """Test that checkpoints can be matched against the producing config hash."""
    store = PipelineStore(tmp_path / "test.duckdb")

    store.save_dataframe(curve_df, "saturation_curve", config_hash="abc123")

    assert store.has_checkpoint("saturation_curve")
    assert store.has_checkpoint("saturation_curve", config_hash="abc123")
    assert not store.has_checkpoint("saturation_curve", config_hash="other")

    store.close()


def test_list_checkpoints(tmp_path, curve_df):
    """Test listing checkpoints returns metadata."""
    store = PipelineStore(tmp_path / "test.duckdb")

    store.save_dataframe(curve_df, "curve_a", description="first", config_hash="h1")
    store.save_dataframe(curve_df.head(1), "curve_b", description="second")

    checkpoints = {c["table_name"]: c for c in store.list_checkpoints()}

    assert set(checkpoints) == {"curve_a", "curve_b"}
    assert set(checkpoints["curve_a"]) == {
        "table_name", "created_at", "row_count", "description", "config_hash",
    }
    assert checkpoints["curve_a"]["row_count"] == 3
    assert checkpoints["curve_a"]["config_hash"] == "h1"
    assert checkpoints["curve_b"]["row_count"] == 1
    assert checkpoints["curve_b"]["config_hash"] is None

    store.close()


def test_append_mode(tmp_path, curve_df):
    """Test that replace=False appends rows."""
    store = PipelineStore(tmp_path / "test.duckdb")

    store.save_dataframe(curve_df, "saturation_curve")
    store.save_dataframe(curve_df, "saturation_curve", replace=False)

    assert store.load_dataframe("saturation_curve").height == 6
    assert store.list_checkpoints()[0]["row_count"] == 6

    store.close()


def test_export_parquet(tmp_path, curve_df):
    """Test exporting a table to Parquet."""
    store = PipelineStore(tmp_path / "test.duckdb")
    store.save_dataframe(curve_df, "saturation_curve")

    parquet_path = tmp_path / "export" / "curve.parquet"
    store.export_parquet("saturation_curve", parquet_path)

    assert parquet_path.exists()
    assert pl.read_parquet(parquet_path).height == 3

    store.close()


def test_execute_query_with_params(tmp_path, curve_df):
    """Test parameterized queries return polars DataFrames."""
    store = PipelineStore(tmp_path / "test.duckdb")
    store.save_dataframe(curve_df, "saturation_curve")

    result = store.execute_query("SELECT k FROM saturation_curve WHERE k > ?", params=[1])

    assert isinstance(result, pl.DataFrame)
    assert result["k"].to_list() == [2, 3]

    store.close()


def test_context_manager(tmp_path, curve_df):
    """Test that the store closes its connection on exit."""
    with PipelineStore(tmp_path / "test.duckdb") as store:
        store.save_dataframe(curve_df, "saturation_curve")
        assert store.has_checkpoint("saturation_curve")

    assert store.conn is None


def test_store_from_config(test_config):
    """Test creating the store at the configured path."""
    store = PipelineStore.from_config(test_config)

    assert store.db_path == test_config.duckdb_path

    store.close()


# ============================================================================
# Provenance Tests
# ============================================================================

def test_provenance_metadata(test_config):
    """Test that provenance captures version, config hash and parameters."""
    provenance = ProvenanceTracker("0.1.0", test_config)
    provenance.record_step("load_inputs", {"regulators": 4})
    provenance.record_step("compute_saturation")

    metadata = provenance.create_metadata()

    assert metadata["pipeline_version"] == "0.1.0"
    assert metadata["config_hash"] == test_config.config_hash()
    assert metadata["parameters"]["thresholds"]["activity_tail"] == "two_sided"
    assert metadata["parameters"]["coverage"]["saturation_fraction"] == 0.85
    assert metadata["input_files"]["ranking"].endswith("ranking.tsv")
    assert "mutation_whitelist" not in metadata["input_files"]
    steps = provenance.get_steps()
    assert [s["step_name"] for s in steps] == ["load_inputs", "compute_saturation"]
    assert steps[0]["details"] == {"regulators": 4}
    assert "details" not in steps[1]


def test_provenance_sidecar_round_trip(tmp_path, test_config):
    """Test saving and reloading the JSON sidecar."""
    provenance = ProvenanceTracker.from_config(test_config, version="9.9.9")
    provenance.record_step("load_coverage")

    sidecar = provenance.save_sidecar(tmp_path / "out" / "saturation_run.json")

    assert sidecar == tmp_path / "out" / "saturation_run.provenance.json"
    loaded = ProvenanceTracker.load_sidecar(sidecar)
    assert loaded["pipeline_version"] == "9.9.9"
    assert loaded["processing_steps"][0]["step_name"] == "load_coverage"


def test_provenance_default_version(test_config):
    """Test that from_config uses the package version."""
    from saturation_pipeline import __version__

    assert ProvenanceTracker.from_config(test_config).pipeline_version == __version__


def test_provenance_save_to_store(tmp_path, test_config):
    """Test that provenance rows are appended to the _provenance table."""
    provenance = ProvenanceTracker("0.1.0", test_config)
    provenance.record_step("compute_saturation", {"samples": 3})

    with PipelineStore(tmp_path / "test.duckdb") as store:
        provenance.save_to_store(store)
        provenance.save_to_store(store)
        rows = store.execute_query("SELECT * FROM _provenance")

    assert rows.height == 2
    assert rows["config_hash"][0] == test_config.config_hash()
    steps = json.loads(rows["steps_json"][0])
    assert steps[0]["details"] == {"samples": 3}
    assert json.loads(rows["parameters_json"][0])["thresholds"]["cnv_threshold"] == 0.5


# ============================================================================
# Coverage Table Tests
# ============================================================================

def test_load_to_duckdb(tmp_path, test_config, coverage_df, curve_df):
    """Test persisting coverage records and the curve with provenance."""
    provenance = ProvenanceTracker("0.1.0", test_config)

    with PipelineStore(tmp_path / "test.duckdb") as store:
        load_to_duckdb(coverage_df, curve_df, store, provenance, config_hash="h1")

        assert store.has_checkpoint(COVERAGE_TABLE, config_hash="h1")
        assert store.has_checkpoint(CURVE_TABLE, config_hash="h1")

        curve = query_saturation_curve(store)
        assert curve["k"].to_list() == [1, 2, 3]
        assert curve["mean_fraction"].to_list() == [0.2, None, 0.9]

        s2 = query_sample_coverage(store, "S2")
        assert s2["k"].to_list() == [1, 2]
        assert s2["total_frac"].to_list() == [None, 1.0]

    step = provenance.get_steps()[-1]
    assert step["step_name"] == "load_coverage"
    assert step["details"]["samples"] == 2
    assert step["details"]["undefined_fraction_rows"] == 1
    assert step["details"]["curve_points"] == 3


def test_query_saturation_curve_missing(tmp_path):
    """Test that an empty store has no curve."""
    with PipelineStore(tmp_path / "test.duckdb") as store:
        assert query_saturation_curve(store) is None
