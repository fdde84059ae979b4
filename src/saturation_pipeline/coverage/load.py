"""Load coverage results to DuckDB with provenance tracking."""

from typing import Optional

import polars as pl
import structlog

from saturation_pipeline.coverage.aggregate import SATURATION_SCHEMA
from saturation_pipeline.persistence import PipelineStore, ProvenanceTracker

logger = structlog.get_logger(__name__)

COVERAGE_TABLE = "coverage_records"
CURVE_TABLE = "saturation_curve"


def load_to_duckdb(
    coverage_df: pl.DataFrame,
    curve_df: pl.DataFrame,
    store: PipelineStore,
    provenance: ProvenanceTracker,
    config_hash: Optional[str] = None,
) -> None:
    """Save per-sample coverage and the saturation curve to DuckDB.

    Creates or replaces the coverage_records and saturation_curve tables
    (idempotent) and records a provenance step with summary statistics.

    Args:
        coverage_df: Long per-sample table from coverage_frame()
        curve_df: Curve table from saturation_frame()
        store: PipelineStore instance for DuckDB persistence
        provenance: ProvenanceTracker instance for metadata recording
        config_hash: Hash of the config that produced the results
    """
    logger.info(
        "coverage_load_start",
        coverage_rows=coverage_df.height,
        curve_points=curve_df.height,
    )

    samples = coverage_df["sample"].n_unique() if coverage_df.height else 0
    undefined_rows = coverage_df.filter(pl.col("total_frac").is_null()).height

    store.save_dataframe(
        df=coverage_df,
        table_name=COVERAGE_TABLE,
        description="Per-sample coverage records at each evaluated k",
        replace=True,
        config_hash=config_hash,
    )
    store.save_dataframe(
        df=curve_df,
        table_name=CURVE_TABLE,
        description="Cohort saturation curve",
        replace=True,
        config_hash=config_hash,
    )

    provenance.record_step("load_coverage", {
        "samples": samples,
        "coverage_rows": coverage_df.height,
        "undefined_fraction_rows": undefined_rows,
        "curve_points": curve_df.height,
    })

    logger.info(
        "coverage_load_complete",
        samples=samples,
        coverage_rows=coverage_df.height,
        undefined_fraction_rows=undefined_rows,
    )


def query_saturation_curve(store: PipelineStore) -> Optional[pl.DataFrame]:
    """Saturation curve from DuckDB ordered by k, or None if not stored."""
    if not store.has_checkpoint(CURVE_TABLE):
        return None

    df = store.execute_query(f"SELECT * FROM {CURVE_TABLE} ORDER BY k")
    return df.cast({name: dtype for name, dtype in SATURATION_SCHEMA.items() if name in df.columns})


def query_sample_coverage(store: PipelineStore, sample: str) -> pl.DataFrame:
    """Coverage records of one sample ordered by k."""
    return store.execute_query(
        f"SELECT * FROM {COVERAGE_TABLE} WHERE sample = ? ORDER BY k",
        params=[sample],
    )
