"""Incremental genomic-event coverage, cohort aggregation and saturation k selection."""

from saturation_pipeline.coverage.models import (
    CohortCoverage,
    CoverageRecord,
    SampleCoverage,
    SaturationPoint,
)
from saturation_pipeline.coverage.schedule import (
    default_schedule,
    resolve_schedule,
    validate_schedule,
)
from saturation_pipeline.coverage.compute import (
    can_reuse_record,
    compute_coverage_record,
    compute_sample_coverage,
)
from saturation_pipeline.coverage.cohort import compute_cohort_coverage
from saturation_pipeline.coverage.aggregate import (
    aggregate_point,
    aggregate_saturation,
    coverage_frame,
    saturation_frame,
)
from saturation_pipeline.coverage.threshold import (
    DEFAULT_SATURATION_FRACTION,
    select_saturation_k,
)
from saturation_pipeline.coverage.analysis import (
    SaturationResult,
    is_entrez_id,
    run_saturation_analysis,
)
from saturation_pipeline.coverage.load import (
    COVERAGE_TABLE,
    CURVE_TABLE,
    load_to_duckdb,
    query_sample_coverage,
    query_saturation_curve,
)

__all__ = [
    "CohortCoverage",
    "CoverageRecord",
    "SampleCoverage",
    "SaturationPoint",
    "default_schedule",
    "resolve_schedule",
    "validate_schedule",
    "can_reuse_record",
    "compute_coverage_record",
    "compute_sample_coverage",
    "compute_cohort_coverage",
    "aggregate_point",
    "aggregate_saturation",
    "coverage_frame",
    "saturation_frame",
    "DEFAULT_SATURATION_FRACTION",
    "select_saturation_k",
    "SaturationResult",
    "is_entrez_id",
    "run_saturation_analysis",
    "COVERAGE_TABLE",
    "CURVE_TABLE",
    "load_to_duckdb",
    "query_sample_coverage",
    "query_saturation_curve",
]
