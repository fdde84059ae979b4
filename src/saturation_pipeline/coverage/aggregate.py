"""Cohort-level saturation curve and tabular views of coverage results."""

from collections.abc import Sequence

import numpy as np
import polars as pl
import structlog

from saturation_pipeline.coverage.models import (
    CohortCoverage,
    CoverageRecord,
    SampleCoverage,
    SaturationPoint,
)
from saturation_pipeline.interactions.models import EVENT_TYPES

logger = structlog.get_logger(__name__)

# Event types counted in mean_event_count and unique_event_count
COUNTED_EVENT_TYPES = ("mut", "amp", "del")

SATURATION_SCHEMA = {
    "k": pl.Int64,
    "mean_fraction": pl.Float64,
    "mean_event_count": pl.Float64,
    "unique_event_count": pl.Int64,
    "n_defined": pl.Int64,
}


def aggregate_point(k: int, records: Sequence[CoverageRecord]) -> SaturationPoint:
    """
    Summarize the records of all samples at one k.

    - mean_fraction: mean total_frac over records where it is defined
    - mean_event_count: mean covered mut/amp/del count over all records
    - unique_event_count: distinct mut/amp/del event ids covered; a cytoband
      amplified in one sample and deleted in another counts once
    """
    fractions = [r.total_frac for r in records if r.total_frac is not None]
    mean_fraction = float(np.mean(fractions)) if fractions else None

    counts = [
        sum(len(r.covered_events(event_type)) for event_type in COUNTED_EVENT_TYPES)
        for r in records
    ]
    mean_count = float(np.mean(counts)) if counts else 0.0

    unique_events = {
        event
        for r in records
        for event_type in COUNTED_EVENT_TYPES
        for event in r.covered_events(event_type)
    }

    return SaturationPoint(
        k=k,
        mean_fraction=mean_fraction,
        mean_event_count=mean_count,
        unique_event_count=len(unique_events),
        n_defined=len(fractions),
    )


def aggregate_saturation(coverages: Sequence[SampleCoverage]) -> list[SaturationPoint]:
    """
    Reduce per-sample coverage into the cohort saturation curve.

    Records are aligned by schedule index, so every sample must have been
    evaluated on the same schedule.

    Args:
        coverages: Per-sample coverage (e.g. CohortCoverage.coverages)

    Returns:
        One SaturationPoint per schedule point, in increasing k (empty for
        an empty cohort)

    Raises:
        ValueError: If samples were evaluated on different schedules
    """
    if not coverages:
        logger.warning("aggregate_saturation_empty_cohort")
        return []

    schedule = coverages[0].schedule
    mismatched = [c.sample for c in coverages if c.schedule != schedule]
    if mismatched:
        raise ValueError(
            f"Samples evaluated on a different schedule than {coverages[0].sample}: "
            f"{mismatched[:5]}"
        )

    points = [
        aggregate_point(k, [c.records[i] for c in coverages])
        for i, k in enumerate(schedule)
    ]

    last = points[-1]
    logger.info(
        "saturation_curve_built",
        samples=len(coverages),
        points=len(points),
        max_k=last.k,
        final_mean_fraction=(
            f"{last.mean_fraction:.4f}" if last.mean_fraction is not None else "N/A"
        ),
        final_unique_events=last.unique_event_count,
    )
    return points


def saturation_frame(points: Sequence[SaturationPoint]) -> pl.DataFrame:
    """Saturation curve as a table (columns: k, mean_fraction, mean_event_count,
    unique_event_count, n_defined)."""
    return pl.DataFrame(
        {
            "k": [p.k for p in points],
            "mean_fraction": [p.mean_fraction for p in points],
            "mean_event_count": [p.mean_event_count for p in points],
            "unique_event_count": [p.unique_event_count for p in points],
            "n_defined": [p.n_defined for p in points],
        },
        schema=SATURATION_SCHEMA,
    )


def coverage_frame(cohort: CohortCoverage) -> pl.DataFrame:
    """
    Per-sample, per-k coverage records as a long table.

    Columns: sample, k, n_active, {type}_covered and {type}_frac for each
    event type, total_covered, total_frac. Undefined fractions are null.
    """
    rows = []
    for coverage in cohort.coverages:
        for k, record in zip(coverage.schedule, coverage.records):
            row = {"sample": coverage.sample, "k": k, "n_active": record.n_active}
            for event_type in EVENT_TYPES:
                row[f"{event_type}_covered"] = len(record.covered_events(event_type))
                row[f"{event_type}_frac"] = record.fractions.get(event_type)
            row["total_covered"] = record.covered_count
            row["total_frac"] = record.total_frac
            rows.append(row)

    schema = {"sample": pl.Utf8, "k": pl.Int64, "n_active": pl.Int64}
    for event_type in EVENT_TYPES:
        schema[f"{event_type}_covered"] = pl.Int64
        schema[f"{event_type}_frac"] = pl.Float64
    schema["total_covered"] = pl.Int64
    schema["total_frac"] = pl.Float64

    return pl.DataFrame(rows, schema=schema)
