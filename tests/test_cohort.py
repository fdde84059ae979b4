"""Tests for parallel cohort coverage, curve aggregation and saturation k selection."""

import math

import polars as pl
import pytest
from structlog.testing import capture_logs

from saturation_pipeline.coverage import (
    CoverageRecord,
    SampleCoverage,
    SaturationPoint,
    aggregate_point,
    aggregate_saturation,
    compute_cohort_coverage,
    compute_sample_coverage,
    coverage_frame,
    saturation_frame,
    select_saturation_k,
)
from saturation_pipeline.coverage import cohort as cohort_module
from saturation_pipeline.interactions import InteractionMap, RegulatorRanking
from saturation_pipeline.profiles import SampleProfile


@pytest.fixture
def interaction_map():
    return InteractionMap(by_type={
        "mut": {"R1": frozenset({"m1"}), "R2": frozenset({"m2"})},
        "amp": {"R2": frozenset({"1q21"})},
        "del": {"R1": frozenset({"9p21"})},
    })


@pytest.fixture
def ranking():
    return RegulatorRanking(["R1", "R2", "R3"])


@pytest.fixture
def profiles():
    return [
        SampleProfile(
            sample=f"s{i}",
            active_regulators=frozenset(active),
            events={"mut": frozenset({"m1", "m2"}), "amp": frozenset({"1q21"})},
        )
        for i, active in enumerate([{"R1"}, {"R2"}, {"R1", "R2"}, set(), {"R3"}])
    ]


def make_record(total_frac, covered=None):
    covered = covered or {}
    return CoverageRecord(
        covered={t: frozenset(v) for t, v in covered.items()},
        fractions={"mut": total_frac},
        total_frac=total_frac,
    )


# ============================================================================
# Cohort Tests
# ============================================================================

def test_cohort_preserves_profile_order(profiles, interaction_map, ranking):
    """Test that results follow profile order regardless of completion order."""
    cohort = compute_cohort_coverage(profiles, interaction_map, ranking, max_workers=3)

    assert cohort.samples == ["s0", "s1", "s2", "s3", "s4"]
    assert cohort.errors == {}
    assert all(c.schedule == (1, 2, 3) for c in cohort.coverages)


def test_cohort_matches_sequential(profiles, interaction_map, ranking):
    """Test that the parallel run equals per-sample sequential computation."""
    cohort = compute_cohort_coverage(profiles, interaction_map, ranking, max_workers=4)

    for profile in profiles:
        expected = compute_sample_coverage(profile, interaction_map, ranking)
        assert cohort.get(profile.sample).records == expected.records


def test_cohort_single_worker(profiles, interaction_map, ranking, monkeypatch):
    """Test that max_workers=1 runs one sample at a time with the same results."""
    original = cohort_module.compute_sample_coverage
    running = []
    peak = []

    def tracked(profile, *args, **kwargs):
        running.append(profile.sample)
        peak.append(len(running))
        try:
            return original(profile, *args, **kwargs)
        finally:
            running.remove(profile.sample)

    monkeypatch.setattr(cohort_module, "compute_sample_coverage", tracked)

    serial = compute_cohort_coverage(profiles, interaction_map, ranking, max_workers=1)
    parallel = compute_cohort_coverage(profiles, interaction_map, ranking, max_workers=4)

    assert max(peak[:len(profiles)]) == 1
    assert serial.samples == parallel.samples
    for sample in serial.samples:
        assert serial.get(sample).records == parallel.get(sample).records


def test_cohort_isolates_sample_failures(profiles, interaction_map, ranking, monkeypatch):
    """Test that one failing sample is recorded while the others complete."""
    original = cohort_module.compute_sample_coverage

    def flaky(profile, *args, **kwargs):
        if profile.sample == "s1":
            raise RuntimeError("corrupt profile")
        return original(profile, *args, **kwargs)

    monkeypatch.setattr(cohort_module, "compute_sample_coverage", flaky)

    with capture_logs() as logs:
        cohort = compute_cohort_coverage(profiles, interaction_map, ranking)

    assert cohort.samples == ["s0", "s2", "s3", "s4"]
    assert cohort.errors == {"s1": "RuntimeError: corrupt profile"}
    assert any(
        log["event"] == "sample_coverage_failed" and log["sample"] == "s1"
        for log in logs
    )


def test_cohort_duplicate_samples(profiles, interaction_map, ranking):
    """Test that duplicated sample ids are rejected."""
    with pytest.raises(ValueError, match="unique"):
        compute_cohort_coverage(profiles + profiles[:1], interaction_map, ranking)


def test_cohort_invalid_workers(profiles, interaction_map, ranking):
    with pytest.raises(ValueError, match="max_workers"):
        compute_cohort_coverage(profiles, interaction_map, ranking, max_workers=0)


def test_cohort_empty(interaction_map, ranking):
    """Test that an empty cohort yields no coverage and no curve."""
    cohort = compute_cohort_coverage([], interaction_map, ranking)

    assert cohort.coverages == ()
    assert aggregate_saturation(cohort.coverages) == []


# ============================================================================
# Aggregation Tests
# ============================================================================

def test_aggregate_point_excludes_undefined():
    """Test that undefined fractions are excluded from the mean."""
    point = aggregate_point(5, [make_record(0.4), make_record(None), make_record(0.8)])

    assert point.k == 5
    assert point.mean_fraction == pytest.approx(0.6)
    assert point.n_defined == 2


def test_aggregate_point_all_undefined():
    """Test that a point with no defined fraction is undefined."""
    point = aggregate_point(1, [make_record(None), make_record(None)])

    assert point.mean_fraction is None
    assert point.n_defined == 0


def test_aggregate_point_event_counts():
    """Test mean covered events and unique event ids over mut/amp/del."""
    records = [
        make_record(0.5, {"mut": {"m1", "m2"}, "amp": {"1q21"}}),
        make_record(0.5, {"mut": {"m1"}, "fus": {"f1"}}),
        make_record(None),
    ]

    point = aggregate_point(3, records)

    # fusions are not counted
    assert point.mean_event_count == pytest.approx(4 / 3)
    assert point.unique_event_count == 3


def test_aggregate_point_same_band_amplified_and_deleted():
    """Test that one cytoband amplified and deleted in different samples counts once."""
    records = [
        make_record(0.5, {"amp": {"8q24"}}),
        make_record(0.5, {"del": {"8q24"}, "fus": {"f1"}}),
    ]

    point = aggregate_point(1, records)

    assert point.unique_event_count == 1
    assert point.mean_event_count == pytest.approx(1.0)


def test_aggregate_saturation(profiles, interaction_map, ranking):
    """Test the cohort curve on a small cohort."""
    cohort = compute_cohort_coverage(profiles, interaction_map, ranking)

    curve = aggregate_saturation(cohort.coverages)

    assert [p.k for p in curve] == [1, 2, 3]
    # s3 has no active regulators and never contributes
    assert all(p.n_defined == 4 for p in curve)
    # k=1: s0 1/3, s1 0, s2 1/3, s4 0
    assert curve[0].mean_fraction == pytest.approx((1 / 3 + 1 / 3) / 4)
    # k=2: s0 1/3, s1 2/3, s2 1, s4 0
    assert curve[1].mean_fraction == pytest.approx((1 / 3 + 2 / 3 + 1) / 4)
    assert curve[2].mean_fraction == curve[1].mean_fraction
    assert curve[-1].unique_event_count == 3


def test_aggregate_saturation_schedule_mismatch():
    """Test that samples evaluated on different schedules are rejected."""
    record = make_record(0.5)
    coverages = [
        SampleCoverage(sample="s1", schedule=(1, 2), records=(record, record)),
        SampleCoverage(sample="s2", schedule=(1, 3), records=(record, record)),
    ]

    with pytest.raises(ValueError, match="schedule"):
        aggregate_saturation(coverages)


def test_saturation_frame():
    """Test the tabular view of the curve."""
    points = [
        SaturationPoint(k=1, mean_fraction=None, mean_event_count=0.0, unique_event_count=0),
        SaturationPoint(k=2, mean_fraction=0.5, mean_event_count=1.5, unique_event_count=3, n_defined=2),
    ]

    df = saturation_frame(points)

    assert df.columns == ["k", "mean_fraction", "mean_event_count", "unique_event_count", "n_defined"]
    assert df["k"].to_list() == [1, 2]
    assert df["mean_fraction"].to_list() == [None, 0.5]
    assert df.schema["unique_event_count"] == pl.Int64


def test_coverage_frame(profiles, interaction_map, ranking):
    """Test the long per-sample table."""
    cohort = compute_cohort_coverage(profiles, interaction_map, ranking)

    df = coverage_frame(cohort)

    assert df.height == 5 * 3
    assert {"sample", "k", "n_active", "mut_covered", "mut_frac", "fus_frac", "total_frac"} <= set(df.columns)
    s2 = df.filter((pl.col("sample") == "s2") & (pl.col("k") == 3)).to_dicts()[0]
    assert s2["n_active"] == 2
    assert s2["mut_covered"] == 2
    assert s2["amp_covered"] == 1
    assert s2["total_frac"] == pytest.approx(1.0)
    assert s2["fus_frac"] is None
    assert df.filter(pl.col("sample") == "s3")["total_frac"].null_count() == 3


# ============================================================================
# Threshold Selection Tests
# ============================================================================

@pytest.mark.parametrize("fraction,expected", [(0.85, 3), (0.95, 4), (0.5, 2), (1.01, None)])
def test_select_saturation_k(fraction, expected):
    """Test k selection on a fixed curve."""
    curve = {1: 0.2, 2: 0.5, 3: 0.9, 4: 1.0}

    assert select_saturation_k(curve, fraction=fraction) == expected


def test_select_saturation_k_normalizes_by_maximum():
    """Test that the target is relative to the curve maximum."""
    curve = {1: 0.1, 2: 0.3, 3: 0.4}

    assert select_saturation_k(curve, fraction=0.7) == 2


def test_select_saturation_k_skips_undefined():
    """Test that None and NaN values are ignored."""
    curve = {1: None, 2: math.nan, 3: 0.9, 4: 1.0}

    assert select_saturation_k(curve, fraction=0.85) == 3


@pytest.mark.parametrize("curve", [{}, {1: None}, {1: 0.0, 2: 0.0}])
def test_select_saturation_k_degenerate(curve):
    """Test that empty, undefined and all-zero curves select nothing."""
    assert select_saturation_k(curve) is None


def test_select_saturation_k_points_and_frame():
    """Test selection from SaturationPoint sequences and curve tables."""
    points = [
        SaturationPoint(k=1, mean_fraction=0.2, mean_event_count=1.0, unique_event_count=2),
        SaturationPoint(k=2, mean_fraction=0.9, mean_event_count=4.0, unique_event_count=5),
        SaturationPoint(k=3, mean_fraction=1.0, mean_event_count=10.0, unique_event_count=6),
    ]

    assert select_saturation_k(points) == 2
    assert select_saturation_k(saturation_frame(points)) == 2
    assert select_saturation_k(points, metric="mean_event_count") == 3
    assert select_saturation_k(points, metric="unique_event_count", fraction=0.8) == 2


def test_select_saturation_k_unknown_metric():
    with pytest.raises(ValueError, match="metric"):
        select_saturation_k({1: 1.0}, metric="median")
