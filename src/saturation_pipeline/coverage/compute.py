"""Incremental coverage of one sample's events as the ranking prefix grows."""

from collections.abc import Iterable
from typing import Literal, TypeAlias

import structlog

from saturation_pipeline.coverage.models import CoverageRecord, SampleCoverage
from saturation_pipeline.coverage.schedule import resolve_schedule
from saturation_pipeline.interactions.models import (
    EVENT_TYPES,
    InteractionMap,
    RegulatorRanking,
)
from saturation_pipeline.profiles.models import SampleProfile

logger = structlog.get_logger(__name__)

MemoizationMode: TypeAlias = Literal["approximate", "strict"]

MEMOIZATION_MODES: tuple[str, ...] = ("approximate", "strict")


def can_reuse_record(
    mode: str,
    previous_active: frozenset[str] | None,
    active: frozenset[str],
) -> bool:
    """
    Whether the record of the previous evaluated k can be reused.

    ``approximate`` reuses when the active sets have the same size,
    ``strict`` only when they are identical. Along a single ranking the
    active set only grows with k, so both rules agree there; they differ
    only for unrelated active sets of equal size, which ``approximate``
    treats as equivalent.

    Args:
        mode: "approximate" or "strict"
        previous_active: Active set of the last computed record (None at the first k)
        active: Active set at the current k

    Raises:
        ValueError: If mode is unknown
    """
    if mode not in MEMOIZATION_MODES:
        raise ValueError(f"Unknown memoization mode '{mode}', expected one of {MEMOIZATION_MODES}")
    if previous_active is None:
        return False
    if mode == "approximate":
        return len(active) == len(previous_active)
    return active == previous_active


def _fraction(covered: int, total: int) -> float | None:
    if total == 0:
        return None
    return covered / total


def compute_coverage_record(
    active: Iterable[str],
    profile: SampleProfile,
    interaction_map: InteractionMap,
) -> CoverageRecord:
    """
    Events of profile explained by the active regulators.

    For each event type, covered = union over active regulators of
    (interaction events ∩ validated events). Fractions are undefined (None)
    for types without validated events, and every fraction is undefined for
    a sample with no active regulator at all.

    Args:
        active: Active regulators of the current ranking prefix
        profile: Sample profile
        interaction_map: Reconciled interaction map

    Returns:
        CoverageRecord
    """
    active = frozenset(active)
    covered: dict[str, frozenset[str]] = {}
    for event_type in EVENT_TYPES:
        validated = profile.validated(event_type)
        events: set[str] = set()
        if validated:
            for regulator in active:
                events |= interaction_map.get(event_type, regulator) & validated
        covered[event_type] = frozenset(events)

    # No active regulator anywhere in the sample: coverage is unknown, not zero
    defined = bool(profile.active_regulators)

    fractions = {
        t: _fraction(len(covered[t]), len(profile.validated(t))) if defined else None
        for t in EVENT_TYPES
    }
    total_frac = (
        _fraction(
            sum(len(events) for events in covered.values()),
            profile.total_events,
        )
        if defined
        else None
    )

    return CoverageRecord(
        covered=covered,
        fractions=fractions,
        total_frac=total_frac,
        n_active=len(active),
    )


def compute_sample_coverage(
    profile: SampleProfile,
    interaction_map: InteractionMap,
    ranking: RegulatorRanking,
    schedule: Iterable[int] | None = None,
    memoization: str = "approximate",
) -> SampleCoverage:
    """
    Coverage of one sample at every k of the schedule.

    Walks k in increasing order. The active set at k is the sample's active
    regulators among the top k of the ranking. When ``can_reuse_record``
    holds against the last computed k, the previous record object is reused
    instead of recomputed.

    Args:
        profile: Sample profile
        interaction_map: Reconciled interaction map
        ranking: Regulator ranking
        schedule: k values to evaluate (default: default_schedule(len(ranking)))
        memoization: "approximate" (active-set size) or "strict" (active-set identity)

    Returns:
        SampleCoverage with one record per k; intermediate k values are not
        interpolated

    Raises:
        ValueError: If the schedule or memoization mode is invalid
    """
    if memoization not in MEMOIZATION_MODES:
        raise ValueError(f"Unknown memoization mode '{memoization}', expected one of {MEMOIZATION_MODES}")
    points = resolve_schedule(len(ranking), schedule)

    # Rank position of each active regulator; prefix membership is position < k
    positions = sorted(
        i for i, regulator in enumerate(ranking) if regulator in profile.active_regulators
    )

    records: list[CoverageRecord] = []
    previous_active: frozenset[str] | None = None
    previous_record: CoverageRecord | None = None
    computed = 0

    for k in points:
        active = frozenset(ranking[i] for i in positions if i < k)

        if previous_record is not None and can_reuse_record(memoization, previous_active, active):
            records.append(previous_record)
            continue

        record = compute_coverage_record(active, profile, interaction_map)
        computed += 1
        records.append(record)
        previous_active = active
        previous_record = record

    logger.debug(
        "sample_coverage_computed",
        sample=profile.sample,
        schedule_points=len(points),
        computed=computed,
        reused=len(points) - computed,
    )

    return SampleCoverage(
        sample=profile.sample,
        schedule=points,
        records=tuple(records),
        computed_steps=computed,
    )
