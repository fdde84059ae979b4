"""Parallel coverage computation across the samples of a cohort."""

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

import structlog

from saturation_pipeline.coverage.compute import compute_sample_coverage
from saturation_pipeline.coverage.models import CohortCoverage, SampleCoverage
from saturation_pipeline.coverage.schedule import resolve_schedule
from saturation_pipeline.interactions.models import InteractionMap, RegulatorRanking
from saturation_pipeline.profiles.models import SampleProfile

logger = structlog.get_logger(__name__)


def compute_cohort_coverage(
    profiles: Sequence[SampleProfile],
    interaction_map: InteractionMap,
    ranking: RegulatorRanking,
    schedule: Iterable[int] | None = None,
    memoization: str = "approximate",
    max_workers: int = 4,
) -> CohortCoverage:
    """
    Compute coverage for every sample on a worker pool.

    All samples share one resolved schedule. Results are joined by sample id
    and returned in profile order regardless of completion order. A failure
    in one sample is logged and recorded in ``errors``; the other samples
    still complete.

    The per-sample walk is pure Python and holds the GIL, so threads do not
    speed it up; the pool isolates per-sample failures and keeps profiles
    and the interaction map shared without pickling. max_workers=1 runs the
    samples one at a time.

    Args:
        profiles: Sample profiles (sample ids must be unique)
        interaction_map: Reconciled interaction map (read-only)
        ranking: Regulator ranking
        schedule: k values to evaluate (default: default_schedule(len(ranking)))
        memoization: "approximate" or "strict"
        max_workers: Worker threads (>= 1); bounds concurrent samples, not CPU use

    Returns:
        CohortCoverage

    Raises:
        ValueError: If sample ids repeat, max_workers < 1 or the schedule is invalid
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    samples = [p.sample for p in profiles]
    if len(set(samples)) != len(samples):
        raise ValueError("Sample ids in profiles must be unique")

    points = resolve_schedule(len(ranking), schedule)

    logger.info(
        "cohort_coverage_start",
        samples=len(profiles),
        schedule_points=len(points),
        max_k=points[-1],
        memoization=memoization,
        max_workers=max_workers,
    )

    results: dict[str, SampleCoverage] = {}
    errors: dict[str, str] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_map = {
            executor.submit(
                compute_sample_coverage,
                profile,
                interaction_map,
                ranking,
                points,
                memoization,
            ): profile.sample
            for profile in profiles
        }
        for future in as_completed(future_map):
            sample = future_map[future]
            try:
                results[sample] = future.result()
            except Exception as exc:
                logger.warning("sample_coverage_failed", sample=sample, error=repr(exc))
                errors[sample] = f"{type(exc).__name__}: {exc}"

    coverages = tuple(results[s] for s in samples if s in results)

    logger.info(
        "cohort_coverage_complete",
        samples=len(coverages),
        failed=len(errors),
        computed_steps=sum(c.computed_steps for c in coverages),
    )

    return CohortCoverage(coverages=coverages, errors=errors)
