"""End-to-end saturation analysis over a cohort."""

from dataclasses import dataclass

import structlog

from saturation_pipeline.config.schema import CoverageConfig, ThresholdConfig
from saturation_pipeline.coverage.aggregate import aggregate_saturation
from saturation_pipeline.coverage.cohort import compute_cohort_coverage
from saturation_pipeline.coverage.models import CohortCoverage, SaturationPoint
from saturation_pipeline.coverage.threshold import select_saturation_k
from saturation_pipeline.errors import ConfigurationError
from saturation_pipeline.inputs.bundle import CohortInputs
from saturation_pipeline.interactions.builder import build_interaction_map
from saturation_pipeline.interactions.models import InteractionMap, RegulatorRanking
from saturation_pipeline.profiles.extract import (
    extract_profiles,
    select_samples,
    validate_hypotheses,
)
from saturation_pipeline.profiles.models import SampleProfile

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SaturationResult:
    """Everything produced by one saturation analysis.

    Attributes:
        ranking: Ranking actually analyzed (after top_n)
        interaction_map: Reconciled interaction map
        profiles: Sample profiles, in cohort order
        cohort: Per-sample coverage and per-sample errors
        curve: Cohort saturation curve
        selected_k: Smallest k reaching the saturation fraction (None if not reached)
        saturation_fraction: Fraction used to select k
    """

    ranking: RegulatorRanking
    interaction_map: InteractionMap
    profiles: tuple[SampleProfile, ...]
    cohort: CohortCoverage
    curve: tuple[SaturationPoint, ...]
    selected_k: int | None
    saturation_fraction: float


def is_entrez_id(identifier: str) -> bool:
    """Entrez gene ids are positive integers written in decimal."""
    return identifier.isdigit() and int(identifier) > 0


def run_saturation_analysis(
    inputs: CohortInputs,
    thresholds: ThresholdConfig | None = None,
    coverage: CoverageConfig | None = None,
) -> SaturationResult:
    """
    Compute the genomic saturation curve of a regulator ranking.

    Fatal configuration and mapping errors are raised before any per-sample
    computation starts. Per-sample failures are isolated in
    ``result.cohort.errors`` and excluded from the curve.

    Args:
        inputs: Materialized cohort inputs
        thresholds: Activity and copy-number thresholds (default: ThresholdConfig())
        coverage: Coverage walk parameters (default: CoverageConfig())

    Returns:
        SaturationResult

    Raises:
        ConfigurationError: Empty ranking, non-Entrez ids when required,
            missing interactions or hypotheses, or no analyzable samples
        DataMappingError: Interactions that map to no cytoband at all
    """
    thresholds = thresholds or ThresholdConfig()
    coverage = coverage or CoverageConfig()

    ranking = inputs.ranking if coverage.top_n is None else inputs.ranking.head(coverage.top_n)
    if len(ranking) == 0:
        raise ConfigurationError("Regulator ranking is empty")

    if coverage.require_entrez_ids:
        invalid = [r for r in ranking if not is_entrez_id(r)]
        if invalid:
            raise ConfigurationError(
                f"{len(invalid)} regulator ids are not Entrez ids (examples: {invalid[:5]})"
            )

    logger.info(
        "saturation_analysis_start",
        regulators=len(ranking),
        top_n=coverage.top_n,
        activity_tail=thresholds.activity_tail,
        activity_pvalue=thresholds.activity_pvalue,
        cnv_threshold=thresholds.cnv_threshold,
    )

    interaction_map = build_interaction_map(inputs.catalog, inputs.location_map, ranking)
    validate_hypotheses(inputs.hypotheses, inputs.location_map)

    samples = select_samples(inputs.mutations, inputs.copy_number, inputs.inferred_samples())
    if not samples:
        raise ConfigurationError(
            "No sample has mutation, copy-number and activity data"
        )

    profiles = extract_profiles(
        samples,
        activity=inputs.activity,
        mutations=inputs.mutations,
        copy_number=inputs.copy_number,
        hypotheses=inputs.hypotheses,
        location_map=inputs.location_map,
        fusions=inputs.fusions,
        whitelist=inputs.whitelist,
        thresholds=thresholds,
    )

    cohort = compute_cohort_coverage(
        profiles,
        interaction_map,
        ranking,
        schedule=coverage.schedule,
        memoization=coverage.memoization,
        max_workers=coverage.max_workers,
    )
    curve = aggregate_saturation(cohort.coverages)
    selected_k = select_saturation_k(curve, fraction=coverage.saturation_fraction)

    logger.info(
        "saturation_analysis_complete",
        samples=len(cohort.coverages),
        failed_samples=len(cohort.errors),
        selected_k=selected_k if selected_k is not None else "not_reached",
    )

    return SaturationResult(
        ranking=ranking,
        interaction_map=interaction_map,
        profiles=tuple(profiles),
        cohort=cohort,
        curve=tuple(curve),
        selected_k=selected_k,
        saturation_fraction=coverage.saturation_fraction,
    )
