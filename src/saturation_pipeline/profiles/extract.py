"""Per-sample extraction of active regulators and validated genomic events."""

from collections.abc import Iterable, Sequence

import numpy as np
import structlog
from scipy.stats import norm

from saturation_pipeline.config.schema import ThresholdConfig
from saturation_pipeline.errors import ConfigurationError
from saturation_pipeline.gene_mapping.mapper import GeneLocationMap
from saturation_pipeline.inputs.matrices import GenomicMatrix
from saturation_pipeline.profiles.models import HypothesisUniverse, SampleProfile

logger = structlog.get_logger(__name__)


def validate_hypotheses(
    hypotheses: HypothesisUniverse,
    location_map: GeneLocationMap,
) -> dict[str, frozenset[str]]:
    """
    Check that every required hypothesis set is usable.

    Args:
        hypotheses: Gene-level hypothesis universe
        location_map: Gene id -> cytoband lookup

    Returns:
        Cytoband-level universes for "amp" and "del"

    Raises:
        ConfigurationError: If the mutation universe is empty, or the
            amplification/deletion universes are empty after translation
    """
    if not hypotheses.mut:
        raise ConfigurationError("No mutation hypotheses defined")

    translated: dict[str, frozenset[str]] = {}
    for event_type in ("amp", "del"):
        genes = hypotheses.for_type(event_type)
        bands, _ = location_map.translate(genes)
        if not bands:
            raise ConfigurationError(
                f"No {event_type} hypotheses defined after cytoband translation "
                f"({len(genes)} genes)"
            )
        translated[event_type] = bands

    if not hypotheses.fus:
        logger.warning("no_fusion_hypotheses")

    logger.info(
        "hypotheses_validated",
        mut=len(hypotheses.mut),
        amp_cytobands=len(translated["amp"]),
        del_cytobands=len(translated["del"]),
        fus=len(hypotheses.fus),
    )
    return translated


def activity_pvalues(scores: np.ndarray, tail: str = "two_sided") -> np.ndarray:
    """Normal-tail p-values for activity scores (NaN scores give NaN)."""
    pvalues = norm.sf(np.abs(scores))
    if tail == "two_sided":
        pvalues = 2.0 * pvalues
    elif tail != "one_sided":
        raise ValueError(f"Unknown tail '{tail}', expected 'two_sided' or 'one_sided'")
    return pvalues


def active_regulators(
    activity: GenomicMatrix,
    sample: str,
    pvalue_threshold: float = 0.05,
    tail: str = "two_sided",
) -> frozenset[str]:
    """
    Regulators significantly activated in a sample.

    A regulator is active when its score is positive and its normal-tail
    p-value is below pvalue_threshold. ``tail="one_sided"`` uses
    ``1 - Phi(|score|)``.

    Args:
        activity: Regulator x sample activity scores
        sample: Sample id
        pvalue_threshold: Significance cutoff (default: 0.05)
        tail: "two_sided" or "one_sided"

    Returns:
        Active regulator ids
    """
    regulators, scores = activity.scores(sample)
    pvalues = activity_pvalues(scores, tail=tail)
    with np.errstate(invalid="ignore"):
        mask = (pvalues < pvalue_threshold) & (scores > 0)
    return frozenset(r for r, is_active in zip(regulators, mask) if is_active)


def select_samples(
    mutations: GenomicMatrix,
    copy_number: GenomicMatrix,
    activity_samples: Iterable[str],
) -> list[str]:
    """
    Samples with mutation, copy-number and activity data.

    Order follows the mutation matrix columns. Samples missing from any
    source are excluded without error.
    """
    cnv_samples = set(copy_number.samples)
    activity_samples = set(activity_samples)
    selected = [
        s for s in mutations.samples
        if s in cnv_samples and s in activity_samples
    ]
    logger.info(
        "samples_selected",
        mutation_samples=len(mutations.samples),
        copy_number_samples=len(cnv_samples),
        activity_samples=len(activity_samples),
        selected=len(selected),
    )
    return selected


def filter_whitelist(
    events: frozenset[str],
    whitelist: frozenset[str] | None,
) -> tuple[frozenset[str], int | None]:
    """Intersect mutation events with a whitelist.

    Returns:
        Tuple of (filtered_events, removed_count); removed_count is None when
        no whitelist is supplied and events pass through unchanged
    """
    if whitelist is None:
        return events, None
    filtered = events & whitelist
    return filtered, len(events) - len(filtered)


def extract_sample_profile(
    sample: str,
    activity: GenomicMatrix,
    mutations: GenomicMatrix,
    copy_number: GenomicMatrix,
    hypotheses: HypothesisUniverse,
    location_map: GeneLocationMap,
    fusions: GenomicMatrix | None = None,
    whitelist: frozenset[str] | None = None,
    thresholds: ThresholdConfig | None = None,
) -> SampleProfile:
    """
    Build the profile of one sample.

    Events:
        - mut: genes with a positive mutation indicator, within the mutation
          hypotheses, then within the whitelist if one is supplied
        - del/amp: genes with copy number below -t / above t, within the
          del/amp hypotheses, translated to cytobands
        - fus: genes with a positive fusion indicator when the sample is in
          the fusion matrix, within the fusion hypotheses

    Args:
        sample: Sample id (must be a column of activity, mutations, copy_number)
        activity: Regulator x sample activity scores
        mutations: Gene x sample mutation indicators
        copy_number: Gene x sample copy-number scores
        hypotheses: Gene-level hypothesis universe
        location_map: Gene id -> cytoband lookup
        fusions: Gene x sample fusion indicators (optional)
        whitelist: Mutation whitelist (optional)
        thresholds: Activity and copy-number thresholds (default: ThresholdConfig())

    Returns:
        SampleProfile
    """
    thresholds = thresholds or ThresholdConfig()

    active = active_regulators(
        activity,
        sample,
        pvalue_threshold=thresholds.activity_pvalue,
        tail=thresholds.activity_tail,
    )
    if not active:
        logger.warning("sample_no_active_regulators", sample=sample)

    mut_events = frozenset(mutations.genes_above(sample, 0)) & hypotheses.mut
    mut_events, removed = filter_whitelist(mut_events, whitelist)
    if removed is not None:
        logger.info(
            "mutation_whitelist_applied",
            sample=sample,
            removed=removed,
            kept=len(mut_events),
        )

    cnv = thresholds.cnv_threshold
    del_genes = frozenset(copy_number.genes_below(sample, -cnv)) & hypotheses.deletions
    amp_genes = frozenset(copy_number.genes_above(sample, cnv)) & hypotheses.amp
    del_bands, del_unmapped = location_map.translate(sorted(del_genes))
    amp_bands, amp_unmapped = location_map.translate(sorted(amp_genes))
    for event_type, unmapped in (("amp", amp_unmapped), ("del", del_unmapped)):
        if unmapped:
            logger.warning(
                "sample_cytoband_mapping_failed",
                sample=sample,
                event_type=event_type,
                unmapped=len(unmapped),
                examples=unmapped[:5],
            )

    fus_events: frozenset[str] = frozenset()
    has_fusion_data = fusions is not None and fusions.has_sample(sample)
    if has_fusion_data:
        fus_events = frozenset(fusions.genes_above(sample, 0)) & hypotheses.fus

    profile = SampleProfile(
        sample=sample,
        active_regulators=active,
        events={
            "mut": mut_events,
            "amp": amp_bands,
            "del": del_bands,
            "fus": fus_events,
        },
        whitelist_removed=removed,
    )

    # fus is only reported when the sample has fusion data
    checked_types = ("mut", "amp", "del", "fus") if has_fusion_data else ("mut", "amp", "del")
    for event_type in checked_types:
        if not profile.validated(event_type):
            logger.warning("sample_no_validated_events", sample=sample, event_type=event_type)

    logger.debug(
        "sample_profile_extracted",
        sample=sample,
        active_regulators=len(active),
        mut=len(mut_events),
        amp=len(amp_bands),
        deletions=len(del_bands),
        fus=len(fus_events),
    )
    return profile


def extract_profiles(
    samples: Sequence[str],
    activity: GenomicMatrix,
    mutations: GenomicMatrix,
    copy_number: GenomicMatrix,
    hypotheses: HypothesisUniverse,
    location_map: GeneLocationMap,
    fusions: GenomicMatrix | None = None,
    whitelist: frozenset[str] | None = None,
    thresholds: ThresholdConfig | None = None,
) -> list[SampleProfile]:
    """Extract profiles for samples, in order. See extract_sample_profile."""
    profiles = [
        extract_sample_profile(
            sample,
            activity=activity,
            mutations=mutations,
            copy_number=copy_number,
            hypotheses=hypotheses,
            location_map=location_map,
            fusions=fusions,
            whitelist=whitelist,
            thresholds=thresholds,
        )
        for sample in samples
    ]

    logger.info(
        "profiles_extracted",
        samples=len(profiles),
        without_active_regulators=sum(1 for p in profiles if not p.active_regulators),
        without_events=sum(1 for p in profiles if p.total_events == 0),
    )
    return profiles
