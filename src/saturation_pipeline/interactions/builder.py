"""Build the per-run interaction map from the global catalog.

Restricts the catalog to the selected regulators, cross-fertilizes mutation
and copy-number evidence and translates amplification/deletion genes into
cytoband labels.
"""

from collections.abc import Iterable, Mapping

import structlog

from saturation_pipeline.errors import ConfigurationError, DataMappingError
from saturation_pipeline.gene_mapping.mapper import GeneLocationMap
from saturation_pipeline.interactions.models import (
    CYTOBAND_EVENT_TYPES,
    EVENT_TYPES,
    REQUIRED_EVENT_TYPES,
    InteractionCatalog,
    InteractionMap,
    RegulatorEvents,
)

logger = structlog.get_logger(__name__)


def subset_interactions(
    catalog: InteractionCatalog,
    event_type: str,
    selected: Iterable[str],
) -> dict[str, frozenset[str]]:
    """Restrict one event type to the selected regulators.

    Regulators without an entry for the type are absent from the result.
    Keys follow the order of ``selected``.
    """
    by_regulator = catalog.interactions.get(event_type, {})
    return {
        regulator: by_regulator[regulator]
        for regulator in selected
        if regulator in by_regulator
    }


def merge_interactions(*maps: Mapping[str, frozenset[str]]) -> dict[str, frozenset[str]]:
    """Union event sets by regulator.

    Keys present in one input pass through unchanged; keys in several are
    unioned. Key order is first-seen across inputs.
    """
    merged: dict[str, frozenset[str]] = {}
    for m in maps:
        for regulator, events in m.items():
            merged[regulator] = merged.get(regulator, frozenset()) | events
    return merged


def translate_to_cytobands(
    interactions: RegulatorEvents,
    location_map: GeneLocationMap,
    event_type: str,
) -> dict[str, frozenset[str]]:
    """Translate each regulator's gene set into distinct cytoband labels.

    Regulators with no genes are dropped silently. Regulators whose genes
    map to no cytoband are dropped with a warning.

    Raises:
        DataMappingError: If no regulator produced any cytoband
    """
    translated: dict[str, frozenset[str]] = {}
    unmapped_regulators = 0

    for regulator, genes in interactions.items():
        if not genes:
            continue
        bands, unmapped = location_map.translate(sorted(genes))
        if not bands:
            unmapped_regulators += 1
            logger.warning(
                "regulator_cytoband_mapping_failed",
                event_type=event_type,
                regulator=regulator,
                genes=len(genes),
                examples=unmapped[:5],
            )
            continue
        translated[regulator] = bands

    total_events = sum(len(bands) for bands in translated.values())
    if total_events == 0:
        raise DataMappingError(
            event_type,
            f"No {event_type} interactions could be mapped to cytobands "
            f"({len(interactions)} regulators checked); check that the gene "
            "location table uses the same gene ids as the interaction catalog",
        )

    logger.debug(
        "cytoband_translation_complete",
        event_type=event_type,
        regulators=len(translated),
        dropped=unmapped_regulators,
        cytoband_events=total_events,
    )
    return translated


def build_interaction_map(
    catalog: InteractionCatalog,
    location_map: GeneLocationMap,
    selected: Iterable[str],
) -> InteractionMap:
    """
    Build the interaction map used for coverage computation.

    Steps:
        1. Restrict each event type to the selected regulators
        2. Reconcile evidence: mutations are explained by mut/del/amp
           interactions, amplifications by amp/mut, deletions by del/mut
        3. Translate amp/del gene sets to cytobands

    Args:
        catalog: Global interaction catalog
        location_map: Gene id -> cytoband lookup
        selected: Selected regulators (usually a ranking prefix)

    Returns:
        InteractionMap with mut/amp/del and, when available, fus

    Raises:
        ConfigurationError: If no regulator is selected, or if mutation,
            amplification or deletion has no selected regulator
        DataMappingError: If amp or del interactions map to no cytoband at all
    """
    selected = list(dict.fromkeys(str(r) for r in selected))
    if not selected:
        raise ConfigurationError("No regulators selected for the interaction map")

    subsets = {t: subset_interactions(catalog, t, selected) for t in EVENT_TYPES}

    missing = [t for t in REQUIRED_EVENT_TYPES if not subsets[t]]
    if missing:
        raise ConfigurationError(
            f"None of the {len(selected)} selected regulators has interactions "
            f"for event types {missing}"
        )
    if not subsets["fus"]:
        logger.warning(
            "no_fusion_interactions",
            selected_regulators=len(selected),
        )

    reconciled = {
        "mut": merge_interactions(subsets["mut"], subsets["del"], subsets["amp"]),
        "amp": merge_interactions(subsets["amp"], subsets["mut"]),
        "del": merge_interactions(subsets["del"], subsets["mut"]),
    }

    by_type: dict[str, dict[str, frozenset[str]]] = {"mut": reconciled["mut"]}
    for event_type in CYTOBAND_EVENT_TYPES:
        by_type[event_type] = translate_to_cytobands(
            reconciled[event_type], location_map, event_type
        )
    if subsets["fus"]:
        by_type["fus"] = subsets["fus"]

    interaction_map = InteractionMap(by_type=by_type)

    for event_type in interaction_map.event_types:
        if interaction_map.event_count(event_type) == 0:
            logger.warning(
                "no_positive_interactions",
                event_type=event_type,
                regulators=len(interaction_map.regulators(event_type)),
            )

    logger.info(
        "interaction_map_built",
        selected_regulators=len(selected),
        regulators={t: len(interaction_map.regulators(t)) for t in interaction_map.event_types},
        events={t: interaction_map.event_count(t) for t in interaction_map.event_types},
    )
    return interaction_map
