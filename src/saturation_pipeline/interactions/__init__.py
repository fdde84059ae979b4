"""Regulator rankings, interaction catalogs and the per-run interaction map."""

from saturation_pipeline.interactions.models import (
    CYTOBAND_EVENT_TYPES,
    EVENT_TYPES,
    EventType,
    InteractionCatalog,
    InteractionMap,
    RegulatorRanking,
)
from saturation_pipeline.interactions.builder import (
    build_interaction_map,
    merge_interactions,
    subset_interactions,
    translate_to_cytobands,
)

__all__ = [
    "CYTOBAND_EVENT_TYPES",
    "EVENT_TYPES",
    "EventType",
    "InteractionCatalog",
    "InteractionMap",
    "RegulatorRanking",
    "build_interaction_map",
    "merge_interactions",
    "subset_interactions",
    "translate_to_cytobands",
]
