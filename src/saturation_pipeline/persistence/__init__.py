"""Persistence layer for coverage checkpoints and provenance tracking."""

from saturation_pipeline.persistence.duckdb_store import PipelineStore
from saturation_pipeline.persistence.provenance import ProvenanceTracker

__all__ = ["PipelineStore", "ProvenanceTracker"]
