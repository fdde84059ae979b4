"""Pydantic models for pipeline configuration."""

import hashlib
import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class InputPaths(BaseModel):
    """Locations of the materialized input tables."""

    ranking: Path = Field(
        ...,
        description="Regulator ranking, one regulator id per row, most important first",
    )
    activity: Path = Field(
        ...,
        description="Activity matrix (regulator x sample signed scores)",
    )
    mutations: Path = Field(
        ...,
        description="Mutation indicator matrix (gene x sample)",
    )
    copy_number: Path = Field(
        ...,
        description="Copy-number score matrix (gene x sample)",
    )
    fusions: Path | None = Field(
        default=None,
        description="Fusion indicator matrix (gene x sample), optional",
    )
    interactions: Path = Field(
        ...,
        description="Long table of regulator-event associations",
    )
    gene_locations: Path = Field(
        ...,
        description="Gene id to cytoband table",
    )
    hypotheses: Path = Field(
        ...,
        description="Long table of testable events per event type",
    )
    mutation_whitelist: Path | None = Field(
        default=None,
        description="Whitelisted mutation genes, optional second filter",
    )
    samples: Path | None = Field(
        default=None,
        description="Samples with valid activity inferences (default: all activity columns)",
    )


class ThresholdConfig(BaseModel):
    """Thresholds used to call active regulators and copy-number events."""

    activity_pvalue: float = Field(
        default=0.05,
        gt=0.0,
        lt=1.0,
        description="Normal-tail p-value cutoff for an active regulator",
    )
    activity_tail: Literal["two_sided", "one_sided"] = Field(
        default="two_sided",
        description="Tail used to turn activity scores into p-values",
    )
    cnv_threshold: float = Field(
        default=0.5,
        ge=0.0,
        description="Absolute copy-number score above which a gene is amplified/deleted",
    )


class CoverageConfig(BaseModel):
    """Parameters of the incremental coverage walk and curve fit."""

    top_n: int | None = Field(
        default=None,
        ge=1,
        description="Restrict the analysis to the top N regulators (default: whole ranking)",
    )
    schedule: list[int] | None = Field(
        default=None,
        description="Explicit k values to evaluate (default: adaptive schedule)",
    )
    memoization: Literal["approximate", "strict"] = Field(
        default="approximate",
        description="Reuse rule between consecutive k: active-set size or active-set identity",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Worker threads used across samples",
    )
    saturation_fraction: float = Field(
        default=0.85,
        gt=0.0,
        le=1.0,
        description="Fraction of maximal coverage used to select k",
    )
    require_entrez_ids: bool = Field(
        default=False,
        description="Reject rankings whose regulator ids are not numeric Entrez ids",
    )

    @field_validator("schedule")
    @classmethod
    def schedule_increasing(cls, v: list[int] | None) -> list[int] | None:
        """Reject schedules that are not strictly increasing positive integers."""
        if v is None:
            return v
        if not v:
            raise ValueError("schedule must not be empty")
        if v[0] < 1:
            raise ValueError("schedule values must be >= 1")
        if any(b <= a for a, b in zip(v, v[1:])):
            raise ValueError("schedule must be strictly increasing")
        return v


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    data_dir: Path = Field(
        ...,
        description="Directory holding input tables",
    )
    output_dir: Path = Field(
        ...,
        description="Directory for curve tables, sidecars and plots",
    )
    duckdb_path: Path = Field(
        ...,
        description="Path to DuckDB checkpoint database",
    )
    inputs: InputPaths = Field(
        ...,
        description="Input table locations",
    )
    thresholds: ThresholdConfig = Field(
        default_factory=ThresholdConfig,
        description="Activity and copy-number thresholds",
    )
    coverage: CoverageConfig = Field(
        default_factory=CoverageConfig,
        description="Coverage walk parameters",
    )

    @field_validator("data_dir", "output_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def resolve_input(self, path: Path | None) -> Path | None:
        """Resolve an input path relative to data_dir (absolute paths pass through)."""
        if path is None:
            return None
        return path if path.is_absolute() else self.data_dir / path

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking config changes and checkpoint invalidation.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
