"""Data models for hypothesis universes and per-sample profiles."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import polars as pl
import structlog

from saturation_pipeline.inputs.readers import read_table
from saturation_pipeline.interactions.models import EVENT_TYPES

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class HypothesisUniverse:
    """Testable gene ids per event type.

    Observed events outside the universe are discarded before coverage is
    computed. Amplification and deletion universes are gene-level; they are
    translated to cytobands when hypotheses are validated.
    """

    mut: frozenset[str] = frozenset()
    amp: frozenset[str] = frozenset()
    deletions: frozenset[str] = frozenset()
    fus: frozenset[str] = frozenset()

    def for_type(self, event_type: str) -> frozenset[str]:
        if event_type == "del":
            return self.deletions
        if event_type not in EVENT_TYPES:
            raise KeyError(f"Unknown event type: {event_type}")
        return getattr(self, event_type)

    @classmethod
    def from_mapping(cls, hypotheses: Mapping[str, Iterable[str]]) -> "HypothesisUniverse":
        """Build from an event type -> gene ids mapping (missing types are empty)."""
        unknown = set(hypotheses) - set(EVENT_TYPES)
        if unknown:
            raise ValueError(f"Unknown event types in hypotheses: {sorted(unknown)}")

        def _frozen(event_type: str) -> frozenset[str]:
            return frozenset(str(g) for g in hypotheses.get(event_type, ()))

        return cls(
            mut=_frozen("mut"),
            amp=_frozen("amp"),
            deletions=_frozen("del"),
            fus=_frozen("fus"),
        )

    @classmethod
    def from_frame(
        cls,
        df: pl.DataFrame,
        event_type_column: str = "event_type",
        gene_column: str = "gene_id",
    ) -> "HypothesisUniverse":
        """Build from a long table with one (event_type, gene_id) per row."""
        missing = [c for c in (event_type_column, gene_column) if c not in df.columns]
        if missing:
            raise ValueError(f"Hypothesis table is missing columns: {missing}")

        grouped = (
            df.select(
                pl.col(event_type_column).cast(pl.Utf8).str.strip_chars().alias("event_type"),
                pl.col(gene_column).cast(pl.Utf8).alias("gene"),
            )
            .drop_nulls()
            .group_by("event_type")
            .agg(pl.col("gene").unique())
        )
        universe = cls.from_mapping(
            dict(zip(grouped["event_type"].to_list(), grouped["gene"].to_list()))
        )
        logger.info(
            "hypotheses_loaded",
            counts={t: len(universe.for_type(t)) for t in EVENT_TYPES},
        )
        return universe

    @classmethod
    def read(cls, path: Path | str) -> "HypothesisUniverse":
        return cls.from_frame(read_table(path, string_columns=["event_type", "gene_id"]))


@dataclass(frozen=True)
class SampleProfile:
    """Active regulators and validated events for one sample.

    Attributes:
        sample: Sample id
        active_regulators: Regulators called active in this sample
        events: event type -> validated event ids (gene ids for mut/fus,
            cytoband labels for amp/del)
        whitelist_removed: Mutations removed by the whitelist filter
            (None when no whitelist was supplied)
    """

    sample: str
    active_regulators: frozenset[str]
    events: Mapping[str, frozenset[str]] = field(default_factory=dict)
    whitelist_removed: int | None = None

    def validated(self, event_type: str) -> frozenset[str]:
        return self.events.get(event_type, frozenset())

    @property
    def total_events(self) -> int:
        return sum(len(self.validated(t)) for t in EVENT_TYPES)
