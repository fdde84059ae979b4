"""Data models for regulator rankings and regulator-event interactions."""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, TypeAlias

import polars as pl
import structlog

from saturation_pipeline.inputs.readers import read_id_list, read_table

logger = structlog.get_logger(__name__)

EventType: TypeAlias = Literal["mut", "amp", "del", "fus"]

EVENT_TYPES: tuple[EventType, ...] = ("mut", "amp", "del", "fus")

# Event types whose identifiers are cytoband labels after translation
CYTOBAND_EVENT_TYPES: tuple[EventType, ...] = ("amp", "del")

# Event types that must have interactions for a run to be meaningful
REQUIRED_EVENT_TYPES: tuple[EventType, ...] = ("mut", "amp", "del")

# regulator -> event ids
RegulatorEvents: TypeAlias = Mapping[str, frozenset[str]]


class RegulatorRanking:
    """Ordered regulator identifiers, most important first.

    Order defines prefix membership: ``top(k)`` is the set of regulators
    considered when k regulators are included. Duplicates are removed keeping
    the first occurrence.
    """

    def __init__(self, regulators: Iterable[str]):
        ordered = [str(r) for r in regulators]
        self._regulators: tuple[str, ...] = tuple(dict.fromkeys(ordered))
        dropped = len(ordered) - len(self._regulators)
        if dropped:
            logger.warning(
                "ranking_duplicates_removed",
                duplicates=dropped,
                kept=len(self._regulators),
            )

    def __len__(self) -> int:
        return len(self._regulators)

    def __iter__(self) -> Iterator[str]:
        return iter(self._regulators)

    def __getitem__(self, index: int) -> str:
        return self._regulators[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegulatorRanking):
            return NotImplemented
        return self._regulators == other._regulators

    def __repr__(self) -> str:
        return f"RegulatorRanking(n={len(self)})"

    @property
    def regulators(self) -> tuple[str, ...]:
        return self._regulators

    def top(self, k: int) -> tuple[str, ...]:
        """First k regulators (the whole ranking if k exceeds its length)."""
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        return self._regulators[:k]

    def head(self, n: int) -> "RegulatorRanking":
        """New ranking restricted to the first n regulators."""
        return RegulatorRanking(self.top(n))

    @classmethod
    def read(cls, path: Path | str, column: str | None = None) -> "RegulatorRanking":
        """Read a ranking from the first (or named) column of a table."""
        return cls(read_id_list(path, column=column))


@dataclass(frozen=True)
class InteractionCatalog:
    """Global regulator -> event associations for every event type.

    Attributes:
        interactions: event type -> regulator -> event ids. Events are gene
            ids for every type, including amp/del (translated to cytobands
            only when an InteractionMap is built).
    """

    interactions: Mapping[str, RegulatorEvents] = field(default_factory=dict)

    def regulators(self, event_type: str) -> frozenset[str]:
        """Regulators with an entry for event_type."""
        return frozenset(self.interactions.get(event_type, {}))

    def events(self, event_type: str, regulator: str) -> frozenset[str]:
        return self.interactions.get(event_type, {}).get(regulator, frozenset())

    @classmethod
    def from_mapping(cls, interactions: Mapping[str, Mapping[str, Iterable[str]]]) -> "InteractionCatalog":
        """Build from nested mappings, freezing every event set.

        Raises:
            ValueError: If an unknown event type is present
        """
        unknown = set(interactions) - set(EVENT_TYPES)
        if unknown:
            raise ValueError(f"Unknown event types in catalog: {sorted(unknown)}")
        return cls(interactions={
            event_type: {
                str(regulator): frozenset(str(e) for e in events)
                for regulator, events in by_regulator.items()
            }
            for event_type, by_regulator in interactions.items()
        })

    @classmethod
    def from_frame(cls, df: pl.DataFrame) -> "InteractionCatalog":
        """Build from a long table with columns event_type, regulator, event[, score].

        Only positive associations are kept: when a score column is present,
        rows with a null or non-positive score are dropped. A regulator whose
        rows are all dropped still gets an (empty) entry for that type.

        Raises:
            ValueError: If a required column is missing or an event type is unknown
        """
        required = ["event_type", "regulator", "event"]
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise ValueError(f"Interaction table is missing columns: {missing}")

        lf = df.lazy().select(
            pl.col("event_type").cast(pl.Utf8).str.strip_chars(),
            pl.col("regulator").cast(pl.Utf8),
            pl.col("event").cast(pl.Utf8),
            (
                pl.col("score").cast(pl.Float64, strict=False) > 0
                if "score" in df.columns
                else pl.lit(True)
            ).fill_null(False).alias("positive"),
        ).drop_nulls(["event_type", "regulator"])

        grouped = (
            lf.group_by(["event_type", "regulator"])
            .agg(pl.col("event").filter(pl.col("positive")).drop_nulls().unique())
            .collect()
        )

        interactions: dict[str, dict[str, frozenset[str]]] = {}
        for row in grouped.iter_rows(named=True):
            interactions.setdefault(row["event_type"], {})[row["regulator"]] = frozenset(row["event"])

        catalog = cls.from_mapping(interactions)
        logger.info(
            "interaction_catalog_loaded",
            rows=df.height,
            regulators={t: len(catalog.regulators(t)) for t in EVENT_TYPES},
        )
        return catalog

    @classmethod
    def read(cls, path: Path | str) -> "InteractionCatalog":
        return cls.from_frame(read_table(path, string_columns=["event_type", "regulator", "event"]))


@dataclass(frozen=True)
class InteractionMap:
    """Catalog restricted to selected regulators, reconciled and translated.

    ``mut`` and ``fus`` hold gene ids, ``amp`` and ``del`` hold cytoband
    labels. The ``fus`` key is present only when at least one selected
    regulator has fusion interactions.
    """

    by_type: Mapping[str, RegulatorEvents]

    def get(self, event_type: str, regulator: str) -> frozenset[str]:
        """Events associated with regulator (empty if none or type absent)."""
        return self.by_type.get(event_type, {}).get(regulator, frozenset())

    def regulators(self, event_type: str) -> frozenset[str]:
        return frozenset(self.by_type.get(event_type, {}))

    @property
    def event_types(self) -> tuple[str, ...]:
        return tuple(t for t in EVENT_TYPES if t in self.by_type)

    @property
    def has_fusions(self) -> bool:
        return "fus" in self.by_type

    def event_count(self, event_type: str) -> int:
        """Total number of regulator-event pairs for a type."""
        return sum(len(events) for events in self.by_type.get(event_type, {}).values())
