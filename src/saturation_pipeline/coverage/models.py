"""Data models for per-sample coverage records and the cohort saturation curve."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from saturation_pipeline.interactions.models import EVENT_TYPES


@dataclass(frozen=True)
class CoverageRecord:
    """Events of one sample explained by the active regulators of a ranking prefix.

    Attributes:
        covered: event type -> covered event ids
        fractions: event type -> covered / validated (None when the sample
            has no validated events of that type)
        total_frac: summed covered / summed validated over all types (None
            when the sample has no validated events at all)
        n_active: Number of active regulators in the prefix

    CRITICAL: None means "undefined", not zero coverage.
    """

    covered: Mapping[str, frozenset[str]]
    fractions: Mapping[str, float | None]
    total_frac: float | None
    n_active: int = 0

    @property
    def mut_frac(self) -> float | None:
        return self.fractions.get("mut")

    @property
    def amp_frac(self) -> float | None:
        return self.fractions.get("amp")

    @property
    def del_frac(self) -> float | None:
        return self.fractions.get("del")

    @property
    def fus_frac(self) -> float | None:
        return self.fractions.get("fus")

    def covered_events(self, event_type: str) -> frozenset[str]:
        return self.covered.get(event_type, frozenset())

    @property
    def covered_count(self) -> int:
        return sum(len(self.covered_events(t)) for t in EVENT_TYPES)


@dataclass(frozen=True)
class SampleCoverage:
    """Coverage records of one sample, one per evaluated k.

    ``records[i]`` belongs to ``schedule[i]``. Memoized steps share the same
    record object as the step they were copied from.
    """

    sample: str
    schedule: tuple[int, ...]
    records: tuple[CoverageRecord, ...]
    computed_steps: int = 0

    def __post_init__(self):
        if len(self.schedule) != len(self.records):
            raise ValueError(
                f"{self.sample}: {len(self.records)} records for "
                f"{len(self.schedule)} schedule points"
            )

    def at(self, k: int) -> CoverageRecord:
        """Record for an evaluated k (KeyError if k was not evaluated)."""
        try:
            return self.records[self.schedule.index(k)]
        except ValueError:
            raise KeyError(f"k={k} not in schedule for sample {self.sample}") from None


@dataclass(frozen=True)
class CohortCoverage:
    """Coverage for every sample of a cohort.

    Attributes:
        coverages: Per-sample coverage, in profile order
        errors: sample -> error message for samples whose computation failed
    """

    coverages: tuple[SampleCoverage, ...]
    errors: Mapping[str, str] = field(default_factory=dict)

    @property
    def samples(self) -> list[str]:
        return [c.sample for c in self.coverages]

    def get(self, sample: str) -> SampleCoverage:
        for coverage in self.coverages:
            if coverage.sample == sample:
                return coverage
        raise KeyError(f"No coverage for sample {sample}")


@dataclass(frozen=True)
class SaturationPoint:
    """Cohort summary at one k.

    Attributes:
        k: Number of top-ranked regulators included
        mean_fraction: Mean total fraction over samples with a defined value
            (None if no sample has one)
        mean_event_count: Mean number of covered mut/amp/del events per sample
        unique_event_count: Distinct mut/amp/del event ids covered in the cohort
        n_defined: Samples contributing to mean_fraction
    """

    k: int
    mean_fraction: float | None
    mean_event_count: float
    unique_event_count: int
    n_defined: int = 0
