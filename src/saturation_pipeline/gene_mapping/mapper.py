"""Gene id to cytoband mapping.

Copy-number events are aggregated at cytoband resolution, so amplification
and deletion genes (observed or in the interaction catalog) are translated to
the distinct set of cytoband labels they fall in. The mapping is many-to-one
in general; a gene listed on several rows contributes every label.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import polars as pl

from saturation_pipeline.inputs.readers import read_table

logger = logging.getLogger(__name__)

DEFAULT_GENE_COLUMN = "gene_id"
DEFAULT_CYTOBAND_COLUMN = "cytoband"


@dataclass
class MappingReport:
    """Summary report for a batch translation.

    Attributes:
        total_genes: Number of distinct genes queried
        mapped_genes: Number of genes with at least one cytoband
        cytobands: Number of distinct cytobands produced
        unmapped_ids: Genes with no cytoband
        success_rate: Fraction of genes mapped (0-1)
    """
    total_genes: int
    mapped_genes: int
    cytobands: int
    unmapped_ids: list[str] = field(default_factory=list)
    success_rate: float = 0.0

    def __post_init__(self):
        """Calculate success rate after initialization."""
        if self.total_genes > 0:
            self.success_rate = self.mapped_genes / self.total_genes


class GeneLocationMap:
    """Read-only lookup from gene id to cytoband labels."""

    def __init__(self, locations: Mapping[str, Iterable[str]]):
        self._locations: dict[str, frozenset[str]] = {
            str(gene): frozenset(str(band) for band in bands)
            for gene, bands in locations.items()
        }

    def __len__(self) -> int:
        return len(self._locations)

    def __contains__(self, gene: object) -> bool:
        return gene in self._locations

    def cytobands(self, gene: str) -> frozenset[str]:
        """Cytobands for one gene (empty if the gene is not in the table)."""
        return self._locations.get(gene, frozenset())

    def translate(self, genes: Iterable[str]) -> tuple[frozenset[str], list[str]]:
        """Translate genes to the distinct set of cytobands they map to.

        Args:
            genes: Gene ids

        Returns:
            Tuple of (cytobands, unmapped_genes); unmapped genes keep input order
        """
        bands: set[str] = set()
        unmapped: list[str] = []
        for gene in genes:
            gene_bands = self._locations.get(gene)
            if gene_bands:
                bands.update(gene_bands)
            else:
                unmapped.append(gene)
        return frozenset(bands), unmapped

    def translate_with_report(self, genes: Iterable[str]) -> tuple[frozenset[str], MappingReport]:
        """Translate genes and summarize how many could be placed."""
        unique_genes = list(dict.fromkeys(genes))
        bands, unmapped = self.translate(unique_genes)
        report = MappingReport(
            total_genes=len(unique_genes),
            mapped_genes=len(unique_genes) - len(unmapped),
            cytobands=len(bands),
            unmapped_ids=unmapped,
        )
        logger.info(
            f"Cytoband mapping: {report.mapped_genes}/{report.total_genes} genes "
            f"({report.success_rate:.1%}) -> {report.cytobands} cytobands"
        )
        return bands, report

    @classmethod
    def from_frame(
        cls,
        df: pl.DataFrame,
        gene_column: str = DEFAULT_GENE_COLUMN,
        cytoband_column: str = DEFAULT_CYTOBAND_COLUMN,
    ) -> "GeneLocationMap":
        """Build the map from a two-column table.

        Rows with a null gene or cytoband are ignored.

        Raises:
            ValueError: If a required column is missing
        """
        missing = [c for c in (gene_column, cytoband_column) if c not in df.columns]
        if missing:
            raise ValueError(f"Gene location table is missing columns: {missing}")

        grouped = (
            df.select(
                pl.col(gene_column).cast(pl.Utf8).alias("gene"),
                pl.col(cytoband_column).cast(pl.Utf8).alias("band"),
            )
            .drop_nulls()
            .group_by("gene")
            .agg(pl.col("band").unique())
        )
        locations = dict(zip(grouped["gene"].to_list(), grouped["band"].to_list()))
        logger.info(
            f"Loaded gene locations for {len(locations)} genes "
            f"from {df.height} rows"
        )
        return cls(locations)

    @classmethod
    def read(
        cls,
        path: Path,
        gene_column: str = DEFAULT_GENE_COLUMN,
        cytoband_column: str = DEFAULT_CYTOBAND_COLUMN,
    ) -> "GeneLocationMap":
        """Read a gene location table from TSV/CSV/Parquet."""
        return cls.from_frame(
            read_table(path, string_columns=[gene_column, cytoband_column]),
            gene_column=gene_column,
            cytoband_column=cytoband_column,
        )
