"""Gene-by-sample matrices backed by polars DataFrames."""

from pathlib import Path

import numpy as np
import polars as pl

from saturation_pipeline.inputs.readers import read_table

BOOLEAN_TEXT = {"true": "1", "false": "0"}


def _numeric(column: str, dtype: pl.DataType) -> pl.Expr:
    expr = pl.col(column)
    if dtype == pl.Utf8:
        expr = expr.str.strip_chars().str.to_lowercase().replace(BOOLEAN_TEXT)
    return expr.cast(pl.Float64, strict=False).fill_nan(None)


class GenomicMatrix:
    """Feature-by-sample matrix: one identifier column plus one column per sample.

    Used for activity scores (regulator x sample), mutation and fusion
    indicators and copy-number scores (gene x sample). Values are cast to
    Float64; TRUE/FALSE indicators (any case) become 1/0, NaN and
    unparseable cells become null and never count as events.
    """

    def __init__(self, df: pl.DataFrame, id_column: str | None = None, name: str = "matrix"):
        """
        Args:
            df: Wide DataFrame with identifiers in id_column
            id_column: Identifier column (default: first column)
            name: Label used in error messages

        Raises:
            ValueError: If the matrix is empty or identifiers are duplicated
        """
        if not df.columns:
            raise ValueError(f"{name}: matrix has no columns")

        self.name = name
        self.id_column = id_column or df.columns[0]
        if self.id_column not in df.columns:
            raise ValueError(f"{name}: id column '{self.id_column}' not found")

        self._samples = [c for c in df.columns if c != self.id_column]
        self._sample_set = set(self._samples)
        self._df = df.with_columns(
            pl.col(self.id_column).cast(pl.Utf8),
            *[_numeric(c, df.schema[c]) for c in self._samples],
        )

        ids = self._df[self.id_column].to_list()
        self._index = {feature: i for i, feature in enumerate(ids)}
        if len(self._index) != len(ids):
            raise ValueError(
                f"{name}: {len(ids) - len(self._index)} duplicated identifiers "
                f"in column '{self.id_column}'"
            )

    @property
    def samples(self) -> list[str]:
        return list(self._samples)

    @property
    def genes(self) -> list[str]:
        return self._df[self.id_column].to_list()

    @property
    def frame(self) -> pl.DataFrame:
        return self._df

    def has_sample(self, sample: str) -> bool:
        return sample in self._sample_set

    def _require_sample(self, sample: str) -> None:
        if sample not in self._sample_set:
            raise KeyError(f"{self.name}: sample '{sample}' not found")

    def get(self, gene: str, sample: str) -> float | None:
        """Value for one gene in one sample (None if the cell is null)."""
        self._require_sample(sample)
        row = self._index.get(gene)
        if row is None:
            raise KeyError(f"{self.name}: identifier '{gene}' not found")
        return self._df[sample][row]

    def scores(self, sample: str) -> tuple[list[str], np.ndarray]:
        """Identifiers and values of one sample column (nulls as NaN)."""
        self._require_sample(sample)
        values = self._df[sample].fill_null(float("nan")).to_numpy()
        return self.genes, values

    def genes_above(self, sample: str, threshold: float) -> list[str]:
        """Identifiers whose value in sample is strictly greater than threshold."""
        self._require_sample(sample)
        return self._df.filter(pl.col(sample) > threshold)[self.id_column].to_list()

    def genes_below(self, sample: str, threshold: float) -> list[str]:
        """Identifiers whose value in sample is strictly less than threshold."""
        self._require_sample(sample)
        return self._df.filter(pl.col(sample) < threshold)[self.id_column].to_list()

    @classmethod
    def read(cls, path: Path | str, id_column: str | None = None, name: str | None = None) -> "GenomicMatrix":
        """Read a wide matrix from TSV/CSV/Parquet."""
        path = Path(path)
        return cls(read_table(path), id_column=id_column, name=name or path.stem)
