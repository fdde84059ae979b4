"""Readers for the tabular inputs of a saturation run.

All tables are read with every column as a string so gene identifiers such
as Entrez ids keep their exact text; numeric columns are cast by the
consumers that need them.
"""

from pathlib import Path

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

NULL_VALUES = ["", "NA", "NaN", "nan", "null"]


def read_table(path: Path | str, string_columns: list[str] | None = None) -> pl.DataFrame:
    """Read a TSV, CSV or Parquet table.

    Delimited files are read with all columns as strings. Parquet columns
    listed in string_columns are cast to strings.

    Args:
        path: Table path; ``.parquet`` and ``.csv`` are recognized, anything
              else is read as tab-separated
        string_columns: Columns that must be strings (Parquet only)

    Returns:
        DataFrame

    Raises:
        FileNotFoundError: If the table doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input table not found: {path}")

    suffixes = [s.lower() for s in path.suffixes]
    if ".parquet" in suffixes:
        df = pl.read_parquet(path)
        casts = [
            pl.col(c).cast(pl.Utf8)
            for c in (string_columns or [])
            if c in df.columns
        ]
        if casts:
            df = df.with_columns(casts)
    else:
        df = pl.read_csv(
            path,
            separator="," if ".csv" in suffixes else "\t",
            infer_schema_length=0,
            null_values=NULL_VALUES,
        )

    logger.debug("read_table", path=str(path), rows=df.height, columns=len(df.columns))
    return df


def read_id_list(path: Path | str, column: str | None = None) -> list[str]:
    """Read an ordered list of identifiers from one column of a table.

    Used for the regulator ranking, the mutation whitelist and the list of
    samples with activity inferences. Nulls are dropped; order is kept.

    Args:
        path: Table path (must have a header row)
        column: Column to read (default: first column)

    Returns:
        List of identifiers as strings
    """
    df = read_table(path)
    column = column or df.columns[0]
    if column not in df.columns:
        raise ValueError(f"Column '{column}' not found in {path}")
    return [str(v).strip() for v in df[column].drop_nulls().to_list()]
