"""DuckDB-based storage for coverage checkpoints with restart capability."""

import re
from pathlib import Path
from typing import Optional

import duckdb
import polars as pl

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_table_name(table_name: str) -> str:
    if not _TABLE_NAME.match(table_name):
        raise ValueError(f"Invalid table name: {table_name!r}")
    return table_name


class PipelineStore:
    """
    DuckDB-based storage for saturation run results.

    Per-sample coverage records and the cohort curve are saved as tables so a
    finished run can be reported again without recomputation. Each checkpoint
    remembers the config hash it was produced with, so results computed
    under different thresholds are not mistaken for current ones.
    """

    def __init__(self, db_path: Path):
        """
        Initialize PipelineStore with a DuckDB database.

        Args:
            db_path: Path to DuckDB database file. Parent directories
                     are created automatically.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(str(self.db_path))

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS _checkpoints (
                table_name VARCHAR PRIMARY KEY,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                row_count INTEGER,
                description VARCHAR,
                config_hash VARCHAR
            )
        """)

    def save_dataframe(
        self,
        df: pl.DataFrame,
        table_name: str,
        description: str = "",
        replace: bool = True,
        config_hash: Optional[str] = None,
    ) -> None:
        """
        Save a polars DataFrame to DuckDB as a table.

        Args:
            df: DataFrame to save
            table_name: Name for the DuckDB table
            description: Optional description for checkpoint metadata
            replace: If True, replace existing table; if False, append
            config_hash: Hash of the config that produced the data
        """
        _check_table_name(table_name)
        if not isinstance(df, pl.DataFrame):
            raise ValueError("df must be a polars.DataFrame")

        if replace:
            self.conn.execute(f"CREATE OR REPLACE TABLE {table_name} AS SELECT * FROM df")
        else:
            self.conn.execute(f"INSERT INTO {table_name} SELECT * FROM df")

        row_count = self.conn.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()[0]
        self.conn.execute("""
            INSERT OR REPLACE INTO _checkpoints
                (table_name, row_count, description, config_hash, created_at)
            VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
        """, [table_name, row_count, description, config_hash])

    def load_dataframe(self, table_name: str) -> Optional[pl.DataFrame]:
        """
        Load a table as a polars DataFrame.

        Returns:
            DataFrame or None if table doesn't exist
        """
        _check_table_name(table_name)
        try:
            return self.conn.execute(f"SELECT * FROM {table_name}").pl()
        except duckdb.CatalogException:
            return None

    def has_checkpoint(self, table_name: str, config_hash: Optional[str] = None) -> bool:
        """
        Check if a checkpoint exists.

        Args:
            table_name: Name of the table to check
            config_hash: If given, the checkpoint must have been produced
                         with this config hash

        Returns:
            True if a matching checkpoint exists
        """
        if config_hash is None:
            result = self.conn.execute(
                "SELECT COUNT(*) FROM _checkpoints WHERE table_name = ?",
                [table_name]
            ).fetchone()
        else:
            result = self.conn.execute(
                "SELECT COUNT(*) FROM _checkpoints WHERE table_name = ? AND config_hash = ?",
                [table_name, config_hash]
            ).fetchone()
        return result[0] > 0

    def list_checkpoints(self) -> list[dict]:
        """
        List all checkpoints with metadata.

        Returns:
            List of checkpoint metadata dicts with keys:
            table_name, created_at, row_count, description, config_hash
        """
        result = self.conn.execute("""
            SELECT table_name, created_at, row_count, description, config_hash
            FROM _checkpoints
            ORDER BY created_at DESC
        """).fetchall()

        return [
            {
                "table_name": row[0],
                "created_at": row[1],
                "row_count": row[2],
                "description": row[3],
                "config_hash": row[4],
            }
            for row in result
        ]

    def delete_checkpoint(self, table_name: str) -> None:
        """Drop a checkpoint table and its metadata."""
        _check_table_name(table_name)
        self.conn.execute(f"DROP TABLE IF EXISTS {table_name}")
        self.conn.execute(
            "DELETE FROM _checkpoints WHERE table_name = ?",
            [table_name]
        )

    def export_parquet(self, table_name: str, output_path: Path) -> None:
        """
        Export a table to Parquet format.

        Args:
            table_name: Name of the table to export
            output_path: Path to output Parquet file
        """
        _check_table_name(table_name)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn.execute(f"COPY {table_name} TO '{output_path.as_posix()}' (FORMAT PARQUET)")

    def execute_query(
        self,
        query: str,
        params: Optional[list] = None
    ) -> pl.DataFrame:
        """
        Execute arbitrary SQL query and return polars DataFrame.

        Args:
            query: SQL query to execute
            params: Optional query parameters

        Returns:
            Query results as polars DataFrame
        """
        if params:
            result = self.conn.execute(query, params)
        else:
            result = self.conn.execute(query)
        return result.pl()

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @classmethod
    def from_config(cls, config: "PipelineConfig") -> "PipelineStore":
        """Create PipelineStore at config.duckdb_path."""
        return cls(config.duckdb_path)
