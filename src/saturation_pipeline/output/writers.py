"""Dual-format TSV+Parquet writer for saturation tables with provenance sidecar."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import polars as pl
import yaml


def _write_dual_format(df: pl.DataFrame, output_dir: Path, filename_base: str) -> tuple[Path, Path]:
    tsv_path = output_dir / f"{filename_base}.tsv"
    parquet_path = output_dir / f"{filename_base}.parquet"

    df.write_csv(tsv_path, separator="\t", include_header=True, null_value="NA")
    df.write_parquet(parquet_path, compression="snappy", use_pyarrow=True)
    return tsv_path, parquet_path


def write_saturation_output(
    curve_df: pl.DataFrame | pl.LazyFrame,
    output_dir: Path,
    selected_k: Optional[int],
    filename_base: str = "saturation_curve",
    saturation_fraction: Optional[float] = None,
    failed_samples: Optional[dict[str, str]] = None,
) -> dict:
    """
    Write the saturation curve to TSV and Parquet with a YAML provenance sidecar.

    Args:
        curve_df: Curve table with columns k, mean_fraction, mean_event_count,
            unique_event_count, n_defined
        output_dir: Directory to write output files (created if doesn't exist)
        selected_k: Selected saturation k, or None if the target was not reached
        filename_base: Base filename without extension (default: "saturation_curve")
        saturation_fraction: Fraction used to select k, recorded in the sidecar
        failed_samples: Per-sample errors excluded from the curve

    Returns:
        Dictionary with output file paths:
        {
            "tsv": Path to TSV file,
            "parquet": Path to Parquet file,
            "provenance": Path to YAML provenance sidecar
        }

    Notes:
        - Rows are sorted by k
        - Undefined mean fractions are written as NA in the TSV and null in Parquet
        - The sidecar records selected_k as "not_reached" when None
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if isinstance(curve_df, pl.LazyFrame):
        curve_df = curve_df.collect()

    curve_df = curve_df.sort("k")

    tsv_path, parquet_path = _write_dual_format(curve_df, output_dir, filename_base)
    provenance_path = output_dir / f"{filename_base}.provenance.yaml"

    final = curve_df.tail(1).to_dicts()[0] if curve_df.height else {}
    failed_samples = failed_samples or {}

    provenance = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "output_files": [tsv_path.name, parquet_path.name],
        "statistics": {
            "curve_points": curve_df.height,
            "max_k": final.get("k"),
            "final_mean_fraction": final.get("mean_fraction"),
            "final_unique_event_count": final.get("unique_event_count"),
            "selected_k": selected_k if selected_k is not None else "not_reached",
            "saturation_fraction": saturation_fraction,
            "failed_sample_count": len(failed_samples),
        },
        "failed_samples": dict(sorted(failed_samples.items())),
        "column_count": len(curve_df.columns),
        "column_names": curve_df.columns,
    }

    with open(provenance_path, "w") as f:
        yaml.dump(provenance, f, default_flow_style=False, sort_keys=False)

    return {
        "tsv": tsv_path,
        "parquet": parquet_path,
        "provenance": provenance_path,
    }


def write_coverage_records(
    coverage_df: pl.DataFrame,
    output_dir: Path,
    filename_base: str = "coverage_records",
) -> dict:
    """Write per-sample coverage records to TSV and Parquet, sorted by sample and k."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    tsv_path, parquet_path = _write_dual_format(
        coverage_df.sort(["sample", "k"]), output_dir, filename_base
    )
    return {"tsv": tsv_path, "parquet": parquet_path}
