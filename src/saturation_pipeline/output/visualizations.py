"""Plots of the saturation curve."""

import logging
from pathlib import Path
from typing import Optional

import matplotlib
import polars as pl

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402

logger = logging.getLogger(__name__)


def plot_saturation_curve(
    curve_df: pl.DataFrame,
    output_path: Path,
    selected_k: Optional[int] = None,
) -> Path:
    """
    Create line plot of mean coverage fraction against the number of regulators.

    Args:
        curve_df: Curve table with k and mean_fraction columns
        output_path: Path where PNG will be saved
        selected_k: If given, marked with a vertical line

    Returns:
        Path to the saved PNG file

    Notes:
        - Points with undefined mean fraction are dropped
        - Saves at 300 DPI
    """
    pdf = curve_df.filter(pl.col("mean_fraction").is_not_null()).to_pandas()

    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(10, 6))

    sns.lineplot(data=pdf, x="k", y="mean_fraction", marker="o", markersize=3, ax=ax)

    if selected_k is not None:
        ax.axvline(selected_k, color="#e74c3c", linestyle="--", label=f"k = {selected_k}")
        ax.legend(loc="lower right")

    ax.set_xlabel("Top-k regulators")
    ax.set_ylabel("Mean fraction of events covered")
    ax.set_ylim(0, 1.05)
    ax.set_title("Genomic Saturation Curve")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close(fig)

    logger.info(f"Saved saturation curve plot to {output_path}")
    return output_path


def plot_event_counts(curve_df: pl.DataFrame, output_path: Path) -> Path:
    """
    Plot mean covered events per sample and unique covered events against k.

    Args:
        curve_df: Curve table with k, mean_event_count and unique_event_count columns
        output_path: Path where PNG will be saved

    Returns:
        Path to the saved PNG file
    """
    pdf = curve_df.select("k", "mean_event_count", "unique_event_count").to_pandas()

    sns.set_theme(style="whitegrid", context="paper")
    fig, (ax_mean, ax_unique) = plt.subplots(1, 2, figsize=(14, 5))

    sns.lineplot(data=pdf, x="k", y="mean_event_count", color="#3498db", ax=ax_mean)
    ax_mean.set_xlabel("Top-k regulators")
    ax_mean.set_ylabel("Mean covered events per sample")

    sns.lineplot(data=pdf, x="k", y="unique_event_count", color="#2ecc71", ax=ax_unique)
    ax_unique.set_xlabel("Top-k regulators")
    ax_unique.set_ylabel("Unique covered events in cohort")

    fig.suptitle("Covered Genomic Events")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close(fig)

    logger.info(f"Saved event count plot to {output_path}")
    return output_path


def generate_all_plots(
    curve_df: pl.DataFrame,
    output_dir: Path,
    selected_k: Optional[int] = None,
) -> dict[str, Path]:
    """
    Generate all saturation plots.

    Each plot is attempted independently; a failure is logged and the
    remaining plots are still produced.

    Returns:
        Dictionary mapping plot name to file path
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    plots = {}

    try:
        plots["saturation_curve"] = plot_saturation_curve(
            curve_df,
            output_dir / "saturation_curve.png",
            selected_k=selected_k,
        )
    except Exception as e:
        logger.warning(f"Failed to create saturation curve plot: {e}")

    try:
        plots["event_counts"] = plot_event_counts(
            curve_df,
            output_dir / "event_counts.png",
        )
    except Exception as e:
        logger.warning(f"Failed to create event count plot: {e}")

    logger.info(f"Generated {len(plots)} plots in {output_dir}")
    return plots
