"""Selection of the saturation k from a coverage curve."""

import math
from collections.abc import Mapping, Sequence

import polars as pl
import structlog

from saturation_pipeline.coverage.models import SaturationPoint

logger = structlog.get_logger(__name__)

DEFAULT_SATURATION_FRACTION = 0.85

CURVE_METRICS = ("mean_fraction", "mean_event_count", "unique_event_count")


def _curve_pairs(
    curve: Sequence[SaturationPoint] | Mapping[int, float | None] | pl.DataFrame,
    metric: str,
) -> list[tuple[int, float | None]]:
    if isinstance(curve, pl.DataFrame):
        return sorted(zip(curve["k"].to_list(), curve[metric].to_list()))
    if isinstance(curve, Mapping):
        return sorted((int(k), v) for k, v in curve.items())
    return sorted((p.k, getattr(p, metric)) for p in curve)


def select_saturation_k(
    curve: Sequence[SaturationPoint] | Mapping[int, float | None] | pl.DataFrame,
    fraction: float = DEFAULT_SATURATION_FRACTION,
    metric: str = "mean_fraction",
) -> int | None:
    """
    Smallest k whose value reaches a fraction of the curve maximum.

    The curve is normalized by its maximum; undefined (None/NaN) values are
    skipped.

    Args:
        curve: SaturationPoint sequence, ``{k: value}`` mapping, or a
            saturation_frame table
        fraction: Target fraction of the maximum (default: 0.85)
        metric: Curve column used for SaturationPoint sequences and tables

    Returns:
        Selected k, or None when no point reaches the target (including
        empty and all-zero curves)

    Raises:
        ValueError: If metric is unknown
    """
    if metric not in CURVE_METRICS:
        raise ValueError(f"Unknown metric '{metric}', expected one of {CURVE_METRICS}")

    values = [
        (k, float(v))
        for k, v in _curve_pairs(curve, metric)
        if v is not None and not math.isnan(v)
    ]
    if not values:
        logger.info("saturation_k_not_reached", reason="empty_curve", fraction=fraction)
        return None

    peak = max(v for _, v in values)
    if peak <= 0:
        logger.info("saturation_k_not_reached", reason="zero_curve", fraction=fraction)
        return None

    for k, v in values:
        if v / peak >= fraction:
            logger.info("saturation_k_selected", k=k, fraction=fraction, metric=metric)
            return k

    logger.info("saturation_k_not_reached", reason="target_above_maximum", fraction=fraction)
    return None
