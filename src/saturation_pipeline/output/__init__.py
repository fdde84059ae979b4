"""Output generation: dual-format curve tables and saturation plots."""

from saturation_pipeline.output.visualizations import (
    generate_all_plots,
    plot_event_counts,
    plot_saturation_curve,
)
from saturation_pipeline.output.writers import (
    write_coverage_records,
    write_saturation_output,
)

__all__ = [
    "write_saturation_output",
    "write_coverage_records",
    "generate_all_plots",
    "plot_saturation_curve",
    "plot_event_counts",
]
