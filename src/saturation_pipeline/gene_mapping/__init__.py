"""Gene id to cytoband mapping module.

Provides the gene location lookup used for copy-number events and
validation gates for mapping quality.
"""

from saturation_pipeline.gene_mapping.mapper import (
    GeneLocationMap,
    MappingReport,
)
from saturation_pipeline.gene_mapping.validator import (
    MappingValidator,
    ValidationResult,
)

__all__ = [
    "GeneLocationMap",
    "MappingReport",
    "MappingValidator",
    "ValidationResult",
]
