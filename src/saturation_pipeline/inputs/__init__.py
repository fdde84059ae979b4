"""Readers and matrix containers for saturation run inputs."""

from saturation_pipeline.inputs.matrices import GenomicMatrix
from saturation_pipeline.inputs.readers import read_id_list, read_table

__all__ = [
    "GenomicMatrix",
    "read_id_list",
    "read_table",
]
