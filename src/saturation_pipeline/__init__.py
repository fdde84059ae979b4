"""Genomic-event saturation analysis for ranked master regulators."""

__version__ = "0.1.0"
