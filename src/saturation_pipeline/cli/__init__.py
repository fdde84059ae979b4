"""Command-line interface for saturation-pipeline."""
