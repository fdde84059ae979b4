"""Validation gates for cytoband mapping quality control.

A low mapping rate for copy-number hypothesis genes usually means the
location table uses a different gene id namespace than the rest of the
inputs; the gate turns that into an actionable report before a run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from saturation_pipeline.gene_mapping.mapper import MappingReport

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes:
        passed: Whether validation passed
        messages: List of validation messages (warnings, errors)
        success_rate: Cytoband mapping success rate (0-1)
    """
    passed: bool
    messages: list[str] = field(default_factory=list)
    success_rate: float = 0.0


class MappingValidator:
    """Validator for gene-to-cytoband translation reports."""

    def __init__(
        self,
        min_success_rate: float = 0.50,
        warn_threshold: float = 0.90
    ):
        """Initialize mapping validator.

        Args:
            min_success_rate: Minimum mapping success rate to pass (default: 0.50)
            warn_threshold: Success rate below this triggers warning (default: 0.90)
        """
        self.min_success_rate = min_success_rate
        self.warn_threshold = warn_threshold

    def validate(self, report: MappingReport, label: str = "genes") -> ValidationResult:
        """Validate a cytoband mapping report.

        Args:
            report: MappingReport from GeneLocationMap.translate_with_report
            label: What was mapped, used in messages (e.g. "amp hypotheses")

        Returns:
            ValidationResult with pass/fail status and messages
        """
        messages: list[str] = []
        rate = report.success_rate

        if report.total_genes == 0:
            messages.append(f"FAILED: no {label} to map")
            passed = False
        elif rate < self.min_success_rate:
            messages.append(
                f"FAILED: {label} cytoband mapping rate {rate:.1%} is below "
                f"minimum threshold {self.min_success_rate:.1%}"
            )
            messages.append(
                f"Unmapped: {len(report.unmapped_ids)} "
                f"(first 10: {report.unmapped_ids[:10]})"
            )
            passed = False
        elif rate < self.warn_threshold:
            messages.append(
                f"WARNING: {label} cytoband mapping rate {rate:.1%} is below "
                f"warning threshold {self.warn_threshold:.1%}"
            )
            passed = True
        else:
            messages.append(
                f"PASSED: {label} cytoband mapping rate {rate:.1%} "
                f"({report.mapped_genes}/{report.total_genes})"
            )
            passed = True

        logger.info(
            f"Validation result for {label}: {'PASSED' if passed else 'FAILED'} "
            f"({rate:.1%})"
        )

        return ValidationResult(passed=passed, messages=messages, success_rate=rate)

    def save_unmapped_report(
        self,
        report: MappingReport,
        output_path: Path
    ) -> None:
        """Save list of genes without a cytoband to file for manual review.

        Args:
            report: MappingReport containing unmapped gene IDs
            output_path: Path to output file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        with output_path.open('w') as f:
            f.write("# Genes without cytoband\n")
            f.write(f"# Generated: {timestamp}\n")
            f.write(f"# Total unmapped: {len(report.unmapped_ids)}\n")
            f.write(f"# Success rate: {report.success_rate:.1%}\n")
            f.write("#\n")
            for gene_id in report.unmapped_ids:
                f.write(f"{gene_id}\n")

        logger.info(
            f"Saved {len(report.unmapped_ids)} unmapped gene IDs to {output_path}"
        )
