"""Per-sample profiles: active regulators and hypothesis-validated events."""

from saturation_pipeline.profiles.models import HypothesisUniverse, SampleProfile
from saturation_pipeline.profiles.extract import (
    active_regulators,
    activity_pvalues,
    extract_profiles,
    extract_sample_profile,
    filter_whitelist,
    select_samples,
    validate_hypotheses,
)

__all__ = [
    "HypothesisUniverse",
    "SampleProfile",
    "active_regulators",
    "activity_pvalues",
    "extract_profiles",
    "extract_sample_profile",
    "filter_whitelist",
    "select_samples",
    "validate_hypotheses",
]
