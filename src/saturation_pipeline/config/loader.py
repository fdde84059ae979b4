"""Configuration loading with YAML parsing and validation."""

from pathlib import Path
from typing import Any

import pydantic_yaml

from saturation_pipeline.errors import ConfigurationError

from .schema import PipelineConfig


def load_config(config_path: Path | str) -> PipelineConfig:
    """
    Load and validate pipeline configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated PipelineConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        yaml_content = f.read()

    return pydantic_yaml.parse_yaml_raw_as(PipelineConfig, yaml_content)


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> PipelineConfig:
    """
    Load config from YAML and apply overrides from the command line.

    Keys are dotted paths into the config sections, e.g.
    ``{"coverage.top_n": 50, "coverage.saturation_fraction": 0.9,
    "thresholds.activity_tail": "one_sided"}``. None values are skipped so
    unset CLI options leave the file value in place.

    Args:
        config_path: Path to YAML configuration file
        overrides: Dotted key -> value

    Returns:
        Validated PipelineConfig with overrides applied

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If a key does not name a config field
        pydantic.ValidationError: If final config is invalid
    """
    config = load_config(config_path)
    config_dict = config.model_dump()

    for key, value in overrides.items():
        if value is None:
            continue
        *sections, field = key.split(".")
        target = config_dict
        for section in sections:
            target = target.get(section)
            if not isinstance(target, dict):
                raise ConfigurationError(f"Unknown config section in override '{key}'")
        if field not in target:
            raise ConfigurationError(f"Unknown config field in override '{key}'")
        target[field] = value

    return PipelineConfig.model_validate(config_dict)
