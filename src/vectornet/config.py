"""
Configuration management for the vector network engine.

Loads YAML configuration with sensible defaults for every computation stage.
"""

import os
from dataclasses import asdict, dataclass, field

import yaml


@dataclass
class McbConfig:
    """Configuration for minimum cycle basis search."""
    max_traversal_steps: int = 1_000_000


@dataclass
class CurveConfig:
    """Configuration for curve measurement."""
    length_samples: int = 32  # chord samples per edge for arc length


@dataclass
class RegionConfig:
    """Configuration for region nesting."""
    winding_rule: str = "nonzero"  # "nonzero" or "default"
    samples_per_edge: int = 16
    area_epsilon: float = 1e-9  # below this a cycle counts as zero-area
    orient_cycles: bool = True  # filled cycles CCW, holes CW


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class GraphConfig:
    """Complete engine configuration."""
    mcb: McbConfig = field(default_factory=McbConfig)
    curve: CurveConfig = field(default_factory=CurveConfig)
    region: RegionConfig = field(default_factory=RegionConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = GraphConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass. Unknown keys are ignored."""
    if "mcb" in yaml_data:
        for key, value in yaml_data["mcb"].items():
            if hasattr(config.mcb, key):
                setattr(config.mcb, key, value)

    if "curve" in yaml_data:
        for key, value in yaml_data["curve"].items():
            if hasattr(config.curve, key):
                setattr(config.curve, key, value)

    if "region" in yaml_data:
        for key, value in yaml_data["region"].items():
            if hasattr(config.region, key):
                setattr(config.region, key, value)

    if "tracing" in yaml_data:
        for key, value in yaml_data["tracing"].items():
            if hasattr(config.tracing, key):
                setattr(config.tracing, key, value)

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = asdict(GraphConfig())

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
