"""Fitting configuration loading and validation."""

from curve_fitting.configs.loader import (
    ConfigError,
    FittingConfig,
    WeightingPolicy,
    config_from_dict,
    load_config,
)

__all__ = [
    "ConfigError",
    "FittingConfig",
    "WeightingPolicy",
    "config_from_dict",
    "load_config",
]
