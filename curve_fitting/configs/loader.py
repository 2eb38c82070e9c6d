"""Configuration loader for the fitting engines.

Loads and validates ``fitting.yaml`` into a typed, frozen dataclass.
Every numeric knob of the algorithm (fit tolerance, weighting policy,
reparametrization stopping rule) comes from the config; the engines never
read module-level constants.

Usage::

    from curve_fitting.configs.loader import load_config
    cfg = load_config()                        # default path
    cfg = load_config("/custom/fitting.yaml")  # explicit path
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from curve_fitting.utils.fs import load_yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


class WeightingPolicy(str, Enum):
    """Per-sample weights for the least-squares solve.

    ``LINEAR``
        ``w(n, i) = |n - 2i|`` with ``n = count - 1``.
    ``ENDPOINT``
        ``1e10`` at both ends, ``(|n - 2i| + 1) / n`` elsewhere.

    Both emphasize samples near the interval ends over those in the middle.
    """

    LINEAR = "linear"
    ENDPOINT = "endpoint"


@dataclass(frozen=True)
class FittingConfig:
    """Fitting-algorithm settings.

    Parameters
    ----------
    tolerance : float
        Maximum distance (curve units) between a sample and its curve
        position before the interval is split.
    weighting : WeightingPolicy
        Least-squares weighting policy.
    improvement_ratio : float
        Reparametrization continues only while the new residual is below
        ``improvement_ratio`` times the previous one.
    residual_floor : float
        Reparametrization stops once the residual (squared units) is at or
        below this floor.
    """

    tolerance: float = 0.5
    weighting: WeightingPolicy = WeightingPolicy.LINEAR
    improvement_ratio: float = 0.95
    residual_floor: float = 0.25

    @property
    def tolerance_sq(self) -> float:
        """Squared split tolerance."""
        return self.tolerance * self.tolerance


# ---------------------------------------------------------------------------
# Parsing & validation
# ---------------------------------------------------------------------------


def _parse_weighting(raw: Any) -> WeightingPolicy:
    if isinstance(raw, WeightingPolicy):
        return raw
    try:
        return WeightingPolicy(str(raw).lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in WeightingPolicy)
        raise ConfigError(
            f"Unknown weighting policy {raw!r} (expected one of: {choices})"
        ) from exc


def _validate_config(cfg: FittingConfig) -> None:
    """Validate value ranges.

    Raises
    ------
    ConfigError
        On any invalid value.
    """
    for name in ("tolerance", "improvement_ratio", "residual_floor"):
        value = getattr(cfg, name)
        if not math.isfinite(value):
            raise ConfigError(f"{name} must be finite, got {value}")

    if cfg.tolerance <= 0.0:
        raise ConfigError(f"tolerance must be positive, got {cfg.tolerance}")
    if not 0.0 < cfg.improvement_ratio < 1.0:
        raise ConfigError(
            f"improvement_ratio must be in (0, 1), got {cfg.improvement_ratio}"
        )
    if cfg.residual_floor < 0.0:
        raise ConfigError(
            f"residual_floor must be non-negative, got {cfg.residual_floor}"
        )
    if cfg.residual_floor > cfg.tolerance_sq:
        logger.warning(
            "residual_floor %.3f exceeds tolerance^2 %.3f: reparametrization "
            "may stop before the fit can meet the tolerance",
            cfg.residual_floor,
            cfg.tolerance_sq,
        )


def config_from_dict(data: dict[str, Any]) -> FittingConfig:
    """Build a validated config from the ``fitting`` mapping.

    Missing keys take the dataclass defaults.

    Raises
    ------
    ConfigError
        If a value has the wrong type or fails validation.
    """
    defaults = FittingConfig()
    try:
        config = FittingConfig(
            tolerance=float(data.get("tolerance", defaults.tolerance)),
            weighting=_parse_weighting(data.get("weighting", defaults.weighting)),
            improvement_ratio=float(
                data.get("improvement_ratio", defaults.improvement_ratio)
            ),
            residual_floor=float(
                data.get("residual_floor", defaults.residual_floor)
            ),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc

    _validate_config(config)
    return config


def load_config(path: str | Path | None = None) -> FittingConfig:
    """Load and validate fitting configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``fitting.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    FittingConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If the ``fitting`` section is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "fitting.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    try:
        section = data["fitting"]
    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    if not isinstance(section, dict):
        raise ConfigError("'fitting' section must be a mapping")

    config = config_from_dict(section)
    logger.info("Configuration loaded successfully")
    return config
