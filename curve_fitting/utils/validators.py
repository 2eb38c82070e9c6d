"""YAML schema validation for sample-point files.

Provides validation of input files using pydantic:
    - Points schema (points.v1): ordered list of (x, y) sample points

Point files are validated fail-fast so a malformed file is rejected with the
offending index before any fitting starts.

Usage:
    from curve_fitting.utils import validators

    points = validators.load_sample_points("circle.yaml")   # (N, 2) array
"""

import math
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .fs import load_yaml


# ============================================================================
# POINTS SCHEMA V1
# ============================================================================

class SamplePointsFileV1(BaseModel):
    """Sample points to fit (points.v1 schema).

    Example::

        schema: points.v1
        points:
          - [0.0, 0.0]
          - [5.0, 5.0]
          - [10.0, 0.0]
    """
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("points.v1", alias="schema", description="Schema version")
    points: List[Tuple[float, float]] = Field(..., min_length=2, description="Ordered (x, y) samples")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "points.v1":
            raise ValueError(f"Expected schema 'points.v1', got '{v}'")
        return v

    @field_validator('points')
    @classmethod
    def validate_finite(cls, v: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
        for idx, (x, y) in enumerate(v):
            if not (math.isfinite(x) and math.isfinite(y)):
                raise ValueError(f"Point {idx} has non-finite coordinates ({x}, {y})")
        return v

    def as_array(self) -> np.ndarray:
        """Return the points as a float64 array of shape (N, 2)."""
        return np.asarray(self.points, dtype=np.float64)


def load_points_file(path: Union[str, Path]) -> SamplePointsFileV1:
    """Load and validate a points file.

    Parameters
    ----------
    path : Union[str, Path]
        Path to a points.v1 YAML file

    Returns
    -------
    SamplePointsFileV1
        Validated file contents

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    ValueError
        If the document is empty or not a mapping
    pydantic.ValidationError
        If the schema is violated
    """
    data = load_yaml(path)
    if not isinstance(data, dict):
        raise ValueError(f"Points file {path} must contain a YAML mapping")
    return SamplePointsFileV1.model_validate(data)


def load_sample_points(path: Union[str, Path]) -> np.ndarray:
    """Load a points file straight into an (N, 2) array."""
    return load_points_file(path).as_array()
