"""Effect curves — optional non-linear transforms of an OUTPUT's raw value.

An OUTPUT variable with ``effect_curve_id`` set has its formula result
(``raw_value``) passed through the curve to obtain the final ``value``.

Curve types and their parameters:
- **LINEAR**: ``slope · x + intercept``
- **LOGARITHMIC**: ``multiplier · log_base(x) + offset``
- **EXPONENTIAL**: ``multiplier · base ** (exponent · x)``
- **STEP_WISE**: lookup table; ``values[i]`` where ``i`` = number of
  thresholds ≤ x (the SKU-complexity table is a step-wise curve)
- **CUSTOM_INTERPOLATED**: piecewise-linear through user points, clamped
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class CurveType(str, Enum):
    LINEAR = "LINEAR"
    LOGARITHMIC = "LOGARITHMIC"
    EXPONENTIAL = "EXPONENTIAL"
    STEP_WISE = "STEP_WISE"
    CUSTOM_INTERPOLATED = "CUSTOM_INTERPOLATED"


class LinearCurveParams(BaseModel):
    slope: float = 1.0
    intercept: float = 0.0


class LogarithmicCurveParams(BaseModel):
    base: float = Field(default=10.0, gt=0)
    multiplier: float = 1.0
    offset: float = 0.0

    @model_validator(mode="after")
    def _base_not_one(self) -> "LogarithmicCurveParams":
        if self.base == 1:
            raise ValueError("logarithm base must not be 1")
        return self


class ExponentialCurveParams(BaseModel):
    base: float = Field(default=2.0, gt=0)
    exponent: float = 1.0
    multiplier: float = 1.0


class StepWiseCurveParams(BaseModel):
    thresholds: list[float] = Field(description="Ascending breakpoints")
    values: list[float] = Field(description="len(thresholds) + 1 outputs")

    @model_validator(mode="after")
    def _check_shape(self) -> "StepWiseCurveParams":
        if any(b < a for a, b in zip(self.thresholds, self.thresholds[1:])):
            raise ValueError("thresholds must be ascending")
        if len(self.values) != len(self.thresholds) + 1:
            raise ValueError("values must have exactly len(thresholds) + 1 entries")
        return self


class CurvePoint(BaseModel):
    x: float
    y: float


class CustomCurveParams(BaseModel):
    points: list[CurvePoint] = Field(min_length=1, description="Sorted by x")
    interpolation_method: Literal["linear"] = "linear"

    @model_validator(mode="after")
    def _check_sorted(self) -> "CustomCurveParams":
        xs = [p.x for p in self.points]
        if any(b <= a for a, b in zip(xs, xs[1:])):
            raise ValueError("points must be strictly increasing in x")
        return self


CurveParams = (
    LinearCurveParams
    | LogarithmicCurveParams
    | ExponentialCurveParams
    | StepWiseCurveParams
    | CustomCurveParams
)

_PARAM_MODELS: dict[CurveType, type[BaseModel]] = {
    CurveType.LINEAR: LinearCurveParams,
    CurveType.LOGARITHMIC: LogarithmicCurveParams,
    CurveType.EXPONENTIAL: ExponentialCurveParams,
    CurveType.STEP_WISE: StepWiseCurveParams,
    CurveType.CUSTOM_INTERPOLATED: CustomCurveParams,
}


class EffectCurveDefinition(BaseModel):
    """A stored curve. ``parameters`` is JSON-shaped; its shape depends on ``curve_type``."""

    id: str = Field(min_length=1)
    name: str = ""
    curve_type: CurveType
    parameters: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_parameters(self) -> "EffectCurveDefinition":
        _PARAM_MODELS[self.curve_type].model_validate(self.parameters)
        return self

    @property
    def params(self) -> CurveParams:
        """Typed view of ``parameters``."""
        return _PARAM_MODELS[self.curve_type].model_validate(self.parameters)  # type: ignore[return-value]
