"""Effect curve application — raw formula value → final value."""

from __future__ import annotations

import math

import numpy as np

from scenario_calc.config.effect_curve import (
    CustomCurveParams,
    EffectCurveDefinition,
    ExponentialCurveParams,
    LinearCurveParams,
    LogarithmicCurveParams,
    StepWiseCurveParams,
)
from scenario_calc.errors import EffectCurveError


def apply_effect_curve(curve: EffectCurveDefinition, x: float, variable_name: str | None = None) -> float:
    """Transform ``x`` through ``curve``.

    Raises
    ------
    EffectCurveError
        When the curve is undefined at ``x`` (log of a non-positive value)
        or the result overflows.
    """
    params = curve.params

    if isinstance(params, LinearCurveParams):
        return params.slope * x + params.intercept

    if isinstance(params, LogarithmicCurveParams):
        if x <= 0:
            raise EffectCurveError(
                f"Logarithmic curve '{curve.id}' is undefined for {x}",
                variable_name=variable_name,
            )
        return params.multiplier * math.log(x, params.base) + params.offset

    if isinstance(params, ExponentialCurveParams):
        try:
            return params.multiplier * math.pow(params.base, params.exponent * x)
        except OverflowError:
            raise EffectCurveError(
                f"Exponential curve '{curve.id}' overflows at {x}",
                variable_name=variable_name,
            ) from None

    if isinstance(params, StepWiseCurveParams):
        # Number of thresholds ≤ x picks the bucket.
        idx = int(np.searchsorted(np.asarray(params.thresholds, dtype=float), x, side="right"))
        return float(params.values[idx])

    if isinstance(params, CustomCurveParams):
        xs = np.array([p.x for p in params.points], dtype=float)
        ys = np.array([p.y for p in params.points], dtype=float)
        return float(np.interp(x, xs, ys))

    raise EffectCurveError(f"Unsupported curve type {curve.curve_type}", variable_name=variable_name)
