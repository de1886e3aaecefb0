"""Tests for effect curves — parameter validation and application."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from scenario_calc.config import CurveType, EffectCurveDefinition
from scenario_calc.config.effect_curve import StepWiseCurveParams
from scenario_calc.engine.effect_curves import apply_effect_curve
from scenario_calc.errors import EffectCurveError


def _curve(curve_type: CurveType, **parameters) -> EffectCurveDefinition:
    return EffectCurveDefinition(id="c1", name="test", curve_type=curve_type, parameters=parameters)


# ═══════════════════════════════════════════════════════════════════════════
# Application
# ═══════════════════════════════════════════════════════════════════════════

class TestApply:

    def test_linear(self):
        assert apply_effect_curve(_curve(CurveType.LINEAR, slope=2, intercept=1), 3) == 7

    def test_linear_defaults_are_identity(self):
        assert apply_effect_curve(_curve(CurveType.LINEAR), 42.5) == 42.5

    def test_logarithmic(self):
        curve = _curve(CurveType.LOGARITHMIC, base=10, multiplier=3, offset=1)
        assert apply_effect_curve(curve, 100) == pytest.approx(7)

    @pytest.mark.parametrize("x", [0, -5])
    def test_logarithmic_undefined_for_non_positive(self, x):
        with pytest.raises(EffectCurveError) as exc_info:
            apply_effect_curve(_curve(CurveType.LOGARITHMIC), x, variable_name="OUTPUT_X")
        assert exc_info.value.variable_name == "OUTPUT_X"

    def test_exponential(self):
        curve = _curve(CurveType.EXPONENTIAL, base=2, exponent=1, multiplier=0.5)
        assert apply_effect_curve(curve, 3) == pytest.approx(4)

    def test_exponential_overflow(self):
        with pytest.raises(EffectCurveError, match="overflows"):
            apply_effect_curve(_curve(CurveType.EXPONENTIAL, base=10, exponent=1), 1_000)

    @pytest.mark.parametrize("x, expected", [
        (5, 1.0),
        (10, 2.0),     # threshold itself belongs to the next bucket
        (19.99, 2.0),
        (20, 3.0),
        (1_000, 3.0),
    ])
    def test_step_wise(self, x, expected):
        curve = _curve(CurveType.STEP_WISE, thresholds=[10, 20], values=[1, 2, 3])
        assert apply_effect_curve(curve, x) == expected

    @pytest.mark.parametrize("x, expected", [
        (5, 50),
        (-5, 0),       # clamped low
        (20, 150),     # clamped high
        (12.5, 125),
    ])
    def test_custom_interpolated(self, x, expected):
        curve = _curve(
            CurveType.CUSTOM_INTERPOLATED,
            points=[{"x": 0, "y": 0}, {"x": 10, "y": 100}, {"x": 15, "y": 150}],
        )
        assert apply_effect_curve(curve, x) == pytest.approx(expected)

    def test_single_point_custom_curve_is_constant(self):
        curve = _curve(CurveType.CUSTOM_INTERPOLATED, points=[{"x": 1, "y": 9}])
        assert apply_effect_curve(curve, -100) == 9
        assert apply_effect_curve(curve, 100) == 9


class TestSkuComplexityCurve:
    """The demo model's SKU lookup table as a step-wise curve."""

    @pytest.mark.parametrize("skus, multiplier", [
        (0, 1.00),
        (49, 1.00),
        (50, 1.01),
        (260, 1.07),
        (6_500, 1.00),
        (6_549, 1.00),
        (6_550, 1.01),
        (7_500, 1.45),
        (9_000, 1.48),
    ])
    def test_lookup(self, effect_curves, skus, multiplier):
        assert apply_effect_curve(effect_curves["sku-complexity"], skus) == pytest.approx(multiplier)


# ═══════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════

class TestCurveValidation:

    def test_step_wise_values_length(self):
        with pytest.raises(ValidationError):
            _curve(CurveType.STEP_WISE, thresholds=[1, 2], values=[1, 2])

    def test_step_wise_thresholds_ascending(self):
        with pytest.raises(ValidationError):
            StepWiseCurveParams(thresholds=[5, 1], values=[1, 2, 3])

    def test_custom_points_strictly_increasing(self):
        with pytest.raises(ValidationError):
            _curve(CurveType.CUSTOM_INTERPOLATED, points=[{"x": 1, "y": 1}, {"x": 1, "y": 2}])

    def test_custom_needs_points(self):
        with pytest.raises(ValidationError):
            _curve(CurveType.CUSTOM_INTERPOLATED, points=[])

    @pytest.mark.parametrize("base", [1, 0, -2])
    def test_logarithmic_base(self, base):
        with pytest.raises(ValidationError):
            _curve(CurveType.LOGARITHMIC, base=base)

    def test_typed_view(self):
        params = _curve(CurveType.STEP_WISE, thresholds=[1], values=[0, 1]).params
        assert isinstance(params, StepWiseCurveParams)
        assert params.values == [0, 1]
