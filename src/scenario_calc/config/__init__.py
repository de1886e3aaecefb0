"""Configuration models — engine inputs and runtime settings."""

from scenario_calc.config.variable import VariableDefinition, VariableType, VariableValue
from scenario_calc.config.parameter import ParameterDefinition
from scenario_calc.config.scenario import Period, Scenario, TimePeriodType, generate_periods
from scenario_calc.config.effect_curve import CurveType, EffectCurveDefinition
from scenario_calc.config.settings import Settings, get_settings

__all__ = [
    "VariableDefinition",
    "VariableType",
    "VariableValue",
    "ParameterDefinition",
    "Period",
    "Scenario",
    "TimePeriodType",
    "generate_periods",
    "CurveType",
    "EffectCurveDefinition",
    "Settings",
    "get_settings",
]
