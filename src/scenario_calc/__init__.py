"""Scenario calculation engine.

Computes derived OUTPUT variables from INPUT variables and organization
parameters, per scenario and per period, and compares them with a baseline.

Entry point: ``run_calculation(context, options)``.
"""

from scenario_calc.engine.orchestrator import (
    CalculationContext,
    CalculationOptions,
    run_calculation,
)
from scenario_calc.engine.graph import build_evaluation_order
from scenario_calc.engine.formula import evaluate

__version__ = "0.3.0"

__all__ = [
    "CalculationContext",
    "CalculationOptions",
    "run_calculation",
    "build_evaluation_order",
    "evaluate",
]
