"""Calculation engine — graph builder, formula evaluator, orchestrator."""

from scenario_calc.engine.formula import (
    FormulaValidation,
    evaluate,
    extract_references,
    parse,
    tokenize,
    validate_formula,
)
from scenario_calc.engine.graph import (
    build_evaluation_order,
    compute_levels,
    find_dependents,
    validate_definitions,
)
from scenario_calc.engine.effect_curves import apply_effect_curve
from scenario_calc.engine.orchestrator import (
    CalculationContext,
    CalculationOptions,
    ResultStore,
    compute_fingerprint,
    run_calculation,
    select_period_values,
)

__all__ = [
    "FormulaValidation",
    "evaluate",
    "extract_references",
    "parse",
    "tokenize",
    "validate_formula",
    "build_evaluation_order",
    "compute_levels",
    "find_dependents",
    "validate_definitions",
    "apply_effect_curve",
    "CalculationContext",
    "CalculationOptions",
    "ResultStore",
    "compute_fingerprint",
    "run_calculation",
    "select_period_values",
]
