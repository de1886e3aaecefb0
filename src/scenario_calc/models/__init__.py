"""Result models — calculation output contracts."""

from scenario_calc.models.results import (
    CalculationRecord,
    CalculationResult,
    CalculationStatus,
    ErrorEntry,
    ErrorType,
    VariableResult,
)

__all__ = [
    "CalculationRecord",
    "CalculationResult",
    "CalculationStatus",
    "ErrorEntry",
    "ErrorType",
    "VariableResult",
]
