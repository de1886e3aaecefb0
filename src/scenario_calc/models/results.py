"""Result types — the contract between the engine, the store and callers.

``delta``, ``percent_change`` and ``baseline_value`` are explicit optionals:
``None`` means "no baseline to compare against" (or a zero baseline for
``percent_change``), which callers must be able to tell apart from 0.0.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CalculationStatus(str, Enum):
    """Per-run state machine: PENDING → EVALUATING → one of the terminal states."""

    PENDING = "PENDING"
    EVALUATING = "EVALUATING"
    COMPLETED = "COMPLETED"
    COMPLETED_WITH_ERRORS = "COMPLETED_WITH_ERRORS"
    FAILED = "FAILED"


class ErrorType(str, Enum):
    GRAPH_ERROR = "GRAPH_ERROR"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
    MISSING_INPUT = "MISSING_INPUT"
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN_IDENTIFIER = "UNKNOWN_IDENTIFIER"
    DIVISION_BY_ZERO = "DIVISION_BY_ZERO"
    EFFECT_CURVE_ERROR = "EFFECT_CURVE_ERROR"
    EVALUATION_ERROR = "EVALUATION_ERROR"
    DEPENDENCY_FAILED = "DEPENDENCY_FAILED"


class ErrorEntry(BaseModel):
    """One line of a run's error log."""

    variable_name: str
    error_type: ErrorType
    message: str
    timestamp: datetime = Field(default_factory=_utcnow)


class VariableResult(BaseModel):
    """Calculated (or echoed INPUT) value of one variable."""

    value: float
    """Final value, after the effect curve when one is configured."""

    raw_value: float | None = None
    """Formula result before the effect curve (equals ``value`` when none)."""

    delta: float | None = None
    """value − baseline_value; None without a baseline."""

    percent_change: float | None = None
    """delta / baseline_value × 100; None without a baseline or when it is 0."""

    baseline_value: float | None = None
    """Same variable in the baseline run for the same period."""

    effect_curve_applied: bool = False
    dependencies: list[str] = Field(default_factory=list)


class CalculationResult(BaseModel):
    """Outcome of one (scenario, period) calculation run."""

    scenario_id: str
    organization_id: str = ""
    period_start: date | None = None
    period_end: date | None = None
    baseline_scenario_id: str | None = None

    status: CalculationStatus = CalculationStatus.PENDING
    results: dict[str, VariableResult] = Field(default_factory=dict)
    has_errors: bool = False
    error_log: list[ErrorEntry] = Field(default_factory=list)

    execution_time_ms: float = 0.0
    calculated_at: datetime = Field(default_factory=_utcnow)
    version: int = 1
    """Revision counter; the store increments it on each recomputation."""

    def value_of(self, name: str) -> float | None:
        """Final value of ``name`` or None when it was not calculated."""
        res = self.results.get(name)
        return res.value if res is not None else None

    def errors_for(self, name: str) -> list[ErrorEntry]:
        return [e for e in self.error_log if e.variable_name == name]


class CalculationRecord(BaseModel):
    """Persisted calculation: one per (scenario, period), overwritten on recompute."""

    scenario_id: str
    period_start: date | None = None
    period_end: date | None = None
    version: int
    fingerprint: str
    result: CalculationResult
