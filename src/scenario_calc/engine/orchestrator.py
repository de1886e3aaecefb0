"""Scenario orchestrator — one (scenario, period) calculation run.

Each run follows this sequence:
  environment (parameters ∪ period inputs)
  → evaluation order (graph builder)
  → per OUTPUT: formula → effect curve → environment
  → baseline deltas
  → CalculationResult (optionally cached / persisted through a store)

Per-variable failures are collected in ``error_log`` and never abort
unrelated variables; any OUTPUT whose dependency failed is skipped and
logged as DEPENDENCY_FAILED. The run is FAILED only for graph-level
problems, when every INPUT is missing, or when no OUTPUT was computed.

Entry point: ``run_calculation(context, options, store=None)``
"""

from __future__ import annotations

import hashlib
import json
import time
from datetime import date
from typing import Protocol

from pydantic import BaseModel, Field

from scenario_calc.config.effect_curve import EffectCurveDefinition
from scenario_calc.config.parameter import ParameterDefinition
from scenario_calc.config.variable import VariableDefinition, VariableValue
from scenario_calc.engine.effect_curves import apply_effect_curve
from scenario_calc.engine.formula import evaluate, extract_references
from scenario_calc.engine.graph import build_evaluation_order
from scenario_calc.errors import CircularDependencyError, EffectCurveError, EvaluationError, GraphError
from scenario_calc.logging_config import get_logger
from scenario_calc.models.results import (
    CalculationRecord,
    CalculationResult,
    CalculationStatus,
    ErrorEntry,
    ErrorType,
    VariableResult,
)

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Inputs
# ═══════════════════════════════════════════════════════════════════════════

class CalculationContext(BaseModel):
    """Everything a run reads. Treated as immutable for the duration of a run."""

    variables: list[VariableDefinition] = Field(default_factory=list)
    parameters: list[ParameterDefinition] = Field(default_factory=list)
    input_values: list[VariableValue] = Field(default_factory=list)
    baseline_results: dict[str, VariableResult] | None = Field(
        default=None,
        description="Baseline run for the same period; None when this run is the "
                    "baseline or no baseline exists yet.",
    )
    baseline_scenario_id: str | None = None
    effect_curves: dict[str, EffectCurveDefinition] = Field(default_factory=dict)


class CalculationOptions(BaseModel):
    scenario_id: str
    organization_id: str
    period_start: date | None = None
    period_end: date | None = None
    force_recalculate: bool = Field(
        default=False,
        description="Ignore a cached result with the same input fingerprint.",
    )
    store_results: bool = Field(default=True, description="Persist through the store, when one is given.")
    precision: int | None = Field(default=None, ge=0, description="Round reported values. None = no rounding.")


class ResultStore(Protocol):
    """What the orchestrator needs from a persistence collaborator."""

    def cached_calculation(
        self, scenario_id: str, period_start: date | None, fingerprint: str,
    ) -> CalculationRecord | None: ...

    def save_calculation(self, result: CalculationResult, fingerprint: str) -> CalculationRecord: ...


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

def select_period_values(values: list[VariableValue], period_start: date | None) -> dict[str, float]:
    """Input values by variable name for one period.

    Sentinel values (``period_start=None``) apply to every period; a value
    stored for the exact period overrides them.
    """
    selected: dict[str, float] = {}
    for v in values:
        if v.period_start is None:
            selected.setdefault(v.variable_name, v.value)
    for v in values:
        if period_start is not None and v.period_start == period_start:
            selected[v.variable_name] = v.value
    return selected


def compute_fingerprint(context: CalculationContext, options: CalculationOptions) -> str:
    """SHA-256 over everything that can change a run's outcome."""
    payload = {
        "variables": sorted(
            (v.model_dump(mode="json", exclude={"id", "display_name", "category"}) for v in context.variables),
            key=lambda d: d["name"],
        ),
        "parameters": sorted((p.name, p.value) for p in context.parameters),
        "inputs": sorted(select_period_values(context.input_values, options.period_start).items()),
        "baseline": sorted(
            (name, r.value) for name, r in (context.baseline_results or {}).items()
        ) if context.baseline_results is not None else None,
        "curves": sorted(
            (c.id, c.curve_type.value, json.dumps(c.parameters, sort_keys=True))
            for c in context.effect_curves.values()
        ),
        "period": options.period_start.isoformat() if options.period_start else None,
        "precision": options.precision,
    }
    blob = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def _error_type(exc: EvaluationError) -> ErrorType:
    return {
        "PARSE_ERROR": ErrorType.PARSE_ERROR,
        "UNKNOWN_IDENTIFIER": ErrorType.UNKNOWN_IDENTIFIER,
        "DIVISION_BY_ZERO": ErrorType.DIVISION_BY_ZERO,
        "EFFECT_CURVE_ERROR": ErrorType.EFFECT_CURVE_ERROR,
    }.get(exc.code, ErrorType.EVALUATION_ERROR)


def _compare(value: float, name: str, baseline: dict[str, VariableResult] | None) -> tuple[float | None, float | None, float | None]:
    """(delta, percent_change, baseline_value) against the baseline run."""
    if baseline is None or name not in baseline:
        return None, None, None
    base = baseline[name].value
    delta = value - base
    pct = None if base == 0 else (delta / base) * 100
    return delta, pct, base


def _round(value: float | None, precision: int | None) -> float | None:
    if value is None or precision is None:
        return value
    return round(value, precision)


# ═══════════════════════════════════════════════════════════════════════════
# Public entry point
# ═══════════════════════════════════════════════════════════════════════════

def run_calculation(
    context: CalculationContext,
    options: CalculationOptions,
    store: ResultStore | None = None,
) -> CalculationResult:
    """Calculate every OUTPUT variable for one scenario and period.

    Parameters
    ----------
    context : CalculationContext
        Definitions, input values, baseline results and effect curves.
    options : CalculationOptions
        Scenario/organization ids, period bounds and caching flags.
    store : ResultStore | None
        Optional cache/persistence collaborator.

    Returns
    -------
    CalculationResult
        Never raises for per-variable or graph errors; inspect ``status``,
        ``has_errors`` and ``error_log``.
    """
    fingerprint = None
    if store is not None:
        fingerprint = compute_fingerprint(context, options)
        if not options.force_recalculate:
            cached = store.cached_calculation(options.scenario_id, options.period_start, fingerprint)
            if cached is not None:
                logger.debug("Cache hit for scenario=%s period=%s", options.scenario_id, options.period_start)
                return cached.result

    result = _calculate(context, options)

    if store is not None and options.store_results:
        record = store.save_calculation(result, fingerprint)
        result = record.result
    return result


def _calculate(context: CalculationContext, options: CalculationOptions) -> CalculationResult:
    started = time.perf_counter()
    result = CalculationResult(
        scenario_id=options.scenario_id,
        organization_id=options.organization_id,
        period_start=options.period_start,
        period_end=options.period_end,
        baseline_scenario_id=context.baseline_scenario_id if context.baseline_results is not None else None,
    )
    logger.debug(
        "Calculating org=%s scenario=%s period=%s",
        options.organization_id, options.scenario_id, options.period_start,
    )
    result.status = CalculationStatus.EVALUATING
    errors: list[ErrorEntry] = []
    baseline = context.baseline_results
    precision = options.precision

    def finish(status: CalculationStatus) -> CalculationResult:
        result.status = status
        result.error_log = errors
        result.has_errors = bool(errors)
        result.execution_time_ms = (time.perf_counter() - started) * 1_000
        log = logger.error if status is CalculationStatus.FAILED else logger.info
        log(
            "Scenario %s period %s: %s (%d results, %d errors, %.2f ms)",
            options.scenario_id, options.period_start, status.value,
            len(result.results), len(errors), result.execution_time_ms,
        )
        return result

    # ── 1. Environment ──────────────────────────────────────────────────
    environment: dict[str, float] = {p.name: p.value for p in context.parameters}
    period_values = select_period_values(context.input_values, options.period_start)

    inputs = [v for v in context.variables if v.is_input]
    required = {dep for v in context.variables if v.is_output for dep in v.dependencies}
    failed: set[str] = set()

    for var in inputs:
        if var.name in period_values:
            value = period_values[var.name]
            environment[var.name] = value
            delta, pct, base = _compare(value, var.name, baseline)
            result.results[var.name] = VariableResult(
                value=_round(value, precision),
                raw_value=_round(value, precision),
                delta=_round(delta, precision),
                percent_change=_round(pct, precision),
                baseline_value=_round(base, precision),
            )
        else:
            failed.add(var.name)
            if var.name in required:
                errors.append(ErrorEntry(
                    variable_name=var.name,
                    error_type=ErrorType.MISSING_INPUT,
                    message=f"INPUT variable '{var.name}' has no value for period {options.period_start or 'single'}",
                ))
            else:
                logger.debug("Unused INPUT %s has no value", var.name)

    if inputs and len(failed) == len(inputs):
        return finish(CalculationStatus.FAILED)

    # ── 2. Evaluation order ─────────────────────────────────────────────
    try:
        order = build_evaluation_order(context.variables)
    except CircularDependencyError as exc:
        for member in exc.members:
            errors.append(ErrorEntry(
                variable_name=member,
                error_type=ErrorType.CIRCULAR_DEPENDENCY,
                message=exc.message,
            ))
        return finish(CalculationStatus.FAILED)
    except GraphError as exc:
        errors.append(ErrorEntry(
            variable_name="CALCULATION_ENGINE",
            error_type=ErrorType.GRAPH_ERROR,
            message=exc.message,
        ))
        return finish(CalculationStatus.FAILED)

    # ── 3. Evaluate OUTPUT variables ────────────────────────────────────
    computed = 0
    for var in order:
        try:
            # Undeclared formula references count too.
            referenced = dict.fromkeys([*var.dependencies, *extract_references(var.formula or "")])
            broken = [name for name in referenced if name in failed]
            if broken:
                failed.add(var.name)
                errors.append(ErrorEntry(
                    variable_name=var.name,
                    error_type=ErrorType.DEPENDENCY_FAILED,
                    message=f"Skipped '{var.name}': dependency {', '.join(broken)} could not be calculated",
                ))
                continue

            raw = evaluate(var.formula or "", environment, var.name)
            value = raw
            if var.effect_curve_id is not None:
                curve = context.effect_curves.get(var.effect_curve_id)
                if curve is None:
                    raise EffectCurveError(
                        f"Effect curve '{var.effect_curve_id}' is not defined",
                        var.formula, var.name,
                    )
                value = apply_effect_curve(curve, raw, var.name)
        except EvaluationError as exc:
            failed.add(var.name)
            logger.warning("Could not calculate %s: %s", var.name, exc.message)
            errors.append(ErrorEntry(
                variable_name=var.name,
                error_type=_error_type(exc),
                message=exc.message,
            ))
            continue

        environment[var.name] = value
        computed += 1
        delta, pct, base = _compare(value, var.name, baseline)
        result.results[var.name] = VariableResult(
            value=_round(value, precision),
            raw_value=_round(raw, precision),
            delta=_round(delta, precision),
            percent_change=_round(pct, precision),
            baseline_value=_round(base, precision),
            effect_curve_applied=var.effect_curve_id is not None,
            dependencies=list(var.dependencies),
        )

    # ── 4. Final status ─────────────────────────────────────────────────
    if not order:
        errors.append(ErrorEntry(
            variable_name="CALCULATION_ENGINE",
            error_type=ErrorType.GRAPH_ERROR,
            message="No OUTPUT variables to evaluate",
        ))
    if computed == 0:
        return finish(CalculationStatus.FAILED)
    if errors:
        return finish(CalculationStatus.COMPLETED_WITH_ERRORS)
    return finish(CalculationStatus.COMPLETED)
