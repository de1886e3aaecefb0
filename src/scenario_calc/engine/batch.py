"""Batch runner — every period of a scenario, every scenario of an organization.

Periods of one scenario are independent runs and may execute on a thread
pool; they share only read-only definitions. Across scenarios the baseline
runs first so the others can be compared against it period by period.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date

from pydantic import BaseModel, Field

from scenario_calc.config.effect_curve import EffectCurveDefinition
from scenario_calc.config.parameter import ParameterDefinition
from scenario_calc.config.scenario import Period, Scenario, generate_periods
from scenario_calc.config.settings import get_settings
from scenario_calc.config.variable import VariableDefinition, VariableValue
from scenario_calc.engine.orchestrator import CalculationContext, CalculationOptions, run_calculation
from scenario_calc.logging_config import get_logger
from scenario_calc.models.results import CalculationResult
from scenario_calc.storage.memory import InMemoryStore

logger = get_logger(__name__)


class OrganizationModel(BaseModel):
    """The shared definitions of one organization."""

    organization_id: str
    variables: list[VariableDefinition] = Field(default_factory=list)
    parameters: list[ParameterDefinition] = Field(default_factory=list)
    effect_curves: dict[str, EffectCurveDefinition] = Field(default_factory=dict)


class ComparisonRow(BaseModel):
    """One period of a side-by-side scenario comparison."""

    period_start: date | None = None
    period_end: date | None = None
    values: dict[str, float | None] = Field(default_factory=dict)
    """scenario_id → value (None when not calculated)."""
    deltas: dict[str, float | None] = Field(default_factory=dict)
    """scenario_id → delta against the baseline."""


def load_model(store: InMemoryStore, organization_id: str) -> OrganizationModel:
    return OrganizationModel(
        organization_id=organization_id,
        variables=store.variables(organization_id),
        parameters=store.parameters(organization_id),
        effect_curves=store.effect_curves(organization_id),
    )


def _baseline_lookup(
    baseline: list[CalculationResult] | None,
) -> dict[date | None, CalculationResult]:
    return {r.period_start: r for r in baseline or []}


def _run_period(
    scenario: Scenario,
    model: OrganizationModel,
    store: InMemoryStore,
    values: list[VariableValue],
    period: Period,
    base: CalculationResult | None,
    force_recalculate: bool,
) -> CalculationResult:
    context = CalculationContext(
        variables=model.variables,
        parameters=model.parameters,
        input_values=values,
        baseline_results=base.results if base is not None else None,
        baseline_scenario_id=base.scenario_id if base is not None else None,
        effect_curves=model.effect_curves,
    )
    options = CalculationOptions(
        scenario_id=scenario.id,
        organization_id=scenario.organization_id,
        period_start=period.period_start,
        period_end=period.period_end,
        force_recalculate=force_recalculate,
        precision=get_settings().result_precision,
    )
    return run_calculation(context, options, store)


def calculate_period(
    store: InMemoryStore,
    scenario_id: str,
    period_start: date | None = None,
    period_end: date | None = None,
    force_recalculate: bool = False,
) -> CalculationResult:
    """Calculate one period of one scenario, against the organization baseline.

    The baseline's result for the same period is reused from the store's
    cache when its inputs are unchanged, and calculated otherwise.
    """
    scenario = store.get_scenario(scenario_id)
    model = load_model(store, scenario.organization_id)
    period = Period(
        label=period_start.isoformat() if period_start else "Single Point",
        value=period_start.isoformat() if period_start else "single",
        period_start=period_start,
        period_end=period_end,
    )

    base = None
    baseline_scenario = store.baseline_for(scenario.organization_id)
    if baseline_scenario is not None and baseline_scenario.id != scenario.id:
        base = calculate_period(store, baseline_scenario.id, period_start, period_end)

    return _run_period(
        scenario, model, store, store.values_for(scenario.id), period, base, force_recalculate,
    )


# ═══════════════════════════════════════════════════════════════════════════
# Runners
# ═══════════════════════════════════════════════════════════════════════════

def run_scenario(
    scenario: Scenario,
    model: OrganizationModel,
    store: InMemoryStore,
    baseline: list[CalculationResult] | None = None,
    max_workers: int | None = None,
    force_recalculate: bool = False,
) -> list[CalculationResult]:
    """Calculate every period of ``scenario``; results in period order.

    Parameters
    ----------
    scenario : Scenario
        Scenario to calculate; its periods come from ``generate_periods``.
    model : OrganizationModel
        Definitions shared by all periods.
    store : InMemoryStore
        Source of input values and sink/cache for results.
    baseline : list[CalculationResult] | None
        Baseline results; matched per ``period_start``, falling back to the
        baseline's single-point result.
    max_workers : int | None
        Thread-pool size. ``None`` uses ``Settings.max_workers``; 1 runs
        sequentially.
    """
    workers = max_workers or get_settings().max_workers
    values = store.values_for(scenario.id)
    by_period = _baseline_lookup(baseline)

    def run_period(period: Period) -> CalculationResult:
        base = by_period.get(period.period_start) or by_period.get(None)
        return _run_period(scenario, model, store, values, period, base, force_recalculate)

    periods = generate_periods(scenario)
    logger.info("Running scenario %s (%d periods, %d workers)", scenario.id, len(periods), workers)

    if workers == 1 or len(periods) <= 1:
        return [run_period(p) for p in periods]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(run_period, periods))


def run_all_scenarios(
    organization_id: str,
    store: InMemoryStore,
    max_workers: int | None = None,
    force_recalculate: bool = False,
) -> dict[str, list[CalculationResult]]:
    """Run the baseline scenario first, then every other one against it."""
    model = load_model(store, organization_id)
    baseline_scenario = store.baseline_for(organization_id)

    results: dict[str, list[CalculationResult]] = {}
    baseline_results: list[CalculationResult] | None = None
    if baseline_scenario is not None:
        baseline_results = run_scenario(
            baseline_scenario, model, store,
            max_workers=max_workers, force_recalculate=force_recalculate,
        )
        results[baseline_scenario.id] = baseline_results
    else:
        logger.warning("Organization %s has no baseline scenario; deltas will be empty", organization_id)

    for scenario in store.scenarios(organization_id):
        if baseline_scenario is not None and scenario.id == baseline_scenario.id:
            continue
        results[scenario.id] = run_scenario(
            scenario, model, store, baseline=baseline_results,
            max_workers=max_workers, force_recalculate=force_recalculate,
        )
    return results


def compare_scenarios(
    results_by_scenario: dict[str, list[CalculationResult]],
    variable_name: str,
) -> list[ComparisonRow]:
    """Side-by-side value and delta of ``variable_name`` per period."""
    rows: dict[date | None, ComparisonRow] = {}
    for scenario_id, results in results_by_scenario.items():
        for result in results:
            row = rows.setdefault(
                result.period_start,
                ComparisonRow(period_start=result.period_start, period_end=result.period_end),
            )
            res = result.results.get(variable_name)
            row.values[scenario_id] = res.value if res is not None else None
            row.deltas[scenario_id] = res.delta if res is not None else None
    return sorted(rows.values(), key=lambda r: (r.period_start is not None, r.period_start or date.min))
