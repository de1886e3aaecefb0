"""Demo model — supply-chain inventory scenarios for a retail organization.

Parameters (baseline benchmark year 2025):
    PARAM_BASELINE_OMZET           €1,000,000 revenue
    PARAM_BASELINE_VOORRAAD        10,000 pallets
    PARAM_BASELINE_SKUS            6,500 SKUs
    PARAM_BASELINE_VOORRAAD_WEKEN  4 weeks coverage

Main output:
    OUTPUT_VOORRAAD_PALLETS = PARAM_BASELINE_VOORRAAD
        * (Omzet% / 100) * (SKU% / 100) * (Weken% / 100)

``OUTPUT_VOORRAAD_PALLETS_GECORRIGEERD`` additionally multiplies by the
SKU-complexity factor, a step-wise lookup on the SKU count.

Scenarios (yearly, 2025–2031):
    Baseline 2025    flat
    Optimalisatie A  +5% revenue/yr, −10% weeks/yr (min 1 week), stable SKUs
    Groei B          +10% revenue/yr, stable weeks, +1000 SKUs/yr
"""

from __future__ import annotations

from datetime import date

from scenario_calc.config import (
    CurveType,
    EffectCurveDefinition,
    ParameterDefinition,
    Scenario,
    TimePeriodType,
    VariableDefinition,
    VariableType,
)
from scenario_calc.storage import InMemoryStore

DEMO_ORGANIZATION_ID = "retailco"
BASELINE_SCENARIO_ID = "baseline-2025"
OPTIMALISATIE_SCENARIO_ID = "optimalisatie-a"
GROEI_SCENARIO_ID = "groei-b"

BASELINE_OMZET = 1_000_000.0
BASELINE_VOORRAAD = 10_000.0
BASELINE_SKUS = 6_500.0
BASELINE_VOORRAAD_WEKEN = 4.0

YEARS = range(2025, 2032)

# (range start, multiplier); the multiplier holds from its start up to the next one
SKU_COMPLEXITY_TABLE: list[tuple[float, float]] = [
    (0, 1.00), (50, 1.01), (100, 1.02), (150, 1.03), (200, 1.05), (250, 1.07),
    (6500, 1.00), (6550, 1.01), (6600, 1.02), (6650, 1.03), (6700, 1.05),
    (6750, 1.07), (6800, 1.10), (6850, 1.12), (6900, 1.15), (6950, 1.18),
    (7000, 1.20), (7050, 1.22), (7100, 1.25), (7150, 1.28), (7200, 1.30),
    (7250, 1.32), (7300, 1.35), (7350, 1.38), (7400, 1.40), (7450, 1.42),
    (7500, 1.45), (7550, 1.48),
]


def demo_parameters() -> list[ParameterDefinition]:
    return [
        ParameterDefinition(
            id="param-omzet", name="PARAM_BASELINE_OMZET", display_name="Baseline Omzet",
            value=BASELINE_OMZET, unit="EUR", category="BASELINE",
            description="Baseline revenue for percentage calculations",
        ),
        ParameterDefinition(
            id="param-voorraad", name="PARAM_BASELINE_VOORRAAD", display_name="Baseline Voorraad",
            value=BASELINE_VOORRAAD, unit="pallets", category="BASELINE",
            description="Starting inventory for the benchmark year",
        ),
        ParameterDefinition(
            id="param-skus", name="PARAM_BASELINE_SKUS", display_name="Baseline SKUs",
            value=BASELINE_SKUS, unit="aantal", category="BASELINE",
            description="Baseline SKU count for percentage calculations",
        ),
        ParameterDefinition(
            id="param-weken", name="PARAM_BASELINE_VOORRAAD_WEKEN", display_name="Baseline Voorraad Weken",
            value=BASELINE_VOORRAAD_WEKEN, unit="weken", category="BASELINE",
            description="Baseline inventory coverage in weeks",
        ),
    ]


def demo_effect_curves() -> list[EffectCurveDefinition]:
    starts = [start for start, _ in SKU_COMPLEXITY_TABLE]
    return [
        EffectCurveDefinition(
            id="sku-complexity",
            name="SKU complexity multiplier",
            curve_type=CurveType.STEP_WISE,
            parameters={
                "thresholds": starts[1:],
                "values": [multiplier for _, multiplier in SKU_COMPLEXITY_TABLE],
            },
        ),
    ]


def demo_variables() -> list[VariableDefinition]:
    def inp(name: str, display: str, unit: str, order: int) -> VariableDefinition:
        return VariableDefinition(
            id=name.lower(), name=name, display_name=display,
            variable_type=VariableType.INPUT, unit=unit, category="INPUT", display_order=order,
        )

    def out(name: str, display: str, formula: str, deps: list[str], unit: str, order: int,
            effect_curve_id: str | None = None) -> VariableDefinition:
        return VariableDefinition(
            id=name.lower(), name=name, display_name=display,
            variable_type=VariableType.OUTPUT, formula=formula, dependencies=deps,
            unit=unit, category="OUTPUT", display_order=order, effect_curve_id=effect_curve_id,
        )

    return [
        inp("INPUT_OMZET", "Omzet", "EUR", 1),
        inp("INPUT_VOORRAAD_IN_WEKEN", "Voorraad in Weken", "weken", 2),
        inp("INPUT_AANTAL_SKUS", "Aantal SKUs", "aantal", 3),
        out("OUTPUT_OMZET_PERCENTAGE", "Omzet %",
            "(INPUT_OMZET / PARAM_BASELINE_OMZET) * 100", ["INPUT_OMZET"], "%", 10),
        out("OUTPUT_SKU_GROWTH", "SKU groei %",
            "(INPUT_AANTAL_SKUS / PARAM_BASELINE_SKUS) * 100", ["INPUT_AANTAL_SKUS"], "%", 11),
        out("OUTPUT_VOORRAAD_WEKEN_PERCENTAGE", "Voorraad weken %",
            "(INPUT_VOORRAAD_IN_WEKEN / PARAM_BASELINE_VOORRAAD_WEKEN) * 100",
            ["INPUT_VOORRAAD_IN_WEKEN"], "%", 12),
        out("OUTPUT_SKU_COMPLEXITY_FACTOR", "SKU complexiteitsfactor",
            "INPUT_AANTAL_SKUS", ["INPUT_AANTAL_SKUS"], "factor", 13,
            effect_curve_id="sku-complexity"),
        out("OUTPUT_VOORRAAD_PALLETS", "Voorraad in Pallets",
            "PARAM_BASELINE_VOORRAAD * (OUTPUT_OMZET_PERCENTAGE / 100) * (OUTPUT_SKU_GROWTH / 100)"
            " * (OUTPUT_VOORRAAD_WEKEN_PERCENTAGE / 100)",
            ["OUTPUT_OMZET_PERCENTAGE", "OUTPUT_SKU_GROWTH", "OUTPUT_VOORRAAD_WEKEN_PERCENTAGE"],
            "pallets", 20),
        out("OUTPUT_VOORRAAD_PALLETS_GECORRIGEERD", "Voorraad in Pallets (SKU-gecorrigeerd)",
            "OUTPUT_VOORRAAD_PALLETS * OUTPUT_SKU_COMPLEXITY_FACTOR",
            ["OUTPUT_VOORRAAD_PALLETS", "OUTPUT_SKU_COMPLEXITY_FACTOR"], "pallets", 21),
    ]


def demo_scenarios() -> list[Scenario]:
    common = dict(
        organization_id=DEMO_ORGANIZATION_ID,
        time_period_type=TimePeriodType.YEARLY,
        start_date=date(2025, 1, 1),
        end_date=date(2031, 12, 31),
    )
    return [
        Scenario(id=BASELINE_SCENARIO_ID, name="Baseline 2025", is_baseline=True,
                 description="Flat projection of the 2025 benchmark year", **common),
        Scenario(id=OPTIMALISATIE_SCENARIO_ID, name="Optimalisatie A",
                 description="Efficiency: +5% revenue/year, -10% inventory weeks/year, stable SKUs",
                 **common),
        Scenario(id=GROEI_SCENARIO_ID, name="Groei B",
                 description="Growth: +10% revenue/year, stable inventory weeks, +1000 SKUs/year",
                 **common),
    ]


def yearly_inputs(scenario_id: str, year: int) -> dict[str, float]:
    """INPUT values of a demo scenario for one year."""
    n = year - 2025
    if scenario_id == OPTIMALISATIE_SCENARIO_ID:
        return {
            "INPUT_OMZET": float(round(BASELINE_OMZET * (1 + 0.05 * n))),
            "INPUT_VOORRAAD_IN_WEKEN": max(1.0, BASELINE_VOORRAAD_WEKEN * (1 - 0.1 * n)),
            "INPUT_AANTAL_SKUS": BASELINE_SKUS,
        }
    if scenario_id == GROEI_SCENARIO_ID:
        return {
            "INPUT_OMZET": float(round(BASELINE_OMZET * (1 + 0.1 * n))),
            "INPUT_VOORRAAD_IN_WEKEN": BASELINE_VOORRAAD_WEKEN,
            "INPUT_AANTAL_SKUS": BASELINE_SKUS + n * 1000,
        }
    return {
        "INPUT_OMZET": BASELINE_OMZET,
        "INPUT_VOORRAAD_IN_WEKEN": BASELINE_VOORRAAD_WEKEN,
        "INPUT_AANTAL_SKUS": BASELINE_SKUS,
    }


def seed_demo_model(store: InMemoryStore | None = None) -> InMemoryStore:
    """Load the demo organization into ``store`` (a new one when omitted)."""
    store = store if store is not None else InMemoryStore()
    for parameter in demo_parameters():
        store.add_parameter(DEMO_ORGANIZATION_ID, parameter)
    for curve in demo_effect_curves():
        store.add_effect_curve(DEMO_ORGANIZATION_ID, curve)
    for variable in demo_variables():
        store.add_variable(DEMO_ORGANIZATION_ID, variable)
    for scenario in demo_scenarios():
        store.add_scenario(scenario)
        for year in YEARS:
            for name, value in yearly_inputs(scenario.id, year).items():
                store.set_value(scenario.id, name, value, date(year, 1, 1), date(year, 12, 31))
    return store
