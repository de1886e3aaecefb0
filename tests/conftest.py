"""Shared test fixtures — the demo supply-chain model and small variable sets."""

from __future__ import annotations

from datetime import date

import pytest

from scenario_calc.config import (
    EffectCurveDefinition,
    ParameterDefinition,
    VariableDefinition,
    VariableType,
    VariableValue,
)
from scenario_calc.seed import demo_effect_curves, demo_parameters, demo_variables, seed_demo_model
from scenario_calc.storage import InMemoryStore


@pytest.fixture
def make_input():
    """Factory for INPUT variable definitions."""
    def _make(name: str, display_order: int = 0) -> VariableDefinition:
        return VariableDefinition(
            id=name.lower(), name=name, variable_type=VariableType.INPUT, display_order=display_order,
        )
    return _make


@pytest.fixture
def make_output():
    """Factory for OUTPUT variable definitions."""
    def _make(
        name: str,
        formula: str,
        dependencies: list[str] | None = None,
        display_order: int = 0,
        effect_curve_id: str | None = None,
    ) -> VariableDefinition:
        return VariableDefinition(
            id=name.lower(),
            name=name,
            variable_type=VariableType.OUTPUT,
            formula=formula,
            dependencies=dependencies or [],
            display_order=display_order,
            effect_curve_id=effect_curve_id,
        )
    return _make


@pytest.fixture
def make_values():
    """Factory: {name: value} → list of VariableValue for one period."""
    def _make(values: dict[str, float], period_start: date | None = None,
              scenario_id: str = "scn-test") -> list[VariableValue]:
        return [
            VariableValue(scenario_id=scenario_id, variable_name=name, value=value, period_start=period_start)
            for name, value in values.items()
        ]
    return _make


@pytest.fixture
def parameters() -> list[ParameterDefinition]:
    return demo_parameters()


@pytest.fixture
def variables() -> list[VariableDefinition]:
    return demo_variables()


@pytest.fixture
def effect_curves() -> dict[str, EffectCurveDefinition]:
    return {c.id: c for c in demo_effect_curves()}


@pytest.fixture
def baseline_inputs() -> dict[str, float]:
    """Benchmark-year inputs: every percentage equals 100."""
    return {
        "INPUT_OMZET": 1_000_000,
        "INPUT_VOORRAAD_IN_WEKEN": 4,
        "INPUT_AANTAL_SKUS": 6_500,
    }


@pytest.fixture
def demo_store() -> InMemoryStore:
    return seed_demo_model()
