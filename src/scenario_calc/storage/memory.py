"""In-memory store — definitions, input values and calculation records.

Stands in for the persistence collaborator. Semantics that a real store
must keep:
  - input values upsert on (scenario, variable, period_start), last write wins
  - calculation records upsert on (scenario, period_start); each recompute
    increments ``version``
  - a record is reusable as a cache hit only while its input fingerprint
    matches

All mutations take a lock so periods can be calculated concurrently.
"""

from __future__ import annotations

import threading
from datetime import date

from scenario_calc.config.effect_curve import EffectCurveDefinition
from scenario_calc.config.parameter import ParameterDefinition
from scenario_calc.config.scenario import Scenario
from scenario_calc.config.variable import VariableDefinition, VariableValue
from scenario_calc.errors import InvalidInputError, NotFoundError
from scenario_calc.logging_config import get_logger
from scenario_calc.models.results import CalculationRecord, CalculationResult

logger = get_logger(__name__)


class InMemoryStore:
    """Process-local store keyed by organization and scenario ids."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._parameters: dict[str, dict[str, ParameterDefinition]] = {}
        self._variables: dict[str, dict[str, VariableDefinition]] = {}
        self._curves: dict[str, dict[str, EffectCurveDefinition]] = {}
        self._scenarios: dict[str, Scenario] = {}
        self._values: dict[tuple[str, str, date | None], VariableValue] = {}
        self._calculations: dict[tuple[str, date | None], CalculationRecord] = {}

    # ── Definitions ─────────────────────────────────────────────────────

    def add_parameter(self, organization_id: str, parameter: ParameterDefinition) -> None:
        with self._lock:
            self._parameters.setdefault(organization_id, {})[parameter.name] = parameter

    def add_variable(self, organization_id: str, variable: VariableDefinition) -> None:
        with self._lock:
            org_vars = self._variables.setdefault(organization_id, {})
            if variable.name in org_vars:
                raise InvalidInputError(f"Variable '{variable.name}' already exists")
            org_vars[variable.name] = variable

    def add_effect_curve(self, organization_id: str, curve: EffectCurveDefinition) -> None:
        with self._lock:
            self._curves.setdefault(organization_id, {})[curve.id] = curve

    def parameters(self, organization_id: str) -> list[ParameterDefinition]:
        with self._lock:
            return list(self._parameters.get(organization_id, {}).values())

    def variables(self, organization_id: str) -> list[VariableDefinition]:
        with self._lock:
            return list(self._variables.get(organization_id, {}).values())

    def effect_curves(self, organization_id: str) -> dict[str, EffectCurveDefinition]:
        with self._lock:
            return dict(self._curves.get(organization_id, {}))

    # ── Scenarios ───────────────────────────────────────────────────────

    def add_scenario(self, scenario: Scenario) -> None:
        with self._lock:
            self._scenarios[scenario.id] = scenario

    def get_scenario(self, scenario_id: str) -> Scenario:
        with self._lock:
            try:
                return self._scenarios[scenario_id]
            except KeyError:
                raise NotFoundError(f"Scenario '{scenario_id}' not found") from None

    def scenarios(self, organization_id: str) -> list[Scenario]:
        """Scenarios of an organization, baseline(s) first, then insertion order."""
        with self._lock:
            found = [s for s in self._scenarios.values() if s.organization_id == organization_id]
        return sorted(found, key=lambda s: not s.is_baseline)

    def baseline_for(self, organization_id: str) -> Scenario | None:
        """The comparison baseline: first ``is_baseline`` scenario, if any."""
        return next((s for s in self.scenarios(organization_id) if s.is_baseline), None)

    def clone_scenario(self, source_id: str, new_id: str, name: str) -> Scenario:
        """Copy a scenario and all of its input values as a non-baseline scenario."""
        with self._lock:
            source = self.get_scenario(source_id)
            clone = source.model_copy(update={"id": new_id, "name": name, "is_baseline": False})
            self._scenarios[new_id] = clone
            for value in self.values_for(source_id):
                copied = value.model_copy(update={"scenario_id": new_id})
                self._values[copied.key] = copied
        logger.debug("Cloned scenario %s → %s", source_id, new_id)
        return clone

    # ── Input values ────────────────────────────────────────────────────

    def set_value(
        self,
        scenario_id: str,
        variable_name: str,
        value: float,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> VariableValue:
        """Upsert one INPUT value. Rejects OUTPUT and unknown variables."""
        with self._lock:
            scenario = self.get_scenario(scenario_id)
            variable = self._variables.get(scenario.organization_id, {}).get(variable_name)
            if variable is None:
                raise NotFoundError(f"Variable '{variable_name}' not found")
            if not variable.is_input:
                raise InvalidInputError(f"'{variable_name}' is not an INPUT variable")
            stored = VariableValue(
                scenario_id=scenario_id,
                variable_id=variable.id,
                variable_name=variable_name,
                value=value,
                period_start=period_start,
                period_end=period_end,
            )
            self._values[stored.key] = stored
        logger.debug("Set %s=%s for scenario %s period %s", variable_name, value, scenario_id, period_start)
        return stored

    def values_for(self, scenario_id: str) -> list[VariableValue]:
        with self._lock:
            return [v for v in self._values.values() if v.scenario_id == scenario_id]

    # ── Calculation records ─────────────────────────────────────────────

    def save_calculation(self, result: CalculationResult, fingerprint: str) -> CalculationRecord:
        """Upsert the record for (scenario, period), bumping its version."""
        key = (result.scenario_id, result.period_start)
        with self._lock:
            previous = self._calculations.get(key)
            version = previous.version + 1 if previous else 1
            stored = result.model_copy(update={"version": version})
            record = CalculationRecord(
                scenario_id=result.scenario_id,
                period_start=result.period_start,
                period_end=result.period_end,
                version=version,
                fingerprint=fingerprint,
                result=stored,
            )
            self._calculations[key] = record
        return record

    def cached_calculation(
        self, scenario_id: str, period_start: date | None, fingerprint: str,
    ) -> CalculationRecord | None:
        with self._lock:
            record = self._calculations.get((scenario_id, period_start))
        if record is not None and record.fingerprint == fingerprint:
            return record
        return None

    def latest_calculation(self, scenario_id: str, period_start: date | None = None) -> CalculationRecord | None:
        with self._lock:
            return self._calculations.get((scenario_id, period_start))

    def calculations_for(self, scenario_id: str) -> list[CalculationRecord]:
        """All records of a scenario ordered by period."""
        with self._lock:
            records = [r for (sid, _), r in self._calculations.items() if sid == scenario_id]
        return sorted(records, key=lambda r: (r.period_start is not None, r.period_start or date.min))
