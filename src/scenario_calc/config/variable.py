"""Variable definitions and stored input values."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VariableType(str, Enum):
    """INPUT variables are user-entered; OUTPUT variables are derived by formula."""

    INPUT = "INPUT"
    OUTPUT = "OUTPUT"


class VariableDefinition(BaseModel):
    """One named quantity in an organization's model.

    Definitions are shared read-only by every scenario of the organization,
    so instances are frozen.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Storage id (free-form)")
    name: str = Field(
        min_length=1,
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
        description="Unique name within the organization; referenced from formulas",
    )
    display_name: str = Field(default="", description="Human-readable label")
    variable_type: VariableType = Field(description="INPUT or OUTPUT")
    formula: str | None = Field(
        default=None,
        description="Arithmetic expression over variable/parameter names. "
                    "Required for OUTPUT, forbidden for INPUT.",
    )
    dependencies: list[str] = Field(
        default_factory=list,
        description="Variable names the formula reads. Parameters may be listed "
                    "but never affect evaluation order.",
    )
    unit: str | None = Field(default=None, description="Display unit (EUR, %, pallets, ...)")
    category: str | None = Field(default=None, description="Grouping label for display")
    display_order: int = Field(default=0, description="Tie-breaker for evaluation and display order")
    effect_curve_id: str | None = Field(
        default=None,
        description="Optional effect curve applied to the raw formula result (OUTPUT only)",
    )

    @model_validator(mode="after")
    def _check_type_invariants(self) -> "VariableDefinition":
        if self.variable_type is VariableType.INPUT:
            if self.formula:
                raise ValueError(f"INPUT variable '{self.name}' cannot have a formula")
            if self.dependencies:
                raise ValueError(f"INPUT variable '{self.name}' cannot have dependencies")
            if self.effect_curve_id:
                raise ValueError(f"INPUT variable '{self.name}' cannot have an effect curve")
        elif not (self.formula and self.formula.strip()):
            raise ValueError(f"OUTPUT variable '{self.name}' requires a formula")
        return self

    @property
    def is_input(self) -> bool:
        return self.variable_type is VariableType.INPUT

    @property
    def is_output(self) -> bool:
        return self.variable_type is VariableType.OUTPUT


class VariableValue(BaseModel):
    """A concrete observation of an INPUT variable for one scenario and period.

    ``period_start=None`` is the sentinel period used by SINGLE_POINT
    scenarios; such a value applies to every period that has no
    period-specific value of its own.
    """

    scenario_id: str = ""
    variable_id: str = ""
    variable_name: str = Field(min_length=1)
    value: float
    period_start: date | None = None
    period_end: date | None = None

    @property
    def key(self) -> tuple[str, str, date | None]:
        """Upsert key: one logical value per (scenario, variable, period)."""
        return (self.scenario_id, self.variable_name, self.period_start)
