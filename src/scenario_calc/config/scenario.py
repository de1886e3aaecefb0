"""Scenarios and their time periods."""

from __future__ import annotations

import calendar
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from scenario_calc.config.settings import get_settings


class TimePeriodType(str, Enum):
    SINGLE_POINT = "SINGLE_POINT"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class Scenario(BaseModel):
    """A named what-if configuration.

    Consumers compare every non-baseline scenario against one selected
    baseline; uniqueness of ``is_baseline`` is not enforced here.
    """

    id: str = Field(min_length=1)
    organization_id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    is_baseline: bool = False
    time_period_type: TimePeriodType = TimePeriodType.SINGLE_POINT
    start_date: date | None = Field(default=None, description="Ignored for SINGLE_POINT")
    end_date: date | None = Field(default=None, description="Ignored for SINGLE_POINT")

    @model_validator(mode="after")
    def _check_bounds(self) -> "Scenario":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class Period(BaseModel):
    """One calculation period. ``period_start=None`` is the single-point sentinel."""

    label: str
    value: str
    period_start: date | None = None
    period_end: date | None = None


# ═══════════════════════════════════════════════════════════════════════════
# Period generation
# ═══════════════════════════════════════════════════════════════════════════

def _last_day(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def generate_periods(
    scenario: Scenario,
    default_start: date | None = None,
    default_end: date | None = None,
) -> list[Period]:
    """Expand a scenario's ``time_period_type`` and bounds into periods.

    Missing bounds fall back to ``default_start`` / ``default_end``, and
    those to the configured defaults (2025-01-01 … 2031-12-31).
    """
    if scenario.time_period_type is TimePeriodType.SINGLE_POINT:
        return [Period(label="Single Point", value="single")]

    settings = get_settings()
    start = scenario.start_date or default_start or settings.default_period_start
    end = scenario.end_date or default_end or settings.default_period_end

    periods: list[Period] = []

    if scenario.time_period_type is TimePeriodType.YEARLY:
        for year in range(start.year, end.year + 1):
            periods.append(Period(
                label=str(year),
                value=str(year),
                period_start=date(year, 1, 1),
                period_end=date(year, 12, 31),
            ))

    elif scenario.time_period_type is TimePeriodType.QUARTERLY:
        for year in range(start.year, end.year + 1):
            for quarter in range(1, 5):
                first_month = (quarter - 1) * 3 + 1
                periods.append(Period(
                    label=f"{year} Q{quarter}",
                    value=f"{year}-Q{quarter}",
                    period_start=date(year, first_month, 1),
                    period_end=_last_day(year, first_month + 2),
                ))

    else:  # MONTHLY
        year, month = start.year, start.month
        while (year, month) <= (end.year, end.month):
            first = date(year, month, 1)
            periods.append(Period(
                label=first.strftime("%b %Y"),
                value=f"{year}-{month:02d}",
                period_start=first,
                period_end=_last_day(year, month),
            ))
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)

    return periods
