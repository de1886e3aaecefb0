"""FastAPI server — RPC trigger for scenario calculations.

Run with:
    uvicorn scenario_calc.api.server:app --reload --port 8000

Or:
    scenario-calc-api

Endpoints:
    GET  /health                                  — liveness probe
    POST /calculate                               — calculate one (scenario, period)
    POST /formula/validate                        — parse-check a formula
    GET  /organizations/{organization_id}/graph   — variables with dependency levels
"""

from __future__ import annotations

from datetime import date

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from scenario_calc import __version__
from scenario_calc.config.settings import get_settings
from scenario_calc.engine.batch import calculate_period
from scenario_calc.engine.formula import validate_formula
from scenario_calc.engine.graph import compute_levels, validate_definitions
from scenario_calc.errors import GraphError, NotFoundError
from scenario_calc.logging_config import configure_logging, get_logger
from scenario_calc.models.results import CalculationResult
from scenario_calc.seed import seed_demo_model
from scenario_calc.storage.memory import InMemoryStore

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Request / response models
# ═══════════════════════════════════════════════════════════════════════════

class CalculateRequest(BaseModel):
    """Request body for /calculate."""
    organization_id: str = Field(min_length=1)
    scenario_id: str = Field(min_length=1)
    period_start: date | None = Field(
        default=None,
        description="First day of the period. Omit for single-point scenarios.",
    )
    period_end: date | None = None
    force_recalculate: bool = Field(
        default=False,
        description="Recalculate even when a cached result with identical inputs exists.",
    )


class FormulaRequest(BaseModel):
    """Request body for /formula/validate."""
    formula: str


class FormulaResponse(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)
    position: int | None = None


class GraphNode(BaseModel):
    name: str
    variable_type: str
    level: int
    dependencies: list[str] = Field(default_factory=list)


class GraphResponse(BaseModel):
    organization_id: str
    nodes: list[GraphNode] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    """Undeclared or unknown formula references."""


# ═══════════════════════════════════════════════════════════════════════════
# App factory
# ═══════════════════════════════════════════════════════════════════════════

def create_app(store: InMemoryStore) -> FastAPI:
    """Build the API around ``store``."""
    app = FastAPI(
        title="Scenario Calculation Engine API",
        version=__version__,
        description=(
            "Dependency-driven formula evaluation of OUTPUT variables per "
            "scenario and period, with deltas against the baseline scenario."
        ),
    )

    @app.get("/health")
    def health_check():
        """Health check for deployment platforms."""
        return {"status": "ok", "version": __version__}

    @app.post("/calculate", response_model=CalculationResult)
    def calculate(req: CalculateRequest):
        """Calculate every OUTPUT variable of one scenario for one period.

        Per-variable failures are reported in ``error_log``; the response is
        200 even when ``status`` is FAILED.
        """
        try:
            scenario = store.get_scenario(req.scenario_id)
            if scenario.organization_id != req.organization_id:
                raise NotFoundError(
                    f"Scenario '{req.scenario_id}' not found in organization '{req.organization_id}'"
                )
            return calculate_period(
                store,
                req.scenario_id,
                req.period_start,
                req.period_end,
                force_recalculate=req.force_recalculate,
            )
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=exc.message) from exc

    @app.post("/formula/validate", response_model=FormulaResponse)
    def formula_validate(req: FormulaRequest):
        """Parse a formula without evaluating it."""
        check = validate_formula(req.formula)
        return FormulaResponse(
            valid=check.valid,
            errors=list(check.errors),
            references=list(check.references),
            position=check.position,
        )

    @app.get("/organizations/{organization_id}/graph", response_model=GraphResponse)
    def organization_graph(organization_id: str):
        """Variables of an organization with their dependency level."""
        variables = store.variables(organization_id)
        if not variables:
            raise HTTPException(status_code=404, detail=f"Organization '{organization_id}' has no variables")
        try:
            levels = compute_levels(variables)
        except GraphError as exc:
            raise HTTPException(status_code=422, detail=exc.message) from exc
        warnings = validate_definitions(variables, [p.name for p in store.parameters(organization_id)])
        nodes = [
            GraphNode(
                name=v.name,
                variable_type=v.variable_type.value,
                level=levels[v.name],
                dependencies=list(v.dependencies),
            )
            for v in sorted(variables, key=lambda v: (levels[v.name], v.display_order, v.name))
        ]
        return GraphResponse(organization_id=organization_id, nodes=nodes, warnings=warnings)

    return app


app = create_app(seed_demo_model())


# ═══════════════════════════════════════════════════════════════════════════
# CLI entry point
# ═══════════════════════════════════════════════════════════════════════════

def main():
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting API on %s:%d", settings.api_host, settings.api_port)
    uvicorn.run(
        "scenario_calc.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    main()
