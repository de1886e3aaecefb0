"""Tests for the RPC trigger (api/server.py).

Covers:
  - Health check
  - /calculate: values, baseline deltas, caching, 404s, body validation
  - /formula/validate
  - /organizations/{id}/graph
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from scenario_calc.api.server import app, create_app
from scenario_calc.seed import (
    BASELINE_SCENARIO_ID,
    DEMO_ORGANIZATION_ID,
    OPTIMALISATIE_SCENARIO_ID,
    seed_demo_model,
)


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(seed_demo_model()))


def _body(scenario_id: str = OPTIMALISATIE_SCENARIO_ID, **extra) -> dict:
    body = {
        "organization_id": DEMO_ORGANIZATION_ID,
        "scenario_id": scenario_id,
        "period_start": "2026-01-01",
        "period_end": "2026-12-31",
    }
    body.update(extra)
    return body


# ═══════════════════════════════════════════════════════════════════════════
# Health
# ═══════════════════════════════════════════════════════════════════════════

class TestHealth:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"

    def test_module_app_is_seeded(self):
        r = TestClient(app).get(f"/organizations/{DEMO_ORGANIZATION_ID}/graph")
        assert r.status_code == 200


# ═══════════════════════════════════════════════════════════════════════════
# /calculate
# ═══════════════════════════════════════════════════════════════════════════

class TestCalculate:

    def test_calculate_with_baseline_delta(self, client):
        r = client.post("/calculate", json=_body())
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "COMPLETED"
        assert data["has_errors"] is False
        assert data["baseline_scenario_id"] == BASELINE_SCENARIO_ID
        assert data["period_start"] == "2026-01-01"
        pallets = data["results"]["OUTPUT_VOORRAAD_PALLETS"]
        assert pallets["value"] == pytest.approx(9_450)
        assert pallets["delta"] == pytest.approx(-550)
        assert pallets["percent_change"] == pytest.approx(-5.5)

    def test_baseline_scenario(self, client):
        data = client.post("/calculate", json=_body(BASELINE_SCENARIO_ID)).json()
        assert data["baseline_scenario_id"] is None
        assert data["results"]["OUTPUT_VOORRAAD_PALLETS"]["delta"] is None

    def test_repeat_is_cached_until_forced(self, client):
        assert client.post("/calculate", json=_body()).json()["version"] == 1
        assert client.post("/calculate", json=_body()).json()["version"] == 1
        forced = client.post("/calculate", json=_body(force_recalculate=True)).json()
        assert forced["version"] == 2

    def test_period_without_inputs_is_failed_not_error(self, client):
        r = client.post("/calculate", json=_body(period_start="2040-01-01", period_end="2040-12-31"))
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "FAILED"
        assert {e["error_type"] for e in data["error_log"]} == {"MISSING_INPUT"}

    def test_unknown_scenario_404(self, client):
        r = client.post("/calculate", json=_body("does-not-exist"))
        assert r.status_code == 404
        assert "does-not-exist" in r.json()["detail"]

    def test_wrong_organization_404(self, client):
        r = client.post("/calculate", json=_body(organization_id="other-org"))
        assert r.status_code == 404

    def test_missing_scenario_id_422(self, client):
        r = client.post("/calculate", json={"organization_id": DEMO_ORGANIZATION_ID})
        assert r.status_code == 422

    def test_bad_date_422(self, client):
        r = client.post("/calculate", json=_body(period_start="not-a-date"))
        assert r.status_code == 422


# ═══════════════════════════════════════════════════════════════════════════
# /formula/validate
# ═══════════════════════════════════════════════════════════════════════════

class TestFormulaValidate:

    def test_valid(self, client):
        r = client.post("/formula/validate", json={"formula": "INPUT_A * (PARAM_B / 100)"})
        assert r.status_code == 200
        data = r.json()
        assert data["valid"] is True
        assert data["references"] == ["INPUT_A", "PARAM_B"]

    def test_invalid(self, client):
        data = client.post("/formula/validate", json={"formula": "1 + * 2"}).json()
        assert data["valid"] is False
        assert data["position"] == 4
        assert "Unexpected token" in data["errors"][0]


# ═══════════════════════════════════════════════════════════════════════════
# /organizations/{id}/graph
# ═══════════════════════════════════════════════════════════════════════════

class TestGraph:

    def test_levels(self, client):
        r = client.get(f"/organizations/{DEMO_ORGANIZATION_ID}/graph")
        assert r.status_code == 200
        data = r.json()
        levels = {n["name"]: n["level"] for n in data["nodes"]}
        assert levels["INPUT_OMZET"] == 0
        assert levels["OUTPUT_VOORRAAD_PALLETS"] == 2
        assert levels["OUTPUT_VOORRAAD_PALLETS_GECORRIGEERD"] == 3
        assert data["warnings"] == []
        assert [n["level"] for n in data["nodes"]] == sorted(n["level"] for n in data["nodes"])

    def test_unknown_organization_404(self, client):
        assert client.get("/organizations/nobody/graph").status_code == 404
