"""Tests for the optimizer HTTP endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from feasibility.main import app


@pytest.fixture
def client():
    return TestClient(app)


class TestServiceEndpoints:
    """Test root and health endpoints."""

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["bundled_rent_schedule"] == 2025
        assert data["program_presets"] == 8

    def test_root_lists_endpoints(self, client):
        data = client.get("/").json()
        assert data["endpoints"]["solve"] == "POST /api/v1/optimizer/solve"


class TestOptimizerEndpoints:
    """Test solve, sensitivity, merge and preset listing."""

    def test_programs(self, client):
        resp = client.get("/api/v1/optimizer/programs")
        assert resp.status_code == 200
        keys = [p["key"] for p in resp.json()]
        assert len(keys) == 8
        assert "mih_option_1" in keys

    def test_solve_defaults(self, client):
        resp = client.post("/api/v1/optimizer/solve", json={"net_residential_sf": 50000})
        assert resp.status_code == 200
        data = resp.json()
        assert data["feasible"]
        assert data["affordable_unit_count"] == 0
        assert data["total_units"] == data["market_unit_count"] > 0
        assert data["total_sf"] <= 50000
        assert data["sensitivity"] == []

    def test_solve_with_preset(self, client):
        resp = client.post("/api/v1/optimizer/solve", json={
            "net_residential_sf": 50000,
            "program_keys": ["mih_option_1"],
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["affordable_unit_count"] > 0
        assert data["total_units"] == data["affordable_unit_count"] + data["market_unit_count"]
        assert any(s["kind"] == "affordable_pct" for s in data["constraint_slack"])

    def test_solve_with_explicit_constraint(self, client):
        resp = client.post("/api/v1/optimizer/solve", json={
            "net_residential_sf": 20000,
            "total_units": 20,
            "program_constraints": [{
                "program": "Custom",
                "min_affordable_pct": 0.25,
                "ami_bands": [60],
                "min_pct_by_band": {"60": 1.0},
            }],
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_units"] == 20
        assert data["affordable_unit_count"] == 5

    def test_unknown_preset(self, client):
        resp = client.post("/api/v1/optimizer/solve", json={
            "net_residential_sf": 50000,
            "program_keys": ["bogus"],
        })
        assert resp.status_code == 404
        assert "bogus" in resp.json()["detail"]

    def test_invalid_payload(self, client):
        resp = client.post("/api/v1/optimizer/solve", json={"total_units": 10})
        assert resp.status_code == 422

    def test_sensitivity(self, client):
        resp = client.post("/api/v1/optimizer/sensitivity", json={
            "net_residential_sf": 50000,
            "program_keys": ["mih_option_1"],
        })
        assert resp.status_code == 200
        rows = resp.json()["sensitivity"]
        assert len(rows) == 8
        assert {r["parameter"] for r in rows} == {"Rent", "Cost"}

    def test_merge(self, client):
        resp = client.post("/api/v1/optimizer/merge", json={
            "est_total_units": 100,
            "program_keys": ["mih_option_1"],
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["merged_affordable_target"] == 25
        assert [b["ami_band"] for b in data["band_requirements"]] == [40, 60, 80]
        assert sum(b["min_units"] for b in data["band_requirements"]) == 25

    def test_merge_drops_non_stacking_preset(self, client):
        data = client.post("/api/v1/optimizer/merge", json={
            "est_total_units": 100,
            "program_keys": ["485x_a", "467m"],
        }).json()
        assert data["program_names"] == ["485-x Option A"]


class TestCostEstimation:
    """Test cost assumptions filled in from lot and sale data."""

    def test_estimated_from_lot_and_sale(self, client):
        data = client.post("/api/v1/optimizer/solve", json={
            "net_residential_sf": 50000,
            "lot": {"zone_dist": "R7A", "borough": "1"},
            "land_sale": {"sale_amount": 2_500_000, "buildable_sf": 10_000},
        }).json()
        costs = data["cost_assumptions"]
        assert costs["hard_cost_per_sf"] == 425
        assert costs["land_cost_per_sf"] == 250
        assert costs["soft_cost_pct"] == 0.30
        assert costs["hard_cost_source"] == "Estimated: Multi-family Residential"
        assert costs["land_cost_source"] == "Derived: $2,500,000 / 10,000 buildable SF"

    def test_estimated_without_lot_data(self, client):
        costs = client.post("/api/v1/optimizer/solve", json={
            "net_residential_sf": 50000,
        }).json()["cost_assumptions"]
        assert costs["hard_cost_per_sf"] == 350
        assert costs["land_cost_per_sf"] == 150
        assert costs["hard_cost_source"] == "Estimated: General"
        assert costs["land_cost_source"] == "Default estimate (no sale data)"

    def test_explicit_costs_win(self, client):
        costs = client.post("/api/v1/optimizer/solve", json={
            "net_residential_sf": 50000,
            "cost_assumptions": {"hard_cost_per_sf": 400},
            "lot": {"zone_dist": "R10"},
        }).json()["cost_assumptions"]
        assert costs["hard_cost_per_sf"] == 400
        assert costs["land_cost_per_sf"] == 150
        assert costs["hard_cost_source"] is None

    def test_higher_estimate_raises_development_cost(self, client):
        base = client.post("/api/v1/optimizer/solve", json={
            "net_residential_sf": 50000,
        }).json()
        tall = client.post("/api/v1/optimizer/solve", json={
            "net_residential_sf": 50000,
            "lot": {"zone_dist": "R7A", "num_floors": 20},
        }).json()
        assert tall["cost_assumptions"]["hard_cost_per_sf"] == 500
        assert tall["total_development_cost"] > base["total_development_cost"]


class TestScoreEndpoint:
    """Test scoring an existing unit mix."""

    def test_unit_records(self, client):
        resp = client.post("/api/v1/optimizer/score", json={
            "net_residential_sf": 10000,
            "unit_records": [
                {"bedroom_type": "STUDIO", "allocation": "MARKET", "area_sf": 500},
                {"bedroom_type": "STUDIO", "allocation": "MARKET", "area_sf": 520},
                {"bedroom_type": "2BR", "allocation": "AFFORDABLE"},
            ],
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_units"] == 3
        assert data["affordable_unit_count"] == 1
        assert data["total_sf"] == pytest.approx(1920)
        assert data["sensitivity"] == []

    def test_bedroom_totals(self, client):
        data = client.post("/api/v1/optimizer/score", json={
            "net_residential_sf": 10000,
            "totals_by_bedroom_type": {"STUDIO": 2, "2BR": 1},
        }).json()
        assert data["market_unit_count"] == 3
        assert data["total_monthly_rent"] == 3200 * 2 + 5500

    def test_scored_against_presets(self, client):
        data = client.post("/api/v1/optimizer/score", json={
            "net_residential_sf": 10000,
            "totals_by_bedroom_type": {"1BR": 8},
            "program_keys": ["mih_option_1"],
        }).json()
        assert not data["feasible"]
        assert any(s["kind"] == "affordable_pct" and s["slack"] < 0
                   for s in data["constraint_slack"])

    def test_unknown_preset(self, client):
        resp = client.post("/api/v1/optimizer/score", json={
            "net_residential_sf": 10000,
            "program_keys": ["bogus"],
        })
        assert resp.status_code == 404
