"""Tests for hard and land cost estimation."""

from __future__ import annotations

from feasibility.optimizer.cost_estimator import (
    CostEstimatorInput,
    estimate_hard_cost,
    estimate_land_cost,
)


class TestHardCostTiers:
    """Test base tier classification."""

    def test_luxury_by_building_class(self):
        est = estimate_hard_cost(CostEstimatorInput(bldg_class="R4", zone_dist="R8"))
        assert est.tier == "Luxury Residential"
        assert est.estimated_hard_cost_per_sf == 500 + 150

    def test_luxury_by_r10(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="R10A"))
        assert est.tier == "Luxury Residential"

    def test_commercial_by_land_use(self):
        est = estimate_hard_cost(CostEstimatorInput(land_use="05", zone_dist="R7A"))
        assert est.tier == "Commercial / Office"
        assert est.estimated_hard_cost_per_sf == 300

    def test_commercial_by_building_class(self):
        est = estimate_hard_cost(CostEstimatorInput(bldg_class="O4"))
        assert est.tier == "Commercial / Office"

    def test_mixed_use(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="C6-2"))
        assert est.tier == "Mixed-Use / Multi-family"
        assert est.estimated_hard_cost_per_sf == 400

    def test_mixed_manufacturing(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="M1-2/R6A"))
        assert est.tier == "Mixed-Use / Multi-family"

    def test_multi_family(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="R7A"))
        assert est.tier == "Multi-family Residential"
        assert est.estimated_hard_cost_per_sf == 350

    def test_standard_residential(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="R4"))
        assert est.tier == "Standard Residential"
        assert est.estimated_hard_cost_per_sf == 325

    def test_general(self):
        est = estimate_hard_cost(CostEstimatorInput())
        assert est.tier == "General"
        assert est.estimated_hard_cost_per_sf == 350
        assert est.adjustments == []


class TestHardCostAdjustments:
    """Test additive adjustments and caps."""

    def test_height_tiers(self):
        assert estimate_hard_cost(CostEstimatorInput(zone_dist="R7A", num_floors=8)).estimated_hard_cost_per_sf == 425
        assert estimate_hard_cost(CostEstimatorInput(zone_dist="R7A", num_floors=16)).estimated_hard_cost_per_sf == 500
        assert estimate_hard_cost(CostEstimatorInput(zone_dist="R7A", num_floors=31)).estimated_hard_cost_per_sf == 600
        assert estimate_hard_cost(CostEstimatorInput(zone_dist="R7A", num_floors=7)).estimated_hard_cost_per_sf == 350

    def test_manhattan(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="R7A", borough="1"))
        assert est.estimated_hard_cost_per_sf == 425
        assert "Manhattan: +$75/SF" in est.adjustments

    def test_pre_war(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="R7A", year_built=1925))
        assert est.estimated_hard_cost_per_sf == 425

    def test_unknown_year_not_pre_war(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="R7A", year_built=0))
        assert est.estimated_hard_cost_per_sf == 350

    def test_small_lot(self):
        est = estimate_hard_cost(CostEstimatorInput(zone_dist="R7A", lot_area=2000))
        assert est.estimated_hard_cost_per_sf == 375
        assert est.adjustments == ["Small lot (2,000 SF): +$25/SF"]

    def test_stacked_adjustments(self):
        est = estimate_hard_cost(CostEstimatorInput(
            zone_dist="C6-4", num_floors=40, borough="1", year_built=1920, lot_area=2000,
        ))
        # 400 + 250 + 75 + 75 + 25 = 825, under the cap
        assert est.estimated_hard_cost_per_sf == 825

    def test_luxury_stacked_adjustments(self):
        est = estimate_hard_cost(CostEstimatorInput(
            bldg_class="RR", num_floors=40, borough="1", year_built=1920, lot_area=2000,
        ))
        # 500 + 250 + 75 + 150 + 75 + 25 = 1075
        assert est.estimated_hard_cost_per_sf == 1075

    def test_to_dict(self):
        data = estimate_hard_cost(CostEstimatorInput(zone_dist="R7A")).to_dict()
        assert data == {
            "estimated_hard_cost_per_sf": 350,
            "tier": "Multi-family Residential",
            "adjustments": [],
        }


class TestLandCost:
    """Test land cost sources."""

    def test_ppbsf_wins(self):
        est = estimate_land_cost(sale_amount=1_000_000, buildable_sf=10_000, ppbsf=212.4)
        assert est.land_cost_per_sf == 212
        assert est.source.startswith("ACRIS sale")

    def test_derived(self):
        est = estimate_land_cost(sale_amount=2_500_000, buildable_sf=10_000)
        assert est.land_cost_per_sf == 250
        assert est.source == "Derived: $2,500,000 / 10,000 buildable SF"

    def test_default(self):
        est = estimate_land_cost()
        assert est.land_cost_per_sf == 150
        assert est.source == "Default estimate (no sale data)"

    def test_zero_buildable_uses_default(self):
        assert estimate_land_cost(sale_amount=1_000_000, buildable_sf=0).land_cost_per_sf == 150
