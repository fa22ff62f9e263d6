"""Tests for scoring an existing unit mix."""

from __future__ import annotations

import pytest

from feasibility.optimizer.defaults import DEFAULT_COSTS, DEFAULT_RENTS, SolverConfig
from feasibility.optimizer.scenario_builder import (
    UnitRecord,
    build_result_from_allocations,
    build_result_from_unit_mix,
    build_result_from_unit_records,
)
from feasibility.optimizer.summary import development_cost
from feasibility.optimizer.types import ProgramConstraint, UnitAllocation


def by_key(result):
    return {(a.unit_type, a.ami_band): a for a in result.allocations}


RECORDS = [
    UnitRecord(bedroom_type="STUDIO", allocation="MARKET", area_sf=500),
    UnitRecord(bedroom_type="Studio", allocation="market", area_sf=520),
    UnitRecord(bedroom_type="2br", allocation="AFFORDABLE"),
    UnitRecord(bedroom_type="4BR_PLUS", allocation="MARKET", ami_band=80),
]


class TestUnitRecords:
    """Test grouping raw unit records."""

    def test_grouping(self):
        result = build_result_from_unit_records(
            RECORDS, 10000, DEFAULT_RENTS, DEFAULT_COSTS, [], SolverConfig(),
        )
        groups = by_key(result)
        assert set(groups) == {("Studio", 0), ("2BR", 60), ("3BR", 80)}
        assert groups[("Studio", 0)].count == 2
        assert groups[("Studio", 0)].avg_sf == pytest.approx(510)

    def test_default_area_and_explicit_band(self):
        groups = by_key(build_result_from_unit_records(
            RECORDS, 10000, DEFAULT_RENTS, DEFAULT_COSTS, [], SolverConfig(),
        ))
        assert groups[("2BR", 60)].avg_sf == 900
        assert groups[("3BR", 80)].avg_sf == 1200

    def test_totals(self):
        result = build_result_from_unit_records(
            RECORDS, 10000, DEFAULT_RENTS, DEFAULT_COSTS, [], SolverConfig(),
        )
        assert result.total_units == 4
        assert result.affordable_unit_count == 2
        assert result.market_unit_count == 2
        assert result.total_sf == pytest.approx(3120)
        assert result.total_monthly_rent == 3200 * 2 + 2187 + 3370
        assert result.blended_ami == 70
        assert result.total_development_cost == pytest.approx(development_cost(3120, DEFAULT_COSTS))
        assert result.feasible

    def test_unknown_bedroom_type_is_1br(self):
        result = build_result_from_unit_records(
            [UnitRecord()], 10000, DEFAULT_RENTS, DEFAULT_COSTS, [], SolverConfig(),
        )
        assert by_key(result) == {("1BR", 0): result.allocations[0]}
        assert result.allocations[0].avg_sf == 650

    def test_scored_against_programs(self):
        mih = ProgramConstraint(
            program="MIH Option 1", min_affordable_pct=0.25,
            ami_bands=[40, 60, 80], min_pct_by_band={40: 0.10, 60: 0.50, 80: 0.40},
        )
        records = [UnitRecord("1BR", "MARKET") for _ in range(8)]
        result = build_result_from_unit_records(
            records, 10000, DEFAULT_RENTS, DEFAULT_COSTS, [mih], SolverConfig(),
        )
        assert result.affordable_unit_count == 0
        assert not result.feasible


class TestUnitMix:
    """Test the records-or-totals entry point."""

    def test_prefers_records(self):
        result = build_result_from_unit_mix(
            RECORDS, {"1BR": 50}, 10000, DEFAULT_RENTS, DEFAULT_COSTS, [], SolverConfig(),
        )
        assert result.total_units == 4

    def test_falls_back_to_totals(self):
        result = build_result_from_unit_mix(
            [], {"STUDIO": 2, "2BR": 1, "4BR_PLUS": 0},
            10000, DEFAULT_RENTS, DEFAULT_COSTS, [], SolverConfig(),
        )
        groups = by_key(result)
        assert set(groups) == {("Studio", 0), ("2BR", 0)}
        assert result.affordable_unit_count == 0
        assert result.total_sf == pytest.approx(475 * 2 + 900)
        assert result.total_monthly_rent == 3200 * 2 + 5500


class TestAllocations:
    """Test scoring pre-built allocations."""

    def test_missing_rent_is_resolved(self):
        result = build_result_from_allocations(
            [UnitAllocation("1BR", 60, 3, 650, 0)],
            10000, DEFAULT_RENTS, DEFAULT_COSTS, [],
        )
        assert result.allocations[0].monthly_rent == 1822

    def test_given_rent_is_kept(self):
        result = build_result_from_allocations(
            [UnitAllocation("1BR", 0, 3, 650, 4500)],
            10000, DEFAULT_RENTS, DEFAULT_COSTS, [],
        )
        assert result.total_monthly_rent == 4500 * 3

    def test_zero_count_dropped(self):
        result = build_result_from_allocations(
            [UnitAllocation("1BR", 0, 0, 650, 4100), UnitAllocation("2BR", 0, 2, 900, 5500)],
            10000, DEFAULT_RENTS, DEFAULT_COSTS, [],
        )
        assert [a.unit_type for a in result.allocations] == ["2BR"]
