"""
Build an OptimizerResult from an existing unit mix instead of solving.

Used to score a building as drawn (units extracted from plans or a
schedule of units) against the same constraints and ROI proxy as a solved
allocation.  Raw unit records are grouped by (unit type, AMI band); each
group's average size is its total area over its unit count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from feasibility.optimizer.allocation import RentResolver
from feasibility.optimizer.defaults import SolverConfig
from feasibility.optimizer.summary import summarize
from feasibility.optimizer.types import (
    CostAssumptions,
    OptimizerResult,
    ProgramConstraint,
    RentAssumption,
    UnitAllocation,
)

BEDROOM_TYPE_MAP: dict[str, str] = {
    "STUDIO": "Studio",
    "1BR": "1BR",
    "2BR": "2BR",
    "3BR": "3BR",
    "4BR_PLUS": "3BR",
    "UNKNOWN": "1BR",
}

ALLOCATION_AMI_MAP: dict[str, int] = {
    "MARKET": 0,
    "AFFORDABLE": 60,
    "MIH_RESTRICTED": 80,
    "UNKNOWN": 0,
}

DEFAULT_SF: dict[str, float] = {
    "Studio": 475,
    "1BR": 650,
    "2BR": 900,
    "3BR": 1200,
}

_FALLBACK_TYPE = "1BR"
_FALLBACK_SF = 650


@dataclass
class UnitRecord:
    """One unit as extracted from a plan set."""
    bedroom_type: str = "UNKNOWN"
    allocation: str = "UNKNOWN"
    area_sf: Optional[float] = None
    ami_band: Optional[int] = None


def _unit_type(bedroom_type: str) -> str:
    return BEDROOM_TYPE_MAP.get((bedroom_type or "").upper(), _FALLBACK_TYPE)


def build_result_from_allocations(
    allocations: list[UnitAllocation],
    net_residential_sf: float,
    rent_assumptions: list[RentAssumption],
    cost_assumptions: CostAssumptions,
    program_constraints: list[ProgramConstraint],
    config: Optional[SolverConfig] = None,
) -> OptimizerResult:
    """Score given allocations; blocks without a rent are priced from the assumptions."""
    config = config or SolverConfig()
    rent = RentResolver(rent_assumptions, config)
    priced = []
    for a in allocations:
        if a.count <= 0:
            continue
        if a.monthly_rent <= 0:
            a = UnitAllocation(a.unit_type, a.ami_band, a.count, a.avg_sf,
                               rent(a.unit_type, a.ami_band), list(a.program_tags))
        priced.append(a)
    return summarize(priced, net_residential_sf, cost_assumptions,
                     program_constraints, config)


def build_result_from_unit_records(
    records: list[UnitRecord],
    net_residential_sf: float,
    rent_assumptions: list[RentAssumption],
    cost_assumptions: CostAssumptions,
    program_constraints: list[ProgramConstraint],
    config: Optional[SolverConfig] = None,
) -> OptimizerResult:
    """Group unit records into allocations and score them.

    An explicit ``ami_band`` on a record wins over its allocation label.
    Records without an area use the default size of their unit type.
    """
    config = config or SolverConfig()
    rent = RentResolver(rent_assumptions, config)

    # (unit_type, ami_band) -> [count, total_sf]
    groups: dict[tuple[str, int], list[float]] = {}
    for rec in records:
        unit_type = _unit_type(rec.bedroom_type)
        if rec.ami_band is not None:
            ami_band = rec.ami_band
        else:
            ami_band = ALLOCATION_AMI_MAP.get((rec.allocation or "").upper(), 0)
        sf = rec.area_sf if rec.area_sf is not None else DEFAULT_SF.get(unit_type, _FALLBACK_SF)

        group = groups.setdefault((unit_type, ami_band), [0, 0.0])
        group[0] += 1
        group[1] += sf

    allocations = [
        UnitAllocation(
            unit_type=unit_type,
            ami_band=ami_band,
            count=int(count),
            avg_sf=total_sf / count,
            monthly_rent=rent(unit_type, ami_band),
        )
        for (unit_type, ami_band), (count, total_sf) in groups.items()
    ]
    return build_result_from_allocations(
        allocations, net_residential_sf, rent_assumptions,
        cost_assumptions, program_constraints, config,
    )


def build_result_from_unit_mix(
    unit_records: list[UnitRecord],
    totals_by_bedroom_type: dict[str, int],
    net_residential_sf: float,
    rent_assumptions: list[RentAssumption],
    cost_assumptions: CostAssumptions,
    program_constraints: list[ProgramConstraint],
    config: Optional[SolverConfig] = None,
) -> OptimizerResult:
    """Score an extracted unit mix.

    Uses the unit records when there are any.  Otherwise falls back to the
    per-bedroom totals, treated as market-rate units of default size.
    """
    if unit_records:
        return build_result_from_unit_records(
            unit_records, net_residential_sf, rent_assumptions,
            cost_assumptions, program_constraints, config,
        )

    config = config or SolverConfig()
    rent = RentResolver(rent_assumptions, config)
    allocations = []
    for bedroom_type, count in totals_by_bedroom_type.items():
        if count <= 0:
            continue
        unit_type = _unit_type(bedroom_type)
        allocations.append(UnitAllocation(
            unit_type=unit_type,
            ami_band=0,
            count=count,
            avg_sf=DEFAULT_SF.get(unit_type, _FALLBACK_SF),
            monthly_rent=rent(unit_type, 0),
        ))
    return build_result_from_allocations(
        allocations, net_residential_sf, rent_assumptions,
        cost_assumptions, program_constraints, config,
    )
