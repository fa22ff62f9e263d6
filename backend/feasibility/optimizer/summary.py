"""
Result summary: unit counts, rent roll, development cost and ROI proxy.

The ROI proxy is a simple yield on cost:

    total cost = SF * hard $/SF * (1 + soft %) + SF * land $/SF
    ROI proxy  = annual revenue / total cost
"""

from __future__ import annotations

from feasibility.optimizer.constraints import evaluate_constraints, is_feasible
from feasibility.optimizer.defaults import SolverConfig
from feasibility.optimizer.types import (
    CostAssumptions,
    OptimizerResult,
    ProgramConstraint,
    UnitAllocation,
)


def development_cost(total_sf: float, costs: CostAssumptions) -> float:
    hard = total_sf * costs.hard_cost_per_sf
    return hard + hard * costs.soft_cost_pct + total_sf * costs.land_cost_per_sf


def blended_ami(allocations: list[UnitAllocation]) -> int:
    """Count-weighted mean AMI band of affordable units, rounded; 0 if none."""
    affordable = [a for a in allocations if a.is_affordable]
    count = sum(a.count for a in affordable)
    if count == 0:
        return 0
    return round(sum(a.ami_band * a.count for a in affordable) / count)


def summarize(
    allocations: list[UnitAllocation],
    net_residential_sf: float,
    costs: CostAssumptions,
    program_constraints: list[ProgramConstraint],
    config: SolverConfig,
) -> OptimizerResult:
    """Build the OptimizerResult for a final allocation.

    Zero-count blocks are dropped.  Slacks are evaluated against the net
    residential SF, not the SF actually used.
    """
    cleaned = [a for a in allocations if a.count > 0]
    total_sf = sum(a.total_sf for a in cleaned)
    affordable = sum(a.count for a in cleaned if a.is_affordable)
    market = sum(a.count for a in cleaned if not a.is_affordable)
    monthly = sum(a.count * a.monthly_rent for a in cleaned)
    annual = monthly * 12
    cost = development_cost(total_sf, costs)

    slacks = evaluate_constraints(
        cleaned, net_residential_sf, program_constraints,
        config.proportionality_tolerance,
    )

    return OptimizerResult(
        allocations=cleaned,
        constraint_slack=slacks,
        total_units=affordable + market,
        affordable_unit_count=affordable,
        market_unit_count=market,
        total_sf=total_sf,
        total_monthly_rent=monthly,
        blended_ami=blended_ami(cleaned),
        annual_revenue=annual,
        total_development_cost=cost,
        roi_proxy=annual / cost if cost > 0 else 0.0,
        feasible=is_feasible(slacks, config.feasibility_tolerance),
    )
