"""
Unit-mix solver.

Pipeline:
  1. Initial allocation from merged program targets   (allocation.py)
  2. Constraint repair, one unit per move, <= 30 moves (search.py)
  3. Revenue hill-climb over market units, <= 200 passes
  4. Summary: counts, revenue, cost, ROI proxy, slacks (summary.py)

The result is feasible and locally improved, not globally optimal.
Degenerate inputs yield ``OptimizerResult.empty()`` rather than an error.
"""

from __future__ import annotations

import logging
from typing import Optional

from feasibility.optimizer.allocation import build_initial_allocation
from feasibility.optimizer.defaults import SolverConfig
from feasibility.optimizer.search import hill_climb, repair_allocation
from feasibility.optimizer.summary import summarize
from feasibility.optimizer.types import OptimizerInputs, OptimizerResult

logger = logging.getLogger(__name__)


def solve(
    inputs: OptimizerInputs,
    config: Optional[SolverConfig] = None,
) -> OptimizerResult:
    """Allocate units across types and AMI bands for one building.

    Args:
        inputs: Net SF, unit catalog, rents, costs, programs, optional
            fixed unit total
        config: Bedroom mixes, rent schedule and search limits; defaults to
            ``SolverConfig.from_settings()``

    Returns OptimizerResult with ``sensitivity`` left empty.
    """
    if config is None:
        config = SolverConfig.from_settings()

    if inputs.net_residential_sf <= 0:
        logger.info("Net residential SF is %s; returning empty result",
                    inputs.net_residential_sf)
        return OptimizerResult.empty()
    if not any(ut.avg_sf > 0 for ut in inputs.allowed_unit_types):
        logger.info("No unit type with a positive size; returning empty result")
        return OptimizerResult.empty()

    constraints = inputs.program_constraints or []
    plan = build_initial_allocation(inputs, config)

    repairs = repair_allocation(plan, constraints, config)
    swaps = hill_climb(plan, constraints, config)
    logger.debug("Search finished: %d repair moves, %d hill-climb swaps", repairs, swaps)

    result = summarize(
        plan.book.allocations(),
        inputs.net_residential_sf,
        inputs.cost_assumptions,
        constraints,
        config,
    )
    logger.info(
        "Solved %d units (%d affordable, %d market), feasible=%s, ROI %.4f",
        result.total_units, result.affordable_unit_count,
        result.market_unit_count, result.feasible, result.roi_proxy,
    )
    return result
