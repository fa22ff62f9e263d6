"""
Local search over an allocation: constraint repair, then revenue
hill-climbing.

Neither loop is a global optimizer.  Both are bounded by fixed iteration
ceilings, which is also their termination guarantee when constraints
interact cyclically.

Repair reclassifies one unit per iteration to shrink the worst violation:

  2BR+ share       Studio/1BR affordable unit -> 2BR, same band
  Proportionality  most over-represented affordable type -> most
                   under-represented type, same band
  Weighted AMI     highest-band affordable unit -> lowest band of the
                   violating program
  Band / total %   market unit -> affordable unit of a mid-catalog type
                   (only when no fixed unit total was requested)

Total SF is a hard cap enforced during placement and by every move, so it
is never a repair target.  Minimum unit sizes are enforced through the
catalog and are not repaired either.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from feasibility.optimizer.allocation import AllocationBook, AllocationKey, AllocationPlan
from feasibility.optimizer.constraints import (
    bedroom_distribution,
    evaluate_constraints,
    is_feasible,
    is_two_br_plus,
    worst_violation,
)
from feasibility.optimizer.defaults import SolverConfig
from feasibility.optimizer.types import ConstraintSlack, ProgramConstraint, SlackKind

logger = logging.getLogger(__name__)

# With an exact unit count, band/percentage shortfalls come from rounding
# and are accepted as-is.
FIXED_TOTAL_REPAIRABLE = {
    SlackKind.TWO_BR_PLUS,
    SlackKind.PROPORTIONALITY,
    SlackKind.WEIGHTED_AMI,
}

NOT_REPAIRABLE = {
    SlackKind.TOTAL_SF,
    SlackKind.UNIT_MIN_SIZE,
}


# ──────────────────────────────────────────────────────────────────
# MOVES
# ──────────────────────────────────────────────────────────────────

def _reclassify(
    plan: AllocationPlan,
    src: AllocationKey,
    unit_type: str,
    ami_band: int,
) -> bool:
    """Turn one unit of block ``src`` into a (unit_type, ami_band) unit.

    Refuses the move when it would push used SF past the net SF cap.
    """
    cfg = plan.unit_type(unit_type)
    if cfg is None:
        return False
    book = plan.book
    if book.used_sf - book[src].avg_sf + cfg.avg_sf > plan.net_sf:
        return False
    book.remove_one(src)
    book.add(unit_type, ami_band, 1, cfg.avg_sf,
             plan.rent(unit_type, ami_band), plan.program_names)
    return True


def _repair_two_br_plus(
    plan: AllocationPlan,
    violation: ConstraintSlack,
    constraints: list[ProgramConstraint],
) -> bool:
    target = plan.unit_type("2BR") or next(
        (ut for ut in plan.unit_types if is_two_br_plus(ut.type)), None,
    )
    if target is None:
        return False
    for a in plan.book.affordable():
        if is_two_br_plus(a.unit_type):
            continue
        if _reclassify(plan, a.key, target.type, a.ami_band):
            return True
    return False


def _repair_proportionality(
    plan: AllocationPlan,
    violation: ConstraintSlack,
    constraints: list[ProgramConstraint],
) -> bool:
    affordable = plan.book.affordable()
    market = plan.book.market()
    if not affordable or not market:
        return False

    market_dist = bedroom_distribution(market)
    affordable_dist = bedroom_distribution(affordable)
    over_type, under_type = None, None
    max_over, max_under = -1.0, -1.0
    for unit_type in {**market_dist, **affordable_dist}:
        m_pct = market_dist.get(unit_type, 0.0)
        a_pct = affordable_dist.get(unit_type, 0.0)
        if a_pct - m_pct > max_over:
            max_over, over_type = a_pct - m_pct, unit_type
        if m_pct - a_pct > max_under:
            max_under, under_type = m_pct - a_pct, unit_type

    if over_type is None or under_type is None or over_type == under_type:
        return False
    for a in affordable:
        if a.unit_type == over_type and _reclassify(plan, a.key, under_type, a.ami_band):
            return True
    return False


def _repair_weighted_ami(
    plan: AllocationPlan,
    violation: ConstraintSlack,
    constraints: list[ProgramConstraint],
) -> bool:
    program = next(
        (c for c in constraints
         if c.program == violation.program and c.weighted_avg_ami_max),
        None,
    )
    low_band = min(program.ami_bands) if program and program.ami_bands else 40

    affordable = plan.book.affordable()
    if not affordable:
        return False
    high = max(affordable, key=lambda a: a.ami_band)
    if high.ami_band <= low_band:
        return False
    return _reclassify(plan, high.key, high.unit_type, low_band)


def _repair_band(
    plan: AllocationPlan,
    violation: ConstraintSlack,
    constraints: list[ProgramConstraint],
) -> bool:
    if plan.fixed_total:
        return False
    market = plan.book.market()
    if not market:
        return False

    if violation.ami_band is not None:
        band = violation.ami_band
    elif constraints and constraints[0].ami_bands:
        band = constraints[0].ami_bands[0]
    else:
        band = 60
    repair_type = plan.unit_types[len(plan.unit_types) // 2]
    return _reclassify(plan, market[0].key, repair_type.type, band)


RepairMove = Callable[[AllocationPlan, ConstraintSlack, list[ProgramConstraint]], bool]

_REPAIRS: dict[SlackKind, RepairMove] = {
    SlackKind.TWO_BR_PLUS: _repair_two_br_plus,
    SlackKind.PROPORTIONALITY: _repair_proportionality,
    SlackKind.WEIGHTED_AMI: _repair_weighted_ami,
    SlackKind.AMI_BAND: _repair_band,
    SlackKind.AFFORDABLE_PCT: _repair_band,
}


# ──────────────────────────────────────────────────────────────────
# REPAIR ENGINE
# ──────────────────────────────────────────────────────────────────

def _repair_target(
    plan: AllocationPlan,
    constraints: list[ProgramConstraint],
    config: SolverConfig,
) -> Optional[ConstraintSlack]:
    slacks = evaluate_constraints(
        plan.book.allocations(), plan.net_sf, constraints,
        config.proportionality_tolerance,
    )
    candidates = [
        s for s in slacks
        if s.kind not in NOT_REPAIRABLE
        and (not plan.fixed_total or s.kind in FIXED_TOTAL_REPAIRABLE)
    ]
    return worst_violation(candidates, config.feasibility_tolerance)


def repair_allocation(
    plan: AllocationPlan,
    constraints: list[ProgramConstraint],
    config: SolverConfig,
) -> int:
    """Apply single-unit repair moves until feasible or out of budget.

    Returns the number of moves applied.  Stops early, leaving the
    allocation infeasible, when the worst violation has no eligible move.
    """
    moves = 0
    for _ in range(config.repair_max_iterations):
        violation = _repair_target(plan, constraints, config)
        if violation is None:
            return moves
        move = _REPAIRS.get(violation.kind)
        if move is None or not move(plan, violation, constraints):
            logger.debug("No repair move for %r (slack %.4f)",
                         violation.constraint, violation.slack)
            return moves
        moves += 1
        logger.debug("Repair %d: %s (slack %.4f)", moves, violation.constraint, violation.slack)

    if _repair_target(plan, constraints, config) is not None:
        logger.warning("Repair budget of %d moves exhausted with violations remaining",
                       config.repair_max_iterations)
    return moves


# ──────────────────────────────────────────────────────────────────
# HILL CLIMBER
# ──────────────────────────────────────────────────────────────────

def _trial_acceptable(
    trial: AllocationBook,
    plan: AllocationPlan,
    constraints: list[ProgramConstraint],
    check_feasibility: bool,
    config: SolverConfig,
) -> bool:
    if trial.used_sf > plan.net_sf:
        return False
    if check_feasibility:
        slacks = evaluate_constraints(
            trial.allocations(), plan.net_sf, constraints,
            config.proportionality_tolerance,
        )
        if not is_feasible(slacks, config.feasibility_tolerance):
            return False
    return True


def hill_climb(
    plan: AllocationPlan,
    constraints: list[ProgramConstraint],
    config: SolverConfig,
) -> int:
    """Swap single market-rate units between types while revenue rises.

    A swap is kept only if it stays within net SF, keeps the allocation
    feasible when proportional bedrooms are required, and strictly raises
    annual revenue.  A block is never emptied by a swap.  Returns the
    number of accepted swaps.
    """
    check_feasibility = bool(constraints) and any(
        c.requires_proportional_bedrooms for c in constraints
    )
    accepted = 0
    for _ in range(config.hill_climb_max_iterations):
        improved = False
        market_keys = [key for key in plan.book.keys() if key[1] == 0]
        for src in market_keys:
            for dst in market_keys:
                if src == dst or plan.book[src].count < 2:
                    continue
                trial = plan.book.copy()
                trial.move_one(src, dst)
                if not _trial_acceptable(trial, plan, constraints, check_feasibility, config):
                    continue
                if trial.annual_revenue > plan.book.annual_revenue:
                    plan.book = trial
                    improved = True
                    accepted += 1
                    logger.debug("Hill-climb swap %s -> %s", src[0], dst[0])
        if not improved:
            break
    return accepted
