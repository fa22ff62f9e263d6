"""
Constraint evaluation for a unit allocation.

Produces one ConstraintSlack per active rule:

  - Total SF <= net residential SF                         (always)
  - Merged minimum affordable share                        (any program)
  - Per-band share of affordable units                     (each merged band > 0)
  - Affordable/market bedroom proportionality (10% tol.)   (proportional programs)
  - Minimum 2BR+ share of affordable units                 (bedroom-mix programs)
  - Minimum unit sizes for affordable units                (size programs)
  - Maximum weighted-average AMI                           (weighted-AMI programs)
"""

from __future__ import annotations

import re
from typing import Optional

from feasibility.optimizer.defaults import SolverConfig
from feasibility.optimizer.merge import merge_program_constraints
from feasibility.optimizer.types import (
    ConstraintSlack,
    ProgramConstraint,
    Sense,
    SlackKind,
    UnitAllocation,
)

PROPORTIONALITY_TOLERANCE = SolverConfig.proportionality_tolerance
FEASIBILITY_TOLERANCE = SolverConfig.feasibility_tolerance

_BEDROOMS_RE = re.compile(r"^\s*(\d+)\s*BR", re.IGNORECASE)


def bedroom_count(unit_type: str) -> int:
    """Number of bedrooms in a unit type label ("Studio" -> 0, "3BR" -> 3)."""
    match = _BEDROOMS_RE.match(unit_type)
    return int(match.group(1)) if match else 0


def is_two_br_plus(unit_type: str) -> bool:
    return bedroom_count(unit_type) >= 2


def bedroom_distribution(allocations: list[UnitAllocation]) -> dict[str, float]:
    """Share of units by unit type."""
    total = sum(a.count for a in allocations)
    if total == 0:
        return {}
    counts: dict[str, int] = {}
    for a in allocations:
        counts[a.unit_type] = counts.get(a.unit_type, 0) + a.count
    return {unit_type: n / total for unit_type, n in counts.items()}


def evaluate_constraints(
    allocations: list[UnitAllocation],
    total_sf: float,
    program_constraints: list[ProgramConstraint],
    proportionality_tolerance: float = PROPORTIONALITY_TOLERANCE,
) -> list[ConstraintSlack]:
    """Score an allocation against every active constraint.

    Args:
        allocations: Unit blocks to evaluate (zero-count blocks are ignored)
        total_sf: Net residential SF available
        program_constraints: Programs that apply to the building
        proportionality_tolerance: Max allowed per-type share deviation

    Returns a list of ConstraintSlack; slack >= 0 means satisfied.
    """
    allocations = [a for a in allocations if a.count > 0]
    slacks: list[ConstraintSlack] = []

    affordable = [a for a in allocations if a.is_affordable]
    market = [a for a in allocations if not a.is_affordable]
    total_units = sum(a.count for a in allocations)
    affordable_count = sum(a.count for a in affordable)
    affordable_pct = affordable_count / total_units if total_units > 0 else 0.0

    if program_constraints:
        merged = merge_program_constraints(program_constraints, total_units)
        label = " + ".join(merged.program_names)

        slacks.append(ConstraintSlack.measure(
            f"{label}: Min {round(merged.max_affordable_pct * 100)}% affordable",
            SlackKind.AFFORDABLE_PCT, Sense.AT_LEAST,
            required=merged.max_affordable_pct,
            actual=affordable_pct,
            binding_tolerance=0.01,
        ))

        for br in merged.band_requirements:
            if br.pct <= 0:
                continue
            slacks.append(_band_slack(br.ami_band, br.pct, br.programs,
                                      allocations, affordable_count))

        proportional = [c.program for c in program_constraints if c.requires_proportional_bedrooms]
        if proportional and affordable_count > 2 and market:
            slacks.append(_proportionality_slack(
                " + ".join(proportional), affordable, market, proportionality_tolerance,
            ))

        for pc in program_constraints:
            slacks.extend(_program_slacks(pc, affordable, affordable_count))

    used_sf = sum(a.total_sf for a in allocations)
    slack = ConstraintSlack.measure(
        "Total SF <= Net Residential SF",
        SlackKind.TOTAL_SF, Sense.AT_MOST,
        required=total_sf,
        actual=used_sf,
        binding_tolerance=0,
    )
    slack.binding = slack.slack < 100
    slacks.append(slack)

    return slacks


def _band_slack(
    ami_band: int,
    pct: float,
    programs: list[str],
    allocations: list[UnitAllocation],
    affordable_count: int,
) -> ConstraintSlack:
    """Share of affordable units in one AMI band vs. the merged minimum.

    Meeting the band's whole-unit minimum counts as satisfied even when
    the share sits a fraction below ``pct``.
    """
    band_units = sum(a.count for a in allocations if a.ami_band == ami_band)
    share = band_units / affordable_count if affordable_count > 0 else 0.0
    min_units = max(1, int(pct * affordable_count))
    if band_units >= min_units:
        slack = max(0.0, share - pct)
    else:
        slack = share - pct
    return ConstraintSlack(
        constraint=(
            f"{' + '.join(programs)}: AMI {ami_band}% band min "
            f"{round(pct * 100)}% of affordable"
        ),
        kind=SlackKind.AMI_BAND,
        sense=Sense.AT_LEAST,
        required=pct,
        actual=share,
        slack=slack,
        binding=abs(share - pct) < 0.01,
        ami_band=ami_band,
    )


def _proportionality_slack(
    label: str,
    affordable: list[UnitAllocation],
    market: list[UnitAllocation],
    tolerance: float,
) -> ConstraintSlack:
    market_dist = bedroom_distribution(market)
    affordable_dist = bedroom_distribution(affordable)
    worst = 0.0
    for unit_type in set(market_dist) | set(affordable_dist):
        deviation = abs(affordable_dist.get(unit_type, 0.0) - market_dist.get(unit_type, 0.0))
        worst = max(worst, deviation)
    return ConstraintSlack.measure(
        f"{label}: Bedroom proportionality (max {round(tolerance * 100)}% deviation)",
        SlackKind.PROPORTIONALITY, Sense.AT_MOST,
        required=tolerance,
        actual=worst,
        binding_tolerance=0.02,
    )


def _program_slacks(
    pc: ProgramConstraint,
    affordable: list[UnitAllocation],
    affordable_count: int,
) -> list[ConstraintSlack]:
    slacks: list[ConstraintSlack] = []

    if pc.bedroom_mix and pc.bedroom_mix.min_2br_plus_pct > 0 and affordable_count > 2:
        two_plus = sum(a.count for a in affordable if is_two_br_plus(a.unit_type))
        slacks.append(ConstraintSlack.measure(
            f"{pc.program}: Min {round(pc.bedroom_mix.min_2br_plus_pct * 100)}% affordable units 2BR+",
            SlackKind.TWO_BR_PLUS, Sense.AT_LEAST,
            required=pc.bedroom_mix.min_2br_plus_pct,
            actual=two_plus / affordable_count,
            binding_tolerance=0.02,
            program=pc.program,
        ))

    for a in affordable:
        min_sf = (pc.unit_min_sizes or {}).get(a.unit_type)
        if min_sf and a.avg_sf < min_sf:
            slacks.append(ConstraintSlack.measure(
                f"{pc.program}: {a.unit_type} min {min_sf:g} SF",
                SlackKind.UNIT_MIN_SIZE, Sense.AT_LEAST,
                required=min_sf,
                actual=a.avg_sf,
                binding_tolerance=0,
                program=pc.program,
            ))

    if pc.weighted_avg_ami_max and affordable_count > 0:
        weighted = sum(a.ami_band * a.count for a in affordable) / affordable_count
        slacks.append(ConstraintSlack.measure(
            f"{pc.program}: Weighted avg AMI <= {pc.weighted_avg_ami_max:g}%",
            SlackKind.WEIGHTED_AMI, Sense.AT_MOST,
            required=pc.weighted_avg_ami_max,
            actual=weighted,
            binding_tolerance=1,
            program=pc.program,
        ))

    return slacks


def is_feasible(
    slacks: list[ConstraintSlack],
    tolerance: float = FEASIBILITY_TOLERANCE,
) -> bool:
    """True when every slack is within tolerance of satisfied."""
    return all(s.slack >= -tolerance for s in slacks)


def worst_violation(
    slacks: list[ConstraintSlack],
    tolerance: float = FEASIBILITY_TOLERANCE,
) -> Optional[ConstraintSlack]:
    violated = [s for s in slacks if s.slack < -tolerance]
    return min(violated, key=lambda s: s.slack) if violated else None
