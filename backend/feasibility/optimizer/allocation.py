"""
Initial unit-mix allocation.

Builds a first allocation from the merged program target:

  1. Apply program minimum unit sizes to the catalog (binding minimum
     per unit type across all programs).
  2. Estimate the total unit count (fixed total, or net SF divided by the
     smallest unit footprint).
  3. Place affordable units: apportion the merged target across unit types
     by the affordable bedroom mix, then hand those units to AMI bands in
     declared order.
  4. Place market-rate units by the market bedroom mix, then fill any SF
     left over with the best revenue-per-SF unit type.

The allocation lives in an ``AllocationBook`` keyed by (unit type, AMI band).
Search stages mutate copies of the book, never the accepted one.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, Optional

from feasibility.optimizer.defaults import SolverConfig
from feasibility.optimizer.merge import largest_remainder, merge_program_constraints
from feasibility.optimizer.types import (
    MergedConstraintSet,
    OptimizerInputs,
    ProgramConstraint,
    RentAssumption,
    UnitAllocation,
    UnitTypeConfig,
)

logger = logging.getLogger(__name__)

AllocationKey = tuple[str, int]


# ──────────────────────────────────────────────────────────────────
# ALLOCATION BOOK
# ──────────────────────────────────────────────────────────────────

class AllocationBook:
    """Ordered map of (unit type, AMI band) -> UnitAllocation.

    Entries keep their insertion order.  Entries that drop to zero units
    stay in the book so keys held by a caller remain valid; ``allocations()``
    only returns blocks with units.
    """

    def __init__(self) -> None:
        self._entries: dict[AllocationKey, UnitAllocation] = {}

    def __contains__(self, key: AllocationKey) -> bool:
        return key in self._entries

    def __getitem__(self, key: AllocationKey) -> UnitAllocation:
        return self._entries[key]

    def __iter__(self) -> Iterator[UnitAllocation]:
        return iter(self._entries.values())

    def keys(self) -> list[AllocationKey]:
        return list(self._entries)

    def add(
        self,
        unit_type: str,
        ami_band: int,
        count: int,
        avg_sf: float,
        monthly_rent: float,
        program_tags: Optional[list[str]] = None,
    ) -> UnitAllocation:
        """Add ``count`` units to the (type, band) block, creating it if needed."""
        if count < 0:
            raise ValueError(f"Cannot add a negative unit count: {count}")
        key = (unit_type, ami_band)
        entry = self._entries.get(key)
        if entry is None:
            entry = UnitAllocation(
                unit_type=unit_type,
                ami_band=ami_band,
                count=0,
                avg_sf=avg_sf,
                monthly_rent=monthly_rent,
            )
            self._entries[key] = entry
        entry.count += count
        for tag in program_tags or []:
            if tag not in entry.program_tags:
                entry.program_tags.append(tag)
        return entry

    def remove_one(self, key: AllocationKey) -> UnitAllocation:
        entry = self._entries[key]
        if entry.count <= 0:
            raise ValueError(f"No units left to remove from {key}")
        entry.count -= 1
        return entry

    def move_one(self, src: AllocationKey, dst: AllocationKey) -> None:
        """Move one unit between two existing blocks."""
        if dst not in self._entries:
            raise KeyError(dst)
        self.remove_one(src)
        self._entries[dst].count += 1

    def copy(self) -> "AllocationBook":
        return copy.deepcopy(self)

    def allocations(self) -> list[UnitAllocation]:
        return [a for a in self._entries.values() if a.count > 0]

    def affordable(self) -> list[UnitAllocation]:
        return [a for a in self.allocations() if a.is_affordable]

    def market(self) -> list[UnitAllocation]:
        return [a for a in self.allocations() if not a.is_affordable]

    @property
    def used_sf(self) -> float:
        return sum(a.total_sf for a in self._entries.values())

    @property
    def unit_count(self) -> int:
        return sum(a.count for a in self._entries.values())

    @property
    def annual_revenue(self) -> float:
        return sum(a.count * a.monthly_rent * 12 for a in self._entries.values())


# ──────────────────────────────────────────────────────────────────
# RENT LOOKUP
# ──────────────────────────────────────────────────────────────────

class RentResolver:
    """Monthly rent for a (unit type, AMI band).

    Affordable bands use the regulated rent schedule when one is
    configured.  Otherwise: exact rent assumption, then the nearest AMI band
    of the same unit type, then a flat default.
    """

    def __init__(self, rents: list[RentAssumption], config: SolverConfig) -> None:
        self._rents = rents
        self._lookup = config.rent_limit_lookup
        self._default = config.default_monthly_rent

    def __call__(self, unit_type: str, ami_band: int) -> float:
        if ami_band > 0 and self._lookup is not None:
            regulated = self._lookup(unit_type, ami_band)
            if regulated is not None:
                return regulated

        same_type = [r for r in self._rents if r.unit_type == unit_type]
        for r in same_type:
            if r.ami_band == ami_band:
                return r.monthly_rent
        if not same_type:
            return self._default
        nearest = min(same_type, key=lambda r: abs(r.ami_band - ami_band))
        return nearest.monthly_rent


# ──────────────────────────────────────────────────────────────────
# CATALOG & MIX HELPERS
# ──────────────────────────────────────────────────────────────────

def apply_unit_min_sizes(
    unit_types: list[UnitTypeConfig],
    constraints: list[ProgramConstraint],
) -> list[UnitTypeConfig]:
    """Raise each unit type's minimum SF to the strictest program minimum."""
    merged_mins: dict[str, float] = {}
    for pc in constraints:
        for unit_type, min_sf in (pc.unit_min_sizes or {}).items():
            merged_mins[unit_type] = max(merged_mins.get(unit_type, 0), min_sf)

    effective = []
    for ut in unit_types:
        required = merged_mins.get(ut.type)
        if not required or ut.min_sf >= required:
            effective.append(UnitTypeConfig(ut.type, ut.min_sf, ut.max_sf))
        else:
            effective.append(UnitTypeConfig(ut.type, required, max(ut.max_sf, required)))
    return effective


def has_uap(constraints: list[ProgramConstraint]) -> bool:
    return any(c.program.strip().upper().startswith("UAP") for c in constraints)


def program_bedroom_mix(constraint: ProgramConstraint, config: SolverConfig) -> dict[str, float]:
    if constraint.bedroom_mix and constraint.bedroom_mix.distribution:
        return constraint.bedroom_mix.distribution
    if has_uap([constraint]):
        return config.uap_bedroom_mix
    return config.default_bedroom_mix


def affordable_bedroom_mix(
    constraints: list[ProgramConstraint],
    market_mix: dict[str, float],
    config: SolverConfig,
) -> dict[str, float]:
    """Bedroom distribution for affordable units.

    Proportional programs mirror the market mix.  Otherwise each unit type
    takes the largest share any program asks for, renormalized to 1.
    """
    if any(c.requires_proportional_bedrooms for c in constraints) and market_mix:
        return dict(market_mix)

    weights: dict[str, float] = {}
    for pc in constraints:
        for unit_type, pct in program_bedroom_mix(pc, config).items():
            weights[unit_type] = max(weights.get(unit_type, 0.0), pct)
    total = sum(weights.values())
    if total <= 0:
        return dict(config.default_bedroom_mix)
    return {unit_type: w / total for unit_type, w in weights.items()}


@dataclass
class _Slot:
    unit_type: UnitTypeConfig
    count: int


def distribute_by_mix(
    total: int,
    mix: dict[str, float],
    unit_types: list[UnitTypeConfig],
) -> list[_Slot]:
    """Split ``total`` units across the catalog by largest remainder.

    Mix entries for types missing from the catalog are ignored; if the mix
    names no catalog type the units are spread evenly.
    """
    weights = [mix.get(ut.type, 0.0) for ut in unit_types]
    if sum(weights) <= 0:
        weights = [1.0] * len(unit_types)
    counts = largest_remainder(total, weights)
    return [_Slot(ut, n) for ut, n in zip(unit_types, counts)]


def _shrink_to_budget(slots: list[_Slot], sf_budget: float) -> None:
    """Step the largest planned units down one size until the plan fits.

    Keeps the unit count unchanged.  Stops once only the smallest type is
    left, in which case placement truncates whatever still does not fit.
    """
    by_size = sorted(slots, key=lambda s: s.unit_type.avg_sf)
    while sum(s.count * s.unit_type.avg_sf for s in by_size) > sf_budget:
        for pos in range(len(by_size) - 1, 0, -1):
            if by_size[pos].count > 0:
                break
        else:
            return
        by_size[pos].count -= 1
        by_size[pos - 1].count += 1


# ──────────────────────────────────────────────────────────────────
# BUILDER
# ──────────────────────────────────────────────────────────────────

@dataclass
class AllocationPlan:
    """Working state handed from the builder to the search stages."""
    book: AllocationBook
    unit_types: list[UnitTypeConfig]
    net_sf: float
    fixed_total: Optional[int]
    merged: MergedConstraintSet
    rent: RentResolver
    program_names: list[str] = field(default_factory=list)

    def unit_type(self, name: str) -> Optional[UnitTypeConfig]:
        for ut in self.unit_types:
            if ut.type == name:
                return ut
        return None


@dataclass
class _Budget:
    sf: float
    units: int


def _place(
    book: AllocationBook,
    budget: _Budget,
    rent: RentResolver,
    unit_type: UnitTypeConfig,
    ami_band: int,
    count: int,
    tags: Optional[list[str]] = None,
) -> int:
    """Place up to ``count`` units, truncated to the SF still available."""
    fit = min(count, math.floor(budget.sf / unit_type.avg_sf))
    if fit <= 0:
        return 0
    book.add(unit_type.type, ami_band, fit, unit_type.avg_sf,
             rent(unit_type.type, ami_band), tags)
    budget.sf -= fit * unit_type.avg_sf
    budget.units -= fit
    return fit


def _place_affordable(
    plan: AllocationPlan,
    budget: _Budget,
    mix: dict[str, float],
) -> None:
    merged = plan.merged
    bands = merged.band_requirements
    target = merged.merged_affordable_target
    if plan.fixed_total:
        target = min(target, budget.units)

    pool = distribute_by_mix(target, mix, plan.unit_types)
    pool_total = sum(s.count for s in pool)

    idx = 0
    for br in bands:
        band_remaining = min(br.min_units, pool_total)
        tags = br.programs or plan.program_names
        while band_remaining > 0 and idx < len(pool):
            slot = pool[idx]
            if slot.count <= 0:
                idx += 1
                continue
            take = min(band_remaining, slot.count)
            placed = _place(plan.book, budget, plan.rent, slot.unit_type,
                            br.ami_band, take, tags)
            slot.count -= placed
            band_remaining -= placed
            if placed < take:
                break  # out of SF for this type
            if slot.count <= 0:
                idx += 1

    # Units the band pass did not claim go to the last band
    default_band = bands[-1].ami_band if bands else 60
    for slot in pool[idx:]:
        if slot.count <= 0:
            continue
        placed = _place(plan.book, budget, plan.rent, slot.unit_type,
                        default_band, slot.count, plan.program_names)
        if placed < slot.count:
            break


def _place_market(
    plan: AllocationPlan,
    budget: _Budget,
    mix: dict[str, float],
) -> None:
    smallest_sf = min(ut.avg_sf for ut in plan.unit_types)
    if plan.fixed_total:
        estimate = max(0, budget.units)
    else:
        estimate = math.floor(budget.sf / smallest_sf)
    if estimate <= 0:
        return

    slots = distribute_by_mix(estimate, mix, plan.unit_types)
    if plan.fixed_total:
        _shrink_to_budget(slots, budget.sf)

    for slot in slots:
        count = min(slot.count, budget.units) if plan.fixed_total else slot.count
        if count <= 0:
            continue
        _place(plan.book, budget, plan.rent, slot.unit_type, 0, count)

    # Greedy fill of leftover SF, best revenue per SF first
    ranked = sorted(
        plan.unit_types,
        key=lambda ut: plan.rent(ut.type, 0) / ut.avg_sf,
        reverse=True,
    )
    for ut in ranked:
        if plan.fixed_total and budget.units <= 0:
            break
        if budget.sf < ut.avg_sf:
            continue
        max_by_space = math.floor(budget.sf / ut.avg_sf)
        count = min(max_by_space, budget.units) if plan.fixed_total else max_by_space
        _place(plan.book, budget, plan.rent, ut, 0, count)


def build_initial_allocation(
    inputs: OptimizerInputs,
    config: SolverConfig,
) -> AllocationPlan:
    """Construct the initial affordable + market allocation.

    Expects a non-empty catalog and positive net SF; ``solve`` screens
    degenerate inputs before calling this.
    """
    constraints = inputs.program_constraints
    unit_types = [
        ut for ut in apply_unit_min_sizes(inputs.allowed_unit_types, constraints)
        if ut.avg_sf > 0
    ]
    if not unit_types:
        raise ValueError("Unit type catalog has no type with a positive size")

    net_sf = inputs.net_residential_sf
    fixed_total = inputs.total_units if inputs.total_units and inputs.total_units > 0 else None
    smallest_sf = min(ut.avg_sf for ut in unit_types)
    est_total = fixed_total if fixed_total else math.floor(net_sf / smallest_sf)

    merged = merge_program_constraints(constraints, est_total)
    plan = AllocationPlan(
        book=AllocationBook(),
        unit_types=unit_types,
        net_sf=net_sf,
        fixed_total=fixed_total,
        merged=merged,
        rent=RentResolver(inputs.rent_assumptions, config),
        program_names=list(merged.program_names),
    )
    budget = _Budget(sf=net_sf, units=est_total)
    market_mix = config.uap_bedroom_mix if has_uap(constraints) else config.default_bedroom_mix

    if merged.merged_affordable_target > 0 and merged.band_requirements:
        mix = affordable_bedroom_mix(constraints, market_mix, config)
        _place_affordable(plan, budget, mix)
        logger.debug("Placed %d affordable units (target %d), %.0f SF left",
                     sum(a.count for a in plan.book.affordable()),
                     merged.merged_affordable_target, budget.sf)

    _place_market(plan, budget, market_mix)
    logger.debug("Initial allocation: %d units, %.0f of %.0f SF",
                 plan.book.unit_count, plan.book.used_sf, net_sf)
    return plan
