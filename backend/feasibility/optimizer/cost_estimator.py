"""
Hard and land cost estimates for the optimizer's cost assumptions.

Hard cost starts from a $/SF tier picked from the building class, zoning
district and land use of the lot, then adds adjustments for height,
Manhattan, luxury finish, pre-war conversion and small lots.  The result
is capped ($1,000/SF, or $1,500/SF for luxury).

Land cost prefers an ACRIS price per buildable SF, then a sale amount over
buildable SF, then a flat default.

These are feasibility-level benchmarks, NOT construction estimates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


DEFAULT_LAND_COST_PER_SF = 150

# ──────────────────────────────────────────────────────────────────
# HARD COST TIERS  ($/SF)
# ──────────────────────────────────────────────────────────────────

TIER_LUXURY = ("Luxury Residential", 500)
TIER_COMMERCIAL = ("Commercial / Office", 300)
TIER_MIXED_USE = ("Mixed-Use / Multi-family", 400)
TIER_MULTI_FAMILY = ("Multi-family Residential", 350)
TIER_STANDARD = ("Standard Residential", 325)
TIER_GENERAL = ("General", 350)

HARD_COST_CAP = 1000
LUXURY_HARD_COST_CAP = 1500


@dataclass
class CostEstimatorInput:
    bldg_class: str = ""
    zone_dist: str = ""
    num_floors: int = 0
    borough: str = ""
    year_built: int = 0
    land_use: str = ""
    lot_area: float = 0


@dataclass
class CostEstimate:
    estimated_hard_cost_per_sf: int
    tier: str
    adjustments: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "estimated_hard_cost_per_sf": self.estimated_hard_cost_per_sf,
            "tier": self.tier,
            "adjustments": list(self.adjustments),
        }


@dataclass
class LandCostEstimate:
    land_cost_per_sf: int
    source: str

    def to_dict(self) -> dict:
        return {"land_cost_per_sf": self.land_cost_per_sf, "source": self.source}


def _classify_tier(inp: CostEstimatorInput) -> tuple[str, int, bool]:
    """Return (tier name, base $/SF, is luxury)."""
    zone = (inp.zone_dist or "").upper()
    land_use = inp.land_use or ""
    bc = (inp.bldg_class or "").upper()

    if bc.startswith("R") or zone.startswith("R10"):
        return (*TIER_LUXURY, True)

    if land_use in ("05", "06") or (bc and bc[0] in "OKLEFGHIJ"):
        return (*TIER_COMMERCIAL, False)

    if zone.startswith("C") or (zone.startswith("M") and "/" in zone):
        return (*TIER_MIXED_USE, False)

    high_density = zone.startswith(("R6", "R7", "R8", "R9"))
    if high_density or land_use in ("02", "03") or (bc and bc[0] in "CD"):
        return (*TIER_MULTI_FAMILY, False)

    low_density = zone.startswith(("R1", "R2", "R3", "R4", "R5"))
    if low_density or land_use == "01" or (bc and bc[0] in "ABS"):
        return (*TIER_STANDARD, False)

    return (*TIER_GENERAL, False)


def estimate_hard_cost(inp: CostEstimatorInput) -> CostEstimate:
    """Estimate construction hard cost in $/SF for a lot.

    Args:
        inp: Lot attributes (PLUTO-style codes; borough "1" is Manhattan)

    Returns CostEstimate with the rounded $/SF, the tier name and a
    human-readable line for every adjustment applied.
    """
    tier, cost, luxury = _classify_tier(inp)
    adjustments: list[str] = []

    if inp.num_floors > 30:
        cost += 250
        adjustments.append(f"Supertall ({inp.num_floors} stories): +$250/SF")
    elif inp.num_floors > 15:
        cost += 150
        adjustments.append(f"Tall high-rise ({inp.num_floors} stories): +$150/SF")
    elif inp.num_floors > 7:
        cost += 75
        adjustments.append(f"High-rise ({inp.num_floors} stories): +$75/SF")

    if inp.borough == "1":
        cost += 75
        adjustments.append("Manhattan: +$75/SF")

    if luxury:
        cost += 150
        adjustments.append("Luxury finish (R-class / R10): +$150/SF")

    if 0 < inp.year_built < 1940:
        cost += 75
        adjustments.append(f"Pre-war conversion (built {inp.year_built}): +$75/SF")

    if 0 < inp.lot_area < 2500:
        cost += 25
        adjustments.append(f"Small lot ({inp.lot_area:,.0f} SF): +$25/SF")

    cap = LUXURY_HARD_COST_CAP if luxury else HARD_COST_CAP
    if cost > cap:
        cost = cap
        adjustments.append(f"Capped at ${cap:,}/SF")

    return CostEstimate(
        estimated_hard_cost_per_sf=round(cost),
        tier=tier,
        adjustments=adjustments,
    )


def estimate_land_cost(
    sale_amount: Optional[float] = None,
    buildable_sf: Optional[float] = None,
    ppbsf: Optional[float] = None,
) -> LandCostEstimate:
    """Land cost per buildable SF.

    ``ppbsf`` is an ACRIS-derived price per buildable SF and wins when
    present.
    """
    if ppbsf and ppbsf > 0:
        return LandCostEstimate(
            land_cost_per_sf=round(ppbsf),
            source=f"ACRIS sale: ${round(ppbsf)}/buildable SF",
        )

    if sale_amount and sale_amount > 0 and buildable_sf and buildable_sf > 0:
        return LandCostEstimate(
            land_cost_per_sf=round(sale_amount / buildable_sf),
            source=f"Derived: ${sale_amount:,.0f} / {buildable_sf:,.0f} buildable SF",
        )

    return LandCostEstimate(
        land_cost_per_sf=DEFAULT_LAND_COST_PER_SF,
        source="Default estimate (no sale data)",
    )
