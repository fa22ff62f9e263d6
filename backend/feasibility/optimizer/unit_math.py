"""
Unit-count arithmetic shared by the program calculators.

Projected units follow the dwelling-unit rounding rule: fractions >= 0.75
round up to one unit; smaller fractions are dropped.  Affordable set-asides
always round up (a 25% set-aside on 75 units is 19 units, not 18).
"""

from __future__ import annotations

import math

AVG_UNIT_SF = 700


def round_units_three_quarters(raw: float) -> int:
    whole = math.floor(raw)
    fraction = raw - whole
    if fraction >= 0.75:
        return whole + 1
    return whole


def calc_total_projected_units(residential_sf: float, du_factor: float = AVG_UNIT_SF) -> int:
    """Units that fit in ``residential_sf`` at ``du_factor`` SF per unit."""
    if residential_sf <= 0:
        return 0
    return round_units_three_quarters(residential_sf / du_factor)


def _normalize_pct(pct: float) -> float:
    # 25 and 0.25 both mean 25%
    if pct > 100:
        return 1.0
    if pct > 1:
        return pct / 100
    return pct


def calc_required_affordable_units(total_units: int, pct: float) -> int:
    """Affordable units required for a set-aside, rounded up.

    ``pct`` may be a fraction (0.25) or a percentage (25); values above
    100 are clamped to 100%.
    """
    if total_units <= 0 or pct <= 0:
        return 0
    return math.ceil(round(total_units * _normalize_pct(pct), 9))


def calc_market_rate_units(total_units: int, affordable_units: int) -> int:
    return max(total_units - affordable_units, 0)


def format_affordable_explanation(total_units: int, pct: float) -> str:
    """Human-readable derivation, e.g. ``ceil(75 × 25%) = ceil(18.75) = 19``."""
    pct_display = pct if 1 < pct <= 100 else pct * 100
    raw = total_units * pct_display / 100
    raw_display = f"{raw:.1f}" if raw == int(raw) else f"{raw:.2f}"
    return (
        f"ceil({total_units} × {pct_display:g}%) = "
        f"ceil({raw_display}) = {math.ceil(raw)}"
    )
