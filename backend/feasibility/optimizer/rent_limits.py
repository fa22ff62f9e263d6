"""
HPD regulated rent schedule.

Maximum monthly gross rents for income-restricted units by AMI band and
unit type, as published by NYC HPD for the NYC metro area.  Affordable
allocations are priced from this schedule before falling back to the
caller's rent assumptions.

AMI = Area Median Income.  100% AMI for a family of three in 2025 is
$145,800.
"""

from __future__ import annotations

from typing import Callable, Optional

RENT_SCHEDULE_YEAR = 2025
NYC_METRO_AMI_100 = 145800

# Signature shared by every regulated-rent lookup the solver accepts
RentLimitLookup = Callable[[str, int], Optional[float]]


# ──────────────────────────────────────────────────────────────────
# HPD RENT SCHEDULE (monthly, by AMI %)
# ──────────────────────────────────────────────────────────────────

HPD_RENTS_2025: dict[int, dict[str, int]] = {
    30:  {"Studio": 850,  "1BR": 911,  "2BR": 1093, "3BR": 1263},
    40:  {"Studio": 1134, "1BR": 1215, "2BR": 1458, "3BR": 1685},
    50:  {"Studio": 1417, "1BR": 1518, "2BR": 1822, "3BR": 2106},
    60:  {"Studio": 1701, "1BR": 1822, "2BR": 2187, "3BR": 2527},
    70:  {"Studio": 1984, "1BR": 2126, "2BR": 2551, "3BR": 2948},
    80:  {"Studio": 2268, "1BR": 2430, "2BR": 2916, "3BR": 3370},
    90:  {"Studio": 2552, "1BR": 2733, "2BR": 3281, "3BR": 3791},
    100: {"Studio": 2835, "1BR": 3037, "2BR": 3645, "3BR": 4212},
    110: {"Studio": 3119, "1BR": 3341, "2BR": 4010, "3BR": 4633},
    120: {"Studio": 3402, "1BR": 3644, "2BR": 4374, "3BR": 5054},
    130: {"Studio": 3685, "1BR": 3948, "2BR": 4738, "3BR": 5476},
    165: {"Studio": 4678, "1BR": 5011, "2BR": 6014, "3BR": 6950},
}

RENT_SCHEDULES: dict[int, dict[int, dict[str, int]]] = {
    2025: HPD_RENTS_2025,
}


def get_rent_limit(
    unit_type: str,
    ami_band: int,
    year: int = RENT_SCHEDULE_YEAR,
) -> Optional[float]:
    """Look up the regulated rent for a unit type at an AMI band.

    Uses the exact band when published, otherwise the nearest published
    band for the same unit type.  Returns None when the year or unit type
    is not in the schedule.
    """
    schedule = RENT_SCHEDULES.get(year)
    if not schedule:
        return None

    exact = schedule.get(ami_band, {}).get(unit_type)
    if exact is not None:
        return exact

    bands = [band for band, rents in schedule.items() if unit_type in rents]
    if not bands:
        return None
    nearest = min(bands, key=lambda band: abs(band - ami_band))
    return schedule[nearest][unit_type]


def rent_limit_lookup_for_year(year: int) -> RentLimitLookup:
    """Bind ``get_rent_limit`` to a schedule year."""
    def lookup(unit_type: str, ami_band: int) -> Optional[float]:
        return get_rent_limit(unit_type, ami_band, year)
    return lookup


def scaled_rent_limit_lookup(lookup: RentLimitLookup, factor: float) -> RentLimitLookup:
    """Wrap a lookup so every published rent is multiplied by ``factor``."""
    def scaled(unit_type: str, ami_band: int) -> Optional[float]:
        rent = lookup(unit_type, ami_band)
        if rent is None:
            return None
        return round(rent * factor)
    return scaled
