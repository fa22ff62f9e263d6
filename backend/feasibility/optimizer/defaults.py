"""
Default catalog, rent and cost assumptions, plus the solver configuration.

The bedroom-mix tables and the regulated rent schedule are handed to the
solver through ``SolverConfig`` so tests and callers can substitute their
own.  ``SolverConfig.from_settings()`` builds the production defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from feasibility.config import Settings, settings
from feasibility.optimizer.rent_limits import RentLimitLookup, rent_limit_lookup_for_year
from feasibility.optimizer.types import CostAssumptions, RentAssumption, UnitTypeConfig


# ──────────────────────────────────────────────────────────────────
# UNIT CATALOG (NYC market norms)
# ──────────────────────────────────────────────────────────────────

DEFAULT_UNIT_TYPES: list[UnitTypeConfig] = [
    UnitTypeConfig("Studio", 400, 550),
    UnitTypeConfig("1BR", 550, 750),
    UnitTypeConfig("2BR", 750, 1050),
    UnitTypeConfig("3BR", 1050, 1350),
]

# ──────────────────────────────────────────────────────────────────
# RENTS (monthly).  Band 0 = market rate.
# ──────────────────────────────────────────────────────────────────

_RENT_TABLE: dict[int, dict[str, int]] = {
    0:   {"Studio": 3200, "1BR": 4100, "2BR": 5500, "3BR": 7200},
    30:  {"Studio": 850,  "1BR": 911,  "2BR": 1093, "3BR": 1263},
    40:  {"Studio": 1134, "1BR": 1215, "2BR": 1458, "3BR": 1685},
    50:  {"Studio": 1417, "1BR": 1518, "2BR": 1822, "3BR": 2106},
    60:  {"Studio": 1701, "1BR": 1822, "2BR": 2187, "3BR": 2527},
    70:  {"Studio": 1984, "1BR": 2126, "2BR": 2551, "3BR": 2948},
    80:  {"Studio": 2268, "1BR": 2430, "2BR": 2916, "3BR": 3370},
    100: {"Studio": 2835, "1BR": 3037, "2BR": 3645, "3BR": 4212},
    130: {"Studio": 3685, "1BR": 3948, "2BR": 4738, "3BR": 5476},
    165: {"Studio": 4678, "1BR": 5011, "2BR": 6014, "3BR": 6950},
}

DEFAULT_RENTS: list[RentAssumption] = [
    RentAssumption(unit_type, band, rent)
    for band, rents in _RENT_TABLE.items()
    for unit_type, rent in rents.items()
]

DEFAULT_COSTS = CostAssumptions(
    hard_cost_per_sf=350,
    soft_cost_pct=0.30,
    land_cost_per_sf=150,
)

# ──────────────────────────────────────────────────────────────────
# BEDROOM MIX DISTRIBUTIONS
# ──────────────────────────────────────────────────────────────────

DEFAULT_BEDROOM_MIX: dict[str, float] = {
    "Studio": 0.15,
    "1BR": 0.30,
    "2BR": 0.35,
    "3BR": 0.20,
}

# UAP favours family-sized units
UAP_BEDROOM_MIX: dict[str, float] = {
    "Studio": 0.10,
    "1BR": 0.25,
    "2BR": 0.40,
    "3BR": 0.25,
}


# ──────────────────────────────────────────────────────────────────
# SOLVER CONFIG
# ──────────────────────────────────────────────────────────────────

def _setting_default(name: str):
    # Declared defaults only; environment overrides arrive via from_settings()
    return Settings.model_fields[name].default


@dataclass
class SolverConfig:
    """Everything the solver reads besides its inputs."""
    default_bedroom_mix: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_BEDROOM_MIX))
    uap_bedroom_mix: dict[str, float] = field(default_factory=lambda: dict(UAP_BEDROOM_MIX))
    rent_limit_lookup: RentLimitLookup | None = None
    default_monthly_rent: float = _setting_default("default_monthly_rent")
    repair_max_iterations: int = _setting_default("repair_max_iterations")
    hill_climb_max_iterations: int = _setting_default("hill_climb_max_iterations")
    proportionality_tolerance: float = _setting_default("proportionality_tolerance")
    feasibility_tolerance: float = _setting_default("feasibility_tolerance")
    sensitivity_shock_pct: float = _setting_default("sensitivity_shock_pct")
    sensitivity_sf_relaxation: float = _setting_default("sensitivity_sf_relaxation")

    @classmethod
    def from_settings(cls) -> "SolverConfig":
        return cls(
            rent_limit_lookup=rent_limit_lookup_for_year(settings.rent_schedule_year),
            default_monthly_rent=settings.default_monthly_rent,
            repair_max_iterations=settings.repair_max_iterations,
            hill_climb_max_iterations=settings.hill_climb_max_iterations,
            proportionality_tolerance=settings.proportionality_tolerance,
            feasibility_tolerance=settings.feasibility_tolerance,
            sensitivity_shock_pct=settings.sensitivity_shock_pct,
            sensitivity_sf_relaxation=settings.sensitivity_sf_relaxation,
        )
