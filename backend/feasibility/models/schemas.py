from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Optional

from feasibility.optimizer.cost_estimator import (
    CostEstimatorInput,
    estimate_hard_cost,
    estimate_land_cost,
)
from feasibility.optimizer.defaults import DEFAULT_COSTS, DEFAULT_RENTS, DEFAULT_UNIT_TYPES
from feasibility.optimizer.scenario_builder import UnitRecord
from feasibility.optimizer.types import (
    BedroomMixRule,
    CostAssumptions,
    OptimizerInputs,
    ProgramConstraint,
    RentAssumption,
    UnitTypeConfig,
)


# ──────────────────────────────────────────────────────────────────
# REQUEST MODELS
# ──────────────────────────────────────────────────────────────────

class UnitTypeIn(BaseModel):
    type: str
    min_sf: float = Field(ge=0)
    max_sf: float = Field(ge=0)


class RentAssumptionIn(BaseModel):
    unit_type: str
    ami_band: int = Field(ge=0)  # 0 = market rate
    monthly_rent: float


class CostAssumptionsIn(BaseModel):
    hard_cost_per_sf: float = DEFAULT_COSTS.hard_cost_per_sf
    soft_cost_pct: float = DEFAULT_COSTS.soft_cost_pct
    land_cost_per_sf: float = DEFAULT_COSTS.land_cost_per_sf
    hard_cost_source: Optional[str] = None
    land_cost_source: Optional[str] = None

    def to_costs(self) -> CostAssumptions:
        return CostAssumptions(
            hard_cost_per_sf=self.hard_cost_per_sf,
            soft_cost_pct=self.soft_cost_pct,
            land_cost_per_sf=self.land_cost_per_sf,
            hard_cost_source=self.hard_cost_source,
            land_cost_source=self.land_cost_source,
        )


class LotAttributesIn(BaseModel):
    """PLUTO-style lot attributes used to estimate hard cost."""
    bldg_class: str = ""
    zone_dist: str = ""
    num_floors: int = Field(default=0, ge=0)
    borough: str = ""  # "1" = Manhattan
    year_built: int = 0
    land_use: str = ""
    lot_area: float = Field(default=0, ge=0)


class LandSaleIn(BaseModel):
    """Sale data used to estimate land cost per buildable SF."""
    sale_amount: Optional[float] = None
    buildable_sf: Optional[float] = None
    ppbsf: Optional[float] = None  # ACRIS price per buildable SF


def estimated_costs(
    lot: Optional[LotAttributesIn],
    land_sale: Optional[LandSaleIn],
) -> CostAssumptions:
    """Cost assumptions estimated from lot attributes and sale data."""
    lot = lot or LotAttributesIn()
    land_sale = land_sale or LandSaleIn()
    hard = estimate_hard_cost(CostEstimatorInput(**lot.model_dump()))
    land = estimate_land_cost(**land_sale.model_dump())
    return CostAssumptions(
        hard_cost_per_sf=hard.estimated_hard_cost_per_sf,
        soft_cost_pct=DEFAULT_COSTS.soft_cost_pct,
        land_cost_per_sf=land.land_cost_per_sf,
        hard_cost_source=f"Estimated: {hard.tier}",
        land_cost_source=land.source,
    )


class BedroomMixIn(BaseModel):
    min_2br_plus_pct: float = Field(ge=0, le=1)
    distribution: dict[str, float] = {}


class ProgramConstraintIn(BaseModel):
    program: str
    min_affordable_pct: float = Field(ge=0, le=1)
    ami_bands: list[int] = []
    min_pct_by_band: dict[int, float] = {}
    requires_proportional_bedrooms: bool = False
    bedroom_mix: Optional[BedroomMixIn] = None
    unit_min_sizes: Optional[dict[str, float]] = None
    weighted_avg_ami_max: Optional[float] = None
    stacking_conflicts: list[str] = []

    def to_constraint(self) -> ProgramConstraint:
        return ProgramConstraint(
            program=self.program,
            min_affordable_pct=self.min_affordable_pct,
            ami_bands=list(self.ami_bands),
            min_pct_by_band=dict(self.min_pct_by_band),
            requires_proportional_bedrooms=self.requires_proportional_bedrooms,
            bedroom_mix=(
                BedroomMixRule(self.bedroom_mix.min_2br_plus_pct, dict(self.bedroom_mix.distribution))
                if self.bedroom_mix else None
            ),
            unit_min_sizes=dict(self.unit_min_sizes) if self.unit_min_sizes else None,
            weighted_avg_ami_max=self.weighted_avg_ami_max,
            stacking_conflicts=list(self.stacking_conflicts),
        )


class BuildingRequest(BaseModel):
    """Fields shared by every request that prices a building.

    Rents default to NYC norms.  When ``cost_assumptions`` is omitted, hard
    and land costs are estimated from ``lot`` and ``land_sale``.
    ``program_keys`` names preset programs (see GET /programs); they are
    applied before any explicit ``program_constraints``.
    """
    net_residential_sf: float
    rent_assumptions: Optional[list[RentAssumptionIn]] = None
    cost_assumptions: Optional[CostAssumptionsIn] = None
    lot: Optional[LotAttributesIn] = None
    land_sale: Optional[LandSaleIn] = None
    program_keys: list[str] = []
    program_constraints: list[ProgramConstraintIn] = []

    def rents(self) -> list[RentAssumption]:
        source = DEFAULT_RENTS if self.rent_assumptions is None else self.rent_assumptions
        return [RentAssumption(r.unit_type, r.ami_band, r.monthly_rent) for r in source]

    def costs(self) -> CostAssumptions:
        if self.cost_assumptions is not None:
            return self.cost_assumptions.to_costs()
        return estimated_costs(self.lot, self.land_sale)

    def constraints(self, presets: list[ProgramConstraint]) -> list[ProgramConstraint]:
        return presets + [pc.to_constraint() for pc in self.program_constraints]


class SolveRequest(BuildingRequest):
    total_units: Optional[int] = Field(default=None, ge=0)
    allowed_unit_types: Optional[list[UnitTypeIn]] = None

    def to_inputs(self, presets: list[ProgramConstraint]) -> OptimizerInputs:
        source = DEFAULT_UNIT_TYPES if self.allowed_unit_types is None else self.allowed_unit_types
        return OptimizerInputs(
            net_residential_sf=self.net_residential_sf,
            allowed_unit_types=[UnitTypeConfig(ut.type, ut.min_sf, ut.max_sf) for ut in source],
            rent_assumptions=self.rents(),
            cost_assumptions=self.costs(),
            program_constraints=self.constraints(presets),
            total_units=self.total_units,
        )


class UnitRecordIn(BaseModel):
    bedroom_type: str = "UNKNOWN"  # STUDIO, 1BR, 2BR, 3BR, 4BR_PLUS
    allocation: str = "UNKNOWN"    # MARKET, AFFORDABLE, MIH_RESTRICTED
    area_sf: Optional[float] = Field(default=None, ge=0)
    ami_band: Optional[int] = Field(default=None, ge=0)


class ScoreRequest(BuildingRequest):
    """An existing unit mix to score instead of solving.

    ``unit_records`` wins when present; otherwise ``totals_by_bedroom_type``
    is scored as market-rate units of default size.
    """
    unit_records: list[UnitRecordIn] = []
    totals_by_bedroom_type: dict[str, int] = {}

    def records(self) -> list[UnitRecord]:
        return [
            UnitRecord(r.bedroom_type, r.allocation, r.area_sf, r.ami_band)
            for r in self.unit_records
        ]


class MergeRequest(BaseModel):
    est_total_units: int = Field(ge=0)
    program_keys: list[str] = []
    program_constraints: list[ProgramConstraintIn] = []


# ──────────────────────────────────────────────────────────────────
# RESPONSE MODELS
# ──────────────────────────────────────────────────────────────────

class UnitAllocationOut(BaseModel):
    unit_type: str
    ami_band: int
    count: int
    avg_sf: float
    total_sf: float
    monthly_rent: float
    program_tags: list[str] = []


class ConstraintSlackOut(BaseModel):
    constraint: str
    kind: str
    sense: str  # at_least / at_most
    required: float
    actual: float
    slack: float
    binding: bool
    ami_band: Optional[int] = None
    program: Optional[str] = None


class SensitivityRowOut(BaseModel):
    parameter: str  # Rent or Cost
    change: str
    base_roi: float
    new_roi: float
    roi_delta: float
    still_feasible: bool


class CostAssumptionsOut(BaseModel):
    hard_cost_per_sf: float
    soft_cost_pct: float
    land_cost_per_sf: float
    hard_cost_source: Optional[str] = None
    land_cost_source: Optional[str] = None


class OptimizerResultOut(BaseModel):
    allocations: list[UnitAllocationOut] = []
    constraint_slack: list[ConstraintSlackOut] = []
    sensitivity: list[SensitivityRowOut] = []
    total_units: int
    affordable_unit_count: int
    market_unit_count: int
    total_sf: float
    total_monthly_rent: float
    blended_ami: int
    annual_revenue: float
    total_development_cost: float
    roi_proxy: float
    feasible: bool
    solver_method: str = "heuristic"
    cost_assumptions: Optional[CostAssumptionsOut] = None


class MergedBandOut(BaseModel):
    ami_band: int
    pct: float
    min_units: int
    programs: list[str] = []


class MergedConstraintSetOut(BaseModel):
    max_affordable_pct: float
    merged_affordable_target: int
    band_requirements: list[MergedBandOut] = []
    program_names: list[str] = []


class ProgramPresetOut(BaseModel):
    key: str
    name: str
    description: str
    min_affordable_pct: float
    ami_bands: list[int]
    min_pct_by_band: dict[int, float]
    requires_proportional_bedrooms: bool = False
    weighted_avg_ami_max: Optional[float] = None
    stacking_conflicts: list[str] = []
