"""
Data records shared by every stage of the unit-mix optimizer.

All records are plain dataclasses created fresh for each ``solve`` call.
Nothing here holds state across calls.

Slack sign convention: ``slack >= 0`` means satisfied.  Each slack carries
its ``sense`` explicitly:

  AT_LEAST:  slack = actual - required   (affordable %, band share, 2BR+ share)
  AT_MOST:   slack = required - actual   (total SF, weighted AMI, proportionality)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ──────────────────────────────────────────────────────────────────
# INPUT RECORDS
# ──────────────────────────────────────────────────────────────────

@dataclass
class UnitTypeConfig:
    """A catalog entry: one permissible unit type and its size range."""
    type: str
    min_sf: float
    max_sf: float

    @property
    def avg_sf(self) -> float:
        return (self.min_sf + self.max_sf) / 2

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "min_sf": self.min_sf,
            "max_sf": self.max_sf,
            "avg_sf": self.avg_sf,
        }


@dataclass
class RentAssumption:
    unit_type: str
    ami_band: int  # 0 = market rate
    monthly_rent: float

    def to_dict(self) -> dict:
        return {
            "unit_type": self.unit_type,
            "ami_band": self.ami_band,
            "monthly_rent": self.monthly_rent,
        }


@dataclass
class CostAssumptions:
    hard_cost_per_sf: float
    soft_cost_pct: float
    land_cost_per_sf: float
    hard_cost_source: Optional[str] = None
    land_cost_source: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "hard_cost_per_sf": self.hard_cost_per_sf,
            "soft_cost_pct": self.soft_cost_pct,
            "land_cost_per_sf": self.land_cost_per_sf,
            "hard_cost_source": self.hard_cost_source,
            "land_cost_source": self.land_cost_source,
        }


@dataclass
class BedroomMixRule:
    min_2br_plus_pct: float
    distribution: dict[str, float] = field(default_factory=dict)


@dataclass
class ProgramConstraint:
    """Requirements of one affordable-housing program, as authored."""
    program: str
    min_affordable_pct: float  # 0-1
    ami_bands: list[int] = field(default_factory=list)
    min_pct_by_band: dict[int, float] = field(default_factory=dict)
    requires_proportional_bedrooms: bool = False
    bedroom_mix: Optional[BedroomMixRule] = None
    unit_min_sizes: Optional[dict[str, float]] = None
    weighted_avg_ami_max: Optional[float] = None
    stacking_conflicts: list[str] = field(default_factory=list)


@dataclass
class OptimizerInputs:
    net_residential_sf: float
    allowed_unit_types: list[UnitTypeConfig]
    rent_assumptions: list[RentAssumption]
    cost_assumptions: CostAssumptions
    program_constraints: list[ProgramConstraint] = field(default_factory=list)
    total_units: Optional[int] = None


# ──────────────────────────────────────────────────────────────────
# ALLOCATION
# ──────────────────────────────────────────────────────────────────

@dataclass
class UnitAllocation:
    """A block of identical units sharing a type and an AMI band.

    ``total_sf`` is derived so it always equals ``count * avg_sf``.
    """
    unit_type: str
    ami_band: int
    count: int
    avg_sf: float
    monthly_rent: float
    program_tags: list[str] = field(default_factory=list)

    @property
    def total_sf(self) -> float:
        return self.count * self.avg_sf

    @property
    def is_affordable(self) -> bool:
        return self.ami_band > 0

    @property
    def key(self) -> tuple[str, int]:
        return (self.unit_type, self.ami_band)

    def to_dict(self) -> dict:
        return {
            "unit_type": self.unit_type,
            "ami_band": self.ami_band,
            "count": self.count,
            "avg_sf": self.avg_sf,
            "total_sf": self.total_sf,
            "monthly_rent": self.monthly_rent,
            "program_tags": list(self.program_tags),
        }


# ──────────────────────────────────────────────────────────────────
# CONSTRAINT SLACK
# ──────────────────────────────────────────────────────────────────

class SlackKind(str, Enum):
    TOTAL_SF = "total_sf"
    AFFORDABLE_PCT = "affordable_pct"
    AMI_BAND = "ami_band"
    PROPORTIONALITY = "proportionality"
    TWO_BR_PLUS = "two_br_plus"
    UNIT_MIN_SIZE = "unit_min_size"
    WEIGHTED_AMI = "weighted_ami"


class Sense(str, Enum):
    AT_LEAST = "at_least"
    AT_MOST = "at_most"


@dataclass
class ConstraintSlack:
    constraint: str
    kind: SlackKind
    sense: Sense
    required: float
    actual: float
    slack: float
    binding: bool
    ami_band: Optional[int] = None
    program: Optional[str] = None

    @classmethod
    def measure(
        cls,
        constraint: str,
        kind: SlackKind,
        sense: Sense,
        required: float,
        actual: float,
        binding_tolerance: float,
        **extra,
    ) -> "ConstraintSlack":
        """Build a slack whose sign follows ``sense``."""
        if sense is Sense.AT_LEAST:
            slack = actual - required
        else:
            slack = required - actual
        return cls(
            constraint=constraint,
            kind=kind,
            sense=sense,
            required=required,
            actual=actual,
            slack=slack,
            binding=abs(actual - required) < binding_tolerance,
            **extra,
        )

    def to_dict(self) -> dict:
        return {
            "constraint": self.constraint,
            "kind": self.kind.value,
            "sense": self.sense.value,
            "required": self.required,
            "actual": self.actual,
            "slack": self.slack,
            "binding": self.binding,
            "ami_band": self.ami_band,
            "program": self.program,
        }


# ──────────────────────────────────────────────────────────────────
# MERGED CONSTRAINTS
# ──────────────────────────────────────────────────────────────────

@dataclass
class MergedBandRequirement:
    ami_band: int
    pct: float
    min_units: int
    programs: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "ami_band": self.ami_band,
            "pct": self.pct,
            "min_units": self.min_units,
            "programs": list(self.programs),
        }


@dataclass
class MergedConstraintSet:
    max_affordable_pct: float = 0.0
    merged_affordable_target: int = 0
    band_requirements: list[MergedBandRequirement] = field(default_factory=list)
    program_names: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "max_affordable_pct": self.max_affordable_pct,
            "merged_affordable_target": self.merged_affordable_target,
            "band_requirements": [b.to_dict() for b in self.band_requirements],
            "program_names": list(self.program_names),
        }


# ──────────────────────────────────────────────────────────────────
# RESULTS
# ──────────────────────────────────────────────────────────────────

@dataclass
class SensitivityRow:
    parameter: str  # "Rent" or "Cost"
    change: str     # e.g. "+10% Market Rents"
    base_roi: float
    new_roi: float
    roi_delta: float
    still_feasible: bool

    def to_dict(self) -> dict:
        return {
            "parameter": self.parameter,
            "change": self.change,
            "base_roi": self.base_roi,
            "new_roi": self.new_roi,
            "roi_delta": self.roi_delta,
            "still_feasible": self.still_feasible,
        }


@dataclass
class OptimizerResult:
    allocations: list[UnitAllocation]
    constraint_slack: list[ConstraintSlack]
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
    sensitivity: list[SensitivityRow] = field(default_factory=list)
    solver_method: str = "heuristic"

    @classmethod
    def empty(cls) -> "OptimizerResult":
        """Explicit result for degenerate inputs (no area or no catalog)."""
        return cls(
            allocations=[],
            constraint_slack=[],
            total_units=0,
            affordable_unit_count=0,
            market_unit_count=0,
            total_sf=0,
            total_monthly_rent=0,
            blended_ami=0,
            annual_revenue=0,
            total_development_cost=0,
            roi_proxy=0,
            feasible=False,
        )

    def to_dict(self) -> dict:
        return {
            "allocations": [a.to_dict() for a in self.allocations],
            "constraint_slack": [s.to_dict() for s in self.constraint_slack],
            "sensitivity": [r.to_dict() for r in self.sensitivity],
            "total_units": self.total_units,
            "affordable_unit_count": self.affordable_unit_count,
            "market_unit_count": self.market_unit_count,
            "total_sf": self.total_sf,
            "total_monthly_rent": self.total_monthly_rent,
            "blended_ami": self.blended_ami,
            "annual_revenue": self.annual_revenue,
            "total_development_cost": self.total_development_cost,
            "roi_proxy": self.roi_proxy,
            "feasible": self.feasible,
            "solver_method": self.solver_method,
        }
