"""
Unit-mix optimizer API.

Provides endpoints for:
  - Solving a unit mix for a building (optionally with sensitivity rows)
  - Scoring an existing unit mix against the same programs
  - Previewing how several programs merge into one affordable target
  - Listing the preset program constraints
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from feasibility.models.schemas import (
    MergedConstraintSetOut,
    MergeRequest,
    OptimizerResultOut,
    ProgramPresetOut,
    ScoreRequest,
    SolveRequest,
)
from feasibility.optimizer import merge_program_constraints, run_sensitivity, solve
from feasibility.optimizer.defaults import SolverConfig
from feasibility.optimizer.programs import PROGRAM_PRESETS, select_program_constraints
from feasibility.optimizer.scenario_builder import build_result_from_unit_mix
from feasibility.optimizer.types import ProgramConstraint


router = APIRouter(prefix="/api/v1/optimizer", tags=["optimizer"])


def _presets(keys: list[str]) -> list[ProgramConstraint]:
    unknown = [k for k in keys if k not in PROGRAM_PRESETS]
    if unknown:
        raise HTTPException(
            status_code=404, detail=f"Unknown program preset(s): {', '.join(unknown)}"
        )
    return select_program_constraints(keys)


@router.post("/solve", response_model=OptimizerResultOut)
def solve_unit_mix(request: SolveRequest):
    """Solve the unit mix without sensitivity analysis."""
    inputs = request.to_inputs(_presets(request.program_keys))
    result = solve(inputs, SolverConfig.from_settings())
    return {**result.to_dict(), "cost_assumptions": inputs.cost_assumptions.to_dict()}


@router.post("/sensitivity", response_model=OptimizerResultOut)
def solve_with_sensitivity(request: SolveRequest):
    """Solve the unit mix and attach the eight rent/cost sensitivity rows."""
    config = SolverConfig.from_settings()
    inputs = request.to_inputs(_presets(request.program_keys))
    result = solve(inputs, config)
    result.sensitivity = run_sensitivity(inputs, result, config)
    return {**result.to_dict(), "cost_assumptions": inputs.cost_assumptions.to_dict()}


@router.post("/merge", response_model=MergedConstraintSetOut)
def merge_programs(request: MergeRequest):
    """Merged affordable target and band minimums for a set of programs."""
    constraints = _presets(request.program_keys) + [
        pc.to_constraint() for pc in request.program_constraints
    ]
    return merge_program_constraints(constraints, request.est_total_units).to_dict()


@router.get("/programs", response_model=list[ProgramPresetOut])
def list_programs():
    return [preset.to_dict() for preset in PROGRAM_PRESETS.values()]


@router.post("/score", response_model=OptimizerResultOut)
def score_unit_mix(request: ScoreRequest):
    """Score an existing unit mix (records or per-bedroom totals) without solving."""
    costs = request.costs()
    result = build_result_from_unit_mix(
        request.records(),
        request.totals_by_bedroom_type,
        request.net_residential_sf,
        request.rents(),
        costs,
        request.constraints(_presets(request.program_keys)),
        SolverConfig.from_settings(),
    )
    return {**result.to_dict(), "cost_assumptions": costs.to_dict()}
