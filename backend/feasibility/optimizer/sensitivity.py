"""
Sensitivity of the ROI proxy to rent and cost movements.

Eight scenarios, each re-solved from a fresh copy of the base inputs:

  Rent:  +/- market rents, +/- affordable rents
  Cost:  +/- hard cost per SF, +/- land cost per SF

An infeasible shocked solve is retried once with one extra unit (when a
unit total was fixed) and once with slightly more net SF.  The first
feasible retry is reported; otherwise the original infeasible result.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from typing import Optional

from feasibility.optimizer.defaults import SolverConfig
from feasibility.optimizer.rent_limits import scaled_rent_limit_lookup
from feasibility.optimizer.solver import solve
from feasibility.optimizer.types import (
    OptimizerInputs,
    OptimizerResult,
    SensitivityRow,
)

logger = logging.getLogger(__name__)


def _solve_with_relaxation(
    inputs: OptimizerInputs,
    config: SolverConfig,
    label: str,
) -> OptimizerResult:
    result = solve(inputs, config)
    if result.feasible:
        return result

    if inputs.total_units and inputs.total_units > 1:
        relaxed = copy.deepcopy(inputs)
        relaxed.total_units = inputs.total_units + 1
        retried = solve(relaxed, config)
        if retried.feasible:
            logger.info("%s: feasible with %d units", label, relaxed.total_units)
            return retried

    relaxed_sf = copy.deepcopy(inputs)
    relaxed_sf.net_residential_sf = round(
        inputs.net_residential_sf * config.sensitivity_sf_relaxation
    )
    retried_sf = solve(relaxed_sf, config)
    if retried_sf.feasible:
        logger.info("%s: feasible with %s net SF", label, relaxed_sf.net_residential_sf)
        return retried_sf

    logger.warning("%s: no relaxation produced a feasible allocation", label)
    return result


def _row(parameter: str, change: str, base: OptimizerResult, shocked: OptimizerResult) -> SensitivityRow:
    return SensitivityRow(
        parameter=parameter,
        change=change,
        base_roi=base.roi_proxy,
        new_roi=shocked.roi_proxy,
        roi_delta=shocked.roi_proxy - base.roi_proxy,
        still_feasible=shocked.feasible,
    )


def _shock_rents(
    inputs: OptimizerInputs,
    config: SolverConfig,
    factor: float,
    affordable: bool,
) -> tuple[OptimizerInputs, SolverConfig]:
    shocked = copy.deepcopy(inputs)
    for r in shocked.rent_assumptions:
        if (r.ami_band > 0) == affordable:
            r.monthly_rent = round(r.monthly_rent * factor)

    # Regulated rents take precedence for affordable bands, so they move too
    if affordable and config.rent_limit_lookup is not None:
        config = dataclasses.replace(
            config,
            rent_limit_lookup=scaled_rent_limit_lookup(config.rent_limit_lookup, factor),
        )
    return shocked, config


def run_sensitivity(
    base_inputs: OptimizerInputs,
    base_result: OptimizerResult,
    config: Optional[SolverConfig] = None,
) -> list[SensitivityRow]:
    """Re-solve under eight rent/cost shocks and report the ROI change.

    Always returns exactly eight rows, rent shocks first.  ``base_inputs``
    is never mutated.
    """
    if config is None:
        config = SolverConfig.from_settings()

    pct = round(config.sensitivity_shock_pct * 100)
    up = 1 + config.sensitivity_shock_pct
    down = 1 - config.sensitivity_shock_pct
    rows: list[SensitivityRow] = []

    rent_shocks = [
        (f"+{pct}% Market Rents", up, False),
        (f"-{pct}% Market Rents", down, False),
        (f"+{pct}% Affordable Rents", up, True),
        (f"-{pct}% Affordable Rents", down, True),
    ]
    for label, factor, affordable in rent_shocks:
        shocked, shocked_config = _shock_rents(base_inputs, config, factor, affordable)
        result = _solve_with_relaxation(shocked, shocked_config, label)
        rows.append(_row("Rent", label, base_result, result))

    cost_shocks = [
        (f"+{pct}% Hard Costs", "hard_cost_per_sf", up),
        (f"-{pct}% Hard Costs", "hard_cost_per_sf", down),
        (f"+{pct}% Land Costs", "land_cost_per_sf", up),
        (f"-{pct}% Land Costs", "land_cost_per_sf", down),
    ]
    for label, attr, factor in cost_shocks:
        shocked = copy.deepcopy(base_inputs)
        costs = shocked.cost_assumptions
        setattr(costs, attr, getattr(costs, attr) * factor)
        result = _solve_with_relaxation(shocked, config, label)
        rows.append(_row("Cost", label, base_result, result))

    return rows
