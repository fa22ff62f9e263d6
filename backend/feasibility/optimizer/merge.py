"""
Merge overlapping affordable-housing program constraints.

Programs are authored independently (MIH, 485-x, UAP, 467-m, ...).  When
several apply to the same building the requirements are merged, not summed:

  - Affordable share:  the strictest program's floor (MAX).  A unit that
    satisfies the strictest floor satisfies every program.
  - Per-band shares:   MAX across the programs naming that band.  If the
    merged shares add up to more than 100% they are scaled down
    proportionally.
  - Unit counts:       largest-remainder apportionment of the merged
    affordable target across bands, so the band minimums add up exactly.
"""

from __future__ import annotations

import math

from feasibility.optimizer.types import (
    MergedBandRequirement,
    MergedConstraintSet,
    ProgramConstraint,
)
from feasibility.optimizer.unit_math import calc_required_affordable_units


def largest_remainder(
    total: int,
    weights: list[float],
    min_one: bool = False,
) -> list[int]:
    """Apportion ``total`` integer units across ``weights``.

    Each share is floored, then the units still missing go to the shares
    with the largest fractional remainder (ties keep input order).  Weights
    are treated as relative shares; they do not need to sum to 1.

    With ``min_one`` every positive weight receives at least one unit,
    provided ``total`` covers one unit each.  If those floors overshoot
    ``total``, units are taken back from the smallest remainders first,
    never below a floor.  The result always sums to ``total``.
    """
    if total < 0:
        raise ValueError(f"Cannot apportion a negative total: {total}")
    if not weights:
        return []

    weight_sum = sum(w for w in weights if w > 0)
    if weight_sum <= 0:
        return [0] * len(weights)
    if abs(weight_sum - 1.0) > 1e-9:
        shares = [max(w, 0) / weight_sum for w in weights]
    else:
        shares = [max(w, 0) for w in weights]

    raw = [s * total for s in shares]
    positive = sum(1 for s in shares if s > 0)
    min_one = min_one and total >= positive
    floors = [1 if (min_one and s > 0) else 0 for s in shares]
    counts = [max(lo, math.floor(r)) for lo, r in zip(floors, raw)]

    order = sorted(range(len(raw)), key=lambda i: raw[i] - counts[i], reverse=True)
    deficit = total - sum(counts)
    for i in order:
        if deficit <= 0:
            break
        if shares[i] <= 0:
            continue
        counts[i] += 1
        deficit -= 1

    # floors never sum past total, so this terminates
    while deficit < 0:
        i = min(
            (j for j in range(len(counts)) if counts[j] > floors[j]),
            key=lambda j: raw[j] - counts[j],
        )
        counts[i] -= 1
        deficit += 1

    return counts


def merge_program_constraints(
    constraints: list[ProgramConstraint],
    est_total_units: int,
) -> MergedConstraintSet:
    """Collapse a list of program constraints into one normalized target.

    Args:
        constraints: Program constraints that apply to the building
        est_total_units: Total unit count the target is computed against

    Returns MergedConstraintSet; all-zero when no programs apply.
    """
    if not constraints:
        return MergedConstraintSet()

    max_pct = max(c.min_affordable_pct for c in constraints)
    target = calc_required_affordable_units(est_total_units, max_pct)

    # band -> {"pct": float, "programs": [str]}, in first-seen order
    bands: dict[int, dict] = {}
    for pc in constraints:
        for band in pc.ami_bands:
            band_pct = pc.min_pct_by_band.get(band, 0.0)
            entry = bands.get(band)
            if entry is None:
                bands[band] = {"pct": band_pct, "programs": [pc.program]}
                continue
            entry["pct"] = max(entry["pct"], band_pct)
            if pc.program not in entry["programs"]:
                entry["programs"].append(pc.program)

    total_pct = sum(entry["pct"] for entry in bands.values())
    if total_pct > 1.0:
        for entry in bands.values():
            entry["pct"] = entry["pct"] / total_pct

    band_keys = list(bands)
    min_units = largest_remainder(
        target, [bands[b]["pct"] for b in band_keys], min_one=True,
    )

    return MergedConstraintSet(
        max_affordable_pct=max_pct,
        merged_affordable_target=target,
        band_requirements=[
            MergedBandRequirement(
                ami_band=band,
                pct=bands[band]["pct"],
                min_units=units,
                programs=list(bands[band]["programs"]),
            )
            for band, units in zip(band_keys, min_units)
        ],
        program_names=[c.program for c in constraints],
    )
