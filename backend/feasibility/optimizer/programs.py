"""
Preset affordable-housing program constraints.

Each preset is the optimizer-facing rendering of one NYC program option:

  MIH Option 1         25% at bands 40/60/80 (avg ~60% AMI), proportional bedrooms
  MIH Option 2         30% at bands 60/80/100 (avg ~80% AMI), proportional bedrooms
  MIH Deep Affordability
                       20% at bands 30/40/50 (avg ~40% AMI), proportional bedrooms
  MIH Workforce        30% at bands 100/130 (avg ~115% AMI), proportional bedrooms
  485-x Option A/B     25% / 20% at bands 60/80/100, proportional bedrooms
  UAP                  20% at bands 50/70, half of affordable units 2BR+,
                       minimum unit sizes
  467-m                25% at bands 40/80/100, weighted average <= 80% AMI

Tax-exemption programs do not stack with each other (485-x, 467-m, 421-a);
``select_program_constraints`` drops a preset that conflicts with one
already selected.

Usage::

    from feasibility.optimizer.programs import select_program_constraints
    constraints = select_program_constraints(["mih_option_1", "485x_b"])
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass

from feasibility.optimizer.types import BedroomMixRule, ProgramConstraint

logger = logging.getLogger(__name__)


UAP_UNIT_MIN_SIZES: dict[str, float] = {
    "Studio": 400,
    "1BR": 575,
    "2BR": 750,
    "3BR": 1000,
}

UAP_BEDROOM_RULE = BedroomMixRule(
    min_2br_plus_pct=0.50,
    distribution={"Studio": 0.10, "1BR": 0.25, "2BR": 0.40, "3BR": 0.25},
)

STACKING_CONFLICTS: dict[str, list[str]] = {
    "467-m": ["421-a", "485-x"],
    "485-x": ["421-a", "467-m"],
    "421-a": ["485-x", "467-m"],
}


@dataclass
class ProgramPreset:
    """A named program option and the constraint it imposes."""
    key: str
    name: str
    description: str
    constraint: ProgramConstraint

    def to_dict(self) -> dict:
        c = self.constraint
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "min_affordable_pct": c.min_affordable_pct,
            "ami_bands": list(c.ami_bands),
            "min_pct_by_band": dict(c.min_pct_by_band),
            "requires_proportional_bedrooms": c.requires_proportional_bedrooms,
            "weighted_avg_ami_max": c.weighted_avg_ami_max,
            "stacking_conflicts": list(c.stacking_conflicts),
        }


# ──────────────────────────────────────────────────────────────────
# REGISTRY
# ──────────────────────────────────────────────────────────────────

PROGRAM_PRESETS: dict[str, ProgramPreset] = {}


def register_preset(preset: ProgramPreset) -> None:
    PROGRAM_PRESETS[preset.key] = preset


def _conflicts_for(program: str) -> list[str]:
    for prefix, conflicts in STACKING_CONFLICTS.items():
        if program.startswith(prefix):
            return list(conflicts)
    return []


def _preset(
    key: str,
    name: str,
    description: str,
    min_affordable_pct: float,
    bands: dict[int, float],
    **kwargs,
) -> None:
    register_preset(ProgramPreset(
        key=key,
        name=name,
        description=description,
        constraint=ProgramConstraint(
            program=name,
            min_affordable_pct=min_affordable_pct,
            ami_bands=list(bands),
            min_pct_by_band=dict(bands),
            stacking_conflicts=_conflicts_for(name),
            **kwargs,
        ),
    ))


_preset(
    "mih_option_1", "MIH Option 1",
    "25% of units affordable at an average of 60% AMI (40%-80%)",
    0.25, {40: 0.10, 60: 0.50, 80: 0.40},
    requires_proportional_bedrooms=True,
)
_preset(
    "mih_option_2", "MIH Option 2",
    "30% of units affordable at an average of 80% AMI (60%-115%)",
    0.30, {60: 0.25, 80: 0.50, 100: 0.25},
    requires_proportional_bedrooms=True,
)
_preset(
    "mih_deep_affordability", "MIH Deep Affordability",
    "20% of units affordable at an average of 40% AMI",
    0.20, {30: 0.25, 40: 0.50, 50: 0.25},
    requires_proportional_bedrooms=True,
)
_preset(
    "mih_workforce", "MIH Workforce",
    "30% of units affordable at an average of 115% AMI",
    0.30, {100: 0.50, 130: 0.50},
    requires_proportional_bedrooms=True,
)
_preset(
    "485x_a", "485-x Option A",
    "Large rentals: 25% of units affordable at a weighted 80% AMI",
    0.25, {60: 0.30, 80: 0.40, 100: 0.30},
    requires_proportional_bedrooms=True,
)
_preset(
    "485x_b", "485-x Option B",
    "Mid-size rentals: 20% of units affordable at a weighted 80% AMI",
    0.20, {60: 0.30, 80: 0.40, 100: 0.30},
    requires_proportional_bedrooms=True,
)
_preset(
    "uap", "UAP",
    "Universal Affordability Preference: 20% of units at 50%-70% AMI",
    0.20, {50: 0.50, 70: 0.50},
    bedroom_mix=UAP_BEDROOM_RULE,
    unit_min_sizes=UAP_UNIT_MIN_SIZES,
)
_preset(
    "467m", "467-m",
    "Office conversion exemption: 25% of units at a weighted 80% AMI",
    0.25, {40: 0.20, 80: 0.40, 100: 0.40},
    weighted_avg_ami_max=80,
)


def list_program_keys() -> list[str]:
    return list(PROGRAM_PRESETS)


def get_program_constraint(key: str) -> ProgramConstraint:
    """Fresh copy of a preset's constraint.

    Raises KeyError for an unknown key.
    """
    return copy.deepcopy(PROGRAM_PRESETS[key].constraint)


def select_program_constraints(keys: list[str]) -> list[ProgramConstraint]:
    """Constraints for ``keys`` in order, skipping presets that cannot stack.

    A preset is dropped when one of its stacking conflicts names a program
    selected before it.
    """
    selected: list[ProgramConstraint] = []
    for key in keys:
        constraint = get_program_constraint(key)
        clash = next(
            (s.program for s in selected
             if any(c.lower() in s.program.lower() for c in constraint.stacking_conflicts)),
            None,
        )
        if clash:
            logger.info("Skipping %s: does not stack with %s", constraint.program, clash)
            continue
        selected.append(constraint)
    return selected
