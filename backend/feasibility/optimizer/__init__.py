from __future__ import annotations

from feasibility.optimizer.constraints import evaluate_constraints, is_feasible
from feasibility.optimizer.merge import merge_program_constraints
from feasibility.optimizer.sensitivity import run_sensitivity
from feasibility.optimizer.solver import solve

__all__ = [
    "solve",
    "run_sensitivity",
    "evaluate_constraints",
    "is_feasible",
    "merge_program_constraints",
]
