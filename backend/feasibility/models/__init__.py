from __future__ import annotations

from feasibility.models.schemas import (
    MergeRequest,
    OptimizerResultOut,
    ScoreRequest,
    SolveRequest,
)

__all__ = ["SolveRequest", "ScoreRequest", "MergeRequest", "OptimizerResultOut"]
