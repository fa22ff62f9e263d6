from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Search budgets
    repair_max_iterations: int = 30
    hill_climb_max_iterations: int = 200

    # Constraint tolerances
    proportionality_tolerance: float = 0.10
    feasibility_tolerance: float = 0.001

    # Rent fallbacks
    default_monthly_rent: float = 2000
    rent_schedule_year: int = 2025

    # Sensitivity
    sensitivity_shock_pct: float = 0.10
    sensitivity_sf_relaxation: float = 1.02

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "UNITMIX_"}


settings = Settings()
