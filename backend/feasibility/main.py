from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feasibility.config import settings
from feasibility.api.optimizer import router as optimizer_router
from feasibility.optimizer.programs import list_program_keys
from feasibility.optimizer.rent_limits import RENT_SCHEDULE_YEAR

app = FastAPI(
    title="Unit-Mix Feasibility Optimizer",
    description=(
        "Allocate residential units across unit types and AMI bands "
        "under stacked affordable-housing program constraints, and "
        "measure how the result responds to rent and cost movements."
    ),
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(optimizer_router)


@app.get("/")
async def root():
    return {
        "name": "Unit-Mix Feasibility Optimizer",
        "version": "1.0.0",
        "endpoints": {
            "api_docs": "/docs",
            "health": "/health",
            "solve": "POST /api/v1/optimizer/solve",
            "sensitivity": "POST /api/v1/optimizer/sensitivity",
            "score": "POST /api/v1/optimizer/score",
            "merge": "POST /api/v1/optimizer/merge",
            "programs": "GET /api/v1/optimizer/programs",
        },
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "version": "1.0.0",
        "rent_schedule_year": settings.rent_schedule_year,
        "bundled_rent_schedule": RENT_SCHEDULE_YEAR,
        "program_presets": len(list_program_keys()),
    }
