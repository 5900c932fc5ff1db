"""
Backend API package initialization.

This package contains the FastAPI routers of the ingress adapter:
- quality_gates: SonarQube quality-gate metrics (POST /kvasir/sonarqube)
- e2e_runs: End-to-end scenario trees (POST /test)

Both are mounted under the versioned prefix /api/v{API_VERSION}.
"""

from fastapi import APIRouter

from gjallarhorn.api.quality_gates import router as quality_gates_router
from gjallarhorn.api.e2e_runs import router as e2e_runs_router

API_VERSION: int = 1
API_PREFIX: str = f"/api/v{API_VERSION}"

# Create main API router
api_router = APIRouter(prefix=API_PREFIX)

api_router.include_router(quality_gates_router, tags=["quality-gates"])
api_router.include_router(e2e_runs_router, tags=["e2e-runs"])

__all__ = [
    "API_VERSION",
    "API_PREFIX",
    "api_router",
    "quality_gates_router",
    "e2e_runs_router",
]
