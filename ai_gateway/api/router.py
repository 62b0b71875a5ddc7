from __future__ import annotations

from fastapi import APIRouter

from ai_gateway.api import analysis, controls, harmonic

api_router = APIRouter(prefix="/api")
api_router.include_router(analysis.router)
api_router.include_router(harmonic.router)
api_router.include_router(controls.router)
