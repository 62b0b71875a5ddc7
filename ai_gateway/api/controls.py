from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ai_gateway.core.errors import GatewayError
from ai_gateway.core.flags import FEATURES, clear_override, describe_flags, set_override

router = APIRouter(prefix="/controls", tags=["controls"])


class FeatureToggleRequest(BaseModel):
    enabled: bool = Field(...)


def _known(name: str) -> str:
    if name not in FEATURES:
        raise GatewayError(404, f"Unknown feature: {name}")
    return name


@router.get("/status")
def status() -> dict[str, Any]:
    return {"ok": True, "features": describe_flags()}


@router.post("/features/{name}")
def set_feature(name: str, req: FeatureToggleRequest) -> dict[str, Any]:
    set_override(_known(name), bool(req.enabled), actor="api")
    return {"ok": True, "features": describe_flags()}


@router.delete("/features/{name}")
def clear_feature(name: str) -> dict[str, Any]:
    clear_override(_known(name), actor="api")
    return {"ok": True, "features": describe_flags()}
