from __future__ import annotations

import threading
from dataclasses import dataclass

from loguru import logger

from ai_gateway.core.settings import settings

# Feature name -> settings attribute holding its configured default.
FEATURES: dict[str, str] = {
    "harmonic_v2": "HARMONIC_V2_ENABLED",
}

_lock = threading.Lock()
_overrides: dict[str, bool] = {}


@dataclass(frozen=True)
class FeatureFlags:
    harmonic_v2: bool


def _configured(name: str) -> bool:
    return bool(getattr(settings, FEATURES[name], False))


def resolve_flags() -> FeatureFlags:
    """Resolve flags for the current request.

    Runtime overrides win over configuration. Nothing is cached, so toggling either
    source takes effect on the next request.
    """

    with _lock:
        overrides = dict(_overrides)
    values = {name: overrides.get(name, _configured(name)) for name in FEATURES}
    return FeatureFlags(**values)


def describe_flags() -> dict[str, dict[str, object]]:
    with _lock:
        overrides = dict(_overrides)
    out: dict[str, dict[str, object]] = {}
    for name in FEATURES:
        overridden = name in overrides
        out[name] = {
            "enabled": overrides[name] if overridden else _configured(name),
            "source": "override" if overridden else "config",
        }
    return out


def set_override(name: str, enabled: bool, *, actor: str = "api") -> None:
    if name not in FEATURES:
        raise KeyError(name)
    with _lock:
        _overrides[name] = bool(enabled)
    logger.info("feature {name} override -> {enabled} (actor={actor})", name=name, enabled=bool(enabled), actor=actor)


def clear_override(name: str, *, actor: str = "api") -> None:
    if name not in FEATURES:
        raise KeyError(name)
    with _lock:
        _overrides.pop(name, None)
    logger.info("feature {name} override cleared (actor={actor})", name=name, actor=actor)


def reset_overrides() -> None:
    with _lock:
        _overrides.clear()
