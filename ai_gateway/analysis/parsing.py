from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from ai_gateway.analysis.normalizer import NO_PATTERN_SUMMARY

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


class MalformedModelResponse(ValueError):
    def __init__(self, raw: str) -> None:
        super().__init__("model response is not valid JSON")
        self.raw = raw


class MalformedResponsePolicy(str, Enum):
    """How a caller reports a model reply that could not be parsed as JSON."""

    STRICT_ERROR = "strict_error"
    SOFT_WARNING = "soft_warning"

    @classmethod
    def parse(cls, value: "str | MalformedResponsePolicy") -> "MalformedResponsePolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown malformed-response policy: {value!r}") from None


def strip_code_fence(text: str) -> str:
    s = (text or "").strip()
    m = _FENCE_RE.match(s)
    return m.group(1).strip() if m else s


def parse_model_json(text: str | None) -> Any:
    raw = text or ""
    body = strip_code_fence(raw)
    if not body:
        raise MalformedModelResponse(raw)
    try:
        return json.loads(body)
    except (json.JSONDecodeError, RecursionError):
        # Pathologically nested replies are as unusable as invalid ones.
        raise MalformedModelResponse(raw) from None


def malformed_response(policy: MalformedResponsePolicy, raw: str) -> tuple[int, dict[str, Any]]:
    """Status code and body for an unparseable model reply under the given policy."""
    if policy is MalformedResponsePolicy.STRICT_ERROR:
        return 502, {"error": "The model returned a response that is not valid JSON.", "raw": raw}
    return 200, {
        "patterns": [],
        "summary": NO_PATTERN_SUMMARY,
        "warning": "The model response could not be parsed as JSON; returning the raw text.",
        "raw": raw,
    }
