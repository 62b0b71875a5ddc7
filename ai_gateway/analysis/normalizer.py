"""Normalize the model's harmonic-pattern JSON into a bounded, predictable shape.

The model is an untrusted, structurally unpredictable source: fields can be missing,
typed wrong, or hold strings where numbers belong. Every field is coerced on its own,
so one bad value never discards the rest of a candidate, and nothing here raises.

Two schemas are kept side by side:

- base: flat price points X/A/B/C/D plus an optional confidence, capped at 2 candidates
  and summarized line by line.
- ranked (v2): pixel-coordinate points, a 0-100 score and Fibonacci ratios; uncapped but
  sorted by score (descending, stable).
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any

POINT_KEYS: tuple[str, ...] = ("X", "A", "B", "C", "D")
RATIO_KEYS: tuple[str, ...] = ("B_XA", "C_AB", "D_XA", "D_BC")

MAX_BASE_CANDIDATES = 2
SCORE_MIN = 0.0
SCORE_MAX = 100.0

NO_PATTERN_SUMMARY = "No clear harmonic pattern was found in the chart."


def coerce_text(value: Any, *, lower: bool = False) -> str:
    """Trimmed string, or "" for anything that is not a string."""
    if not isinstance(value, str):
        return ""
    out = value.strip()
    return out.lower() if lower else out


def coerce_number(value: Any) -> float | None:
    """Finite float parsed from a number or numeric string; None otherwise.

    None means "unknown" downstream, so it must never collapse into 0.
    """
    # bool is an int subclass; true/false is not a price.
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            out = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        s = value.strip()
        # float() also takes "1_000" digit grouping; a JSON number never has it.
        if not s or "_" in s:
            return None
        try:
            out = float(s)
        except ValueError:
            return None
    else:
        return None
    return out if math.isfinite(out) else None


def coerce_notes(value: Any) -> str:
    if not value:
        return ""
    return coerce_text(value)


def _as_mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _pattern_list(payload: Any) -> list[Any]:
    raw = _as_mapping(payload).get("patterns")
    return list(raw) if isinstance(raw, list) else []


def format_number(value: float | None, *, missing: str = "null") -> str:
    """Render like a JS number: 2.0 -> "2", 1e16 -> "10000000000000000", 1e-7 -> "1e-7".

    Plain digits for 1e-6 <= |v| < 1e21, exponent form outside that range. None -> missing.
    """
    if value is None:
        return missing
    if value == 0:
        return "0"
    # repr() is the shortest round-tripping form; Decimal keeps exactly those digits.
    d = Decimal(repr(value)).normalize()
    if 1e-6 <= abs(value) < 1e21:
        return format(d, "f")
    sign, digits, exp = d.as_tuple()
    s = "".join(str(x) for x in digits)
    e = int(exp) + len(s) - 1
    mantissa = s[0] + ("." + s[1:] if len(s) > 1 else "")
    return f"{'-' if sign else ''}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


# ---------------------------------------------------------------------------
# Base variant
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PatternCandidate:
    name: str
    direction: str
    X: float | None
    A: float | None
    B: float | None
    C: float | None
    D: float | None
    confidence: float | None
    notes: str = ""

    @classmethod
    def from_raw(cls, raw: Any) -> "PatternCandidate":
        p = _as_mapping(raw)
        return cls(
            name=coerce_text(p.get("name")),
            direction=coerce_text(p.get("direction"), lower=True),
            X=coerce_number(p.get("X")),
            A=coerce_number(p.get("A")),
            B=coerce_number(p.get("B")),
            C=coerce_number(p.get("C")),
            D=coerce_number(p.get("D")),
            confidence=coerce_number(p.get("confidence")),
            notes=coerce_notes(p.get("notes")),
        )

    def summary_line(self, index: int) -> str:
        points = ", ".join(f"{k}={format_number(getattr(self, k))}" for k in POINT_KEYS)
        conf = format_number(self.confidence, missing="")
        return f"{index}) {self.name} ({self.direction}) | {points} | conf={conf}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PatternReport:
    patterns: list[PatternCandidate]
    summary: str

    def to_dict(self) -> dict[str, Any]:
        return {"patterns": [p.to_dict() for p in self.patterns], "summary": self.summary}


def summarize(patterns: list[PatternCandidate]) -> str:
    if not patterns:
        return NO_PATTERN_SUMMARY
    return "\n".join(p.summary_line(i) for i, p in enumerate(patterns, start=1))


def normalize_patterns(payload: Any) -> PatternReport:
    """Base variant: first two candidates, source order, plus a summary line each."""
    candidates = [PatternCandidate.from_raw(p) for p in _pattern_list(payload)[:MAX_BASE_CANDIDATES]]
    return PatternReport(patterns=candidates, summary=summarize(candidates))


# ---------------------------------------------------------------------------
# Ranked (v2) variant
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PixelPoint:
    x: float | None
    y: float | None

    @classmethod
    def from_raw(cls, raw: Any) -> "PixelPoint | None":
        if not isinstance(raw, dict):
            return None
        return cls(x=coerce_number(raw.get("x")), y=coerce_number(raw.get("y")))


def clamp_score(value: Any) -> float | None:
    score = coerce_number(value)
    if score is None:
        return None
    return min(SCORE_MAX, max(SCORE_MIN, score))


@dataclass(frozen=True)
class RankedPatternCandidate:
    name: str
    direction: str
    points: dict[str, PixelPoint | None]
    score: float | None
    ratios: dict[str, float | None] = field(default_factory=dict)
    notes: str = ""

    @classmethod
    def from_raw(cls, raw: Any) -> "RankedPatternCandidate":
        p = _as_mapping(raw)
        points = _as_mapping(p.get("points"))
        ratios = _as_mapping(p.get("ratios"))
        return cls(
            name=coerce_text(p.get("name")),
            direction=coerce_text(p.get("direction"), lower=True),
            points={k: PixelPoint.from_raw(points.get(k)) for k in POINT_KEYS},
            score=clamp_score(p.get("score")),
            ratios={k: coerce_number(ratios.get(k)) for k in RATIO_KEYS},
            notes=coerce_notes(p.get("notes")),
        )

    @property
    def rank_key(self) -> float:
        return self.score if self.score is not None else 0.0

    def summary_line(self, index: int) -> str:
        return f"{index}) {self.name} ({self.direction}) | score={format_number(self.score)}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RankedPatternReport:
    patterns: list[RankedPatternCandidate]
    summary: str

    def to_dict(self) -> dict[str, Any]:
        return {"patterns": [p.to_dict() for p in self.patterns], "summary": self.summary}


def rank(candidates: list[RankedPatternCandidate]) -> list[RankedPatternCandidate]:
    # sorted() is stable: equal scores keep their input order.
    return sorted(candidates, key=lambda c: c.rank_key, reverse=True)


def normalize_ranked_patterns(payload: Any) -> RankedPatternReport:
    """v2 variant: every candidate, ordered by score; keeps the model's summary if it gave one."""
    candidates = rank([RankedPatternCandidate.from_raw(p) for p in _pattern_list(payload)])
    summary = coerce_text(_as_mapping(payload).get("summary"))
    if not summary:
        if candidates:
            summary = "\n".join(c.summary_line(i) for i, c in enumerate(candidates, start=1))
        else:
            summary = NO_PATTERN_SUMMARY
    return RankedPatternReport(patterns=candidates, summary=summary)
