from __future__ import annotations

import pytest

from ai_gateway.analysis.normalizer import (
    NO_PATTERN_SUMMARY,
    coerce_number,
    coerce_text,
    format_number,
    normalize_patterns,
    normalize_ranked_patterns,
)


def test_gartley_end_to_end():
    payload = {
        "patterns": [
            {"name": "Gartley", "direction": "Bullish", "X": "1.5", "A": 2, "B": None, "C": 3, "D": 4, "confidence": "0.8"}
        ]
    }
    report = normalize_patterns(payload)

    assert [p.to_dict() for p in report.patterns] == [
        {
            "name": "Gartley",
            "direction": "bullish",
            "X": 1.5,
            "A": 2,
            "B": None,
            "C": 3,
            "D": 4,
            "confidence": 0.8,
            "notes": "",
        }
    ]
    assert report.summary == "1) Gartley (bullish) | X=1.5, A=2, B=null, C=3, D=4 | conf=0.8"


@pytest.mark.parametrize(
    "payload",
    [
        {"patterns": []},
        {},
        {"patterns": None},
        {"patterns": "Gartley"},
        {"patterns": {"name": "Bat"}},
        None,
        "not a dict",
        [1, 2, 3],
    ],
)
def test_missing_or_malformed_patterns_give_fallback(payload):
    report = normalize_patterns(payload)
    assert report.patterns == []
    assert report.summary == NO_PATTERN_SUMMARY
    assert report.to_dict() == {"patterns": [], "summary": NO_PATTERN_SUMMARY}


def test_base_variant_keeps_first_two_in_order():
    payload = {"patterns": [{"name": f"P{i}", "X": i} for i in range(5)]}
    report = normalize_patterns(payload)

    assert [p.name for p in report.patterns] == ["P0", "P1"]
    assert report.summary.splitlines() == [
        "1) P0 () | X=0, A=null, B=null, C=null, D=null | conf=",
        "2) P1 () | X=1, A=null, B=null, C=null, D=null | conf=",
    ]


def test_bad_numbers_become_none_not_zero():
    payload = {"patterns": [{"X": "abc", "A": "", "B": float("nan"), "C": "inf", "D": True, "confidence": [0.5]}]}
    p = normalize_patterns(payload).patterns[0]

    assert (p.X, p.A, p.B, p.C, p.D, p.confidence) == (None, None, None, None, None, None)


def test_explicit_zero_survives():
    p = normalize_patterns({"patterns": [{"X": 0, "confidence": "0"}]}).patterns[0]
    assert p.X == 0.0
    assert p.confidence == 0.0
    assert p.summary_line(1).endswith("| conf=0")


def test_direction_is_trimmed_and_lowercased():
    p = normalize_patterns({"patterns": [{"name": "  Bat ", "direction": "  Bullish  "}]}).patterns[0]
    assert p.name == "Bat"
    assert p.direction == "bullish"


def test_non_string_text_fields_become_empty():
    p = normalize_patterns({"patterns": [{"name": 42, "direction": None, "notes": 0}]}).patterns[0]
    assert p.name == ""
    assert p.direction == ""
    assert p.notes == ""


def test_non_dict_candidate_is_kept_with_defaults():
    report = normalize_patterns({"patterns": ["junk", {"name": "Crab", "notes": "clean PRZ"}]})

    assert len(report.patterns) == 2
    assert report.patterns[0].name == ""
    assert report.patterns[0].X is None
    assert report.patterns[1].notes == "clean PRZ"


def test_coercion_helpers():
    assert coerce_number(" 12.5 ") == 12.5
    assert coerce_number(7) == 7.0
    assert coerce_number(10**400) is None
    assert coerce_number({"v": 1}) is None
    assert coerce_text("  Bearish ", lower=True) == "bearish"
    assert coerce_text(3.0) == ""
    assert format_number(None) == "null"
    assert format_number(None, missing="") == ""
    assert format_number(2.0) == "2"
    assert format_number(-0.618) == "-0.618"


def _scored(*scores):
    return {"patterns": [{"name": f"P{i}", "score": s} for i, s in enumerate(scores)]}


def test_ranked_orders_by_score_and_is_stable():
    report = normalize_ranked_patterns(_scored(30, 90, 90, 10))

    assert [(p.name, p.score) for p in report.patterns] == [("P1", 90), ("P2", 90), ("P0", 30), ("P3", 10)]


def test_ranked_missing_score_sorts_as_zero_but_stays_none():
    report = normalize_ranked_patterns(_scored(None, "abc", 5, 0))

    assert [p.name for p in report.patterns] == ["P2", "P0", "P1", "P3"]
    assert report.patterns[1].score is None
    assert report.patterns[2].score is None
    assert report.patterns[3].score == 0.0


def test_ranked_is_uncapped_and_scores_are_clamped():
    report = normalize_ranked_patterns(_scored(150, -20, 50, 60, 70))

    assert len(report.patterns) == 5
    assert report.patterns[0].score == 100.0
    assert report.patterns[-1].score == 0.0
    scores = [p.rank_key for p in report.patterns]
    assert scores == sorted(scores, reverse=True)


def test_ranked_points_and_ratios():
    payload = {
        "patterns": [
            {
                "name": "Butterfly",
                "direction": " BEARISH",
                "points": {
                    "X": {"x": 10, "y": "200"},
                    "A": {"x": "bad", "y": 120},
                    "B": [1, 2],
                },
                "ratios": {"B_XA": "0.786", "D_XA": 1.27, "D_BC": "n/a"},
                "score": "88",
            }
        ],
        "summary": "  One bearish butterfly near resistance. ",
    }
    report = normalize_ranked_patterns(payload)
    d = report.to_dict()["patterns"][0]

    assert d["direction"] == "bearish"
    assert d["points"]["X"] == {"x": 10.0, "y": 200.0}
    assert d["points"]["A"] == {"x": None, "y": 120.0}
    assert d["points"]["B"] is None
    assert d["points"]["D"] is None
    assert d["ratios"] == {"B_XA": 0.786, "C_AB": None, "D_XA": 1.27, "D_BC": None}
    assert d["score"] == 88.0
    assert d["notes"] == ""
    assert report.summary == "One bearish butterfly near resistance."


def test_ranked_summary_fallbacks():
    assert normalize_ranked_patterns({"patterns": []}).summary == NO_PATTERN_SUMMARY
    assert normalize_ranked_patterns({"summary": 5}).summary == NO_PATTERN_SUMMARY

    report = normalize_ranked_patterns({"patterns": [{"name": "Shark", "direction": "Bullish", "score": 72.5}]})
    assert report.summary == "1) Shark (bullish) | score=72.5"


def test_underscore_grouping_is_not_a_number():
    assert coerce_number("1_5") is None
    assert coerce_number("1_000.5") is None
    p = normalize_patterns({"patterns": [{"X": "1_5"}]}).patterns[0]
    assert p.X is None


@pytest.mark.parametrize(
    "value,expected",
    [
        (0.0, "0"),
        (-0.0, "0"),
        (1e16, "10000000000000000"),
        (1.5e20, "150000000000000000000"),
        (1e21, "1e+21"),
        (1.25e22, "1.25e+22"),
        (0.000001, "0.000001"),
        (1e-7, "1e-7"),
        (-2.5e-8, "-2.5e-8"),
        (123.456, "123.456"),
        (100.0, "100"),
    ],
)
def test_format_number_matches_js_rendering(value, expected):
    assert format_number(value) == expected
