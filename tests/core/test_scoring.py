from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from recruitperf.core import (
    InvalidRange,
    ScoreAggregator,
    ScoreWeights,
    ValidationError,
    compute_score,
    label_for_score,
    parse_window,
)
from recruitperf.schemas import ActivityRecord, PenaltyRecord


def build_entry(**kwargs: Any) -> ActivityRecord:
    defaults: dict[str, Any] = {
        "entry_type": "submission",
        "role_id": 1,
        "recruiter_id": 7,
        "submission_date": date(2025, 3, 10),
    }
    defaults.update(kwargs)
    return ActivityRecord(**defaults)


def build_penalty(**kwargs: Any) -> PenaltyRecord:
    defaults: dict[str, Any] = {
        "dropout_request_id": 1,
        "recruiter_id": 7,
        "role_id": 1,
        "points": 5.0,
        "effective_on": date(2025, 3, 12),
    }
    defaults.update(kwargs)
    return PenaltyRecord(**defaults)


@pytest.mark.parametrize(
    ("score", "label"),
    [
        (100.0, "Excellent"),
        (80.0, "Excellent"),
        (79.99, "Strong"),
        (60.0, "Strong"),
        (59.99, "Average"),
        (40.0, "Average"),
        (39.99, "At Risk"),
        (0.0, "At Risk"),
    ],
)
def test_label_boundaries(score: float, label: str) -> None:
    assert label_for_score(score) == label


def test_weighted_sum_uses_default_weights() -> None:
    entries = [
        build_entry(submission_type="6h"),
        build_entry(submission_type="24h"),
        build_entry(submission_type="after_24h"),
        build_entry(),
        build_entry(entry_type="interview", interview_level=1),
        build_entry(entry_type="interview", interview_level=2),
        build_entry(entry_type="interview", interview_level=3),
        build_entry(entry_type="deal"),
        build_entry(entry_type="dropout", dropout_reason="Offer declined"),
    ]

    result = compute_score(entries, [], "2025-03-01", "2025-03-31")

    # 2 + 1.5 + 1 + 1 + 3 + 4 + 5 + 10
    assert result.score == pytest.approx(27.5)
    assert result.performance_label == "At Risk"
    assert result.totals.submissions == 4
    assert result.totals.submissions_by_type == {"6h": 1, "24h": 1, "after_24h": 1, "untimed": 1}
    assert result.totals.interviews_by_level == {1: 1, 2: 1, 3: 1}
    assert result.totals.deals == 1
    assert result.totals.dropouts == 1
    assert result.totals.penalty_points == 0.0


def test_penalties_subtract_five_points_each() -> None:
    entries = [build_entry(entry_type="deal") for _ in range(5)]
    penalties = [build_penalty(dropout_request_id=1), build_penalty(dropout_request_id=2)]

    result = ScoreAggregator().compute(entries, penalties, window_start="2025-03-01", window_end="2025-03-31")

    assert result.score == pytest.approx(40.0)
    assert result.performance_label == "Average"
    assert result.totals.accepted_dropouts == 2
    assert result.totals.penalty_points == pytest.approx(10.0)


def test_score_is_clamped_to_bounds() -> None:
    many_deals = [build_entry(entry_type="deal") for _ in range(15)]
    high = compute_score(many_deals, [], "2025-03-01", "2025-03-31")
    assert high.score == 100.0
    assert high.performance_label == "Excellent"

    low = compute_score([build_entry()], [build_penalty()], "2025-03-01", "2025-03-31")
    assert low.score == 0.0
    assert low.performance_label == "At Risk"


def test_empty_window_scores_zero() -> None:
    result = compute_score([], [], "2025-03-01", "2025-03-31")

    assert result.score == 0.0
    assert result.performance_label == "At Risk"
    assert result.totals.weighted_points == 0.0


def test_window_is_inclusive_and_filters_out_of_range_rows() -> None:
    entries = [
        build_entry(entry_type="deal", submission_date=date(2025, 3, 1)),
        build_entry(entry_type="deal", submission_date=date(2025, 3, 31)),
        build_entry(entry_type="deal", submission_date=date(2025, 4, 1)),
        build_entry(entry_type="deal", submission_date=date(2025, 2, 28)),
    ]
    penalties = [build_penalty(effective_on=date(2025, 4, 2))]

    result = compute_score(entries, penalties, date(2025, 3, 1), date(2025, 3, 31))

    assert result.totals.deals == 2
    assert result.totals.accepted_dropouts == 0
    assert result.score == pytest.approx(20.0)


def test_custom_weights_accept_string_interview_levels() -> None:
    weights = ScoreWeights.from_mapping({"deal": 20.0, "interview_levels": {"1": 1, "2": 2, "3": 9}})

    result = ScoreAggregator(weights=weights).compute(
        [build_entry(entry_type="deal"), build_entry(entry_type="interview", interview_level=3)],
        [],
        window_start="2025-03-01",
        window_end="2025-03-31",
    )

    assert weights.interview_levels == {1: 1.0, 2: 2.0, 3: 9.0}
    assert result.score == pytest.approx(29.0)


@pytest.mark.parametrize(
    ("start", "end"),
    [
        ("2025-03-31", "2025-03-01"),
        ("2025/03/01", "2025-03-31"),
        ("not-a-date", "2025-03-31"),
        ("2025-03-01", "2025-02-30"),
    ],
)
def test_invalid_windows_raise_invalid_range(start: str, end: str) -> None:
    with pytest.raises(InvalidRange) as excinfo:
        parse_window(start, end)

    assert excinfo.value.code == "INVALID_RANGE"


def test_single_day_window_is_valid() -> None:
    window = parse_window("2025-03-10", "2025-03-10")

    assert window.contains(date(2025, 3, 10))
    assert not window.contains(date(2025, 3, 11))


def test_default_interview_weights_are_not_shared_between_instances() -> None:
    first = ScoreWeights()
    first.interview_levels[1] = 99.0

    assert ScoreWeights().interview_levels == {1: 3.0, 2: 4.0, 3: 5.0}


@pytest.mark.parametrize(
    "raw",
    [
        {"deal_bonus": 5.0},
        {"deal": "plenty"},
        {"interview_levels": {"first": 3.0}},
        {"interview_levels": None},
    ],
)
def test_weights_from_bad_mapping_raise_validation_error(raw: dict) -> None:
    with pytest.raises(ValidationError) as excinfo:
        ScoreWeights.from_mapping(raw)

    assert excinfo.value.code == "VALIDATION_ERROR"
