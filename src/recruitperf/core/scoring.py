"""EBES score aggregation over a ledger window."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Iterable, Literal

import pendulum

from ..schemas import ActivityRecord, PenaltyRecord
from .errors import InvalidRange, ValidationError

PerformanceLabel = Literal["Excellent", "Strong", "Average", "At Risk"]

SCORE_MIN = 0.0
SCORE_MAX = 100.0

# Display thresholds, highest first. Not configurable.
LABEL_THRESHOLDS: tuple[tuple[float, PerformanceLabel], ...] = (
    (80.0, "Excellent"),
    (60.0, "Strong"),
    (40.0, "Average"),
)


def label_for_score(score: float) -> PerformanceLabel:
    """Map a 0-100 score onto its performance label."""
    for threshold, label in LABEL_THRESHOLDS:
        if score >= threshold:
            return label
    return "At Risk"


@dataclass
class ScoreWeights:
    """Point weights per activity type.

    ``submission`` applies to submissions recorded without a timing bucket.
    """

    submission: float = 1.0
    submission_6h: float = 2.0
    submission_24h: float = 1.5
    submission_after_24h: float = 1.0
    interview_levels: dict[int, float] = field(default_factory=lambda: {1: 3.0, 2: 4.0, 3: 5.0})
    deal: float = 10.0

    def __post_init__(self) -> None:
        for name in ("submission", "submission_6h", "submission_24h", "submission_after_24h", "deal"):
            setattr(self, name, float(getattr(self, name)))
        # YAML mappings arrive with string keys
        self.interview_levels = {int(k): float(v) for k, v in self.interview_levels.items()}

    def for_submission(self, submission_type: str | None) -> float:
        if submission_type == "6h":
            return self.submission_6h
        if submission_type == "24h":
            return self.submission_24h
        if submission_type == "after_24h":
            return self.submission_after_24h
        return self.submission

    def for_interview(self, level: int | None) -> float:
        if level is None:
            return 0.0
        return self.interview_levels.get(int(level), 0.0)

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None) -> "ScoreWeights":
        """Build weights from YAML or container settings; bad keys or values raise ValidationError."""
        raw = dict(raw or {})
        unknown = sorted(set(raw) - {item.name for item in fields(cls)})
        if unknown:
            raise ValidationError("Unknown score weight keys", keys=unknown)
        try:
            return cls(**raw)
        except (TypeError, ValueError, AttributeError) as exc:
            raise ValidationError("Invalid score weights", error=str(exc)) from exc


@dataclass(slots=True)
class ScoreWindow:
    """Inclusive date window."""

    start: date
    end: date

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


@dataclass(slots=True)
class ScoreTotals:
    """Activity counts behind a score."""

    submissions: int = 0
    submissions_by_type: dict[str, int] = field(default_factory=dict)
    interviews: int = 0
    interviews_by_level: dict[int, int] = field(default_factory=dict)
    deals: int = 0
    dropouts: int = 0
    accepted_dropouts: int = 0
    weighted_points: float = 0.0
    penalty_points: float = 0.0


@dataclass(slots=True)
class ScoreResult:
    """EBES score payload for one window."""

    score: float
    performance_label: PerformanceLabel
    window: ScoreWindow
    totals: ScoreTotals


def parse_window(start: date | str, end: date | str) -> ScoreWindow:
    """Build a window from dates or ``YYYY-MM-DD`` strings."""
    window = ScoreWindow(start=_coerce_date(start, "start"), end=_coerce_date(end, "end"))
    if window.start > window.end:
        raise InvalidRange(
            "Window start is after window end",
            start=window.start.isoformat(),
            end=window.end.isoformat(),
        )
    return window


def _coerce_date(value: date | str, name: str) -> date:
    if isinstance(value, date):
        # pendulum.DateTime and datetime are date subclasses too
        return value.date() if hasattr(value, "hour") else value
    try:
        return pendulum.from_format(str(value).strip(), "YYYY-MM-DD").date()
    except (ValueError, TypeError) as exc:
        raise InvalidRange(f"Invalid {name} date, expected YYYY-MM-DD", **{name: value}) from exc


class ScoreAggregator:
    """Reduce ledger entries and penalties into an EBES score."""

    def __init__(self, *, weights: ScoreWeights | None = None) -> None:
        self._weights = weights or ScoreWeights()

    @property
    def weights(self) -> ScoreWeights:
        return self._weights

    def compute(
        self,
        entries: Iterable[ActivityRecord],
        penalties: Iterable[PenaltyRecord],
        *,
        window_start: date | str,
        window_end: date | str,
    ) -> ScoreResult:
        window = parse_window(window_start, window_end)
        totals = ScoreTotals()

        for entry in entries:
            if not window.contains(entry.submission_date):
                continue
            totals.weighted_points += self._accumulate(entry, totals)

        for penalty in penalties:
            if not window.contains(penalty.effective_on):
                continue
            totals.accepted_dropouts += 1
            totals.penalty_points += float(penalty.points)

        raw = totals.weighted_points - totals.penalty_points
        score = min(SCORE_MAX, max(SCORE_MIN, raw))
        return ScoreResult(
            score=score,
            performance_label=label_for_score(score),
            window=window,
            totals=totals,
        )

    def _accumulate(self, entry: ActivityRecord, totals: ScoreTotals) -> float:
        if entry.entry_type == "submission":
            totals.submissions += 1
            bucket = entry.submission_type or "untimed"
            totals.submissions_by_type[bucket] = totals.submissions_by_type.get(bucket, 0) + 1
            return self._weights.for_submission(entry.submission_type)
        if entry.entry_type == "interview":
            totals.interviews += 1
            level = int(entry.interview_level or 0)
            totals.interviews_by_level[level] = totals.interviews_by_level.get(level, 0) + 1
            return self._weights.for_interview(entry.interview_level)
        if entry.entry_type == "deal":
            totals.deals += 1
            return self._weights.deal
        if entry.entry_type == "dropout":
            totals.dropouts += 1
        return 0.0


def compute_score(
    entries: Iterable[ActivityRecord],
    penalties: Iterable[PenaltyRecord],
    window_start: date | str,
    window_end: date | str,
    *,
    weights: ScoreWeights | None = None,
) -> ScoreResult:
    """Functional shortcut around :class:`ScoreAggregator`."""
    return ScoreAggregator(weights=weights).compute(
        entries,
        penalties,
        window_start=window_start,
        window_end=window_end,
    )
