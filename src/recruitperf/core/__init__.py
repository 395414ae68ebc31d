"""Pure read-side projections and the engine's error taxonomy."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .aging import AgingMetrics, AgingReport, AgingTracker, RoleAging, compute_aging
from .errors import (
    Conflict,
    EngineError,
    Forbidden,
    InvalidRange,
    InvalidState,
    NotFound,
    ValidationError,
)
from .health import HealthClassifier, HealthConfig, classify_health
from .scoring import (
    LABEL_THRESHOLDS,
    ScoreAggregator,
    ScoreResult,
    ScoreTotals,
    ScoreWeights,
    ScoreWindow,
    compute_score,
    label_for_score,
    parse_window,
)

__all__ = [
    "AgingMetrics",
    "AgingReport",
    "AgingTracker",
    "Conflict",
    "EngineError",
    "Forbidden",
    "HealthClassifier",
    "HealthConfig",
    "InvalidRange",
    "InvalidState",
    "LABEL_THRESHOLDS",
    "NotFound",
    "RoleAging",
    "ScoreAggregator",
    "ScoreResult",
    "ScoreTotals",
    "ScoreWeights",
    "ScoreWindow",
    "ValidationError",
    "classify_health",
    "compute_aging",
    "compute_score",
    "label_for_score",
    "parse_window",
]
