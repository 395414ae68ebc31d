from __future__ import annotations

import pytest

from recruitperf.core import HealthClassifier, HealthConfig, classify_health
from recruitperf.schemas import ClientActivityCounts


@pytest.mark.parametrize(
    ("counts", "expected"),
    [
        ({"total_roles": 0}, "Average"),
        ({"total_roles": 10, "deals": 3, "lost": 1}, "Strong"),
        ({"total_roles": 10, "deals": 3, "lost": 2}, "Average"),
        ({"total_roles": 10, "deals": 2, "lost": 1}, "Average"),
        ({"total_roles": 10, "deals": 0, "lost": 0}, "At Risk"),
        ({"total_roles": 10, "deals": 2, "lost": 2, "dropouts": 2}, "At Risk"),
        ({"total_roles": 10, "deals": 5, "lost": 2, "dropouts": 2}, "At Risk"),
    ],
)
def test_classify_health_tiers(counts: dict, expected: str) -> None:
    assert classify_health(ClientActivityCounts(**counts)) == expected


def test_ratios_are_zero_without_roles() -> None:
    empty = ClientActivityCounts()

    assert HealthClassifier.conversion(empty) == 0.0
    assert HealthClassifier.attrition(empty) == 0.0


def test_custom_thresholds() -> None:
    classifier = HealthClassifier(config=HealthConfig(strong_min_conversion=0.5, at_risk_min_attrition=0.6))
    counts = ClientActivityCounts(total_roles=10, deals=4, lost=3, dropouts=2)

    # attrition 0.5 is below the raised floor, conversion 0.4 below the raised bar
    assert classifier.classify(counts) == "Average"


def test_counts_reject_negative_values() -> None:
    with pytest.raises(ValueError):
        ClientActivityCounts(total_roles=-1)
