"""Client health classification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..schemas import ClientActivityCounts

HealthTier = Literal["Strong", "Average", "At Risk"]


@dataclass
class HealthConfig:
    """Ratio thresholds for health tiers."""

    strong_min_conversion: float = 0.3
    strong_max_attrition: float = 0.2
    at_risk_min_attrition: float = 0.4


class HealthClassifier:
    """Classify a client's role portfolio.

    conversion = deals / total_roles and attrition = (lost + dropouts) /
    total_roles. A client with no roles is neutral ("Average"). Strong is
    checked first; it cannot overlap At Risk because it requires a non-zero
    conversion and attrition below the At Risk floor.
    """

    def __init__(self, *, config: HealthConfig | None = None) -> None:
        self._config = config or HealthConfig()

    def classify(self, counts: ClientActivityCounts) -> HealthTier:
        if counts.total_roles == 0:
            return "Average"

        conversion = self.conversion(counts)
        attrition = self.attrition(counts)

        if conversion >= self._config.strong_min_conversion and attrition < self._config.strong_max_attrition:
            return "Strong"
        if attrition >= self._config.at_risk_min_attrition or conversion == 0:
            return "At Risk"
        return "Average"

    @staticmethod
    def conversion(counts: ClientActivityCounts) -> float:
        if counts.total_roles == 0:
            return 0.0
        return counts.deals / counts.total_roles

    @staticmethod
    def attrition(counts: ClientActivityCounts) -> float:
        if counts.total_roles == 0:
            return 0.0
        return (counts.lost + counts.dropouts) / counts.total_roles


def classify_health(counts: ClientActivityCounts, *, config: HealthConfig | None = None) -> HealthTier:
    return HealthClassifier(config=config).classify(counts)
