"""Pydantic configuration schema for YAML settings."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError


class CoreConfig(BaseModel):
    score_weights: dict[str, Any] | None = None


class HealthSettings(BaseModel):
    strong_min_conversion: float | None = None
    strong_max_attrition: float | None = None
    at_risk_min_attrition: float | None = None


class DatabaseConfig(BaseModel):
    url: str | None = None
    echo: bool = False


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "json"


class AppConfig(BaseModel):
    core: CoreConfig = Field(default_factory=CoreConfig)
    health: HealthSettings = Field(default_factory=HealthSettings)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        if self.core.score_weights:
            settings["core"] = self.core.model_dump(exclude_none=True)
        health = self.health.model_dump(exclude_none=True)
        if health:
            settings["health"] = health
        if self.database.url:
            settings["database"] = self.database.model_dump(exclude_none=True)
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
