"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class ConfigManager:
    """YAML-backed settings loader for the performance engine."""

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    def load(self, name: str) -> Any:
        """Load a YAML configuration by name without file extension.

        An empty file yields an empty mapping; a missing file raises
        ``FileNotFoundError``.
        """
        path = self._base_path / f"{name}.yaml"
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        return {} if data is None else data


__all__ = ["ConfigManager"]
