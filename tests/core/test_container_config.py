from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from recruitperf.config import ConfigManager
from recruitperf.container import bootstrap, create_container
from recruitperf.schemas.config import AppConfig, load_config


def test_create_container_with_overrides():
    container = create_container(
        settings={
            "core": {"score_weights": {"deal": 12.0, "interview_levels": {"1": 2, "2": 3, "3": 4}}},
            "health": {"strong_min_conversion": 0.5},
        }
    )

    aggregator = container.score_aggregator()
    classifier = container.health_classifier()

    assert aggregator.weights.deal == 12.0
    assert aggregator.weights.submission_6h == 2.0
    assert aggregator.weights.interview_levels == {1: 2.0, 2: 3.0, 3: 4.0}
    assert classifier._config.strong_min_conversion == 0.5
    assert classifier._config.at_risk_min_attrition == 0.4


def test_default_container_uses_default_weights():
    container = create_container()

    assert container.score_aggregator().weights.deal == 10.0
    assert container.engine().url.database == ":memory:"
    assert container.session_factory().serialized is True
    assert container.service() is not container.service()
    assert container.workflow() is container.workflow()


def test_load_config_validation():
    data = {
        "core": {"score_weights": {"deal": 8.0}},
        "health": {"at_risk_min_attrition": 0.5},
        "logging": {"level": "DEBUG"},
    }
    app_config = load_config(data)
    assert isinstance(app_config, AppConfig)
    settings = app_config.to_settings()
    assert settings["core"]["score_weights"]["deal"] == 8.0
    assert settings["health"] == {"at_risk_min_attrition": 0.5}
    assert "database" not in settings


@pytest.mark.parametrize("raw", [None, ["core"], "core: {}"])
def test_load_config_rejects_non_mappings(raw):
    with pytest.raises(ValidationError):
        load_config(raw)


def test_load_config_rejects_bad_health_values():
    with pytest.raises(ValidationError):
        load_config({"health": {"strong_min_conversion": "high"}})


def test_bootstrap_reads_yaml(tmp_path: Path):
    db_path = tmp_path / "perf.db"
    (tmp_path / "settings.yaml").write_text(
        "\n".join(
            [
                "core:",
                "  score_weights:",
                "    submission_6h: 3.0",
                "database:",
                f"  url: sqlite:///{db_path}",
                "logging:",
                "  level: WARNING",
            ]
        ),
        encoding="utf-8",
    )

    container = bootstrap(tmp_path)

    assert container.score_aggregator().weights.submission_6h == 3.0
    assert db_path.exists()


def test_config_manager_empty_file_is_empty_mapping(tmp_path: Path):
    (tmp_path / "empty.yaml").write_text("", encoding="utf-8")

    assert ConfigManager(tmp_path).load("empty") == {}
    with pytest.raises(FileNotFoundError):
        ConfigManager(tmp_path).load("missing")
