"""Dependency injection container for the performance engine."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from dependency_injector import containers, providers

from .audit import AuditLogger
from .config import ConfigManager
from .core import AgingTracker, HealthClassifier, HealthConfig, ScoreAggregator, ScoreWeights
from .ledger import ActivityLedger
from .logging import configure_logging
from .schemas.config import load_config
from .service import PerformanceService
from .store import LedgerRepository, init_schema, make_engine, make_session_factory
from .workflow import DropoutWorkflow


class PerformanceContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    clock = providers.Object(None)
    audit_logger = providers.Object(None)

    engine = providers.Singleton(
        make_engine,
        config.database.url,
        echo=config.database.echo,
    )
    session_factory = providers.Singleton(make_session_factory, engine)

    score_weights = providers.Singleton(ScoreWeights.from_mapping, config.core.score_weights)
    score_aggregator = providers.Singleton(ScoreAggregator, weights=score_weights)

    health_config = providers.Singleton(HealthConfig)
    health_classifier = providers.Singleton(HealthClassifier, config=health_config)

    aging_tracker = providers.Singleton(AgingTracker, now_provider=clock)

    repository = providers.Singleton(LedgerRepository, session_factory)
    ledger = providers.Singleton(ActivityLedger, session_factory)
    workflow = providers.Singleton(
        DropoutWorkflow,
        session_factory,
        now_provider=clock,
        audit_logger=audit_logger,
    )

    service = providers.Factory(
        PerformanceService,
        repository=repository,
        ledger=ledger,
        workflow=workflow,
        aggregator=score_aggregator,
        classifier=health_classifier,
        tracker=aging_tracker,
    )


def create_container(
    *,
    settings: dict | None = None,
    clock: Callable[[], Any] | None = None,
    audit_logger: AuditLogger | None = None,
    create_schema: bool = True,
) -> PerformanceContainer:
    """Instantiate container with optional overrides."""

    container = PerformanceContainer()

    if clock is not None:
        container.clock.override(providers.Object(clock))
    if audit_logger is not None:
        container.audit_logger.override(providers.Object(audit_logger))

    if isinstance(settings, dict) and settings:
        container.config.from_dict(
            {key: settings[key] for key in ("core", "database") if key in settings}
        )

        health_settings = settings.get("health", {})
        if health_settings:
            health_config = HealthConfig(**health_settings)
            container.health_config.override(providers.Object(health_config))

    if create_schema:
        init_schema(container.engine())

    return container


def bootstrap(config_dir: str | Path, name: str = "settings", **overrides: Any) -> PerformanceContainer:
    """Load ``<config_dir>/<name>.yaml``, configure logging and build the container."""

    app_config = load_config(ConfigManager(config_dir).load(name))
    configure_logging(app_config.logging.level, fmt=app_config.logging.format)
    return create_container(settings=app_config.to_settings(), **overrides)
