"""YAML config loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_DATABASE_URL = "sqlite:///data/job_ingest.db"
DEFAULT_SESSION_SECRET = "dev-secret-change-me-in-production"


@dataclass
class DatabaseConfig:
    url: str = DEFAULT_DATABASE_URL


@dataclass
class IngestConfig:
    default_source: str = "linkedin"
    max_rows_per_batch: int = 5000  # 0 = unlimited
    auto_match: bool = True


@dataclass
class MatchingConfig:
    scorer: str = "keyword"
    max_matches_per_candidate: int = 500
    schedule_enabled: bool = False
    interval_hours: int = 6
    full_fallback: bool = True


@dataclass
class AuthConfig:
    session_secret: str = DEFAULT_SESSION_SECRET
    cron_secret: str = ""


@dataclass
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    log_dir: str = "logs"
    log_level: str = "INFO"


def normalize_database_url(url: str) -> str:
    # Hosted Postgres often hands out postgres:// but SQLAlchemy 2.x requires postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def load_config(config_path: str = "config.yaml") -> AppConfig:
    """Load configuration from a YAML file. Environment variables take precedence."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Copy config.example.yaml to config.yaml and adjust it."
        )

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _build_config(raw)


def load_config_or_default(config_path: str = "config.yaml") -> AppConfig:
    """Like load_config, but fall back to defaults (plus env overrides) when the file is absent."""
    if Path(config_path).exists():
        return load_config(config_path)
    return _build_config({})


def _build_config(raw: dict) -> AppConfig:
    config = AppConfig()

    db_raw = raw.get("database", {})
    config.database = DatabaseConfig(
        url=normalize_database_url(
            os.environ.get("DATABASE_URL", db_raw.get("url", DEFAULT_DATABASE_URL))
        ),
    )

    ingest_raw = raw.get("ingest", {})
    config.ingest = IngestConfig(
        default_source=ingest_raw.get("default_source", "linkedin"),
        max_rows_per_batch=ingest_raw.get("max_rows_per_batch", 5000),
        auto_match=ingest_raw.get("auto_match", True),
    )

    matching_raw = raw.get("matching", {})
    config.matching = MatchingConfig(
        scorer=matching_raw.get("scorer", "keyword"),
        max_matches_per_candidate=matching_raw.get("max_matches_per_candidate", 500),
        schedule_enabled=matching_raw.get("schedule_enabled", False),
        interval_hours=matching_raw.get("interval_hours", 6),
        full_fallback=matching_raw.get("full_fallback", True),
    )

    auth_raw = raw.get("auth", {})
    config.auth = AuthConfig(
        session_secret=os.environ.get(
            "SESSION_SECRET", auth_raw.get("session_secret", DEFAULT_SESSION_SECRET)
        ),
        cron_secret=os.environ.get("CRON_SECRET", auth_raw.get("cron_secret", "")),
    )

    config.log_dir = raw.get("log_dir", "logs")
    config.log_level = str(raw.get("log_level", "INFO")).upper()

    return config


def validate_config(config: AppConfig) -> list[str]:
    """Return list of validation warnings (empty = OK)."""
    warnings = []

    if config.auth.session_secret == DEFAULT_SESSION_SECRET:
        warnings.append("Using the default session secret - set SESSION_SECRET in production")

    if config.matching.schedule_enabled and not config.auth.cron_secret:
        warnings.append("Scheduled matching enabled but no cron secret configured - /api/cron/match will reject every call")

    if config.matching.schedule_enabled and config.database.url.startswith("sqlite"):
        warnings.append("Scheduled matching with SQLite - concurrent runs may hit 'database is locked'")

    if config.matching.interval_hours <= 0:
        warnings.append("matching.interval_hours must be positive - scheduled matching will not run")

    if config.matching.scorer not in ("keyword", "title"):
        warnings.append(f"Unknown scorer '{config.matching.scorer}' - falling back to keyword scoring")

    return warnings
