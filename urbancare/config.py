"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class PriorityConfig(BaseSettings):
    escalation_enabled: bool = True
    escalation_period_days: int = 7
    category_base: dict[str, str] = Field(default_factory=lambda: {
        "Safety": "critical",
        "Water": "high",
        "Electricity": "high",
        "Infrastructure": "medium",
        "Transportation": "medium",
        "Trash": "low",
        "Other": "low",
    })


class WorkerTaskConfig(BaseSettings):
    durations_hours: dict[str, float] = Field(default_factory=lambda: {
        "Trash": 1,
        "Water": 3,
        "Infrastructure": 4,
        "Electricity": 2,
        "Drainage": 3,
        "Transportation": 4,
        "Health": 2,
        "Safety": 2,
        "Other": 2,
    })
    default_duration_hours: float = 2
    sla_days: dict[str, int] = Field(default_factory=lambda: {
        "critical": 0,
        "high": 1,
        "medium": 3,
        "low": 7,
    })


class AuthConfig(BaseSettings):
    session_max_age_days: int = 7
    min_password_length: int = 8


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/urbancare.db"
    log_level: str = "INFO"
    priority: PriorityConfig = Field(default_factory=PriorityConfig)
    worker_tasks: WorkerTaskConfig = Field(default_factory=WorkerTaskConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    pr = PriorityConfig(**y.get("priority", {}))
    wt = WorkerTaskConfig(**y.get("worker_tasks", {}))
    au = AuthConfig(**y.get("auth", {}))
    overrides = {}
    db_url = y.get("database", {}).get("url")
    if db_url:
        overrides["database_url"] = db_url
    if y.get("log_level"):
        overrides["log_level"] = y["log_level"]
    return Settings(priority=pr, worker_tasks=wt, auth=au, **overrides)
