"""Configuration models and YAML loader for the job aggregation engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from src.core.schemas import PROVIDERS, SearchQuery


class ProviderConfig(BaseModel):
    """Apify actor settings for one job platform.

    The API token is never stored in config; only the name of the
    environment variable that holds it.
    """

    actor_id: str
    token_env: str
    sync_timeout_s: int = Field(default=120, ge=10)
    http_timeout_s: float = Field(default=30.0, ge=1.0)


def _default_providers() -> dict[str, ProviderConfig]:
    return {
        "linkedin": ProviderConfig(
            actor_id="curious_coder~linkedin-jobs-scraper",
            token_env="APIFY_API_TOKEN",
        ),
        "workday": ProviderConfig(
            actor_id="jobo.world~workday-jobs-search",
            token_env="APIFY_WORKDAY_TOKEN",
            http_timeout_s=130.0,
        ),
        "careerone": ProviderConfig(
            actor_id="websift~careerone-job-scraper",
            token_env="APIFY_CAREERONE_TOKEN",
            http_timeout_s=130.0,
        ),
    }


class PollingConfig(BaseModel):
    """Long-poll budget for asynchronous provider runs."""

    interval_s: float = Field(default=2.0, gt=0.0)
    attempts_small: int = Field(default=45, ge=1)
    attempts_medium: int = Field(default=60, ge=1)
    attempts_unbounded: int = Field(default=90, ge=1)
    small_limit: int = Field(default=25, ge=1)

    def max_attempts(self, query: SearchQuery) -> int:
        """Smaller requested limits get a shorter attempt budget."""
        if query.is_unbounded:
            return self.attempts_unbounded
        if query.batch_size <= self.small_limit:
            return self.attempts_small
        return self.attempts_medium


class CacheConfig(BaseModel):
    """Result cache settings."""

    ttl_seconds: float = Field(default=300.0, gt=0.0)


class PlanQuota(BaseModel):
    """Included searches per day for one plan tier."""

    searches_per_day: int = Field(default=1, ge=0)


def _default_plans() -> dict[str, PlanQuota]:
    return {
        "freemium": PlanQuota(searches_per_day=1),
        "pro": PlanQuota(searches_per_day=10),
    }


class QuotaConfig(BaseModel):
    """Plan tiers for the search quota gate."""

    default_plan: str = "freemium"
    plans: dict[str, PlanQuota] = Field(default_factory=_default_plans)

    @field_validator("plans")
    @classmethod
    def at_least_one_plan(cls, v: dict[str, PlanQuota]) -> dict[str, PlanQuota]:
        if not v:
            msg = "at least one plan must be configured"
            raise ValueError(msg)
        return v


class SearchDefaults(BaseModel):
    """Behavior of the top-level search service."""

    fallback_enabled: bool = True
    fallback_providers: list[str] = Field(default_factory=lambda: ["linkedin"])


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/jobs.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    providers: dict[str, ProviderConfig] = Field(default_factory=_default_providers)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    quotas: QuotaConfig = Field(default_factory=QuotaConfig)
    search: SearchDefaults = Field(default_factory=SearchDefaults)
    searches: list[SearchQuery] = Field(default_factory=list)

    @field_validator("providers")
    @classmethod
    def known_providers(cls, v: dict[str, ProviderConfig]) -> dict[str, ProviderConfig]:
        unknown = sorted(set(v) - set(PROVIDERS))
        if unknown:
            msg = f"unknown providers: {', '.join(unknown)}"
            raise ValueError(msg)
        # Partial YAML keeps defaults for providers it does not mention
        merged = _default_providers()
        merged.update(v)
        return merged

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
