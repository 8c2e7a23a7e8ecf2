"""Tests for configuration models and YAML loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.core.config import (
    PollingConfig,
    ProviderConfig,
    QuotaConfig,
    SearchDefaults,
    Settings,
)
from src.core.schemas import SearchQuery


# ---------------------------------------------------------------------------
# Settings defaults
# ---------------------------------------------------------------------------


class TestSettingsDefaults:
    def test_all_providers_present(self) -> None:
        settings = Settings()
        assert set(settings.providers) == {"linkedin", "workday", "careerone"}

    def test_provider_credentials_are_env_names(self) -> None:
        providers = Settings().providers
        assert providers["linkedin"].token_env == "APIFY_API_TOKEN"
        assert providers["workday"].token_env == "APIFY_WORKDAY_TOKEN"
        assert providers["careerone"].token_env == "APIFY_CAREERONE_TOKEN"

    def test_actor_ids(self) -> None:
        providers = Settings().providers
        assert providers["linkedin"].actor_id == "curious_coder~linkedin-jobs-scraper"
        assert providers["workday"].actor_id == "jobo.world~workday-jobs-search"
        assert providers["careerone"].actor_id == "websift~careerone-job-scraper"

    def test_sync_client_timeout_above_server_timeout(self) -> None:
        for name in ("workday", "careerone"):
            provider = Settings().providers[name]
            assert provider.http_timeout_s > provider.sync_timeout_s

    def test_cache_ttl(self) -> None:
        assert Settings().cache.ttl_seconds == 300

    def test_fallback_linkedin_only(self) -> None:
        assert SearchDefaults().fallback_providers == ["linkedin"]

    def test_no_searches(self) -> None:
        assert Settings().searches == []


class TestPollingConfig:
    def test_small_limit_budget(self) -> None:
        assert PollingConfig().max_attempts(SearchQuery(keywords="x", result_limit=25)) == 45

    def test_medium_limit_budget(self) -> None:
        assert PollingConfig().max_attempts(SearchQuery(keywords="x", result_limit=26)) == 60
        assert PollingConfig().max_attempts(SearchQuery(keywords="x", result_limit=50)) == 60

    def test_unbounded_budget(self) -> None:
        q = SearchQuery(keywords="x", result_limit="all")
        assert PollingConfig().max_attempts(q) == 90

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            PollingConfig(interval_s=0)


class TestQuotaConfig:
    def test_default_plans(self) -> None:
        config = QuotaConfig()
        assert config.default_plan == "freemium"
        assert config.plans["freemium"].searches_per_day == 1
        assert config.plans["pro"].searches_per_day == 10

    def test_empty_plans_rejected(self) -> None:
        with pytest.raises(ValidationError, match="at least one plan"):
            QuotaConfig(plans={})


class TestProviderOverrides:
    def test_partial_override_keeps_other_defaults(self) -> None:
        settings = Settings(providers={
            "linkedin": ProviderConfig(actor_id="me~my-actor", token_env="MY_TOKEN"),
        })
        assert settings.providers["linkedin"].actor_id == "me~my-actor"
        assert settings.providers["workday"].actor_id == "jobo.world~workday-jobs-search"

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError, match="unknown providers"):
            Settings(providers={
                "indeed": ProviderConfig(actor_id="a", token_env="B"),
            })


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


class TestFromYaml:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("")
        settings = Settings.from_yaml(path)
        assert settings.database.path == "data/jobs.db"

    def test_loads_searches_and_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(
            "cache:\n"
            "  ttl_seconds: 60\n"
            "quotas:\n"
            "  plans:\n"
            "    team:\n"
            "      searches_per_day: 50\n"
            "searches:\n"
            "  - keywords: python developer\n"
            "    provider: workday\n"
            "    result_limit: 200\n"
            "  - keywords: react\n"
            "    result_limit: all\n",
        )
        settings = Settings.from_yaml(path)
        assert settings.cache.ttl_seconds == 60
        assert settings.quotas.plans["team"].searches_per_day == 50
        assert settings.searches[0].provider == "workday"
        assert settings.searches[0].result_limit == 50
        assert settings.searches[1].is_unbounded is True

    def test_invalid_search_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("searches:\n  - keywords: ''\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(path)

    def test_repo_example_config_loads(self) -> None:
        path = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"
        settings = Settings.from_yaml(path)
        assert len(settings.searches) == 3
        assert {q.provider for q in settings.searches} == {"linkedin", "workday", "careerone"}
