"""Testes de Settings e das validações de configuração."""

from __future__ import annotations

import pytest

from iae_bot.config.settings import Settings


class TestSettingsDefaults:
    """Padrões seguros para desenvolvimento local."""

    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.session_store_backend == "memory"
        assert settings.persistence_backend == "memory"
        assert settings.inactivity_timeout_seconds == 2700
        assert settings.resume_after_seconds == 172800
        assert settings.send_max_attempts == 3
        assert settings.send_backoff_seconds == 0.4
        assert settings.default_user_name == "parceiro"
        assert settings.llm_available is False

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAGE_SIZE", "5")
        monkeypatch.setenv("INTERVIEW_ENABLED", "true")
        settings = Settings()
        assert settings.page_size == 5
        assert settings.interview_enabled is True

    @pytest.mark.parametrize(
        ("environment", "production", "development"),
        [("production", True, False), ("prod", True, False), ("test", False, True), ("staging", False, False)],
    )
    def test_environment_flags(self, environment: str, production: bool, development: bool) -> None:
        settings = Settings(environment=environment)
        assert settings.is_production is production
        assert settings.is_development is development


class TestSettingsValidation:
    """Listas de erros por grupo de configuração."""

    def test_memory_store_forbidden_in_production(self) -> None:
        errors = Settings(environment="production").validate_session_store_config()
        assert any("proibido em produção" in e for e in errors)

    def test_redis_requires_url(self) -> None:
        errors = Settings(session_store_backend="redis").validate_session_store_config()
        assert errors == ["SESSION_STORE_BACKEND=redis requer REDIS_URL configurado"]
        ok = Settings(session_store_backend="redis", redis_url="redis://localhost:6379/0")
        assert ok.validate_session_store_config() == []

    def test_invalid_persistence_backend(self) -> None:
        assert Settings(persistence_backend="mongo").validate_persistence_config()

    def test_openai_requires_key(self) -> None:
        assert Settings(openai_enabled=True).validate_openai_config()
        settings = Settings(openai_enabled=True, openai_api_key="sk-test")
        assert settings.validate_openai_config() == []
        assert settings.llm_available is True

    def test_gateway_credentials_outside_development(self) -> None:
        assert Settings(environment="development").validate_gateway_config() == []
        errors = Settings(environment="production").validate_gateway_config()
        assert len(errors) == 3

    def test_search_limits(self) -> None:
        errors = Settings(page_size=5, ranking_prefilter_size=4).validate_search_config()
        assert errors == ["RANKING_PREFILTER_SIZE deve ser >= PAGE_SIZE"]
        assert Settings().validate_search_config() == []
