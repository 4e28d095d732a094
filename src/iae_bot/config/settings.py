"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars (ou .env em dev).
Nunca hardcode secrets ou chaves de API.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# Endpoints externos fixos
# -----------------------------------------------------------------------------
GOOGLE_PLACES_BASE_URL: str = "https://maps.googleapis.com/maps/api/place"
GOOGLE_SPEECH_URL: str = "https://speech.googleapis.com/v1/speech:recognize"


class Settings(BaseSettings):
    """Configurações lidas do ambiente.

    Agrupadas por integração; valores padrão são seguros para dev local.
    """

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Aplicação
    service_name: str = "iae_bot"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Evolution API (gateway WhatsApp)
    evolution_url: str | None = None  # Ex: https://evolution.exemplo.com
    evolution_api_key: str | None = None  # Header apikey
    evolution_instance: str | None = None  # Instância padrão (fallback)
    evolution_timeout_seconds: float = 15.0

    # Google
    google_maps_api_key: str | None = None  # Places (nearby/details/textsearch)
    google_speech_api_key: str | None = None  # Speech-to-Text REST
    google_speech_language: str = "pt-BR"
    google_places_timeout_seconds: float = 10.0
    google_find_place_timeout_seconds: float = 5.0
    google_speech_timeout_seconds: float = 10.0

    # OpenAI / IA
    openai_enabled: bool = False  # Feature flag: sem LLM o fluxo é determinístico
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.3
    openai_timeout_seconds: float = 10.0

    # Orçamentos de latência do LLM
    llm_rank_timeout_seconds: float = 2.5  # Por item ranqueado
    llm_rank_batch_size: int = 4  # Requisições concorrentes
    llm_rank_weight: float = 0.5  # Peso aditivo da nota 0..5
    llm_intent_timeout_seconds: float = 1.2
    llm_mood_timeout_seconds: float = 1.2
    llm_adaptive_timeout_seconds: float = 5.0

    # Busca e ranqueamento
    places_radius_meters: int = 5000  # Raio consultado no provedor
    distance_filter_km: float = 15.0  # Filtro local (fail-open)
    ranking_prefilter_size: int = 12
    page_size: int = 3
    sponsor_boost: float = 3.0
    sponsored_near_km: float = 5.0
    place_details_ttl_seconds: int = 86400
    geocode_default_city: str = "Brasília"

    # Fluxo de conversa
    resume_after_seconds: int = 172800  # 48h sem falar → saudação de retorno
    inactivity_timeout_seconds: int = 2700  # 45min → limpa fluxo pendente
    inactivity_sweep_interval_seconds: int = 600
    duplicate_location_km: float = 0.1
    mood_retention_seconds: int = 1800
    interview_enabled: bool = False  # Entrevista guiada por domínio
    default_user_name: str = "parceiro"

    # Envio (outbound)
    send_max_attempts: int = 3
    send_backoff_seconds: float = 0.4  # Linear: backoff * tentativa
    typing_delay_enabled: bool = True

    # Backends
    session_store_backend: str = "memory"  # memory | redis
    redis_url: str | None = None
    session_ttl_seconds: int = 604800  # 7 dias
    persistence_backend: str = "memory"  # memory | sqlite
    database_path: str = "iae.sqlite3"
    sponsors_file: str | None = None  # JSON com lista de patrocinadores
    metrics_file: str | None = None  # JSON de métricas (None = só memória)

    def validate_session_store_config(self) -> list[str]:
        """Valida backend de session store.

        Em produção, memory é proibido (não sobrevive a restart).
        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.session_store_backend.lower()

        valid_backends = {"memory", "redis"}
        if backend not in valid_backends:
            errors.append(
                f"SESSION_STORE_BACKEND '{backend}' inválido. Valores válidos: {valid_backends}"
            )

        if backend == "redis" and not self.redis_url:
            errors.append("SESSION_STORE_BACKEND=redis requer REDIS_URL configurado")

        if self.is_production and backend == "memory":
            errors.append(
                "SESSION_STORE_BACKEND=memory é proibido em produção. Use 'redis'."
            )

        return errors

    def validate_persistence_config(self) -> list[str]:
        """Valida backend de persistência de usuários/preferências."""
        errors: list[str] = []
        backend = self.persistence_backend.lower()
        if backend not in {"memory", "sqlite"}:
            errors.append("PERSISTENCE_BACKEND inválido: use memory | sqlite")
        if backend == "sqlite" and not self.database_path:
            errors.append("PERSISTENCE_BACKEND=sqlite requer DATABASE_PATH configurado")
        return errors

    def validate_openai_config(self) -> list[str]:
        """Valida configuração de OpenAI.

        Se openai_enabled=True, verifica se OPENAI_API_KEY está configurado.
        """
        errors: list[str] = []
        if self.openai_enabled and not self.openai_api_key:
            errors.append("OPENAI_ENABLED=true requer OPENAI_API_KEY configurado")
        return errors

    def validate_gateway_config(self) -> list[str]:
        """Valida credenciais da Evolution API fora de dev."""
        errors: list[str] = []
        if self.is_development:
            return errors
        if not self.evolution_url:
            errors.append("EVOLUTION_URL obrigatório fora de development")
        if not self.evolution_api_key:
            errors.append("EVOLUTION_API_KEY obrigatório fora de development")
        if not self.google_maps_api_key:
            errors.append("GOOGLE_MAPS_API_KEY obrigatório fora de development")
        return errors

    def validate_search_config(self) -> list[str]:
        """Valida limites de busca e ranqueamento."""
        errors: list[str] = []
        if self.page_size < 1:
            errors.append("PAGE_SIZE deve ser >= 1")
        if self.llm_rank_batch_size < 1:
            errors.append("LLM_RANK_BATCH_SIZE deve ser >= 1")
        if self.ranking_prefilter_size < self.page_size:
            errors.append("RANKING_PREFILTER_SIZE deve ser >= PAGE_SIZE")
        if self.send_max_attempts < 1:
            errors.append("SEND_MAX_ATTEMPTS deve ser >= 1")
        return errors

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local", "test")

    @property
    def llm_available(self) -> bool:
        """LLM só é usado com flag ligada e chave presente."""
        return self.openai_enabled and bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    """Retorna instância única de Settings (cacheada)."""

    return Settings()
