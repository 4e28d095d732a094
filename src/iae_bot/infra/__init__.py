"""Camada de infraestrutura: adapters para armazenamento e HTTP.

Exporta:
- Session: InMemorySessionStore, RedisSessionStore, create_session_store
- Persistência: InMemoryUserRepository, SqliteUserRepository, create_user_repository
- Patrocinadores: SponsorDirectory
- Métricas: MetricsStore
- HTTP: HttpClient

Infraestrutura não decide regra de negócio; logs sem PII.
"""

from iae_bot.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    create_http_client,
)
from iae_bot.infra.metrics_store import MetricsStore
from iae_bot.infra.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
    SessionStoreError,
    create_session_store,
)
from iae_bot.infra.sponsor_directory import SponsorDirectory
from iae_bot.infra.user_repository import (
    InMemoryUserRepository,
    SqliteUserRepository,
    UserRepository,
    create_user_repository,
)

__all__ = [
    # Session
    "SessionStore",
    "SessionStoreError",
    "InMemorySessionStore",
    "RedisSessionStore",
    "create_session_store",
    # Persistência
    "UserRepository",
    "InMemoryUserRepository",
    "SqliteUserRepository",
    "create_user_repository",
    # Patrocinadores / métricas
    "SponsorDirectory",
    "MetricsStore",
    # HTTP
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "create_http_client",
]
