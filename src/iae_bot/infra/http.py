"""Cliente HTTP centralizado com retry, timeout e logging.

Usado pelos adapters externos (Evolution API, Google Places, Speech):
- Retry em 429/5xx/timeouts com backoff exponencial ou linear
- Timeouts configuráveis por cliente
- Logging estruturado sem chaves de API nem payloads
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from iae_bot.observability.logging import get_logger

if TYPE_CHECKING:
    from iae_bot.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

# Credenciais que podem aparecer na query string (Google usa `key=`)
_SECRET_QUERY_PATTERN = re.compile(r"(key|apikey|access_token)=[^&]+", re.IGNORECASE)

BACKOFF_EXPONENTIAL = "exponential"
BACKOFF_LINEAR = "linear"


def _sanitize_url(url: str) -> str:
    """Remove chaves e tokens da URL para logging seguro."""
    return _SECRET_QUERY_PATTERN.sub(lambda m: f"{m.group(1)}=***", str(url))


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP.

    `max_retries` conta apenas as novas tentativas (total = max_retries + 1).
    """

    timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_base_seconds: float = 0.4
    backoff_max_seconds: float = 10.0
    backoff_strategy: str = BACKOFF_EXPONENTIAL
    default_headers: dict[str, str] = field(default_factory=dict)
    base_url: str = ""


class HttpError(Exception):
    """Erro de requisição HTTP sem expor informações sensíveis."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        is_retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable


def _is_retryable_status(status_code: int) -> bool:
    """Determina se status HTTP permite retry (429 ou 5xx)."""
    return status_code == 429 or 500 <= status_code < 600


def _calculate_backoff(
    attempt: int,
    base_seconds: float,
    max_seconds: float,
    strategy: str = BACKOFF_EXPONENTIAL,
) -> float:
    """Tempo de espera após a tentativa `attempt` (0-based).

    exponencial: base * 2^attempt; linear: base * (attempt + 1).
    """
    if strategy == BACKOFF_LINEAR:
        backoff = base_seconds * (attempt + 1)
    else:
        backoff = (2**attempt) * base_seconds
    return min(backoff, max_seconds)


def _log_request_start(method: str, url: str, attempt: int, max_r: int) -> None:
    logger.debug(
        "http_request_start",
        extra={
            "method": method,
            "url": _sanitize_url(url),
            "attempt": attempt + 1,
            "max_retries": max_r,
        },
    )


def _log_non_retryable_error(method: str, url: str, status_code: int) -> None:
    logger.warning(
        "http_request_failed",
        extra={
            "method": method,
            "url": _sanitize_url(url),
            "status_code": status_code,
            "retryable": False,
        },
    )


def _log_transient_error(
    msg: str,
    method: str,
    url: str,
    attempt: int,
    error: str,
) -> None:
    """Loga erro transitório (timeout, conexão)."""
    logger.warning(
        msg,
        extra={
            "method": method,
            "url": _sanitize_url(url),
            "attempt": attempt + 1,
            "error": error,
        },
    )


def _log_retries_exhausted(method: str, url: str, total: int) -> None:
    logger.error(
        "http_retries_exhausted",
        extra={
            "method": method,
            "url": _sanitize_url(url),
            "total_attempts": total,
        },
    )


def _handle_transient_exception(
    exc: Exception,
    method: str,
    url: str,
    attempt: int,
) -> HttpError:
    """Trata exceções transitórias (timeout, conexão) e retorna HttpError."""
    if isinstance(exc, httpx.TimeoutException):
        _log_transient_error("http_timeout", method, url, attempt, type(exc).__name__)
        return HttpError("Timeout", is_retryable=True)

    if isinstance(exc, httpx.TransportError):
        _log_transient_error("http_connection_error", method, url, attempt, type(exc).__name__)
        return HttpError("Erro de conexão", is_retryable=True)

    logger.error(
        "http_unexpected_error",
        extra={"method": method, "url": _sanitize_url(url), "error_type": type(exc).__name__},
    )
    raise HttpError(f"Erro inesperado: {type(exc).__name__}") from exc


class HttpClient:
    """Cliente HTTP assíncrono com retry e logging.

    Uso típico:
        async with HttpClient(config) as client:
            response = await client.post(url, json=payload)
    """

    def __init__(self, config: HttpClientConfig | None = None) -> None:
        self._config = config or HttpClientConfig()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Retorna cliente httpx (lazy loading)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
            )
        return self._client

    async def close(self) -> None:
        """Fecha o cliente e libera recursos."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Executa requisição com retry automático.

        Raises:
            HttpError: status não retentável ou tentativas esgotadas
        """
        client = await self._get_client()
        last_error: HttpError | None = None
        cfg = self._config

        for attempt in range(cfg.max_retries + 1):
            _log_request_start(method, url, attempt, cfg.max_retries)

            try:
                response = await client.request(method, url, **kwargs)
                result = self._process_response(response, method, url)
                if result is not None:
                    return result
                last_error = HttpError(
                    f"HTTP {response.status_code}",
                    status_code=response.status_code,
                    is_retryable=True,
                )

            except HttpError:
                raise
            except Exception as exc:
                last_error = _handle_transient_exception(exc, method, url, attempt)

            await self._wait_backoff_if_needed(attempt)

        _log_retries_exhausted(method, url, cfg.max_retries + 1)
        raise last_error or HttpError("Falha após todos os retries")

    def _process_response(
        self,
        response: httpx.Response,
        method: str,
        url: str,
    ) -> httpx.Response | None:
        """Retorna a resposta se sucesso, levanta se não retentável.

        Returns:
            Response se sucesso, None se retentável
        """
        if response.is_success:
            return response

        if not _is_retryable_status(response.status_code):
            _log_non_retryable_error(method, url, response.status_code)
            raise HttpError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                is_retryable=False,
            )
        return None

    async def _wait_backoff_if_needed(self, attempt: int) -> None:
        """Aguarda backoff se ainda há retries disponíveis."""
        cfg = self._config
        if attempt < cfg.max_retries:
            backoff = _calculate_backoff(
                attempt,
                cfg.backoff_base_seconds,
                cfg.backoff_max_seconds,
                cfg.backoff_strategy,
            )
            logger.info(
                "http_backoff",
                extra={"backoff_seconds": backoff, "next_attempt": attempt + 2},
            )
            await asyncio.sleep(backoff)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Executa GET com retry."""
        return await self._request_with_retry("GET", url, **kwargs)

    async def post(
        self,
        url: str,
        json: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Executa POST com retry."""
        return await self._request_with_retry("POST", url, json=json, **kwargs)


def create_http_client(
    settings: Settings,
    *,
    timeout_seconds: float,
    max_retries: int = 0,
    backoff_base_seconds: float = 0.4,
    backoff_strategy: str = BACKOFF_EXPONENTIAL,
    base_url: str = "",
    headers: dict[str, str] | None = None,
) -> HttpClient:
    """Factory para criar cliente HTTP configurado para um adapter."""
    default_headers = {"User-Agent": f"{settings.service_name}/{settings.version}"}
    default_headers.update(headers or {})
    config = HttpClientConfig(
        timeout_seconds=timeout_seconds,
        max_retries=max_retries,
        backoff_base_seconds=backoff_base_seconds,
        backoff_strategy=backoff_strategy,
        default_headers=default_headers,
        base_url=base_url,
    )

    logger.info(
        "http_client_created",
        extra={
            "timeout_seconds": config.timeout_seconds,
            "max_retries": config.max_retries,
            "backoff_strategy": config.backoff_strategy,
        },
    )
    return HttpClient(config)
