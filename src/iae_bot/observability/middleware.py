"""Correlation id do webhook, da request até o turno processado em background."""

from __future__ import annotations

import contextlib
import re
import uuid
from collections.abc import Iterator
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "x-correlation-id"

# O id recebido vai direto para os logs JSON.
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id corrente (ou vazio)."""

    return _correlation_id.get()


def accept_correlation_id(incoming: str | None) -> str:
    """Reaproveita o id do gateway quando bem formado; senão gera outro."""

    if incoming and _ACCEPTED_ID.match(incoming):
        return incoming
    return uuid.uuid4().hex


@contextlib.contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Fixa o correlation_id durante o bloco e restaura o anterior ao sair.

    As tarefas de background do webhook rodam depois da resposta, fora do
    escopo do middleware; por isso reabrem o escopo com o id da request.
    """

    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Propaga (ou gera) o correlation_id e devolve no header da resposta."""

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        correlation_id = accept_correlation_id(request.headers.get(CORRELATION_HEADER))
        with correlation_scope(correlation_id):
            response = await call_next(request)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
