"""Configurações centralizadas do iae_bot.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única
- URLs fixas das APIs Google

Uso típico:
    from iae_bot.config import get_settings
"""

from iae_bot.config.settings import (
    GOOGLE_PLACES_BASE_URL,
    GOOGLE_SPEECH_URL,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "GOOGLE_PLACES_BASE_URL",
    "GOOGLE_SPEECH_URL",
]
