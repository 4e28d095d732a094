"""Enums de domínio: tipo de lugar, tópicos de informação e humor."""

from __future__ import annotations

from enum import StrEnum


class PlaceDomain(StrEnum):
    """Domínio de busca escolhido pelo usuário."""

    BAR = "bar"
    RESTAURANT = "restaurante"

    @property
    def persona_key(self) -> str:
        """Chave usada na persona persistida (bar | rest)."""
        return "bar" if self is PlaceDomain.BAR else "rest"

    @property
    def allowed_types(self) -> frozenset[str]:
        """Tipos Google aceitos para o domínio."""
        return ALLOWED_TYPES[self]

    @property
    def plural_label(self) -> str:
        """Rótulo usado nas mensagens de resultado."""
        return "bares" if self is PlaceDomain.BAR else "restaurantes"


ALLOWED_TYPES: dict[PlaceDomain, frozenset[str]] = {
    PlaceDomain.BAR: frozenset({"bar", "pub", "night_club"}),
    PlaceDomain.RESTAURANT: frozenset({"restaurant", "cafe"}),
}

# Ordem de consulta ao provedor (uma nearby search por tipo)
QUERY_TYPES: dict[PlaceDomain, tuple[str, ...]] = {
    PlaceDomain.BAR: ("bar", "pub", "night_club"),
    PlaceDomain.RESTAURANT: ("restaurant", "cafe"),
}


class InfoTopic(StrEnum):
    """Tópicos de pergunta sobre um lugar já apresentado."""

    PRICE = "price"
    HOURS = "hours"
    PHONE = "phone"
    WEBSITE = "website"
    ADDRESS = "address"


class Mood(StrEnum):
    """Humor detectado na mensagem do usuário."""

    HAPPY = "feliz"
    SAD = "triste"
    TIRED = "cansado"
    ANGRY = "irritado"
    NEUTRAL = "neutro"


class Role(StrEnum):
    """Autor de uma entrada do histórico."""

    USER = "user"
    BOT = "bot"
