"""Modelos de domínio: lugares, detalhes, patrocinadores e persona.

Os modelos espelham o formato do Google Places (snake_case original) para
que o payload do provedor possa ser validado diretamente.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LatLng(BaseModel):
    """Coordenada geográfica."""

    model_config = ConfigDict(frozen=True)

    lat: float | None = None
    lng: float | None = None


class Geometry(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    location: LatLng = Field(default_factory=LatLng)


class Place(BaseModel):
    """Snapshot imutável de um resultado de nearby search."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    place_id: str | None = None
    name: str | None = None
    types: tuple[str, ...] = ()
    business_status: str | None = None
    geometry: Geometry = Field(default_factory=Geometry)
    rating: float | None = None
    user_ratings_total: int | None = None
    price_level: int | None = None
    vicinity: str | None = None

    @property
    def lat(self) -> float | None:
        return self.geometry.location.lat

    @property
    def lng(self) -> float | None:
        return self.geometry.location.lng

    @classmethod
    def from_provider(cls, raw: dict[str, Any]) -> Place:
        """Valida um item cru do provedor, tolerando campos extras."""
        return cls.model_validate(raw)


class OpeningHours(BaseModel):
    model_config = ConfigDict(extra="ignore")

    open_now: bool | None = None
    weekday_text: list[str] = Field(default_factory=list)


class PlaceDetails(BaseModel):
    """Detalhes de um lugar (endpoint details)."""

    model_config = ConfigDict(extra="ignore")

    place_id: str | None = None
    name: str | None = None
    formatted_phone_number: str | None = None
    international_phone_number: str | None = None
    website: str | None = None
    url: str | None = None
    opening_hours: OpeningHours | None = None
    price_level: int | None = None
    rating: float | None = None
    user_ratings_total: int | None = None
    types: list[str] = Field(default_factory=list)
    formatted_address: str | None = None
    vicinity: str | None = None
    geometry: Geometry | None = None
    reviews: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def phone(self) -> str | None:
        return self.formatted_phone_number or self.international_phone_number


class Sponsor(BaseModel):
    """Patrocinador cadastrado no arquivo de parceiros.

    Campos promocionais aceitam os aliases históricos do cadastro
    (ex: `descricao`, `cardapio`).
    """

    model_config = ConfigDict(extra="ignore")

    place_id: str
    active: bool = False
    prioridade: int | None = None
    nome: str | None = None
    destaque: str | None = None
    detalhes: str | None = None
    descricao: str | None = None
    info: str | None = None
    menu_link: str | None = None
    cardapio: str | None = None
    link_menu: str | None = None
    whatsapp: str | None = None
    instagram: str | None = None
    cta: str | None = None

    @field_validator("prioridade", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @property
    def description(self) -> str | None:
        return self.detalhes or self.descricao or self.info

    @property
    def menu(self) -> str | None:
        return self.menu_link or self.cardapio or self.link_menu


# Chaves da persona que podem ser persistidas como `last_choice`
PERSONA_ALLOWED_KEYS: frozenset[str] = frozenset({
    "nome",
    "tipo_bar",
    "ambiente",
    "bebida_preferida",
    "comida",
    "musica",
    "preco",
    "cozinha",
    "ocasião",
    "restricoes",
    "bebida",
    "openNow",
    "keyword",
    "q1",
    "q2",
    "q3",
})


def sanitize_answers(answers: dict[str, Any]) -> dict[str, Any]:
    """Mantém apenas chaves conhecidas da persona com valores escalares."""
    return {
        k: v
        for k, v in answers.items()
        if k in PERSONA_ALLOWED_KEYS and v is not None and isinstance(v, str | int | float | bool)
    }


class Persona(BaseModel):
    """Persona persistida do usuário: nome e respostas por domínio."""

    nome: str | None = None
    bar: dict[str, Any] = Field(default_factory=dict)
    rest: dict[str, Any] = Field(default_factory=dict)

    def for_domain(self, persona_key: str) -> dict[str, Any]:
        return dict(self.bar if persona_key == "bar" else self.rest)

    def with_domain(self, persona_key: str, data: dict[str, Any]) -> Persona:
        if persona_key == "bar":
            return self.model_copy(update={"bar": data})
        return self.model_copy(update={"rest": data})
