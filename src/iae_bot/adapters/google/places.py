"""Adapter do Google Places (nearby, details, text search, find place).

Falhas do provedor viram resultado vazio/None com log; nenhuma exceção
sobe para a conversa.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from iae_bot.config.settings import GOOGLE_PLACES_BASE_URL
from iae_bot.domain.enums import QUERY_TYPES, PlaceDomain
from iae_bot.domain.models import LatLng, Place, PlaceDetails
from iae_bot.domain.place_filter import dedupe_by_place_id
from iae_bot.infra.http import HttpClient, HttpError, create_http_client
from iae_bot.observability.logging import get_logger

if TYPE_CHECKING:
    from iae_bot.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

DETAILS_FIELDS = ",".join((
    "place_id",
    "name",
    "formatted_phone_number",
    "international_phone_number",
    "website",
    "url",
    "opening_hours",
    "price_level",
    "rating",
    "user_ratings_total",
    "types",
    "formatted_address",
    "vicinity",
    "geometry",
    "reviews",
))

_GEOCODE_CONTROL_WORDS = re.compile(
    r"\b(outro|lugar|quero|perto|na|no|em|bairro|cidade|de|da|do)\b", re.IGNORECASE
)
_FIND_PLACE_CONTROL_PHRASES = re.compile(
    r"(onde fica|aonde fica|qual o endereço|endereco|endereço|como chegar|perto do|perto da|perto de)"
)


@dataclass(frozen=True, slots=True)
class GeocodeResult:
    lat: float
    lng: float
    label: str | None = None


@dataclass(frozen=True, slots=True)
class FoundPlace:
    place_id: str
    name: str | None = None
    formatted_address: str | None = None


def clean_geocode_query(query: str, default_city: str) -> str:
    """Remove palavras de controle e garante a cidade padrão na consulta."""
    cleaned = _GEOCODE_CONTROL_WORDS.sub(" ", query or "")
    cleaned = re.sub(r"[.,;:!?#]", " ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    q = cleaned or (query or "").strip()
    lowered = q.lower()
    city = default_city.lower()
    plain_city = city.replace("í", "i")
    if city not in lowered and plain_city not in lowered:
        q = f"{q} {default_city}".strip()
    return q


def clean_find_place_input(text: str) -> str:
    cleaned = _FIND_PLACE_CONTROL_PHRASES.sub(" ", (text or "").lower())
    return re.sub(r"\s+", " ", cleaned).strip()


def _parse_places(results: Iterable[Any]) -> list[Place]:
    places: list[Place] = []
    for raw in results:
        if not isinstance(raw, dict):
            continue
        try:
            places.append(Place.from_provider(raw))
        except ValidationError:
            logger.debug("place_payload_invalid", extra={"place_id": raw.get("place_id")})
    return places


class GooglePlacesClient:
    """Cliente das APIs do Places com cache de details."""

    def __init__(
        self,
        http: HttpClient,
        api_key: str | None,
        radius_meters: int = 5000,
        details_ttl_seconds: int = 86400,
        default_city: str = "Brasília",
        find_place_timeout_seconds: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._radius = radius_meters
        self._details_ttl = details_ttl_seconds
        self._default_city = default_city
        self._find_place_timeout = find_place_timeout_seconds
        self._clock = clock
        self._details_cache: dict[str, tuple[float, PlaceDetails | None]] = {}

    async def _get_json(self, path: str, params: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        params = {**params, "key": self._api_key or ""}
        response = await self._http.get(f"{GOOGLE_PLACES_BASE_URL}/{path}", params=params, **kwargs)
        data = response.json()
        return data if isinstance(data, dict) else {}

    async def nearby_search(
        self,
        lat: float,
        lng: float,
        place_type: str,
        keyword: str | None = None,
        open_now: bool = False,
    ) -> list[Place]:
        """Uma consulta nearbysearch para um tipo do provedor."""
        params: dict[str, Any] = {
            "location": f"{lat},{lng}",
            "radius": str(self._radius),
            "type": place_type,
        }
        if keyword:
            params["keyword"] = keyword
        if open_now:
            params["opennow"] = "true"

        try:
            data = await self._get_json("nearbysearch/json", params)
        except (HttpError, ValueError) as e:
            logger.warning(
                "places_nearby_failed",
                extra={"place_type": place_type, "error_type": type(e).__name__},
            )
            return []

        if data.get("error_message"):
            logger.warning(
                "places_nearby_provider_error",
                extra={"place_type": place_type, "status": data.get("status")},
            )
        return _parse_places(data.get("results") or [])

    async def nearby_for_domain(
        self,
        lat: float,
        lng: float,
        domain: PlaceDomain,
        keyword: str | None = None,
        open_now: bool = False,
    ) -> list[Place]:
        """Consulta todos os tipos do domínio e mescla sem duplicatas."""
        merged: list[Place] = []
        for place_type in QUERY_TYPES[domain]:
            merged.extend(await self.nearby_search(lat, lng, place_type, keyword, open_now))
        unique = dedupe_by_place_id(merged)
        logger.info(
            "places_nearby_done",
            extra={"domain": domain.value, "raw": len(merged), "unique": len(unique)},
        )
        return unique

    async def details(self, place_id: str | None) -> PlaceDetails | None:
        """Detalhes com cache por place_id (TTL configurável)."""
        if not place_id:
            return None
        now = self._clock()
        cached = self._details_cache.get(place_id)
        if cached and now - cached[0] < self._details_ttl:
            return cached[1]

        params = {
            "place_id": place_id,
            "fields": DETAILS_FIELDS,
            "language": "pt-BR",
            "reviews_sort": "most_relevant",
        }
        try:
            data = await self._get_json("details/json", params)
            result = data.get("result")
            details = PlaceDetails.model_validate(result) if isinstance(result, dict) else None
        except (HttpError, ValueError) as e:
            logger.warning("places_details_failed", extra={"error_type": type(e).__name__})
            return None

        if details is not None:
            self._details_cache[place_id] = (now, details)
        return details

    async def text_search(self, query: str) -> GeocodeResult | None:
        """Geocodifica um texto livre (bairro, cidade, ponto de referência)."""
        q = clean_geocode_query(query, self._default_city)
        try:
            data = await self._get_json("textsearch/json", {"query": q})
        except (HttpError, ValueError) as e:
            logger.warning("places_textsearch_failed", extra={"error_type": type(e).__name__})
            return None

        results = data.get("results") or []
        if not results:
            logger.info("places_textsearch_empty", extra={"status": data.get("status")})
            return None
        best = results[0] if isinstance(results[0], dict) else {}
        location = LatLng.model_validate(best.get("geometry", {}).get("location", {}))
        if location.lat is None or location.lng is None:
            return None
        return GeocodeResult(
            lat=location.lat,
            lng=location.lng,
            label=best.get("formatted_address") or best.get("name"),
        )

    async def find_place(self, text: str, location_bias: LatLng | None = None) -> FoundPlace | None:
        """Resolve um lugar pelo nome citado na mensagem."""
        cleaned = clean_find_place_input(text)
        if not cleaned:
            return None
        params: dict[str, Any] = {
            "input": cleaned,
            "inputtype": "textquery",
            "fields": "place_id,name,formatted_address",
            "language": "pt-BR",
            "region": "BR",
        }
        if location_bias and location_bias.lat is not None and location_bias.lng is not None:
            params["locationbias"] = f"circle:50000@{location_bias.lat},{location_bias.lng}"

        try:
            data = await self._get_json(
                "findplacefromtext/json", params, timeout=self._find_place_timeout
            )
        except (HttpError, ValueError) as e:
            logger.warning("places_find_failed", extra={"error_type": type(e).__name__})
            return None

        candidates = data.get("candidates") or []
        if data.get("status") != "OK" or not candidates:
            return None
        first = candidates[0]
        if not isinstance(first, dict) or not first.get("place_id"):
            return None
        return FoundPlace(
            place_id=first["place_id"],
            name=first.get("name"),
            formatted_address=first.get("formatted_address"),
        )

    async def close(self) -> None:
        await self._http.close()


def create_places_client(settings: Settings) -> GooglePlacesClient:
    http = create_http_client(settings, timeout_seconds=settings.google_places_timeout_seconds)
    return GooglePlacesClient(
        http,
        api_key=settings.google_maps_api_key,
        radius_meters=settings.places_radius_meters,
        details_ttl_seconds=settings.place_details_ttl_seconds,
        default_city=settings.geocode_default_city,
        find_place_timeout_seconds=settings.google_find_place_timeout_seconds,
    )
