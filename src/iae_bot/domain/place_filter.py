"""Filtro de lugares por status e tipo, e deduplicação por place_id.

Regras aplicadas em ordem (primeira que casa decide):
1. business_status presente e diferente de OPERATIONAL → descarta
2. sem place_id ou sem nome → descarta
3. algum tipo na lista de exclusão → descarta
4. algum tipo permitido para o domínio → mantém; senão descarta
"""

from __future__ import annotations

from collections.abc import Iterable

from iae_bot.domain.enums import PlaceDomain
from iae_bot.domain.models import Place

EXCLUDED_TYPES: frozenset[str] = frozenset({
    "bakery",
    "beauty_salon",
    "store",
    "supermarket",
    "gas_station",
    "lodging",
    "pharmacy",
    "church",
    "place_of_worship",
    "school",
    "university",
    "hospital",
    "doctor",
    "dentist",
    "veterinary_care",
    "gym",
    "car_repair",
    "car_wash",
    "hair_care",
    "laundry",
    "finance",
    "atm",
    "bank",
    "real_estate_agency",
    "lawyer",
    "accounting",
    "local_government_office",
})


def is_acceptable(place: Place, domain: PlaceDomain) -> bool:
    """Aplica as regras de status/tipo a um único lugar."""
    if place.business_status and place.business_status != "OPERATIONAL":
        return False
    if not place.place_id or not place.name:
        return False
    types = set(place.types)
    if types & EXCLUDED_TYPES:
        return False
    return bool(types & domain.allowed_types)


def filter_places_by_type(places: Iterable[Place], domain: PlaceDomain) -> list[Place]:
    """Filtra a lista preservando a ordem original."""
    return [p for p in places if is_acceptable(p, domain)]


def dedupe_by_place_id(places: Iterable[Place]) -> list[Place]:
    """Remove repetidos mantendo a primeira ocorrência de cada place_id.

    Itens sem place_id passam adiante; o filtro de tipo os descarta.
    """
    seen: set[str] = set()
    unique: list[Place] = []
    for place in places:
        if place.place_id:
            if place.place_id in seen:
                continue
            seen.add(place.place_id)
        unique.append(place)
    return unique
