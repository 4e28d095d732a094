"""Utilitários geoespaciais (distância haversine e filtro por raio)."""

from __future__ import annotations

import math
from collections.abc import Iterable

from iae_bot.domain.models import Place

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distância em km entre dois pontos na superfície da Terra."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value)


def filter_by_distance(
    places: Iterable[Place],
    center_lat: float,
    center_lng: float,
    max_km: float = 15.0,
) -> list[Place]:
    """Mantém lugares a até `max_km` do centro (limite inclusivo).

    Lugares sem coordenada numérica são mantidos.
    """
    kept: list[Place] = []
    for place in places:
        lat, lng = place.lat, place.lng
        if not (_is_number(lat) and _is_number(lng)):
            kept.append(place)
            continue
        if haversine_km(center_lat, center_lng, lat, lng) <= max_km:
            kept.append(place)
    return kept


def is_near_duplicate(
    previous: tuple[float, float] | None,
    current: tuple[float, float],
    threshold_km: float = 0.1,
) -> bool:
    """True quando a nova coordenada está a menos de `threshold_km` da anterior."""
    if previous is None:
        return False
    return haversine_km(previous[0], previous[1], current[0], current[1]) < threshold_km
