"""Testes do adapter do Google Places (HttpClient mockado)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from iae_bot.adapters.google.places import (
    GooglePlacesClient,
    clean_find_place_input,
    clean_geocode_query,
)
from iae_bot.domain.enums import PlaceDomain
from iae_bot.domain.models import LatLng
from iae_bot.infra.http import HttpError


def _response(data: object) -> MagicMock:
    response = MagicMock()
    response.json.return_value = data
    return response


def _raw(place_id: str, types: list[str] | None = None) -> dict:
    return {
        "place_id": place_id,
        "name": place_id.upper(),
        "types": types or ["bar"],
        "geometry": {"location": {"lat": -15.79, "lng": -47.88}},
    }


def _client(*responses: object, clock=lambda: 1000.0) -> tuple[GooglePlacesClient, MagicMock]:
    http = MagicMock()
    http.get = AsyncMock(side_effect=list(responses))
    http.close = AsyncMock()
    return GooglePlacesClient(http, api_key="k", clock=clock), http


class TestQueryCleaning:
    """Limpeza de texto antes das consultas."""

    def test_geocode_adds_default_city(self) -> None:
        assert clean_geocode_query("quero na Asa Norte", "Brasília") == "Asa Norte Brasília"

    def test_geocode_keeps_city_when_present(self) -> None:
        assert clean_geocode_query("Lago Sul, Brasilia", "Brasília") == "Lago Sul Brasilia"

    def test_find_place_strips_control_phrases(self) -> None:
        assert clean_find_place_input("Onde fica o Bar do Zé") == "o bar do zé"


class TestNearby:
    """nearbysearch por tipo e mescla por domínio."""

    @pytest.mark.asyncio
    async def test_params(self) -> None:
        client, http = _client(_response({"results": [_raw("a")]}))

        places = await client.nearby_search(-15.7, -47.8, "bar", keyword="samba", open_now=True)

        assert [p.place_id for p in places] == ["a"]
        params = http.get.await_args.kwargs["params"]
        assert params["location"] == "-15.7,-47.8"
        assert params["type"] == "bar"
        assert params["keyword"] == "samba"
        assert params["opennow"] == "true"
        assert params["key"] == "k"

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self) -> None:
        client, _ = _client(HttpError("boom", status_code=500))
        assert await client.nearby_search(0.0, 0.0, "bar") == []

    @pytest.mark.asyncio
    async def test_domain_merges_types_without_duplicates(self) -> None:
        client, http = _client(
            _response({"results": [_raw("a"), _raw("b")]}),
            _response({"results": [_raw("b", ["pub"])]}),
            _response({"results": [_raw("c", ["night_club"])]}),
        )

        places = await client.nearby_for_domain(0.0, 0.0, PlaceDomain.BAR)

        assert [p.place_id for p in places] == ["a", "b", "c"]
        types = [call.kwargs["params"]["type"] for call in http.get.await_args_list]
        assert types == ["bar", "pub", "night_club"]


class TestDetails:
    """Detalhes com cache."""

    @pytest.mark.asyncio
    async def test_cached_within_ttl(self) -> None:
        client, http = _client(
            _response({"result": {"place_id": "a", "name": "A", "website": "https://a.com"}})
        )

        first = await client.details("a")
        second = await client.details("a")

        assert first is second
        assert first.website == "https://a.com"
        assert http.get.await_count == 1

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self) -> None:
        now = [0.0]
        client, http = _client(
            _response({"result": {"place_id": "a"}}),
            _response({"result": {"place_id": "a", "name": "Novo"}}),
            clock=lambda: now[0],
        )

        await client.details("a")
        now[0] = 86401.0
        refreshed = await client.details("a")

        assert refreshed.name == "Novo"
        assert http.get.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_id_or_failure(self) -> None:
        client, http = _client(HttpError("x"))
        assert await client.details(None) is None
        assert await client.details("a") is None
        assert http.get.await_count == 1


class TestTextAndFind:
    """textsearch e findplacefromtext."""

    @pytest.mark.asyncio
    async def test_text_search(self) -> None:
        client, http = _client(_response({
            "results": [{
                "formatted_address": "Asa Norte, Brasília",
                "geometry": {"location": {"lat": -15.76, "lng": -47.88}},
            }]
        }))

        result = await client.text_search("Asa Norte")

        assert (result.lat, result.lng, result.label) == (-15.76, -47.88, "Asa Norte, Brasília")
        assert http.get.await_args.kwargs["params"]["query"] == "Asa Norte Brasília"

    @pytest.mark.asyncio
    async def test_text_search_empty(self) -> None:
        client, _ = _client(_response({"results": [], "status": "ZERO_RESULTS"}))
        assert await client.text_search("lugar nenhum") is None

    @pytest.mark.asyncio
    async def test_find_place_with_bias(self) -> None:
        client, http = _client(_response({
            "status": "OK",
            "candidates": [{"place_id": "p1", "name": "Bar do Zé", "formatted_address": "SCLN"}],
        }))

        found = await client.find_place("onde fica o bar do zé", LatLng(lat=-15.0, lng=-47.0))

        assert found.place_id == "p1"
        params = http.get.await_args.kwargs["params"]
        assert params["locationbias"] == "circle:50000@-15.0,-47.0"
        assert http.get.await_args.kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_find_place_not_ok(self) -> None:
        client, _ = _client(_response({"status": "ZERO_RESULTS", "candidates": []}))
        assert await client.find_place("bar do zé") is None
