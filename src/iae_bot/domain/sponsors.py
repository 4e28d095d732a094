"""Promoção de patrocinadores para as posições 1..3 e detecção de menção."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Sequence

from iae_bot.domain.models import Place, Sponsor

MAX_PINNED_SLOTS = 3
DEFAULT_PRIORITY = 99


def effective_priority(sponsor: Sponsor) -> int:
    """Prioridade usada na ordenação (ausente, zero ou inválida → 99)."""
    return sponsor.prioridade or DEFAULT_PRIORITY


def preferred_slot(sponsor: Sponsor) -> int:
    """Slot desejado pelo patrocinador, limitado a 1..3."""
    return max(1, min(MAX_PINNED_SLOTS, effective_priority(sponsor)))


def promote_sponsored_order(
    places: Sequence[Place],
    sponsors: Iterable[Sponsor],
) -> list[Place]:
    """Fixa patrocinadores ativos presentes na lista nos slots 1..3.

    Patrocinadores são processados por prioridade crescente (desempate por
    place_id); o primeiro a reivindicar um slot fica com ele e quem encontra o
    slot ocupado não é fixado. Saída: fixados na ordem dos slots e depois o
    restante na ordem recebida. O tamanho da lista é preservado.
    """
    first_index: dict[str, int] = {}
    for index, place in enumerate(places):
        if place.place_id and place.place_id not in first_index:
            first_index[place.place_id] = index

    candidates = sorted(
        (s for s in sponsors if s.active and s.place_id in first_index),
        key=lambda s: (effective_priority(s), s.place_id),
    )

    slots: dict[int, int] = {}
    for sponsor in candidates:
        slot = preferred_slot(sponsor)
        index = first_index[sponsor.place_id]
        if slot in slots or index in slots.values():
            continue
        slots[slot] = index

    if not slots:
        return list(places)

    pinned_indexes = [slots[slot] for slot in sorted(slots)]
    taken = set(pinned_indexes)
    pinned = [places[i] for i in pinned_indexes]
    rest = [p for i, p in enumerate(places) if i not in taken]
    return pinned + rest


def normalize_text(text: str | None) -> str:
    """Minúsculas, sem acentos, só [a-z0-9 ] e espaços colapsados."""
    decomposed = unicodedata.normalize("NFD", (text or "").lower())
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    cleaned = re.sub(r"[^a-z0-9 ]+", " ", stripped)
    return re.sub(r"\s+", " ", cleaned).strip()


def detect_sponsor_mention(text: str | None, sponsors: Iterable[Sponsor]) -> Sponsor | None:
    """Retorna o patrocinador ativo citado pelo nome na mensagem.

    Casa quando a mensagem contém o nome, quando o nome contém uma mensagem
    curta (>= 4 caracteres) ou, para nomes compostos, pela última palavra
    (>= 4 caracteres).
    """
    normalized = normalize_text(text)
    if not normalized:
        return None
    for sponsor in sponsors:
        if not sponsor.active:
            continue
        name = normalize_text(sponsor.nome)
        if not name:
            continue
        if name in normalized or (len(normalized) >= 4 and normalized in name):
            return sponsor
        parts = name.split()
        if len(parts) >= 2 and len(parts[-1]) >= 4 and parts[-1] in normalized:
            return sponsor
    return None
