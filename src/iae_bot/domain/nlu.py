"""Heurísticas determinísticas de entendimento de texto (pt-BR).

Tudo aqui é puro e síncrono; as variantes assistidas por LLM ficam em
`iae_bot.ai.assistant` e caem nestas funções quando o modelo falha.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

from iae_bot.domain.enums import InfoTopic, Mood, PlaceDomain


def strip_accents(text: str | None) -> str:
    """Remove diacríticos e converte para minúsculas."""
    decomposed = unicodedata.normalize("NFD", (text or "").lower())
    return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


def _tokens(text: str | None) -> list[str]:
    plain = strip_accents(text)
    return [t for t in re.split(r"[^a-z0-9]+", plain) if t]


# -----------------------------------------------------------------------------
# Saudação e conversa fiada
# -----------------------------------------------------------------------------
_GREETING_TOKENS = frozenset({"oi", "ola", "olaa", "opa", "eai", "eaee", "bom", "boa", "hello", "hi"})
_GREETING_PHRASES = ("bom dia", "boa tarde", "boa noite")

_SMALL_TALK_PATTERNS = (
    "como vc esta",
    "como voce esta",
    "como você está",
    "como vai",
    "tudo bem",
    "td bem",
    "beleza",
    "qual seu nome",
    "qual o seu nome",
    "seu nome",
    "quem e voce",
    "quem é você",
    "quem vc e",
    "o que voce faz",
    "o que vc faz",
    "quem eh voce",
    "quem é vc",
    "obrigado",
    "valeu",
    "brigado",
    "obg",
    "agradecido",
    "bom dia",
    "boa tarde",
    "boa noite",
)


def is_greeting(text: str | None) -> bool:
    """Mensagem curta (até 3 tokens) com cumprimento."""
    tokens = _tokens(text)
    if not tokens or len(tokens) > 3:
        return False
    plain = strip_accents(text)
    return any(t in _GREETING_TOKENS for t in tokens) or any(p in plain for p in _GREETING_PHRASES)


def is_small_talk(text: str | None) -> bool:
    lowered = (text or "").lower()
    return any(p in lowered for p in _SMALL_TALK_PATTERNS)


# -----------------------------------------------------------------------------
# Intenção bar x restaurante
# -----------------------------------------------------------------------------
_BAR_TOKENS = frozenset({"bar", "bares", "pub", "boteco", "barzinho"})
_RESTAURANT_TOKENS = frozenset({"restaurante", "restaurantes", "jantar", "almoco", "almoc", "resto"})


def detect_chosen_intent(text: str | None) -> PlaceDomain | None:
    """Detecta bar/restaurante por tokens; se ambos aparecem, vence o último."""
    plain = strip_accents(text)
    tokens = set(_tokens(text))
    says_bar = bool(tokens & _BAR_TOKENS) or "barzin" in plain
    says_rest = bool(tokens & _RESTAURANT_TOKENS) or "restaur" in plain

    if says_bar and not says_rest:
        return PlaceDomain.BAR
    if says_rest and not says_bar:
        return PlaceDomain.RESTAURANT
    if says_bar and says_rest:
        last_bar = max(
            (m.start() for m in re.finditer(r"\bbar(es|zinho)?\b|barzin|\bpub\b|\bboteco\b", plain)),
            default=-1,
        )
        last_rest = max(
            (m.start() for m in re.finditer(r"restaur|\bjantar\b|\balmoc", plain)),
            default=-1,
        )
        if last_bar > last_rest:
            return PlaceDomain.BAR
        if last_rest > last_bar:
            return PlaceDomain.RESTAURANT
    return None


# -----------------------------------------------------------------------------
# Seleção numérica e tópicos de informação
# -----------------------------------------------------------------------------
_SELECTION_DIGIT = re.compile(r"\b([123])\b", re.ASCII)
_SELECTION_WORDS = (
    (re.compile(r"primeir|1\s*o"), 1),
    (re.compile(r"segund|2\s*o"), 2),
    (re.compile(r"terceir|3\s*o"), 3),
)
_NUMERIC_ONLY = re.compile(r"^\s*\d+\s*[º°o]?\s*$")


def parse_selection_index(text: str | None) -> int | None:
    """Retorna 1, 2 ou 3 quando o texto escolhe um item da página."""
    lowered = (text or "").lower()
    match = _SELECTION_DIGIT.search(lowered)
    if match:
        return int(match.group(1))
    for pattern, index in _SELECTION_WORDS:
        if pattern.search(lowered):
            return index
    return None


def looks_numeric(text: str | None) -> bool:
    """Mensagem composta só por um número (ex: "2", "5º")."""
    return bool(_NUMERIC_ONLY.match(text or ""))


_INFO_PATTERNS: tuple[tuple[InfoTopic, re.Pattern[str]], ...] = (
    (InfoTopic.PRICE, re.compile(r"preço|preco|quanto custa|faixa de preço|valor")),
    (InfoTopic.HOURS, re.compile(r"horário|horario|abre|fecha|funciona|aberto|fechado")),
    (InfoTopic.PHONE, re.compile(r"telefone|whatsapp|contato")),
    (InfoTopic.WEBSITE, re.compile(r"site|cardápio|cardapio|link")),
    (InfoTopic.ADDRESS, re.compile(r"endereço|endereco|como chegar|onde fica|aonde fica")),
)


def detect_info_intent(text: str | None) -> InfoTopic | None:
    """Primeiro tópico (na ordem preço, horário, telefone, site, endereço)."""
    lowered = (text or "").lower()
    for topic, pattern in _INFO_PATTERNS:
        if pattern.search(lowered):
            return topic
    return None


_NEXT_PAGE = re.compile(r"ver mais|mais op[cç][oõ]es|mostra mais|outras op[cç][oõ]es|pr[oó]xim[ao]s")


def wants_next_page(text: str | None) -> bool:
    return bool(_NEXT_PAGE.search((text or "").lower()))


# -----------------------------------------------------------------------------
# Humor
# -----------------------------------------------------------------------------
_MOOD_WORDS: tuple[tuple[Mood, tuple[str, ...]], ...] = (
    (
        Mood.HAPPY,
        ("feliz", "legal", "show", "top", "massa", "yay", "uhul", "obrigado", "valeu",
         "bom demais", "😍", "😄", "😀", "😃", "😁", "😊"),
    ),
    (
        Mood.SAD,
        ("triste", "chateado", "depress", "deprim", "mal", "péssimo", "pessimo",
         "😢", "😭", "☹", "🙁"),
    ),
    (
        Mood.TIRED,
        ("cansado", "cansada", "exausto", "exausta", "sem energia", "pregui", "😪", "🥱"),
    ),
    (
        Mood.ANGRY,
        ("bravo", "brava", "puto", "puta", "irritado", "irritada", "raiva", "poxa",
         "pqp", "aff", "😠", "😡"),
    ),
)


def detect_mood_simple(text: str | None) -> Mood:
    """Classificação por listas de palavras; sem casamento → neutro."""
    lowered = (text or "").lower()
    for mood, words in _MOOD_WORDS:
        if any(w in lowered for w in words):
            return mood
    return Mood.NEUTRAL


def parse_mood_label(text: str | None) -> Mood | None:
    """Converte a resposta do LLM em Mood (None se não reconhecida)."""
    plain = strip_accents(text).strip().strip(".!\"'")
    for mood in Mood:
        if plain == mood.value:
            return mood
    return None


TONE_PREFIX: dict[Mood, str] = {
    Mood.HAPPY: "Que bom te ver animadx! ",
    Mood.SAD: "Sinto que as coisas não estão fáceis. Tô aqui pra te ajudar. ",
    Mood.TIRED: "Tô contigo. Vamos facilitar sua vida agora. ",
    Mood.ANGRY: "Beleza, vou ser direto e rápido. ",
}


def tone_prefix(mood: Mood | None) -> str:
    if mood is None:
        return ""
    return TONE_PREFIX.get(mood, "")


# -----------------------------------------------------------------------------
# Filtros de busca e preferências aprendidas
# -----------------------------------------------------------------------------
_KEYWORD_STOPWORDS = frozenset({
    "eu", "quero", "queria", "to", "tô", "estou", "procuro", "preciso", "me", "um", "uma",
    "de", "do", "da", "no", "na", "em", "por", "pra", "para", "com", "sem", "e", "ou",
    "mais", "menos", "bem", "mim", "agora", "hoje", "amanhã", "amanha", "perto", "aqui",
    "proximo", "próximo", "onde", "dica", "dicas", "bar", "bares", "barzinho", "pub",
    "boteco", "restaurante", "restaurantes", "restô", "resto", "lugar", "lugares",
})
_URL = re.compile(r"https?://\S+")
_PUNCTUATION = re.compile(r"[\"'`.,!?;:()\[\]{}]")


def build_keyword_from_message(text: str | None) -> str:
    """Palavra-chave livre: sem URLs, números, pontuação e stopwords."""
    cleaned = _URL.sub(" ", (text or "").lower())
    cleaned = re.sub(r"\d+", " ", cleaned)
    cleaned = _PUNCTUATION.sub(" ", cleaned)
    tokens = [
        t
        for t in strip_accents(cleaned).split()
        if len(t) > 2 and t not in _KEYWORD_STOPWORDS
    ]
    return " ".join(tokens)


def _has_any(text: str, words: tuple[str, ...]) -> bool:
    return any(w in text for w in words)


def extract_search_filters(text: str | None) -> dict[str, Any]:
    """Extrai openNow, keyword livre e o conjunto de keywords de filtro.

    Retorno no formato `{"openNow": True, "keyword": "...", "filters":
    {"keyword": "happy hour chopp"}}`; chaves ausentes quando não aplicáveis.
    """
    lowered = (text or "").lower()
    result: dict[str, Any] = {}
    if "aberto agora" in lowered or "open now" in lowered:
        result["openNow"] = True

    keyword = build_keyword_from_message(lowered)
    if keyword:
        result["keyword"] = keyword

    tags: list[str] = []

    def add(tag: str) -> None:
        if tag not in tags:
            tags.append(tag)

    if _has_any(lowered, ("happy hour", "happyhour")):
        add("happy hour")
    if _has_any(lowered, ("chopp", "chope", "cerveja")):
        add("chopp")
    if _has_any(lowered, ("promo", "desconto", "oferta")):
        add("promoção")
    if _has_any(lowered, ("rodizio", "rodízio")):
        add("rodízio")
    if _has_any(lowered, ("petisco", "tira-gosto", "porcao", "porção")):
        add("petiscos")
    if _has_any(lowered, ("musica", "música", "ao vivo", "live")):
        add("música ao vivo")
    if _has_any(lowered, ("samba", "pagode", "rock", "sertanejo")):
        add("música")
    if _has_any(lowered, ("pub", "boteco", "barzinho")):
        add("bar")
    if _has_any(lowered, ("gourmet", "bistrô", "bistro")):
        add("gourmet")

    if tags:
        result["filters"] = {"keyword": " ".join(tags)}
    return result


def derive_prefs_from_message(text: str | None) -> dict[str, str]:
    """Preferências persistíveis inferidas da mensagem (valores "true")."""
    lowered = (text or "").lower()
    prefs: dict[str, str] = {}
    if _has_any(lowered, ("chopp", "chope")):
        prefs["prefers_chopp"] = "true"
    if "cerveja" in lowered:
        prefs["prefers_cerveja"] = "true"
    if _has_any(lowered, ("happy hour", "happyhour")):
        prefs["prefers_happy_hour"] = "true"
    if _has_any(lowered, ("musica ao vivo", "música ao vivo", "ao vivo")):
        prefs["prefers_musica_ao_vivo"] = "true"
    if _has_any(lowered, ("samba", "pagode", "rock", "sertanejo")):
        prefs["prefers_musica"] = "true"
    if _has_any(lowered, ("pub", "boteco", "barzinho")):
        prefs["prefers_bar_estilo"] = "true"
    if _has_any(lowered, ("rodizio", "rodízio")):
        prefs["prefers_rodizio"] = "true"

    filters = extract_search_filters(lowered)
    last_keyword = filters.get("filters", {}).get("keyword") or filters.get("keyword")
    if last_keyword:
        prefs["last_freeform_keyword"] = last_keyword
    return prefs


def keywords_from_saved_prefs(prefs: dict[str, str]) -> list[str]:
    """Converte preferências salvas em termos de busca."""
    keywords: list[str] = []
    if prefs.get("prefers_chopp") == "true":
        keywords.append("chopp")
    if prefs.get("prefers_cerveja") == "true":
        keywords.append("cerveja")
    if prefs.get("prefers_happy_hour") == "true":
        keywords.append("happy hour")
    if prefs.get("prefers_musica_ao_vivo") == "true" or prefs.get("prefers_musica") == "true":
        keywords.append("música ao vivo")
    if prefs.get("prefers_bar_estilo") == "true":
        keywords.append("bar")
    if prefs.get("prefers_rodizio") == "true":
        keywords.append("rodízio")
    if prefs.get("last_freeform_keyword"):
        keywords.append(prefs["last_freeform_keyword"])
    return keywords


# -----------------------------------------------------------------------------
# Gatilhos especiais
# -----------------------------------------------------------------------------
_FOOTBALL_WORDS = ("futebol", "jogo", "jogos", "partida", "telão", "telao")
FOOTBALL_KEYWORDS = "futebol jogo jogos telão telao"


def is_football_request(text: str | None) -> bool:
    return _has_any((text or "").lower(), _FOOTBALL_WORDS)


def is_carnival_question(text: str | None) -> bool:
    plain = strip_accents(text)
    return "carnaval" in plain and _has_any(plain, ("brasilia", "bsb", "df"))


def _plain_words(text: str | None) -> str:
    cleaned = re.sub(r"[^a-z0-9\s]", " ", strip_accents(text))
    return re.sub(r"\s+", " ", cleaned).strip()


def _mentions_bot(plain: str) -> bool:
    return "iae" in plain or "ia e" in plain


def mentions_launch(text: str | None) -> bool:
    """Cita lançamento ou o próprio bot (candidata a pergunta de lançamento)."""
    plain = _plain_words(text)
    return "lancamento" in plain or _mentions_bot(plain)


def is_launch_question(text: str | None) -> bool:
    """Pergunta explícita sobre onde será o lançamento."""
    plain = _plain_words(text)
    return (
        "lancamento" in plain
        and _mentions_bot(plain)
        and _has_any(plain, ("onde", "aonde", "local"))
    )


_RESET_PHRASES = (
    "recomecar",
    "comecar de novo",
    "comecar do zero",
    "do zero",
    "reiniciar",
    "novo comeco",
    "start over",
    "reset",
)


def is_reset_request(text: str | None) -> bool:
    return _has_any(strip_accents(text), _RESET_PHRASES)


# -----------------------------------------------------------------------------
# Localização (perto x outro lugar) e nome
# -----------------------------------------------------------------------------
_NEAR_WORDS = ("perto", "aqui", "próximo", "proximo")
_ELSEWHERE_WORDS = ("outro", "lugar", "bairro", "cidade")


def classify_location_choice(text: str | None) -> str | None:
    """"near", "elsewhere" ou None para a pergunta perto x outro lugar."""
    lowered = (text or "").lower()
    if _has_any(lowered, _NEAR_WORDS):
        return "near"
    if _has_any(lowered, _ELSEWHERE_WORDS):
        return "elsewhere"
    return None


def strip_location_words(text: str | None) -> str:
    """Remove as palavras de escolha e devolve o lugar citado, se houver."""
    cleaned = re.sub(
        r"\b(outro|outra|lugar|quero|bairro|cidade|em|no|na|de|do|da)\b",
        " ",
        (text or "").lower(),
    )
    cleaned = re.sub(r"[^\w\s'-]", " ", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip()


def clean_name(text: str | None) -> str:
    """Mantém letras, espaço, apóstrofo e hífen; título preservado."""
    cleaned = re.sub(r"[^A-Za-zÀ-ÖØ-öø-ÿ\s'-]", "", text or "")
    return re.sub(r"\s+", " ", cleaned).strip()
