"""Testes das heurísticas de linguagem (intenção, seleção, tópicos, filtros)."""

from __future__ import annotations

import pytest

from iae_bot.domain import nlu
from iae_bot.domain.enums import InfoTopic, Mood, PlaceDomain


class TestGreeting:
    """Cumprimentos e conversa fiada."""

    @pytest.mark.parametrize("text", ["oi", "Olá!", "bom dia", "boa noite"])
    def test_greetings(self, text: str) -> None:
        """Mensagens curtas com cumprimento."""
        assert nlu.is_greeting(text) is True

    def test_long_message_is_not_greeting(self) -> None:
        """Mais de 3 tokens não conta como cumprimento."""
        assert nlu.is_greeting("oi quero um bar com música ao vivo") is False

    def test_small_talk(self) -> None:
        """Pergunta sobre o bot é conversa fiada."""
        assert nlu.is_small_talk("quem é você?") is True


class TestChosenIntent:
    """Bar x restaurante por tokens."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("bar", PlaceDomain.BAR),
            ("um barzinho", PlaceDomain.BAR),
            ("restaurante", PlaceDomain.RESTAURANT),
            ("quero jantar", PlaceDomain.RESTAURANT),
            ("não sei ainda", None),
        ],
    )
    def test_detect(self, text: str, expected: PlaceDomain | None) -> None:
        """Detecta o domínio citado."""
        assert nlu.detect_chosen_intent(text) is expected

    def test_last_mention_wins(self) -> None:
        """Com os dois citados, vale o último."""
        assert nlu.detect_chosen_intent("pensei em bar mas prefiro restaurante") is PlaceDomain.RESTAURANT
        assert nlu.detect_chosen_intent("restaurante não, quero bar") is PlaceDomain.BAR


class TestSelection:
    """Seleção numérica."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("2", 2), ("quero o 1", 1), ("o terceiro", 3), ("segunda opção", 2), ("5", None), ("", None)],
    )
    def test_parse_selection_index(self, text: str, expected: int | None) -> None:
        """Só 1, 2 ou 3 são seleções."""
        assert nlu.parse_selection_index(text) == expected

    def test_looks_numeric(self) -> None:
        """Mensagem composta só por número."""
        assert nlu.looks_numeric("5") is True
        assert nlu.looks_numeric("5º") is True
        assert nlu.looks_numeric("5 bares") is False


class TestInfoIntent:
    """Tópicos de informação."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("horário", InfoTopic.HOURS),
            ("que horas abre?", InfoTopic.HOURS),
            ("qual o preço?", InfoTopic.PRICE),
            ("tem telefone?", InfoTopic.PHONE),
            ("manda o cardápio", InfoTopic.WEBSITE),
            ("onde fica?", InfoTopic.ADDRESS),
            ("legal", None),
        ],
    )
    def test_detect(self, text: str, expected: InfoTopic | None) -> None:
        """Primeiro tópico reconhecido."""
        assert nlu.detect_info_intent(text) is expected

    def test_next_page(self) -> None:
        """Pedido de mais opções."""
        assert nlu.wants_next_page("ver mais") is True
        assert nlu.wants_next_page("mais opções") is True
        assert nlu.wants_next_page("valeu") is False


class TestMood:
    """Humor por listas de palavras."""

    def test_detect(self) -> None:
        """Palavras conhecidas e neutro como padrão."""
        assert nlu.detect_mood_simple("tô muito cansado hoje") is Mood.TIRED
        assert nlu.detect_mood_simple("aff que raiva") is Mood.ANGRY
        assert nlu.detect_mood_simple("quero um bar") is Mood.NEUTRAL

    def test_parse_label(self) -> None:
        """Rótulo devolvido pelo LLM."""
        assert nlu.parse_mood_label("Feliz.") is Mood.HAPPY
        assert nlu.parse_mood_label("não sei") is None

    def test_tone_prefix(self) -> None:
        """Neutro e ausente não têm prefixo."""
        assert nlu.tone_prefix(Mood.NEUTRAL) == ""
        assert nlu.tone_prefix(None) == ""
        assert nlu.tone_prefix(Mood.ANGRY).startswith("Beleza")


class TestSearchFilters:
    """Filtros e preferências extraídos da mensagem."""

    def test_open_now_and_tags(self) -> None:
        """openNow, keyword livre e tags de filtro."""
        filters = nlu.extract_search_filters("quero um bar aberto agora com chopp e samba")
        assert filters["openNow"] is True
        assert filters["filters"]["keyword"] == "chopp música"
        assert "samba" in filters["keyword"]
        assert "bar" not in filters["keyword"].split()

    def test_keyword_strips_urls_and_numbers(self) -> None:
        """URLs, números e stopwords somem da keyword."""
        assert nlu.build_keyword_from_message("eu quero 2 pizzas https://x.com agora") == "pizzas"

    def test_derive_prefs(self) -> None:
        """Preferências persistíveis com valor "true"."""
        prefs = nlu.derive_prefs_from_message("happy hour com chopp")
        assert prefs["prefers_chopp"] == "true"
        assert prefs["prefers_happy_hour"] == "true"
        assert prefs["last_freeform_keyword"] == "happy hour chopp"

    def test_keywords_from_saved_prefs(self) -> None:
        """Preferências salvas viram termos de busca."""
        keywords = nlu.keywords_from_saved_prefs(
            {"prefers_chopp": "true", "prefers_musica": "true", "last_freeform_keyword": "samba"}
        )
        assert keywords == ["chopp", "música ao vivo", "samba"]


class TestTriggers:
    """Gatilhos especiais e localização."""

    def test_carnival(self) -> None:
        """Carnaval + Brasília."""
        assert nlu.is_carnival_question("agenda do carnaval em Brasília?") is True
        assert nlu.is_carnival_question("carnaval no rio") is False

    def test_launch(self) -> None:
        """Onde será o lançamento da I.aê."""
        assert nlu.is_launch_question("onde vai ser o lançamento da iaê?") is True
        assert nlu.mentions_launch("quando é o lançamento?") is True
        assert nlu.is_launch_question("quero um bar") is False

    def test_reset(self) -> None:
        """Pedidos de recomeço."""
        assert nlu.is_reset_request("vamos começar de novo") is True
        assert nlu.is_reset_request("bar") is False

    def test_football(self) -> None:
        """Pedido de bar com jogo."""
        assert nlu.is_football_request("tem algum que passa o jogo?") is True

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("perto de mim", "near"), ("em outro lugar", "elsewhere"), ("Asa Norte", None)],
    )
    def test_location_choice(self, text: str, expected: str | None) -> None:
        """Perto x outro lugar."""
        assert nlu.classify_location_choice(text) == expected

    def test_strip_location_words(self) -> None:
        """Sobra só o lugar citado."""
        assert nlu.strip_location_words("outro lugar") == ""
        assert nlu.strip_location_words("outro lugar: Asa Norte") == "asa norte"

    def test_clean_name(self) -> None:
        """Mantém letras, acentos, apóstrofo e hífen."""
        assert nlu.clean_name("  João-Pedro 123!! ") == "João-Pedro"
