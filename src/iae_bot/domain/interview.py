"""Perguntas da entrevista de perfil e frases-ponte entre elas."""

from __future__ import annotations

from dataclasses import dataclass

from iae_bot.domain.enums import PlaceDomain


@dataclass(frozen=True, slots=True)
class InterviewQuestion:
    key: str
    text: str


_PRICE_QUESTION = InterviewQuestion(
    "preco", 'Qual tua faixa de preço? "econômico", "moderado" ou "luxuoso".'
)

BAR_QUESTIONS: tuple[InterviewQuestion, ...] = (
    InterviewQuestion("nome", "Olá! Eu sou a I.aê 🍻 Pra começar, qual é o seu nome?"),
    InterviewQuestion("tipo_bar", "Que tipo de bar tu curte mais? (pub, boteco, balada, etc.)"),
    InterviewQuestion(
        "ambiente", "Qual vibe tu preferes? (agitado, tranquilo, sofisticado, música ao vivo)"
    ),
    InterviewQuestion("bebida_preferida", "Qual tua bebida preferida num bar? (chopp, vinho, drinks)"),
    InterviewQuestion("comida", "E de rango, tu gostas de porções, sanduíches ou comida de boteco?"),
    InterviewQuestion(
        "musica", "Qual som ou entretenimento tu curtes? (rock, MPB, sertanejo, DJ, sem música)"
    ),
    _PRICE_QUESTION,
)

RESTAURANT_QUESTIONS: tuple[InterviewQuestion, ...] = (
    InterviewQuestion("nome", "Olá! Eu sou a I.aê 🍽️ Pra começar, qual é o seu nome?"),
    InterviewQuestion(
        "cozinha",
        "Qual cozinha você prefere hoje? (italiana, japonesa, brasileira, hamburgueria, "
        "veg/vegana, etc.)",
    ),
    InterviewQuestion("ambiente", "Prefere um ambiente mais sofisticado, familiar ou casual?"),
    InterviewQuestion(
        "ocasião", "Qual a ocasião? (almoço rápido, jantar romântico, com amigos, família)"
    ),
    InterviewQuestion(
        "restricoes",
        "Tem alguma restrição ou preferência alimentar? (sem glúten, sem lactose, vegetariano)",
    ),
    InterviewQuestion(
        "bebida", "Quer um lugar com boa carta de vinhos/drinks ou isso não é essencial?"
    ),
    _PRICE_QUESTION,
)


def questions_for(domain: PlaceDomain) -> tuple[InterviewQuestion, ...]:
    return RESTAURANT_QUESTIONS if domain is PlaceDomain.RESTAURANT else BAR_QUESTIONS


# (chave da pergunta anterior) → [(gatilhos, frase)]; primeira combinação vence
_BRIDGES: dict[str, tuple[tuple[tuple[str, ...], str], ...]] = {
    "tipo_bar": (
        (("pub",), "Um pub é uma ótima pedida pra curtir com os amigos, {n}."),
        (("boteco",), "Um boteco raiz sempre tem aquela vibe boa, {n}."),
        (("balada", "night"), "Algo mais balada pra noite render, né {n}?"),
    ),
    "ambiente": (
        (("agitado",), "Então você curte um clima mais agitado, {n}."),
        (("tranquilo",), "Prefere um lugar mais tranquilo pra conversar, {n}."),
        (("sofisticado",), "Algo mais sofisticado combina com você, {n}."),
        (("música", "musica"), "Com música ao vivo fica top, {n}."),
    ),
    "bebida_preferida": (
        (("chopp", "cerveja"), "Um bom chopp gelado nunca falha, {n}."),
        (("vinho",), "Um vinho cai muito bem, {n}."),
        (("drink", "coquetel"), "Uns drinks caprichados são sua praia, {n}."),
    ),
    "comida": (
        (("porção", "porcao"), "Petiscar umas porções é sempre sucesso, {n}."),
        (("sanduíche", "sanduiche", "burger"), "Um bom sanduíche acompanha bem, {n}."),
        (("boteco",), "Comida de boteco é aquela delícia, {n}."),
    ),
    "musica": (
        (("rock",), "Rockzinho ao vivo anima a noite, {n}."),
        (("mpb",), "Uma MPB dá o clima, {n}."),
        (("sertanejo",), "Sertanejo pra cantar junto, {n}."),
        (("dj",), "Com DJ fica mais dançante, {n}."),
        (("sem", "silêncio", "silencio"), "Sem música pra um papo tranquilo, {n}."),
    ),
    "preco": (
        (("econ", "barato"), "Vamos mirar no bom e barato, {n}."),
        (("moder",), "Algo no meio-termo, sem exagero, {n}."),
        (("lux", "caro"), "Uma experiência mais premium, {n}."),
    ),
}

DEFAULT_BRIDGE = "Show, {n}! Entendi seu estilo."


def bridge_from_answer(previous_key: str | None, answer: str | None, name: str) -> str:
    """Frase curta que comenta a resposta anterior antes da próxima pergunta."""
    lowered = (answer or "").lower()
    for triggers, phrase in _BRIDGES.get(previous_key or "", ()):
        if any(t in lowered for t in triggers):
            return phrase.format(n=name)
    return DEFAULT_BRIDGE.format(n=name)
