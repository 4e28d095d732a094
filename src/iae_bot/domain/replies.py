"""Textos fixos da I.aê (voz do bot).

Mensagens com nome recebem `name` já resolvido (ou o apelido padrão).
"""

from __future__ import annotations

from iae_bot.domain.enums import PlaceDomain

# Onboarding
FIRST_CONTACT = (
    "Oi! Eu sou a I.aê, uma inteligência artificial que te ajuda a encontrar bares e "
    "restaurantes do seu jeito. Pra começar, como posso te chamar?"
)
GREETING_ANONYMOUS = (
    "Oi! Eu sou a I.aê, uma IA parceira de rolê que te indica bares e restaurantes do "
    "jeitinho que você curte 🍻🍽️\nPra começar, você prefere ver *bar* ou *restaurante* hoje?"
)


def name_captured(name: str) -> str:
    return (
        f"Prazer te conhecer, {name}! Eu sou a I.aê, uma IA que te ajuda a encontrar bares e "
        "restaurantes do seu jeito. Quer começar com *bar* ou *restaurante* agora?"
    )


def greeting(name: str | None) -> str:
    if not name:
        return GREETING_ANONYMOUS
    return (
        f"E aí, {name}! Eu sou a I.aê, uma IA parceira de rolê que te indica bares e "
        "restaurantes com a sua cara 🍻🍽️\nMe conta: hoje tá mais na vibe de *bar* ou "
        "*restaurante*?"
    )


def resume_greeting(name: str | None) -> str:
    opener = f"Oi, {name}!" if name else "Oi!"
    return (
        f"{opener} Quanto tempo sem a gente se falar 😄 Eu sou a I.aê, uma IA que te indica "
        "bares e restaurantes do seu jeito. Bora ver um *bar* ou *restaurante* hoje?"
    )


# Gatilhos fixos
LAUNCH_REPLY = (
    "Que felicidade te contar! 🎉 O lançamento do Ia.ê vai ser no dia *8 de dezembro*, "
    "a partir das *19h*, nesse local: https://maps.app.goo.gl/dH1SkTPjCgBgD5ZTA"
)

CARNIVAL_REPLY = "\n".join([
    "🎉 IAÊ?! VAMOS DE CARNAVAL? 🎉",
    "",
    "Se você quer carnaval, então toma!",
    "Em parceria com o @deubombrasilia, o @iae.bsb traz a lista de carnaval mais "
    "desejada de Brasília! 🥳🔥",
    "👉 Siga nossos perfis e fique por dentro de tudo!",
    "",
    "🗓️ AGENDA DE FESTAS & BLOCOS",
    "",
    "🎭 JANEIRO",
    "",
    "📅 17/01 (sábado)",
    "🎶 Pré-Carnaval Galpão 17 com Bloco Eduardo e Mônica",
    "📍 Galpão 17",
    "💰 Pago",
    "",
    "📅 31/01",
    "🎉 Esquenta de Carnaval – Texxas Bar",
    "📍 Texxas Bar",
    "💰 Pago",
    "",
    "🎭 FEVEREIRO",
    "",
    "📅 07/02 • a partir das 16h",
    "🎺 Bloco do MY (Esquenta)",
    "📍 Clube ASCADE",
    "💰 Pago",
    "",
    "📅 07/02",
    "🎈 Bloquinho da GR",
    "📍 Local a definir",
    "💰 Pago",
    "",
    "📅 07/02 (sábado)",
    "🥁 Bloco do Pretinho",
    "📍 Varjão",
    "🆓 Gratuito",
    "",
    "📅 07/02 (sábado)",
    "🎸 Pré-Carnaval da Banda Flexão",
    "⏰ A partir das 14h",
    "📍 Praça da QI 09 – Guará I",
    "🆓 Gratuito",
    "",
    "📅 13/02",
    "🍾 Suite Pee Folia – Bloco BYOB",
    "📍 Trend’s Bar",
    "💰 Pago",
    "",
    "📅 14/02",
    "🔥 O Bloco da Fervo",
    "📍 Local a definir",
    "💰 Pago",
    "",
    "📅 15/02 (domingo)",
    "👠✨ Bloco das Montadas",
    "📍 Museu Nacional da República",
    "🆓 Gratuito",
    "",
    "📅 21/02 (sábado)",
    "♿🎶 Bloco do Inclusão",
    "📍 Varjão",
    "🆓 Gratuito",
    "",
    "🎭 MARÇO",
    "",
    "📅 07/03",
    "🥳 Bloco do MY (Ressaca)",
    "📍 Clube ASCADE",
    "💰 Pago",
    "",
    "⚠️ Datas, locais e formatos podem sofrer alterações.",
    "👉 Se tiver algo errado ou faltando, avisa a gente!",
    "🎉 @deubombrasilia 🤝 @iae.bsb",
])

# Áudio e erros
AUDIO_NOT_UNDERSTOOD = (
    "Recebi seu áudio, mas não consegui entender direitinho o que foi dito. Se puder, "
    "escreve rapidinho o que você está buscando (bar, restaurante, região ou dúvida)."
)
UNEXPECTED_ERROR = (
    "Putz, deu um erro inesperado aqui! Minha equipe já está de olho nisso. Por favor, "
    "tente novamente mais tarde. 🙏"
)
SEND_FAILURE_APOLOGY = (
    "Ops! Encontrei um probleminha para enviar sua mensagem. Tente novamente em alguns "
    "instantes, por favor! 🛠️"
)

# Seleção e informações
ASK_SELECTION_FIRST = (
    "Me diga primeiro qual dos itens você quer: 1, 2 ou 3. Depois posso te informar preço, "
    "horário, telefone ou site."
)
ASK_TOPIC_DEFAULT = "Me diga o que você quer saber: preço, horário, telefone ou site."


def selection_acknowledged(name: str, place_name: str | None) -> str:
    return (
        f"Boa, {name}! Você escolheu *{place_name}*. O que você quer saber? Posso te dizer "
        "preço (faixa), horário, telefone ou site."
    )


def numeric_without_results(name: str) -> str:
    return (
        f"Parece que você tá escolhendo uma opção, {name} 🙂 Pra eu te mostrar lugares "
        "certinhos, me fala primeiro se quer *bar* ou *restaurante* e em qual bairro/região."
    )


# Localização
def ask_location_type(name: str) -> str:
    return (
        f"Boa, {name}! Você prefere que eu procure *perto de você* (me envie sua localização) "
        "ou em *outro lugar* (digite bairro/cidade/ponto)?"
    )


def ask_coordinates(name: str) -> str:
    return (
        f"Beleza, {name}! Manda sua localização no WhatsApp (use o botão de compartilhar "
        "localização) que eu procuro os lugares por perto 📍"
    )


def ask_location_text(name: str) -> str:
    return (
        f"Show, {name}! Me diz o nome do bairro, cidade ou ponto de referência que você quer "
        "que eu pesquise (ex: Águas Claras Brasília)."
    )


def searching_place_text(name: str, query: str) -> str:
    return f'Massa, {name}! Procurando por "{query}"... 🔎'


def place_text_not_found(name: str) -> str:
    return (
        f"Não consegui localizar esse lugar direito, {name} 😕. Pode tentar escrever de outro "
        'jeito (ex: "Águas Claras Brasília")?'
    )


# Busca
def finalize_recovery(name: str) -> str:
    return (
        f"Ops! Não consegui finalizar a busca, {name}. Parece que perdi o contexto ou sua "
        "localização. Poderia começar novamente?"
    )


def searching_nearby(name: str | None) -> str:
    opener = f"Beleza, {name}! " if name else "Beleza! "
    return f"{opener}Deixa eu dar uma olhada nos lugares próximos que são a sua cara 🍻"


def no_results(name: str) -> str:
    return (
        f"Não achei nada que bata certinho com o que você pediu, {name} 😢. Que tal tentar "
        "com outras preferências?"
    )


def football_refinement(name: str) -> str:
    return (
        f"Boa, {name}! Vou procurar de novo focando em bares que costumam passar jogos por aí. "
        "Segura um pouquinho que já te trago novas opções ⚽📺"
    )


EMPTY_PAGE = "Não encontrei lugares que combinem com o que você procura. Tente ajustar os filtros!"
NO_MORE_RESULTS = "Essas eram todas as opções que encontrei por aqui. Quer tentar outra região ou outras preferências?"


def results_intro(name: str, domain: PlaceDomain) -> str:
    return (
        f"Beleza, {name}! Achei alguns {domain.plural_label} que têm tudo a ver com o que "
        "você pediu. Dá uma olhada nesses aqui:"
    )


def nearby_sponsors_intro(name: str) -> str:
    return f"Parceiros I.aê por perto de você, {name}:"


# Respostas adaptativas (fallbacks determinísticos)
def adaptive_default(name: str) -> str:
    return (
        f"Beleza, {name}! Não peguei exatamente tudo que você quis dizer, mas tô aqui pra te "
        "ajudar com bares e restaurantes. Me explica rapidinho do seu jeito o que você tá "
        "buscando agora."
    )


def reset_done(name: str) -> str:
    return (
        f"Fechado, {name}! Vamos do zero. Hoje tá mais na vibe de *bar* ou *restaurante*?"
    )


# Instruções (hints) enviadas ao LLM para respostas adaptativas
HINT_CONFIRM_INTENT = (
    "Confirme de forma simpática se prefere bar ou restaurante neste momento. "
    "Não peça localização."
)
HINT_LOCATION_RECEIVED = (
    "Convide o usuário, de forma breve e amigável, a escolher entre bar ou restaurante por "
    "perto. Não peça localização novamente (já recebida)."
)
HINT_RESULTS_CTA = (
    "Convide o usuário de forma breve e simpática para ver mais, filtrar (ex.: preço/música "
    "ao vivo) ou escolher 1, 2 ou 3."
)
HINT_SMALL_TALK = "\n".join([
    "Você é a I.aê, uma IA parceira de rolê que vive dentro do WhatsApp.",
    "Responda de forma breve, simpática e humana, parecendo uma pessoa conversando.",
    "Regras específicas:",
    "- Se perguntarem QUEM É VOCÊ (quem é vc, o que você faz, etc.), explique que é a I.aê, "
    "uma inteligência artificial feita pra ajudar a encontrar bares e restaurantes do jeito "
    "da pessoa, salvando preferências pra ir aprendendo o gosto dela. Diga que também "
    "consegue trocar ideia e tirar dúvidas simples, mas sempre com foco em ajudar no rolê.",
    "- Se perguntarem COMO VOCÊ ESTÁ, responda algo leve (tipo \"tô on\", \"tô na "
    "atividade\"), e diga que tá pronta pra ajudar a achar um lugar ou trocar ideia.",
    "- Se for só cumprimento (oi, bom dia, boa tarde, boa noite), responda o cumprimento e "
    "diga rapidamente o que você é e que pode ajudar a achar bar/restaurante quando a "
    "pessoa quiser.",
    "- Não invente informações sobre você (não diga que tem paladar, fome, sede, etc.).",
    "- Não force recomendação nem peça localização nessa resposta. No máximo, convide a "
    "pessoa a te pedir um bar ou restaurante quando quiser, de forma natural.",
])

# Fallbacks quando o LLM está ausente ou falha para cada hint
HINT_FALLBACKS: dict[str, str] = {
    HINT_CONFIRM_INTENT: "Me conta, {name}: hoje você prefere *bar* ou *restaurante*?",
    HINT_LOCATION_RECEIVED: (
        "Recebi sua localização, {name} 📍 Quer que eu procure *bar* ou *restaurante* por perto?"
    ),
    HINT_RESULTS_CTA: (
        "Quer ver mais opções, filtrar (ex.: preço, música ao vivo) ou escolher 1, 2 ou 3?"
    ),
    HINT_SMALL_TALK: (
        "Tô on, {name}! Eu sou a I.aê, uma IA que te ajuda a encontrar bares e restaurantes "
        "do seu jeito. Quando quiser, é só pedir um *bar* ou *restaurante* 😉"
    ),
}
