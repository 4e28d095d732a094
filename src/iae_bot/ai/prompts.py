"""Prompts enviados ao modelo de linguagem.

Responsabilidades:
- Montar o texto de cada ponto de LLM (intenção, ranking, humor, etc.)
- Manter instruções de formato curtas e verificáveis
"""

from __future__ import annotations

import json
from typing import Any


def _as_json(value: Any) -> str:
    return json.dumps(value or {}, ensure_ascii=False, default=str)


def initial_intent_prompt(message: str, persona: dict[str, Any] | None) -> str:
    """Extração de intenção (bar | restaurante | nenhum) e preferências em JSON."""
    return (
        "Você é um assistente que extrai a intenção e preferências de um usuário para "
        f"recomendar bares ou restaurantes. Perfil do usuário (se existir): {_as_json(persona)}. "
        f'Mensagem do usuário: "{message}". Sua tarefa é identificar a intenção principal '
        "(bar, restaurante, ou nenhum) e extrair quaisquer preferências mencionadas na "
        "mensagem. Responda com um objeto JSON com os campos: intention e preferences."
    )


def relevance_prompt(place_name: str | None, label: str, persona: dict[str, Any] | None) -> str:
    """Nota 0..5 de relevância de um lugar para a persona."""
    return (
        f'Avalie a relevância deste {label} "{place_name or ""}" para um usuário que gosta de '
        f"{_as_json(persona)}. Retorne APENAS um número entre 0 e 5, onde 0 é irrelevante e "
        "5 é altamente relevante."
    )


def mood_prompt(text: str) -> str:
    return (
        "Classifique o humor do usuário como exatamente um destes valores: feliz | triste | "
        f'cansado | irritado | neutro. Responda somente a palavra. Texto: "{text}"'
    )


def reset_prompt(message: str) -> str:
    return (
        'Você é um classificador. Receba uma mensagem do usuário e responda apenas com "reset" '
        "se a mensagem indicar reinício de conversa ou desejo de começar do zero (ex.: vamos "
        'recomeçar, novo começo, start over, reset), ou "nao" caso contrário. '
        f'Mensagem: "{message}".'
    )


def launch_prompt(message: str) -> str:
    return (
        "Classifique a intenção desta mensagem. Responda exatamente com uma palavra: "
        '"launch_iae" se o usuário estiver perguntando onde ou quando será o lançamento do '
        'Ia.ê (evento de lançamento da IA), ou "outro" caso contrário. '
        f'Mensagem: "{message}"'
    )


def adaptive_prompt(hint: str, name: str, tone: str = "") -> str:
    """Resposta curta guiada por uma instrução (hint) do fluxo."""
    lines = [
        "Você é a I.aê, uma IA simpática que ajuda a encontrar bares e restaurantes no WhatsApp.",
        f"O nome do usuário é {name}.",
    ]
    if tone:
        lines.append(f"Comece a resposta com este tom: {tone.strip()}")
    lines.extend([hint, "Responda em português do Brasil, em no máximo 2 frases."])
    return "\n".join(lines)


def generic_reply_prompt(message: str) -> str:
    return f"Usuário: {message}\nResponda de forma objetiva em até 2 frases."
