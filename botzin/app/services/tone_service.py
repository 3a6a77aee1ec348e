# START OF FILE: botzin/app/services/tone_service.py

import re
from typing import Dict, Optional

from botzin.shared.logger import logger

FORMAL = 'formal'
INFORMAL = 'informal'
NEUTRAL = 'neutro'

FORMAL_CUES = ("senhor", "por favor", "obrigado", "gostaria", "poderia")
INFORMAL_CUES = ("mano", "beleza", "fala aí", "tranquilo", "e aí")

# Applied in order. The informal table is the formal one reversed pair by pair.
FORMAL_SUBSTITUTIONS = (
    ("mano", "senhor(a)"),
    ("beleza", "ótimo"),
    ("😎", "🙂"),
    ("putz", "desculpe-me"),
    ("tu", "você"),
    ("tá", "está"),
)
INFORMAL_SUBSTITUTIONS = tuple((new, old) for old, new in FORMAL_SUBSTITUTIONS)

ERROR_COPY = {
    FORMAL: "Desculpe-me, senhor(a), algo deu errado. Como posso ajudá-lo agora?",
    INFORMAL: "Putz, mano, deu um erro aqui, mas eu te ajudo! Fala mais!",
}

POSITIVE_WORDS = ('bom', 'ótimo', 'feliz', 'gostei', 'legal', 'maravilhoso', 'good', 'great', 'happy', 'like', 'awesome')
NEGATIVE_WORDS = ('ruim', 'péssimo', 'triste', 'odio', 'problema', 'bad', 'terrible', 'sad', 'hate', 'issue', 'dor', 'dores')

INTENSITY_WORDS = ("muito", "extremamente", "bastante")
URGENT_WORDS = ("agora", "rápido", "urgente", "imediatamente")
EMOTIONAL_WORDS = ("triste", "feliz", "irritado", "cansado", "satisfeito")


def _score(text_lower: str, words) -> int:
    return sum(1 for word in words if word in text_lower)


def detect_tone(text: str) -> str:
    text_lower = (text or "").lower()
    formal_score = _score(text_lower, FORMAL_CUES)
    informal_score = _score(text_lower, INFORMAL_CUES)
    if formal_score > informal_score:
        return FORMAL
    if informal_score > formal_score:
        return INFORMAL
    return NEUTRAL


def _compile(pairs):
    compiled = []
    for old, new in pairs:
        if re.fullmatch(r'\w+', old):
            pattern = re.compile(rf'\b{re.escape(old)}\b')
        else:
            pattern = re.compile(re.escape(old))
        compiled.append((pattern, new))
    return compiled


_SUBSTITUTIONS = {
    FORMAL: _compile(FORMAL_SUBSTITUTIONS),
    INFORMAL: _compile(INFORMAL_SUBSTITUTIONS),
}


def adjust_tone(text: Optional[str], tone: Optional[str]) -> str:
    if not text or not isinstance(text, str):
        return ERROR_COPY[FORMAL] if tone == FORMAL else ERROR_COPY[INFORMAL]
    for pattern, replacement in _SUBSTITUTIONS.get(tone, ()):
        text = pattern.sub(lambda _: replacement, text)
    return text


def adjust_response_based_on_sentiment(response: Optional[str], sentiment: str) -> str:
    if not response:
        return "Ops, algo deu errado, mas eu te ajudo! Me diz mais!"
    if sentiment == 'negativo':
        return f"{response} Desculpe se algo tá te incomodando – vamos resolver isso juntos AGORA! 😔"
    if sentiment == 'positivo':
        return f"{response} Que ótimo te ver animado – bora aproveitar essa energia pra resolver tudo! 😊"
    return response


def analyze_writing_style(text: str) -> Dict[str, str]:
    text_lower = text.lower()
    return {
        'intensity': "elevada" if _score(text_lower, INTENSITY_WORDS) else "normal",
        'urgency': "elevada" if _score(text_lower, URGENT_WORDS) else "normal",
        'emotion': next((w for w in EMOTIONAL_WORDS if w in text_lower), NEUTRAL),
    }


def style_preamble(style: Dict[str, str]) -> str:
    if style['intensity'] == "elevada":
        return "Percebo que o senhor(a) está expressando algo com grande ênfase. "
    if style['urgency'] == "elevada":
        return "Entendo que o senhor(a) busca uma resposta imediata. "
    if style['emotion'] != NEUTRAL:
        return f"Compreendo que o senhor(a) está se sentindo {style['emotion']}. "
    return ""


class SentimentAnalyzer:
    """Keyword sentiment. Labels are cached under `sentiment:<text>` when a cache is given."""

    def __init__(self, cache=None):
        self.cache = cache

    def analyze(self, text: str) -> str:
        key = f"sentiment:{text}"
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached in ('positivo', 'negativo', 'neutro'):
                return cached

        text_lower = text.lower()
        positive = _score(text_lower, POSITIVE_WORDS)
        negative = _score(text_lower, NEGATIVE_WORDS)
        sentiment = 'positivo' if positive > negative else 'negativo' if negative > positive else 'neutro'

        if self.cache is not None:
            self.cache.put(key, sentiment)
        return sentiment

# END OF FILE: botzin/app/services/tone_service.py
