# START OF FILE: botzin/app/services/ai_service.py

import random
import re
from datetime import datetime
from typing import Callable, Optional

from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.app.services.cache_service import ResponseCache
from botzin.app.services.completion_service import CompletionChain
from botzin.app.services.funnel_service import FunnelService
from botzin.app.services.product_service import ProductMatcher
from botzin.app.services.tone_service import (
    SentimentAnalyzer, adjust_tone, detect_tone, analyze_writing_style, style_preamble, NEUTRAL, FORMAL, INFORMAL
)
from botzin.domain.models import ConversationContext
from botzin.shared.config import TIMEZONE_OFFSET
from botzin.shared.local_time import local_hour_minute, day_greeting
from botzin.shared.state_store import StateStore
from botzin.shared.logger import logger

GREETINGS = ("oi", "olá", "bom dia", "boa tarde", "boa noite")

PERSONALITY_GREETING = "Olá, senhor(a). Estou à disposição para assisti-lo(a) de forma eficiente e precisa."
PERSONALITY_FALLBACK = (
    "Peço desculpas, mas não compreendi completamente. Poderia fornecer mais detalhes para que eu possa "
    "assisti-lo(a) adequadamente?"
)

INTENT_PATTERNS = {
    'identity': re.compile(r"(quem é você|quem é o senhor|quem sou você)", re.IGNORECASE),
    'capabilities': re.compile(r"(o que você faz|o que o senhor pode fazer|como você ajuda)", re.IGNORECASE),
    'wellbeing': re.compile(r"(tudo bem|como você está|como o senhor está)", re.IGNORECASE),
    'thanks': re.compile(r"(obrigado|agradeço|grato)", re.IGNORECASE),
    'farewell': re.compile(r"(adeus|até mais|tchau)", re.IGNORECASE),
    'time': re.compile(r"(qual a hora|que horas são)", re.IGNORECASE),
    'weather': re.compile(r"(como está o tempo|qual o clima)", re.IGNORECASE),
}

FREQUENT_COMMANDS = 5
LONG_PAUSE_SECONDS = 60
SHORT_PAUSE_SECONDS = 30


class AIService:
    """Decides what the bot says to a free-text message."""

    def __init__(self, repo: SQLiteRepo, cache: ResponseCache, chain: CompletionChain, funnel: FunnelService,
                 product_matcher: ProductMatcher, sentiment_analyzer: SentimentAnalyzer,
                 response_times: StateStore, command_limiters: StateStore, offset: int = TIMEZONE_OFFSET,
                 now: Callable[[], Optional[datetime]] = lambda: None, rng: random.Random = None):
        self.repo = repo
        self.cache = cache
        self.chain = chain
        self.funnel = funnel
        self.product_matcher = product_matcher
        self.sentiment_analyzer = sentiment_analyzer
        self.response_times = response_times
        self.command_limiters = command_limiters
        self.offset = offset
        self.now = now
        self.rng = rng or random.Random()
        logger.info("AIService initialized.")

    def _answer(self, prompt: str, response: str, tone: str) -> str:
        self.cache.put(prompt, response)
        return adjust_tone(response, tone)

    def _activity_preamble(self, user_id: str, response_delay: float) -> str:
        limiter = self.command_limiters.get(user_id)
        if limiter is not None and limiter.count > FREQUENT_COMMANDS:
            return "Agradeço sua interação frequente. "
        if response_delay > LONG_PAUSE_SECONDS:
            return "Notei que houve uma pausa considerável. Bem-vindo(a) de volta! "
        if response_delay > SHORT_PAUSE_SECONDS:
            return "Agradeço seu retorno após um breve intervalo. "
        return ""

    @staticmethod
    def _sentiment_preamble(sentiment: str, emotion: str) -> str:
        if sentiment == 'negativo':
            if emotion != NEUTRAL:
                return f"Lamento que o senhor(a) esteja {emotion}. Posso ajudá-lo(a) a resolver isso. "
            return "Percebo que algo pode estar incomodando o senhor(a). Posso ajudá-lo(a) a resolver isso. "
        if sentiment == 'positivo':
            return "Fico satisfeito em perceber seu entusiasmo. "
        return ""

    def _fixed_intent_reply(self, prompt: str, is_night: bool) -> Optional[str]:
        text = prompt.strip()

        def matches(intent: str) -> bool:
            return INTENT_PATTERNS[intent].fullmatch(text) is not None

        if matches('identity'):
            return (
                "Sou seu assistente virtual, projetado para oferecer suporte eficiente e respostas precisas às suas "
                "necessidades. Estou aqui para auxiliá-lo(a) com informações, tarefas ou qualquer dúvida que deseje "
                "esclarecer. Como posso servi-lo(a) hoje?"
            )
        if matches('capabilities'):
            return (
                "Estou à disposição para fornecer respostas detalhadas, realizar pesquisas, criar conteúdos, traduzir "
                "textos e oferecer soluções personalizadas. Meu objetivo é otimizar seu tempo e resolver suas demandas "
                "com excelência. Em que posso ajudá-lo(a) agora?"
            )
        if matches('wellbeing'):
            return (
                "Agradeço pela gentileza. Estou em pleno funcionamento e pronto para assisti-lo(a). Como o senhor(a) "
                "está hoje? Posso ajudá-lo(a) com algo específico?"
            )
        if matches('thanks'):
            return (
                "É uma honra poder ajudá-lo(a). Estou à disposição para continuar auxiliando em qualquer outra "
                "necessidade que o senhor(a) tenha. Deseja prosseguir com algo mais?"
            )
        if matches('farewell'):
            return (
                "Foi um prazer atendê-lo(a). Caso precise de assistência futura, estarei aqui para servi-lo(a) com a "
                f"mesma dedicação. Tenha um excelente {'descanso' if is_night else 'dia'}."
            )
        if matches('time'):
            hour, minute = local_hour_minute(self.now(), self.offset)
            return (
                f"{day_greeting(hour)}, senhor(a). São {hour}:{minute:02d} no horário local. "
                f"Posso ajudá-lo(a) com algo mais neste momento?"
            )
        if matches('weather'):
            return (
                "Estou pronto para verificar as condições climáticas para o senhor(a). Poderia informar a cidade "
                "desejada para que eu possa fornecer uma resposta precisa?"
            )
        return None

    def _knowledge_reply(self, user_id: str, prompt: str) -> Optional[str]:
        knowledge = self.repo.get_knowledge(user_id)
        if not knowledge:
            return None
        prompt_lower = prompt.lower()
        for line in knowledge.split('\n'):
            if ':' not in line:
                continue
            key, value = (part.strip().lower() for part in line.split(':', 1))
            if key and key in prompt_lower:
                return (
                    f'Com base em nossa interação anterior, sei que o senhor(a) mencionou "{key}": {value}. '
                    f'Isso ainda é relevante? Permita-me ajudá-lo(a) com mais informações ou soluções relacionadas.'
                )
        return None

    def get_bot_response(self, prompt: str, context: ConversationContext) -> str:
        user_id = context.user_id
        prompt_lower = prompt.lower()

        if "pode ser formal" in prompt_lower:
            tone = FORMAL
        elif "pode ser informal" in prompt_lower:
            tone = INFORMAL
        else:
            tone = context.tone or detect_tone(prompt)
        context.tone = tone

        cached = self.cache.get(prompt)
        if cached:
            logger.info(f"[CACHE] Response found for '{prompt}'.")
            return adjust_tone(cached, tone)

        is_night = self.product_matcher.get_time_preference() == 'night'
        writing_style = analyze_writing_style(prompt)
        style = style_preamble(writing_style)

        if any(prompt_lower.startswith(g) for g in GREETINGS):
            previous = context.history[-2].content.lower() if len(context.history) > 1 else ''
            if any(g in previous for g in GREETINGS):
                response = (
                    f"{style}{PERSONALITY_GREETING} É um prazer voltar a conversar com o senhor(a). "
                    f"Como posso auxiliá-lo(a) neste momento?"
                )
            else:
                response = (
                    f"{style}{PERSONALITY_GREETING} Como posso ajudá-lo(a) a aproveitar ao máximo seu "
                    f"{'descanso noturno' if is_night else 'dia'}?"
                )
            return self._answer(prompt, response, tone)

        fixed = self._fixed_intent_reply(prompt, is_night)
        if fixed:
            return self._answer(prompt, f"{style}{fixed}", tone)

        knowledge = self._knowledge_reply(user_id, prompt)
        if knowledge:
            return self._answer(prompt, f"{style}{knowledge}", tone)

        sentiment = self.sentiment_analyzer.analyze(prompt)
        last_response = self.response_times.get(user_id)
        response_delay = last_response.delay if last_response else 0.0
        preamble = (
            self._sentiment_preamble(sentiment, writing_style['emotion'])
            + self._activity_preamble(user_id, response_delay)
        )

        natural = self.chain.get_intent_based_response(prompt, context.history)
        if natural:
            response = f"{preamble}{natural} Permita-me saber como posso prosseguir para atendê-lo(a) da melhor forma."
            return self._answer(prompt, response, tone)

        funnel_reply = self.funnel.advance(context, prompt, tone, response_delay, preamble)
        if funnel_reply:
            return self._answer(prompt, funnel_reply, tone)

        first_user_message = next((m.content for m in context.history if m.role == 'user'), '')
        fallbacks = [
            f"{preamble}{PERSONALITY_FALLBACK}",
            f"{preamble}Agradeço sua mensagem, mas gostaria de entender melhor. Poderia esclarecer o que o senhor(a) "
            f"deseja para que eu possa oferecer o suporte mais adequado?",
            f'{preamble}Com base em sua última mensagem ("{first_user_message}"), sua solicitação atual está '
            f'relacionada? Por favor, forneça mais detalhes para que eu possa assisti-lo(a) plenamente.'
            if first_user_message else f"{preamble}{PERSONALITY_FALLBACK}",
        ]
        return self._answer(prompt, self.rng.choice(fallbacks), tone)

# END OF FILE: botzin/app/services/ai_service.py
