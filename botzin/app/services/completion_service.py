# START OF FILE: botzin/app/services/completion_service.py

from typing import Dict, List, Optional, Sequence

from botzin.domain.models import CompletionRequest, Message
from botzin.shared.logger import logger

CHAT_SYSTEM_PROMPT = (
    "Você é um assistente profissional e formal, projetado para fornecer respostas precisas e educadas em "
    "português, mantendo um tom respeitoso e útil."
)
CHAT_INSTRUCTION = "Responda em português de forma formal e profissional para:"
CHAT_DEFAULT_TEXT = "Permita-me ajudá-lo(a) com isso de maneira eficiente. Por favor, forneça mais detalhes."


def build_input_text(history: Sequence[Message], prompt: str) -> str:
    if not history:
        return prompt
    lines = [f"{'Usuário' if m.role == 'user' else 'Assistente'}: {m.content}" for m in history]
    lines.append(f"Usuário: {prompt}")
    return "\n".join(lines)


class CompletionChain:
    """
    Ordered list of provider adapters. Each adapter exposes `name`,
    `is_configured` and `try_complete(request) -> Optional[str]`. A provider
    is skipped when unconfigured or when its rate limiter refuses; the first
    non-empty answer wins and is counted against that provider's limiter.
    """

    def __init__(self, providers: List, limiters: Dict[str, object]):
        self.providers = providers
        self.limiters = limiters

    def complete(self, request: CompletionRequest) -> Optional[str]:
        for provider in self.providers:
            if not provider.is_configured:
                continue
            limiter = self.limiters.get(provider.name)
            if limiter is not None and not limiter.can_call():
                logger.info(f"Provider '{provider.name}' skipped: rate limit reached.")
                continue
            try:
                result = provider.try_complete(request)
            except Exception as e:
                logger.error(f"Provider '{provider.name}' failed: {e}", exc_info=True)
                continue
            if result:
                if limiter is not None:
                    limiter.record_call()
                return result
        return None

    def get_intent_based_response(self, prompt: str, history: Sequence[Message]) -> Optional[str]:
        request = CompletionRequest(
            prompt=build_input_text(history, prompt),
            system_prompt=CHAT_SYSTEM_PROMPT,
            instruction=CHAT_INSTRUCTION,
            max_tokens=150,
            allow_intents=True,
            default_text=CHAT_DEFAULT_TEXT,
        )
        return self.complete(request)

# END OF FILE: botzin/app/services/completion_service.py
