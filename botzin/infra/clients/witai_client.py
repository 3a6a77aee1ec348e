# START OF FILE: botzin/infra/clients/witai_client.py

from typing import Optional

import requests

from botzin.shared.logger import logger
from botzin.shared.config import WITAI_API_TOKEN, WITAI_API_URL, WITAI_API_VERSION
from botzin.domain.models import CompletionRequest

MAX_QUERY_LENGTH = 100


class WitAIClient:
    """
    Intent extraction. Not a text generator: a detected intent becomes a
    clarifying question, and the query is fed back to Wit.ai as a training
    utterance while the hourly training budget allows.
    """

    name = "witai"

    def __init__(self, training_limiter=None, timeout: float = 15):
        self.token = WITAI_API_TOKEN
        self.training_limiter = training_limiter
        self.timeout = timeout
        self.headers = {"Authorization": f"Bearer {self.token}"}
        logger.info(f"WitAIClient initialized (configured: {self.is_configured}).")

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    def try_complete(self, request: CompletionRequest) -> Optional[str]:
        if not self.is_configured or not request.allow_intents:
            return None
        query = request.prompt[:MAX_QUERY_LENGTH]
        try:
            response = requests.get(
                f"{WITAI_API_URL}/message",
                params={"v": WITAI_API_VERSION, "q": query},
                headers=self.headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            intents = response.json().get('intents') or []
        except Exception as e:
            logger.error(f"[WITAI] Error: {e}")
            return None

        if not intents:
            return None
        intent_name = intents[0].get('name')
        result = (
            f'Compreendo que o senhor(a) está se referindo a "{intent_name}". Poderia me fornecer mais '
            f'informações para que eu possa oferecer uma assistência mais detalhada?'
        )
        logger.info(f"[WITAI] Response generated: {result}")
        if self.training_limiter is None or self.training_limiter.can_call():
            self.train(query, intent_name)
        return result

    def train(self, text: str, intent_name: str) -> bool:
        try:
            response = requests.post(
                f"{WITAI_API_URL}/utterances",
                params={"v": WITAI_API_VERSION},
                json=[{"text": text, "intent": intent_name, "entities": [], "traits": []}],
                headers=self.headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            if self.training_limiter is not None:
                self.training_limiter.record_call()
            logger.info(f'Wit.ai trained with "{text}" for intent "{intent_name}".')
            return True
        except Exception as e:
            logger.error(f"Error training Wit.ai: {e}")
            return False

# END OF FILE: botzin/infra/clients/witai_client.py
