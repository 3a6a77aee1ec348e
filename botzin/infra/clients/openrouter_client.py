# START OF FILE: botzin/infra/clients/openrouter_client.py

from typing import Optional

from openai import OpenAI

from botzin.shared.logger import logger
from botzin.shared.config import OPENROUTER_API_URL, OPENROUTER_API_KEY, OPENROUTER_MODEL_NAME
from botzin.domain.models import CompletionRequest


class OpenAICompatibleClient:
    """Chat completion against any OpenAI-compatible endpoint."""

    name = "openai-compatible"

    def __init__(self, base_url: str, api_key: Optional[str], model_name: str, timeout: float = 15):
        self.api_key = api_key
        self.model_name = model_name
        self.client = OpenAI(base_url=base_url, api_key=api_key, timeout=timeout) if api_key else None
        logger.info(f"{self.name} client initialized (configured: {self.is_configured}).")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def try_complete(self, request: CompletionRequest) -> Optional[str]:
        if not self.is_configured:
            return None
        try:
            logger.info(f"[{self.name.upper()}] Requesting chat completion with model {self.model_name}...")
            completion = self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": request.system_prompt},
                    {"role": "user", "content": request.prompt},
                ],
                max_tokens=request.max_tokens,
            )
            response_text = (completion.choices[0].message.content or "").strip()
            logger.info(f"[{self.name.upper()}] Response generated: {response_text}")
            return response_text or None
        except Exception as e:
            logger.error(f"[{self.name.upper()}] Error getting chat completion: {e}")
            return None


class OpenRouterClient(OpenAICompatibleClient):
    name = "openrouter"

    def __init__(self, timeout: float = 15):
        super().__init__(OPENROUTER_API_URL, OPENROUTER_API_KEY, OPENROUTER_MODEL_NAME, timeout)

# END OF FILE: botzin/infra/clients/openrouter_client.py
