# START OF FILE: botzin/infra/clients/together_client.py

from botzin.shared.config import TOGETHERAI_API_URL, TOGETHERAI_API_KEY, TOGETHERAI_MODEL_NAME
from botzin.infra.clients.openrouter_client import OpenAICompatibleClient


class TogetherClient(OpenAICompatibleClient):
    name = "togetherai"

    def __init__(self, timeout: float = 15):
        super().__init__(TOGETHERAI_API_URL, TOGETHERAI_API_KEY, TOGETHERAI_MODEL_NAME, timeout)

# END OF FILE: botzin/infra/clients/together_client.py
