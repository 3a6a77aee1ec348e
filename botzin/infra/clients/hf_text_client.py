# START OF FILE: botzin/infra/clients/hf_text_client.py

from typing import Optional

import requests

from botzin.shared.logger import logger
from botzin.shared.config import HUGGINGFACE_API_KEY, HF_TEXT_API_URL
from botzin.domain.models import CompletionRequest


class HFTextClient:
    name = "huggingface"

    def __init__(self, timeout: float = 15):
        self.api_url = HF_TEXT_API_URL
        self.api_key = HUGGINGFACE_API_KEY
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        logger.info(f"HFTextClient initialized (configured: {self.is_configured}).")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def try_complete(self, request: CompletionRequest) -> Optional[str]:
        if not self.is_configured:
            return None
        inputs = f'{request.instruction} "{request.prompt}"' if request.instruction else request.prompt
        payload = {
            "inputs": inputs,
            "parameters": {"max_length": request.max_tokens}
        }
        try:
            response = requests.post(self.api_url, headers=self.headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            generated = None
            if isinstance(data, list) and data and isinstance(data[0], dict):
                generated = data[0].get('generated_text')
            result = generated or request.default_text
            logger.info(f"[HUGGINGFACE] Response generated: {result}")
            return result
        except requests.exceptions.Timeout:
            logger.error(f"[HUGGINGFACE] Request timed out after {self.timeout} seconds.")
            return None
        except Exception as e:
            logger.error(f"[HUGGINGFACE] Error: {e}")
            return None

# END OF FILE: botzin/infra/clients/hf_text_client.py
