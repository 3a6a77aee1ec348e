# START OF FILE: botzin/infra/clients/hf_vision_client.py

from typing import List, Optional

import requests

from botzin.shared.logger import logger
from botzin.shared.config import HUGGINGFACE_API_KEY, VISION_API_URL


class VisionClient:
    """Image classification labels from the Hugging Face inference API."""

    def __init__(self, timeout: float = 20, max_labels: int = 5):
        self.api_url = VISION_API_URL
        self.api_key = HUGGINGFACE_API_KEY
        self.timeout = timeout
        self.max_labels = max_labels
        logger.info(f"VisionClient initialized (configured: {self.is_configured}).")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def label_image(self, image_data: bytes, mimetype: str = "image/jpeg") -> Optional[List[str]]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": mimetype
        }
        try:
            response = requests.post(self.api_url, headers=headers, data=image_data, timeout=self.timeout)
            response.raise_for_status()
            predictions = response.json()
            if not isinstance(predictions, list):
                logger.warning(f"Vision API returned an unexpected body: {predictions}")
                return None
            labels = [p['label'] for p in predictions[:self.max_labels] if isinstance(p, dict) and p.get('label')]
            logger.info(f"Image labelled: {labels}")
            return labels
        except Exception as e:
            logger.error(f"Error labelling image: {e}", exc_info=True)
            return None

# END OF FILE: botzin/infra/clients/hf_vision_client.py
