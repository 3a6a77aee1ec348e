# START OF FILE: botzin/infra/clients/hf_whisper_client.py

from typing import Optional

import requests

from botzin.shared.logger import logger
from botzin.shared.config import HUGGINGFACE_API_KEY, STT_API_URL


class WhisperClient:
    def __init__(self, timeout: float = 20):
        self.api_url = STT_API_URL
        self.api_key = HUGGINGFACE_API_KEY
        self.timeout = timeout
        logger.info(f"WhisperClient initialized (configured: {self.is_configured}).")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def transcribe(self, audio_data: bytes, mimetype: str = "audio/ogg") -> Optional[str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            # WhatsApp voice notes arrive as "audio/ogg; codecs=opus"
            "Content-Type": mimetype.split(';')[0].strip() or "audio/ogg"
        }
        try:
            logger.info(f"Sending {len(audio_data)} bytes of audio data for transcription...")
            response = requests.post(self.api_url, headers=headers, data=audio_data, timeout=self.timeout)
            response.raise_for_status()

            content_type = response.headers.get('content-type', '')
            if 'application/json' not in content_type:
                logger.error(f"Transcription API returned a non-JSON response. Content-Type: {content_type}.")
                return None

            response_data = response.json()
            transcribed_text = response_data.get('text')
            if transcribed_text:
                logger.info(f"Transcription successful: '{transcribed_text}'")
                return transcribed_text.strip()
            logger.warning(f"Transcription API returned JSON but no text. Response: {response_data}")
            return None

        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP Error during transcription request: {e}. Response body: {e.response.text}")
            return None
        except requests.exceptions.Timeout:
            logger.error(f"Request to Whisper API timed out after {self.timeout} seconds.")
            return None
        except Exception as e:
            logger.error(f"Generic error during transcription request: {e}")
            return None

# END OF FILE: botzin/infra/clients/hf_whisper_client.py
