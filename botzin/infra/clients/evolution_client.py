# START OF FILE: botzin/infra/clients/evolution_client.py

import base64
from typing import Any, Dict, List, Optional

import requests

from botzin.shared.logger import logger
from botzin.shared.config import EVOLUTION_API_URL, EVOLUTION_API_KEY, EVOLUTION_INSTANCE


class EvolutionClientError(Exception):
    """Raised when the WhatsApp gateway is unreachable or answers with an error."""


class EvolutionClient:
    """Thin HTTP client for the Evolution API (WhatsApp Web gateway)."""

    def __init__(self, base_url: str = EVOLUTION_API_URL, api_key: Optional[str] = EVOLUTION_API_KEY,
                 instance: str = EVOLUTION_INSTANCE, timeout: float = 15):
        self.base_url = base_url.rstrip('/')
        self.instance = instance
        self.timeout = timeout
        self.headers = {
            "apikey": api_key or "",
            "Content-Type": "application/json"
        }
        logger.info(f"EvolutionClient initialized for instance '{instance}' at {self.base_url}.")

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}/{self.instance}"
        try:
            response = requests.request(method, url, headers=self.headers, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise EvolutionClientError(f"{method} {path} failed: {e}. Response body: {e.response.text}") from e
        except requests.exceptions.RequestException as e:
            raise EvolutionClientError(f"{method} {path} failed: {e}") from e
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise EvolutionClientError(f"{method} {path} returned a non-JSON body.") from e

    # --- Outbound messages ---

    def send_text(self, number: str, text: str) -> bool:
        try:
            self._request("POST", "message/sendText", json={"number": number, "text": text})
            logger.info(f"Message sent to {number}.")
            return True
        except EvolutionClientError as e:
            logger.error(f"Failed to send message to {number}: {e}")
            return False

    def send_media(self, number: str, media_url: str, caption: str = "", mediatype: str = "image") -> bool:
        payload = {"number": number, "mediatype": mediatype, "media": media_url, "caption": caption}
        try:
            self._request("POST", "message/sendMedia", json=payload)
            logger.info(f"Media sent to {number}.")
            return True
        except EvolutionClientError as e:
            logger.error(f"Failed to send media to {number}: {e}")
            return False

    # --- Inbound media ---

    def get_media_bytes(self, message_id: str) -> Optional[bytes]:
        payload = {"message": {"key": {"id": message_id}}, "convertToMp4": False}
        try:
            data = self._request("POST", "chat/getBase64FromMediaMessage", json=payload)
            encoded = data.get('base64')
            if not encoded:
                logger.warning(f"Gateway returned no media for message {message_id}.")
                return None
            return base64.b64decode(encoded)
        except (EvolutionClientError, ValueError) as e:
            logger.error(f"Failed to download media for message {message_id}: {e}")
            return None

    # --- Connection ---

    def connect(self) -> Optional[str]:
        """Asks the gateway to (re)open the session. Returns the pairing QR payload when one is issued."""
        data = self._request("GET", "instance/connect")
        return data.get('code')

    def connection_state(self) -> Optional[str]:
        data = self._request("GET", "instance/connectionState")
        return (data.get('instance') or {}).get('state')

    def restart(self) -> None:
        self._request("POST", "instance/restart")
        logger.info(f"Gateway instance '{self.instance}' restart requested.")

    # --- Groups ---

    def group_participants(self, group_id: str) -> List[Dict[str, Any]]:
        try:
            data = self._request("GET", "group/participants", params={"groupJid": group_id})
            return data.get('participants') or []
        except EvolutionClientError as e:
            logger.error(f"Failed to fetch participants of {group_id}: {e}")
            return []

# END OF FILE: botzin/infra/clients/evolution_client.py
