# START OF FILE: botzin/infra/clients/weather_client.py

from typing import Dict, Optional

import requests

from botzin.shared.logger import logger
from botzin.shared.config import OPENWEATHERMAP_API_KEY, OPENWEATHERMAP_API_URL


class WeatherClient:
    def __init__(self, timeout: float = 15):
        self.api_key = OPENWEATHERMAP_API_KEY
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def current_weather(self, city: str) -> Optional[Dict]:
        """Returns {'description', 'temp', 'feels_like'} or None."""
        params = {"q": city, "appid": self.api_key, "units": "metric", "lang": "pt_br"}
        try:
            response = requests.get(OPENWEATHERMAP_API_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            return {
                'description': data['weather'][0]['description'],
                'temp': data['main']['temp'],
                'feels_like': data['main']['feels_like'],
            }
        except Exception as e:
            logger.error(f"Error fetching weather for '{city}': {e}")
            return None

# END OF FILE: botzin/infra/clients/weather_client.py
