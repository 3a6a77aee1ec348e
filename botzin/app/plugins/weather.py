# START OF FILE: botzin/app/plugins/weather.py

import asyncio

from botzin.infra.clients.weather_client import WeatherClient
from botzin.domain.models import InboundMessage


class WeatherPlugin:
    name = "weather"

    def __init__(self, weather: WeatherClient):
        self.weather = weather

    async def execute(self, message: InboundMessage, args: list) -> str:
        if not args:
            return "Digite o nome da cidade! Exemplo: !weather São Paulo"
        if not self.weather.is_configured:
            return "API de clima não configurada."
        city = " ".join(args)
        data = await asyncio.get_running_loop().run_in_executor(None, self.weather.current_weather, city)
        if data is None:
            return "Não consegui encontrar o clima para essa cidade. Tente outra!"
        return (
            f"Clima em {city}: {data['description']}, {data['temp']}°C, "
            f"sensação térmica de {data['feels_like']}°C. 🌤️"
        )

# END OF FILE: botzin/app/plugins/weather.py
