# START OF FILE: botzin/app/plugins/registry.py

from typing import Any, Dict

from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.infra.clients.weather_client import WeatherClient
from botzin.app.plugins.ping import PingPlugin
from botzin.app.plugins.userinfo import UserInfoPlugin
from botzin.app.plugins.weather import WeatherPlugin
from botzin.app.plugins.announce import AnnouncePlugin
from botzin.shared.logger import logger


def build_plugins(client: EvolutionClient, bot_config: Dict[str, Any], weather: WeatherClient) -> Dict[str, Any]:
    """Plugins are `!<name>` commands exposing `async execute(message, args) -> str`."""
    plugins = [
        PingPlugin(client),
        UserInfoPlugin(client),
        WeatherPlugin(weather),
        AnnouncePlugin(client, bot_config),
    ]
    registry = {plugin.name: plugin for plugin in plugins}
    logger.info(f"Plugins loaded: {list(registry)}")
    return registry

# END OF FILE: botzin/app/plugins/registry.py
