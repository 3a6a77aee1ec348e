# START OF FILE: botzin/app/plugins/ping.py

import asyncio
import time

from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.domain.models import InboundMessage


class PingPlugin:
    name = "ping"

    def __init__(self, client: EvolutionClient):
        self.client = client

    async def execute(self, message: InboundMessage, args: list) -> str:
        started = time.monotonic()
        await asyncio.get_running_loop().run_in_executor(None, self.client.send_text, message.chat_id, 'Pong!')
        latency_ms = int((time.monotonic() - started) * 1000)
        return f"Latência: {latency_ms}ms 🏓"

# END OF FILE: botzin/app/plugins/ping.py
