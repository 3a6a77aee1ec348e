# START OF FILE: botzin/app/plugins/announce.py

import asyncio
from typing import Any, Dict

from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.domain.models import InboundMessage


class AnnouncePlugin:
    name = "announce"

    def __init__(self, client: EvolutionClient, bot_config: Dict[str, Any]):
        self.client = client
        self.bot_config = bot_config

    async def execute(self, message: InboundMessage, args: list) -> str:
        if message.sender != self.bot_config.get('admin_number'):
            return "Somente o administrador pode usar este comando!"
        if not args:
            return "Digite uma mensagem para anunciar! Exemplo: !announce Olá a todos"

        announcement = f"📢 Anúncio: {' '.join(args)}"
        loop = asyncio.get_running_loop()
        results = [
            await loop.run_in_executor(None, self.client.send_text, group_id, announcement)
            for group_id in self.bot_config['monitored_groups']
        ]
        if not all(results):
            return "Erro ao enviar o anúncio. Tente novamente."
        return "Anúncio enviado para todos os grupos com sucesso!"

# END OF FILE: botzin/app/plugins/announce.py
