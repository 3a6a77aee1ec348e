# START OF FILE: botzin/app/plugins/userinfo.py

import asyncio

from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.domain.models import InboundMessage


class UserInfoPlugin:
    name = "userinfo"

    def __init__(self, client: EvolutionClient):
        self.client = client

    async def execute(self, message: InboundMessage, args: list) -> str:
        response = f"Informações do usuário:\nID: {message.sender}"
        if message.is_group:
            participants = await asyncio.get_running_loop().run_in_executor(
                None, self.client.group_participants, message.chat_id
            )
            participant = next((p for p in participants if p.get('id') == message.sender), None)
            if participant is not None:
                role = 'Admin' if participant.get('admin') in ('admin', 'superadmin') else 'Membro'
                response += f"\nStatus no grupo: {role}"
        return response

# END OF FILE: botzin/app/plugins/userinfo.py
