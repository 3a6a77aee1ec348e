# START OF FILE: botzin/app/services/command_service.py

import asyncio
import json
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.infra.clients.weather_client import WeatherClient
from botzin.app.services.analytics_service import AnalyticsService
from botzin.app.services.completion_service import CompletionChain
from botzin.app.services.connection_service import ConnectionSupervisor
from botzin.app.services.scheduler_service import backup_database
from botzin.app.services.tone_service import (
    SentimentAnalyzer, adjust_tone, adjust_response_based_on_sentiment, NEUTRAL
)
from botzin.domain.models import CompletionRequest, InboundMessage
from botzin.shared.config import (
    DEFAULT_BOT_CONFIG, BOT_CONFIG_PATH, OPTIONAL_BOT_CONFIG_TYPES, TIMEZONE_OFFSET, bot_config_type, save_bot_config
)
from botzin.shared.local_time import local_hour_minute, day_greeting
from botzin.shared.metrics import metrics
from botzin.shared.state_store import StateStore
from botzin.shared.logger import logger

PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/150"

HELP_TEXT = """Oi, tudo bem? Aqui vai uma lista dos comandos que eu sei:
!ajuda - Mostra essa lista aqui
!cancelar - Cancela o que eu tava fazendo
!gerartexto [texto] - Crio um texto pra você (ex.: "!gerartexto Escreva um poema")
!gerarimagem [descrição] - Gero uma imagem do que você pedir
!buscarx [termo] - Busco algo no X pra você
!perfilx [usuário] - Analiso um perfil do X
!buscar [termo] - Pesquiso algo pra você
!clima [cidade] - Te conto o clima
!traduzir [texto] - Traduzo pro inglês
!resumo - Resumo do que rolou no grupo hoje
!status - Te falo como eu tô
!config [chave] [valor] - Mexo nas minhas configs (se eu deixar)
!vendas - Mostro quantas vendas já registrei
!hora - Te digo a hora certinho
!conhecimento [texto] - Aprendo algo novo com você
!leads - Te mostro os leads que peguei
!restart - Reinicio (só o chefe pode usar)
!stats - Estatísticas de como eu tô indo
!backup - Faço um backup (só pro chefe)
Ou só me fala o que tá te incomodando que eu te ajudo a resolver AGORA com soluções que já transformaram milhares de vidas!"""


def coerce_config_value(key: str, value: str) -> Any:
    """Converts `value` to the type of the setting. Raises ValueError when it does not fit."""
    expected = bot_config_type(key)
    if key in OPTIONAL_BOT_CONFIG_TYPES and value == 'null':
        return None
    if expected is bool:
        if value not in ('true', 'false'):
            raise ValueError(f"{key} expects true or false")
        return value == 'true'
    if expected is int:
        if not value.isdigit():
            raise ValueError(f"{key} expects a whole number")
        return int(value)
    if expected is list:
        return [item.strip() for item in value.split(',') if item.strip()]
    return value


class CommandService:
    """`!command` surface. Plugins are looked up before the built-in commands."""

    def __init__(self, client: EvolutionClient, repo: SQLiteRepo, chain: CompletionChain,
                 analytics: AnalyticsService, supervisor: ConnectionSupervisor, sentiment_analyzer: SentimentAnalyzer,
                 weather: WeatherClient, contexts: StateStore, plugins: Dict[str, Any], bot_config: Dict[str, Any],
                 config_path: str = BOT_CONFIG_PATH, backup: Callable[..., str] = backup_database,
                 offset: int = TIMEZONE_OFFSET, now: Callable[[], Optional[datetime]] = lambda: None):
        self.client = client
        self.repo = repo
        self.chain = chain
        self.analytics = analytics
        self.supervisor = supervisor
        self.sentiment_analyzer = sentiment_analyzer
        self.weather = weather
        self.contexts = contexts
        self.plugins = plugins
        self.bot_config = bot_config
        self.config_path = config_path
        self.backup = backup
        self.offset = offset
        self.now = now
        self.handlers = {
            'ajuda': self._help,
            'cancelar': self._cancel,
            'gerartexto': self._generate_text,
            'gerarimagem': self._generate_image,
            'buscarx': self._search_x,
            'perfilx': self._profile_x,
            'buscar': self._search,
            'clima': self._weather,
            'traduzir': self._translate,
            'resumo': self._summary,
            'status': self._status,
            'config': self._config,
            'vendas': self._sales,
            'hora': self._time,
            'conhecimento': self._knowledge,
            'leads': self._leads,
            'restart': self._restart,
            'stats': self._stats,
            'backup': self._backup,
        }

    async def _run(self, func, *args):
        return await asyncio.get_running_loop().run_in_executor(None, func, *args)

    async def _send(self, message: InboundMessage, text: str):
        await self._run(self.client.send_text, message.chat_id, text)

    def _is_admin(self, message: InboundMessage) -> bool:
        admin = self.bot_config.get('admin_number')
        return bool(admin) and message.sender == admin

    async def handle(self, message: InboundMessage):
        command, _, prompt = message.text.strip()[1:].partition(' ')
        command = command.lower()
        args = prompt.split()
        prompt = prompt.strip()
        context = self.contexts.get(message.sender)
        tone = (context.tone if context else None) or NEUTRAL

        metrics.log_command()
        await self._run(self.repo.log_usage, message.sender, command)
        logger.info(f"Command '{command}' from {message.sender}.")

        plugin = self.plugins.get(command)
        if plugin is not None:
            try:
                reply = await plugin.execute(message, args)
            except Exception as e:
                logger.error(f"Error running plugin {command}: {e}", exc_info=True)
                reply = adjust_tone('Erro ao executar o plugin.', tone)
            await self._send(message, reply)
            return

        handler = self.handlers.get(command)
        if handler is None:
            await self._send(message, adjust_tone(
                'Não entendi esse comando, mas não te deixo na mão! Dá uma olhada no !ajuda ou me conta o que te '
                'incomoda que eu te mostro algo incrível!', tone
            ))
            return
        await handler(message, prompt, args, tone)

    async def _with_sentiment(self, message: InboundMessage, text: str, prompt: str):
        sentiment = await self._run(self.sentiment_analyzer.analyze, prompt or message.text)
        await self._send(message, adjust_response_based_on_sentiment(text, sentiment))

    # --- Built-in commands ---

    async def _help(self, message, prompt, args, tone):
        await self._send(message, HELP_TEXT)

    async def _cancel(self, message, prompt, args, tone):
        await self._send(message, adjust_tone(
            'Beleza, cancelei! Mas não deixa teu problema pra depois – me diz como te ajudo agora! 🙂', tone
        ))

    async def _complete(self, request: CompletionRequest) -> str:
        result = await self._run(self.chain.complete, request)
        return result or request.default_text

    async def _generate_text(self, message, prompt, args, tone):
        if not prompt:
            await self._send(message, adjust_tone('Fala mais, tipo: "!gerartexto Escreva um poema".', tone))
            return
        text = await self._complete(CompletionRequest(
            prompt=f'Escreva um texto sobre "{prompt}" em português.',
            system_prompt='Você é um assistente que gera textos úteis em português.',
            max_tokens=150,
            default_text=f'Aqui tá um texto simples sobre "{prompt}": Um conteúdo básico pra te ajudar!',
        ))
        await self._with_sentiment(message, text, prompt)

    async def _generate_image(self, message, prompt, args, tone):
        if not prompt:
            await self._send(message, adjust_tone('Me diz o que quer, tipo: "!gerarimagem Um gato astronauta".', tone))
            return
        await self._send(message, adjust_tone('Beleza, já vou gerar a imagem... 🖼️', tone))
        caption = adjust_tone('Aqui tá tua imagem! Quer algo mais pra turbinar teu dia? 🙂', tone)
        await self._run(self.client.send_media, message.chat_id, PLACEHOLDER_IMAGE_URL, caption)

    async def _search_x(self, message, prompt, args, tone):
        if not prompt:
            await self._send(message, adjust_tone('Fala o que quer buscar no X, tipo: "!buscarx tecnologia".', tone))
            return
        result = adjust_tone(
            f'Pesquisei no X sobre "{prompt}" e achei um resumo básico: Algo incrível tá rolando por lá – '
            f'quer saber mais?', tone
        )
        await self._with_sentiment(message, result, prompt)

    async def _profile_x(self, message, prompt, args, tone):
        if not prompt:
            await self._send(message, adjust_tone('Me dá um usuário do X, tipo: "!perfilx elonmusk".', tone))
            return
        result = adjust_tone(
            f'Sobre o @{prompt}: Parece um perfil bem ativo e interessante! Quer uma dica pra bombar teu dia também?',
            tone
        )
        await self._with_sentiment(message, result, prompt)

    async def _search(self, message, prompt, args, tone):
        if not prompt:
            await self._send(message, adjust_tone('Fala o que quer buscar, tipo: "!buscar IA".', tone))
            return
        text = await self._complete(CompletionRequest(
            prompt=f'Pesquise sobre "{prompt}" e me dê um resumo em português.',
            system_prompt='Você é um assistente de busca útil.',
            max_tokens=150,
            default_text=f'Pesquisei "{prompt}" e achei: Um resumo básico pra te ajudar!',
        ))
        await self._with_sentiment(message, text, prompt)

    async def _weather(self, message, prompt, args, tone):
        if not prompt:
            await self._send(message, adjust_tone('Me diz a cidade, tipo: "!clima São Paulo".', tone))
            return
        data = await self._run(self.weather.current_weather, prompt) if self.weather.is_configured else None
        if data:
            text = (
                f"O clima em {prompt} tá assim: {data['description']}, {data['temp']}°C. 🌤️ "
                f"Quer aproveitar esse dia com mais energia?"
            )
        else:
            text = f'O clima em {prompt} tá assim: Um dia básico com solzinho! 🌤️ Quer aproveitar esse dia com mais energia?'
        await self._with_sentiment(message, adjust_tone(text, tone), prompt)

    async def _translate(self, message, prompt, args, tone):
        if not prompt:
            await self._send(message, adjust_tone('Fala o texto, tipo: "!traduzir Olá pra inglês".', tone))
            return
        text = await self._complete(CompletionRequest(
            prompt=f'Traduza "{prompt}" para o inglês.',
            system_prompt='Você é um tradutor para inglês.',
            max_tokens=50,
            default_text=f'Traduzi "{prompt}" pro inglês: Hi there!',
        ))
        await self._with_sentiment(message, text, prompt)

    async def _summary(self, message, prompt, args, tone):
        summary = await self._run(self.analytics.daily_summary, message.chat_id)
        await self._with_sentiment(
            message, f"{summary} 📝 Quer aproveitar o dia com algo que te deixe no topo?", prompt
        )

    async def _status(self, message, prompt, args, tone):
        await self._send(message, adjust_tone(
            f"Tô de boa há {self.analytics.uptime_minutes()} minutos, ajudando gente como você! "
            f"Mensagens: {metrics.message_count}. Comandos: {metrics.command_count}. Vendas: {metrics.total_sales}. "
            f"😊 Quer entrar nessa onda de sucesso comigo? Me diz o que te incomoda que eu te mostro o caminho!", tone
        ))

    async def _config(self, message, prompt, args, tone):
        if not args:
            await self._send(
                message, f"Configurações atuais: {json.dumps(self.bot_config, indent=2, ensure_ascii=False)}"
            )
            return
        if not self._is_admin(message):
            await self._send(message, adjust_tone(
                'Só o administrador pode mudar as configurações, desculpa! Mas eu te ajudo com qualquer coisa agora – '
                'me diz o que precisa!', tone
            ))
            return
        key = args[0]
        if key not in DEFAULT_BOT_CONFIG or len(args) < 2:
            await self._send(message, adjust_tone(
                'Essa configuração não existe. Dá uma olhada no !ajuda e me diz como te ajudo hoje!', tone
            ))
            return
        value = " ".join(args[1:])
        try:
            self.bot_config[key] = coerce_config_value(key, value)
        except ValueError as e:
            logger.warning(f"Rejected value {value!r} for config '{key}': {e}")
            await self._send(message, adjust_tone(
                f"Valor inválido pra {key}: {value}. Confere o formato e tenta de novo!", tone
            ))
            return
        try:
            await self._run(save_bot_config, self.bot_config, self.config_path)
        except OSError as e:
            logger.error(f"Error saving bot config to {self.config_path}: {e}")
        logger.info(f"Config '{key}' changed to {self.bot_config[key]!r} by {message.sender}.")
        await self._send(message, adjust_tone(
            f"Configuração atualizada: {key} = {value} 👍 Quer aproveitar e resolver algo agora?", tone
        ))

    async def _sales(self, message, prompt, args, tone):
        await self._send(message, adjust_tone(
            f"Já peguei {metrics.total_sales} intenções de venda – tá bombando! Quer ver os leads e aproveitar essa "
            f"onda? Usa !leads! 😊", tone
        ))

    async def _time(self, message, prompt, args, tone):
        hour, minute = local_hour_minute(self.now(), self.offset)
        await self._send(message, adjust_tone(
            f"{day_greeting(hour)}! Aqui são {hour}:{minute:02d}. ⏰ Tá na hora de resolver algo que te incomoda – "
            f"me conta!", tone
        ))

    async def _knowledge(self, message, prompt, args, tone):
        if not prompt:
            await self._send(message, adjust_tone(
                'Me ensina algo, tipo: "!conhecimento O melhor celular é o XPhone".', tone
            ))
            return
        await self._run(self.repo.save_knowledge, message.sender, prompt)
        await self._send(message, adjust_tone(
            f'Valeu! Registrei: "{prompt}". Isso vai me ajudar a te dar soluções ainda melhores – manda mais! 😊', tone
        ))

    async def _leads(self, message, prompt, args, tone):
        leads = await self._run(self.repo.get_leads, message.sender)
        if leads:
            listing = "\n".join(f"{lead.date}: {lead.message}" for lead in leads)
            text = (
                f"Seus leads:\n{listing} 📋 Tá na hora de aproveitar essas oportunidades – quer uma dica pra fechar "
                f"essas vendas?"
            )
        else:
            text = (
                'Ainda não tenho leads teus, mas isso muda agora! Fala o que te incomoda que eu te levo pra solução '
                'perfeita! 😉'
            )
        await self._send(message, adjust_tone(text, tone))

    async def _restart(self, message, prompt, args, tone):
        if not self._is_admin(message):
            await self._send(message, adjust_tone(
                'Só o chefe pode reiniciar o bot, desculpa! Mas eu te ajudo com qualquer coisa agora – me diz o que '
                'precisa!', tone
            ))
            return
        await self._send(message, adjust_tone('Tô reiniciando agora... Já volto pra te ajudar a bombar! 🔄', tone))
        await self.supervisor.restart()

    async def _stats(self, message, prompt, args, tone):
        stats = await self._run(self.analytics.stats)
        await self._send(message, adjust_tone(
            f"{stats}\n\nQuer fazer parte dessa história de sucesso? Me conta o que te incomoda que eu te mostro o "
            f"caminho!", tone
        ))

    async def _backup(self, message, prompt, args, tone):
        if not self._is_admin(message):
            await self._send(message, adjust_tone(
                'Só o administrador pode fazer backup, desculpa! Mas eu te ajudo com qualquer coisa agora – o que tá '
                'rolando?', tone
            ))
            return
        try:
            backup_path = await asyncio.get_running_loop().run_in_executor(None, lambda: self.backup(manual=True))
        except OSError as e:
            logger.error(f"Error creating manual backup: {e}")
            await self._send(message, adjust_tone('Deu erro ao fazer o backup, tenta de novo daqui a pouco!', tone))
            return
        await self._send(message, adjust_tone(
            f"Backup feito com sucesso em: {backup_path} ✅ Tudo seguro pra continuarmos bombando – me diz como te "
            f"ajudo agora!", tone
        ))

# END OF FILE: botzin/app/services/command_service.py
