import json
from unittest.mock import AsyncMock, Mock

import pytest

from botzin.app.plugins.announce import AnnouncePlugin
from botzin.app.plugins.userinfo import UserInfoPlugin
from botzin.app.services.analytics_service import AnalyticsService
from botzin.app.services.command_service import HELP_TEXT, CommandService, coerce_config_value
from botzin.app.services.completion_service import CompletionChain
from botzin.app.services.rate_limiter import RateLimiter
from botzin.app.services.tone_service import SentimentAnalyzer
from botzin.domain.models import CompletionRequest, ConversationContext, InboundMessage
from botzin.shared.config import DEFAULT_BOT_CONFIG

from conftest import NIGHT_UTC

ADMIN = "5511999999999@s.whatsapp.net"
USER = "5511888888888@s.whatsapp.net"
GROUP = "120363000000000000@g.us"


def message(text, sender=USER, chat_id=None, is_group=False):
    return InboundMessage(message_id="m1", chat_id=chat_id or sender, sender=sender, text=text, is_group=is_group)


@pytest.fixture
def bot_config():
    config = dict(DEFAULT_BOT_CONFIG)
    config['admin_number'] = ADMIN
    config['monitored_groups'] = [GROUP]
    return config


@pytest.fixture
def supervisor():
    supervisor = Mock()
    supervisor.restart = AsyncMock()
    return supervisor


@pytest.fixture
def weather():
    weather = Mock()
    weather.is_configured = False
    return weather


@pytest.fixture
def backup():
    return Mock(return_value="./backup/botzin_manual.db")


@pytest.fixture
def commands(gateway, repo, chain, clock, supervisor, weather, contexts, bot_config, backup, tmp_path):
    plugins = {
        'userinfo': UserInfoPlugin(gateway),
        'announce': AnnouncePlugin(gateway, bot_config),
    }
    return CommandService(
        gateway, repo, chain, AnalyticsService(repo, clock=clock), supervisor, SentimentAnalyzer(),
        weather, contexts, plugins, bot_config, config_path=str(tmp_path / "config.json"),
        backup=backup, offset=-3, now=lambda: NIGHT_UTC,
    )


def sent_text(gateway):
    return gateway.send_text.call_args[0][1]


class TestBasics:
    async def test_help(self, commands, gateway):
        await commands.handle(message("!ajuda"))
        gateway.send_text.assert_called_once_with(USER, HELP_TEXT)

    async def test_unknown_command(self, commands, gateway):
        await commands.handle(message("!voar"))
        assert "!ajuda" in sent_text(gateway)

    async def test_usage_is_logged(self, commands, repo):
        await commands.handle(message("!hora"))
        await commands.handle(message("!HORA"))
        assert repo.count_usage() == 2
        assert repo.get_top_users() == [(USER, 2)]

    async def test_time_uses_local_offset(self, commands, gateway):
        await commands.handle(message("!hora"))
        assert sent_text(gateway).startswith("Boa noite! Aqui são 1:30.")

    async def test_reply_goes_to_group_chat(self, commands, gateway):
        await commands.handle(message("!cancelar", chat_id=GROUP, is_group=True))
        assert gateway.send_text.call_args[0][0] == GROUP

    async def test_tone_from_context(self, commands, gateway, contexts):
        contexts.set(USER, ConversationContext(user_id=USER, tone="formal"))
        await commands.handle(message("!vendas"))
        assert "está bombando" in sent_text(gateway)

    async def test_generate_text_without_providers(self, commands, gateway):
        await commands.handle(message("!gerartexto Escreva um poema"))
        assert sent_text(gateway).startswith('Aqui tá um texto simples sobre "Escreva um poema"')

    async def test_generate_text_usage_hint(self, commands, gateway):
        await commands.handle(message("!gerartexto"))
        assert "!gerartexto Escreva um poema" in sent_text(gateway)

    async def test_weather_without_key(self, commands, gateway):
        await commands.handle(message("!clima Recife"))
        assert "Recife" in sent_text(gateway)


class TestConfig:
    async def test_anyone_can_view(self, commands, gateway):
        await commands.handle(message("!config"))
        assert '"auto_reply": true' in sent_text(gateway)

    async def test_non_admin_cannot_change(self, commands, gateway, bot_config):
        await commands.handle(message("!config auto_reply false"))
        assert bot_config['auto_reply'] is True
        assert "administrador" in sent_text(gateway)

    async def test_admin_change_is_coerced_and_saved(self, commands, bot_config, tmp_path):
        await commands.handle(message("!config commands_per_minute 20", sender=ADMIN))
        assert bot_config['commands_per_minute'] == 20
        saved = json.loads((tmp_path / "config.json").read_text(encoding='utf-8'))
        assert saved['commands_per_minute'] == 20

    async def test_unknown_key(self, commands, gateway, bot_config):
        await commands.handle(message("!config cor azul", sender=ADMIN))
        assert 'cor' not in bot_config
        assert "não existe" in sent_text(gateway)

    async def test_group_list_stays_a_list(self, commands, gateway, bot_config):
        other = "120363111111111111@g.us"
        await commands.handle(message(f"!config monitored_groups {GROUP}, {other}", sender=ADMIN))
        assert bot_config['monitored_groups'] == [GROUP, other]
        await commands.handle(message(f"!config monitored_groups {GROUP}", sender=ADMIN))
        assert bot_config['monitored_groups'] == [GROUP]

        gateway.send_text.reset_mock()
        await commands.handle(message("!announce promoção hoje", sender=ADMIN))
        announced = [call[0][0] for call in gateway.send_text.call_args_list[:-1]]
        assert announced == [GROUP]

    async def test_provider_limit_applies_without_restart(self, commands, bot_config, clock):
        provider = Mock()
        provider.name = 'openrouter'
        provider.is_configured = True
        provider.try_complete.return_value = "resposta"
        limiter = RateLimiter.from_config(bot_config, 'max_openrouter_calls_per_minute', clock=clock)
        running_chain = CompletionChain([provider], {'openrouter': limiter})
        request = CompletionRequest(prompt="Oi", system_prompt="sys")

        assert running_chain.complete(request) == "resposta"
        await commands.handle(message("!config max_openrouter_calls_per_minute 1", sender=ADMIN))
        assert running_chain.complete(request) is None
        assert provider.try_complete.call_count == 1

    async def test_invalid_value_is_rejected(self, commands, gateway, bot_config, tmp_path):
        await commands.handle(message("!config auto_reply talvez", sender=ADMIN))
        assert bot_config['auto_reply'] is True
        assert "Valor inválido" in sent_text(gateway)
        assert not (tmp_path / "config.json").exists()

    @pytest.mark.parametrize("key,raw,value", [
        ("auto_reply", "true", True),
        ("auto_reply", "false", False),
        ("cache_ttl", "30", 30),
        ("report_time", "0 9 * * *", "0 9 * * *"),
        ("maintenance_message", "42", "42"),
        ("monitored_groups", "a@g.us, ,b@g.us", ["a@g.us", "b@g.us"]),
        ("max_reconnect_attempts", "5", 5),
        ("max_reconnect_attempts", "null", None),
        ("admin_number", "5511@s.whatsapp.net", "5511@s.whatsapp.net"),
    ])
    def test_coerce(self, key, raw, value):
        assert coerce_config_value(key, raw) == value

    @pytest.mark.parametrize("key,raw", [("auto_reply", "sim"), ("cache_ttl", "dez"), ("cpu_threshold", "null")])
    def test_coerce_rejects(self, key, raw):
        with pytest.raises(ValueError):
            coerce_config_value(key, raw)


class TestAdminCommands:
    async def test_backup_requires_admin(self, commands, backup):
        await commands.handle(message("!backup"))
        backup.assert_not_called()

    async def test_backup(self, commands, gateway, backup):
        await commands.handle(message("!backup", sender=ADMIN))
        backup.assert_called_once_with(manual=True)
        assert "./backup/botzin_manual.db" in sent_text(gateway)

    async def test_backup_failure(self, commands, gateway, backup):
        backup.side_effect = OSError("disk full")
        await commands.handle(message("!backup", sender=ADMIN))
        assert "erro" in sent_text(gateway).lower()

    async def test_restart(self, commands, supervisor):
        await commands.handle(message("!restart", sender=ADMIN))
        supervisor.restart.assert_awaited_once()

    async def test_restart_requires_admin(self, commands, supervisor):
        await commands.handle(message("!restart"))
        supervisor.restart.assert_not_awaited()


class TestKnowledgeAndLeads:
    async def test_knowledge_is_stored(self, commands, repo):
        await commands.handle(message("!conhecimento preço: 50 reais"))
        assert repo.get_knowledge(USER) == "preço: 50 reais"

    async def test_leads_listing(self, commands, gateway, repo):
        repo.save_lead(USER, "quero o sono profundo", date="2025-03-10T04:30:00+00:00")
        await commands.handle(message("!leads"))
        assert "2025-03-10T04:30:00+00:00: quero o sono profundo" in sent_text(gateway)

    async def test_no_leads(self, commands, gateway):
        await commands.handle(message("!leads"))
        assert "Ainda não tenho leads" in sent_text(gateway)


class TestPlugins:
    async def test_plugin_reply(self, commands, gateway):
        await commands.handle(message("!userinfo"))
        assert sent_text(gateway) == f"Informações do usuário:\nID: {USER}"

    async def test_plugin_role_in_group(self, commands, gateway):
        gateway.group_participants.return_value = [{'id': USER, 'admin': 'admin'}]
        await commands.handle(message("!userinfo", chat_id=GROUP, is_group=True))
        assert sent_text(gateway).endswith("Status no grupo: Admin")

    async def test_announce_goes_to_monitored_groups(self, commands, gateway):
        await commands.handle(message("!announce promoção hoje", sender=ADMIN))
        assert gateway.send_text.call_args_list[0][0] == (GROUP, "📢 Anúncio: promoção hoje")
        assert sent_text(gateway) == "Anúncio enviado para todos os grupos com sucesso!"

    async def test_plugin_failure(self, commands, gateway):
        gateway.group_participants.side_effect = RuntimeError("gateway down")
        await commands.handle(message("!userinfo", chat_id=GROUP, is_group=True))
        assert sent_text(gateway) == "Erro ao executar o plugin."
