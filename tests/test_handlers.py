import asyncio
import threading
from unittest.mock import AsyncMock, Mock

import pytest

from botzin.api.whatsapp.handlers import APOLOGY_TEXT, TOO_FAST_TEXT, MessageHandler
from botzin.app.services.tone_service import SentimentAnalyzer
from botzin.domain.models import ConversationContext, InboundMessage
from botzin.shared.config import DEFAULT_BOT_CONFIG
from botzin.shared.state_store import InMemoryStateStore

USER = "5511888888888@s.whatsapp.net"
GROUP = "120363000000000000@g.us"


def message(text="quero um carro", sender=USER, chat_id=None, **kwargs):
    return InboundMessage(message_id="m1", chat_id=chat_id or sender, sender=sender, text=text, **kwargs)


@pytest.fixture
def bot_config():
    config = dict(DEFAULT_BOT_CONFIG)
    config['monitored_groups'] = [GROUP]
    config['commands_per_minute'] = 2
    config['follow_up_delay'] = 0
    return config


@pytest.fixture
def ai_service():
    service = Mock()
    service.get_bot_response.return_value = "Resposta."
    return service


@pytest.fixture
def command_service():
    service = Mock()
    service.handle = AsyncMock()
    return service


@pytest.fixture
def media_service():
    service = Mock()
    service.handle.return_value = "Transcrição do áudio: oi"
    return service


@pytest.fixture
def response_times():
    return InMemoryStateStore()


@pytest.fixture
def handler(gateway, repo, ai_service, command_service, media_service, night_matcher, contexts,
            response_times, bot_config, clock):
    return MessageHandler(
        gateway, repo, ai_service, command_service, media_service, night_matcher, SentimentAnalyzer(),
        contexts, response_times, InMemoryStateStore(), bot_config, clock=clock,
    )


async def drain_follow_ups(handler):
    await asyncio.gather(*list(handler._follow_ups))


class TestRouting:
    async def test_own_messages_are_ignored(self, handler, gateway, ai_service):
        await handler.process(message(from_me=True))
        ai_service.get_bot_response.assert_not_called()
        gateway.send_text.assert_not_called()

    async def test_command_goes_to_command_service(self, handler, command_service):
        await handler.process(message("!ajuda"))
        command_service.handle.assert_awaited_once()

    async def test_commands_are_rate_limited_per_user(self, handler, command_service, gateway, clock):
        for _ in range(3):
            await handler.process(message("!hora"))
        assert command_service.handle.await_count == 2
        gateway.send_text.assert_called_once_with(USER, TOO_FAST_TEXT)

        clock.advance(61)
        await handler.process(message("!hora"))
        assert command_service.handle.await_count == 3

    async def test_other_user_has_own_budget(self, handler, command_service):
        for _ in range(2):
            await handler.process(message("!hora"))
        await handler.process(message("!hora", sender="5511000000000@s.whatsapp.net"))
        assert command_service.handle.await_count == 3

    async def test_monitored_group_message_is_stored(self, handler, repo, ai_service, clock):
        await handler.process(message("bom dia grupo", chat_id=GROUP, is_group=True))
        ai_service.get_bot_response.assert_not_called()
        assert repo.get_messages_since("2000-01-01")[0][0] == GROUP

    async def test_other_group_is_ignored(self, handler, repo, gateway):
        await handler.process(message("oi", chat_id="999@g.us", is_group=True))
        assert repo.get_messages_since("2000-01-01") == []
        gateway.send_text.assert_not_called()

    async def test_media_reply(self, handler, gateway):
        await handler.process(message("", media_type='audio', mimetype='audio/ogg'))
        gateway.send_text.assert_called_once_with(USER, "Transcrição do áudio: oi")

    async def test_auto_reply_disabled(self, handler, gateway, bot_config):
        bot_config['auto_reply'] = False
        await handler.process(message())
        gateway.send_text.assert_not_called()

    async def test_error_sends_apology(self, handler, gateway, ai_service):
        ai_service.get_bot_response.side_effect = RuntimeError("boom")
        await handler.process(message())
        gateway.send_text.assert_called_once_with(USER, APOLOGY_TEXT)


class TestAutoReply:
    async def test_reply_and_history(self, handler, gateway, contexts):
        await handler.process(message("sim"))
        gateway.send_text.assert_called_once_with(USER, "Resposta.")
        history = contexts.get(USER).history
        assert [(m.role, m.content) for m in history] == [('user', 'sim'), ('assistant', 'Resposta.')]
        assert not handler._follow_ups

    async def test_sentiment_suffix(self, handler, gateway):
        await handler.process(message("tenho um problema"))
        assert gateway.send_text.call_args_list[0][0][1].endswith("😔")
        await drain_follow_ups(handler)

    async def test_follow_up_when_user_stays_silent(self, handler, gateway, contexts):
        await handler.process(message())
        await drain_follow_ups(handler)
        assert gateway.send_text.call_count == 2
        assert "noite tranquila" in gateway.send_text.call_args[0][1]
        assert contexts.get(USER).history[-1].role == 'assistant'

    async def test_no_follow_up_after_new_message(self, handler, gateway, contexts, bot_config):
        bot_config['follow_up_delay'] = 0.05
        await handler.process(message())
        contexts.get(USER).add_turn('user', 'outra coisa')
        await drain_follow_ups(handler)
        assert gateway.send_text.call_count == 1

    async def test_persisted_style_seeds_new_context(self, handler, repo, ai_service):
        repo.save_user_style(USER, "informal")
        await handler.process(message("sim"))
        context = ai_service.get_bot_response.call_args[0][1]
        assert context.tone == "informal"

    async def test_changed_tone_is_persisted(self, handler, repo, ai_service, contexts):
        def respond(text, context: ConversationContext):
            context.tone = "formal"
            return "Resposta."
        ai_service.get_bot_response.side_effect = respond
        await handler.process(message("sim"))
        assert repo.get_user_style(USER) == "formal"


class TestResponseTimes:
    async def test_delay_between_user_messages(self, handler, response_times, clock):
        await handler.process(message("sim"))
        assert response_times.get(USER).delay == 0.0
        clock.advance(12)
        await handler.process(message("não"))
        assert response_times.get(USER).delay == 12

    async def test_every_sample_is_saved_off_the_event_loop(self, handler, repo, clock):
        writer_threads = []
        repo.save_response_time = Mock(side_effect=lambda *args: writer_threads.append(threading.current_thread()))
        await handler.process(message("sim"))
        clock.advance(5)
        await handler.process(message("não"))
        assert [call[0][2] for call in repo.save_response_time.call_args_list] == [0.0, 5]
        assert threading.main_thread() not in writer_threads


class TestQueue:
    async def test_worker_drains_queue(self, handler, gateway):
        handler.start()
        await handler.enqueue(message("sim"))
        await handler.enqueue(message("não"))
        await handler.queue.join()
        await handler.stop()
        assert gateway.send_text.call_count == 2

    async def test_worker_survives_a_failing_message(self, handler, gateway):
        original = handler.process
        calls = []

        async def process(msg):
            calls.append(msg.text)
            if len(calls) == 1:
                raise RuntimeError("gateway down")
            await original(msg)

        handler.process = process
        handler.start()
        await handler.enqueue(message("sim"))
        await handler.enqueue(message("não"))
        await handler.queue.join()
        assert not handler._worker.done()
        await handler.stop()
        assert calls == ["sim", "não"]
        gateway.send_text.assert_called_once()
