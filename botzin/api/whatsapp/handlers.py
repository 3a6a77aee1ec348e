# START OF FILE: botzin/api/whatsapp/handlers.py

import asyncio
import re
import time
from typing import Any, Callable, Dict, Optional, Set

from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.app.services.ai_service import AIService
from botzin.app.services.command_service import CommandService
from botzin.app.services.media_service import MediaService
from botzin.app.services.product_service import ProductMatcher
from botzin.app.services.rate_limiter import RateLimiter
from botzin.app.services.tone_service import (
    SentimentAnalyzer, adjust_tone, adjust_response_based_on_sentiment, detect_tone, NEUTRAL
)
from botzin.domain.models import ConversationContext, InboundMessage, ResponseTime
from botzin.shared.metrics import metrics
from botzin.shared.state_store import StateStore
from botzin.shared.logger import logger

SHORT_ANSWER = re.compile(r"(sim|não|talvez)", re.IGNORECASE)

TOO_FAST_TEXT = 'Calma aí, você tá indo rápido demais! Aguarde um minutinho e vamos resolver tudo! ⏳'
APOLOGY_TEXT = 'Ops, deu um probleminha aqui, mas não te deixo na mão! Tenta de novo que eu te ajudo rapidinho!'


class MessageHandler:
    """
    Inbound pipeline. The webhook only enqueues; a single worker drains the
    queue, so conversation state is never mutated by two messages at once.
    """

    def __init__(self, client: EvolutionClient, repo: SQLiteRepo, ai_service: AIService,
                 command_service: CommandService, media_service: MediaService, product_matcher: ProductMatcher,
                 sentiment_analyzer: SentimentAnalyzer, contexts: StateStore, response_times: StateStore,
                 command_limiters: StateStore, bot_config: Dict[str, Any], clock: Callable[[], float] = time.time):
        self.client = client
        self.repo = repo
        self.ai_service = ai_service
        self.command_service = command_service
        self.media_service = media_service
        self.product_matcher = product_matcher
        self.sentiment_analyzer = sentiment_analyzer
        self.contexts = contexts
        self.response_times = response_times
        self.command_limiters = command_limiters
        self.bot_config = bot_config
        self.clock = clock

        self.queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._follow_ups: Set[asyncio.Task] = set()

    # --- Queue ---

    async def enqueue(self, message: InboundMessage):
        await self.queue.put(message)

    def start(self):
        self._worker = asyncio.get_running_loop().create_task(self._work())
        logger.info("Message worker started.")

    async def stop(self):
        tasks = [t for t in [self._worker, *self._follow_ups] if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _work(self):
        while True:
            message = await self.queue.get()
            try:
                await self.process(message)
            except Exception as e:
                logger.error(f"Worker failed on message {message.message_id}: {e}", exc_info=True)
            finally:
                self.queue.task_done()

    # --- Pipeline ---

    async def _run(self, func, *args):
        return await asyncio.get_running_loop().run_in_executor(None, func, *args)

    async def _send(self, chat_id: str, text: str):
        await self._run(self.client.send_text, chat_id, text)

    async def _record_response_time(self, user_id: str, now: float):
        previous = self.response_times.get(user_id)
        delay = now - previous.timestamp if previous is not None else 0.0
        self.response_times.set(user_id, ResponseTime(timestamp=now, delay=delay))
        await self._run(self.repo.save_response_time, user_id, now, delay)

    def _command_allowed(self, user_id: str) -> bool:
        limiter = self.command_limiters.get(user_id)
        if limiter is None:
            limiter = RateLimiter.from_config(self.bot_config, 'commands_per_minute', 60, self.clock)
            self.command_limiters.set(user_id, limiter)
        if not limiter.can_call():
            return False
        limiter.record_call()
        return True

    async def process(self, message: InboundMessage):
        if message.from_me:
            return
        logger.info(f"Message received from {message.sender} in {message.chat_id}: {message.text}")
        try:
            metrics.log_message()
            await self._record_response_time(message.sender, self.clock())
            text = message.text or ''

            if text.startswith('!'):
                if not self._command_allowed(message.sender):
                    await self._send(message.chat_id, adjust_tone(TOO_FAST_TEXT, detect_tone(text)))
                    return
                await self.command_service.handle(message)
            elif message.is_group:
                if message.chat_id in self.bot_config['monitored_groups'] and text:
                    await self._run(self.repo.save_group_message, message.chat_id, {
                        'id': message.message_id, 'sender': message.sender, 'body': text
                    })
                else:
                    logger.debug(f"Group message ignored in {message.chat_id}.")
            elif message.has_media:
                reply = await self._run(self.media_service.handle, message)
                await self._send(message.chat_id, reply)
            elif self.bot_config['auto_reply'] and text:
                await self._auto_reply(message, text)
        except Exception as e:
            logger.error(f"Error processing message from {message.sender}: {e}", exc_info=True)
            context = self.contexts.get(message.sender)
            tone = (context.tone if context else None) or NEUTRAL
            await self._send(message.chat_id, adjust_tone(APOLOGY_TEXT, tone))

    async def _auto_reply(self, message: InboundMessage, text: str):
        user_id = message.sender
        context = self.contexts.get(user_id)
        if context is None:
            context = ConversationContext(user_id=user_id, tone=await self._run(self.repo.get_user_style, user_id))
        previous_tone = context.tone

        context.add_turn('user', text)
        response = await self._run(self.ai_service.get_bot_response, text, context)
        sentiment = await self._run(self.sentiment_analyzer.analyze, text)
        final_response = adjust_response_based_on_sentiment(response, sentiment)
        context.add_turn('assistant', final_response)
        self.contexts.set(user_id, context)
        if context.tone and context.tone != previous_tone:
            await self._run(self.repo.save_user_style, user_id, context.tone)

        await self._send(message.chat_id, final_response)

        if not SHORT_ANSWER.fullmatch(text.strip()):
            task = asyncio.get_running_loop().create_task(
                self._follow_up(user_id, message.chat_id, final_response)
            )
            self._follow_ups.add(task)
            task.add_done_callback(self._follow_ups.discard)

    async def _follow_up(self, user_id: str, chat_id: str, sent_response: str):
        await asyncio.sleep(self.bot_config['follow_up_delay'])
        context = self.contexts.get(user_id)
        if not context or not context.history:
            return
        last = context.history[-1]
        # The user wrote again (or another reply went out) since: nothing to nudge.
        if last.role != 'assistant' or last.content != sent_response:
            return
        moment = 'e ter uma noite tranquila' if self.product_matcher.get_time_preference() == 'night' else 'e arrasar hoje'
        follow_up = adjust_tone(
            f"E aí, o que achou? Tá pronto pra resolver isso de vez {moment}? Não deixa essa chance escapar – "
            f"me diz mais!", context.tone
        )
        context.add_turn('assistant', follow_up)
        self.contexts.set(user_id, context)
        try:
            await self._send(chat_id, follow_up)
            logger.info(f"Follow-up sent to {user_id}.")
        except Exception as e:
            logger.error(f"Error sending follow-up to {user_id}: {e}", exc_info=True)

# END OF FILE: botzin/api/whatsapp/handlers.py
