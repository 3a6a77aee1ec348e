# START OF FILE: botzin/app/services/connection_service.py

import asyncio
import sys
from typing import Any, Callable, Dict, Optional

from botzin.infra.clients.evolution_client import EvolutionClient, EvolutionClientError
from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.shared.config import REPORT_PHONE_NUMBER
from botzin.shared.logger import logger

MAX_BACKOFF_SECONDS = 60


class ConnectionSupervisor:
    """
    Keeps the gateway session alive: tracks readiness and the last pairing QR,
    logs connection events, and reconnects with exponential backoff.
    A finite `max_attempts` that runs out ends the process with exit code 1.
    With `bot_config`, both reconnect settings follow the live config.
    """

    def __init__(self, client: EvolutionClient, repo: SQLiteRepo, reconnect_interval: float = 10,
                 max_attempts: Optional[int] = None, report_number: Optional[str] = REPORT_PHONE_NUMBER,
                 exit_func: Callable[[int], None] = sys.exit, bot_config: Optional[Dict[str, Any]] = None):
        self.client = client
        self.repo = repo
        self._reconnect_interval = reconnect_interval
        self._max_attempts = max_attempts
        self.bot_config = bot_config
        self.report_number = report_number
        self.exit_func = exit_func

        self.is_ready = False
        self.qr_code: Optional[str] = None
        self.last_error: Optional[str] = None
        self.attempts = 0
        self._reconnect_task: Optional[asyncio.Task] = None

    @property
    def reconnect_interval(self) -> float:
        if self.bot_config is not None:
            return self.bot_config.get('reconnect_interval', self._reconnect_interval)
        return self._reconnect_interval

    @property
    def max_attempts(self) -> Optional[int]:
        if self.bot_config is not None:
            return self.bot_config.get('max_reconnect_attempts', self._max_attempts)
        return self._max_attempts

    def backoff_delay(self, attempt: int) -> float:
        return min(self.reconnect_interval * (2 ** attempt), MAX_BACKOFF_SECONDS)

    async def _log_event(self, event: str, details: str):
        await asyncio.get_running_loop().run_in_executor(None, self.repo.log_connection_event, event, details)

    async def start(self):
        """Opens (or reopens) the gateway session and reads its state."""
        logger.info("Connecting to WhatsApp gateway...")
        loop = asyncio.get_running_loop()
        try:
            qr_code = await loop.run_in_executor(None, self.client.connect)
            if qr_code:
                await self.handle_qr(qr_code)
            state = await loop.run_in_executor(None, self.client.connection_state)
        except EvolutionClientError as e:
            logger.error(f"Error initializing WhatsApp connection: {e}")
            self.last_error = str(e)
            await self._log_event('init_error', str(e))
            self.schedule_reconnect()
            return
        await self.handle_connection_update(state)

    async def handle_qr(self, qr_code: str):
        self.qr_code = qr_code
        logger.info("QR code generated. Open /qr to scan it.")
        await self._log_event('qr_generated', 'Novo QR Code gerado')

    async def handle_connection_update(self, state: Optional[str], status_code: Optional[int] = None):
        if state == 'open':
            if self.is_ready:
                return
            self.is_ready = True
            self.attempts = 0
            self.last_error = None
            self.qr_code = None
            logger.info("Bot connected and ready.")
            await self._log_event('ready', 'Cliente conectado')
            if self.report_number:
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, self.client.send_text, self.report_number, 'Bot conectado! 🚀')
        elif state == 'close':
            self.is_ready = False
            if status_code == 401:
                self.last_error = f"Falha na autenticação (status {status_code})"
                logger.error(self.last_error)
                await self._log_event('auth_failure', self.last_error)
            else:
                logger.warning(f"Client disconnected (status {status_code}).")
                await self._log_event('disconnected', f"Motivo: {status_code}")
            self.schedule_reconnect()
        else:
            logger.info(f"Client state changed: {state}")
            await self._log_event('state_change', str(state))

    def schedule_reconnect(self):
        if self._reconnect_task is not None and not self._reconnect_task.done():
            logger.debug("Reconnect already scheduled.")
            return
        if self.max_attempts is not None and self.attempts >= self.max_attempts:
            logger.error("Maximum number of reconnect attempts reached. Exiting.")
            self.exit_func(1)
            return
        delay = self.backoff_delay(self.attempts)
        self.attempts += 1
        logger.info(f"Reconnect attempt {self.attempts} in {delay} seconds...")
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float):
        await asyncio.sleep(delay)
        self._reconnect_task = None
        await self.start()

    async def watchdog(self):
        if not self.is_ready:
            logger.warning("Client is not ready. Checking connection...")
            self.schedule_reconnect()

    async def restart(self):
        """Asks the gateway to restart the session; the resulting close/open events drive readiness."""
        self.is_ready = False
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.client.restart)
            await self._log_event('restart', 'Reinício solicitado')
        except EvolutionClientError as e:
            logger.error(f"Error restarting WhatsApp session: {e}")
            self.last_error = str(e)
            self.schedule_reconnect()

    async def stop(self):
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()

# END OF FILE: botzin/app/services/connection_service.py
