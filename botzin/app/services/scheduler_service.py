# START OF FILE: botzin/app/services/scheduler_service.py

import asyncio
import os
import shutil
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import psutil
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.app.services.analytics_service import AnalyticsService
from botzin.app.services.connection_service import ConnectionSupervisor
from botzin.app.services.lead_service import LeadService
from botzin.shared.config import DATABASE_PATH, BACKUP_DIR, REPORT_PHONE_NUMBER, TIMEZONE_OFFSET
from botzin.shared.logger import logger

WATCHDOG_SECONDS = 30


def resource_usage() -> Tuple[float, float]:
    """(cpu %, memory %) of the host."""
    return psutil.cpu_percent(interval=None), psutil.virtual_memory().percent


def backup_database(db_path: str = DATABASE_PATH, backup_dir: str = BACKUP_DIR, manual: bool = False) -> str:
    """Copies the SQLite file into the backup directory. Raises OSError on failure."""
    os.makedirs(backup_dir, exist_ok=True)
    now = datetime.now(timezone.utc)
    stem = os.path.splitext(os.path.basename(db_path))[0]
    if manual:
        name = f"{stem}_manual_{now.strftime('%Y-%m-%dT%H-%M-%S')}.db"
    else:
        name = f"{stem}_{now.date().isoformat()}.db"
    backup_path = os.path.join(backup_dir, name)
    shutil.copyfile(db_path, backup_path)
    logger.info(f"Backup created at {backup_path}")
    return backup_path


# --- Jobs. Each one receives the gateway client explicitly. ---

async def monitor_resources(client: EvolutionClient, bot_config: Dict[str, Any]):
    cpu, memory = resource_usage()
    if cpu > bot_config['cpu_threshold'] or memory > bot_config['memory_threshold']:
        alert = (
            f"🚨 Alerta de Recursos:\nCPU: {cpu:.2f}% (limite: {bot_config['cpu_threshold']}%)\n"
            f"Memória: {memory:.2f}% (limite: {bot_config['memory_threshold']}%)"
        )
        logger.warning(alert)
        if bot_config.get('admin_number'):
            await asyncio.get_running_loop().run_in_executor(None, client.send_text, bot_config['admin_number'], alert)


async def scheduled_backup():
    try:
        await asyncio.get_running_loop().run_in_executor(None, backup_database)
    except OSError as e:
        logger.error(f"Error creating backup: {e}")


async def follow_up_leads(client: EvolutionClient, lead_service: LeadService):
    count = await asyncio.get_running_loop().run_in_executor(None, lead_service.follow_up_leads, client)
    logger.info(f"Lead follow-up cycle finished: {count} lead(s) followed up.")


async def send_daily_report(client: EvolutionClient, analytics: AnalyticsService, bot_config: Dict[str, Any],
                            report_number: str):
    loop = asyncio.get_running_loop()
    date = datetime.now(timezone.utc).date().isoformat()
    try:
        for group_id in bot_config['monitored_groups']:
            summary = await loop.run_in_executor(None, analytics.daily_summary, group_id)
            await loop.run_in_executor(
                None, client.send_text, report_number, f"Relatório diário {date} pra {group_id}:\n{summary}"
            )
        logger.info("Daily report sent.")
    except Exception as e:
        logger.error(f"Error sending daily report: {e}", exc_info=True)


async def send_weekly_report(client: EvolutionClient, analytics: AnalyticsService, report_number: str):
    loop = asyncio.get_running_loop()
    try:
        summary = await loop.run_in_executor(None, analytics.weekly_summary)
        await loop.run_in_executor(None, client.send_text, report_number, summary)
        logger.info("Weekly report sent.")
    except Exception as e:
        logger.error(f"Error sending weekly report: {e}", exc_info=True)


async def send_maintenance_notice(client: EvolutionClient, bot_config: Dict[str, Any]):
    loop = asyncio.get_running_loop()
    for group_id in bot_config['monitored_groups']:
        await loop.run_in_executor(None, client.send_text, group_id, bot_config['maintenance_message'])
    logger.info("Maintenance notice sent to all monitored groups.")


class SchedulerService:
    def __init__(self, client: EvolutionClient, lead_service: LeadService, analytics: AnalyticsService,
                 supervisor: ConnectionSupervisor, bot_config: Dict[str, Any],
                 report_number: Optional[str] = REPORT_PHONE_NUMBER):
        self.client = client
        self.lead_service = lead_service
        self.analytics = analytics
        self.supervisor = supervisor
        self.bot_config = bot_config
        self.report_number = report_number
        self.tz = timezone(timedelta(hours=TIMEZONE_OFFSET))
        self.scheduler = AsyncIOScheduler(timezone=self.tz)

    def _cron(self, expression: str) -> Optional[CronTrigger]:
        try:
            return CronTrigger.from_crontab(expression, timezone=self.tz)
        except ValueError as e:
            logger.error(f"Invalid cron expression '{expression}': {e}")
            return None

    def register_jobs(self):
        self.scheduler.add_job(
            monitor_resources, IntervalTrigger(minutes=5), args=[self.client, self.bot_config], id='resource_monitor'
        )
        self.scheduler.add_job(scheduled_backup, CronTrigger(hour=2, minute=0, timezone=self.tz), id='db_backup')
        self.scheduler.add_job(
            follow_up_leads, CronTrigger(minute=0, timezone=self.tz), args=[self.client, self.lead_service],
            id='lead_follow_up'
        )
        self.scheduler.add_job(self.supervisor.watchdog, IntervalTrigger(seconds=WATCHDOG_SECONDS), id='watchdog')

        if self.report_number:
            daily = self._cron(self.bot_config['report_time'])
            if daily:
                self.scheduler.add_job(
                    send_daily_report, daily,
                    args=[self.client, self.analytics, self.bot_config, self.report_number], id='daily_report'
                )
            weekly = self._cron(self.bot_config['weekly_report_time'])
            if weekly:
                self.scheduler.add_job(
                    send_weekly_report, weekly, args=[self.client, self.analytics, self.report_number],
                    id='weekly_report'
                )
        else:
            logger.warning("REPORT_PHONE_NUMBER is not set. Daily and weekly reports are disabled.")

        if self.bot_config.get('maintenance_time'):
            maintenance = self._cron(self.bot_config['maintenance_time'])
            if maintenance:
                self.scheduler.add_job(
                    send_maintenance_notice, maintenance, args=[self.client, self.bot_config], id='maintenance_notice'
                )

    def start(self):
        self.register_jobs()
        self.scheduler.start()
        logger.info(f"Scheduler started with jobs: {[job.id for job in self.scheduler.get_jobs()]}")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

# END OF FILE: botzin/app/services/scheduler_service.py
