# START OF FILE: botzin/app/services/analytics_service.py

import time
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.shared.logger import logger

DAILY_SUMMARY_CHARS = 1000
WEEKLY_GROUP_CHARS = 500


class AnalyticsService:
    def __init__(self, repo: SQLiteRepo, started_at: Optional[float] = None,
                 clock: Callable[[], float] = time.time):
        self.repo = repo
        self.clock = clock
        self.started_at = started_at if started_at is not None else clock()
        logger.info("AnalyticsService initialized.")

    def uptime_minutes(self) -> int:
        return int((self.clock() - self.started_at) // 60)

    def _today(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), timezone.utc)

    def daily_summary(self, group_id: str) -> str:
        date = self._today().date().isoformat()
        messages = self.repo.get_group_messages(group_id, date)
        if messages is None:
            return 'Deu erro ao gerar o resumo, desculpa!'
        if not messages:
            return 'Nenhuma mensagem hoje ainda.'
        return f"Resumo do dia {date}:\n{chr(10).join(messages)[:DAILY_SUMMARY_CHARS]}..."

    def weekly_summary(self) -> str:
        since = (self._today() - timedelta(days=7)).date().isoformat()
        rows = self.repo.get_messages_since(since)
        if rows is None:
            return 'Erro ao gerar o resumo semanal, desculpa!'
        if not rows:
            return 'Nenhuma mensagem na última semana.'

        by_group = defaultdict(list)
        for group_id, date, body in rows:
            by_group[group_id].append(f"{date}: {body}")

        parts = ['Resumo Semanal:']
        for group_id, lines in by_group.items():
            parts.append(f"\nGrupo {group_id}:\n{chr(10).join(lines)[:WEEKLY_GROUP_CHARS]}...")
        return "\n".join(parts)

    def stats(self) -> str:
        top_users = self.repo.get_top_users(5)
        total = self.repo.count_usage()
        if top_users is None or total is None:
            return 'Erro ao gerar estatísticas, desculpa!'
        user_lines = "\n".join(f"{user_id}: {count} comandos" for user_id, count in top_users)
        return (
            f"Estatísticas do Bot:\nUptime: {self.uptime_minutes()} minutos\n"
            f"Total de comandos: {total}\nTop 5 usuários:\n{user_lines}"
        )

# END OF FILE: botzin/app/services/analytics_service.py
