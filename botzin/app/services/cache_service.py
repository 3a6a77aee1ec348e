# START OF FILE: botzin/app/services/cache_service.py

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.shared.logger import logger


class ResponseCache:
    """
    Prompt -> reply cache persisted in SQLite. Stale entries read as absent and are left in place.
    With `bot_config`, the TTL follows its live `cache_ttl`.
    """

    def __init__(self, repo: SQLiteRepo, ttl_seconds: float, clock: Callable[[], float] = time.time,
                 bot_config: Optional[Dict[str, Any]] = None):
        self.repo = repo
        self._ttl_seconds = ttl_seconds
        self.clock = clock
        self.bot_config = bot_config

    @property
    def ttl_seconds(self) -> float:
        if self.bot_config is not None:
            return self.bot_config.get('cache_ttl', self._ttl_seconds)
        return self._ttl_seconds

    def get(self, prompt: str) -> Optional[str]:
        entry = self.repo.get_cache_entry(prompt)
        if not entry:
            return None
        response, date = entry
        try:
            stored_at = datetime.fromisoformat(date).timestamp()
        except (TypeError, ValueError):
            logger.warning(f"Cache entry for '{prompt}' has an invalid date: {date}")
            return None
        if self.clock() - stored_at < self.ttl_seconds:
            return response
        return None

    def put(self, prompt: str, response: str):
        date = datetime.fromtimestamp(self.clock(), timezone.utc).isoformat()
        self.repo.upsert_cache(prompt, response, date)

# END OF FILE: botzin/app/services/cache_service.py
