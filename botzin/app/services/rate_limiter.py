# START OF FILE: botzin/app/services/rate_limiter.py

import time
from typing import Any, Callable, Dict, Optional

from botzin.domain.models import RateCounter


class RateLimiter:
    """
    Fixed-window call counter. Refuses calls once `limit` is reached inside
    the window; nothing is queued. Callers record a call only after it succeeded.

    With `bot_config` and `setting`, the limit is read from the live config on
    every check, so `!config` changes apply to the current window.
    """

    def __init__(self, limit: int, window_seconds: float = 60, clock: Callable[[], float] = time.time,
                 bot_config: Optional[Dict[str, Any]] = None, setting: Optional[str] = None):
        self._limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self.bot_config = bot_config
        self.setting = setting
        self.counter = RateCounter(count=0, last_reset=clock())

    @classmethod
    def from_config(cls, bot_config: Dict[str, Any], setting: str, window_seconds: float = 60,
                    clock: Callable[[], float] = time.time) -> 'RateLimiter':
        return cls(bot_config[setting], window_seconds, clock, bot_config=bot_config, setting=setting)

    @property
    def limit(self) -> int:
        if self.bot_config is not None and self.setting:
            return self.bot_config.get(self.setting, self._limit)
        return self._limit

    @limit.setter
    def limit(self, value: int):
        self._limit = value

    def _maybe_reset(self):
        now = self.clock()
        if now - self.counter.last_reset > self.window_seconds:
            self.counter.count = 0
            self.counter.last_reset = now

    def can_call(self) -> bool:
        self._maybe_reset()
        return self.counter.count < self.limit

    def record_call(self):
        self._maybe_reset()
        self.counter.count += 1

    @property
    def count(self) -> int:
        return self.counter.count

# END OF FILE: botzin/app/services/rate_limiter.py
