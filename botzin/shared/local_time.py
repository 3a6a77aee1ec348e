# START OF FILE: botzin/shared/local_time.py

from datetime import datetime, timezone
from typing import Optional, Tuple

from botzin.shared.config import TIMEZONE_OFFSET


def local_hour_minute(now: Optional[datetime] = None, offset: int = TIMEZONE_OFFSET) -> Tuple[int, int]:
    """Local wall-clock hour and minute from UTC plus a fixed hour offset (no DST)."""
    now = now or datetime.now(timezone.utc)
    return (now.hour + offset + 24) % 24, now.minute


def time_bucket(hour: int) -> str:
    if 5 <= hour < 12:
        return 'morning'
    if 12 <= hour < 18:
        return 'afternoon'
    if 18 <= hour < 22:
        return 'evening'
    return 'night'


def day_greeting(hour: int) -> str:
    if 5 <= hour < 12:
        return 'Bom dia'
    if 12 <= hour < 18:
        return 'Boa tarde'
    return 'Boa noite'

# END OF FILE: botzin/shared/local_time.py
