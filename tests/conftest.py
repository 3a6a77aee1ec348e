import random
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.app.services.cache_service import ResponseCache
from botzin.app.services.completion_service import CompletionChain
from botzin.app.services.funnel_service import FunnelService
from botzin.app.services.lead_service import LeadService
from botzin.app.services.product_service import ProductMatcher
from botzin.app.services.ai_service import AIService
from botzin.app.services.tone_service import SentimentAnalyzer
from botzin.shared.state_store import InMemoryStateStore

# UTC instants whose local time (offset -3) falls in each bucket.
NIGHT_UTC = datetime(2025, 3, 10, 4, 30, tzinfo=timezone.utc)       # 01:30 local
MORNING_UTC = datetime(2025, 3, 10, 12, 5, tzinfo=timezone.utc)     # 09:05 local
AFTERNOON_UTC = datetime(2025, 3, 10, 17, 0, tzinfo=timezone.utc)   # 14:00 local


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo(tmp_path):
    repo = SQLiteRepo(str(tmp_path / "test.db"))
    repo.init_schema()
    return repo


@pytest.fixture
def cache(repo, clock):
    return ResponseCache(repo, ttl_seconds=24 * 60 * 60, clock=clock)


@pytest.fixture
def contexts():
    return InMemoryStateStore()


@pytest.fixture
def night_matcher():
    return ProductMatcher(offset=-3, now=lambda: NIGHT_UTC, rng=random.Random(0))


@pytest.fixture
def chain():
    """A chain with no providers configured: always returns None."""
    return CompletionChain(providers=[], limiters={})


@pytest.fixture
def make_ai_service(repo, cache, contexts):
    def _make(chain=None, matcher=None, response_times=None, command_limiters=None, now=NIGHT_UTC, rng=None):
        matcher = matcher or ProductMatcher(offset=-3, now=lambda: now, rng=random.Random(0))
        lead_service = LeadService(repo, matcher, contexts)
        funnel = FunnelService(matcher, lead_service)
        return AIService(
            repo, cache, chain or CompletionChain([], {}), funnel, matcher, SentimentAnalyzer(cache),
            response_times or InMemoryStateStore(), command_limiters or InMemoryStateStore(),
            offset=-3, now=lambda: now, rng=rng or random.Random(0)
        )
    return _make


@pytest.fixture
def gateway():
    client = Mock()
    client.send_text.return_value = True
    client.send_media.return_value = True
    client.group_participants.return_value = []
    return client
