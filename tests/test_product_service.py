import random

import pytest

from botzin.app.services.product_service import ProductMatcher
from botzin.shared.local_time import local_hour_minute, time_bucket

from conftest import AFTERNOON_UTC, MORNING_UTC, NIGHT_UTC


class TestTimeBuckets:
    @pytest.mark.parametrize("hour,bucket", [
        (5, 'morning'), (11, 'morning'), (12, 'afternoon'), (17, 'afternoon'),
        (18, 'evening'), (21, 'evening'), (22, 'night'), (0, 'night'), (4, 'night'),
    ])
    def test_bucket_boundaries(self, hour, bucket):
        assert time_bucket(hour) == bucket

    def test_offset_wraps_around_midnight(self):
        assert local_hour_minute(NIGHT_UTC, -3) == (1, 30)

    def test_time_preference_from_clock(self):
        assert ProductMatcher(offset=-3, now=lambda: MORNING_UTC).get_time_preference() == 'morning'
        assert ProductMatcher(offset=-3, now=lambda: AFTERNOON_UTC).get_time_preference() == 'afternoon'


class TestFindRelevantProduct:
    def test_keyword_match(self, night_matcher):
        assert night_matcher.find_relevant_product("Estou com insônia").name == "Sono Profundo, Vida Renovada"

    def test_first_match_in_catalog_order(self, night_matcher):
        # "saúde mental" is a keyword of the first two products
        assert night_matcher.find_relevant_product("cuidar da saúde mental").name == "Cérebro em Alta Performance"

    def test_case_insensitive(self, night_matcher):
        assert night_matcher.find_relevant_product("ESTRESSE demais").name == "Corpo e Mente"

    def test_no_match(self, night_matcher):
        assert night_matcher.find_relevant_product("quero um carro") is None


class TestTimeRelevantProduct:
    def test_night_picks_night_product(self, night_matcher):
        assert night_matcher.get_time_relevant_product().name == "Sono Profundo, Vida Renovada"

    def test_evening_falls_back_to_whole_catalog(self):
        from datetime import datetime, timezone
        evening = datetime(2025, 3, 10, 22, 0, tzinfo=timezone.utc)  # 19:00 local
        matcher = ProductMatcher(offset=-3, now=lambda: evening, rng=random.Random(1))
        assert matcher.get_time_preference() == 'evening'
        assert matcher.get_time_relevant_product() in matcher.products

    def test_matches_anytime(self, night_matcher):
        assert night_matcher.matches_time_preference('anytime') is True
        assert night_matcher.matches_time_preference('morning') is False
