# START OF FILE: botzin/app/services/product_service.py

import random
from datetime import datetime
from typing import Callable, List, Optional

from botzin.domain.models import Product
from botzin.domain.catalog import PRODUCTS
from botzin.shared.config import TIMEZONE_OFFSET
from botzin.shared.local_time import local_hour_minute, time_bucket


class ProductMatcher:
    def __init__(self, products: List[Product] = PRODUCTS, offset: int = TIMEZONE_OFFSET,
                 now: Callable[[], Optional[datetime]] = lambda: None, rng: random.Random = None):
        self.products = products
        self.offset = offset
        self.now = now
        self.rng = rng or random.Random()

    def get_time_preference(self) -> str:
        hour, _ = local_hour_minute(self.now(), self.offset)
        return time_bucket(hour)

    def matches_time_preference(self, preference: str) -> bool:
        return preference == 'anytime' or preference == self.get_time_preference()

    def find_relevant_product(self, text: str) -> Optional[Product]:
        """First product, in catalog order, with a keyword contained in the text."""
        text_lower = text.lower()
        for product in self.products:
            if any(keyword in text_lower for keyword in product.keywords):
                return product
        return None

    def get_time_relevant_product(self) -> Product:
        relevant = [p for p in self.products if self.matches_time_preference(p.time_preference)]
        return self.rng.choice(relevant or self.products)

# END OF FILE: botzin/app/services/product_service.py
