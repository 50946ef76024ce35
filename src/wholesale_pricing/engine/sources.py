"""
Catalog Sources - per-item MOQ and bulk-rule lookups with safe fallback.

Each item is fetched independently on a thread pool. A transient failure
for one item yields an ItemTerms carrying the failure and the safe defaults
(no MOQ, no bulk rules) so the rest of the cart still prices.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Mapping, Optional, Protocol

from loguru import logger

from .bulk_schedule import BulkDiscountSchedule
from .errors import TransientIOError
from .models import BulkDiscountRule, ItemTerms


# Failures that get recovered per item; anything else propagates
TRANSIENT_ERRORS = (TransientIOError, ConnectionError, TimeoutError)


class CatalogSource(Protocol):
    """Where per-item wholesale data comes from."""

    def get_moq(self, item_id: str) -> Optional[int]:
        ...

    def get_bulk_discounts(self, item_id: str) -> list[BulkDiscountRule]:
        ...


class InMemoryCatalogSource:
    """CatalogSource backed by a MOQ map and a BulkDiscountSchedule."""

    def __init__(
        self,
        moq: Optional[Mapping[str, int]] = None,
        schedule: Optional[BulkDiscountSchedule] = None
    ):
        self.moq = dict(moq or {})
        self.schedule = schedule or BulkDiscountSchedule()

    def get_moq(self, item_id: str) -> Optional[int]:
        return self.moq.get(item_id)

    def get_bulk_discounts(self, item_id: str) -> list[BulkDiscountRule]:
        return [r for r in self.schedule.rules_for(item_id) if r.active]


class ItemResolver:
    """Fetches ItemTerms for many items concurrently."""

    def __init__(self, source: CatalogSource, max_workers: int = 8):
        self.source = source
        self.max_workers = max_workers

    def resolve(self, item_id: str) -> ItemTerms:
        """Fetch one item's MOQ and bulk rules, falling back on transient failure."""
        try:
            moq = self.source.get_moq(item_id)
            rules = tuple(self.source.get_bulk_discounts(item_id) or ())
        except TRANSIENT_ERRORS as e:
            logger.warning("Wholesale data unavailable for {}, using defaults: {}", item_id, e)
            return ItemTerms(item_id=item_id, failure=str(e) or type(e).__name__)

        if moq is not None and moq < 1:
            logger.warning("Ignoring invalid MOQ {} for {}", moq, item_id)
            moq = None

        return ItemTerms(item_id=item_id, moq=moq, bulk_rules=rules)

    def resolve_all(self, item_ids: Iterable[str]) -> dict[str, ItemTerms]:
        """Resolve every distinct item id; result preserves first-seen order."""
        unique_ids = list(dict.fromkeys(item_ids))
        if not unique_ids:
            return {}

        workers = min(self.max_workers, len(unique_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="item-resolver") as pool:
            results = list(pool.map(self.resolve, unique_ids))

        return {terms.item_id: terms for terms in results}
