"""
Bulk Discount Schedule - per-item quantity thresholds granting extra discount.

Used by the pricing engine to apply a bulk discount on top of the
tier-adjusted price. Only the single best qualifying threshold applies;
thresholds never stack.
"""
import threading
from typing import Iterable, Optional

from loguru import logger

from .errors import ConfigurationError, NotFoundError
from .models import BulkDiscountRule


def check_discount_percent(value, label: str = "discount_percent"):
    """Raise ConfigurationError unless value is a number within [0, 100]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{label} must be a number, got {value!r}")
    if not 0 <= value <= 100:
        raise ConfigurationError(f"{label} must be between 0 and 100, got {value}")


def best_qualifying_rule(
    rules: Iterable[BulkDiscountRule],
    quantity: int
) -> Optional[BulkDiscountRule]:
    """
    Pick the active rule with the largest min_quantity <= quantity.

    Returns None when nothing qualifies.
    """
    best = None
    for rule in rules:
        if not rule.active or rule.min_quantity > quantity:
            continue
        if best is None or rule.min_quantity > best.min_quantity:
            best = rule
    return best


def next_rule_above(
    rules: Iterable[BulkDiscountRule],
    quantity: int
) -> Optional[BulkDiscountRule]:
    """The active rule with the smallest min_quantity above quantity."""
    upcoming = [r for r in rules if r.active and r.min_quantity > quantity]
    if not upcoming:
        return None
    return min(upcoming, key=lambda r: r.min_quantity)


class BulkDiscountSchedule:
    """
    Holds bulk discount rules for every item.

    Rules are keyed by (item_id, min_quantity); a duplicate threshold for
    the same item is a configuration error.
    """

    def __init__(self, rules: Optional[Iterable[BulkDiscountRule]] = None):
        self._rules: dict[str, dict[int, BulkDiscountRule]] = {}
        self._lock = threading.RLock()

        for rule in rules or []:
            self.add_rule(rule)

    def add_rule(self, rule: BulkDiscountRule) -> BulkDiscountRule:
        """Add a threshold to an item's schedule."""
        if isinstance(rule.min_quantity, bool) or not isinstance(rule.min_quantity, int):
            raise ConfigurationError(f"min_quantity must be an integer, got {rule.min_quantity!r}")
        if rule.min_quantity < 1:
            raise ConfigurationError(f"min_quantity must be at least 1, got {rule.min_quantity}")
        check_discount_percent(rule.discount_percent)

        with self._lock:
            item_rules = self._rules.setdefault(rule.item_id, {})
            if rule.min_quantity in item_rules:
                raise ConfigurationError(
                    f"Item '{rule.item_id}' already has a bulk rule at {rule.min_quantity} units"
                )
            item_rules[rule.min_quantity] = rule

        logger.info(
            "Added bulk rule {}@{} → {}%",
            rule.item_id, rule.min_quantity, rule.discount_percent
        )
        return rule

    def remove_rule(self, item_id: str, min_quantity: int) -> BulkDiscountRule:
        """Remove one threshold from an item's schedule."""
        with self._lock:
            item_rules = self._rules.get(item_id, {})
            if min_quantity not in item_rules:
                raise NotFoundError("Bulk rule", f"{item_id}@{min_quantity}")
            removed = item_rules.pop(min_quantity)
            if not item_rules:
                del self._rules[item_id]

        logger.info("Removed bulk rule {}@{}", item_id, min_quantity)
        return removed

    def rules_for(self, item_id: str) -> list[BulkDiscountRule]:
        """An item's rules ordered by descending min_quantity."""
        with self._lock:
            rules = list(self._rules.get(item_id, {}).values())
        rules.sort(key=lambda r: r.min_quantity, reverse=True)
        return rules

    def best_rule(self, item_id: str, quantity: int) -> Optional[BulkDiscountRule]:
        return best_qualifying_rule(self.rules_for(item_id), quantity)

    def lookup(self, item_id: str, quantity: int) -> float:
        """Discount percent for buying quantity units of item_id (0 if none)."""
        rule = self.best_rule(item_id, quantity)
        return rule.discount_percent if rule else 0

    def next_threshold(self, item_id: str, quantity: int) -> Optional[BulkDiscountRule]:
        return next_rule_above(self.rules_for(item_id), quantity)

    def item_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._rules)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(r) for r in self._rules.values())
