import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from wholesale_pricing.engine.bulk_schedule import BulkDiscountSchedule, best_qualifying_rule
from wholesale_pricing.engine.errors import ConfigurationError, NotFoundError
from wholesale_pricing.engine.models import BulkDiscountRule


@pytest.fixture(scope="function")
def schedule():
    return BulkDiscountSchedule([
        BulkDiscountRule("SKU-TEE", 50, 5),
        BulkDiscountRule("SKU-TEE", 100, 10),
        BulkDiscountRule("SKU-TEE", 200, 15),
    ])


@pytest.mark.parametrize("quantity, expected", [
    (1, 0),
    (49, 0),
    (50, 5),
    (120, 10),
    (200, 15),
    (10_000, 15),
])
def test_best_threshold_applies(schedule, quantity, expected):
    assert schedule.lookup("SKU-TEE", quantity) == expected


def test_thresholds_do_not_stack(schedule):
    rule = schedule.best_rule("SKU-TEE", 250)
    assert rule.min_quantity == 200
    assert rule.discount_percent == 15


def test_unknown_item_has_no_discount(schedule):
    assert schedule.lookup("SKU-OTHER", 500) == 0
    assert schedule.rules_for("SKU-OTHER") == []


def test_rules_listed_descending(schedule):
    assert [r.min_quantity for r in schedule.rules_for("SKU-TEE")] == [200, 100, 50]


def test_duplicate_threshold_rejected(schedule):
    with pytest.raises(ConfigurationError):
        schedule.add_rule(BulkDiscountRule("SKU-TEE", 100, 12))
    assert schedule.lookup("SKU-TEE", 100) == 10, "Existing rule must be untouched"


@pytest.mark.parametrize("rule", [
    BulkDiscountRule("SKU-X", 10, 101),
    BulkDiscountRule("SKU-X", 10, -1),
    BulkDiscountRule("SKU-X", 0, 5),
    BulkDiscountRule("SKU-X", 10, "5"),
])
def test_invalid_rules_rejected(rule):
    schedule = BulkDiscountSchedule()
    with pytest.raises(ConfigurationError):
        schedule.add_rule(rule)
    assert len(schedule) == 0


def test_remove_rule(schedule):
    schedule.remove_rule("SKU-TEE", 200)
    assert schedule.lookup("SKU-TEE", 500) == 10

    with pytest.raises(NotFoundError):
        schedule.remove_rule("SKU-TEE", 200)


def test_inactive_rules_ignored():
    rules = [
        BulkDiscountRule("SKU-A", 10, 5),
        BulkDiscountRule("SKU-A", 20, 25, active=False),
    ]
    assert best_qualifying_rule(rules, 30).min_quantity == 10

    schedule = BulkDiscountSchedule(rules)
    assert schedule.lookup("SKU-A", 30) == 5
    assert schedule.next_threshold("SKU-A", 15) is None


def test_next_threshold(schedule):
    upcoming = schedule.next_threshold("SKU-TEE", 120)
    assert upcoming.min_quantity == 200
    assert schedule.next_threshold("SKU-TEE", 200) is None
