import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from wholesale_pricing.config.settings import Settings
from wholesale_pricing.engine import BulkDiscountSchedule, PricingEngine
from wholesale_pricing.engine.cart_validator import CartValidator, effective_moq
from wholesale_pricing.engine.models import BulkDiscountRule, Cart, CartLine, LineItem, Tier
from wholesale_pricing.engine.order_summary import OrderSummaryCalculator
from wholesale_pricing.engine.sources import InMemoryCatalogSource
from wholesale_pricing.services.tier_catalog import TierCatalog


STARTER = Tier(id="t1", name="Starter", slug="starter", discount_percent=20, default_moq=50)
GROWTH = Tier(
    id="t2", name="Growth", slug="growth", discount_percent=30, default_moq=200,
    min_order_value=500000, min_order_quantity=1000,
)


def make_engine(moq=None, rules=None, **settings):
    catalog = TierCatalog([STARTER, GROWTH], {"cust-s": "starter", "cust-g": "growth"})
    source = InMemoryCatalogSource(moq=moq or {}, schedule=BulkDiscountSchedule(rules or []))
    return PricingEngine(catalog.resolve_tier, source, Settings.load(**settings))


def test_effective_moq_precedence():
    assert effective_moq(10, STARTER) == 10
    assert effective_moq(None, STARTER) == 50
    assert effective_moq(10, None) == 1
    assert effective_moq(10, None, enforce_without_tier=True) == 10
    assert effective_moq(None, None, enforce_without_tier=True) == 1


def test_single_moq_error_per_line():
    engine = make_engine(moq={"SKU-A": 10}, suggest_bulk_upgrades=False)
    result = engine.validate(Cart("cust-s", [CartLine("SKU-A", 9, 1000)]))

    assert not result.is_valid
    assert len(result.errors) == 1
    error = result.errors[0]
    assert error.item_id == "SKU-A"
    assert error.moq == 10
    assert error.current_quantity == 9
    assert "10" in error.message


def test_moq_met_exactly():
    engine = make_engine(moq={"SKU-A": 10})
    assert engine.validate(Cart("cust-s", [CartLine("SKU-A", 10, 1000)])).is_valid


def test_tier_default_moq_applies_without_item_moq():
    engine = make_engine()
    result = engine.validate(Cart("cust-s", [CartLine("SKU-A", 49, 1000)]))

    assert [e.moq for e in result.errors] == [50]


def test_guest_not_moq_gated_by_default():
    cart = Cart(None, [CartLine("SKU-A", 1, 1000)])

    assert make_engine(moq={"SKU-A": 10}).validate(cart).is_valid
    strict = make_engine(moq={"SKU-A": 10}, enforce_moq_without_tier=True)
    assert not strict.validate(cart).is_valid


def test_validation_is_idempotent():
    engine = make_engine(
        moq={"SKU-A": 10},
        rules=[BulkDiscountRule("SKU-A", 100, 10)],
    )
    quote = engine.calculate(Cart("cust-s", [CartLine("SKU-A", 5, 1000), CartLine("SKU-B", 60, 200)]))

    again = engine.validator.validate(quote.lines, quote.tier, None, quote.summary)
    assert again.errors == quote.validation.errors
    assert engine.validate(Cart("cust-s", [CartLine("SKU-A", 5, 1000), CartLine("SKU-B", 60, 200)])) == quote.validation


def test_bulk_upgrade_hint():
    rules = [
        BulkDiscountRule("SKU-A", 50, 5),
        BulkDiscountRule("SKU-A", 100, 10),
        BulkDiscountRule("SKU-A", 200, 15),
    ]
    quote = make_engine(rules=rules).calculate(Cart(None, [CartLine("SKU-A", 120, 1000)]))

    assert quote.lines[0].bulk_discount_percent == 10
    assert quote.validation.is_valid
    hint = quote.validation.warnings[0]
    assert hint.suggested_quantity == 200
    assert hint.message == "Add 80 more to unlock 15% bulk discount"


def test_bulk_upgrade_hint_can_be_disabled():
    rules = [BulkDiscountRule("SKU-A", 100, 10)]
    quote = make_engine(rules=rules, suggest_bulk_upgrades=False).calculate(
        Cart(None, [CartLine("SKU-A", 20, 1000)])
    )
    assert quote.validation.warnings == ()


@pytest.mark.parametrize("mode, errors, warnings", [
    ("off", 0, 0),
    ("warn", 0, 2),
    ("error", 2, 0),
])
def test_cart_threshold_modes(mode, errors, warnings):
    engine = make_engine(
        moq={"SKU-A": 1}, enforce_cart_thresholds=mode, suggest_bulk_upgrades=False
    )
    result = engine.validate(Cart("cust-g", [CartLine("SKU-A", 300, 1000)]))

    assert len(result.errors) == errors
    assert len(result.warnings) == warnings
    assert all(issue.item_id is None for issue in result.errors + result.warnings)


def test_cart_thresholds_satisfied():
    engine = make_engine(moq={"SKU-A": 1}, enforce_cart_thresholds="error")
    result = engine.validate(Cart("cust-g", [CartLine("SKU-A", 1000, 1000)]))

    # 1000 units at 700 = 700000 >= 500000
    assert result.is_valid


def test_invalid_threshold_mode_rejected():
    with pytest.raises(ValueError):
        Settings.load(enforce_cart_thresholds="sometimes")


def test_validator_on_lines_directly():
    line = LineItem("SKU-A", 3, 1000, 800, 800, moq=5)
    result = CartValidator().validate([line], STARTER)

    assert result.errors[0].current_quantity == 3
    assert result.errors[0].moq == 5


# Order summary

def test_summary_breakdown():
    engine = make_engine(rules=[BulkDiscountRule("SKU-A", 100, 10)])
    summary = engine.summarize(Cart("cust-s", [
        CartLine("SKU-A", 150, 1000),
        CartLine("SKU-B", 50, 2000),
    ]))

    # SKU-A: 150 × 720, SKU-B: 50 × 1600
    assert summary.subtotal == 108000 + 80000
    assert summary.total == summary.subtotal
    assert summary.tier_discount_total == 150 * 200 + 50 * 400
    assert summary.bulk_discount_total == 150 * 80
    assert summary.total_savings == 150 * 280 + 50 * 400
    assert summary.total_item_count == 200


def test_summary_of_empty_cart():
    summary = OrderSummaryCalculator().summarize([])
    assert summary.total == summary.subtotal == 0
    assert summary.total_item_count == 0
