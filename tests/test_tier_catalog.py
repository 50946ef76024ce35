import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from wholesale_pricing.engine.errors import ConfigurationError, NotFoundError
from wholesale_pricing.engine.models import OrderHistory, PaymentTerms, Tier
from wholesale_pricing.services.tier_catalog import TierCatalog


@pytest.fixture(scope="function")
def catalog():
    """Catalog mirroring the standard three-tier program."""
    return TierCatalog(
        [
            Tier(id="t1", name="Starter", slug="starter", discount_percent=20,
                 default_moq=50, priority=1),
            Tier(id="t2", name="Growth", slug="growth", discount_percent=30,
                 default_moq=200, min_order_value=500000, min_order_quantity=1000,
                 payment_terms=PaymentTerms.NET_45, priority=2),
            Tier(id="t3", name="Enterprise", slug="enterprise", discount_percent=40,
                 default_moq=500, min_order_value=2500000, min_order_quantity=5000,
                 payment_terms="net_60", priority=3),
        ],
        {"cust-a": "starter", "cust-b": "starter", "cust-c": "growth"},
    )


def test_payment_terms_normalized(catalog):
    tier = catalog.get_tier("t3")
    assert tier.payment_terms is PaymentTerms.NET_60
    assert tier.payment_terms.net_days == 60


def test_resolve_tier(catalog):
    assert catalog.resolve_tier("cust-c").slug == "growth"
    assert catalog.resolve_tier("nobody") is None
    assert catalog.resolve_tier(None) is None


def test_inactive_tier_resolves_to_none(catalog):
    catalog.update_tier("t1", {"active": False})
    assert catalog.resolve_tier("cust-a") is None
    assert [t.slug for t in catalog.list_tiers(active_only=True)] == ["growth", "enterprise"]


def test_list_ordered_by_priority_then_name(catalog):
    catalog.create_tier({"name": "Affiliate", "slug": "affiliate", "discount_percent": 10, "priority": 1})
    catalog.create_tier({"name": "Pilot", "slug": "pilot", "discount_percent": 5, "priority": 0})

    assert [t.slug for t in catalog.list_tiers()] == [
        "pilot", "affiliate", "starter", "growth", "enterprise"
    ]


def test_create_generates_id(catalog):
    tier = catalog.create_tier({"name": "VIP", "slug": "vip", "discount_percent": 45})
    assert tier.id
    assert catalog.get_tier(tier.id).slug == "vip"
    assert tier.default_moq == 1


@pytest.mark.parametrize("definition", [
    {"name": "Bad", "slug": "bad", "discount_percent": 150},
    {"name": "Bad", "slug": "bad", "discount_percent": -5},
    {"name": "Bad", "slug": "Bad Slug", "discount_percent": 5},
    {"name": "", "slug": "bad", "discount_percent": 5},
    {"name": "Bad", "slug": "bad", "discount_percent": 5, "default_moq": 0},
    {"name": "Bad", "slug": "bad", "discount_percent": 5, "min_order_value": -1},
    {"name": "Bad", "slug": "bad", "discount_percent": 5, "payment_terms": "net_90"},
    {"name": "Bad", "slug": "bad", "discount_percent": 5, "tier_color": "red"},
    {"name": "Dup", "slug": "starter", "discount_percent": 5},
])
def test_create_rejects_invalid(catalog, definition):
    with pytest.raises(ConfigurationError):
        catalog.create_tier(definition)
    assert len(catalog.list_tiers()) == 3


def test_update_tier(catalog):
    updated = catalog.update_tier("t1", {"discount_percent": 25, "default_moq": 40})
    assert updated.discount_percent == 25
    assert catalog.resolve_tier("cust-a").default_moq == 40


def test_slug_is_immutable(catalog):
    with pytest.raises(ConfigurationError):
        catalog.update_tier("t1", {"slug": "beginner"})
    assert catalog.get_tier("t1").slug == "starter"

    # Re-sending the same slug is not a change
    catalog.update_tier("t1", {"slug": "starter", "name": "Starter Plus"})
    assert catalog.get_tier("t1").name == "Starter Plus"


def test_update_rejects_invalid_values(catalog):
    with pytest.raises(ConfigurationError):
        catalog.update_tier("t1", {"discount_percent": 150})
    assert catalog.get_tier("t1").discount_percent == 20

    with pytest.raises(NotFoundError):
        catalog.update_tier("missing", {"name": "x"})


@pytest.mark.parametrize("changes", [
    {"active": None},
    {"active": "false"},
    {"color": None},
    {"name": 5},
    {"name": None},
    {"description": 12},
])
def test_update_rejects_wrong_field_types(catalog, changes):
    with pytest.raises(ConfigurationError):
        catalog.update_tier("t1", changes)

    tier = catalog.get_tier("t1")
    assert tier.active is True
    assert tier.name == "Starter"
    assert tier.color == "#3B82F6"
    assert catalog.resolve_tier("cust-a").slug == "starter"


def test_description_can_be_cleared(catalog):
    catalog.update_tier("t1", {"description": "Entry level"})
    assert catalog.update_tier("t1", {"description": None}).description is None


def test_delete_blocked_while_assigned(catalog):
    with pytest.raises(ConfigurationError):
        catalog.delete_tier("t1")
    assert catalog.resolve_tier("cust-a").slug == "starter"


def test_delete_with_reassignment(catalog):
    catalog.delete_tier("t1", reassign_to="growth")

    assert catalog.get_tier_by_slug("starter") is None
    assert catalog.resolve_tier("cust-a").slug == "growth"
    assert catalog.tier_statistics("growth")["customer_count"] == 3

    with pytest.raises(NotFoundError):
        catalog.get_tier("t1")


def test_delete_rejects_bad_reassignment(catalog):
    with pytest.raises(ConfigurationError):
        catalog.delete_tier("t1", reassign_to="nope")
    with pytest.raises(ConfigurationError):
        catalog.delete_tier("t1", reassign_to="starter")


def test_delete_unassigned_tier(catalog):
    catalog.delete_tier("t3")
    assert [t.slug for t in catalog.list_tiers()] == ["starter", "growth"]


def test_recreated_slug_starts_without_orders(catalog):
    catalog.record_order("enterprise")
    catalog.record_order("enterprise")
    catalog.delete_tier("t3")

    catalog.create_tier({"name": "Enterprise", "slug": "enterprise", "discount_percent": 35})
    assert catalog.tier_statistics("enterprise") == {"customer_count": 0, "order_count": 0}


def test_reassignment_moves_order_counts(catalog):
    catalog.record_order("starter")
    catalog.record_order("growth")
    catalog.delete_tier("t1", reassign_to="growth")

    assert catalog.tier_statistics("growth") == {"customer_count": 3, "order_count": 2}


def test_assign_unknown_tier(catalog):
    with pytest.raises(NotFoundError):
        catalog.assign_tier("cust-z", "platinum")


def test_statistics(catalog):
    catalog.record_order("starter")
    catalog.record_order("starter")
    catalog.record_order(None)

    assert catalog.tier_statistics("starter") == {"customer_count": 2, "order_count": 2}
    assert catalog.tier_statistics("enterprise") == {"customer_count": 0, "order_count": 0}

    stats = {s["slug"]: s for s in catalog.all_tier_statistics()}
    assert stats["growth"]["customer_count"] == 1


def test_eligibility(catalog):
    history = OrderHistory(total_value=600000, total_quantity=1200, order_count=4)
    eligible = {e["slug"]: e["qualified"] for e in catalog.tier_eligibility(history)}

    assert eligible == {"starter": True, "growth": True, "enterprise": False}


def test_auto_assign_picks_highest_discount(catalog):
    history = OrderHistory(total_value=600000, total_quantity=1200, order_count=4)
    slug, reason = catalog.auto_assign_tier("cust-new", history)

    assert slug == "growth"
    assert "4 orders" in reason
    assert catalog.resolve_tier("cust-new").slug == "growth"


def test_auto_assign_keeps_current_when_nothing_qualifies(catalog):
    catalog.update_tier("t1", {"min_order_value": 1000})
    slug, reason = catalog.auto_assign_tier("cust-a", OrderHistory(total_value=10))

    assert slug == "starter"
    assert reason == "Does not qualify for any tier"
