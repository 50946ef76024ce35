"""
Pricing Engine - wholesale line pricing and cart quoting with traceability.

Resolution pipeline for a cart:
- Resolve the customer's tier (absent tier = retail pricing, no MOQ gating)
- Fetch each item's MOQ and bulk rules concurrently, falling back per item
- Price each line: retail → tier-adjusted base → bulk-adjusted final
- Summarize totals and validate MOQ / cart thresholds
"""
from typing import Callable, Optional

from loguru import logger

from ..config.settings import get_settings, Settings
from .bulk_schedule import best_qualifying_rule
from .cart_validator import CartValidator, effective_moq
from .models import (
    Cart,
    CartLine,
    CartValidationResult,
    ItemTerms,
    LineItem,
    LinePrice,
    OrderSummary,
    Quote,
    Tier,
)
from .money import apply_discount, format_cents
from .order_summary import OrderSummaryCalculator
from .sources import CatalogSource, InMemoryCatalogSource, ItemResolver, TRANSIENT_ERRORS


TierResolver = Callable[[Optional[str]], Optional[Tier]]
BulkLookup = Callable[[str, int], float]


def no_tier(customer_id: Optional[str]) -> Optional[Tier]:
    return None


def compute_line_price(
    retail_unit_price: int,
    tier: Optional[Tier],
    bulk_lookup: BulkLookup,
    quantity: int,
    item_id: str = ""
) -> LinePrice:
    """
    Price one unit of item_id when buying quantity units.

    Steps run in fixed order, each rounding half-up to a whole minor unit:
    tier discount on retail gives base_price, bulk discount on base_price
    gives final_price.
    """
    if retail_unit_price < 0:
        raise ValueError(f"retail_unit_price must be non-negative, got {retail_unit_price}")
    if quantity < 1:
        raise ValueError(f"quantity must be at least 1, got {quantity}")

    tier_discount_percent = tier.discount_percent if tier else 0
    base_price = apply_discount(retail_unit_price, tier_discount_percent)

    bulk_discount_percent = bulk_lookup(item_id, quantity) or 0
    if not 0 <= bulk_discount_percent <= 100:
        raise ValueError(f"bulk discount for {item_id} out of range: {bulk_discount_percent}")
    final_price = apply_discount(base_price, bulk_discount_percent)

    return LinePrice(
        base_price=base_price,
        tier_discount_percent=tier_discount_percent,
        bulk_discount_percent=bulk_discount_percent,
        final_price=final_price,
        savings=retail_unit_price - final_price,
    )


class PricingEngine:
    """
    Core engine that prices and validates wholesale carts.

    The engine keeps no cart state of its own: every call works on the
    cart snapshot it is given.
    """

    compute_line_price = staticmethod(compute_line_price)

    def __init__(
        self,
        tier_resolver: Optional[TierResolver] = None,
        source: Optional[CatalogSource] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.tier_resolver = tier_resolver or no_tier
        self.source = source or InMemoryCatalogSource()
        self.item_resolver = ItemResolver(self.source, max_workers=self.settings.max_workers)
        self.validator = CartValidator.from_settings(self.settings)
        self.summarizer = OrderSummaryCalculator()

    def resolve_tier(self, customer_id: Optional[str], quote: Optional[Quote] = None) -> Optional[Tier]:
        """
        Resolve the customer's tier, recording trace steps on quote if given.

        A transient lookup failure is treated as "no tier".
        """
        def trace(step, description, value=None):
            if quote is not None:
                quote.add_trace(step, description, value)

        if not customer_id:
            trace("Tier Lookup", "Guest cart, retail pricing")
            return None

        trace("Tier Lookup", f"Resolving tier for customer {customer_id}")
        try:
            tier = self.tier_resolver(customer_id)
        except TRANSIENT_ERRORS as e:
            logger.warning("Tier lookup failed for customer {}: {}", customer_id, e)
            trace("Fallback", "Tier lookup failed, using retail pricing")
            if quote is not None:
                quote.add_warning("Wholesale tier unavailable; retail prices shown")
            return None

        if tier is None:
            trace("Fallback", "No wholesale tier assigned, using retail pricing")
        else:
            trace("Tier Match", f"{tier.name} ({tier.discount_percent:g}% off, MOQ {tier.default_moq})", tier.slug)
        return tier

    def price_line(self, line: CartLine, tier: Optional[Tier], terms: Optional[ItemTerms]) -> LineItem:
        """Price a single cart line against resolved tier and item terms."""
        item = LineItem(
            item_id=line.item_id,
            quantity=line.quantity,
            retail_unit_price=line.retail_unit_price,
            base_price=line.retail_unit_price,
            final_price=line.retail_unit_price,
        )
        item.add_trace("Retail", "Catalog retail price", format_cents(line.retail_unit_price))

        if terms is None or not terms.ok:
            reason = terms.failure if terms is not None else "no item data"
            item.source = "Fallback"
            item.moq = 1
            item.add_trace("Fallback", f"Wholesale data unavailable ({reason}), using retail price and MOQ 1")
            if tier is not None:
                item.add_warning(f"Wholesale pricing unavailable for item {line.item_id}")
            return item

        rules = terms.bulk_rules

        def bulk_lookup(item_id: str, quantity: int) -> float:
            rule = best_qualifying_rule(rules, quantity)
            return rule.discount_percent if rule else 0

        price = compute_line_price(line.retail_unit_price, tier, bulk_lookup, line.quantity, line.item_id)

        item.tier_slug = tier.slug if tier else None
        item.tier_discount_percent = price.tier_discount_percent
        item.bulk_discount_percent = price.bulk_discount_percent
        item.base_price = price.base_price
        item.final_price = price.final_price
        item.applied_bulk_rule = best_qualifying_rule(rules, line.quantity)
        item.moq = effective_moq(terms.moq, tier, self.settings.enforce_moq_without_tier)
        item.source = "Wholesale" if price.final_price < line.retail_unit_price else "Retail"

        if tier is not None:
            item.add_trace(
                "Tier Discount",
                f"{tier.name} {price.tier_discount_percent:g}% off retail",
                format_cents(price.base_price)
            )
        if item.applied_bulk_rule is not None:
            item.add_trace(
                "Bulk Discount",
                f"{price.bulk_discount_percent:g}% for {item.applied_bulk_rule.min_quantity}+ units",
                format_cents(price.final_price)
            )
        item.add_trace("MOQ", "Effective minimum order quantity", str(item.moq))
        item.add_trace(
            "Extension",
            f"Quantity {line.quantity} × {format_cents(item.final_price)}",
            format_cents(item.extended_price)
        )
        return item

    def calculate(self, cart: Cart) -> Quote:
        """
        Price, summarize and validate a cart snapshot.

        Args:
            cart: Cart with customer id and lines

        Returns:
            Quote with lines, summary, validation, trace and warnings
        """
        quote = Quote(customer_id=cart.customer_id, tier=None, lines=[])
        tier = self.resolve_tier(cart.customer_id, quote)
        quote.tier = tier

        terms = self.item_resolver.resolve_all(cart.item_ids())
        failed = [item_id for item_id, t in terms.items() if not t.ok]
        if failed:
            quote.add_trace("Item Data", "Fell back to defaults for", ", ".join(failed))

        for line in cart.lines:
            item = self.price_line(line, tier, terms.get(line.item_id))
            quote.lines.append(item)

            # Bubble up line warnings
            for warning in item.warnings:
                quote.add_warning(warning)

        quote.summary = self.summarizer.summarize(quote.lines)
        quote.add_trace(
            "Summary",
            f"{quote.summary.total_item_count} units across {len(quote.lines)} lines",
            format_cents(quote.summary.total)
        )

        quote.validation = self.validator.validate(quote.lines, tier, terms, quote.summary)
        if quote.validation.is_valid:
            quote.add_trace("Validation", "Cart is admissible")
        else:
            quote.add_trace("Validation", "Cart has errors", str(len(quote.validation.errors)))

        return quote

    def price_cart(self, cart: Cart) -> list[LineItem]:
        return self.calculate(cart).lines

    def validate(self, cart: Cart) -> CartValidationResult:
        return self.calculate(cart).validation

    def summarize(self, cart: Cart) -> OrderSummary:
        return self.calculate(cart).summary
