"""Order Summary - aggregates priced lines into checkout totals."""
from typing import Iterable

from .models import LineItem, OrderSummary
from .money import percent_of


class OrderSummaryCalculator:
    """
    Sums priced lines.

    Discounts are already folded into each line's final_price, so
    total == subtotal; the tier and bulk totals are a breakdown, not a
    further deduction.
    """

    def summarize(self, lines: Iterable[LineItem]) -> OrderSummary:
        subtotal = 0
        tier_discount_total = 0
        bulk_discount_total = 0
        total_savings = 0
        total_item_count = 0

        for line in lines:
            qty = line.quantity
            subtotal += line.final_price * qty
            tier_discount_total += percent_of(line.retail_unit_price, line.tier_discount_percent) * qty
            bulk_discount_total += percent_of(line.base_price, line.bulk_discount_percent) * qty
            total_savings += (line.retail_unit_price - line.final_price) * qty
            total_item_count += qty

        return OrderSummary(
            subtotal=subtotal,
            tier_discount_total=tier_discount_total,
            bulk_discount_total=bulk_discount_total,
            total=subtotal,
            total_savings=total_savings,
            total_item_count=total_item_count,
        )
