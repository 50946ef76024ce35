"""
Cart Validator - MOQ and cart-level admissibility checks.

Validation is a pure function of the priced lines, the resolved tier and
(optionally) the summary: calling it twice on the same inputs yields an
identical result.
"""
from typing import Mapping, Optional

from ..config.settings import Settings
from .bulk_schedule import next_rule_above
from .money import format_cents
from .models import (
    CartValidationResult,
    ItemTerms,
    LineItem,
    OrderSummary,
    Tier,
    ValidationIssue,
)


FALLBACK_MESSAGE = "Wholesale pricing unavailable for this item; retail price applied"


def effective_moq(
    configured_moq: Optional[int],
    tier: Optional[Tier],
    enforce_without_tier: bool = False
) -> int:
    """
    MOQ precedence: item MOQ, then tier default MOQ, then 1.

    Customers without a tier are not MOQ-gated unless enforce_without_tier.
    """
    if tier is None and not enforce_without_tier:
        return 1
    if configured_moq:
        return configured_moq
    if tier is not None:
        return tier.default_moq
    return 1


class CartValidator:
    """Builds a CartValidationResult for a priced cart."""

    def __init__(
        self,
        enforce_cart_thresholds: str = "off",
        suggest_bulk_upgrades: bool = True
    ):
        self.enforce_cart_thresholds = enforce_cart_thresholds
        self.suggest_bulk_upgrades = suggest_bulk_upgrades

    @classmethod
    def from_settings(cls, settings: Settings) -> 'CartValidator':
        return cls(
            enforce_cart_thresholds=settings.enforce_cart_thresholds,
            suggest_bulk_upgrades=settings.suggest_bulk_upgrades,
        )

    def validate(
        self,
        lines: list[LineItem],
        tier: Optional[Tier] = None,
        terms: Optional[Mapping[str, ItemTerms]] = None,
        summary: Optional[OrderSummary] = None
    ) -> CartValidationResult:
        errors = []
        warnings = []

        for line in lines:
            moq = line.moq or 1

            if line.quantity < moq:
                errors.append(ValidationIssue(
                    item_id=line.item_id,
                    message=f"Minimum order quantity is {moq}",
                    moq=moq,
                    current_quantity=line.quantity,
                ))

            if line.is_fallback:
                if tier is not None:
                    warnings.append(ValidationIssue(
                        item_id=line.item_id,
                        message=FALLBACK_MESSAGE,
                        moq=moq,
                        current_quantity=line.quantity,
                    ))
                continue

            if self.suggest_bulk_upgrades and terms and line.item_id in terms:
                upcoming = next_rule_above(terms[line.item_id].bulk_rules, line.quantity)
                if upcoming is not None and upcoming.discount_percent > line.bulk_discount_percent:
                    needed = upcoming.min_quantity - line.quantity
                    warnings.append(ValidationIssue(
                        item_id=line.item_id,
                        message=f"Add {needed} more to unlock {upcoming.discount_percent:g}% bulk discount",
                        current_quantity=line.quantity,
                        suggested_quantity=upcoming.min_quantity,
                    ))

        if tier is not None and summary is not None and self.enforce_cart_thresholds != "off":
            cart_issues = self._check_cart_thresholds(tier, summary)
            if self.enforce_cart_thresholds == "error":
                errors.extend(cart_issues)
            else:
                warnings.extend(cart_issues)

        return CartValidationResult(errors=tuple(errors), warnings=tuple(warnings))

    def _check_cart_thresholds(self, tier: Tier, summary: OrderSummary) -> list[ValidationIssue]:
        issues = []
        if tier.min_order_value and summary.subtotal < tier.min_order_value:
            issues.append(ValidationIssue(
                item_id=None,
                message=(
                    f"Minimum order value for {tier.name} is {format_cents(tier.min_order_value)} "
                    f"(cart is {format_cents(summary.subtotal)})"
                ),
            ))
        if tier.min_order_quantity and summary.total_item_count < tier.min_order_quantity:
            issues.append(ValidationIssue(
                item_id=None,
                message=f"Minimum order quantity for {tier.name} is {tier.min_order_quantity} items",
                moq=tier.min_order_quantity,
                current_quantity=summary.total_item_count,
                suggested_quantity=tier.min_order_quantity,
            ))
        return issues
