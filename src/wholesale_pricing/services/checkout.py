"""
Checkout - turns a validated quote into a wholesale order draft.

Wholesale orders are invoiced on the tier's payment terms, so drafts start
as pending with payment awaiting.
"""
import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

from loguru import logger

from ..engine.errors import ValidationError
from ..engine.models import OrderSummary, PaymentTerms, Quote
from .tier_catalog import TierCatalog


@dataclass
class OrderDraft:
    """Order payload handed to order persistence."""
    order_number: str
    customer_id: Optional[str]
    email: str
    status: str
    payment_status: str
    payment_terms: PaymentTerms
    net_days: int
    due_date: Optional[str]
    wholesale_tier: Optional[str]
    summary: OrderSummary
    discount_total: int
    lines: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


def compute_terms(quote: Quote, invoice_date: Optional[date] = None) -> dict[str, Any]:
    """Payment terms for an order: the tier's terms, or NET_30 without a tier."""
    terms = quote.tier.payment_terms if quote.tier else PaymentTerms.NET_30
    result = {
        "code": terms,
        "net_days": terms.net_days,
        "due_date": None,
    }
    if invoice_date is not None:
        result["due_date"] = (invoice_date + timedelta(days=terms.net_days)).isoformat()
    return result


def generate_order_number() -> str:
    return f"WS-{int(time.time() * 1000)}"


class CheckoutService:
    """Prepares order drafts from quotes."""

    def __init__(self, catalog: Optional[TierCatalog] = None):
        self.catalog = catalog

    def prepare_order(
        self,
        quote: Quote,
        email: str,
        po_number: Optional[str] = None,
        notes: Optional[str] = None,
        invoice_date: Optional[date] = None
    ) -> OrderDraft:
        """
        Build an order draft from a quote.

        Raises:
            ValidationError: the quote has MOQ or threshold errors
        """
        if not quote.validation.is_valid:
            logger.info(
                "Rejected order for customer {}: {} validation errors",
                quote.customer_id, len(quote.validation.errors)
            )
            raise ValidationError(quote.validation)
        if not quote.lines:
            raise ValueError("Cannot place an order for an empty cart")

        terms = compute_terms(quote, invoice_date)
        summary = quote.summary

        draft = OrderDraft(
            order_number=generate_order_number(),
            customer_id=quote.customer_id,
            email=email,
            status="pending",
            payment_status="awaiting",
            payment_terms=terms["code"],
            net_days=terms["net_days"],
            due_date=terms["due_date"],
            wholesale_tier=quote.tier_slug,
            summary=summary,
            discount_total=summary.tier_discount_total + summary.bulk_discount_total,
            lines=[
                {
                    "item_id": line.item_id,
                    "quantity": line.quantity,
                    "unit_price": line.final_price,
                    "total": line.extended_price,
                }
                for line in quote.lines
            ],
            metadata={
                "is_wholesale": quote.tier is not None,
                "po_number": po_number,
                "customer_notes": notes,
                "tier_discount": summary.tier_discount_total,
                "bulk_discount": summary.bulk_discount_total,
                "total_items": summary.total_item_count,
            },
        )

        if self.catalog is not None:
            self.catalog.record_order(quote.tier_slug)

        logger.info(
            "Prepared order {} for customer {} ({} lines, total {})",
            draft.order_number, quote.customer_id, len(draft.lines), summary.total
        )
        return draft
