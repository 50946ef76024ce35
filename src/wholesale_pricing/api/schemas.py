"""Pydantic request/response models for the HTTP API."""
from dataclasses import asdict
from typing import Optional

from pydantic import BaseModel, Field

from ..engine.models import Cart, CartLine, PaymentTerms


class CartLineIn(BaseModel):
    item_id: str
    quantity: int = Field(ge=1)
    retail_unit_price: int = Field(ge=0)


class CartIn(BaseModel):
    customer_id: Optional[str] = None
    items: list[CartLineIn]

    def to_cart(self) -> Cart:
        return Cart(
            customer_id=self.customer_id,
            lines=[CartLine(i.item_id, i.quantity, i.retail_unit_price) for i in self.items],
        )


class OrderIn(CartIn):
    email: str
    po_number: Optional[str] = None
    notes: Optional[str] = None


class TierCreate(BaseModel):
    """Request model for creating a tier."""
    name: str
    slug: str
    discount_percent: float
    min_order_value: int = 0
    min_order_quantity: int = 0
    default_moq: int = 1
    payment_terms: PaymentTerms = PaymentTerms.NET_30
    description: Optional[str] = None
    color: str = '#3B82F6'
    active: bool = True
    priority: int = 0


class TierUpdate(BaseModel):
    """Request model for updating a tier; slug is accepted only to reject changes."""
    name: Optional[str] = None
    slug: Optional[str] = None
    discount_percent: Optional[float] = None
    min_order_value: Optional[int] = None
    min_order_quantity: Optional[int] = None
    default_moq: Optional[int] = None
    payment_terms: Optional[PaymentTerms] = None
    description: Optional[str] = None
    color: Optional[str] = None
    active: Optional[bool] = None
    priority: Optional[int] = None


class TierResponse(BaseModel):
    """Response model for a tier."""
    id: str
    name: str
    slug: str
    discount_percent: float
    min_order_value: int
    min_order_quantity: int
    default_moq: int
    payment_terms: PaymentTerms
    description: Optional[str]
    color: str
    active: bool
    priority: int


class BulkRuleIn(BaseModel):
    min_quantity: int
    discount_percent: float
    description: Optional[str] = None
    active: bool = True


def issue_to_dict(issue) -> dict:
    return {
        "item_id": issue.item_id,
        "message": issue.message,
        "moq": issue.moq,
        "current_quantity": issue.current_quantity,
        "suggested_quantity": issue.suggested_quantity,
    }


def validation_to_dict(result) -> dict:
    return {
        "is_valid": result.is_valid,
        "errors": [issue_to_dict(e) for e in result.errors],
        "warnings": [issue_to_dict(w) for w in result.warnings],
    }


def line_to_dict(line) -> dict:
    return {
        "item_id": line.item_id,
        "quantity": line.quantity,
        "retail_unit_price": line.retail_unit_price,
        "base_price": line.base_price,
        "final_price": line.final_price,
        "tier_slug": line.tier_slug,
        "tier_discount_percent": line.tier_discount_percent,
        "bulk_discount_percent": line.bulk_discount_percent,
        "savings": line.savings,
        "extended_price": line.extended_price,
        "moq": line.moq,
        "moq_satisfied": line.moq_satisfied,
        "source": line.source,
        "warnings": line.warnings,
        "trace": line.get_trace_text(),
    }


def quote_to_dict(quote) -> dict:
    return {
        "customer_id": quote.customer_id,
        "tier": quote.tier_slug,
        "lines": [line_to_dict(l) for l in quote.lines],
        "summary": asdict(quote.summary),
        "validation": validation_to_dict(quote.validation),
        "warnings": quote.warnings,
        "trace": quote.get_trace_text(),
    }
