"""
Data models for the wholesale pricing engine.

Uses dataclasses for structured, type-safe data representation.
All money values are integer minor currency units (cents).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PaymentTerms(str, Enum):
    """Invoice terms granted to a wholesale tier."""
    NET_30 = "net_30"
    NET_45 = "net_45"
    NET_60 = "net_60"

    @property
    def net_days(self) -> int:
        return int(self.value.split("_")[1])


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class Tier:
    """A named wholesale membership level."""
    id: str
    name: str
    slug: str
    discount_percent: float
    default_moq: int = 1
    min_order_value: int = 0
    min_order_quantity: int = 0
    payment_terms: PaymentTerms = PaymentTerms.NET_30
    description: Optional[str] = None
    color: str = "#3B82F6"
    active: bool = True
    priority: int = 0


@dataclass(frozen=True)
class BulkDiscountRule:
    """One step of an item's quantity discount schedule."""
    item_id: str
    min_quantity: int
    discount_percent: float
    description: Optional[str] = None
    active: bool = True


@dataclass
class CartLine:
    """A raw cart entry as supplied by the storefront."""
    item_id: str
    quantity: int
    retail_unit_price: int


@dataclass
class Cart:
    """A cart snapshot: the customer plus ordered lines."""
    customer_id: Optional[str]
    lines: list[CartLine] = field(default_factory=list)

    def item_ids(self) -> list[str]:
        """Distinct item ids in first-seen order."""
        return list(dict.fromkeys(line.item_id for line in self.lines))


@dataclass(frozen=True)
class LinePrice:
    """Per-unit price breakdown for one line."""
    base_price: int
    tier_discount_percent: float
    bulk_discount_percent: float
    final_price: int
    savings: int


@dataclass(frozen=True)
class ItemTerms:
    """
    Per-item data fetched from the catalog.

    When ``failure`` is set the safe defaults are already applied:
    no configured MOQ and no bulk rules.
    """
    item_id: str
    moq: Optional[int] = None
    bulk_rules: tuple[BulkDiscountRule, ...] = ()
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class LineItem:
    """A single priced line in a quote."""
    item_id: str
    quantity: int
    retail_unit_price: int
    base_price: int
    final_price: int
    tier_slug: Optional[str] = None
    tier_discount_percent: float = 0
    bulk_discount_percent: float = 0
    applied_bulk_rule: Optional[BulkDiscountRule] = None
    moq: Optional[int] = None
    source: str = "Retail"  # "Wholesale", "Retail" or "Fallback"
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def savings(self) -> int:
        return self.retail_unit_price - self.final_price

    @property
    def extended_price(self) -> int:
        return self.final_price * self.quantity

    @property
    def moq_satisfied(self) -> bool:
        return self.quantity >= (self.moq or 1)

    @property
    def is_fallback(self) -> bool:
        return self.source == "Fallback"

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this line item."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning for this line item."""
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ValidationIssue:
    """An error or warning produced by cart validation. item_id None = cart-scoped."""
    item_id: Optional[str]
    message: str
    moq: Optional[int] = None
    current_quantity: Optional[int] = None
    suggested_quantity: Optional[int] = None


@dataclass(frozen=True)
class CartValidationResult:
    """Outcome of one validation pass. Never mutated after creation."""
    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


@dataclass(frozen=True)
class OrderSummary:
    """Cart totals. tier/bulk discount totals are informational only."""
    subtotal: int = 0
    tier_discount_total: int = 0
    bulk_discount_total: int = 0
    total: int = 0
    total_savings: int = 0
    total_item_count: int = 0


@dataclass
class Quote:
    """Complete result of pricing and validating one cart snapshot."""
    customer_id: Optional[str]
    tier: Optional[Tier]
    lines: list[LineItem]
    validation: CartValidationResult = field(default_factory=CartValidationResult)
    summary: OrderSummary = field(default_factory=OrderSummary)
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def tier_slug(self) -> Optional[str]:
        return self.tier.slug if self.tier else None

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the quote-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a quote-level warning."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable quote trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass(frozen=True)
class OrderHistory:
    """Aggregate of a customer's completed wholesale orders."""
    total_value: int = 0
    total_quantity: int = 0
    order_count: int = 0
