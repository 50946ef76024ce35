"""
Tier Catalog - CRUD and lookup for wholesale tiers.

Holds tier definitions and customer → tier assignments, and derives
read-only statistics and eligibility from them.
"""
import re
import threading
import uuid
from collections import Counter
from dataclasses import fields, replace
from typing import Any, Mapping, Optional, Union

from loguru import logger

from ..engine.bulk_schedule import check_discount_percent
from ..engine.errors import ConfigurationError, NotFoundError
from ..engine.models import OrderHistory, PaymentTerms, Tier


SLUG_PATTERN = re.compile(r'^[a-z0-9_-]+$')

TIER_FIELDS = {f.name for f in fields(Tier)}


def _check_int(value, label: str, minimum: int):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{label} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{label} must be at least {minimum}, got {value}")


def _check_type(value, label: str, expected, optional: bool = False):
    if optional and value is None:
        return
    if not isinstance(value, expected):
        raise ConfigurationError(f"{label} must be a {expected.__name__}, got {value!r}")


def validate_tier(tier: Tier) -> Tier:
    """Check field constraints; returns the tier with payment_terms normalized."""
    _check_type(tier.name, "name", str)
    if not tier.name.strip():
        raise ConfigurationError("Tier name is required")
    _check_type(tier.color, "color", str)
    _check_type(tier.description, "description", str, optional=True)
    _check_type(tier.active, "active", bool)
    _check_type(tier.slug, "slug", str)
    if not tier.slug or not SLUG_PATTERN.match(tier.slug):
        raise ConfigurationError(
            f"Tier slug must match [a-z0-9_-]+, got {tier.slug!r}"
        )
    check_discount_percent(tier.discount_percent)
    _check_int(tier.default_moq, "default_moq", 1)
    _check_int(tier.min_order_value, "min_order_value", 0)
    _check_int(tier.min_order_quantity, "min_order_quantity", 0)
    _check_int(tier.priority, "priority", -(2 ** 31))

    try:
        terms = PaymentTerms(tier.payment_terms)
    except ValueError:
        allowed = ", ".join(t.value for t in PaymentTerms)
        raise ConfigurationError(
            f"payment_terms must be one of {allowed}, got {tier.payment_terms!r}"
        ) from None

    return replace(tier, payment_terms=terms)


def describe_requirements(tier: Tier) -> str:
    """Human-readable qualification requirements for a tier."""
    parts = []
    if tier.min_order_value > 0:
        parts.append(f"${tier.min_order_value / 100:.0f} order value")
    if tier.min_order_quantity > 0:
        parts.append(f"{tier.min_order_quantity} items")
    return " + ".join(parts) if parts else "No minimum requirements"


def qualifies(tier: Tier, history: OrderHistory) -> bool:
    return (
        history.total_value >= tier.min_order_value
        and history.total_quantity >= tier.min_order_quantity
    )


class TierCatalog:
    """Service for managing wholesale tiers and customer assignments."""

    def __init__(
        self,
        tiers: Optional[list[Tier]] = None,
        assignments: Optional[Mapping[str, str]] = None
    ):
        self._tiers: dict[str, Tier] = {}
        self._assignments: dict[str, str] = {}
        self._order_counts: Counter = Counter()
        self._lock = threading.RLock()

        for tier in tiers or []:
            self.create_tier(tier)
        for customer_id, slug in (assignments or {}).items():
            self.assign_tier(customer_id, slug)

    # -- lookups -------------------------------------------------------------

    def get_tier(self, tier_id: str) -> Tier:
        """Get a single tier by ID."""
        with self._lock:
            tier = self._tiers.get(tier_id)
        if tier is None:
            raise NotFoundError("Tier", tier_id)
        return tier

    def get_tier_by_slug(self, slug: str) -> Optional[Tier]:
        with self._lock:
            for tier in self._tiers.values():
                if tier.slug == slug:
                    return tier
        return None

    def list_tiers(self, active_only: bool = False) -> list[Tier]:
        """Tiers ordered by priority ascending, then name."""
        with self._lock:
            tiers = list(self._tiers.values())
        if active_only:
            tiers = [t for t in tiers if t.active]
        return sorted(tiers, key=lambda t: (t.priority, t.name))

    def resolve_tier(self, customer_id: Optional[str]) -> Optional[Tier]:
        """
        Resolve the tier assigned to a customer.

        Returns None for guests, unassigned customers, and customers whose
        tier is inactive; None means retail price with no MOQ enforcement.
        """
        if not customer_id:
            return None
        with self._lock:
            slug = self._assignments.get(str(customer_id).strip())
            tier = self.get_tier_by_slug(slug) if slug else None
        if tier is None or not tier.active:
            return None
        return tier

    # -- admin CRUD ----------------------------------------------------------

    def create_tier(self, definition: Union[Tier, Mapping[str, Any]]) -> Tier:
        """Create a new tier."""
        if isinstance(definition, Tier):
            tier = definition
        else:
            unknown = set(definition) - TIER_FIELDS
            if unknown:
                raise ConfigurationError(f"Unknown tier fields: {', '.join(sorted(unknown))}")
            data = dict(definition)
            data.setdefault("id", "")
            try:
                tier = Tier(**data)
            except TypeError as e:
                raise ConfigurationError(f"Incomplete tier definition: {e}") from None

        if not tier.id:
            tier = replace(tier, id=uuid.uuid4().hex[:12])
        tier = validate_tier(tier)

        with self._lock:
            if self.get_tier_by_slug(tier.slug):
                raise ConfigurationError(f"Tier with slug '{tier.slug}' already exists")
            if tier.id in self._tiers:
                raise ConfigurationError(f"Tier with ID '{tier.id}' already exists")
            self._tiers[tier.id] = tier

        logger.info("Created tier {} ({}% off, MOQ {})", tier.slug, tier.discount_percent, tier.default_moq)
        return tier

    def update_tier(self, tier_id: str, changes: Mapping[str, Any]) -> Tier:
        """Update an existing tier; the slug can never change."""
        unknown = set(changes) - TIER_FIELDS
        if unknown:
            raise ConfigurationError(f"Unknown tier fields: {', '.join(sorted(unknown))}")

        with self._lock:
            existing = self.get_tier(tier_id)

            if "slug" in changes and changes["slug"] != existing.slug:
                raise ConfigurationError(
                    f"Tier slug is immutable ('{existing.slug}' cannot become '{changes['slug']}')"
                )
            if "id" in changes and changes["id"] != existing.id:
                raise ConfigurationError("Tier ID is immutable")

            updated = validate_tier(replace(existing, **changes))
            self._tiers[tier_id] = updated

        logger.info("Updated tier {}: {}", updated.slug, ", ".join(sorted(changes)) or "no changes")
        return updated

    def delete_tier(self, tier_id: str, reassign_to: Optional[str] = None) -> Tier:
        """
        Delete a tier.

        Blocked while customers are assigned to it, unless reassign_to names
        another existing tier; assigned customers are moved there first.
        """
        with self._lock:
            tier = self.get_tier(tier_id)
            assigned = [c for c, s in self._assignments.items() if s == tier.slug]

            if assigned:
                if reassign_to is None:
                    raise ConfigurationError(
                        f"Tier '{tier.slug}' still has {len(assigned)} assigned customers; "
                        "reassign them before deleting"
                    )
                if reassign_to == tier.slug or self.get_tier_by_slug(reassign_to) is None:
                    raise ConfigurationError(f"Cannot reassign customers to tier '{reassign_to}'")
                for customer_id in assigned:
                    self._assignments[customer_id] = reassign_to

            # Order counts follow reassigned customers, else go with the tier
            orders = self._order_counts.pop(tier.slug, 0)
            if orders and assigned:
                self._order_counts[reassign_to] += orders

            del self._tiers[tier_id]

        if assigned:
            logger.info("Moved {} customers from {} to {}", len(assigned), tier.slug, reassign_to)
        logger.info("Deleted tier {}", tier.slug)
        return tier

    # -- assignments ---------------------------------------------------------

    def assign_tier(self, customer_id: str, slug: str) -> Tier:
        """Assign a customer to a tier."""
        with self._lock:
            tier = self.get_tier_by_slug(slug)
            if tier is None:
                raise NotFoundError("Tier", slug)
            self._assignments[str(customer_id).strip()] = slug
        return tier

    def unassign_tier(self, customer_id: str) -> bool:
        with self._lock:
            return self._assignments.pop(str(customer_id).strip(), None) is not None

    def assigned_slug(self, customer_id: str) -> Optional[str]:
        with self._lock:
            return self._assignments.get(str(customer_id).strip())

    def record_order(self, slug: Optional[str]):
        """Count a submitted order against its tier."""
        if not slug:
            return
        with self._lock:
            self._order_counts[slug] += 1

    # -- read-only aggregates -----------------------------------------------

    def tier_statistics(self, slug: str) -> dict:
        """Customer and order counts for one tier; informational only."""
        with self._lock:
            if self.get_tier_by_slug(slug) is None:
                raise NotFoundError("Tier", slug)
            customer_count = sum(1 for s in self._assignments.values() if s == slug)
            order_count = self._order_counts.get(slug, 0)
        return {'customer_count': customer_count, 'order_count': order_count}

    def all_tier_statistics(self) -> list[dict]:
        stats = []
        for tier in self.list_tiers():
            entry = {'tier': tier.name, 'slug': tier.slug, 'discount_percent': tier.discount_percent}
            entry.update(self.tier_statistics(tier.slug))
            stats.append(entry)
        return stats

    def tier_eligibility(self, history: OrderHistory) -> list[dict]:
        """Which active tiers an order history qualifies for."""
        return [
            {
                'slug': tier.slug,
                'name': tier.name,
                'discount_percent': tier.discount_percent,
                'qualified': qualifies(tier, history),
                'requirements': describe_requirements(tier),
            }
            for tier in self.list_tiers(active_only=True)
        ]

    def auto_assign_tier(self, customer_id: str, history: OrderHistory) -> tuple[Optional[str], str]:
        """
        Assign the best tier a customer's history qualifies for.

        Best = highest discount_percent, ties broken by lower priority.
        Returns (slug, reason); the current assignment is kept when nothing
        qualifies.
        """
        candidates = [t for t in self.list_tiers(active_only=True) if qualifies(t, history)]
        if not candidates:
            return self.assigned_slug(customer_id), "Does not qualify for any tier"

        best = min(candidates, key=lambda t: (-t.discount_percent, t.priority, t.name))
        self.assign_tier(customer_id, best.slug)
        reason = (
            f"Qualified based on {history.order_count} orders totaling "
            f"{history.total_value} with {history.total_quantity} items"
        )
        logger.info("Auto-assigned customer {} to {}", customer_id, best.slug)
        return best.slug, reason
