"""
Tiers API - FastAPI routers for tier and bulk-discount administration.
"""
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..data.loaders import WholesaleData
from ..engine.errors import ConfigurationError, NotFoundError
from ..engine.models import BulkDiscountRule, Tier
from .schemas import BulkRuleIn, TierCreate, TierResponse, TierUpdate
from .state import get_data

router = APIRouter(prefix="/api/tiers", tags=["tiers"])
bulk_router = APIRouter(prefix="/api/bulk-discounts", tags=["bulk-discounts"])

NULLABLE_TIER_FIELDS = {"description"}


def tier_response(tier: Tier) -> TierResponse:
    return TierResponse(**asdict(tier))


# Endpoints

@router.get("", response_model=list[TierResponse])
async def list_tiers(active: bool = False, data: WholesaleData = Depends(get_data)):
    """List tiers ordered by priority."""
    return [tier_response(t) for t in data.catalog.list_tiers(active_only=active)]


@router.get("/stats")
async def get_stats(data: WholesaleData = Depends(get_data)):
    """Customer and order counts per tier."""
    return {"stats": data.catalog.all_tier_statistics()}


@router.get("/{tier_id}", response_model=TierResponse)
async def get_tier(tier_id: str, data: WholesaleData = Depends(get_data)):
    """Get a single tier by ID."""
    try:
        return tier_response(data.catalog.get_tier(tier_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=TierResponse, status_code=201)
async def create_tier(tier_data: TierCreate, data: WholesaleData = Depends(get_data)):
    """Create a new wholesale tier."""
    try:
        created = data.catalog.create_tier(tier_data.model_dump())
        return tier_response(created)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{tier_id}", response_model=TierResponse)
async def update_tier(tier_id: str, updates: TierUpdate, data: WholesaleData = Depends(get_data)):
    """Update an existing tier."""
    # Only fields present in the request body are applied
    update_dict = updates.model_dump(exclude_unset=True)

    nulls = sorted(k for k, v in update_dict.items() if v is None and k not in NULLABLE_TIER_FIELDS)
    if nulls:
        raise HTTPException(status_code=400, detail=f"Fields cannot be null: {', '.join(nulls)}")

    try:
        return tier_response(data.catalog.update_tier(tier_id, update_dict))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{tier_id}")
async def delete_tier(
    tier_id: str,
    reassign_to: Optional[str] = None,
    data: WholesaleData = Depends(get_data)
):
    """Delete a tier, optionally moving its customers to another tier."""
    try:
        deleted = data.catalog.delete_tier(tier_id, reassign_to=reassign_to)
        return {"success": True, "message": f"Tier '{deleted.slug}' deleted"}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{slug}/customers/{customer_id}")
async def assign_tier(slug: str, customer_id: str, data: WholesaleData = Depends(get_data)):
    """Assign a customer to a tier."""
    try:
        tier = data.catalog.assign_tier(customer_id, slug)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        "success": True,
        "message": f"Customer assigned to {tier.name} tier",
        "tier": tier.slug,
    }


@bulk_router.post("/{item_id}", status_code=201)
async def add_bulk_rule(item_id: str, rule_data: BulkRuleIn, data: WholesaleData = Depends(get_data)):
    """Add a quantity threshold to an item's schedule."""
    try:
        rule = data.schedule.add_rule(BulkDiscountRule(item_id=item_id, **rule_data.model_dump()))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return asdict(rule)


@bulk_router.delete("/{item_id}/{min_quantity}")
async def remove_bulk_rule(item_id: str, min_quantity: int, data: WholesaleData = Depends(get_data)):
    """Remove a quantity threshold from an item's schedule."""
    try:
        data.schedule.remove_rule(item_id, min_quantity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}
