from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ..data.loaders import WholesaleData
from ..engine.errors import ValidationError
from ..services.checkout import CheckoutService
from .schemas import CartIn, OrderIn, quote_to_dict, validation_to_dict
from .state import get_data
from .tiers_api import bulk_router, router as tiers_router


def create_app(data: Optional[WholesaleData] = None) -> FastAPI:
    """Build the API; pass data to serve a preloaded (e.g. test) dataset."""
    app = FastAPI(
        title="Wholesale Pricing API",
        description="Tiered wholesale pricing and cart validation",
        version="1.0.0"
    )

    # Enable CORS for storefront/admin development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(tiers_router)
    app.include_router(bulk_router)

    if data is not None:
        app.dependency_overrides[get_data] = lambda: data

    @app.get("/")
    async def root():
        return {"status": "online", "message": "Wholesale Pricing API Active"}

    @app.post("/calculate")
    async def calculate_quote(req: CartIn, data: WholesaleData = Depends(get_data)):
        quote = data.engine().calculate(req.to_cart())
        return quote_to_dict(quote)

    @app.post("/validate")
    async def validate_cart(req: CartIn, data: WholesaleData = Depends(get_data)):
        return validation_to_dict(data.engine().validate(req.to_cart()))

    @app.post("/summarize")
    async def summarize_cart(req: CartIn, data: WholesaleData = Depends(get_data)):
        return asdict(data.engine().summarize(req.to_cart()))

    @app.post("/orders")
    async def create_order(req: OrderIn, data: WholesaleData = Depends(get_data)):
        quote = data.engine().calculate(req.to_cart())
        try:
            draft = CheckoutService(data.catalog).prepare_order(
                quote, email=req.email, po_number=req.po_number, notes=req.notes
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=validation_to_dict(e.result))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"success": True, "order": asdict(draft)}

    @app.get("/tier/{customer_id}")
    async def get_customer_tier(customer_id: str, data: WholesaleData = Depends(get_data)):
        tier = data.catalog.resolve_tier(customer_id)
        return {
            "customer_id": customer_id,
            "has_wholesale_access": tier is not None,
            "tier": tier.slug if tier else None,
            "discount_percent": tier.discount_percent if tier else 0,
        }

    @app.get("/moq/{item_id}")
    async def get_moq(item_id: str, data: WholesaleData = Depends(get_data)):
        return {"item_id": item_id, "moq": data.moq.get(item_id, 1)}

    @app.get("/bulk-discounts/{item_id}")
    async def get_bulk_discounts(item_id: str, data: WholesaleData = Depends(get_data)):
        rules = [r for r in data.schedule.rules_for(item_id) if r.active]
        return {
            "item_id": item_id,
            "discounts": [
                {
                    "min_quantity": r.min_quantity,
                    "discount_percent": r.discount_percent,
                    "description": r.description,
                }
                for r in rules
            ],
        }

    @app.get("/system/status")
    async def get_status(data: WholesaleData = Depends(get_data)):
        return {
            "engine_active": True,
            "load_status": data.report.get("status"),
            "tiers_count": len(data.catalog.list_tiers()),
            "bulk_rules_count": len(data.schedule),
            "load_errors": data.report.get("errors", []),
        }

    return app


app = create_app()
