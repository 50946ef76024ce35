"""Engine subpackage - core wholesale pricing and validation logic."""
from .pricing_engine import PricingEngine, compute_line_price
from .bulk_schedule import BulkDiscountSchedule
from .models import Cart, CartLine, LineItem, Quote, Tier

__all__ = [
    'PricingEngine', 'compute_line_price', 'BulkDiscountSchedule',
    'Cart', 'CartLine', 'LineItem', 'Quote', 'Tier',
]
