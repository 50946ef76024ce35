"""
Error types raised by the wholesale pricing engine.

ConfigurationError is fatal to the admin operation that triggered it.
ValidationError blocks order submission. TransientIOError is recovered per
item with safe defaults. NotFoundError only surfaces from admin lookups;
during pricing a missing tier or rule simply means no discount.
"""
from typing import Optional


class WholesalePricingError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(WholesalePricingError, ValueError):
    """Invalid tier or bulk-rule configuration."""


class NotFoundError(WholesalePricingError, LookupError):
    """A tier or bulk rule addressed by an admin operation does not exist."""

    def __init__(self, resource: str, key: Optional[str] = None):
        self.resource = resource
        self.key = key
        message = f"{resource} '{key}' not found" if key is not None else f"{resource} not found"
        super().__init__(message)


class TransientIOError(WholesalePricingError):
    """Fetching per-item data (MOQ, bulk rules) failed and may succeed on retry."""

    def __init__(self, item_id: str, message: str = "fetch failed"):
        self.item_id = item_id
        super().__init__(f"{item_id}: {message}")


class ValidationError(WholesalePricingError):
    """A cart failed MOQ or threshold checks at submission time."""

    def __init__(self, result):
        self.result = result
        messages = [e.message for e in result.errors]
        super().__init__("; ".join(messages) or "Cart validation failed")
