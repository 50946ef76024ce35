"""Shared wholesale data for API routes, loaded once on first use."""
from typing import Optional

from ..data.loaders import load_wholesale_data, WholesaleData

_data: Optional[WholesaleData] = None


def get_data() -> WholesaleData:
    """FastAPI dependency returning the loaded wholesale data."""
    global _data
    if _data is None:
        _data = load_wholesale_data()
    return _data


def reload_data() -> WholesaleData:
    global _data
    _data = None
    return get_data()
