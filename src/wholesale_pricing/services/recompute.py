"""
Cart Session - versioned cart snapshots with debounced recomputation.

Every mutation bumps the cart version and invalidates the last quote. A
computed quote is only accepted if it was computed for the version that is
still current, so a slow earlier computation can never overwrite a newer
cart state.
"""
import copy
import threading
from typing import Callable, Optional

from loguru import logger

from ..config.settings import Settings
from ..engine.models import Cart, CartLine, Quote


class CartSession:
    """Holds the current cart snapshot and the quote computed for it."""

    def __init__(self, cart: Optional[Cart] = None, debounce_seconds: float = 0.3):
        self._cart = cart or Cart(customer_id=None)
        self._version = 0
        self._quote: Optional[Quote] = None
        self._quote_version: Optional[int] = None
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.RLock()
        self.debounce_seconds = debounce_seconds

    @classmethod
    def from_settings(cls, settings: Settings, customer_id: Optional[str] = None) -> 'CartSession':
        return cls(Cart(customer_id=customer_id), debounce_seconds=settings.debounce_seconds)

    @property
    def version(self) -> int:
        return self._version

    @property
    def quote(self) -> Optional[Quote]:
        """The quote for the current version, or None if stale or never computed."""
        with self._lock:
            if self._quote_version != self._version:
                return None
            return self._quote

    @property
    def is_submittable(self) -> bool:
        quote = self.quote
        return quote is not None and quote.validation.is_valid

    def snapshot(self) -> Cart:
        with self._lock:
            return copy.deepcopy(self._cart)

    # -- mutations -----------------------------------------------------------

    def _bump(self):
        self._version += 1
        self._quote = None
        self._quote_version = None

    def set_customer(self, customer_id: Optional[str]):
        with self._lock:
            self._cart.customer_id = customer_id
            self._bump()

    def add_line(self, item_id: str, quantity: int, retail_unit_price: int):
        """Add units of an item, merging with an existing line."""
        with self._lock:
            for line in self._cart.lines:
                if line.item_id == item_id:
                    line.quantity += quantity
                    line.retail_unit_price = retail_unit_price
                    break
            else:
                self._cart.lines.append(CartLine(item_id, quantity, retail_unit_price))
            self._cart.lines = [l for l in self._cart.lines if l.quantity > 0]
            self._bump()

    def set_quantity(self, item_id: str, quantity: int):
        """Change a line's quantity; zero or less removes it."""
        with self._lock:
            if quantity <= 0:
                self._cart.lines = [l for l in self._cart.lines if l.item_id != item_id]
            else:
                for line in self._cart.lines:
                    if line.item_id == item_id:
                        line.quantity = quantity
            self._bump()

    def remove_line(self, item_id: str):
        self.set_quantity(item_id, 0)

    def clear(self):
        with self._lock:
            self._cart.lines = []
            self._bump()

    # -- recomputation -------------------------------------------------------

    def request_recompute(self) -> tuple[int, Cart]:
        """Tag a snapshot with the version it represents."""
        with self._lock:
            return self._version, copy.deepcopy(self._cart)

    def apply(self, version: int, quote: Quote) -> bool:
        """Accept quote only if version is still the latest."""
        with self._lock:
            if version != self._version:
                logger.debug("Discarding stale quote v{} (current v{})", version, self._version)
                return False
            self._quote = quote
            self._quote_version = version
            return True

    def recompute(self, engine) -> Optional[Quote]:
        """Compute synchronously; returns the quote if it is still current."""
        version, cart = self.request_recompute()
        quote = engine.calculate(cart)
        return quote if self.apply(version, quote) else None

    def schedule_recompute(self, engine, on_done: Optional[Callable[[int, Quote], None]] = None):
        """
        Debounced recompute: restarts the timer on each call so a burst of
        mutations produces a single computation of the latest snapshot.
        """
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_seconds, self._run_scheduled, args=(engine, on_done))
            self._timer.daemon = True
            self._timer.start()

    def cancel_scheduled(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _run_scheduled(self, engine, on_done):
        version, cart = self.request_recompute()
        try:
            quote = engine.calculate(cart)
        except Exception:
            logger.exception("Scheduled recompute of cart v{} failed", version)
            return
        if self.apply(version, quote) and on_done is not None:
            on_done(version, quote)
