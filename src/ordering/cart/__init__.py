"""Cart store factory.

Provides get_cart_store() / set_cart_store() to swap implementations:
- FakeCartStore for development and testing
- a cart-service client in production
"""

from ordering.cart.fake_adapter import FakeCartStore
from ordering.cart.port import CartStore

_current_store: CartStore | None = None


def get_cart_store() -> CartStore:
    """Return the current cart store. Defaults to FakeCartStore."""
    global _current_store
    if _current_store is None:
        _current_store = FakeCartStore()
    return _current_store


def set_cart_store(store: CartStore) -> None:
    """Override the active cart store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_cart_store() -> None:
    """Reset to default cart store."""
    global _current_store
    _current_store = None
