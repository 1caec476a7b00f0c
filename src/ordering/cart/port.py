"""Cart store port (abstract interface).

The shopping cart lives outside the ordering core. The order assembler only
needs to read a customer's cart and empty it once the order is committed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    size: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class Cart:
    customer_id: str
    items: tuple[CartLine, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.items


class CartStore(ABC):
    """Abstract cart store interface."""

    @abstractmethod
    def get_cart(self, customer_id: str) -> Cart:
        """Return the customer's cart. A customer without a cart gets an empty one."""
        ...

    @abstractmethod
    def clear_cart(self, customer_id: str) -> None:
        """Remove every line from the customer's cart."""
        ...
