"""Catalogue and customer directory ports.

The order assembler reads authoritative prices and owning merchants from
the catalogue. Read models join customer and product display fields in
through the same ports.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProductSnapshot:
    """A product as the catalogue sees it right now."""

    product_id: str
    name: str
    price: float
    merchant_id: str
    images: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CustomerProfile:
    customer_id: str
    full_name: str
    email: str


class ProductCatalogue(ABC):
    @abstractmethod
    def get_product(self, product_id: str) -> ProductSnapshot | None:
        """Return the current product, or None if it does not exist."""
        ...


class CustomerDirectory(ABC):
    @abstractmethod
    def get_customer(self, customer_id: str) -> CustomerProfile | None:
        """Return display details for a customer, or None if unknown."""
        ...
