"""Shipping and tax policies applied to each merchant's share of a cart.

Policies are pluggable so that a carrier-rate or tax-service adapter can
replace the defaults without touching the order assembler.
"""

from abc import ABC, abstractmethod

from protean.utils.globals import current_domain

from ordering.order.order import money


class ShippingPolicy(ABC):
    @abstractmethod
    def quote(self, items, address) -> float:
        """Return the shipping cost for one merchant's items."""
        ...


class TaxPolicy(ABC):
    @abstractmethod
    def compute(self, subtotal, address) -> float:
        """Return the tax owed on one merchant's subtotal."""
        ...


class FlatShippingPolicy(ShippingPolicy):
    def __init__(self, amount: float) -> None:
        self.amount = amount

    def quote(self, items, address) -> float:  # noqa: ARG002
        return money(self.amount)


class TieredShippingPolicy(ShippingPolicy):
    """A base rate per sub-order plus a surcharge for every unit past a threshold."""

    def __init__(self, base_rate: float = 5.99, included_units: int = 5, extra_unit_rate: float = 1.50) -> None:
        self.base_rate = base_rate
        self.included_units = included_units
        self.extra_unit_rate = extra_unit_rate

    def quote(self, items, address) -> float:  # noqa: ARG002
        units = sum(item.quantity for item in items)
        extra_units = max(units - self.included_units, 0)
        return money(self.base_rate + extra_units * self.extra_unit_rate)


class PercentageTaxPolicy(TaxPolicy):
    def __init__(self, rate: float = 0.085) -> None:
        self.rate = rate

    def compute(self, subtotal, address) -> float:  # noqa: ARG002
        return money(subtotal * self.rate)


_shipping_policy: ShippingPolicy | None = None
_tax_policy: TaxPolicy | None = None


def get_shipping_policy() -> ShippingPolicy:
    """Return the active shipping policy. Defaults to the configured tiered rates."""
    global _shipping_policy
    if _shipping_policy is None:
        _shipping_policy = TieredShippingPolicy(
            base_rate=float(current_domain.SHIPPING_BASE_RATE),
            included_units=int(current_domain.SHIPPING_INCLUDED_UNITS),
            extra_unit_rate=float(current_domain.SHIPPING_EXTRA_UNIT_RATE),
        )
    return _shipping_policy


def set_shipping_policy(policy: ShippingPolicy) -> None:
    global _shipping_policy
    _shipping_policy = policy


def get_tax_policy() -> TaxPolicy:
    """Return the active tax policy. Defaults to the configured flat rate."""
    global _tax_policy
    if _tax_policy is None:
        _tax_policy = PercentageTaxPolicy(rate=float(current_domain.TAX_RATE))
    return _tax_policy


def set_tax_policy(policy: TaxPolicy) -> None:
    global _tax_policy
    _tax_policy = policy


def reset_pricing_policies() -> None:
    """Drop overrides so the next lookup rebuilds the configured defaults."""
    global _shipping_policy, _tax_policy
    _shipping_policy = None
    _tax_policy = None
