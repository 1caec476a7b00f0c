"""Catalogue factory.

One FakeCatalogue backs both the product catalogue and the customer
directory by default; production wiring sets service clients instead.
"""

from ordering.catalogue.fake_adapter import FakeCatalogue
from ordering.catalogue.port import CustomerDirectory, ProductCatalogue

_current_catalogue: ProductCatalogue | None = None
_current_directory: CustomerDirectory | None = None


def _default() -> FakeCatalogue:
    global _current_catalogue, _current_directory
    fake = FakeCatalogue()
    _current_catalogue = _current_catalogue or fake
    _current_directory = _current_directory or fake
    return fake


def get_catalogue() -> ProductCatalogue:
    """Return the current product catalogue. Defaults to FakeCatalogue."""
    if _current_catalogue is None:
        _default()
    return _current_catalogue


def get_customer_directory() -> CustomerDirectory:
    """Return the current customer directory. Defaults to FakeCatalogue."""
    if _current_directory is None:
        _default()
    return _current_directory


def set_catalogue(catalogue: ProductCatalogue, directory: CustomerDirectory | None = None) -> None:
    """Override the active catalogue (and directory, if the adapter is both)."""
    global _current_catalogue, _current_directory
    _current_catalogue = catalogue
    if directory is not None:
        _current_directory = directory
    elif isinstance(catalogue, CustomerDirectory):
        _current_directory = catalogue


def reset_catalogue() -> None:
    """Reset to the default fake catalogue."""
    global _current_catalogue, _current_directory
    _current_catalogue = None
    _current_directory = None
