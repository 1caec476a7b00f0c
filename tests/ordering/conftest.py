import pytest
from ordering.cart import set_cart_store
from ordering.cart.fake_adapter import FakeCartStore
from ordering.catalogue import set_catalogue
from ordering.catalogue.fake_adapter import FakeCatalogue
from ordering.notification import set_notifier
from ordering.notification.fake_adapter import FakeMerchantNotifier
from ordering.order.creation import create_order_from_cart

ADDRESS = {
    "full_name": "Jane Doe",
    "street": "12 Market Street",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
}


@pytest.fixture()
def address():
    return dict(ADDRESS)


@pytest.fixture()
def catalogue():
    fake = FakeCatalogue()
    fake.add_product("prod-x1", "Linen Shirt", 20.0, "merchant-x", images=["shirt.jpg"])
    fake.add_product("prod-x2", "Canvas Belt", 15.0, "merchant-x")
    fake.add_product("prod-y1", "Desk Lamp", 40.0, "merchant-y", images=["lamp-1.jpg", "lamp-2.jpg"])
    fake.add_product("prod-z1", "Tea Sampler", 12.5, "merchant-z")
    fake.add_customer("cust-001", "Jane Doe", "jane@example.com")
    fake.add_customer("cust-002", "Sam Lee", "sam@example.com")
    set_catalogue(fake)
    return fake


@pytest.fixture()
def cart_store():
    store = FakeCartStore()
    set_cart_store(store)
    return store


@pytest.fixture()
def notifier():
    fake = FakeMerchantNotifier()
    set_notifier(fake)
    return fake


@pytest.fixture()
def place_order(catalogue, cart_store, notifier):
    """Fill a customer's cart with ``(product_id, quantity)`` lines and check out."""

    def _place(lines, customer_id="cust-001", **order_input):
        for product_id, quantity in lines:
            cart_store.add_item(customer_id, product_id, quantity)
        order_input.setdefault("shipping_address", ADDRESS)
        order_input.setdefault("payment_method", "credit_card")
        return create_order_from_cart(customer_id, order_input)

    return _place


@pytest.fixture()
def multi_merchant_order(place_order):
    """Two items from merchant-x and one from merchant-y."""
    return place_order([("prod-x1", 1), ("prod-x2", 2), ("prod-y1", 1)])
