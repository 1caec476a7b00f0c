"""In-memory cart store for development and testing."""

from ordering.cart.port import Cart, CartLine, CartStore


class FakeCartStore(CartStore):
    def __init__(self) -> None:
        self.carts: dict[str, list[CartLine]] = {}
        self.cleared: list[str] = []

    def add_item(self, customer_id, product_id, quantity=1, size=None, color=None) -> None:
        """Put a line in a customer's cart (merging with an identical line)."""
        lines = self.carts.setdefault(str(customer_id), [])
        for index, line in enumerate(lines):
            if (line.product_id, line.size, line.color) == (str(product_id), size, color):
                lines[index] = CartLine(str(product_id), line.quantity + quantity, size, color)
                return
        lines.append(CartLine(str(product_id), quantity, size, color))

    def get_cart(self, customer_id: str) -> Cart:
        return Cart(customer_id=str(customer_id), items=tuple(self.carts.get(str(customer_id), [])))

    def clear_cart(self, customer_id: str) -> None:
        self.carts[str(customer_id)] = []
        self.cleared.append(str(customer_id))
