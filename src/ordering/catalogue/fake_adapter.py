"""In-memory catalogue and customer directory for development and testing."""

from dataclasses import replace

from ordering.catalogue.port import CustomerDirectory, CustomerProfile, ProductCatalogue, ProductSnapshot


class FakeCatalogue(ProductCatalogue, CustomerDirectory):
    def __init__(self) -> None:
        self.products: dict[str, ProductSnapshot] = {}
        self.customers: dict[str, CustomerProfile] = {}

    def add_product(self, product_id, name, price, merchant_id, images=()) -> ProductSnapshot:
        product = ProductSnapshot(
            product_id=str(product_id),
            name=name,
            price=price,
            merchant_id=str(merchant_id),
            images=tuple(images),
        )
        self.products[product.product_id] = product
        return product

    def change_price(self, product_id, new_price) -> None:
        self.products[str(product_id)] = replace(self.products[str(product_id)], price=new_price)

    def add_customer(self, customer_id, full_name, email) -> CustomerProfile:
        customer = CustomerProfile(customer_id=str(customer_id), full_name=full_name, email=email)
        self.customers[customer.customer_id] = customer
        return customer

    def get_product(self, product_id: str) -> ProductSnapshot | None:
        return self.products.get(str(product_id))

    def get_customer(self, customer_id: str) -> CustomerProfile | None:
        return self.customers.get(str(customer_id))
