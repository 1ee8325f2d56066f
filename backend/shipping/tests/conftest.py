import pytest

from ..dataclasses import Money, Product, PurchaseContext, PurchaseItem
from ..services.fx_service import FxConverter
from ..services.reference_data import build_reference_data, load_reference_data
from ..services.resolver import ShippingResolver
from ..services.shipment import PurchaseShipping


@pytest.fixture(scope="session")
def reference_data():
    return build_reference_data(load_reference_data())


@pytest.fixture
def hierarchy(reference_data):
    return reference_data.hierarchy


@pytest.fixture
def fx():
    return FxConverter({"USD": {"GBP": "0.75"}, "EUR": {"GBP": "0.85"}}, reference_currency="GBP")


@pytest.fixture
def resolver(hierarchy, fx):
    return ShippingResolver(hierarchy, fx)


@pytest.fixture
def shipping(reference_data):
    return reference_data.shipping(1)


@pytest.fixture
def make_purchase_item(shipping):
    def make(item_id, quantity=1, is_discounted=False, product_shipping=None):
        product = Product(
            id=item_id,
            name=f"Product {item_id}",
            price=Money("50.00", "GBP"),
            shipping=product_shipping or shipping,
        )
        return PurchaseItem(id=item_id, reference=product, quantity=quantity, is_discounted=is_discounted)

    return make


@pytest.fixture
def make_shipment(resolver, reference_data):
    def make(ship_to="France", total=Money("300.00", "GBP"), paid_at="2013-01-01", items=None, currency="GBP"):
        context = PurchaseContext(
            currency=currency,
            total_purchase_price=total,
            paid_at=paid_at,
            ship_to=reference_data.location(ship_to) if ship_to else None,
        )
        return PurchaseShipping(context=context, resolver=resolver, items=list(items or []), id=1)

    return make
