import re
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.errors import EmptyCartError, NotFoundError, StoreError, ValidationError
from app.models.cart import CART_ACTIVE, CartItem
from app.models.order import Order, OrderItem
from app.schemas.order import OrderCreate
from app.services.cart_service import CartService
from app.services import order_service
from app.services.order_service import OrderService, generate_order_number, validate_customer

from conftest import PRODUCT_ROWS, build_memory_catalog

SESSION = "sess-order"


def _customer(**overrides):
    data = {
        "customer_name": "Wanjiku Kamau",
        "customer_phone": "0712 345 678",
        "customer_email": "wanjiku@example.com",
        "delivery_address": "Moi Avenue 12",
        "delivery_town": "Nairobi",
    }
    data.update(overrides)
    return OrderCreate(**data)


def _count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def carts(db):
    return CartService(db)


@pytest.fixture
def orders(db, memory_catalog):
    return OrderService(db, memory_catalog)


@pytest.fixture
def filled_cart(carts):
    cart = carts.get_or_create_active_cart(SESSION)
    carts.add_item(cart.id, 60, 2, "500.00")
    carts.add_item(cart.id, 61, 1, "1500.00")
    return cart


def test_place_order_snapshots_cart(orders, carts, filled_cart):
    order, items = orders.place_order(SESSION, _customer())

    assert order.total_amount == Decimal("2500.00")
    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.payment_method == "whatsapp"
    assert order.whatsapp_sent is False
    assert order.session_id == SESSION

    by_product = {i.product_id: i for i in items}
    assert set(by_product) == {60, 61}
    assert by_product[60].subtotal == Decimal("1000.00")
    assert by_product[61].subtotal == Decimal("1500.00")
    assert by_product[60].product_name == "Brake Pad Set"
    assert by_product[61].product_sku == "BD_0061"
    for item in items:
        assert item.subtotal == item.unit_price * item.quantity
    assert sum(i.subtotal for i in items) == order.total_amount


def test_cart_is_empty_but_active_after_order(orders, carts, filled_cart):
    orders.place_order(SESSION, _customer())

    cart = carts.get_active_cart(SESSION)
    assert cart.id == filled_cart.id
    assert cart.status == CART_ACTIVE
    assert carts.get_items(cart.id) == []

    # Reusable for the next order
    carts.add_item(cart.id, 62, 1, "850.50")
    order, _ = orders.place_order(SESSION, _customer())
    assert order.total_amount == Decimal("850.50")


def test_order_numbers_are_unique_and_readable():
    numbers = {generate_order_number() for _ in range(200)}
    assert len(numbers) == 200
    for number in numbers:
        assert re.fullmatch(r"ORD-\d{13}-[0-9A-F]{6}", number)


def test_empty_cart_is_rejected_without_writes(db, orders, carts):
    with pytest.raises(EmptyCartError):
        orders.place_order(SESSION, _customer())

    carts.get_or_create_active_cart(SESSION)
    with pytest.raises(EmptyCartError) as exc:
        orders.place_order(SESSION, _customer())
    assert exc.value.message == "Cart is empty"
    assert _count(db, Order) == 0
    assert _count(db, OrderItem) == 0


@pytest.mark.parametrize("overrides", [
    {"customer_name": "   "},
    {"customer_phone": "0712-345-6"},
    {"customer_phone": "07123abc5678"},
    {"customer_phone": "(+254) - - -"},
])
def test_invalid_customer_is_rejected_before_writes(db, orders, filled_cart, overrides):
    with pytest.raises(ValidationError):
        orders.place_order(SESSION, _customer(**overrides))
    assert _count(db, Order) == 0
    assert _count(db, CartItem) == 2


def test_customer_fields_are_normalised():
    fields = validate_customer(_customer(customer_email=None, notes="  ", delivery_county=" Nairobi "))
    assert fields["customer_email"] is None
    assert fields["notes"] is None
    assert fields["delivery_county"] == "Nairobi"
    assert validate_customer(_customer(customer_phone="+254 (712) 345-678"))["customer_phone"] == "+254 (712) 345-678"


def test_failure_mid_transaction_leaves_nothing_behind(db, orders, filled_cart, monkeypatch):
    original = OrderService._snapshot_item
    calls = []

    def failing_snapshot(self, *args, **kwargs):
        calls.append(1)
        if len(calls) == 2:
            raise OperationalError("INSERT INTO order_items", {}, Exception("connection lost"))
        return original(self, *args, **kwargs)

    monkeypatch.setattr(OrderService, "_snapshot_item", failing_snapshot)

    with pytest.raises(StoreError):
        orders.place_order(SESSION, _customer())

    assert _count(db, Order) == 0
    assert _count(db, OrderItem) == 0
    assert _count(db, CartItem) == 2


def test_unknown_product_gets_placeholder_name(orders, carts):
    cart = carts.get_or_create_active_cart(SESSION)
    carts.add_item(cart.id, 424242, 1, "99.99")

    _, items = orders.place_order(SESSION, _customer())

    assert items[0].product_name == "Unknown Product"
    assert items[0].product_id == 424242
    assert items[0].product_sku is None


def test_snapshot_survives_catalog_changes(db, filled_cart):
    order, _ = OrderService(db, build_memory_catalog()).place_order(SESSION, _customer())

    renamed = [dict(r, name="Renamed Part", price="1.00") if r["id"] == 60 else r for r in PRODUCT_ROWS]
    later = OrderService(db, build_memory_catalog(renamed))
    items = later.get_order_items(later.get_order(SESSION, order.id).id)

    pads = next(i for i in items if i.product_id == 60)
    assert pads.product_name == "Brake Pad Set"
    assert pads.unit_price == Decimal("500.00")


def test_history_is_scoped_and_newest_first(orders, carts):
    placed = []
    for product_id in (60, 61):
        cart = carts.get_or_create_active_cart(SESSION)
        carts.add_item(cart.id, product_id, 1, "10.00")
        placed.append(orders.place_order(SESSION, _customer())[0].id)

    assert [o.id for o in orders.list_orders(SESSION)] == list(reversed(placed))
    assert orders.list_orders("someone-else") == []
    with pytest.raises(NotFoundError):
        orders.get_order("someone-else", placed[0])


def test_email_is_checked_once_by_the_schema():
    assert validate_customer(_customer(customer_email="wanjiku@EXAMPLE.com"))["customer_email"] == "wanjiku@example.com"
    with pytest.raises(ValueError):
        _customer(customer_email="not-an-email")


def test_total_past_the_column_limit_is_rejected(db, orders, filled_cart, monkeypatch):
    monkeypatch.setattr(order_service, "MAX_ORDER_TOTAL", Decimal("2499.99"))

    with pytest.raises(ValidationError):
        orders.place_order(SESSION, _customer())

    assert _count(db, Order) == 0
    assert _count(db, OrderItem) == 0
    assert _count(db, CartItem) == 2
