from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.errors import ValidationError
from app.models.base import normalize_database_url
from app.utils.money import format_amount, line_subtotal, sum_lines, to_money
from app.utils.order_message import normalize_phone, order_confirmation_message, whatsapp_link


def test_to_money():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(7) == Decimal("7.00")
    assert str(to_money(Decimal("1500"))) == "1500.00"
    with pytest.raises(TypeError):
        to_money(0.1)
    for bad in ("abc", "NaN", "Infinity"):
        with pytest.raises(ValidationError):
            to_money(bad)


def test_sums_stay_exact():
    lines = [("0.10", 1)] * 3
    assert sum_lines(lines) == Decimal("0.30")
    assert line_subtotal("333.33", 3) == Decimal("999.99")
    assert format_amount("1234567.50") == "1,234,568"


@pytest.mark.parametrize("raw,expected", [
    ("0712 345 678", "254712345678"),
    ("+254 712 345 678", "254712345678"),
    ("712345678", "254712345678"),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_confirmation_message_layout():
    order = SimpleNamespace(
        order_number="ORD-1-ABCDEF",
        customer_name="Achieng",
        customer_phone="0711111111",
        delivery_address=None,
        delivery_town="Kisumu",
        delivery_county=None,
        total_amount=Decimal("3000.00"),
        notes=None,
    )
    items = [SimpleNamespace(product_name="Radiator", quantity=2, unit_price=Decimal("1500.00"), subtotal=Decimal("3000.00"))]

    message = order_confirmation_message(order, items)

    assert message.splitlines() == [
        "*New Order: ORD-1-ABCDEF*",
        "",
        "*Customer:* Achieng",
        "*Phone:* 0711111111",
        "*Area:* Kisumu",
        "",
        "*Items:*",
        "1. Radiator",
        "   Qty: 2 x KES 1,500 = KES 3,000",
        "",
        "*Total: KES 3,000*",
    ]
    assert whatsapp_link("0700 000 000", "a b&c") == "https://wa.me/254700000000?text=a%20b%26c"


def test_normalize_database_url():
    assert normalize_database_url("postgres://u:p@h/db") == "postgresql+psycopg2://u:p@h/db"
    assert normalize_database_url("postgresql://u:p@h/db") == "postgresql://u:p@h/db"
    assert normalize_database_url("postgresql+psycopg2://u@h/db") == "postgresql+psycopg2://u@h/db"
    assert normalize_database_url("sqlite:///./x.db") == "sqlite:///./x.db"


def test_to_money_rejects_amounts_too_large_to_round():
    with pytest.raises(ValidationError):
        to_money("1e30")
