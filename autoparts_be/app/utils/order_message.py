import re
from typing import Sequence
from urllib.parse import quote

from app.utils.money import format_amount

COUNTRY_PREFIX = "254"


def order_confirmation_message(order, items: Sequence, currency: str = "KES") -> str:
    """Plain text order summary the shopper sends to the shop over WhatsApp."""
    lines = [
        f"*New Order: {order.order_number}*",
        "",
        f"*Customer:* {order.customer_name}",
        f"*Phone:* {order.customer_phone}",
    ]
    if order.delivery_address:
        lines.append(f"*Address:* {order.delivery_address}")
    if order.delivery_town or order.delivery_county:
        lines.append(f"*Area:* {', '.join(p for p in (order.delivery_town, order.delivery_county) if p)}")

    lines += ["", "*Items:*"]
    for index, item in enumerate(items, start=1):
        lines.append(f"{index}. {item.product_name}")
        lines.append(
            f"   Qty: {item.quantity} x {currency} {format_amount(item.unit_price)}"
            f" = {currency} {format_amount(item.subtotal)}"
        )

    lines += ["", f"*Total: {currency} {format_amount(order.total_amount)}*"]
    if order.notes:
        lines += ["", f"*Notes:* {order.notes}"]
    return "\n".join(lines)


def normalize_phone(phone: str) -> str:
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith(COUNTRY_PREFIX):
        return digits
    if digits.startswith("0"):
        return COUNTRY_PREFIX + digits[1:]
    return COUNTRY_PREFIX + digits


def whatsapp_link(phone: str, message: str) -> str:
    return f"https://wa.me/{normalize_phone(phone)}?text={quote(message, safe='')}"


def order_confirmation_link(order, items: Sequence, business_number: str, currency: str = "KES") -> str:
    return whatsapp_link(business_number, order_confirmation_message(order, items, currency))
