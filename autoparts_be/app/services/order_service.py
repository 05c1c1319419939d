import logging
import re
import secrets
import time
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.catalog.base import CatalogStore
from app.errors import EmptyCartError, NotFoundError, ValidationError
from app.models.cart import Cart, CartItem
from app.models.order import MAX_ORDER_TOTAL, Order, OrderItem
from app.schemas.order import OrderCreate
from app.schemas.product import ProductOut
from app.services.cart_service import CartService
from app.services.transaction import atomic, reading
from app.utils.money import line_subtotal, sum_lines

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"
MIN_PHONE_DIGITS = 10
_PHONE_CHARS = re.compile(r"^[0-9+\-() ]+$")


def generate_order_number() -> str:
    """Human readable, time-ordered order number, e.g. ORD-1731000000000-3FA9C1."""
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


def validate_customer(customer: OrderCreate) -> Dict[str, Optional[str]]:
    """Check and normalise the checkout contact fields before anything is written."""
    name = (customer.customer_name or "").strip()
    if not name:
        raise ValidationError("customer_name: Customer name is required")

    phone = (customer.customer_phone or "").strip()
    digits = re.sub(r"\D", "", phone)
    if len(phone) < MIN_PHONE_DIGITS or not _PHONE_CHARS.match(phone) or len(digits) < MIN_PHONE_DIGITS:
        raise ValidationError("customer_phone: Valid phone number is required")

    def _opt(value: Optional[str]) -> Optional[str]:
        value = (value or "").strip()
        return value or None

    return {
        "customer_name": name,
        "customer_phone": phone,
        # EmailStr has already validated and normalised the address
        "customer_email": customer.customer_email or None,
        "delivery_address": _opt(customer.delivery_address),
        "delivery_county": _opt(customer.delivery_county),
        "delivery_town": _opt(customer.delivery_town),
        "notes": _opt(customer.notes),
    }


class OrderService:
    """Turns a session's cart into an immutable order snapshot."""

    def __init__(self, db: Session, catalog: CatalogStore, payment_method: str = "whatsapp"):
        self.db = db
        self.catalog = catalog
        self.payment_method = payment_method
        self.carts = CartService(db)

    def _lookup_products(self, product_ids) -> Dict[int, Optional[ProductOut]]:
        return {pid: self.catalog.get_product(pid) for pid in set(product_ids)}

    def _snapshot_item(self, order_id: str, position: int, item: CartItem, product: Optional[ProductOut]) -> OrderItem:
        return OrderItem(
            order_id=order_id,
            product_id=item.product_id,
            product_name=product.name if product and product.name else UNKNOWN_PRODUCT,
            product_sku=product.sku if product else None,
            quantity=item.quantity,
            unit_price=item.unit_price,
            subtotal=line_subtotal(item.unit_price, item.quantity),
            position=position,
        )

    def place_order(self, session_id: str, customer: OrderCreate) -> Tuple[Order, List[OrderItem]]:
        """Snapshot the active cart into an order and empty the cart, atomically.

        Product names are read from the catalog once, here, and stored on the
        order items; prices come from the cart lines. The order row, every
        order item and the cart clear commit together or not at all.
        """
        fields = validate_customer(customer)

        cart = self.carts.get_active_cart(session_id)
        if cart is None:
            raise EmptyCartError()
        items = self.carts.get_items(cart.id)
        if not items:
            raise EmptyCartError()
        products = self._lookup_products(i.product_id for i in items)

        with atomic(self.db, "Placing order"):
            # Hold the cart row so no add/clear interleaves on stores that lock
            self.db.execute(select(Cart.id).where(Cart.id == cart.id).with_for_update())
            items = list(
                self.db.execute(
                    select(CartItem)
                    .where(CartItem.cart_id == cart.id)
                    .order_by(CartItem.created_at, CartItem.id)
                    .execution_options(populate_existing=True)
                ).scalars().all()
            )
            if not items:
                raise EmptyCartError()
            missing = [i.product_id for i in items if i.product_id not in products]
            if missing:
                products.update(self._lookup_products(missing))

            total = sum_lines((i.unit_price, i.quantity) for i in items)
            if total > MAX_ORDER_TOTAL:
                raise ValidationError("Order total is too large, split it into smaller orders")

            order = Order(
                session_id=session_id,
                order_number=generate_order_number(),
                total_amount=total,
                status="pending",
                payment_method=self.payment_method,
                payment_status="pending",
                whatsapp_sent=False,
                **fields,
            )
            self.db.add(order)
            self.db.flush()

            for position, item in enumerate(items):
                self.db.add(self._snapshot_item(order.id, position, item, products.get(item.product_id)))

            self.db.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
            self.db.flush()

        self.db.refresh(order)
        order_items = self.get_order_items(order.id)
        logger.info(
            f"Order {order.order_number} placed from cart {cart.id}: "
            f"{len(order_items)} items, total {order.total_amount}"
        )
        return order, order_items

    def list_orders(self, session_id: str) -> List[Order]:
        if not session_id:
            raise ValidationError("Session id is required")
        with reading(self.db, "Order history lookup"):
            return list(
                self.db.execute(
                    select(Order)
                    .where(Order.session_id == session_id)
                    .order_by(Order.created_at.desc(), Order.order_number.desc())
                ).scalars().all()
            )

    def get_order(self, session_id: str, order_id: str) -> Order:
        with reading(self.db, "Order lookup"):
            order = self.db.execute(
                select(Order).where(Order.id == order_id, Order.session_id == session_id)
            ).scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order

    def get_order_items(self, order_id: str) -> List[OrderItem]:
        with reading(self.db, "Order items lookup"):
            return list(
                self.db.execute(
                    select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.position)
                ).scalars().all()
            )
