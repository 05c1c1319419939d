import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import ConflictError, NotFoundError, StoreError, ValidationError
from app.models.cart import (
    CART_ACTIVE,
    MAX_ITEM_QUANTITY,
    MAX_PRODUCT_ID,
    MAX_UNIT_PRICE,
    Cart,
    CartItem,
    new_id,
)
from app.services.transaction import atomic, reading
from app.utils.money import MoneyLike, ZERO, line_subtotal, to_money

logger = logging.getLogger(__name__)


def _require_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= MAX_ITEM_QUANTITY:
        raise ValidationError(f"Quantity must be between 1 and {MAX_ITEM_QUANTITY}")
    return quantity


def item_count(items: List[CartItem]) -> int:
    return sum(i.quantity for i in items)


def total_amount(items: List[CartItem]) -> Decimal:
    return to_money(sum((line_subtotal(i.unit_price, i.quantity) for i in items), ZERO))


class CartService:
    """Session-scoped carts.

    Every call takes the session or cart id explicitly; the service keeps no
    state beyond the request's DB session. Merge-or-insert is pushed down to
    one upsert statement so concurrent adds of the same product cannot lose
    an update.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---- queries ----

    def get_active_cart(self, session_id: str) -> Optional[Cart]:
        if not session_id:
            raise ValidationError("Session id is required")
        with reading(self.db, "Cart lookup"):
            return self.db.execute(
                select(Cart)
                .where(Cart.session_id == session_id, Cart.status == CART_ACTIVE)
                .order_by(Cart.created_at.desc())
            ).scalars().first()

    def get_items(self, cart_id: str) -> List[CartItem]:
        with reading(self.db, "Cart items lookup"):
            return list(
                self.db.execute(
                    select(CartItem)
                    .where(CartItem.cart_id == cart_id)
                    .order_by(CartItem.created_at, CartItem.id)
                    .execution_options(populate_existing=True)
                ).scalars().all()
            )

    # ---- commands ----

    def get_or_create_active_cart(self, session_id: str) -> Cart:
        """Return the session's active cart, creating it on first touch.

        The partial unique index on (session_id) for active carts rejects a
        second concurrent insert; the loser re-reads once and gets the
        winner's cart.
        """
        cart = self.get_active_cart(session_id)
        if cart:
            return cart

        cart = Cart(id=new_id(), session_id=session_id, status=CART_ACTIVE)
        self.db.add(cart)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Concurrent cart creation for session {session_id}, re-reading")
            cart = self.get_active_cart(session_id)
            if cart is None:
                raise ConflictError("Could not resolve the active cart for this session")
            return cart
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Cart creation failed: {e}")
            raise StoreError("Cart creation failed") from e

        self.db.refresh(cart)
        logger.info(f"Created cart {cart.id} for session {session_id}")
        return cart

    def _get_modifiable_cart(self, cart_id: str) -> Cart:
        with reading(self.db, "Cart lookup"):
            cart = self.db.get(Cart, cart_id)
        if not cart:
            raise NotFoundError("Cart not found")
        if cart.status != CART_ACTIVE:
            raise ValidationError("Cart can no longer be modified")
        return cart

    def _upsert_statement(self, values: dict):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            return None
        stmt = insert(CartItem).values(**values)
        merged = CartItem.quantity + stmt.excluded.quantity
        # A merge past the cap matches no row, so RETURNING comes back empty
        return stmt.on_conflict_do_update(
            index_elements=["cart_id", "product_id"],
            set_={"quantity": merged, "updated_at": values["updated_at"]},
            where=merged <= MAX_ITEM_QUANTITY,
        ).returning(CartItem.id)

    def add_item(self, cart_id: str, product_id: int, quantity: int, unit_price: MoneyLike) -> CartItem:
        """Add ``quantity`` of a product, merging into an existing line.

        The unit price is the snapshot taken by the first add; later adds of
        the same product only raise the quantity. A merge that would take
        the line past ``MAX_ITEM_QUANTITY`` is rejected and changes nothing.
        """
        quantity = _require_quantity(quantity)
        if isinstance(product_id, bool) or not isinstance(product_id, int) or not 1 <= product_id <= MAX_PRODUCT_ID:
            raise ValidationError("Invalid product id")
        price = to_money(unit_price)
        if price < 0:
            raise ValidationError("Price cannot be negative")
        if price > MAX_UNIT_PRICE:
            raise ValidationError(f"Price cannot exceed {MAX_UNIT_PRICE}")
        self._get_modifiable_cart(cart_id)

        now = datetime.utcnow()
        values = {
            "id": new_id(),
            "cart_id": cart_id,
            "product_id": product_id,
            "quantity": quantity,
            "unit_price": price,
            "created_at": now,
            "updated_at": now,
        }
        stmt = self._upsert_statement(values)
        if stmt is not None:
            with atomic(self.db, "Adding cart item"):
                item_id = self.db.execute(stmt).scalar_one_or_none()
                if item_id is None:
                    raise ValidationError(f"Quantity must be between 1 and {MAX_ITEM_QUANTITY}")
                self.db.execute(update(Cart).where(Cart.id == cart_id).values(updated_at=now))
        else:
            item_id = self._insert_or_increment(values)

        item = self._load_item(cart_id, item_id)
        logger.info(f"Cart {cart_id}: product {product_id} now at quantity {item.quantity}")
        return item

    def _insert_or_increment(self, values: dict) -> str:
        # Dialects without ON CONFLICT: the unique constraint decides, then increment in SQL
        self.db.add(CartItem(**values))
        try:
            self.db.execute(update(Cart).where(Cart.id == values["cart_id"]).values(updated_at=values["updated_at"]))
            self.db.commit()
            return values["id"]
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Cart {values['cart_id']}: product {values['product_id']} already present, merging")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Adding cart item failed: {e}")
            raise StoreError("Adding cart item failed") from e

        with atomic(self.db, "Merging cart item"):
            merged = self.db.execute(
                update(CartItem)
                .where(
                    CartItem.cart_id == values["cart_id"],
                    CartItem.product_id == values["product_id"],
                    CartItem.quantity + values["quantity"] <= MAX_ITEM_QUANTITY,
                )
                .values(quantity=CartItem.quantity + values["quantity"], updated_at=values["updated_at"])
            )
            if not merged.rowcount:
                raise ValidationError(f"Quantity must be between 1 and {MAX_ITEM_QUANTITY}")
            self.db.execute(update(Cart).where(Cart.id == values["cart_id"]).values(updated_at=values["updated_at"]))
            return self.db.execute(
                select(CartItem.id).where(
                    CartItem.cart_id == values["cart_id"], CartItem.product_id == values["product_id"]
                )
            ).scalar_one()

    def _load_item(self, cart_id: str, item_id: str) -> CartItem:
        with reading(self.db, "Cart item lookup"):
            item = self.db.execute(
                select(CartItem)
                .where(CartItem.id == item_id, CartItem.cart_id == cart_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        if not item:
            raise NotFoundError("Cart item not found")
        return item

    def update_item_quantity(self, cart_id: str, item_id: str, quantity: int) -> CartItem:
        """Set an item's quantity; zero is rejected, callers remove the item instead."""
        quantity = _require_quantity(quantity)
        item = self._load_item(cart_id, item_id)
        with atomic(self.db, "Updating cart item"):
            item.quantity = quantity
            item.updated_at = datetime.utcnow()
        self.db.refresh(item)
        return item

    def remove_item(self, cart_id: str, item_id: str) -> bool:
        """Delete one line. Returns False when nothing matched; repeat calls are harmless."""
        with atomic(self.db, "Removing cart item"):
            result = self.db.execute(
                delete(CartItem).where(CartItem.id == item_id, CartItem.cart_id == cart_id)
            )
        removed = (result.rowcount or 0) > 0
        if removed:
            logger.info(f"Cart {cart_id}: removed item {item_id}")
        return removed

    def clear_cart(self, cart_id: str) -> int:
        """Delete every line; the cart row stays active for reuse."""
        with reading(self.db, "Cart lookup"):
            cart = self.db.get(Cart, cart_id)
        if not cart:
            raise NotFoundError("Cart not found")
        with atomic(self.db, "Clearing cart"):
            result = self.db.execute(delete(CartItem).where(CartItem.cart_id == cart_id))
            cart.updated_at = datetime.utcnow()
        logger.info(f"Cart {cart_id}: cleared {result.rowcount or 0} items")
        return result.rowcount or 0
