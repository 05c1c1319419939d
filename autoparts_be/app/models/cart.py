import uuid
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, UniqueConstraint, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.base import Base


def new_id() -> str:
    return str(uuid.uuid4())


CART_ACTIVE = "active"
CART_CLOSED = "closed"

# Bounds keep quantity x unit_price inside Numeric(12, 2) for a line subtotal
MAX_ITEM_QUANTITY = 1000
MAX_UNIT_PRICE = Decimal("1000000.00")
# Integer columns are 32-bit on PostgreSQL
MAX_PRODUCT_ID = 2147483647


class Cart(Base):
    __tablename__ = "carts"
    __table_args__ = (
        # One active cart per session, enforced by the store
        Index(
            "uq_carts_active_session",
            "session_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=True, index=True)
    session_id = Column(String(255), nullable=True, index=True)
    status = Column(String(50), nullable=False, default=CART_ACTIVE)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.created_at")


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_product"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    # No FK: the product may live in any of the catalog backends
    product_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cart = relationship("Cart", back_populates="items")
