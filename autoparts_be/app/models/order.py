from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.base import Base
from app.models.cart import new_id

# Largest value orders.total_amount can hold
MAX_ORDER_TOTAL = Decimal("9999999999.99")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=True, index=True)
    session_id = Column(String(255), nullable=True, index=True)
    order_number = Column(String(50), nullable=False, unique=True)

    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255))
    customer_phone = Column(String(20), nullable=False)
    delivery_address = Column(Text)
    delivery_county = Column(String(100))
    delivery_town = Column(String(100))

    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(50), default="pending")
    payment_method = Column(String(50))
    payment_status = Column(String(50), default="pending")
    whatsapp_sent = Column(Boolean, default=False)
    whatsapp_message_id = Column(String(255))
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.position")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Kept nullable so the order survives the product being removed
    product_id = Column(Integer, nullable=True)
    product_name = Column(String(500), nullable=False)
    product_sku = Column(String(100))
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)  # unit price at time of order
    subtotal = Column(Numeric(12, 2), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="items")
