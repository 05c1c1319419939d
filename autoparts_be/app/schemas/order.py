from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional


class OrderCreate(BaseModel):
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: str = Field(min_length=10, max_length=20)
    customer_email: Optional[EmailStr] = None
    delivery_address: Optional[str] = None
    delivery_county: Optional[str] = Field(default=None, max_length=100)
    delivery_town: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None


class OrderItemOut(BaseModel):
    id: str
    order_id: str
    product_id: Optional[int] = None
    product_name: str
    product_sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OrderInfo(BaseModel):
    id: str
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    order_number: str
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: str
    delivery_address: Optional[str] = None
    delivery_county: Optional[str] = None
    delivery_town: Optional[str] = None
    total_amount: Decimal
    status: str
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    whatsapp_sent: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    order: OrderInfo
    items: List[OrderItemOut]


class OrderConfirmationOut(BaseModel):
    message: str
    url: str
