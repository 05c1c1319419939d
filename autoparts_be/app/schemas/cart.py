from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from app.models.cart import MAX_ITEM_QUANTITY, MAX_PRODUCT_ID, MAX_UNIT_PRICE


class CartItemIn(BaseModel):
    product_id: int = Field(ge=1, le=MAX_PRODUCT_ID)
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)
    unit_price: Decimal = Field(ge=0, le=MAX_UNIT_PRICE, max_digits=12, decimal_places=2)


class CartItemUpdate(BaseModel):
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)


class CartItemOut(BaseModel):
    id: str
    cart_id: str
    product_id: int
    quantity: int
    unit_price: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CartInfo(BaseModel):
    id: str
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    cart: CartInfo
    items: List[CartItemOut]
    item_count: int
    total_amount: Decimal


class SuccessOut(BaseModel):
    success: bool = True
