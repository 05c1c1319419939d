from decimal import Decimal
from pydantic import BaseModel, ConfigDict
from typing import List, Optional


class ProductOut(BaseModel):
    id: int
    name: str
    slug: str
    sku: Optional[str] = None
    price: Decimal
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    year_range: Optional[str] = None
    engine_size: Optional[str] = None
    brand_id: Optional[int] = None
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    oem_part_number: Optional[str] = None
    description: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    product_url: Optional[str] = None
    image_url: Optional[str] = None
    stock_quantity: int = 0
    lead_time_days: Optional[int] = None
    warranty_months: Optional[int] = None
    available: bool = True

    # Pydantic v2 config
    model_config = ConfigDict(from_attributes=True)


class ProductPageOut(BaseModel):
    data: List[ProductOut]
    total: int


class ProductImageOut(BaseModel):
    id: str
    product_id: int
    image_url: str
    display_order: int = 0

    model_config = ConfigDict(from_attributes=True)
