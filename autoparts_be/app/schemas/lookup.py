from pydantic import BaseModel, ConfigDict
from typing import Optional


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryWithCountOut(CategoryOut):
    product_count: int


class SubcategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    category_id: int

    model_config = ConfigDict(from_attributes=True)


class BrandOut(BaseModel):
    id: int
    name: str
    slug: str
    logo_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
