from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.catalog.base import CatalogStore, Pagination, ProductFilters
from app.catalog.factory import get_catalog
from app.config import get_settings
from app.errors import NotFoundError, ValidationError
from app.schemas.product import ProductImageOut, ProductOut, ProductPageOut

router = APIRouter()

settings = get_settings()


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# 1. List Products (filtered, paginated)
@router.get("", response_model=ProductPageOut)
def list_products(
    search: Optional[str] = Query(None, max_length=200),
    category_id: Optional[int] = Query(None),
    subcategory_id: Optional[int] = Query(None),
    brand_id: Optional[int] = Query(None),
    vehicle_make: Optional[str] = Query(None, max_length=100),
    vehicle_model: Optional[str] = Query(None, max_length=100),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    available: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    catalog: CatalogStore = Depends(get_catalog),
):
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError("min_price cannot be greater than max_price")

    filters = ProductFilters(
        search=_clean(search),
        category_id=category_id,
        subcategory_id=subcategory_id,
        brand_id=brand_id,
        vehicle_make=_clean(vehicle_make),
        vehicle_model=_clean(vehicle_model),
        min_price=min_price,
        max_price=max_price,
        available=available,
    )
    result = catalog.list_products(filters, Pagination(page=page, limit=limit))
    return ProductPageOut(data=result.items, total=result.total)


# 2. Get Product
@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


# 3. Product Gallery
@router.get("/{product_id}/images", response_model=List[ProductImageOut])
def get_product_images(product_id: int, catalog: CatalogStore = Depends(get_catalog)):
    if not catalog.get_product(product_id):
        raise NotFoundError("Product not found")
    return catalog.list_product_images(product_id)
