from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.catalog.base import CatalogStore, ProductFilters
from app.catalog.factory import get_catalog
from app.config import get_settings
from app.errors import NotFoundError, ValidationError
from app.schemas.lookup import BrandOut, CategoryOut, CategoryWithCountOut, SubcategoryOut
from app.schemas.product import ProductOut

router = APIRouter()

settings = get_settings()


# 4. Typeahead search
@router.get("/search", response_model=List[ProductOut])
def search(
    q: Optional[str] = Query(None, max_length=200),
    limit: int = Query(settings.SEARCH_DEFAULT_LIMIT, ge=1, le=settings.MAX_PAGE_SIZE),
    catalog: CatalogStore = Depends(get_catalog),
):
    if not q or not q.strip():
        raise ValidationError("q: Search query is required")
    return catalog.search_products(q.strip(), limit)


# 5. Categories
@router.get("/categories", response_model=List[CategoryOut])
def list_categories(catalog: CatalogStore = Depends(get_catalog)):
    return catalog.list_categories()


@router.get("/categories-with-counts", response_model=List[CategoryWithCountOut])
def list_categories_with_counts(catalog: CatalogStore = Depends(get_catalog)):
    return [
        CategoryWithCountOut(
            **c.model_dump(),
            product_count=catalog.count_products(ProductFilters(category_id=c.id)),
        )
        for c in catalog.list_categories()
    ]


@router.get("/categories/slug/{slug}", response_model=CategoryOut)
def get_category_by_slug(slug: str, catalog: CatalogStore = Depends(get_catalog)):
    category = catalog.get_category_by_slug(slug)
    if not category:
        raise NotFoundError("Category not found")
    return category


@router.get("/categories/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, catalog: CatalogStore = Depends(get_catalog)):
    category = catalog.get_category(category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


# 6. Subcategories
@router.get("/subcategories", response_model=List[SubcategoryOut])
def list_subcategories(category_id: Optional[int] = Query(None), catalog: CatalogStore = Depends(get_catalog)):
    return catalog.list_subcategories(category_id)


@router.get("/subcategories/{subcategory_id}", response_model=SubcategoryOut)
def get_subcategory(subcategory_id: int, catalog: CatalogStore = Depends(get_catalog)):
    subcategory = catalog.get_subcategory(subcategory_id)
    if not subcategory:
        raise NotFoundError("Subcategory not found")
    return subcategory


# 7. Brands
@router.get("/brands", response_model=List[BrandOut])
def list_brands(catalog: CatalogStore = Depends(get_catalog)):
    return catalog.list_brands()


@router.get("/brands/{brand_id}", response_model=BrandOut)
def get_brand(brand_id: int, catalog: CatalogStore = Depends(get_catalog)):
    brand = catalog.get_brand(brand_id)
    if not brand:
        raise NotFoundError("Brand not found")
    return brand
