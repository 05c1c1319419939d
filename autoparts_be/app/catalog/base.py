"""Read-side contract shared by every catalog backend.

Three backends implement :class:`CatalogStore`: the in-memory catalog loaded
from import files, the normalized ("legacy") SQL schema and the denormalized
("final") SQL schema. They must agree on filter semantics, ordering and the
shape of what they return, so the helpers that pin those down live here.
"""
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from app.config import get_settings
from app.errors import StoreError
from app.schemas.blog import BlogCategoryOut, BlogPostOut
from app.schemas.lookup import BrandOut, CategoryOut, SubcategoryOut
from app.schemas.product import ProductImageOut, ProductOut

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductFilters:
    search: Optional[str] = None
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    brand_id: Optional[int] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    available: Optional[bool] = None


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = field(default_factory=lambda: get_settings().DEFAULT_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class ProductPage:
    items: List[ProductOut]
    total: int


def completeness_tier(has_name: bool, has_description: bool) -> int:
    """Rank used as the first ordering key: complete listings come first."""
    if has_name and has_description:
        return 1
    if has_name:
        return 2
    return 3


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower())
    return slug.strip("-")[:100]


def generate_slug(name: str, with_id: Optional[int] = None) -> str:
    """Slug for catalogs that do not store one; ``with_id`` disambiguates duplicate names."""
    slug = slugify(name)
    if not slug and with_id is not None:
        return f"product-{with_id}"
    return f"{slug}-{with_id}" if with_id is not None else slug


class CatalogStore(ABC):
    """Capability set every catalog backend provides."""

    def __init__(self, degrade_on_error: bool = True):
        self.degrade_on_error = degrade_on_error

    def list_products(self, filters: Optional[ProductFilters] = None, pagination: Optional[Pagination] = None) -> ProductPage:
        """Filtered, deterministically ordered page plus the unpaginated total.

        When the store fails and ``degrade_on_error`` is set, an empty page is
        returned so the storefront stays browsable; the failure is logged.
        """
        filters = filters or ProductFilters()
        pagination = pagination or Pagination()
        try:
            return self._list_products(filters, pagination)
        except StoreError:
            if not self.degrade_on_error:
                raise
            logger.exception("Product listing failed, serving an empty page")
            return ProductPage(items=[], total=0)

    @abstractmethod
    def _list_products(self, filters: ProductFilters, pagination: Pagination) -> ProductPage:
        ...

    @abstractmethod
    def count_products(self, filters: Optional[ProductFilters] = None) -> int:
        ...

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[ProductOut]:
        ...

    @abstractmethod
    def search_products(self, query: str, limit: int = 10) -> List[ProductOut]:
        ...

    @abstractmethod
    def list_product_images(self, product_id: int) -> List[ProductImageOut]:
        ...

    @abstractmethod
    def list_categories(self) -> List[CategoryOut]:
        ...

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[CategoryOut]:
        ...

    @abstractmethod
    def get_category_by_slug(self, slug: str) -> Optional[CategoryOut]:
        ...

    @abstractmethod
    def list_subcategories(self, category_id: Optional[int] = None) -> List[SubcategoryOut]:
        ...

    @abstractmethod
    def get_subcategory(self, subcategory_id: int) -> Optional[SubcategoryOut]:
        ...

    @abstractmethod
    def list_brands(self) -> List[BrandOut]:
        ...

    @abstractmethod
    def get_brand(self, brand_id: int) -> Optional[BrandOut]:
        ...

    # Storefront articles share the store with the catalog

    @abstractmethod
    def list_blog_posts(self) -> List[BlogPostOut]:
        """Published posts only, newest first."""

    @abstractmethod
    def get_blog_post(self, slug: str) -> Optional[BlogPostOut]:
        """A published post by slug; drafts read as missing."""

    @abstractmethod
    def list_blog_categories(self) -> List[BlogCategoryOut]:
        ...
