import csv
import logging
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from app.catalog.base import (
    CatalogStore,
    Pagination,
    ProductFilters,
    ProductPage,
    completeness_tier,
    slugify,
)
from app.errors import ValidationError
from app.models.blog import BLOG_DRAFT, BLOG_PUBLISHED
from app.schemas.blog import BlogCategoryOut, BlogPostOut
from app.schemas.lookup import BrandOut, CategoryOut, SubcategoryOut
from app.schemas.product import ProductImageOut, ProductOut
from app.utils.money import to_money

logger = logging.getLogger(__name__)

SHOP_NAME = "AutoParts Kenya"

BRANDS_FILE = "brands.csv"
CATEGORIES_FILE = "categories.csv"
SUBCATEGORIES_FILE = "subcategories.csv"
PRODUCTS_FILE = "products.csv"
IMAGES_FILE = "product_images.csv"
BLOG_CATEGORIES_FILE = "blog_categories.csv"
BLOG_POSTS_FILE = "blog_posts.csv"


def _blank(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _int(value, default: Optional[int] = None) -> Optional[int]:
    value = _blank(value)
    if value is None:
        return default
    return int(float(value))


def _bool(value, default: bool = True) -> bool:
    value = _blank(value)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "t")


def product_from_row(row: Dict[str, str]) -> ProductOut:
    """Build a product from an import-file row, filling the usual defaults."""
    product_id = _int(row.get("id"))
    name = _blank(row.get("name")) or f"Product {product_id}"
    description = _blank(row.get("description"))
    oem = _blank(row.get("oem_part_number"))
    price = to_money(_blank(row.get("price")) or "0")
    if price < 0:
        raise ValidationError(f"Negative price for product {product_id}")

    if _blank(row.get("meta_description")):
        meta_description = _blank(row.get("meta_description"))
    elif description:
        meta_description = description[:155] + "..."
    else:
        meta_description = f"Buy {name} at {SHOP_NAME}. Quality auto parts with fast delivery across Kenya."

    return ProductOut(
        id=product_id,
        name=name,
        slug=_blank(row.get("slug")) or slugify(f"{name}-{product_id}"),
        sku=_blank(row.get("sku")) or oem or f"SKU-{product_id}",
        price=price,
        vehicle_make=_blank(row.get("vehicle_make")),
        vehicle_model=_blank(row.get("vehicle_model")),
        year_range=_blank(row.get("year_range")),
        engine_size=_blank(row.get("engine_size")),
        brand_id=_int(row.get("brand_id")),
        category_id=_int(row.get("category_id")),
        subcategory_id=_int(row.get("subcategory_id")),
        oem_part_number=oem,
        description=description,
        meta_title=_blank(row.get("meta_title")) or f"{name} | {SHOP_NAME}",
        meta_description=meta_description,
        product_url=_blank(row.get("product_url")),
        image_url=_blank(row.get("image_url")),
        stock_quantity=_int(row.get("stock_quantity"), 0),
        lead_time_days=_int(row.get("lead_time_days"), 3),
        warranty_months=_int(row.get("warranty_months")),
        available=_bool(row.get("available"), True),
    )


def blog_post_from_row(row: Dict[str, str]) -> BlogPostOut:
    title = _blank(row.get("title"))
    content = _blank(row.get("content"))
    if title is None or content is None:
        raise ValueError("post needs a title and content")
    return BlogPostOut(
        id=str(row["id"]),
        title=title,
        slug=_blank(row.get("slug")) or slugify(title),
        category_id=_blank(row.get("category_id")),
        content=content,
        excerpt=_blank(row.get("excerpt")),
        featured_image=_blank(row.get("featured_image")),
        status=_blank(row.get("status")) or BLOG_DRAFT,
        published_at=_blank(row.get("published_at")),
    )


def _newest_first(post: BlogPostOut):
    published = post.published_at
    return (published is None, -published.timestamp() if published else 0, post.id)


def _read_csv(path: Path) -> List[Dict[str, str]]:
    if not path.exists():
        logger.warning(f"Catalog file missing: {path}")
        return []
    with path.open(newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


class MemoryCatalog(CatalogStore):
    """Read-only catalog held in process memory, for offline/dev use.

    Products are sorted once at construction with the same ordering the SQL
    backends use, so filtering preserves a deterministic order. Nothing is
    mutated after loading.
    """

    def __init__(
        self,
        products: Iterable[ProductOut] = (),
        categories: Iterable[CategoryOut] = (),
        subcategories: Iterable[SubcategoryOut] = (),
        brands: Iterable[BrandOut] = (),
        images: Iterable[ProductImageOut] = (),
        blog_posts: Iterable[BlogPostOut] = (),
        blog_categories: Iterable[BlogCategoryOut] = (),
        degrade_on_error: bool = True,
    ):
        super().__init__(degrade_on_error=degrade_on_error)
        self._products = tuple(
            sorted(products, key=lambda p: (completeness_tier(bool(p.name), bool(p.description)), -p.id))
        )
        self._by_id = {p.id: p for p in self._products}
        self._categories = tuple(sorted(categories, key=lambda c: (c.name, c.id)))
        self._subcategories = tuple(sorted(subcategories, key=lambda s: (s.name, s.id)))
        self._brands = tuple(sorted(brands, key=lambda b: (b.name, b.id)))
        self._images = tuple(sorted(images, key=lambda i: (i.product_id, i.display_order, i.id)))
        published = [p for p in blog_posts if p.status == BLOG_PUBLISHED]
        self._blog_posts = tuple(sorted(published, key=_newest_first))
        self._blog_categories = tuple(sorted(blog_categories, key=lambda c: (c.name, c.id)))

    @classmethod
    def from_directory(cls, data_dir, degrade_on_error: bool = True) -> "MemoryCatalog":
        """Load the catalog from the flat import files in ``data_dir``.

        An unreadable file leaves the catalog empty rather than stopping the
        app from starting; the error is logged.
        """
        root = Path(data_dir)
        try:
            brands = [
                BrandOut(id=_int(r["id"]), name=r["name"], slug=_blank(r.get("slug")) or slugify(r["name"]))
                for r in _read_csv(root / BRANDS_FILE)
            ]
            categories = [
                CategoryOut(
                    id=_int(r["id"]),
                    name=r["name"],
                    slug=_blank(r.get("slug")) or slugify(r["name"]),
                    description=_blank(r.get("description")),
                )
                for r in _read_csv(root / CATEGORIES_FILE)
            ]
            subcategories = [
                SubcategoryOut(
                    id=_int(r["id"]),
                    name=r["name"],
                    slug=_blank(r.get("slug")) or slugify(f"{r['name']}-{r['id']}"),
                    category_id=_int(r["category_id"]),
                )
                for r in _read_csv(root / SUBCATEGORIES_FILE)
            ]
            products = []
            seen_slugs = set()
            for row in _read_csv(root / PRODUCTS_FILE):
                try:
                    product = product_from_row(row)
                except (ValidationError, ValueError, TypeError) as e:
                    logger.warning(f"Skipping product row {row.get('id')!r}: {e}")
                    continue
                if product.slug in seen_slugs:
                    product = product.model_copy(update={"slug": f"{product.slug}-{product.id}"})
                seen_slugs.add(product.slug)
                products.append(product)

            loaded_ids = {p.id for p in products}
            images = [
                ProductImageOut(
                    id=str(r["id"]),
                    product_id=_int(r["product_id"]),
                    image_url=r["image_url"],
                    display_order=_int(r.get("display_order"), 0),
                )
                for r in _read_csv(root / IMAGES_FILE)
                if _int(r.get("product_id")) in loaded_ids and _blank(r.get("image_url"))
            ]
            blog_categories = [
                BlogCategoryOut(
                    id=str(r["id"]),
                    name=r["name"],
                    slug=_blank(r.get("slug")) or slugify(r["name"]),
                    description=_blank(r.get("description")),
                )
                for r in _read_csv(root / BLOG_CATEGORIES_FILE)
            ]
            blog_posts = []
            for row in _read_csv(root / BLOG_POSTS_FILE):
                try:
                    blog_posts.append(blog_post_from_row(row))
                except (ValueError, TypeError) as e:
                    logger.warning(f"Skipping blog post row {row.get('id')!r}: {e}")
        except (OSError, KeyError, ValueError) as e:
            logger.error(f"Error loading catalog files from {root}: {e}")
            return cls(degrade_on_error=degrade_on_error)

        logger.info(
            f"Loaded catalog from {root}: {len(brands)} brands, {len(categories)} categories, "
            f"{len(subcategories)} subcategories, {len(products)} products, {len(images)} images, "
            f"{len(blog_posts)} blog posts"
        )
        return cls(
            products,
            categories,
            subcategories,
            brands,
            images,
            blog_posts=blog_posts,
            blog_categories=blog_categories,
            degrade_on_error=degrade_on_error,
        )

    def _matcher(self, filters: ProductFilters) -> Callable[[ProductOut], bool]:
        search = filters.search.lower() if filters.search else None
        make = filters.vehicle_make.lower() if filters.vehicle_make else None
        model = filters.vehicle_model.lower() if filters.vehicle_model else None
        min_price = Decimal(filters.min_price) if filters.min_price is not None else None
        max_price = Decimal(filters.max_price) if filters.max_price is not None else None

        def matches(p: ProductOut) -> bool:
            if search and not self._matches_text(p, search):
                return False
            if filters.category_id is not None and p.category_id != filters.category_id:
                return False
            if filters.subcategory_id is not None and p.subcategory_id != filters.subcategory_id:
                return False
            if filters.brand_id is not None and p.brand_id != filters.brand_id:
                return False
            if make and not _contains(p.vehicle_make, make):
                return False
            if model and not _contains(p.vehicle_model, model):
                return False
            if min_price is not None and p.price < min_price:
                return False
            if max_price is not None and p.price > max_price:
                return False
            if filters.available is not None and p.available != filters.available:
                return False
            return True

        return matches

    @staticmethod
    def _matches_text(p: ProductOut, needle: str) -> bool:
        return any(
            _contains(value, needle)
            for value in (p.name, p.description, p.vehicle_make, p.vehicle_model, p.oem_part_number)
        )

    def _list_products(self, filters: ProductFilters, pagination: Pagination) -> ProductPage:
        matches = self._matcher(filters)
        filtered = [p for p in self._products if matches(p)]
        start = pagination.offset
        return ProductPage(items=filtered[start:start + pagination.limit], total=len(filtered))

    def count_products(self, filters: Optional[ProductFilters] = None) -> int:
        matches = self._matcher(filters or ProductFilters())
        return sum(1 for p in self._products if matches(p))

    def get_product(self, product_id: int) -> Optional[ProductOut]:
        return self._by_id.get(product_id)

    def search_products(self, query: str, limit: int = 10) -> List[ProductOut]:
        if not query or not query.strip():
            return []
        needle = query.strip().lower()
        return [p for p in self._products if self._matches_text(p, needle)][:limit]

    def list_product_images(self, product_id: int) -> List[ProductImageOut]:
        return [i for i in self._images if i.product_id == product_id]

    def list_categories(self) -> List[CategoryOut]:
        return list(self._categories)

    def get_category(self, category_id: int) -> Optional[CategoryOut]:
        return next((c for c in self._categories if c.id == category_id), None)

    def get_category_by_slug(self, slug: str) -> Optional[CategoryOut]:
        return next((c for c in self._categories if c.slug == slug), None)

    def list_subcategories(self, category_id: Optional[int] = None) -> List[SubcategoryOut]:
        if category_id is None:
            return list(self._subcategories)
        return [s for s in self._subcategories if s.category_id == category_id]

    def get_subcategory(self, subcategory_id: int) -> Optional[SubcategoryOut]:
        return next((s for s in self._subcategories if s.id == subcategory_id), None)

    def list_brands(self) -> List[BrandOut]:
        return list(self._brands)

    def get_brand(self, brand_id: int) -> Optional[BrandOut]:
        return next((b for b in self._brands if b.id == brand_id), None)

    def list_blog_posts(self) -> List[BlogPostOut]:
        return list(self._blog_posts)

    def get_blog_post(self, slug: str) -> Optional[BlogPostOut]:
        return next((p for p in self._blog_posts if p.slug == slug), None)

    def list_blog_categories(self) -> List[BlogCategoryOut]:
        return list(self._blog_categories)
