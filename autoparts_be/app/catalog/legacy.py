from typing import List, Optional

from sqlalchemy import case, func, or_, select

from app.catalog.base import Pagination, ProductFilters, ProductPage
from app.catalog.sql import SqlCatalog, contains_any, has_text, like_pattern
from app.models.product import Brand, Category, Product, ProductImage, Subcategory
from app.schemas.lookup import BrandOut, CategoryOut, SubcategoryOut
from app.schemas.product import ProductImageOut, ProductOut
from app.utils.money import to_money


def to_product_out(p: Product) -> ProductOut:
    return ProductOut(
        id=p.id,
        name=p.name,
        slug=p.slug,
        sku=p.sku,
        price=to_money(p.price if p.price is not None else 0),
        vehicle_make=p.vehicle_make,
        vehicle_model=p.vehicle_model,
        year_range=p.year_range,
        engine_size=p.engine_size,
        brand_id=p.brand_id,
        category_id=p.category_id,
        subcategory_id=p.subcategory_id,
        oem_part_number=p.oem_part_number,
        description=p.description,
        meta_title=p.meta_title,
        meta_description=p.meta_description,
        product_url=p.product_url,
        image_url=p.image_url,
        stock_quantity=p.stock_quantity or 0,
        lead_time_days=p.lead_time_days,
        warranty_months=p.warranty_months,
        available=bool(p.available) if p.available is not None else True,
    )


class LegacyCatalog(SqlCatalog):
    """Catalog over the normalized products/categories/subcategories/brands tables."""

    _tier = case(
        (has_text(Product.description), 1),
        else_=2,
    )

    def _search_condition(self, text: str):
        return contains_any(
            like_pattern(text),
            Product.name,
            Product.description,
            Product.vehicle_make,
            Product.vehicle_model,
            Product.oem_part_number,
        )

    def _conditions(self, filters: ProductFilters) -> list:
        conditions = []
        if filters.search:
            conditions.append(self._search_condition(filters.search))
        if filters.category_id is not None:
            conditions.append(Product.category_id == filters.category_id)
        if filters.subcategory_id is not None:
            conditions.append(Product.subcategory_id == filters.subcategory_id)
        if filters.brand_id is not None:
            conditions.append(Product.brand_id == filters.brand_id)
        if filters.vehicle_make:
            conditions.append(Product.vehicle_make.ilike(like_pattern(filters.vehicle_make), escape="\\"))
        if filters.vehicle_model:
            conditions.append(Product.vehicle_model.ilike(like_pattern(filters.vehicle_model), escape="\\"))
        if filters.min_price is not None:
            conditions.append(Product.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Product.price <= filters.max_price)
        if filters.available is not None:
            if filters.available:
                conditions.append(or_(Product.available.is_(None), Product.available == True))  # noqa: E712
            else:
                conditions.append(Product.available == False)  # noqa: E712
        return conditions

    def _list_products(self, filters: ProductFilters, pagination: Pagination) -> ProductPage:
        conditions = self._conditions(filters)
        with self._session() as db:
            total = db.execute(
                select(func.count()).select_from(Product).where(*conditions)
            ).scalar_one()
            rows = db.execute(
                select(Product)
                .where(*conditions)
                .order_by(self._tier, Product.id.desc())
                .offset(pagination.offset)
                .limit(pagination.limit)
            ).scalars().all()
            return ProductPage(items=[to_product_out(p) for p in rows], total=int(total))

    def count_products(self, filters: Optional[ProductFilters] = None) -> int:
        conditions = self._conditions(filters or ProductFilters())
        with self._session() as db:
            return int(db.execute(select(func.count()).select_from(Product).where(*conditions)).scalar_one())

    def get_product(self, product_id: int) -> Optional[ProductOut]:
        with self._session() as db:
            product = db.get(Product, product_id)
            return to_product_out(product) if product else None

    def search_products(self, query: str, limit: int = 10) -> List[ProductOut]:
        if not query or not query.strip():
            return []
        with self._session() as db:
            rows = db.execute(
                select(Product)
                .where(self._search_condition(query.strip()))
                .order_by(self._tier, Product.id.desc())
                .limit(limit)
            ).scalars().all()
            return [to_product_out(p) for p in rows]

    def list_product_images(self, product_id: int) -> List[ProductImageOut]:
        with self._session() as db:
            rows = db.execute(
                select(ProductImage)
                .where(ProductImage.product_id == product_id)
                .order_by(ProductImage.display_order, ProductImage.id)
            ).scalars().all()
            return [ProductImageOut.model_validate(i) for i in rows]

    def list_categories(self) -> List[CategoryOut]:
        with self._session() as db:
            rows = db.execute(select(Category).order_by(Category.name, Category.id)).scalars().all()
            return [CategoryOut.model_validate(c) for c in rows]

    def get_category(self, category_id: int) -> Optional[CategoryOut]:
        with self._session() as db:
            category = db.get(Category, category_id)
            return CategoryOut.model_validate(category) if category else None

    def get_category_by_slug(self, slug: str) -> Optional[CategoryOut]:
        with self._session() as db:
            category = db.execute(select(Category).where(Category.slug == slug)).scalars().first()
            return CategoryOut.model_validate(category) if category else None

    def list_subcategories(self, category_id: Optional[int] = None) -> List[SubcategoryOut]:
        stmt = select(Subcategory)
        if category_id is not None:
            stmt = stmt.where(Subcategory.category_id == category_id)
        with self._session() as db:
            rows = db.execute(stmt.order_by(Subcategory.name, Subcategory.id)).scalars().all()
            return [SubcategoryOut.model_validate(s) for s in rows]

    def get_subcategory(self, subcategory_id: int) -> Optional[SubcategoryOut]:
        with self._session() as db:
            sub = db.get(Subcategory, subcategory_id)
            return SubcategoryOut.model_validate(sub) if sub else None

    def list_brands(self) -> List[BrandOut]:
        with self._session() as db:
            rows = db.execute(select(Brand).order_by(Brand.name, Brand.id)).scalars().all()
            return [BrandOut.model_validate(b) for b in rows]

    def get_brand(self, brand_id: int) -> Optional[BrandOut]:
        with self._session() as db:
            brand = db.get(Brand, brand_id)
            return BrandOut.model_validate(brand) if brand else None
