from typing import List, Optional

from sqlalchemy import case, false, func, or_, select

from app.catalog.base import Pagination, ProductFilters, ProductPage, generate_slug
from app.catalog.sql import SqlCatalog, contains_any, has_text, like_pattern
from app.models.product_final import BrandFinal, CategoryFinal, ProductFinal, SubcategoryFinal
from app.schemas.lookup import BrandOut, CategoryOut, SubcategoryOut
from app.schemas.product import ProductImageOut, ProductOut
from app.utils.money import to_money


def to_product_out(p: ProductFinal) -> ProductOut:
    """Map a denormalized row onto the shared product shape."""
    # Blank strings count as missing, as in _listable and _tier
    name = p.part_name or p.description or ""
    return ProductOut(
        id=p.product_id,
        name=name,
        slug=f"product-{p.product_id}",
        sku=p.part_number,
        oem_part_number=p.part_number,
        price=to_money(p.price_value if p.price_value is not None else 0),
        image_url=p.image_url,
        description=p.description or p.part_name or "",
        brand_id=p.brand_id,
        vehicle_make=p.brand_name,
        vehicle_model=p.model_name,
        year_range="",
        engine_size="",
        category_id=p.category_id,
        subcategory_id=p.subcategory_id,
        meta_title=name,
        meta_description=p.description,
        product_url=p.product_url,
        stock_quantity=0,
        lead_time_days=0,
        warranty_months=0,
        available=True,
    )


class FinalCatalog(SqlCatalog):
    """Catalog over the denormalized ``*_final_v3`` tables.

    Vehicle make/model come from the inline brand/model names, price from
    ``price_value`` (missing prices read as 0) and every row is available.
    Rows with neither a part name nor a description are never listed.
    """

    _price = func.coalesce(ProductFinal.price_value, 0)
    _tier = case(
        (has_text(ProductFinal.part_name) & has_text(ProductFinal.description), 1),
        (has_text(ProductFinal.part_name), 2),
        else_=3,
    )

    def _listable(self):
        return or_(has_text(ProductFinal.part_name), has_text(ProductFinal.description))

    def _search_condition(self, text: str):
        return contains_any(
            like_pattern(text),
            ProductFinal.part_name,
            ProductFinal.description,
            ProductFinal.brand_name,
            ProductFinal.model_name,
            ProductFinal.part_number,
        )

    def _conditions(self, filters: ProductFilters) -> list:
        conditions = [self._listable()]
        if filters.search:
            conditions.append(self._search_condition(filters.search))
        if filters.category_id is not None:
            conditions.append(ProductFinal.category_id == filters.category_id)
        if filters.subcategory_id is not None:
            conditions.append(ProductFinal.subcategory_id == filters.subcategory_id)
        if filters.brand_id is not None:
            conditions.append(ProductFinal.brand_id == filters.brand_id)
        if filters.vehicle_make:
            conditions.append(ProductFinal.brand_name.ilike(like_pattern(filters.vehicle_make), escape="\\"))
        if filters.vehicle_model:
            conditions.append(ProductFinal.model_name.ilike(like_pattern(filters.vehicle_model), escape="\\"))
        if filters.min_price is not None:
            conditions.append(self._price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(self._price <= filters.max_price)
        if filters.available is False:
            # No stock data in this schema; everything listed is available
            conditions.append(false())
        return conditions

    def _list_products(self, filters: ProductFilters, pagination: Pagination) -> ProductPage:
        conditions = self._conditions(filters)
        with self._session() as db:
            total = db.execute(
                select(func.count()).select_from(ProductFinal).where(*conditions)
            ).scalar_one()
            rows = db.execute(
                select(ProductFinal)
                .where(*conditions)
                .order_by(self._tier, ProductFinal.product_id.desc())
                .offset(pagination.offset)
                .limit(pagination.limit)
            ).scalars().all()
            return ProductPage(items=[to_product_out(p) for p in rows], total=int(total))

    def count_products(self, filters: Optional[ProductFilters] = None) -> int:
        conditions = self._conditions(filters or ProductFilters())
        with self._session() as db:
            return int(db.execute(select(func.count()).select_from(ProductFinal).where(*conditions)).scalar_one())

    def get_product(self, product_id: int) -> Optional[ProductOut]:
        with self._session() as db:
            product = db.get(ProductFinal, product_id)
            return to_product_out(product) if product else None

    def search_products(self, query: str, limit: int = 10) -> List[ProductOut]:
        if not query or not query.strip():
            return []
        with self._session() as db:
            rows = db.execute(
                select(ProductFinal)
                .where(self._listable(), self._search_condition(query.strip()))
                .order_by(self._tier, ProductFinal.product_id.desc())
                .limit(limit)
            ).scalars().all()
            return [to_product_out(p) for p in rows]

    def list_product_images(self, product_id: int) -> List[ProductImageOut]:
        # No gallery table: the product's own image is its only picture
        with self._session() as db:
            product = db.get(ProductFinal, product_id)
            if not product or not product.image_url:
                return []
            return [
                ProductImageOut(
                    id=f"img-{product.product_id}",
                    product_id=product.product_id,
                    image_url=product.image_url,
                    display_order=1,
                )
            ]

    @staticmethod
    def _category_out(c: CategoryFinal) -> CategoryOut:
        return CategoryOut(id=c.category_id, name=c.category_name, slug=generate_slug(c.category_name), description="")

    @staticmethod
    def _subcategory_out(s: SubcategoryFinal) -> SubcategoryOut:
        return SubcategoryOut(
            id=s.subcategory_id,
            name=s.subcategory_name,
            slug=generate_slug(s.subcategory_name, s.subcategory_id),
            category_id=s.category_id,
        )

    @staticmethod
    def _brand_out(b: BrandFinal) -> BrandOut:
        return BrandOut(id=b.brand_id, name=b.brand_name, slug=generate_slug(b.brand_name, b.brand_id), logo_url="")

    def list_categories(self) -> List[CategoryOut]:
        with self._session() as db:
            rows = db.execute(
                select(CategoryFinal).order_by(CategoryFinal.category_name, CategoryFinal.category_id)
            ).scalars().all()
            return [self._category_out(c) for c in rows]

    def get_category(self, category_id: int) -> Optional[CategoryOut]:
        with self._session() as db:
            category = db.get(CategoryFinal, category_id)
            return self._category_out(category) if category else None

    def get_category_by_slug(self, slug: str) -> Optional[CategoryOut]:
        # Slugs are derived, not stored; the category list is small
        wanted = (slug or "").lower()
        for category in self.list_categories():
            if category.slug == wanted:
                return category
        return None

    def list_subcategories(self, category_id: Optional[int] = None) -> List[SubcategoryOut]:
        stmt = select(SubcategoryFinal)
        if category_id is not None:
            stmt = stmt.where(SubcategoryFinal.category_id == category_id)
        with self._session() as db:
            rows = db.execute(
                stmt.order_by(SubcategoryFinal.subcategory_name, SubcategoryFinal.subcategory_id)
            ).scalars().all()
            return [self._subcategory_out(s) for s in rows]

    def get_subcategory(self, subcategory_id: int) -> Optional[SubcategoryOut]:
        with self._session() as db:
            sub = db.get(SubcategoryFinal, subcategory_id)
            return self._subcategory_out(sub) if sub else None

    def list_brands(self) -> List[BrandOut]:
        with self._session() as db:
            rows = db.execute(select(BrandFinal).order_by(BrandFinal.brand_name, BrandFinal.brand_id)).scalars().all()
            return [self._brand_out(b) for b in rows]

    def get_brand(self, brand_id: int) -> Optional[BrandOut]:
        with self._session() as db:
            brand = db.get(BrandFinal, brand_id)
            return self._brand_out(brand) if brand else None
