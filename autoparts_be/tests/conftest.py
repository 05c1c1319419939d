"""Shared fixtures: an in-memory SQLite store, the three catalog backends
loaded with the same dataset, and a TestClient wired to both."""

import os

# Settings are read at import time; keep tests off any real database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CATALOG_BACKEND", "memory")
os.environ.setdefault("CATALOG_DATA_DIR", "./does-not-exist")

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.catalog.base import completeness_tier
from app.catalog.factory import get_catalog
from app.catalog.final import FinalCatalog
from app.catalog.legacy import LegacyCatalog
from app.catalog.memory import MemoryCatalog, product_from_row
from app.main import app
from app.models.base import Base, get_db
from app.models.blog import BlogCategory, BlogPost
from app.models.product import Brand, Category, Product, ProductImage, Subcategory
from app.models.product_final import BrandFinal, CategoryFinal, ProductFinal, SubcategoryFinal
from app.schemas.blog import BlogCategoryOut, BlogPostOut
from app.schemas.lookup import BrandOut, CategoryOut, SubcategoryOut
from app.schemas.product import ProductImageOut

from app.models.cart import Cart, CartItem  # noqa: F401  register cart tables
from app.models.order import Order, OrderItem  # noqa: F401  register order tables


BRANDS = [(1, "Toyota"), (2, "Nissan")]
CATEGORIES = [(1, "Brakes"), (2, "Engine"), (3, "Suspension")]
SUBCATEGORIES = [(10, "Brake Pads", 1), (20, "Filters", 2), (30, "Shock Absorbers", 3)]


def _product(pid, name, description, brand_id, model, oem, price, category_id, subcategory_id):
    make = dict(BRANDS)[brand_id]
    return {
        "id": pid,
        "name": name,
        "description": description,
        "vehicle_make": make,
        "vehicle_model": model,
        "oem_part_number": oem,
        "price": price,
        "brand_id": brand_id,
        "category_id": category_id,
        "subcategory_id": subcategory_id,
    }


def _dataset():
    rows = []
    # 48 shock absorbers between 10,100 and 14,800; every fifth has no description
    for i in range(1, 49):
        brand_id = 1 if i % 2 else 2
        rows.append(_product(
            i,
            f"Shock Absorber {i}",
            None if i % 5 == 0 else f"Gas shock absorber, rear, variant {i}",
            brand_id,
            "Corolla" if brand_id == 1 else "X-Trail",
            f"SA-{i:04d}",
            f"{10000 + i * 100}.00",
            3,
            30,
        ))
    # Suspension parts just outside the 10,000..20,000 band
    rows.append(_product(51, "Strut Mount", "Front strut top mount", 1, "Corolla", "SM-0051", "9999.99", 3, 30))
    rows.append(_product(52, "Coilover Kit", "Adjustable coilover set", 2, "X-Trail", "CK-0052", "20000.01", 3, 30))
    # Band edges are inclusive
    rows.append(_product(53, "Leaf Spring", "Heavy duty leaf spring", 2, "Navara", "LS-0053", "10000.00", 3, 30))
    rows.append(_product(54, "Stabilizer Link", None, 1, "Hilux", "SL-0054", "20000.00", 3, 30))
    # Other categories
    rows.append(_product(60, "Brake Pad Set", "Ceramic front brake pads", 1, "Corolla", "BP-0060", "500.00", 1, 10))
    rows.append(_product(61, "Brake Disc", "Vented brake disc 100%", 2, "Note", "BD_0061", "1500.00", 1, 10))
    rows.append(_product(62, "Oil Filter", "Spin-on oil filter", 1, "Vitz", "OF-0062", "850.50", 2, 20))
    rows.append(_product(63, "Air Filter", None, 2, "Note", "AF-0063", "1200.00", 2, 20))
    return rows


PRODUCT_ROWS = _dataset()
IMAGES = [("img-60-a", 60, "https://cdn.example.com/bp-1.jpg", 1), ("img-60-b", 60, "https://cdn.example.com/bp-2.jpg", 2)]
BLOG_CATEGORIES = [("guides", "Product Guides"), ("tips", "Maintenance Tips")]
# id, title, slug, category, status, published_at
BLOG_POSTS = [
    ("post-old", "Checking Brake Fluid", "checking-brake-fluid", "tips", "published", datetime(2025, 1, 10)),
    ("post-draft", "Coilovers Explained", "coilovers-explained", "guides", "draft", None),
    ("post-new", "Choosing Oil Filters", "choosing-oil-filters", "guides", "published", datetime(2025, 3, 2)),
]


def _blog_post_fields(post):
    pid, title, slug, category_id, status, published_at = post
    return {
        "id": pid,
        "title": title,
        "slug": slug,
        "category_id": category_id,
        "content": f"<p>{title}</p>",
        "status": status,
        "published_at": published_at,
    }


def _seed_blog(db):
    db.add_all([BlogCategory(id=i, name=n, slug=i) for i, n in BLOG_CATEGORIES])
    db.add_all([BlogPost(**_blog_post_fields(p)) for p in BLOG_POSTS])


def expected_order(rows):
    """Ids of ``rows`` in the listing order every backend must use."""
    return [
        r["id"]
        for r in sorted(rows, key=lambda r: (completeness_tier(bool(r["name"]), bool(r["description"])), -r["id"]))
    ]


def make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    return engine


def build_memory_catalog(rows=None, degrade_on_error=True):
    return MemoryCatalog(
        products=[product_from_row(r) for r in (rows or PRODUCT_ROWS)],
        categories=[CategoryOut(id=i, name=n, slug=n.lower()) for i, n in CATEGORIES],
        subcategories=[
            SubcategoryOut(id=i, name=n, slug=f"{n.lower().replace(' ', '-')}-{i}", category_id=c)
            for i, n, c in SUBCATEGORIES
        ],
        brands=[BrandOut(id=i, name=n, slug=f"{n.lower()}-{i}") for i, n in BRANDS],
        images=[ProductImageOut(id=i, product_id=p, image_url=u, display_order=o) for i, p, u, o in IMAGES],
        blog_posts=[BlogPostOut(**_blog_post_fields(p)) for p in BLOG_POSTS],
        blog_categories=[BlogCategoryOut(id=i, name=n, slug=i) for i, n in BLOG_CATEGORIES],
        degrade_on_error=degrade_on_error,
    )


def build_legacy_catalog(session_factory, degrade_on_error=True):
    db = session_factory()
    try:
        db.add_all([Brand(id=i, name=n, slug=f"{n.lower()}-{i}") for i, n in BRANDS])
        db.add_all([Category(id=i, name=n, slug=n.lower()) for i, n in CATEGORIES])
        db.add_all([
            Subcategory(id=i, name=n, slug=f"{n.lower().replace(' ', '-')}-{i}", category_id=c)
            for i, n, c in SUBCATEGORIES
        ])
        db.add_all([
            Product(
                id=r["id"],
                name=r["name"],
                slug=f"product-{r['id']}",
                sku=r["oem_part_number"],
                price=Decimal(r["price"]),
                vehicle_make=r["vehicle_make"],
                vehicle_model=r["vehicle_model"],
                brand_id=r["brand_id"],
                category_id=r["category_id"],
                subcategory_id=r["subcategory_id"],
                oem_part_number=r["oem_part_number"],
                description=r["description"],
                available=True,
            )
            for r in PRODUCT_ROWS
        ])
        db.add_all([ProductImage(id=i, product_id=p, image_url=u, display_order=o) for i, p, u, o in IMAGES])
        _seed_blog(db)
        db.commit()
    finally:
        db.close()
    return LegacyCatalog(session_factory, degrade_on_error=degrade_on_error)


def build_final_catalog(session_factory, degrade_on_error=True):
    db = session_factory()
    try:
        db.add_all([BrandFinal(brand_id=i, brand_name=n) for i, n in BRANDS])
        db.add_all([CategoryFinal(category_id=i, category_name=n) for i, n in CATEGORIES])
        db.add_all([
            SubcategoryFinal(subcategory_id=i, subcategory_name=n, category_id=c)
            for i, n, c in SUBCATEGORIES
        ])
        db.add_all([
            ProductFinal(
                product_id=r["id"],
                part_name=r["name"],
                part_number=r["oem_part_number"],
                price_value=Decimal(r["price"]),
                description=r["description"],
                brand_id=r["brand_id"],
                brand_name=r["vehicle_make"],
                model_name=r["vehicle_model"],
                category_id=r["category_id"],
                subcategory_id=r["subcategory_id"],
                image_url=f"https://cdn.example.com/p-{r['id']}.jpg",
            )
            for r in PRODUCT_ROWS
        ])
        _seed_blog(db)
        db.commit()
    finally:
        db.close()
    return FinalCatalog(session_factory, degrade_on_error=degrade_on_error)


@pytest.fixture
def engine():
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(params=["memory", "legacy", "final"])
def catalog(request):
    """Each catalog backend over the same dataset, on its own store."""
    if request.param == "memory":
        yield build_memory_catalog()
        return
    engine = make_engine()
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    if request.param == "legacy":
        yield build_legacy_catalog(factory)
    else:
        yield build_final_catalog(factory)
    engine.dispose()


@pytest.fixture
def memory_catalog():
    return build_memory_catalog()


@pytest.fixture
def client(session_factory, memory_catalog):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_catalog] = lambda: memory_catalog
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_headers():
    return {"X-Session-Id": "test-session-0001"}
