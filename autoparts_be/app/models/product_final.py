from sqlalchemy import Column, Integer, Text, Numeric, ForeignKey
from app.models.base import Base


# Denormalized ("final") catalog as exported by the import pipeline.
# products_final_v3 carries brand/model names inline; there are no slugs,
# stock or availability columns.


class BrandFinal(Base):
    __tablename__ = "brands_final_v3"
    brand_id = Column(Integer, primary_key=True)
    brand_name = Column(Text, nullable=False)


class CategoryFinal(Base):
    __tablename__ = "categories_final_v3"
    category_id = Column(Integer, primary_key=True)
    category_name = Column(Text, nullable=False)


class SubcategoryFinal(Base):
    __tablename__ = "subcategories_final_v3"
    subcategory_id = Column(Integer, primary_key=True)
    subcategory_name = Column(Text, nullable=False)
    category_id = Column(Integer, nullable=False, index=True)
    category_name = Column(Text)
    taxonomy_id = Column(Integer)
    taxonomy_name = Column(Text)


class ModelFinal(Base):
    __tablename__ = "models_final_v3"
    model_id = Column(Integer, primary_key=True)
    brand_id = Column(Integer, nullable=False)
    brand_name = Column(Text)
    model_name = Column(Text, nullable=False)


class ProductFinal(Base):
    __tablename__ = "products_final_v3"
    product_id = Column(Integer, primary_key=True)
    part_name = Column(Text)
    part_number = Column(Text)
    price_value = Column(Numeric(12, 2))
    image_url = Column(Text)
    product_url = Column(Text)
    description = Column(Text)
    brand_id = Column(Integer, ForeignKey("brands_final_v3.brand_id"), index=True)
    brand_name = Column(Text)
    model_id = Column(Integer, ForeignKey("models_final_v3.model_id"))
    model_name = Column(Text)
    category_id = Column(Integer, ForeignKey("categories_final_v3.category_id"), index=True)
    subcategory_id = Column(Integer, ForeignKey("subcategories_final_v3.subcategory_id"), index=True)
    taxonomy_id = Column(Integer)
