from sqlalchemy import Column, String, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.base import Base
from app.models.cart import new_id


BLOG_PUBLISHED = "published"
BLOG_DRAFT = "draft"


class BlogCategory(Base):
    __tablename__ = "blog_categories"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    posts = relationship("BlogPost", back_populates="category")


class BlogPost(Base):
    __tablename__ = "blog_posts"
    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(500), nullable=False)
    slug = Column(String(500), nullable=False, unique=True)
    category_id = Column(String(36), ForeignKey("blog_categories.id", ondelete="SET NULL"), index=True)
    author_id = Column(String(36))
    content = Column(Text, nullable=False)
    excerpt = Column(Text)
    featured_image = Column(Text)
    # Only published posts are ever served
    status = Column(String(50), default=BLOG_DRAFT, index=True)
    published_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("BlogCategory", back_populates="posts")
