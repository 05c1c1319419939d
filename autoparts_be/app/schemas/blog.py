from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Optional


class BlogCategoryOut(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BlogPostOut(BaseModel):
    id: str
    title: str
    slug: str
    category_id: Optional[str] = None
    author_id: Optional[str] = None
    content: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    status: str
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
