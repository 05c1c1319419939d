from typing import List

from fastapi import APIRouter, Depends

from app.catalog.base import CatalogStore
from app.catalog.factory import get_catalog
from app.errors import NotFoundError
from app.schemas.blog import BlogCategoryOut, BlogPostOut

router = APIRouter()


# 17. Blog Posts (published, newest first)
@router.get("/posts", response_model=List[BlogPostOut])
def list_posts(catalog: CatalogStore = Depends(get_catalog)):
    return catalog.list_blog_posts()


# 18. Blog Post by slug
@router.get("/posts/{slug}", response_model=BlogPostOut)
def get_post(slug: str, catalog: CatalogStore = Depends(get_catalog)):
    post = catalog.get_blog_post(slug)
    if not post:
        raise NotFoundError("Blog post not found")
    return post


# 19. Blog Categories
@router.get("/categories", response_model=List[BlogCategoryOut])
def list_blog_categories(catalog: CatalogStore = Depends(get_catalog)):
    return catalog.list_blog_categories()
