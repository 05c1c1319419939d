import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.catalog.base import CatalogStore
from app.errors import StoreError
from app.models.blog import BLOG_PUBLISHED, BlogCategory, BlogPost
from app.schemas.blog import BlogCategoryOut, BlogPostOut

logger = logging.getLogger(__name__)


def like_pattern(text: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def contains_any(pattern: str, *columns):
    return or_(*[col.ilike(pattern, escape="\\") for col in columns])


def has_text(column):
    return and_(column.isnot(None), column != "")


class SqlCatalog(CatalogStore):
    """Shared plumbing for catalogs backed by a relational store.

    A session is opened per call and closed straight after, so the only
    state kept between requests is the engine's connection pool. Both SQL
    schemas keep blog content in the same tables, so it is served here.
    """

    def __init__(self, session_factory: sessionmaker, degrade_on_error: bool = True):
        super().__init__(degrade_on_error=degrade_on_error)
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Session:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            logger.error(f"Catalog query failed: {e}")
            raise StoreError("Catalog query failed") from e
        finally:
            db.close()

    def list_blog_posts(self) -> List[BlogPostOut]:
        with self._session() as db:
            rows = db.execute(
                select(BlogPost)
                .where(BlogPost.status == BLOG_PUBLISHED)
                .order_by(BlogPost.published_at.desc().nulls_last(), BlogPost.id)
            ).scalars().all()
            return [BlogPostOut.model_validate(p) for p in rows]

    def get_blog_post(self, slug: str) -> Optional[BlogPostOut]:
        with self._session() as db:
            post = db.execute(
                select(BlogPost).where(BlogPost.slug == slug, BlogPost.status == BLOG_PUBLISHED)
            ).scalars().first()
            return BlogPostOut.model_validate(post) if post else None

    def list_blog_categories(self) -> List[BlogCategoryOut]:
        with self._session() as db:
            rows = db.execute(select(BlogCategory).order_by(BlogCategory.name)).scalars().all()
            return [BlogCategoryOut.model_validate(c) for c in rows]
