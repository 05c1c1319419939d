import logging
from functools import lru_cache

from app.catalog.base import CatalogStore
from app.config import get_settings

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "legacy", "final")


def build_catalog(backend: str, data_dir: str = "./data", degrade_on_error: bool = True) -> CatalogStore:
    if backend == "memory":
        from app.catalog.memory import MemoryCatalog
        return MemoryCatalog.from_directory(data_dir, degrade_on_error=degrade_on_error)

    from app.models.base import SessionLocal
    if backend == "legacy":
        from app.catalog.legacy import LegacyCatalog
        return LegacyCatalog(SessionLocal, degrade_on_error=degrade_on_error)
    if backend == "final":
        from app.catalog.final import FinalCatalog
        return FinalCatalog(SessionLocal, degrade_on_error=degrade_on_error)
    raise ValueError(f"Unknown CATALOG_BACKEND {backend!r}; expected one of {', '.join(BACKENDS)}")


@lru_cache
def get_catalog() -> CatalogStore:
    """Process-wide catalog, built on first use from settings (FastAPI dependency)."""
    settings = get_settings()
    logger.info(f"Using {settings.CATALOG_BACKEND} catalog")
    return build_catalog(
        settings.CATALOG_BACKEND,
        data_dir=settings.CATALOG_DATA_DIR,
        degrade_on_error=settings.CATALOG_DEGRADE_ON_ERROR,
    )
