import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import StoreError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, action: str):
    """Commit everything done in the block, or nothing.

    Store failures are rolled back and re-raised as StoreError; domain
    errors raised inside the block roll back and propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{action} failed: {e}")
        raise StoreError(f"{action} failed") from e
    except Exception:
        db.rollback()
        raise


@contextmanager
def reading(db: Session, action: str):
    try:
        yield db
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{action} failed: {e}")
        raise StoreError(f"{action} failed") from e
