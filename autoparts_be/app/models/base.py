from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import get_settings


def normalize_database_url(url: str) -> str:
    """Heroku-style postgres:// URLs are not accepted by SQLAlchemy 1.4+."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def make_engine(url: str):
    url = normalize_database_url(url)
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        return create_engine(url, connect_args={"check_same_thread": False}, future=True)
    return create_engine(url, pool_pre_ping=True, future=True)


DATABASE_URL = normalize_database_url(get_settings().DATABASE_URL)

# Process-wide pool; created here, disposed on app shutdown
engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
