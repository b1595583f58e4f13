import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from smartspend.core.config import settings

BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def normalize_database_url(url: str, base_dir: str = BACKEND_DIR) -> str:
    """
    postgres:// becomes postgresql://. Relative SQLite file paths resolve
    against base_dir, not the process cwd; absolute and in-memory URLs pass
    through untouched.
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    if url.startswith("sqlite:///") and url not in IN_MEMORY_URLS:
        path = url[len("sqlite:///"):]
        if path and not os.path.isabs(path):
            return f"sqlite:///{os.path.normpath(os.path.join(base_dir, path))}"
    return url


def make_engine(url: str):
    url = normalize_database_url(url)
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in IN_MEMORY_URLS:
        # an in-memory database lives on one connection; every session must share it
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = make_engine(settings.SMARTSPEND_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
