"""Database connection, session management, and key-value access."""

from pathlib import Path
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session as OrmSession

from .models import Base, StorageBlob

# ── paths ────────────────────────────────────────────────────────────────────

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "BrewLog"
DB_PATH = APP_SUPPORT_DIR / "brewlog.db"

# ── engine & session factory (created lazily) ─────────────────────────────

_engine = None
_SessionFactory = None


def _get_engine():
    global _engine
    if _engine is None:
        APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
        _engine = create_engine(
            f"sqlite:///{DB_PATH}",
            connect_args={"check_same_thread": False},
            echo=False,
        )
    return _engine


def _get_session_factory():
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=_get_engine(), expire_on_commit=False)
    return _SessionFactory


# ── public API ────────────────────────────────────────────────────────────


def configure_engine(url: str) -> None:
    """Override the database connection URL.  Used by tests to point at
    an in-memory SQLite database instead of the real one on disk."""
    global _engine, _SessionFactory
    _SessionFactory = None
    _engine = create_engine(
        url,
        connect_args={"check_same_thread": False},
        echo=False,
    )


def init_db() -> None:
    """Create all tables."""
    Base.metadata.create_all(_get_engine())


@contextmanager
def get_session():
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    factory = _get_session_factory()
    session: OrmSession = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def load_blob(key: str) -> str | None:
    """Return the value stored under *key*, or None."""
    with get_session() as db:
        record = db.get(StorageBlob, key)
        return record.value if record else None


def save_blob(key: str, value: str) -> None:
    """Replace the whole value stored under *key*."""
    with get_session() as db:
        record = db.get(StorageBlob, key)
        if record is None:
            db.add(StorageBlob(key=key, value=value))
        else:
            record.value = value


class DatabaseBlobStorage:
    """Adapter giving the session store a ``load``/``save`` interface over
    the module-level database functions.

    Tables are created on first use, so a fresh install needs no separate
    ``init_db()`` call.
    """

    def __init__(self) -> None:
        self._ready = False

    def load(self, key: str) -> str | None:
        self._ensure_tables()
        return load_blob(key)

    def save(self, key: str, value: str) -> None:
        self._ensure_tables()
        save_blob(key, value)

    def _ensure_tables(self) -> None:
        if not self._ready:
            init_db()
            self._ready = True
