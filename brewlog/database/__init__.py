"""Database package."""

from .db import (
    DatabaseBlobStorage,
    configure_engine,
    get_session,
    init_db,
    load_blob,
    save_blob,
)
from .models import StorageBlob

__all__ = [
    "DatabaseBlobStorage",
    "StorageBlob",
    "configure_engine",
    "get_session",
    "init_db",
    "load_blob",
    "save_blob",
]
