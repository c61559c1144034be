from collections.abc import Generator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from config import settings
from db.database import get_db
from stores import HealthStore, MemoryHealthStore, SqlHealthStore


@lru_cache(maxsize=1)
def get_memory_store() -> MemoryHealthStore:
    return MemoryHealthStore()


def get_store(db: Session = Depends(get_db)) -> Generator[HealthStore, None, None]:
    """Store for the current request, chosen by STORAGE_BACKEND."""
    if settings.uses_memory_store:
        yield get_memory_store()
        return
    yield SqlHealthStore(db)
