from stores.base import (
    AppUser,
    GlucoseLog,
    HealthStore,
    Ledger,
    MealType,
    Profile,
    UserRecord,
    WeightEntry,
)
from stores.memory_store import MemoryHealthStore
from stores.sql_store import SqlHealthStore

__all__ = [
    "AppUser",
    "GlucoseLog",
    "HealthStore",
    "Ledger",
    "MealType",
    "MemoryHealthStore",
    "Profile",
    "SqlHealthStore",
    "UserRecord",
    "WeightEntry",
]
