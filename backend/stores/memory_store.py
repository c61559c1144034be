from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from typing import Any, Iterable

from services.errors import DuplicateAccount, EntryNotFound
from stores.base import (
    PROFILE_FIELDS,
    EntryT,
    GlucoseLog,
    HealthStore,
    Ledger,
    Profile,
    UserRecord,
    WeightEntry,
    coerce_meal_type,
    normalize_email,
    sort_descending,
)
from utils.datetime_utils import from_storage, to_storage


def _normalized(entry: EntryT) -> EntryT:
    if isinstance(entry, WeightEntry):
        return replace(entry, date=from_storage(to_storage(entry.date)))
    return replace(
        entry,
        timestamp=from_storage(to_storage(entry.timestamp)),
        meal_type=coerce_meal_type(entry.meal_type),
    )


class MemoryLedger(Ledger[EntryT]):
    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock
        self._entries: dict[int, EntryT] = {}
        self._ids = itertools.count(1)

    def list(self, user_id: int) -> list[EntryT]:
        with self._lock:
            owned = [e for e in self._entries.values() if e.user_id == user_id]
        return sort_descending(owned)

    def add(self, user_id: int, entry: EntryT) -> EntryT:
        with self._lock:
            stored = replace(_normalized(entry), id=next(self._ids), user_id=user_id)
            self._entries[stored.id] = stored
        return stored

    def update(self, user_id: int, entry: EntryT) -> EntryT:
        with self._lock:
            current = self._entries.get(entry.id) if entry.id is not None else None
            if current is None or current.user_id != user_id:
                raise EntryNotFound()
            stored = _normalized(replace(entry, user_id=user_id))
            self._entries[stored.id] = stored
        return stored

    def delete(self, user_id: int, entry_id: int) -> bool:
        return self.delete_many(user_id, [entry_id]) == 1

    def delete_many(self, user_id: int, entry_ids: Iterable[int]) -> int:
        wanted = set(entry_ids)
        if not wanted:
            return 0
        with self._lock:
            doomed = [i for i in wanted if i in self._entries and self._entries[i].user_id == user_id]
            for entry_id in doomed:
                del self._entries[entry_id]
        return len(doomed)


class MemoryHealthStore(HealthStore):
    """In-process store; data lives as long as the instance."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[int, UserRecord] = {}
        self._profiles: dict[int, Profile] = {}
        self._user_ids = itertools.count(1)
        self.weights: MemoryLedger[WeightEntry] = MemoryLedger(threading.Lock())
        self.glucose: MemoryLedger[GlucoseLog] = MemoryLedger(threading.Lock())

    def create_user(self, *, email: str, display_name: str, password_hash: str) -> UserRecord:
        email_norm = normalize_email(email)
        with self._lock:
            if any(u.email == email_norm for u in self._users.values()):
                raise DuplicateAccount()
            user = UserRecord(
                id=next(self._user_ids),
                email=email_norm,
                display_name=display_name,
                password_hash=password_hash,
            )
            self._users[user.id] = user
            self._profiles[user.id] = Profile(user_id=user.id, name=display_name)
        return user

    def get_user(self, user_id: int) -> UserRecord | None:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> UserRecord | None:
        email_norm = normalize_email(email)
        with self._lock:
            return next((u for u in self._users.values() if u.email == email_norm), None)

    def get_profile(self, user_id: int) -> Profile | None:
        with self._lock:
            return self._profiles.get(user_id)

    def update_profile(self, user_id: int, fields: dict[str, Any]) -> Profile | None:
        patch = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        with self._lock:
            current = self._profiles.get(user_id)
            if current is None:
                return None
            updated = replace(current, **patch)
            self._profiles[user_id] = updated
            if "name" in patch and patch["name"]:
                self._users[user_id] = replace(self._users[user_id], display_name=patch["name"])
        return updated
