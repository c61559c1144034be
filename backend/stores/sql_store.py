from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any, Generic, Iterable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db import models
from services.errors import DuplicateAccount, EntryNotFound
from stores.base import (
    PROFILE_FIELDS,
    EntryT,
    GlucoseLog,
    HealthStore,
    Ledger,
    MealType,
    Profile,
    UserRecord,
    WeightEntry,
    coerce_meal_type,
    normalize_email,
)
from utils.datetime_utils import from_storage, to_storage

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", models.WeightEntry, models.GlucoseLog)


def _user_record(row: models.User) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email,
        display_name=row.display_name,
        password_hash=row.password_hash,
    )


def _profile_record(row: models.Profile) -> Profile:
    return Profile(
        user_id=row.user_id,
        name=row.name,
        birthdate=row.birthdate,
        height_cm=row.height_cm,
    )


class _SqlLedger(Ledger[EntryT], Generic[EntryT, RowT]):
    model: type[RowT]
    order_field: str

    def __init__(self, db: Session) -> None:
        self.db = db

    @abstractmethod
    def _to_record(self, row: RowT) -> EntryT:
        ...

    @abstractmethod
    def _values(self, entry: EntryT) -> dict[str, Any]:
        """Validated column values for `entry`; raises before any row is touched."""

    def _owned(self, user_id: int):
        return self.db.query(self.model).filter(self.model.user_id == user_id)

    def list(self, user_id: int) -> list[EntryT]:
        order_column = getattr(self.model, self.order_field)
        rows = self._owned(user_id).order_by(order_column.desc(), self.model.id.desc()).all()
        return [self._to_record(r) for r in rows]

    def add(self, user_id: int, entry: EntryT) -> EntryT:
        row = self.model(user_id=user_id, **self._values(entry))
        try:
            self.db.add(row)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(row)
        return self._to_record(row)

    def update(self, user_id: int, entry: EntryT) -> EntryT:
        row = self._owned(user_id).filter(self.model.id == entry.id).first() if entry.id is not None else None
        if row is None:
            raise EntryNotFound()
        values = self._values(entry)
        try:
            for key, value in values.items():
                setattr(row, key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(row)
        return self._to_record(row)

    def delete(self, user_id: int, entry_id: int) -> bool:
        return self.delete_many(user_id, [entry_id]) == 1

    def delete_many(self, user_id: int, entry_ids: Iterable[int]) -> int:
        ids = sorted({int(i) for i in entry_ids})
        if not ids:
            return 0
        try:
            removed = self._owned(user_id).filter(self.model.id.in_(ids)).delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return int(removed or 0)


class SqlWeightLedger(_SqlLedger[WeightEntry, models.WeightEntry]):
    model = models.WeightEntry
    order_field = "date"

    def _to_record(self, row: models.WeightEntry) -> WeightEntry:
        return WeightEntry(
            id=row.id,
            user_id=row.user_id,
            date=from_storage(row.date),
            weight_kg=row.weight_kg,
        )

    def _values(self, entry: WeightEntry) -> dict[str, Any]:
        return {"date": to_storage(entry.date), "weight_kg": float(entry.weight_kg)}


class SqlGlucoseLedger(_SqlLedger[GlucoseLog, models.GlucoseLog]):
    model = models.GlucoseLog
    order_field = "timestamp"

    def _to_record(self, row: models.GlucoseLog) -> GlucoseLog:
        return GlucoseLog(
            id=row.id,
            user_id=row.user_id,
            timestamp=from_storage(row.timestamp),
            meal_type=MealType(row.meal_type),
            glycemia=row.glycemia,
            dosage=row.dosage or 0.0,
        )

    def _values(self, entry: GlucoseLog) -> dict[str, Any]:
        return {
            "timestamp": to_storage(entry.timestamp),
            "meal_type": coerce_meal_type(entry.meal_type).value,
            "glycemia": float(entry.glycemia),
            "dosage": float(entry.dosage or 0.0),
        }


class SqlHealthStore(HealthStore):
    """Store backed by a SQLAlchemy session; each mutation commits on its own."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.weights = SqlWeightLedger(db)
        self.glucose = SqlGlucoseLedger(db)

    def create_user(self, *, email: str, display_name: str, password_hash: str) -> UserRecord:
        email_norm = normalize_email(email)
        if self.db.query(models.User).filter(models.User.email == email_norm).first():
            raise DuplicateAccount()
        user = models.User(email=email_norm, display_name=display_name, password_hash=password_hash)
        try:
            self.db.add(user)
            self.db.flush()
            self.db.add(models.Profile(user_id=user.id, name=display_name))
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent signup for the same email.
            self.db.rollback()
            raise DuplicateAccount()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return _user_record(user)

    def get_user(self, user_id: int) -> UserRecord | None:
        row = self.db.query(models.User).filter(models.User.id == user_id).first()
        return _user_record(row) if row else None

    def get_user_by_email(self, email: str) -> UserRecord | None:
        row = self.db.query(models.User).filter(models.User.email == normalize_email(email)).first()
        return _user_record(row) if row else None

    def get_profile(self, user_id: int) -> Profile | None:
        row = self.db.query(models.Profile).filter(models.Profile.user_id == user_id).first()
        return _profile_record(row) if row else None

    def update_profile(self, user_id: int, fields: dict[str, Any]) -> Profile | None:
        row = self.db.query(models.Profile).filter(models.Profile.user_id == user_id).first()
        if row is None:
            return None
        patch = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        for key, value in patch.items():
            setattr(row, key, value)
        if patch.get("name"):
            row.user.display_name = patch["name"]
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(row)
        logger.info("Profile updated for user %s (%s)", user_id, ", ".join(sorted(patch)) or "no fields")
        return _profile_record(row)
