"""Backend-agnostic records and the store interface every backend implements."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generic, Iterable, TypeVar

from services.errors import InvalidInput


class MealType(str, enum.Enum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"
    FASTING = "Fasting"


def coerce_meal_type(value: MealType | str) -> MealType:
    try:
        return MealType(value)
    except ValueError:
        raise InvalidInput(f"Unknown meal type: {value!r}")


PROFILE_FIELDS = ("name", "birthdate", "height_cm")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class AppUser:
    id: int
    email: str
    display_name: str


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    display_name: str
    password_hash: str

    def public(self) -> AppUser:
        return AppUser(id=self.id, email=self.email, display_name=self.display_name)


@dataclass(frozen=True)
class Profile:
    user_id: int
    name: str
    birthdate: date | None = None
    height_cm: float | None = None


@dataclass(frozen=True)
class WeightEntry:
    date: datetime
    weight_kg: float
    id: int | None = None
    user_id: int | None = None

    @property
    def when(self) -> datetime:
        return self.date


@dataclass(frozen=True)
class GlucoseLog:
    timestamp: datetime
    meal_type: MealType
    glycemia: float
    dosage: float = 0.0
    id: int | None = None
    user_id: int | None = None

    @property
    def when(self) -> datetime:
        return self.timestamp


EntryT = TypeVar("EntryT", WeightEntry, GlucoseLog)


def sort_descending(entries: Iterable[EntryT]) -> list[EntryT]:
    return sorted(entries, key=lambda e: e.when, reverse=True)


class Ledger(ABC, Generic[EntryT]):
    """Per-user collection of dated records, listed newest first."""

    @abstractmethod
    def list(self, user_id: int) -> list[EntryT]:
        ...

    @abstractmethod
    def add(self, user_id: int, entry: EntryT) -> EntryT:
        """Persist `entry` for the user and return it with its generated id."""

    @abstractmethod
    def update(self, user_id: int, entry: EntryT) -> EntryT:
        """Replace the values of an owned entry; raises EntryNotFound."""

    @abstractmethod
    def delete(self, user_id: int, entry_id: int) -> bool:
        ...

    @abstractmethod
    def delete_many(self, user_id: int, entry_ids: Iterable[int]) -> int:
        ...


class HealthStore(ABC):
    weights: Ledger[WeightEntry]
    glucose: Ledger[GlucoseLog]

    @abstractmethod
    def create_user(self, *, email: str, display_name: str, password_hash: str) -> UserRecord:
        """Create the user and a default profile; raises DuplicateAccount."""

    @abstractmethod
    def get_user(self, user_id: int) -> UserRecord | None:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> UserRecord | None:
        ...

    @abstractmethod
    def get_profile(self, user_id: int) -> Profile | None:
        ...

    @abstractmethod
    def update_profile(self, user_id: int, fields: dict[str, Any]) -> Profile | None:
        """Apply only the keys present in `fields`; None when the user is unknown."""
