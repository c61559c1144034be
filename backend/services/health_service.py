"""Profile and ledger operations shared by the HTTP routes and the local client backend."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable

from services.errors import EntryNotFound, InvalidInput
from stores.base import GlucoseLog, HealthStore, MealType, Profile, WeightEntry, coerce_meal_type
from utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


def get_profile(store: HealthStore, user_id: int) -> Profile | None:
    return store.get_profile(user_id)


def update_profile(store: HealthStore, user_id: int, fields: dict[str, Any]) -> Profile:
    if "name" in fields:
        name = fields["name"]
        if name is None or not str(name).strip():
            raise InvalidInput("Name cannot be empty")
        fields = {**fields, "name": " ".join(str(name).split())}
    profile = store.update_profile(user_id, fields)
    if profile is None:
        raise EntryNotFound("Profile not found.")
    return profile


# --- Weight ---

def list_weights(store: HealthStore, user_id: int) -> list[WeightEntry]:
    return store.weights.list(user_id)


def add_weight(store: HealthStore, user_id: int, weight_kg: float, date: datetime | None = None) -> WeightEntry:
    entry = store.weights.add(user_id, WeightEntry(date=date or utcnow(), weight_kg=weight_kg))
    logger.info("Weight entry %s added for user %s", entry.id, user_id)
    return entry


def update_weight(store: HealthStore, user_id: int, entry: WeightEntry) -> WeightEntry:
    return store.weights.update(user_id, entry)


def delete_weight(store: HealthStore, user_id: int, entry_id: int) -> bool:
    return store.weights.delete(user_id, entry_id)


def delete_weights(store: HealthStore, user_id: int, entry_ids: Iterable[int]) -> int:
    removed = store.weights.delete_many(user_id, entry_ids)
    logger.info("Removed %s weight entries for user %s", removed, user_id)
    return removed


# --- Glucose ---

def list_glucose_logs(store: HealthStore, user_id: int) -> list[GlucoseLog]:
    return store.glucose.list(user_id)


def add_glucose_log(
    store: HealthStore,
    user_id: int,
    *,
    glycemia: float,
    meal_type: MealType | str,
    dosage: float = 0.0,
    timestamp: datetime | None = None,
) -> GlucoseLog:
    log = store.glucose.add(
        user_id,
        GlucoseLog(
            timestamp=timestamp or utcnow(),
            meal_type=coerce_meal_type(meal_type),
            glycemia=glycemia,
            dosage=dosage,
        ),
    )
    logger.info("Glucose log %s added for user %s", log.id, user_id)
    return log


def update_glucose_log(store: HealthStore, user_id: int, log: GlucoseLog) -> GlucoseLog:
    return store.glucose.update(user_id, log)


def delete_glucose_log(store: HealthStore, user_id: int, log_id: int) -> bool:
    return store.glucose.delete(user_id, log_id)


def delete_glucose_logs(store: HealthStore, user_id: int, log_ids: Iterable[int]) -> int:
    removed = store.glucose.delete_many(user_id, log_ids)
    logger.info("Removed %s glucose logs for user %s", removed, user_id)
    return removed
