from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable

from services import account_service, health_service
from services.errors import NotAuthenticated
from stores.base import AppUser, GlucoseLog, HealthStore, MealType, Profile, WeightEntry

logger = logging.getLogger(__name__)


class HealthBackend(ABC):
    """Session-scoped data access used by the state container."""

    @abstractmethod
    def signup(self, email: str, password: str, name: str) -> AppUser:
        ...

    @abstractmethod
    def login(self, email: str, password: str) -> AppUser:
        ...

    @abstractmethod
    def logout(self) -> None:
        ...

    @abstractmethod
    def current_user(self) -> AppUser | None:
        ...

    @abstractmethod
    def get_profile(self) -> Profile | None:
        ...

    @abstractmethod
    def update_profile(self, fields: dict[str, Any]) -> Profile:
        ...

    @abstractmethod
    def list_weights(self) -> list[WeightEntry]:
        ...

    @abstractmethod
    def add_weight(self, weight_kg: float, date: datetime | None = None) -> WeightEntry:
        ...

    @abstractmethod
    def update_weight(self, entry: WeightEntry) -> WeightEntry:
        ...

    @abstractmethod
    def delete_weight(self, entry_id: int) -> None:
        ...

    @abstractmethod
    def delete_weights(self, entry_ids: Iterable[int]) -> int:
        ...

    @abstractmethod
    def list_glucose_logs(self) -> list[GlucoseLog]:
        ...

    @abstractmethod
    def add_glucose_log(
        self,
        glycemia: float,
        meal_type: MealType | str,
        dosage: float = 0.0,
        timestamp: datetime | None = None,
    ) -> GlucoseLog:
        ...

    @abstractmethod
    def update_glucose_log(self, log: GlucoseLog) -> GlucoseLog:
        ...

    @abstractmethod
    def delete_glucose_log(self, log_id: int) -> None:
        ...

    @abstractmethod
    def delete_glucose_logs(self, log_ids: Iterable[int]) -> int:
        ...


class LocalBackend(HealthBackend):
    """Talks to a HealthStore in-process; the session reference is the user id held here."""

    def __init__(self, store: HealthStore) -> None:
        self.store = store
        self._user_id: int | None = None

    def _require_user_id(self) -> int:
        if self._user_id is None:
            raise NotAuthenticated()
        return self._user_id

    def signup(self, email: str, password: str, name: str) -> AppUser:
        user = account_service.signup(self.store, email, password, name)
        self._user_id = user.id
        return user.public()

    def login(self, email: str, password: str) -> AppUser:
        user = account_service.authenticate(self.store, email, password)
        self._user_id = user.id
        return user.public()

    def logout(self) -> None:
        self._user_id = None

    def current_user(self) -> AppUser | None:
        if self._user_id is None:
            return None
        user = self.store.get_user(self._user_id)
        if user is None:
            logger.warning("Session refers to missing user %s", self._user_id)
            self._user_id = None
            return None
        return user.public()

    def get_profile(self) -> Profile | None:
        return health_service.get_profile(self.store, self._require_user_id())

    def update_profile(self, fields: dict[str, Any]) -> Profile:
        return health_service.update_profile(self.store, self._require_user_id(), fields)

    def list_weights(self) -> list[WeightEntry]:
        return health_service.list_weights(self.store, self._require_user_id())

    def add_weight(self, weight_kg: float, date: datetime | None = None) -> WeightEntry:
        return health_service.add_weight(self.store, self._require_user_id(), weight_kg, date)

    def update_weight(self, entry: WeightEntry) -> WeightEntry:
        return health_service.update_weight(self.store, self._require_user_id(), entry)

    def delete_weight(self, entry_id: int) -> None:
        health_service.delete_weight(self.store, self._require_user_id(), entry_id)

    def delete_weights(self, entry_ids: Iterable[int]) -> int:
        return health_service.delete_weights(self.store, self._require_user_id(), entry_ids)

    def list_glucose_logs(self) -> list[GlucoseLog]:
        return health_service.list_glucose_logs(self.store, self._require_user_id())

    def add_glucose_log(
        self,
        glycemia: float,
        meal_type: MealType | str,
        dosage: float = 0.0,
        timestamp: datetime | None = None,
    ) -> GlucoseLog:
        return health_service.add_glucose_log(
            self.store,
            self._require_user_id(),
            glycemia=glycemia,
            meal_type=meal_type,
            dosage=dosage,
            timestamp=timestamp,
        )

    def update_glucose_log(self, log: GlucoseLog) -> GlucoseLog:
        return health_service.update_glucose_log(self.store, self._require_user_id(), log)

    def delete_glucose_log(self, log_id: int) -> None:
        health_service.delete_glucose_log(self.store, self._require_user_id(), log_id)

    def delete_glucose_logs(self, log_ids: Iterable[int]) -> int:
        return health_service.delete_glucose_logs(self.store, self._require_user_id(), log_ids)
