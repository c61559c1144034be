from __future__ import annotations

import dataclasses
import enum
import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from client.backends import HealthBackend
from services.errors import GlucoTrackError, NotAuthenticated
from stores.base import AppUser, GlucoseLog, MealType, Profile, WeightEntry, sort_descending
from utils.health_metrics import calculate_age, calculate_bmi, glucose_trend

logger = logging.getLogger(__name__)


class AuthState(str, enum.Enum):
    LOADING = "loading"
    LOGGED_IN = "logged_in"
    LOGGED_OUT = "logged_out"


class AppState:
    """In-memory view of the signed-in user's data, kept in sync with a backend.

    Every mutation goes to the backend first and is then mirrored into the local
    lists, which are always sorted newest first.
    """

    def __init__(self, backend: HealthBackend) -> None:
        self.backend = backend
        self.auth_state = AuthState.LOADING
        self.user: Optional[AppUser] = None
        self.profile: Optional[Profile] = None
        self.weight_history: list[WeightEntry] = []
        self.glucose_logs: list[GlucoseLog] = []

    def _clear(self) -> None:
        self.user = None
        self.profile = None
        self.weight_history = []
        self.glucose_logs = []
        self.auth_state = AuthState.LOGGED_OUT

    def _require_user(self) -> AppUser:
        if self.user is None:
            raise NotAuthenticated()
        return self.user

    def _sign_out_after_failure(self) -> None:
        try:
            self.backend.logout()
        except GlucoTrackError:
            logger.warning("Backend logout failed while recovering, clearing local session")
        finally:
            self._clear()

    def _load_user_data(self, user: AppUser) -> None:
        try:
            profile = self.backend.get_profile()
            if profile is None:
                logger.warning("No profile for user %s, signing out", user.id)
                self._sign_out_after_failure()
                return
            weights = self.backend.list_weights()
            logs = self.backend.list_glucose_logs()
        except GlucoTrackError:
            logger.exception("Failed to load data for user %s, signing out", user.id)
            self._sign_out_after_failure()
            return

        self.user = user
        self.profile = profile
        self.weight_history = sort_descending(weights)
        self.glucose_logs = sort_descending(logs)
        self.auth_state = AuthState.LOGGED_IN

    # --- Session ---

    def restore_session(self) -> AuthState:
        self.auth_state = AuthState.LOADING
        try:
            user = self.backend.current_user()
        except GlucoTrackError:
            logger.exception("Could not restore session")
            self._clear()
            return self.auth_state
        if user is None:
            self._clear()
        else:
            self._load_user_data(user)
        return self.auth_state

    def signup(self, email: str, password: str, name: str) -> AppUser:
        user = self.backend.signup(email, password, name)
        self._load_user_data(user)
        return user

    def login(self, email: str, password: str) -> AppUser:
        user = self.backend.login(email, password)
        self._load_user_data(user)
        return user

    def logout(self) -> None:
        try:
            self.backend.logout()
        finally:
            self._clear()

    # --- Profile ---

    def update_profile(self, **fields: Any) -> Profile:
        user = self._require_user()
        profile = self.backend.update_profile(fields)
        self.profile = profile
        if profile.name and profile.name != user.display_name:
            self.user = dataclasses.replace(user, display_name=profile.name)
        return profile

    # --- Weight ---

    def add_weight_entry(self, weight: float, date: Optional[datetime] = None) -> WeightEntry:
        self._require_user()
        entry = self.backend.add_weight(weight, date)
        self.weight_history = sort_descending([*self.weight_history, entry])
        return entry

    def update_weight_entry(self, entry: WeightEntry) -> WeightEntry:
        self._require_user()
        updated = self.backend.update_weight(entry)
        self.weight_history = sort_descending(
            [updated if e.id == updated.id else e for e in self.weight_history]
        )
        return updated

    def delete_weight_entry(self, entry_id: int) -> None:
        self.delete_weight_entries([entry_id])

    def delete_weight_entries(self, entry_ids: Iterable[int]) -> None:
        self._require_user()
        ids = set(entry_ids)
        if not ids:
            return
        if len(ids) == 1:
            self.backend.delete_weight(next(iter(ids)))
        else:
            self.backend.delete_weights(ids)
        self.weight_history = [e for e in self.weight_history if e.id not in ids]

    # --- Glucose ---

    def add_glucose_log(
        self,
        glycemia: float,
        meal_type: MealType | str = MealType.FASTING,
        dosage: float = 0.0,
        timestamp: Optional[datetime] = None,
    ) -> GlucoseLog:
        self._require_user()
        log = self.backend.add_glucose_log(glycemia, meal_type, dosage, timestamp)
        self.glucose_logs = sort_descending([*self.glucose_logs, log])
        return log

    def update_glucose_log(self, log: GlucoseLog) -> GlucoseLog:
        self._require_user()
        updated = self.backend.update_glucose_log(log)
        self.glucose_logs = sort_descending(
            [updated if g.id == updated.id else g for g in self.glucose_logs]
        )
        return updated

    def delete_glucose_log(self, log_id: int) -> None:
        self.delete_glucose_logs([log_id])

    def delete_glucose_logs(self, log_ids: Iterable[int]) -> None:
        self._require_user()
        ids = set(log_ids)
        if not ids:
            return
        if len(ids) == 1:
            self.backend.delete_glucose_log(next(iter(ids)))
        else:
            self.backend.delete_glucose_logs(ids)
        self.glucose_logs = [g for g in self.glucose_logs if g.id not in ids]

    # --- Derived ---

    @property
    def latest_weight(self) -> Optional[WeightEntry]:
        return self.weight_history[0] if self.weight_history else None

    @property
    def bmi(self) -> Optional[float]:
        latest = self.latest_weight
        return calculate_bmi(
            self.profile.height_cm if self.profile else None,
            latest.weight_kg if latest else None,
        )

    @property
    def age(self) -> Optional[int]:
        return calculate_age(self.profile.birthdate if self.profile else None)

    @property
    def latest_glucose(self) -> Optional[GlucoseLog]:
        return self.glucose_logs[0] if self.glucose_logs else None

    @property
    def glucose_trend(self) -> Optional[str]:
        latest = self.glucose_logs[0].glycemia if self.glucose_logs else None
        previous = self.glucose_logs[1].glycemia if len(self.glucose_logs) > 1 else None
        return glucose_trend(latest, previous)
