from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable

import httpx

from client.backends import HealthBackend
from config import settings
from services.errors import (
    DuplicateAccount,
    EntryNotFound,
    GlucoTrackError,
    InvalidCredentials,
    NotAuthenticated,
)
from stores.base import AppUser, GlucoseLog, MealType, Profile, WeightEntry, coerce_meal_type

logger = logging.getLogger(__name__)


class ApiError(GlucoTrackError):
    """Any HTTP failure without a dedicated error type."""

    def __init__(self, message: str | None = None, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


def _detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        # FastAPI validation errors
        first = detail[0] if isinstance(detail[0], dict) else {}
        return str(first.get("msg") or detail)
    return resp.reason_phrase


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _user(data: dict) -> AppUser:
    return AppUser(id=int(data["id"]), email=data["email"], display_name=data["display_name"])


def _weight(data: dict) -> WeightEntry:
    return WeightEntry(id=int(data["id"]), date=_parse_datetime(data["date"]), weight_kg=float(data["weight_kg"]))


def _glucose(data: dict) -> GlucoseLog:
    return GlucoseLog(
        id=int(data["id"]),
        timestamp=_parse_datetime(data["timestamp"]),
        meal_type=MealType(data["meal_type"]),
        glycemia=float(data["glycemia"]),
        dosage=float(data.get("dosage") or 0.0),
    )


def _profile(data: dict) -> Profile:
    birthdate = data.get("birthdate")
    return Profile(
        user_id=int(data["user_id"]),
        name=data["name"],
        birthdate=date.fromisoformat(birthdate) if birthdate else None,
        height_cm=data.get("height_cm"),
    )


def _json_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, MealType):
        return value.value
    return value


class ApiClient(HealthBackend):
    """HTTP backend for the state container.

    Any `httpx.Client` can be injected (FastAPI's TestClient included); otherwise one
    is created against `API_BASE_URL`. The session token is kept both as the cookie
    the server sets and as a bearer header.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        http: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.Client(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout or settings.API_TIMEOUT_SECONDS,
        )
        self._token: str | None = None

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
        on_unauthorized: type[GlucoTrackError] = NotAuthenticated,
    ) -> Any:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        try:
            resp = self._http.request(method, f"/api{path}", json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("%s %s could not reach the server: %s", method, path, e)
            raise ApiError(f"Server unreachable: {e}", status_code=503) from e
        if resp.is_success:
            return resp.json() if resp.content else None
        message = _detail(resp)
        logger.debug("%s %s failed with %s: %s", method, path, resp.status_code, message)
        if resp.status_code == 401:
            raise on_unauthorized(message)
        if resp.status_code == 409:
            raise DuplicateAccount(message)
        if resp.status_code == 404:
            raise EntryNotFound(message)
        raise ApiError(message, status_code=resp.status_code)

    # --- Session ---

    def signup(self, email: str, password: str, name: str) -> AppUser:
        body = self._request("POST", "/auth/signup", json={"email": email, "password": password, "name": name})
        self._token = body.get("access_token")
        return _user(body["user"])

    def login(self, email: str, password: str) -> AppUser:
        body = self._request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            on_unauthorized=InvalidCredentials,
        )
        self._token = body.get("access_token")
        return _user(body["user"])

    def logout(self) -> None:
        try:
            self._request("POST", "/auth/logout")
        finally:
            self._token = None
            self._http.cookies.clear()

    def current_user(self) -> AppUser | None:
        try:
            return _user(self._request("GET", "/auth/me"))
        except NotAuthenticated:
            return None

    # --- Profile ---

    def get_profile(self) -> Profile | None:
        try:
            return _profile(self._request("GET", "/profile"))
        except EntryNotFound:
            return None

    def update_profile(self, fields: dict[str, Any]) -> Profile:
        payload = {k: _json_value(v) for k, v in fields.items()}
        return _profile(self._request("PATCH", "/profile", json=payload))

    # --- Weight ---

    def list_weights(self) -> list[WeightEntry]:
        return [_weight(item) for item in self._request("GET", "/weights")]

    def add_weight(self, weight_kg: float, date: datetime | None = None) -> WeightEntry:
        payload: dict[str, Any] = {"weight_kg": weight_kg}
        if date is not None:
            payload["date"] = date.isoformat()
        return _weight(self._request("POST", "/weights", json=payload))

    def update_weight(self, entry: WeightEntry) -> WeightEntry:
        payload = {"weight_kg": entry.weight_kg, "date": entry.date.isoformat()}
        return _weight(self._request("PUT", f"/weights/{entry.id}", json=payload))

    def delete_weight(self, entry_id: int) -> None:
        self._request("DELETE", f"/weights/{entry_id}")

    def delete_weights(self, entry_ids: Iterable[int]) -> int:
        ids = list(entry_ids)
        if not ids:
            return 0
        return int(self._request("POST", "/weights/bulk-delete", json={"ids": ids})["deleted"])

    # --- Glucose ---

    def list_glucose_logs(self) -> list[GlucoseLog]:
        return [_glucose(item) for item in self._request("GET", "/glucose")]

    def add_glucose_log(
        self,
        glycemia: float,
        meal_type: MealType | str,
        dosage: float = 0.0,
        timestamp: datetime | None = None,
    ) -> GlucoseLog:
        payload: dict[str, Any] = {
            "glycemia": glycemia,
            "dosage": dosage,
            "meal_type": coerce_meal_type(meal_type).value,
        }
        if timestamp is not None:
            payload["timestamp"] = timestamp.isoformat()
        return _glucose(self._request("POST", "/glucose", json=payload))

    def update_glucose_log(self, log: GlucoseLog) -> GlucoseLog:
        payload = {
            "glycemia": log.glycemia,
            "dosage": log.dosage,
            "meal_type": coerce_meal_type(log.meal_type).value,
            "timestamp": log.timestamp.isoformat(),
        }
        return _glucose(self._request("PUT", f"/glucose/{log.id}", json=payload))

    def delete_glucose_log(self, log_id: int) -> None:
        self._request("DELETE", f"/glucose/{log_id}")

    def delete_glucose_logs(self, log_ids: Iterable[int]) -> int:
        ids = list(log_ids)
        if not ids:
            return 0
        return int(self._request("POST", "/glucose/bulk-delete", json={"ids": ids})["deleted"])

    # --- Reports ---

    def dashboard(self) -> dict:
        return self._request("GET", "/dashboard")

    def glucose_report(self, days: int = 7) -> dict:
        return self._request("GET", "/reports/glucose", params={"days": days})
