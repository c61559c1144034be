from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from client import ApiClient, ApiError, AppState, AuthState
from main import app
from services.errors import DuplicateAccount, EntryNotFound, InvalidCredentials, NotAuthenticated
from stores import MealType, WeightEntry


def _email() -> str:
    return f"client_{uuid.uuid4().hex[:8]}@example.com"


@pytest.fixture
def api():
    return ApiClient(http=TestClient(app))


def test_current_user_is_none_before_login(api):
    assert api.current_user() is None


def test_signup_login_and_error_mapping(api):
    email = _email()
    user = api.signup(email, "Secret!123", "Client User")
    assert user.email == email
    assert api.current_user() == user

    with pytest.raises(DuplicateAccount):
        api.signup(email, "Secret!123", "Again")

    api.logout()
    assert api.current_user() is None
    with pytest.raises(NotAuthenticated):
        api.list_weights()
    with pytest.raises(InvalidCredentials):
        api.login(email, "wrong-password")
    assert api.login(email, "Secret!123").id == user.id


def test_ledger_round_trip_over_http(api):
    api.signup(_email(), "Secret!123", "Ledger User")
    a = api.add_weight(80.0, datetime(2024, 1, 10, tzinfo=timezone.utc))
    api.add_weight(81.0, datetime(2024, 1, 5, tzinfo=timezone.utc))
    assert [w.date.day for w in api.list_weights()] == [10, 5]

    moved = api.update_weight(WeightEntry(id=a.id, date=datetime(2024, 1, 1, tzinfo=timezone.utc), weight_kg=82.0))
    assert moved.weight_kg == 82.0
    assert api.list_weights()[-1].id == a.id

    with pytest.raises(EntryNotFound):
        api.update_weight(WeightEntry(id=999_999, date=datetime(2024, 1, 1, tzinfo=timezone.utc), weight_kg=1.0))

    log = api.add_glucose_log(1.1, MealType.SNACK, 1.5)
    assert log.meal_type == MealType.SNACK
    assert log.timestamp.tzinfo is not None
    assert api.delete_glucose_logs([log.id]) == 1
    assert api.delete_glucose_logs([]) == 0


def test_validation_errors_raise_api_error(api):
    api.signup(_email(), "Secret!123", "Invalid Input")
    with pytest.raises(ApiError) as exc:
        api.add_weight(-5)
    assert exc.value.status_code == 422


def test_app_state_over_http():
    state = AppState(ApiClient(http=TestClient(app)))
    email = _email()
    state.signup(email, "Secret!123", "Http State")
    assert state.auth_state == AuthState.LOGGED_IN

    state.update_profile(height_cm=165.0, birthdate=date(1992, 3, 4))
    state.add_weight_entry(60.0)
    assert state.bmi == 22.0
    state.add_glucose_log(1.05)
    assert state.latest_glucose.meal_type == MealType.FASTING

    restored = AppState(state.backend)
    assert restored.restore_session() == AuthState.LOGGED_IN
    assert [e.weight_kg for e in restored.weight_history] == [60.0]

    state.logout()
    assert restored.restore_session() == AuthState.LOGGED_OUT


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def _offline_client(handler=_unreachable) -> ApiClient:
    return ApiClient(http=httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver"))


def test_transport_failures_raise_api_error():
    api = _offline_client()
    with pytest.raises(ApiError) as exc:
        api.current_user()
    assert exc.value.status_code == 503
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


def test_timeouts_raise_api_error():
    def _slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ApiError):
        _offline_client(_slow).list_weights()


def test_restore_session_with_server_down_ends_logged_out():
    state = AppState(_offline_client())
    assert state.restore_session() == AuthState.LOGGED_OUT
    assert state.user is None


def test_restore_session_when_loading_fails_ends_logged_out():
    def _half_up(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/auth/me":
            return httpx.Response(200, json={"id": 7, "email": "half@example.com", "display_name": "Half"})
        raise httpx.ConnectError("connection reset", request=request)

    state = AppState(_offline_client(_half_up))
    assert state.restore_session() == AuthState.LOGGED_OUT
    assert state.user is None
    assert state.weight_history == []
