from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from client import AppState, AuthState, LocalBackend
from db.database import SessionLocal, init_db
from services.errors import DuplicateAccount, InvalidCredentials, InvalidInput, NotAuthenticated
from stores import MealType, MemoryHealthStore, SqlHealthStore


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return MemoryHealthStore()


@pytest.fixture
def state(store):
    app_state = AppState(LocalBackend(store))
    app_state.signup("state@example.com", "secret123", "State User")
    return app_state


def test_new_container_starts_loading_and_restores_to_logged_out(store):
    app_state = AppState(LocalBackend(store))
    assert app_state.auth_state == AuthState.LOADING
    assert app_state.restore_session() == AuthState.LOGGED_OUT
    assert app_state.user is None


def test_signup_loads_profile_and_empty_ledgers(state):
    assert state.auth_state == AuthState.LOGGED_IN
    assert state.user.display_name == "State User"
    assert state.profile.name == "State User"
    assert state.weight_history == []
    assert state.glucose_logs == []


def test_signup_with_existing_email_fails(store, state):
    other = AppState(LocalBackend(store))
    with pytest.raises(DuplicateAccount):
        other.signup("state@example.com", "secret123", "Copycat")


def test_login_with_wrong_password_fails(store, state):
    other = AppState(LocalBackend(store))
    with pytest.raises(InvalidCredentials):
        other.login("state@example.com", "nope-nope")
    assert other.user is None


def test_mutations_require_login(store):
    app_state = AppState(LocalBackend(store))
    with pytest.raises(NotAuthenticated):
        app_state.add_weight_entry(80.0)
    with pytest.raises(NotAuthenticated):
        app_state.add_glucose_log(1.0)
    with pytest.raises(NotAuthenticated):
        app_state.update_profile(height_cm=170)


def test_weight_entries_stay_sorted_on_add(state):
    state.add_weight_entry(80.0, _utc(2024, 1, 10))
    state.add_weight_entry(81.0, _utc(2024, 1, 5))
    state.add_weight_entry(79.0, _utc(2024, 1, 20))
    assert [e.date.day for e in state.weight_history] == [20, 10, 5]
    assert state.latest_weight.weight_kg == 79.0


def test_weight_entries_are_resorted_on_update(state):
    oldest = state.add_weight_entry(81.0, _utc(2024, 1, 5))
    state.add_weight_entry(80.0, _utc(2024, 1, 10))

    state.update_weight_entry(replace(oldest, date=_utc(2024, 1, 15), weight_kg=78.5))
    assert state.weight_history[0].id == oldest.id
    assert state.weight_history[0].weight_kg == 78.5


def test_bulk_delete_removes_exactly_the_given_ids(state):
    entries = [state.add_weight_entry(70.0 + d, _utc(2024, 3, d)) for d in (1, 2, 3)]
    state.delete_weight_entries([entries[0].id, entries[2].id])
    assert [e.id for e in state.weight_history] == [entries[1].id]
    state.delete_weight_entry(entries[1].id)
    assert state.weight_history == []


def test_glucose_logs_trend_and_deletes(state):
    first = state.add_glucose_log(1.2, MealType.BREAKFAST, 4, _utc(2024, 5, 1, 8))
    second = state.add_glucose_log(1.0, "Lunch", 2, _utc(2024, 5, 1, 13))
    assert state.latest_glucose.id == second.id
    assert state.glucose_trend == "down"

    state.update_glucose_log(replace(first, timestamp=_utc(2024, 5, 1, 19), meal_type=MealType.DINNER))
    assert state.latest_glucose.id == first.id
    assert state.glucose_trend == "up"

    state.delete_glucose_logs([first.id, second.id])
    assert state.glucose_logs == []
    assert state.glucose_trend is None


def test_update_profile_changes_only_given_fields(state):
    state.update_profile(height_cm=180.0, birthdate=date(1990, 1, 1))
    profile = state.update_profile(name="Renamed")
    assert profile.height_cm == 180.0
    assert profile.birthdate == date(1990, 1, 1)
    assert state.user.display_name == "Renamed"

    state.add_weight_entry(80.0)
    assert state.bmi == 24.7
    assert state.age is not None


def test_logout_clears_everything(state):
    state.add_weight_entry(80.0)
    state.logout()
    assert state.auth_state == AuthState.LOGGED_OUT
    assert state.user is None
    assert state.profile is None
    assert state.weight_history == []
    assert state.restore_session() == AuthState.LOGGED_OUT


def test_login_reloads_persisted_data(store, state):
    state.add_weight_entry(80.0, _utc(2024, 1, 10))
    state.logout()

    state.login("STATE@example.com", "secret123")
    assert state.auth_state == AuthState.LOGGED_IN
    assert [e.weight_kg for e in state.weight_history] == [80.0]


def test_missing_profile_logs_out(monkeypatch, store):
    app_state = AppState(LocalBackend(store))
    monkeypatch.setattr(store, "get_profile", lambda user_id: None)
    app_state.signup("noprofile@example.com", "secret123", "No Profile")
    assert app_state.auth_state == AuthState.LOGGED_OUT
    assert app_state.user is None


def test_load_failure_logs_out(monkeypatch, store):
    app_state = AppState(LocalBackend(store))

    def _boom(user_id):
        raise NotAuthenticated("backend unavailable")

    monkeypatch.setattr(store.weights, "list", _boom)
    app_state.signup("broken@example.com", "secret123", "Broken")
    assert app_state.auth_state == AuthState.LOGGED_OUT


@pytest.fixture(params=["memory", "sql"])
def any_state(request):
    if request.param == "memory":
        app_state = AppState(LocalBackend(MemoryHealthStore()))
        app_state.signup("any@example.com", "secret123", "Any Backend")
        yield app_state
        return
    init_db()
    db = SessionLocal()
    try:
        app_state = AppState(LocalBackend(SqlHealthStore(db)))
        app_state.signup(f"any_{uuid.uuid4().hex[:8]}@example.com", "secret123", "Any Backend")
        yield app_state
    finally:
        db.close()


@pytest.mark.parametrize("bad_name", [None, "", "   "])
def test_update_profile_rejects_missing_name(any_state, bad_name):
    with pytest.raises(InvalidInput):
        any_state.update_profile(name=bad_name, height_cm=170.0)
    assert any_state.profile.name == "Any Backend"
    assert any_state.backend.get_profile().name == "Any Backend"
    assert any_state.backend.get_profile().height_cm is None


def test_update_profile_collapses_name_whitespace(any_state):
    profile = any_state.update_profile(name="  Ann   Lee ")
    assert profile.name == "Ann Lee"
    assert any_state.user.display_name == "Ann Lee"
    assert any_state.backend.current_user().display_name == "Ann Lee"
