from __future__ import annotations

from datetime import date, datetime

from stores.base import GlucoseLog, HealthStore
from utils.datetime_utils import from_storage, to_storage, window_start
from utils.health_metrics import calculate_age, calculate_bmi, glucose_trend
from utils.units import g_l_to_mg_dl

REPORT_WINDOWS_DAYS = (7, 14, 30, 90)


def build_dashboard(store: HealthStore, user_id: int, today: date | None = None) -> dict:
    profile = store.get_profile(user_id)
    logs = store.glucose.list(user_id)
    weights = store.weights.list(user_id)

    latest = logs[0] if logs else None
    previous = logs[1] if len(logs) > 1 else None
    latest_weight = weights[0].weight_kg if weights else None
    height_cm = profile.height_cm if profile else None

    return {
        "latest_glucose": latest,
        "previous_glucose": previous,
        "trend": glucose_trend(
            latest.glycemia if latest else None,
            previous.glycemia if previous else None,
        ),
        "latest_glycemia_mg_dl": round(g_l_to_mg_dl(latest.glycemia), 1) if latest else None,
        "latest_weight_kg": latest_weight,
        "bmi": calculate_bmi(height_cm, latest_weight),
        "age": calculate_age(profile.birthdate if profile else None, today),
    }


def logs_in_window(logs: list[GlucoseLog], days: int, now: datetime | None = None) -> list[GlucoseLog]:
    """Logs inside [now - days, now], oldest first for charting."""
    end = from_storage(to_storage(now))
    start = window_start(days, end)
    selected = [log for log in logs if start <= from_storage(log.timestamp) <= end]
    return sorted(selected, key=lambda log: log.timestamp)


def glucose_report(store: HealthStore, user_id: int, days: int, now: datetime | None = None) -> dict:
    if days not in REPORT_WINDOWS_DAYS:
        raise ValueError(f"days must be one of {', '.join(str(d) for d in REPORT_WINDOWS_DAYS)}")
    points = logs_in_window(store.glucose.list(user_id), days, now)
    values = [p.glycemia for p in points]
    return {
        "days": days,
        "points": points,
        "count": len(values),
        "min_glycemia": min(values) if values else None,
        "max_glycemia": max(values) if values else None,
        "mean_glycemia": round(sum(values) / len(values), 2) if values else None,
    }
