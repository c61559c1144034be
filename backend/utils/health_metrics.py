from datetime import date

from utils.datetime_utils import today_utc


def calculate_bmi(height_cm: float | None, weight_kg: float | None) -> float | None:
    """Body-mass index rounded to one decimal, or None without usable inputs."""
    if not height_cm or not weight_kg or height_cm <= 0 or weight_kg <= 0:
        return None
    height_m = height_cm / 100.0
    return round(weight_kg / (height_m * height_m), 1)


def calculate_age(birthdate: date | None, today: date | None = None) -> int | None:
    if birthdate is None:
        return None
    today = today or today_utc()
    years = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        years -= 1
    return max(years, 0)


def glucose_trend(latest: float | None, previous: float | None) -> str | None:
    """Direction of the latest reading against the one before it."""
    if latest is None or previous is None:
        return None
    if latest > previous:
        return "up"
    if latest < previous:
        return "down"
    return "flat"
