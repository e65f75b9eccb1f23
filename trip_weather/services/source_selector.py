from __future__ import annotations

from datetime import date

NONE = "none"
OPENWEATHER = "openweather"
ACCUWEATHER = "accuweather"
OPENWEATHER_18M = "openweather18m"
CLIMATE_NORMALS = "climateNormals"

# Inclusive upper bound (in days ahead of today) served by each source
NEAR_TERM_MAX_DAYS = 10
EXTENDED_MAX_DAYS = 45
LONG_RANGE_MAX_DAYS = 548


def horizon_days(target: date, today: date) -> int:
    """Whole calendar days from ``today`` to ``target`` (negative for the past)."""
    return (target - today).days


def choose_source(target: date, today: date) -> str:
    """Pick the provider responsible for ``target`` given the current day.

    - past dates: ``none``
    - 0-10 days: ``openweather``
    - 11-45 days: ``accuweather``
    - 46-548 days: ``openweather18m``
    - beyond 548 days: ``climateNormals``
    """
    diff = horizon_days(target, today)
    if diff < 0:
        return NONE
    if diff <= NEAR_TERM_MAX_DAYS:
        return OPENWEATHER
    if diff <= EXTENDED_MAX_DAYS:
        return ACCUWEATHER
    if diff <= LONG_RANGE_MAX_DAYS:
        return OPENWEATHER_18M
    return CLIMATE_NORMALS
