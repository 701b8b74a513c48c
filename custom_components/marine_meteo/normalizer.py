"""
Turns raw provider time series into per-package forecast records.

Responsibilities:
- Trim hourly series to the current-or-future window (the provider always
  answers from local midnight, whatever window was asked for).
- Copy only the fields a package owns, converting units on the way.
- Mark each record with its period: timestamp + relativeHour for hourly
  series, date + dayOfWeek for daily series.

Missing values are left out of a record entirely; a missing key means the
provider did not supply the value, which is different from a real zero.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from .models import DailyForecast, HourlyForecast
from .packages import Cadence, Package, get_package_fields
from .units import (
    celsius_to_kelvin,
    deg_to_rad,
    douglas_sea_state_simple,
    douglas_sea_state_verbose,
    mb_to_pa,
    mm_to_m,
    percent_to_ratio,
)

_LOGGER = logging.getLogger(__name__)

# Sunday-first, as used by the published dayOfWeek values
DAYS_OF_WEEK = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def parse_time(value: Any) -> datetime | None:
    """
    Parse a provider time string ("2024-05-01 13:00" or "2024-05-01").

    Provider times are local wall-clock times without an offset; an aware
    value is converted to local time and made naive so both compare with
    datetime.now().
    """
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def current_hour(now: datetime | None = None) -> datetime:
    if now is None:
        now = datetime.now()
    return now.replace(minute=0, second=0, microsecond=0)


def convert_field(field: str, value: Any) -> dict[str, Any]:
    """
    Convert one raw value to bus units.

    Returns the entries to add to the record: usually just {field: value},
    but douglas_seastate also yields its two description strings.
    """
    if "temperature" in field:
        return {field: celsius_to_kelvin(value)}
    if "direction" in field:
        return {field: deg_to_rad(value)}
    if field == "precipitation":
        return {field: mm_to_m(value)}
    if "pressure" in field:
        return {field: mb_to_pa(value)}
    if "humidity" in field or "cloudcover" in field or "cloud_cover" in field:
        return {field: percent_to_ratio(value)}
    if "probability" in field:
        return {field: percent_to_ratio(value)}
    if field == "douglas_seastate":
        return {
            field: value,
            "douglas_seastate_description": douglas_sea_state_simple(value),
            "douglas_seastate_verbose": douglas_sea_state_verbose(value),
        }
    return {field: value}


def _value_at(series: dict, field: str, index: int) -> Any:
    values = series.get(field)
    if not isinstance(values, list) or index >= len(values):
        return None
    return values[index]


def _extract_fields(series: dict, index: int, fields: tuple[str, ...], record: dict[str, Any]) -> None:
    for field in fields:
        value = _value_at(series, field, index)
        if value is not None:
            record.update(convert_field(field, value))


def _has_time_array(series: Any) -> bool:
    return isinstance(series, dict) and isinstance(series.get("time"), list)


def find_start_index(times: list, now: datetime | None = None) -> int | None:
    """
    Index of the first period at or after the current hour.

    Falls back to the first period strictly after now; None when every
    period lies in the past.
    """
    if now is None:
        now = datetime.now()
    hour = current_hour(now)
    parsed = [parse_time(value) for value in times]

    for index, moment in enumerate(parsed):
        if moment is not None and moment >= hour:
            return index
    for index, moment in enumerate(parsed):
        if moment is not None and moment > now:
            return index
    return None


def normalize_hourly(
    series: Any,
    max_hours: int,
    package: Package | str,
    now: datetime | None = None,
) -> list[HourlyForecast]:
    """Build up to max_hours hourly records for package, starting at the current hour."""
    if not _has_time_array(series):
        _LOGGER.error("Invalid hourly forecast data: missing or invalid time array")
        return []

    if now is None:
        now = datetime.now()
    hour = current_hour(now)
    times = series["time"]
    fields = get_package_fields(package, Cadence.HOURLY)

    start = find_start_index(times, now)
    if start is None:
        _LOGGER.warning("Hourly forecast data for %s contains only past periods", package)
        return []

    count = max(0, min(len(times) - start, max_hours))
    _LOGGER.debug(
        "Processing %s hourly periods for %s from index %s (%s) with fields: %s",
        count, package, start, times[start] if count else None, ", ".join(fields),
    )

    forecasts: list[HourlyForecast] = []
    for index in range(start, start + count):
        moment = parse_time(times[index])
        if moment is None:
            _LOGGER.debug("Skipping unparseable hourly time %r", times[index])
            continue
        record: HourlyForecast = {
            "timestamp": times[index],
            "relativeHour": round((moment - hour).total_seconds() / 3600),
        }
        _extract_fields(series, index, fields, record)
        forecasts.append(record)
    return forecasts


def normalize_daily(
    series: Any,
    max_days: int,
    package: Package | str,
) -> list[DailyForecast]:
    """Build up to max_days daily records for package, starting at the first day."""
    if not _has_time_array(series):
        _LOGGER.error("Invalid daily forecast data: missing or invalid time array")
        return []

    times = series["time"]
    fields = get_package_fields(package, Cadence.DAILY)
    count = max(0, min(len(times), max_days))
    _LOGGER.debug(
        "Processing %s daily periods for %s with fields: %s", count, package, ", ".join(fields)
    )

    forecasts: list[DailyForecast] = []
    for index in range(count):
        day = parse_time(times[index])
        if day is None:
            _LOGGER.debug("Skipping unparseable daily date %r", times[index])
            continue
        record: DailyForecast = {
            "date": times[index],
            # weekday() is Monday-first
            "dayOfWeek": DAYS_OF_WEEK[(day.weekday() + 1) % 7],
        }
        _extract_fields(series, index, fields, record)
        forecasts.append(record)
    return forecasts
