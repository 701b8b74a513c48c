"""
MeteoConfig: immutable, validated view of a config entry.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from .const import (
    CONF_ALTITUDE,
    CONF_API_KEY,
    CONF_ENABLE_AUTO_MOVING_FORECAST,
    CONF_ENABLE_POSITION_SUBSCRIPTION,
    CONF_FORECAST_INTERVAL,
    CONF_HEADING_ENTITY,
    CONF_MAX_FORECAST_DAYS,
    CONF_MAX_FORECAST_HOURS,
    CONF_MONTHLY_CREDIT_LIMIT,
    CONF_MOVING_SPEED_THRESHOLD,
    CONF_POSITION_ENTITY,
    CONF_SPEED_ENTITY,
    DEFAULT_ALTITUDE,
    DEFAULT_FORECAST_INTERVAL,
    DEFAULT_MAX_FORECAST_DAYS,
    DEFAULT_MAX_FORECAST_HOURS,
    DEFAULT_MONTHLY_CREDIT_LIMIT,
    DEFAULT_MOVING_SPEED_THRESHOLD,
    MAX_FORECAST_DAYS_LIMIT,
    MAX_FORECAST_HOURS_LIMIT,
    MAX_MOVING_SPEED_THRESHOLD,
    MIN_FORECAST_INTERVAL,
    MIN_MOVING_SPEED_THRESHOLD,
    PACKAGE_FLAG_DEFAULTS,
)


def _clamp(value, lower, upper=None):
    if value < lower:
        return lower
    if upper is not None and value > upper:
        return upper
    return value


@dataclasses.dataclass(frozen=True)
class MeteoConfig:
    """
    Typed configuration for one session.

    Build with from_entry() so defaults and bounds are always applied.
    """

    api_key: str = ""
    forecast_interval: int = DEFAULT_FORECAST_INTERVAL         # minutes
    altitude: float = DEFAULT_ALTITUDE                          # metres
    enable_position_subscription: bool = True
    max_forecast_hours: int = DEFAULT_MAX_FORECAST_HOURS
    max_forecast_days: int = DEFAULT_MAX_FORECAST_DAYS
    enable_auto_moving_forecast: bool = True
    moving_speed_threshold: float = DEFAULT_MOVING_SPEED_THRESHOLD  # knots
    monthly_credit_limit: int = DEFAULT_MONTHLY_CREDIT_LIMIT
    position_entity: str | None = None
    heading_entity: str | None = None
    speed_entity: str | None = None

    # enable_<package>_<1h|day> → bool
    package_flags: Mapping[str, bool] = dataclasses.field(
        default_factory=lambda: dict(PACKAGE_FLAG_DEFAULTS)
    )

    @classmethod
    def from_entry(cls, data: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> "MeteoConfig":
        """Merge entry data with options (options win) and apply defaults and bounds."""
        merged = {**data, **(options or {})}

        package_flags = {
            key: bool(merged.get(key, default))
            for key, default in PACKAGE_FLAG_DEFAULTS.items()
        }

        return cls(
            api_key=str(merged.get(CONF_API_KEY) or "").strip(),
            forecast_interval=int(_clamp(
                merged.get(CONF_FORECAST_INTERVAL, DEFAULT_FORECAST_INTERVAL),
                MIN_FORECAST_INTERVAL,
            )),
            altitude=float(merged.get(CONF_ALTITUDE, DEFAULT_ALTITUDE)),
            enable_position_subscription=bool(merged.get(CONF_ENABLE_POSITION_SUBSCRIPTION, True)),
            max_forecast_hours=int(_clamp(
                merged.get(CONF_MAX_FORECAST_HOURS, DEFAULT_MAX_FORECAST_HOURS),
                1, MAX_FORECAST_HOURS_LIMIT,
            )),
            max_forecast_days=int(_clamp(
                merged.get(CONF_MAX_FORECAST_DAYS, DEFAULT_MAX_FORECAST_DAYS),
                1, MAX_FORECAST_DAYS_LIMIT,
            )),
            enable_auto_moving_forecast=bool(merged.get(CONF_ENABLE_AUTO_MOVING_FORECAST, True)),
            moving_speed_threshold=float(_clamp(
                merged.get(CONF_MOVING_SPEED_THRESHOLD, DEFAULT_MOVING_SPEED_THRESHOLD),
                MIN_MOVING_SPEED_THRESHOLD, MAX_MOVING_SPEED_THRESHOLD,
            )),
            monthly_credit_limit=int(_clamp(
                merged.get(CONF_MONTHLY_CREDIT_LIMIT, DEFAULT_MONTHLY_CREDIT_LIMIT), 1,
            )),
            position_entity=merged.get(CONF_POSITION_ENTITY) or None,
            heading_entity=merged.get(CONF_HEADING_ENTITY) or None,
            speed_entity=merged.get(CONF_SPEED_ENTITY) or None,
            package_flags=package_flags,
        )

    @property
    def forecast_interval_seconds(self) -> int:
        return self.forecast_interval * 60
