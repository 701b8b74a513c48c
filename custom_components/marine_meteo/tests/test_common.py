"""
Shared helpers and factory functions for Marine Meteo tests.
Import from this module in each test file to avoid duplication.
"""

from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

from custom_components.marine_meteo.bus import MessageBus
from custom_components.marine_meteo.config import MeteoConfig
from custom_components.marine_meteo.packages import Cadence, Package, PackageSelection
from custom_components.marine_meteo.session import SessionController

TIME_FORMAT = "%Y-%m-%d %H:%M"
DATE_FORMAT = "%Y-%m-%d"


def make_entry_data(**kwargs) -> dict:
    defaults = dict(
        api_key="test-key",
        forecast_interval=120,
        altitude=15,
        enable_basic_1h=True,
        enable_basic_day=False,
        enable_wind_1h=False,
        enable_wind_day=False,
        enable_sea_1h=False,
        enable_sea_day=False,
        enable_position_subscription=True,
        max_forecast_hours=6,
        max_forecast_days=3,
        enable_auto_moving_forecast=False,
        moving_speed_threshold=1.0,
        position_entity="device_tracker.vessel",
    )
    defaults.update(kwargs)
    return defaults


def make_config(**kwargs) -> MeteoConfig:
    return MeteoConfig.from_entry(make_entry_data(**kwargs))


def make_hass(latitude: float = 10.0, longitude: float = 20.0) -> MagicMock:
    """A mocked hass that runs created tasks on the test loop."""
    hass = MagicMock()
    hass.data = {}
    # async_dispatcher_send refuses calls from outside the event loop thread
    hass.loop_thread_id = threading.get_ident()
    hass.config.latitude = latitude
    hass.config.longitude = longitude
    hass.async_create_task = lambda coro, *args, **kwargs: asyncio.ensure_future(coro)
    return hass


def make_bus(hass=None) -> MessageBus:
    return MessageBus(hass or make_hass(), "test-entry")


def make_controller(hass=None, fetch=None, fetch_account=None, **entry_kwargs) -> SessionController:
    """Build a controller with mocked provider calls and no request delay."""
    hass = hass or make_hass()
    controller = SessionController(
        hass,
        make_config(**entry_kwargs),
        make_bus(hass),
        fetch=fetch or AsyncMock(return_value=make_forecast_response()),
        fetch_account=fetch_account or AsyncMock(return_value=None),
    )
    controller.orchestrator._request_delay = 0
    return controller


def today_midnight() -> datetime:
    return datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)


def make_hourly_series(start: datetime | None = None, hours: int = 72, **fields) -> dict:
    """
    Hourly provider series starting at start (default: local midnight).
    Each keyword gives a field; a callable is called with the period index.
    """
    start = start or today_midnight()
    series = {"time": [(start + timedelta(hours=i)).strftime(TIME_FORMAT) for i in range(hours)]}
    for name, value in fields.items():
        series[name] = [value(i) if callable(value) else value for i in range(hours)]
    return series


def make_daily_series(start: datetime | None = None, days: int = 7, **fields) -> dict:
    start = start or today_midnight()
    series = {"time": [(start + timedelta(days=i)).strftime(DATE_FORMAT) for i in range(days)]}
    for name, value in fields.items():
        series[name] = [value(i) if callable(value) else value for i in range(days)]
    return series


def make_forecast_response(hours: int = 72, days: int = 7) -> dict:
    return {
        "metadata": {"name": "", "latitude": 10.0, "longitude": 20.0, "height": 15,
                     "timezone_abbrevation": "UTC", "modelrun_utc": "2024-05-01 00:00"},
        "units": {"temperature": "C", "windspeed": "ms-1"},
        "data_1h": make_hourly_series(
            hours=hours,
            temperature=lambda i: 20.0 + i * 0.1,
            windspeed=5.0,
            winddirection=180,
            relativehumidity=60,
            sealevelpressure=1013,
            precipitation=0.0,
            gust=8.0,
            significantwaveheight=1.2,
        ),
        "data_day": make_daily_series(
            days=days,
            temperature_max=25.0,
            temperature_min=15.0,
            windspeed_max=10.0,
            precipitation=2.0,
        ),
    }


def make_usage_response(*credits: int, request_type: str = "packages") -> dict:
    return {
        "items": [
            {
                "request_type": request_type,
                "request_date": f"2024-05-{i + 1:02d}",
                "request_credits": amount,
                "request_count": 1,
            }
            for i, amount in enumerate(credits)
        ]
    }


def make_selection(*identifiers: str) -> PackageSelection:
    """Selection from provider identifiers such as "basic-1h"."""
    items = []
    for name in identifiers:
        package, _, cadence = name.partition("-")
        items.append((Package(package), Cadence(cadence)))
    return PackageSelection(tuple(items))
