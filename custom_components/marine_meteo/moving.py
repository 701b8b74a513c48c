"""
Forecasts along the predicted track of a moving vessel.

For every forecast hour h the vessel's position h hours ahead is predicted,
the provider is asked for that position and only the record for the target
hour is kept.  Daily forecasts are not projected; they come from one request
at the current position.

Nothing is published until every request has succeeded.  Any failure raises
MovingForecastError and the caller falls back to a stationary fetch.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any

from .api.forecast import fetch_forecast
from .config import MeteoConfig
from .const import MOVING_HOUR_BUFFER, MOVING_REQUEST_DELAY
from .models import DailyForecast, HourlyForecast, Position, SessionState
from .navigation import is_vessel_moving, predict_position
from .normalizer import current_hour, normalize_daily, normalize_hourly, parse_time
from .packages import Cadence, Package, PackageSelection
from .publisher import ForecastPublisher
from .units import mps_to_knots, rad_to_deg

_LOGGER = logging.getLogger(__name__)

FetchForecast = Callable[[float, float, MeteoConfig, PackageSelection], Awaitable[dict]]


class MovingForecastError(Exception):
    """A request or parse step of the moving forecast failed."""


def wants_moving_forecast(state: SessionState) -> bool:
    """
    True when the next fetch should follow the predicted track.

    Needs a known position, heading and speed, a speed above the configured
    threshold and the engagement flag set.
    """
    if state.current_position is None:
        return False
    if state.current_heading is None or state.current_sog is None:
        return False
    if not state.moving_forecast_engaged:
        return False
    threshold = state.config.moving_speed_threshold if state.config else 1.0
    return is_vessel_moving(state.current_sog, threshold)


def periods_needed(target: datetime, now: datetime) -> int:
    """
    Periods to read from a series anchored at today's local midnight so that
    target plus a small buffer is covered, even when target is past midnight.
    """
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    hours_from_midnight = int((target - midnight).total_seconds() // 3600)
    return hours_from_midnight + 1 + MOVING_HOUR_BUFFER


def _same_hour(a: datetime, b: datetime) -> bool:
    return (a.year, a.month, a.day, a.hour) == (b.year, b.month, b.day, b.hour)


def find_target_record(records: list[HourlyForecast], target: datetime) -> HourlyForecast | None:
    for record in records:
        moment = parse_time(record.get("timestamp"))
        if moment is not None and _same_hour(moment, target):
            return record
    return None


@dataclasses.dataclass
class MovingForecastResult:
    """Everything one moving cycle collected, ready to publish."""

    # package → [(hour index, record)]
    hourly: dict[Package, list[tuple[int, HourlyForecast]]] = dataclasses.field(default_factory=dict)
    daily: dict[Package, list[DailyForecast]] = dataclasses.field(default_factory=dict)
    metadata: Any = None

    def record_count(self) -> int:
        return sum(len(records) for records in self.hourly.values())


class MovingForecastOrchestrator:
    """Runs one moving-vessel forecast cycle from a snapshot of navigation state."""

    def __init__(
        self,
        publisher: ForecastPublisher,
        fetch: FetchForecast = fetch_forecast,
        request_delay: float = MOVING_REQUEST_DELAY,
    ) -> None:
        self.publisher = publisher
        self._fetch = fetch
        self._request_delay = request_delay

    async def run(
        self,
        position: Position,
        heading: float,
        sog: float,
        config: MeteoConfig,
        selection: PackageSelection,
        now: datetime | None = None,
    ) -> MovingForecastResult:
        """Collect the forecasts along the track, then publish them."""
        result = await self.collect(position, heading, sog, config, selection, now)
        self.publish(result)
        return result

    async def collect(
        self,
        position: Position,
        heading: float,
        sog: float,
        config: MeteoConfig,
        selection: PackageSelection,
        now: datetime | None = None,
    ) -> MovingForecastResult:
        if now is None:
            now = datetime.now()
        start_hour = current_hour(now)
        hourly_selection = selection.only(Cadence.HOURLY)
        daily_selection = selection.only(Cadence.DAILY)

        _LOGGER.debug(
            "Vessel moving at %.1f knots (threshold: %s knots), heading %.1f°",
            mps_to_knots(sog), config.moving_speed_threshold, rad_to_deg(heading),
        )
        _LOGGER.debug("Fetching position-specific forecasts for %s hours", config.max_forecast_hours)

        result = MovingForecastResult(hourly={package: [] for package in hourly_selection.hourly})

        if hourly_selection:
            for hour in range(config.max_forecast_hours):
                target = start_hour + timedelta(hours=hour)
                predicted = predict_position(position, heading, sog, hour)
                _LOGGER.debug(
                    "Hour %s: fetching weather for %.6f, %.6f at %s",
                    hour, predicted.latitude, predicted.longitude, target.isoformat(),
                )

                data = await self._fetch_or_raise(predicted, config, hourly_selection)
                needed = periods_needed(target, now)
                for package in hourly_selection.hourly:
                    records = normalize_hourly(data.get("data_1h"), needed, package, now=now)
                    record = find_target_record(records, target)
                    if record is None:
                        _LOGGER.warning(
                            "No %s forecast found for %s at %.6f, %.6f",
                            package, target.isoformat(), predicted.latitude, predicted.longitude,
                        )
                        continue
                    result.hourly[package].append((hour, {
                        **record,
                        "predictedLatitude": predicted.latitude,
                        "predictedLongitude": predicted.longitude,
                        "vesselMoving": True,
                    }))

                if hour < config.max_forecast_hours - 1:
                    await asyncio.sleep(self._request_delay)

        if daily_selection:
            _LOGGER.debug("Fetching daily forecasts for current position")
            data = await self._fetch_or_raise(position, config, daily_selection)
            for package in daily_selection.daily:
                result.daily[package] = normalize_daily(
                    data.get("data_day"), config.max_forecast_days, package
                )
            result.metadata = data.get("metadata")

        return result

    async def _fetch_or_raise(
        self, position: Position, config: MeteoConfig, selection: PackageSelection
    ) -> dict:
        try:
            return await self._fetch(position.latitude, position.longitude, config, selection)
        except Exception as exc:  # noqa: BLE001
            raise MovingForecastError(
                f"Forecast request at {position.latitude:.6f}, {position.longitude:.6f} failed: {exc}"
            ) from exc

    def publish(self, result: MovingForecastResult) -> None:
        # Packages without any record still publish, which clears their old values
        for package, entries in result.hourly.items():
            indices = [hour for hour, _ in entries]
            records = [record for _, record in entries]
            self.publisher.publish_hourly(records, package, indices=indices)
            _LOGGER.debug("Published %s position-specific forecasts for %s", len(records), package)
        for package, records in result.daily.items():
            self.publisher.publish_daily(records, package)
        if result.metadata is not None:
            self.publisher.publish_metadata(result.metadata)
