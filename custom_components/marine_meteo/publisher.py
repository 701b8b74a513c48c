"""
Publishes forecasts, account usage, notifications and command state as
deltas on the vessel data bus.

Forecast values go to one path per parameter and period index:
    environment.outside.meteo.forecast.<hourly|daily>.<parameter>.<index>
labelled with the producing package's source (e.g. "wind-api").
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from .bus import MessageBus, build_delta
from .const import (
    PATH_ACCOUNT,
    PATH_DAILY_PREFIX,
    PATH_ENGAGED,
    PATH_HOURLY_PREFIX,
    PATH_METADATA,
    PATH_USAGE_NOTIFICATION,
)
from .models import AccountUsageSummary, DailyForecast, HourlyForecast, UsageNotification
from .packages import Package, source_label

_LOGGER = logging.getLogger(__name__)


def _meta(units: str | None, display_name: str, description: str) -> dict[str, str]:
    entry = {"displayName": display_name, "description": description}
    if units is not None:
        entry["units"] = units
    return entry


PARAMETER_METADATA: dict[str, dict[str, str]] = {
    # Temperature (K)
    "temperature": _meta("K", "Temperature", "Air temperature forecast"),
    "felttemperature": _meta("K", "Felt Temperature", "Apparent air temperature forecast"),
    "seasurfacetemperature": _meta("K", "Sea Surface Temperature", "Sea surface temperature forecast"),
    # Wind (m/s, rad)
    "windspeed": _meta("m/s", "Wind Speed", "Wind speed forecast"),
    "gust": _meta("m/s", "Wind Gust", "Wind gust speed forecast"),
    "windspeed_80m": _meta("m/s", "Wind Speed 80m", "Wind speed at 80m altitude forecast"),
    "winddirection": _meta("rad", "Wind Direction", "Wind direction forecast"),
    "winddirection_80m": _meta("rad", "Wind Direction 80m", "Wind direction at 80m altitude forecast"),
    # Pressure (Pa)
    "sealevelpressure": _meta("Pa", "Sea Level Pressure", "Sea level atmospheric pressure forecast"),
    "surfaceairpressure": _meta("Pa", "Surface Air Pressure", "Surface atmospheric pressure forecast"),
    # Humidity, probability (ratio 0-1)
    "relativehumidity": _meta("ratio", "Relative Humidity", "Relative humidity forecast (0-1)"),
    "precipitation_probability": _meta("ratio", "Precipitation Probability", "Precipitation probability forecast (0-1)"),
    # Precipitation
    "precipitation": _meta("m", "Precipitation", "Precipitation amount forecast"),
    "convective_precipitation": _meta("mm", "Convective Precipitation", "Convective precipitation amount forecast"),
    # Waves (m, s, rad)
    "significantwaveheight": _meta("m", "Significant Wave Height", "Significant wave height forecast"),
    "windwave_height": _meta("m", "Wind Wave Height", "Wind generated wave height forecast"),
    "swell_significantheight": _meta("m", "Swell Height", "Swell wave height forecast"),
    "mean_waveperiod": _meta("s", "Wave Period", "Mean wave period forecast"),
    "windwave_meanperiod": _meta("s", "Wind Wave Period", "Wind wave period forecast"),
    "swell_meanperiod": _meta("s", "Swell Period", "Swell wave period forecast"),
    "mean_wavedirection": _meta("rad", "Wave Direction", "Mean wave direction forecast"),
    "windwave_direction": _meta("rad", "Wind Wave Direction", "Wind wave direction forecast"),
    "swell_meandirection": _meta("rad", "Swell Direction", "Swell wave direction forecast"),
    # Currents, density, salinity
    "currentvelocity_u": _meta("m/s", "Current Velocity U", "Ocean current velocity U component forecast"),
    "currentvelocity_v": _meta("m/s", "Current Velocity V", "Ocean current velocity V component forecast"),
    "airdensity": _meta("kg/m³", "Air Density", "Air density forecast"),
    "salinity": _meta("ratio", "Salinity", "Water salinity forecast"),
    # Duration, visibility
    "sunshine_duration": _meta("s", "Sunshine Duration", "Sunshine duration forecast"),
    "visibility": _meta("m", "Visibility", "Visibility distance forecast"),
    # Dimensionless
    "uvindex": _meta(None, "UV Index", "UV index forecast"),
    "pictocode": _meta(None, "Weather Code", "Meteoblue weather pictogram code"),
    "douglas_seastate": _meta(None, "Douglas Sea State", "Douglas sea state scale forecast"),
    "douglas_seastate_description": _meta(None, "Douglas Sea State Description", "Douglas sea state scale description (simple)"),
    "douglas_seastate_verbose": _meta(None, "Douglas Sea State Verbose", "Douglas sea state scale description with wave heights and conditions"),
    "isdaylight": _meta(None, "Is Daylight", "Daylight indicator (0=night, 1=day)"),
    "snowfraction": _meta(None, "Snow Fraction", "Snow fraction of precipitation (0-1)"),
    "rainspot": _meta(None, "Rain Spot", "Local rain probability indicator"),
    # Moving vessel forecasts
    "vesselMoving": _meta(None, "Vessel Moving", "Indicates if vessel movement prediction is active"),
    "predictedLatitude": _meta("deg", "Predicted Latitude", "Predicted vessel latitude for this forecast hour"),
    "predictedLongitude": _meta("deg", "Predicted Longitude", "Predicted vessel longitude for this forecast hour"),
    # Period markers
    "relativeHour": _meta("h", "Relative Hour", "Hours from current time"),
    "dayOfWeek": _meta(None, "Day of Week", "Day of the week name"),
}


def get_parameter_metadata(parameter: str) -> dict[str, str]:
    """Metadata for parameter; a generic ratio entry when unknown."""
    return PARAMETER_METADATA.get(parameter) or _meta(
        "ratio", parameter, f"{parameter} forecast parameter"
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ForecastPublisher:
    """Turns domain objects into deltas for a MessageBus."""

    def __init__(self, bus: MessageBus) -> None:
        self.bus = bus

    def _publish_record(
        self,
        prefix: str,
        record: dict[str, Any],
        index: int,
        source: str,
        timestamp: str,
        skip: str,
    ) -> None:
        values = []
        meta = []
        for key, value in record.items():
            if key == skip:
                continue
            path = f"{prefix}.{key}.{index}"
            values.append((path, value))
            meta.append((path, get_parameter_metadata(key)))
        self.bus.handle_message(build_delta(source, values, timestamp=timestamp, meta=meta))

    def publish_hourly(
        self,
        forecasts: Sequence[HourlyForecast],
        package: Package | str,
        indices: Sequence[int] | None = None,
    ) -> None:
        """
        Publish one delta per hourly record, stamped with the record's time.

        indices gives the period index of each record; by default records
        are numbered from 0 in order.  Values the package published in
        earlier cycles are dropped first, so skipped indices stay empty.
        """
        source = source_label(package)
        self.bus.clear(f"{PATH_HOURLY_PREFIX}.", source=source)
        if indices is None:
            indices = range(len(forecasts))
        for index, forecast in zip(indices, forecasts):
            self._publish_record(
                PATH_HOURLY_PREFIX, forecast, index, source,
                timestamp=forecast["timestamp"], skip="timestamp",
            )
        _LOGGER.debug("Published %s hourly forecasts for %s", len(forecasts), source)

    def publish_daily(self, forecasts: Sequence[DailyForecast], package: Package | str) -> None:
        source = source_label(package)
        self.bus.clear(f"{PATH_DAILY_PREFIX}.", source=source)
        timestamp = _now()
        for index, forecast in enumerate(forecasts):
            self._publish_record(
                PATH_DAILY_PREFIX, forecast, index, source,
                timestamp=timestamp, skip="date",
            )
        _LOGGER.debug("Published %s daily forecasts for %s", len(forecasts), source)

    def publish_metadata(self, metadata: Any) -> None:
        self.bus.handle_message(build_delta(source_label("metadata"), [(PATH_METADATA, metadata)]))

    def publish_account(self, summary: AccountUsageSummary) -> None:
        self.bus.handle_message(
            build_delta(source_label("account"), [(PATH_ACCOUNT, summary.as_dict())])
        )

    def publish_notification(self, notification: UsageNotification) -> None:
        self.bus.handle_message(
            build_delta(source_label("account"), [(PATH_USAGE_NOTIFICATION, notification.as_dict())])
        )

    def publish_engaged(self, engaged: bool) -> None:
        self.bus.handle_message(build_delta(source_label("control"), [(PATH_ENGAGED, engaged)]))
