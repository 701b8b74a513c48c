"""
Great-circle helpers for forecasting along a vessel's track.

Responsibilities:
- Project a position forward along a heading at constant speed.
- Decide whether the vessel counts as moving.
- Decide whether a new position/elapsed time warrants a fresh forecast.

No HA imports and no I/O.  Accuracy near the poles is not a goal: latitude
is not wrapped and longitude is not normalised.
"""
from __future__ import annotations

import math
import time
from datetime import timedelta

from .const import DEFAULT_FORECAST_INTERVAL, EARTH_RADIUS_M, FORECAST_DISTANCE_TRIGGER_M
from .models import Position, SessionState
from .units import deg_to_rad, knots_to_mps, rad_to_deg


def predict_position(
    position: Position, heading_rad: float, sog_mps: float, hours_ahead: float
) -> Position:
    """
    Return where the vessel will be after hours_ahead hours on a constant
    heading (radians true) and speed over ground (m/s).

    Uses the spherical forward-azimuth formula; the returned timestamp is
    advanced by hours_ahead.
    """
    distance = sog_mps * hours_ahead * 3600
    angular = distance / EARTH_RADIUS_M

    lat1 = deg_to_rad(position.latitude)
    lon1 = deg_to_rad(position.longitude)

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(heading_rad)
    )
    lon2 = lon1 + math.atan2(
        math.sin(heading_rad) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )

    return Position(
        latitude=rad_to_deg(lat2),
        longitude=rad_to_deg(lon2),
        timestamp=position.timestamp + timedelta(hours=hours_ahead),
    )


def is_vessel_moving(sog_mps: float, threshold_knots: float = 1.0) -> bool:
    """True iff speed over ground is strictly above the threshold."""
    return sog_mps > knots_to_mps(threshold_knots)


def haversine_distance(a: Position, b: Position) -> float:
    """Great-circle distance between two positions in metres."""
    d_lat = deg_to_rad(b.latitude - a.latitude)
    d_lon = deg_to_rad(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(deg_to_rad(a.latitude)) * math.cos(deg_to_rad(b.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def should_update_forecast(
    position: Position, state: SessionState, now: float | None = None
) -> bool:
    """
    Decide whether position warrants a new forecast fetch.

    True when there is no previous forecast position or fetch time, when the
    configured interval has elapsed, or when the vessel is more than ~5 nm
    from where the last forecast was fetched.
    """
    if state.last_forecast_position is None or not state.last_forecast_update:
        return True

    if now is None:
        now = time.time()
    interval = state.config.forecast_interval_seconds if state.config else DEFAULT_FORECAST_INTERVAL * 60
    if now - state.last_forecast_update >= interval:
        return True

    return haversine_distance(state.last_forecast_position, position) > FORECAST_DISTANCE_TRIGGER_M
