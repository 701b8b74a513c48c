"""
Low-level forecast fetching from the Meteoblue packages API.

Responsible for:
- Building the package URL and query parameters for a position
- Fetching the raw forecast payload (data_1h / data_day / metadata)

Transport errors propagate; the session decides how to recover.
"""
import logging

from custom_components.marine_meteo.config import MeteoConfig
from custom_components.marine_meteo.const import FORECAST_API_URL
from custom_components.marine_meteo.packages import PackageSelection
from custom_components.marine_meteo.requests import make_request

_LOGGER = logging.getLogger(__name__)


class NoPackagesEnabledError(ValueError):
    """Raised when a fetch is attempted with an empty package selection."""


def build_forecast_request(
    latitude: float, longitude: float, config: MeteoConfig, selection: PackageSelection
) -> tuple[str, dict]:
    """
    Return (url, params) for a forecast request at the given position.

    The provider ignores start/end windows and always answers from local
    midnight, so no period count is sent; callers trim client-side.

    Example request:
    https://my.meteoblue.com/packages/basic-1h_basic-day?apikey=KEY&lat=47.5&lon=7.6&asl=15&format=json
    """
    if not selection:
        raise NoPackagesEnabledError("No Meteoblue packages enabled in configuration")

    url = FORECAST_API_URL + selection.path_segment()
    params = {
        "apikey": config.api_key,
        "lat": latitude,
        "lon": longitude,
        "asl": config.altitude,
        "format": "json",
    }
    return url, params


async def fetch_forecast(
    latitude: float, longitude: float, config: MeteoConfig, selection: PackageSelection
) -> dict:
    """
    Fetch the raw forecast for one position.

    Raises on transport failure and ValueError when the payload is not a
    JSON object.
    """
    url, params = build_forecast_request(latitude, longitude, config, selection)
    _LOGGER.debug(
        "Fetching forecast for %.6f, %.6f (packages: %s)",
        latitude, longitude, ", ".join(selection.identifiers()),
    )

    raw_json = await make_request(url, params=params)
    if not isinstance(raw_json, dict):
        raise ValueError(f"Unexpected forecast response format: {type(raw_json).__name__}")

    _LOGGER.debug("Forecast response received. Keys: %s", ", ".join(raw_json.keys()))
    for key in ("data_1h", "data_day"):
        series = raw_json.get(key)
        if isinstance(series, dict):
            _LOGGER.debug("%s has %s periods", key, len(series.get("time") or []))
    return raw_json
