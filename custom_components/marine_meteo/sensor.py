"""
Platform for Marine Meteo sensors.
This module is responsible for setting up the account usage, session status
and current-hour forecast sensors from the values published on the data bus.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.const import (
    DEGREE,
    PERCENTAGE,
    UnitOfLength,
    UnitOfPressure,
    UnitOfSpeed,
    UnitOfTemperature,
)
from homeassistant.core import HomeAssistant

from custom_components.marine_meteo.const import DOMAIN, PATH_ACCOUNT, PATH_HOURLY_PREFIX
from custom_components.marine_meteo.entity import MeteoEntity
from custom_components.marine_meteo.session import SessionController
from custom_components.marine_meteo.units import rad_to_deg

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ForecastSensorDescription:
    parameter: str
    name: str
    icon: str
    unit: str | None = None
    device_class: SensorDeviceClass | None = None
    # Applied to the bus value before it is shown
    convert: Any = None


FORECAST_SENSORS: tuple[ForecastSensorDescription, ...] = (
    ForecastSensorDescription(
        "temperature", "Temperature", "mdi:thermometer",
        UnitOfTemperature.KELVIN, SensorDeviceClass.TEMPERATURE,
    ),
    ForecastSensorDescription(
        "windspeed", "Wind Speed", "mdi:weather-windy",
        UnitOfSpeed.METERS_PER_SECOND, SensorDeviceClass.WIND_SPEED,
    ),
    ForecastSensorDescription(
        "winddirection", "Wind Direction", "mdi:compass-outline", DEGREE, convert=rad_to_deg,
    ),
    ForecastSensorDescription(
        "sealevelpressure", "Sea Level Pressure", "mdi:gauge",
        UnitOfPressure.PA, SensorDeviceClass.PRESSURE,
    ),
    ForecastSensorDescription(
        "significantwaveheight", "Significant Wave Height", "mdi:waves",
        UnitOfLength.METERS, SensorDeviceClass.DISTANCE,
    ),
    ForecastSensorDescription("douglas_seastate_description", "Sea State", "mdi:waves-arrow-up"),
)


class MeteoUsageSensor(MeteoEntity, SensorEntity):
    """
    Share of the monthly Meteoblue credit limit used so far.
    The full account summary is exposed as attributes.
    """

    def __init__(self, controller: SessionController, entry_id: str) -> None:
        super().__init__(controller, entry_id, "api_usage")
        self._attr_name = "Meteoblue API Usage"
        self._attr_icon = "mdi:counter"
        self._attr_native_unit_of_measurement = PERCENTAGE
        self._attr_state_class = SensorStateClass.MEASUREMENT

    @property
    def native_value(self) -> int | None:
        account = self._controller.bus.value(PATH_ACCOUNT)
        if not account:
            return None
        return account.get("usagePercentage")

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        return self._controller.bus.value(PATH_ACCOUNT)


class MeteoStatusSensor(MeteoEntity, SensorEntity):
    """Human-readable session status."""

    def __init__(self, controller: SessionController, entry_id: str) -> None:
        super().__init__(controller, entry_id, "status")
        self._attr_name = "Meteoblue Forecast Status"
        self._attr_icon = "mdi:information-outline"

    @property
    def native_value(self) -> str:
        return self._controller.status

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        state = self._controller.state
        return {
            "lifecycle": self._controller.lifecycle.value,
            "last_forecast_update": state.last_forecast_update,
            "last_account_check": state.last_account_check,
            "moving_forecast_engaged": state.moving_forecast_engaged,
        }


class MeteoForecastSensor(MeteoEntity, SensorEntity):
    """Forecast value for the current hour (period index 0)."""

    def __init__(
        self, controller: SessionController, entry_id: str, description: ForecastSensorDescription
    ) -> None:
        super().__init__(controller, entry_id, f"forecast_{description.parameter}")
        self._description = description
        self._path = f"{PATH_HOURLY_PREFIX}.{description.parameter}.0"
        self._attr_name = f"Forecast {description.name}"
        self._attr_icon = description.icon
        self._attr_native_unit_of_measurement = description.unit
        self._attr_device_class = description.device_class
        if description.unit is not None:
            self._attr_state_class = SensorStateClass.MEASUREMENT

    @property
    def native_value(self) -> Any:
        value = self._controller.bus.value(self._path)
        if value is None or self._description.convert is None:
            return value
        return self._description.convert(value)

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        published = self._controller.bus.get(self._path)
        if published is None:
            return None
        return {"source": published.source, "timestamp": published.timestamp}


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for passed config_entry in HA."""
    _LOGGER.debug("Starting sensor setup for Marine Meteo integration")
    runtime = hass.data[DOMAIN][config_entry.entry_id]
    controller = runtime.controller
    entry_id = config_entry.entry_id

    entities: list[SensorEntity] = [
        MeteoUsageSensor(controller, entry_id),
        MeteoStatusSensor(controller, entry_id),
    ]
    entities.extend(
        MeteoForecastSensor(controller, entry_id, description) for description in FORECAST_SENSORS
    )
    async_add_entities(entities)
