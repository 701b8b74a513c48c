"""
Platform for the vessel-moving binary sensor.
On when the last speed over ground reading is above the moving threshold.
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.components.binary_sensor import BinarySensorDeviceClass, BinarySensorEntity
from homeassistant.core import HomeAssistant

from custom_components.marine_meteo.const import DOMAIN
from custom_components.marine_meteo.entity import MeteoEntity
from custom_components.marine_meteo.navigation import is_vessel_moving
from custom_components.marine_meteo.session import SessionController
from custom_components.marine_meteo.units import mps_to_knots

_LOGGER = logging.getLogger(__name__)


class MeteoVesselMovingSensor(MeteoEntity, BinarySensorEntity):
    """Representation of the vessel moving state as seen by the forecast session."""

    def __init__(self, controller: SessionController, entry_id: str) -> None:
        super().__init__(controller, entry_id, "vessel_moving")
        self._attr_name = "Vessel Moving"
        self._attr_icon = "mdi:sail-boat"

    @property
    def device_class(self) -> BinarySensorDeviceClass | str | None:
        return BinarySensorDeviceClass.MOVING

    @property
    def is_on(self) -> bool | None:
        sog = self._controller.state.current_sog
        if sog is None:
            return None
        return is_vessel_moving(sog, self._controller.config.moving_speed_threshold)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        sog = self._controller.state.current_sog
        return {
            "speed_over_ground_knots": round(mps_to_knots(sog), 2) if sog is not None else None,
            "threshold_knots": self._controller.config.moving_speed_threshold,
        }


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add binary sensors for passed config_entry in HA."""
    runtime = hass.data[DOMAIN][config_entry.entry_id]
    async_add_entities([MeteoVesselMovingSensor(runtime.controller, config_entry.entry_id)])
