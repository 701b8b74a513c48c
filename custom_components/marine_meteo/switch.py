"""
Platform for the moving forecast switch.
Turning it on or off sends the engagement command to the forecast session.
"""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.switch import SwitchDeviceClass, SwitchEntity
from homeassistant.core import HomeAssistant

from custom_components.marine_meteo.const import DOMAIN
from custom_components.marine_meteo.entity import MeteoEntity
from custom_components.marine_meteo.session import SessionController

_LOGGER = logging.getLogger(__name__)


class MeteoMovingForecastSwitch(MeteoEntity, SwitchEntity):
    """
    Representation of the moving forecast engagement flag.
    The state follows the session, so auto-engagement shows up here too.
    """

    def __init__(self, controller: SessionController, entry_id: str) -> None:
        super().__init__(controller, entry_id, "moving_forecast")
        self._attr_name = "Moving Forecast"
        self._attr_icon = "mdi:map-marker-path"

    @property
    def device_class(self) -> SwitchDeviceClass | str | None:
        return SwitchDeviceClass.SWITCH

    @property
    def is_on(self) -> bool:
        """Return true if moving forecasts are engaged."""
        return self._controller.state.moving_forecast_engaged

    async def async_turn_on(self, **kwargs) -> None:
        """Engage moving forecasts."""
        self._controller.set_engaged(True)
        self.async_write_ha_state()

    async def async_turn_off(self, **kwargs) -> None:
        """Disengage moving forecasts."""
        self._controller.set_engaged(False)
        self.async_write_ha_state()


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the moving forecast switch for passed config_entry in HA."""
    runtime = hass.data[DOMAIN][config_entry.entry_id]
    async_add_entities([MeteoMovingForecastSwitch(runtime.controller, config_entry.entry_id)])
