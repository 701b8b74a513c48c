"""Base entity shared by the Marine Meteo platforms."""
from __future__ import annotations

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import Entity

from custom_components.marine_meteo.const import DOMAIN, VERSION
from custom_components.marine_meteo.session import SessionController


class MeteoEntity(Entity):
    """
    Entity bound to one forecast session.
    Pushed by the session's MessageBus signal instead of being polled.
    """

    def __init__(self, controller: SessionController, entry_id: str, key: str) -> None:
        self._controller = controller
        self._entry_id = entry_id
        self._attr_unique_id = f"marine_meteo_{entry_id}_{key}"

    @property
    def device_info(self) -> DeviceInfo | None:
        """Return the device info."""
        return DeviceInfo(
            identifiers={(DOMAIN, self._entry_id)},
            name="Meteoblue Marine Forecast",
            manufacturer="meteoblue",
            model="Forecast API",
            sw_version=VERSION,
            entry_type=DeviceEntryType.SERVICE,
        )

    @property
    def should_poll(self) -> bool:
        return False

    async def async_added_to_hass(self) -> None:
        self.async_on_remove(
            async_dispatcher_connect(self.hass, self._controller.bus.signal, self._handle_update)
        )

    @callback
    def _handle_update(self) -> None:
        self.async_write_ha_state()
