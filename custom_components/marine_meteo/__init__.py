import dataclasses
import logging

import voluptuous as vol

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ServiceValidationError
import homeassistant.helpers.config_validation as cv

from .bus import MessageBus
from .config import MeteoConfig
from .const import ATTR_ENGAGED, DOMAIN, SERVICE_REFRESH_FORECAST, SERVICE_SET_MOVING_FORECAST
from .listeners import async_setup_listeners
from .session import SessionController

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.BINARY_SENSOR, Platform.SWITCH]
_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

# Passed through unchanged; set_engaged accepts real booleans only
SET_MOVING_FORECAST_SCHEMA = vol.Schema({vol.Required(ATTR_ENGAGED): cv.match_all})


@dataclasses.dataclass
class MeteoRuntime:
    """Per-entry objects shared with the platforms."""

    bus: MessageBus
    controller: SessionController


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})

    async def _set_moving_forecast(call: ServiceCall) -> None:
        for runtime in _runtimes(hass):
            result = runtime.controller.set_engaged(call.data[ATTR_ENGAGED])
            if not result.ok:
                raise ServiceValidationError(
                    f"Moving forecast engagement must be a boolean, got {call.data[ATTR_ENGAGED]!r}"
                )

    async def _refresh_forecast(call: ServiceCall) -> None:
        for runtime in _runtimes(hass):
            await runtime.controller.async_dispatch_fetch("manual")

    hass.services.async_register(
        DOMAIN, SERVICE_SET_MOVING_FORECAST, _set_moving_forecast, schema=SET_MOVING_FORECAST_SCHEMA
    )
    hass.services.async_register(DOMAIN, SERVICE_REFRESH_FORECAST, _refresh_forecast)
    return True


def _runtimes(hass: HomeAssistant) -> list[MeteoRuntime]:
    return list(hass.data.get(DOMAIN, {}).values())


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up a forecast session from a ConfigEntry."""
    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    config = MeteoConfig.from_entry(entry.data, entry.options)
    bus = MessageBus(hass, entry.entry_id)
    controller = SessionController(hass, config, bus)

    if controller.start():
        for unsub in async_setup_listeners(hass, controller):
            controller.add_unsub(unsub)
    else:
        _LOGGER.error("Marine Meteo session not started: %s", controller.status)

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = MeteoRuntime(bus=bus, controller=controller)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # Reload the integration when the options change.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        runtime = hass.data[DOMAIN].pop(entry.entry_id, None)
        if runtime is not None:
            runtime.controller.stop()
    return unloaded
