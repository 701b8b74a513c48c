"""
Unit tests for __init__.py: services, async_setup_entry and async_unload_entry.

Coverage:
- async_setup registers set_moving_forecast and refresh_forecast
- set_moving_forecast: non-boolean values such as "yes" or 1 are rejected with
  ServiceValidationError and leave the engagement flag untouched; True engages
- refresh_forecast runs one dispatch per session
- async_setup_entry: session started and listeners installed; on a
  configuration error no listeners are installed but the entry still loads
- async_unload_entry stops the session only when the platforms unloaded
"""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from homeassistant.exceptions import ServiceValidationError

from custom_components.marine_meteo import (
    SET_MOVING_FORECAST_SCHEMA,
    MeteoRuntime,
    async_setup,
    async_setup_entry,
    async_unload_entry,
)
from custom_components.marine_meteo.const import DOMAIN
from custom_components.marine_meteo.models import SessionStatus

from .test_common import make_controller, make_entry_data, make_hass

CALL_LATER = "custom_components.marine_meteo.session.async_call_later"
TIME_INTERVAL = "custom_components.marine_meteo.session.async_track_time_interval"
SETUP_LISTENERS = "custom_components.marine_meteo.async_setup_listeners"


def _make_mock_entry(**data) -> MagicMock:
    """Return a minimal mock ConfigEntry."""
    entry = MagicMock()
    entry.entry_id = "test-entry"
    entry.data = make_entry_data(**data)
    entry.options = {}
    entry.async_on_unload = MagicMock()
    entry.add_update_listener = MagicMock(return_value=MagicMock())
    return entry


def _service_call(**data) -> MagicMock:
    call = MagicMock()
    call.data = data
    return call


async def _registered_services(hass) -> dict:
    """Run async_setup and return service name → handler."""
    await async_setup(hass, {})
    return {
        registered.args[1]: registered.args[2]
        for registered in hass.services.async_register.call_args_list
    }


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

class TestServices(unittest.IsolatedAsyncioTestCase):

    async def test_services_registered(self):
        hass = make_hass()

        services = await _registered_services(hass)

        self.assertEqual(set(services), {"set_moving_forecast", "refresh_forecast"})
        self.assertIn(DOMAIN, hass.data)

    def test_schema_does_not_coerce_engaged(self):
        for value in ("yes", "on", 1, "enable"):
            self.assertEqual(SET_MOVING_FORECAST_SCHEMA({"engaged": value}), {"engaged": value})

    async def test_set_moving_forecast_rejects_non_boolean(self):
        hass = make_hass()
        services = await _registered_services(hass)
        controller = make_controller(hass=hass)
        hass.data[DOMAIN]["test-entry"] = MeteoRuntime(bus=controller.bus, controller=controller)

        for value in ("yes", 1):
            with self.assertRaises(ServiceValidationError):
                await services["set_moving_forecast"](_service_call(engaged=value))

        self.assertFalse(controller.state.moving_forecast_engaged)
        self.assertIsNone(controller.bus.value("commands.meteo.engaged"))

    async def test_set_moving_forecast_engages(self):
        hass = make_hass()
        services = await _registered_services(hass)
        controller = make_controller(hass=hass)
        hass.data[DOMAIN]["test-entry"] = MeteoRuntime(bus=controller.bus, controller=controller)

        await services["set_moving_forecast"](_service_call(engaged=True))

        self.assertTrue(controller.state.moving_forecast_engaged)
        self.assertIs(controller.bus.value("commands.meteo.engaged"), True)

    async def test_refresh_forecast_dispatches(self):
        hass = make_hass()
        services = await _registered_services(hass)
        controller = MagicMock()
        controller.async_dispatch_fetch = AsyncMock(return_value=True)
        hass.data[DOMAIN]["test-entry"] = MeteoRuntime(bus=MagicMock(), controller=controller)

        await services["refresh_forecast"](_service_call())

        controller.async_dispatch_fetch.assert_awaited_once_with("manual")


# ---------------------------------------------------------------------------
# Entry setup and unload
# ---------------------------------------------------------------------------

class TestAsyncSetupEntry(unittest.IsolatedAsyncioTestCase):

    def _make_hass(self):
        hass = make_hass()
        hass.config_entries.async_forward_entry_setups = AsyncMock()
        return hass

    async def test_valid_config_starts_session_and_listeners(self):
        hass = self._make_hass()
        entry = _make_mock_entry()
        unsub = MagicMock()

        with patch(CALL_LATER, return_value=MagicMock()), \
                patch(TIME_INTERVAL, return_value=MagicMock()), \
                patch(SETUP_LISTENERS, return_value=[unsub]) as mock_listeners:
            result = await async_setup_entry(hass, entry)

        self.assertTrue(result)
        runtime = hass.data[DOMAIN]["test-entry"]
        self.assertIs(runtime.controller.lifecycle, SessionStatus.ACTIVE)
        mock_listeners.assert_called_once_with(hass, runtime.controller)
        hass.config_entries.async_forward_entry_setups.assert_awaited_once()

        # Listener unsubs are released with the timers
        runtime.controller.stop()
        unsub.assert_called_once()

    async def test_config_error_installs_no_listeners(self):
        hass = self._make_hass()
        entry = _make_mock_entry(api_key="")

        with patch(CALL_LATER) as mock_call_later, \
                patch(TIME_INTERVAL), \
                patch(SETUP_LISTENERS) as mock_listeners:
            result = await async_setup_entry(hass, entry)

        self.assertTrue(result)
        runtime = hass.data[DOMAIN]["test-entry"]
        self.assertIs(runtime.controller.lifecycle, SessionStatus.ERROR)
        mock_listeners.assert_not_called()
        mock_call_later.assert_not_called()


class TestAsyncUnloadEntry(unittest.IsolatedAsyncioTestCase):

    async def test_unload_stops_session(self):
        hass = make_hass()
        hass.config_entries.async_unload_platforms = AsyncMock(return_value=True)
        controller = MagicMock()
        hass.data[DOMAIN] = {"test-entry": MeteoRuntime(bus=MagicMock(), controller=controller)}

        self.assertTrue(await async_unload_entry(hass, _make_mock_entry()))

        controller.stop.assert_called_once()
        self.assertNotIn("test-entry", hass.data[DOMAIN])

    async def test_failed_platform_unload_keeps_session(self):
        hass = make_hass()
        hass.config_entries.async_unload_platforms = AsyncMock(return_value=False)
        controller = MagicMock()
        hass.data[DOMAIN] = {"test-entry": MeteoRuntime(bus=MagicMock(), controller=controller)}

        self.assertFalse(await async_unload_entry(hass, _make_mock_entry()))

        controller.stop.assert_not_called()
        self.assertIn("test-entry", hass.data[DOMAIN])
