"""Config flow for Marine Meteo integration."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    CONF_ALTITUDE,
    CONF_API_KEY,
    CONF_ENABLE_AUTO_MOVING_FORECAST,
    CONF_ENABLE_POSITION_SUBSCRIPTION,
    CONF_FORECAST_INTERVAL,
    CONF_HEADING_ENTITY,
    CONF_MAX_FORECAST_DAYS,
    CONF_MAX_FORECAST_HOURS,
    CONF_MONTHLY_CREDIT_LIMIT,
    CONF_MOVING_SPEED_THRESHOLD,
    CONF_POSITION_ENTITY,
    CONF_SPEED_ENTITY,
    DEFAULT_ALTITUDE,
    DEFAULT_FORECAST_INTERVAL,
    DEFAULT_MAX_FORECAST_DAYS,
    DEFAULT_MAX_FORECAST_HOURS,
    DEFAULT_MONTHLY_CREDIT_LIMIT,
    DEFAULT_MOVING_SPEED_THRESHOLD,
    DOMAIN,
    MAX_FORECAST_DAYS_LIMIT,
    MAX_FORECAST_HOURS_LIMIT,
    MAX_MOVING_SPEED_THRESHOLD,
    MIN_FORECAST_INTERVAL,
    MIN_MOVING_SPEED_THRESHOLD,
    PACKAGE_FLAG_DEFAULTS,
)

_LOGGER = logging.getLogger(__name__)

ENTRY_TITLE = "Meteoblue Marine Forecast"

DEFAULTS: Dict[str, Any] = {
    CONF_API_KEY: "",
    CONF_FORECAST_INTERVAL: DEFAULT_FORECAST_INTERVAL,
    CONF_ALTITUDE: DEFAULT_ALTITUDE,
    **PACKAGE_FLAG_DEFAULTS,
    CONF_ENABLE_POSITION_SUBSCRIPTION: True,
    CONF_MAX_FORECAST_HOURS: DEFAULT_MAX_FORECAST_HOURS,
    CONF_MAX_FORECAST_DAYS: DEFAULT_MAX_FORECAST_DAYS,
    CONF_ENABLE_AUTO_MOVING_FORECAST: True,
    CONF_MOVING_SPEED_THRESHOLD: DEFAULT_MOVING_SPEED_THRESHOLD,
    CONF_MONTHLY_CREDIT_LIMIT: DEFAULT_MONTHLY_CREDIT_LIMIT,
    CONF_POSITION_ENTITY: "",
    CONF_HEADING_ENTITY: "",
    CONF_SPEED_ENTITY: "",
}


def build_schema(defaults: Dict[str, Any]) -> vol.Schema:
    """Form schema with the given defaults; used by both config and options flow."""
    fields = {
        vol.Required(CONF_API_KEY, default=defaults[CONF_API_KEY]): cv.string,
        vol.Required(CONF_FORECAST_INTERVAL, default=defaults[CONF_FORECAST_INTERVAL]):
            vol.All(vol.Coerce(int), vol.Range(min=MIN_FORECAST_INTERVAL)),
        vol.Required(CONF_ALTITUDE, default=defaults[CONF_ALTITUDE]): vol.Coerce(float),
    }
    for key in PACKAGE_FLAG_DEFAULTS:
        fields[vol.Required(key, default=defaults[key])] = cv.boolean
    fields.update({
        vol.Required(CONF_ENABLE_POSITION_SUBSCRIPTION, default=defaults[CONF_ENABLE_POSITION_SUBSCRIPTION]): cv.boolean,
        vol.Required(CONF_MAX_FORECAST_HOURS, default=defaults[CONF_MAX_FORECAST_HOURS]):
            vol.All(vol.Coerce(int), vol.Range(min=1, max=MAX_FORECAST_HOURS_LIMIT)),
        vol.Required(CONF_MAX_FORECAST_DAYS, default=defaults[CONF_MAX_FORECAST_DAYS]):
            vol.All(vol.Coerce(int), vol.Range(min=1, max=MAX_FORECAST_DAYS_LIMIT)),
        vol.Required(CONF_ENABLE_AUTO_MOVING_FORECAST, default=defaults[CONF_ENABLE_AUTO_MOVING_FORECAST]): cv.boolean,
        vol.Required(CONF_MOVING_SPEED_THRESHOLD, default=defaults[CONF_MOVING_SPEED_THRESHOLD]):
            vol.All(vol.Coerce(float), vol.Range(min=MIN_MOVING_SPEED_THRESHOLD, max=MAX_MOVING_SPEED_THRESHOLD)),
        vol.Required(CONF_MONTHLY_CREDIT_LIMIT, default=defaults[CONF_MONTHLY_CREDIT_LIMIT]):
            vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(CONF_POSITION_ENTITY, default=defaults[CONF_POSITION_ENTITY]): cv.string,
        vol.Optional(CONF_HEADING_ENTITY, default=defaults[CONF_HEADING_ENTITY]): cv.string,
        vol.Optional(CONF_SPEED_ENTITY, default=defaults[CONF_SPEED_ENTITY]): cv.string,
    })
    return vol.Schema(fields)


CONFIG_SCHEMA = build_schema(DEFAULTS)


def validate_input(user_input: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    # If api_key is null or empty string, add error
    if not user_input.get(CONF_API_KEY) or not str(user_input[CONF_API_KEY]).strip():
        errors['base'] = 'api_key_required'
    # At least one package has to be enabled
    elif not any(user_input.get(key, default) for key, default in PACKAGE_FLAG_DEFAULTS.items()):
        errors['base'] = 'no_packages'
    return errors


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = user_input
            errors = validate_input(self.data)
            if not errors:
                self.data[CONF_API_KEY] = self.data[CONF_API_KEY].strip()
                # One entry per API key
                self._async_abort_entries_match({CONF_API_KEY: self.data[CONF_API_KEY]})
                return self.async_create_entry(title=ENTRY_TITLE, data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler()


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def _current_defaults(self) -> Dict[str, Any]:
        defaults = dict(DEFAULTS)
        for key in DEFAULTS:
            if key in self.config_entry.data:
                defaults[key] = self.config_entry.data[key]
            if key in self.config_entry.options:
                defaults[key] = self.config_entry.options[key]
        return defaults

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}

        if user_input is not None:
            errors = validate_input(user_input)
            if not errors:
                user_input[CONF_API_KEY] = user_input[CONF_API_KEY].strip()
                # Stored as options; the update listener reloads the entry
                return self.async_create_entry(title="", data=user_input)

        options_schema = build_schema(self._current_defaults())
        return self.async_show_form(step_id="init", data_schema=options_schema, errors=errors)
