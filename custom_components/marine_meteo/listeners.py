"""
Navigation inputs from Home Assistant entities.

Responsible for:
- Reading position from an entity's latitude/longitude attributes
  (device_tracker, zone-like or GPS sensor entities)
- Reading heading in degrees (or radians when the entity says "rad")
- Reading speed over ground in any HA speed unit, converted to m/s
- Forwarding each reading to the SessionController in arrival order
"""
from __future__ import annotations

import logging

from homeassistant.const import (
    ATTR_LATITUDE,
    ATTR_LONGITUDE,
    ATTR_UNIT_OF_MEASUREMENT,
    STATE_UNAVAILABLE,
    STATE_UNKNOWN,
    UnitOfSpeed,
)
from homeassistant.core import CALLBACK_TYPE, Event, HomeAssistant, State, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import EventStateChangedData, async_track_state_change_event
from homeassistant.util.unit_conversion import SpeedConverter

from .models import Position
from .session import SessionController
from .units import deg_to_rad

_LOGGER = logging.getLogger(__name__)


def _numeric_state(state: State | None) -> float | None:
    if state is None or state.state in (STATE_UNKNOWN, STATE_UNAVAILABLE):
        return None
    try:
        return float(state.state)
    except (TypeError, ValueError):
        return None


def position_from_state(state: State | None) -> Position | None:
    if state is None:
        return None
    latitude = state.attributes.get(ATTR_LATITUDE)
    longitude = state.attributes.get(ATTR_LONGITUDE)
    try:
        return Position(latitude=float(latitude), longitude=float(longitude))
    except (TypeError, ValueError):
        return None


def heading_from_state(state: State | None) -> float | None:
    """Heading in radians true."""
    value = _numeric_state(state)
    if value is None:
        return None
    if state.attributes.get(ATTR_UNIT_OF_MEASUREMENT) == "rad":
        return value
    return deg_to_rad(value)


def sog_from_state(state: State | None) -> float | None:
    """Speed over ground in m/s; a missing unit is taken as m/s."""
    value = _numeric_state(state)
    if value is None:
        return None
    unit = state.attributes.get(ATTR_UNIT_OF_MEASUREMENT) or UnitOfSpeed.METERS_PER_SECOND
    try:
        return SpeedConverter.convert(value, unit, UnitOfSpeed.METERS_PER_SECOND)
    except HomeAssistantError as e:
        _LOGGER.warning("Unsupported speed unit %s on %s: %s", unit, state.entity_id, e)
        return None


@callback
def async_setup_listeners(hass: HomeAssistant, controller: SessionController) -> list[CALLBACK_TYPE]:
    """Subscribe the controller to the configured navigation entities."""
    config = controller.config
    unsubs: list[CALLBACK_TYPE] = []

    if config.enable_position_subscription and config.position_entity:

        @callback
        def _position_changed(event: Event[EventStateChangedData]) -> None:
            position = position_from_state(event.data["new_state"])
            if position is None:
                _LOGGER.debug("Ignoring position update without coordinates")
                return
            hass.async_create_task(controller.async_handle_position(position))

        unsubs.append(async_track_state_change_event(hass, [config.position_entity], _position_changed))
        # Pick up the current reading straight away
        initial = position_from_state(hass.states.get(config.position_entity))
        if initial is not None:
            controller.seed_position(initial)

    if config.heading_entity:

        @callback
        def _heading_changed(event: Event[EventStateChangedData]) -> None:
            heading = heading_from_state(event.data["new_state"])
            if heading is not None:
                controller.handle_heading(heading)

        unsubs.append(async_track_state_change_event(hass, [config.heading_entity], _heading_changed))
        heading = heading_from_state(hass.states.get(config.heading_entity))
        if heading is not None:
            controller.handle_heading(heading)

    if config.speed_entity:

        @callback
        def _speed_changed(event: Event[EventStateChangedData]) -> None:
            sog = sog_from_state(event.data["new_state"])
            if sog is not None:
                controller.handle_speed_over_ground(sog)

        unsubs.append(async_track_state_change_event(hass, [config.speed_entity], _speed_changed))
        sog = sog_from_state(hass.states.get(config.speed_entity))
        if sog is not None:
            controller.handle_speed_over_ground(sog)

    _LOGGER.debug("Subscribed to %s navigation entities", len(unsubs))
    return unsubs
