"""
SessionController for the Marine Meteo integration.

Responsibilities:
- Own the SessionState of one config entry and the lifecycle
  Uninitialized → Initializing → Active ⇄ Error.
- Drive two independent timers: the forecast interval and the 6-hourly
  account check, plus one deferred initial fetch and account check.
- Consume navigation readings (position, heading, speed over ground) and the
  moving-forecast engagement command.
- Funnel every forecast trigger (timer, position update, initial fetch,
  manual refresh) through one dispatch decision: moving path when the vessel
  is moving and engaged, stationary path otherwise.

Failures never escape a timer or listener; they end up in `status`.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_call_later, async_track_time_interval

from .api.account import fetch_account_usage
from .api.forecast import fetch_forecast
from .bus import MessageBus
from .config import MeteoConfig
from .const import ACCOUNT_CHECK_INTERVAL, INITIAL_ACCOUNT_CHECK_DELAY, INITIAL_FORECAST_DELAY
from .models import AccountUsageSummary, CommandResult, Position, SessionState, SessionStatus
from .moving import MovingForecastError, MovingForecastOrchestrator, wants_moving_forecast
from .navigation import is_vessel_moving, should_update_forecast
from .normalizer import normalize_daily, normalize_hourly
from .packages import PackageSelection
from .publisher import ForecastPublisher
from .quota import evaluate_usage

_LOGGER = logging.getLogger(__name__)

FetchAccount = Callable[[str, int], Awaitable[AccountUsageSummary | None]]


class SessionController:
    """Runs forecasting for one vessel session."""

    def __init__(
        self,
        hass: HomeAssistant,
        config: MeteoConfig,
        bus: MessageBus,
        fetch=fetch_forecast,
        fetch_account: FetchAccount = fetch_account_usage,
    ) -> None:
        self.hass = hass
        self.config = config
        self.bus = bus
        self.publisher = ForecastPublisher(bus)
        self.orchestrator = MovingForecastOrchestrator(self.publisher, fetch=fetch)
        self.selection = PackageSelection.from_config(config)
        self.state = SessionState()
        self.lifecycle = SessionStatus.UNINITIALIZED
        self.status = "Not started"

        self._fetch = fetch
        self._fetch_account = fetch_account
        self._unsubs: list[CALLBACK_TYPE] = []
        self._fetch_lock = asyncio.Lock()
        # Bumped on stop so in-flight work cannot write into a reset state
        self._generation = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        """Active, or in a recoverable error that the next trigger may clear."""
        return bool(self._unsubs) and self.lifecycle in (SessionStatus.ACTIVE, SessionStatus.ERROR)

    def start(self) -> bool:
        """
        Validate the configuration, publish the initial engagement state and
        schedule all timers.  Returns False on a configuration error; the
        session then stays in ERROR until it is restarted.
        """
        self.lifecycle = SessionStatus.INITIALIZING
        self._set_status("Initializing...")
        _LOGGER.info("Starting Meteoblue forecast session")

        if not self.config.api_key:
            _LOGGER.error("Meteoblue API key is required")
            self._set_error("Configuration error: API key required")
            return False
        if not self.selection:
            _LOGGER.error("No Meteoblue packages enabled in configuration")
            self._set_error("Configuration error: no packages enabled")
            return False

        self.state = SessionState(config=self.config)
        _LOGGER.debug("Enabled packages: %s", ", ".join(self.selection.identifiers()))

        if not self.config.enable_position_subscription or not self.config.position_entity:
            self._seed_home_position()

        self.publisher.publish_engaged(self.state.moving_forecast_engaged)

        self._unsubs.append(async_call_later(
            self.hass, INITIAL_ACCOUNT_CHECK_DELAY, self._on_initial_account_check
        ))
        self._unsubs.append(async_call_later(
            self.hass, INITIAL_FORECAST_DELAY, self._on_initial_forecast
        ))
        self._unsubs.append(async_track_time_interval(
            self.hass, self._on_forecast_timer,
            timedelta(seconds=self.config.forecast_interval_seconds),
        ))
        self._unsubs.append(async_track_time_interval(
            self.hass, self._on_account_timer, timedelta(seconds=ACCOUNT_CHECK_INTERVAL),
        ))

        self.lifecycle = SessionStatus.ACTIVE
        self._set_status("Active")
        return True

    def stop(self) -> None:
        """Cancel timers and reset the session state. In-flight requests run to completion."""
        for unsub in self._unsubs:
            unsub()
        self._unsubs.clear()
        self._generation += 1
        self.state = SessionState()
        self.lifecycle = SessionStatus.UNINITIALIZED
        self._set_status("Stopped")
        _LOGGER.info("Meteoblue forecast session stopped")

    def add_unsub(self, unsub: CALLBACK_TYPE) -> None:
        """Release unsub together with the timers on stop."""
        self._unsubs.append(unsub)

    def _seed_home_position(self) -> None:
        latitude = self.hass.config.latitude
        longitude = self.hass.config.longitude
        if latitude is None or longitude is None:
            _LOGGER.warning("No home coordinates configured; waiting for position updates")
            return
        _LOGGER.debug("Using home position %.6f, %.6f", latitude, longitude)
        self.state.current_position = Position(latitude=latitude, longitude=longitude)

    def _set_status(self, status: str) -> None:
        self.status = status
        self.bus.async_notify()

    def _set_error(self, status: str) -> None:
        self.lifecycle = SessionStatus.ERROR
        self._set_status(status)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    @callback
    def _on_initial_account_check(self, _now: datetime) -> None:
        self.hass.async_create_task(self.async_check_account(initial=True))

    @callback
    def _on_initial_forecast(self, _now: datetime) -> None:
        # A position update may already have triggered the first fetch
        if self.state.last_forecast_update is not None:
            return
        if self.state.current_position is None:
            _LOGGER.debug("No position available yet for the initial forecast")
            return
        self.hass.async_create_task(self.async_dispatch_fetch("initial"))

    @callback
    def _on_forecast_timer(self, _now: datetime) -> None:
        if self.state.current_position is None:
            _LOGGER.debug("Forecast timer fired without a known position")
            return
        self.hass.async_create_task(self.async_dispatch_fetch("timer"))

    @callback
    def _on_account_timer(self, _now: datetime) -> None:
        self.hass.async_create_task(self.async_check_account())

    # ------------------------------------------------------------------
    # Navigation input
    # ------------------------------------------------------------------

    async def async_handle_position(self, position: Position) -> None:
        """Record a new position and fetch when it warrants a new forecast."""
        self.state.current_position = position
        _LOGGER.debug("Position update: %.6f, %.6f", position.latitude, position.longitude)

        if not self.is_running or not self.config.enable_position_subscription:
            return
        if should_update_forecast(position, self.state):
            await self.async_dispatch_fetch("position")

    @callback
    def seed_position(self, position: Position) -> None:
        """Take position as the current one without triggering a fetch."""
        self.state.current_position = position
        _LOGGER.debug("Initial position: %.6f, %.6f", position.latitude, position.longitude)

    @callback
    def handle_heading(self, heading: float) -> None:
        """Record heading in radians true."""
        self.state.current_heading = heading

    @callback
    def handle_speed_over_ground(self, sog: float) -> None:
        """
        Record speed over ground in m/s.

        Engages moving forecasts when auto-engage is on and the vessel starts
        moving; never disengages.
        """
        self.state.current_sog = sog
        if (
            self.config.enable_auto_moving_forecast
            and not self.state.moving_forecast_engaged
            and is_vessel_moving(sog, self.config.moving_speed_threshold)
        ):
            _LOGGER.info(
                "Vessel moving above %s knots; engaging moving forecast",
                self.config.moving_speed_threshold,
            )
            self._apply_engaged(True)
        else:
            self.bus.async_notify()

    # ------------------------------------------------------------------
    # Engagement command
    # ------------------------------------------------------------------

    @callback
    def set_engaged(self, value: Any) -> CommandResult:
        """Set the moving-forecast flag; anything but a bool is rejected."""
        if not isinstance(value, bool):
            _LOGGER.error(
                "Invalid value for moving forecast engagement: expected boolean, got %s",
                type(value).__name__,
            )
            return CommandResult(state="FAILURE", status_code=400)
        self._apply_engaged(value)
        return CommandResult(state="COMPLETED", status_code=200)

    def _apply_engaged(self, engaged: bool) -> None:
        self.state.moving_forecast_engaged = engaged
        self.publisher.publish_engaged(engaged)
        _LOGGER.debug("Moving forecast engaged: %s", engaged)

    # ------------------------------------------------------------------
    # Forecast dispatch
    # ------------------------------------------------------------------

    async def async_dispatch_fetch(self, trigger: str = "manual") -> bool:
        """
        Run one forecast cycle from a snapshot of the current state.

        Picks the moving path when heading and speed are known, the vessel is
        moving and engagement is on; otherwise the stationary path.  A trigger
        arriving while a cycle runs is skipped.  Returns True on success.
        """
        if self._fetch_lock.locked():
            _LOGGER.debug("Forecast cycle already running; skipping %s trigger", trigger)
            return False

        async with self._fetch_lock:
            position = self.state.current_position
            if position is None:
                _LOGGER.warning("No position available; skipping %s forecast", trigger)
                return False

            generation = self._generation
            moving = wants_moving_forecast(self.state)
            heading = self.state.current_heading
            sog = self.state.current_sog
            _LOGGER.debug(
                "%s forecast trigger (%s path)", trigger.capitalize(),
                "moving" if moving else "stationary",
            )

            try:
                if moving:
                    try:
                        result = await self.orchestrator.run(
                            position, heading, sog, self.config, self.selection
                        )
                        _LOGGER.debug("Published %s position-specific records", result.record_count())
                    except MovingForecastError as exc:
                        _LOGGER.error("Failed to fetch position-specific forecasts: %s", exc)
                        _LOGGER.debug("Falling back to stationary forecast")
                        await self.async_fetch_stationary(position)
                else:
                    await self.async_fetch_stationary(position)
            except Exception as exc:  # noqa: BLE001
                _LOGGER.error("Failed to fetch forecast: %s", exc)
                if generation == self._generation:
                    self._set_error(f"Error: {exc}")
                return False

            if generation != self._generation:
                return False
            self.state.last_forecast_update = time.time()
            self.state.last_forecast_position = position
            self.lifecycle = SessionStatus.ACTIVE
            self._set_status(f"Last updated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
            return True

    async def async_fetch_stationary(self, position: Position) -> None:
        """Fetch every enabled package at position and publish the results."""
        data = await self._fetch(position.latitude, position.longitude, self.config, self.selection)

        if "metadata" in data:
            self.publisher.publish_metadata(data["metadata"])
        for package in self.selection.hourly:
            forecasts = [
                {**record, "vesselMoving": False}
                for record in normalize_hourly(data.get("data_1h"), self.config.max_forecast_hours, package)
            ]
            self.publisher.publish_hourly(forecasts, package)
        for package in self.selection.daily:
            forecasts = normalize_daily(data.get("data_day"), self.config.max_forecast_days, package)
            self.publisher.publish_daily(forecasts, package)

    # ------------------------------------------------------------------
    # Account usage
    # ------------------------------------------------------------------

    async def async_check_account(self, initial: bool = False) -> AccountUsageSummary | None:
        """
        Check credit usage, publish the summary and any quota alert.

        A failed check keeps the last known summary.
        """
        generation = self._generation
        summary = await self._fetch_account(self.config.api_key, self.config.monthly_credit_limit)
        if generation != self._generation:
            return None
        if summary is None:
            _LOGGER.error("Failed to check Meteoblue account usage")
            if initial:
                self._set_status("Warning: Could not validate API key")
            else:
                self._set_status("Warning: Could not check API usage")
            return None

        previous = self.state.account_info
        self.state.account_info = summary
        self.state.last_account_check = time.time()
        self.publisher.publish_account(summary)

        notification = evaluate_usage(summary, previous)
        if notification is not None:
            _LOGGER.warning("Meteoblue usage notification: %s", notification.message)
            self.publisher.publish_notification(notification)

        if initial:
            self._set_status(f"Active - {summary.remaining_credits} API requests remaining")
        return summary
