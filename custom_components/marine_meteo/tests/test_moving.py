"""
Unit tests for moving.py: forecasts along the predicted vessel track.

Coverage:
- wants_moving_forecast: every precondition (position, heading, speed,
  engagement, threshold), heading 0 counts as known
- periods_needed: same day and past midnight
- MovingForecastOrchestrator.run:
    * one request per hour at the predicted position, hourly packages only
    * records carry predictedLatitude/Longitude and vesselMoving
    * eastbound track → strictly increasing predictedLongitude
    * missing target hour leaves a gap in the published indices
    * a package with no record found still publishes (empty), clearing old values
    * daily packages fetched once at the current position
    * any request failure → MovingForecastError and nothing published
"""

from __future__ import annotations

import math
import unittest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from custom_components.marine_meteo.models import Position, SessionState
from custom_components.marine_meteo.moving import (
    MovingForecastError,
    MovingForecastOrchestrator,
    periods_needed,
    wants_moving_forecast,
)
from custom_components.marine_meteo.units import knots_to_mps

from .test_common import make_config, make_daily_series, make_hourly_series, make_selection

NOW = datetime(2024, 5, 1, 22, 10)
MIDNIGHT = datetime(2024, 5, 1)
START = Position(latitude=10.0, longitude=20.0)


def _response(**extra) -> dict:
    data = {
        "metadata": {"modelrun_utc": "2024-05-01 00:00"},
        "data_1h": make_hourly_series(MIDNIGHT, 72, temperature=15.0, windspeed=4.0),
    }
    data.update(extra)
    return data


def _moving_state(**kwargs) -> SessionState:
    defaults = dict(
        config=make_config(moving_speed_threshold=1.0),
        current_position=START,
        current_heading=math.pi / 2,
        current_sog=knots_to_mps(5),
        moving_forecast_engaged=True,
    )
    defaults.update(kwargs)
    return SessionState(**defaults)


# ---------------------------------------------------------------------------
# Decision and helpers
# ---------------------------------------------------------------------------

class TestWantsMovingForecast(unittest.TestCase):

    def test_all_conditions_met(self):
        self.assertTrue(wants_moving_forecast(_moving_state()))

    def test_north_heading_is_known(self):
        self.assertTrue(wants_moving_forecast(_moving_state(current_heading=0.0)))

    def test_not_engaged(self):
        self.assertFalse(wants_moving_forecast(_moving_state(moving_forecast_engaged=False)))

    def test_missing_navigation_data(self):
        self.assertFalse(wants_moving_forecast(_moving_state(current_position=None)))
        self.assertFalse(wants_moving_forecast(_moving_state(current_heading=None)))
        self.assertFalse(wants_moving_forecast(_moving_state(current_sog=None)))

    def test_below_threshold(self):
        self.assertFalse(wants_moving_forecast(_moving_state(current_sog=knots_to_mps(0.5))))


class TestPeriodsNeeded(unittest.TestCase):

    def test_same_day(self):
        self.assertEqual(periods_needed(datetime(2024, 5, 1, 22), NOW), 22 + 1 + 2)

    def test_past_midnight(self):
        self.assertEqual(periods_needed(datetime(2024, 5, 2, 1), NOW), 25 + 1 + 2)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class TestMovingForecastOrchestrator(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.publisher = MagicMock()
        self.fetch = AsyncMock(return_value=_response())
        self.orchestrator = MovingForecastOrchestrator(self.publisher, fetch=self.fetch, request_delay=0)

    async def _run(self, hours=4, packages=("basic-1h",), **kwargs):
        config = make_config(max_forecast_hours=hours)
        return await self.orchestrator.run(
            START, math.pi / 2, knots_to_mps(5), config, make_selection(*packages), now=NOW, **kwargs
        )

    async def test_one_request_per_hour_at_predicted_position(self):
        await self._run(hours=4)

        self.assertEqual(self.fetch.await_count, 4)
        longitudes = [call.args[1] for call in self.fetch.await_args_list]
        self.assertAlmostEqual(longitudes[0], START.longitude)
        self.assertEqual(longitudes, sorted(longitudes))
        selection = self.fetch.await_args_list[0].args[3]
        self.assertEqual(selection.identifiers(), ["basic-1h"])

    async def test_records_follow_the_track(self):
        result = await self._run(hours=4)

        entries = result.hourly[next(iter(result.hourly))]
        self.assertEqual([hour for hour, _ in entries], [0, 1, 2, 3])
        records = [record for _, record in entries]
        self.assertEqual([r["timestamp"] for r in records],
                         ["2024-05-01 22:00", "2024-05-01 23:00", "2024-05-02 00:00", "2024-05-02 01:00"])
        for record in records:
            self.assertIs(record["vesselMoving"], True)
            self.assertIn("temperature", record)
        predicted = [r["predictedLongitude"] for r in records]
        self.assertTrue(all(b > a for a, b in zip(predicted, predicted[1:])))

    async def test_publishes_each_package_once_with_indices(self):
        await self._run(hours=3, packages=("basic-1h", "wind-1h"))

        self.assertEqual(self.publisher.publish_hourly.call_count, 2)
        call = self.publisher.publish_hourly.call_args_list[0]
        self.assertEqual(call.kwargs["indices"], [0, 1, 2])

    async def test_missing_target_hour_leaves_gap(self):
        short = _response()
        # Series ends at 23:00, so the 00:00 target of hour 2 is missing
        short["data_1h"] = make_hourly_series(MIDNIGHT, 24, temperature=15.0)
        self.fetch.side_effect = [_response(), short, short, _response()]

        result = await self._run(hours=4)

        entries = next(iter(result.hourly.values()))
        self.assertEqual([hour for hour, _ in entries], [0, 1, 3])
        self.assertEqual(result.record_count(), 3)

    async def test_package_without_records_still_publishes(self):
        empty = _response(data_1h={"time": []})
        self.fetch.return_value = empty

        result = await self._run(hours=2)

        self.assertEqual(result.record_count(), 0)
        self.publisher.publish_hourly.assert_called_once()
        call = self.publisher.publish_hourly.call_args
        self.assertEqual(call.args[0], [])
        self.assertEqual(call.kwargs["indices"], [])

    async def test_daily_packages_use_current_position(self):
        daily = {"data_day": make_daily_series(MIDNIGHT, 7, temperature_max=20.0),
                 "metadata": {"modelrun_utc": "x"}}
        self.fetch.side_effect = [_response(), _response(), daily]

        result = await self._run(hours=2, packages=("basic-1h", "basic-day"))

        last = self.fetch.await_args_list[-1]
        self.assertEqual((last.args[0], last.args[1]), (START.latitude, START.longitude))
        self.assertEqual(last.args[3].identifiers(), ["basic-day"])
        self.assertEqual(len(next(iter(result.daily.values()))), 3)
        self.publisher.publish_daily.assert_called_once()
        self.publisher.publish_metadata.assert_called_once_with({"modelrun_utc": "x"})

    async def test_failure_raises_and_publishes_nothing(self):
        self.fetch.side_effect = [_response(), RuntimeError("HTTP 500")]

        with self.assertRaises(MovingForecastError):
            await self._run(hours=4)

        self.publisher.publish_hourly.assert_not_called()
        self.publisher.publish_daily.assert_not_called()

    async def test_delay_between_requests(self):
        self.orchestrator._request_delay = 0.1
        with patch("custom_components.marine_meteo.moving.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await self._run(hours=3)

        # No delay after the last hour
        self.assertEqual(mock_sleep.await_count, 2)
        mock_sleep.assert_awaited_with(0.1)
