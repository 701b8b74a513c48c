"""
Unit tests for api/account.py and quota.py: usage summary and quota alerts.

Coverage:
- parse_account_usage: sums, percentage, period, usageByType, status
- fetch_account_usage: success, transport error → None, timeout → None,
  non-dict payload → None
- evaluate_usage hysteresis: 95% first → one critical alert, then 70% → one
  clearing notification, then 70% again → nothing; warning band; quiet start
"""

from __future__ import annotations

import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from custom_components.marine_meteo.api.account import fetch_account_usage, parse_account_usage
from custom_components.marine_meteo.models import AlertLevel
from custom_components.marine_meteo.quota import evaluate_usage, usage_level
from custom_components.marine_meteo.requests import ApiResponseError

from .test_common import make_usage_response

MAKE_REQUEST = "custom_components.marine_meteo.api.account.make_request"


def _summary_at(percent: int):
    return parse_account_usage(make_usage_response(percent * 1000), monthly_limit=100_000)


class TestParseAccountUsage(unittest.TestCase):

    def test_sums_items(self):
        summary = parse_account_usage(make_usage_response(1000, 2500, 500), monthly_limit=10_000)

        self.assertEqual(summary.used_credits, 4000)
        self.assertEqual(summary.remaining_credits, 6000)
        self.assertEqual(summary.usage_percentage, 40)
        self.assertEqual(summary.total_requests, 3)
        self.assertEqual(summary.period_start, "2024-05-01")
        self.assertEqual(summary.period_end, "2024-05-03")
        self.assertEqual(summary.usage_by_type, {"packages": {"credits": 4000, "count": 3}})
        self.assertEqual(summary.status, "active")

    def test_limit_exceeded(self):
        summary = parse_account_usage(make_usage_response(12_000), monthly_limit=10_000)
        self.assertEqual(summary.remaining_credits, 0)
        self.assertEqual(summary.status, "limit_exceeded")

    def test_empty_report(self):
        summary = parse_account_usage({}, monthly_limit=500_000)
        self.assertEqual(summary.used_credits, 0)
        self.assertEqual(summary.usage_percentage, 0)
        self.assertEqual(summary.period_start, "")

    def test_bus_representation(self):
        data = parse_account_usage(make_usage_response(100), monthly_limit=1000).as_dict()
        self.assertEqual(data["totalRequests"], 1000)
        self.assertEqual(data["usedRequests"], 100)
        self.assertEqual(data["remainingRequests"], 900)
        self.assertEqual(data["usagePercentage"], 10)
        self.assertIn("lastChecked", data)


class TestFetchAccountUsage(unittest.IsolatedAsyncioTestCase):

    async def test_success(self):
        with patch(MAKE_REQUEST, new_callable=AsyncMock, return_value=make_usage_response(5000)) as mock_request:
            summary = await fetch_account_usage("key", 50_000)

        self.assertEqual(summary.usage_percentage, 10)
        mock_request.assert_awaited_once()
        self.assertEqual(mock_request.call_args.kwargs["params"], {"apikey": "key"})

    async def test_api_error_returns_none(self):
        error = ApiResponseError(401, {"error_message": "invalid key"})
        with patch(MAKE_REQUEST, new_callable=AsyncMock, side_effect=error):
            self.assertIsNone(await fetch_account_usage("bad"))

    async def test_timeout_returns_none(self):
        with patch(MAKE_REQUEST, new_callable=AsyncMock, side_effect=asyncio.TimeoutError()):
            self.assertIsNone(await fetch_account_usage("key"))

    async def test_unexpected_payload_returns_none(self):
        with patch(MAKE_REQUEST, new_callable=AsyncMock, return_value=["not", "a", "dict"]):
            self.assertIsNone(await fetch_account_usage("key"))


class TestQuotaAlerts(unittest.TestCase):

    def test_levels(self):
        self.assertIs(usage_level(95), AlertLevel.CRITICAL)
        self.assertIs(usage_level(90), AlertLevel.CRITICAL)
        self.assertIs(usage_level(85), AlertLevel.WARNING)
        self.assertIs(usage_level(80), AlertLevel.WARNING)
        self.assertIs(usage_level(79), AlertLevel.NORMAL)

    def test_critical_then_clear_then_silence(self):
        first = _summary_at(95)
        note = evaluate_usage(first, None)
        self.assertIsNotNone(note)
        self.assertEqual(note.as_dict()["state"], "alert")
        self.assertEqual(note.method, ["visual", "sound"])

        second = _summary_at(70)
        note = evaluate_usage(second, first)
        self.assertIsNotNone(note)
        self.assertEqual(note.as_dict()["state"], "normal")
        self.assertIn("30000", note.message)

        third = _summary_at(70)
        self.assertIsNone(evaluate_usage(third, second))

    def test_warning_is_visual_only(self):
        note = evaluate_usage(_summary_at(85), None)
        self.assertEqual(note.as_dict()["state"], "warn")
        self.assertEqual(note.method, ["visual"])

    def test_steady_warning_is_not_repeated(self):
        self.assertIsNone(evaluate_usage(_summary_at(86), _summary_at(84)))

    def test_escalation_from_warning_to_critical(self):
        note = evaluate_usage(_summary_at(92), _summary_at(84))
        self.assertEqual(note.level, AlertLevel.CRITICAL)

    def test_healthy_first_check_is_silent(self):
        self.assertIsNone(evaluate_usage(_summary_at(10), None))
