"""
Quota alerting for provider credit usage.

Three levels with hysteresis: a notification is emitted only when the level
changes between two successful checks, never repeatedly while it holds.
Going back below the warning threshold clears the alert once; staying below
it emits nothing.
"""
from __future__ import annotations

from datetime import datetime, timezone

from .const import USAGE_CRITICAL_PERCENT, USAGE_WARNING_PERCENT
from .models import AccountUsageSummary, AlertLevel, UsageNotification


def usage_level(usage_percentage: float) -> AlertLevel:
    if usage_percentage >= USAGE_CRITICAL_PERCENT:
        return AlertLevel.CRITICAL
    if usage_percentage >= USAGE_WARNING_PERCENT:
        return AlertLevel.WARNING
    return AlertLevel.NORMAL


def build_notification(summary: AccountUsageSummary, level: AlertLevel) -> UsageNotification:
    pct = summary.usage_percentage
    remaining = summary.remaining_credits
    if level is AlertLevel.CRITICAL:
        method = ["visual", "sound"]
        message = f"Meteoblue API usage critical: {pct}% used ({remaining} requests remaining)"
    elif level is AlertLevel.WARNING:
        method = ["visual"]
        message = f"Meteoblue API usage high: {pct}% used ({remaining} requests remaining)"
    else:
        method = []
        message = f"Meteoblue API usage normal: {pct}% used ({remaining} requests remaining)"
    return UsageNotification(
        level=level,
        method=method,
        message=message,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def evaluate_usage(
    summary: AccountUsageSummary, previous: AccountUsageSummary | None
) -> UsageNotification | None:
    """
    Notification to emit for a new summary given the previous one, if any.

    No previous summary counts as NORMAL, so a healthy first check is silent.
    """
    level = usage_level(summary.usage_percentage)
    previous_level = usage_level(previous.usage_percentage) if previous else AlertLevel.NORMAL
    if level == previous_level:
        return None
    return build_notification(summary, level)
