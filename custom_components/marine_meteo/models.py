"""
Domain models for the Marine Meteo integration.

Pure data classes with no dependencies on HTTP, provider parsing or Home
Assistant internals.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from .config import MeteoConfig


@dataclasses.dataclass(frozen=True)
class Position:
    """Vessel position in decimal degrees. Replace, never mutate."""

    latitude: float
    longitude: float
    timestamp: datetime = dataclasses.field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


# Processed forecast records are flat parameter → value mappings plus a
# period marker: timestamp/relativeHour (hourly) or date/dayOfWeek (daily).
HourlyForecast = dict[str, Any]
DailyForecast = dict[str, Any]


@dataclasses.dataclass(frozen=True)
class AccountUsageSummary:
    """Aggregated provider credit usage, recomputed in full on every check."""

    total_credits: int
    used_credits: int
    remaining_credits: int
    usage_percentage: int
    total_requests: int = 0
    period_start: str = ""
    period_end: str = ""
    status: str = "active"
    last_checked: str = ""
    usage_by_type: dict[str, dict[str, int]] = dataclasses.field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Bus representation of the summary."""
        return {
            "totalRequests": self.total_credits,
            "usedRequests": self.used_credits,
            "remainingRequests": self.remaining_credits,
            "usagePercentage": self.usage_percentage,
            "requestCount": self.total_requests,
            "periodStart": self.period_start,
            "periodEnd": self.period_end,
            "status": self.status,
            "lastChecked": self.last_checked,
            "usageByType": self.usage_by_type,
        }


class AlertLevel(StrEnum):
    NORMAL = "normal"
    WARNING = "warn"
    CRITICAL = "alert"


@dataclasses.dataclass(frozen=True)
class UsageNotification:
    """Quota notification in the vessel bus notification shape."""

    level: AlertLevel
    method: list[str]
    message: str
    timestamp: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "method": list(self.method),
            "state": self.level.value,
            "message": self.message,
            "timestamp": self.timestamp,
        }


@dataclasses.dataclass(frozen=True)
class CommandResult:
    """Acknowledgement returned to the caller of a command."""

    state: str
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.state == "COMPLETED"


class SessionStatus(StrEnum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    ERROR = "error"


@dataclasses.dataclass
class SessionState:
    """
    Mutable runtime state of one forecast session.

    Owned and mutated only by SessionController; everything resets on stop.
    """

    config: MeteoConfig | None = None
    current_position: Position | None = None
    # Position used for the last successful forecast fetch
    last_forecast_position: Position | None = None
    current_heading: float | None = None    # radians true
    current_sog: float | None = None        # metres/second
    last_forecast_update: float | None = None   # time.time()
    last_account_check: float | None = None     # time.time()
    moving_forecast_engaged: bool = False
    account_info: AccountUsageSummary | None = None
