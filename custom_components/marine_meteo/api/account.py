"""
Low-level account usage fetching from the Meteoblue account API.

Responsible for:
- Fetching the itemized usage report for an API key
- Summing credits and requests into an AccountUsageSummary

All failures are caught here and reported as None.
"""
import logging
from datetime import datetime, timezone

from custom_components.marine_meteo.const import (
    ACCOUNT_USAGE_API_URL,
    DEFAULT_MONTHLY_CREDIT_LIMIT,
)
from custom_components.marine_meteo.models import AccountUsageSummary
from custom_components.marine_meteo.requests import make_request

_LOGGER = logging.getLogger(__name__)


def parse_account_usage(
    raw_json: dict, monthly_limit: int = DEFAULT_MONTHLY_CREDIT_LIMIT
) -> AccountUsageSummary:
    """
    Sum the usage items of a report into a summary.

    Example JSON response:
    {"items": [{"request_type": "packages", "request_date": "2024-05-01",
                "request_credits": 8000, "request_count": 4}]}
    """
    used_credits = 0
    total_requests = 0
    usage_by_type: dict[str, dict[str, int]] = {}
    earliest = ""
    latest = ""

    items = raw_json.get("items")
    if isinstance(items, list):
        for item in items:
            credits = item.get("request_credits") or 0
            count = item.get("request_count") or 0
            used_credits += credits
            total_requests += count

            request_type = item.get("request_type")
            if request_type:
                bucket = usage_by_type.setdefault(request_type, {"credits": 0, "count": 0})
                bucket["credits"] += credits
                bucket["count"] += count

            request_date = item.get("request_date")
            if request_date:
                if not earliest or request_date < earliest:
                    earliest = request_date
                if not latest or request_date > latest:
                    latest = request_date

    _LOGGER.debug("Total usage: %s credits, %s requests", used_credits, total_requests)
    _LOGGER.debug("Usage by type: %s", usage_by_type)

    usage_percentage = round(used_credits / monthly_limit * 100) if monthly_limit > 0 else 0
    return AccountUsageSummary(
        total_credits=monthly_limit,
        used_credits=used_credits,
        remaining_credits=max(0, monthly_limit - used_credits),
        usage_percentage=usage_percentage,
        total_requests=total_requests,
        period_start=earliest,
        period_end=latest,
        status="active" if used_credits < monthly_limit else "limit_exceeded",
        last_checked=datetime.now(timezone.utc).isoformat(),
        usage_by_type=usage_by_type,
    )


async def fetch_account_usage(
    api_key: str, monthly_limit: int = DEFAULT_MONTHLY_CREDIT_LIMIT
) -> AccountUsageSummary | None:
    """
    Fetch and summarise the usage report for api_key.

    Returns None on any transport or parse error.

    Example request:
    https://my.meteoblue.com/account/usage?apikey=KEY
    """
    try:
        raw_json = await make_request(ACCOUNT_USAGE_API_URL, params={"apikey": api_key})
    except TimeoutError:
        _LOGGER.warning("Timeout while fetching account usage")
        return None
    except Exception as e:  # noqa: BLE001
        _LOGGER.error("Failed to fetch account info: %s", e)
        return None

    if not isinstance(raw_json, dict):
        _LOGGER.error("Unexpected account usage response format: %s", raw_json)
        return None

    try:
        return parse_account_usage(raw_json, monthly_limit)
    except (TypeError, AttributeError) as e:
        _LOGGER.error("Failed to parse account usage: %s", e)
        return None
