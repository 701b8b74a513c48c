"""
Unit conversions and sea-state lookup tables.

Pure functions with no HA or network dependencies. Callers validate their
inputs; non-finite values pass straight through the arithmetic.
"""
from __future__ import annotations

import math

from .const import KNOTS_TO_MPS, MPS_TO_KNOTS


def deg_to_rad(degrees: float) -> float:
    return degrees * (math.pi / 180)


def rad_to_deg(radians: float) -> float:
    return radians * (180 / math.pi)


def celsius_to_kelvin(celsius: float) -> float:
    return celsius + 273.15


def mb_to_pa(mb: float) -> float:
    return mb * 100


def mm_to_m(mm: float) -> float:
    return mm / 1000


def percent_to_ratio(percent: float) -> float:
    return percent / 100


def knots_to_mps(knots: float) -> float:
    return knots * KNOTS_TO_MPS


def mps_to_knots(mps: float) -> float:
    return mps * MPS_TO_KNOTS


DOUGLAS_SEA_STATE_SIMPLE: dict[int, str] = {
    0: "Calm",
    1: "Calm",
    2: "Smooth",
    3: "Slight",
    4: "Moderate",
    5: "Rough",
    6: "Very rough",
    7: "High",
    8: "Very high",
    9: "Phenomenal",
}

DOUGLAS_SEA_STATE_VERBOSE: dict[int, str] = {
    0: "Calm (0m) - Sea like a mirror",
    1: "Calm (0-0.1m) - Ripples with appearance of scales, no foam crests",
    2: "Smooth (0.1-0.5m) - Small wavelets, crests of glassy appearance, not breaking",
    3: "Slight (0.5-1.25m) - Large wavelets, crests begin to break, scattered whitecaps",
    4: "Moderate (1.25-2.5m) - Small waves becoming longer, numerous whitecaps",
    5: "Rough (2.5-4m) - Moderate waves, many whitecaps, some spray",
    6: "Very rough (4-6m) - Large waves, whitecaps everywhere, more spray",
    7: "High (6-9m) - Sea heaps up, white foam streaks off breakers",
    8: "Very high (9-14m) - Moderately high waves, crests break into spindrift",
    9: "Phenomenal (>14m) - High waves, dense foam, sea completely white with driving spray",
}


def _scale_key(scale: float) -> int | None:
    try:
        return round(scale)
    except (TypeError, ValueError, OverflowError):
        # NaN / inf / non-numeric
        return None


def douglas_sea_state_simple(scale: float) -> str:
    """Short label for a Douglas sea-state value, "Unknown" if out of table."""
    return DOUGLAS_SEA_STATE_SIMPLE.get(_scale_key(scale), "Unknown")


def douglas_sea_state_verbose(scale: float) -> str:
    """Label with wave heights and sea description, "Unknown (<value>)" if out of table."""
    description = DOUGLAS_SEA_STATE_VERBOSE.get(_scale_key(scale))
    if description is None:
        return f"Unknown ({scale})"
    return description
