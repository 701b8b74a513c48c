"""
Forecast package catalog.

Maps every provider package to the response fields it owns, separately for
hourly and daily cadence.  A field outside a package's list is never copied
into that package's records, so packages never leak each other's parameters
(wave height must not show up under the wind source label).
"""
from __future__ import annotations

import dataclasses
from enum import StrEnum

from .config import MeteoConfig


class Package(StrEnum):
    BASIC = "basic"
    WIND = "wind"
    SEA = "sea"
    SOLAR = "solar"
    AGRO = "agro"
    TREND = "trend"
    CLOUDS = "clouds"


class Cadence(StrEnum):
    HOURLY = "1h"
    DAILY = "day"


HOURLY_PACKAGE_FIELDS: dict[Package, tuple[str, ...]] = {
    Package.BASIC: (
        "temperature", "windspeed", "winddirection", "precipitation", "pictocode",
        "relativehumidity", "sealevelpressure", "surfaceairpressure", "uvindex",
        "felttemperature", "precipitation_probability", "isdaylight", "rainspot",
        "convective_precipitation", "snowfraction",
    ),
    Package.WIND: (
        "windspeed", "winddirection", "gust", "windspeed_80m", "winddirection_80m",
        "airdensity", "surfaceairpressure", "sealevelpressure",
    ),
    Package.SEA: (
        "seasurfacetemperature", "significantwaveheight", "surfwave_height",
        "windwave_height", "swell_significantheight", "mean_waveperiod",
        "windwave_meanperiod", "swell_meanperiod", "windwave_peakwaveperiod",
        "swell_peakwaveperiod", "mean_wavedirection", "windwave_direction",
        "swell_meandirection", "douglas_seastate", "wavesteepness",
        "currentvelocity_u", "currentvelocity_v", "salinity",
    ),
    Package.SOLAR: ("uvindex", "sunshine_duration", "isdaylight"),
    Package.AGRO: ("temperature", "relativehumidity", "precipitation", "windspeed"),
    Package.TREND: ("temperature", "precipitation", "windspeed", "winddirection"),
    Package.CLOUDS: (
        "cloudcover", "total_cloud_cover", "low_cloud_cover", "mid_cloud_cover",
        "high_cloud_cover",
    ),
}

DAILY_PACKAGE_FIELDS: dict[Package, tuple[str, ...]] = {
    Package.BASIC: (
        "temperature_max", "temperature_min", "temperature_mean", "windspeed_max",
        "windspeed_min", "windspeed_mean", "winddirection", "precipitation",
        "pictocode", "relativehumidity_max", "relativehumidity_min", "relativehumidity_mean",
        "sealevelpressure_max", "sealevelpressure_min", "sealevelpressure_mean",
        "uvindex", "felttemperature_max", "felttemperature_min", "felttemperature_mean",
        "precipitation_probability", "precipitation_hours", "snowfraction", "rainspot",
    ),
    Package.WIND: (
        "windspeed_max", "windspeed_min", "windspeed_mean", "winddirection",
        "sealevelpressure_max", "sealevelpressure_min", "sealevelpressure_mean",
    ),
    # The day packages only carry sea surface temperature extremes
    Package.SEA: ("temperature_max", "temperature_min"),
    Package.SOLAR: ("uvindex", "sunshine_duration"),
    Package.AGRO: (
        "temperature_max", "temperature_min", "temperature_mean",
        "relativehumidity_max", "relativehumidity_min", "relativehumidity_mean",
        "precipitation", "windspeed_max", "windspeed_min", "windspeed_mean",
    ),
    Package.TREND: (
        "temperature_max", "temperature_min", "precipitation",
        "windspeed_max", "winddirection",
    ),
    Package.CLOUDS: (),
}

# Trend has no daily product
AVAILABLE_PACKAGES: tuple[tuple[Package, Cadence], ...] = tuple(
    (package, cadence)
    for package in Package
    for cadence in Cadence
    if not (package is Package.TREND and cadence is Cadence.DAILY)
)


def _as_package(package: Package | str) -> Package | None:
    try:
        return Package(package)
    except ValueError:
        return None


def get_package_fields(package: Package | str, cadence: Cadence) -> tuple[str, ...]:
    """Fields owned by package at cadence; empty for unknown packages."""
    known = _as_package(package)
    if known is None:
        return ()
    table = HOURLY_PACKAGE_FIELDS if cadence is Cadence.HOURLY else DAILY_PACKAGE_FIELDS
    return table.get(known, ())


def flag_key(package: Package, cadence: Cadence) -> str:
    """Config key enabling package at cadence, e.g. enable_wind_1h."""
    return f"enable_{package.value}_{cadence.value}"


def source_label(name: Package | str) -> str:
    """Bus source label for a package or subsystem, e.g. wind-api."""
    value = name.value if isinstance(name, Package) else name
    return f"{value}-api"


@dataclasses.dataclass(frozen=True)
class PackageSelection:
    """Ordered set of enabled (package, cadence) pairs."""

    items: tuple[tuple[Package, Cadence], ...] = ()

    @classmethod
    def from_config(cls, config: MeteoConfig) -> "PackageSelection":
        return cls(tuple(
            (package, cadence)
            for package, cadence in AVAILABLE_PACKAGES
            if config.package_flags.get(flag_key(package, cadence), False)
        ))

    def __bool__(self) -> bool:
        return bool(self.items)

    def __iter__(self):
        return iter(self.items)

    def packages(self, cadence: Cadence) -> list[Package]:
        return [package for package, item_cadence in self.items if item_cadence is cadence]

    def only(self, cadence: Cadence) -> "PackageSelection":
        """The part of the selection at one cadence."""
        return PackageSelection(tuple(item for item in self.items if item[1] is cadence))

    @property
    def hourly(self) -> list[Package]:
        return self.packages(Cadence.HOURLY)

    @property
    def daily(self) -> list[Package]:
        return self.packages(Cadence.DAILY)

    def identifiers(self) -> list[str]:
        return [f"{package.value}-{cadence.value}" for package, cadence in self.items]

    def path_segment(self) -> str:
        """Underscore-joined package list used in the provider URL."""
        return "_".join(self.identifiers())
