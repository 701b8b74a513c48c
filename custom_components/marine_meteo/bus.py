"""
Vessel data bus on top of the Home Assistant event bus.

Every update is a timestamped, source-labelled delta:

    {"context": "vessels.self",
     "updates": [{"$source": "wind-api", "timestamp": "...",
                  "values": [{"path": "...", "value": ...}],
                  "meta": [{"path": "...", "value": {...}}]}]}

MessageBus fires each delta as an HA event, keeps the latest value per path
for entities, and signals entities through the dispatcher.
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_send

from .const import CONTEXT_SELF, EVENT_DELTA, SIGNAL_UPDATED

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class BusValue:
    """Latest value published on one path."""

    path: str
    value: Any
    source: str
    timestamp: str
    meta: dict[str, Any] | None = None


def build_delta(
    source: str,
    values: list[tuple[str, Any]],
    timestamp: str | None = None,
    meta: list[tuple[str, dict[str, Any]]] | None = None,
) -> dict[str, Any]:
    """Build a single-update delta for source."""
    update: dict[str, Any] = {
        "$source": source,
        "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
        "values": [{"path": path, "value": value} for path, value in values],
    }
    if meta:
        update["meta"] = [{"path": path, "value": value} for path, value in meta]
    return {"context": CONTEXT_SELF, "updates": [update]}


class MessageBus:
    """Publishes deltas for one config entry and remembers the latest values."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        self.hass = hass
        self.entry_id = entry_id
        self._values: dict[str, BusValue] = {}

    @property
    def signal(self) -> str:
        return SIGNAL_UPDATED.format(self.entry_id)

    @callback
    def handle_message(self, delta: dict[str, Any]) -> None:
        """Store every value of delta, fire it on the HA bus and notify entities."""
        for update in delta.get("updates", []):
            source = update.get("$source", "")
            timestamp = update.get("timestamp", "")
            meta = {item["path"]: item["value"] for item in update.get("meta", [])}
            for item in update.get("values", []):
                path = item["path"]
                self._values[path] = BusValue(
                    path=path,
                    value=item["value"],
                    source=source,
                    timestamp=timestamp,
                    meta=meta.get(path),
                )

        self.hass.bus.async_fire(EVENT_DELTA, {"entry_id": self.entry_id, **delta})
        self.async_notify()

    @callback
    def async_notify(self) -> None:
        """Tell entities of this entry to refresh."""
        async_dispatcher_send(self.hass, self.signal)

    def get(self, path: str) -> BusValue | None:
        return self._values.get(path)

    def value(self, path: str, default: Any = None) -> Any:
        found = self._values.get(path)
        return found.value if found is not None else default

    def paths(self, prefix: str = "") -> list[str]:
        return [path for path in self._values if path.startswith(prefix)]

    def clear(self, prefix: str = "", source: str | None = None) -> None:
        """Forget stored values under prefix, only those from source when given."""
        for path in self.paths(prefix):
            if source is None or self._values[path].source == source:
                del self._values[path]
