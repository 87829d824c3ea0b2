"""
Sensor platform: read-only number and string states of the tree
(names, connection/update status, battery, position, climate values, last calls,
intrusion mode of secondary surfaces, system health).
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .entity import GigasetElementsEntity, async_setup_platform_entities

_LOGGER = logging.getLogger(__name__)

ROLE_DEVICE_CLASSES = {
    "value.temperature": SensorDeviceClass.TEMPERATURE,
    "value.pressure": SensorDeviceClass.ATMOSPHERIC_PRESSURE,
    "value.humidity": SensorDeviceClass.HUMIDITY,
}


class GigasetElementsSensor(GigasetElementsEntity, SensorEntity):
    """Read-only number or string state."""

    @property
    def _states_table(self) -> dict | None:
        states = self.common.get("states")
        return states if isinstance(states, dict) else None

    @property
    def device_class(self) -> SensorDeviceClass | None:
        if self._states_table:
            return SensorDeviceClass.ENUM
        return ROLE_DEVICE_CLASSES.get(self.common.get("role"))

    @property
    def options(self) -> list[str] | None:
        table = self._states_table
        return list(table.values()) if table else None

    @property
    def state_class(self) -> SensorStateClass | None:
        if self.common.get("role") in ROLE_DEVICE_CLASSES:
            return SensorStateClass.MEASUREMENT
        return None

    @property
    def native_unit_of_measurement(self) -> str | None:
        return self.common.get("unit")

    @property
    def native_value(self) -> Any:
        value = self.value
        table = self._states_table
        if table and value is not None:
            # enum states render through their display table, i.e. 2 -> "open"
            return table.get(str(value), str(value))
        return value


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for passed config_entry in HA."""
    async_setup_platform_entities(
        hass, config_entry, async_add_entities, Platform.SENSOR, GigasetElementsSensor
    )
