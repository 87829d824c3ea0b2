"""
Binary sensor platform: read-only boolean states of the tree
(connection, maintenance, intrusion, alarms, online flags, maintenance flags).
"""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.binary_sensor import BinarySensorDeviceClass, BinarySensorEntity
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .entity import GigasetElementsEntity, async_setup_platform_entities

_LOGGER = logging.getLogger(__name__)

# role prefix -> device class; first match wins
ROLE_DEVICE_CLASSES = (
    ("indicator.connected", BinarySensorDeviceClass.CONNECTIVITY),
    ("indicator.reachable", BinarySensorDeviceClass.CONNECTIVITY),
    ("indicator.alarm.fire", BinarySensorDeviceClass.SMOKE),
    ("indicator.alarm", BinarySensorDeviceClass.SAFETY),
    ("sensor.alarm", BinarySensorDeviceClass.SAFETY),
    ("indicator.lowbat", BinarySensorDeviceClass.BATTERY),
    ("indicator.maintenance", BinarySensorDeviceClass.PROBLEM),
)


class GigasetElementsBinarySensor(GigasetElementsEntity, BinarySensorEntity):
    """Read-only boolean state."""

    @property
    def device_class(self) -> BinarySensorDeviceClass | None:
        role = self.common.get("role") or ""
        for prefix, device_class in ROLE_DEVICE_CLASSES:
            if role.startswith(prefix):
                return device_class
        if self._key == "updatesAvailable":
            return BinarySensorDeviceClass.UPDATE
        return None

    @property
    def is_on(self) -> bool | None:
        value = self.value
        return None if value is None else bool(value)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add binary sensors for passed config_entry in HA."""
    async_setup_platform_entities(
        hass, config_entry, async_add_entities, Platform.BINARY_SENSOR, GigasetElementsBinarySensor
    )
