"""
Switch platform: writable boolean states of the tree (plug relays, user alarm).
Toggling a switch writes the tree state with ack=False; the coordinator sends
the matching cloud command and the confirmed value arrives with the next poll.
"""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.switch import SwitchDeviceClass, SwitchEntity
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .entity import GigasetElementsEntity, async_setup_platform_entities

_LOGGER = logging.getLogger(__name__)


class GigasetElementsSwitch(GigasetElementsEntity, SwitchEntity):
    """Writable boolean state."""

    @property
    def device_class(self) -> SwitchDeviceClass | str | None:
        if self.common.get("role") == "switch.power":
            return SwitchDeviceClass.OUTLET
        return SwitchDeviceClass.SWITCH

    @property
    def icon(self) -> str | None:
        if self._key == "userAlarm":
            return "mdi:alarm-light"
        return None

    @property
    def is_on(self) -> bool | None:
        value = self.value
        return None if value is None else bool(value)

    async def async_turn_on(self, **kwargs) -> None:
        """Turn the switch on."""
        await self.async_write_value(True)

    async def async_turn_off(self, **kwargs) -> None:
        """Turn the switch off."""
        await self.async_write_value(False)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add switches for passed config_entry in HA."""
    async_setup_platform_entities(
        hass, config_entry, async_add_entities, Platform.SWITCH, GigasetElementsSwitch
    )
