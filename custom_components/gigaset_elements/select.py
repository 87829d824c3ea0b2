"""Select platform: writable string states of the tree (intrusion mode selectors)."""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.select import SelectEntity
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .convert import parse_display_set
from .entity import GigasetElementsEntity, async_setup_platform_entities

_LOGGER = logging.getLogger(__name__)


class GigasetElementsSelect(GigasetElementsEntity, SelectEntity):
    """Writable string state choosing from the declared "states" table."""

    _attr_icon = "mdi:shield-home"

    @property
    def options(self) -> list[str]:
        states = self.common.get("states")
        if isinstance(states, str):
            # intrusion modes are declared as a serialized lookup table
            states = parse_display_set(states)
        return list(states or {})

    @property
    def current_option(self) -> str | None:
        value = self.value
        return None if value is None else str(value)

    async def async_select_option(self, option: str) -> None:
        await self.async_write_value(option)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add selects for passed config_entry in HA."""
    async_setup_platform_entities(
        hass, config_entry, async_add_entities, Platform.SELECT, GigasetElementsSelect
    )
