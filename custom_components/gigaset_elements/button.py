"""Button platform: write-only button states of the tree (plug relay button)."""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.button import ButtonEntity
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .entity import GigasetElementsEntity, async_setup_platform_entities

_LOGGER = logging.getLogger(__name__)


class GigasetElementsButton(GigasetElementsEntity, ButtonEntity):
    """Write-only button state; has no readable value."""

    @property
    def available(self) -> bool:
        return True

    async def async_press(self) -> None:
        await self.async_write_value(True)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add buttons for passed config_entry in HA."""
    async_setup_platform_entities(
        hass, config_entry, async_add_entities, Platform.BUTTON, GigasetElementsButton
    )
