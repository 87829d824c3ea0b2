"""
Home Assistant surface of the state tree.

Every declared tree `state` object becomes one entity:
- read-only boolean            -> binary_sensor
- read-only number / string    -> sensor
- writable boolean             -> switch
- role "button"                -> button
- writable string              -> select (options from the "states" table)

Entities are pushed on every tree state change (no polling).  Writes coming
from Home Assistant are tree writes with ack=False, which the coordinator
turns into cloud commands.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity import DeviceInfo, Entity

from .const import DOMAIN, VERSION
from .coordinator import GigasetElementsCoordinator
from .identifiers import split_state_id
from .state_tree import State

_LOGGER = logging.getLogger(__name__)


def platform_for(obj: dict | None) -> Platform | None:
    """Return the entity platform for a tree object, or None if it is not surfaced."""
    if not obj or obj.get("type") != "state":
        return None
    common = obj.get("common") or {}
    value_type = common.get("type")
    writable = bool(common.get("write", False))

    if common.get("role") == "button":
        return Platform.BUTTON
    if value_type == "boolean":
        return Platform.SWITCH if writable else Platform.BINARY_SENSOR
    if value_type == "string" and writable:
        return Platform.SELECT
    if value_type in ("number", "string") and not writable:
        return Platform.SENSOR
    return None


class GigasetElementsEntity(Entity):
    """Base class for entities backed by one tree state."""

    _attr_should_poll = False

    def __init__(self, coordinator: GigasetElementsCoordinator, entry_id: str, state_id: str) -> None:
        self.coordinator = coordinator
        self._entry_id = entry_id
        self._state_id = state_id
        self._channel, self._key = split_state_id(state_id)
        common = self.common
        self._attr_unique_id = f"{DOMAIN}_{entry_id}_{state_id}"
        self._attr_name = common.get("name") or self._key

    @property
    def state_id(self) -> str:
        return self._state_id

    @property
    def common(self) -> dict:
        obj = self.coordinator.tree.get_object(self._state_id) or {}
        return obj.get("common") or {}

    @property
    def value(self) -> Any:
        state = self.coordinator.tree.get_state(self._state_id)
        return None if state is None else state.val

    @property
    def available(self) -> bool:
        return self.coordinator.tree.get_state(self._state_id) is not None

    @property
    def device_info(self) -> DeviceInfo | None:
        channel = self.coordinator.tree.get_object(self._channel) or {}
        native = channel.get("native") or {}
        info = DeviceInfo(
            identifiers={(DOMAIN, f"{self._entry_id}_{self._channel}")},
            name=(channel.get("common") or {}).get("name") or self._channel,
            manufacturer="Gigaset",
            model=native.get("type") or ("Basestation" if channel.get("type") == "device" else "Elements"),
            sw_version=VERSION,
        )
        if native.get("baseId"):
            info["via_device"] = (DOMAIN, f"{self._entry_id}_{native['baseId']}")
        return info

    async def async_added_to_hass(self) -> None:
        self.async_on_remove(self.coordinator.tree.subscribe_states(self._handle_state_change))

    @callback
    def _handle_state_change(self, state_id: str, state: State) -> None:
        if state_id == self._state_id:
            self.async_write_ha_state()

    async def async_write_value(self, value: Any) -> None:
        """Forward a value set in Home Assistant to the tree as an external write."""
        _LOGGER.debug("Setting %s to %s", self._state_id, value)
        await self.coordinator.tree.set_state(self._state_id, value, ack=False)


def async_setup_platform_entities(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities,
    platform: Platform,
    factory: Callable[[GigasetElementsCoordinator, str, str], Entity],
) -> None:
    """
    Add entities for every tree state of `platform`, now and whenever a new
    state is declared later (i.e. elements paired after setup).
    """
    coordinator: GigasetElementsCoordinator = entry.runtime_data
    tree = coordinator.tree

    existing = [
        factory(coordinator, entry.entry_id, state_id)
        for state_id, obj in tree.objects_of_type("state").items()
        if platform_for(obj) == platform
    ]
    if existing:
        async_add_entities(existing)

    @callback
    def _handle_new_object(object_id: str, obj: dict) -> None:
        if platform_for(obj) == platform:
            _LOGGER.debug("Adding %s entity for %s", platform, object_id)
            async_add_entities([factory(coordinator, entry.entry_id, object_id)])

    entry.async_on_unload(tree.subscribe_objects(_handle_new_object))
