"""
DifferentialWriter — applies current cloud values to declared tree states.

Values are only written when they differ from the last value applied through
this writer, so downstream listeners never see redundant change notifications.
All field writes of one entity are issued concurrently; a failing field (for
example an unknown position enum) is logged and does not affect its siblings.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .const import STATE_INTRUSION_MODE
from .convert import POSITION_CLOSED, position_state_to_ordinal
from .errors import UndeclaredNode
from .identifiers import base_station_state_id, channel_id, state_id
from .models import BaseStation, Element, EndpointDevice
from .projector import SchemaProjector
from .state_tree import StateTree

_LOGGER = logging.getLogger(__name__)

# value or zero-argument callable producing the value
FieldValue = Any | Callable[[], Any]


class DifferentialWriter:
    """Change-detecting value writes against a StateTree."""

    def __init__(self, tree: StateTree, projector: SchemaProjector) -> None:
        self._tree = tree
        self._projector = projector
        # state id → last value applied by this writer
        self._applied: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Single values
    # ------------------------------------------------------------------

    async def write(self, sid: str, value: Any) -> bool:
        """Write value to sid unless it equals the last applied one. Returns True if written."""
        if sid in self._applied and self._applied[sid] == value:
            return False
        written = await self._tree.set_state_changed(sid, value, ack=True)
        self._applied[sid] = value
        return written

    async def write_if_declared(self, sid: str, value: Any) -> bool:
        obj = self._tree.get_object(sid)
        if obj is None or obj.get("type") != "state":
            return False
        return await self.write(sid, value)

    def forget(self, sid: str) -> None:
        """Drop the cached value for sid, i.e. after an external write."""
        self._applied.pop(sid, None)

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    async def apply_base_station(self, bs: BaseStation, primary: bool = False) -> None:
        self._require_declared(bs.id)
        fields: dict[str, FieldValue] = {
            base_station_state_id(bs, "name"): bs.name,
            base_station_state_id(bs, "online"): bs.online,
        }
        if bs.active_intrusion_mode is not None:
            fields[base_station_state_id(bs, "intrusionMode")] = bs.active_intrusion_mode
            if primary:
                fields[STATE_INTRUSION_MODE] = bs.active_intrusion_mode
        if bs.intrusion_active is not None:
            fields[base_station_state_id(bs, "intrusion")] = bs.intrusion_active
        await self._apply_fields(bs.id, fields)

    async def apply_element(self, element: Element) -> None:
        channel = channel_id(element)
        self._require_declared(channel)
        declared = self._projector.declared_capabilities(channel)

        fields: dict[str, FieldValue] = {
            state_id(element, "name"): element.name,
            state_id(element, "connectionStatus"): element.connection_status,
            state_id(element, "online"): element.online,
            state_id(element, "updateStatus"): element.firmware_status,
            state_id(element, "updatesAvailable"): element.updates_available,
        }

        optional: dict[str, FieldValue] = {
            "roomName": element.room_name,
            "battery": element.battery_status,
            "relay": element.relay,
            "temperature": element.temperature,
            "pressure": element.pressure,
            "humidity": element.humidity,
            "testRequired": element.test_required,
            **element.flags,
        }
        if element.position_status is not None:
            # offline elements report stale positions; force "closed"
            optional["position"] = (
                (lambda: position_state_to_ordinal(element.position_status))
                if element.online else POSITION_CLOSED
            )

        for capability, value in optional.items():
            if capability in declared and value is not None:
                fields[state_id(element, capability)] = value

        await self._apply_fields(element.id, fields)

    async def apply_endpoint(self, endpoint: EndpointDevice) -> None:
        channel = channel_id(endpoint)
        self._require_declared(channel)
        fields: dict[str, FieldValue] = {
            state_id(endpoint, "name"): endpoint.name,
            state_id(endpoint, "connectionStatus"): endpoint.connection_status,
            state_id(endpoint, "online"): endpoint.online,
        }
        if endpoint.room_name and "roomName" in self._projector.declared_capabilities(channel):
            fields[state_id(endpoint, "roomName")] = endpoint.room_name
        await self._apply_fields(endpoint.id, fields)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_declared(self, channel: str) -> None:
        if not self._projector.is_declared(channel):
            raise UndeclaredNode(channel)

    async def _apply_fields(self, entity_id: str, fields: dict[str, FieldValue]) -> None:
        sids = list(fields)
        results = await asyncio.gather(
            *(self._write_field(sid, fields[sid]) for sid in sids),
            return_exceptions=True,
        )
        for sid, result in zip(sids, results):
            if isinstance(result, Exception):
                _LOGGER.warning("Failed to update %s of %s: %s", sid, entity_id, result)

    async def _write_field(self, sid: str, value: FieldValue) -> bool:
        if callable(value):
            value = value()
        return await self.write(sid, value)
