"""
SchemaProjector — declares the tree nodes for base stations, elements and endpoints.

Every declaration is an upsert (StateTree.extend_object), so calling it again
with evolving data never duplicates or drops nodes.  The projector only writes
schema metadata, never values.

Optional element states are declared from the element's capability set.  The
set of declared capabilities per channel only grows: once a state has been
declared it stays declared, even if a later payload omits the attribute.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from .const import (
    ALARM_SUBTYPES,
    ELEMENT_OPTIONAL_STATES,
    STATE_CONNECTION,
    STATE_INTRUSION,
    STATE_INTRUSION_MODE,
    STATE_MAINTENANCE,
    STATE_SYSTEM_HEALTH,
    STATE_USER_ALARM,
)
from .convert import intrusion_modes_to_display_set
from .identifiers import base_station_state_id, channel_id, state_id
from .models import BaseStation, Element, EndpointDevice
from .state_tree import StateTree, readonly_state

_LOGGER = logging.getLogger(__name__)


class SchemaProjector:
    """Idempotent schema declaration against a StateTree."""

    def __init__(self, tree: StateTree) -> None:
        self._tree = tree
        # channel id → capabilities declared so far
        self._declared: dict[str, frozenset[str]] = {}

    # ------------------------------------------------------------------
    # Queries used by the writer
    # ------------------------------------------------------------------

    def is_declared(self, channel: str) -> bool:
        return channel in self._declared

    def declared_capabilities(self, channel: str) -> frozenset[str]:
        return self._declared.get(channel, frozenset())

    # ------------------------------------------------------------------
    # Global states
    # ------------------------------------------------------------------

    async def declare_global_states(self) -> None:
        await self._tree.extend_object("info", {"type": "channel", "common": {"name": "Information"}})
        await asyncio.gather(
            self._tree.extend_object(
                STATE_CONNECTION,
                readonly_state("Connected to Gigaset Elements cloud", "boolean", "indicator.connected"),
            ),
            self._tree.extend_object(
                STATE_MAINTENANCE,
                readonly_state("Gigaset Elements cloud under maintenance", "boolean", "indicator.maintenance"),
            ),
            self._tree.extend_object(
                STATE_INTRUSION,
                readonly_state("whether there is an active intrusion alert", "boolean", "indicator.alarm"),
            ),
            self._tree.extend_object(
                STATE_INTRUSION_MODE,
                readonly_state("active intrusion mode", "string", "text", write=True),
            ),
            self._tree.extend_object(
                STATE_USER_ALARM,
                readonly_state("user alarm", "boolean", "switch.alarm", write=True),
            ),
            self._tree.extend_object(
                STATE_SYSTEM_HEALTH,
                readonly_state("system health", "string", "text"),
            ),
        )

    # ------------------------------------------------------------------
    # Base stations
    # ------------------------------------------------------------------

    async def declare_base_station(self, bs: BaseStation, primary: bool = False) -> None:
        await self._tree.extend_object(bs.id, {
            "type": "device",
            "common": {"name": "Gigaset-Elements Basestation"},
        })
        modes = intrusion_modes_to_display_set(bs.raw_modes)
        declarations = [
            self._tree.extend_object(
                base_station_state_id(bs, "name"),
                readonly_state(bs.name, "string", "text", desc="name of the base station"),
            ),
            self._tree.extend_object(
                base_station_state_id(bs, "online"),
                readonly_state("whether the base station is connected to the GE cloud", "boolean",
                               "indicator.reachable"),
            ),
            self._tree.extend_object(
                base_station_state_id(bs, "intrusionMode"),
                readonly_state("configured intrusion mode", "string", "text", states=modes, write=True),
            ),
            self._tree.extend_object(
                base_station_state_id(bs, "intrusion"),
                readonly_state("whether there is an active intrusion alert", "boolean", "indicator.alarm",
                               **{"def": False}),
            ),
        ]
        if primary:
            declarations.append(
                self._tree.extend_object(STATE_INTRUSION_MODE, {"common": {"states": modes}})
            )
        await asyncio.gather(*declarations)
        self._declared[bs.id] = frozenset()

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    async def declare_element(self, element: Element) -> None:
        channel = channel_id(element)
        await self._tree.extend_object(channel, {
            "type": "channel",
            "common": {"name": element.name, "role": "sensor"},
            "native": {"type": element.type, "baseId": element.base_id},
        })

        capabilities = self._declared.get(channel, frozenset()) | element.capabilities

        declarations = [
            (state_id(element, "name"), readonly_state(element.name, "string", "text")),
            (state_id(element, "connectionStatus"), readonly_state("connection status", "string", "text")),
            (state_id(element, "online"),
             readonly_state("whether the element is online", "boolean", "indicator.reachable")),
            (state_id(element, "updateStatus"), readonly_state("update status", "string", "info.status")),
            (state_id(element, "updatesAvailable"),
             readonly_state("whether firmware updates are available", "boolean", "indicator")),
        ]

        if element.subtype in ALARM_SUBTYPES:
            declarations.append((
                state_id(element, "alarm"),
                readonly_state("whether the element has an alarm", "boolean", "sensor.alarm", **{"def": False}),
            ))

        if "relay" in capabilities:
            declarations.append((
                state_id(element, "relay"),
                readonly_state("Relay", "boolean", "switch.power", write=True),
            ))
            declarations.append((
                state_id(element, "relayButton"),
                readonly_state("Button", "boolean", "button", read=False, write=True),
            ))

        for capability, common in ELEMENT_OPTIONAL_STATES.items():
            if capability in capabilities:
                declarations.append((state_id(element, capability), {"type": "state", "common": {
                    "read": True, "write": False, **common,
                }}))

        await asyncio.gather(*(self._tree.extend_object(sid, obj) for sid, obj in declarations))
        self._declared[channel] = capabilities

    # ------------------------------------------------------------------
    # Endpoints (gp02)
    # ------------------------------------------------------------------

    async def declare_endpoint(self, endpoint: EndpointDevice) -> None:
        channel = channel_id(endpoint)
        await self._tree.extend_object(channel, {
            "type": "channel",
            "common": {"name": endpoint.name, "role": "phone"},
        })

        capabilities = set(self._declared.get(channel, frozenset()))
        declarations = [
            (state_id(endpoint, "name"), readonly_state(endpoint.name, "string", "text")),
            (state_id(endpoint, "connectionStatus"), readonly_state("connection status", "string", "text")),
            (state_id(endpoint, "online"),
             readonly_state("whether the element is online", "boolean", "indicator.reachable")),
            (state_id(endpoint, "lastCallOutgoing"), readonly_state("last outgoing call", "string", "text.phone")),
            (state_id(endpoint, "lastCallIncoming"), readonly_state("last incoming call", "string", "text.phone")),
            (state_id(endpoint, "lastCallMissed"), readonly_state("last missed call", "string", "text.phone")),
        ]
        if endpoint.room_name or "roomName" in capabilities:
            capabilities.add("roomName")
            declarations.append(
                (state_id(endpoint, "roomName"), readonly_state("room friendly name", "string", "text"))
            )

        await asyncio.gather(*(self._tree.extend_object(sid, obj) for sid, obj in declarations))
        self._declared[channel] = frozenset(capabilities)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def declare_all(
        self,
        base_stations: Iterable[BaseStation] = (),
        elements: Iterable[Element] = (),
        endpoints: Iterable[EndpointDevice] = (),
        primary_base_station: str | None = None,
    ) -> int:
        """
        Declare every entity independently; a failing declaration does not
        abort its siblings.  Returns the number of failed declarations.
        """
        jobs = (
            [(bs.id, self.declare_base_station(bs, primary=bs.id == primary_base_station))
             for bs in base_stations]
            + [(element.id, self.declare_element(element)) for element in elements]
            + [(endpoint.id, self.declare_endpoint(endpoint)) for endpoint in endpoints]
        )
        results = await asyncio.gather(*(coro for _, coro in jobs), return_exceptions=True)
        failures = 0
        for (entity_id, _), result in zip(jobs, results):
            if isinstance(result, Exception):
                failures += 1
                _LOGGER.warning("Failed to declare objects for %s: %s", entity_id, result)
        return failures
