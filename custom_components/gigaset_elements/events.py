"""
EventProcessor — applies the remote event stream to the state tree.

Events are sorted by timestamp and applied strictly one after the other:
some event types only make sense in order (an "ack_intrusion" following an
"intrusion" must leave the intrusion flag cleared).
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from .const import (
    CALL_ORIGIN_TYPE,
    STATE_INTRUSION,
    STATE_INTRUSION_MODE,
    STATE_USER_ALARM,
    UNKNOWN_CALLER,
)
from .convert import position_state_to_ordinal
from .errors import GigasetElementsError
from .identifiers import base_station_state_id, state_id
from .models import Event
from .writer import DifferentialWriter

_LOGGER = logging.getLogger(__name__)


class EventProcessor:
    """Type-dispatches events to state mutations."""

    def __init__(self, writer: DifferentialWriter) -> None:
        self._writer = writer
        self._handlers: dict[str, Callable[[Event], Awaitable[None]]] = {}
        self._register(("open", "tilt", "close"), self._on_position)
        self._register(("bs_online_notification", "bs_offline_notification"), self._on_base_station_online)
        self._register(("intrusion", "ack_intrusion"), self._on_intrusion)
        self._register((
            "intrusion_mode_loaded",
            "isl01.bs01.intrusion_mode_loaded",
            "isl01.bs01.intrusion_mode_loaded.fail",
            "isl01.configuration_changed.user.intrusion_mode",
        ), self._on_intrusion_mode)
        self._register(("sirenon", "sirenoff"), self._on_siren)
        self._register(("battery_critical",), self._on_battery_critical)
        self._register((
            "sensor_online_notification",
            "endnode_online_notification",
            "sensor_offline_notification",
            "endnode_offline_notification",
        ), self._on_element_online)
        self._register(("drilling_suspected", "drilling_alert", "water_detected"), self._on_alarm_start)
        self._register(("drilling_off", "water_no_longer_detected"), self._on_alarm_end)
        self._register(("user_alarm_start", "user_alarm_end"), self._on_user_alarm)
        self._register(("call",), self._on_call)

    def _register(self, event_types: Iterable[str], handler: Callable[[Event], Awaitable[None]]) -> None:
        for event_type in event_types:
            self._handlers[event_type] = handler

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def process_events(self, events: Iterable[Event]) -> int:
        """
        Apply events in ascending timestamp order, one at a time.

        Timestamps are fixed-width strings, so string order is time order.
        Returns the number of events that were applied.
        """
        applied = 0
        for event in sorted(events, key=lambda e: e.ts):
            try:
                if await self.process_event(event):
                    applied += 1
            except GigasetElementsError as exc:
                _LOGGER.warning("Failed to process event %s (%s): %s", event.type, event.ts, exc)
        return applied

    async def process_event(self, event: Event) -> bool:
        """Apply a single event. Returns False if the event was skipped."""
        handler = self._handlers.get(event.type)
        if handler is None and event.origin is not None and event.origin.type == CALL_ORIGIN_TYPE:
            handler = self._on_call
        if handler is None:
            _LOGGER.info("Unknown event type: %s", event.type)
            return False
        await handler(event)
        return True

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _write_target(self, event: Event, state: str, value) -> None:
        sid = state_id(event, state)
        if not sid:
            _LOGGER.debug("Event %s (%s) has no addressable target, skipping", event.type, event.ts)
            return
        await self._writer.write(sid, value)

    async def _on_position(self, event: Event) -> None:
        await self._write_target(event, "position", position_state_to_ordinal(event.type))

    async def _on_base_station_online(self, event: Event) -> None:
        await self._writer.write(
            base_station_state_id(event.source_id, "online"),
            event.type.startswith("bs_online"),
        )

    async def _on_intrusion(self, event: Event) -> None:
        active = not event.type.startswith("ack_")
        await self._writer.write(STATE_INTRUSION, active)
        await self._writer.write_if_declared(base_station_state_id(event.source_id, "intrusion"), active)

    async def _on_intrusion_mode(self, event: Event) -> None:
        mode = event.origin.mode_after if event.origin else None
        if mode is None:
            _LOGGER.debug("Intrusion mode event %s without modeAfter, skipping", event.ts)
            return
        await self._writer.write(STATE_INTRUSION_MODE, mode)
        await self._writer.write_if_declared(base_station_state_id(event.source_id, "intrusionMode"), mode)

    async def _on_siren(self, event: Event) -> None:
        await self._write_target(event, "alarm", event.type == "sirenon")

    async def _on_battery_critical(self, event: Event) -> None:
        await self._write_target(event, "battery", "critical")

    async def _on_element_online(self, event: Event) -> None:
        is_online = "_online_" in event.type
        await asyncio.gather(
            self._write_target(event, "online", is_online),
            self._write_target(event, "connectionStatus", "online" if is_online else "offline"),
        )

    async def _on_alarm_start(self, event: Event) -> None:
        await self._write_target(event, "alarm", True)

    async def _on_alarm_end(self, event: Event) -> None:
        await self._write_target(event, "alarm", False)

    async def _on_user_alarm(self, event: Event) -> None:
        await self._writer.write(STATE_USER_ALARM, event.type.endswith("start"))

    async def _on_call(self, event: Event) -> None:
        origin = event.origin
        call_type = origin.call_type if origin else None
        if call_type == "missed":
            state = "lastCallMissed"
        elif call_type == "outgoing":
            state = "lastCallOutgoing"
        else:
            state = "lastCallIncoming"
        caller = (origin.caller_id if origin else None) or UNKNOWN_CALLER
        await self._write_target(event, state, caller)
