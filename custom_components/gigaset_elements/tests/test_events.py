"""
Unit tests for events.py — EventProcessor.

Coverage:
- dispatch table: position, base station online, intrusion, intrusion mode,
  siren, battery, element online, drilling/water, user alarm, calls
- events are applied in timestamp order, one after the other
- unknown event types and events without a target are skipped, not fatal
- a failing event does not abort the batch
"""

from __future__ import annotations

import asyncio
import unittest

from custom_components.gigaset_elements.const import (
    STATE_INTRUSION,
    STATE_INTRUSION_MODE,
    STATE_USER_ALARM,
)
from custom_components.gigaset_elements.events import EventProcessor

from .test_common import (
    BS_ID,
    make_base_station,
    make_element,
    make_element_event,
    make_endpoint,
    make_event,
    make_projection,
)

DOOR = f"{BS_ID}-ds02-A1"
SIREN = f"{BS_ID}-is01-S1"
PHONE = "gp02-P1"


class EventTestCase(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tree, projector, self.writer = make_projection()
        await projector.declare_global_states()
        await projector.declare_base_station(make_base_station(), primary=True)
        await projector.declare_element(make_element("A1", "ds02", positionStatus="closed", batteryStatus="ok"))
        await projector.declare_element(make_element("S1", "is01"))
        await projector.declare_endpoint(make_endpoint("P1"))
        self.processor = EventProcessor(self.writer)

    def value(self, sid):
        state = self.tree.get_state(sid)
        return None if state is None else state.val


class TestDispatch(EventTestCase):

    async def test_open_sets_position(self):
        self.assertTrue(await self.processor.process_event(make_element_event("open")))
        self.assertEqual(self.value(f"{DOOR}.position"), 2)

    async def test_tilt_and_close(self):
        await self.processor.process_event(make_element_event("tilt"))
        self.assertEqual(self.value(f"{DOOR}.position"), 1)
        await self.processor.process_event(make_element_event("close"))
        self.assertEqual(self.value(f"{DOOR}.position"), 0)

    async def test_base_station_offline(self):
        await self.processor.process_event(make_event("bs_offline_notification"))
        self.assertIs(self.value(f"{BS_ID}.online"), False)
        await self.processor.process_event(make_event("bs_online_notification"))
        self.assertIs(self.value(f"{BS_ID}.online"), True)

    async def test_intrusion(self):
        await self.processor.process_event(make_event("intrusion"))
        self.assertIs(self.value(STATE_INTRUSION), True)
        self.assertIs(self.value(f"{BS_ID}.intrusion"), True)

    async def test_intrusion_mode(self):
        await self.processor.process_event(
            make_event("isl01.configuration_changed.user.intrusion_mode", origin={"modeAfter": "away"})
        )
        self.assertEqual(self.value(STATE_INTRUSION_MODE), "away")
        self.assertEqual(self.value(f"{BS_ID}.intrusionMode"), "away")

    async def test_intrusion_mode_without_mode_after_is_ignored(self):
        await self.processor.process_event(make_event("intrusion_mode_loaded", origin={}))
        self.assertIsNone(self.value(STATE_INTRUSION_MODE))

    async def test_siren(self):
        await self.processor.process_event(make_element_event("sirenon", "S1", "is01"))
        self.assertIs(self.value(f"{SIREN}.alarm"), True)
        await self.processor.process_event(make_element_event("sirenoff", "S1", "is01"))
        self.assertIs(self.value(f"{SIREN}.alarm"), False)

    async def test_battery_critical(self):
        await self.processor.process_event(make_element_event("battery_critical"))
        self.assertEqual(self.value(f"{DOOR}.battery"), "critical")

    async def test_element_offline(self):
        await self.processor.process_event(make_element_event("sensor_offline_notification"))
        self.assertIs(self.value(f"{DOOR}.online"), False)
        self.assertEqual(self.value(f"{DOOR}.connectionStatus"), "offline")
        await self.processor.process_event(make_element_event("endnode_online_notification"))
        self.assertIs(self.value(f"{DOOR}.online"), True)
        self.assertEqual(self.value(f"{DOOR}.connectionStatus"), "online")

    async def test_drilling_and_water(self):
        await self.processor.process_event(make_element_event("drilling_alert"))
        self.assertIs(self.value(f"{DOOR}.alarm"), True)
        await self.processor.process_event(make_element_event("drilling_off"))
        self.assertIs(self.value(f"{DOOR}.alarm"), False)
        await self.processor.process_event(make_element_event("water_detected"))
        self.assertIs(self.value(f"{DOOR}.alarm"), True)
        await self.processor.process_event(make_element_event("water_no_longer_detected"))
        self.assertIs(self.value(f"{DOOR}.alarm"), False)

    async def test_user_alarm(self):
        await self.processor.process_event(make_event("user_alarm_start"))
        self.assertIs(self.value(STATE_USER_ALARM), True)
        await self.processor.process_event(make_event("user_alarm_end"))
        self.assertIs(self.value(STATE_USER_ALARM), False)


class TestCalls(EventTestCase):

    def call(self, call_type=None, caller_id=None, ts="1640995200000"):
        origin = {"type": "gp02.call", "id": "ignored"}
        if call_type is not None:
            origin["callType"] = call_type
        if caller_id is not None:
            origin["callerId"] = caller_id
        return make_event("call", ts=ts, source_id="P1", origin=origin)

    async def test_missed(self):
        await self.processor.process_event(self.call("missed", "+4930123"))
        self.assertEqual(self.value(f"{PHONE}.lastCallMissed"), "+4930123")

    async def test_outgoing(self):
        await self.processor.process_event(self.call("outgoing", "+4930123"))
        self.assertEqual(self.value(f"{PHONE}.lastCallOutgoing"), "+4930123")

    async def test_incoming_is_default(self):
        await self.processor.process_event(self.call(None, "+4930123"))
        self.assertEqual(self.value(f"{PHONE}.lastCallIncoming"), "+4930123")

    async def test_unknown_caller_placeholder(self):
        await self.processor.process_event(self.call("incoming"))
        self.assertEqual(self.value(f"{PHONE}.lastCallIncoming"), "unknown")

    async def test_call_origin_type_dispatches_any_event_type(self):
        event = make_event("incoming", source_id="P1", origin={"type": "gp02.call", "callerId": "42"})
        self.assertTrue(await self.processor.process_event(event))
        self.assertEqual(self.value(f"{PHONE}.lastCallIncoming"), "42")


class TestOrdering(EventTestCase):

    async def test_events_sorted_by_timestamp(self):
        events = [
            make_element_event("close", ts="1640995230000"),
            make_element_event("open", ts="1640995210000"),
            make_element_event("tilt", ts="1640995220000"),
        ]
        await self.processor.process_events(events)
        self.assertEqual(self.value(f"{DOOR}.position"), 0)

    async def test_intrusion_ack_after_alarm_nets_inactive(self):
        events = [
            make_event("ack_intrusion", ts="1640995210000"),
            make_event("intrusion", ts="1640995200000"),
        ]
        await self.processor.process_events(events)
        self.assertIs(self.value(STATE_INTRUSION), False)

    async def test_shuffled_batch_matches_sorted_batch(self):
        ordered = [
            make_element_event("sirenon", "S1", "is01", ts="1640995200000"),
            make_element_event("sirenoff", "S1", "is01", ts="1640995210000"),
            make_element_event("sirenon", "S1", "is01", ts="1640995220000"),
        ]
        await self.processor.process_events(list(reversed(ordered)))
        self.assertIs(self.value(f"{SIREN}.alarm"), True)

    async def test_next_event_waits_for_previous_write(self):
        order = []
        original = self.writer.write

        async def slow_write(sid, value):
            order.append(("start", value))
            await asyncio.sleep(0.01 if value == 2 else 0)
            await original(sid, value)
            order.append(("end", value))
            return True

        self.writer.write = slow_write
        await self.processor.process_events([
            make_element_event("open", ts="1640995200000"),
            make_element_event("close", ts="1640995210000"),
        ])
        self.assertEqual(order, [("start", 2), ("end", 2), ("start", 0), ("end", 0)])


class TestSkipping(EventTestCase):

    async def test_unknown_event_type_is_skipped(self):
        self.assertFalse(await self.processor.process_event(make_event("some_new_event")))

    async def test_event_without_target_is_skipped(self):
        self.assertTrue(await self.processor.process_event(make_event("open")))
        self.assertIsNone(self.value(f"{DOOR}.position"))

    async def test_failing_event_does_not_abort_batch(self):
        events = [
            make_element_event("open", local_id="UNDECLARED", ts="1640995200000"),
            make_element_event("tilt", ts="1640995210000"),
            make_event("weird", ts="1640995220000"),
        ]
        applied = await self.processor.process_events(events)
        self.assertEqual(applied, 1)
        self.assertEqual(self.value(f"{DOOR}.position"), 1)
