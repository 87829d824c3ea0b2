"""
Unit tests for writer.py — DifferentialWriter.

Coverage:
- values are written after declaration; writes before declaration raise
- unchanged values produce no tree write
- forget() re-enables a write after an external change
- offline elements have their position forced to 0
- an unknown position value only fails that one field
- optional values are written only for declared capabilities
- primary base station mirrors its intrusion mode into info.intrusionMode
"""

from __future__ import annotations

import unittest
from unittest.mock import patch

from custom_components.gigaset_elements.const import STATE_INTRUSION_MODE
from custom_components.gigaset_elements.errors import UndeclaredNode

from .test_common import BS_ID, make_base_station, make_element, make_endpoint, make_projection


def _value(tree, sid):
    state = tree.get_state(sid)
    return None if state is None else state.val


class TestApplyElement(unittest.IsolatedAsyncioTestCase):

    async def test_undeclared_element_raises(self):
        _, _, writer = make_projection()
        with self.assertRaises(UndeclaredNode):
            await writer.apply_element(make_element())

    async def test_values_written(self):
        tree, projector, writer = make_projection()
        element = make_element("A1", "ws02", batteryStatus="ok", positionStatus="open",
                               room={"friendlyName": "Kitchen"})
        await projector.declare_element(element)
        await writer.apply_element(element)

        channel = f"{BS_ID}-ws02-A1"
        self.assertEqual(_value(tree, f"{channel}.name"), "Element A1")
        self.assertEqual(_value(tree, f"{channel}.online"), True)
        self.assertEqual(_value(tree, f"{channel}.connectionStatus"), "online")
        self.assertEqual(_value(tree, f"{channel}.updatesAvailable"), False)
        self.assertEqual(_value(tree, f"{channel}.position"), 2)
        self.assertEqual(_value(tree, f"{channel}.battery"), "ok")
        self.assertEqual(_value(tree, f"{channel}.roomName"), "Kitchen")

    async def test_offline_position_forced_closed(self):
        tree, projector, writer = make_projection()
        element = make_element("A1", "ws02", connectionStatus="offline", positionStatus="bogus")
        await projector.declare_element(element)
        await writer.apply_element(element)

        self.assertEqual(_value(tree, f"{BS_ID}-ws02-A1.position"), 0)

    async def test_unknown_position_only_fails_that_field(self):
        tree, projector, writer = make_projection()
        element = make_element("A1", "ws02", positionStatus="bogus", batteryStatus="low")
        await projector.declare_element(element)
        await writer.apply_element(element)

        self.assertIsNone(_value(tree, f"{BS_ID}-ws02-A1.position"))
        self.assertEqual(_value(tree, f"{BS_ID}-ws02-A1.battery"), "low")
        self.assertEqual(_value(tree, f"{BS_ID}-ws02-A1.online"), True)

    async def test_undeclared_capability_not_written(self):
        tree, projector, writer = make_projection()
        await projector.declare_element(make_element("A1", "cl01"))
        # temperature appears later without a new declaration
        await writer.apply_element(make_element("A1", "cl01", states={"temperature": 21.0}))

        self.assertIsNone(tree.get_object(f"{BS_ID}-cl01-A1.temperature"))

    async def test_relay_value(self):
        tree, projector, writer = make_projection()
        element = make_element("A1", "sp01", states={"relay": "on"})
        await projector.declare_element(element)
        await writer.apply_element(element)
        self.assertIs(_value(tree, f"{BS_ID}-sp01-A1.relay"), True)


class TestChangeDetection(unittest.IsolatedAsyncioTestCase):

    async def test_no_write_for_unchanged_values(self):
        tree, projector, writer = make_projection()
        element = make_element("A1", "ws02", positionStatus="open")
        await projector.declare_element(element)
        await writer.apply_element(element)

        with patch.object(tree, "set_state_changed", wraps=tree.set_state_changed) as spy:
            await writer.apply_element(element)
            await writer.apply_element(element)

        spy.assert_not_called()

    async def test_only_changed_field_written(self):
        tree, projector, writer = make_projection()
        await projector.declare_element(make_element("A1", "ws02", positionStatus="open"))
        await writer.apply_element(make_element("A1", "ws02", positionStatus="open"))

        with patch.object(tree, "set_state_changed", wraps=tree.set_state_changed) as spy:
            await writer.apply_element(make_element("A1", "ws02", positionStatus="closed"))

        spy.assert_called_once()
        self.assertEqual(spy.call_args.args[:2], (f"{BS_ID}-ws02-A1.position", 0))

    async def test_forget_allows_rewrite(self):
        tree, projector, writer = make_projection()
        element = make_element("A1", "sp01", states={"relay": "off"})
        sid = f"{BS_ID}-sp01-A1.relay"
        await projector.declare_element(element)
        await writer.apply_element(element)

        await tree.set_state(sid, True, ack=False)
        writer.forget(sid)
        await writer.apply_element(element)

        self.assertIs(tree.get_state(sid).val, False)
        self.assertTrue(tree.get_state(sid).ack)

    async def test_write_if_declared(self):
        tree, _, writer = make_projection()
        self.assertFalse(await writer.write_if_declared("nope.state", 1))


class TestApplyBaseStationAndEndpoint(unittest.IsolatedAsyncioTestCase):

    async def test_base_station(self):
        tree, projector, writer = make_projection()
        await projector.declare_global_states()
        bs = make_base_station(intrusion_active=True)
        await projector.declare_base_station(bs, primary=True)
        await writer.apply_base_station(bs, primary=True)

        self.assertEqual(_value(tree, f"{BS_ID}.online"), True)
        self.assertEqual(_value(tree, f"{BS_ID}.intrusionMode"), "home")
        self.assertEqual(_value(tree, f"{BS_ID}.intrusion"), True)
        self.assertEqual(_value(tree, STATE_INTRUSION_MODE), "home")

    async def test_secondary_base_station_does_not_touch_global_mode(self):
        tree, projector, writer = make_projection()
        await projector.declare_global_states()
        bs = make_base_station("BS0002")
        await projector.declare_base_station(bs)
        await writer.apply_base_station(bs)

        self.assertIsNone(tree.get_state(STATE_INTRUSION_MODE))

    async def test_endpoint(self):
        tree, projector, writer = make_projection()
        endpoint = make_endpoint("P1", connectionStatus="offline", room={"friendlyName": "Office"})
        await projector.declare_endpoint(endpoint)
        await writer.apply_endpoint(endpoint)

        self.assertEqual(_value(tree, "gp02-P1.online"), False)
        self.assertEqual(_value(tree, "gp02-P1.roomName"), "Office")
