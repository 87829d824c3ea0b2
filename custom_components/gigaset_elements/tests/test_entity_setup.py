"""
Tests for the Home Assistant entity surface: platform mapping, entity setup
for existing and newly declared tree states, and entity properties.

Covers:
- platform_for maps tree state objects onto platforms
    * read-only boolean → binary_sensor, writable boolean → switch
    * read-only number/string → sensor, writable string → select
    * role "button" → button; non-state objects → None
- async_setup_entry (all platforms):
    * adds one entity per matching tree state at setup time
    * adds entities for states declared after setup (newly paired elements)
- entity properties: unique_id, device_info, values, device classes, writes
"""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from homeassistant.components.binary_sensor import BinarySensorDeviceClass
from homeassistant.components.sensor import SensorDeviceClass, SensorStateClass
from homeassistant.components.switch import SwitchDeviceClass
from homeassistant.const import Platform

from custom_components.gigaset_elements import binary_sensor, button, select, sensor, switch
from custom_components.gigaset_elements.const import DOMAIN, STATE_INTRUSION_MODE
from custom_components.gigaset_elements.entity import platform_for

from .test_common import BS_ID, make_api, make_base_station, make_coordinator, make_element, make_endpoint

DOOR = f"{BS_ID}-ds02-A1"
PLUG = f"{BS_ID}-sp01-R1"
CLIMATE = f"{BS_ID}-cl01-C1"


def _state(value_type, write=False, role="text"):
    return {"type": "state", "common": {"type": value_type, "write": write, "role": role}}


class TestPlatformFor(unittest.TestCase):

    def test_mapping(self):
        self.assertEqual(platform_for(_state("boolean")), Platform.BINARY_SENSOR)
        self.assertEqual(platform_for(_state("boolean", write=True)), Platform.SWITCH)
        self.assertEqual(platform_for(_state("number")), Platform.SENSOR)
        self.assertEqual(platform_for(_state("string")), Platform.SENSOR)
        self.assertEqual(platform_for(_state("string", write=True)), Platform.SELECT)
        self.assertEqual(platform_for(_state("boolean", write=True, role="button")), Platform.BUTTON)

    def test_non_states_are_not_surfaced(self):
        self.assertIsNone(platform_for(None))
        self.assertIsNone(platform_for({"type": "channel", "common": {"name": "x"}}))
        self.assertIsNone(platform_for(_state("number", write=True)))


class EntityTestCase(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.coordinator = make_coordinator(make_api())
        await self.coordinator.projector.declare_global_states()
        await self.coordinator.sync(
            [make_base_station()],
            [
                make_element("A1", "ds02", positionStatus="open", batteryStatus="ok"),
                make_element("R1", "sp01", states={"relay": "on"}),
                make_element("C1", "cl01", states={"temperature": 21.5, "humidity": 40}),
            ],
            [make_endpoint("P1")],
        )
        self.config_entry = MagicMock()
        self.config_entry.entry_id = "test_entry_id"
        self.config_entry.runtime_data = self.coordinator
        self.hass = MagicMock()

    async def asyncTearDown(self):
        await self.coordinator.async_shutdown()

    async def _run_setup(self, module):
        added = []

        def fake_add(entities, **kwargs):
            added.extend(entities)

        await module.async_setup_entry(self.hass, self.config_entry, fake_add)
        return added, fake_add

    async def _entity(self, module, state_id):
        entities, _ = await self._run_setup(module)
        return next(e for e in entities if e.state_id == state_id)


class TestPlatformSetup(EntityTestCase):

    async def test_entities_created_per_platform(self):
        switches, _ = await self._run_setup(switch)
        buttons, _ = await self._run_setup(button)
        selects, _ = await self._run_setup(select)

        self.assertEqual({e.state_id for e in switches}, {"info.userAlarm", f"{PLUG}.relay"})
        self.assertEqual({e.state_id for e in buttons}, {f"{PLUG}.relayButton"})
        self.assertEqual({e.state_id for e in selects}, {STATE_INTRUSION_MODE, f"{BS_ID}.intrusionMode"})

    async def test_every_state_lands_on_exactly_one_platform(self):
        surfaced = []
        for module in (binary_sensor, sensor, switch, button, select):
            entities, _ = await self._run_setup(module)
            surfaced.extend(e.state_id for e in entities)

        self.assertEqual(len(surfaced), len(set(surfaced)))
        self.assertEqual(set(surfaced), set(self.coordinator.tree.objects_of_type("state")))

    async def test_newly_declared_states_are_added(self):
        added, _ = await self._run_setup(sensor)
        before = len(added)

        await self.coordinator.projector.declare_element(make_element("B1", "ws02", positionStatus="tilted"))

        new_ids = {e.state_id for e in added[before:]}
        self.assertIn(f"{BS_ID}-ws02-B1.position", new_ids)
        self.assertIn(f"{BS_ID}-ws02-B1.name", new_ids)
        self.assertNotIn(f"{BS_ID}-ws02-B1.online", new_ids)

    async def test_listener_is_released_on_unload(self):
        await self._run_setup(sensor)
        self.config_entry.async_on_unload.assert_called_once()


class TestEntityProperties(EntityTestCase):

    async def test_unique_id_and_device_info(self):
        entity = await self._entity(sensor, f"{DOOR}.position")

        self.assertEqual(entity.unique_id, f"{DOMAIN}_test_entry_id_{DOOR}.position")
        info = entity.device_info
        self.assertEqual(info["identifiers"], {(DOMAIN, f"test_entry_id_{DOOR}")})
        self.assertEqual(info["model"], "bs01.ds02")
        self.assertEqual(info["via_device"], (DOMAIN, f"test_entry_id_{BS_ID}"))

    async def test_position_sensor_is_enum(self):
        entity = await self._entity(sensor, f"{DOOR}.position")

        self.assertEqual(entity.device_class, SensorDeviceClass.ENUM)
        self.assertEqual(entity.options, ["closed", "tilted", "open"])
        self.assertEqual(entity.native_value, "open")

    async def test_temperature_sensor(self):
        entity = await self._entity(sensor, f"{CLIMATE}.temperature")

        self.assertEqual(entity.device_class, SensorDeviceClass.TEMPERATURE)
        self.assertEqual(entity.state_class, SensorStateClass.MEASUREMENT)
        self.assertEqual(entity.native_unit_of_measurement, "°C")
        self.assertEqual(entity.native_value, 21.5)

    async def test_online_binary_sensor(self):
        entity = await self._entity(binary_sensor, f"{DOOR}.online")

        self.assertEqual(entity.device_class, BinarySensorDeviceClass.CONNECTIVITY)
        self.assertTrue(entity.is_on)
        self.assertTrue(entity.available)

    async def test_undefined_state_is_unavailable(self):
        entity = await self._entity(binary_sensor, f"{DOOR}.alarm")

        self.assertFalse(entity.available)
        self.assertIsNone(entity.is_on)

    async def test_relay_switch_writes_unacknowledged_value(self):
        entity = await self._entity(switch, f"{PLUG}.relay")
        self.assertEqual(entity.device_class, SwitchDeviceClass.OUTLET)
        self.assertTrue(entity.is_on)

        await entity.async_turn_off()

        state = self.coordinator.tree.get_state(f"{PLUG}.relay")
        self.assertIs(state.val, False)
        self.assertFalse(state.ack)

    async def test_button_press(self):
        entity = await self._entity(button, f"{PLUG}.relayButton")
        self.assertTrue(entity.available)

        await entity.async_press()

        state = self.coordinator.tree.get_state(f"{PLUG}.relayButton")
        self.assertIs(state.val, True)
        self.assertFalse(state.ack)

    async def test_intrusion_mode_select(self):
        entity = await self._entity(select, f"{BS_ID}.intrusionMode")

        self.assertEqual(entity.options, ["home", "away", "night"])
        self.assertEqual(entity.current_option, "home")

        await entity.async_select_option("away")

        self.assertEqual(self.coordinator.tree.get_state(f"{BS_ID}.intrusionMode").val, "away")
