"""
Unit tests for models.py — ingestion of raw cloud payloads.

Coverage:
- base stations: online flag, intrusion modes, active mode
- elements: id/type splitting, capability set from optional attributes
- malformed elements are rejected, and skipped when parsing the elements root
- events: origin payload fields
- parse_record dispatch order
"""

from __future__ import annotations

import unittest

from custom_components.gigaset_elements.canned_data import load_test_data
from custom_components.gigaset_elements.errors import UnsupportedRecordShape
from custom_components.gigaset_elements.models import (
    Element,
    EndpointDevice,
    Event,
    parse_elements_root,
    parse_events_root,
    parse_record,
)

from .test_common import BS_ID, make_base_station, make_element, make_element_raw, make_event


class TestBaseStation(unittest.TestCase):

    def test_fields(self):
        bs = make_base_station()
        self.assertEqual(bs.id, BS_ID)
        self.assertTrue(bs.online)
        self.assertEqual(bs.intrusion_modes, ("home", "away", "night"))
        self.assertEqual(bs.active_intrusion_mode, "home")
        self.assertIsNone(bs.intrusion_active)

    def test_offline(self):
        self.assertFalse(make_base_station(status="offline").online)


class TestElement(unittest.TestCase):

    def test_ids_are_split(self):
        element = make_element("0a1", "ws02")
        self.assertEqual((element.base_id, element.local_id, element.subtype), (BS_ID, "0a1", "ws02"))

    def test_minimal_element_has_no_capabilities(self):
        self.assertEqual(make_element().capabilities, frozenset())

    def test_capabilities_from_attributes(self):
        element = make_element(
            batteryStatus="ok",
            positionStatus="closed",
            room={"friendlyName": "Kitchen"},
            states={"temperature": 0, "humidity": 40.5, "relay": "on"},
            smokeDetected=False,
        )
        self.assertEqual(
            element.capabilities,
            frozenset({"battery", "position", "roomName", "temperature", "humidity", "relay", "smokeDetected"}),
        )
        self.assertEqual(element.temperature, 0)
        self.assertTrue(element.relay)
        self.assertEqual(element.flags, {"smokeDetected": False})

    def test_test_required_from_states(self):
        element = make_element(states={"testRequired": True})
        self.assertIn("testRequired", element.capabilities)
        self.assertTrue(element.test_required)

    def test_online_and_updates(self):
        element = make_element(connectionStatus="offline", firmwareStatus="update_available")
        self.assertFalse(element.online)
        self.assertTrue(element.updates_available)

    def test_malformed_id_raises(self):
        with self.assertRaises(UnsupportedRecordShape):
            make_element(id="no-dot-here")

    def test_malformed_element_is_skipped_in_root(self):
        root = {"bs01": [{"subelements": [make_element_raw("A1"), make_element_raw("A2", type="bogus")]}]}
        elements, endpoints = parse_elements_root(root)
        self.assertEqual([e.local_id for e in elements], ["A1"])
        self.assertEqual(endpoints, [])


class TestEvent(unittest.TestCase):

    def test_origin_fields(self):
        event = make_event("incoming", origin={"type": "gp02.call", "callType": "missed", "callerId": "123"})
        self.assertEqual(event.origin.call_type, "missed")
        self.assertEqual(event.origin.caller_id, "123")

    def test_mode_after(self):
        event = make_event("intrusion_mode_loaded", origin={"modeAfter": "away", "modeBefore": "home"})
        self.assertEqual(event.origin.mode_after, "away")
        self.assertEqual(event.origin.extra, {"modeBefore": "home"})

    def test_no_origin(self):
        self.assertIsNone(make_event("bs_online_notification").origin)


class TestParseRecord(unittest.TestCase):

    def test_dispatch(self):
        self.assertIsInstance(parse_record({"ts": "1", "type": "open"}), Event)
        self.assertIsInstance(parse_record(make_element_raw()), Element)
        self.assertIsInstance(parse_record({"id": "P1", "connectionStatus": "online"}), EndpointDevice)

    def test_unsupported(self):
        with self.assertRaises(UnsupportedRecordShape):
            parse_record({"id": "x"})
        with self.assertRaises(UnsupportedRecordShape):
            parse_record(["not", "a", "mapping"])


class TestCannedData(unittest.TestCase):
    """The fixtures shipped with the integration must parse cleanly."""

    def test_fixtures_parse(self):
        base_stations, elements_root, events_root = load_test_data()
        elements, endpoints = parse_elements_root(elements_root)
        events = parse_events_root(events_root)

        self.assertEqual(len(base_stations), 1)
        self.assertEqual(len(elements), 7)
        self.assertEqual(len(endpoints), 1)
        self.assertEqual(len(events), 8)
