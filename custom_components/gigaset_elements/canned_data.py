"""
Canned cloud payloads shipped with the integration, and anonymization of live
payloads into the same format.

The fixtures under testdata/ are used by the "process-test-data" diagnostic
and by the test suite.  "prepare-test-data" turns live cloud data into new
fixtures; identifiers are replaced by hashes so that references between base
stations, elements and events stay consistent.
"""
from __future__ import annotations

import copy
import hashlib
import json
from pathlib import Path
from typing import Any

TESTDATA_DIR = Path(__file__).parent / "testdata"

BASE_STATIONS_FILE = "basestations.json"
ELEMENTS_FILE = "elements.json"
EVENTS_FILE = "events.json"


def load_fixture(name: str) -> Any:
    with open(TESTDATA_DIR / name, encoding="utf-8") as handle:
        return json.load(handle)


def load_test_data() -> tuple[list[dict], dict, dict]:
    """Return the raw (base stations, elements root, events root) fixtures. Blocking."""
    return (
        load_fixture(BASE_STATIONS_FILE),
        load_fixture(ELEMENTS_FILE),
        load_fixture(EVENTS_FILE),
    )


# ---------------------------------------------------------------------------
# Anonymization
# ---------------------------------------------------------------------------

def _digest(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest().upper()


def anonymize_id(value: str) -> str:
    """Replace an id by a hash of the same length; composite "a.b" ids keep their shape."""
    if not value:
        return value
    return ".".join(_digest(part)[: len(part)] if part else part for part in str(value).split("."))


def anonymize_name(value: str | None, kind: str) -> str | None:
    if not value:
        return value
    return f"{kind} {_digest(value)[:4]}"


def anonymize_phone_number(value: str | None) -> str | None:
    if not value:
        return value
    digits = "".join(str(int(c, 16) % 10) for c in _digest(value)[:10])
    return f"+49{digits}"


def _anonymize_room(item: dict) -> None:
    room = item.get("room")
    if isinstance(room, dict) and room.get("friendlyName"):
        room["friendlyName"] = anonymize_name(room["friendlyName"], "Room")


def anonymize_base_stations(base_stations: list[dict]) -> list[dict]:
    result = copy.deepcopy(base_stations)
    for bs in result:
        bs["id"] = anonymize_id(bs["id"])
        if "friendly_name" in bs:
            bs["friendly_name"] = anonymize_name(bs["friendly_name"], "Basestation")
        for sensor in bs.get("sensors") or ():
            if "id" in sensor:
                sensor["id"] = anonymize_id(sensor["id"])
            if "friendly_name" in sensor:
                sensor["friendly_name"] = anonymize_name(sensor["friendly_name"], "Sensor")
    return result


def anonymize_elements(root: dict) -> dict:
    result = copy.deepcopy(root)
    for bs in result.get("bs01") or ():
        bs["id"] = anonymize_id(bs["id"])
        if "friendlyName" in bs:
            bs["friendlyName"] = anonymize_name(bs["friendlyName"], "Basestation")
        for element in bs.get("subelements") or ():
            element["id"] = anonymize_id(element["id"])
            if "friendlyName" in element:
                element["friendlyName"] = anonymize_name(element["friendlyName"], "Element")
            _anonymize_room(element)
    for endpoint in result.get("gp02") or ():
        endpoint["id"] = anonymize_id(endpoint["id"])
        if "friendlyName" in endpoint:
            endpoint["friendlyName"] = anonymize_name(endpoint["friendlyName"], "Phone")
        _anonymize_room(endpoint)
    return result


def anonymize_events(events: list[dict]) -> list[dict]:
    result = copy.deepcopy(events)
    for event in result:
        if event.get("source_id"):
            event["source_id"] = anonymize_id(event["source_id"])
        if "source_name" in event:
            event["source_name"] = anonymize_name(event["source_name"], "Basestation")
        origin = event.get("o")
        if not isinstance(origin, dict):
            continue
        if origin.get("id"):
            origin["id"] = anonymize_id(str(origin["id"]))
        if "friendly_name" in origin:
            origin["friendly_name"] = anonymize_name(origin["friendly_name"], "Element")
        if "callerId" in origin:
            origin["callerId"] = anonymize_phone_number(origin["callerId"])
        if "user" in origin:
            origin["user"] = anonymize_name(origin["user"], "User")
    return result
