"""
Domain models for the Gigaset Elements integration.

Raw cloud payloads are classified exactly once, here, into typed records.
Everything downstream (identifiers, projector, writer, event processor)
works on these records and never probes raw dictionaries again.

This module contains pure data classes and has no HA or HTTP dependencies.
"""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, Union

from .const import ELEMENT_FLAG_FIELDS
from .convert import intrusion_mode_names
from .errors import UnsupportedRecordShape

_LOGGER = logging.getLogger(__name__)


def _is_defined(data: Mapping | None, key: str) -> bool:
    return bool(data) and key in data and data[key] is not None


@dataclasses.dataclass(frozen=True)
class BaseStation:
    """A base station (hub) reporting intrusion mode and online status."""

    id: str
    name: str
    online: bool
    intrusion_modes: tuple[str, ...] = ()
    active_intrusion_mode: str | None = None
    intrusion_active: bool | None = None
    raw_modes: tuple[Mapping, ...] = ()


@dataclasses.dataclass(frozen=True)
class Element:
    """
    A sensor/actuator attached to a base station.

    capabilities holds the names of the optional states this element reported;
    it drives schema declaration and is fixed at ingestion.
    """

    id: str
    base_id: str
    local_id: str
    type: str
    subtype: str
    name: str
    connection_status: str
    firmware_status: str | None = None
    room_name: str | None = None
    battery_status: str | None = None
    position_status: str | None = None
    temperature: float | None = None
    pressure: float | None = None
    humidity: float | None = None
    relay: bool | None = None
    test_required: bool | None = None
    flags: Mapping[str, bool] = dataclasses.field(default_factory=dict)
    capabilities: frozenset[str] = frozenset()

    @property
    def online(self) -> bool:
        return self.connection_status == "online"

    @property
    def updates_available(self) -> bool:
        return self.firmware_status != "up_to_date"


@dataclasses.dataclass(frozen=True)
class EndpointDevice:
    """A phone-like endpoint (gp02) tracked independently of base stations."""

    id: str
    name: str
    connection_status: str
    room_name: str | None = None

    @property
    def online(self) -> bool:
        return self.connection_status == "online"


@dataclasses.dataclass(frozen=True)
class EventOrigin:
    """The nested "o" payload of an event."""

    type: str | None = None
    id: str | None = None
    mode_after: str | None = None
    call_type: str | None = None
    caller_id: str | None = None
    extra: Mapping[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class Event:
    """A single entry of the remote event stream."""

    ts: str
    type: str
    source_id: str
    id: str | None = None
    source_type: str | None = None
    origin: EventOrigin | None = None


Record = Union[Element, EndpointDevice, Event]


# ---------------------------------------------------------------------------
# Ingestion: the single place where raw payload shapes are probed
# ---------------------------------------------------------------------------

def parse_record(raw: Mapping) -> Record:
    """
    Classify a raw record by field presence and build the typed variant.

    Order matters: events first (carry "ts"), then elements (connectionStatus
    and type), then endpoints (connectionStatus without type).
    """
    if not isinstance(raw, Mapping):
        raise UnsupportedRecordShape(f"Unsupported record: {raw!r}")
    if "ts" in raw:
        return parse_event(raw)
    if "connectionStatus" in raw and "type" in raw:
        return parse_element(raw)
    if "connectionStatus" in raw:
        return parse_endpoint(raw)
    raise UnsupportedRecordShape(
        f"Unsupported element type, or element properties not initialized properly: {dict(raw)!r}"
    )


def parse_base_station(raw: Mapping) -> BaseStation:
    settings = raw.get("intrusion_settings") or {}
    modes = tuple(settings.get("modes") or ())
    intrusion_active = raw.get("intrusion_active")
    return BaseStation(
        id=str(raw["id"]),
        name=raw.get("friendly_name") or str(raw["id"]),
        online=raw.get("status") == "online",
        intrusion_modes=tuple(intrusion_mode_names(modes)),
        active_intrusion_mode=settings.get("active_mode"),
        intrusion_active=None if intrusion_active is None else bool(intrusion_active),
        raw_modes=modes,
    )


def parse_element(raw: Mapping) -> Element:
    element_id = str(raw["id"])
    base_id, sep, local_id = element_id.partition(".")  # i.e. "abcde001.01234"
    element_type = str(raw["type"])
    _, type_sep, subtype = element_type.partition(".")  # i.e. "bs01.um01"
    if not sep or not type_sep:
        raise UnsupportedRecordShape(f"Malformed element id/type: {element_id!r} / {element_type!r}")

    states = raw.get("states") or {}
    room = raw.get("room") or {}
    capabilities: set[str] = set()

    room_name = room.get("friendlyName") or None
    if room_name:
        capabilities.add("roomName")
    battery_status = raw.get("batteryStatus") or None
    if battery_status:
        capabilities.add("battery")
    position_status = raw.get("positionStatus") or None
    if position_status:
        capabilities.add("position")

    relay = None
    if _is_defined(states, "relay"):
        relay = states["relay"] == "on"
        capabilities.add("relay")

    measurements = {}
    for key in ("temperature", "pressure", "humidity"):
        if _is_defined(states, key):
            measurements[key] = states[key]
            capabilities.add(key)

    test_required = None
    if _is_defined(states, "testRequired") or _is_defined(raw, "testRequired"):
        test_required = bool(raw.get("testRequired") or states.get("testRequired"))
        capabilities.add("testRequired")

    flags = {}
    for key in ELEMENT_FLAG_FIELDS:
        if _is_defined(raw, key):
            flags[key] = bool(raw[key])
            capabilities.add(key)

    return Element(
        id=element_id,
        base_id=base_id,
        local_id=local_id,
        type=element_type,
        subtype=subtype,
        name=raw.get("friendlyName") or element_id,
        connection_status=raw.get("connectionStatus") or "offline",
        firmware_status=raw.get("firmwareStatus"),
        room_name=room_name,
        battery_status=battery_status,
        position_status=position_status,
        temperature=measurements.get("temperature"),
        pressure=measurements.get("pressure"),
        humidity=measurements.get("humidity"),
        relay=relay,
        test_required=test_required,
        flags=flags,
        capabilities=frozenset(capabilities),
    )


def parse_endpoint(raw: Mapping) -> EndpointDevice:
    room = raw.get("room") or {}
    return EndpointDevice(
        id=str(raw["id"]),
        name=raw.get("friendlyName") or str(raw["id"]),
        connection_status=raw.get("connectionStatus") or "offline",
        room_name=room.get("friendlyName") or None,
    )


def parse_event(raw: Mapping) -> Event:
    origin = None
    raw_origin = raw.get("o")
    if isinstance(raw_origin, Mapping):
        known = {"type", "id", "modeAfter", "callType", "callerId"}
        origin = EventOrigin(
            type=raw_origin.get("type"),
            id=None if raw_origin.get("id") is None else str(raw_origin["id"]),
            mode_after=raw_origin.get("modeAfter"),
            call_type=raw_origin.get("callType"),
            caller_id=raw_origin.get("callerId"),
            extra={k: v for k, v in raw_origin.items() if k not in known},
        )
    return Event(
        ts=str(raw["ts"]),
        type=str(raw.get("type", "")),
        source_id=str(raw.get("source_id", "")),
        id=raw.get("id"),
        source_type=raw.get("source_type"),
        origin=origin,
    )


def parse_elements_root(raw: Mapping) -> tuple[list[Element], list[EndpointDevice]]:
    """
    Split the elements payload into base station elements and endpoints.

    Expected shape: {"bs01": [{"id": ..., "subelements": [...]}], "gp02": [...]}.
    """
    elements = []
    for bs in raw.get("bs01") or ():
        for sub in bs.get("subelements") or ():
            try:
                elements.append(parse_element(sub))
            except (UnsupportedRecordShape, KeyError) as exc:
                _LOGGER.warning("Skipping malformed element %s: %s", sub.get("id"), exc)
    endpoints = [parse_endpoint(item) for item in raw.get("gp02") or ()]
    return elements, endpoints


def parse_events_root(raw: Mapping) -> list[Event]:
    return [parse_event(item) for item in raw.get("events") or ()]
