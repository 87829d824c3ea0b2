"""
Canonical tree ids for base stations, elements, endpoints and events.

The same logical state must resolve to the same id whether it is addressed
from a polled element snapshot or from an event referring to that element:

    element  {"id": "bs1.0a1", "type": "bs01.ds02", ...}  ->  "bs1-ds02-0a1.position"
    event    {"source_id": "bs1", "o": {"type": "ds02", "id": "0a1"}, ...}  ->  same
"""
from __future__ import annotations

from collections.abc import Mapping

from .const import CALL_ORIGIN_TYPE, ENDPOINT_CHANNEL_PREFIX
from .errors import UnsupportedRecordShape
from .models import BaseStation, Element, EndpointDevice, Event, Record, parse_record


def element_channel(base_id: str, subtype: str, local_id: str) -> str:
    return f"{base_id}-{subtype}-{local_id}"


def endpoint_channel(endpoint_id: str) -> str:
    return f"{ENDPOINT_CHANNEL_PREFIX}{endpoint_id}"


def base_station_state_id(base_station: BaseStation | str, state: str) -> str:
    bs_id = base_station.id if isinstance(base_station, BaseStation) else base_station
    return f"{bs_id}.{state}"


def channel_id(record: Record | Mapping) -> str:
    """
    Return the channel id for a record, or "" when an event has no addressable target.

    Raw mappings are classified first; typed records are dispatched directly.
    """
    if isinstance(record, Mapping):
        record = parse_record(record)

    if isinstance(record, Event):
        origin = record.origin
        if origin is None:
            return ""
        if origin.type == CALL_ORIGIN_TYPE:
            # call events address the endpoint through the event source only
            return endpoint_channel(record.source_id)
        if not origin.type or not origin.id:
            return ""
        return element_channel(record.source_id, origin.type, origin.id)
    if isinstance(record, Element):
        return element_channel(record.base_id, record.subtype, record.local_id)
    if isinstance(record, EndpointDevice):
        return endpoint_channel(record.id)

    raise UnsupportedRecordShape(f"Unsupported record type: {type(record).__name__}")


def state_id(record: Record | Mapping, state: str) -> str:
    """Return "<channel>.<state>", or "" if the record has no addressable channel."""
    channel = channel_id(record)
    if not channel:
        return ""
    return f"{channel}.{state}"


def split_state_id(full_id: str) -> tuple[str, str]:
    """Split "<channel>.<state>" at the last dot."""
    channel, _, state = full_id.rpartition(".")
    return channel, state
