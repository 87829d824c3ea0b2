"""
Diagnostic message handler.

Commands:
- "test":  message "ping" | "process-test-data"
- "debug": message {"action": "load-bases-elements" | "load-events" | "prepare-test-data", ...}

Every call resolves to {"response": payload} or {"error": message}.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from .canned_data import (
    anonymize_base_stations,
    anonymize_elements,
    anonymize_events,
    load_test_data,
)
from .coordinator import GigasetElementsCoordinator
from .errors import UnsupportedAction, UnsupportedCommand
from .models import parse_base_station, parse_elements_root, parse_events_root

_LOGGER = logging.getLogger(__name__)


async def handle_message(coordinator: GigasetElementsCoordinator, command: str, message: Any) -> dict:
    _LOGGER.debug("message received: %s %s", command, message)
    try:
        if command == "test":
            response = await _handle_test_message(coordinator, message)
        elif command == "debug":
            response = await _handle_debug_message(coordinator, message)
        else:
            raise UnsupportedCommand(f"Unsupported command: {command}")
    except Exception as exc:  # noqa: BLE001
        error = f"Error processing message: {exc}"
        _LOGGER.error(error)
        return {"error": error}
    return {"response": response}


async def _handle_test_message(coordinator: GigasetElementsCoordinator, message: Any) -> Any:
    if message == "ping":
        return "pong"
    if message == "process-test-data":
        await process_test_data(coordinator)
        return "successfully processed test data"
    raise UnsupportedAction(f"Unsupported 'test' message: {message}")


async def process_test_data(coordinator: GigasetElementsCoordinator) -> None:
    """Run a full synchronization over the canned fixtures."""
    loop = asyncio.get_running_loop()
    raw_base_stations, raw_elements, raw_events = await loop.run_in_executor(None, load_test_data)
    elements, endpoints = parse_elements_root(raw_elements)
    await coordinator.sync(
        [parse_base_station(bs) for bs in raw_base_stations],
        elements,
        endpoints,
        parse_events_root(raw_events),
    )


def _parse_time(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def _handle_debug_message(coordinator: GigasetElementsCoordinator, message: Any) -> Any:
    action = message.get("action") if isinstance(message, dict) else None
    api = coordinator.api

    if action == "load-bases-elements":
        return {"bs": await api.load_base_stations(), "elements": await api.load_elements()}

    if action == "load-events":
        from_ts = _parse_time(message.get("from"))
        if from_ts is None:
            raise ValueError("'from' is required for load-events")
        return {"events": await api.get_all_events(from_ts, _parse_time(message.get("to")))}

    if action == "prepare-test-data":
        from_ts = _parse_time(message.get("from"))
        if from_ts is None:
            raise ValueError("'from' is required for prepare-test-data")
        base_stations = await api.load_base_stations()
        elements = await api.load_elements()
        events = await api.get_all_events(from_ts)
        return {
            "bs": anonymize_base_stations(base_stations),
            "elements": anonymize_elements(elements),
            "events": anonymize_events(events),
        }

    raise UnsupportedAction(f"Unsupported 'debug' action: {action}")
