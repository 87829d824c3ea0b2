"""
Pure converters from remote enumerations to stored representations.

No HA imports, no I/O.
"""
from __future__ import annotations

import json
from collections.abc import Iterable, Mapping

from .errors import UnknownEnumValue

POSITION_CLOSED = 0
POSITION_TILTED = 1
POSITION_OPEN = 2

_POSITION_ORDINALS: dict[str, int] = {
    "closed": POSITION_CLOSED,
    "close": POSITION_CLOSED,
    "probably_closed": POSITION_CLOSED,
    "tilted": POSITION_TILTED,
    "tilt": POSITION_TILTED,
    "probably_tilted": POSITION_TILTED,
    "opened": POSITION_OPEN,
    "open": POSITION_OPEN,
    "probably_open": POSITION_OPEN,
}


def position_state_to_ordinal(state: str) -> int:
    """
    Convert a door/window position string to 0 (closed), 1 (tilted) or 2 (open).

    Raises UnknownEnumValue for anything else.
    """
    try:
        return _POSITION_ORDINALS[state]
    except (KeyError, TypeError):
        raise UnknownEnumValue(f"Unknown state: {state!r}") from None


def intrusion_mode_names(modes: Iterable[Mapping]) -> list[str]:
    """Extract mode names from single-key mode markers, i.e. [{"home": {...}}]."""
    return [next(iter(mode)) for mode in modes if mode]


def intrusion_modes_to_display_set(modes: Iterable[Mapping]) -> str:
    """
    Convert base station intrusion modes to a lookup table serialized as JSON.

    Every mode name maps to itself, e.g. '{"away": "away", "home": "home"}'.
    """
    names = intrusion_mode_names(modes)
    return json.dumps({name: name for name in names})


def parse_display_set(serialized: str) -> dict[str, str]:
    """Inverse of intrusion_modes_to_display_set."""
    table = json.loads(serialized) if serialized else {}
    return {str(key): str(value) for key, value in table.items()}
