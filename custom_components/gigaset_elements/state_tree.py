"""
StateTree — hierarchical object/state store the integration projects into.

Provides the two primitives the projection layer relies on:
- extend_object(): idempotent schema upsert (device / channel / state nodes)
- set_state_changed(): value write with change detection

Entities and the coordinator observe the tree through listeners.  This is a
pure in-memory store with no HA or network dependencies.
"""
from __future__ import annotations

import copy
import dataclasses
import logging
import time
from collections.abc import Callable
from typing import Any

from .errors import UndeclaredNode

_LOGGER = logging.getLogger(__name__)

StateListener = Callable[[str, "State"], None]
ObjectListener = Callable[[str, dict], None]


@dataclasses.dataclass(frozen=True)
class State:
    """A stored value. ack=False marks a write that did not come from the cloud."""

    val: Any
    ack: bool = True
    ts: float = dataclasses.field(default_factory=time.time)


def readonly_state(name: str, value_type: str, role: str, **common: Any) -> dict:
    """Build a read-only state object; read/write may be overridden via common."""
    return {
        "type": "state",
        "common": {
            "read": True,
            "write": False,
            "name": name,
            "type": value_type,
            "role": role,
            **common,
        },
    }


class StateTree:
    """In-memory object/state tree."""

    def __init__(self) -> None:
        self._objects: dict[str, dict] = {}
        self._states: dict[str, State] = {}
        self._state_listeners: list[StateListener] = []
        self._object_listeners: list[ObjectListener] = []

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def extend_object(self, object_id: str, obj: dict) -> dict:
        """Create the object, or merge obj into the existing one (common keys merged)."""
        existing = self._objects.get(object_id)
        is_new = existing is None
        merged = copy.deepcopy(existing) if existing else {"type": obj.get("type"), "common": {}}
        for key, value in obj.items():
            if key == "common":
                merged["common"].update(value)
            else:
                merged[key] = value
        self._objects[object_id] = merged

        if is_new:
            _LOGGER.debug("Created object %s (%s)", object_id, merged.get("type"))
            for listener in list(self._object_listeners):
                listener(object_id, merged)
        return merged

    def get_object(self, object_id: str) -> dict | None:
        return self._objects.get(object_id)

    def objects_of_type(self, object_type: str) -> dict[str, dict]:
        return {oid: obj for oid, obj in self._objects.items() if obj.get("type") == object_type}

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def get_state(self, state_id: str) -> State | None:
        return self._states.get(state_id)

    async def set_state(self, state_id: str, value: Any, ack: bool = True) -> None:
        """Write a value unconditionally."""
        self._ensure_state(state_id)
        state = State(val=value, ack=ack)
        self._states[state_id] = state
        for listener in list(self._state_listeners):
            listener(state_id, state)

    async def set_state_changed(self, state_id: str, value: Any, ack: bool = True) -> bool:
        """Write a value only if it differs from the stored one. Returns True if written."""
        self._ensure_state(state_id)
        current = self._states.get(state_id)
        if current is not None and current.val == value and current.ack == ack:
            return False
        await self.set_state(state_id, value, ack)
        return True

    def _ensure_state(self, state_id: str) -> None:
        obj = self._objects.get(state_id)
        if obj is None or obj.get("type") != "state":
            raise UndeclaredNode(state_id)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe_states(self, listener: StateListener) -> Callable[[], None]:
        self._state_listeners.append(listener)
        return lambda: self._remove(self._state_listeners, listener)

    def subscribe_objects(self, listener: ObjectListener) -> Callable[[], None]:
        self._object_listeners.append(listener)
        return lambda: self._remove(self._object_listeners, listener)

    @staticmethod
    def _remove(listeners: list, listener) -> None:
        if listener in listeners:
            listeners.remove(listener)
