"""
Connection and scheduling supervisor for the Gigaset Elements integration.

Responsibilities:
- Own the connection lifecycle:
    Disconnected -> CheckingMaintenance -> Authorizing -> InitialSync -> Steady
  with the error edges WaitingRetry (maintenance / transient failures, fixed
  backoff), Reconnecting (401 from any job, no backoff; a second 401 while
  reconnecting falls back to WaitingRetry) and Terminated
  (credentials rejected while authorizing).
- Drive three periodic jobs through JobScheduler:
    elements  every element_interval minutes
    events    every event_interval seconds
    health    every system_health_interval minutes
- Feed polled records through SchemaProjector + DifferentialWriter and events
  through EventProcessor.
- Translate external (ack=False) writes on writable states into remote
  commands, followed by an accelerated event poll.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from functools import partial
from typing import Any

from .const import (
    COMMAND_OFF,
    COMMAND_ON,
    COMMAND_REPOLL_DELAY,
    CONF_ELEMENT_INTERVAL,
    CONF_EVENT_INTERVAL,
    CONF_SYSTEM_HEALTH_INTERVAL,
    DEFAULT_ELEMENT_INTERVAL,
    DEFAULT_EVENT_INTERVAL,
    DEFAULT_SYSTEM_HEALTH_INTERVAL,
    JOB_ELEMENTS,
    JOB_EVENTS,
    JOB_HEALTH,
    RETRY_DELAY,
    STATE_CONNECTION,
    STATE_INTRUSION_MODE,
    STATE_MAINTENANCE,
    STATE_SYSTEM_HEALTH,
    STATE_USER_ALARM,
)
from .errors import RemoteRejected, TransportError, describe_error
from .events import EventProcessor
from .identifiers import channel_id, split_state_id
from .models import BaseStation, Element, EndpointDevice, Event
from .projector import SchemaProjector
from .scheduler import JobScheduler, TaskFactory, default_task_factory
from .state_tree import State, StateTree
from .writer import DifferentialWriter

_LOGGER = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CHECKING_MAINTENANCE = "checking_maintenance"
    WAITING_RETRY = "waiting_retry"
    AUTHORIZING = "authorizing"
    INITIAL_SYNC = "initial_sync"
    STEADY = "steady"
    RECONNECTING = "reconnecting"
    TERMINATED = "terminated"


def _now_ms() -> int:
    return int(time.time() * 1000)


class GigasetElementsCoordinator:
    """
    Supervisor for one Gigaset Elements account.

    The coordinator is host-agnostic: it talks to the cloud through `api` and
    to the outside world only through the StateTree.
    """

    def __init__(
        self,
        api,
        tree: StateTree,
        config: Mapping[str, Any],
        on_terminate: Callable[[], Any] | None = None,
        task_factory: TaskFactory = default_task_factory,
    ) -> None:
        self.api = api
        self.tree = tree
        self.projector = SchemaProjector(tree)
        self.writer = DifferentialWriter(tree, self.projector)
        self.event_processor = EventProcessor(self.writer)
        self._create_task = task_factory
        self.scheduler = JobScheduler(task_factory)

        self._event_interval = config.get(CONF_EVENT_INTERVAL, DEFAULT_EVENT_INTERVAL)
        self._element_interval = config.get(CONF_ELEMENT_INTERVAL, DEFAULT_ELEMENT_INTERVAL)
        self._health_interval = config.get(CONF_SYSTEM_HEALTH_INTERVAL, DEFAULT_SYSTEM_HEALTH_INTERVAL)
        self._on_terminate = on_terminate

        self.state = ConnectionState.DISCONNECTED
        self._terminating = False
        self._connect_task: asyncio.Task | None = None
        # set by an immediate reconnect, cleared once Steady or waiting for a retry
        self._reconnected = False
        self._background: set[asyncio.Task] = set()

        # Event cursor (ms); read and written only by the events job
        self._last_event: int = 0
        # Base station used for write-back commands; fixed per connection generation
        self._base_station_id: str | None = None
        # channel id -> last seen element, for resolving write-back targets
        self._elements: dict[str, Element] = {}

        self._unsubscribe = tree.subscribe_states(self._on_state_change)

    @property
    def base_station_id(self) -> str | None:
        return self._base_station_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_start(self) -> None:
        """Declare global states, reset connection indicators and connect."""
        await self.projector.declare_global_states()
        await asyncio.gather(
            self.tree.set_state(STATE_CONNECTION, False),
            self.tree.set_state_changed(STATE_MAINTENANCE, False),
        )
        self._connect_task = self._create_task(self._setup_connection(), "connect")
        # returns once the first attempt settled or was superseded
        await asyncio.wait({self._connect_task})

    async def async_shutdown(self) -> None:
        """Stop all timers and pending tasks. Running handlers are not interrupted."""
        self._terminating = True
        self._unsubscribe()
        self._cancel_connect_task()
        for task in list(self._background):
            task.cancel()
        await self.scheduler.shutdown()
        await self.api.close()
        _LOGGER.info("Gigaset Elements coordinator shut down")

    def _set_state(self, state: ConnectionState) -> None:
        if state != self.state:
            _LOGGER.info("Connection state %s -> %s", self.state.value, state.value)
            self.state = state

    def _spawn(self, coro: Awaitable) -> asyncio.Task:
        task = self._create_task(coro, "command")
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _cancel_connect_task(self) -> None:
        task = self._connect_task
        self._connect_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    # ------------------------------------------------------------------
    # Connection sequence
    # ------------------------------------------------------------------

    async def _setup_connection(self) -> None:
        if self._terminating:
            return

        # stale timers from a previous generation must never survive a reconnect
        self.scheduler.stop()
        _LOGGER.debug("Connecting to Gigaset Elements cloud...")

        self._set_state(ConnectionState.CHECKING_MAINTENANCE)
        if not await self._check_maintenance():
            await self._schedule_retry()
            return

        self._set_state(ConnectionState.AUTHORIZING)
        try:
            _LOGGER.debug("Authorizing...")
            await self.api.authorize()
        except TransportError as exc:
            _LOGGER.error(describe_error(exc, "Error authorizing with Gigaset Elements cloud"))
            await self._schedule_retry()
            return
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error(describe_error(exc, "Error authorizing with Gigaset Elements cloud"))
            await self._terminate()
            return
        await self.tree.set_state(STATE_CONNECTION, True)

        self._set_state(ConnectionState.INITIAL_SYNC)
        self._last_event = _now_ms()
        try:
            await self._initial_sync()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error(describe_error(exc, "Error during connection setup"))
            # only one immediate reconnect per generation, then the regular backoff
            if isinstance(exc, RemoteRejected) and exc.is_auth_expired and not self._reconnected:
                await self._reconnect()
            else:
                await self._schedule_retry()
            return

        self._enter_steady()
        _LOGGER.info("Successfully connected to Gigaset Elements cloud and initialized states")

    async def _check_maintenance(self) -> bool:
        """Return False if the cloud is under maintenance or the check failed."""
        try:
            maintenance = await self.api.is_maintenance()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error(describe_error(exc, "Unable to determine Gigaset Elements cloud maintenance status"))
            return False
        if maintenance:
            _LOGGER.info("Gigaset Elements cloud is under maintenance")
        await self.tree.set_state_changed(STATE_MAINTENANCE, maintenance)
        return not maintenance

    async def _schedule_retry(self) -> None:
        self.scheduler.stop()
        self._set_state(ConnectionState.WAITING_RETRY)
        self._reconnected = False
        await self.tree.set_state_changed(STATE_CONNECTION, False)
        _LOGGER.info("Stopping all timers and trying to reconnect in %s seconds", RETRY_DELAY)
        self._cancel_connect_task()
        self._connect_task = self._create_task(self._retry_after(RETRY_DELAY), "retry")

    async def _retry_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self._setup_connection()

    async def _reconnect(self) -> None:
        """Reconnect immediately, bypassing the retry backoff."""
        self.scheduler.stop()
        self._set_state(ConnectionState.RECONNECTING)
        self._reconnected = True
        await self.tree.set_state_changed(STATE_CONNECTION, False)
        self._cancel_connect_task()
        self._connect_task = self._create_task(self._setup_connection(), "reconnect")

    async def _terminate(self) -> None:
        self._terminating = True
        self.scheduler.stop()
        self._set_state(ConnectionState.TERMINATED)
        await self.tree.set_state(STATE_CONNECTION, False)
        if self._on_terminate is not None:
            self._on_terminate()

    async def _initial_sync(self) -> None:
        _LOGGER.debug("Loading basestation data...")
        base_stations = await self.api.get_base_stations()
        self._base_station_id = base_stations[0].id if base_stations else None

        _LOGGER.debug("Loading elements data...")
        elements, endpoints = await self.api.get_elements()
        await self.sync(base_stations, elements, endpoints)

    def _enter_steady(self) -> None:
        _LOGGER.debug("Starting timers for periodic events/elements retrieval...")
        self.scheduler.stop()
        self.scheduler.scheduling_enabled = True
        # elements were just loaded by the initial sync
        self.scheduler.add(JOB_ELEMENTS, self._element_interval * 60, self._refresh_elements,
                           self._handle_job_error)
        self.scheduler.add(JOB_EVENTS, self._event_interval, self._refresh_events,
                           self._handle_job_error, run_now=True)
        self.scheduler.add(JOB_HEALTH, self._health_interval * 60, self._refresh_health,
                           self._handle_job_error, run_now=True)
        self._reconnected = False
        self._set_state(ConnectionState.STEADY)

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    async def sync(
        self,
        base_stations: Iterable[BaseStation] = (),
        elements: Iterable[Element] = (),
        endpoints: Iterable[EndpointDevice] = (),
        events: Iterable[Event] = (),
    ) -> None:
        """Declare and apply a full set of records, then process events in order."""
        base_stations, elements, endpoints = list(base_stations), list(elements), list(endpoints)
        await self.projector.declare_all(
            base_stations, elements, endpoints, primary_base_station=self._base_station_id,
        )
        await self._apply(base_stations, elements, endpoints)
        await self.event_processor.process_events(events)

    async def _apply(
        self,
        base_stations: list[BaseStation],
        elements: list[Element],
        endpoints: list[EndpointDevice],
    ) -> None:
        for element in elements:
            self._elements[channel_id(element)] = element

        jobs = (
            [(bs.id, self.writer.apply_base_station(bs, primary=bs.id == self._base_station_id))
             for bs in base_stations]
            + [(element.id, self.writer.apply_element(element)) for element in elements]
            + [(endpoint.id, self.writer.apply_endpoint(endpoint)) for endpoint in endpoints]
        )
        results = await asyncio.gather(*(coro for _, coro in jobs), return_exceptions=True)
        for (entity_id, _), result in zip(jobs, results):
            if isinstance(result, Exception):
                _LOGGER.warning("Failed to update states of %s: %s", entity_id, result)

    # ------------------------------------------------------------------
    # Periodic jobs
    # ------------------------------------------------------------------

    async def _refresh_elements(self) -> None:
        _LOGGER.debug("Updating elements")
        base_stations = await self.api.get_base_stations()
        elements, endpoints = await self.api.get_elements()

        # declare what is new (or has gained capabilities) before writing values
        undeclared_bs = [bs for bs in base_stations if not self.projector.is_declared(bs.id)]
        undeclared_elements = [
            e for e in elements
            if not e.capabilities <= self.projector.declared_capabilities(channel_id(e))
            or not self.projector.is_declared(channel_id(e))
        ]
        undeclared_endpoints = [p for p in endpoints if not self.projector.is_declared(channel_id(p))]
        if undeclared_bs or undeclared_elements or undeclared_endpoints:
            await self.projector.declare_all(
                undeclared_bs, undeclared_elements, undeclared_endpoints,
                primary_base_station=self._base_station_id,
            )
        await self._apply(base_stations, elements, endpoints)

    async def _refresh_events(self) -> None:
        _LOGGER.debug("Updating events")
        start = _now_ms()
        events = await self.api.get_recent_events(self._last_event)
        await self.event_processor.process_events(events)
        self._last_event = start

    async def _refresh_health(self) -> None:
        _LOGGER.debug("Updating system health")
        health = await self.api.get_health()
        await self.writer.write(STATE_SYSTEM_HEALTH, health)

    async def _handle_job_error(self, source: str, err: Exception) -> None:
        """Classify a failure of a periodic job or a write-back command."""
        if isinstance(err, RemoteRejected):
            if err.is_auth_expired:
                _LOGGER.info("Encountered 401 Unauthorized error, stopping timers and reconnecting")
                await self._reconnect()
                return
            message = f"Endpoint error {err.status_code}, {err.method} {err.url}"
        elif isinstance(err, TransportError):
            message = "Network error"
        else:
            message = "Unknown error"
        _LOGGER.error("%s - %s: %s", source, message, err)

        if not await self._check_maintenance() and not self._terminating:
            await self._schedule_retry()

    # ------------------------------------------------------------------
    # Write-back
    # ------------------------------------------------------------------

    def _on_state_change(self, sid: str, state: State) -> None:
        if state.ack or self._terminating:
            return
        # the cloud value now has to be written again, even if unchanged
        self.writer.forget(sid)
        command = self._resolve_command(sid, state.val)
        if command is None:
            return
        self._spawn(self._run_command(sid, command))

    def _resolve_command(self, sid: str, value: Any) -> Callable[[], Awaitable] | None:
        channel, name = split_state_id(sid)

        if sid == STATE_USER_ALARM:
            return partial(self.api.set_user_alarm, bool(value))

        bs_id = self._base_station_id
        if sid == STATE_INTRUSION_MODE or (name == "intrusionMode" and self.projector.is_declared(channel)):
            target = bs_id if sid == STATE_INTRUSION_MODE else channel
            if target is None:
                _LOGGER.warning("No base station known, cannot switch intrusion mode to %s", value)
                return None
            return partial(self.api.set_intrusion_mode, target, value)

        if name in ("relay", "relayButton"):
            element = self._elements.get(channel)
            if element is None:
                _LOGGER.warning("Unknown element for %s, ignoring command", sid)
                return None
            if name == "relayButton":
                cmd = COMMAND_ON
            else:
                cmd = COMMAND_ON if value else COMMAND_OFF
            return partial(self.api.send_element_command, element.base_id, element.local_id, cmd)

        return None

    async def _run_command(self, sid: str, command: Callable[[], Awaitable]) -> None:
        _LOGGER.debug("Sending command for %s", sid)
        try:
            await command()
        except Exception as exc:  # noqa: BLE001
            await self._handle_job_error(f"command {sid}", exc)
            return
        self.scheduler.run_soon(JOB_EVENTS, COMMAND_REPOLL_DELAY)
