"""
GigasetElementsApi — client facade over the api/* request modules.

Owns the authenticated aiohttp session and the authorization timestamp, and
returns typed records (models.py) to the coordinator.  Every failure surfaces
as TransportError or RemoteRejected.
"""
from __future__ import annotations

import logging
from datetime import datetime

import aiohttp

from .api import auth, basestations, commands, elements, events, status
from .const import DEFAULT_AUTH_INTERVAL
from .models import BaseStation, Element, EndpointDevice, Event

_LOGGER = logging.getLogger(__name__)


def _to_ms(value: datetime | int | None) -> int | None:
    if value is None or isinstance(value, int):
        return value
    return int(value.timestamp() * 1000)


class GigasetElementsApi:
    """Async client for the Gigaset Elements cloud."""

    def __init__(
        self,
        email: str,
        password: str,
        auth_interval: float = DEFAULT_AUTH_INTERVAL,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.email = email
        self._password = password
        self.auth_interval = auth_interval
        self._session = session
        self._owns_session = session is None
        self._last_authorization: float | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # dedicated cookie jar: the cloud authenticates via cookies
            self._session = aiohttp.ClientSession(cookie_jar=aiohttp.CookieJar())
            self._owns_session = True
        return self._session

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    async def authorize(self) -> None:
        self._last_authorization = await auth.authorize(self.session, self.email, self._password)

    async def ensure_authorized(self) -> None:
        """Re-authorize when the last authorization is older than auth_interval hours."""
        if auth.needs_renewal(self._last_authorization, self.auth_interval):
            _LOGGER.debug("Authorization expired, renewing")
            await self.authorize()

    async def is_maintenance(self) -> bool:
        return await status.fetch_maintenance(self.session)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def get_base_stations(self) -> list[BaseStation]:
        await self.ensure_authorized()
        return await basestations.fetch_base_stations(self.session)

    async def get_elements(self) -> tuple[list[Element], list[EndpointDevice]]:
        await self.ensure_authorized()
        return await elements.fetch_elements(self.session)

    async def get_recent_events(self, since_ms: int) -> list[Event]:
        await self.ensure_authorized()
        return await events.fetch_recent_events(self.session, since_ms)

    async def get_health(self) -> str:
        await self.ensure_authorized()
        return await status.fetch_health(self.session)

    # Raw payloads, used by the diagnostic handler

    async def load_base_stations(self) -> list[dict]:
        await self.ensure_authorized()
        return await basestations.fetch_base_stations_raw(self.session)

    async def load_elements(self) -> dict:
        await self.ensure_authorized()
        return await elements.fetch_elements_raw(self.session)

    async def get_all_events(self, from_ts: datetime | int, to_ts: datetime | int | None = None) -> list[dict]:
        await self.ensure_authorized()
        return await events.fetch_all_events_raw(self.session, _to_ms(from_ts), _to_ms(to_ts))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send_element_command(self, base_station_id: str, element_id: str, name: str) -> None:
        await self.ensure_authorized()
        await commands.send_element_command(self.session, base_station_id, element_id, name)

    async def set_intrusion_mode(self, base_station_id: str, mode: str) -> None:
        await self.ensure_authorized()
        await commands.set_intrusion_mode(self.session, base_station_id, mode)

    async def set_user_alarm(self, active: bool) -> None:
        await self.ensure_authorized()
        await commands.set_user_alarm(self.session, active)

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
