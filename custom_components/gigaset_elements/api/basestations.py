"""
Low-level base station data fetching from the Gigaset Elements cloud.

Responsible for:
- Fetching the raw base station list
- Mapping it onto BaseStation records
"""
import logging

import aiohttp

from custom_components.gigaset_elements.models import BaseStation, parse_base_station
from custom_components.gigaset_elements.requests import make_request

_LOGGER = logging.getLogger(__name__)

API_URL = "https://api.gigaset-elements.de/api/v1/"


async def fetch_base_stations_raw(session: aiohttp.ClientSession) -> list[dict]:
    """
    Corresponding CURL command:
    curl -X 'GET' 'https://api.gigaset-elements.de/api/v1/me/basestations'
    """
    return await make_request(session, "GET", API_URL + "me/basestations") or []


async def fetch_base_stations(session: aiohttp.ClientSession) -> list[BaseStation]:
    raw = await fetch_base_stations_raw(session)
    base_stations = [parse_base_station(item) for item in raw]
    _LOGGER.debug("Fetched %s base station(s)", len(base_stations))
    return base_stations
