"""
Low-level element data fetching from the Gigaset Elements cloud.

The elements endpoint returns the sensors of every base station ("bs01") and
the phone endpoints ("gp02") in one payload.
"""
import logging

import aiohttp

from custom_components.gigaset_elements.models import Element, EndpointDevice, parse_elements_root
from custom_components.gigaset_elements.requests import make_request

_LOGGER = logging.getLogger(__name__)

API_URL = "https://api.gigaset-elements.de/api/v2/"


async def fetch_elements_raw(session: aiohttp.ClientSession) -> dict:
    """
    Corresponding CURL command:
    curl -X 'GET' 'https://api.gigaset-elements.de/api/v2/me/elements'
    """
    return await make_request(session, "GET", API_URL + "me/elements") or {}


async def fetch_elements(session: aiohttp.ClientSession) -> tuple[list[Element], list[EndpointDevice]]:
    raw = await fetch_elements_raw(session)
    elements, endpoints = parse_elements_root(raw)
    _LOGGER.debug("Fetched %s element(s) and %s endpoint(s)", len(elements), len(endpoints))
    return elements, endpoints
