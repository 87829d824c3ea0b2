"""
Cloud status queries: maintenance flag and system health.
"""
import logging

import aiohttp

from custom_components.gigaset_elements.requests import make_request

_LOGGER = logging.getLogger(__name__)

STATUS_URL = "https://status.gigaset-elements.de/api/v1/status"
HEALTH_URL = "https://api.gigaset-elements.de/api/v2/me/health"


async def fetch_maintenance(session: aiohttp.ClientSession) -> bool:
    """
    Return whether the cloud reports a maintenance window.

    Corresponding CURL command:
    curl -X 'GET' 'https://status.gigaset-elements.de/api/v1/status'
    """
    json_response = await make_request(session, "GET", STATUS_URL)
    return bool((json_response or {}).get("isMaintenance", False))


async def fetch_health(session: aiohttp.ClientSession) -> str:
    """
    Return the overall system health (i.e. "green", "orange", "red").

    Corresponding CURL command:
    curl -X 'GET' 'https://api.gigaset-elements.de/api/v2/me/health'
    """
    json_response = await make_request(session, "GET", HEALTH_URL) or {}
    health = json_response.get("system_health")
    if health is None:
        _LOGGER.debug("Health response without system_health: %s", json_response)
        return "unknown"
    return str(health)
