"""
Write-back commands sent to the Gigaset Elements cloud.

Responsible for:
- Element (endnode) commands, i.e. switching a plug relay "on" / "off"
- Switching the intrusion mode of a base station
- Starting and stopping the user alarm
"""
import logging

import aiohttp

from custom_components.gigaset_elements.requests import make_request

_LOGGER = logging.getLogger(__name__)

API_URL = "https://api.gigaset-elements.de/api/v1/"


async def send_element_command(
    session: aiohttp.ClientSession, base_station_id: str, element_id: str, name: str
) -> None:
    """
    Corresponding CURL command:
    curl -X 'POST' 'https://api.gigaset-elements.de/api/v1/me/basestations/BS/endnodes/ID/cmd' \\
      -H 'Content-Type: application/json' -d '{"name": "on"}'
    """
    url = API_URL + f"me/basestations/{base_station_id}/endnodes/{element_id}/cmd"
    _LOGGER.debug("Sending command %s to element %s of %s", name, element_id, base_station_id)
    await make_request(session, "POST", url, payload={"name": name}, expect_json=False)


async def set_intrusion_mode(session: aiohttp.ClientSession, base_station_id: str, mode: str) -> None:
    """
    Corresponding CURL command:
    curl -X 'POST' 'https://api.gigaset-elements.de/api/v1/me/basestations/BS' \\
      -H 'Content-Type: application/json' -d '{"intrusion_settings": {"active_mode": "away"}}'
    """
    url = API_URL + f"me/basestations/{base_station_id}"
    _LOGGER.debug("Switching intrusion mode of %s to %s", base_station_id, mode)
    await make_request(
        session, "POST", url,
        payload={"intrusion_settings": {"active_mode": mode}},
        expect_json=False,
    )


async def set_user_alarm(session: aiohttp.ClientSession, active: bool) -> None:
    """
    Corresponding CURL command:
    curl -X 'POST' 'https://api.gigaset-elements.de/api/v1/me/user_alarm' \\
      -H 'Content-Type: application/json' -d '{"active": true}'
    """
    url = API_URL + "me/user_alarm"
    _LOGGER.debug("Setting user alarm to %s", active)
    await make_request(session, "POST", url, payload={"active": active}, expect_json=False)
