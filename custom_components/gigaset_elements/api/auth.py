"""
Low-level authentication logic for the Gigaset Elements cloud.

Responsible for:
- Logging in at the Gigaset identity service (sets the user token cookie)
- Opening an API session via the OpenID handshake (sets the session cookie)
- Deciding when an authorization has to be renewed

Authentication is cookie based: both calls must go through the same
aiohttp session, which then authenticates every subsequent API call.
"""
import logging
import time

import aiohttp

from custom_components.gigaset_elements.requests import make_request

_LOGGER = logging.getLogger(__name__)

IDENTITY_URL = "https://im.gigaset-elements.de/identity/api/v1/"
API_URL = "https://api.gigaset-elements.de/api/v1/"


async def login(session: aiohttp.ClientSession, email: str, password: str) -> dict:
    """
    Log in at the identity service.

    Corresponding CURL command:
    curl -X 'POST' 'https://im.gigaset-elements.de/identity/api/v1/user/login' \\
      -d 'email=EMAIL&password=PASSWORD'
    """
    url = IDENTITY_URL + "user/login"
    return await make_request(
        session, "POST", url,
        headers={"accept": "application/json"},
        data={"email": email, "password": password},
    )


async def begin_session(session: aiohttp.ClientSession) -> None:
    """
    Exchange the identity cookie for an API session cookie.

    Corresponding CURL command:
    curl -X 'GET' 'https://api.gigaset-elements.de/api/v1/auth/openid/begin?op=gigaset'
    """
    url = API_URL + "auth/openid/begin"
    await make_request(session, "GET", url, params={"op": "gigaset"}, expect_json=False)


async def authorize(session: aiohttp.ClientSession, email: str, password: str) -> float:
    """Run the full login handshake. Returns the time of the authorization."""
    _LOGGER.debug("Logging in as %s", email)
    await login(session, email, password)
    await begin_session(session)
    _LOGGER.debug("Authorization successful")
    return time.time()


def needs_renewal(last_authorization: float | None, renewal_hours: float) -> bool:
    """True if there never was an authorization or it is older than renewal_hours."""
    if last_authorization is None:
        return True
    if renewal_hours <= 0:
        return False
    return (time.time() - last_authorization) > renewal_hours * 3600
