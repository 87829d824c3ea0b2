"""
Low-level event fetching from the Gigaset Elements cloud.

Responsible for:
- Fetching recent events since a timestamp
- Paging backwards through a time window for the diagnostic "load-events"
"""
import logging

import aiohttp

from custom_components.gigaset_elements.models import Event, parse_events_root
from custom_components.gigaset_elements.requests import make_request

_LOGGER = logging.getLogger(__name__)

API_URL = "https://api.gigaset-elements.de/api/v2/"
EVENTS_PAGE_SIZE = 500


async def fetch_events_raw(
    session: aiohttp.ClientSession,
    from_ts: int | None = None,
    to_ts: int | None = None,
    limit: int = EVENTS_PAGE_SIZE,
) -> dict:
    """
    Fetch one page of events (timestamps in ms since epoch).

    Corresponding CURL command:
    curl -X 'GET' 'https://api.gigaset-elements.de/api/v2/me/events?from_ts=FROM&to_ts=TO&limit=500'
    """
    params = {"limit": str(limit)}
    if from_ts is not None:
        params["from_ts"] = str(from_ts)
    if to_ts is not None:
        params["to_ts"] = str(to_ts)
    return await make_request(session, "GET", API_URL + "me/events", params=params) or {}


async def fetch_recent_events(session: aiohttp.ClientSession, since_ms: int) -> list[Event]:
    events = parse_events_root(await fetch_events_raw(session, from_ts=since_ms))
    _LOGGER.debug("Fetched %s event(s) since %s", len(events), since_ms)
    return events


async def fetch_all_events_raw(
    session: aiohttp.ClientSession,
    from_ts: int,
    to_ts: int | None = None,
    page_size: int = EVENTS_PAGE_SIZE,
) -> list[dict]:
    """
    Fetch every event in [from_ts, to_ts], newest first.

    The API returns at most page_size events per call, newest first; paging
    continues below the oldest timestamp seen until a short page is returned.
    """
    collected: list[dict] = []
    upper = to_ts
    while True:
        page = (await fetch_events_raw(session, from_ts=from_ts, to_ts=upper, limit=page_size)).get("events") or []
        collected.extend(page)
        if len(page) < page_size:
            break
        oldest = min(int(event["ts"]) for event in page)
        if upper is not None and oldest >= upper:
            break
        upper = oldest - 1
    _LOGGER.debug("Fetched %s event(s) between %s and %s", len(collected), from_ts, to_ts)
    return collected
