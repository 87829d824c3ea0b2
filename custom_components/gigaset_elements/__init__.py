import logging
from functools import partial

import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries, core
from homeassistant.config_entries import ConfigEntryState
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.exceptions import ConfigEntryNotReady, HomeAssistantError

from .config_flow import _validate_credentials
from .const import (
    DOMAIN,
    CONF_AUTH_INTERVAL,
    DEFAULT_AUTH_INTERVAL,
)
from .coordinator import GigasetElementsCoordinator
from .gigaset_api import GigasetElementsApi
from .message_handler import handle_message
from .state_tree import StateTree

PLATFORMS: list[Platform] = [
    Platform.BINARY_SENSOR,
    Platform.SENSOR,
    Platform.SWITCH,
    Platform.BUTTON,
    Platform.SELECT,
]
_LOGGER = logging.getLogger(__name__)

SERVICE_TEST = "test"
SERVICE_DEBUG = "debug"
ATTR_CONFIG_ENTRY_ID = "config_entry_id"

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

TEST_SERVICE_SCHEMA = vol.Schema(
    {
        vol.Required("message"): vol.In(["ping", "process-test-data"]),
        vol.Optional(ATTR_CONFIG_ENTRY_ID): cv.string,
    }
)
DEBUG_SERVICE_SCHEMA = vol.Schema(
    {
        vol.Required("action"): vol.In(["load-bases-elements", "load-events", "prepare-test-data"]),
        vol.Optional("from"): cv.string,
        vol.Optional("to"): cv.string,
        vol.Optional(ATTR_CONFIG_ENTRY_ID): cv.string,
    }
)


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration and its diagnostic services."""
    hass.data.setdefault(DOMAIN, {})

    async def _handle_test(call: ServiceCall) -> ServiceResponse:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_CONFIG_ENTRY_ID))
        return await handle_message(coordinator, "test", call.data["message"])

    async def _handle_debug(call: ServiceCall) -> ServiceResponse:
        coordinator = _get_coordinator(hass, call.data.get(ATTR_CONFIG_ENTRY_ID))
        message = {key: value for key, value in call.data.items() if key != ATTR_CONFIG_ENTRY_ID}
        return await handle_message(coordinator, "debug", message)

    hass.services.async_register(
        DOMAIN, SERVICE_TEST, _handle_test, schema=TEST_SERVICE_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        DOMAIN, SERVICE_DEBUG, _handle_debug, schema=DEBUG_SERVICE_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    return True


def _get_coordinator(hass: HomeAssistant, entry_id: str | None) -> GigasetElementsCoordinator:
    """Return the coordinator of the given (or the first loaded) config entry."""
    for entry in hass.config_entries.async_entries(DOMAIN):
        if entry.state is not ConfigEntryState.LOADED:
            continue
        if entry_id is None or entry.entry_id == entry_id:
            return entry.runtime_data
    raise HomeAssistantError("No loaded Gigaset Elements config entry found")


def _masked_config(config: dict) -> dict:
    return {**config, "password": "***" if config.get("password") else "<empty>"}


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    config = {**entry.data, **entry.options}
    _LOGGER.debug("configuration: %s", _masked_config(config))

    error = await _validate_credentials(config["email"], config["password"])
    if error == "cannot_connect":
        raise ConfigEntryNotReady("Cannot connect to the Gigaset Elements cloud")
    if error == "invalid_auth":
        raise ConfigEntryNotReady("Gigaset Elements cloud rejected the credentials")

    api = GigasetElementsApi(
        email=config["email"],
        password=config["password"],
        auth_interval=config.get(CONF_AUTH_INTERVAL, DEFAULT_AUTH_INTERVAL),
    )
    coordinator = GigasetElementsCoordinator(
        api,
        StateTree(),
        config,
        on_terminate=partial(_async_terminate_entry, hass, entry),
        task_factory=_entry_task_factory(hass, entry),
    )
    entry.runtime_data = coordinator

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # the connection sequence may wait for maintenance windows; don't block setup on it
    entry.async_create_background_task(hass, coordinator.async_start(), f"{DOMAIN}_start")

    return True


def _entry_task_factory(hass: HomeAssistant, entry: config_entries.ConfigEntry):
    """Create coordinator tasks as entry background tasks so HA tracks and cancels them."""

    def create_task(coro, name: str):
        return entry.async_create_background_task(hass, coro, f"{DOMAIN}_{name}", eager_start=False)

    return create_task


def _async_terminate_entry(hass: HomeAssistant, entry: config_entries.ConfigEntry) -> None:
    """Unload the entry after an unrecoverable authorization failure."""
    _LOGGER.error("Unloading Gigaset Elements integration, please check the configured credentials")
    hass.async_create_task(hass.config_entries.async_unload(entry.entry_id))


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # Reload the integration when the options change.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        await entry.runtime_data.async_shutdown()
    return unloaded
