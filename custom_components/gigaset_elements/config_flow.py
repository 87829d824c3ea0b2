"""Config flow for the Gigaset Elements integration."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    DOMAIN,
    CONF_AUTH_INTERVAL,
    CONF_EVENT_INTERVAL,
    CONF_ELEMENT_INTERVAL,
    CONF_SYSTEM_HEALTH_INTERVAL,
    DEFAULT_AUTH_INTERVAL,
    DEFAULT_EVENT_INTERVAL,
    DEFAULT_ELEMENT_INTERVAL,
    DEFAULT_SYSTEM_HEALTH_INTERVAL,
)
from .errors import RemoteRejected, TransportError
from .gigaset_api import GigasetElementsApi

_LOGGER = logging.getLogger(__name__)

positive_int = vol.All(vol.Coerce(int), vol.Range(min=1))
non_negative_int = vol.All(vol.Coerce(int), vol.Range(min=0))

DEFAULTS = {
    'email': '',
    'password': '',
    CONF_AUTH_INTERVAL: DEFAULT_AUTH_INTERVAL,
    CONF_EVENT_INTERVAL: DEFAULT_EVENT_INTERVAL,
    CONF_ELEMENT_INTERVAL: DEFAULT_ELEMENT_INTERVAL,
    CONF_SYSTEM_HEALTH_INTERVAL: DEFAULT_SYSTEM_HEALTH_INTERVAL,
}


def _build_schema(defaults: Dict[str, Any]) -> vol.Schema:
    return vol.Schema(
        {
            vol.Required('email', default=defaults['email']): cv.string,
            vol.Required('password', default=defaults['password']): cv.string,
            vol.Required(CONF_AUTH_INTERVAL, default=defaults[CONF_AUTH_INTERVAL]): positive_int,
            vol.Required(CONF_EVENT_INTERVAL, default=defaults[CONF_EVENT_INTERVAL]): positive_int,
            vol.Required(CONF_ELEMENT_INTERVAL, default=defaults[CONF_ELEMENT_INTERVAL]): positive_int,
            vol.Required(CONF_SYSTEM_HEALTH_INTERVAL, default=defaults[CONF_SYSTEM_HEALTH_INTERVAL]):
                non_negative_int,
        }
    )


CONFIG_SCHEMA = _build_schema(DEFAULTS)


async def _validate_credentials(email: str, password: str) -> str | None:
    """
    Try to authorize against the Gigaset Elements cloud.

    Returns None on success, "cannot_connect" if the cloud is unreachable,
    or "invalid_auth" if the credentials were rejected.
    """
    api = GigasetElementsApi(email=email, password=password)
    try:
        await api.authorize()
    except RemoteRejected as e:
        if e.status_code in (400, 401, 403):
            _LOGGER.warning("Gigaset Elements cloud rejected the credentials: %s", e)
            return "invalid_auth"
        _LOGGER.warning("Gigaset Elements cloud answered with an error: %s", e)
        return "cannot_connect"
    except TransportError as e:
        _LOGGER.warning("Gigaset Elements cloud not reachable: %s", e)
        return "cannot_connect"
    except Exception as e:  # noqa: BLE001
        _LOGGER.warning("Unexpected error while validating credentials: %s", e)
        return "cannot_connect"
    finally:
        await api.close()
    return None


def _check_required(user_input: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    # If email is null or empty string, add error
    if not user_input.get('email'):
        errors['base'] = 'email_required'
    # If password is null or empty string, add error
    if not user_input.get('password'):
        errors['base'] = 'password_required'
    return errors


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = {**DEFAULTS, **user_input}
            errors = _check_required(self.data)
            if not errors:
                self._async_abort_entries_match({'email': self.data['email']})
                error = await _validate_credentials(self.data['email'], self.data['password'])
                if error:
                    errors['base'] = error
            if not errors:
                return self.async_create_entry(title=self.data['email'], data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    def _current(self) -> Dict[str, Any]:
        # options take precedence over the original entry data
        return {**DEFAULTS, **self._entry.data, **self._entry.options}

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}
        current = self._current()

        if user_input is not None:
            errors = _check_required(user_input)
            credentials_changed = (
                user_input.get('email') != current['email']
                or user_input.get('password') != current['password']
            )
            if not errors and credentials_changed:
                error = await _validate_credentials(user_input['email'], user_input['password'])
                if error:
                    errors['base'] = error
            if not errors:
                new_data = {**current, **user_input}
                self.hass.config_entries.async_update_entry(
                    self._entry,
                    data=new_data,
                    title=new_data['email'],
                )
                return self.async_create_entry(title=new_data['email'], data=new_data)

        return self.async_show_form(step_id="init", data_schema=_build_schema(current), errors=errors)
