DOMAIN = "gigaset_elements"
VERSION = "0.6.0"

# Config entry keys
CONF_AUTH_INTERVAL = "auth_interval"
CONF_EVENT_INTERVAL = "event_interval"
CONF_ELEMENT_INTERVAL = "element_interval"
CONF_SYSTEM_HEALTH_INTERVAL = "system_health_interval"

DEFAULT_AUTH_INTERVAL = 6            # hours between forced re-authorizations
DEFAULT_EVENT_INTERVAL = 10          # seconds
DEFAULT_ELEMENT_INTERVAL = 5         # minutes
DEFAULT_SYSTEM_HEALTH_INTERVAL = 1   # minutes

# Supervisor timings (seconds)
RETRY_DELAY = 300        # fixed backoff between connection attempts
COMMAND_REPOLL_DELAY = 2  # accelerated event poll after a write-back command

# Periodic job names
JOB_ELEMENTS = "elements"
JOB_EVENTS = "events"
JOB_HEALTH = "health"

# Global state ids
STATE_CONNECTION = "info.connection"
STATE_MAINTENANCE = "info.maintenance"
STATE_INTRUSION = "info.intrusion"
STATE_INTRUSION_MODE = "info.intrusionMode"
STATE_USER_ALARM = "info.userAlarm"
STATE_SYSTEM_HEALTH = "info.systemHealth"

# Endpoint (phone) channels live under a fixed prefix, i.e. "gp02-<id>"
ENDPOINT_CHANNEL_PREFIX = "gp02-"
# Origin type of call events; these address the endpoint by source_id
CALL_ORIGIN_TYPE = "gp02.call"
UNKNOWN_CALLER = "unknown"

# Element subtypes which get an "alarm" state
ALARM_SUBTYPES = frozenset({
    "is01",  # siren
    "um01",  # universal
    "ds02",  # door
    "ws02",  # window
    "wd01",  # water
})

# Element capability → (state name, common) for optional states.
# A state is declared only when the capability was observed in the payload.
ELEMENT_OPTIONAL_STATES: dict[str, dict] = {
    "roomName": {"name": "room friendly name", "type": "string", "role": "text"},
    "battery": {"name": "battery state", "type": "string", "role": "text"},
    "position": {"name": "window/door state", "type": "number", "role": "value.window",
                 "states": {"0": "closed", "1": "tilted", "2": "open"}},
    "temperature": {"name": "temperature", "type": "number", "role": "value.temperature", "unit": "°C"},
    "pressure": {"name": "air pressure", "type": "number", "role": "value.pressure", "unit": "hPa"},
    "humidity": {"name": "humidity", "type": "number", "role": "value.humidity", "unit": "%"},
    "testRequired": {"name": "testRequired", "type": "boolean", "role": "indicator.maintenance"},
    "smokeDetected": {"name": "smokeDetected", "type": "boolean", "role": "indicator.alarm.fire"},
    "unmounted": {"name": "unmounted", "type": "boolean", "role": "indicator"},
    "permanentBatteryLow": {"name": "permanentBatteryLow", "type": "boolean", "role": "indicator.lowbat"},
    "permanentBatteryChangeRequest": {"name": "permanentBatteryChangeRequest", "type": "boolean",
                                      "role": "indicator.maintenance.lowbat"},
    "smokeChamberFail": {"name": "smokeChamberFail", "type": "boolean", "role": "indicator.maintenance"},
    "smokeDetectorOff": {"name": "smokeDetectorOff", "type": "boolean", "role": "indicator"},
}

# Top-level maintenance flags copied verbatim from the element payload
ELEMENT_FLAG_FIELDS = (
    "smokeDetected",
    "unmounted",
    "permanentBatteryLow",
    "permanentBatteryChangeRequest",
    "smokeChamberFail",
    "smokeDetectorOff",
)

# Remote element commands
COMMAND_ON = "on"
COMMAND_OFF = "off"
