"""Constants used in business logic."""

# Home Assistant REST API paths
HA_API_BASE_PATH = "/api/"
HA_API_STATES_PATH = "/api/states"

# Only entities with this prefix are treated as presence entities
PERSON_ENTITY_PREFIX = "person."
DEFAULT_PERSON_STATE = "unknown"

# The presence cache only ever stores one logical query
PRESENCE_CACHE_KEY = "person_presence"

# Settings store keys
SETTING_HA_URL = "ha_url"
SETTING_HA_TOKEN = "ha_token"
SETTING_HA_POLLING_INTERVAL = "ha_polling_interval"
SETTING_HA_CONNECTION_TIMEOUT = "ha_connection_timeout"
SETTING_HA_VERIFY_SSL = "ha_verify_ssl"

DEFAULT_POLLING_INTERVAL = 30
MINIMAL_POLLING_INTERVAL = 10
DEFAULT_CONNECTION_TIMEOUT = 10
MINIMAL_CONNECTION_TIMEOUT = 5
MAXIMAL_CONNECTION_TIMEOUT = 60

# User-facing messages returned by the presence service
NOT_CONFIGURED_MESSAGE = "Home Assistant is not configured"
MISSING_URL_OR_TOKEN_MESSAGE = "Home Assistant URL and token must be configured"
INVALID_RESPONSE_MESSAGE = "Invalid response from Home Assistant"
FETCH_CONNECTION_FAILED_MESSAGE = (
    "Could not connect to Home Assistant. Please check your settings."
)
TEST_CONNECTION_FAILED_MESSAGE = (
    "Could not connect to Home Assistant. Please verify the URL is correct "
    "and the server is running and accessible."
)
TEST_CONNECTION_SUCCESS_MESSAGE = "Successfully connected to Home Assistant"
SETTINGS_UNAVAILABLE_MESSAGE = "Home Assistant settings could not be read"
LOCAL_DESTINATION_BLOCKED_MESSAGE = (
    "Cannot connect to a local server. If your Home Assistant is on a local "
    "network, ask your administrator to set "
    '"allow_local_remote_servers: true" in the home_assistant section of the '
    "service configuration."
)

# Used in logs instead of URLs that can not be parsed
INVALID_URL_PLACEHOLDER = "invalid-url"

# Authentication constants
DEFAULT_USER_NAME = "ha-presence-user"
DEFAULT_USER_UID = "00000000-0000-0000-0000-000"
# default value for token when no token is provided
NO_USER_TOKEN = ""
AUTH_MOD_NOOP = "noop"
AUTH_MOD_JWK_TOKEN = "jwk-token"
# Supported authentication modules
SUPPORTED_AUTHENTICATION_MODULES = frozenset({AUTH_MOD_NOOP, AUTH_MOD_JWK_TOKEN})
DEFAULT_AUTHENTICATION_MODULE = AUTH_MOD_NOOP
DEFAULT_JWT_UID_CLAIM = "user_id"
DEFAULT_JWT_USER_NAME_CLAIM = "username"

# PostgreSQL connection constants
# See: https://www.postgresql.org/docs/current/libpq-connect.html#LIBPQ-CONNECT-SSLMODE
POSTGRES_DEFAULT_SSL_MODE = "prefer"
# See: https://www.postgresql.org/docs/current/libpq-connect.html#LIBPQ-CONNECT-GSSENCMODE
POSTGRES_DEFAULT_GSS_ENCMODE = "prefer"

# settings store constants
SETTINGS_STORE_TYPE_MEMORY = "memory"
SETTINGS_STORE_TYPE_DATABASE = "database"

# environment variable used to pass configuration file to uvicorn workers
CONFIG_PATH_ENV_VARIABLE = "HA_PRESENCE_CONFIG_PATH"
