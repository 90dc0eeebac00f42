"""Unit tests."""

from configuration import configuration

config_dict = {
    "name": "test",
    "service": {
        "host": "localhost",
        "port": 8080,
        "auth_enabled": False,
        "workers": 1,
        "color_log": True,
        "access_log": True,
    },
    "home_assistant": {
        "allow_local_remote_servers": False,
    },
    "settings_store": {
        "type": "memory",
    },
    "authentication": {
        "module": "noop",
    },
}

# Configuration must be initialized before importing endpoints, since
# get_auth_dependency() uses it during import time
configuration.init_from_dict(config_dict)
