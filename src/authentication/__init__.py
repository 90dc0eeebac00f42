"""Authentication modules and selection of the configured one."""

import logging
import os

import constants
from authentication.interface import AuthInterface
from authentication.jwk_token import JwkTokenAuthDependency
from authentication.noop import NoopAuthDependency
from configuration import configuration

logger = logging.getLogger(__name__)

DEFAULT_CONFIGURATION_FILE = "tests/configuration/ha-presence.yaml"


def get_auth_dependency() -> AuthInterface:
    """Return the authentication module selected in the configuration.

    Routers are imported before the application lifespan runs, so the
    configuration file named by the environment is loaded here when that
    has not happened yet.

    Raises:
        ValueError: the configured module is not supported.
    """
    if not configuration.is_loaded():
        configuration.load_configuration(
            os.getenv(constants.CONFIG_PATH_ENV_VARIABLE, DEFAULT_CONFIGURATION_FILE)
        )

    auth_config = configuration.authentication_configuration
    logger.debug("Using authentication module '%s'", auth_config.module)

    if auth_config.module == constants.AUTH_MOD_NOOP:
        return NoopAuthDependency()
    if auth_config.module == constants.AUTH_MOD_JWK_TOKEN:
        return JwkTokenAuthDependency(auth_config.jwk_configuration)

    message = f"Unsupported authentication module '{auth_config.module}'"
    logger.error(message)
    raise ValueError(message)
