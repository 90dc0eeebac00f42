"""Settings store factory class."""

import constants
from models.config import SettingsStoreConfiguration
from settings_store.settings_store import SettingsStore
from settings_store.in_memory_settings_store import InMemorySettingsStore
from settings_store.database_settings_store import DatabaseSettingsStore
from log import get_logger

logger = get_logger("settings_store.settings_store_factory")


# pylint: disable=R0903
class SettingsStoreFactory:
    """Settings store factory class."""

    @staticmethod
    def settings_store(config: SettingsStoreConfiguration) -> SettingsStore:
        """Create an instance of SettingsStore based on loaded configuration.

        Returns:
            An instance of `SettingsStore` (either `InMemorySettingsStore` or
            `DatabaseSettingsStore`).
        """
        logger.info("Creating settings store instance of type %s", config.type)
        match config.type:
            case constants.SETTINGS_STORE_TYPE_MEMORY:
                return InMemorySettingsStore()
            case constants.SETTINGS_STORE_TYPE_DATABASE:
                return DatabaseSettingsStore()
            case _:
                raise ValueError(
                    f"Invalid settings store type: {config.type}. "
                    f"Use '{constants.SETTINGS_STORE_TYPE_MEMORY}' or "
                    f"'{constants.SETTINGS_STORE_TYPE_DATABASE}' options."
                )
