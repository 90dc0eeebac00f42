"""Abstract class that is parent for all settings store implementations."""

from abc import ABC, abstractmethod
from typing import Optional

from log import get_logger
from settings_store.lexicon import find_definition

logger = get_logger("settings_store.settings_store")


class SettingsStoreError(Exception):
    """Settings could not be read from or written to the backing store."""


class SettingsStore(ABC):
    """Key/value store with integration settings.

    All values are strings. Reading a key that has never been written
    returns its default value from the lexicon.
    """

    def get(self, key: str) -> str:
        """Get the value associated with the given key.

        Args:
            key: Settings key, one of the keys from the lexicon.

        Returns:
            Stored value, the default value when nothing is stored, or an
            empty string for unknown keys.

        Raises:
            SettingsStoreError: the backing store can not be read.
        """
        definition = find_definition(key)
        if definition is None:
            logger.warning("Reading unknown settings key %s", key)

        value = self._read(key)
        if value is not None:
            return value
        return definition.default if definition is not None else ""

    def set(self, key: str, value: str) -> None:
        """Set the value associated with the given key."""
        self.set_many({key: value})

    def set_many(self, values: dict[str, str]) -> None:
        """Set several values at once.

        Either all values are stored or, when the store fails, none of them.

        Args:
            values: Mapping of settings keys to new values.

        Raises:
            SettingsStoreError: the backing store can not be written.
        """
        for key, value in values.items():
            definition = find_definition(key)
            if definition is None:
                logger.warning("Writing unknown settings key %s", key)
            if definition is not None and definition.sensitive:
                logger.info("Updating settings key %s", key)
            else:
                logger.info("Updating settings key %s to '%s'", key, value)
        self._write_many(values)

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        """Read raw value, None when the key has not been stored yet."""

    @abstractmethod
    def _write_many(self, values: dict[str, str]) -> None:
        """Write raw values in one transaction."""

    @abstractmethod
    def ready(self) -> bool:
        """Check if the store is ready to be used."""
