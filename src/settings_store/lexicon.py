"""Definition of keys that can be kept in the settings store."""

from dataclasses import dataclass
from typing import Optional

import constants


@dataclass(frozen=True)
class SettingDefinition:
    """Key known to the settings store together with its default value."""

    key: str
    default: str
    definition: str
    sensitive: bool = False


SETTINGS_LEXICON: tuple[SettingDefinition, ...] = (
    SettingDefinition(
        key=constants.SETTING_HA_URL,
        default="",
        definition="Home Assistant URL",
    ),
    SettingDefinition(
        key=constants.SETTING_HA_TOKEN,
        default="",
        definition="Home Assistant long-lived access token",
        sensitive=True,
    ),
    SettingDefinition(
        key=constants.SETTING_HA_POLLING_INTERVAL,
        default=str(constants.DEFAULT_POLLING_INTERVAL),
        definition="Polling interval in seconds (minimum 10)",
    ),
    SettingDefinition(
        key=constants.SETTING_HA_CONNECTION_TIMEOUT,
        default=str(constants.DEFAULT_CONNECTION_TIMEOUT),
        definition="Connection timeout in seconds",
    ),
    SettingDefinition(
        key=constants.SETTING_HA_VERIFY_SSL,
        default="1",
        definition="Whether to verify SSL certificates (1 for true, 0 for false)",
    ),
)

_LEXICON_BY_KEY = {entry.key: entry for entry in SETTINGS_LEXICON}


def find_definition(key: str) -> Optional[SettingDefinition]:
    """Return definition of the key or None when the key is unknown."""
    return _LEXICON_BY_KEY.get(key)
