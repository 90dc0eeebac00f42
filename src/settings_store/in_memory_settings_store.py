"""In-memory settings store implementation."""

from typing import Optional

from settings_store.settings_store import SettingsStore


class InMemorySettingsStore(SettingsStore):
    """Settings kept in process memory, lost on restart."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        """Create a new instance of in-memory settings store."""
        self._values: dict[str, str] = dict(initial or {})

    def _read(self, key: str) -> Optional[str]:
        """Read raw value."""
        return self._values.get(key)

    def _write_many(self, values: dict[str, str]) -> None:
        """Write raw values."""
        self._values.update(values)

    def ready(self) -> bool:
        """Check if the store is ready.

        Returns:
            True in all cases.
        """
        return True
